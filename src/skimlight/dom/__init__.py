"""Document tree: arena storage, handles, ranges and HTML I/O."""

from skimlight.dom.document import (
    INVISIBLE_TAGS,
    DetachedAnchorError,
    Document,
    NodeId,
    NodeKind,
)
from skimlight.dom.ranges import RangeBoundary, find_text_range, range_text

__all__ = [
    "INVISIBLE_TAGS",
    "DetachedAnchorError",
    "Document",
    "NodeId",
    "NodeKind",
    "RangeBoundary",
    "find_text_range",
    "range_text",
]
