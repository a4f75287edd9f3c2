"""Text ranges over the document's visible text nodes.

A range is bounded by two (text node, character offset) pairs, like a DOM
``Range`` whose containers are text nodes.
"""

from __future__ import annotations

import bisect
import re
from dataclasses import dataclass
from typing import TYPE_CHECKING

from skimlight.dom.document import DetachedAnchorError

if TYPE_CHECKING:
    from skimlight.dom.document import Document, NodeId


@dataclass(frozen=True)
class RangeBoundary:
    """Start and end points of a selection, both inside text nodes."""

    start_node: NodeId
    start_offset: int
    end_node: NodeId
    end_offset: int

    @property
    def collapsed(self) -> bool:
        return self.start_node == self.end_node and self.start_offset == self.end_offset


def range_text(document: Document, boundary: RangeBoundary) -> str:
    """Return the visible text covered by *boundary*.

    Equivalent to ``Selection.toString()`` for ranges whose containers are
    text nodes.

    Raises:
        DetachedAnchorError: If either boundary node has left the document.
    """
    for node in (boundary.start_node, boundary.end_node):
        if not document.is_attached(node):
            raise DetachedAnchorError(node, "selection boundary is not attached")

    if boundary.start_node == boundary.end_node:
        text = document.text(boundary.start_node)
        return text[boundary.start_offset : boundary.end_offset]

    parts: list[str] = []
    collecting = False
    for node in document.iter_text_nodes(document.root):
        if node == boundary.start_node:
            parts.append(document.text(node)[boundary.start_offset :])
            collecting = True
        elif node == boundary.end_node:
            if collecting:
                parts.append(document.text(node)[: boundary.end_offset])
            break
        elif collecting:
            parts.append(document.text(node))
    return "".join(parts)


def find_text_range(
    document: Document, needle: str, *, root: NodeId | None = None
) -> RangeBoundary | None:
    """Locate the first occurrence of *needle* across visible text nodes.

    An exact match is preferred; otherwise the first case-insensitive match
    is used.  Returns None when the text does not occur.
    """
    if not needle:
        return None

    nodes: list[NodeId] = []
    starts: list[int] = []
    parts: list[str] = []
    position = 0
    for node in document.iter_text_nodes(document.body if root is None else root):
        text = document.text(node)
        if not text:
            continue
        nodes.append(node)
        starts.append(position)
        parts.append(text)
        position += len(text)

    joined = "".join(parts)
    index = joined.find(needle)
    if index != -1:
        end = index + len(needle)
    else:
        found = re.search(re.escape(needle), joined, re.IGNORECASE)
        if found is None:
            return None
        index, end = found.span()

    first = bisect.bisect_right(starts, index) - 1
    last = bisect.bisect_left(starts, end) - 1
    return RangeBoundary(
        start_node=nodes[first],
        start_offset=index - starts[first],
        end_node=nodes[last],
        end_offset=end - starts[last],
    )
