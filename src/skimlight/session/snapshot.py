"""Immutable capture of the reader's selection at trigger time.

The live selection is volatile: the overlay and the highlight pass both
mutate the tree, after which the range and its bounding rectangle no longer
describe what the reader selected.  The snapshot freezes them first.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import TYPE_CHECKING

from skimlight.dom.ranges import range_text

if TYPE_CHECKING:
    from skimlight.dom.document import Document
    from skimlight.dom.ranges import RangeBoundary


@dataclass(frozen=True)
class Rect:
    """Bounding rectangle in viewport coordinates."""

    x: float = 0.0
    y: float = 0.0
    width: float = 0.0
    height: float = 0.0

    @property
    def left(self) -> float:
        return self.x

    @property
    def top(self) -> float:
        return self.y

    @property
    def right(self) -> float:
        return self.x + self.width

    @property
    def bottom(self) -> float:
        return self.y + self.height

    @property
    def is_empty(self) -> bool:
        return self.width == 0 and self.height == 0


@dataclass(frozen=True)
class SelectionSnapshot:
    """Selected text, its range boundary and its bounding rectangle."""

    text: str
    boundary: RangeBoundary
    rect: Rect


def capture_snapshot(
    document: Document, boundary: RangeBoundary, rect: Rect
) -> SelectionSnapshot:
    """Freeze the current selection.

    Raises:
        DetachedAnchorError: If a boundary node has already left the tree.
    """
    return SelectionSnapshot(
        text=range_text(document, boundary).strip(), boundary=boundary, rect=rect
    )
