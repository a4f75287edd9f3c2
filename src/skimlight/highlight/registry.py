"""Registry of applied highlight markers and their reversal.

The registry holds node handles, not nodes.  Reversal unwraps every tracked
marker back into plain text, re-merges the surrounding text nodes, and then
sweeps the document for marker elements it does not know about (left behind
by an earlier session that lost its registry).
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import TYPE_CHECKING

from skimlight.dom.document import DetachedAnchorError
from skimlight.highlight.marker_constants import MARKER_ATTR, MARKER_ATTR_VALUE

if TYPE_CHECKING:
    from collections.abc import Iterator

    from skimlight.dom.document import Document, NodeId

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class HighlightMarker:
    """A marker element wrapping one matched run of text.

    Attributes:
        text: The matched text, in its source casing.
        node: Handle of the marker element.
    """

    text: str
    node: NodeId


class HighlightRegistry:
    """The set of markers currently applied to one document."""

    def __init__(self, document: Document) -> None:
        self.document = document
        self._markers: dict[NodeId, HighlightMarker] = {}

    def add(self, marker: HighlightMarker) -> None:
        self._markers[marker.node] = marker

    def __len__(self) -> int:
        return len(self._markers)

    def __iter__(self) -> Iterator[HighlightMarker]:
        return iter(list(self._markers.values()))

    def __contains__(self, node: object) -> bool:
        return node in self._markers

    def nodes(self) -> frozenset[NodeId]:
        """Handles of all tracked markers."""
        return frozenset(self._markers)

    def clear_all(self) -> int:
        """Remove every marker from the document and empty the registry.

        Idempotent: with nothing tracked and no stray markers in the
        document this changes nothing.  Markers whose anchor has been
        detached by the host page are skipped.

        Returns:
            Number of markers unwrapped (tracked plus swept).
        """
        removed = 0
        skipped = 0
        for marker in list(self._markers.values()):
            try:
                unwrap_marker(self.document, marker.node, marker.text)
            except DetachedAnchorError as exc:
                skipped += 1
                logger.debug("Skipping marker during reversal: %s", exc)
                continue
            removed += 1
        self._markers.clear()

        swept = sweep_orphan_markers(self.document)
        if removed or skipped or swept:
            logger.info(
                "Cleared highlights: %d tracked, %d orphaned, %d detached",
                removed,
                swept,
                skipped,
            )
        return removed + swept


def unwrap_marker(document: Document, marker: NodeId, text: str | None = None) -> None:
    """Replace *marker* with a plain text node and re-merge its parent's text.

    Args:
        document: The document holding the marker.
        marker: Handle of the marker element.
        text: Text to restore; defaults to the marker's current text content.

    Raises:
        DetachedAnchorError: If the marker is released or no longer attached.
    """
    if not document.is_attached(marker):
        raise DetachedAnchorError(marker, "marker is not attached")

    parent = document.parent(marker)
    if parent is None:
        raise DetachedAnchorError(marker)
    restored = document.text_content(marker) if text is None else text
    replacement = document.create_text(restored)
    document.replace_with(marker, [replacement])
    document.release(marker)
    document.normalize(parent)


def sweep_orphan_markers(document: Document) -> int:
    """Unwrap marker elements anywhere in the document.

    Returns:
        Number of markers removed.
    """
    orphans = document.find_elements(MARKER_ATTR, MARKER_ATTR_VALUE)
    removed = 0
    for marker in orphans:
        # A marker nested in an earlier orphan has already been released
        if marker not in document:
            continue
        try:
            unwrap_marker(document, marker)
        except DetachedAnchorError as exc:
            logger.debug("Skipping orphan marker: %s", exc)
            continue
        removed += 1
    return removed
