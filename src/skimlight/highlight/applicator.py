"""Highlight application: wrap phrase occurrences in marker elements.

Each text node containing a phrase is replaced, in one structural edit, by
alternating plain-text and marker nodes.  Within a phrase, candidate nodes
are processed last-to-first so that replacing one node never disturbs the
position of a node still waiting in the list.  Phrases are processed in the
order given; markers from earlier phrases are excluded from later searches,
so the first phrase wins where two phrases overlap and markers never nest.
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

from skimlight.highlight.marker_constants import (
    MARKER_ATTR,
    MARKER_ATTR_VALUE,
    MARKER_CLASS,
    MARKER_TAG,
)
from skimlight.highlight.matcher import PhraseTooShortError, compile_phrase, find
from skimlight.highlight.registry import HighlightMarker
from skimlight.highlight.walker import collect_candidate_nodes

if TYPE_CHECKING:
    from collections.abc import Collection, Iterable

    from skimlight.dom.document import Document, NodeId
    from skimlight.highlight.registry import HighlightRegistry

logger = logging.getLogger(__name__)


def create_marker(document: Document, text: str) -> NodeId:
    """Create a detached marker element holding *text*."""
    marker = document.create_element(
        MARKER_TAG, {"class": MARKER_CLASS, MARKER_ATTR: MARKER_ATTR_VALUE}
    )
    document.append_child(marker, document.create_text(text))
    return marker


def apply(
    document: Document, node: NodeId, phrase: str, registry: HighlightRegistry
) -> int:
    """Wrap every occurrence of *phrase* in text node *node*.

    Returns:
        Number of occurrences wrapped.  Zero when the phrase does not occur
        or the node has left the document; the node is then untouched.
    """
    if not document.is_attached(node):
        logger.debug("Skipping node %s: no longer attached", node)
        return 0

    text = document.text(node)
    found = find(phrase, text)
    if not found:
        return 0

    replacement: list[NodeId] = []
    markers: list[HighlightMarker] = []
    cursor = 0
    for match in found:
        if match.start > cursor:
            replacement.append(document.create_text(text[cursor : match.start]))
        marker = create_marker(document, match.text)
        replacement.append(marker)
        markers.append(HighlightMarker(text=match.text, node=marker))
        cursor = match.end
    if cursor < len(text):
        replacement.append(document.create_text(text[cursor:]))

    document.replace_with(node, replacement)
    document.release(node)

    for marker in markers:
        registry.add(marker)
    return len(markers)


def apply_phrase(
    document: Document,
    root: NodeId,
    phrase: str,
    registry: HighlightRegistry,
    exclude: Collection[NodeId] = (),
) -> int:
    """Highlight *phrase* throughout *root*, skipping excluded regions.

    Existing markers in *registry* are always excluded.

    Returns:
        Number of occurrences wrapped.
    """
    try:
        compile_phrase(phrase)
    except PhraseTooShortError as exc:
        logger.debug("Skipping phrase: %s", exc)
        return 0

    excluded = registry.nodes() | frozenset(exclude)
    candidates = collect_candidate_nodes(document, root, phrase, excluded)
    logger.debug("Found %d candidate text nodes for %r", len(candidates), phrase)

    count = 0
    for node in reversed(candidates):
        count += apply(document, node, phrase, registry)
    return count


def apply_phrases(
    document: Document,
    root: NodeId,
    phrases: Iterable[str],
    registry: HighlightRegistry,
    exclude: Collection[NodeId] = (),
) -> dict[str, int]:
    """Highlight each phrase in turn, in the order given.

    Returns:
        Occurrence count per phrase, in processing order.
    """
    counts: dict[str, int] = {}
    for phrase in phrases:
        counts[phrase] = counts.get(phrase, 0) + apply_phrase(
            document, root, phrase, registry, exclude
        )
        logger.debug("Highlighted %r: %d occurrences", phrase, counts[phrase])
    logger.info(
        "Applied %d highlights for %d phrases", sum(counts.values()), len(counts)
    )
    return counts
