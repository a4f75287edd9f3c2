"""Candidate text-node collection for a phrase."""

from __future__ import annotations

from typing import TYPE_CHECKING

from skimlight.dom.document import INVISIBLE_TAGS

if TYPE_CHECKING:
    from collections.abc import Collection

    from skimlight.dom.document import Document, NodeId


def collect_candidate_nodes(
    document: Document,
    root: NodeId,
    phrase: str,
    exclude: Collection[NodeId] = (),
) -> list[NodeId]:
    """Return text nodes under *root* that may contain *phrase*.

    Nodes are returned in document order.  A node is skipped when it sits
    inside any of *exclude* (checked by walking its live parent chain) or
    when its lower-cased text does not contain the lower-cased phrase.  The
    list is fully built before returning so callers can mutate the tree
    while working through it.
    """
    needle = phrase.strip().lower()
    if not needle:
        return []

    excluded = frozenset(exclude)
    return [
        node
        for node in document.iter_text_nodes(root, skip_tags=INVISIBLE_TAGS)
        if needle in document.text(node).lower()
        and not document.is_descendant_of_any(node, excluded)
    ]
