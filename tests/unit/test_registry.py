"""Tests for highlight reversal."""

from __future__ import annotations

from typing import TYPE_CHECKING

import pytest

from skimlight.dom.document import DetachedAnchorError, Document
from skimlight.highlight.applicator import apply_phrases
from skimlight.highlight.marker_constants import MARKER_ATTR
from skimlight.highlight.registry import (
    HighlightRegistry,
    sweep_orphan_markers,
    unwrap_marker,
)

if TYPE_CHECKING:
    from collections.abc import Callable

_PAGE = (
    "<h1>Caches</h1>"
    "<p>A <em>cache line</em> holds data; the cache is <b>fast</b>.</p>"
    "<ul><li>L1 cache</li><li>L2 cache &amp; more</li></ul>"
    "<script>const cache = {};</script>"
)


class TestClearAll:
    """Reversal of every applied marker."""

    def test_round_trip_restores_html(self) -> None:
        """Apply then clear gives back the original serialisation."""
        doc = Document.from_html(_PAGE)
        before = doc.to_html()
        registry = HighlightRegistry(doc)
        apply_phrases(doc, doc.body, ["cache", "fast", "L2"], registry)
        assert len(registry) > 0
        assert doc.to_html() != before

        registry.clear_all()
        assert doc.to_html() == before

    def test_idempotent(self) -> None:
        """Calling clear_all twice equals calling it once."""
        doc = Document.from_html(_PAGE)
        registry = HighlightRegistry(doc)
        apply_phrases(doc, doc.body, ["cache"], registry)

        removed = registry.clear_all()
        after_first = doc.to_html()
        assert removed == 4
        assert registry.clear_all() == 0
        assert doc.to_html() == after_first
        assert len(registry) == 0

    def test_detached_marker_skipped(
        self, paragraph_doc: Callable[[str], tuple[Document, int]]
    ) -> None:
        """A marker the host page removed is skipped; the rest are cleared."""
        doc, paragraph = paragraph_doc("cache and cache")
        registry = HighlightRegistry(doc)
        apply_phrases(doc, doc.body, ["cache"], registry)
        first, second = list(registry)
        doc.detach(first.node)

        assert registry.clear_all() == 1
        assert len(registry) == 0
        assert doc.find_elements(MARKER_ATTR, "true") == []
        assert doc.text_content(paragraph) == " and cache"

    def test_sweeps_untracked_markers(self) -> None:
        """Markers left behind by a lost registry are removed as well."""
        doc = Document.from_html(
            '<p>a <span class="skimlight-highlight" '
            'data-skimlight-highlight="true">stale</span> b</p>'
        )
        (paragraph,) = doc.children(doc.body)
        assert HighlightRegistry(doc).clear_all() == 1
        assert doc.text_content(paragraph) == "a stale b"
        assert len(doc.children(paragraph)) == 1


class TestUnwrapMarker:
    """Single-marker unwrap."""

    def test_detached_raises(
        self, paragraph_doc: Callable[[str], tuple[Document, int]]
    ) -> None:
        """Unwrapping a marker no longer in the tree raises."""
        doc, _ = paragraph_doc("a cache")
        registry = HighlightRegistry(doc)
        apply_phrases(doc, doc.body, ["cache"], registry)
        (marker,) = list(registry)
        doc.detach(marker.node)
        with pytest.raises(DetachedAnchorError):
            unwrap_marker(doc, marker.node, marker.text)

    def test_nested_orphans(self) -> None:
        """Nested stray markers are removed in one sweep."""
        doc = Document.from_html(
            '<p><span data-skimlight-highlight="true">a '
            '<span data-skimlight-highlight="true">b</span></span></p>'
        )
        (paragraph,) = doc.children(doc.body)
        assert sweep_orphan_markers(doc) == 1
        assert doc.to_html(paragraph) == "<p>a b</p>"
