"""Tests for selection ranges over text nodes."""

from __future__ import annotations

import pytest

from skimlight.dom.document import DetachedAnchorError, Document
from skimlight.dom.ranges import RangeBoundary, find_text_range, range_text


class TestRangeText:
    """range_text mirrors Selection.toString()."""

    def test_single_node(self) -> None:
        """A range inside one text node slices that node."""
        doc = Document.from_html("<p>Hello world</p>")
        (text,) = doc.iter_text_nodes(doc.body)
        assert range_text(doc, RangeBoundary(text, 6, text, 11)) == "world"

    def test_spans_elements(self) -> None:
        """A range crossing inline elements joins the covered text."""
        doc = Document.from_html("<p>Hello <b>big</b> world</p>")
        boundary = find_text_range(doc, "lo big wo")
        assert boundary is not None
        assert boundary.start_node != boundary.end_node
        assert range_text(doc, boundary) == "lo big wo"

    def test_detached_boundary(self) -> None:
        """A boundary node removed by the host raises DetachedAnchorError."""
        doc = Document.from_html("<p>Hello</p>")
        (paragraph,) = doc.children(doc.body)
        (text,) = doc.children(paragraph)
        doc.detach(paragraph)
        with pytest.raises(DetachedAnchorError):
            range_text(doc, RangeBoundary(text, 0, text, 5))

    def test_collapsed(self) -> None:
        """Equal start and end points form a collapsed range."""
        assert RangeBoundary(3, 2, 3, 2).collapsed
        assert not RangeBoundary(3, 2, 3, 4).collapsed


class TestFindTextRange:
    """Locating a needle across the body's text nodes."""

    def test_exact_match_preferred(self) -> None:
        """The exact-case occurrence wins over an earlier case-folded one."""
        doc = Document.from_html("<p>apple Apple</p>")
        boundary = find_text_range(doc, "Apple")
        assert boundary is not None
        assert boundary.start_offset == 6

    def test_case_insensitive_fallback(self) -> None:
        """Without an exact match, case is ignored."""
        doc = Document.from_html("<p>The Quick fox</p>")
        boundary = find_text_range(doc, "the quick")
        assert boundary is not None
        assert range_text(doc, boundary) == "The Quick"

    def test_fallback_offsets_survive_length_changing_case(self) -> None:
        """Case-folding that changes text length does not shift the range."""
        doc = Document.from_html("<p>İstanbul hosts the Summit</p>")
        boundary = find_text_range(doc, "summit")
        assert boundary is not None
        assert boundary.start_offset == 19
        assert range_text(doc, boundary) == "Summit"

    def test_missing_needle(self) -> None:
        """Text absent from the page gives None."""
        doc = Document.from_html("<p>Hello</p>")
        assert find_text_range(doc, "goodbye") is None
        assert find_text_range(doc, "") is None

    def test_end_at_node_boundary(self) -> None:
        """A needle ending exactly where a node ends stays in that node."""
        doc = Document.from_html("<p>ab<i>cd</i></p>")
        boundary = find_text_range(doc, "ab")
        assert boundary is not None
        assert boundary.start_node == boundary.end_node
        assert boundary.end_offset == 2
