"""Tests for backend payload parsing."""

from __future__ import annotations

import pytest

from skimlight.backend.payload import (
    MAX_BULLETS,
    MalformedHighlightPayloadError,
    SummaryResponse,
    SummaryResult,
    clean_summary,
    extract_phrases,
    parse_bullets,
    placeholder_result,
)


class TestParseBullets:
    """Splitting takeaway text into bullets."""

    def test_strips_glyphs_and_blank_lines(self) -> None:
        """Leading bullet glyphs are removed and blank lines dropped."""
        text = "• First point\n\n- Second point\n*   Third point\n  plain  "
        assert parse_bullets(text) == [
            "First point",
            "Second point",
            "Third point",
            "plain",
        ]

    def test_empty(self) -> None:
        """No text gives no bullets."""
        assert parse_bullets("") == []


class TestCleanSummary:
    """Normalising raw model output."""

    def test_preamble_removed(self) -> None:
        """'Key takeaways:' is stripped and dash lines become bullets."""
        cleaned = clean_summary("Key takeaways:\n- Threads share a core\n- Faster")
        assert cleaned == "• Threads share a core\n• Faster"

    def test_bulleted_output_kept(self) -> None:
        """Output that already uses bullets is only trimmed."""
        assert clean_summary("  • one\n• two  ") == "• one\n• two"

    def test_capped(self) -> None:
        """Unbulleted output keeps at most MAX_BULLETS lines."""
        raw = "\n".join(f"line {i}" for i in range(MAX_BULLETS + 5))
        assert len(clean_summary(raw).split("\n")) == MAX_BULLETS


class TestExtractPhrases:
    """Reading <mark> phrases out of highlighted HTML."""

    def test_marks_in_order(self) -> None:
        """Each mark's trimmed inner text is returned in order."""
        html = "<mark> Hyper-Threading </mark> allows <mark>simultaneous</mark> use"
        assert extract_phrases(html) == ["Hyper-Threading", "simultaneous"]

    def test_nested_markup_inside_mark(self) -> None:
        """Inner text includes nested inline elements."""
        assert extract_phrases("<mark>fast <b>cache</b></mark>") == ["fast cache"]

    @pytest.mark.parametrize("html", ["", "   ", "no marks here", "<mark> </mark>"])
    def test_malformed(self, html: str) -> None:
        """Empty HTML or HTML without usable marks is malformed."""
        with pytest.raises(MalformedHighlightPayloadError):
            extract_phrases(html)


class TestSummaryResult:
    """Building results from the wire shape."""

    def test_from_camel_case_response(self) -> None:
        """The backend's camelCase keys populate the result."""
        response = SummaryResponse.model_validate(
            {
                "success": True,
                "keyTakeaways": "• One\n• Two",
                "highlightedText": "<mark>One</mark>",
                "provider": "gemini",
                "requestId": "req_1",
            }
        )
        result = SummaryResult.from_response(response)
        assert result.bullets == ("One", "Two")
        assert result.highlighted_html == "<mark>One</mark>"
        assert result.provider == "gemini"
        assert result.request_id == "req_1"
        assert result.degraded is False


class TestPlaceholderResult:
    """Degraded fallback built from the selection."""

    def test_opening_words(self) -> None:
        """The first bullet is the opening eight words of the selection."""
        text = "one two three four five six seven eight nine ten"
        result = placeholder_result(text, "groq")
        assert result.bullets[0] == "one two three four five six seven eight…"
        assert result.degraded is True
        assert result.provider == "groq"

    def test_no_phrases(self) -> None:
        """The placeholder has nothing to highlight."""
        result = placeholder_result("a <b> & c", None)
        assert "<b>" not in result.highlighted_html
        with pytest.raises(MalformedHighlightPayloadError):
            extract_phrases(result.highlighted_html)
