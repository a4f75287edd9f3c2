"""Parsing of backend summary responses.

The backend returns ``keyTakeaways`` (newline-separated, optionally bulleted)
and ``highlightedText`` (the selection as HTML with ``<mark>`` around each key
phrase).  Bullets render as-is; the ``<mark>`` inner texts are the only
source of phrases for highlighting.
"""

# Pattern: Functional Core (pure functions for payload shaping)

from __future__ import annotations

import html as html_module
import logging
import re
from dataclasses import dataclass

from pydantic import BaseModel, ConfigDict, Field
from selectolax.lexbor import LexborHTMLParser

logger = logging.getLogger(__name__)

# Leading bullet glyph on a takeaway line
_BULLET_PREFIX = re.compile(r"^[•\-\*]\s*")

# Leading dash on an unbulleted model line
_DASH_PREFIX = re.compile(r"^-\s*")

# Preambles models like to prepend to their bullet list
_PREAMBLE = re.compile(r"Key takeaways:|Here are|Summary:", re.IGNORECASE)

MAX_BULLETS = 10
PLACEHOLDER_WORDS = 8


class MalformedHighlightPayloadError(ValueError):
    """The highlighted HTML carries no usable ``<mark>`` phrases."""


class SummaryResponse(BaseModel):
    """Wire shape of a ``/api/summarize`` response."""

    model_config = ConfigDict(populate_by_name=True, extra="ignore")

    key_takeaways: str = Field(default="", alias="keyTakeaways")
    highlighted_text: str = Field(default="", alias="highlightedText")
    provider: str | None = None
    request_id: str | None = Field(default=None, alias="requestId")


@dataclass(frozen=True)
class SummaryResult:
    """A summary ready for display.

    Attributes:
        bullets: Takeaway lines with bullet glyphs removed.
        highlighted_html: Selection HTML with ``<mark>`` around key phrases.
        provider: Provider that produced the result, when known.
        request_id: Backend request id, when known.
        degraded: True for the locally synthesised placeholder used when
            the backend is unreachable; never set for a real response.
    """

    bullets: tuple[str, ...]
    highlighted_html: str
    provider: str | None = None
    request_id: str | None = None
    degraded: bool = False

    @classmethod
    def from_response(cls, response: SummaryResponse) -> SummaryResult:
        return cls(
            bullets=tuple(parse_bullets(clean_summary(response.key_takeaways))),
            highlighted_html=response.highlighted_text,
            provider=response.provider,
            request_id=response.request_id,
        )


def parse_bullets(key_takeaways: str) -> list[str]:
    """Split takeaway text into bullet strings.

    Blank lines are dropped and one leading ``•``, ``-`` or ``*`` is removed
    from each line.
    """
    bullets: list[str] = []
    for line in key_takeaways.split("\n"):
        point = _BULLET_PREFIX.sub("", line.strip()).strip()
        if point:
            bullets.append(point)
    return bullets


def clean_summary(summary: str) -> str:
    """Normalise raw model output into ``•``-prefixed takeaway lines.

    Preambles such as "Key takeaways:" are removed.  Output without any
    ``•`` is treated as one takeaway per non-blank line, capped at
    MAX_BULLETS.
    """
    cleaned = _PREAMBLE.sub("", summary).strip()
    if "•" in cleaned:
        return cleaned
    lines = [line for line in cleaned.split("\n") if line.strip()][:MAX_BULLETS]
    return "\n".join(f"• {_DASH_PREFIX.sub('', line.strip())}" for line in lines)


def extract_phrases(highlighted_html: str) -> list[str]:
    """Return the trimmed inner text of each ``<mark>`` element, in order.

    Raises:
        MalformedHighlightPayloadError: If the HTML is empty or contains no
            non-empty ``<mark>`` elements.
    """
    if not highlighted_html or not highlighted_html.strip():
        msg = "Highlighted text is empty"
        raise MalformedHighlightPayloadError(msg)

    tree = LexborHTMLParser(highlighted_html)
    phrases = [(mark.text() or "").strip() for mark in tree.css("mark")]
    phrases = [phrase for phrase in phrases if phrase]
    if not phrases:
        msg = "Highlighted text contains no <mark> phrases"
        raise MalformedHighlightPayloadError(msg)
    logger.debug("Extracted %d phrases from highlighted text", len(phrases))
    return phrases


def placeholder_result(text: str, provider: str | None = None) -> SummaryResult:
    """Synthesise a degraded result from the selection alone.

    Used when the backend fails so the overlay never stalls.  The first
    bullet is the opening words of the selection, and the highlighted HTML
    has no marks, so no phrases are highlighted.
    """
    words = text.split()
    opening = " ".join(words[:PLACEHOLDER_WORDS])
    if len(words) > PLACEHOLDER_WORDS:
        opening += "…"
    bullets = (opening, "Summary unavailable - showing the selection opening")
    return SummaryResult(
        bullets=tuple(bullet for bullet in bullets if bullet),
        highlighted_html=html_module.escape(text),
        provider=provider,
        degraded=True,
    )
