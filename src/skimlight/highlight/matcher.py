"""Whole-word, case-insensitive phrase matching."""

from __future__ import annotations

import logging
import re
from dataclasses import dataclass
from functools import lru_cache
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from collections.abc import Iterable

logger = logging.getLogger(__name__)

MIN_PHRASE_LENGTH = 2
MAX_PHRASE_LENGTH = 100


class PhraseTooShortError(ValueError):
    """Phrase is shorter than MIN_PHRASE_LENGTH after trimming."""

    def __init__(self, phrase: str) -> None:
        self.phrase = phrase
        super().__init__(
            f"Phrase {phrase!r} is shorter than {MIN_PHRASE_LENGTH} characters"
        )


class PhraseNotInSourceError(LookupError):
    """Phrase does not occur in the text the reader selected."""

    def __init__(self, phrase: str) -> None:
        self.phrase = phrase
        super().__init__(f"Phrase {phrase!r} does not occur in the selection")


@dataclass(frozen=True)
class Match:
    """One occurrence of a phrase: character offsets plus the source casing."""

    start: int
    end: int
    text: str


@lru_cache(maxsize=256)
def compile_phrase(phrase: str) -> re.Pattern[str]:
    """Build the pattern for *phrase*, with no word character on either side.

    The phrase is escaped, so model output such as ``"C++ (beta)"`` is
    matched literally.

    Raises:
        PhraseTooShortError: If the trimmed phrase has fewer than two characters.
    """
    trimmed = phrase.strip()
    if len(trimmed) < MIN_PHRASE_LENGTH:
        raise PhraseTooShortError(phrase)
    return re.compile(rf"(?<!\w){re.escape(trimmed)}(?!\w)", re.IGNORECASE)


def find(phrase: str, text: str) -> list[Match]:
    """Return all non-overlapping occurrences of *phrase* in *text*, left to right."""
    pattern = compile_phrase(phrase)
    return [Match(m.start(), m.end(), m.group(0)) for m in pattern.finditer(text)]


def matches(phrase: str, text: str) -> bool:
    """True when *phrase* occurs in *text* as a whole word (or words)."""
    return compile_phrase(phrase).search(text) is not None


def ensure_in_source(phrase: str, source_text: str) -> str:
    """Return the trimmed phrase if it can be highlighted for *source_text*.

    Raises:
        PhraseTooShortError: Phrase is too short to match safely.
        PhraseNotInSourceError: Phrase is not a substring of the selection.
    """
    trimmed = phrase.strip()
    if len(trimmed) < MIN_PHRASE_LENGTH:
        raise PhraseTooShortError(phrase)
    if trimmed.lower() not in source_text.lower():
        raise PhraseNotInSourceError(phrase)
    return trimmed


def filter_phrases(phrases: Iterable[str], source_text: str) -> list[str]:
    """Keep only phrases that really occur in the selected text.

    Order is preserved; case-insensitive duplicates and phrases longer than
    MAX_PHRASE_LENGTH are dropped.  Rejections are logged, never raised.
    """
    kept: list[str] = []
    seen: set[str] = set()
    for phrase in phrases:
        try:
            trimmed = ensure_in_source(phrase, source_text)
        except (PhraseTooShortError, PhraseNotInSourceError) as exc:
            logger.debug("Dropping phrase: %s", exc)
            continue
        if len(trimmed) > MAX_PHRASE_LENGTH:
            logger.debug("Dropping phrase longer than %d chars", MAX_PHRASE_LENGTH)
            continue
        key = trimmed.lower()
        if key in seen:
            continue
        seen.add(key)
        kept.append(trimmed)
    return kept
