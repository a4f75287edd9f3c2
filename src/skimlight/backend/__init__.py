"""Summarisation backend collaborator: HTTP client and payload parsing."""

from skimlight.backend.client import (
    BackendTimeoutError,
    NetworkFailureError,
    OfflineSummarizer,
    Summarizer,
    SummaryClient,
)
from skimlight.backend.payload import (
    MalformedHighlightPayloadError,
    SummaryResponse,
    SummaryResult,
    clean_summary,
    extract_phrases,
    parse_bullets,
    placeholder_result,
)

__all__ = [
    "BackendTimeoutError",
    "MalformedHighlightPayloadError",
    "NetworkFailureError",
    "OfflineSummarizer",
    "Summarizer",
    "SummaryClient",
    "SummaryResponse",
    "SummaryResult",
    "clean_summary",
    "extract_phrases",
    "parse_bullets",
    "placeholder_result",
]
