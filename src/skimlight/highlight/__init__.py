"""In-page highlighting engine: matching, walking, applying and reversing markers."""

from skimlight.highlight.applicator import apply, apply_phrase, apply_phrases
from skimlight.highlight.matcher import (
    Match,
    PhraseNotInSourceError,
    PhraseTooShortError,
    filter_phrases,
    find,
    matches,
)
from skimlight.highlight.registry import (
    HighlightMarker,
    HighlightRegistry,
    sweep_orphan_markers,
    unwrap_marker,
)
from skimlight.highlight.walker import collect_candidate_nodes

__all__ = [
    "HighlightMarker",
    "HighlightRegistry",
    "Match",
    "PhraseNotInSourceError",
    "PhraseTooShortError",
    "apply",
    "apply_phrase",
    "apply_phrases",
    "collect_candidate_nodes",
    "filter_phrases",
    "find",
    "matches",
    "sweep_orphan_markers",
    "unwrap_marker",
]
