"""Marker element constants shared by the applicator, registry and overlay.

The marker attribute is what the orphan sweep searches for, so it must stay
stable across releases: markers written by an older session are still found.
"""

from __future__ import annotations

MARKER_TAG = "span"
MARKER_CLASS = "skimlight-highlight"
MARKER_ATTR = "data-skimlight-highlight"
MARKER_ATTR_VALUE = "true"

OVERLAY_CLASS = "skimlight-bubble"
