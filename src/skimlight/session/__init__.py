"""Selection session: snapshot, overlay and the cycle state machine."""

from skimlight.session.controller import CycleOutcome, SessionController, SessionState
from skimlight.session.overlay import Overlay, RenderFailureError, place_overlay
from skimlight.session.snapshot import Rect, SelectionSnapshot, capture_snapshot

__all__ = [
    "CycleOutcome",
    "Overlay",
    "Rect",
    "RenderFailureError",
    "SelectionSnapshot",
    "SessionController",
    "SessionState",
    "capture_snapshot",
    "place_overlay",
]
