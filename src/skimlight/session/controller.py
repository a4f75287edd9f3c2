"""Session controller: one summarise-and-highlight cycle per selection.

States run ``IDLE -> CAPTURING -> AWAITING_RESULT -> DISPLAYING -> IDLE``.
The controller owns the highlight registry and the overlay; the host page
forwards its events (selection finished, selection cleared, click, scroll,
close, settings change) to the matching ``handle_*``/``on_*`` method.

A cycle suspends twice: while the backend answers and during the settle
delay before highlighting.  Every dismissal advances the cycle number, so a
response or timer belonging to an earlier cycle is recognised as stale and
dropped without touching the tree.
"""

from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass, field
from enum import StrEnum
from typing import TYPE_CHECKING, Any

from skimlight.backend.client import NetworkFailureError
from skimlight.backend.payload import (
    MalformedHighlightPayloadError,
    extract_phrases,
    placeholder_result,
)
from skimlight.dom.document import DetachedAnchorError
from skimlight.highlight.applicator import apply_phrases
from skimlight.highlight.marker_constants import MARKER_ATTR
from skimlight.highlight.matcher import filter_phrases
from skimlight.highlight.registry import HighlightRegistry
from skimlight.session.overlay import Overlay, RenderFailureError
from skimlight.session.snapshot import capture_snapshot

if TYPE_CHECKING:
    from collections.abc import Mapping

    from skimlight.backend.client import Summarizer
    from skimlight.backend.payload import SummaryResult
    from skimlight.config import ReaderSettings, Settings
    from skimlight.dom.document import Document, NodeId
    from skimlight.dom.ranges import RangeBoundary
    from skimlight.session.snapshot import Rect, SelectionSnapshot

logger = logging.getLogger(__name__)


class SessionState(StrEnum):
    IDLE = "idle"
    CAPTURING = "capturing"
    AWAITING_RESULT = "awaiting_result"
    DISPLAYING = "displaying"


@dataclass(frozen=True)
class CycleOutcome:
    """What a completed cycle produced.

    Attributes:
        snapshot: The selection the cycle was triggered by.
        result: Summary shown in the overlay (possibly the placeholder).
        highlights: Occurrences wrapped per phrase, in processing order.
    """

    snapshot: SelectionSnapshot
    result: SummaryResult
    highlights: dict[str, int] = field(default_factory=dict)

    @property
    def total(self) -> int:
        return sum(self.highlights.values())


class SessionController:
    """Drives the overlay and highlights for one document."""

    def __init__(
        self,
        document: Document,
        summarizer: Summarizer,
        settings: ReaderSettings,
        *,
        overlay: Overlay | None = None,
        settle_delay: float = 0.3,
        request_timeout: float = 30.0,
    ) -> None:
        self.document = document
        self.summarizer = summarizer
        self.settle_delay = settle_delay
        self.request_timeout = request_timeout
        self.registry = HighlightRegistry(document)
        self.overlay = overlay or Overlay(document, theme=settings.theme)
        self.overlay.mount()
        self.overlay.set_provider(settings.provider)

        self.state = SessionState.IDLE
        self.snapshot: SelectionSnapshot | None = None
        self._settings = settings
        self._cycle = 0
        self._busy = False

    @classmethod
    def from_settings(
        cls, document: Document, summarizer: Summarizer, settings: Settings
    ) -> SessionController:
        """Build a controller from process configuration."""
        overlay = Overlay(
            document,
            viewport_width=settings.session.viewport_width,
            viewport_height=settings.session.viewport_height,
            theme=settings.reader.theme,
        )
        return cls(
            document,
            summarizer,
            settings.reader.to_reader_settings(),
            overlay=overlay,
            settle_delay=settings.session.settle_delay,
            request_timeout=settings.backend.timeout,
        )

    @property
    def settings(self) -> ReaderSettings:
        return self._settings

    @property
    def busy(self) -> bool:
        """True while a cycle is between capture and the end of highlighting."""
        return self._busy

    def update_settings(self, changes: Mapping[str, Any]) -> ReaderSettings:
        """Apply a settings-channel change notification.

        Disabling tears down any overlay and highlights immediately.

        Raises:
            pydantic.ValidationError: If a changed value is out of range; the
                current settings are kept.
        """
        previous = self._settings
        self._settings = previous.with_changes(changes)
        if self._settings.provider != previous.provider:
            self.overlay.set_provider(self._settings.provider)
        if self._settings.theme != previous.theme:
            self.overlay.set_theme(self._settings.theme)
        if not self._settings.enabled:
            self.hide()
        logger.debug("Reader settings updated: %s", dict(changes))
        return self._settings

    async def handle_selection(
        self, boundary: RangeBoundary, rect: Rect
    ) -> CycleOutcome | None:
        """Run one cycle for a finished selection.

        The selection is captured before any earlier overlay or highlight is
        torn down, since clearing highlights merges the text nodes the new
        boundary may point into.

        Returns:
            The outcome of the cycle, or None when the selection was ignored,
            the cycle was superseded or dismissed, or rendering failed.
        """
        if not self._settings.enabled:
            return None
        if self._busy:
            logger.debug("Selection ignored: a cycle is already in progress")
            return None
        try:
            snapshot = capture_snapshot(self.document, boundary, rect)
        except DetachedAnchorError as exc:
            logger.debug("Selection ignored: %s", exc)
            return None
        if len(snapshot.text) < self._settings.min_length:
            return None
        if self.snapshot is not None and snapshot.text == self.snapshot.text:
            return None

        if self.state is not SessionState.IDLE:
            self.hide()

        self._cycle += 1
        cycle = self._cycle
        self._busy = True
        self.state = SessionState.CAPTURING
        self.snapshot = snapshot
        try:
            return await self._run_cycle(cycle, snapshot)
        finally:
            # A dismissed cycle must not clear the flag of a newer one.
            if not self._is_stale(cycle):
                self._busy = False

    async def _run_cycle(
        self, cycle: int, snapshot: SelectionSnapshot
    ) -> CycleOutcome | None:
        provider = self._settings.provider
        logger.info(
            "Cycle %d: %d characters selected, provider=%s",
            cycle,
            len(snapshot.text),
            provider,
        )

        try:
            self.overlay.show_loading(snapshot.rect, provider)
        except RenderFailureError as exc:
            logger.warning("Cycle %d aborted: %s", cycle, exc)
            self.hide()
            return None

        self.state = SessionState.AWAITING_RESULT
        try:
            result = await self._fetch(snapshot.text, provider)
        except BaseException:
            if not self._is_stale(cycle):
                self.hide()
            raise
        if self._is_stale(cycle):
            logger.info("Discarding response for superseded cycle %d", cycle)
            return None

        try:
            self.overlay.show_bullets(result.bullets)
            self.overlay.set_provider(result.provider or provider)
        except RenderFailureError as exc:
            logger.warning("Cycle %d aborted: %s", cycle, exc)
            self.hide()
            return None
        self.state = SessionState.DISPLAYING

        await asyncio.sleep(self.settle_delay)
        if self._is_stale(cycle):
            logger.info("Skipping highlights for superseded cycle %d", cycle)
            return None

        try:
            highlights = self._highlight(snapshot, result)
        except Exception:
            self.hide()
            raise
        return CycleOutcome(snapshot=snapshot, result=result, highlights=highlights)

    def hide(self) -> None:
        """Dismiss the overlay, remove all highlights and return to IDLE."""
        self._cycle += 1
        self.overlay.hide()
        self.registry.clear_all()
        self.snapshot = None
        self._busy = False
        self.state = SessionState.IDLE

    def on_close(self) -> None:
        self.hide()

    def on_scroll(self) -> None:
        self.hide()

    def on_click(self, target: NodeId) -> None:
        """Dismiss on a click outside the overlay and outside any highlight."""
        if self.overlay.contains(target):
            if self.overlay.is_close_button(target):
                self.on_close()
            return
        if target in self.document and any(
            self.document.is_element(node)
            and self.document.get_attribute(node, MARKER_ATTR) is not None
            for node in self.document.ancestors(target)
        ):
            return
        if self.overlay.visible and not self._busy:
            self.hide()

    def on_selection_cleared(self) -> None:
        """The reader's selection went away; keep a visible overlay open."""
        if self._busy:
            return
        if not self.overlay.visible:
            self.hide()

    def _is_stale(self, cycle: int) -> bool:
        return cycle != self._cycle

    async def _fetch(self, text: str, provider: str) -> SummaryResult:
        try:
            return await asyncio.wait_for(
                self.summarizer.summarize(text, provider),
                timeout=self.request_timeout,
            )
        except TimeoutError:
            logger.warning(
                "Backend did not answer within %gs; using placeholder",
                self.request_timeout,
            )
        except NetworkFailureError as exc:
            logger.warning("Summary request failed: %s; using placeholder", exc)
        return placeholder_result(text, provider)

    def _highlight(
        self, snapshot: SelectionSnapshot, result: SummaryResult
    ) -> dict[str, int]:
        self.registry.clear_all()
        if result.degraded:
            logger.debug("Placeholder result: no phrases to highlight")
            return {}
        try:
            phrases = extract_phrases(result.highlighted_html)
        except MalformedHighlightPayloadError as exc:
            logger.warning("Highlighting skipped: %s", exc)
            return {}

        phrases = filter_phrases(phrases, snapshot.text)
        element = self.overlay.element
        exclude = (element,) if element is not None else ()
        return apply_phrases(
            self.document, self.document.body, phrases, self.registry, exclude
        )
