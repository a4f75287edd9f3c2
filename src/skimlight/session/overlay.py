"""The takeaway overlay: an element subtree mounted into the page body.

Visual styling lives with the host; this module owns the overlay's structure
(header, provider badge, close button, bullet list), its visibility class
and its initial placement next to the selection.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import TYPE_CHECKING

from skimlight.highlight.marker_constants import OVERLAY_CLASS

if TYPE_CHECKING:
    from collections.abc import Sequence

    from skimlight.dom.document import Document, NodeId
    from skimlight.session.snapshot import Rect

logger = logging.getLogger(__name__)

BUBBLE_WIDTH = 320
BUBBLE_HEIGHT = 350
MARGIN = 16
DEFAULT_POSITION = (50.0, 50.0)

VISIBLE_CLASS = "visible"
LOADING_TITLE = "Analyzing text..."
DONE_TITLE = "Key Takeaways"


class RenderFailureError(RuntimeError):
    """The overlay element is missing or no longer attached to the page."""


def place_overlay(
    rect: Rect, viewport_width: float, viewport_height: float
) -> tuple[float, float]:
    """Return the (left, top) for the overlay next to *rect*.

    Centred below the selection; moved above it when it would run off the
    bottom of the viewport; kept MARGIN away from the viewport edges.  An
    empty rect gives DEFAULT_POSITION.
    """
    if rect.is_empty:
        return DEFAULT_POSITION

    left = rect.left + rect.width / 2 - BUBBLE_WIDTH / 2
    top = rect.bottom + MARGIN

    left = max(left, MARGIN)
    if left + BUBBLE_WIDTH > viewport_width - MARGIN:
        left = viewport_width - BUBBLE_WIDTH - MARGIN

    if top + BUBBLE_HEIGHT > viewport_height - MARGIN:
        top = rect.top - BUBBLE_HEIGHT - MARGIN
    top = max(top, MARGIN)

    return max(0.0, left), max(0.0, top)


@dataclass(frozen=True)
class _OverlayParts:
    bubble: NodeId
    title: NodeId
    provider: NodeId
    bullets: NodeId


class Overlay:
    """Overlay element tree inside a Document."""

    def __init__(
        self,
        document: Document,
        *,
        viewport_width: float = 1280,
        viewport_height: float = 800,
        theme: str = "dark",
    ) -> None:
        self.document = document
        self.viewport_width = viewport_width
        self.viewport_height = viewport_height
        self.theme = theme
        self.position: tuple[float, float] | None = None
        self._parts: _OverlayParts | None = None

    @property
    def element(self) -> NodeId | None:
        return self._parts.bubble if self._parts else None

    @property
    def mounted(self) -> bool:
        return self._parts is not None and self.document.is_attached(
            self._parts.bubble
        )

    @property
    def visible(self) -> bool:
        parts = self._parts
        return (
            parts is not None
            and self.document.is_attached(parts.bubble)
            and self.document.has_class(parts.bubble, VISIBLE_CLASS)
        )

    def mount(self) -> NodeId:
        """Build the overlay subtree and append it to the page body."""
        if self._parts is not None and self.mounted:
            return self._parts.bubble

        doc = self.document
        bubble = doc.create_element(
            "div", {"class": f"{OVERLAY_CLASS} skimlight-theme-{self.theme}"}
        )
        header = self._child(bubble, "div", "skimlight-header")
        self._child(header, "div", "skimlight-drag-handle", "⋮⋮")
        self._child(header, "div", "skimlight-spinner")
        title = self._child(header, "span", "skimlight-title", "Processing...")
        provider = self._child(header, "div", "skimlight-provider")
        self._child(header, "button", "skimlight-close", "×")
        content = self._child(bubble, "div", "skimlight-content")
        bullets = self._child(content, "div", "skimlight-bullets")

        doc.append_child(doc.body, bubble)
        self._parts = _OverlayParts(bubble, title, provider, bullets)
        logger.debug("Overlay mounted as node %s", bubble)
        return bubble

    def unmount(self) -> None:
        """Remove the overlay from the page entirely."""
        if self._parts is None:
            return
        bubble = self._parts.bubble
        if bubble in self.document:
            self.document.detach(bubble)
            self.document.release(bubble)
        self._parts = None
        self.position = None

    def contains(self, node: NodeId) -> bool:
        """True when *node* lies inside the overlay."""
        if self._parts is None or node not in self.document:
            return False
        return self.document.is_descendant_of_any(node, (self._parts.bubble,))

    def is_close_button(self, node: NodeId) -> bool:
        return self.contains(node) and any(
            self.document.is_element(current)
            and self.document.has_class(current, "skimlight-close")
            for current in self.document.ancestors(node)
        )

    def show_loading(self, rect: Rect, provider: str) -> None:
        """Position the overlay at *rect* and show the loading state.

        Raises:
            RenderFailureError: If the overlay is not attached to the page.
        """
        parts = self._require()
        self._place(parts.bubble, rect)
        self.document.add_class(parts.bubble, VISIBLE_CLASS)
        self._set_text(parts.title, LOADING_TITLE)
        self._clear(parts.bullets)
        self._set_text(parts.provider, provider.upper())

    def show_bullets(self, bullets: Sequence[str]) -> None:
        """Replace the loading state with *bullets*.

        Raises:
            RenderFailureError: If the overlay is not attached to the page.
        """
        parts = self._require()
        self._clear(parts.bullets)
        for bullet in bullets:
            row = self._child(parts.bullets, "div", "skimlight-bullet")
            self._child(row, "span", "skimlight-bullet-text", bullet)
        self._set_text(parts.title, DONE_TITLE)
        self.document.add_class(parts.bubble, VISIBLE_CLASS)

    def bullet_texts(self) -> list[str]:
        """Text of each rendered bullet, in order."""
        if not self.mounted or self._parts is None:
            return []
        return [
            self.document.text_content(row)
            for row in self.document.children(self._parts.bullets)
        ]

    def set_provider(self, provider: str) -> None:
        if self.mounted and self._parts is not None:
            self._set_text(self._parts.provider, provider.upper())

    def set_theme(self, theme: str) -> None:
        if theme == self.theme:
            return
        if self.mounted and self._parts is not None:
            bubble = self._parts.bubble
            self.document.remove_class(bubble, f"skimlight-theme-{self.theme}")
            self.document.add_class(bubble, f"skimlight-theme-{theme}")
        self.theme = theme

    def hide(self) -> None:
        """Hide the overlay; a missing overlay is not an error here."""
        if self.mounted and self._parts is not None:
            self.document.remove_class(self._parts.bubble, VISIBLE_CLASS)

    def _require(self) -> _OverlayParts:
        if self._parts is None or not self.document.is_attached(self._parts.bubble):
            msg = "Overlay element is missing or detached from the page"
            raise RenderFailureError(msg)
        return self._parts

    def _place(self, bubble: NodeId, rect: Rect) -> None:
        left, top = place_overlay(rect, self.viewport_width, self.viewport_height)
        self.position = (left, top)
        style = f"left: {left:g}px; top: {top:g}px"
        self.document.set_attribute(bubble, "style", style)

    def _child(
        self, parent: NodeId, tag: str, css_class: str, text: str | None = None
    ) -> NodeId:
        node = self.document.create_element(tag, {"class": css_class})
        if text is not None:
            self.document.append_child(node, self.document.create_text(text))
        self.document.append_child(parent, node)
        return node

    def _clear(self, node: NodeId) -> None:
        for child in self.document.children(node):
            self.document.detach(child)
            self.document.release(child)

    def _set_text(self, node: NodeId, text: str) -> None:
        self._clear(node)
        self.document.append_child(node, self.document.create_text(text))
