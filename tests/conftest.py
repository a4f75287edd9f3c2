"""Shared pytest fixtures for Skimlight tests."""

from __future__ import annotations

import os
from typing import TYPE_CHECKING

import pytest

from skimlight.config import get_settings
from skimlight.dom.document import Document

if TYPE_CHECKING:
    from collections.abc import Callable, Iterator

_SETTINGS_PREFIXES = ("BACKEND__", "READER__", "SESSION__", "APP__")


@pytest.fixture(autouse=True)
def isolated_settings(monkeypatch: pytest.MonkeyPatch) -> Iterator[None]:
    """Keep host environment variables out of Settings and reset the cache."""
    for key in list(os.environ):
        if key.startswith(_SETTINGS_PREFIXES):
            monkeypatch.delenv(key, raising=False)
    get_settings.cache_clear()
    yield
    get_settings.cache_clear()


@pytest.fixture
def paragraph_doc() -> Callable[[str], tuple[Document, int]]:
    """Build a single-paragraph document; returns (document, <p> handle)."""

    def _build(text: str) -> tuple[Document, int]:
        document = Document.from_html(f"<p>{text}</p>")
        (paragraph,) = document.children(document.body)
        return document, paragraph

    return _build
