"""Tests for the skimlight command line."""

from __future__ import annotations

from typing import TYPE_CHECKING

import pytest

from skimlight import cli
from skimlight.backend.payload import SummaryResult

if TYPE_CHECKING:
    from pathlib import Path

SENTENCE = "Hyper-Threading allows simultaneous multithreading on a single core."


@pytest.fixture
def page(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> Path:
    """A saved page, with logs and timing pointed at the temp dir."""
    monkeypatch.setenv("APP__LOG_DIR", str(tmp_path / "logs"))
    monkeypatch.setenv("SESSION__SETTLE_DELAY", "0")
    monkeypatch.setenv("READER__MIN_LENGTH", "10")
    path = tmp_path / "page.html"
    path.write_text(f"<p>{SENTENCE}</p><p>Other text.</p>", encoding="utf-8")
    return path


class _FakeClient:
    """Stands in for SummaryClient.from_config."""

    @classmethod
    def from_config(cls, config: object) -> _FakeClient:
        return cls()

    async def summarize(self, text: str, provider: str) -> SummaryResult:
        return SummaryResult(
            bullets=("Two threads per core",),
            highlighted_html="<mark>Hyper-Threading</mark> allows ...",
            provider=provider,
        )


class TestHighlight:
    """skimlight highlight."""

    def test_offline_writes_page_without_overlay(self, page: Path) -> None:
        """Offline mode writes the page with no overlay and no markers."""
        out = page.with_name("out.html")
        cli.main(
            ["highlight", str(page), "--select", SENTENCE, "--offline", "-o", str(out)]
        )
        html = out.read_text(encoding="utf-8")
        assert SENTENCE in html
        assert "skimlight-bubble" not in html
        assert "data-skimlight-highlight" not in html

    def test_backend_result_highlighted(
        self, page: Path, monkeypatch: pytest.MonkeyPatch
    ) -> None:
        """Phrases from the backend are wrapped in the written page."""
        monkeypatch.setattr(cli, "SummaryClient", _FakeClient)
        cli.main(["highlight", str(page), "--select", SENTENCE, "--provider", "gemini"])
        html = page.with_name("page.highlighted.html").read_text(encoding="utf-8")
        assert (
            '<span class="skimlight-highlight" data-skimlight-highlight="true">'
            "Hyper-Threading</span>"
        ) in html

    def test_selection_not_found(self, page: Path) -> None:
        """Text missing from the page exits with status 1."""
        with pytest.raises(SystemExit) as exc_info:
            cli.main(["highlight", str(page), "--select", "nowhere", "--offline"])
        assert exc_info.value.code == 1

    def test_missing_file(
        self, tmp_path: Path, monkeypatch: pytest.MonkeyPatch
    ) -> None:
        """An unreadable page exits with status 1."""
        monkeypatch.setenv("APP__LOG_DIR", str(tmp_path / "logs"))
        with pytest.raises(SystemExit) as exc_info:
            cli.main(["clear", str(tmp_path / "absent.html")])
        assert exc_info.value.code == 1


class TestClear:
    """skimlight clear."""

    def test_removes_markers(
        self, tmp_path: Path, monkeypatch: pytest.MonkeyPatch
    ) -> None:
        """Leftover markers are unwrapped in the output page."""
        monkeypatch.setenv("APP__LOG_DIR", str(tmp_path / "logs"))
        path = tmp_path / "marked.html"
        path.write_text(
            '<p>A <span class="skimlight-highlight" '
            'data-skimlight-highlight="true">key</span> phrase</p>',
            encoding="utf-8",
        )
        cli.main(["clear", str(path)])
        html = (tmp_path / "marked.clean.html").read_text(encoding="utf-8")
        assert "<p>A key phrase</p>" in html
