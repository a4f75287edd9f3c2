"""Command-line entry point.

Runs one summarise-and-highlight cycle against a saved HTML page, or strips
leftover highlight markers from one.
"""

from __future__ import annotations

import argparse
import asyncio
import sys
from pathlib import Path
from typing import TYPE_CHECKING

from rich.console import Console
from rich.panel import Panel
from rich.text import Text

from skimlight import _setup_logging
from skimlight.backend.client import OfflineSummarizer, SummaryClient
from skimlight.config import PROVIDERS, get_settings
from skimlight.dom.document import Document
from skimlight.dom.ranges import find_text_range
from skimlight.highlight.registry import sweep_orphan_markers
from skimlight.session.controller import SessionController
from skimlight.session.snapshot import Rect

if TYPE_CHECKING:
    from collections.abc import Sequence

    from skimlight.backend.client import Summarizer
    from skimlight.session.controller import CycleOutcome

console = Console()


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="skimlight",
        description="Summarise a selection of a saved page and highlight it.",
    )
    sub = parser.add_subparsers(dest="command", required=True)

    # highlight
    highlight_p = sub.add_parser(
        "highlight", help="Summarise a selection and highlight its key phrases"
    )
    highlight_p.add_argument("page", type=Path, help="HTML file to read")
    highlight_p.add_argument(
        "--select", required=True, help="Text on the page to treat as selected"
    )
    highlight_p.add_argument(
        "--provider", choices=PROVIDERS, default=None, help="LLM provider"
    )
    highlight_p.add_argument(
        "--offline",
        action="store_true",
        help="Skip the backend and use the placeholder summary",
    )
    highlight_p.add_argument(
        "-o", "--output", type=Path, default=None, help="Where to write the page"
    )

    # clear
    clear_p = sub.add_parser("clear", help="Remove highlight markers from a page")
    clear_p.add_argument("page", type=Path, help="HTML file to read")
    clear_p.add_argument(
        "-o", "--output", type=Path, default=None, help="Where to write the page"
    )

    return parser


def _load_page(page: Path) -> Document:
    try:
        html = page.read_text(encoding="utf-8")
    except OSError as exc:
        console.print(f"[red]Error:[/] cannot read {page}: {exc.strerror}")
        sys.exit(1)
    return Document.from_html(html)


def _default_output(page: Path, suffix: str) -> Path:
    return page.with_name(f"{page.stem}.{suffix}.html")


def _print_outcome(outcome: CycleOutcome) -> None:
    body = Text()
    for bullet in outcome.result.bullets:
        body.append("• ", style="bold cyan")
        body.append(f"{bullet}\n")
    body.append("\n")
    if outcome.result.degraded:
        body.append("Backend unavailable: placeholder summary\n", style="yellow")
    for phrase, count in outcome.highlights.items():
        body.append(f"{phrase}: ", style="bold")
        body.append(f"{count}\n", style="green" if count else "dim")
    body.append(f"{outcome.total} highlights applied", style="dim")

    provider = outcome.result.provider or "placeholder"
    console.print(
        Panel(body, title=f"Key Takeaways ({provider})", border_style="blue")
    )


async def _cmd_highlight(
    page: Path,
    select: str,
    *,
    provider: str | None,
    offline: bool,
    output: Path | None,
) -> None:
    settings = get_settings()
    document = _load_page(page)

    boundary = find_text_range(document, select)
    if boundary is None:
        console.print(f"[red]Error:[/] selection not found in {page}")
        sys.exit(1)

    summarizer: Summarizer = (
        OfflineSummarizer() if offline else SummaryClient.from_config(settings.backend)
    )
    controller = SessionController.from_settings(document, summarizer, settings)
    if provider is not None:
        controller.update_settings({"provider": provider})

    min_length = controller.settings.min_length
    if len(select.strip()) < min_length:
        console.print(
            f"[yellow]Selection is shorter than {min_length} characters; "
            "nothing to do[/]"
        )
        sys.exit(1)

    outcome = await controller.handle_selection(boundary, Rect())
    if outcome is None:
        console.print("[red]Error:[/] the selection could not be processed")
        sys.exit(1)

    _print_outcome(outcome)
    controller.overlay.unmount()
    target = output or _default_output(page, "highlighted")
    target.write_text(document.to_html(), encoding="utf-8")
    console.print(f"[green]Wrote[/] {target}")


def _cmd_clear(page: Path, *, output: Path | None) -> None:
    document = _load_page(page)
    removed = sweep_orphan_markers(document)
    target = output or _default_output(page, "clean")
    target.write_text(document.to_html(), encoding="utf-8")
    console.print(f"Removed {removed} highlight markers; wrote {target}")


def main(argv: Sequence[str] | None = None) -> None:
    """Skimlight command line.

    Usage:
        skimlight highlight PAGE.html --select TEXT [--provider P] [--offline]
        skimlight clear PAGE.html [-o OUT]
    """
    parser = _build_parser()
    args = parser.parse_args(sys.argv[1:] if argv is None else argv)

    _setup_logging(get_settings().app.log_dir)

    match args.command:
        case "highlight":
            asyncio.run(
                _cmd_highlight(
                    args.page,
                    args.select,
                    provider=args.provider,
                    offline=args.offline,
                    output=args.output,
                )
            )
        case "clear":
            _cmd_clear(args.page, output=args.output)
