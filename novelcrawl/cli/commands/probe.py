"""Probe command for checking a table-of-contents URL before crawling."""

from __future__ import annotations

import asyncio

import typer
from rich.console import Console
from rich.markup import escape
from rich.table import Table

from novelcrawl.core.config import Settings
from novelcrawl.core.errors import CrawlError
from novelcrawl.core.logger import get_logger
from novelcrawl.core.models import ProbeResult
from novelcrawl.services.crawler import NovelCrawler


def probe_command(
    url: str = typer.Argument(..., help="Table-of-contents URL of the novel"),
) -> None:
    """Report chapter count and novel name without downloading chapters."""
    console = Console()
    settings = Settings()
    get_logger("novelcrawl", settings.log_level, settings.log_file)

    try:
        result = asyncio.run(_run_probe(settings, url))
    except CrawlError as exc:
        console.print(f"[red]Probe failed:[/red] {escape(str(exc))}")
        raise typer.Exit(code=1) from exc

    table = Table(title="Probe Result", show_header=False)
    table.add_row("URL", result.url)
    table.add_row("Novel", result.novel_name or "-")
    table.add_row(
        "Chapters",
        str(result.chapter_count) if result.chapter_count is not None else "-",
    )
    table.add_row("First chapter", result.first_chapter_url or "-")
    console.print(table)
    console.print(result.debug)


async def _run_probe(settings: Settings, url: str) -> ProbeResult:
    async with NovelCrawler(settings) as crawler:
        return await crawler.probe(url)
