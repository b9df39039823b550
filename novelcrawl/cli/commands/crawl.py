"""Crawl command for downloading a whole novel."""

from __future__ import annotations

import asyncio
from pathlib import Path

import typer
from pydantic import ValidationError
from rich.console import Console
from rich.markup import escape
from rich.panel import Panel

from novelcrawl.core.config import Settings
from novelcrawl.core.errors import CrawlError
from novelcrawl.core.logger import get_logger
from novelcrawl.core.models import CrawlJob, CrawlResult
from novelcrawl.services.crawler import NovelCrawler


def crawl_command(
    url: str = typer.Argument(..., help="Table-of-contents URL of the novel"),
    name: str = typer.Option(..., "-n", "--name", help="Novel name used for the output file"),
    concurrency: int | None = typer.Option(
        None, "-c", "--concurrency", help="Chapters fetched at once (1-10)"
    ),
    chunk_size: int | None = typer.Option(
        None, "-s", "--chunk-size", help="Chapters per batch (10-100)"
    ),
    output: Path | None = typer.Option(
        None, "-o", "--output", help="Directory the text file is written to"
    ),
) -> None:
    """Download every chapter of a novel into one text file."""
    console = Console()
    settings = Settings()
    get_logger("novelcrawl", settings.log_level, settings.log_file)

    try:
        job = CrawlJob(
            base_url=url,
            novel_name=name,
            concurrency_limit=(
                concurrency if concurrency is not None else settings.concurrency_limit
            ),
            chunk_size=chunk_size if chunk_size is not None else settings.chunk_size,
        )
    except ValidationError as exc:
        raise typer.BadParameter(str(exc)) from exc

    try:
        result, path = asyncio.run(
            _run_crawl(settings, job, output or settings.output_dir, console)
        )
    except CrawlError as exc:
        console.print(f"[red]Crawl failed:[/red] {escape(str(exc))}")
        raise typer.Exit(code=1) from exc

    panel = Panel(
        f"Chapters: {result.succeeded}\n"
        f"Failed: {result.failed}\n"
        f"File: {path}",
        title=f"Crawl Summary: {job.novel_name}",
    )
    console.print(panel)


async def _run_crawl(
    settings: Settings, job: CrawlJob, output_dir: Path, console: Console
) -> tuple[CrawlResult, Path]:
    async with NovelCrawler(settings) as crawler:
        with console.status(f"Downloading {job.novel_name}..."):
            return await crawler.crawl_to_file(job, output_dir)
