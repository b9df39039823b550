"""Novel crawler service: probe a table of contents or download a whole novel.

This module composes the pipeline stages into the two public operations:

- ``probe``: fetch the table-of-contents page once and report what a crawl
  would find (chapter count, inferred novel name). Advisory: a link
  discovery failure degrades to a name-only result.
- ``crawl``: normalize, fetch the table of contents, discover links, download
  chapters in bounded batches and assemble the final text. Any stage failure
  ends the crawl with the originating classified error.

Examples:
    >>> async with NovelCrawler(Settings()) as crawler:
    ...     summary = await crawler.probe("www.xs5200.net/44_44108")
    ...     result = await crawler.crawl(
    ...         CrawlJob(base_url="www.xs5200.net/44_44108", novel_name="斗破苍穹")
    ...     )
    >>> result.filename
    '斗破苍穹_2026-10-19T08-00-00-000Z.txt'
"""

from __future__ import annotations

import asyncio
import logging
import random
import re
from collections.abc import Awaitable, Callable
from datetime import datetime, timezone
from pathlib import Path

from bs4 import BeautifulSoup

from novelcrawl.core.config import Settings
from novelcrawl.core.errors import CrawlError
from novelcrawl.core.models import CrawlJob, CrawlResult, ProbeResult
from novelcrawl.core.url_normalizer import find_site_rule, normalize_url
from novelcrawl.processing.link_extractor import extract_links
from novelcrawl.readers.fetch.http_client import PageFetcher
from novelcrawl.resilience.failed_chapters import FailedChapterLogger
from novelcrawl.services.assembler import assemble, write_artifact
from novelcrawl.services.scheduler import BatchScheduler

logger = logging.getLogger(__name__)

SleepFn = Callable[[float], Awaitable[None]]
ClockFn = Callable[[], datetime]

# Site suffixes stripped from a <title> before it is used as a novel name
PAGE_TITLE_CLEANUPS: tuple[re.Pattern[str], ...] = (
    re.compile(r"_.*$"),
    re.compile(r"最新章节.*$"),
    re.compile(r"小说$"),
    re.compile(r"全文阅读$"),
    re.compile(r"无弹窗$"),
)

MAX_HEADING_NAME_LENGTH = 30

_QUOTED_TITLE_RE = re.compile(r"《([^》]+)》")


def infer_novel_name(html: str, url: str) -> str | None:
    """Guess the novel name from a table-of-contents page.

    Order of evidence: cleaned ``<title>`` (skipped when it only names the
    site), a short ``<h1>`` (overrides the title), then a ``《…》`` quote in
    the meta description.

    Args:
        html: Table-of-contents HTML
        url: Page URL, used to look up site branding

    Returns:
        Inferred name or None
    """
    soup = BeautifulSoup(html, "html.parser")
    rule = find_site_rule(url)
    brands = rule.brand_markers if rule is not None else ()
    name = ""

    page_title = soup.title.get_text(strip=True) if soup.title else ""
    if page_title and not any(brand in page_title for brand in brands):
        for pattern in PAGE_TITLE_CLEANUPS:
            page_title = pattern.sub("", page_title)
        name = page_title.strip()

    heading = soup.find("h1")
    heading_text = heading.get_text(strip=True) if heading else ""
    if heading_text and len(heading_text) < MAX_HEADING_NAME_LENGTH:
        name = heading_text

    if not name:
        meta = soup.find("meta", attrs={"name": "description"})
        description = meta.get("content") if meta else None
        if isinstance(description, str):
            match = _QUOTED_TITLE_RE.search(description)
            if match:
                name = match.group(1).strip()

    return name or None


class NovelCrawler:
    """Explicit, constructible crawler service.

    Args:
        settings: Crawler settings
        fetcher: Optional PageFetcher; one is created (and closed) otherwise
        rng: Random source shared by the fetcher and scheduler
        sleep: Awaitable sleep function, replaceable in tests
        clock: Returns the current time for output filenames
    """

    def __init__(
        self,
        settings: Settings | None = None,
        fetcher: PageFetcher | None = None,
        rng: random.Random | None = None,
        sleep: SleepFn | None = None,
        clock: ClockFn | None = None,
    ) -> None:
        self.settings = settings or Settings()
        self._rng = rng or random.Random()
        self._sleep = sleep or asyncio.sleep
        self._clock = clock or (lambda: datetime.now(timezone.utc))
        self._owns_fetcher = fetcher is None
        self.fetcher = fetcher or PageFetcher(
            self.settings, rng=self._rng, sleep=self._sleep
        )
        self._failed_log = (
            FailedChapterLogger(self.settings.failed_chapters_log)
            if self.settings.failed_chapters_log is not None
            else None
        )

    async def probe(self, base_url: str) -> ProbeResult:
        """Check a table-of-contents URL without downloading chapters.

        Args:
            base_url: Raw URL as supplied by the user

        Returns:
            ProbeResult with chapter count and/or inferred name

        Raises:
            CrawlError: If the page cannot be fetched, or if link discovery
                fails and no novel name could be inferred either
        """
        url = normalize_url(base_url)
        logger.info(f"Probing {url}", extra={"url": url})

        outcome = await self.fetcher.fetch(url)
        html = outcome.unwrap()
        page_url = outcome.final_url or url
        novel_name = infer_novel_name(html, page_url)

        try:
            links = extract_links(html, page_url)
        except CrawlError as exc:
            if novel_name is None:
                raise
            logger.warning(
                f"Probe found no chapter links on {url}: {exc}",
                extra={"url": url, "novel_name": novel_name},
            )
            return ProbeResult(
                url=url,
                novel_name=novel_name,
                debug=f"No chapter links found, but inferred name {novel_name}: {exc.message}",
            )

        return ProbeResult(
            url=url,
            chapter_count=len(links),
            novel_name=novel_name,
            first_chapter_url=links[0].url,
            debug=f"Found {len(links)} chapter links, first: {links[0].url}",
        )

    async def crawl(self, job: CrawlJob) -> CrawlResult:
        """Download every chapter of a novel and assemble the text.

        Args:
            job: Crawl parameters

        Returns:
            CrawlResult with the assembled content and counts

        Raises:
            CrawlError: The first terminal failure, unchanged
        """
        url = normalize_url(job.base_url)
        logger.info(
            f"Starting crawl of {job.novel_name}",
            extra={
                "url": url,
                "concurrency_limit": job.concurrency_limit,
                "chunk_size": job.chunk_size,
            },
        )

        try:
            outcome = await self.fetcher.fetch(url)
            html = outcome.unwrap()
            links = extract_links(html, outcome.final_url or url)
            logger.info(
                f"Found {len(links)} chapters, first: {links[0].url}, "
                f"last: {links[-1].url}",
                extra={"url": url, "count": len(links)},
            )

            scheduler = BatchScheduler(
                self.fetcher.fetch,
                settings=self.settings,
                rng=self._rng,
                sleep=self._sleep,
                failed_log=self._failed_log,
                novel_name=job.novel_name,
            )
            chapters, failed = await scheduler.run(
                links, job.concurrency_limit, job.chunk_size
            )
            content, filename = assemble(chapters, job.novel_name, self._clock())
        except CrawlError as exc:
            logger.error(
                f"Crawl of {job.novel_name} failed: {exc}",
                extra={"url": url, "kind": exc.kind.value},
            )
            raise

        logger.info(
            f"Crawl complete: {len(chapters)} chapters, {failed} failed",
            extra={"url": url, "succeeded": len(chapters), "failed": failed},
        )
        return CrawlResult(
            content=content,
            filename=filename,
            succeeded=len(chapters),
            failed=failed,
        )

    async def crawl_to_file(
        self, job: CrawlJob, output_dir: Path | None = None
    ) -> tuple[CrawlResult, Path]:
        """Crawl and write the artifact, returning the result and its path."""
        result = await self.crawl(job)
        path = write_artifact(result, output_dir or self.settings.output_dir)
        logger.info(f"Saved {path}", extra={"path": str(path)})
        return result, path

    async def close(self) -> None:
        """Close the fetcher if this service created it."""
        if self._owns_fetcher:
            await self.fetcher.close()

    async def __aenter__(self) -> NovelCrawler:
        """Enter async context manager."""
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb) -> None:
        """Exit async context manager and cleanup resources."""
        await self.close()
