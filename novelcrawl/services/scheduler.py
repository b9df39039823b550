"""Bounded-concurrency chapter download scheduling."""

from __future__ import annotations

import asyncio
import logging
import random
from collections.abc import Awaitable, Callable

from novelcrawl.core.config import Settings
from novelcrawl.core.errors import CrawlError, TooManyFailuresError
from novelcrawl.core.models import Chapter, DiscoveredLink
from novelcrawl.processing.content_extractor import extract_chapter
from novelcrawl.readers.fetch.models import FetchOutcome
from novelcrawl.resilience.failed_chapters import FailedChapterLogger

logger = logging.getLogger(__name__)

FetchFn = Callable[[str], Awaitable[FetchOutcome]]
SleepFn = Callable[[float], Awaitable[None]]


class BatchScheduler:
    """Download and extract chapters in chunks of bounded concurrent groups.

    Links are processed chunk by chunk; inside a chunk, groups of
    ``concurrency_limit`` tasks run together. Every task writes only its own
    result slot, so completion order never affects output order. A per-task
    ``CrawlError`` is counted instead of propagated, unless the running
    failure count crosses ``failure_threshold_ratio`` of all links.

    Args:
        fetch: Async function returning a FetchOutcome for a URL
        settings: Crawler settings (delays, failure ratio)
        rng: Random source for the inter-chunk delay
        sleep: Awaitable sleep function, replaceable in tests
        failed_log: Optional JSONL logger for failed chapters
        novel_name: Novel name recorded in the failed chapter log
    """

    def __init__(
        self,
        fetch: FetchFn,
        settings: Settings | None = None,
        rng: random.Random | None = None,
        sleep: SleepFn | None = None,
        failed_log: FailedChapterLogger | None = None,
        novel_name: str = "",
    ) -> None:
        self._fetch = fetch
        self.settings = settings or Settings()
        self._rng = rng or random.Random()
        self._sleep = sleep or asyncio.sleep
        self._failed_log = failed_log
        self._novel_name = novel_name

    async def run(
        self,
        links: list[DiscoveredLink],
        concurrency_limit: int,
        chunk_size: int,
    ) -> tuple[list[Chapter], int]:
        """Fetch and extract every link.

        Args:
            links: Discovered chapter links
            concurrency_limit: Tasks in flight at once
            chunk_size: Links per chunk

        Returns:
            Tuple of (chapters sorted by discovery index, failed count)

        Raises:
            TooManyFailuresError: If failures exceed the configured share of links
        """
        if concurrency_limit < 1 or chunk_size < 1:
            raise ValueError("concurrency_limit and chunk_size must be positive")

        total = len(links)
        results: list[Chapter | None] = [None] * total
        failed = 0
        chunk_count = (total + chunk_size - 1) // chunk_size

        for chunk_number, start in enumerate(range(0, total, chunk_size), start=1):
            if chunk_number > 1:
                delay = self._rng.uniform(
                    self.settings.chunk_delay_min_seconds,
                    self.settings.chunk_delay_max_seconds,
                )
                await self._sleep(delay)

            chunk = links[start : start + chunk_size]
            logger.info(
                f"Processing chunk {chunk_number}/{chunk_count}, "
                f"chapters {start + 1} to {start + len(chunk)}",
                extra={"chunk": chunk_number, "size": len(chunk)},
            )

            chunk_failed = 0
            for group_start in range(0, len(chunk), concurrency_limit):
                group = chunk[group_start : group_start + concurrency_limit]
                tasks = [
                    self._run_task(link, results, start + group_start + offset)
                    for offset, link in enumerate(group)
                ]
                outcomes = await asyncio.gather(*tasks)
                chunk_failed += outcomes.count(False)

            failed += chunk_failed
            if failed > self.settings.failure_threshold_ratio * total:
                raise TooManyFailuresError(
                    f"Too many failed chapters ({failed}/{total}), "
                    "the site is likely blocking the crawler"
                )

        chapters = sorted(
            (chapter for chapter in results if chapter is not None),
            key=lambda chapter: chapter.original_index,
        )
        logger.info(
            f"Batch complete: {len(chapters)} succeeded, {failed} failed",
            extra={"total": total, "succeeded": len(chapters), "failed": failed},
        )
        return chapters, failed

    async def _run_task(
        self, link: DiscoveredLink, results: list[Chapter | None], slot: int
    ) -> bool:
        try:
            outcome = await self._fetch(link.url)
            html = outcome.unwrap()
            results[slot] = extract_chapter(html, link.url, link.index)
            return True
        except CrawlError as exc:
            logger.warning(
                f"Chapter {link.index + 1} failed: {exc}",
                extra={"url": link.url, "index": link.index, "kind": exc.kind.value},
            )
            if self._failed_log is not None:
                self._failed_log.log_failure(
                    url=link.url,
                    index=link.index,
                    novel_name=self._novel_name,
                    error=exc,
                )
            return False
