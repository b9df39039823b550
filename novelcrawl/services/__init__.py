"""Service layer for probe and crawl operations."""

from novelcrawl.core.models import (
    Chapter,
    CrawlJob,
    CrawlResult,
    DiscoveredLink,
    ProbeResult,
)
from novelcrawl.services.assembler import assemble, write_artifact
from novelcrawl.services.crawler import NovelCrawler, infer_novel_name
from novelcrawl.services.scheduler import BatchScheduler

__all__ = [
    "BatchScheduler",
    "Chapter",
    "CrawlJob",
    "CrawlResult",
    "DiscoveredLink",
    "NovelCrawler",
    "ProbeResult",
    "assemble",
    "infer_novel_name",
    "write_artifact",
]
