"""Probe and crawl endpoints.

Example:
    POST /api/check-url {"url": "www.xs5200.net/44_44108"}
    Response: {"success": true, "chapterCount": 1523, "novelName": "斗破苍穹", "debug": "..."}
"""

from collections.abc import AsyncIterator
from fastapi import APIRouter, Depends

from novelcrawl.api.models.requests import CheckUrlRequest, CrawlRequest
from novelcrawl.api.models.responses import CheckUrlResponse, CrawlResponse
from novelcrawl.core.config import Settings
from novelcrawl.core.models import CrawlJob
from novelcrawl.services.crawler import NovelCrawler

router = APIRouter(prefix="/api", tags=["crawl"])


def get_settings() -> Settings:
    """Load settings from the environment for each request."""
    return Settings()


async def get_crawler(
    settings: Settings = Depends(get_settings),
) -> AsyncIterator[NovelCrawler]:
    """Provide a crawler for the duration of one request."""
    async with NovelCrawler(settings) as crawler:
        yield crawler


@router.post(
    "/check-url", response_model=CheckUrlResponse, response_model_exclude_none=True
)
async def check_url(
    body: CheckUrlRequest, crawler: NovelCrawler = Depends(get_crawler)
) -> CheckUrlResponse:
    """Report chapter count and inferred novel name for a TOC URL."""
    result = await crawler.probe(body.url)
    return CheckUrlResponse(
        chapter_count=result.chapter_count,
        novel_name=result.novel_name,
        debug=result.debug,
    )


@router.post("/crawl", response_model=CrawlResponse, response_model_exclude_none=True)
async def crawl(
    body: CrawlRequest, crawler: NovelCrawler = Depends(get_crawler)
) -> CrawlResponse:
    """Download a novel and return its text, or save it and return the path."""
    settings = crawler.settings
    job = CrawlJob(
        base_url=body.url,
        novel_name=body.novel_name,
        concurrency_limit=(
            body.concurrency_limit
            if body.concurrency_limit is not None
            else settings.concurrency_limit
        ),
        chunk_size=(
            body.chunk_size if body.chunk_size is not None else settings.chunk_size
        ),
    )

    if body.save:
        result, path = await crawler.crawl_to_file(job)
        return CrawlResponse(
            download_path=str(path),
            filename=result.filename,
            succeeded=result.succeeded,
            failed=result.failed,
        )

    result = await crawler.crawl(job)
    return CrawlResponse(
        content=result.content,
        filename=result.filename,
        succeeded=result.succeeded,
        failed=result.failed,
    )
