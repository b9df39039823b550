"""Request models for API endpoints.

Field names follow the camelCase JSON used by the web front end; Python
code reads the snake_case attributes.

Example:
    from novelcrawl.api.models.requests import CrawlRequest

    request = CrawlRequest.model_validate({"url": "...", "novelName": "斗破苍穹"})
"""

from pydantic import BaseModel, ConfigDict, Field

from novelcrawl.core.config import CHUNK_SIZE_RANGE, CONCURRENCY_RANGE


class CheckUrlRequest(BaseModel):
    """Body of ``POST /api/check-url``."""

    url: str = Field(min_length=1)


class CrawlRequest(BaseModel):
    """Body of ``POST /api/crawl``.

    Attributes:
        url: Table-of-contents URL
        novel_name: Name used for the output file
        concurrency_limit: Optional override of the configured limit
        chunk_size: Optional override of the configured chunk size
        save: Write the artifact to the output directory instead of
            returning the content inline
    """

    model_config = ConfigDict(populate_by_name=True)

    url: str = Field(min_length=1)
    novel_name: str = Field(alias="novelName", min_length=1)
    concurrency_limit: int | None = Field(
        default=None,
        alias="concurrencyLimit",
        ge=CONCURRENCY_RANGE[0],
        le=CONCURRENCY_RANGE[1],
    )
    chunk_size: int | None = Field(
        default=None,
        alias="chunkSize",
        ge=CHUNK_SIZE_RANGE[0],
        le=CHUNK_SIZE_RANGE[1],
    )
    save: bool = False
