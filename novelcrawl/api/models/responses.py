"""Response models for API endpoints.

Pydantic models defining the structure of API responses. Models serialize
with camelCase aliases and omit unset optional fields.

Example:
    from novelcrawl.api.models.responses import HealthResponse

    response = HealthResponse(status="healthy")
"""

from pydantic import BaseModel, ConfigDict, Field


class HealthResponse(BaseModel):
    """Health check response model.

    Attributes:
        status: Current health status ('healthy' or 'unhealthy')
    """

    status: str


class CheckUrlResponse(BaseModel):
    """Result of probing a table-of-contents URL."""

    model_config = ConfigDict(populate_by_name=True)

    success: bool = True
    chapter_count: int | None = Field(default=None, alias="chapterCount")
    novel_name: str | None = Field(default=None, alias="novelName")
    debug: str = ""


class CrawlResponse(BaseModel):
    """Result of a completed crawl.

    Exactly one of ``content`` and ``download_path`` is set, depending on
    whether the request asked for the artifact to be saved.
    """

    model_config = ConfigDict(populate_by_name=True)

    success: bool = True
    content: str | None = None
    download_path: str | None = Field(default=None, alias="downloadPath")
    filename: str
    succeeded: int
    failed: int


class ErrorResponse(BaseModel):
    """Localized error body.

    Attributes:
        error: Human-readable message in ``locale``
        kind: Machine-readable error kind (e.g. 'forbidden', 'validation')
        locale: Locale of ``error`` ('zh' or 'ja')
    """

    error: str
    kind: str
    locale: str
