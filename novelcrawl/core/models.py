"""Domain data models shared by the crawl pipeline."""

from dataclasses import dataclass

from pydantic import BaseModel, ConfigDict, Field, field_validator

from novelcrawl.core.config import CHUNK_SIZE_RANGE, CONCURRENCY_RANGE


class CrawlJob(BaseModel):
    """Parameters of one novel download.

    Attributes:
        base_url: Table-of-contents URL as supplied by the caller
        novel_name: Name used for the output filename
        concurrency_limit: Fetch+extract tasks in flight at once (1-10)
        chunk_size: Links per scheduling chunk (10-100)

    Examples:
        >>> job = CrawlJob(base_url="www.xs5200.net/44_44108", novel_name="斗破苍穹")
        >>> job.concurrency_limit, job.chunk_size
        (5, 20)
    """

    model_config = ConfigDict(frozen=True, extra="forbid")

    base_url: str = Field(description="Table-of-contents URL")
    novel_name: str = Field(description="Novel name used in the output filename")
    concurrency_limit: int = Field(
        default=5,
        ge=CONCURRENCY_RANGE[0],
        le=CONCURRENCY_RANGE[1],
        description="Maximum concurrent chapter fetches (1-10)",
    )
    chunk_size: int = Field(
        default=20,
        ge=CHUNK_SIZE_RANGE[0],
        le=CHUNK_SIZE_RANGE[1],
        description="Chapters per scheduling chunk (10-100)",
    )

    @field_validator("base_url", "novel_name")
    @classmethod
    def strip_required_text(cls: type["CrawlJob"], v: str) -> str:
        """Strip whitespace and reject blank values.

        Raises:
            ValueError: If the value is empty after stripping
        """
        stripped = v.strip()
        if not stripped:
            raise ValueError("must not be blank")
        return stripped


@dataclass(frozen=True)
class DiscoveredLink:
    """Chapter link found on the table-of-contents page.

    Args:
        url: Absolute chapter URL
        index: Discovery index, the sole ordering key for the output
    """

    url: str
    index: int


@dataclass(frozen=True)
class Chapter:
    """Extracted chapter.

    Args:
        title: Cleaned chapter title
        content: Cleaned chapter body
        source_url: Page the chapter came from
        original_index: Discovery index of the chapter link
    """

    title: str
    content: str
    source_url: str
    original_index: int


@dataclass(frozen=True)
class CrawlResult:
    """Assembled novel.

    Args:
        content: Full text of all surviving chapters
        filename: Suggested output filename
        succeeded: Number of chapters included
        failed: Number of chapters that could not be fetched or extracted
    """

    content: str
    filename: str
    succeeded: int
    failed: int


@dataclass(frozen=True)
class ProbeResult:
    """Advisory summary of a table-of-contents page.

    Args:
        url: Normalized URL that was probed
        chapter_count: Number of chapter links found, None if discovery failed
        novel_name: Novel name inferred from the page, if any
        first_chapter_url: First chapter link, if any
        debug: Human-readable note about what was found
    """

    url: str
    chapter_count: int | None = None
    novel_name: str | None = None
    first_chapter_url: str | None = None
    debug: str = ""
