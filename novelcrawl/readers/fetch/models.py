"""Data models for page fetch operations."""

from dataclasses import dataclass

from novelcrawl.core.errors import CrawlError


@dataclass(frozen=True)
class FetchOutcome:
    """Result of fetching a single page.

    Exactly one of ``html`` and ``error`` is set.

    Attributes:
        url: URL that was requested originally
        html: Decoded HTML on success
        error: Classified error on failure
        final_url: URL that produced the answer (after alternates/redirects)
        attempts: Number of HTTP requests issued
    """

    url: str
    html: str | None = None
    error: CrawlError | None = None
    final_url: str | None = None
    attempts: int = 0

    @property
    def ok(self) -> bool:
        return self.error is None and self.html is not None

    def unwrap(self) -> str:
        """Return the HTML or raise the carried error."""
        if self.error is not None:
            raise self.error
        if self.html is None:
            raise RuntimeError(f"FetchOutcome for {self.url} has no html")
        return self.html
