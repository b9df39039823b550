"""Classified errors raised across the crawl pipeline.

Every failure the crawler can surface carries an ``ErrorKind`` so callers
(CLI, HTTP boundary, tests) can branch on the category without parsing
messages. ``cause`` holds the finer-grained reason, e.g. ``"timeout"`` for a
transport error or ``"anti-bot"`` for a forbidden page.

Example:
    >>> try:
    ...     html = outcome.unwrap()
    ... except ForbiddenError as exc:
    ...     print(exc.kind, exc.cause)
    ErrorKind.FORBIDDEN anti-bot
"""

from __future__ import annotations

from enum import Enum


class ErrorKind(str, Enum):
    """Error categories reported to callers."""

    TRANSPORT = "transport"
    FORBIDDEN = "forbidden"
    NOT_FOUND = "not-found"
    MALFORMED_RESPONSE = "malformed-response"
    NO_LINKS_FOUND = "no-links-found"
    NO_CONTENT_EXTRACTED = "no-content-extracted"
    TOO_MANY_FAILURES = "too-many-failures"
    EMPTY_RESULT = "empty-result"


class CrawlError(Exception):
    """Base class for classified crawl failures.

    Attributes:
        kind: Error category
        cause: Short machine-readable reason within the category
        url: URL being processed when the error occurred, if any
    """

    kind: ErrorKind = ErrorKind.TRANSPORT
    retryable: bool = False

    def __init__(
        self,
        message: str,
        *,
        cause: str | None = None,
        url: str | None = None,
        retryable: bool | None = None,
    ) -> None:
        super().__init__(message)
        self.message = message
        self.cause = cause or self.kind.value
        self.url = url
        if retryable is not None:
            self.retryable = retryable

    def __str__(self) -> str:
        return f"[{self.kind.value}] {self.message}"


class TransportError(CrawlError):
    """Timeout, refused or reset connection, or an unexpected HTTP status."""

    kind = ErrorKind.TRANSPORT
    retryable = True


class ForbiddenError(CrawlError):
    """HTTP 403 or an anti-bot page (CAPTCHA, rate limit)."""

    kind = ErrorKind.FORBIDDEN


class NotFoundError(CrawlError):
    """Page missing after every alternate URL was tried."""

    kind = ErrorKind.NOT_FOUND


class MalformedResponseError(CrawlError):
    """Response body is not an HTML document."""

    kind = ErrorKind.MALFORMED_RESPONSE


class NoLinksFoundError(CrawlError):
    """No chapter links could be discovered on the table-of-contents page."""

    kind = ErrorKind.NO_LINKS_FOUND


class NoContentError(CrawlError):
    """A chapter page had no extractable body text."""

    kind = ErrorKind.NO_CONTENT_EXTRACTED


class TooManyFailuresError(CrawlError):
    """Failed chapters crossed the abort threshold."""

    kind = ErrorKind.TOO_MANY_FAILURES


class EmptyResultError(CrawlError):
    """No chapter survived to assembly."""

    kind = ErrorKind.EMPTY_RESULT
