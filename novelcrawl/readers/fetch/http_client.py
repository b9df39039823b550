"""HTTP page fetcher with anti-bot detection, retries and URL fallbacks."""

from __future__ import annotations

import asyncio
import logging
import random
from collections import deque
from collections.abc import Awaitable, Callable
from urllib.parse import urljoin

import httpx

from novelcrawl.core.config import Settings
from novelcrawl.core.errors import (
    CrawlError,
    ForbiddenError,
    MalformedResponseError,
    NotFoundError,
    TransportError,
)
from novelcrawl.readers.fetch.markers import (
    alternate_urls,
    find_anti_bot_marker,
    find_client_redirect,
    is_not_found_page,
    looks_like_html,
    sniff_charset,
)
from novelcrawl.readers.fetch.models import FetchOutcome
from novelcrawl.resilience.retry import RetryPolicy

logger = logging.getLogger(__name__)

SleepFn = Callable[[float], Awaitable[None]]

# Script redirects are only trusted on interstitial-sized pages; full chapter
# pages often carry keyboard-navigation scripts assigning window.location.
SCRIPT_REDIRECT_MAX_CHARS = 4096

_CHARSET_ALIASES = {"gb2312": "gb18030", "gbk": "gb18030"}

BROWSER_HEADERS = {
    "Accept": "text/html,application/xhtml+xml,application/xml;q=0.9,image/webp,*/*;q=0.8",
    "Accept-Language": "zh-CN,zh;q=0.9,en;q=0.8",
    "Accept-Encoding": "gzip, deflate",
    "Cache-Control": "no-cache",
    "Pragma": "no-cache",
    "Connection": "keep-alive",
    "sec-ch-ua": '"Not A(Brand";v="99", "Google Chrome";v="121", "Chromium";v="121"',
    "sec-ch-ua-mobile": "?0",
    "sec-ch-ua-platform": '"Windows"',
    "Sec-Fetch-Dest": "document",
    "Sec-Fetch-Mode": "navigate",
    "Sec-Fetch-Site": "none",
    "Sec-Fetch-User": "?1",
    "Upgrade-Insecure-Requests": "1",
}


class PageFetcher:
    """Fetch novel pages the way a desktop browser would.

    A single ``fetch`` call runs a bounded loop over candidate URLs:
    transport failures are retried with jittered exponential backoff, a 404
    moves on to the next alternate URL, client-side redirects are followed
    for a couple of hops, and anti-bot or soft-404 pages end the loop at once.
    Failures come back as a classified ``FetchOutcome`` instead of exceptions.

    Args:
        settings: Crawler settings (timeouts, budgets, header pool)
        client: Optional pre-built AsyncClient; the fetcher closes only
            clients it created itself
        rng: Random source for user-agent rotation and backoff jitter
        sleep: Awaitable sleep function, replaceable in tests

    Example:
        >>> async with PageFetcher(Settings()) as fetcher:
        ...     outcome = await fetcher.fetch("https://www.xs5200.net/44_44108/")
        ...     html = outcome.unwrap()
    """

    def __init__(
        self,
        settings: Settings | None = None,
        client: httpx.AsyncClient | None = None,
        rng: random.Random | None = None,
        sleep: SleepFn | None = None,
    ) -> None:
        self.settings = settings or Settings()
        self._rng = rng or random.Random()
        self._sleep = sleep or asyncio.sleep
        self._retry = RetryPolicy(
            max_attempts=self.settings.max_attempts,
            base_delay=self.settings.backoff_base_seconds,
            jitter=self.settings.backoff_jitter_seconds,
            max_delay=self.settings.backoff_cap_seconds,
            rng=self._rng,
        )
        self._owns_client = client is None
        self._client = client or httpx.AsyncClient(
            timeout=self.settings.request_timeout,
            verify=self.settings.verify_tls,
            follow_redirects=True,
            max_redirects=self.settings.max_http_redirects,
        )

    def build_headers(self, url: str) -> dict[str, str]:
        """Build request headers with a rotated User-Agent for ``url``."""
        headers = {"User-Agent": self._rng.choice(self.settings.user_agents)}
        headers.update(BROWSER_HEADERS)
        headers["Referer"] = url
        headers["Cookie"] = self.settings.cookie
        return headers

    async def fetch(self, url: str, attempt: int = 0) -> FetchOutcome:
        """Fetch one page and classify the result.

        Args:
            url: Page URL
            attempt: Attempt number to start counting from (0-indexed)

        Returns:
            FetchOutcome with the decoded HTML, or a classified error after
            retries and alternate URLs are exhausted
        """
        current = url
        requests_made = 0
        redirect_hops = 0
        not_found_requests = 0
        alternates: deque[str] | None = None

        while True:
            requests_made += 1
            error: CrawlError
            logger.debug("Fetching page", extra={"url": current, "attempt": attempt})
            try:
                response = await self._client.get(
                    current, headers=self.build_headers(current)
                )
            except (httpx.RequestError, httpx.InvalidURL) as exc:
                error = _classify_request_error(exc, current)
            else:
                status = response.status_code

                if status == 404:
                    not_found_requests += 1
                    if alternates is None:
                        alternates = deque(alternate_urls(current))
                    if (
                        alternates
                        and not_found_requests < self.settings.max_not_found_attempts
                    ):
                        next_url = alternates.popleft()
                        logger.info(
                            f"404 for {current}, trying alternate {next_url}",
                            extra={"url": current, "alternate": next_url},
                        )
                        current = next_url
                        continue
                    return self._failure(
                        url,
                        NotFoundError(f"Page not found: {url}", url=url),
                        current,
                        requests_made,
                    )

                if status == 403:
                    return self._failure(
                        url,
                        ForbiddenError(
                            f"Access forbidden (HTTP 403): {current}",
                            cause="forbidden",
                            url=current,
                        ),
                        current,
                        requests_made,
                    )

                if 200 <= status < 300:
                    html = _decode_body(response)

                    redirect = find_client_redirect(html)
                    if redirect and redirect_hops < self.settings.max_redirect_hops:
                        target, via = redirect
                        try:
                            resolved = urljoin(str(response.url), target)
                        except ValueError:
                            logger.warning(
                                f"Ignoring malformed client-side redirect on {current}",
                                extra={"url": current, "target": target},
                            )
                            resolved = current
                        if resolved != current and (
                            via == "meta" or len(html) <= SCRIPT_REDIRECT_MAX_CHARS
                        ):
                            redirect_hops += 1
                            logger.info(
                                f"Client-side redirect from {current} to {resolved}",
                                extra={"url": current, "target": resolved},
                            )
                            current = resolved
                            continue

                    marker = find_anti_bot_marker(html)
                    if marker is not None:
                        return self._failure(
                            url,
                            ForbiddenError(
                                f"Anti-bot page detected ({marker}): {current}",
                                cause="anti-bot",
                                url=current,
                            ),
                            current,
                            requests_made,
                        )

                    if is_not_found_page(html):
                        return self._failure(
                            url,
                            NotFoundError(
                                f"Site reported page missing: {current}",
                                url=current,
                            ),
                            current,
                            requests_made,
                        )

                    if not looks_like_html(html):
                        return self._failure(
                            url,
                            MalformedResponseError(
                                f"Response is not an HTML document: {current}",
                                cause="malformed",
                                url=current,
                            ),
                            current,
                            requests_made,
                        )

                    return FetchOutcome(
                        url=url,
                        html=html,
                        final_url=str(response.url),
                        attempts=requests_made,
                    )

                error = TransportError(
                    f"Unexpected HTTP status {status}: {current}",
                    cause=f"http-{status}",
                    url=current,
                )

            if self._retry.should_retry(attempt, error):
                delay = self._retry.get_delay(attempt)
                logger.warning(
                    f"Fetch attempt {attempt + 1} failed for {current}, "
                    f"retrying in {delay:.1f}s",
                    extra={
                        "url": current,
                        "attempt": attempt + 1,
                        "error": str(error),
                        "delay": delay,
                    },
                )
                await self._sleep(delay)
                attempt += 1
                continue

            return self._failure(url, error, current, requests_made)

    def _failure(
        self, url: str, error: CrawlError, current: str, requests_made: int
    ) -> FetchOutcome:
        logger.error(
            f"Fetch failed for {url}: {error}",
            extra={"url": url, "kind": error.kind.value, "cause": error.cause},
        )
        return FetchOutcome(
            url=url, error=error, final_url=current, attempts=requests_made
        )

    async def close(self) -> None:
        """Close the underlying HTTP client if this fetcher created it."""
        if self._owns_client:
            await self._client.aclose()

    async def __aenter__(self) -> PageFetcher:
        """Enter async context manager."""
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb) -> None:
        """Exit async context manager and cleanup resources."""
        await self.close()


def _classify_request_error(exc: Exception, url: str) -> CrawlError:
    if isinstance(exc, httpx.TimeoutException):
        return TransportError(f"Request timed out: {url}", cause="timeout", url=url)
    if isinstance(exc, httpx.ConnectError):
        return TransportError(
            f"Connection refused, the site may be down or moved: {url}",
            cause="refused",
            url=url,
        )
    if isinstance(exc, (httpx.ReadError, httpx.WriteError, httpx.RemoteProtocolError)):
        return TransportError(f"Connection reset: {url}", cause="reset", url=url)
    if isinstance(exc, httpx.TooManyRedirects):
        return TransportError(
            f"Too many redirects: {url}", cause="redirect-loop", url=url, retryable=False
        )
    if isinstance(exc, (httpx.InvalidURL, httpx.UnsupportedProtocol)):
        return TransportError(
            f"Invalid URL: {url}", cause="invalid-url", url=url, retryable=False
        )
    return TransportError(f"Network error for {url}: {exc}", cause="network", url=url)


def _decode_body(response: httpx.Response) -> str:
    if response.charset_encoding:
        return response.text
    charset = sniff_charset(response.content)
    if charset:
        try:
            return response.content.decode(
                _CHARSET_ALIASES.get(charset, charset), errors="replace"
            )
        except LookupError:
            pass
    return response.text
