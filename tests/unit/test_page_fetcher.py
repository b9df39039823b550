"""Unit tests for PageFetcher fetch classification and resilience.

These tests verify the PageFetcher correctly:
- Returns decoded HTML and the serving URL on success
- Retries transport failures with jittered exponential backoff
- Ends immediately on anti-bot pages, HTTP 403 and soft 404 pages
- Walks alternate URLs after a real 404 within its request budget
- Follows client-side redirects within the hop budget, ignoring malformed
  targets and script redirects on full-size pages

All HTTP calls are mocked using respx; sleeps are recorded, never awaited.
"""

import random

import httpx
import pytest
import respx

from novelcrawl.core.config import Settings
from novelcrawl.core.errors import (
    ErrorKind,
    ForbiddenError,
    MalformedResponseError,
    NotFoundError,
    TransportError,
)
from novelcrawl.readers.fetch.http_client import SCRIPT_REDIRECT_MAX_CHARS, PageFetcher
from tests.fixtures.novel_pages import (
    ANTI_BOT_PAGE,
    SOFT_NOT_FOUND_PAGE,
    chapter_page,
)

URL = "https://www.example.com/book/1.html"


@respx.mock
@pytest.mark.asyncio
async def test_fetch_success_returns_html(settings: Settings, sleeper, rng) -> None:
    """A 200 HTML page comes back with the URL that served it."""
    respx.get(URL).mock(return_value=httpx.Response(200, html=chapter_page(1)))

    async with PageFetcher(settings, rng=rng, sleep=sleeper) as fetcher:
        outcome = await fetcher.fetch(URL)

    assert outcome.ok is True
    assert "这是第1章的正文内容" in outcome.unwrap()
    assert outcome.final_url == URL
    assert outcome.attempts == 1
    assert sleeper.delays == []


@respx.mock
@pytest.mark.asyncio
async def test_fetch_sends_browser_headers(settings: Settings, sleeper, rng) -> None:
    """Requests carry a pooled User-Agent, Referer and the static cookie."""
    route = respx.get(URL).mock(return_value=httpx.Response(200, html=chapter_page(1)))

    async with PageFetcher(settings, rng=rng, sleep=sleeper) as fetcher:
        await fetcher.fetch(URL)

    request = route.calls.last.request
    assert request.headers["User-Agent"] in settings.user_agents
    assert request.headers["Referer"] == URL
    assert request.headers["Cookie"] == settings.cookie
    assert request.headers["Accept-Language"].startswith("zh-CN")


@respx.mock
@pytest.mark.asyncio
async def test_anti_bot_page_is_forbidden_without_retry(
    settings: Settings, sleeper, rng
) -> None:
    """A CAPTCHA interstitial ends the fetch at once as forbidden/anti-bot."""
    route = respx.get(URL).mock(return_value=httpx.Response(200, html=ANTI_BOT_PAGE))

    async with PageFetcher(settings, rng=rng, sleep=sleeper) as fetcher:
        outcome = await fetcher.fetch(URL)

    assert isinstance(outcome.error, ForbiddenError)
    assert outcome.error.cause == "anti-bot"
    assert route.call_count == 1
    assert sleeper.delays == []


@respx.mock
@pytest.mark.asyncio
async def test_http_403_is_forbidden_without_retry(
    settings: Settings, sleeper, rng
) -> None:
    """HTTP 403 is classified forbidden and never retried."""
    route = respx.get(URL).mock(return_value=httpx.Response(403))

    async with PageFetcher(settings, rng=rng, sleep=sleeper) as fetcher:
        outcome = await fetcher.fetch(URL)

    assert outcome.error is not None
    assert outcome.error.kind is ErrorKind.FORBIDDEN
    assert outcome.error.cause == "forbidden"
    assert route.call_count == 1
    assert sleeper.delays == []


@respx.mock
@pytest.mark.asyncio
async def test_transient_timeout_is_retried(settings: Settings, sleeper, rng) -> None:
    """A timeout followed by success yields the page after one backoff."""
    route = respx.get(URL).mock(
        side_effect=[
            httpx.ConnectTimeout("timed out"),
            httpx.Response(200, html=chapter_page(1)),
        ]
    )

    async with PageFetcher(settings, rng=rng, sleep=sleeper) as fetcher:
        outcome = await fetcher.fetch(URL)

    assert outcome.ok is True
    assert outcome.attempts == 2
    assert route.call_count == 2
    assert len(sleeper.delays) == 1
    assert 1.0 <= sleeper.delays[0] <= 2.0


@respx.mock
@pytest.mark.asyncio
async def test_persistent_timeout_exhausts_attempts(
    settings: Settings, sleeper, rng
) -> None:
    """Timeouts are retried up to max_attempts with growing delays."""
    route = respx.get(URL).mock(side_effect=httpx.ReadTimeout("timed out"))

    async with PageFetcher(settings, rng=rng, sleep=sleeper) as fetcher:
        outcome = await fetcher.fetch(URL)

    assert isinstance(outcome.error, TransportError)
    assert outcome.error.cause == "timeout"
    assert route.call_count == settings.max_attempts
    assert len(sleeper.delays) == settings.max_attempts - 1
    assert 1.0 <= sleeper.delays[0] <= 2.0
    assert 2.0 <= sleeper.delays[1] <= 3.0


@respx.mock
@pytest.mark.asyncio
async def test_connection_refused_is_classified(
    settings: Settings, sleeper, rng
) -> None:
    """Connection errors surface as transport/refused."""
    respx.get(URL).mock(side_effect=httpx.ConnectError("refused"))

    async with PageFetcher(settings, rng=rng, sleep=sleeper) as fetcher:
        outcome = await fetcher.fetch(URL)

    assert outcome.error is not None
    assert outcome.error.kind is ErrorKind.TRANSPORT
    assert outcome.error.cause == "refused"


@respx.mock
@pytest.mark.asyncio
async def test_server_error_is_retried(settings: Settings, sleeper, rng) -> None:
    """An unexpected 5xx status is a retryable transport failure."""
    respx.get(URL).mock(
        side_effect=[httpx.Response(503), httpx.Response(200, html=chapter_page(1))]
    )

    async with PageFetcher(settings, rng=rng, sleep=sleeper) as fetcher:
        outcome = await fetcher.fetch(URL)

    assert outcome.ok is True
    assert len(sleeper.delays) == 1


@respx.mock
@pytest.mark.asyncio
async def test_404_falls_back_to_alternate_url(
    settings: Settings, sleeper, rng
) -> None:
    """After a 404 the protocol-swapped URL is tried next."""
    respx.get(URL).mock(return_value=httpx.Response(404))
    alternate = "http://www.example.com/book/1.html"
    respx.get(alternate).mock(return_value=httpx.Response(200, html=chapter_page(1)))

    async with PageFetcher(settings, rng=rng, sleep=sleeper) as fetcher:
        outcome = await fetcher.fetch(URL)

    assert outcome.ok is True
    assert outcome.url == URL
    assert outcome.final_url == alternate
    assert sleeper.delays == []


@respx.mock
@pytest.mark.asyncio
async def test_404_everywhere_is_not_found(settings: Settings, sleeper, rng) -> None:
    """Alternates stop after max_not_found_attempts requests."""
    route = respx.route().mock(return_value=httpx.Response(404))

    async with PageFetcher(settings, rng=rng, sleep=sleeper) as fetcher:
        outcome = await fetcher.fetch(URL)

    assert isinstance(outcome.error, NotFoundError)
    assert route.call_count == settings.max_not_found_attempts


@respx.mock
@pytest.mark.asyncio
async def test_soft_404_page_is_not_found(settings: Settings, sleeper, rng) -> None:
    """A 200 page announcing 404 is classified not-found without retry."""
    route = respx.get(URL).mock(
        return_value=httpx.Response(200, html=SOFT_NOT_FOUND_PAGE)
    )

    async with PageFetcher(settings, rng=rng, sleep=sleeper) as fetcher:
        outcome = await fetcher.fetch(URL)

    assert isinstance(outcome.error, NotFoundError)
    assert route.call_count == 1


@respx.mock
@pytest.mark.asyncio
async def test_non_html_body_is_malformed(settings: Settings, sleeper, rng) -> None:
    """A body that is not an HTML document is rejected."""
    respx.get(URL).mock(return_value=httpx.Response(200, text="plain text body"))

    async with PageFetcher(settings, rng=rng, sleep=sleeper) as fetcher:
        outcome = await fetcher.fetch(URL)

    assert isinstance(outcome.error, MalformedResponseError)
    assert sleeper.delays == []


@respx.mock
@pytest.mark.asyncio
async def test_meta_refresh_is_followed(settings: Settings, sleeper, rng) -> None:
    """A meta refresh interstitial leads to its target page."""
    interstitial = (
        "<!DOCTYPE html><html><head>"
        '<meta http-equiv="refresh" content="0;url=/real/1.html">'
        "</head><body></body></html>"
    )
    target = "https://www.example.com/real/1.html"
    respx.get(URL).mock(return_value=httpx.Response(200, html=interstitial))
    respx.get(target).mock(return_value=httpx.Response(200, html=chapter_page(1)))

    async with PageFetcher(settings, rng=rng, sleep=sleeper) as fetcher:
        outcome = await fetcher.fetch(URL)

    assert outcome.ok is True
    assert outcome.final_url == target


@respx.mock
@pytest.mark.asyncio
async def test_gbk_page_without_charset_header_is_decoded(
    settings: Settings, sleeper, rng
) -> None:
    """A GBK page is decoded from its meta charset when headers omit one."""
    html = chapter_page(3).replace('charset="utf-8"', 'charset="gbk"')
    respx.get(URL).mock(
        return_value=httpx.Response(
            200, content=html.encode("gbk"), headers={"Content-Type": "text/html"}
        )
    )

    async with PageFetcher(settings, rng=rng, sleep=sleeper) as fetcher:
        outcome = await fetcher.fetch(URL)

    assert "这是第3章的正文内容" in outcome.unwrap()


@pytest.mark.asyncio
async def test_injected_client_is_not_closed(settings: Settings) -> None:
    """The fetcher leaves caller-owned clients open."""
    client = httpx.AsyncClient()
    async with PageFetcher(settings, client=client, rng=random.Random(0)):
        pass

    assert client.is_closed is False
    await client.aclose()


def _meta_refresh(target: str) -> str:
    return (
        "<!DOCTYPE html><html><head>"
        f'<meta http-equiv="refresh" content="0;url={target}">'
        "</head><body></body></html>"
    )


@respx.mock
@pytest.mark.asyncio
async def test_malformed_redirect_target_is_ignored(
    settings: Settings, sleeper, rng
) -> None:
    """An unparsable refresh target leaves the page as fetched."""
    route = respx.get(URL).mock(
        return_value=httpx.Response(200, html=_meta_refresh("http://[bad/x.html"))
    )

    async with PageFetcher(settings, rng=rng, sleep=sleeper) as fetcher:
        outcome = await fetcher.fetch(URL)

    assert outcome.ok is True
    assert outcome.final_url == URL
    assert route.call_count == 1


@respx.mock
@pytest.mark.asyncio
async def test_redirect_chain_stops_after_hop_budget(
    settings: Settings, sleeper, rng
) -> None:
    """Only max_redirect_hops client-side redirects are followed."""
    base = "https://www.example.com/hop"
    routes = [
        respx.get(f"{base}{n}.html").mock(
            return_value=httpx.Response(200, html=_meta_refresh(f"/hop{n + 1}.html"))
        )
        for n in range(4)
    ]

    async with PageFetcher(settings, rng=rng, sleep=sleeper) as fetcher:
        outcome = await fetcher.fetch(f"{base}0.html")

    assert settings.max_redirect_hops == 2
    assert outcome.attempts == 3
    assert [route.call_count for route in routes] == [1, 1, 1, 0]
    assert outcome.final_url == f"{base}2.html"


@respx.mock
@pytest.mark.asyncio
async def test_redirect_loop_terminates(settings: Settings, sleeper, rng) -> None:
    """Two pages refreshing to each other end within the hop budget."""
    first = "https://www.example.com/a.html"
    second = "https://www.example.com/b.html"
    first_route = respx.get(first).mock(
        return_value=httpx.Response(200, html=_meta_refresh("/b.html"))
    )
    second_route = respx.get(second).mock(
        return_value=httpx.Response(200, html=_meta_refresh("/a.html"))
    )

    async with PageFetcher(settings, rng=rng, sleep=sleeper) as fetcher:
        outcome = await fetcher.fetch(first)

    assert outcome.attempts == 3
    assert first_route.call_count == 2
    assert second_route.call_count == 1
    assert sleeper.delays == []


@respx.mock
@pytest.mark.asyncio
async def test_script_redirect_on_full_page_is_not_followed(
    settings: Settings, sleeper, rng
) -> None:
    """window.location on a page above the interstitial size is ignored."""
    script = '<script>window.location.href = "/next.html";</script>'
    filler = "<p>" + "正文" * 3000 + "</p>"
    html = chapter_page(1).replace("</body>", filler + script + "</body>")
    respx.get(URL).mock(return_value=httpx.Response(200, html=html))
    target = respx.get("https://www.example.com/next.html").mock(
        return_value=httpx.Response(200, html=chapter_page(2))
    )

    async with PageFetcher(settings, rng=rng, sleep=sleeper) as fetcher:
        outcome = await fetcher.fetch(URL)

    assert len(html) > SCRIPT_REDIRECT_MAX_CHARS
    assert outcome.final_url == URL
    assert target.call_count == 0
    assert "这是第1章的正文内容" in outcome.unwrap()


@respx.mock
@pytest.mark.asyncio
async def test_script_redirect_on_small_page_is_followed(
    settings: Settings, sleeper, rng
) -> None:
    """A short interstitial assigning window.location leads to its target."""
    html = (
        "<!DOCTYPE html><html><head>"
        '<script>window.location = "/next.html";</script>'
        "</head><body></body></html>"
    )
    target_url = "https://www.example.com/next.html"
    respx.get(URL).mock(return_value=httpx.Response(200, html=html))
    respx.get(target_url).mock(return_value=httpx.Response(200, html=chapter_page(2)))

    async with PageFetcher(settings, rng=rng, sleep=sleeper) as fetcher:
        outcome = await fetcher.fetch(URL)

    assert outcome.final_url == target_url
