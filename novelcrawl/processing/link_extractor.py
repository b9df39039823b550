"""Chapter link discovery for table-of-contents pages.

Discovery is an ordered table of strategies, most specific first. Each
strategy returns candidate URLs; the first one producing anything wins. The
winning links are deduplicated, sorted by the chapter number embedded in
their URL, and numbered with their discovery index.

Example:
    >>> links = extract_links(toc_html, "https://www.xs5200.net/44_44108/")
    >>> links[0]
    DiscoveredLink(url='https://www.xs5200.net/44_44108/1.html', index=0)
"""

from __future__ import annotations

import logging
import re
from collections.abc import Callable, Iterable
from dataclasses import dataclass
from urllib.parse import urldefrag, urljoin, urlsplit

from bs4 import BeautifulSoup
from bs4.element import Tag

from novelcrawl.core.errors import NoLinksFoundError
from novelcrawl.core.models import DiscoveredLink
from novelcrawl.core.url_normalizer import novel_id_fragment

logger = logging.getLogger(__name__)

LIST_SELECTORS: tuple[str, ...] = (
    "#list dd a",
    ".listmain dd a",
    "#chapterlist dd a",
    "#chapter-list dd a",
    ".novel_list dd a",
    ".chapter-list dd a",
    ".article-list dd a",
    "#xslist dd a",
)

CONTAINER_SELECTORS: tuple[str, ...] = (
    "#list",
    ".listmain",
    "#chapterlist",
    "#chapter-list",
    ".novel_list",
    ".chapter-list",
    ".article-list",
    "#xslist",
)

CHAPTER_TEXT_PATTERNS: tuple[re.Pattern[str], ...] = (
    re.compile(r"[章卷]"),
    re.compile(r"^\s*第.+[章节卷篇]\s*$"),
    re.compile(r"^\d+\s*[.、]"),
    re.compile(r"^\d+$"),
)

CHAPTER_HREF_PATTERNS: tuple[re.Pattern[str], ...] = (
    re.compile(r"chapter", re.IGNORECASE),
    re.compile(r"/\d+\.html?$"),
)

_SKIPPED_SCHEMES = ("javascript:", "mailto:", "tel:")
_DIGITS_RE = re.compile(r"\d+")


@dataclass(frozen=True)
class LinkStrategy:
    """One link discovery heuristic.

    Attributes:
        name: Identifier used in logs
        collect: Function returning candidate absolute URLs in page order
    """

    name: str
    collect: Callable[[BeautifulSoup, str], list[str]]


def looks_like_chapter_text(text: str) -> bool:
    """Check anchor text against the chapter-naming patterns."""
    return any(pattern.search(text) for pattern in CHAPTER_TEXT_PATTERNS)


def looks_like_chapter_href(href: str) -> bool:
    """Check an href against the chapter URL patterns."""
    return any(pattern.search(href) for pattern in CHAPTER_HREF_PATTERNS)


def resolve_href(href: str | None, base_url: str) -> str | None:
    """Resolve an href against the page URL.

    Returns None for empty, fragment-only, script/mail links and hrefs that
    cannot be parsed into an http(s) URL.
    """
    if not href:
        return None
    href = href.strip()
    if not href or href.startswith("#") or href.lower().startswith(_SKIPPED_SCHEMES):
        return None
    try:
        absolute, _fragment = urldefrag(urljoin(base_url, href))
        parts = urlsplit(absolute)
    except ValueError:
        logger.debug("Skipping malformed href", extra={"href": href})
        return None
    if parts.scheme not in ("http", "https") or not parts.netloc:
        return None
    return absolute


def _anchor_urls(
    anchors: Iterable[Tag], base_url: str, accept: Callable[[str, str], bool]
) -> list[str]:
    urls: list[str] = []
    for anchor in anchors:
        href = anchor.get("href")
        if not isinstance(href, str):
            continue
        text = anchor.get_text(strip=True)
        if not accept(href, text):
            continue
        resolved = resolve_href(href, base_url)
        if resolved is not None:
            urls.append(resolved)
    return urls


def _from_list_selectors(soup: BeautifulSoup, base_url: str) -> list[str]:
    for selector in LIST_SELECTORS:
        urls = _anchor_urls(
            soup.select(selector), base_url, lambda href, text: bool(href and text)
        )
        if urls:
            logger.debug(f"List selector {selector} matched {len(urls)} links")
            return urls
    return []


def _from_containers(soup: BeautifulSoup, base_url: str) -> list[str]:
    for selector in CONTAINER_SELECTORS:
        anchors = [
            anchor
            for container in soup.select(selector)
            for anchor in container.find_all("a")
        ]
        urls = _anchor_urls(
            anchors,
            base_url,
            lambda href, text: bool(text) and looks_like_chapter_text(text),
        )
        if urls:
            logger.debug(f"Container {selector} yielded {len(urls)} links")
            return urls
    return []


def _from_page_scan(soup: BeautifulSoup, base_url: str) -> list[str]:
    base = urlsplit(base_url)
    origin = (base.scheme, base.netloc.lower())
    urls = _anchor_urls(
        soup.find_all("a"),
        base_url,
        lambda href, text: bool(text)
        and (looks_like_chapter_text(text) or looks_like_chapter_href(href)),
    )
    return [
        url
        for url in urls
        if (urlsplit(url).scheme, urlsplit(url).netloc.lower()) == origin
    ]


def _from_novel_id(soup: BeautifulSoup, base_url: str) -> list[str]:
    fragment = novel_id_fragment(base_url)
    if fragment is None:
        return []
    marker = f"/{fragment}/"
    page = base_url.rstrip("/")
    urls = _anchor_urls(
        soup.find_all("a", href=True), base_url, lambda href, text: True
    )
    return [url for url in urls if marker in url and url.rstrip("/") != page]


LINK_STRATEGIES: tuple[LinkStrategy, ...] = (
    LinkStrategy("list-selectors", _from_list_selectors),
    LinkStrategy("container-scan", _from_containers),
    LinkStrategy("page-scan", _from_page_scan),
    LinkStrategy("novel-id", _from_novel_id),
)


def chapter_sort_key(url: str) -> tuple[int, int, str]:
    """Sort key from the chapter number embedded in a URL.

    The number is the first integer of the last non-empty path segment, so
    ``/77/10/`` and ``/77/10.html`` both give 10. When that segment has no
    digits the query string is tried, then the earlier path segments from
    right to left. URLs without any integer sort after numbered ones,
    lexicographically.
    """
    parts = urlsplit(url)
    segments = [segment for segment in parts.path.split("/") if segment]
    candidates = segments[-1:] + [parts.query] + segments[-2::-1]
    for candidate in candidates:
        match = _DIGITS_RE.search(candidate)
        if match:
            return (0, int(match.group(0)), "")
    return (1, 0, url)


def extract_links(toc_html: str, base_url: str) -> list[DiscoveredLink]:
    """Discover the ordered, duplicate-free chapter links of a novel.

    Args:
        toc_html: HTML of the table-of-contents page
        base_url: URL the page was served from, used to resolve hrefs

    Returns:
        Links sorted by chapter number with their discovery indices

    Raises:
        NoLinksFoundError: If no strategy finds any chapter link
    """
    soup = BeautifulSoup(toc_html, "html.parser")

    for strategy in LINK_STRATEGIES:
        candidates = strategy.collect(soup, base_url)
        unique = list(dict.fromkeys(candidates))
        if not unique:
            continue
        ordered = sorted(unique, key=chapter_sort_key)
        logger.info(
            f"Strategy {strategy.name} found {len(ordered)} chapter links",
            extra={"strategy": strategy.name, "count": len(ordered)},
        )
        return [DiscoveredLink(url=url, index=i) for i, url in enumerate(ordered)]

    raise NoLinksFoundError(
        f"No chapter links found on {base_url}", url=base_url
    )
