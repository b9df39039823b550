"""Chapter page parsing: title and cleaned body text."""

from __future__ import annotations

import logging

from bs4 import BeautifulSoup

from novelcrawl.core.errors import NoContentError
from novelcrawl.core.models import Chapter
from novelcrawl.processing.text_cleaning import clean_text

logger = logging.getLogger(__name__)

TITLE_SELECTORS: tuple[str, ...] = (
    "h1",
    ".chapter-title",
    ".article-title",
    "#chapter-title",
    ".title",
)

CONTENT_SELECTORS: tuple[str, ...] = (
    "#content",
    ".chapter-content",
    ".article-content",
    ".content",
    "#chapter-content",
    ".read-content",
    ".article",
)

UNTITLED_CHAPTER = "未命名章节"


def _first_text(soup: BeautifulSoup, selectors: tuple[str, ...], separator: str) -> str:
    for selector in selectors:
        for element in soup.select(selector):
            text = element.get_text(separator).strip()
            if text:
                return text
    return ""


def extract_chapter(html: str, url: str, index: int = 0) -> Chapter:
    """Parse a chapter page into a Chapter.

    The title falls back to a placeholder; a missing body is fatal.

    Args:
        html: Chapter page HTML
        url: Page URL, kept as the chapter's source
        index: Discovery index of the chapter link

    Returns:
        Chapter with cleaned title and content

    Raises:
        NoContentError: If no content selector yields text
    """
    soup = BeautifulSoup(html, "html.parser")

    title = " ".join(_first_text(soup, TITLE_SELECTORS, " ").split())
    if not title:
        title = UNTITLED_CHAPTER

    raw_body = _first_text(soup, CONTENT_SELECTORS, "\n")
    content = clean_text(raw_body) if raw_body else ""
    if not content:
        raise NoContentError(f"Cannot extract chapter content: {url}", url=url)

    logger.debug(
        f"Extracted chapter {title!r}",
        extra={"url": url, "index": index, "length": len(content)},
    )
    return Chapter(title=title, content=content, source_url=url, original_index=index)
