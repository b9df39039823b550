"""Body inspection helpers for fetched pages.

Detects client-side redirects, anti-bot interstitials and soft 404 pages in
an otherwise successful response, and builds the alternate URLs tried when a
page answers with a real 404.
"""

from __future__ import annotations

import re
from urllib.parse import urlsplit, urlunsplit

ANTI_BOT_MARKERS: tuple[str, ...] = (
    "验证码",
    "访问太频繁",
    "请输入验证码",
    "访问受限",
)

# A soft 404 page must contain every marker of one group
NOT_FOUND_MARKER_GROUPS: tuple[tuple[str, ...], ...] = (("404", "页面不存在"),)

_META_TAG_RE = re.compile(r"<meta\b[^>]*>", re.IGNORECASE)
_REFRESH_RE = re.compile(r"http-equiv\s*=\s*[\"']?refresh", re.IGNORECASE)
_REFRESH_URL_RE = re.compile(
    r"content\s*=\s*[\"'][^\"']*?url\s*=\s*['\"]?([^\"'>\s]+)", re.IGNORECASE
)
_LOCATION_RE = re.compile(
    r"window\.location(?:\.href)?\s*=\s*['\"]([^'\"]+)['\"]", re.IGNORECASE
)
_META_CHARSET_RE = re.compile(
    rb"<meta[^>]+charset\s*=\s*[\"']?([a-zA-Z0-9_-]+)", re.IGNORECASE
)
_TLD_SWAPS = ((".com", ".net"), (".net", ".com"))


def find_client_redirect(html: str) -> tuple[str, str] | None:
    """Return the target of a meta-refresh tag or location assignment.

    Args:
        html: Page body

    Returns:
        ``(target, via)`` where ``target`` is the raw, possibly relative URL
        and ``via`` is ``"meta"`` or ``"script"``; None when no redirect
    """
    for tag in _META_TAG_RE.findall(html):
        if _REFRESH_RE.search(tag):
            match = _REFRESH_URL_RE.search(tag)
            if match:
                return match.group(1), "meta"
    match = _LOCATION_RE.search(html)
    if match:
        return match.group(1), "script"
    return None


def find_anti_bot_marker(html: str) -> str | None:
    """Return the first anti-bot phrase present in the body, if any."""
    for marker in ANTI_BOT_MARKERS:
        if marker in html:
            return marker
    return None


def is_not_found_page(html: str) -> bool:
    """Check whether a 200 response is really an error page."""
    return any(
        all(marker in html for marker in group) for group in NOT_FOUND_MARKER_GROUPS
    )


def looks_like_html(body: str) -> bool:
    """Check the body starts like an HTML document."""
    head = body.lstrip()[:15].lower()
    return head.startswith("<!doctype") or head.startswith("<html")


def sniff_charset(content: bytes) -> str | None:
    """Find a ``<meta charset>`` declaration in the first bytes of a page."""
    match = _META_CHARSET_RE.search(content[:2048])
    if match:
        return match.group(1).decode("ascii").lower()
    return None


def alternate_urls(url: str) -> list[str]:
    """Build alternate URL variants to try after a 404.

    Variants, in order: protocol swap, ``www.`` removed or added, ``m.``
    mobile subdomain, ``.com``/``.net`` swap. Duplicates and the original URL
    are dropped.

    Args:
        url: URL that answered 404

    Returns:
        Ordered list of candidate URLs
    """
    parts = urlsplit(url)
    netloc = parts.netloc
    candidates: list[str] = []

    swapped_scheme = "http" if parts.scheme == "https" else "https"
    candidates.append(urlunsplit(parts._replace(scheme=swapped_scheme)))

    if netloc.startswith("www."):
        bare = netloc[len("www."):]
        candidates.append(urlunsplit(parts._replace(netloc=bare)))
        candidates.append(urlunsplit(parts._replace(netloc="m." + bare)))
    elif netloc.startswith("m."):
        bare = netloc[len("m."):]
        candidates.append(urlunsplit(parts._replace(netloc="www." + bare)))
    else:
        candidates.append(urlunsplit(parts._replace(netloc="www." + netloc)))
        candidates.append(urlunsplit(parts._replace(netloc="m." + netloc)))

    for old, new in _TLD_SWAPS:
        if old in netloc:
            candidates.append(
                urlunsplit(parts._replace(netloc=netloc.replace(old, new)))
            )
            break

    seen = {url}
    unique: list[str] = []
    for candidate in candidates:
        if candidate not in seen:
            seen.add(candidate)
            unique.append(candidate)
    return unique
