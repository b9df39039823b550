"""URL canonicalization for table-of-contents pages.

Turns whatever the user pasted into a crawl-ready base URL. Site-specific
rewrites are data (``SITE_RULES``) so new sites can be added without touching
the normalization logic.

Example:
    >>> normalize_url("www.xs5200.net/44_44108")
    'https://www.xs5200.net/44_44108/'
    >>> normalize_url("https://example.com/book/12/")
    'https://example.com/book/12'
"""

from __future__ import annotations

import re
from dataclasses import dataclass, field
from urllib.parse import urlparse

_SCHEME_RE = re.compile(r"^[a-zA-Z][a-zA-Z0-9+.-]*://")
_SECTION_ID_RE = re.compile(r"(\d+)_(\d+)")
_DIGITS_RE = re.compile(r"\d+")


@dataclass(frozen=True)
class SiteRule:
    """Canonicalization rule for one site family.

    Attributes:
        host_suffix: Matches hosts equal to or ending with this domain
        toc_template: Template using ``{section}`` and ``{novel_id}`` for the
            canonical table-of-contents URL
        brand_markers: Site names that make a page ``<title>`` useless as a
            novel name
    """

    host_suffix: str
    toc_template: str
    brand_markers: tuple[str, ...] = field(default_factory=tuple)

    def matches(self, url: str) -> bool:
        host = (urlparse(url).hostname or "").lower()
        return host == self.host_suffix or host.endswith("." + self.host_suffix)


SITE_RULES: tuple[SiteRule, ...] = (
    SiteRule(
        host_suffix="xs5200.net",
        toc_template="https://www.xs5200.net/{section}_{novel_id}/",
        brand_markers=("5200小说网",),
    ),
)


def find_site_rule(url: str) -> SiteRule | None:
    """Return the first site rule matching the URL's host, if any."""
    for rule in SITE_RULES:
        if rule.matches(url):
            return rule
    return None


def normalize_url(raw: str) -> str:
    """Canonicalize a raw site URL into a crawl-ready base URL.

    Steps: trim whitespace, drop trailing slashes, prepend ``https://`` when
    no scheme is present, then apply the first matching ``SiteRule`` to
    non-chapter URLs containing a ``<section>_<id>`` fragment. Unrecognized
    input passes through unchanged. The function is idempotent.

    Args:
        raw: URL as typed by the user

    Returns:
        Normalized URL string
    """
    url = raw.strip().rstrip("/")
    if url and not _SCHEME_RE.match(url):
        url = "https://" + url

    rule = find_site_rule(url)
    if rule is not None and ".html" not in url:
        match = _SECTION_ID_RE.search(urlparse(url).path)
        if match:
            url = rule.toc_template.format(
                section=match.group(1), novel_id=match.group(2)
            )
    return url


def novel_id_fragment(url: str) -> str | None:
    """Extract the path fragment that identifies a novel on its site.

    Prefers a ``<section>_<id>`` fragment such as ``44_44108``; otherwise uses
    the last path segment containing digits.

    Args:
        url: Normalized base URL

    Returns:
        Fragment string, or None if the path carries no numeric identifier
    """
    path = urlparse(url).path
    match = _SECTION_ID_RE.search(path)
    if match:
        return match.group(0)
    for segment in reversed([part for part in path.split("/") if part]):
        if _DIGITS_RE.search(segment):
            return segment
    return None
