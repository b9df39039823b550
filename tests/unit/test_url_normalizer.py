"""Unit tests for table-of-contents URL normalization."""

import pytest

from novelcrawl.core.url_normalizer import (
    find_site_rule,
    normalize_url,
    novel_id_fragment,
)


@pytest.mark.parametrize(
    "raw,expected",
    [
        ("www.xs5200.net/44_44108", "https://www.xs5200.net/44_44108/"),
        ("  https://www.xs5200.net/44_44108/  ", "https://www.xs5200.net/44_44108/"),
        ("http://m.xs5200.net/44_44108", "https://www.xs5200.net/44_44108/"),
        ("xs5200.net/book/44_44108/index", "https://www.xs5200.net/44_44108/"),
        (
            "www.xs5200.net/44_44108/123.html",
            "https://www.xs5200.net/44_44108/123.html",
        ),
        ("https://example.com/book/12/", "https://example.com/book/12"),
        ("http://example.com/book/12", "http://example.com/book/12"),
        ("example.com/88_1234", "https://example.com/88_1234"),
    ],
)
def test_normalize_url(raw: str, expected: str) -> None:
    assert normalize_url(raw) == expected


@pytest.mark.parametrize(
    "raw",
    [
        "www.xs5200.net/44_44108",
        "https://www.xs5200.net/44_44108//",
        "example.com/book/12/",
        "ftp://files.example.com/a/",
        "https://www.xs5200.net/44_44108/9.html",
    ],
)
def test_normalize_url_is_idempotent(raw: str) -> None:
    once = normalize_url(raw)
    assert normalize_url(once) == once


def test_site_rule_matches_subdomains_only_of_its_domain() -> None:
    assert find_site_rule("https://m.xs5200.net/1_2") is not None
    assert find_site_rule("https://notxs5200.net/1_2") is None


@pytest.mark.parametrize(
    "url,expected",
    [
        ("https://www.xs5200.net/44_44108/", "44_44108"),
        ("https://example.com/book/9876", "9876"),
        ("https://example.com/book/9876/index", "9876"),
        ("https://example.com/about", None),
    ],
)
def test_novel_id_fragment(url: str, expected: str | None) -> None:
    assert novel_id_fragment(url) == expected
