"""Text cleanup pipeline for extracted chapter bodies.

Each step is a named pure transform so it can be tested on literal strings
and reordered without touching the extractor. ``clean_text`` applies
``CLEANING_PIPELINE`` in order.

Example:
    >>> clean_text("  第一段  \\n\\n  “你好”  ")
    '第一段\\n\\n"你好"'
"""

from __future__ import annotations

import re
from collections.abc import Callable
from dataclasses import dataclass


@dataclass(frozen=True)
class TextTransform:
    """Named text transform.

    Attributes:
        name: Identifier of the step
        apply: Pure function from text to text
    """

    name: str
    apply: Callable[[str], str]


def _substitute(pattern: str, replacement: str, flags: int = 0) -> Callable[[str], str]:
    compiled = re.compile(pattern, flags)
    return lambda text: compiled.sub(replacement, text)


CLEANING_PIPELINE: tuple[TextTransform, ...] = (
    TextTransform("strip-edges", str.strip),
    TextTransform("collapse-whitespace", _substitute(r"\s+", "\n")),
    TextTransform(
        "straight-quotes",
        lambda text: text.translate(
            str.maketrans({"“": '"', "”": '"', "‘": "'", "’": "'"})
        ),
    ),
    TextTransform("paragraph-breaks", _substitute(r"\n+", "\n\n")),
    # Only the leading line: "<novel> latest chapter" breadcrumbs
    TextTransform("strip-latest-chapter-banner", _substitute(r"\A.*?最新章节.*?\n", "")),
    TextTransform("strip-pagination-prompt", _substitute(r"本章未完.*?下一页", "")),
    TextTransform("strip-bookmark-reminder", _substitute(r"（记住.*?下次阅读）", "")),
    TextTransform("strip-mobile-footer", _substitute(r"手机用户请访问.*$", "")),
    TextTransform("trim", str.strip),
)


def clean_text(text: str) -> str:
    """Run ``text`` through every transform of the cleaning pipeline."""
    for transform in CLEANING_PIPELINE:
        text = transform.apply(text)
    return text
