"""Assembly of downloaded chapters into the final text artifact."""

from __future__ import annotations

import re
from datetime import datetime, timezone
from pathlib import Path

from novelcrawl.core.errors import EmptyResultError
from novelcrawl.core.models import Chapter, CrawlResult

CHAPTER_DIVIDER = "\n" + "=" * 50 + "\n\n"

_UNSAFE_FILENAME_RE = re.compile(r'[\\/:*?"<>|\x00-\x1f]')


def format_timestamp(now: datetime) -> str:
    """Format ``now`` as a filename-safe ISO-8601 UTC timestamp.

    Milliseconds and a ``Z`` suffix are kept; ``:`` and ``.`` become ``-``.

    Example:
        >>> format_timestamp(datetime(2024, 3, 1, 8, 5, 9, 120000, tzinfo=timezone.utc))
        '2024-03-01T08-05-09-120Z'
    """
    utc = now.astimezone(timezone.utc)
    iso = utc.strftime("%Y-%m-%dT%H:%M:%S") + f".{utc.microsecond // 1000:03d}Z"
    return iso.replace(":", "-").replace(".", "-")


def build_filename(novel_name: str, now: datetime | None = None) -> str:
    """Build ``{novel_name}_{timestamp}.txt`` with path characters replaced."""
    safe_name = _UNSAFE_FILENAME_RE.sub("_", novel_name.strip()) or "novel"
    stamp = format_timestamp(now or datetime.now(timezone.utc))
    return f"{safe_name}_{stamp}.txt"


def assemble(
    chapters: list[Chapter], novel_name: str, now: datetime | None = None
) -> tuple[str, str]:
    """Join chapters in discovery order into one text.

    Args:
        chapters: Extracted chapters, any order
        novel_name: Novel name for the filename
        now: Timestamp for the filename (defaults to the current UTC time)

    Returns:
        Tuple of (content, filename)

    Raises:
        EmptyResultError: If there are no chapters
    """
    if not chapters:
        raise EmptyResultError("No chapters were downloaded successfully")

    ordered = sorted(chapters, key=lambda chapter: chapter.original_index)
    content = CHAPTER_DIVIDER.join(
        f"{chapter.title}\n\n{chapter.content}\n\n" for chapter in ordered
    )
    return content, build_filename(novel_name, now)


def write_artifact(result: CrawlResult, output_dir: Path) -> Path:
    """Write the assembled text to ``output_dir`` and return its path."""
    output_dir.mkdir(parents=True, exist_ok=True)
    path = output_dir / result.filename
    path.write_text(result.content, encoding="utf-8")
    return path
