"""Failed chapter logging for crawl runs.

Provides structured JSONL logging for chapters that could not be downloaded.
Each entry records the chapter URL, its discovery index and the classified
error so a later run (or a human) can see which parts of a novel are missing.

Example:
    >>> from pathlib import Path
    >>> from novelcrawl.resilience.failed_chapters import FailedChapterLogger
    >>>
    >>> log = FailedChapterLogger(Path("failed_chapters.jsonl"))
    >>> log.log_failure(
    ...     url="https://www.xs5200.net/44_44108/123.html",
    ...     index=12,
    ...     novel_name="斗破苍穹",
    ...     error=NotFoundError("page missing"),
    ... )
"""

import json
from datetime import datetime, timezone
from pathlib import Path
from typing import TypedDict

from novelcrawl.core.errors import CrawlError


class FailedChapterEntry(TypedDict):
    """Schema for JSONL log entries of failed chapters.

    Attributes:
        url: Chapter page URL
        index: Discovery index of the chapter
        novel_name: Novel the chapter belongs to
        timestamp: ISO 8601 timestamp with timezone (UTC)
        error_kind: Classified error kind (e.g. transport, forbidden)
        error_cause: Finer-grained cause (e.g. timeout, anti-bot)
        error_message: Human-readable error message
    """

    url: str
    index: int
    novel_name: str
    timestamp: str
    error_kind: str
    error_cause: str
    error_message: str


class FailedChapterLogger:
    """Append-only JSONL log of chapters that failed during a crawl.

    Attributes:
        log_path: Path to the JSONL log file
    """

    def __init__(self, log_path: Path) -> None:
        """Initialize the failed chapter logger.

        Args:
            log_path: Path to the JSONL log file where failures will be recorded
        """
        self.log_path = log_path

    def log_failure(
        self,
        url: str,
        index: int,
        novel_name: str,
        error: CrawlError,
    ) -> None:
        """Append one failed chapter entry to the log file.

        Args:
            url: Chapter page URL
            index: Discovery index of the chapter
            novel_name: Novel being crawled
            error: Classified error that caused the failure
        """
        entry: FailedChapterEntry = {
            "url": url,
            "index": index,
            "novel_name": novel_name,
            "timestamp": datetime.now(timezone.utc).isoformat(),
            "error_kind": error.kind.value,
            "error_cause": error.cause,
            "error_message": error.message,
        }

        # Append to log file (create if doesn't exist)
        self.log_path.parent.mkdir(parents=True, exist_ok=True)
        with open(self.log_path, "a", encoding="utf-8") as f:
            f.write(json.dumps(entry, ensure_ascii=False) + "\n")
