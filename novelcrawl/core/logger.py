"""Structured logging with rotation for the novel crawler.

This module provides a configured logger with console and rotating file handlers.
Logs are human-readable with timestamp, level, module, and message.

Examples:
    >>> from novelcrawl.core.logger import get_logger
    >>> logger = get_logger("novelcrawl")
    >>> logger.info("Fetching table of contents")
    2026-10-19 23:45:00,123 | INFO | novelcrawl | Fetching table of contents
"""

import logging
from logging.handlers import RotatingFileHandler
from pathlib import Path

# Human-readable log format with timestamp, level, module name, and message
LOG_FORMAT = "%(asctime)s | %(levelname)s | %(name)s | %(message)s"

# Default log file path (in .cache directory to keep project root clean)
DEFAULT_LOG_FILE = Path(".cache/novelcrawl.log")

# Rotating file handler limits (100MB max file size, 5 backup files)
MAX_LOG_SIZE_BYTES = 100 * 1024 * 1024  # 100MB
BACKUP_COUNT = 5

# httpx logs every request at INFO; a crawl issues thousands of them
NOISY_LIBRARY_LOGGERS = ("httpx", "httpcore")


def get_logger(
    name: str,
    log_level: str = "INFO",
    log_file: Path | None = None,
) -> logging.Logger:
    """Configure the crawler's logger for a CLI or API process.

    Console output goes to stderr at INFO; the rotating file (100MB, 5
    backups) records everything down to DEBUG, including the per-request
    ``extra`` context that modules attach. HTTP client libraries are turned
    down to WARNING so chapter fetches do not flood the console.

    Entry points configure the package root logger ("novelcrawl") once; modules
    log through ``logging.getLogger(__name__)`` and propagate to it.

    Args:
        name: Logger name (typically "novelcrawl")
        log_level: Level name (DEBUG, INFO, WARNING, ERROR, CRITICAL), any case
        log_file: Log file path, defaults to .cache/novelcrawl.log; parent
            directories are created

    Returns:
        Configured logger. Calling again replaces its handlers.

    Raises:
        ValueError: If log_level is not a valid logging level name.
        OSError: If log file directory cannot be created.
    """
    level = logging.getLevelName(log_level.upper())
    if not isinstance(level, int):
        raise ValueError(f"Invalid log level: {log_level}")

    logger = logging.getLogger(name)
    logger.setLevel(level)
    logger.handlers.clear()

    path = log_file or DEFAULT_LOG_FILE
    path.parent.mkdir(parents=True, exist_ok=True)

    formatter = logging.Formatter(LOG_FORMAT)
    handlers: list[tuple[logging.Handler, int]] = [
        (logging.StreamHandler(), logging.INFO),
        (
            RotatingFileHandler(
                path,
                maxBytes=MAX_LOG_SIZE_BYTES,
                backupCount=BACKUP_COUNT,
                encoding="utf-8",
            ),
            logging.DEBUG,
        ),
    ]
    for handler, handler_level in handlers:
        handler.setLevel(handler_level)
        handler.setFormatter(formatter)
        logger.addHandler(handler)

    for library in NOISY_LIBRARY_LOGGERS:
        logging.getLogger(library).setLevel(logging.WARNING)

    return logger
