"""Shared pytest fixtures for unit tests.

Provides deterministic replacements for the crawler's sources of
nondeterminism: a seeded random generator and a sleep function that records
requested delays instead of waiting.
"""

import logging
import random
from collections.abc import Iterator
from pathlib import Path

import pytest

from novelcrawl.core.config import Settings


class RecordingSleep:
    """Awaitable stand-in for asyncio.sleep that records delays."""

    def __init__(self) -> None:
        self.delays: list[float] = []

    async def __call__(self, delay: float) -> None:
        self.delays.append(delay)


@pytest.fixture
def sleeper() -> RecordingSleep:
    """Sleep function that returns immediately and remembers each delay."""
    return RecordingSleep()


@pytest.fixture
def rng() -> random.Random:
    """Seeded random source for user agents, jitter and chunk delays."""
    return random.Random(1234)


@pytest.fixture
def settings(tmp_path: Path) -> Settings:
    """Settings with artifacts and logs redirected into a temp directory."""
    return Settings(
        output_dir=tmp_path / "downloads",
        log_file=tmp_path / "novelcrawl.log",
    )


@pytest.fixture(autouse=True)
def reset_package_logger() -> Iterator[None]:
    """Drop handlers that get_logger attaches to the package loggers.

    Stream handlers bind to the stderr pytest captured for one test; left in
    place they write to a closed stream in later tests.
    """
    yield
    for name in list(logging.Logger.manager.loggerDict):
        if name != "novelcrawl" and not name.startswith("novelcrawl."):
            continue
        package_logger = logging.getLogger(name)
        for handler in list(package_logger.handlers):
            package_logger.removeHandler(handler)
            handler.close()


__all__ = ["RecordingSleep", "reset_package_logger", "rng", "settings", "sleeper"]
