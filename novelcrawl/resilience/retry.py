"""Retry policy for page fetches.

Encapsulates the attempt budget and the jittered exponential backoff used by
the page fetcher. The policy only computes decisions; the fetcher owns the
loop so that non-retryable outcomes (anti-bot pages, 404 fallbacks) can exit
it without going through exceptions.

Example:
    >>> policy = RetryPolicy(max_attempts=3, rng=random.Random(7))
    >>> policy.should_retry(attempt=0)
    True
    >>> 1.0 <= policy.get_delay(0) < 2.0
    True
"""

import random

from novelcrawl.core.errors import CrawlError


class RetryPolicy:
    """Configurable retry policy with exponential backoff.

    Delay for a 0-indexed attempt is
    ``min(2 ** attempt * base_delay, max_delay) + uniform(0, jitter)`` so that
    concurrent tasks do not hammer the target in lockstep.

    Attributes:
        max_attempts: Total attempts including the first one (default: 3)
        base_delay: Base delay in seconds (default: 1.0)
        jitter: Upper bound of random jitter in seconds (default: 1.0)
        max_delay: Cap for the exponential part in seconds (default: 8.0)
    """

    def __init__(
        self,
        max_attempts: int = 3,
        base_delay: float = 1.0,
        jitter: float = 1.0,
        max_delay: float = 8.0,
        rng: random.Random | None = None,
    ):
        """Initialize retry policy.

        Args:
            max_attempts: Total attempts including the first one
            base_delay: Base delay in seconds
            jitter: Upper bound of the uniform jitter in seconds
            max_delay: Cap for the exponential component in seconds
            rng: Random source for jitter (defaults to a fresh Random)
        """
        self.max_attempts = max_attempts
        self.base_delay = base_delay
        self.jitter = jitter
        self.max_delay = max_delay
        self._rng = rng or random.Random()

    def should_retry(self, attempt: int, error: CrawlError | None = None) -> bool:
        """Decide whether another attempt is allowed.

        Args:
            attempt: 0-indexed number of the attempt that just failed
            error: The classified failure; non-retryable kinds never retry

        Returns:
            True if the caller should sleep and try again
        """
        if error is not None and not error.retryable:
            return False
        return attempt + 1 < self.max_attempts

    def get_delay(self, attempt: int) -> float:
        """Calculate delay for retry attempt with jitter.

        Args:
            attempt: Current attempt number (0-indexed)

        Returns:
            Delay in seconds with added jitter
        """
        base = min(self.base_delay * (2**attempt), self.max_delay)
        return base + self._rng.uniform(0, self.jitter)
