"""Unit tests for the fetch retry policy."""

import random

from novelcrawl.core.errors import ForbiddenError, TransportError
from novelcrawl.resilience.retry import RetryPolicy


class TestRetryDecision:
    """Attempt budget and retryability."""

    def test_retries_until_budget_is_spent(self) -> None:
        policy = RetryPolicy(max_attempts=3)
        assert policy.should_retry(0) is True
        assert policy.should_retry(1) is True
        assert policy.should_retry(2) is False

    def test_transport_errors_are_retried(self) -> None:
        policy = RetryPolicy(max_attempts=3)
        assert policy.should_retry(0, TransportError("timeout")) is True

    def test_forbidden_is_never_retried(self) -> None:
        policy = RetryPolicy(max_attempts=3)
        assert policy.should_retry(0, ForbiddenError("captcha")) is False

    def test_retryable_override(self) -> None:
        policy = RetryPolicy(max_attempts=3)
        error = TransportError("loop", cause="redirect-loop", retryable=False)
        assert policy.should_retry(0, error) is False


class TestRetryDelay:
    """Exponential backoff with jitter."""

    def test_delay_grows_exponentially(self) -> None:
        policy = RetryPolicy(base_delay=1.0, jitter=0.0)
        assert [policy.get_delay(n) for n in range(4)] == [1.0, 2.0, 4.0, 8.0]

    def test_delay_is_capped(self) -> None:
        policy = RetryPolicy(base_delay=1.0, jitter=0.0, max_delay=8.0)
        assert policy.get_delay(10) == 8.0

    def test_jitter_is_bounded(self) -> None:
        policy = RetryPolicy(base_delay=1.0, jitter=1.0, rng=random.Random(42))
        delays = [policy.get_delay(0) for _ in range(50)]
        assert all(1.0 <= delay <= 2.0 for delay in delays)
        assert len(set(delays)) > 1
