"""Configuration module for the novel crawler.

Provides Pydantic-based configuration management with environment variable support
and comprehensive field validation. The defaults are tuned against xs5200.net;
the failure ratio and retry budget are heuristics and live here rather than in
code.

Example:
    >>> from novelcrawl.core.config import Settings
    >>> settings = Settings(concurrency_limit=3)
    >>> print(settings.request_timeout)
    10.0
"""

from pathlib import Path

from pydantic import field_validator, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

DEFAULT_USER_AGENTS = [
    "Mozilla/5.0 (Windows NT 10.0; Win64; x64) AppleWebKit/537.36 "
    "(KHTML, like Gecko) Chrome/121.0.0.0 Safari/537.36",
    "Mozilla/5.0 (Windows NT 10.0; Win64; x64) AppleWebKit/537.36 "
    "(KHTML, like Gecko) Edge/121.0.0.0 Safari/537.36",
    "Mozilla/5.0 (Windows NT 10.0; Win64; x64; rv:122.0) Gecko/20100101 Firefox/122.0",
    "Mozilla/5.0 (Macintosh; Intel Mac OS X 10_15_7) AppleWebKit/605.1.15 "
    "(KHTML, like Gecko) Version/17.2.1 Safari/605.1.15",
]

DEFAULT_COOKIE = "jieqiVisitId=article_articleviews%3D44108"

CONCURRENCY_RANGE = (1, 10)
CHUNK_SIZE_RANGE = (10, 100)


class Settings(BaseSettings):
    """Novel crawler configuration.

    Attributes:
        concurrency_limit: Fetch+extract tasks in flight at once (1-10)
        chunk_size: Links per scheduling chunk (10-100)
        request_timeout: Per-request timeout in seconds
        max_http_redirects: HTTP redirects followed by the client
        max_attempts: Attempts for retryable transport failures
        max_redirect_hops: Extra fetches allowed for client-side redirects
        max_not_found_attempts: Requests allowed on 404, alternates included
        backoff_base_seconds: Base of the exponential retry delay
        backoff_jitter_seconds: Upper bound of the random jitter added to delays
        backoff_cap_seconds: Maximum exponential part of a retry delay
        chunk_delay_min_seconds: Lower bound of the pause between chunks
        chunk_delay_max_seconds: Upper bound of the pause between chunks
        failure_threshold_ratio: Failed share of chapters that aborts a crawl
        verify_tls: Whether to validate TLS certificates
        user_agents: Pool the User-Agent header is drawn from
        cookie: Static Cookie header value
        log_level: Logging level (DEBUG, INFO, WARNING, ERROR, CRITICAL)
        log_file: Rotating log file path
        output_dir: Directory artifacts are written to
        failed_chapters_log: Optional JSONL file recording failed chapters

    Raises:
        ValidationError: If values are out of range or inconsistent

    Example:
        >>> settings = Settings(chunk_size=50, failure_threshold_ratio=0.1)
        >>> settings.max_attempts
        3
    """

    # Batch scheduling
    concurrency_limit: int = 5
    chunk_size: int = 20
    chunk_delay_min_seconds: float = 0.5
    chunk_delay_max_seconds: float = 1.5
    failure_threshold_ratio: float = 0.2

    # HTTP behaviour
    request_timeout: float = 10.0
    max_http_redirects: int = 5
    verify_tls: bool = False
    user_agents: list[str] = DEFAULT_USER_AGENTS
    cookie: str = DEFAULT_COOKIE

    # Retry policy
    max_attempts: int = 3
    max_redirect_hops: int = 2
    max_not_found_attempts: int = 3
    backoff_base_seconds: float = 1.0
    backoff_jitter_seconds: float = 1.0
    backoff_cap_seconds: float = 8.0

    # Output and logging
    output_dir: Path = Path("downloads")
    log_level: str = "INFO"
    log_file: Path = Path(".cache/novelcrawl.log")
    failed_chapters_log: Path | None = None

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        validate_default=True,
        extra="ignore",
    )

    @field_validator("concurrency_limit")
    @classmethod
    def validate_concurrency_limit(cls: type["Settings"], v: int) -> int:
        """Validate concurrency_limit is within 1-10.

        The target sites rate-limit aggressively; more than ten requests in
        flight reliably triggers CAPTCHA pages.

        Raises:
            ValueError: If concurrency_limit is outside [1, 10]
        """
        low, high = CONCURRENCY_RANGE
        if v < low or v > high:
            raise ValueError(f"concurrency_limit must be between {low} and {high}")
        return v

    @field_validator("chunk_size")
    @classmethod
    def validate_chunk_size(cls: type["Settings"], v: int) -> int:
        """Validate chunk_size is within 10-100.

        Raises:
            ValueError: If chunk_size is outside [10, 100]
        """
        low, high = CHUNK_SIZE_RANGE
        if v < low or v > high:
            raise ValueError(f"chunk_size must be between {low} and {high}")
        return v

    @field_validator("failure_threshold_ratio")
    @classmethod
    def validate_failure_threshold_ratio(cls: type["Settings"], v: float) -> float:
        """Validate failure_threshold_ratio is in (0, 1].

        Raises:
            ValueError: If the ratio is not positive or exceeds 1
        """
        if v <= 0 or v > 1:
            raise ValueError("failure_threshold_ratio must be in (0, 1]")
        return v

    @field_validator(
        "max_attempts", "max_not_found_attempts", "max_http_redirects"
    )
    @classmethod
    def validate_positive_counts(cls: type["Settings"], v: int) -> int:
        """Validate attempt and redirect budgets are at least 1.

        Raises:
            ValueError: If the value is not positive
        """
        if v <= 0:
            raise ValueError("attempt and redirect budgets must be positive")
        return v

    @field_validator("user_agents")
    @classmethod
    def validate_user_agents(cls: type["Settings"], v: list[str]) -> list[str]:
        """Validate the user agent pool is not empty.

        Raises:
            ValueError: If no non-blank user agent is configured
        """
        agents = [agent.strip() for agent in v if agent.strip()]
        if not agents:
            raise ValueError("user_agents must contain at least one entry")
        return agents

    @field_validator("log_level")
    @classmethod
    def validate_log_level(cls: type["Settings"], v: str) -> str:
        """Normalize and validate the logging level name.

        Raises:
            ValueError: If log_level is not a standard level name
        """
        level = v.upper()
        if level not in {"DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"}:
            raise ValueError(f"Invalid log level: {v}")
        return level

    @model_validator(mode="after")
    def validate_delay_ranges(self) -> "Settings":
        """Check that delay bounds are non-negative and ordered.

        Returns:
            The validated Settings instance

        Raises:
            ValueError: If a delay is negative or min exceeds max
        """
        if self.chunk_delay_min_seconds < 0 or self.backoff_base_seconds < 0:
            raise ValueError("delays must not be negative")
        if self.chunk_delay_min_seconds > self.chunk_delay_max_seconds:
            raise ValueError(
                "chunk_delay_min_seconds must not exceed chunk_delay_max_seconds"
            )
        if self.backoff_jitter_seconds < 0 or self.backoff_cap_seconds < 0:
            raise ValueError("delays must not be negative")
        return self
