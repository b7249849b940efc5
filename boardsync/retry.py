"""Retry-with-backoff policy for outbound API calls."""

import time
from dataclasses import dataclass, field
from typing import Any, Callable, TypeVar

import requests

from boardsync.config import DEFAULT_RETRYABLE_MARKERS, RetryConfig
from boardsync.errors import ConfigurationError
from boardsync.logger import get_logger

logger = get_logger("retry")

T = TypeVar("T")


@dataclass
class RetryPolicy:
    """
    Bounded retry for transient failures.

    Attempt n (1-based) waits base_delay_s * 2**(n-2) seconds before running,
    so with the defaults the waits are 1s then 2s.

    Attributes:
        max_attempts: Total attempts including the first
        base_delay_s: Delay before the second attempt
        retryable_markers: Case-insensitive substrings of an error message
            that mark it as transient
        sleep: Pause function (swapped out in tests)
    """

    max_attempts: int = 3
    base_delay_s: float = 1.0
    retryable_markers: tuple[str, ...] = DEFAULT_RETRYABLE_MARKERS
    sleep: Callable[[float], None] = field(default=time.sleep, repr=False)

    @classmethod
    def from_config(cls, config: RetryConfig) -> "RetryPolicy":
        return cls(
            max_attempts=config.max_attempts,
            base_delay_s=config.base_delay_s,
            retryable_markers=config.retryable_markers,
        )

    def is_retryable(self, error: BaseException) -> bool:
        """Decide whether an error is worth another attempt."""
        if isinstance(error, ConfigurationError):
            return False
        if isinstance(error, (requests.Timeout, requests.ConnectionError)):
            return True
        status_code = getattr(error, "status_code", None)
        if status_code in (429, 500, 502, 503, 504):
            return True
        message = str(error).lower()
        return any(marker.lower() in message for marker in self.retryable_markers)

    def delay_for(self, attempt: int) -> float:
        """Seconds to wait before the given attempt (1-based)."""
        if attempt <= 1:
            return 0.0
        return self.base_delay_s * (2 ** (attempt - 2))

    def call(self, fn: Callable[..., T], *args: Any, **kwargs: Any) -> T:
        """
        Run fn, retrying transient failures.

        Raises:
            The last error once attempts are exhausted, or the first
            non-retryable error immediately
        """
        for attempt in range(1, self.max_attempts + 1):
            delay = self.delay_for(attempt)
            if delay:
                logger.info(
                    "retry.wait",
                    attempt=attempt,
                    max_attempts=self.max_attempts,
                    delay_s=delay,
                )
                self.sleep(delay)
            try:
                return fn(*args, **kwargs)
            except Exception as e:
                if not self.is_retryable(e):
                    logger.warning("retry.non_retryable", error=str(e), error_type=type(e).__name__)
                    raise
                if attempt == self.max_attempts:
                    logger.error("retry.exhausted", attempts=attempt, error=str(e))
                    raise
                logger.warning("retry.attempt_failed", attempt=attempt, error=str(e))
        raise RuntimeError("unreachable: retry loop exited without result")
