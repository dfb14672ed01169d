"""Retry policy with linear-multiplier backoff for the API client."""

from dataclasses import dataclass

from civic_sync.config import ApiConfig
from civic_sync.exceptions import ApiError


@dataclass(frozen=True)
class RetryPolicy:
    """
    Decides whether a failed attempt is retried and how long to wait.

    ``attempts`` is the total number of attempts per request (1 means no
    retry). The wait after attempt ``n`` is ``n * backoff_unit`` seconds.
    """

    attempts: int = 1
    backoff_unit: float = 1.0
    retry_writes: bool = True

    @classmethod
    def from_config(cls, config: ApiConfig) -> "RetryPolicy":
        return cls(
            attempts=max(1, config.retry_attempts),
            backoff_unit=config.backoff_unit,
            retry_writes=config.retry_writes,
        )

    def delay_for(self, attempt: int) -> float:
        """Seconds to wait after the given (1-based) failed attempt."""
        return attempt * self.backoff_unit

    def should_retry(self, error: ApiError, method: str, attempt: int) -> bool:
        if not error.retryable:
            return False
        if attempt >= self.attempts:
            return False
        if method.upper() != "GET" and not self.retry_writes:
            return False
        return True

    def schedule(self) -> list[float]:
        """Every backoff delay a request may incur, in order."""
        return [self.delay_for(attempt) for attempt in range(1, self.attempts)]


__all__ = ["RetryPolicy"]
