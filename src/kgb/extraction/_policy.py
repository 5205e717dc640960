"""Retry policy for pending extractions.

Xcode writes result bundles asynchronously: the bundle directory appears
first and the manifest becomes queryable some seconds later. Extraction is
therefore retried on a fixed schedule until it succeeds or the budget runs
out.
"""

from dataclasses import dataclass

DEFAULT_MAX_ATTEMPTS = 12
DEFAULT_DELAY = 5.0


@dataclass(frozen=True, slots=True)
class RetryPolicy:
    """Fixed-delay retry schedule.

    The delay is applied before every attempt, so the default schedule spans
    roughly one minute. A manual retry skips the delay before its first
    attempt.

    Attributes:
        max_attempts: Attempts before the entry is marked failed.
        delay: Seconds to wait before each attempt.
    """

    max_attempts: int = DEFAULT_MAX_ATTEMPTS
    delay: float = DEFAULT_DELAY

    def __post_init__(self) -> None:
        """Validate the schedule.

        Raises:
            ValueError: If max_attempts is below 1 or delay is negative.
        """
        if self.max_attempts < 1:
            msg = f"max_attempts must be at least 1, got {self.max_attempts}"
            raise ValueError(msg)
        if self.delay < 0:
            msg = f"delay must not be negative, got {self.delay}"
            raise ValueError(msg)

    def delay_before(self, attempt: int, *, immediate: bool = False) -> float:
        """Return the delay before an attempt.

        Args:
            attempt: The attempt number (1-indexed).
            immediate: Whether the first attempt should start without delay.

        Returns:
            Seconds to wait.
        """
        if immediate and attempt == 1:
            return 0.0
        return self.delay

    @property
    def budget(self) -> float:
        """Return the total time spent waiting across all attempts."""
        return self.max_attempts * self.delay
