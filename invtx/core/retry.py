"""
Retry policy for failed transactions.

A failed transaction is retried on the very next execution cycle; there is no
backoff. The policy only decides when to stop.
"""

from dataclasses import dataclass

DEFAULT_ALLOWED_RETRIES = 5


def should_abandon(failure_count: int, allowed_retries: int = DEFAULT_ALLOWED_RETRIES) -> bool:
    """True once a transaction has failed ``allowed_retries`` times."""
    return failure_count >= allowed_retries


@dataclass(frozen=True)
class RetryPolicy:
    """
    Bounded retry policy.

    Attributes:
        allowed_retries: Failed attempts after which a transaction is abandoned
    """

    allowed_retries: int = DEFAULT_ALLOWED_RETRIES

    def __post_init__(self):
        if self.allowed_retries < 1:
            msg = f"allowed_retries must be at least 1, got {self.allowed_retries}"
            raise ValueError(msg)

    def should_abandon(self, failure_count: int) -> bool:
        return should_abandon(failure_count, self.allowed_retries)

    def remaining(self, failure_count: int) -> int:
        """Attempts left before the transaction is abandoned."""
        return max(self.allowed_retries - failure_count, 0)
