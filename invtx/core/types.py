"""
Type definitions and enums shared by the transaction executor.
"""

from dataclasses import dataclass, field
from enum import Enum


class TransactionStatus(Enum):
    """
    Lifecycle status of a transaction.

    State transitions:
        PENDING → SUCCEEDED
                ↓
          PERMANENTLY_FAILED
    """

    PENDING = "pending"
    """Transaction is queued (first attempt or waiting for a retry)"""

    SUCCEEDED = "succeeded"
    """Transaction validated and its changes were committed"""

    PERMANENTLY_FAILED = "permanently_failed"
    """Transaction exhausted its allowed retries"""

    @property
    def is_terminal(self) -> bool:
        return self is not TransactionStatus.PENDING


class TransactionKind(Enum):
    """Selects how the inbound side of a transaction is applied."""

    SLOT = "slot"
    """Inbound content is written into the inbound slot"""

    DROP = "drop"
    """Inbound content is ejected from the actor instead of written to a slot"""


class FailureReason(Enum):
    """Why the last attempt at a transaction did not succeed."""

    OUTBOUND_MISMATCH = "outbound_mismatch"
    """The outbound slot no longer holds the expected content"""

    INBOUND_MISMATCH = "inbound_mismatch"
    """The actor's transient buffer does not hold the expected content"""

    APPLY_ERROR = "apply_error"
    """A collaborator raised while the transaction was being applied"""

    RETRY_EXHAUSTED = "retry_exhausted"
    """The transaction reached its retry bound and was abandoned"""

    @property
    def is_validation_mismatch(self) -> bool:
        return self in (FailureReason.OUTBOUND_MISMATCH, FailureReason.INBOUND_MISMATCH)


@dataclass
class CycleReport:
    """
    Summary of one ``TransactionGroup.execute()`` cycle.

    Attributes:
        processed: Transactions dequeued during the drain loop
        retries_admitted: Transactions moved from the retry queue at cycle start
        succeeded: Transactions that reached SUCCEEDED this cycle
        retried: Transactions put back on the retry queue this cycle
        failed: Transactions that reached PERMANENTLY_FAILED this cycle
        duration: Wall time of the cycle in seconds
    """

    processed: int = 0
    retries_admitted: int = 0
    succeeded: int = 0
    retried: int = 0
    failed: int = 0
    duration: float = 0.0
    failed_ids: list[str] = field(default_factory=list)

    @property
    def is_clean(self) -> bool:
        return self.retried == 0 and self.failed == 0
