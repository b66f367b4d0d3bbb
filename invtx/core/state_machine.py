"""
Transaction State Machine - Manages transaction lifecycle transitions.

State Diagram:

    ┌─────────┐  record_failure()
    │ PENDING │ ◄──────────────┐ (retries left)
    └────┬────┘ ───────────────┘
         │
    ┌────┴──────────────┐
    │                   │
    ▼                   ▼
┌───────────┐   ┌────────────────────┐
│ SUCCEEDED │   │ PERMANENTLY_FAILED │
└───────────┘   └────────────────────┘
"""

from collections.abc import Callable
from datetime import UTC, datetime
from typing import Any

from invtx.core.exceptions import InvalidStateTransitionError
from invtx.core.retry import RetryPolicy
from invtx.core.transaction import Transaction
from invtx.core.types import FailureReason, TransactionStatus


class TransactionStateMachine:
    """
    State machine for transaction lifecycle.

    Valid Transitions:
        PENDING → SUCCEEDED (via mark_succeeded)
        PENDING → PERMANENTLY_FAILED (via record_failure, once retries run out)

    ``record_failure`` is the only place ``failure_count`` changes.

    Usage:
        >>> sm = TransactionStateMachine(RetryPolicy(allowed_retries=5))
        >>> abandoned = sm.record_failure(tx, FailureReason.OUTBOUND_MISMATCH)
        >>> if not abandoned:
        ...     retry_queue.append(tx)
    """

    VALID_TRANSITIONS = {
        TransactionStatus.PENDING: [
            TransactionStatus.SUCCEEDED,
            TransactionStatus.PERMANENTLY_FAILED,
        ],
        TransactionStatus.SUCCEEDED: [],  # Terminal state
        TransactionStatus.PERMANENTLY_FAILED: [],  # Terminal state
    }

    def __init__(
        self,
        retry_policy: RetryPolicy | None = None,
        on_transition: Callable[[Transaction, TransactionStatus, TransactionStatus], Any]
        | None = None,
    ):
        """
        Initialize the state machine.

        Args:
            retry_policy: Decides when a failing transaction is abandoned
            on_transition: Optional callback for status transitions
        """
        self.retry_policy = retry_policy or RetryPolicy()
        self._on_transition = on_transition

    def _validate_transition(
        self, transaction: Transaction, target_status: TransactionStatus
    ) -> None:
        valid_targets = self.VALID_TRANSITIONS.get(transaction.status, [])

        if target_status not in valid_targets:
            raise InvalidStateTransitionError(
                transaction.transaction_id, transaction.status, target_status
            )

    def _transition(
        self, transaction: Transaction, target_status: TransactionStatus
    ) -> Transaction:
        old_status = transaction.status
        self._validate_transition(transaction, target_status)

        transaction.status = target_status
        if target_status.is_terminal:
            transaction.completed_at = datetime.now(UTC)

        if self._on_transition:
            self._on_transition(transaction, old_status, target_status)

        return transaction

    def mark_succeeded(self, transaction: Transaction) -> Transaction:
        """
        Mark a transaction as committed.

        Raises:
            InvalidStateTransitionError: If the transaction is not PENDING
        """
        return self._transition(transaction, TransactionStatus.SUCCEEDED)

    def record_failure(self, transaction: Transaction, reason: FailureReason) -> bool:
        """
        Count one failed attempt and abandon the transaction if it is out of retries.

        Args:
            transaction: The transaction whose validation failed
            reason: Which side failed

        Returns:
            True if the transaction is now PERMANENTLY_FAILED, False if it
            should be retried

        Raises:
            InvalidStateTransitionError: If the transaction is not PENDING
        """
        if transaction.status is not TransactionStatus.PENDING:
            raise InvalidStateTransitionError(
                transaction.transaction_id,
                transaction.status,
                TransactionStatus.PERMANENTLY_FAILED,
            )

        transaction.failure_count += 1
        transaction.last_failure = reason

        if self.retry_policy.should_abandon(transaction.failure_count):
            self._transition(transaction, TransactionStatus.PERMANENTLY_FAILED)
            transaction.last_failure = FailureReason.RETRY_EXHAUSTED
            return True

        return False

    def can_retry(self, transaction: Transaction) -> bool:
        return transaction.status is TransactionStatus.PENDING and not (
            self.retry_policy.should_abandon(transaction.failure_count)
        )
