"""
All invtx exceptions

Validation mismatches are never raised: the executor records them as
``FailureReason`` values on the transaction. The exceptions below signal
programming and configuration errors.
"""

from invtx.core.types import TransactionStatus


class InvtxError(Exception):
    """Base invtx error"""


class TransactionStateError(InvtxError):
    """A transaction was used in a way its lifecycle does not allow"""


class InvalidStateTransitionError(TransactionStateError):
    """Raised when an invalid status transition is attempted."""

    def __init__(
        self, transaction_id: str, from_status: TransactionStatus, to_status: TransactionStatus
    ):
        self.transaction_id = transaction_id
        self.from_status = from_status
        self.to_status = to_status
        super().__init__(
            f"Invalid transition for transaction {transaction_id}: "
            f"{from_status.value} → {to_status.value}"
        )


class InvalidTransactionError(TransactionStateError):
    """A transaction is missing what its kind needs to be applied"""


class ConfigurationError(InvtxError):
    """Invalid invtx configuration"""


class ScenarioError(InvtxError):
    """A simulation scenario document is invalid"""
