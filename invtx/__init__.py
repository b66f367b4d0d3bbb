"""
invtx - Batched, validated inventory transactions.

Clients propose slot edits as transactions; a per-actor ``TransactionGroup``
commits them once per tick, checking each one against live container state.
Transactions that no longer match are retried on the next cycle a bounded
number of times, then reported as failed so the client can resynchronize.

Quick Start:
    >>> from invtx import AIR, ItemStack, Transaction, TransactionGroup
    >>> from invtx.backends import InMemoryActor, InMemoryContainer
    >>>
    >>> chest = InMemoryContainer(27, name="chest")
    >>> chest.set_content(0, ItemStack(1, count=64))
    >>> group = TransactionGroup(InMemoryActor("steve"))
    >>> group.add_transaction(Transaction.from_slot_change(chest, 0, ItemStack(1, count=64), AIR))
    >>> group.execute()
"""

from invtx.backends import InMemoryActor, InMemoryContainer
from invtx.core import (
    AIR,
    DEFAULT_ALLOWED_RETRIES,
    Actor,
    ConfigurationError,
    Container,
    CycleReport,
    ExecutionContext,
    FailureReason,
    GroupConfig,
    InvalidStateTransitionError,
    InvalidTransactionError,
    InvtxError,
    ItemStack,
    NotificationSink,
    RetryPolicy,
    ScenarioError,
    SlotChange,
    Transaction,
    TransactionGroup,
    TransactionKind,
    TransactionStateError,
    TransactionStateMachine,
    TransactionStatus,
    compute_change,
    configure,
    drop_transaction,
    get_config,
    get_logger,
    reset_config,
    set_logger,
    should_abandon,
    slot_transaction,
)
from invtx.notifications import (
    CallbackNotificationSink,
    CompositeNotificationSink,
    LoggingNotificationSink,
    RecordingNotificationSink,
)

__version__ = "0.1.0"

__all__ = [
    "AIR",
    "DEFAULT_ALLOWED_RETRIES",
    "Actor",
    "CallbackNotificationSink",
    "CompositeNotificationSink",
    "ConfigurationError",
    "Container",
    "CycleReport",
    "ExecutionContext",
    "FailureReason",
    "GroupConfig",
    "InMemoryActor",
    "InMemoryContainer",
    "InvalidStateTransitionError",
    "InvalidTransactionError",
    "InvtxError",
    "ItemStack",
    "LoggingNotificationSink",
    "NotificationSink",
    "RecordingNotificationSink",
    "RetryPolicy",
    "ScenarioError",
    "SlotChange",
    "Transaction",
    "TransactionGroup",
    "TransactionKind",
    "TransactionStateError",
    "TransactionStateMachine",
    "TransactionStatus",
    "__version__",
    "compute_change",
    "configure",
    "drop_transaction",
    "get_config",
    "get_logger",
    "reset_config",
    "set_logger",
    "should_abandon",
    "slot_transaction",
]
