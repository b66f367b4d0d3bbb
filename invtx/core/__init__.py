"""
Core module for invtx - contains the transaction model and the executor.
"""

from invtx.core.config import GroupConfig, configure, get_config, reset_config
from invtx.core.content import AIR, ItemStack, compute_change
from invtx.core.context import ExecutionContext
from invtx.core.exceptions import (
    ConfigurationError,
    InvalidStateTransitionError,
    InvalidTransactionError,
    InvtxError,
    ScenarioError,
    TransactionStateError,
)
from invtx.core.group import TransactionGroup
from invtx.core.interfaces import Actor, Container, NotificationSink
from invtx.core.logger import NullLogger, get_logger, set_logger
from invtx.core.retry import DEFAULT_ALLOWED_RETRIES, RetryPolicy, should_abandon
from invtx.core.state_machine import TransactionStateMachine
from invtx.core.transaction import SlotChange, Transaction, drop_transaction, slot_transaction
from invtx.core.types import CycleReport, FailureReason, TransactionKind, TransactionStatus

__all__ = [
    # Config
    "GroupConfig",
    "configure",
    "get_config",
    "reset_config",
    "ExecutionContext",
    # Content
    "AIR",
    "ItemStack",
    "compute_change",
    # Exceptions
    "ConfigurationError",
    "InvalidStateTransitionError",
    "InvalidTransactionError",
    "InvtxError",
    "ScenarioError",
    "TransactionStateError",
    # Executor
    "TransactionGroup",
    "TransactionStateMachine",
    "RetryPolicy",
    "DEFAULT_ALLOWED_RETRIES",
    "should_abandon",
    # Interfaces
    "Actor",
    "Container",
    "NotificationSink",
    # Logger
    "NullLogger",
    "get_logger",
    "set_logger",
    # Transactions
    "SlotChange",
    "Transaction",
    "drop_transaction",
    "slot_transaction",
    # Types
    "CycleReport",
    "FailureReason",
    "TransactionKind",
    "TransactionStatus",
]
