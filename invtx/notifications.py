"""
Notification sinks - where transaction outcomes are delivered.

A sink is told about each transaction exactly once: inline when it succeeds,
after the drain loop when it fails permanently. On failure the owner usually
resends the affected slot so the client view resynchronizes.

Usage:
    >>> sink = CompositeNotificationSink(
    ...     LoggingNotificationSink(),
    ...     CallbackNotificationSink(lambda tx: send_slot_update(player, tx)),
    ... )
    >>> group = TransactionGroup(player, sink=sink)
"""

from __future__ import annotations

from collections.abc import Callable
from typing import TYPE_CHECKING, Any

from invtx.core.interfaces import NotificationSink
from invtx.core.logger import get_logger
from invtx.core.types import TransactionStatus

if TYPE_CHECKING:
    from invtx.core.transaction import Transaction

logger = get_logger(__name__)


class CallbackNotificationSink(NotificationSink):
    """Forwards every transaction to a callable."""

    def __init__(self, callback: Callable[[Transaction], Any]):
        self._callback = callback

    def notify(self, transaction: Transaction) -> None:
        self._callback(transaction)


class RecordingNotificationSink(NotificationSink):
    """Keeps every notified transaction, in notification order."""

    def __init__(self):
        self.notified: list[Transaction] = []

    def notify(self, transaction: Transaction) -> None:
        self.notified.append(transaction)

    @property
    def succeeded(self) -> list[Transaction]:
        return [t for t in self.notified if t.status is TransactionStatus.SUCCEEDED]

    @property
    def failed(self) -> list[Transaction]:
        return [t for t in self.notified if t.status is TransactionStatus.PERMANENTLY_FAILED]

    def count(self, transaction: Transaction) -> int:
        """How many times ``transaction`` was notified."""
        return sum(1 for t in self.notified if t is transaction)

    def clear(self) -> None:
        self.notified.clear()


class LoggingNotificationSink(NotificationSink):
    """Logs each outcome; permanent failures at WARNING."""

    def __init__(self, name: str = "invtx.notifications"):
        self.log = get_logger(name)

    def notify(self, transaction: Transaction) -> None:
        if transaction.status is TransactionStatus.PERMANENTLY_FAILED:
            self.log.warning(
                f"Resynchronizing after failed transaction {transaction.transaction_id} "
                f"({transaction.failure_count} attempts)"
            )
        else:
            self.log.info(f"Transaction {transaction.transaction_id} {transaction.status.value}")


class CompositeNotificationSink(NotificationSink):
    """
    Fans a notification out to several sinks.

    A sink that raises is logged and does not stop delivery to the others.
    """

    def __init__(self, *sinks: NotificationSink):
        self.sinks = list(sinks)

    def add(self, sink: NotificationSink) -> None:
        self.sinks.append(sink)

    def notify(self, transaction: Transaction) -> None:
        for sink in self.sinks:
            try:
                sink.notify(transaction)
            except Exception:
                logger.exception(
                    f"{type(sink).__name__} failed for transaction {transaction.transaction_id}"
                )
