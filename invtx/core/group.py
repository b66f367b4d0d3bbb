"""
TransactionGroup - per-actor transaction executor.

Collects transactions proposed by an actor between ticks and commits them
once per tick, validating every change against live container state at apply
time. A transaction that fails validation is retried on the next cycle until
its retry bound is reached, then reported as permanently failed.

Usage:
    >>> group = TransactionGroup(player, sink=RecordingNotificationSink())
    >>> group.add_transaction(Transaction.from_slot_change(chest, 0, before, after))
    >>>
    >>> # once per server tick
    >>> group.execute()

Lifecycle of one execute() cycle:
    1. Move the retry queue to the back of the pending queue
    2. Dequeue and apply each pending transaction in FIFO order
       (successes are notified immediately)
    3. Notify every transaction that failed permanently during this cycle
"""

from __future__ import annotations

import threading
import time
from collections import deque
from collections.abc import Callable
from typing import TYPE_CHECKING, Any

from invtx.core.config import GroupConfig, get_config
from invtx.core.context import ExecutionContext
from invtx.core.exceptions import InvalidTransactionError, TransactionStateError
from invtx.core.logger import get_logger
from invtx.core.retry import RetryPolicy
from invtx.core.state_machine import TransactionStateMachine
from invtx.core.types import CycleReport, FailureReason, TransactionKind
from invtx.monitoring.logging import TransactionLogger
from invtx.monitoring.metrics import ExecutionMetrics

if TYPE_CHECKING:
    from invtx.core.interfaces import Actor, NotificationSink
    from invtx.core.transaction import SlotChange, Transaction
    from invtx.monitoring.prometheus import PrometheusMetrics

logger = get_logger(__name__)


def _write_inbound_slot(actor: Actor | None, transaction: Transaction) -> None:
    change = transaction.inbound
    change.container.set_content(change.slot, transaction.target_content, notify=False)


def _eject_from_actor(actor: Actor | None, transaction: Transaction) -> None:
    actor.eject(transaction.target_content)


_INBOUND_APPLIERS: dict[TransactionKind, Callable[[Any, Any], None]] = {
    TransactionKind.SLOT: _write_inbound_slot,
    TransactionKind.DROP: _eject_from_actor,
}


class TransactionGroup:
    """
    Batches and commits the transactions of a single actor.

    Queue discipline:
        - ``add_transaction`` appends to the pending queue
        - transactions that fail validation wait on the retry queue and are
          admitted behind the pending ones at the start of the next cycle
        - succeeded and permanently failed transactions are never queued again

    The ``executing`` flag is advisory. Queue mutations and the drain loop
    share one re-entrant lock, so producers on other threads wait for the
    cycle to finish.
    """

    def __init__(
        self,
        actor: Actor | None = None,
        sink: NotificationSink | None = None,
        config: GroupConfig | None = None,
        retry_policy: RetryPolicy | None = None,
        metrics: ExecutionMetrics | None = None,
        prometheus: PrometheusMetrics | None = None,
        clock: Callable[[], float] = time.time,
    ):
        """
        Initialize the group.

        Args:
            actor: Actor owning the group (may be None)
            sink: Receives the outcome of each transaction
            config: Group configuration (defaults to the global configuration)
            retry_policy: Overrides the policy derived from ``config``
            metrics: In-process metrics collector
            prometheus: Prometheus collector (created from config when
                ``config.metrics`` is set)
            clock: Time source for the bookkeeping timestamps
        """
        self.config = config or get_config()
        self.retry_policy = retry_policy or self.config.retry_policy()
        self.sink = sink
        self.metrics = metrics or ExecutionMetrics()

        if prometheus is None and self.config.metrics:
            from invtx.monitoring.prometheus import get_prometheus_metrics

            prometheus = get_prometheus_metrics(self.config.metrics_prefix)
        self.prometheus = prometheus

        self._actor = actor
        self._clock = clock
        self._state_machine = TransactionStateMachine(self.retry_policy)
        self._log = TransactionLogger()
        self._lock = threading.RLock()

        self._pending: deque[Transaction] = deque()
        self._retry: deque[Transaction] = deque()
        self._queued: set[str] = set()
        self._executing = False

        self.last_update: float | None = None
        self.last_execution: float | None = None
        self.has_executed = False
        self.last_report: CycleReport | None = None

        self._total_succeeded = 0
        self._total_failed = 0
        self._cycles = 0

    @property
    def actor_name(self) -> str:
        return self._actor.name if self._actor is not None else "<none>"

    def get_actor(self) -> Actor | None:
        return self._actor

    def get_transactions(self) -> deque[Transaction]:
        """
        The live pending queue.

        Callers may observe its ordering but must not mutate it.
        """
        return self._pending

    def get_retry_queue(self) -> tuple[Transaction, ...]:
        """Snapshot of the transactions waiting for the next cycle."""
        with self._lock:
            return tuple(self._retry)

    def is_executing(self) -> bool:
        return self._executing

    def add_transaction(self, transaction: Transaction) -> bool:
        """
        Queue a transaction for the next cycle.

        No validation against container state happens here.

        Returns:
            Always True

        Raises:
            TransactionStateError: If the transaction is terminal or already queued
            InvalidTransactionError: If the transaction lacks a slot its kind needs
        """
        if transaction.is_terminal:
            msg = (
                f"Transaction {transaction.transaction_id} is already "
                f"{transaction.status.value} and cannot be queued again"
            )
            raise TransactionStateError(msg)
        self._check_applicable(transaction)

        with self._lock:
            if transaction.transaction_id in self._queued:
                msg = f"Transaction {transaction.transaction_id} is already queued"
                raise TransactionStateError(msg)

            self._queued.add(transaction.transaction_id)
            self._pending.append(transaction)
            self.last_update = self._clock()

        return True

    def _check_applicable(self, transaction: Transaction) -> None:
        outbound = transaction.outbound
        if outbound is not None and (outbound.container is None or outbound.slot is None):
            msg = f"Transaction {transaction.transaction_id} has an outbound side without a slot"
            raise InvalidTransactionError(msg)

        inbound = transaction.inbound
        if transaction.kind is TransactionKind.DROP:
            if self._actor is None:
                msg = f"Drop transaction {transaction.transaction_id} needs an actor to eject from"
                raise InvalidTransactionError(msg)
        elif inbound is not None and (inbound.container is None or inbound.slot is None):
            msg = f"Transaction {transaction.transaction_id} has an inbound side without a slot"
            raise InvalidTransactionError(msg)

    def execute(self, context: ExecutionContext | None = None) -> bool:
        """
        Run one cycle: admit retries, drain the pending queue, report failures.

        Never raises; every anomaly becomes a per-transaction outcome.

        Args:
            context: Execution settings (defaults to the group configuration)

        Returns:
            Always True
        """
        context = context or self.config.context()

        with self._lock:
            started = time.perf_counter()
            report = CycleReport()
            failed: list[Transaction] = []

            self._executing = True

            report.retries_admitted = len(self._retry)
            while self._retry:
                self._pending.append(self._retry.popleft())

            self._log.cycle_started(self.actor_name, len(self._pending), report.retries_admitted)

            while self._pending:
                transaction = self._pending.popleft()
                report.processed += 1
                self._apply(transaction, context, failed, report)

            self._executing = False

            for transaction in failed:
                self._notify(transaction)

            self.last_execution = self._clock()
            self.has_executed = True

            report.duration = time.perf_counter() - started
            self._record(report)

        return True

    def _apply(
        self,
        transaction: Transaction,
        context: ExecutionContext,
        failed: list[Transaction],
        report: CycleReport,
    ) -> None:
        """Validate and commit one transaction, or hand it to failure handling."""
        try:
            reason = self._commit(transaction, context)
        except Exception as e:
            logger.exception(
                f"Applying transaction {transaction.transaction_id} raised {type(e).__name__}"
            )
            reason = FailureReason.APPLY_ERROR

        if reason is not None:
            self._handle_failure(transaction, reason, failed, report)
            return

        self._state_machine.mark_succeeded(transaction)
        self._queued.discard(transaction.transaction_id)
        self._total_succeeded += 1
        report.succeeded += 1
        self._log.transaction_succeeded(
            self.actor_name, transaction.transaction_id, transaction.failure_count
        )
        self._notify(transaction)

    def _commit(
        self, transaction: Transaction, context: ExecutionContext
    ) -> FailureReason | None:
        """
        Apply both sides of a transaction.

        Returns the reason for a failed validation, or None once committed.
        An outbound write is not undone when the inbound side then fails.
        """
        actor = self._actor
        bypass = context.allow_cheats
        unrestricted = actor is not None and actor.is_unrestricted_edit_mode()

        outbound = transaction.outbound
        if outbound is not None:
            if not bypass and not unrestricted:
                if not self._outbound_matches(outbound):
                    return FailureReason.OUTBOUND_MISMATCH
                leftover = actor.get_transient_buffer().add_content(outbound.content)
                if leftover is not None:
                    logger.warning(
                        f"Transient buffer of {self.actor_name} could not hold {leftover}"
                    )
            outbound.container.set_content(
                outbound.slot, transaction.target_content, notify=False
            )

        inbound = transaction.inbound
        if inbound is not None:
            if not bypass and not unrestricted:
                if actor is None or not actor.get_transient_buffer().contains(inbound.content):
                    return FailureReason.INBOUND_MISMATCH
                actor.get_transient_buffer().remove_content(inbound.content)
            _INBOUND_APPLIERS[transaction.kind](actor, transaction)

        return None

    def _outbound_matches(self, outbound: SlotChange) -> bool:
        if self._actor is None:
            return False
        return outbound.container.slot_contains(outbound.slot, outbound.content)

    def _handle_failure(
        self,
        transaction: Transaction,
        reason: FailureReason,
        failed: list[Transaction],
        report: CycleReport,
    ) -> None:
        abandoned = self._state_machine.record_failure(transaction, reason)

        if abandoned:
            self._queued.discard(transaction.transaction_id)
            self._total_failed += 1
            report.failed += 1
            report.failed_ids.append(transaction.transaction_id)
            failed.append(transaction)
            self._log.transaction_failed(
                self.actor_name, transaction.transaction_id, transaction.failure_count, reason
            )
        else:
            self._retry.append(transaction)
            report.retried += 1
            self._log.retry_scheduled(
                self.actor_name,
                transaction.transaction_id,
                transaction.failure_count,
                self.retry_policy.allowed_retries,
                reason,
            )

    def _notify(self, transaction: Transaction) -> None:
        if self.sink is None:
            return
        try:
            self.sink.notify(transaction)
        except Exception as e:
            self._log.sink_failed(self.actor_name, transaction.transaction_id, e)

    def _record(self, report: CycleReport) -> None:
        self._cycles += 1
        self.last_report = report
        self.metrics.record_cycle(self.actor_name, report)
        if self.prometheus is not None:
            self.prometheus.record_cycle(self.actor_name, report, len(self._retry))
        self._log.cycle_completed(
            self.actor_name,
            report.succeeded,
            report.retried,
            report.failed,
            report.duration * 1000,
        )

    def get_stats(self) -> dict[str, Any]:
        """
        Get group statistics.

        Returns:
            Dictionary of stats
        """
        with self._lock:
            return {
                "actor": self.actor_name,
                "executing": self._executing,
                "pending": len(self._pending),
                "retrying": len(self._retry),
                "cycles": self._cycles,
                "succeeded": self._total_succeeded,
                "failed": self._total_failed,
                "allowed_retries": self.retry_policy.allowed_retries,
                "last_update": self.last_update,
                "last_execution": self.last_execution,
            }
