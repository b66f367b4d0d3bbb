"""
Structured logging for transaction execution

Adds the actor and transaction being processed to every log record so a
single actor's cycles can be followed in aggregated logs.
"""

import json
import logging
from contextvars import ContextVar
from datetime import UTC, datetime
from typing import Any

from invtx.core.logger import EXECUTOR_LOGGER, get_logger
from invtx.core.types import FailureReason

# Context variables for propagating execution context
transaction_context: ContextVar[dict[str, Any]] = ContextVar("transaction_context", default={})


class TransactionJsonFormatter(logging.Formatter):
    """
    JSON formatter for transaction logs with structured fields
    """

    _EXTRA_FIELDS = (
        "actor",
        "transaction_id",
        "failure_count",
        "failure_reason",
        "pending",
        "retries",
        "duration_ms",
        "error_type",
    )

    def format(self, record: logging.LogRecord) -> str:
        """Format log record as structured JSON"""
        log_entry = self._build_base_entry(record)
        self._add_transaction_context(log_entry)
        self._add_record_extras(log_entry, record)
        if record.exc_info:
            log_entry["exception"] = self.formatException(record.exc_info)
        return json.dumps(log_entry)

    def _build_base_entry(self, record: logging.LogRecord) -> dict[str, Any]:
        return {
            "timestamp": datetime.now(UTC).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
            "module": record.module,
            "function": record.funcName,
            "line": record.lineno,
        }

    def _add_transaction_context(self, log_entry: dict[str, Any]) -> None:
        context = transaction_context.get({})
        if context:
            log_entry.update(
                {
                    "actor": context.get("actor"),
                    "transaction_id": context.get("transaction_id"),
                }
            )

    def _add_record_extras(self, log_entry: dict[str, Any], record: logging.LogRecord) -> None:
        for field in self._EXTRA_FIELDS:
            if hasattr(record, field):
                log_entry[field] = getattr(record, field)


class TransactionContextFilter(logging.Filter):
    """
    Logging filter that adds execution context to log records
    """

    def filter(self, record: logging.LogRecord) -> bool:
        context = transaction_context.get({})

        if not hasattr(record, "actor"):
            record.actor = context.get("actor", "unknown")
        if not hasattr(record, "transaction_id"):
            record.transaction_id = context.get("transaction_id", "")

        return True


class TransactionLogger:
    """
    Execution-aware logger with automatic context propagation
    """

    def __init__(self, name: str = EXECUTOR_LOGGER):
        self.logger = get_logger(name)

        if isinstance(self.logger, logging.Logger) and not any(
            isinstance(f, TransactionContextFilter) for f in self.logger.filters
        ):
            self.logger.addFilter(TransactionContextFilter())

    def set_context(self, actor: str, transaction_id: str | None = None) -> None:
        transaction_context.set({"actor": actor, "transaction_id": transaction_id})

    def clear_context(self) -> None:
        transaction_context.set({})

    def cycle_started(self, actor: str, pending: int, retries: int) -> None:
        self.set_context(actor)
        if pending == 0:
            return
        self.logger.debug(
            f"Batch-handling {pending} changes, with {retries} retries.",
            extra={"actor": actor, "pending": pending, "retries": retries},
        )

    def transaction_succeeded(self, actor: str, transaction_id: str, failure_count: int) -> None:
        self.set_context(actor, transaction_id)
        self.logger.debug(
            f"Transaction {transaction_id} committed",
            extra={
                "actor": actor,
                "transaction_id": transaction_id,
                "failure_count": failure_count,
            },
        )

    def retry_scheduled(
        self,
        actor: str,
        transaction_id: str,
        failure_count: int,
        allowed_retries: int,
        reason: FailureReason,
    ) -> None:
        self.set_context(actor, transaction_id)
        self.logger.debug(
            f"Transaction {transaction_id} failed validation ({reason.value}), "
            f"retrying next cycle (attempt {failure_count}/{allowed_retries})",
            extra={
                "actor": actor,
                "transaction_id": transaction_id,
                "failure_count": failure_count,
                "failure_reason": reason.value,
            },
        )

    def transaction_failed(
        self, actor: str, transaction_id: str, failure_count: int, reason: FailureReason | None
    ) -> None:
        self.set_context(actor, transaction_id)
        self.logger.warning(
            f"Transaction {transaction_id} completely failed after {failure_count} attempts",
            extra={
                "actor": actor,
                "transaction_id": transaction_id,
                "failure_count": failure_count,
                "failure_reason": reason.value if reason else None,
            },
        )

    def cycle_completed(
        self, actor: str, succeeded: int, retried: int, failed: int, duration_ms: float
    ) -> None:
        if succeeded or retried or failed:
            self.logger.debug(
                f"Cycle finished for {actor}: {succeeded} committed, "
                f"{retried} deferred, {failed} failed",
                extra={"actor": actor, "duration_ms": duration_ms},
            )
        self.clear_context()

    def sink_failed(self, actor: str, transaction_id: str, error: Exception) -> None:
        self.logger.error(
            f"Notification sink failed for transaction {transaction_id}: {error!s}",
            extra={
                "actor": actor,
                "transaction_id": transaction_id,
                "error_type": type(error).__name__,
            },
            exc_info=True,
        )


def setup_transaction_logging(
    log_level: str = "INFO", json_format: bool = True, include_console: bool = True
) -> TransactionLogger:
    """
    Set up structured logging for the ``invtx`` logger namespace

    Args:
        log_level: Logging level (DEBUG, INFO, WARNING, ERROR)
        json_format: Use JSON formatting for structured logs
        include_console: Include console handler

    Returns:
        Configured TransactionLogger instance
    """
    root_logger = logging.getLogger("invtx")
    root_logger.setLevel(getattr(logging, log_level.upper()))

    for handler in root_logger.handlers[:]:
        root_logger.removeHandler(handler)

    if include_console:
        console_handler = logging.StreamHandler()
        console_handler.addFilter(TransactionContextFilter())

        if json_format:
            console_handler.setFormatter(TransactionJsonFormatter())
        else:
            formatter = logging.Formatter(
                "%(asctime)s - %(name)s - %(levelname)s - [%(actor)s:%(transaction_id)s] - %(message)s"
            )
            console_handler.setFormatter(formatter)

        root_logger.addHandler(console_handler)

    return TransactionLogger()
