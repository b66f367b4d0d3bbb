"""
Logger lookup for invtx.

Every invtx module logs under the ``invtx`` namespace. Per-cycle executor
events (``Batch-handling ...``, retries, permanent failures) go to
``invtx.executor`` through ``TransactionLogger``, so a server can quieten
the executor without losing configuration or scenario messages.

Usage:
    from invtx.core.logger import get_logger
    logger = get_logger(__name__)

    # Route every invtx message to another logger (structlog, loguru, ...)
    from invtx.core.logger import set_logger
    set_logger(structlog.get_logger())
"""

import logging
from typing import Any

LOGGER_NAMESPACE = "invtx"
EXECUTOR_LOGGER = f"{LOGGER_NAMESPACE}.executor"

_custom_logger: Any = None


class NullLogger:  # pragma: no cover
    """Discards everything; pass to ``set_logger`` to silence invtx."""

    def debug(self, *args, **kwargs): pass
    def info(self, *args, **kwargs): pass
    def warning(self, *args, **kwargs): pass
    def error(self, *args, **kwargs): pass
    def exception(self, *args, **kwargs): pass
    def critical(self, *args, **kwargs): pass
    def log(self, *args, **kwargs): pass


def set_logger(logger: Any) -> None:
    """
    Send all invtx logging to ``logger``.

    Applies to every ``get_logger`` call made afterwards. Pass None to go
    back to the standard ``invtx.*`` loggers.
    """
    global _custom_logger
    _custom_logger = logger


def get_logger(name: str = LOGGER_NAMESPACE) -> Any:
    """Custom logger if one is set, else the stdlib logger ``name``."""
    if _custom_logger is not None:
        return _custom_logger

    logger = logging.getLogger(name)

    # library default: stay silent unless the application adds handlers
    if not logger.handlers:
        logger.addHandler(logging.NullHandler())

    return logger


def configure_default_logging(
    level: int = logging.INFO,
    executor_level: int | None = None,
    format_string: str = "%(asctime)s - %(name)s - %(levelname)s - %(message)s",
) -> None:
    """
    Configure console logging for invtx.

    Args:
        level: Level for the ``invtx`` namespace
        executor_level: Separate level for per-cycle executor events
            (defaults to ``level``)
        format_string: Handler format
    """
    logging.basicConfig(level=level, format=format_string)
    logging.getLogger(LOGGER_NAMESPACE).setLevel(level)
    logging.getLogger(EXECUTOR_LOGGER).setLevel(level if executor_level is None else executor_level)
