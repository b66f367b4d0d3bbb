"""
Transaction monitoring and observability utilities

Quick Start:
    >>> from invtx.monitoring import setup_transaction_logging

    # Set up structured logging
    >>> setup_transaction_logging(json_format=True)

    # Enable Prometheus metrics (requires prometheus-client)
    >>> from invtx.monitoring.prometheus import start_metrics_server
    >>> start_metrics_server(port=8000)
    >>> configure(GroupConfig(metrics=True))
"""

from .logging import (
    TransactionContextFilter,
    TransactionJsonFormatter,
    TransactionLogger,
    setup_transaction_logging,
)
from .metrics import ExecutionMetrics
from .prometheus import (
    PrometheusMetrics,
    get_prometheus_metrics,
    is_prometheus_available,
    start_metrics_server,
)

__all__ = [
    # Logging
    "TransactionContextFilter",
    "TransactionJsonFormatter",
    "TransactionLogger",
    "setup_transaction_logging",
    # Metrics
    "ExecutionMetrics",
    "PrometheusMetrics",
    "get_prometheus_metrics",
    "is_prometheus_available",
    "start_metrics_server",
]
