"""
Prometheus metrics integration for invtx.

Quick Start:
    >>> from invtx.monitoring.prometheus import PrometheusMetrics, start_metrics_server
    >>>
    >>> start_metrics_server(port=8000)
    >>> group = TransactionGroup(actor, prometheus=PrometheusMetrics())

Requirements:
    pip install prometheus-client
"""

import logging
from typing import TYPE_CHECKING, Any

if TYPE_CHECKING:  # pragma: no cover
    from invtx.core.types import CycleReport

try:
    from prometheus_client import REGISTRY, Counter, Gauge, Histogram, start_http_server

    PROMETHEUS_AVAILABLE = True
except ImportError:  # pragma: no cover
    PROMETHEUS_AVAILABLE = False
    REGISTRY: Any = None  # type: ignore[no-redef]
    Counter: Any = None  # type: ignore[no-redef]
    Gauge: Any = None  # type: ignore[no-redef]
    Histogram: Any = None  # type: ignore[no-redef]
    start_http_server: Any = None  # type: ignore[no-redef]


logger = logging.getLogger(__name__)


class PrometheusMetrics:
    """
    Prometheus-compatible metrics collector for transaction groups.

    Exposes the following metrics:
        - <prefix>_transactions_total: Counter of finished attempts by actor and outcome
          (succeeded, retried, failed)
        - <prefix>_retries_admitted_total: Counter of transactions re-queued at cycle start
        - <prefix>_execute_duration_seconds: Histogram of execute() durations
        - <prefix>_pending_transactions: Gauge of transactions waiting after a cycle
    """

    def __init__(self, prefix: str = "invtx", registry: Any = None):
        """
        Initialize Prometheus metrics.

        Args:
            prefix: Metric name prefix (default: "invtx")
            registry: Collector registry (default: the global registry)
        """
        if not PROMETHEUS_AVAILABLE:  # pragma: no cover
            logger.warning(
                "prometheus-client not installed. Metrics will not be collected. "
                "Install with: pip install prometheus-client"
            )
            self._enabled = False
            return

        self._enabled = True
        self._prefix = prefix
        registry = registry if registry is not None else REGISTRY

        self._transactions_total = Counter(
            f"{prefix}_transactions_total",
            "Transaction attempts by outcome",
            ["actor", "outcome"],
            registry=registry,
        )

        self._retries_admitted = Counter(
            f"{prefix}_retries_admitted_total",
            "Transactions moved from the retry queue into a cycle",
            ["actor"],
            registry=registry,
        )

        self._execute_duration = Histogram(
            f"{prefix}_execute_duration_seconds",
            "Transaction group execute() duration in seconds",
            ["actor"],
            buckets=[0.0001, 0.0005, 0.001, 0.0025, 0.005, 0.01, 0.025, 0.05, 0.1, 0.5],
            registry=registry,
        )

        self._pending = Gauge(
            f"{prefix}_pending_transactions",
            "Transactions waiting for the next cycle",
            ["actor"],
            registry=registry,
        )

    @property
    def enabled(self) -> bool:
        return self._enabled

    def record_cycle(self, actor: str, report: "CycleReport", waiting: int) -> None:
        """
        Record one execute() cycle.

        Args:
            actor: Actor name of the group
            report: Cycle summary
            waiting: Transactions left on the retry queue after the cycle
        """
        if not self._enabled:
            return

        for outcome, count in (
            ("succeeded", report.succeeded),
            ("retried", report.retried),
            ("failed", report.failed),
        ):
            if count:
                self._transactions_total.labels(actor=actor, outcome=outcome).inc(count)

        if report.retries_admitted:
            self._retries_admitted.labels(actor=actor).inc(report.retries_admitted)

        self._execute_duration.labels(actor=actor).observe(report.duration)
        self._pending.labels(actor=actor).set(waiting)


def start_metrics_server(port: int = 8000, addr: str = "0.0.0.0") -> None:
    """
    Start a Prometheus HTTP metrics server.

    Args:
        port: Port to listen on (default: 8000)
        addr: Address to bind to (default: 0.0.0.0 for all interfaces)
    """
    if not PROMETHEUS_AVAILABLE:  # pragma: no cover
        logger.error(
            "Cannot start metrics server: prometheus-client not installed. "
            "Install with: pip install prometheus-client"
        )
        return

    start_http_server(port, addr)
    logger.info(f"Prometheus metrics server started on port {port}")


def is_prometheus_available() -> bool:
    """Check if prometheus-client is installed."""
    return PROMETHEUS_AVAILABLE


_shared_metrics: dict[str, PrometheusMetrics] = {}


def get_prometheus_metrics(prefix: str = "invtx") -> PrometheusMetrics:
    """Return the process-wide collector for ``prefix``, creating it on first use."""
    if prefix not in _shared_metrics:
        _shared_metrics[prefix] = PrometheusMetrics(prefix=prefix)
    return _shared_metrics[prefix]
