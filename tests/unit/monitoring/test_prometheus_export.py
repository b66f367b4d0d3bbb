"""
Tests for the Prometheus collector.

Each test uses its own CollectorRegistry so metric names never clash.
"""

import pytest
from prometheus_client import CollectorRegistry

from invtx.backends import InMemoryActor, InMemoryContainer
from invtx.core.config import GroupConfig
from invtx.core.content import AIR, ItemStack
from invtx.core.group import TransactionGroup
from invtx.core.transaction import Transaction
from invtx.core.types import CycleReport
from invtx.monitoring.prometheus import (
    PROMETHEUS_AVAILABLE,
    PrometheusMetrics,
    get_prometheus_metrics,
    is_prometheus_available,
)


@pytest.fixture
def registry():
    return CollectorRegistry()


@pytest.fixture
def prometheus(registry):
    return PrometheusMetrics(prefix="test_invtx", registry=registry)


class TestPrometheusMetrics:
    """Tests for PrometheusMetrics."""

    def test_prometheus_is_available(self):
        assert PROMETHEUS_AVAILABLE is True
        assert is_prometheus_available() is True

    def test_enabled(self, prometheus):
        assert prometheus.enabled is True

    def test_record_cycle(self, prometheus, registry):
        report = CycleReport(
            processed=5, retries_admitted=2, succeeded=3, retried=1, failed=1, duration=0.003
        )

        prometheus.record_cycle("steve", report, waiting=1)

        def value(name, **labels):
            return registry.get_sample_value(name, labels)

        assert value("test_invtx_transactions_total", actor="steve", outcome="succeeded") == 3
        assert value("test_invtx_transactions_total", actor="steve", outcome="retried") == 1
        assert value("test_invtx_transactions_total", actor="steve", outcome="failed") == 1
        assert value("test_invtx_retries_admitted_total", actor="steve") == 2
        assert value("test_invtx_pending_transactions", actor="steve") == 1
        assert value("test_invtx_execute_duration_seconds_count", actor="steve") == 1

    def test_zero_outcomes_not_counted(self, prometheus, registry):
        prometheus.record_cycle("alex", CycleReport(), waiting=0)

        assert (
            registry.get_sample_value(
                "test_invtx_transactions_total", {"actor": "alex", "outcome": "succeeded"}
            )
            is None
        )
        assert registry.get_sample_value("test_invtx_pending_transactions", {"actor": "alex"}) == 0

    def test_group_reports_to_collector(self, prometheus, registry):
        chest = InMemoryContainer(3)
        chest.set_content(0, ItemStack(1, count=64))
        group = TransactionGroup(InMemoryActor("steve"), config=GroupConfig(), prometheus=prometheus)
        group.add_transaction(Transaction.from_slot_change(chest, 0, ItemStack(1, count=64), AIR))
        group.add_transaction(Transaction.from_slot_change(chest, 1, ItemStack(1, count=64), AIR))

        group.execute()

        assert (
            registry.get_sample_value(
                "test_invtx_transactions_total", {"actor": "steve", "outcome": "succeeded"}
            )
            == 1
        )
        assert registry.get_sample_value("test_invtx_pending_transactions", {"actor": "steve"}) == 1

    def test_shared_collector_per_prefix(self):
        first = get_prometheus_metrics("test_invtx_shared")
        assert get_prometheus_metrics("test_invtx_shared") is first

    def test_config_enables_shared_collector(self):
        group = TransactionGroup(
            InMemoryActor(), config=GroupConfig(metrics=True, metrics_prefix="test_invtx_cfg")
        )
        assert group.prometheus is get_prometheus_metrics("test_invtx_cfg")
