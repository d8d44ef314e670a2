"""Tests for Prometheus metrics."""

from __future__ import annotations

from prometheus_client import REGISTRY

from static_site_operator.metrics import (
    child_operations_total,
    drift_detected_total,
    reconcile_total,
    workqueue_depth,
)
from static_site_operator.workqueue import WorkQueue


class TestMetricsExist:
    """Test that the expected metrics are defined."""

    def test_names(self):
        # Prometheus counters don't include "_total" in their _name attribute
        assert reconcile_total._name == "static_site_operator_reconcile"
        assert child_operations_total._name == "static_site_operator_child_operations"
        assert drift_detected_total._name == "static_site_operator_drift_detected"


class TestMetricsRecorded:
    def test_child_operation_counter(self):
        before = REGISTRY.get_sample_value(
            "static_site_operator_child_operations_total",
            {"kind": "Service", "operation": "create", "result": "success"},
        ) or 0.0

        child_operations_total.labels(kind="Service", operation="create", result="success").inc()

        after = REGISTRY.get_sample_value(
            "static_site_operator_child_operations_total",
            {"kind": "Service", "operation": "create", "result": "success"},
        )
        assert after == before + 1

    def test_workqueue_depth_follows_queue(self):
        queue = WorkQueue()
        queue.add("ns/a")
        queue.add("ns/b")
        assert REGISTRY.get_sample_value("static_site_operator_workqueue_depth") == 2.0

        queue.get(timeout=0)
        assert REGISTRY.get_sample_value("static_site_operator_workqueue_depth") == 1.0
        assert workqueue_depth is not None
