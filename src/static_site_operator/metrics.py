"""Prometheus metrics for the Static Site Operator."""

from prometheus_client import Counter, Gauge, Histogram

# Reconciliation metrics
reconcile_total = Counter(
    "static_site_operator_reconcile_total",
    "Total number of reconcile passes",
    ["kind", "result"],
)

reconcile_duration_seconds = Histogram(
    "static_site_operator_reconcile_duration_seconds",
    "Duration of reconcile passes in seconds",
    ["kind"],
    buckets=[0.1, 0.5, 1.0, 2.5, 5.0, 10.0, 30.0],
)

error_total = Counter(
    "static_site_operator_error_total",
    "Total number of reconcile errors",
    ["kind", "error_type"],
)

resource_status_total = Counter(
    "static_site_operator_resource_status_total",
    "Observed Ready condition statuses",
    ["kind", "status"],
)

# Child resource metrics
child_operations_total = Counter(
    "static_site_operator_child_operations_total",
    "Total number of child resource operations",
    ["kind", "operation", "result"],
)

drift_detected_total = Counter(
    "static_site_operator_drift_detected_total",
    "Total number of child resource drift detections",
    ["kind"],
)

# API call metrics
api_call_total = Counter(
    "static_site_operator_api_call_total",
    "Total number of cluster API calls",
    ["operation", "result"],
)

api_call_duration_seconds = Histogram(
    "static_site_operator_api_call_duration_seconds",
    "Duration of cluster API calls in seconds",
    ["operation"],
    buckets=[0.01, 0.05, 0.1, 0.5, 1.0, 2.5, 5.0],
)

# Work queue metrics
workqueue_depth = Gauge(
    "static_site_operator_workqueue_depth",
    "Number of keys waiting in the work queue",
)

workqueue_retries_total = Counter(
    "static_site_operator_workqueue_retries_total",
    "Total number of rate limited re-adds",
)
