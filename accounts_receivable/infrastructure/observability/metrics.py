"""Prometheus metrics for receivable operations, authentication and request latency"""

from prometheus_client import Counter, Histogram

# Receivable metrics
receivable_operations_counter = Counter(
    "receivable_operations_total",
    "Receivable write operations completed",
    ["operation"],  # create | update | patch_status | delete | add_document | remove_document
)

receivable_status_changes_counter = Counter(
    "receivable_status_changes_total",
    "Status values applied by updates and patches",
    ["status"],
)

# Authentication metrics
auth_failures_counter = Counter(
    "auth_failures_total",
    "Requests rejected by authentication or access rules",
    ["reason"],  # missing_token | invalid_token | user_not_found | auth_unavailable | subject_mismatch | forbidden
)

auth_service_failures_counter = Counter(
    "auth_service_failures_total",
    "Failed auth service user lookups",
    ["reason"],  # timeout | http_status | network | malformed_body
)

# Service health
request_duration_histogram = Histogram(
    "http_request_duration_seconds",
    "HTTP request latency",
    ["method", "endpoint", "status"],
)


def record_receivable_operation(operation: str, status: str | None = None) -> None:
    """Count a receivable write and, when one was applied, the resulting status"""
    receivable_operations_counter.labels(operation=operation).inc()
    if status is not None:
        receivable_status_changes_counter.labels(status=status).inc()
