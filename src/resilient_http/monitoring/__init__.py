"""Monitoring and metrics instrumentation for the resilient HTTP layer.

Exports custom Prometheus metrics for operational monitoring and alerting.
"""

from resilient_http.monitoring.metrics import (
    failed_endpoints_evicted_total,
    failed_endpoints_marked_total,
    http_attempts_total,
    http_retries_total,
    retry_outcomes_total,
)

__all__ = [
    "http_attempts_total",
    "http_retries_total",
    "retry_outcomes_total",
    "failed_endpoints_marked_total",
    "failed_endpoints_evicted_total",
]
