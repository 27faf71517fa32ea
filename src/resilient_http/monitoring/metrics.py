"""Custom Prometheus metrics for the resilient HTTP layer.

These metrics are registered in the default prometheus_client registry and
are exposed by whatever /metrics endpoint the host application serves.
Alert rules should be configured for:
- http_retries_total (high retry rate indicates an unhealthy upstream)
- retry_outcomes_total{outcome="no_longer_retryable"} (retries exhausted)
- failed_endpoints_marked_total (endpoints dropping out of rotation)
"""

from prometheus_client import Counter

# === Attempt Metrics ===

http_attempts_total = Counter(
    "http_attempts_total",
    "Total HTTP attempts executed by the retry layer",
    ["method"],
)
"""
Attempts counter, one increment per network call (first try and retries).

Labels:
- method: HTTP method (GET, POST, ...)
"""

http_retries_total = Counter(
    "http_retries_total",
    "Total retries scheduled by reason",
    ["reason"],
)
"""
Retries counter.

Labels:
- reason: status (retryable response status), transport (retryable transport error)

Alert thresholds:
- WARN: retry rate > 10% of attempts
- CRITICAL: retry rate > 30% of attempts
"""

retry_outcomes_total = Counter(
    "retry_outcomes_total",
    "Terminal outcomes of logical calls",
    ["outcome"],
)
"""
Terminal outcomes counter, exactly one increment per logical call.

Labels:
- outcome: success, failure, no_longer_retryable
"""

# === Load Balancing Metrics ===

failed_endpoints_marked_total = Counter(
    "failed_endpoints_marked_total",
    "Endpoints recorded in the failed-endpoint cache",
)
"""
Incremented each time retry feedback marks an endpoint as failed
(including re-marking an endpoint that is already in the cache).
"""

failed_endpoints_evicted_total = Counter(
    "failed_endpoints_evicted_total",
    "Endpoints evicted from the failed-endpoint cache after their TTL",
)
"""
Incremented by the background sweep for every expired record it removes.
An endpoint becomes eligible for selection again only through eviction.
"""
