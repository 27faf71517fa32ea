"""
Resilient HTTP: retry and client-side load balancing for httpx.

Sits in the request/response path of an outbound call and decides, for
every attempt:
- Whether the outcome (response status or transport error) is retryable
- How long to wait before the next attempt (pluggable backoff)
- Which concrete endpoint the next attempt targets (round-robin with
  failed-endpoint avoidance)

Architecture: httpx transport wrapper -> RetryExecutor -> LoadBalanceStrategy
"""

from resilient_http.models.endpoint import Endpoint
from resilient_http.retry.backoff import STOP, ExponentialBackOff, FixedBackOff
from resilient_http.retry.executor import RetryExecutor
from resilient_http.retry.options import RetryOptions
from resilient_http.transport import INTERRUPT_EXTENSION, RetryableTransport, create_client

__version__ = "0.1.0"

__all__ = [
    "Endpoint",
    "INTERRUPT_EXTENSION",
    "ExponentialBackOff",
    "FixedBackOff",
    "RetryExecutor",
    "RetryOptions",
    "RetryableTransport",
    "STOP",
    "create_client",
]
