"""
Client-side load balancing.

Picks the concrete endpoint for every attempt and keeps recently failed
endpoints out of rotation until their TTL expires.

Main Components:
    - LoadBalanceStrategy: Protocol (``choose`` + feedback ``lifecycle``)
    - NoopLoadBalanceStrategy: Keeps the request's own URL
    - RoundRobinLoadBalanceStrategy: Round-robin with failure avoidance
    - FailedEndpointCache: Concurrent, time-bounded failure record
    - EndpointResolver / StaticEndpointResolver: Candidate lookup
"""

from resilient_http.loadbalance.failed_cache import FailedEndpointCache, FailedEndpointRecord
from resilient_http.loadbalance.resolver import EndpointResolver, StaticEndpointResolver
from resilient_http.loadbalance.round_robin import FailedEndpointFeedback, RoundRobinLoadBalanceStrategy
from resilient_http.loadbalance.strategy import (
    NOOP_STRATEGY,
    LoadBalanceStrategy,
    NoopLoadBalanceStrategy,
    retarget,
)
from resilient_http.loadbalance.sweeper import PeriodicSweeper

__all__ = [
    "EndpointResolver",
    "FailedEndpointCache",
    "FailedEndpointFeedback",
    "FailedEndpointRecord",
    "LoadBalanceStrategy",
    "NOOP_STRATEGY",
    "NoopLoadBalanceStrategy",
    "PeriodicSweeper",
    "RoundRobinLoadBalanceStrategy",
    "StaticEndpointResolver",
    "retarget",
]
