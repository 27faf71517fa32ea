"""
Round-robin load balancing with failed-endpoint avoidance.

Selection:
    1. Resolve the request's logical endpoint into ordered candidates
    2. No candidates: keep the request as-is
    3. Advance a shared counter (up to N times) until a candidate that is
       not in the failed-endpoint cache comes up
    4. All candidates failed: use the last one examined, so selection
       degrades to "any endpoint" instead of failing
    5. Rewrite host and port of the request URL

Feedback:
    The strategy's ``lifecycle`` marks the attempted endpoint as failed
    whenever the executor schedules a retry. A background sweep evicts
    records older than the TTL, which puts the endpoint back in rotation.
"""

import itertools
import weakref
from datetime import timedelta

import httpx
import structlog

from resilient_http.config import Settings
from resilient_http.loadbalance.failed_cache import Clock, FailedEndpointCache, utc_now
from resilient_http.loadbalance.resolver import EndpointResolver, ResolverFunc, as_resolver
from resilient_http.loadbalance.strategy import retarget
from resilient_http.loadbalance.sweeper import PeriodicSweeper
from resilient_http.models.endpoint import Endpoint
from resilient_http.monitoring.metrics import (
    failed_endpoints_evicted_total,
    failed_endpoints_marked_total,
)
from resilient_http.retry.exceptions import ConfigurationError
from resilient_http.retry.lifecycle import RetryLifecycle
from resilient_http.retry.outcome import ResponseOrException

logger = structlog.get_logger(__name__)


class FailedEndpointFeedback(RetryLifecycle):
    """
    Lifecycle that records the endpoint of every retried attempt.

    Only ``on_retry`` is handled: success, failure and exhaustion carry no
    information about which endpoint should be avoided next.
    """

    def __init__(self, cache: FailedEndpointCache, metrics_enabled: bool = True):
        self.cache = cache
        self.metrics_enabled = metrics_enabled

    def on_retry(self, request: httpx.Request, outcome: ResponseOrException) -> None:
        try:
            endpoint = Endpoint.from_url(request.url)
        except ValueError:
            logger.warning("Cannot derive endpoint from request URL", url=str(request.url))
            return
        record = self.cache.mark_failed(endpoint)
        if self.metrics_enabled:
            failed_endpoints_marked_total.inc()
        logger.info(
            "Marked endpoint as failed",
            endpoint=str(endpoint),
            failed_at=record.failed_at.isoformat(),
            outcome=str(outcome),
        )


def _sweep(cache: FailedEndpointCache, metrics_enabled: bool) -> None:
    # Module-level so the sweeper thread holds no reference to the strategy
    evicted = cache.sweep()
    if evicted and metrics_enabled:
        failed_endpoints_evicted_total.inc(len(evicted))


class RoundRobinLoadBalanceStrategy:
    """
    Round-robin endpoint selection that skips recently failed endpoints.

    One instance is meant to be shared by every concurrent call to a
    service: the counter and the failed-endpoint cache are both safe for
    concurrent use. The background sweep starts at construction and stops
    on ``close()``, on leaving a ``with`` block, or when the strategy is
    garbage-collected.

    Attributes:
        resolver: Maps the request's logical endpoint to candidates
        cache: Failed-endpoint cache owned by this strategy
        lifecycle: Feedback observer that writes the cache on retry
    """

    def __init__(
        self,
        resolver: EndpointResolver | ResolverFunc,
        ttl: timedelta = timedelta(seconds=30),
        sweep_interval: timedelta = timedelta(seconds=10),
        clock: Clock = utc_now,
        start_sweeper: bool = True,
        metrics_enabled: bool = True,
    ):
        if sweep_interval <= timedelta(0):
            raise ConfigurationError("sweep_interval must be > 0", {"sweep_interval": str(sweep_interval)})
        self.resolver = as_resolver(resolver)
        self.cache = FailedEndpointCache(ttl, clock=clock)
        self.lifecycle = FailedEndpointFeedback(self.cache, metrics_enabled=metrics_enabled)
        # next() on itertools.count is atomic
        self._counter = itertools.count()
        self._sweeper = PeriodicSweeper(
            lambda cache=self.cache: _sweep(cache, metrics_enabled),
            interval_seconds=sweep_interval.total_seconds(),
        )
        self._finalizer = weakref.finalize(self, self._sweeper.stop)
        if start_sweeper:
            self._sweeper.start()

        logger.info(
            "RoundRobinLoadBalanceStrategy initialized",
            ttl_seconds=ttl.total_seconds(),
            sweep_interval_seconds=sweep_interval.total_seconds(),
            sweeper_started=start_sweeper,
        )

    @classmethod
    def from_settings(
        cls, resolver: EndpointResolver | ResolverFunc, settings: Settings
    ) -> "RoundRobinLoadBalanceStrategy":
        return cls(
            resolver,
            ttl=timedelta(seconds=settings.FAILED_ENDPOINT_TTL_SECONDS),
            sweep_interval=timedelta(seconds=settings.FAILED_ENDPOINT_SWEEP_INTERVAL_SECONDS),
            metrics_enabled=settings.PROMETHEUS_ENABLED,
        )

    def choose(self, request: httpx.Request) -> httpx.Request:
        """
        Return a copy of ``request`` aimed at the next eligible endpoint.

        Returns ``request`` itself when the resolver knows no candidates.
        """
        service = Endpoint.from_url(request.url)
        candidates = self.resolver.resolve(service)
        size = len(candidates)
        if size == 0:
            logger.debug("No candidates resolved, keeping original endpoint", service=str(service))
            return request

        for _ in range(size):
            endpoint = candidates[next(self._counter) % size]
            record = self.cache.get(endpoint)
            if record is None:
                break
            logger.info(
                "Endpoint is marked as failed, skipping",
                endpoint=str(endpoint),
                failed_at=record.failed_at.isoformat(),
            )
        else:
            logger.warning(
                "All endpoints are marked as failed, using last examined",
                service=str(service),
                endpoint=str(endpoint),
            )

        return retarget(request, endpoint)

    def sweep(self) -> None:
        """Run one eviction pass now, outside the background schedule."""
        _sweep(self.cache, self.lifecycle.metrics_enabled)

    @property
    def sweeper_running(self) -> bool:
        return self._sweeper.is_running

    def close(self) -> None:
        """Stop the background sweep. The strategy must not be used afterwards."""
        self._finalizer()

    def __enter__(self) -> "RoundRobinLoadBalanceStrategy":
        return self

    def __exit__(self, *exc_info: object) -> None:
        self.close()
