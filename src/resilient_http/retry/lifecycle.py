"""
Retry lifecycle hooks.

A RetryLifecycle observes a logical call. For every attempt the executor
fires at most one event:

- on_success: non-retryable, non-error response (terminal)
- on_failure: non-retryable error response or transport error (terminal)
- on_retry: retryable outcome, another attempt follows
- on_no_longer_retryable: retryable outcome but the backoff said STOP (terminal)

Each logical call therefore ends with exactly one terminal event.

The same interface serves user hooks and internal feedback: the round-robin
load balancer exposes a lifecycle that records failed endpoints on_retry.
"""

from collections.abc import Iterable

import httpx
import structlog

from resilient_http.retry.outcome import ResponseOrException

logger = structlog.get_logger(__name__)


class RetryLifecycle:
    """Lifecycle observer. Every hook is a no-op by default."""

    def on_success(self, request: httpx.Request, response: httpx.Response) -> None:
        pass

    def on_retry(self, request: httpx.Request, outcome: ResponseOrException) -> None:
        pass

    def on_no_longer_retryable(self, request: httpx.Request, outcome: ResponseOrException) -> None:
        pass

    def on_failure(self, request: httpx.Request, outcome: ResponseOrException) -> None:
        pass


NOOP_LIFECYCLE = RetryLifecycle()


class CompositeRetryLifecycle(RetryLifecycle):
    """
    Fans every event out to several lifecycles, in order.

    No-op members are dropped at construction. Exceptions raised by a member
    propagate to the caller and stop the fan-out.
    """

    def __init__(self, lifecycles: Iterable[RetryLifecycle]):
        self.lifecycles: tuple[RetryLifecycle, ...] = tuple(
            lc for lc in lifecycles if lc is not None and lc is not NOOP_LIFECYCLE
        )

    def on_success(self, request: httpx.Request, response: httpx.Response) -> None:
        for lifecycle in self.lifecycles:
            lifecycle.on_success(request, response)

    def on_retry(self, request: httpx.Request, outcome: ResponseOrException) -> None:
        for lifecycle in self.lifecycles:
            lifecycle.on_retry(request, outcome)

    def on_no_longer_retryable(self, request: httpx.Request, outcome: ResponseOrException) -> None:
        for lifecycle in self.lifecycles:
            lifecycle.on_no_longer_retryable(request, outcome)

    def on_failure(self, request: httpx.Request, outcome: ResponseOrException) -> None:
        for lifecycle in self.lifecycles:
            lifecycle.on_failure(request, outcome)


def compose(*lifecycles: RetryLifecycle | None) -> RetryLifecycle:
    """Combine lifecycles, collapsing to a single member or NOOP where possible."""
    composite = CompositeRetryLifecycle(lc for lc in lifecycles if lc is not None)
    if not composite.lifecycles:
        return NOOP_LIFECYCLE
    if len(composite.lifecycles) == 1:
        return composite.lifecycles[0]
    return composite


class LoggingRetryLifecycle(RetryLifecycle):
    """Logs every lifecycle event. Useful while tuning retry settings."""

    def on_success(self, request: httpx.Request, response: httpx.Response) -> None:
        logger.debug(
            "Request succeeded",
            method=request.method,
            url=str(request.url),
            status_code=response.status_code,
        )

    def on_retry(self, request: httpx.Request, outcome: ResponseOrException) -> None:
        logger.info("Retrying request", method=request.method, url=str(request.url), outcome=str(outcome))

    def on_no_longer_retryable(self, request: httpx.Request, outcome: ResponseOrException) -> None:
        logger.warning(
            "Request no longer retryable",
            method=request.method,
            url=str(request.url),
            outcome=str(outcome),
        )

    def on_failure(self, request: httpx.Request, outcome: ResponseOrException) -> None:
        logger.warning("Request failed", method=request.method, url=str(request.url), outcome=str(outcome))
