"""
Load-balance strategy contract.

A strategy picks the concrete endpoint for one attempt and returns a
request aimed at it. The executor calls ``choose`` with the caller's
original request before every attempt, so each retry gets a fresh pick.
"""

from typing import Protocol

import httpx

from resilient_http.models.endpoint import Endpoint
from resilient_http.retry.lifecycle import NOOP_LIFECYCLE, RetryLifecycle


class LoadBalanceStrategy(Protocol):
    """
    Endpoint selection policy.

    Attributes:
        lifecycle: Feedback observer the executor notifies alongside the
            user's lifecycle (NOOP for strategies that need no feedback)
    """

    lifecycle: RetryLifecycle

    def choose(self, request: httpx.Request) -> httpx.Request:
        """Return a request aimed at the selected endpoint. Must not mutate ``request``."""
        ...


class NoopLoadBalanceStrategy:
    """Sends every attempt to the URL the caller asked for."""

    lifecycle: RetryLifecycle = NOOP_LIFECYCLE

    def choose(self, request: httpx.Request) -> httpx.Request:
        return request


NOOP_STRATEGY = NoopLoadBalanceStrategy()


def retarget(request: httpx.Request, endpoint: Endpoint) -> httpx.Request:
    """
    Build a copy of ``request`` aimed at ``endpoint``.

    Only host and port of the URL change; scheme, path, query and fragment
    are preserved, as are method, headers, body and extensions. The Host
    header is dropped so httpx recomputes it for the new target. Streaming
    bodies are loaded into memory so the copy can be sent more than once.
    """
    url = request.url.copy_with(host=endpoint.host, port=endpoint.port)
    headers = request.headers.copy()
    headers.pop("host", None)
    return httpx.Request(
        request.method,
        url,
        headers=headers,
        content=request.read(),
        extensions=dict(request.extensions),
    )
