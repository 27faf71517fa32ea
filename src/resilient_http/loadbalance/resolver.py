"""
Endpoint resolution.

An EndpointResolver maps the logical endpoint of a request (the host and
port written in its URL, e.g. ``http://inventory/items`` -> inventory:80)
to the ordered list of concrete endpoints that serve it. Service discovery
is out of scope; StaticEndpointResolver covers fixed topologies and tests.
"""

from collections.abc import Callable, Mapping, Sequence
from typing import Protocol

import structlog

from resilient_http.models.endpoint import Endpoint

logger = structlog.get_logger(__name__)


class EndpointResolver(Protocol):
    """Maps a logical service endpoint to ordered candidate endpoints."""

    def resolve(self, service: Endpoint) -> list[Endpoint]:
        ...


ResolverFunc = Callable[[Endpoint], Sequence[Endpoint]]


class StaticEndpointResolver:
    """
    Resolver backed by a fixed mapping.

    Keys may be Endpoints (matched exactly) or host names (matched on the
    logical host regardless of port). Unknown services resolve to an empty
    list, which makes the load balancer fall back to the request's own URL.
    """

    def __init__(self, mapping: Mapping[Endpoint | str, Sequence[Endpoint]]):
        self._by_endpoint: dict[Endpoint, tuple[Endpoint, ...]] = {}
        self._by_host: dict[str, tuple[Endpoint, ...]] = {}
        for key, endpoints in mapping.items():
            if isinstance(key, Endpoint):
                self._by_endpoint[key] = tuple(endpoints)
            else:
                self._by_host[key.lower()] = tuple(endpoints)

    def resolve(self, service: Endpoint) -> list[Endpoint]:
        endpoints = self._by_endpoint.get(service)
        if endpoints is None:
            endpoints = self._by_host.get(service.host.lower(), ())
        if not endpoints:
            logger.debug("No endpoints configured for service", service=str(service))
        return list(endpoints)


class _CallableResolver:
    def __init__(self, func: ResolverFunc):
        self._func = func

    def resolve(self, service: Endpoint) -> list[Endpoint]:
        return list(self._func(service))


def as_resolver(resolver: EndpointResolver | ResolverFunc) -> EndpointResolver:
    """Accept either a resolver object or a plain function."""
    if hasattr(resolver, "resolve"):
        return resolver
    if callable(resolver):
        return _CallableResolver(resolver)
    raise TypeError(f"Expected an EndpointResolver or callable, got {type(resolver).__name__}")
