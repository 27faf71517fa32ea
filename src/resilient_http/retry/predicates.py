"""
Retryable classification of responses and transport errors.

Two independent classifiers feed the retry executor:

1. **RetryableIOClassifier**: decides whether a transport error (timeout,
   refused connection, unresolvable host, ...) warrants another attempt.
   It ORs a set of named predicates, each of which inspects the whole cause
   chain of the error, because httpx wraps the low-level socket/httpcore
   failure (``httpx.ConnectError`` raised from ``socket.gaierror``, etc.).
2. **RetryableResponsePredicate**: decides whether a received response
   warrants another attempt. The default checks the status code against a
   configurable set; a custom callable replaces it wholesale.
"""

import socket
from collections.abc import Callable, Iterable, Iterator
from enum import Enum
from typing import Protocol

import httpx

from resilient_http.retry.exceptions import ConfigurationError

DEFAULT_RETRYABLE_STATUSES: frozenset[int] = frozenset({
    408,  # Request Timeout
    425,  # Too Early
    429,  # Too Many Requests
    500,  # Internal Server Error
    502,  # Bad Gateway
    503,  # Service Unavailable
    504,  # Gateway Timeout
})

_MAX_CAUSE_DEPTH = 32

IOPredicate = Callable[[BaseException], bool]


def iter_cause_chain(exc: BaseException) -> Iterator[BaseException]:
    """
    Yield the exception followed by its causes.

    Follows ``__cause__`` (explicit ``raise ... from``) and falls back to
    ``__context__`` unless it was suppressed. Stops on cycles and after a
    fixed depth.
    """
    seen: set[int] = set()
    current: BaseException | None = exc
    while current is not None and id(current) not in seen and len(seen) < _MAX_CAUSE_DEPTH:
        seen.add(id(current))
        yield current
        if current.__cause__ is not None:
            current = current.__cause__
        elif not current.__suppress_context__:
            current = current.__context__
        else:
            current = None


def _chain_contains(exc: BaseException, types: tuple[type[BaseException], ...]) -> bool:
    return any(isinstance(e, types) for e in iter_cause_chain(exc))


class RetryableIOPredicate(Enum):
    """
    Named transport-error predicates.

    Members are callable: ``RetryableIOPredicate.CLIENT_TIMEOUT(exc)``.
    """

    # Read/write/pool timeouts raised by httpx, and builtin TimeoutError
    # (socket.timeout is an alias) from raw socket code. Connect timeouts
    # belong to CONNECT_TIMEOUT.
    CLIENT_TIMEOUT = "client_timeout"
    # Refused connections and connect timeouts. DNS failures belong to
    # UNKNOWN_HOST.
    CONNECT_TIMEOUT = "connect_timeout"
    # DNS resolution failures, surfaced by httpx as ConnectError from gaierror.
    UNKNOWN_HOST = "unknown_host"
    # Catch-all: every transport error is retryable.
    ANY = "any"

    def test(self, exc: BaseException) -> bool:
        if self is RetryableIOPredicate.CLIENT_TIMEOUT:
            if _chain_contains(exc, (httpx.ConnectTimeout,)):
                return False
            return _chain_contains(exc, (httpx.TimeoutException, TimeoutError))
        if self is RetryableIOPredicate.CONNECT_TIMEOUT:
            if _chain_contains(exc, (socket.gaierror,)):
                return False
            return _chain_contains(exc, (httpx.ConnectError, httpx.ConnectTimeout, ConnectionRefusedError))
        if self is RetryableIOPredicate.UNKNOWN_HOST:
            return _chain_contains(exc, (socket.gaierror,))
        return True

    def __call__(self, exc: BaseException) -> bool:
        return self.test(exc)

    @classmethod
    def from_name(cls, name: "str | RetryableIOPredicate") -> "RetryableIOPredicate":
        """
        Look up a predicate by enum name or value, case-insensitively.

        Raises:
            ConfigurationError: If no predicate has that name
        """
        if isinstance(name, cls):
            return name
        normalized = str(name).strip().lower()
        for member in cls:
            if normalized in (member.value, member.name.lower()):
                return member
        raise ConfigurationError(
            f"Unknown retryable IO predicate: {name!r}",
            {"known": [m.value for m in cls]},
        )


def default_io_predicates() -> list[IOPredicate]:
    """Default active predicate set, in evaluation order."""
    return [
        RetryableIOPredicate.CLIENT_TIMEOUT,
        RetryableIOPredicate.CONNECT_TIMEOUT,
        RetryableIOPredicate.UNKNOWN_HOST,
    ]


class RetryableIOClassifier:
    """
    Logical OR of transport-error predicates.

    The predicate list is copied at construction, so later changes to the
    caller's collection do not affect an existing classifier.
    """

    def __init__(self, predicates: Iterable[IOPredicate] | None = None):
        self.predicates: tuple[IOPredicate, ...] = tuple(
            default_io_predicates() if predicates is None else predicates
        )

    def is_retryable(self, exc: BaseException) -> bool:
        return any(predicate(exc) for predicate in self.predicates)

    def __call__(self, exc: BaseException) -> bool:
        return self.is_retryable(exc)

    def __repr__(self) -> str:
        names = [getattr(p, "name", repr(p)) for p in self.predicates]
        return f"RetryableIOClassifier({names})"


class RetryableResponsePredicate(Protocol):
    """Decides whether a received response warrants another attempt."""

    def __call__(self, response: httpx.Response) -> bool:
        ...


class StatusCodeResponsePredicate:
    """
    Default response predicate.

    A response is retryable iff it is an error (4xx/5xx) AND its status code
    is in the configured set.
    """

    def __init__(self, statuses: Iterable[int] = DEFAULT_RETRYABLE_STATUSES):
        self.statuses = frozenset(statuses)

    def __call__(self, response: httpx.Response) -> bool:
        return response.is_error and response.status_code in self.statuses

    def __repr__(self) -> str:
        return f"StatusCodeResponsePredicate({sorted(self.statuses)})"
