"""
Retry configuration.

RetryOptions collects every knob of the retry layer. Setters return the
options object so they can be chained::

    options = (
        RetryOptions()
        .retryable_statuses({502, 503})
        .remove_io_predicate("unknown_host")
        .load_balance_strategy(strategy)
    )

The executor resolves the options once at construction into immutable
collaborators (combined IO classifier, response predicate, composite
lifecycle); changing the options afterwards does not affect it.
"""

from collections.abc import Callable, Iterable

import httpx

from resilient_http.config import Settings
from resilient_http.loadbalance.strategy import NOOP_STRATEGY, LoadBalanceStrategy
from resilient_http.redaction import DEFAULT_SENSITIVE_HEADERS, normalize_header_names
from resilient_http.retry.lifecycle import NOOP_LIFECYCLE, RetryLifecycle
from resilient_http.retry.predicates import (
    DEFAULT_RETRYABLE_STATUSES,
    IOPredicate,
    RetryableIOPredicate,
    RetryableResponsePredicate,
    default_io_predicates,
)

ResponseTransformer = Callable[[httpx.Response], httpx.Response]


class RetryOptions:
    """
    Mutable builder for retry behavior.

    Attributes:
        statuses: Retryable status codes (ignored when a custom response
            predicate is set)
        io_predicates: Transport-error predicates, ORed together
        response_predicate: Custom response predicate, or None for the
            status-code default
        response_transformer: Applied to every received response before
            classification, or None
        strategy: Endpoint selection policy
        lifecycle: User lifecycle hook
        sensitive_headers: Header names masked in debug logs
        metrics_enabled: Record Prometheus metrics
    """

    def __init__(self) -> None:
        self.statuses: frozenset[int] = DEFAULT_RETRYABLE_STATUSES
        self.io_predicates: list[IOPredicate] = default_io_predicates()
        self.response_predicate: RetryableResponsePredicate | None = None
        self.response_transformer: ResponseTransformer | None = None
        self.strategy: LoadBalanceStrategy = NOOP_STRATEGY
        self.lifecycle: RetryLifecycle = NOOP_LIFECYCLE
        self.sensitive_headers: frozenset[str] = DEFAULT_SENSITIVE_HEADERS
        self.metrics_enabled: bool = True

    @classmethod
    def from_settings(cls, settings: Settings) -> "RetryOptions":
        return (
            cls()
            .retryable_statuses(settings.RETRYABLE_STATUSES)
            .io_predicate_set(settings.RETRYABLE_IO_PREDICATES)
            .sensitive_header_names(settings.SENSITIVE_HEADERS)
            .enable_metrics(settings.PROMETHEUS_ENABLED)
        )

    # === Response classification ===

    def retryable_statuses(self, statuses: Iterable[int]) -> "RetryOptions":
        self.statuses = frozenset(statuses)
        return self

    def retryable_response_predicate(self, predicate: RetryableResponsePredicate | None) -> "RetryOptions":
        """Replace status-code classification entirely (None restores it)."""
        self.response_predicate = predicate
        return self

    def transform_response(self, transformer: ResponseTransformer | None) -> "RetryOptions":
        self.response_transformer = transformer
        return self

    # === Transport error classification ===

    def io_predicate_set(self, predicates: Iterable[IOPredicate | str]) -> "RetryOptions":
        """Replace the whole predicate set. Strings are looked up by name."""
        self.io_predicates = []
        for predicate in predicates:
            self.add_io_predicate(predicate)
        return self

    def add_io_predicate(self, predicate: IOPredicate | str) -> "RetryOptions":
        if isinstance(predicate, str):
            predicate = RetryableIOPredicate.from_name(predicate)
        if predicate not in self.io_predicates:
            self.io_predicates.append(predicate)
        return self

    def remove_io_predicate(self, predicate: IOPredicate | str) -> "RetryOptions":
        if isinstance(predicate, str):
            predicate = RetryableIOPredicate.from_name(predicate)
        self.io_predicates = [p for p in self.io_predicates if p != predicate]
        return self

    def retry_any_io_error(self) -> "RetryOptions":
        return self.add_io_predicate(RetryableIOPredicate.ANY)

    # Shorthands mirroring the named predicates

    def retry_client_timeout(self, enabled: bool) -> "RetryOptions":
        return self._toggle(RetryableIOPredicate.CLIENT_TIMEOUT, enabled)

    def retry_connect_exception(self, enabled: bool) -> "RetryOptions":
        return self._toggle(RetryableIOPredicate.CONNECT_TIMEOUT, enabled)

    def retry_unknown_host(self, enabled: bool) -> "RetryOptions":
        return self._toggle(RetryableIOPredicate.UNKNOWN_HOST, enabled)

    def _toggle(self, predicate: RetryableIOPredicate, enabled: bool) -> "RetryOptions":
        if enabled:
            return self.add_io_predicate(predicate)
        return self.remove_io_predicate(predicate)

    # === Collaborators ===

    def load_balance_strategy(self, strategy: LoadBalanceStrategy) -> "RetryOptions":
        self.strategy = strategy
        return self

    def retry_lifecycle(self, lifecycle: RetryLifecycle) -> "RetryOptions":
        self.lifecycle = lifecycle
        return self

    # === Diagnostics ===

    def sensitive_header_names(self, names: Iterable[str]) -> "RetryOptions":
        self.sensitive_headers = normalize_header_names(names)
        return self

    def enable_metrics(self, enabled: bool) -> "RetryOptions":
        self.metrics_enabled = enabled
        return self
