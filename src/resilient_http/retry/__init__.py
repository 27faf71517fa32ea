"""
Retry decision engine.

Decides, per attempt, whether an outcome is retryable and how long to wait:

1. **Classification**: RetryableIOClassifier for transport errors,
   StatusCodeResponsePredicate (or a custom predicate) for responses
2. **Backoff**: FixedBackOff / ExponentialBackOff cursors, STOP when done
3. **Lifecycle**: on_success / on_retry / on_no_longer_retryable / on_failure
4. **Control loop**: RetryExecutor, bounded by MAX_ATTEMPTS

Main Components:
    - RetryExecutor: Orchestrates attempts, classification and waits
    - RetryOptions: Configuration resolved by the executor at construction
    - RetryLifecycle: Observer extension point (no-op by default)
    - MaxAttemptsExceededError: Raised when the backoff never stops

Usage:
    >>> from resilient_http.retry import RetryExecutor, FixedBackOff
    >>> executor = RetryExecutor(FixedBackOff(0.1, 2))
    >>> response = executor.execute(request, transport.handle_request)
"""

from resilient_http.retry.backoff import STOP, BackOff, BackOffExecution, ExponentialBackOff, FixedBackOff
from resilient_http.retry.exceptions import ConfigurationError, MaxAttemptsExceededError, RetryLayerError
from resilient_http.retry.executor import MAX_ATTEMPTS, RetryExecutor
from resilient_http.retry.lifecycle import (
    NOOP_LIFECYCLE,
    CompositeRetryLifecycle,
    LoggingRetryLifecycle,
    RetryLifecycle,
)
from resilient_http.retry.options import RetryOptions
from resilient_http.retry.outcome import ExceptionOutcome, ResponseOrException, ResponseOutcome
from resilient_http.retry.predicates import (
    DEFAULT_RETRYABLE_STATUSES,
    RetryableIOClassifier,
    RetryableIOPredicate,
    RetryableResponsePredicate,
    StatusCodeResponsePredicate,
)

__all__ = [
    "BackOff",
    "BackOffExecution",
    "CompositeRetryLifecycle",
    "ConfigurationError",
    "DEFAULT_RETRYABLE_STATUSES",
    "ExceptionOutcome",
    "ExponentialBackOff",
    "FixedBackOff",
    "LoggingRetryLifecycle",
    "MAX_ATTEMPTS",
    "MaxAttemptsExceededError",
    "NOOP_LIFECYCLE",
    "ResponseOrException",
    "ResponseOutcome",
    "RetryExecutor",
    "RetryLayerError",
    "RetryLifecycle",
    "RetryOptions",
    "RetryableIOClassifier",
    "RetryableIOPredicate",
    "RetryableResponsePredicate",
    "STOP",
    "StatusCodeResponsePredicate",
]
