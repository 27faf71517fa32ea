"""
Retry layer exceptions.

Transport errors and error responses are never wrapped by the retry layer:
a non-retryable or exhausted transport error is re-raised unchanged, and an
exhausted error response is returned to the caller. The exceptions below
only signal misconfiguration or a broken invariant.
"""


class RetryLayerError(Exception):
    """
    Base exception for all errors raised by the retry layer itself.

    Allows catching any retry-layer error with a single except clause
    without also catching transport errors.
    """
    def __init__(self, message: str, details: dict | None = None):
        super().__init__(message)
        self.message = message
        self.details = details or {}


class ConfigurationError(RetryLayerError, ValueError):
    """
    Raised when retry options or load-balancing parameters are invalid.

    Examples:
    - Unknown retryable IO predicate name
    - Negative TTL or non-positive sweep interval
    """
    pass


class MaxAttemptsExceededError(RetryLayerError, RuntimeError):
    """
    Raised when the hard attempt ceiling is reached.

    The backoff capability is expected to signal STOP long before the
    ceiling. Reaching it means the backoff never stops (e.g. an unbounded
    ExponentialBackOff), which is a configuration bug, not a normal outcome.

    Attributes:
        attempts: Number of attempts executed before giving up
    """

    def __init__(self, attempts: int) -> None:
        self.attempts = attempts
        super().__init__(
            f"Maximum number of attempts reached ({attempts}) without the backoff signalling STOP",
            {"attempts": attempts},
        )
