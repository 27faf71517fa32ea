"""
Backoff capabilities consumed by the retry executor.

The executor never computes wait intervals itself. It calls ``start()`` once
per logical call to obtain a BackOffExecution (a cursor), then asks the
cursor for the next interval each time an attempt turns out to be
retryable. A cursor returns ``STOP`` when no more retries are allowed.

Two implementations are provided:
    - FixedBackOff: constant interval, fixed number of retries
    - ExponentialBackOff: geometric growth with optional cap and limits
"""

from typing import Final, Protocol

from resilient_http.config import Settings
from resilient_http.retry.exceptions import ConfigurationError

STOP: Final = None
"""Sentinel returned by ``BackOffExecution.next_backoff()`` when retries are exhausted."""


class BackOffExecution(Protocol):
    """Per-call backoff cursor. Not shared between logical calls."""

    def next_backoff(self) -> float | None:
        """Return the next wait interval in seconds, or STOP."""
        ...


class BackOff(Protocol):
    """Factory of per-call backoff cursors."""

    def start(self) -> BackOffExecution:
        ...


class FixedBackOff:
    """
    Constant interval between attempts.

    ``max_attempts`` counts retries, not total attempts: FixedBackOff(0.1, 2)
    allows three executions in total.
    """

    def __init__(self, interval: float = 5.0, max_attempts: int = 3):
        if interval < 0:
            raise ConfigurationError("interval must be >= 0", {"interval": interval})
        if max_attempts < 0:
            raise ConfigurationError("max_attempts must be >= 0", {"max_attempts": max_attempts})
        self.interval = interval
        self.max_attempts = max_attempts

    def start(self) -> "_FixedBackOffExecution":
        return _FixedBackOffExecution(self)

    def __repr__(self) -> str:
        return f"FixedBackOff(interval={self.interval}, max_attempts={self.max_attempts})"


class _FixedBackOffExecution:
    def __init__(self, backoff: FixedBackOff):
        self._backoff = backoff
        self.current_attempts = 0

    def next_backoff(self) -> float | None:
        self.current_attempts += 1
        if self.current_attempts <= self._backoff.max_attempts:
            return self._backoff.interval
        return STOP

    def __repr__(self) -> str:
        return (
            f"FixedBackOff{{interval={self._backoff.interval}, "
            f"currentAttempts={self.current_attempts}, maxAttempts={self._backoff.max_attempts}}}"
        )


class ExponentialBackOff:
    """
    Exponentially growing interval between attempts.

    Interval n (1-indexed) is ``initial_interval * multiplier ** (n - 1)``,
    capped at ``max_interval``. The cursor stops once ``max_attempts``
    retries have been handed out, or once the sum of handed-out intervals
    would exceed ``max_elapsed``. With both limits left as None the backoff
    never stops and the executor's attempt ceiling ends the call.
    """

    def __init__(
        self,
        initial_interval: float = 2.0,
        multiplier: float = 1.5,
        max_interval: float = 30.0,
        max_attempts: int | None = None,
        max_elapsed: float | None = None,
    ):
        if initial_interval < 0:
            raise ConfigurationError("initial_interval must be >= 0", {"initial_interval": initial_interval})
        if multiplier < 1:
            raise ConfigurationError("multiplier must be >= 1", {"multiplier": multiplier})
        if max_interval < initial_interval:
            raise ConfigurationError(
                "max_interval must be >= initial_interval",
                {"max_interval": max_interval, "initial_interval": initial_interval},
            )
        self.initial_interval = initial_interval
        self.multiplier = multiplier
        self.max_interval = max_interval
        self.max_attempts = max_attempts
        self.max_elapsed = max_elapsed

    def start(self) -> "_ExponentialBackOffExecution":
        return _ExponentialBackOffExecution(self)

    def __repr__(self) -> str:
        return (
            f"ExponentialBackOff(initial_interval={self.initial_interval}, multiplier={self.multiplier}, "
            f"max_interval={self.max_interval}, max_attempts={self.max_attempts}, max_elapsed={self.max_elapsed})"
        )


class _ExponentialBackOffExecution:
    def __init__(self, backoff: ExponentialBackOff):
        self._backoff = backoff
        self._current_interval: float | None = None
        self.current_attempts = 0
        self.current_elapsed = 0.0

    def next_backoff(self) -> float | None:
        backoff = self._backoff
        if backoff.max_attempts is not None and self.current_attempts >= backoff.max_attempts:
            return STOP
        if self._current_interval is None:
            interval = backoff.initial_interval
        else:
            interval = min(self._current_interval * backoff.multiplier, backoff.max_interval)
        if backoff.max_elapsed is not None and self.current_elapsed + interval > backoff.max_elapsed:
            return STOP
        self._current_interval = interval
        self.current_attempts += 1
        self.current_elapsed += interval
        return interval

    def __repr__(self) -> str:
        return (
            f"ExponentialBackOff{{currentInterval={self._current_interval}, "
            f"currentAttempts={self.current_attempts}, currentElapsed={self.current_elapsed}}}"
        )


def backoff_from_settings(settings: Settings) -> FixedBackOff | ExponentialBackOff:
    """Build the backoff configured by BACKOFF_* settings."""
    if settings.BACKOFF_STRATEGY == "exponential":
        return ExponentialBackOff(
            initial_interval=settings.BACKOFF_INTERVAL_SECONDS,
            multiplier=settings.BACKOFF_MULTIPLIER,
            max_interval=max(settings.BACKOFF_MAX_INTERVAL_SECONDS, settings.BACKOFF_INTERVAL_SECONDS),
            max_attempts=settings.BACKOFF_MAX_ATTEMPTS,
        )
    return FixedBackOff(
        interval=settings.BACKOFF_INTERVAL_SECONDS,
        max_attempts=settings.BACKOFF_MAX_ATTEMPTS,
    )
