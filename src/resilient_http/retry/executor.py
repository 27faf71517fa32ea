"""
Retry executor: the control loop of the resilient HTTP layer.

For one logical call the executor repeatedly:

1. Asks the load-balance strategy for a target (always starting from the
   caller's original request, so every retry gets a fresh pick)
2. Executes one attempt through the supplied ``send`` capability
3. Classifies the outcome (response predicate or IO classifier)
4. Returns, raises, or consults the backoff cursor and waits

Terminal outcomes:
    - Non-retryable response: returned (on_success / on_failure)
    - Non-retryable transport error: re-raised (on_failure)
    - Retryable outcome, backoff STOP: last response returned or error
      re-raised (on_no_longer_retryable)

Every logical call fires exactly one terminal lifecycle event. The loop is
bounded by MAX_ATTEMPTS independently of the backoff; reaching it raises
MaxAttemptsExceededError.

Usage:
    executor = RetryExecutor(FixedBackOff(0.1, 2), options)
    response = executor.execute(request, transport.handle_request)
"""

import threading
from collections.abc import Callable
from typing import Final

import httpx
import structlog

from resilient_http.monitoring.metrics import (
    http_attempts_total,
    http_retries_total,
    retry_outcomes_total,
)
from resilient_http.redaction import redact_headers
from resilient_http.retry.backoff import STOP, BackOff, BackOffExecution
from resilient_http.retry.exceptions import MaxAttemptsExceededError
from resilient_http.retry.lifecycle import compose
from resilient_http.retry.options import RetryOptions
from resilient_http.retry.outcome import of_exception, of_response
from resilient_http.retry.predicates import RetryableIOClassifier, StatusCodeResponsePredicate

logger = structlog.get_logger(__name__)

MAX_ATTEMPTS: Final = 100

TRANSPORT_ERRORS: Final = (httpx.TransportError, OSError)

Send = Callable[[httpx.Request], httpx.Response]


class RetryExecutor:
    """
    Retry loop shared by all calls of one client.

    The executor itself is stateless between calls: the attempt counter and
    the backoff cursor live on the stack of ``execute``. The only state shared
    between concurrent calls is inside the load-balance strategy.

    Attributes:
        backoff: Source of per-call backoff cursors
        strategy: Endpoint selection policy
        io_classifier: Combined transport-error predicate
        response_predicate: Response classification
        lifecycle: User lifecycle composed with the strategy's feedback
    """

    def __init__(
        self,
        backoff: BackOff,
        options: RetryOptions | None = None,
    ):
        options = options or RetryOptions()
        self.backoff = backoff
        self.strategy = options.strategy
        self.io_classifier = RetryableIOClassifier(options.io_predicates)
        self.response_predicate = options.response_predicate or StatusCodeResponsePredicate(options.statuses)
        self.response_transformer = options.response_transformer
        self.lifecycle = compose(options.lifecycle, getattr(options.strategy, "lifecycle", None))
        self.sensitive_headers = options.sensitive_headers
        self.metrics_enabled = options.metrics_enabled

        logger.info(
            "RetryExecutor initialized",
            backoff=repr(backoff),
            strategy=type(self.strategy).__name__,
            io_classifier=repr(self.io_classifier),
            response_predicate=repr(self.response_predicate),
        )

    def execute(
        self,
        request: httpx.Request,
        send: Send,
        interrupt: threading.Event | None = None,
    ) -> httpx.Response:
        """
        Execute ``request`` with retries.

        Args:
            request: Caller's original request (never mutated apart from
                loading its body into memory for replay)
            send: Performs exactly one network attempt
            interrupt: Event that cuts waits short for this call only; a
                fresh event is used when omitted

        Returns:
            The first non-retryable response, or the last response once the
            backoff says STOP

        Raises:
            httpx.TransportError | OSError: Non-retryable transport error, or
                retryable one after the backoff said STOP
            MaxAttemptsExceededError: The backoff never said STOP
        """
        if interrupt is None:
            interrupt = threading.Event()
        request.read()
        execution = self.backoff.start()

        for attempt in range(1, MAX_ATTEMPTS + 1):
            target = self.strategy.choose(request)
            self._log_request(attempt, target)
            if self.metrics_enabled:
                http_attempts_total.labels(method=target.method).inc()

            try:
                response = send(target)
            except TRANSPORT_ERRORS as exc:
                outcome = of_exception(exc)
                if not self.io_classifier.is_retryable(exc):
                    logger.warning(
                        "Transport error is not retryable",
                        attempt=attempt,
                        url=str(target.url),
                        error_type=type(exc).__name__,
                    )
                    self._record_outcome("failure")
                    self.lifecycle.on_failure(target, outcome)
                    raise
                interval = execution.next_backoff()
                if interval is STOP:
                    logger.warning(
                        "No longer retryable",
                        attempt=attempt,
                        url=str(target.url),
                        error_type=type(exc).__name__,
                        error=str(exc),
                    )
                    self._record_outcome("no_longer_retryable")
                    self.lifecycle.on_no_longer_retryable(target, outcome)
                    raise
                logger.info(
                    "Retryable transport error",
                    attempt=attempt,
                    url=str(target.url),
                    error_type=type(exc).__name__,
                    error=str(exc),
                )
                self._record_retry("transport")
                self.lifecycle.on_retry(target, outcome)
            else:
                if self.response_transformer is not None:
                    response = self.response_transformer(response)
                self._log_response(attempt, response)
                if not self.response_predicate(response):
                    if response.is_error:
                        self._record_outcome("failure")
                        self.lifecycle.on_failure(target, of_response(response))
                    else:
                        self._record_outcome("success")
                        self.lifecycle.on_success(target, response)
                    return response
                outcome = of_response(response)
                interval = execution.next_backoff()
                if interval is STOP:
                    logger.warning(
                        "No longer retryable",
                        attempt=attempt,
                        url=str(target.url),
                        status_code=response.status_code,
                    )
                    self._record_outcome("no_longer_retryable")
                    self.lifecycle.on_no_longer_retryable(target, outcome)
                    return response
                self._record_retry("status")
                self.lifecycle.on_retry(target, outcome)
                response.close()

            self._wait(interval, execution, attempt, interrupt)

        raise MaxAttemptsExceededError(MAX_ATTEMPTS)

    def _wait(
        self,
        interval: float,
        execution: BackOffExecution,
        attempt: int,
        interrupt: threading.Event,
    ) -> None:
        logger.info("Wait interval", attempt=attempt, interval_seconds=interval, backoff=repr(execution))
        # A set event ends the wait early; the loop still makes the next attempt
        if interrupt.wait(interval):
            logger.warning("Wait interrupted, continuing with next attempt", attempt=attempt)

    def _log_request(self, attempt: int, request: httpx.Request) -> None:
        logger.debug(
            "Request attempt",
            attempt=attempt,
            method=request.method,
            url=str(request.url),
            headers=redact_headers(request.headers, self.sensitive_headers),
        )

    def _log_response(self, attempt: int, response: httpx.Response) -> None:
        logger.debug(
            "Response received",
            attempt=attempt,
            status_code=response.status_code,
            headers=redact_headers(response.headers, self.sensitive_headers),
        )

    def _record_retry(self, reason: str) -> None:
        if self.metrics_enabled:
            http_retries_total.labels(reason=reason).inc()

    def _record_outcome(self, outcome: str) -> None:
        if self.metrics_enabled:
            retry_outcomes_total.labels(outcome=outcome).inc()
