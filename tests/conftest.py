"""Shared test fixtures and configuration for all tests.

This conftest.py provides common fixtures used across unit and integration tests.
"""

from collections.abc import Callable, Iterable

import httpx
import pytest

from resilient_http.config import Settings
from resilient_http.retry.lifecycle import RetryLifecycle
from resilient_http.retry.outcome import ResponseOrException


@pytest.fixture
def test_settings() -> Settings:
    """Test settings with fast timings and metrics disabled.

    Override specific settings in individual tests as needed:
        def test_something(test_settings):
            test_settings.BACKOFF_MAX_ATTEMPTS = 5
    """
    return Settings(
        # === Application ===
        APP_NAME="Resilient HTTP (Test)",
        LOG_LEVEL="DEBUG",
        ENVIRONMENT="development",

        # === Transport ===
        HTTP_TIMEOUT_SECONDS=1.0,

        # === Backoff ===
        BACKOFF_STRATEGY="fixed",
        BACKOFF_INTERVAL_SECONDS=0.01,
        BACKOFF_MAX_ATTEMPTS=2,

        # === Load balancing ===
        FAILED_ENDPOINT_TTL_SECONDS=1.0,
        FAILED_ENDPOINT_SWEEP_INTERVAL_SECONDS=0.1,

        PROMETHEUS_ENABLED=False,  # Keep the default registry quiet in tests
    )


class ScriptedTransport(httpx.MockTransport):
    """MockTransport that plays back a script of outcomes.

    Each script item is either a status code (int), an ``httpx.Response``,
    or an exception instance to raise. The last item repeats once the
    script is exhausted. Every request handed to the transport is recorded.
    """

    def __init__(self, script: Iterable[int | httpx.Response | BaseException]):
        self.script = list(script)
        self.requests: list[httpx.Request] = []
        self.responses: list[httpx.Response] = []
        super().__init__(self._handle)

    def _handle(self, request: httpx.Request) -> httpx.Response:
        index = min(len(self.requests), len(self.script) - 1)
        self.requests.append(request)
        item = self.script[index]
        if isinstance(item, BaseException):
            raise item
        if isinstance(item, int):
            item = httpx.Response(item, text=f"status {item}")
        self.responses.append(item)
        return item

    @property
    def call_count(self) -> int:
        return len(self.requests)

    @property
    def hosts(self) -> list[str]:
        return [f"{r.url.host}:{r.url.port}" for r in self.requests]


@pytest.fixture
def scripted_transport() -> Callable[..., ScriptedTransport]:
    """Factory fixture for ScriptedTransport.

    Usage:
        def test_something(scripted_transport):
            transport = scripted_transport(503, 503, 200)
    """
    def _create(*script: int | httpx.Response | BaseException) -> ScriptedTransport:
        return ScriptedTransport(script)

    return _create


class RecordingLifecycle(RetryLifecycle):
    """Lifecycle that records every event as (event_name, request, payload)."""

    def __init__(self) -> None:
        self.events: list[tuple[str, httpx.Request, object]] = []

    def on_success(self, request: httpx.Request, response: httpx.Response) -> None:
        self.events.append(("success", request, response))

    def on_retry(self, request: httpx.Request, outcome: ResponseOrException) -> None:
        self.events.append(("retry", request, outcome))

    def on_no_longer_retryable(self, request: httpx.Request, outcome: ResponseOrException) -> None:
        self.events.append(("no_longer_retryable", request, outcome))

    def on_failure(self, request: httpx.Request, outcome: ResponseOrException) -> None:
        self.events.append(("failure", request, outcome))

    @property
    def names(self) -> list[str]:
        return [name for name, _, _ in self.events]


@pytest.fixture
def recording_lifecycle() -> RecordingLifecycle:
    return RecordingLifecycle()


@pytest.fixture
def make_request() -> Callable[..., httpx.Request]:
    """Factory fixture to create an httpx.Request.

    Usage:
        def test_something(make_request):
            request = make_request("POST", "http://svc/items", content=b"{}")
    """
    def _create(method: str = "GET", url: str = "http://service/api/items?page=2", **kwargs) -> httpx.Request:
        return httpx.Request(method, url, **kwargs)

    return _create
