"""
Unit tests for the httpx transport integration.
"""

import threading
import time

import httpx
import pytest

from resilient_http.retry.backoff import FixedBackOff
from resilient_http.retry.options import RetryOptions
from resilient_http.transport import (
    INTERRUPT_EXTENSION,
    RetryableTransport,
    cache_response_body,
    create_client,
)


@pytest.fixture
def quiet_options() -> RetryOptions:
    return RetryOptions().enable_metrics(False)


def test_client_retries_through_transport(scripted_transport, quiet_options):
    inner = scripted_transport(503, 200)
    transport = RetryableTransport(FixedBackOff(0.0, 2), quiet_options, transport=inner)

    with httpx.Client(transport=transport) as client:
        response = client.get("http://service/api")

    assert response.status_code == 200
    assert inner.call_count == 2


def test_client_raises_exhausted_transport_error(scripted_transport, quiet_options):
    inner = scripted_transport(httpx.ConnectError("refused"))
    transport = RetryableTransport(FixedBackOff(0.0, 1), quiet_options, transport=inner)

    with httpx.Client(transport=transport) as client:
        with pytest.raises(httpx.ConnectError):
            client.get("http://service/api")

    assert inner.call_count == 2


def test_post_body_is_resent(scripted_transport, quiet_options):
    inner = scripted_transport(502, 201)
    transport = RetryableTransport(FixedBackOff(0.0, 2), quiet_options, transport=inner)

    with httpx.Client(transport=transport) as client:
        client.post("http://service/api/items", content=b"name=widget")

    assert [r.content for r in inner.requests] == [b"name=widget"] * 2


def test_interrupt_extension_applies_to_that_request_only(scripted_transport, quiet_options):
    """A set event under ``retry_interrupt`` skips the wait of its own request only."""
    inner = scripted_transport(503, 200, 503, 200)
    interrupt = threading.Event()
    interrupt.set()
    transport = RetryableTransport(FixedBackOff(0.2, 1), quiet_options, transport=inner)

    with httpx.Client(transport=transport) as client:
        started = time.monotonic()
        assert client.get("http://service/api", extensions={INTERRUPT_EXTENSION: interrupt}).status_code == 200
        interrupted_call = time.monotonic() - started

        started = time.monotonic()
        assert client.get("http://service/api").status_code == 200
        plain_call = time.monotonic() - started

    assert INTERRUPT_EXTENSION == "retry_interrupt"
    assert interrupted_call < 0.2
    assert plain_call >= 0.15
    assert inner.call_count == 4


def test_close_closes_inner_transport(scripted_transport, quiet_options, monkeypatch):
    inner = scripted_transport(200)
    closed = []
    monkeypatch.setattr(inner, "close", lambda: closed.append(True))

    RetryableTransport(FixedBackOff(0.0, 0), quiet_options, transport=inner).close()

    assert closed == [True]


def test_create_client_from_settings(test_settings, scripted_transport):
    inner = scripted_transport(503)

    with create_client(test_settings, transport=inner) as client:
        response = client.get("http://service/api")

    # BACKOFF_MAX_ATTEMPTS=2 -> three attempts
    assert response.status_code == 503
    assert inner.call_count == 3
    assert client.timeout == httpx.Timeout(1.0)


def test_create_client_keeps_explicit_arguments(test_settings, scripted_transport, quiet_options):
    inner = scripted_transport(503)

    with create_client(
        test_settings,
        backoff=FixedBackOff(0.0, 0),
        options=quiet_options,
        transport=inner,
        timeout=5.0,
        base_url="http://service",
    ) as client:
        client.get("/api")

    assert inner.call_count == 1
    assert client.timeout == httpx.Timeout(5.0)


def test_cache_response_body_loads_stream():
    class Body(httpx.SyncByteStream):
        def __iter__(self):
            yield b"hello"

    response = httpx.Response(200, stream=Body())

    assert cache_response_body(response) is response
    assert response.content == b"hello"
    assert response.is_stream_consumed


def test_cache_response_body_lets_predicate_read_content(scripted_transport):
    inner = scripted_transport(httpx.Response(200, json={"status": "pending"}), httpx.Response(200, json={"status": "done"}))
    options = (
        RetryOptions()
        .enable_metrics(False)
        .transform_response(cache_response_body)
        .retryable_response_predicate(lambda response: response.json()["status"] == "pending")
    )
    transport = RetryableTransport(FixedBackOff(0.0, 3), options, transport=inner)

    with httpx.Client(transport=transport) as client:
        assert client.get("http://service/api").json() == {"status": "done"}
