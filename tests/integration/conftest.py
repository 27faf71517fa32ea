"""Integration test fixtures (local HTTP servers).

Integration tests run the retry layer against real sockets: a small
threaded HTTP server on an ephemeral localhost port stands in for an
upstream service. Each server answers three built-in routes:

- /hello: 503 "Oops!" twice, then 200 "Hello World!" (repeating every 3 calls)
- /slow: sleeps 0.2 s twice, then answers at once; always 200
- /remote: 400 with an upstream error body twice, then 200

The call counter is shared by the built-in routes, like a flaky upstream
that fails two calls out of three regardless of path.
"""

import itertools
import socket
import threading
import time
from collections import Counter
from collections.abc import Callable, Iterator
from http.server import BaseHTTPRequestHandler, ThreadingHTTPServer
from urllib.parse import urlsplit

import pytest
import structlog

logger = structlog.get_logger(__name__)

Route = Callable[[], tuple[int, str]]


class _Handler(BaseHTTPRequestHandler):
    server: "_Server"

    def do_GET(self) -> None:
        self._dispatch()

    def do_POST(self) -> None:
        self._dispatch()

    def _dispatch(self) -> None:
        length = int(self.headers.get("Content-Length") or 0)
        if length:
            self.rfile.read(length)
        path = urlsplit(self.path).path
        status, body = self.server.mock.handle(path)
        payload = body.encode()
        try:
            self.send_response(status)
            self.send_header("Content-Type", "text/plain; charset=utf-8")
            self.send_header("Content-Length", str(len(payload)))
            self.send_header("Etag", 'W/"6b80-Ybsq/K6GwwqrYkAsFxqDXGC7DoM"')
            self.end_headers()
            self.wfile.write(payload)
        except (BrokenPipeError, ConnectionResetError):
            # Client gave up (read timeout) before the response was written
            logger.debug("Client disconnected before response", path=path)

    def log_message(self, format: str, *args) -> None:
        logger.debug("Mock server request", message=format % args)


class _Server(ThreadingHTTPServer):
    daemon_threads = True
    mock: "MockServer"


class MockServer:
    """Threaded HTTP server with scripted routes and per-path hit counts."""

    def __init__(self, port: int = 0):
        self._httpd = _Server(("127.0.0.1", port), _Handler)
        self._httpd.mock = self
        self._thread: threading.Thread | None = None
        self._lock = threading.Lock()
        self._counter = itertools.count()
        self.hits: Counter[str] = Counter()
        self.routes: dict[str, Route] = {
            "/hello": self._hello,
            "/slow": self._slow,
            "/remote": self._remote,
        }

    @property
    def port(self) -> int:
        return self._httpd.server_address[1]

    def url(self, path: str = "/") -> str:
        return f"http://127.0.0.1:{self.port}{path}"

    def add_route(self, path: str, route: Route) -> "MockServer":
        """Add or replace the route for ``path``."""
        self.routes[path] = route
        return self

    def handle(self, path: str) -> tuple[int, str]:
        with self._lock:
            self.hits[path] += 1
        route = self.routes.get(path)
        if route is None:
            return 404, "Not Found"
        return route()

    def start(self) -> "MockServer":
        self._thread = threading.Thread(target=self._httpd.serve_forever, daemon=True)
        self._thread.start()
        logger.info("Mock server started", port=self.port)
        return self

    def stop(self) -> None:
        self._httpd.shutdown()
        self._httpd.server_close()
        if self._thread is not None:
            self._thread.join(timeout=5.0)
        logger.info("Mock server stopped", port=self.port)

    # === Built-in routes ===

    def _succeeds(self) -> bool:
        return next(self._counter) % 3 == 2

    def _hello(self) -> tuple[int, str]:
        if self._succeeds():
            return 200, "Hello World!"
        return 503, "Oops!"

    def _slow(self) -> tuple[int, str]:
        if self._succeeds():
            return 200, "Hello World!"
        time.sleep(0.2)
        return 200, "Slow World!"

    def _remote(self) -> tuple[int, str]:
        if self._succeeds():
            return 200, "Hello World!"
        return 400, '503 SERVICE_UNAVAILABLE "Error Occurred while Querying upstream system "'


@pytest.fixture
def mock_server() -> Iterator[MockServer]:
    """A running MockServer on an ephemeral port."""
    server = MockServer().start()
    yield server
    server.stop()


@pytest.fixture
def mock_server_factory() -> Iterator[Callable[..., MockServer]]:
    """Factory for additional MockServers, all stopped at teardown.

    Usage:
        def test_something(mock_server_factory):
            a = mock_server_factory()
            b = mock_server_factory(port=free_port)
    """
    servers: list[MockServer] = []

    def _create(port: int = 0) -> MockServer:
        server = MockServer(port).start()
        servers.append(server)
        return server

    yield _create
    for server in servers:
        server.stop()


@pytest.fixture
def free_port() -> int:
    """A localhost port with nothing listening on it (at the time of the call)."""
    with socket.socket(socket.AF_INET, socket.SOCK_STREAM) as sock:
        sock.bind(("127.0.0.1", 0))
        return sock.getsockname()[1]


@pytest.fixture
def integration_settings(test_settings):
    """Settings for integration tests: 0.1 s backoff, metrics off."""
    test_settings.BACKOFF_INTERVAL_SECONDS = 0.1
    test_settings.BACKOFF_MAX_ATTEMPTS = 2
    test_settings.PROMETHEUS_ENABLED = False
    return test_settings
