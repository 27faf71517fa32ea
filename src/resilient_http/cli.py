"""Command-line client.

Sends one request through the retry layer, optionally load-balancing it
across explicit endpoints, and prints the response body.

Examples:
  - Plain:    resilient-http https://api.example.com/health
  - Balanced: resilient-http http://inventory/items --endpoint 10.0.0.1:8080 --endpoint 10.0.0.2:8080
  - POST:     resilient-http http://inventory/items -H "Content-Type: application/json" -d '{"sku": 1}'

Exit codes: 0 for a non-error response, 1 for a 4xx/5xx response, 2 when
the request could not be completed.
"""

import argparse
import sys
from collections.abc import Sequence

import httpx
import structlog

from resilient_http.config import settings
from resilient_http.loadbalance.resolver import StaticEndpointResolver
from resilient_http.loadbalance.round_robin import RoundRobinLoadBalanceStrategy
from resilient_http.logging_config import configure_logging
from resilient_http.models.endpoint import Endpoint
from resilient_http.retry.exceptions import RetryLayerError
from resilient_http.retry.options import RetryOptions
from resilient_http.transport import create_client

logger = structlog.get_logger(__name__)

EXIT_OK = 0
EXIT_ERROR_STATUS = 1
EXIT_REQUEST_FAILED = 2


def parse_endpoint(value: str) -> Endpoint:
    host, sep, port = value.rpartition(":")
    if not sep or not host or not port.isdigit():
        raise argparse.ArgumentTypeError(f"expected HOST:PORT, got {value!r}")
    try:
        return Endpoint.of(host, int(port))
    except ValueError as exc:
        raise argparse.ArgumentTypeError(f"invalid endpoint {value!r}: {exc}") from exc


def parse_header(value: str) -> tuple[str, str]:
    name, sep, header_value = value.partition(":")
    if not sep or not name.strip():
        raise argparse.ArgumentTypeError(f"expected 'Name: value', got {value!r}")
    return name.strip(), header_value.strip()


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="resilient-http",
        description="Send an HTTP request with retries and client-side load balancing",
    )
    parser.add_argument("url", help="request URL; its host is the logical service when --endpoint is given")
    parser.add_argument("-X", "--method", help="HTTP method (default: GET, or POST with --data)")
    parser.add_argument(
        "-H", "--header", dest="headers", action="append", type=parse_header, default=[],
        help="request header 'Name: value' (repeatable)",
    )
    parser.add_argument("-d", "--data", help="request body")
    parser.add_argument(
        "--endpoint", dest="endpoints", action="append", type=parse_endpoint, default=[],
        help="HOST:PORT serving the URL's host, balanced round-robin (repeatable)",
    )
    parser.add_argument("--timeout", type=float, help="per-attempt timeout in seconds")
    parser.add_argument("--version", action="version", version=f"{settings.APP_NAME} {settings.APP_VERSION}")
    return parser


def main(argv: Sequence[str] | None = None) -> int:
    args = build_parser().parse_args(argv)

    configure_logging(settings.LOG_LEVEL, settings.ENVIRONMENT, settings.SENSITIVE_HEADERS)

    method = (args.method or ("POST" if args.data is not None else "GET")).upper()
    logger.info(
        "Starting request",
        app=settings.APP_NAME,
        version=settings.APP_VERSION,
        method=method,
        url=args.url,
        endpoints=[str(endpoint) for endpoint in args.endpoints],
    )

    options = RetryOptions.from_settings(settings)
    strategy = None
    if args.endpoints:
        service_host = httpx.URL(args.url).host
        strategy = RoundRobinLoadBalanceStrategy.from_settings(
            StaticEndpointResolver({service_host: args.endpoints}), settings
        )
        options.load_balance_strategy(strategy)

    client_kwargs = {}
    if args.timeout is not None:
        client_kwargs["timeout"] = args.timeout

    try:
        with create_client(settings, options=options, **client_kwargs) as client:
            response = client.request(
                method,
                args.url,
                headers=args.headers,
                content=args.data.encode() if args.data is not None else None,
            )
    except (httpx.TransportError, OSError, RetryLayerError) as exc:
        logger.error("Request failed", url=args.url, error=str(exc), error_type=type(exc).__name__)
        return EXIT_REQUEST_FAILED
    finally:
        if strategy is not None:
            strategy.close()

    logger.info("Request finished", status_code=response.status_code, url=str(response.url))
    sys.stdout.write(response.text)
    if response.text and not response.text.endswith("\n"):
        sys.stdout.write("\n")
    return EXIT_ERROR_STATUS if response.is_error else EXIT_OK
