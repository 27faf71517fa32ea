"""
httpx integration.

RetryableTransport wraps any ``httpx.BaseTransport`` and routes every
request through a RetryExecutor, so retries and load balancing are
transparent to code using a plain ``httpx.Client``::

    strategy = RoundRobinLoadBalanceStrategy(resolver)
    client = create_client(options=RetryOptions().load_balance_strategy(strategy))
    client.get("http://inventory/items")

Waits between attempts can be cut short per request by passing an event
under the ``retry_interrupt`` extension::

    stop = threading.Event()
    client.get("http://inventory/items", extensions={INTERRUPT_EXTENSION: stop})
"""

from typing import Final

import httpx
import structlog

from resilient_http.config import Settings
from resilient_http.config import settings as default_settings
from resilient_http.retry.backoff import BackOff, backoff_from_settings
from resilient_http.retry.executor import RetryExecutor
from resilient_http.retry.options import RetryOptions

logger = structlog.get_logger(__name__)

# Request extension carrying a threading.Event scoped to that request
INTERRUPT_EXTENSION: Final = "retry_interrupt"


class RetryableTransport(httpx.BaseTransport):
    """
    Transport that retries through a RetryExecutor.

    Closing the transport closes the wrapped transport only; a load-balance
    strategy shared with other clients is left running and must be closed
    by its owner.
    """

    def __init__(
        self,
        backoff: BackOff,
        options: RetryOptions | None = None,
        transport: httpx.BaseTransport | None = None,
    ):
        self._transport = transport if transport is not None else httpx.HTTPTransport()
        self.executor = RetryExecutor(backoff, options)

    def handle_request(self, request: httpx.Request) -> httpx.Response:
        return self.executor.execute(
            request,
            self._transport.handle_request,
            interrupt=request.extensions.get(INTERRUPT_EXTENSION),
        )

    def close(self) -> None:
        self._transport.close()


def cache_response_body(response: httpx.Response) -> httpx.Response:
    """
    Response transformer that loads the body eagerly.

    Lets response predicates and lifecycle hooks read ``response.content``
    or ``response.text`` without consuming the stream the caller will read.
    """
    response.read()
    return response


def create_client(
    settings: Settings | None = None,
    *,
    backoff: BackOff | None = None,
    options: RetryOptions | None = None,
    transport: httpx.BaseTransport | None = None,
    **client_kwargs,
) -> httpx.Client:
    """
    Build an ``httpx.Client`` whose requests go through the retry layer.

    Args:
        settings: Source of defaults (global settings if None)
        backoff: Backoff policy (built from BACKOFF_* settings if None)
        options: Retry options (built from settings if None)
        transport: Transport performing single attempts (HTTPTransport if None)
        **client_kwargs: Passed to ``httpx.Client``

    Returns:
        Configured client; close it (or use it as a context manager) when done
    """
    settings = settings or default_settings
    backoff = backoff if backoff is not None else backoff_from_settings(settings)
    options = options if options is not None else RetryOptions.from_settings(settings)
    client_kwargs.setdefault("timeout", settings.HTTP_TIMEOUT_SECONDS)

    logger.debug(
        "Creating retrying HTTP client",
        backoff=repr(backoff),
        timeout=client_kwargs["timeout"],
    )
    return httpx.Client(
        transport=RetryableTransport(backoff, options, transport=transport),
        **client_kwargs,
    )
