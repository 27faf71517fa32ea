"""Structured logging configuration using structlog.

JSON output in production, colored console output in development. Every
event passes through HeaderRedactor, so header maps logged by the retry
layer or by user lifecycle hooks never carry credentials to the handler.
"""

import logging
import sys
from collections.abc import Iterable, Mapping

import httpx
import structlog
from structlog.types import EventDict, WrappedLogger

from resilient_http.redaction import DEFAULT_SENSITIVE_HEADERS, normalize_header_names, redact_headers


def add_app_context(
    logger: WrappedLogger, method_name: str, event_dict: EventDict
) -> EventDict:
    """Add application context to all log events."""
    event_dict["app"] = "resilient-http"
    return event_dict


class HeaderRedactor:
    """
    structlog processor masking sensitive values in header fields.

    Any event field whose name ends in ``headers`` and whose value is a
    mapping (plain dict or ``httpx.Headers``) is replaced by its redacted
    form. Other values are left alone.

    Example:
        >>> HeaderRedactor()(None, "debug", {"headers": {"Cookie": "sid=1"}})
        {'headers': {'cookie': '******'}}
    """

    def __init__(self, sensitive: Iterable[str] = DEFAULT_SENSITIVE_HEADERS):
        self.sensitive = normalize_header_names(sensitive)

    def __call__(self, logger: WrappedLogger, method_name: str, event_dict: EventDict) -> EventDict:
        for key, value in event_dict.items():
            if key.endswith("headers") and isinstance(value, (Mapping, httpx.Headers)):
                event_dict[key] = redact_headers(value, self.sensitive)
        return event_dict


def configure_logging(
    log_level: str = "INFO",
    environment: str = "development",
    sensitive_headers: Iterable[str] = DEFAULT_SENSITIVE_HEADERS,
) -> None:
    """Configure structlog for structured logging.

    Args:
        log_level: Logging level (DEBUG, INFO, WARNING, ERROR, CRITICAL)
        environment: Environment name (development, production)
        sensitive_headers: Header names masked in any ``*headers`` field

    In production mode:
        - JSON output for machine parsing
        - ISO timestamps
        - Exception info included

    In development mode:
        - Pretty colored console output

    Per-attempt request/response traces are emitted at DEBUG level, so
    DEBUG should only be enabled while diagnosing a client.
    """
    log_level_int = getattr(logging, log_level.upper(), logging.INFO)

    shared_processors: list[structlog.types.Processor] = [
        structlog.contextvars.merge_contextvars,
        structlog.stdlib.add_log_level,
        structlog.stdlib.add_logger_name,
        structlog.processors.TimeStamper(fmt="iso"),
        structlog.processors.StackInfoRenderer(),
        add_app_context,
        HeaderRedactor(sensitive_headers),
    ]

    is_production = environment.lower() == "production"

    if is_production:
        shared_processors.append(structlog.processors.format_exc_info)
        renderer: structlog.types.Processor = structlog.processors.JSONRenderer()
    else:
        renderer = structlog.dev.ConsoleRenderer(colors=sys.stderr.isatty())

    structlog.configure(
        processors=shared_processors
        + [
            structlog.stdlib.ProcessorFormatter.wrap_for_formatter,
        ],
        logger_factory=structlog.stdlib.LoggerFactory(),
        wrapper_class=structlog.stdlib.BoundLogger,
        cache_logger_on_first_use=True,
    )

    formatter = structlog.stdlib.ProcessorFormatter(
        processor=renderer,
        foreign_pre_chain=shared_processors,
    )

    # stdout is left to the program's own output (see cli.py)
    handler = logging.StreamHandler(sys.stderr)
    handler.setFormatter(formatter)
    handler.setLevel(log_level_int)

    root_logger = logging.getLogger()
    root_logger.handlers.clear()
    root_logger.addHandler(handler)
    root_logger.setLevel(log_level_int)

    # The wrapped transport logs every connection otherwise
    logging.getLogger("httpx").setLevel(logging.WARNING)
    logging.getLogger("httpcore").setLevel(logging.WARNING)

    logger = structlog.get_logger(__name__)
    logger.info(
        "Logging configured",
        log_level=log_level,
        environment=environment,
        renderer="json" if is_production else "console",
    )
