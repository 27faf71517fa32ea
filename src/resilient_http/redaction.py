"""
Header redaction for diagnostic logging.

The retry executor logs request and response headers at DEBUG level for
every attempt. Credentials and session cookies must never reach the logs,
so header values whose names are in the sensitive set are masked before
logging. Redaction is cosmetic: the request sent on the wire is untouched.
"""

from collections.abc import Iterable, Mapping

import httpx

DEFAULT_SENSITIVE_HEADERS: frozenset[str] = frozenset(
    {"authorization", "proxy-authorization", "cookie", "set-cookie"}
)

REDACTED = "******"


def normalize_header_names(names: Iterable[str]) -> frozenset[str]:
    """Lower-case header names for case-insensitive matching."""
    return frozenset(name.strip().lower() for name in names if name and name.strip())


def redact_headers(
    headers: httpx.Headers | Mapping[str, str],
    sensitive: Iterable[str] = DEFAULT_SENSITIVE_HEADERS,
) -> dict[str, str]:
    """
    Return a plain dict of headers with sensitive values masked.

    Args:
        headers: Request or response headers
        sensitive: Header names to mask (case-insensitive)

    Returns:
        Dict keyed by lower-cased header name, suitable for structured
        logging. Repeated headers are joined with ", " the way httpx.Headers
        presents them.

    Examples:
        >>> redact_headers({"Authorization": "Bearer abc", "Accept": "*/*"})
        {'authorization': '******', 'accept': '*/*'}
    """
    sensitive_names = normalize_header_names(sensitive)
    if not isinstance(headers, httpx.Headers):
        headers = httpx.Headers(headers)

    redacted: dict[str, str] = {}
    for name in headers.keys():
        if name.lower() in sensitive_names:
            redacted[name] = REDACTED
        else:
            redacted[name] = headers[name]
    return redacted
