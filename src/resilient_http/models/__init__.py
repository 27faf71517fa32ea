"""
Data models for the resilient HTTP layer.

This package contains the value types shared by the retry executor and the
load-balancing strategies.
"""

from resilient_http.models.endpoint import DEFAULT_PORTS, Endpoint

__all__ = [
    "DEFAULT_PORTS",
    "Endpoint",
]
