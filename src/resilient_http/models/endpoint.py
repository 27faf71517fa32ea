"""
Endpoint value type.

An Endpoint identifies a concrete network target (host, port). It is used
both as the logical service key handed to an EndpointResolver and as the
key of the failed-endpoint cache, so it must compare and hash by value.
"""

import httpx
from pydantic import BaseModel, ConfigDict, Field

DEFAULT_PORTS = {"http": 80, "https": 443}


class Endpoint(BaseModel):
    """
    Immutable (host, port) network target.

    Frozen pydantic models are hashable, so Endpoints can be used directly
    as dict keys and set members.
    """
    model_config = ConfigDict(frozen=True)

    host: str = Field(..., min_length=1, description="Host name or IP address")
    port: int = Field(..., ge=0, le=65535, description="TCP port")

    @classmethod
    def of(cls, host: str, port: int) -> "Endpoint":
        return cls(host=host, port=port)

    @classmethod
    def from_url(cls, url: httpx.URL | str) -> "Endpoint":
        """
        Derive the Endpoint targeted by a URL.

        URLs without an explicit port get the scheme default (80 for http,
        443 for https), since httpx normalizes default ports away.

        Raises:
            ValueError: If the URL has no host, or no port and an unknown scheme
        """
        url = httpx.URL(url)
        if not url.host:
            raise ValueError(f"URL has no host: {url}")
        port = url.port
        if port is None:
            port = DEFAULT_PORTS.get(url.scheme)
            if port is None:
                raise ValueError(f"Cannot infer port for scheme '{url.scheme}': {url}")
        return cls(host=url.host, port=port)

    def __str__(self) -> str:
        return f"{self.host}:{self.port}"
