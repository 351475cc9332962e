# noqa: D104
"""HTTP clients."""

from matome.core.clients.http_client import (
    AsyncHTTPClient,
    CloudscraperClient,
    HTTPTransport,
    RawResponse,
    close_http_client,
    get_http_client,
)

__all__ = [
    "AsyncHTTPClient",
    "CloudscraperClient",
    "HTTPTransport",
    "RawResponse",
    "close_http_client",
    "get_http_client",
]
