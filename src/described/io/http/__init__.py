"""HTTP dispatch: endpoint descriptions and the httpx-backed dispatcher."""

from .endpoint import HttpEndpoint, HttpMethod
from .transport import HttpDispatcher, PreparedRequest, resolve_method

__all__ = [
    "HttpEndpoint",
    "HttpMethod",
    "HttpDispatcher",
    "PreparedRequest",
    "resolve_method",
]
