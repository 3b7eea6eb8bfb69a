"""HTTP dispatch for endpoint-backed tools.

Turns a tool input into one HTTP exchange with httpx:

- GET merges a mapping input into the endpoint's query string
- POST sends the input as a JSON body with ``Content-Type: application/json``
- non-2xx responses raise ``TransportError`` (no retries)
- ``application/json`` bodies are decoded, ``text/plain`` returned as text,
  anything else raises ``UnsupportedContentTypeError``

Example:
    >>> dispatch = HttpDispatcher(HttpEndpoint(url="https://api.example.com/weather"), "weather")
    >>> await dispatch({"city": "Oslo"})   # GET https://api.example.com/weather?city=Oslo
    {'temperature': 4}
"""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass, field
from typing import TYPE_CHECKING

import httpx
import orjson

from described.foundation.config import get_settings
from described.foundation.errors import ConfigurationError, TransportError, UnsupportedContentTypeError

from .endpoint import HttpEndpoint, HttpMethod

if TYPE_CHECKING:
    from described.foundation.errors import JsonValue

# Never forwarded from an inbound request: they describe the inbound hop, not ours
_HOP_HEADERS: frozenset[str] = frozenset({
    "connection", "content-length", "content-type", "host", "keep-alive", "proxy-authenticate",
    "proxy-authorization", "te", "trailer", "transfer-encoding", "upgrade",
})


@dataclass(slots=True)
class PreparedRequest:
    """Method, URL, headers and body derived from one input, before sending."""
    method: HttpMethod
    url: httpx.URL
    headers: dict[str, str] = field(default_factory=dict)
    content: bytes | None = None


def resolve_method(endpoint: HttpEndpoint, data: object) -> HttpMethod:
    """Endpoint method, or GET for mapping inputs and POST for everything else."""
    if endpoint.method is not None:
        return endpoint.method
    return "GET" if isinstance(data, Mapping) else "POST"


def _query_value(value: object) -> str | int | float | bool | None | list[object]:
    match value:
        case None | str() | bool() | int() | float():
            return value
        case list() | tuple():
            return [_query_value(v) for v in value]
        case _:
            return orjson.dumps(value, default=str).decode()


class HttpDispatcher:
    """Dispatches tool inputs to an ``HttpEndpoint``.

    The httpx client is created lazily from settings unless one is injected
    (inject a client built on ``httpx.MockTransport`` for tests). Injected
    clients are never closed by the dispatcher.
    """

    __slots__ = ("endpoint", "tool_name", "_client", "_owns_client")

    def __init__(self, endpoint: HttpEndpoint, tool_name: str, *, client: httpx.AsyncClient | None = None) -> None:
        self.endpoint = endpoint
        self.tool_name = tool_name
        self._client = client
        self._owns_client = client is None

    # ─────────────────────────────────────────────────────────────────
    # HTTP Client
    # ─────────────────────────────────────────────────────────────────

    def _get_client(self) -> httpx.AsyncClient:
        """Get or create httpx async client."""
        if self._client is None:
            settings = get_settings().http
            self._client = httpx.AsyncClient(
                follow_redirects=settings.follow_redirects,
                verify=settings.verify_ssl,
                timeout=settings.timeout,
            )
        return self._client

    async def aclose(self) -> None:
        """Close the httpx client if this dispatcher created it."""
        if self._client is not None and self._owns_client:
            await self._client.aclose()
            self._client = None

    # ─────────────────────────────────────────────────────────────────
    # Request Building
    # ─────────────────────────────────────────────────────────────────

    def _forwarded(self, inbound: Mapping[str, str] | None) -> dict[str, str]:
        directive = self.endpoint.proxy_headers
        if not inbound or directive is None:
            return {}
        allowed = None if directive is True else set(directive)
        return {
            name: value for name, value in inbound.items()
            if name.lower() not in _HOP_HEADERS and (allowed is None or name.lower() in allowed)
        }

    def prepare(self, data: object, inbound_headers: Mapping[str, str] | None = None) -> PreparedRequest:
        """Build the request for an input without sending it.

        Raises:
            ConfigurationError: A GET endpoint received input that cannot become query parameters.
        """
        method = resolve_method(self.endpoint, data)
        url = httpx.URL(self.endpoint.url)

        headers = {"User-Agent": get_settings().http.user_agent}
        headers.update(self._forwarded(inbound_headers))
        headers.update(self.endpoint.headers)

        content: bytes | None = None
        if method == "GET":
            if isinstance(data, Mapping):
                url = url.copy_merge_params({str(k): _query_value(v) for k, v in data.items()})
            elif data is not None:
                raise ConfigurationError(
                    self.tool_name, f"GET endpoint cannot send {type(data).__name__} input as query parameters",
                )
        else:
            content = orjson.dumps(data, default=str)
            headers["Content-Type"] = "application/json"

        return PreparedRequest(method=method, url=url, headers=headers, content=content)

    def redirect_url(self, data: object) -> httpx.URL:
        """Endpoint URL carrying a mapping input as query parameters, whatever the method."""
        url = httpx.URL(self.endpoint.url)
        if isinstance(data, Mapping):
            url = url.copy_merge_params({str(k): _query_value(v) for k, v in data.items()})
        return url

    # ─────────────────────────────────────────────────────────────────
    # Execution
    # ─────────────────────────────────────────────────────────────────

    async def __call__(
        self,
        data: object,
        context: object = None,
        *,
        inbound_headers: Mapping[str, str] | None = None,
    ) -> JsonValue:
        """Send the request and decode the response body."""
        prepared = self.prepare(data, inbound_headers)
        client = self._get_client()
        request = client.build_request(
            prepared.method, prepared.url, headers=prepared.headers, content=prepared.content,
        )

        try:
            response = await client.send(request)
        except httpx.TimeoutException as e:
            raise TransportError(self.tool_name, f"HTTP request timed out: {e}") from e
        except httpx.HTTPError as e:
            raise TransportError(self.tool_name, f"HTTP request failed: {e}") from e

        if not response.is_success:
            raise TransportError(
                self.tool_name,
                f"HTTP request failed: {response.status_code} {response.reason_phrase}",
                status=response.status_code,
                reason=response.reason_phrase,
            )
        return self._decode(response)

    def _decode(self, response: httpx.Response) -> JsonValue:
        content_type = response.headers.get("content-type")
        if content_type and "application/json" in content_type:
            try:
                return orjson.loads(response.content)
            except orjson.JSONDecodeError as e:
                raise TransportError(
                    self.tool_name, f"Invalid JSON response body: {e}",
                    status=response.status_code, reason=response.reason_phrase,
                ) from e
        if content_type and "text/plain" in content_type:
            return response.text
        raise UnsupportedContentTypeError(self.tool_name, content_type)
