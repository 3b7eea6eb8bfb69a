"""Remote endpoint description for HTTP-dispatched tools."""

from __future__ import annotations

from typing import Literal

from pydantic import BaseModel, ConfigDict, Field, field_validator
from pydantic.alias_generators import to_camel

HttpMethod = Literal["GET", "POST"]


class HttpEndpoint(BaseModel):
    """HTTP endpoint a tool dispatches to.

    Attributes:
        method: HTTP method. None picks GET for mapping inputs, POST otherwise.
        url: Absolute http(s) URL; structured GET input is merged into its query.
        redirect: For intermediaries (HTTP servers): answer with a 3xx pointing
            at the endpoint instead of calling it (True means 302).
        proxy_headers: For intermediaries: forward inbound request headers,
            all of them (True) or only the listed names.
        headers: Static headers sent with every request (override proxied ones).
    """

    model_config = ConfigDict(
        frozen=True,
        extra="forbid",
        str_strip_whitespace=True,
        alias_generator=to_camel,
        populate_by_name=True,
        json_schema_extra={
            "title": "HTTP Endpoint",
            "examples": [{"method": "GET", "url": "https://api.example.com/weather"}],
        },
    )

    method: HttpMethod | None = Field(default=None, description="HTTP method (None = infer from input)")
    url: str = Field(..., description="Endpoint URL", json_schema_extra={"format": "uri"})
    redirect: Literal[True, 301, 302] | None = Field(default=None, description="Redirect instead of proxying")
    proxy_headers: Literal[True] | tuple[str, ...] | None = Field(
        default=None, description="Inbound headers to forward (True = all)",
    )
    headers: dict[str, str] = Field(default_factory=dict, description="Static request headers", repr=False)

    @field_validator("url", mode="before")
    @classmethod
    def _validate_url(cls, v: str) -> str:
        """Validate URL has proper scheme."""
        if not isinstance(v, str):
            return v
        v = v.strip()
        if not v.startswith(("http://", "https://")):
            raise ValueError("URL must start with http:// or https://")
        return v

    @field_validator("method", mode="before")
    @classmethod
    def _upper_method(cls, v: str | None) -> str | None:
        return v.upper() if isinstance(v, str) else v

    @field_validator("proxy_headers", mode="before")
    @classmethod
    def _normalize_proxy_headers(cls, v: object) -> object:
        """Accept any iterable of names; store lowercase for case-insensitive matching."""
        if v is None or v is True:
            return v
        if isinstance(v, str):
            v = [v]
        return tuple(name.lower() for name in v)  # type: ignore[union-attr]
