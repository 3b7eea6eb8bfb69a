"""Descriptor: declarative description of an invokable unit of work.

A Descriptor names a unit, documents it, carries its input/result schemas
and caching policy, and points at exactly one dispatch target: a local
callable (``func``) or a remote ``HttpEndpoint``. Field names are snake_case;
camelCase aliases (``inputSchema``, ``httpEndpoint``, ...) are accepted when
building from plain mappings.

Example:
    >>> Descriptor(
    ...     name="weather",
    ...     description="Current weather for a city",
    ...     intents="resource",
    ...     input_schema={"type": "object", "properties": {"city": {"type": "string"}}},
    ...     result_schema={"type": "object"},
    ...     cache=60_000,
    ...     http_endpoint={"url": "https://api.example.com/weather"},
    ... ).target
    RemoteTarget(endpoint=HttpEndpoint(method=None, url='https://api.example.com/weather', ...))
"""

from __future__ import annotations

from collections.abc import Callable
from dataclasses import dataclass
from typing import Any, Literal

from pydantic import BaseModel, ConfigDict, Field, PositiveInt, model_validator
from pydantic.alias_generators import to_camel

from described.foundation.errors import ConfigurationError
from described.io.http import HttpEndpoint

Intents = Literal["resource", "action"]


@dataclass(slots=True, frozen=True)
class LocalTarget:
    """Dispatch by calling a function in-process."""
    func: Callable[..., Any]


@dataclass(slots=True, frozen=True)
class RemoteTarget:
    """Dispatch by issuing an HTTP request."""
    endpoint: HttpEndpoint


Target = LocalTarget | RemoteTarget


class Descriptor(BaseModel):
    """Declarative description of a named, schema-typed, cacheable unit of work.

    Attributes:
        name: Unique identifier within a deployment (cache-key namespace)
        description: Human-readable summary, never affects behavior
        intents: "resource" (cacheable, read-like) or "action" (side-effecting, never cached)
        input_schema: Portable JSON-Schema mapping or native pydantic type (None = unchecked)
        result_schema: Same forms as input_schema, for the dispatch result
        cache: Server-side TTL in milliseconds (resource intent only)
        client_cache: TTL in milliseconds advertised to downstream consumers only
        func: Local callable ``(input)`` or ``(input, context)``, sync or async
        http_endpoint: Remote endpoint (mutually exclusive with func)
    """

    model_config = ConfigDict(
        frozen=True,
        extra="forbid",
        arbitrary_types_allowed=True,
        alias_generator=to_camel,
        populate_by_name=True,
        json_schema_extra={
            "title": "Tool Descriptor",
            "examples": [{
                "name": "greet",
                "description": "Greets a person by name",
                "intents": "action",
                "input_schema": {"type": "object", "properties": {"name": {"type": "string"}}, "required": ["name"]},
            }],
        },
    )

    name: str = Field(..., min_length=1, description="Unique tool name (cache-key namespace)")
    description: str = Field(default="", description="Human-readable description")
    intents: Intents = Field(default="action", description="resource (cacheable) or action (never cached)")
    input_schema: Any = Field(default=None, description="Input schema (portable or native)", repr=False)
    result_schema: Any = Field(default=None, description="Result schema (portable or native)", repr=False)
    cache: PositiveInt | None = Field(default=None, description="Server-side cache TTL in milliseconds")
    client_cache: PositiveInt | None = Field(default=None, description="Client cache TTL in milliseconds")
    func: Callable[..., Any] | None = Field(default=None, exclude=True, repr=False)
    http_endpoint: HttpEndpoint | None = Field(default=None, description="Remote endpoint")

    @model_validator(mode="after")
    def _exactly_one_target(self) -> Descriptor:
        # ConfigurationError is not a ValueError, so pydantic lets it propagate unwrapped
        if self.func is not None and self.http_endpoint is not None:
            raise ConfigurationError(self.name, "Descriptor must define either func or http_endpoint, not both")
        if self.func is None and self.http_endpoint is None:
            raise ConfigurationError(self.name, "Descriptor must define either func or http_endpoint")
        return self

    @property
    def target(self) -> Target:
        """Dispatch target as a tagged variant."""
        if self.func is not None:
            return LocalTarget(self.func)
        return RemoteTarget(self.http_endpoint)  # type: ignore[arg-type]

    @property
    def cacheable(self) -> bool:
        """Whether this descriptor opts into server-side caching at all."""
        return self.intents == "resource" and self.cache is not None
