"""Described - schema-typed, cacheable tools behind one invocation interface.

Describe a unit of work (a local function or a remote HTTP endpoint) with
input and result schemas plus caching policy, then invoke it through a
single pipeline that validates input, consults the cache, dispatches,
validates the result and populates the cache.

Quick Start:
    >>> from described import build
    >>>
    >>> greet = build({
    ...     "name": "greet",
    ...     "description": "Greets a person by name",
    ...     "input_schema": {
    ...         "type": "object",
    ...         "properties": {"name": {"type": "string"}, "age": {"type": "number"}},
    ...         "required": ["name"],
    ...     },
    ...     "func": lambda p: {"greeting": f"Hello, {p['name']}"},
    ... })
    >>> await greet.invoke({"name": "Bob"})
    {'greeting': 'Hello, Bob'}

HTTP Endpoints:
    >>> weather = build({
    ...     "name": "weather",
    ...     "intents": "resource",
    ...     "cache": 60_000,
    ...     "http_endpoint": {"url": "https://api.example.com/weather"},
    ... })
    >>> await weather.invoke({"city": "Oslo"})  # GET ...?city=Oslo, cached for 60s

Native Schemas:
    >>> from pydantic import BaseModel
    >>> class Person(BaseModel):
    ...     name: str
    >>> build({"name": "hello", "input_schema": Person, "func": lambda p: f"hi {p['name']}"})

Configuration (environment):
    DESCRIBED_CACHE_ENABLED=false         # global kill switch for server-side caching
    DESCRIBED_CACHE_REDIS_URL=redis://... # default store backed by Redis
    DESCRIBED_LOG_FORMAT=console          # library is silent until configured
"""

from __future__ import annotations

__version__ = "0.1.0"

# Errors
from .foundation.errors import (
    CacheWriteError,
    ConfigurationError,
    ErrorCode,
    ToolError,
    ToolException,
    TransportError,
    UnsupportedContentTypeError,
    ValidationError,
)

# Config
from .foundation.config import DescribedSettings, clear_settings_cache, get_settings

# Schema
from .foundation.schema import CompiledSchema, SchemaViolation, compile_schema, to_native

# Cache
from .io.cache import (
    CacheStore,
    MemoryStore,
    get_default_store,
    make_key,
    register_store,
    reset_default_store,
    set_default_store,
    unregister_store,
)

# Logging
from .runtime.observability import configure_logging, get_logger, logger_for

# Tools
from .tools import (
    Descriptor,
    HttpEndpoint,
    InvokeOptions,
    LocalTarget,
    RemoteTarget,
    Tool,
    build,
    tool,
)

__all__ = [
    "__version__",
    # Tools
    "Descriptor",
    "HttpEndpoint",
    "InvokeOptions",
    "LocalTarget",
    "RemoteTarget",
    "Tool",
    "build",
    "tool",
    # Errors
    "ErrorCode",
    "ToolError",
    "ToolException",
    "ConfigurationError",
    "ValidationError",
    "TransportError",
    "UnsupportedContentTypeError",
    "CacheWriteError",
    # Config
    "DescribedSettings",
    "get_settings",
    "clear_settings_cache",
    # Schema
    "CompiledSchema",
    "SchemaViolation",
    "compile_schema",
    "to_native",
    # Cache
    "CacheStore",
    "MemoryStore",
    "make_key",
    "get_default_store",
    "set_default_store",
    "reset_default_store",
    "register_store",
    "unregister_store",
    # Logging
    "configure_logging",
    "get_logger",
    "logger_for",
]
