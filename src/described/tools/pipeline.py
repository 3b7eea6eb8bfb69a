"""Tool: the runtime-invokable object built from a Descriptor.

A Tool binds a Descriptor to its compiled schemas, its dispatch strategy
(local callable or HTTP endpoint) and a cache store, and runs every call
through one linear pipeline:

    validate input -> cache lookup -> dispatch -> validate result -> cache write

Side-effecting ("action") tools are never cached. A cache hit returns the
stored value without dispatching and without re-validating it; only
results that passed validation are ever written. Cache reads and writes
fail open: store errors are logged and the invocation carries on.

Example:
    >>> greet = build({
    ...     "name": "greet",
    ...     "description": "Greets a person",
    ...     "input_schema": {
    ...         "type": "object",
    ...         "properties": {"name": {"type": "string"}, "age": {"type": "number"}},
    ...         "required": ["name"],
    ...     },
    ...     "func": lambda p: {"greeting": f"Hello, {p['name']}"},
    ... })
    >>> await greet.invoke({"name": "Bob"})
    {'greeting': 'Hello, Bob'}
"""

from __future__ import annotations

import asyncio
import inspect
from collections.abc import Callable, Mapping
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Any, Literal

import httpx
from pydantic import ValidationError as PydanticValidationError

from described.foundation.config import get_settings
from described.foundation.errors import CacheWriteError, ConfigurationError, JsonDict, ValidationError
from described.foundation.schema import CompiledSchema, compile_schema
from described.io.cache import CacheStore, make_key, resolve_store
from described.io.http import HttpDispatcher, HttpEndpoint
from described.runtime.observability import BoundLogger, LogSink, logger_for

from .descriptor import Descriptor, Intents, LocalTarget

if TYPE_CHECKING:
    from types import TracebackType


@dataclass(slots=True)
class InvokeOptions:
    """Per-call options for ``Tool.invoke``.

    Attributes:
        cache: False disables caching for this call; a registered store name
            or a store instance overrides the tool's store; None keeps it.
        log: Sink receiving this call's diagnostics (callable, logger-like
            object or ``logging.Logger``). None uses the library logger.
        headers: Inbound request headers, forwarded per ``proxy_headers``.
    """
    cache: Literal[False] | str | CacheStore | None = None
    log: LogSink | BoundLogger | None = None
    headers: Mapping[str, str] = field(default_factory=dict)


def _accepts_context(func: Callable[..., Any]) -> bool:
    """Whether func takes a second positional argument for the context."""
    try:
        params = inspect.signature(func).parameters.values()
    except (TypeError, ValueError):
        return False
    positional = 0
    for p in params:
        if p.kind is p.VAR_POSITIONAL:
            return True
        if p.kind in (p.POSITIONAL_ONLY, p.POSITIONAL_OR_KEYWORD):
            positional += 1
    return positional >= 2


def _is_async(func: Callable[..., Any]) -> bool:
    return inspect.iscoroutinefunction(func) or inspect.iscoroutinefunction(getattr(func, "__call__", None))


def _pascal(name: str) -> str:
    return "".join(part.capitalize() for part in name.replace("-", "_").split("_") if part) or "Tool"


class Tool:
    """A Descriptor bound to compiled validators, a dispatcher and a cache store.

    Schemas are compiled once here; invocation never re-parses them. Passing
    ``validate_input=False`` or ``validate_result=False`` skips compiling and
    checking that side entirely.

    Args:
        descriptor: Descriptor instance or a mapping of its fields
        validate_input: Check inputs against input_schema
        validate_result: Check dispatch results against result_schema
        store: Cache store for this tool (defaults to the process-wide store)
        client: httpx client for HTTP dispatch (created lazily if omitted)

    Raises:
        ConfigurationError: On an invalid descriptor or an uncompilable schema.
    """

    __slots__ = ("descriptor", "_input", "_result", "_store", "_http", "_func", "_func_context", "_func_async")

    def __init__(
        self,
        descriptor: Descriptor | Mapping[str, Any],
        *,
        validate_input: bool = True,
        validate_result: bool = True,
        store: CacheStore | None = None,
        client: httpx.AsyncClient | None = None,
    ) -> None:
        self.descriptor = _coerce(descriptor)
        d = self.descriptor
        self._input = self._compile(d.input_schema, "Input") if validate_input else None
        self._result = self._compile(d.result_schema, "Result") if validate_result else None
        self._store = store
        self._http: HttpDispatcher | None = None
        self._func: Callable[..., Any] | None = None

        match d.target:
            case LocalTarget(func=func):
                self._func = func
                self._func_context = _accepts_context(func)
                self._func_async = _is_async(func)
            case target:
                self._http = HttpDispatcher(target.endpoint, d.name, client=client)
                self._func_context = self._func_async = True

    def _compile(self, schema: object, side: str) -> CompiledSchema | None:
        if schema is None:
            return None
        return compile_schema(schema, name=f"{_pascal(self.descriptor.name)}{side}", owner=self.descriptor.name)

    # ─────────────────────────────────────────────────────────────────
    # Descriptor Passthrough
    # ─────────────────────────────────────────────────────────────────

    @property
    def name(self) -> str:
        return self.descriptor.name

    @property
    def description(self) -> str:
        return self.descriptor.description

    @property
    def intents(self) -> Intents:
        return self.descriptor.intents

    @property
    def input_schema(self) -> Any:
        return self.descriptor.input_schema

    @property
    def result_schema(self) -> Any:
        return self.descriptor.result_schema

    @property
    def cache(self) -> int | None:
        return self.descriptor.cache

    @property
    def client_cache(self) -> int | None:
        return self.descriptor.client_cache

    @property
    def func(self) -> Callable[..., Any] | None:
        return self.descriptor.func

    @property
    def http_endpoint(self) -> HttpEndpoint | None:
        return self.descriptor.http_endpoint

    @property
    def store(self) -> CacheStore:
        """Store used when a call does not override it."""
        return resolve_store(self._store)

    def __repr__(self) -> str:
        return f"Tool(name={self.name!r}, intents={self.intents!r})"

    # ─────────────────────────────────────────────────────────────────
    # Validation
    # ─────────────────────────────────────────────────────────────────

    def validate_input(self, value: object) -> bool:
        """Check value against the input schema.

        Returns:
            True when valid (or when input validation is disabled).

        Raises:
            ValidationError: With side "input" and every violation found.
        """
        return self._check(self._input, "input", value)

    def validate_result(self, value: object) -> bool:
        """Check value against the result schema. Raises ValidationError with side "result"."""
        return self._check(self._result, "result", value)

    def _check(self, compiled: CompiledSchema | None, side: Literal["input", "result"], value: object) -> bool:
        if compiled is not None and (violations := compiled.check(value)):
            raise ValidationError(self.name, side, violations)
        return True

    # ─────────────────────────────────────────────────────────────────
    # Invocation
    # ─────────────────────────────────────────────────────────────────

    def _cache_store(self, options: InvokeOptions) -> CacheStore | None:
        """Store to use for this call, or None when caching does not apply."""
        if options.cache is False or not self.descriptor.cacheable or not get_settings().cache.enabled:
            return None
        if options.cache is None:
            return resolve_store(self._store)
        try:
            return resolve_store(options.cache)
        except ConfigurationError as e:
            raise ConfigurationError(self.name, str(e)) from e

    async def invoke(self, input: Any, context: Any = None, options: InvokeOptions | None = None) -> Any:  # noqa: A002
        """Validate, consult the cache, dispatch, validate the result, populate the cache.

        Args:
            input: Value described by input_schema
            context: Passed through to ``func`` when it accepts a second argument
            options: Per-call cache override, log sink and inbound headers

        Raises:
            ValidationError: Input or result does not match its schema.
            ConfigurationError: options.cache names an unregistered store, or a GET
                endpoint received input that cannot become query parameters.
            TransportError: HTTP dispatch failed or returned non-2xx.
            UnsupportedContentTypeError: HTTP response body cannot be parsed.
        """
        opts = options or InvokeOptions()
        log = logger_for(opts.log, "described.tool").bind_tool(self.name, self.intents)

        self.validate_input(input)
        store = self._cache_store(opts)

        key: str | None = None
        if store is not None:
            try:
                key = make_key(self.name, input)
            except TypeError as e:
                log.warning("cache key derivation failed", error=str(e))
                store = None
        if store is not None and key is not None:
            try:
                cached = await store.get(key)
            except Exception as e:  # noqa: BLE001
                log.warning("cache read failed", key=key, error=str(e))
                cached = None
            if cached is not None:
                log.debug("cache hit", key=key)
                return cached
            log.debug("cache miss", key=key)

        result = await self._dispatch(input, context, opts)
        self.validate_result(result)

        if store is not None and key is not None:
            try:
                await store.set(key, result, self.descriptor.cache)  # type: ignore[arg-type]
            except Exception as e:  # noqa: BLE001
                err = CacheWriteError(self.name, key, e)
                log.warning("cache write failed", key=key, code=str(err.error.code), error=str(err))
        return result

    async def _dispatch(self, input: Any, context: Any, options: InvokeOptions) -> Any:  # noqa: A002
        if self._http is not None:
            return await self._http(input, context, inbound_headers=options.headers)
        func = self._func
        args = (input, context) if self._func_context else (input,)
        if self._func_async:
            return await func(*args)  # type: ignore[misc]
        result = await asyncio.to_thread(func, *args)  # type: ignore[arg-type]
        if inspect.isawaitable(result):
            result = await result
        return result

    async def __call__(self, input: Any, context: Any = None, options: InvokeOptions | None = None) -> Any:  # noqa: A002
        return await self.invoke(input, context, options)

    # ─────────────────────────────────────────────────────────────────
    # Discovery & HTTP Intermediary Helpers
    # ─────────────────────────────────────────────────────────────────

    def describe(self) -> JsonDict:
        """Discovery record: metadata plus both schemas in JSON-Schema form."""
        return {
            "name": self.name,
            "description": self.description,
            "intents": self.intents,
            "cache": self.cache,
            "client_cache": self.client_cache,
            "transport": "http" if self._http is not None else "local",
            "input_schema": self._schema_view(self._input, self.input_schema, "Input"),
            "result_schema": self._schema_view(self._result, self.result_schema, "Result"),
        }

    def _schema_view(self, compiled: CompiledSchema | None, schema: object, side: str) -> JsonDict | None:
        if compiled is not None:
            return compiled.json_schema
        if schema is None:
            return None
        return self._compile(schema, side).json_schema  # type: ignore[union-attr]

    def cache_headers(self) -> dict[str, str]:
        """Cache-Control header advertising client_cache (rounded up to whole seconds) to downstream consumers."""
        if self.intents == "action":
            return {"Cache-Control": "no-store"}
        if self.client_cache is None:
            return {}
        return {"Cache-Control": f"public, max-age={-(-self.client_cache // 1000)}"}

    def redirect_target(self, input: Any) -> tuple[int, str] | None:  # noqa: A002
        """Status and URL an intermediary should redirect to, or None when the endpoint proxies."""
        endpoint = self.http_endpoint
        if self._http is None or endpoint is None or endpoint.redirect is None:
            return None
        status = 302 if endpoint.redirect is True else endpoint.redirect
        return status, str(self._http.redirect_url(input))

    # ─────────────────────────────────────────────────────────────────
    # Lifecycle
    # ─────────────────────────────────────────────────────────────────

    async def aclose(self) -> None:
        """Release the lazily created HTTP client."""
        if self._http is not None:
            await self._http.aclose()

    async def __aenter__(self) -> Tool:
        return self

    async def __aexit__(
        self,
        exc_type: type[BaseException] | None,
        exc_val: BaseException | None,
        exc_tb: TracebackType | None,
    ) -> None:
        await self.aclose()


def _coerce(descriptor: Descriptor | Mapping[str, Any]) -> Descriptor:
    if isinstance(descriptor, Descriptor):
        return descriptor
    if not isinstance(descriptor, Mapping):
        raise ConfigurationError("", f"Expected Descriptor or mapping, got {type(descriptor).__name__}")
    try:
        return Descriptor.model_validate(dict(descriptor))
    except PydanticValidationError as e:
        raise ConfigurationError(str(descriptor.get("name") or ""), f"Invalid descriptor: {e}") from e


def build(
    descriptor: Descriptor | Mapping[str, Any],
    *,
    validate_input: bool = True,
    validate_result: bool = True,
    store: CacheStore | None = None,
    client: httpx.AsyncClient | None = None,
) -> Tool:
    """Build a Tool from a Descriptor or a mapping of its fields.

    Raises:
        ConfigurationError: Neither or both of func/http_endpoint set, or a schema cannot be compiled.
    """
    return Tool(descriptor, validate_input=validate_input, validate_result=validate_result, store=store, client=client)


