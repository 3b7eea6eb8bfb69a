"""Decorator-based tool definition for plain functions.

Example:
    >>> @tool(
    ...     intents="resource",
    ...     cache=60_000,
    ...     input_schema={"type": "object", "properties": {"city": {"type": "string"}}, "required": ["city"]},
    ... )
    ... async def forecast(params):
    ...     '''Forecast for a city.'''
    ...     return {"city": params["city"], "sky": "clear"}
    ...
    >>> await forecast.invoke({"city": "Oslo"})
    {'city': 'Oslo', 'sky': 'clear'}
"""

from __future__ import annotations

import re
from collections.abc import Callable
from typing import Any, overload

from .descriptor import Intents
from .pipeline import Tool


@overload
def tool(func: Callable[..., Any]) -> Tool: ...

@overload
def tool(
    *,
    name: str | None = None,
    description: str | None = None,
    intents: Intents = "action",
    input_schema: object = None,
    result_schema: object = None,
    cache: int | None = None,
    client_cache: int | None = None,
    **tool_options: Any,
) -> Callable[[Callable[..., Any]], Tool]: ...


def tool(
    func: Callable[..., Any] | None = None,
    *,
    name: str | None = None,
    description: str | None = None,
    intents: Intents = "action",
    input_schema: object = None,
    result_schema: object = None,
    cache: int | None = None,
    client_cache: int | None = None,
    **tool_options: Any,
) -> Tool | Callable[[Callable[..., Any]], Tool]:
    """Decorator building a Tool around a function.

    Args:
        func: The function to wrap (used when decorator called without parens)
        name: Tool name (defaults to the function name in snake_case)
        description: Tool description (defaults to first line of docstring)
        intents: "resource" or "action"
        input_schema: Portable or native input schema
        result_schema: Portable or native result schema
        cache: Server-side TTL in milliseconds
        client_cache: Advertised client TTL in milliseconds
        **tool_options: Forwarded to ``Tool`` (store, validate_input, ...)
    """
    def decorator(fn: Callable[..., Any]) -> Tool:
        tool_name = name or _to_snake_case(fn.__name__)
        built = Tool(
            {
                "name": tool_name,
                "description": description or _extract_description(fn.__doc__) or "",
                "intents": intents,
                "input_schema": input_schema,
                "result_schema": result_schema,
                "cache": cache,
                "client_cache": client_cache,
                "func": fn,
            },
            **tool_options,
        )
        return built

    # Support both @tool and @tool(...) syntax
    if func is not None:
        return decorator(func)
    return decorator


def _to_snake_case(name: str) -> str:
    s1 = re.sub(r"(.)([A-Z][a-z]+)", r"\1_\2", name)
    return re.sub(r"([a-z0-9])([A-Z])", r"\1_\2", s1).lower()


def _extract_description(docstring: str | None) -> str | None:
    """First line of docstring."""
    if not docstring:
        return None
    return docstring.strip().split("\n")[0].strip() or None
