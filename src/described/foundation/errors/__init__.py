"""Unified error handling for described tools.

- ErrorCode: Standard error codes for tool failures
- ToolError/ToolException: Structured errors and exceptions
- ConfigurationError, ValidationError, TransportError,
  UnsupportedContentTypeError, CacheWriteError: the invocation taxonomy
"""

from .errors import (
    CacheWriteError,
    ConfigurationError,
    ErrorCode,
    ToolError,
    ToolException,
    TransportError,
    UnsupportedContentTypeError,
    ValidationError,
)
from .types import JsonDict, JsonValue

__all__ = [
    # Core errors
    "ErrorCode", "ToolError", "ToolException",
    # Invocation taxonomy
    "ConfigurationError", "ValidationError", "TransportError",
    "UnsupportedContentTypeError", "CacheWriteError",
    # JSON aliases
    "JsonDict", "JsonValue",
]
