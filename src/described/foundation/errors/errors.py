"""Standardized error handling for described tools.

Provides error codes, a structured error record and the exception taxonomy
raised by the invocation pipeline. Uses Pydantic for validation and
serialization of the error record.
"""

from __future__ import annotations

from enum import StrEnum
from typing import TYPE_CHECKING, Annotated, Literal, Self

from pydantic import BaseModel, ConfigDict, Field, computed_field, field_validator

if TYPE_CHECKING:
    from described.foundation.schema import SchemaViolation


class ErrorCode(StrEnum):
    """Standard error codes for tool failures."""
    INVALID_CONFIG = "INVALID_CONFIG"
    INVALID_INPUT = "INVALID_INPUT"
    INVALID_RESULT = "INVALID_RESULT"
    TRANSPORT_ERROR = "TRANSPORT_ERROR"
    UNSUPPORTED_CONTENT_TYPE = "UNSUPPORTED_CONTENT_TYPE"
    CACHE_ERROR = "CACHE_ERROR"
    UNKNOWN = "UNKNOWN"


class ToolError(BaseModel):
    """Structured error response for tool failures.

    Attributes:
        tool_name: Name of the tool that failed
        message: Human-readable error message
        code: Machine-readable error code for programmatic handling
        recoverable: Whether the error might succeed on a later call
        details: Optional detailed information
    """

    model_config = ConfigDict(
        frozen=True,
        str_strip_whitespace=True,
        validate_default=True,
        json_schema_extra={
            "title": "Tool Error",
            "description": "Structured error from tool invocation",
            "examples": [{
                "tool_name": "greet",
                "message": "Input validation failed",
                "code": "INVALID_INPUT",
                "recoverable": False,
            }],
        },
    )

    tool_name: Annotated[str, Field(min_length=1, description="Name of the tool that produced the error")]
    message: Annotated[str, Field(min_length=1, description="Human-readable error message")]
    code: ErrorCode = Field(default=ErrorCode.UNKNOWN, description="Machine-readable error classification")
    recoverable: bool = Field(default=False, description="Whether a later call might succeed")
    details: str | None = Field(default=None, description="Optional detailed error info")

    @field_validator("message", mode="before")
    @classmethod
    def _ensure_message(cls, v: str | Exception) -> str:
        """Accept Exception objects and extract message."""
        return str(v) if isinstance(v, Exception) else v

    @computed_field
    @property
    def severity(self) -> str:
        """Error severity level for logging/display."""
        if self.code is ErrorCode.CACHE_ERROR:
            return "warning"
        if self.code is ErrorCode.INVALID_CONFIG:
            return "critical"
        return "error"

    @classmethod
    def create(
        cls,
        tool_name: str,
        message: str,
        code: ErrorCode = ErrorCode.UNKNOWN,
        *,
        recoverable: bool = False,
        details: str | None = None,
    ) -> Self:
        """Factory method for construction."""
        return cls(tool_name=tool_name, message=message, code=code, recoverable=recoverable, details=details)

    def render(self) -> str:
        """Format error for human or LLM consumption."""
        parts = [f"**Tool Error ({self.tool_name}):** {self.message}"]
        if self.recoverable:
            parts.append("\n_This error may be recoverable - consider retrying later._")
        if self.details:
            parts.append(f"\n\nDetails:\n```\n{self.details}\n```")
        return "".join(parts)

    __str__ = render


class ToolException(Exception):
    """Exception wrapping a ToolError for raising."""

    code: ErrorCode = ErrorCode.UNKNOWN
    recoverable: bool = False

    def __init__(self, tool_name: str, message: str, *, details: str | None = None) -> None:
        self.error = ToolError.create(
            tool_name or "unknown", message, self.code, recoverable=self.recoverable, details=details,
        )
        super().__init__(message)

    @property
    def tool_name(self) -> str:
        return self.error.tool_name


class ConfigurationError(ToolException):
    """Descriptor or invocation options are not usable (fatal, raised before any side effect)."""
    code = ErrorCode.INVALID_CONFIG


class ValidationError(ToolException):
    """Input or result failed schema validation.

    Carries the full ordered violation list and which side failed.
    """

    __slots__ = ("side", "violations")

    def __init__(self, tool_name: str, side: Literal["input", "result"], violations: list[SchemaViolation]) -> None:
        self.side = side
        self.violations = list(violations)
        self.code = ErrorCode.INVALID_INPUT if side == "input" else ErrorCode.INVALID_RESULT
        summary = "; ".join(str(v) for v in self.violations)
        super().__init__(tool_name, f"{side.capitalize()} validation failed: {summary}")


class TransportError(ToolException):
    """HTTP dispatch failed: non-2xx response or the request never completed."""

    code = ErrorCode.TRANSPORT_ERROR
    recoverable = True

    __slots__ = ("status", "reason")

    def __init__(self, tool_name: str, message: str, *, status: int | None = None, reason: str | None = None) -> None:
        self.status = status
        self.reason = reason
        super().__init__(tool_name, message)


class UnsupportedContentTypeError(ToolException):
    """Dispatch response has a content type the pipeline cannot parse."""

    code = ErrorCode.UNSUPPORTED_CONTENT_TYPE

    __slots__ = ("content_type",)

    def __init__(self, tool_name: str, content_type: str | None) -> None:
        self.content_type = content_type
        super().__init__(tool_name, f"Unsupported or missing content type: {content_type or 'none'}")


class CacheWriteError(ToolException):
    """Persisting a computed result to the cache store failed. Logged, never propagated."""

    code = ErrorCode.CACHE_ERROR
    recoverable = True

    __slots__ = ("key",)

    def __init__(self, tool_name: str, key: str, cause: Exception) -> None:
        self.key = key
        super().__init__(tool_name, f"Failed to write cache entry {key}: {cause}", details=type(cause).__name__)
