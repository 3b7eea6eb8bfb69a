"""Observability for tool invocation: structured logging."""

from .logging import (
    BoundLogger,
    ConsoleRenderer,
    JsonRenderer,
    LogEntry,
    LogRenderer,
    LogSink,
    NoOpRenderer,
    SinkRenderer,
    configure_logging,
    get_logger,
    log_context,
    logger_for,
    reset_logging,
)

__all__ = [
    "BoundLogger",
    "ConsoleRenderer",
    "JsonRenderer",
    "LogEntry",
    "LogRenderer",
    "LogSink",
    "NoOpRenderer",
    "SinkRenderer",
    "configure_logging",
    "get_logger",
    "log_context",
    "logger_for",
    "reset_logging",
]
