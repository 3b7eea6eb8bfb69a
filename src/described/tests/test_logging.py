"""Tests for structured logging and per-invocation sinks."""

import io
import logging

import orjson
import pytest

from described.runtime.observability import (
    BoundLogger,
    configure_logging,
    get_logger,
    log_context,
    logger_for,
    reset_logging,
)


@pytest.fixture(autouse=True)
def clean_logging() -> object:
    reset_logging()
    yield
    reset_logging()


def test_silent_until_configured(capsys: pytest.CaptureFixture[str]) -> None:
    get_logger("described.test").error("should not appear")
    captured = capsys.readouterr()
    assert captured.out == captured.err == ""


def test_console_renderer() -> None:
    out = io.StringIO()
    configure_logging("console", output=out, colors=False)
    get_logger("svc").info("cache hit", key="greet:ab", size=3)

    line = out.getvalue()
    assert "[info] cache hit" in line
    assert 'key="greet:ab"' in line
    assert "size=3" in line


def test_json_renderer_and_level_filter() -> None:
    out = io.StringIO()
    configure_logging("json", level="WARNING", output=out)
    log = get_logger("svc").bind(tool="greet")
    log.info("dropped")
    log.warning("cache write failed", key="greet:ab")

    lines = out.getvalue().splitlines()
    assert len(lines) == 1
    record = orjson.loads(lines[0])
    assert record["level"] == "warning"
    assert record["event"] == "cache write failed"
    assert record["tool"] == "greet"
    assert record["logger"] == "svc"


def test_unknown_format_rejected() -> None:
    with pytest.raises(ValueError):
        configure_logging("xml")


def test_log_context_scopes_fields() -> None:
    out = io.StringIO()
    configure_logging("json", output=out)
    log = get_logger()
    with log_context(request_id="r-1"):
        log.info("inside")
    log.info("outside")

    inside, outside = (orjson.loads(line) for line in out.getvalue().splitlines())
    assert inside["request_id"] == "r-1"
    assert "request_id" not in outside


def test_callable_sink() -> None:
    calls: list[tuple] = []
    log = logger_for(lambda *args: calls.append(args)).bind(tool="greet")
    log.debug("cache miss", key="k")
    log.error("boom")

    assert calls == [("cache miss", {"tool": "greet", "key": "k"}), ("boom", {"tool": "greet"})]


def test_sink_method_selection() -> None:
    class Provider:
        def __init__(self) -> None:
            self.seen: list[tuple[str, str]] = []

        def log(self, message: str, *_: object) -> None: self.seen.append(("log", message))
        def warn(self, message: str, *_: object) -> None: self.seen.append(("warn", message))
        def error(self, message: str, *_: object) -> None: self.seen.append(("error", message))

    provider = Provider()
    log = logger_for(provider)
    log.debug("d")
    log.info("i")
    log.warning("w")
    log.error("e")

    assert provider.seen == [("log", "d"), ("log", "i"), ("warn", "w"), ("error", "e")]


def test_stdlib_logger_sink(caplog: pytest.LogCaptureFixture) -> None:
    std = logging.getLogger("described.test.sink")
    with caplog.at_level(logging.DEBUG, logger="described.test.sink"):
        logger_for(std).warning("cache read failed", key="k")

    assert len(caplog.records) == 1
    record = caplog.records[0]
    assert record.levelno == logging.WARNING
    assert "cache read failed" in record.getMessage()


def test_logger_for_passthrough_and_errors() -> None:
    bound = BoundLogger()
    assert logger_for(bound) is bound
    assert isinstance(logger_for(None), BoundLogger)
    with pytest.raises(TypeError):
        logger_for(42)
