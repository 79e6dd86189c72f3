"""Tests for structured logging."""

import json
import logging
import sys

from contentsync.observability.logging import (
    ConsoleFormatter,
    JsonFormatter,
    LogContext,
    channel_var,
    request_id_var,
    sync_run_id_var,
)


def make_record(message: str = "Sync completed", **extra) -> logging.LogRecord:
    record = logging.LogRecord(
        name="contentsync.ingestion.engine",
        level=logging.INFO,
        pathname=__file__,
        lineno=10,
        msg=message,
        args=(),
        exc_info=None,
    )
    for key, value in extra.items():
        setattr(record, key, value)
    return record


class TestLogContext:
    """Test context variable handling."""

    def test_sets_and_restores(self) -> None:
        with LogContext(sync_run_id="abc12345", channel="@channel"):
            assert sync_run_id_var.get() == "abc12345"
            assert channel_var.get() == "@channel"

        assert sync_run_id_var.get() == ""
        assert channel_var.get() == ""

    def test_unknown_keys_ignored(self) -> None:
        with LogContext(colour="red"):
            pass


class TestJsonFormatter:
    """Test JSON output."""

    def test_includes_context(self) -> None:
        with LogContext(sync_run_id="abc12345"):
            output = json.loads(JsonFormatter().format(make_record()))

        assert output["message"] == "Sync completed"
        assert output["level"] == "INFO"
        assert output["sync_run_id"] == "abc12345"
        assert "request_id" not in output

    def test_includes_extra_fields(self) -> None:
        output = json.loads(JsonFormatter().format(make_record(content_id=42)))
        assert output["content_id"] == 42

    def test_exception_info(self) -> None:
        try:
            raise ValueError("bad")
        except ValueError:
            record = make_record()
            record.exc_info = sys.exc_info()

        output = json.loads(JsonFormatter().format(record))
        assert output["exception"]["type"] == "ValueError"


class TestConsoleFormatter:
    def test_includes_request_id(self) -> None:
        token = request_id_var.set("0123456789")
        try:
            line = ConsoleFormatter(use_colors=False).format(make_record())
        finally:
            request_id_var.reset(token)

        assert "Sync completed" in line
        assert "req=01234567" in line
