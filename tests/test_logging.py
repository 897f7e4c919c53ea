"""Tests for structured logging."""

import json
import logging

from simple_jobs.errors import ErrorContext, StorageIOError
from simple_jobs.logging import (
    JSONFormatter,
    LogContext,
    StructuredLogger,
    TextFormatter,
    configure_logging,
    get_logger,
)


def _record(message: str, level: int = logging.INFO) -> logging.LogRecord:
    return logging.LogRecord("simple_jobs", level, __file__, 1, message, None, None)


class TestLogContext:
    def test_to_dict_drops_empty_fields(self):
        ctx = LogContext(job_id="abc", extra={"attempt": 2})

        assert ctx.to_dict() == {"job_id": "abc", "attempt": 2}

    def test_with_update_merges(self):
        ctx = LogContext(job_id="abc", extra={"a": 1})

        updated = ctx.with_update(backend="fs", extra={"b": 2})

        assert updated.job_id == "abc"
        assert updated.backend == "fs"
        assert updated.extra == {"a": 1, "b": 2}
        assert ctx.backend is None


class TestStructuredLogger:
    def test_job_context_is_scoped(self, caplog):
        caplog.set_level(logging.DEBUG, logger="simple_jobs.test")
        logger = StructuredLogger("simple_jobs.test", level="DEBUG")

        with logger.job_context("abc", backend="fs"):
            logger.log_completed("abc", True)
        logger.log_completed("def", False)

        inside, outside = [r.getMessage() for r in caplog.records]
        assert "job_id=abc" in inside and "backend=fs" in inside
        assert "backend" not in outside
        assert logger.context.job_id is None

    def test_json_output(self, caplog):
        caplog.set_level(logging.DEBUG, logger="simple_jobs.json")
        logger = StructuredLogger("simple_jobs.json", level="DEBUG", json_output=True)

        logger.log_submitted("abc")

        data = json.loads(caplog.records[-1].getMessage())
        assert data["event_type"] == "submitted"
        assert data["job_id"] == "abc"

    def test_final_save_failed_is_critical(self, caplog):
        caplog.set_level(logging.DEBUG, logger="simple_jobs.critical")
        logger = StructuredLogger("simple_jobs.critical", level="DEBUG")

        logger.log_final_save_failed("abc", StorageIOError("disk full"))

        record = caplog.records[-1]
        assert record.levelno == logging.CRITICAL
        assert "final_save_failed" in record.getMessage()
        assert record.exc_info is not None

    def test_log_error_includes_code_and_context(self, caplog):
        caplog.set_level(logging.DEBUG, logger="simple_jobs.errors")
        logger = StructuredLogger("simple_jobs.errors", level="DEBUG", json_output=True)
        err = StorageIOError("boom", context=ErrorContext(job_id="abc", operation="save"))

        logger.log_error(err)

        data = json.loads(caplog.records[-1].getMessage())
        assert data["error_code"] == "ERR_1002"
        assert data["error_context"]["operation"] == "save"


class TestFormatters:
    def test_json_formatter_merges_json_messages(self):
        line = JSONFormatter().format(_record(json.dumps({"message": "hi", "job_id": "abc"})))

        data = json.loads(line)
        assert data["message"] == "hi"
        assert data["job_id"] == "abc"
        assert data["level"] == "INFO"

    def test_json_formatter_plain_message(self):
        data = json.loads(JSONFormatter().format(_record("plain")))

        assert data["message"] == "plain"

    def test_text_formatter(self):
        line = TextFormatter().format(_record("hello", logging.WARNING))

        assert "WARNING" in line
        assert line.endswith("hello")


class TestConfigureLogging:
    def test_switches_existing_handlers_to_requested_format(self):
        base = get_logger()
        assert base.logger.handlers

        try:
            configured = configure_logging(level="DEBUG", json_output=True)

            assert get_logger() is configured
            assert configured.json_output
            assert all(isinstance(h.formatter, JSONFormatter) for h in configured.logger.handlers)
        finally:
            restored = configure_logging()

        assert all(isinstance(h.formatter, TextFormatter) for h in restored.logger.handlers)
