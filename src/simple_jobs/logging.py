"""
Structured Logging for simple-jobs.

This module provides:
- Structured JSON or text logging with consistent fields
- Job-scoped context (job_id, backend, operation)
- Typed events for the job lifecycle, including the failed terminal save
"""

from __future__ import annotations

import json
import logging
import sys
from collections.abc import Iterator
from contextlib import contextmanager
from dataclasses import asdict, dataclass, field
from datetime import datetime, timezone
from typing import Any

# =============================================================================
# Log Context
# =============================================================================


@dataclass
class LogContext:
    """Context information attached to log records."""

    job_id: str | None = None
    backend: str | None = None
    operation: str | None = None
    extra: dict[str, Any] = field(default_factory=dict)

    def to_dict(self) -> dict[str, Any]:
        d = {k: v for k, v in asdict(self).items() if v is not None and k != "extra"}
        d.update(self.extra)
        return d

    def with_update(self, **kwargs) -> LogContext:
        """Create a new context with updated values."""
        return LogContext(
            job_id=kwargs.get("job_id", self.job_id),
            backend=kwargs.get("backend", self.backend),
            operation=kwargs.get("operation", self.operation),
            extra={**self.extra, **kwargs.get("extra", {})},
        )


# =============================================================================
# Structured Logger
# =============================================================================


class StructuredLogger:
    """
    Logger with structured output and context tracking.

    Example:
        ```python
        logger = StructuredLogger("simple_jobs")

        with logger.job_context(job_id, backend="fs"):
            logger.log_submitted(job_id)
        ```
    """

    def __init__(
        self,
        name: str = "simple_jobs",
        level: str = "INFO",
        json_output: bool = False,
    ):
        self.name = name
        self.json_output = json_output

        self._logger = logging.getLogger(name)
        self._logger.setLevel(getattr(logging, level.upper()))
        self._context: LogContext = LogContext()

        # Configure handler if not already configured
        if not self._logger.handlers:
            handler = logging.StreamHandler(sys.stderr)
            handler.setFormatter(JSONFormatter() if json_output else TextFormatter())
            self._logger.addHandler(handler)

    @property
    def logger(self) -> logging.Logger:
        return self._logger

    @property
    def context(self) -> LogContext:
        return self._context

    @contextmanager
    def job_context(self, job_id: str, **kwargs) -> Iterator[str]:
        """Scope log records to a single job."""
        old_context = self._context
        try:
            self._context = old_context.with_update(job_id=job_id, **kwargs)
            yield job_id
        finally:
            self._context = old_context

    def _log(
        self,
        level: int,
        message: str,
        event_type: str | None = None,
        data: dict[str, Any] | None = None,
        exc_info: BaseException | None = None,
    ) -> None:
        """Internal logging method."""
        record_data = {
            "message": message,
            **self._context.to_dict(),
        }

        if event_type:
            record_data["event_type"] = event_type

        if data:
            record_data.update(data)

        if self.json_output:
            self._logger.log(level, json.dumps(record_data, default=str), exc_info=exc_info)
        else:
            extras = " ".join(f"{k}={v}" for k, v in record_data.items() if k != "message")
            self._logger.log(level, f"{message} {extras}".rstrip(), exc_info=exc_info)

    # Typed logging methods

    def log_submitted(self, job_id: str) -> None:
        self._log(
            logging.DEBUG,
            f"Job {job_id} submitted",
            event_type="submitted",
            data={"job_id": job_id},
        )

    def log_completed(self, job_id: str, ok: bool) -> None:
        self._log(
            logging.INFO if ok else logging.WARNING,
            f"Job {job_id} finished {'ok' if ok else 'with error'}",
            event_type="completed",
            data={"job_id": job_id, "ok": ok},
        )

    def log_work_error(self, job_id: str, error: BaseException) -> None:
        """An unexpected exception escaped a work function and became its result."""
        self._log(
            logging.WARNING,
            f"Job {job_id} raised {type(error).__name__}: {error}",
            event_type="work_error",
            data={"job_id": job_id, "error_type": type(error).__name__},
            exc_info=error,
        )

    def log_final_save_failed(self, job_id: str, error: BaseException) -> None:
        """The terminal snapshot never reached the store; the job looks stuck."""
        self._log(
            logging.CRITICAL,
            f"Job {job_id} finished but its terminal state could not be saved",
            event_type="final_save_failed",
            data={
                "job_id": job_id,
                "error_type": type(error).__name__,
                "error_message": str(error),
            },
            exc_info=error,
        )

    def log_error(
        self,
        error: Exception,
        message: str | None = None,
        **kwargs,
    ) -> None:
        """Log an error with context."""
        error_data = {
            "error_type": type(error).__name__,
            "error_message": str(error),
            **kwargs,
        }

        if hasattr(error, "code"):
            error_data["error_code"] = str(error.code.value)
        if hasattr(error, "context") and error.context:
            error_data["error_context"] = error.context.to_dict()

        self._log(
            logging.ERROR,
            message or f"Error: {error}",
            event_type="error",
            data=error_data,
        )


# =============================================================================
# Formatters
# =============================================================================


class JSONFormatter(logging.Formatter):
    """JSON log formatter."""

    def format(self, record: logging.LogRecord) -> str:
        log_data = {
            "timestamp": datetime.now(timezone.utc).isoformat(),
            "level": record.levelname,
            "logger": record.name,
        }

        # Parse JSON message if present
        try:
            message_data = json.loads(record.getMessage())
            if isinstance(message_data, dict):
                log_data.update(message_data)
            else:
                log_data["message"] = record.getMessage()
        except (json.JSONDecodeError, TypeError):
            log_data["message"] = record.getMessage()

        if record.exc_info:
            log_data["exception"] = self.formatException(record.exc_info)

        return json.dumps(log_data, default=str)


class TextFormatter(logging.Formatter):
    """Human-readable text formatter."""

    LEVEL_COLORS = {
        "DEBUG": "\033[36m",  # Cyan
        "INFO": "\033[32m",  # Green
        "WARNING": "\033[33m",  # Yellow
        "ERROR": "\033[31m",  # Red
        "CRITICAL": "\033[35m",  # Magenta
    }
    RESET = "\033[0m"

    def format(self, record: logging.LogRecord) -> str:
        timestamp = datetime.now(timezone.utc).strftime("%H:%M:%S.%f")[:-3]
        color = self.LEVEL_COLORS.get(record.levelname, "")
        reset = self.RESET if color else ""

        line = f"{timestamp} {color}{record.levelname:8}{reset} {record.getMessage()}"
        if record.exc_info:
            line += "\n" + self.formatException(record.exc_info)
        return line


# =============================================================================
# Global Logger
# =============================================================================

_default_logger: StructuredLogger | None = None


def get_logger(name: str = "simple_jobs") -> StructuredLogger:
    """Get or create a structured logger."""
    global _default_logger
    if _default_logger is None or _default_logger.name != name:
        _default_logger = StructuredLogger(name)
    return _default_logger


def configure_logging(
    level: str = "INFO",
    json_output: bool = False,
    **kwargs: Any,
) -> StructuredLogger:
    """Configure the default logger.

    Handlers already attached to the logger are switched to the requested
    formatter as well, so a format change applies on reconfiguration.
    """
    global _default_logger
    _default_logger = StructuredLogger(
        level=level,
        json_output=json_output,
        **kwargs,
    )
    formatter = JSONFormatter() if json_output else TextFormatter()
    for handler in _default_logger.logger.handlers:
        handler.setFormatter(formatter)
    return _default_logger


__all__ = [
    "LogContext",
    "StructuredLogger",
    "JSONFormatter",
    "TextFormatter",
    "get_logger",
    "configure_logging",
]
