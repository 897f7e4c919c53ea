"""
Error taxonomy for simple-jobs.

This module provides a hierarchical exception system with:
- Error codes for programmatic handling
- Structured context for debugging
- A storage branch that backends map their driver errors onto
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Any


class ErrorCode(str, Enum):
    """Standardized error codes for simple-jobs."""

    # Storage errors (1xxx)
    STORAGE_ERROR = "ERR_1000"
    JOB_NOT_FOUND = "ERR_1001"
    STORAGE_IO = "ERR_1002"
    SERIALIZATION = "ERR_1003"

    # Lifecycle errors (2xxx)
    INVALID_TRANSITION = "ERR_2001"
    WAIT_TIMEOUT = "ERR_2002"
    JOB_FAILED = "ERR_2003"

    # Configuration errors (6xxx)
    CONFIG_ERROR = "ERR_6000"

    # Internal errors (9xxx)
    INTERNAL_ERROR = "ERR_9000"


@dataclass
class ErrorContext:
    """Structured context for error debugging."""

    job_id: str | None = None
    backend: str | None = None
    operation: str | None = None
    extra: dict[str, Any] = field(default_factory=dict)

    def to_dict(self) -> dict[str, Any]:
        return {
            "job_id": self.job_id,
            "backend": self.backend,
            "operation": self.operation,
            **self.extra,
        }


class SimpleJobsError(Exception):
    """
    Base exception for all simple-jobs errors.

    Attributes:
        code: Standardized error code for programmatic handling
        message: Human-readable error message
        context: Structured debugging context
        cause: Original exception that caused this error
    """

    code: ErrorCode = ErrorCode.INTERNAL_ERROR

    def __init__(
        self,
        message: str,
        *,
        code: ErrorCode | None = None,
        context: ErrorContext | None = None,
        cause: BaseException | None = None,
    ):
        super().__init__(message)
        self.message = message
        if code is not None:
            self.code = code
        self.context = context or ErrorContext()
        self.cause = cause

    def __str__(self) -> str:
        parts = [f"[{self.code.value}] {self.message}"]
        if self.context.job_id:
            parts.append(f"(job_id={self.context.job_id})")
        return " ".join(parts)

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary for logging/serialization."""
        return {
            "error_type": self.__class__.__name__,
            "code": self.code.value,
            "message": self.message,
            "context": self.context.to_dict(),
            "cause": str(self.cause) if self.cause else None,
        }


# =============================================================================
# Storage Errors
# =============================================================================


class StorageError(SimpleJobsError):
    """Base class for errors raised by a job store."""

    code = ErrorCode.STORAGE_ERROR


class JobNotFoundError(StorageError):
    """No record has ever been saved for the requested job id."""

    code = ErrorCode.JOB_NOT_FOUND

    def __init__(
        self,
        job_id: str,
        *,
        backend: str | None = None,
        **kwargs,
    ):
        kwargs.setdefault("context", ErrorContext(job_id=job_id, backend=backend, operation="load"))
        super().__init__(f"Job not found: {job_id}", **kwargs)
        self.job_id = job_id


class StorageIOError(StorageError):
    """The backend failed to read or write."""

    code = ErrorCode.STORAGE_IO


class SerializationError(StorageError):
    """A record could not be encoded to or decoded from its stored form."""

    code = ErrorCode.SERIALIZATION


# =============================================================================
# Lifecycle Errors
# =============================================================================


class InvalidTransitionError(SimpleJobsError):
    """A status change would move a job backwards or out of its terminal state."""

    code = ErrorCode.INVALID_TRANSITION

    def __init__(
        self,
        message: str,
        *,
        current: Any = None,
        requested: Any = None,
        **kwargs,
    ):
        super().__init__(message, **kwargs)
        self.current = current
        self.requested = requested


class WaitTimeoutError(SimpleJobsError):
    """The job did not reach its terminal state before the deadline."""

    code = ErrorCode.WAIT_TIMEOUT

    def __init__(
        self,
        job_id: str,
        timeout: float,
        **kwargs,
    ):
        kwargs.setdefault("context", ErrorContext(job_id=job_id, operation="wait"))
        super().__init__(f"Job {job_id} did not finish within {timeout}s", **kwargs)
        self.job_id = job_id
        self.timeout = timeout


class JobFailedError(SimpleJobsError):
    """
    Explicit job failure carrying a caller-defined error payload.

    Raise it from a work function to store ``error`` verbatim as the job's
    failure result. ``JobResult.unwrap()`` raises it for failed results.
    """

    code = ErrorCode.JOB_FAILED

    def __init__(self, error: Any, message: str | None = None, **kwargs):
        super().__init__(message or f"Job failed: {error!r}", **kwargs)
        self.error = error


class ConfigError(SimpleJobsError, ValueError):
    """Invalid or incomplete configuration."""

    code = ErrorCode.CONFIG_ERROR


__all__ = [
    "ErrorCode",
    "ErrorContext",
    "SimpleJobsError",
    "StorageError",
    "JobNotFoundError",
    "StorageIOError",
    "SerializationError",
    "InvalidTransitionError",
    "WaitTimeoutError",
    "JobFailedError",
    "ConfigError",
]
