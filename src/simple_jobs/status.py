"""
Status values for the job lifecycle.

Two representations are provided:
- JobStatus: a small fixed enumeration (the common case)
- ProgressStatus: started / custom(payload) / finished, for callers that
  report their own progress values (percent complete, phase names)

The engine never inspects a status directly. It goes through a StatusModel,
which is also the extension point for caller-defined status types.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Any, Protocol, TypeVar, runtime_checkable

from .errors import SerializationError

S = TypeVar("S")

# Lifecycle stages used for monotonicity checks.
STAGE_INITIAL = 0
STAGE_INTERMEDIATE = 1
STAGE_TERMINAL = 2


class JobStatus(str, Enum):
    """Job lifecycle states.

    State transitions:
    - STARTED -> RUNNING (optional progress report)
    - STARTED -> FINISHED
    - RUNNING -> FINISHED
    """
    STARTED = "started"
    RUNNING = "running"
    FINISHED = "finished"

    @property
    def is_terminal(self) -> bool:
        return self is JobStatus.FINISHED


class ProgressKind(str, Enum):
    STARTED = "started"
    CUSTOM = "custom"
    FINISHED = "finished"


@dataclass(frozen=True)
class ProgressStatus:
    """Status carrying an optional application payload while the job runs."""
    kind: ProgressKind
    value: Any = None

    @classmethod
    def started(cls) -> ProgressStatus:
        return cls(ProgressKind.STARTED)

    @classmethod
    def finished(cls) -> ProgressStatus:
        return cls(ProgressKind.FINISHED)

    @classmethod
    def custom(cls, value: Any) -> ProgressStatus:
        return cls(ProgressKind.CUSTOM, value)

    @property
    def is_terminal(self) -> bool:
        return self.kind is ProgressKind.FINISHED


@runtime_checkable
class StatusModel(Protocol[S]):
    """
    Protocol for pluggable status representations.

    The engine only calls ``initial()`` and ``terminal()``. ``custom()`` is
    for work functions that want to publish intermediate progress.
    """

    def initial(self) -> S:
        """Status assigned at submission."""
        ...

    def terminal(self) -> S:
        """Status assigned when the work has produced a result."""
        ...

    def custom(self, payload: Any) -> S:
        """Intermediate status built from an application payload."""
        ...

    def is_terminal(self, status: S) -> bool:
        ...

    def rank(self, status: S) -> int:
        """Lifecycle stage: 0 initial, 1 intermediate, 2 terminal."""
        ...

    def dump(self, status: S) -> Any:
        """JSON-safe representation of ``status``."""
        ...

    def parse(self, raw: Any) -> S:
        """Inverse of ``dump``."""
        ...


class EnumStatusModel:
    """Default model over the fixed JobStatus enumeration."""

    def initial(self) -> JobStatus:
        return JobStatus.STARTED

    def terminal(self) -> JobStatus:
        return JobStatus.FINISHED

    def custom(self, payload: Any) -> JobStatus:
        status = self.parse(payload)
        if status is not JobStatus.RUNNING:
            raise ValueError(f"Only 'running' is a valid intermediate status, got {payload!r}")
        return status

    def is_terminal(self, status: JobStatus) -> bool:
        return status is JobStatus.FINISHED

    def rank(self, status: JobStatus) -> int:
        if status is JobStatus.STARTED:
            return STAGE_INITIAL
        if status is JobStatus.FINISHED:
            return STAGE_TERMINAL
        return STAGE_INTERMEDIATE

    def dump(self, status: JobStatus) -> str:
        if not isinstance(status, JobStatus):
            raise SerializationError(f"Not a JobStatus: {status!r}")
        return status.value

    def parse(self, raw: Any) -> JobStatus:
        try:
            return JobStatus(raw)
        except ValueError as exc:
            raise SerializationError(f"Unknown job status: {raw!r}", cause=exc) from exc


class ProgressStatusModel:
    """Model over ProgressStatus; custom payloads must be JSON-serializable."""

    def initial(self) -> ProgressStatus:
        return ProgressStatus.started()

    def terminal(self) -> ProgressStatus:
        return ProgressStatus.finished()

    def custom(self, payload: Any) -> ProgressStatus:
        return ProgressStatus.custom(payload)

    def is_terminal(self, status: ProgressStatus) -> bool:
        return status.is_terminal

    def rank(self, status: ProgressStatus) -> int:
        if status.kind is ProgressKind.STARTED:
            return STAGE_INITIAL
        if status.kind is ProgressKind.FINISHED:
            return STAGE_TERMINAL
        return STAGE_INTERMEDIATE

    def dump(self, status: ProgressStatus) -> Any:
        if not isinstance(status, ProgressStatus):
            raise SerializationError(f"Not a ProgressStatus: {status!r}")
        if status.kind is ProgressKind.CUSTOM:
            return {"custom": status.value}
        return status.kind.value

    def parse(self, raw: Any) -> ProgressStatus:
        if isinstance(raw, dict) and set(raw) == {"custom"}:
            return ProgressStatus.custom(raw["custom"])
        if raw == ProgressKind.STARTED.value:
            return ProgressStatus.started()
        if raw == ProgressKind.FINISHED.value:
            return ProgressStatus.finished()
        raise SerializationError(f"Unknown progress status: {raw!r}")


DEFAULT_STATUS_MODEL = EnumStatusModel()


__all__ = [
    "JobStatus",
    "ProgressKind",
    "ProgressStatus",
    "StatusModel",
    "EnumStatusModel",
    "ProgressStatusModel",
    "DEFAULT_STATUS_MODEL",
    "STAGE_INITIAL",
    "STAGE_INTERMEDIATE",
    "STAGE_TERMINAL",
]
