"""
Job types for simple-jobs.

This module defines the JobResult tagged union and the JobRecord dataclass
that every store persists.
"""

from __future__ import annotations

import time
import uuid
from dataclasses import dataclass, field, replace
from typing import Any, Generic, TypeVar

from .errors import InvalidTransitionError, JobFailedError
from .status import STAGE_INITIAL, STAGE_TERMINAL, StatusModel

StatusT = TypeVar("StatusT")


def new_job_id() -> str:
    """Generate a job identity (canonical UUID4 string)."""
    return str(uuid.uuid4())


@dataclass(frozen=True)
class JobResult:
    """Outcome of a job: exactly one of a success value or a failure payload."""

    value: Any = None
    error: Any = None
    ok: bool = True

    @classmethod
    def success(cls, value: Any) -> JobResult:
        return cls(value=value, ok=True)

    @classmethod
    def failure(cls, error: Any) -> JobResult:
        return cls(error=error, ok=False)

    @property
    def is_ok(self) -> bool:
        return self.ok

    @property
    def is_err(self) -> bool:
        return not self.ok

    def unwrap(self) -> Any:
        """Return the success value, or raise JobFailedError with the payload."""
        if self.ok:
            return self.value
        raise JobFailedError(self.error)

    def to_dict(self) -> dict[str, Any]:
        if self.ok:
            return {"ok": self.value}
        return {"err": self.error}

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> JobResult:
        if not isinstance(data, dict) or len(data) != 1:
            raise ValueError(f"Result must have exactly one of 'ok' or 'err': {data!r}")
        if "ok" in data:
            return cls.success(data["ok"])
        if "err" in data:
            return cls.failure(data["err"])
        raise ValueError(f"Result must have exactly one of 'ok' or 'err': {data!r}")


@dataclass
class JobRecord(Generic[StatusT]):
    """Persisted snapshot of a job.

    ``result`` stays None until the status is terminal, and is never cleared
    afterwards. ``metadata`` is attached at submission and never rewritten by
    the engine.
    """
    job_id: str = field(default_factory=new_job_id)
    status: StatusT | None = None
    result: JobResult | None = None
    metadata: Any = None

    created_at: float = field(default_factory=time.time)
    updated_at: float = field(default_factory=time.time)

    @classmethod
    def new(cls, status: StatusT, metadata: Any = None) -> JobRecord[StatusT]:
        """Create a record for a freshly submitted job."""
        return cls(status=status, metadata=metadata)

    def is_finished(self, model: StatusModel) -> bool:
        return model.is_terminal(self.status)

    def check(self, model: StatusModel) -> None:
        """Validate that ``result`` is set exactly when the status is terminal.

        Raises:
            InvalidTransitionError: If the invariant does not hold
        """
        terminal = model.is_terminal(self.status)
        if terminal and self.result is None:
            raise InvalidTransitionError(
                f"Job {self.job_id} is terminal but has no result",
                current=self.status,
            )
        if not terminal and self.result is not None:
            raise InvalidTransitionError(
                f"Job {self.job_id} has a result but is not terminal",
                current=self.status,
            )

    def with_status(self, status: StatusT, model: StatusModel) -> JobRecord[StatusT]:
        """Create a copy with a new non-terminal status.

        Raises:
            InvalidTransitionError: If the change would leave the terminal
                state, go back to the initial state, or skip ``finish``
        """
        current = model.rank(self.status)
        requested = model.rank(status)
        if current == STAGE_TERMINAL:
            raise InvalidTransitionError(
                f"Job {self.job_id} is already finished",
                current=self.status,
                requested=status,
            )
        if requested == STAGE_TERMINAL:
            raise InvalidTransitionError(
                f"Job {self.job_id} can only reach its terminal status with a result",
                current=self.status,
                requested=status,
            )
        if requested == STAGE_INITIAL and current != STAGE_INITIAL:
            raise InvalidTransitionError(
                f"Job {self.job_id} cannot return to its initial status",
                current=self.status,
                requested=status,
            )
        return replace(self, status=status, updated_at=time.time())

    def finish(self, result: JobResult, model: StatusModel) -> JobRecord[StatusT]:
        """Create the terminal copy carrying ``result``.

        Raises:
            InvalidTransitionError: If the record is already terminal
        """
        if model.is_terminal(self.status):
            raise InvalidTransitionError(
                f"Job {self.job_id} is already finished",
                current=self.status,
                requested=model.terminal(),
            )
        return replace(self, status=model.terminal(), result=result, updated_at=time.time())


__all__ = [
    "JobResult",
    "JobRecord",
    "new_job_id",
]
