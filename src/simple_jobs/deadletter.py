"""
Dead-letter sinks for terminal snapshots that could not be saved.

When a job's work has finished but the final save fails, nobody is left to
receive the exception. The engine logs the failure and hands the terminal
record to a sink, so the outcome is not lost and operators can tell the job
apart from one that is still running.
"""

from __future__ import annotations

import asyncio
import time
from abc import ABC, abstractmethod
from dataclasses import dataclass, field

from .types import JobRecord


@dataclass
class DeadLetter:
    """A terminal record that never reached its store."""
    record: JobRecord
    error: BaseException
    failed_at: float = field(default_factory=time.time)

    @property
    def job_id(self) -> str:
        return self.record.job_id


class DeadLetterSink(ABC):
    """Receives terminal records whose final save failed.

    Implementations must not raise; the caller has nowhere to send it.
    """

    @abstractmethod
    async def record(self, letter: DeadLetter) -> None:
        ...


class InMemoryDeadLetterSink(DeadLetterSink):
    """Keeps dead letters in a list. Suitable for tests and single-process use."""

    def __init__(self) -> None:
        self._letters: list[DeadLetter] = []
        self._lock = asyncio.Lock()

    async def record(self, letter: DeadLetter) -> None:
        async with self._lock:
            self._letters.append(letter)

    @property
    def letters(self) -> list[DeadLetter]:
        return list(self._letters)

    def __len__(self) -> int:
        return len(self._letters)


__all__ = ["DeadLetter", "DeadLetterSink", "InMemoryDeadLetterSink"]
