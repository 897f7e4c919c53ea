"""
In-memory job store.
"""

from __future__ import annotations

import asyncio
import copy

from ..errors import JobNotFoundError
from ..types import JobRecord
from .base import JobStore, JobStoreBackendName


class InMemoryJobStore(JobStore):
    """In-memory job store implementation.

    Suitable for testing and single-process deployments. Snapshots are deep
    copied on the way in and out, so a caller mutating a loaded record never
    changes what the store holds. Replacing semantics: one snapshot per id.
    """

    name: JobStoreBackendName = "memory"

    def __init__(self) -> None:
        self._jobs: dict[str, JobRecord] = {}
        self._lock = asyncio.Lock()

    async def save(self, record: JobRecord) -> None:
        snapshot = copy.deepcopy(record)
        async with self._lock:
            self._jobs[record.job_id] = snapshot

    async def load(self, job_id: str) -> JobRecord:
        async with self._lock:
            snapshot = self._jobs.get(job_id)
        if snapshot is None:
            raise JobNotFoundError(job_id, backend=self.name)
        return copy.deepcopy(snapshot)

    async def count(self) -> int:
        async with self._lock:
            return len(self._jobs)

    async def clear(self) -> None:
        async with self._lock:
            self._jobs.clear()


__all__ = ["InMemoryJobStore"]
