"""
Storage port for job records.

Every backend implements ``save`` and ``load``:

- ``save(record)`` persists the full snapshot keyed by ``record.job_id``. It is
  called once at submission and once more per status change; each call is the
  new authoritative snapshot, no merging with earlier state.
- ``load(job_id)`` returns the most recently saved snapshot, or raises
  JobNotFoundError. Backends that keep several rows per job resolve "most
  recent" by a monotonic sequence, never by arbitrary row order.

Implementations must be safe for concurrent use from many jobs at once.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import Literal

from ..errors import JobNotFoundError
from ..types import JobRecord

JobStoreBackendName = Literal["memory", "fs", "sqlite", "postgres"]


class JobStore(ABC):
    """Abstract interface for job persistence."""

    name: JobStoreBackendName

    async def ensure_ready(self) -> None:
        """Initialize the backend (tables, directories). Default no-op."""
        return None

    async def close(self) -> None:
        """Release connections. Default no-op."""
        return None

    @abstractmethod
    async def save(self, record: JobRecord) -> None:
        """Persist ``record`` as the latest snapshot for its job id.

        Raises:
            StorageIOError: If the backend cannot write
            SerializationError: If the record cannot be encoded
        """
        ...

    @abstractmethod
    async def load(self, job_id: str) -> JobRecord:
        """Return the latest snapshot for ``job_id``.

        Raises:
            JobNotFoundError: If nothing was ever saved for ``job_id``
            StorageIOError: If the backend cannot read
            SerializationError: If the stored snapshot cannot be decoded
        """
        ...

    async def exists(self, job_id: str) -> bool:
        try:
            await self.load(job_id)
        except JobNotFoundError:
            return False
        return True

    async def __aenter__(self) -> JobStore:
        await self.ensure_ready()
        return self

    async def __aexit__(self, *exc_info) -> None:
        await self.close()


__all__ = ["JobStore", "JobStoreBackendName"]
