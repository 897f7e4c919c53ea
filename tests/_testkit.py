"""
Test doubles for simple-jobs: a fake asyncpg pool, misbehaving stores and
work function factories.
"""

from __future__ import annotations

import asyncio
from contextlib import asynccontextmanager
from dataclasses import dataclass, field
from typing import Any

from simple_jobs.errors import StorageIOError
from simple_jobs.stores import InMemoryJobStore, JobStore
from simple_jobs.types import JobRecord

# =============================================================================
# Fake asyncpg pool
# =============================================================================


@dataclass
class FakePostgresDatabase:
    """Rows of the single jobs table, in insertion order."""

    rows: list[dict[str, Any]] = field(default_factory=list)
    statements: list[str] = field(default_factory=list)
    seq: int = 0
    fail_with: Exception | None = None


class FakePostgresConnection:
    """Understands exactly the statements PostgresJobStore issues."""

    def __init__(self, db: FakePostgresDatabase):
        self._db = db

    def _check(self, query: str) -> str:
        if self._db.fail_with is not None:
            raise self._db.fail_with
        normalized = " ".join(query.split())
        self._db.statements.append(normalized)
        return normalized

    async def execute(self, query: str, *args: Any) -> str:
        q = self._check(query)
        if q.startswith("CREATE"):
            return "CREATE"
        if q.startswith("INSERT"):
            job_id, status, result, metadata, created_at, updated_at = args
            self._db.seq += 1
            self._db.rows.append(
                {
                    "seq": self._db.seq,
                    "job_id": job_id,
                    "status": status,
                    "result": result,
                    "metadata": metadata,
                    "created_at": created_at,
                    "updated_at": updated_at,
                }
            )
            return "INSERT 0 1"
        raise AssertionError(f"Unexpected statement: {q}")

    def _rows_for(self, job_id: str) -> list[dict[str, Any]]:
        return sorted((r for r in self._db.rows if r["job_id"] == job_id), key=lambda r: r["seq"])

    async def fetchrow(self, query: str, job_id: str) -> dict[str, Any] | None:
        self._check(query)
        rows = self._rows_for(job_id)
        return rows[-1] if rows else None

    async def fetch(self, query: str, job_id: str) -> list[dict[str, Any]]:
        self._check(query)
        return self._rows_for(job_id)


class FakePool:
    def __init__(self, db: FakePostgresDatabase | None = None):
        self.db = db or FakePostgresDatabase()
        self.closed = False

    @asynccontextmanager
    async def acquire(self):
        await asyncio.sleep(0)
        yield FakePostgresConnection(self.db)

    async def close(self) -> None:
        self.closed = True


# =============================================================================
# Store doubles
# =============================================================================


class FlakyStore(JobStore):
    """In-memory store whose Nth save (1-based) raises StorageIOError."""

    name = "memory"

    def __init__(self, fail_on: set[int]):
        self.inner = InMemoryJobStore()
        self.fail_on = fail_on
        self.saves = 0

    async def save(self, record: JobRecord) -> None:
        self.saves += 1
        if self.saves in self.fail_on:
            raise StorageIOError(f"disk full on save #{self.saves}")
        await self.inner.save(record)

    async def load(self, job_id: str) -> JobRecord:
        return await self.inner.load(job_id)


class CountingStore(JobStore):
    """Wraps a store and counts loads."""

    name = "memory"

    def __init__(self, inner: JobStore):
        self.inner = inner
        self.loads = 0

    async def save(self, record: JobRecord) -> None:
        await self.inner.save(record)

    async def load(self, job_id: str) -> JobRecord:
        self.loads += 1
        return await self.inner.load(job_id)


# =============================================================================
# Work factories
# =============================================================================


def returns(value: Any):
    """Work that finishes immediately with ``value``."""

    async def work(job_id, engine, metadata):
        return value

    return work


def sleeps_then_returns(seconds: float, value: Any):
    async def work(job_id, engine, metadata):
        await asyncio.sleep(seconds)
        return value

    return work


def waits_for(event: asyncio.Event, value: Any = None):
    """Work that blocks until ``event`` is set."""

    async def work(job_id, engine, metadata):
        await event.wait()
        return value

    return work
