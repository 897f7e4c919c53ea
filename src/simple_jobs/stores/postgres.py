"""
PostgreSQL job store.

Append-only: each ``save`` inserts a row, ``load`` selects the newest row for
the job by its BIGSERIAL sequence.

Table schema:
- seq (BIGSERIAL PRIMARY KEY)
- job_id (TEXT)
- status, result, metadata (JSONB)
- created_at, updated_at (TIMESTAMPTZ, from the record)
- saved_at (TIMESTAMPTZ, row insertion time)
"""

from __future__ import annotations

import asyncio
import json
import re
from datetime import datetime, timezone
from typing import Any

import asyncpg

from ..errors import ErrorContext, JobNotFoundError, StorageIOError
from ..serialization import RecordSerializer
from ..types import JobRecord
from .base import JobStore, JobStoreBackendName


def _sanitize_table_name(name: str) -> str:
    """Ensure the table name is safe for SQL interpolation."""
    if not name:
        raise ValueError("table_name cannot be empty")
    if not re.fullmatch(r"[a-zA-Z0-9_]+", name):
        raise ValueError(f"Invalid table name: {name!r}")
    return name


def _to_timestamptz(value: Any) -> Any:
    """Convert epoch seconds floats into timezone-aware datetimes for TIMESTAMPTZ columns."""
    if value is None:
        return None
    if isinstance(value, (int, float)):
        return datetime.fromtimestamp(float(value), tz=timezone.utc)
    return value


def _to_epoch(value: Any) -> Any:
    if value is not None and hasattr(value, "timestamp"):
        return value.timestamp()
    return value


def _jsonb(value: Any) -> Any:
    # asyncpg hands JSONB back as text unless a codec is registered on the pool.
    if isinstance(value, str):
        return json.loads(value)
    return value


class PostgresJobStore(JobStore):
    """PostgreSQL implementation of JobStore."""

    name: JobStoreBackendName = "postgres"
    TABLE_NAME = "simple_jobs"

    def __init__(
        self,
        pool: Any,  # asyncpg.Pool
        serializer: RecordSerializer | None = None,
        table_name: str | None = None,
        *,
        owns_pool: bool = False,
    ):
        self._pool = pool
        self.serializer = serializer or RecordSerializer()
        self._table = _sanitize_table_name(table_name or self.TABLE_NAME)
        self._owns_pool = owns_pool
        self._ensured = False
        self._lock = asyncio.Lock()

    @classmethod
    async def from_dsn(
        cls,
        dsn: str,
        serializer: RecordSerializer | None = None,
        table_name: str | None = None,
        **pool_kwargs: Any,
    ) -> PostgresJobStore:
        """Create a store with its own connection pool; ``close`` releases it."""
        try:
            pool = await asyncpg.create_pool(dsn, **pool_kwargs)
        except (OSError, asyncpg.PostgresError) as exc:
            raise StorageIOError(
                f"Cannot connect to PostgreSQL: {exc}",
                context=ErrorContext(backend="postgres", operation="connect"),
                cause=exc,
            ) from exc
        return cls(pool, serializer, table_name, owns_pool=True)

    async def ensure_ready(self) -> None:
        """Create the jobs table if it doesn't exist."""
        async with self._lock:
            if self._ensured:
                return

            ddl = f'''
            CREATE TABLE IF NOT EXISTS "{self._table}" (
                seq BIGSERIAL PRIMARY KEY,
                job_id TEXT NOT NULL,
                status JSONB NOT NULL,
                result JSONB,
                metadata JSONB,
                created_at TIMESTAMPTZ NOT NULL,
                updated_at TIMESTAMPTZ NOT NULL,
                saved_at TIMESTAMPTZ NOT NULL DEFAULT NOW()
            );
            CREATE INDEX IF NOT EXISTS "{self._table}_job_id_seq_idx" ON "{self._table}" (job_id, seq DESC)
            '''

            try:
                async with self._pool.acquire() as conn:
                    for stmt in [s.strip() for s in ddl.split(";") if s.strip()]:
                        await conn.execute(stmt)
            except (OSError, asyncpg.PostgresError) as exc:
                raise self._io_error("ensure_ready", None, exc) from exc

            self._ensured = True

    async def close(self) -> None:
        if self._owns_pool:
            await self._pool.close()

    def _io_error(self, operation: str, job_id: str | None, exc: Exception) -> StorageIOError:
        return StorageIOError(
            f"PostgreSQL {operation} failed: {exc}",
            context=ErrorContext(job_id=job_id, backend=self.name, operation=operation),
            cause=exc,
        )

    def _record_to_row(self, record: JobRecord) -> dict[str, Any]:
        """Convert JobRecord to database row."""
        s = self.serializer
        return {
            "job_id": record.job_id,
            "status": s.dump_json(s.dump_status(record.status)),
            "result": s.dump_json(s.dump_result(record.result)),
            "metadata": s.dump_json(s.dump_metadata(record.metadata)),
            "created_at": _to_timestamptz(record.created_at),
            "updated_at": _to_timestamptz(record.updated_at),
        }

    def _row_to_record(self, row: Any) -> JobRecord:
        """Convert database row to JobRecord."""
        return self.serializer.from_dict({
            "id": row["job_id"],
            "status": _jsonb(row["status"]),
            "result": _jsonb(row["result"]),
            "metadata": _jsonb(row["metadata"]),
            "created_at": _to_epoch(row["created_at"]),
            "updated_at": _to_epoch(row["updated_at"]),
        })

    async def save(self, record: JobRecord) -> None:
        await self.ensure_ready()

        row = self._record_to_row(record)
        q = f'''
        INSERT INTO "{self._table}" (job_id, status, result, metadata, created_at, updated_at)
        VALUES ($1, $2::jsonb, $3::jsonb, $4::jsonb, $5, $6)
        '''

        try:
            async with self._pool.acquire() as conn:
                await conn.execute(q, *row.values())
        except (OSError, asyncpg.PostgresError) as exc:
            raise self._io_error("save", record.job_id, exc) from exc

    async def load(self, job_id: str) -> JobRecord:
        await self.ensure_ready()

        q = f'SELECT * FROM "{self._table}" WHERE job_id = $1 ORDER BY seq DESC LIMIT 1'

        try:
            async with self._pool.acquire() as conn:
                row = await conn.fetchrow(q, job_id)
        except (OSError, asyncpg.PostgresError) as exc:
            raise self._io_error("load", job_id, exc) from exc
        if row is None:
            raise JobNotFoundError(job_id, backend=self.name)
        return self._row_to_record(row)

    async def history(self, job_id: str) -> list[JobRecord]:
        """Every snapshot saved for ``job_id``, oldest first."""
        await self.ensure_ready()

        q = f'SELECT * FROM "{self._table}" WHERE job_id = $1 ORDER BY seq ASC'

        try:
            async with self._pool.acquire() as conn:
                rows = await conn.fetch(q, job_id)
        except (OSError, asyncpg.PostgresError) as exc:
            raise self._io_error("history", job_id, exc) from exc
        return [self._row_to_record(r) for r in rows]


__all__ = ["PostgresJobStore"]
