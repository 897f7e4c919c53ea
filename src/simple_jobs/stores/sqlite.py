"""SQLite-backed, append-only persistence for job records."""
from __future__ import annotations

import asyncio
import re
from datetime import datetime, timezone
from typing import Any

import aiosqlite

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


def _iso_now() -> str:
    return datetime.now(timezone.utc).isoformat()


class SqliteJobStore(JobStore):
    """Async SQLite store; every ``save`` appends a row.

    ``load`` returns the row with the highest ``id`` for the job, so the
    latest snapshot wins even when two saves share a timestamp. Older rows
    stay available through ``history``.
    """

    name: JobStoreBackendName = "sqlite"
    TABLE_NAME = "job_info"

    def __init__(
        self,
        db_path: str = "simple_jobs.db",
        serializer: RecordSerializer | None = None,
        table_name: str | None = None,
    ) -> None:
        self.db_path = db_path
        self.serializer = serializer or RecordSerializer()
        self._table = _sanitize_table_name(table_name or self.TABLE_NAME)
        self._db: aiosqlite.Connection | None = None
        self._lock = asyncio.Lock()

    async def ensure_ready(self) -> None:
        """Open the connection and create the table if it doesn't exist."""
        async with self._lock:
            if self._db is not None:
                return
            try:
                db = await aiosqlite.connect(self.db_path)
            except aiosqlite.Error as exc:
                raise self._io_error("connect", None, exc) from exc
            try:
                await db.execute(f"""
                    CREATE TABLE IF NOT EXISTS "{self._table}" (
                        id INTEGER PRIMARY KEY AUTOINCREMENT,
                        uuid TEXT NOT NULL,
                        status TEXT NOT NULL,
                        output TEXT NOT NULL,
                        metadata TEXT,
                        created_at REAL NOT NULL,
                        updated_at REAL NOT NULL,
                        create_time TEXT NOT NULL
                    )
                """)
                await db.execute(
                    f'CREATE INDEX IF NOT EXISTS "{self._table}_uuid_idx" ON "{self._table}" (uuid, id)'
                )
                await db.commit()
            except aiosqlite.Error as exc:
                await db.close()
                raise self._io_error("ensure_ready", None, exc) from exc
            self._db = db

    async def close(self) -> None:
        async with self._lock:
            if self._db is not None:
                await self._db.close()
                self._db = None

    async def _conn(self) -> aiosqlite.Connection:
        if self._db is None:
            await self.ensure_ready()
        return self._db

    def _io_error(self, operation: str, job_id: str | None, exc: Exception) -> StorageIOError:
        return StorageIOError(
            f"SQLite {operation} failed: {exc}",
            context=ErrorContext(job_id=job_id, backend=self.name, operation=operation),
            cause=exc,
        )

    # ── Port ──────────────────────────────────────────────────────────

    async def save(self, record: JobRecord) -> None:
        s = self.serializer
        row = (
            record.job_id,
            s.dump_json(s.dump_status(record.status)),
            s.dump_json(s.dump_result(record.result)),
            s.dump_json(s.dump_metadata(record.metadata)),
            record.created_at,
            record.updated_at,
            _iso_now(),
        )
        db = await self._conn()
        try:
            async with self._lock:
                await db.execute(
                    f'INSERT INTO "{self._table}" '
                    "(uuid, status, output, metadata, created_at, updated_at, create_time) "
                    "VALUES (?,?,?,?,?,?,?)",
                    row,
                )
                await db.commit()
        except aiosqlite.Error as exc:
            raise self._io_error("save", record.job_id, exc) from exc

    async def load(self, job_id: str) -> JobRecord:
        db = await self._conn()
        try:
            async with db.execute(
                f'SELECT * FROM "{self._table}" WHERE uuid = ? ORDER BY id DESC LIMIT 1',
                (job_id,),
            ) as cur:
                row = await cur.fetchone()
                description = cur.description
        except aiosqlite.Error as exc:
            raise self._io_error("load", job_id, exc) from exc
        if row is None:
            raise JobNotFoundError(job_id, backend=self.name)
        return self._row_to_record(row, description)

    # ── Extras ────────────────────────────────────────────────────────

    async def history(self, job_id: str) -> list[JobRecord]:
        """Every snapshot saved for ``job_id``, oldest first."""
        db = await self._conn()
        try:
            async with db.execute(
                f'SELECT * FROM "{self._table}" WHERE uuid = ? ORDER BY id ASC',
                (job_id,),
            ) as cur:
                rows = await cur.fetchall()
                description = cur.description
        except aiosqlite.Error as exc:
            raise self._io_error("history", job_id, exc) from exc
        return [self._row_to_record(r, description) for r in rows]

    # ── Helpers ───────────────────────────────────────────────────────

    def _row_to_record(self, row: Any, description: Any) -> JobRecord:
        cols = [d[0] for d in description]
        d = dict(zip(cols, row))
        s = self.serializer
        return s.from_dict({
            "id": d["uuid"],
            "status": s.load_json(d["status"]),
            "result": s.load_json(d["output"]),
            "metadata": s.load_json(d["metadata"]),
            "created_at": d["created_at"],
            "updated_at": d["updated_at"],
        })


__all__ = ["SqliteJobStore"]
