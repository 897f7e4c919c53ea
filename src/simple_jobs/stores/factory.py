"""
Job store factory.
"""

from __future__ import annotations

from ..config import StoreConfig
from ..serialization import RecordSerializer
from .base import JobStore
from .fs import FSJobStore, FSJobStoreConfig
from .memory import InMemoryJobStore
from .postgres import PostgresJobStore
from .sqlite import SqliteJobStore


async def build_job_store(
    settings: StoreConfig,
    serializer: RecordSerializer | None = None,
) -> JobStore:
    """Build and initialize the store described by ``settings``."""
    serializer = serializer or RecordSerializer()
    backend = settings.backend

    if backend == "memory":
        store: JobStore = InMemoryJobStore()
    elif backend == "fs":
        store = FSJobStore(FSJobStoreConfig(dir=settings.directory, serializer=serializer))
    elif backend == "sqlite":
        store = SqliteJobStore(settings.db_path, serializer, settings.table_name)
    elif backend == "postgres":
        store = await PostgresJobStore.from_dsn(settings.pg_dsn, serializer, settings.table_name)
    else:
        raise ValueError(f"Unknown store backend: {backend!r}")

    await store.ensure_ready()
    return store


__all__ = ["build_job_store"]
