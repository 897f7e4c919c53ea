"""
Job stores.

The storage port (JobStore) and its implementations:
- InMemoryJobStore: process-local, for tests and single-process use
- FSJobStore: one JSON file per job
- SqliteJobStore: append-only SQLite table (aiosqlite)
- PostgresJobStore: append-only PostgreSQL table (asyncpg)
"""

from .base import JobStore, JobStoreBackendName
from .factory import build_job_store
from .fs import FSJobStore, FSJobStoreConfig
from .memory import InMemoryJobStore
from .postgres import PostgresJobStore
from .sqlite import SqliteJobStore

__all__ = [
    "JobStore",
    "JobStoreBackendName",
    "InMemoryJobStore",
    "FSJobStore",
    "FSJobStoreConfig",
    "SqliteJobStore",
    "PostgresJobStore",
    "build_job_store",
]
