"""
Very simple persistent jobs.

Run asyncio work in the background and keep its status and result in a
store of your choice, so any process with access to the same store can find
out whether and how the job finished.

Example:
    ```python
    from simple_jobs import FSJobStore, JobEngine

    engine = JobEngine(FSJobStore.at("/tmp/jobs"))

    async def work(job_id, engine, metadata):
        return metadata["value"] * 2

    job_id = await engine.submit(work, {"value": 21})
    record = await engine.wait(job_id)
    assert record.result.unwrap() == 42
    ```
"""

from .config import EngineConfig, LoggingConfig, Settings, StoreConfig, load_env
from .deadletter import DeadLetter, DeadLetterSink, InMemoryDeadLetterSink
from .engine import JobEngine, WorkFn
from .errors import (
    ConfigError,
    ErrorCode,
    InvalidTransitionError,
    JobFailedError,
    JobNotFoundError,
    SerializationError,
    SimpleJobsError,
    StorageError,
    StorageIOError,
    WaitTimeoutError,
)
from .serialization import RecordSerializer
from .status import (
    EnumStatusModel,
    JobStatus,
    ProgressKind,
    ProgressStatus,
    ProgressStatusModel,
    StatusModel,
)
from .stores import (
    FSJobStore,
    InMemoryJobStore,
    JobStore,
    PostgresJobStore,
    SqliteJobStore,
    build_job_store,
)
from .types import JobRecord, JobResult
from .waiter import wait_for_job

__all__ = [
    # Records
    "JobRecord",
    "JobResult",
    # Status
    "JobStatus",
    "ProgressKind",
    "ProgressStatus",
    "StatusModel",
    "EnumStatusModel",
    "ProgressStatusModel",
    # Engine
    "JobEngine",
    "WorkFn",
    "wait_for_job",
    # Stores
    "JobStore",
    "InMemoryJobStore",
    "FSJobStore",
    "SqliteJobStore",
    "PostgresJobStore",
    "build_job_store",
    "RecordSerializer",
    # Dead letters
    "DeadLetter",
    "DeadLetterSink",
    "InMemoryDeadLetterSink",
    # Errors
    "ErrorCode",
    "SimpleJobsError",
    "StorageError",
    "JobNotFoundError",
    "StorageIOError",
    "SerializationError",
    "InvalidTransitionError",
    "WaitTimeoutError",
    "JobFailedError",
    "ConfigError",
    # Config
    "Settings",
    "StoreConfig",
    "EngineConfig",
    "LoggingConfig",
    "load_env",
]
