"""
Submission engine for job lifecycle operations.

The JobEngine starts work as detached asyncio tasks and guarantees that each
job is persisted twice: once with its initial status before ``submit``
returns, and once with its terminal status and result when the work is done.
"""

from __future__ import annotations

import asyncio
import copy
from collections.abc import Awaitable, Callable
from typing import Any

from .concurrency import BackgroundTasks
from .config import Settings
from .deadletter import DeadLetter, DeadLetterSink
from .errors import ConfigError, ErrorContext, InvalidTransitionError, JobFailedError
from .logging import StructuredLogger, configure_logging, get_logger
from .serialization import RecordSerializer
from .status import DEFAULT_STATUS_MODEL, ProgressStatusModel, StatusModel
from .stores.base import JobStore
from .stores.factory import build_job_store
from .types import JobRecord, JobResult
from .waiter import DEFAULT_POLL_INTERVAL, wait_for_job

WorkFn = Callable[[str, "JobEngine", Any], Awaitable[Any]]


def status_model_for(name: str) -> StatusModel:
    if name == "progress":
        return ProgressStatusModel()
    if name == "enum":
        return DEFAULT_STATUS_MODEL
    raise ValueError(f"Unknown status model: {name!r}")


def _resolve_status_model(store: JobStore, status_model: StatusModel | None) -> StatusModel:
    """Pick the engine's status model so it agrees with the store's serializer.

    Without an explicit model the engine adopts the serializer's. An explicit
    model of a different type would write snapshots the store cannot read.
    """
    serializer = getattr(store, "serializer", None)
    store_model = getattr(serializer, "status_model", None)
    if status_model is None:
        return store_model or DEFAULT_STATUS_MODEL
    if store_model is not None and type(store_model) is not type(status_model):
        raise ConfigError(
            f"Engine status model {type(status_model).__name__} does not match "
            f"the {getattr(store, 'name', 'store')} serializer's {type(store_model).__name__}",
            context=ErrorContext(backend=getattr(store, "name", None), operation="init"),
        )
    return status_model


class JobEngine:
    """Submits jobs and records their outcome in a JobStore.

    Work functions are called as ``await work(job_id, engine, metadata)``:
    - returning a value stores ``JobResult.success(value)``
    - returning a JobResult stores it as given
    - raising JobFailedError(error) stores ``JobResult.failure(error)``
    - raising any other exception stores a failure describing it

    Job failure is never re-raised; it is a queryable outcome.
    """

    def __init__(
        self,
        store: JobStore,
        *,
        status_model: StatusModel | None = None,
        dead_letter: DeadLetterSink | None = None,
        poll_interval: float = DEFAULT_POLL_INTERVAL,
        wait_timeout: float | None = None,
        logger: StructuredLogger | None = None,
    ):
        self._store = store
        self._status_model = _resolve_status_model(store, status_model)
        self._dead_letter = dead_letter
        self._poll_interval = poll_interval
        self._wait_timeout = wait_timeout
        self._logger = logger or get_logger()
        self._tasks = BackgroundTasks()
        # Serializes update_status with the terminal save, per in-flight job.
        self._locks: dict[str, asyncio.Lock] = {}

    @classmethod
    async def from_settings(
        cls,
        settings: Settings | None = None,
        *,
        serializer: RecordSerializer | None = None,
        dead_letter: DeadLetterSink | None = None,
    ) -> JobEngine:
        """Build the store, status model and logger described by ``settings``."""
        settings = settings or Settings.from_env()
        model = status_model_for(settings.engine.status_model)
        serializer = serializer or RecordSerializer(status_model=model)
        store = await build_job_store(settings.store, serializer)
        logger = configure_logging(
            level=settings.logging.level,
            json_output=settings.logging.format == "json",
        )
        return cls(
            store,
            status_model=model,
            dead_letter=dead_letter,
            poll_interval=settings.engine.poll_interval,
            wait_timeout=settings.engine.wait_timeout,
            logger=logger,
        )

    @property
    def store(self) -> JobStore:
        return self._store

    @property
    def status_model(self) -> StatusModel:
        return self._status_model

    @property
    def pending_count(self) -> int:
        """Number of submitted jobs whose terminal save has not happened yet."""
        return len(self._tasks)

    # ── Submit & Run ─────────────────────────────────────────────────

    async def submit(self, work: WorkFn, metadata: Any = None) -> str:
        """Persist a new job and start ``work`` without waiting for it.

        The initial snapshot is saved before this returns, so any observer
        holding the id can load it.

        Raises:
            StorageError: If the initial save fails; the work is not started
        """
        record = JobRecord.new(self._status_model.initial(), copy.deepcopy(metadata))
        await self._store.save(record)

        job_id = record.job_id
        self._locks[job_id] = asyncio.Lock()
        self._tasks.spawn(self._run(record, work, metadata), name=f"simple-jobs:{job_id}")
        self._logger.log_submitted(job_id)
        return job_id

    async def _run(self, record: JobRecord, work: WorkFn, metadata: Any) -> None:
        job_id = record.job_id
        try:
            output = await work(job_id, self, metadata)
        except JobFailedError as exc:
            result = JobResult.failure(exc.error)
        except Exception as exc:
            self._logger.log_work_error(job_id, exc)
            result = JobResult.failure({"type": type(exc).__name__, "message": str(exc)})
        else:
            result = output if isinstance(output, JobResult) else JobResult.success(output)

        await self._finish(record.finish(result, self._status_model))

    async def _finish(self, final: JobRecord) -> None:
        job_id = final.job_id
        lock = self._locks.get(job_id) or asyncio.Lock()
        try:
            async with lock:
                await self._store.save(final)
        except Exception as exc:
            await self._report_final_save_failure(final, exc)
        else:
            self._logger.log_completed(job_id, final.result.is_ok)
        finally:
            self._locks.pop(job_id, None)

    async def _report_final_save_failure(self, final: JobRecord, exc: Exception) -> None:
        backend = getattr(self._store, "name", None)
        # The logger is shared by every job task: no await inside job_context.
        with self._logger.job_context(final.job_id, backend=backend):
            self._logger.log_final_save_failed(final.job_id, exc)
        if self._dead_letter is None:
            return
        try:
            await self._dead_letter.record(DeadLetter(record=final, error=exc))
        except Exception as sink_exc:
            self._logger.log_error(
                sink_exc,
                "Dead-letter sink rejected a terminal record",
                job_id=final.job_id,
                backend=backend,
            )

    # ── Store access ─────────────────────────────────────────────────

    async def load(self, job_id: str) -> JobRecord:
        """Fresh read of the latest snapshot for ``job_id``."""
        return await self._store.load(job_id)

    async def save(self, record: JobRecord) -> None:
        """Save a snapshot directly, bypassing the engine's transition checks."""
        await self._store.save(record)

    async def update_status(self, job_id: str, payload: Any) -> JobRecord:
        """Publish an intermediate status built by ``status_model.custom(payload)``.

        Meant to be called from inside a work function. For jobs running in
        this engine, it is serialized with the terminal save.

        Raises:
            InvalidTransitionError: If the job is already terminal
            JobNotFoundError: If the job does not exist
        """
        status = self._status_model.custom(payload)
        lock = self._locks.get(job_id)
        if lock is None:
            return await self._apply_status(job_id, status)
        async with lock:
            return await self._apply_status(job_id, status)

    async def _apply_status(self, job_id: str, status: Any) -> JobRecord:
        current = await self._store.load(job_id)
        try:
            updated = current.with_status(status, self._status_model)
        except InvalidTransitionError as exc:
            exc.context = ErrorContext(job_id=job_id, operation="update_status")
            raise
        await self._store.save(updated)
        return updated

    async def wait(
        self,
        job_id: str,
        *,
        timeout: float | None = None,
        poll_interval: float | None = None,
    ) -> JobRecord:
        """Poll until ``job_id`` is terminal. See ``wait_for_job``."""
        return await wait_for_job(
            self._store,
            job_id,
            status_model=self._status_model,
            poll_interval=poll_interval if poll_interval is not None else self._poll_interval,
            timeout=timeout if timeout is not None else self._wait_timeout,
        )

    # ── Shutdown ─────────────────────────────────────────────────────

    async def drain(self) -> None:
        """Wait for every in-flight job to finish and attempt its terminal save."""
        await self._tasks.join()

    async def aclose(self) -> None:
        await self.drain()
        await self._store.close()

    async def __aenter__(self) -> JobEngine:
        await self._store.ensure_ready()
        return self

    async def __aexit__(self, *exc_info) -> None:
        await self.aclose()


__all__ = ["JobEngine", "WorkFn", "status_model_for"]
