"""Tests for async helpers and dead-letter sinks."""

import asyncio
import threading

import pytest

from simple_jobs.concurrency import BackgroundTasks, run_sync
from simple_jobs.deadletter import DeadLetter, InMemoryDeadLetterSink
from simple_jobs.status import DEFAULT_STATUS_MODEL, JobStatus
from simple_jobs.types import JobRecord, JobResult


@pytest.mark.asyncio
async def test_run_sync_runs_off_the_event_loop_thread():
    loop_thread = threading.get_ident()

    worker_thread = await run_sync(threading.get_ident)

    assert worker_thread != loop_thread


@pytest.mark.asyncio
async def test_run_sync_propagates_exceptions():
    def fail():
        raise OSError("nope")

    with pytest.raises(OSError):
        await run_sync(fail)


@pytest.mark.asyncio
async def test_background_tasks_join_waits_for_nested_spawns():
    tasks = BackgroundTasks()
    done = []

    async def child():
        await asyncio.sleep(0.01)
        done.append("child")

    async def parent():
        tasks.spawn(child())
        done.append("parent")

    tasks.spawn(parent(), name="parent")
    assert len(tasks) == 1

    await tasks.join()

    assert done == ["parent", "child"]
    assert len(tasks) == 0


@pytest.mark.asyncio
async def test_background_tasks_join_survives_failures():
    tasks = BackgroundTasks()

    async def boom():
        raise RuntimeError("boom")

    tasks.spawn(boom())
    await tasks.join()

    assert len(tasks) == 0


@pytest.mark.asyncio
async def test_in_memory_dead_letter_sink():
    sink = InMemoryDeadLetterSink()
    record = JobRecord.new(JobStatus.STARTED).finish(JobResult.success(1), DEFAULT_STATUS_MODEL)
    error = OSError("disk full")

    await sink.record(DeadLetter(record=record, error=error))

    assert len(sink) == 1
    assert sink.letters[0].job_id == record.job_id
    assert sink.letters[0].error is error
    sink.letters.clear()
    assert len(sink) == 1
