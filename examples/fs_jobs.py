#!/usr/bin/env python3
"""
Example: Persistent Jobs on the File System

Demonstrates:
1. Submitting work that finishes immediately and work that sleeps
2. Loading a job before and after it finishes
3. Explicit failures stored as results
4. Publishing progress from inside a job
"""

import asyncio

# Add src to path for development
import sys
import tempfile
from pathlib import Path

sys.path.insert(0, str(Path(__file__).parent.parent / "src"))

from simple_jobs import FSJobStore, JobEngine, JobFailedError, ProgressStatusModel, RecordSerializer


async def double(job_id, engine, metadata):
    return metadata["value"] * 2


async def slow(job_id, engine, metadata):
    await asyncio.sleep(1)
    return 10


async def fails(job_id, engine, metadata):
    raise JobFailedError({"reason": "MyError"})


async def with_progress(job_id, engine, metadata):
    for step in range(1, 4):
        await engine.update_status(job_id, {"step": step, "of": 3})
        await asyncio.sleep(0.2)
    return "done"


async def main():
    jobs_dir = Path(tempfile.mkdtemp(prefix="simple_jobs_"))
    print(f"📁 Jobs directory: {jobs_dir}")

    # --- Test 1: Immediate result ---
    print("\n" + "=" * 60)
    print("TEST 1: Immediate result")
    print("=" * 60)

    async with JobEngine(FSJobStore.at(jobs_dir)) as engine:
        job_id = await engine.submit(double, {"value": 5})
        record = await engine.wait(job_id)
        print(f"Job {job_id}: {record.status.value} -> {record.result.unwrap()}")

        # --- Test 2: Load while running ---
        print("\n" + "=" * 60)
        print("TEST 2: Load before and after completion")
        print("=" * 60)

        job_id = await engine.submit(slow)
        await asyncio.sleep(0.1)
        print(f"After 100ms: {(await engine.load(job_id)).status.value}")
        record = await engine.wait(job_id)
        print(f"After wait: {record.status.value} -> {record.result.unwrap()}")

        # --- Test 3: Failure ---
        print("\n" + "=" * 60)
        print("TEST 3: Failure result")
        print("=" * 60)

        job_id = await engine.submit(fails)
        record = await engine.wait(job_id)
        print(f"Failed: {record.result.is_err}, error: {record.result.error}")

    # --- Test 4: Progress statuses ---
    print("\n" + "=" * 60)
    print("TEST 4: Progress statuses")
    print("=" * 60)

    model = ProgressStatusModel()
    store = FSJobStore.at(jobs_dir / "progress", RecordSerializer(status_model=model))
    async with JobEngine(store, status_model=model) as engine:
        job_id = await engine.submit(with_progress)
        for _ in range(4):
            await asyncio.sleep(0.2)
            print(f"Status: {(await engine.load(job_id)).status}")
        record = await engine.wait(job_id)
        print(f"Result: {record.result.unwrap()}")

    print(f"\n✅ Files written: {sorted(p.name for p in jobs_dir.iterdir())}")


if __name__ == "__main__":
    asyncio.run(main())
