"""
Completion waiter: poll a store until a job reaches its terminal status.
"""

from __future__ import annotations

import asyncio
import time

from .errors import WaitTimeoutError
from .status import DEFAULT_STATUS_MODEL, StatusModel
from .stores.base import JobStore
from .types import JobRecord

DEFAULT_POLL_INTERVAL = 0.01


async def wait_for_job(
    store: JobStore,
    job_id: str,
    *,
    status_model: StatusModel | None = None,
    poll_interval: float = DEFAULT_POLL_INTERVAL,
    timeout: float | None = None,
) -> JobRecord:
    """Block until ``job_id`` is terminal and return that snapshot.

    Every iteration is a fresh ``store.load``. Load errors, including
    JobNotFoundError, propagate unchanged. Without ``timeout`` this polls
    for as long as the job stays non-terminal.

    Raises:
        WaitTimeoutError: If ``timeout`` seconds pass first
    """
    model = status_model or DEFAULT_STATUS_MODEL
    deadline = None if timeout is None else time.monotonic() + timeout

    while True:
        record = await store.load(job_id)
        if model.is_terminal(record.status):
            return record
        if deadline is not None:
            remaining = deadline - time.monotonic()
            if remaining <= 0:
                raise WaitTimeoutError(job_id, timeout)
            await asyncio.sleep(min(poll_interval, remaining))
        else:
            await asyncio.sleep(poll_interval)


__all__ = ["wait_for_job", "DEFAULT_POLL_INTERVAL"]
