"""
Async concurrency helpers.

simple-jobs is async-first, but the filesystem store does blocking I/O and
the engine runs work as detached tasks. Both concerns live here.
"""

from __future__ import annotations

import asyncio
import os
from collections.abc import Callable, Coroutine
from concurrent.futures import ThreadPoolExecutor
from functools import partial
from typing import Any, TypeVar

T = TypeVar("T")


def _default_max_workers() -> int:
    # Mirrors ThreadPoolExecutor's default sizing heuristics.
    return min(32, (os.cpu_count() or 1) + 4)


_EXECUTOR = ThreadPoolExecutor(max_workers=_default_max_workers(), thread_name_prefix="simple-jobs-io")


async def run_sync(func: Callable[..., T], /, *args: Any, **kwargs: Any) -> T:
    """
    Run a synchronous callable in a shared thread pool.

    The concurrent future is polled instead of awaited through
    `loop.run_in_executor()`, because cross-thread wakeups via
    `call_soon_threadsafe()` are unreliable in some sandboxes and test
    harnesses.
    """
    future = _EXECUTOR.submit(partial(func, *args, **kwargs))
    try:
        while True:
            if future.done():
                return future.result()
            await asyncio.sleep(0.001)
    except asyncio.CancelledError:
        future.cancel()
        raise


class BackgroundTasks:
    """
    Strong references to fire-and-forget tasks.

    The event loop only keeps weak references to tasks, so a detached task
    with no other owner can be garbage-collected mid-flight. Tasks drop out
    of the set as soon as they finish.
    """

    def __init__(self) -> None:
        self._tasks: set[asyncio.Task[Any]] = set()

    def spawn(self, coro: Coroutine[Any, Any, Any], *, name: str | None = None) -> asyncio.Task[Any]:
        task = asyncio.get_running_loop().create_task(coro, name=name)
        self._tasks.add(task)
        task.add_done_callback(self._tasks.discard)
        return task

    def __len__(self) -> int:
        return len(self._tasks)

    async def join(self) -> None:
        """Wait until every task spawned so far (and any they spawn) is done."""
        while self._tasks:
            await asyncio.gather(*list(self._tasks), return_exceptions=True)


__all__ = ["run_sync", "BackgroundTasks"]
