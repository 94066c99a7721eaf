"""Tracking for fire-and-forget asyncio tasks."""

from __future__ import annotations

import asyncio
import logging
from typing import Callable, Coroutine

log = logging.getLogger(__name__)


class BackgroundTasks:
    """
    Holds references to spawned tasks until they finish.

    The event loop only keeps weak references to tasks, so anything started
    with `create_task` and not awaited must be kept alive somewhere. Failures
    are logged and forwarded to `on_error`; they are never dropped.
    """

    def __init__(self, on_error: Callable[[BaseException], None] | None = None):
        self._tasks: set[asyncio.Task] = set()
        self._on_error = on_error

    def __len__(self) -> int:
        return len(self._tasks)

    def spawn(self, coro: Coroutine, *, name: str | None = None) -> asyncio.Task:
        task = asyncio.get_running_loop().create_task(coro, name=name)
        self._tasks.add(task)
        task.add_done_callback(self._done)
        return task

    def _done(self, task: asyncio.Task) -> None:
        self._tasks.discard(task)
        if task.cancelled():
            return
        exc = task.exception()
        if exc is None:
            return
        log.error("Task %s failed", task.get_name(), exc_info=exc)
        if self._on_error is not None:
            self._on_error(exc)

    async def cancel_all(self) -> None:
        """Cancel every pending task (except the caller) and wait for them."""
        current = asyncio.current_task()
        pending = [t for t in self._tasks if t is not current and not t.done()]
        for task in pending:
            task.cancel()
        if pending:
            await asyncio.wait(pending)
