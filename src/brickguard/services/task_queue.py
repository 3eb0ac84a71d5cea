from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass
from typing import Awaitable, Callable, Optional

from .stats import RuntimeStats

log = logging.getLogger("brickguard.queue")

TaskFn = Callable[[], Awaitable[None]]


@dataclass(frozen=True)
class QueuePolicy:
    max_queue_size: int = 1_000


class TaskQueue:
    """Runs queued event handlers one at a time, in arrival order.

    A handler that raises is logged and the next one runs; nothing is retried.
    """

    def __init__(self, policy: QueuePolicy, stats: RuntimeStats) -> None:
        self._policy = policy
        self._stats = stats
        self._q: asyncio.Queue[Optional[TaskFn]] = asyncio.Queue(maxsize=policy.max_queue_size)
        self._runner: Optional[asyncio.Task[None]] = None

    def start(self) -> None:
        if self._runner and not self._runner.done():
            return
        self._runner = asyncio.create_task(self._run(), name="brickguard-event-queue")
        log.info("TaskQueue started (max_size=%s)", self._policy.max_queue_size)

    async def stop(self) -> None:
        """Let queued handlers finish, then stop the worker."""
        if self._runner is None:
            return
        await self._q.put(None)
        await self._runner
        self._runner = None
        log.info("TaskQueue stopped")

    async def enqueue(self, fn: TaskFn) -> None:
        try:
            self._q.put_nowait(fn)
            self._stats.events_enqueued += 1
        except asyncio.QueueFull as e:
            raise RuntimeError("TaskQueue is full; refusing to enqueue more events") from e

    async def _run(self) -> None:
        while True:
            fn = await self._q.get()
            try:
                if fn is None:
                    return
                await fn()
                self._stats.events_handled += 1
            except Exception:
                self._stats.events_failed += 1
                log.exception("Queued event handler failed")
            finally:
                self._q.task_done()
