# -*- coding: utf-8 -*-
"""Application-lifetime background queue for fire-and-forget work.

A fixed number of worker tasks drain an ``asyncio.Queue``; the whole pool is
started and stopped with the application, so pending jobs never outlive the
process and are cancelled together on shutdown.
"""

from __future__ import annotations

import asyncio
import logging
from typing import Any, Awaitable, Callable, List, Optional, Tuple

logger = logging.getLogger(__name__)

Job = Tuple[Callable[..., Awaitable[Any]], tuple, str]


class BackgroundQueue:
    def __init__(self, workers: int = 1) -> None:
        self.workers = max(1, workers)
        self._queue: Optional[asyncio.Queue[Job]] = None
        self._tasks: List[asyncio.Task] = []

    @property
    def running(self) -> bool:
        return bool(self._tasks)

    @property
    def pending(self) -> int:
        return self._queue.qsize() if self._queue is not None else 0

    def start(self) -> None:
        if self.running:
            return
        self._queue = asyncio.Queue()
        self._tasks = [
            asyncio.create_task(self._worker(i), name=f"daylog-worker-{i}")
            for i in range(self.workers)
        ]
        logger.info("Background queue started (%d workers)", self.workers)

    def submit(self, fn: Callable[..., Awaitable[Any]], *args: Any, label: str = "") -> None:
        if self._queue is None or not self.running:
            raise RuntimeError("Background queue is not running")
        self._queue.put_nowait((fn, args, label or getattr(fn, "__name__", "job")))

    async def join(self) -> None:
        """Wait until every submitted job has finished."""
        if self._queue is not None:
            await self._queue.join()

    async def shutdown(self, drain: bool = False) -> None:
        if not self.running:
            return
        if drain:
            await self.join()
        dropped = self.pending
        for task in self._tasks:
            task.cancel()
        await asyncio.gather(*self._tasks, return_exceptions=True)
        self._tasks = []
        self._queue = None
        logger.info("Background queue stopped (%d pending jobs dropped)", dropped)

    async def _worker(self, index: int) -> None:
        assert self._queue is not None
        queue = self._queue
        while True:
            fn, args, label = await queue.get()
            try:
                await fn(*args)
            except asyncio.CancelledError:
                raise
            except Exception:
                logger.exception("Background job %s failed (worker %d)", label, index)
            finally:
                queue.task_done()
