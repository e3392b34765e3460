"""
In-process runner for search jobs.

Request handlers submit a coroutine and return immediately; the runner
executes at most `max_concurrent` of them at a time on the event loop.
"""

import asyncio
import logging
from typing import Awaitable, Optional, Set

logger = logging.getLogger(__name__)


class JobRunner:
    def __init__(self, max_concurrent: int = 3):
        self._semaphore = asyncio.Semaphore(max(1, max_concurrent))
        self._tasks: Set[asyncio.Task] = set()

    @property
    def active(self) -> int:
        return len(self._tasks)

    def submit(self, job: Awaitable[None], name: Optional[str] = None) -> asyncio.Task:
        task = asyncio.create_task(self._execute(job, name), name=name)
        self._tasks.add(task)
        task.add_done_callback(self._tasks.discard)
        logger.info("Job %s submitted (%d active)", name, len(self._tasks))
        return task

    async def _execute(self, job: Awaitable[None], name: Optional[str]) -> None:
        async with self._semaphore:
            try:
                await job
            except Exception:
                # Jobs record their own failures; this only sees storage errors while doing so
                logger.exception("Job %s crashed", name)

    async def join(self, timeout: Optional[float] = None) -> None:
        """Wait for submitted jobs to finish."""
        if self._tasks:
            await asyncio.wait(set(self._tasks), timeout=timeout)

    async def shutdown(self, timeout: float = 5.0) -> None:
        """Give running jobs `timeout` seconds, then cancel the rest."""
        await self.join(timeout)
        pending = [task for task in self._tasks if not task.done()]
        for task in pending:
            task.cancel()
        if pending:
            logger.warning("Cancelled %d unfinished jobs on shutdown", len(pending))
            await asyncio.gather(*pending, return_exceptions=True)
