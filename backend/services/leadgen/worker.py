"""In-process ticker that drives the scheduler at a fixed interval.

Stands in for an external cron trigger when the API runs as a single process.
"""

import asyncio

from services.leadgen.scheduler import JobScheduler
from shared.logging_utils import setup_logging

logger = setup_logging("leadgen-worker")


class SchedulerLoop:
    """Calls ``JobScheduler.process_pending_records`` every ``interval`` seconds."""

    def __init__(self, scheduler: JobScheduler, interval: float = 20.0):
        self.scheduler = scheduler
        self.interval = interval
        self._task: asyncio.Task | None = None
        self._running = False
        self._lock = asyncio.Lock()

    @property
    def running(self) -> bool:
        return self._running

    async def start(self) -> None:
        if self._running:
            return
        self._running = True
        self._task = asyncio.create_task(self._loop())
        logger.info(f"Scheduler loop started (every {self.interval:g}s)")

    async def stop(self) -> None:
        self._running = False
        if self._task:
            self._task.cancel()
            try:
                await self._task
            except asyncio.CancelledError:
                pass
            self._task = None
        logger.info("Scheduler loop stopped")

    async def tick(self):
        """Run one tick unless the previous one is still in flight."""
        if self._lock.locked():
            logger.info("Previous tick still running, skipping")
            return None
        async with self._lock:
            return await self.scheduler.process_pending_records()

    async def _loop(self) -> None:
        while self._running:
            try:
                await self.tick()
            except asyncio.CancelledError:
                break
            except Exception as e:
                logger.error(f"Scheduler tick failed: {e}")
            await asyncio.sleep(self.interval)
