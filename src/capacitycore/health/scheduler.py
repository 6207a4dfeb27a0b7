"""Periodic background scheduler for health cycles."""

import asyncio
import logging
from contextlib import suppress
from typing import Any, Awaitable, Callable, Optional

logger = logging.getLogger(__name__)


class PeriodicScheduler:
    """Background task that runs a coroutine on a fixed interval.

    A tick that arrives while the previous run is still in flight is
    skipped (and counted) instead of stacking another run.
    """

    def __init__(
        self,
        callback: Callable[[], Awaitable[Any]],
        interval_seconds: float = 60.0,
        name: str = "health-monitor",
    ):
        self._callback = callback
        self._interval = interval_seconds
        self._name = name
        self._running = False
        self._stop_event = asyncio.Event()
        self._task: Optional[asyncio.Task] = None
        self._inflight: Optional[asyncio.Task] = None
        self.runs = 0
        self.skipped_ticks = 0

    @property
    def running(self) -> bool:
        return self._running

    async def start(self) -> None:
        """Start the background loop."""
        if self._running:
            return
        self._running = True
        self._stop_event = asyncio.Event()
        self._task = asyncio.create_task(self._loop())
        logger.info(f"Started scheduler {self._name} (every {self._interval}s)")

    async def stop(self) -> None:
        """Stop the loop and cancel any in-flight run."""
        self._running = False
        self._stop_event.set()
        for task in (self._task, self._inflight):
            if task is not None and not task.done():
                task.cancel()
                with suppress(asyncio.CancelledError):
                    await task
        self._task = None
        self._inflight = None
        logger.info(f"Stopped scheduler {self._name}")

    async def _loop(self) -> None:
        while self._running:
            if self._inflight is not None and not self._inflight.done():
                self.skipped_ticks += 1
                logger.warning(f"Scheduler {self._name}: previous run still in progress, skipping tick")
            else:
                self._inflight = asyncio.create_task(self._run_once())

            with suppress(asyncio.TimeoutError):
                await asyncio.wait_for(self._stop_event.wait(), timeout=self._interval)

    async def _run_once(self) -> None:
        self.runs += 1
        try:
            await self._callback()
        except Exception as e:
            logger.error(f"Scheduler {self._name} run failed: {e}")
