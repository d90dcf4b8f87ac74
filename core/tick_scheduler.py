"""Fixed-period tick driver built on an asyncio task.

Usage::

    scheduler = TickScheduler(session.tick, interval=2.0)
    scheduler.start()
    ...
    scheduler.cancel()   # safe to call more than once

``step()`` runs one tick synchronously, without the event loop, so tests
can advance the simulation by hand.
"""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Callable

logger = logging.getLogger(__name__)


class TickScheduler:
    """Calls ``callback`` every ``interval`` seconds until cancelled."""

    def __init__(self, callback: Callable[[], object], interval: float = 2.0) -> None:
        if interval <= 0:
            raise ValueError(f"interval must be positive, got {interval}")
        self._callback = callback
        self.interval = interval
        self.tick_count = 0
        self._task: asyncio.Task | None = None
        self._cancelled = False

    @property
    def running(self) -> bool:
        return self._task is not None and not self._task.done()

    @property
    def cancelled(self) -> bool:
        return self._cancelled

    def step(self) -> None:
        """Run one tick now.  Errors are logged; the schedule keeps going."""
        if self._cancelled:
            return
        self.tick_count += 1
        try:
            self._callback()
        except Exception:
            logger.exception("Tick %d failed", self.tick_count)

    async def _run(self) -> None:
        while not self._cancelled:
            await asyncio.sleep(self.interval)
            self.step()

    def start(self) -> asyncio.Task:
        """Schedule the loop on the running event loop.  Starting twice is an error."""
        if self._cancelled:
            raise RuntimeError("scheduler already cancelled")
        if self._task is not None:
            raise RuntimeError("scheduler already started")
        self._task = asyncio.get_running_loop().create_task(self._run())
        logger.debug("Tick scheduler started (interval=%.2fs)", self.interval)
        return self._task

    def cancel(self) -> None:
        """Stop ticking.  Idempotent."""
        if self._cancelled:
            return
        self._cancelled = True
        if self._task is not None and not self._task.done():
            self._task.cancel()
        logger.debug("Tick scheduler cancelled after %d ticks", self.tick_count)

    async def run_for(self, ticks: int) -> None:
        """Start, wait for ``ticks`` ticks, then cancel."""
        self.start()
        try:
            while self.tick_count < ticks and not self._cancelled:
                await asyncio.sleep(self.interval / 4)
        finally:
            self.cancel()
            if self._task is not None:
                try:
                    await self._task
                except asyncio.CancelledError:
                    pass
