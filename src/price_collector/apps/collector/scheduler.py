"""Minute-aligned scheduler for the price collection job.

Run the job once at startup, sleep until the next minute boundary, then
fire on a fixed period. The period is kept on the monotonic clock and is
not re-aligned to wall-clock minutes afterwards; any drift is accepted.
"""

from __future__ import annotations

import asyncio
import logging
import time
from typing import TYPE_CHECKING

from price_collector.core.timestamps import ms_until_next_minute

if TYPE_CHECKING:
    from collections.abc import Callable

    from price_collector.apps.collector.job import PriceCollectionJob
    from price_collector.core.models import CollectionOutcome

logger = logging.getLogger(__name__)

_MS_PER_SECOND = 1000


class PriceScheduler:
    """Drive a ``PriceCollectionJob`` on a single asyncio event loop.

    Each tick starts the job as a task without waiting for it, so a slow
    run never delays the timer. With ``skip_overlapping_runs`` enabled a
    tick is dropped while the previous run is still in flight.

    Args:
        job: The collection job to run.
        interval_seconds: Fixed period between ticks after alignment.
        skip_overlapping_runs: Drop ticks that would overlap a running job.
        first_delay_ms: Returns the milliseconds to wait before the first
            aligned tick; defaults to the time until the next minute.

    """

    def __init__(
        self,
        job: PriceCollectionJob,
        *,
        interval_seconds: float = 60.0,
        skip_overlapping_runs: bool = True,
        first_delay_ms: Callable[[], int] = ms_until_next_minute,
    ) -> None:
        """Initialize the scheduler."""
        self._job = job
        self._interval = interval_seconds
        self._skip_overlapping = skip_overlapping_runs
        self._first_delay_ms = first_delay_ms
        self._stop = asyncio.Event()
        self._inflight: asyncio.Task[CollectionOutcome | None] | None = None
        self._tasks: set[asyncio.Task[CollectionOutcome | None]] = set()
        self.runs_started = 0
        self.ticks_skipped = 0

    async def run(self) -> None:
        """Run until ``stop()`` is called, then wait for in-flight runs."""
        try:
            await self._run_guarded()

            delay = self._first_delay_ms() / _MS_PER_SECOND
            logger.info("Aligning to next minute boundary in %.3fs", delay)
            if await self._sleep(delay):
                return

            next_at = time.monotonic()
            while not self._stop.is_set():
                self._fire()
                next_at += self._interval
                if await self._sleep(max(next_at - time.monotonic(), 0.0)):
                    break
        finally:
            if self._tasks:
                logger.info("Waiting for %d in-flight collection run(s)", len(self._tasks))
                await asyncio.gather(*self._tasks, return_exceptions=True)
            logger.info(
                "Scheduler stopped (runs=%d skipped_ticks=%d)",
                self.runs_started,
                self.ticks_skipped,
            )

    def stop(self) -> None:
        """Ask the scheduler loop to exit after the current sleep."""
        self._stop.set()

    @property
    def stopped(self) -> bool:
        """Return whether ``stop()`` has been called."""
        return self._stop.is_set()

    def _fire(self) -> None:
        """Start a job run for this tick unless one is still running."""
        if self._skip_overlapping and self._inflight is not None and not self._inflight.done():
            self.ticks_skipped += 1
            logger.warning("Previous collection run still in flight, skipping this tick")
            return
        task = asyncio.create_task(self._run_guarded())
        self._inflight = task
        self._tasks.add(task)
        task.add_done_callback(self._tasks.discard)

    async def _run_guarded(self) -> CollectionOutcome | None:
        """Run the job once, logging anything that escapes it."""
        self.runs_started += 1
        try:
            return await self._job.run_once()
        except Exception:
            logger.exception("Unexpected error in collection run")
            return None

    async def _sleep(self, seconds: float) -> bool:
        """Sleep for ``seconds`` or until stopped; return True if stopped."""
        try:
            await asyncio.wait_for(self._stop.wait(), timeout=seconds)
        except TimeoutError:
            return self._stop.is_set()
        return True
