"""Main orchestrator for the price collector service.

Wire together the price store, the HTTP fetchers, the collection job and the
minute-aligned scheduler. Own the lifecycle of the store handle and the HTTP
clients, and translate SIGINT/SIGTERM into a graceful shutdown.
"""

from __future__ import annotations

import asyncio
import logging
import signal
from typing import TYPE_CHECKING

from price_collector.apps.collector.fetchers import PriceFetcher
from price_collector.apps.collector.job import PriceCollectionJob
from price_collector.apps.collector.scheduler import PriceScheduler
from price_collector.apps.collector.stores import build_store

if TYPE_CHECKING:
    from price_collector.apps.collector.config import CollectorConfig
    from price_collector.core.models import CollectionOutcome, PriceRecord

logger = logging.getLogger(__name__)


class PriceCollector:
    """Own the store, fetcher, job and scheduler for one collector process.

    The store handle is opened in ``run``/``collect_once``/``prune``/
    ``latest`` and always closed before they return; nothing is held in
    module-level state.

    Args:
        config: Immutable collector configuration.

    """

    def __init__(self, config: CollectorConfig) -> None:
        """Initialize the collector with the given configuration.

        Args:
            config: Collector configuration with store, schedule and source
                settings.

        """
        self._config = config
        self._store = build_store(config)
        self._fetcher = PriceFetcher(config)
        self._job = PriceCollectionJob(
            self._store,
            self._fetcher,
            retention_hours=config.retention_hours,
            delete_batch_size=config.delete_batch_size,
        )
        self._scheduler = PriceScheduler(
            self._job,
            interval_seconds=config.interval_seconds,
            skip_overlapping_runs=config.skip_overlapping_runs,
        )

    async def run(self) -> None:
        """Collect every minute until SIGINT or SIGTERM.

        Steps:
            1. Open the store (create the schema if needed).
            2. Install signal handlers that stop the scheduler.
            3. Run the scheduler loop.
            4. On shutdown, close the HTTP clients and the store.

        """
        try:
            await self._store.open()
            self._install_signal_handlers()
            logger.info(
                "Starting price collector (backend=%s interval=%.0fs retention=%s)",
                self._config.store_backend,
                self._config.interval_seconds,
                (
                    f"{self._config.retention_hours:g}h"
                    if self._config.retention_hours
                    else "unbounded"
                ),
            )
            await self._scheduler.run()
        finally:
            await self._shutdown()

    async def collect_once(self) -> CollectionOutcome:
        """Open the store, run one collection cycle, and close everything."""
        try:
            await self._store.open()
            return await self._job.run_once()
        finally:
            await self._shutdown()

    async def prune(self) -> int:
        """Open the store, run only the retention sweep, and close everything.

        Raises:
            StoreError: If the store cannot be opened or the delete fails.

        """
        try:
            await self._store.open()
            return await self._job.sweep()
        finally:
            await self._shutdown()

    async def latest(self, limit: int) -> tuple[list[PriceRecord], int]:
        """Return the newest ``limit`` records and the total stored count."""
        try:
            await self._store.open()
            return await self._store.latest(limit), await self._store.count()
        finally:
            await self._shutdown()

    def _install_signal_handlers(self) -> None:
        """Route SIGINT/SIGTERM to a graceful scheduler stop."""
        loop = asyncio.get_running_loop()
        loop.add_signal_handler(signal.SIGINT, self._handle_shutdown)
        loop.add_signal_handler(signal.SIGTERM, self._handle_shutdown)

    def _handle_shutdown(self) -> None:
        """Stop the scheduler on SIGINT/SIGTERM."""
        logger.info("Shutdown signal received")
        self._scheduler.stop()

    async def _shutdown(self) -> None:
        """Close the HTTP clients and the store handle."""
        await self._fetcher.close()
        await self._store.close()
        logger.info("Price collector shut down")
