"""Single collection run: check, fetch, insert, prune.

One call to ``PriceCollectionJob.run_once`` handles one minute. It never
raises for upstream or storage failures; a failed minute is just a gap in
the series and the next scheduled run tries again.
"""

from __future__ import annotations

import logging
from datetime import datetime, timedelta
from typing import TYPE_CHECKING

from price_collector.core.exceptions import DuplicateKeyError, FetchError, StoreError
from price_collector.core.models import CollectionOutcome, PriceRecord
from price_collector.core.timestamps import format_minute_key, utc_now

if TYPE_CHECKING:
    from collections.abc import Callable

    from price_collector.apps.collector.fetchers import PriceFetcher
    from price_collector.core.protocols import PriceStore

logger = logging.getLogger(__name__)


class PriceCollectionJob:
    """Collect and persist the prices for the current minute.

    Steps:
        1. Compute the minute key from the clock.
        2. Skip (but still prune) when the minute is already stored.
        3. Fetch BTC/USD and USD/BRL concurrently.
        4. Insert the record and log both values.
        5. Run the retention sweep.

    Args:
        store: Opened ``PriceStore`` to read and write.
        fetcher: Source of the two prices.
        retention_hours: Age after which records are pruned; ``None``
            disables the sweep.
        delete_batch_size: Rows per delete batch during the sweep.
        clock: Returns the current UTC time; injectable for tests.

    """

    def __init__(
        self,
        store: PriceStore,
        fetcher: PriceFetcher,
        *,
        retention_hours: float | None = 24.0,
        delete_batch_size: int = 100,
        clock: Callable[[], datetime] = utc_now,
    ) -> None:
        """Initialize the job with its collaborators."""
        self._store = store
        self._fetcher = fetcher
        self._retention = timedelta(hours=retention_hours) if retention_hours else None
        self._delete_batch_size = delete_batch_size
        self._clock = clock

    async def run_once(self) -> CollectionOutcome:
        """Execute one collection cycle.

        Returns:
            ``INSERTED`` when a new record was stored, ``SKIPPED`` when the
            minute was already present, ``FAILED`` when fetching or storing
            failed.

        """
        now = self._clock()
        key = format_minute_key(now)

        try:
            already_stored = await self._store.exists(key)
        except StoreError as exc:
            logger.error("[%s] Failed to check for existing price: %s", key, exc)
            return CollectionOutcome.FAILED

        if already_stored:
            logger.info("[%s] Price already stored, skipping this minute", key)
            await self.prune(now)
            return CollectionOutcome.SKIPPED

        try:
            btc_usd, usd_brl = await self._fetcher.fetch_all()
            record = PriceRecord(timestamp=key, btc_usd=btc_usd, usd_brl=usd_brl)
        except (FetchError, ValueError) as exc:
            logger.error("[%s] Failed to collect prices: %s", key, exc)
            return CollectionOutcome.FAILED

        try:
            await self._store.insert(record)
        except DuplicateKeyError:
            logger.info("[%s] Price stored by a concurrent run, skipping this minute", key)
            return CollectionOutcome.SKIPPED
        except StoreError as exc:
            logger.error("[%s] Failed to store prices: %s", key, exc)
            return CollectionOutcome.FAILED

        logger.info("[%s] BTC/USD=%s | USD/BRL=%s", key, btc_usd, usd_brl)
        await self.prune(now)
        return CollectionOutcome.INSERTED

    async def prune(self, now: datetime | None = None) -> int:
        """Delete records older than the retention window, logging failures.

        Failures are logged and swallowed so a broken sweep never turns a
        successful collection into a failed one.

        Args:
            now: Reference time; defaults to the job clock.

        Returns:
            Number of records deleted (0 when retention is unbounded or the
            sweep failed).

        """
        try:
            return await self.sweep(now)
        except StoreError as exc:
            logger.error("Retention sweep failed: %s", exc)
            return 0

    async def sweep(self, now: datetime | None = None) -> int:
        """Delete records older than the retention window.

        Args:
            now: Reference time; defaults to the job clock.

        Returns:
            Number of records deleted (0 when retention is unbounded).

        Raises:
            StoreError: If the store rejects the delete.

        """
        if self._retention is None:
            return 0
        cutoff = format_minute_key((now or self._clock()) - self._retention)
        return await self._store.delete_older_than(cutoff, self._delete_batch_size)
