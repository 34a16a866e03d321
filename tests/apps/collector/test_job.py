"""Tests for a single collection job run."""

import logging
from datetime import UTC, datetime, timedelta
from unittest.mock import AsyncMock, MagicMock

import pytest

from price_collector.apps.collector.job import PriceCollectionJob
from price_collector.apps.collector.memory_store import InMemoryPriceStore
from price_collector.clients.frankfurter.exceptions import FrankfurterAPIError
from price_collector.core.exceptions import DuplicateKeyError, StoreError
from price_collector.core.models import CollectionOutcome, PriceRecord
from price_collector.core.timestamps import format_minute_key

_NOW = datetime(2024, 6, 1, 12, 34, 37, 250_000, tzinfo=UTC)
_MINUTE_KEY = "2024-06-01T12:34:00.000Z"
_BTC_USD = 65000.0
_USD_BRL = 5.25


def _make_fetcher(btc_usd: float = _BTC_USD, usd_brl: float = _USD_BRL) -> MagicMock:
    """Create a mock PriceFetcher returning fixed prices."""
    fetcher = MagicMock()
    fetcher.fetch_all = AsyncMock(return_value=(btc_usd, usd_brl))
    return fetcher


def _make_job(
    store: object,
    fetcher: MagicMock,
    *,
    retention_hours: float | None = 24.0,
    now: datetime = _NOW,
) -> PriceCollectionJob:
    """Create a job with a frozen clock."""
    return PriceCollectionJob(
        store,  # type: ignore[arg-type]
        fetcher,
        retention_hours=retention_hours,
        delete_batch_size=100,
        clock=lambda: now,
    )


class TestPriceCollectionJob:
    """Tests for PriceCollectionJob.run_once."""

    @pytest.mark.asyncio
    async def test_fresh_minute_inserts_record(self, caplog: pytest.LogCaptureFixture) -> None:
        """A new minute stores the fetched prices and logs both values."""
        store = InMemoryPriceStore()
        job = _make_job(store, _make_fetcher())

        with caplog.at_level(logging.INFO):
            outcome = await job.run_once()

        assert outcome is CollectionOutcome.INSERTED
        assert await store.latest() == [
            PriceRecord(timestamp=_MINUTE_KEY, btc_usd=_BTC_USD, usd_brl=_USD_BRL)
        ]
        assert f"[{_MINUTE_KEY}] BTC/USD=65000.0 | USD/BRL=5.25" in caplog.text

    @pytest.mark.asyncio
    async def test_second_run_same_minute_skips(self, caplog: pytest.LogCaptureFixture) -> None:
        """Two runs in the same minute store exactly one record."""
        store = InMemoryPriceStore()
        fetcher = _make_fetcher()
        job = _make_job(store, fetcher)

        first = await job.run_once()
        with caplog.at_level(logging.INFO):
            second = await job.run_once()

        assert first is CollectionOutcome.INSERTED
        assert second is CollectionOutcome.SKIPPED
        assert await store.count() == 1
        fetcher.fetch_all.assert_awaited_once()
        assert "skipping this minute" in caplog.text

    @pytest.mark.asyncio
    async def test_fetch_failure_inserts_nothing(self, caplog: pytest.LogCaptureFixture) -> None:
        """A failing USD/BRL fetch stores nothing and does not raise."""
        store = InMemoryPriceStore()
        fetcher = MagicMock()
        fetcher.fetch_all = AsyncMock(side_effect=FrankfurterAPIError("network down"))
        job = _make_job(store, fetcher)

        with caplog.at_level(logging.ERROR):
            outcome = await job.run_once()

        assert outcome is CollectionOutcome.FAILED
        assert await store.count() == 0
        assert "Failed to collect prices" in caplog.text
        assert "network down" in caplog.text

    @pytest.mark.asyncio
    async def test_invalid_price_is_a_failure(self) -> None:
        """A non-positive price never reaches the store."""
        store = InMemoryPriceStore()
        job = _make_job(store, _make_fetcher(usd_brl=0.0))

        assert await job.run_once() is CollectionOutcome.FAILED
        assert await store.count() == 0

    @pytest.mark.asyncio
    async def test_exists_failure_is_a_failure(self) -> None:
        """A broken existence check fails the run without fetching."""
        store = MagicMock()
        store.exists = AsyncMock(side_effect=StoreError("db locked"))
        fetcher = _make_fetcher()
        job = _make_job(store, fetcher)

        assert await job.run_once() is CollectionOutcome.FAILED
        fetcher.fetch_all.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_insert_failure_is_a_failure(self, caplog: pytest.LogCaptureFixture) -> None:
        """A failed write is logged and swallowed; no sweep runs."""
        store = MagicMock()
        store.exists = AsyncMock(return_value=False)
        store.insert = AsyncMock(side_effect=StoreError("disk full"))
        store.delete_older_than = AsyncMock(return_value=0)
        job = _make_job(store, _make_fetcher())

        with caplog.at_level(logging.ERROR):
            assert await job.run_once() is CollectionOutcome.FAILED

        assert "disk full" in caplog.text
        store.delete_older_than.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_insert_race_is_a_skip(self) -> None:
        """A duplicate key on insert means another run got there first."""
        store = MagicMock()
        store.exists = AsyncMock(return_value=False)
        store.insert = AsyncMock(side_effect=DuplicateKeyError(_MINUTE_KEY))
        job = _make_job(store, _make_fetcher())

        assert await job.run_once() is CollectionOutcome.SKIPPED

    @pytest.mark.asyncio
    async def test_insert_runs_retention_sweep(self) -> None:
        """After inserting, records older than 24 hours are pruned."""
        store = InMemoryPriceStore()
        for hours in (48, 25, 23, 1):
            old_key = format_minute_key(_NOW - timedelta(hours=hours))
            await store.insert(PriceRecord(timestamp=old_key, btc_usd=1.0, usd_brl=1.0))
        job = _make_job(store, _make_fetcher())

        await job.run_once()

        keys = {r.timestamp for r in await store.latest(limit=10)}
        assert keys == {
            _MINUTE_KEY,
            format_minute_key(_NOW - timedelta(hours=23)),
            format_minute_key(_NOW - timedelta(hours=1)),
        }

    @pytest.mark.asyncio
    async def test_skip_still_runs_retention_sweep(self) -> None:
        """A skipped minute still prunes old records."""
        store = MagicMock()
        store.exists = AsyncMock(return_value=True)
        store.delete_older_than = AsyncMock(return_value=3)
        job = _make_job(store, _make_fetcher())

        assert await job.run_once() is CollectionOutcome.SKIPPED
        store.delete_older_than.assert_awaited_once_with(
            format_minute_key(_NOW - timedelta(hours=24)), 100
        )

    @pytest.mark.asyncio
    async def test_sweep_failure_does_not_fail_run(self, caplog: pytest.LogCaptureFixture) -> None:
        """A failing sweep is logged; the collection still counts as inserted."""
        store = MagicMock()
        store.exists = AsyncMock(return_value=False)
        store.insert = AsyncMock()
        store.delete_older_than = AsyncMock(side_effect=StoreError("locked"))
        job = _make_job(store, _make_fetcher())

        with caplog.at_level(logging.ERROR):
            assert await job.run_once() is CollectionOutcome.INSERTED

        assert "Retention sweep" in caplog.text

    @pytest.mark.asyncio
    async def test_unbounded_retention_never_deletes(self) -> None:
        """Without a retention window the sweep is skipped."""
        store = MagicMock()
        store.exists = AsyncMock(return_value=False)
        store.insert = AsyncMock()
        store.delete_older_than = AsyncMock()
        job = _make_job(store, _make_fetcher(), retention_hours=None)

        await job.run_once()

        assert await job.prune() == 0
        store.delete_older_than.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_prune_returns_deleted_count(self) -> None:
        """prune() reports how many rows the store removed."""
        store = MagicMock()
        store.delete_older_than = AsyncMock(return_value=250)
        job = _make_job(store, _make_fetcher())

        assert await job.prune() == 250  # noqa: PLR2004

    @pytest.mark.asyncio
    async def test_sweep_propagates_store_errors(self) -> None:
        """sweep() raises the store failure that prune() would swallow."""
        store = MagicMock()
        store.delete_older_than = AsyncMock(side_effect=StoreError("db locked"))
        job = _make_job(store, _make_fetcher())

        with pytest.raises(StoreError, match="db locked"):
            await job.sweep()
        assert await job.prune() == 0

    @pytest.mark.asyncio
    async def test_sweep_unbounded_retention(self) -> None:
        """sweep() is a no-op without a retention window."""
        store = MagicMock()
        store.delete_older_than = AsyncMock()
        job = _make_job(store, _make_fetcher(), retention_hours=None)

        assert await job.sweep() == 0
        store.delete_older_than.assert_not_awaited()
