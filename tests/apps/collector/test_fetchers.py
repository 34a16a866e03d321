"""Tests for the concurrent price fetcher."""

import asyncio
from unittest.mock import AsyncMock, patch

import pytest

from price_collector.apps.collector.config import CollectorConfig
from price_collector.apps.collector.fetchers import PriceFetcher
from price_collector.clients.frankfurter.exceptions import FrankfurterAPIError
from price_collector.core.exceptions import FetchError

_BTC_USD = 65000.0
_USD_BRL = 5.25


class TestPriceFetcher:
    """Tests for PriceFetcher."""

    def test_clients_use_config(self) -> None:
        """Both clients receive the configured URLs."""
        config = CollectorConfig(
            coingecko_base_url="https://cg.example/",
            frankfurter_base_url="https://fx.example",
        )
        fetcher = PriceFetcher(config)
        assert fetcher._coingecko.base_url == "https://cg.example"
        assert fetcher._frankfurter.base_url == "https://fx.example"

    @pytest.mark.asyncio
    async def test_fetch_passes_configured_symbols(self) -> None:
        """Configured coin and currency pair are forwarded to the clients."""
        config = CollectorConfig(
            coin_id="ethereum",
            vs_currency="eur",
            fx_base="EUR",
            fx_symbol="GBP",
        )
        fetcher = PriceFetcher(config)

        with (
            patch.object(
                fetcher._coingecko, "get_simple_price", new=AsyncMock(return_value=_BTC_USD)
            ) as mock_btc,
            patch.object(
                fetcher._frankfurter, "get_latest_rate", new=AsyncMock(return_value=_USD_BRL)
            ) as mock_fx,
        ):
            assert await fetcher.fetch_btc_usd() == pytest.approx(_BTC_USD)
            assert await fetcher.fetch_usd_brl() == pytest.approx(_USD_BRL)

        mock_btc.assert_awaited_once_with(coin_id="ethereum", vs_currency="eur")
        mock_fx.assert_awaited_once_with(base="EUR", symbol="GBP")

    @pytest.mark.asyncio
    async def test_fetch_all_returns_both(self) -> None:
        """fetch_all returns (btc_usd, usd_brl)."""
        fetcher = PriceFetcher(CollectorConfig())

        with (
            patch.object(fetcher, "fetch_btc_usd", new=AsyncMock(return_value=_BTC_USD)),
            patch.object(fetcher, "fetch_usd_brl", new=AsyncMock(return_value=_USD_BRL)),
        ):
            assert await fetcher.fetch_all() == (_BTC_USD, _USD_BRL)

    @pytest.mark.asyncio
    async def test_fetch_all_runs_concurrently(self) -> None:
        """Both requests are in flight at the same time."""
        fetcher = PriceFetcher(CollectorConfig())
        both_started = asyncio.Event()
        started: list[str] = []

        async def _slow(name: str, value: float) -> float:
            started.append(name)
            if len(started) == 2:  # noqa: PLR2004
                both_started.set()
            await asyncio.wait_for(both_started.wait(), timeout=1.0)
            return value

        with (
            patch.object(fetcher, "fetch_btc_usd", new=lambda: _slow("btc", _BTC_USD)),
            patch.object(fetcher, "fetch_usd_brl", new=lambda: _slow("fx", _USD_BRL)),
        ):
            assert await fetcher.fetch_all() == (_BTC_USD, _USD_BRL)

    @pytest.mark.asyncio
    async def test_fetch_all_fails_if_either_fails(self) -> None:
        """A failure of one source fails the whole fetch."""
        fetcher = PriceFetcher(CollectorConfig())
        failing = AsyncMock(side_effect=FrankfurterAPIError("boom", status_code=503))

        with (
            patch.object(fetcher, "fetch_btc_usd", new=AsyncMock(return_value=_BTC_USD)),
            patch.object(fetcher, "fetch_usd_brl", new=failing),
            pytest.raises(FetchError, match="boom"),
        ):
            await fetcher.fetch_all()

    @pytest.mark.asyncio
    async def test_close_closes_both_clients(self) -> None:
        """Closing the fetcher closes both HTTP clients."""
        fetcher = PriceFetcher(CollectorConfig())

        with (
            patch.object(fetcher._coingecko, "close", new=AsyncMock()) as close_cg,
            patch.object(fetcher._frankfurter, "close", new=AsyncMock()) as close_fx,
        ):
            async with fetcher:
                pass

        close_cg.assert_awaited_once()
        close_fx.assert_awaited_once()
