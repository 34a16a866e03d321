"""Concurrent retrieval of the two prices collected each minute."""

import asyncio
import logging
from typing import Any

from price_collector.apps.collector.config import CollectorConfig
from price_collector.clients.coingecko.client import CoinGeckoClient
from price_collector.clients.frankfurter.client import FrankfurterClient

logger = logging.getLogger(__name__)


class PriceFetcher:
    """Fetch BTC/USD from CoinGecko and USD/BRL from Frankfurter.

    Own one HTTP client per source for the lifetime of the collector so
    connections are pooled across runs.

    Args:
        config: Collector configuration with source URLs and timeout.

    """

    def __init__(self, config: CollectorConfig) -> None:
        """Create both HTTP clients from the configuration."""
        self._config = config
        self._coingecko = CoinGeckoClient(
            base_url=config.coingecko_base_url,
            timeout=config.timeout_seconds,
        )
        self._frankfurter = FrankfurterClient(
            base_url=config.frankfurter_base_url,
            timeout=config.timeout_seconds,
        )

    async def fetch_btc_usd(self) -> float:
        """Return the current Bitcoin price in US dollars.

        Raises:
            FetchError: If CoinGecko fails or returns no usable price.

        """
        return await self._coingecko.get_simple_price(
            coin_id=self._config.coin_id,
            vs_currency=self._config.vs_currency,
        )

    async def fetch_usd_brl(self) -> float:
        """Return the current USD to BRL exchange rate.

        Raises:
            FetchError: If Frankfurter fails or returns no usable rate.

        """
        return await self._frankfurter.get_latest_rate(
            base=self._config.fx_base,
            symbol=self._config.fx_symbol,
        )

    async def fetch_all(self) -> tuple[float, float]:
        """Fetch both prices concurrently.

        Returns:
            ``(btc_usd, usd_brl)``.

        Raises:
            FetchError: If either source fails; no partial result is returned.

        """
        btc_usd, usd_brl = await asyncio.gather(self.fetch_btc_usd(), self.fetch_usd_brl())
        return btc_usd, usd_brl

    async def close(self) -> None:
        """Close both HTTP clients."""
        await asyncio.gather(self._coingecko.close(), self._frankfurter.close())
        logger.debug("Price fetcher closed")

    async def __aenter__(self) -> "PriceFetcher":
        """Enter async context manager."""
        return self

    async def __aexit__(self, exc_type: Any, exc_val: Any, exc_tb: Any) -> None:
        """Exit async context manager."""
        await self.close()
