"""CoinGecko public market-data client."""

from price_collector.clients.coingecko.client import CoinGeckoClient
from price_collector.clients.coingecko.exceptions import CoinGeckoAPIError, CoinGeckoError

__all__ = [
    "CoinGeckoAPIError",
    "CoinGeckoClient",
    "CoinGeckoError",
]
