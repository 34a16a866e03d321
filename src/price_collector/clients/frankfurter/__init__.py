"""Frankfurter exchange-rate client."""

from price_collector.clients.frankfurter.client import FrankfurterClient
from price_collector.clients.frankfurter.exceptions import FrankfurterAPIError, FrankfurterError

__all__ = [
    "FrankfurterAPIError",
    "FrankfurterClient",
    "FrankfurterError",
]
