"""Exceptions for the CoinGecko API client."""

from price_collector.core.exceptions import FetchError


class CoinGeckoError(FetchError):
    """Base exception for CoinGecko errors."""


class CoinGeckoAPIError(CoinGeckoError):
    """Error returned by, or while reaching, the CoinGecko API.

    Args:
        msg: Human-readable description of the error.
        status_code: HTTP status code, or ``0`` when the request never got
            a response (connection failure, timeout).

    """

    def __init__(self, msg: str, status_code: int = 0) -> None:
        """Initialize CoinGecko API error.

        Args:
            msg: Human-readable description of the error.
            status_code: HTTP status code from the API response.

        """
        super().__init__(f"[{status_code}] {msg}")
        self.msg = msg
        self.status_code = status_code
