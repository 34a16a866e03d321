"""HTTP client for the CoinGecko public API."""

from typing import Any

import httpx

from price_collector.clients._parsing import extract_price
from price_collector.clients.coingecko.exceptions import CoinGeckoAPIError, CoinGeckoError

_HTTP_BAD_REQUEST = 400


class CoinGeckoClient:
    """HTTP client for CoinGecko public market-data endpoints.

    No API key is required for ``/simple/price`` at the rate this
    collector polls (once per minute).
    """

    BASE_URL = "https://api.coingecko.com/api/v3"

    def __init__(
        self,
        base_url: str = BASE_URL,
        timeout: float = 15.0,
    ) -> None:
        """Initialize the CoinGecko client.

        Args:
            base_url: Base URL for the CoinGecko API.
            timeout: Request timeout in seconds.

        """
        self.base_url = base_url.rstrip("/")
        self._http_client = httpx.AsyncClient(timeout=timeout)

    async def get(self, path: str, params: dict[str, Any] | None = None) -> Any:
        """Send a GET request and return parsed JSON.

        Args:
            path: Request path relative to base_url.
            params: Query parameters.

        Returns:
            Parsed JSON response.

        Raises:
            CoinGeckoAPIError: On transport failure, timeout, an error
                response, or a body that is not JSON.

        """
        if not path.startswith("/"):
            path = f"/{path}"

        url = f"{self.base_url}{path}"
        try:
            response = await self._http_client.request("GET", url, params=params)
        except httpx.HTTPError as exc:
            raise CoinGeckoAPIError(msg=f"Request failed: {exc!r}") from exc

        if response.status_code >= _HTTP_BAD_REQUEST:
            self._handle_error(response)

        try:
            result: Any = response.json()
        except ValueError as exc:
            raise CoinGeckoAPIError(
                msg="Response body is not valid JSON",
                status_code=response.status_code,
            ) from exc
        return result

    async def get_simple_price(self, coin_id: str = "bitcoin", vs_currency: str = "usd") -> float:
        """Fetch the spot price of a coin in the given fiat currency.

        The endpoint answers ``{"bitcoin": {"usd": 65000.0}}``.

        Args:
            coin_id: CoinGecko coin identifier.
            vs_currency: Quote currency code, lower case.

        Returns:
            Positive spot price.

        Raises:
            CoinGeckoError: When the request fails or the price is missing
                or invalid.

        """
        data = await self.get(
            "/simple/price",
            params={"ids": coin_id, "vs_currencies": vs_currency},
        )
        return extract_price(data, (coin_id, vs_currency), CoinGeckoError)

    @staticmethod
    def _handle_error(response: httpx.Response) -> None:
        """Raise a CoinGeckoAPIError from an error response.

        CoinGecko reports failures either as ``{"error": "..."}`` or as
        ``{"status": {"error_code": 429, "error_message": "..."}}``.

        Args:
            response: HTTP response with a non-2xx status code.

        Raises:
            CoinGeckoAPIError: Always raised with the status and message.

        """
        msg = f"HTTP {response.status_code}"
        try:
            data = response.json()
            if isinstance(data, dict):
                status = data.get("status")
                if isinstance(status, dict) and status.get("error_message"):
                    msg = str(status["error_message"])
                elif data.get("error"):
                    msg = str(data["error"])
        except Exception:  # noqa: BLE001
            pass
        raise CoinGeckoAPIError(msg=msg, status_code=response.status_code)

    async def close(self) -> None:
        """Close the underlying HTTP client."""
        await self._http_client.aclose()

    async def __aenter__(self) -> "CoinGeckoClient":
        """Enter async context manager."""
        return self

    async def __aexit__(self, exc_type: Any, exc_val: Any, exc_tb: Any) -> None:
        """Exit async context manager."""
        await self.close()
