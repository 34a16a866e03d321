"""HTTP client for the Frankfurter exchange-rate API."""

from typing import Any

import httpx

from price_collector.clients._parsing import extract_price
from price_collector.clients.frankfurter.exceptions import FrankfurterAPIError, FrankfurterError

_HTTP_BAD_REQUEST = 400


class FrankfurterClient:
    """HTTP client for the Frankfurter reference-rate endpoints.

    Frankfurter publishes European Central Bank reference rates and needs
    no authentication.
    """

    BASE_URL = "https://api.frankfurter.dev/v1"

    def __init__(
        self,
        base_url: str = BASE_URL,
        timeout: float = 15.0,
    ) -> None:
        """Initialize the Frankfurter client.

        Args:
            base_url: Base URL for the Frankfurter API.
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
            FrankfurterAPIError: On transport failure, timeout, an error
                response, or a body that is not JSON.

        """
        if not path.startswith("/"):
            path = f"/{path}"

        url = f"{self.base_url}{path}"
        try:
            response = await self._http_client.request("GET", url, params=params)
        except httpx.HTTPError as exc:
            raise FrankfurterAPIError(msg=f"Request failed: {exc!r}") from exc

        if response.status_code >= _HTTP_BAD_REQUEST:
            self._handle_error(response)

        try:
            result: Any = response.json()
        except ValueError as exc:
            raise FrankfurterAPIError(
                msg="Response body is not valid JSON",
                status_code=response.status_code,
            ) from exc
        return result

    async def get_latest_rate(self, base: str = "USD", symbol: str = "BRL") -> float:
        """Fetch the latest exchange rate from ``base`` to ``symbol``.

        The endpoint answers ``{"base": "USD", "rates": {"BRL": 5.25}}``.
        A response without the requested rate is an error, never zero.

        Args:
            base: Base currency code.
            symbol: Quote currency code.

        Returns:
            Positive exchange rate.

        Raises:
            FrankfurterError: When the request fails or the rate is missing
                or invalid.

        """
        data = await self.get("/latest", params={"base": base, "symbols": symbol})
        return extract_price(data, ("rates", symbol), FrankfurterError)

    @staticmethod
    def _handle_error(response: httpx.Response) -> None:
        """Raise a FrankfurterAPIError from an error response.

        Args:
            response: HTTP response with a non-2xx status code.

        Raises:
            FrankfurterAPIError: Always raised with the status and message.

        """
        try:
            data = response.json()
            msg = str(data.get("message", f"HTTP {response.status_code}"))
        except Exception:  # noqa: BLE001
            msg = f"HTTP {response.status_code}"
        raise FrankfurterAPIError(msg=msg, status_code=response.status_code)

    async def close(self) -> None:
        """Close the underlying HTTP client."""
        await self._http_client.aclose()

    async def __aenter__(self) -> "FrankfurterClient":
        """Enter async context manager."""
        return self

    async def __aexit__(self, exc_type: Any, exc_val: Any, exc_tb: Any) -> None:
        """Exit async context manager."""
        await self.close()
