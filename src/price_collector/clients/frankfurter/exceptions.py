"""Exceptions for the Frankfurter exchange-rate API client."""

from price_collector.core.exceptions import FetchError


class FrankfurterError(FetchError):
    """Base exception for Frankfurter errors."""


class FrankfurterAPIError(FrankfurterError):
    """Error returned by, or while reaching, the Frankfurter API.

    Args:
        msg: Human-readable description of the error.
        status_code: HTTP status code, or ``0`` when the request never got
            a response (connection failure, timeout).

    """

    def __init__(self, msg: str, status_code: int = 0) -> None:
        """Initialize Frankfurter API error.

        Args:
            msg: Human-readable description of the error.
            status_code: HTTP status code from the API response.

        """
        super().__init__(f"[{status_code}] {msg}")
        self.msg = msg
        self.status_code = status_code
