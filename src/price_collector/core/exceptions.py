"""Exception hierarchy shared by the price sources and the stores.

Callers catch ``FetchError`` and ``StoreError`` at the collection job
boundary; everything else is a programming error and propagates.
"""


class PriceCollectorError(Exception):
    """Base exception for all price collector errors."""


class FetchError(PriceCollectorError):
    """Raise when a price source cannot deliver a usable value.

    Covers transport failures, timeouts, non-2xx responses, undecodable
    bodies and missing or invalid fields.
    """


class StoreError(PriceCollectorError):
    """Raise when a read or write against the price store fails."""


class DuplicateKeyError(StoreError):
    """Raise when inserting a record whose minute key is already stored.

    Args:
        key: The minute key that collided.

    """

    def __init__(self, key: str) -> None:
        """Initialize the duplicate key error.

        Args:
            key: The minute key that collided.

        """
        super().__init__(f"Price already stored for {key}")
        self.key = key
