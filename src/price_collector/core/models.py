"""Core data models shared across the price collector.

Define the immutable ``PriceRecord`` value object that flows from the
price sources through the collection job into a ``PriceStore``, and the
``CollectionOutcome`` reported by each job run.
"""

import math
from dataclasses import dataclass
from enum import Enum


class CollectionOutcome(Enum):
    """Terminal state of a single collection job run."""

    INSERTED = "inserted"
    SKIPPED = "skipped"
    FAILED = "failed"


@dataclass(frozen=True)
class PriceRecord:
    """BTC/USD price and USD/BRL rate observed during one minute.

    Attributes:
        timestamp: Minute key (``YYYY-MM-DDTHH:MM:00.000Z``) identifying the
            collection cycle. Unique across the store.
        btc_usd: Bitcoin spot price in US dollars.
        usd_brl: US dollar to Brazilian real exchange rate.

    Raises:
        ValueError: If either price is not a finite positive number.

    """

    timestamp: str
    btc_usd: float
    usd_brl: float

    def __post_init__(self) -> None:
        """Reject non-positive or non-finite prices."""
        for name in ("btc_usd", "usd_brl"):
            value = getattr(self, name)
            if not math.isfinite(value) or value <= 0:
                msg = f"{name} must be a positive number, got {value!r}"
                raise ValueError(msg)
