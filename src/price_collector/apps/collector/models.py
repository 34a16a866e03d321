"""SQLAlchemy ORM models for the price collector database.

Define the ``Price`` table that stores one BTC/USD and USD/BRL observation
per minute. The unique ``timestamp`` column enforces the one-record-per-minute
invariant at the database level.
"""

from sqlalchemy import Float, Integer, String
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column

from price_collector.core.models import PriceRecord


class Base(DeclarativeBase):
    """Declarative base class for all price collector ORM models."""


class Price(Base):
    """One minute of collected prices.

    Attributes:
        id: Auto-incrementing surrogate primary key.
        timestamp: Minute key, unique and indexed.
        btc_usd: Bitcoin spot price in US dollars.
        usd_brl: US dollar to Brazilian real exchange rate.

    """

    __tablename__ = "prices"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    timestamp: Mapped[str] = mapped_column(String, unique=True, index=True)
    btc_usd: Mapped[float] = mapped_column(Float)
    usd_brl: Mapped[float] = mapped_column(Float)

    @classmethod
    def from_record(cls, record: PriceRecord) -> "Price":
        """Build an ORM row from a ``PriceRecord``."""
        return cls(timestamp=record.timestamp, btc_usd=record.btc_usd, usd_brl=record.usd_brl)

    def to_record(self) -> PriceRecord:
        """Convert the ORM row back into a ``PriceRecord``."""
        return PriceRecord(timestamp=self.timestamp, btc_usd=self.btc_usd, usd_brl=self.usd_brl)
