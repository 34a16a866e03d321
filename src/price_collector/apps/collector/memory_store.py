"""In-process price store for dry runs and tests.

Satisfy the ``PriceStore`` protocol with a plain dict keyed by minute key.
Nothing survives a restart.
"""

import logging

from price_collector.core.exceptions import DuplicateKeyError
from price_collector.core.models import PriceRecord

logger = logging.getLogger(__name__)


class InMemoryPriceStore:
    """Dict-backed ``PriceStore`` with the same batching contract as the SQL one."""

    def __init__(self) -> None:
        """Initialize an empty store."""
        self._records: dict[str, PriceRecord] = {}
        self.delete_batches: list[int] = []

    async def open(self) -> None:
        """No-op; present for protocol compatibility."""
        logger.info("Using in-memory price store, records are not persisted")

    async def close(self) -> None:
        """Drop all records."""
        self._records.clear()

    async def exists(self, key: str) -> bool:
        """Return whether a record is stored for the minute key."""
        return key in self._records

    async def insert(self, record: PriceRecord) -> None:
        """Store a record, raising ``DuplicateKeyError`` if the key is taken."""
        if record.timestamp in self._records:
            raise DuplicateKeyError(record.timestamp)
        self._records[record.timestamp] = record

    async def delete_older_than(self, cutoff: str, batch_size: int = 100) -> int:
        """Delete records keyed before ``cutoff`` in batches of ``batch_size``.

        The size of every batch is appended to ``delete_batches``.
        """
        if batch_size <= 0:
            msg = f"batch_size must be positive, got {batch_size}"
            raise ValueError(msg)

        total = 0
        while True:
            stale = sorted(k for k in self._records if k < cutoff)[:batch_size]
            for key in stale:
                del self._records[key]
            self.delete_batches.append(len(stale))
            total += len(stale)
            if len(stale) < batch_size:
                break
        return total

    async def count(self) -> int:
        """Return the number of stored records."""
        return len(self._records)

    async def latest(self, limit: int = 10) -> list[PriceRecord]:
        """Return up to ``limit`` records, newest first."""
        keys = sorted(self._records, reverse=True)[:limit]
        return [self._records[k] for k in keys]
