"""Structural protocols for pluggable price stores.

Define the ``PriceStore`` interface that decouples the collection job from
a concrete persistence backend. Any class whose shape matches the protocol
can be used without explicit inheritance (structural subtyping).
"""

from typing import Protocol, runtime_checkable

from price_collector.core.models import PriceRecord


@runtime_checkable
class PriceStore(Protocol):
    """Async, minute-keyed store of ``PriceRecord`` objects.

    Implementors guarantee at most one record per minute key and raise
    ``StoreError`` (or its ``DuplicateKeyError`` subclass) on failure.
    """

    async def open(self) -> None:
        """Prepare the store for use; safe to call more than once."""
        ...

    async def close(self) -> None:
        """Release any resources held by the store."""
        ...

    async def exists(self, key: str) -> bool:
        """Return whether a record is stored for the given minute key."""
        ...

    async def insert(self, record: PriceRecord) -> None:
        """Store a new record, raising ``DuplicateKeyError`` on collision."""
        ...

    async def delete_older_than(self, cutoff: str, batch_size: int = 100) -> int:
        """Delete records keyed strictly before ``cutoff`` and return the count."""
        ...

    async def count(self) -> int:
        """Return the number of stored records."""
        ...

    async def latest(self, limit: int = 10) -> list[PriceRecord]:
        """Return up to ``limit`` records, newest first."""
        ...
