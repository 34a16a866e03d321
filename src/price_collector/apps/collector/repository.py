"""Async SQLAlchemy repository for persisting and pruning price records.

Wrap SQLAlchemy async engine and session management for the price collector.
The repository is database-agnostic: swap from SQLite to PostgreSQL by
changing the connection string. SQLAlchemy failures are translated into
``StoreError`` so the collection job only deals with the collector's own
exception hierarchy.
"""

import logging
from typing import Any

from sqlalchemy import delete, event, func, select
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.ext.asyncio import (
    AsyncEngine,
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)

from price_collector.apps.collector.models import Base, Price
from price_collector.core.exceptions import DuplicateKeyError, StoreError
from price_collector.core.models import PriceRecord

logger = logging.getLogger(__name__)

_DEFAULT_BATCH_SIZE = 100


def _set_sqlite_pragmas(dbapi_connection: Any, _connection_record: Any) -> None:
    """Enable WAL journaling with relaxed fsync on each new SQLite connection."""
    cursor = dbapi_connection.cursor()
    cursor.execute("PRAGMA journal_mode=WAL")
    cursor.execute("PRAGMA synchronous=NORMAL")
    cursor.close()


class PriceRepository:
    """Async repository for minute-keyed price persistence.

    Manage an async SQLAlchemy engine and session factory. Provide the
    ``PriceStore`` operations: schema creation, existence check, insert,
    batched retention delete, and small read helpers for the CLI.

    Args:
        db_url: SQLAlchemy async connection string
            (e.g. ``sqlite+aiosqlite:///prices.db``).

    """

    def __init__(self, db_url: str) -> None:
        """Initialize the repository with an async database engine.

        Args:
            db_url: SQLAlchemy async connection string.

        """
        self._engine: AsyncEngine = create_async_engine(db_url, echo=False)
        if self._engine.dialect.name == "sqlite":
            event.listen(self._engine.sync_engine, "connect", _set_sqlite_pragmas)
        self._session_factory = async_sessionmaker(
            self._engine, class_=AsyncSession, expire_on_commit=False
        )

    async def open(self) -> None:
        """Create all tables if they do not already exist.

        Idempotent, safe to call on every startup.

        Raises:
            StoreError: If the schema cannot be created.

        """
        try:
            async with self._engine.begin() as conn:
                await conn.run_sync(Base.metadata.create_all)
        except SQLAlchemyError as exc:
            raise StoreError(f"Failed to initialise database: {exc}") from exc
        logger.info("Database tables initialised")

    async def exists(self, key: str) -> bool:
        """Return whether a price is stored for the given minute key.

        Raises:
            StoreError: If the query fails.

        """
        stmt = select(Price.id).where(Price.timestamp == key).limit(1)
        try:
            async with self._session_factory() as session:
                result = await session.execute(stmt)
                return result.first() is not None
        except SQLAlchemyError as exc:
            raise StoreError(f"Failed to look up {key}: {exc}") from exc

    async def insert(self, record: PriceRecord) -> None:
        """Insert a new price record.

        Args:
            record: The record to persist.

        Raises:
            DuplicateKeyError: If a record with the same minute key exists.
            StoreError: If the write fails for any other reason.

        """
        try:
            async with self._session_factory() as session, session.begin():
                session.add(Price.from_record(record))
        except IntegrityError as exc:
            raise DuplicateKeyError(record.timestamp) from exc
        except SQLAlchemyError as exc:
            raise StoreError(f"Failed to insert {record.timestamp}: {exc}") from exc
        logger.debug("Saved price for %s", record.timestamp)

    async def delete_older_than(self, cutoff: str, batch_size: int = _DEFAULT_BATCH_SIZE) -> int:
        """Delete records keyed strictly before ``cutoff`` in bounded batches.

        Each batch selects at most ``batch_size`` ids and deletes them in
        its own transaction. The loop stops once a batch comes back short,
        so an arbitrarily large backlog never turns into one huge delete.

        Args:
            cutoff: Minute key; rows with a smaller key are removed.
            batch_size: Maximum rows removed per statement.

        Returns:
            Total number of rows deleted.

        Raises:
            ValueError: If ``batch_size`` is not positive.
            StoreError: If any batch fails. Rows removed by earlier batches
                stay removed.

        """
        if batch_size <= 0:
            msg = f"batch_size must be positive, got {batch_size}"
            raise ValueError(msg)

        total = 0
        while True:
            deleted = await self._delete_batch(cutoff, batch_size)
            total += deleted
            if deleted < batch_size:
                break
        if total:
            logger.info("Pruned %d prices older than %s", total, cutoff)
        return total

    async def _delete_batch(self, cutoff: str, batch_size: int) -> int:
        """Delete one batch of stale rows and return how many were removed."""
        ids_stmt = (
            select(Price.id).where(Price.timestamp < cutoff).order_by(Price.id).limit(batch_size)
        )
        try:
            async with self._session_factory() as session, session.begin():
                ids = list((await session.execute(ids_stmt)).scalars().all())
                if not ids:
                    return 0
                await session.execute(delete(Price).where(Price.id.in_(ids)))
        except SQLAlchemyError as exc:
            raise StoreError(f"Failed to prune prices before {cutoff}: {exc}") from exc
        return len(ids)

    async def count(self) -> int:
        """Return the total number of stored price records.

        Raises:
            StoreError: If the query fails.

        """
        stmt = select(func.count()).select_from(Price)
        try:
            async with self._session_factory() as session:
                result = await session.execute(stmt)
                return result.scalar_one()
        except SQLAlchemyError as exc:
            raise StoreError(f"Failed to count prices: {exc}") from exc

    async def latest(self, limit: int = 10) -> list[PriceRecord]:
        """Return up to ``limit`` records, newest minute first.

        Raises:
            StoreError: If the query fails.

        """
        stmt = select(Price).order_by(Price.timestamp.desc()).limit(limit)
        try:
            async with self._session_factory() as session:
                result = await session.execute(stmt)
                return [row.to_record() for row in result.scalars().all()]
        except SQLAlchemyError as exc:
            raise StoreError(f"Failed to read latest prices: {exc}") from exc

    async def close(self) -> None:
        """Dispose the async engine and release all connections."""
        await self._engine.dispose()
        logger.info("Database engine disposed")
