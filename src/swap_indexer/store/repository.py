"""Async entity store for indexer records.

Wrap SQLAlchemy async engine and session management. Each event is
processed inside one ``UnitOfWork``: every record it loads and saves goes
through the same session, and the whole set of writes is committed at the
end or rolled back together. The store is database-agnostic; swap from
SQLite to PostgreSQL by changing the connection string.
"""

import logging
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager
from typing import TypeVar

from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import (
    AsyncEngine,
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)

from swap_indexer.store.models import Base

logger = logging.getLogger(__name__)

RecordT = TypeVar("RecordT", bound=Base)


class UnitOfWork:
    """Keyed load/save access to the store within one transaction.

    Args:
        session: Async session owning the transaction.

    """

    def __init__(self, session: AsyncSession) -> None:
        """Initialize the unit of work around an open session.

        Args:
            session: Async session owning the transaction.

        """
        self._session = session
        self.discarded = False

    async def load(self, model: type[RecordT], key: str) -> RecordT | None:
        """Return the record of ``model`` stored under ``key``, or None."""
        return await self._session.get(model, key)

    async def save(self, record: Base) -> None:
        """Stage a new or modified record and flush it to the transaction."""
        self._session.add(record)
        await self._session.flush()

    async def all(self, model: type[RecordT]) -> list[RecordT]:
        """Return every record of ``model``."""
        result = await self._session.execute(select(model))
        return list(result.scalars().all())

    def discard(self) -> None:
        """Mark the transaction to be rolled back instead of committed."""
        self.discarded = True


class EntityStore:
    """Async repository for indexer record persistence.

    Manage an async SQLAlchemy engine and session factory. Provide schema
    creation, transactional units of work, and simple read helpers.

    Args:
        db_url: SQLAlchemy async connection string
            (e.g. ``sqlite+aiosqlite:///swap_indexer.db``).

    """

    def __init__(self, db_url: str) -> None:
        """Initialize the store with an async database engine.

        Args:
            db_url: SQLAlchemy async connection string.

        """
        self._engine: AsyncEngine = create_async_engine(db_url, echo=False)
        self._session_factory = async_sessionmaker(
            self._engine, class_=AsyncSession, expire_on_commit=False
        )

    async def init_db(self) -> None:
        """Create all tables if they do not already exist.

        Idempotent, safe to call on every startup.
        """
        async with self._engine.begin() as conn:
            await conn.run_sync(Base.metadata.create_all)
        logger.info("Database tables initialised")

    @asynccontextmanager
    async def unit_of_work(self) -> AsyncIterator[UnitOfWork]:
        """Open a transaction that commits on success and rolls back on error.

        The transaction is also rolled back when the caller calls
        ``UnitOfWork.discard()``.

        Yields:
            A ``UnitOfWork`` bound to a fresh session.

        """
        async with self._session_factory() as session:
            uow = UnitOfWork(session)
            try:
                yield uow
            except BaseException:
                await session.rollback()
                raise
            if uow.discarded:
                await session.rollback()
                logger.debug("Unit of work discarded")
            else:
                await session.commit()

    async def get(self, model: type[RecordT], key: str) -> RecordT | None:
        """Load a single record outside any event transaction."""
        async with self._session_factory() as session:
            return await session.get(model, key)

    async def list_all(self, model: type[RecordT]) -> list[RecordT]:
        """Return every record of ``model``."""
        async with self._session_factory() as session:
            result = await session.execute(select(model))
            return list(result.scalars().all())

    async def count(self, model: type[Base]) -> int:
        """Return the number of rows stored for ``model``."""
        stmt = select(func.count()).select_from(model)
        async with self._session_factory() as session:
            result = await session.execute(stmt)
            return result.scalar_one()

    async def close(self) -> None:
        """Dispose the async engine and release all connections."""
        await self._engine.dispose()
        logger.info("Database engine disposed")
