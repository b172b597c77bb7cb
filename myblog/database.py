from __future__ import annotations

from contextlib import asynccontextmanager
from typing import AsyncIterator

from sqlalchemy.ext.asyncio import (
    AsyncEngine,
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)
from sqlalchemy.orm import DeclarativeBase

from myblog.config import settings
from myblog.errors import TransactionError
from myblog.middleware import install_query_counter


class Base(DeclarativeBase):
    pass


class DBHandle:
    """
    Repository handle bound either to the connection pool or to a single
    open transaction.

    Repositories never look for a transaction anywhere else; they call
    ``db.session()`` and get either a short-lived, auto-committing session
    (pool-bound) or the session owned by the enclosing unit of work
    (transaction-bound).  The same repository code therefore runs in both
    modes with an identical signature.

    Transaction-bound handles are only created by
    ``myblog.unit_of_work.run_in_transaction``.
    """

    def __init__(
        self,
        sessions: async_sessionmaker[AsyncSession],
        session: AsyncSession | None = None,
    ) -> None:
        self.sessions = sessions
        self._session = session
        self._closed = False

    @property
    def in_transaction(self) -> bool:
        return self._session is not None

    @property
    def closed(self) -> bool:
        return self._closed

    def close(self) -> None:
        """Mark a transaction-bound handle as finished.  Further use raises."""
        self._closed = True

    @asynccontextmanager
    async def session(self) -> AsyncIterator[AsyncSession]:
        if self._session is not None:
            if self._closed:
                raise TransactionError("transaction handle used after the transaction ended")
            yield self._session
            return

        async with self.sessions() as session:
            async with session.begin():
                yield session


class Database:
    """
    Storage handle: owns the engine (and its pool) and hands out
    repository handles.

    ``read()`` and ``write()`` share one pool today; callers pick the
    accessor matching their intent so the two can be split later.
    """

    def __init__(self, url: str | None = None, *, engine: AsyncEngine | None = None, **engine_kwargs) -> None:
        if engine is None:
            engine_kwargs.setdefault("echo", settings.DEBUG)
            engine_kwargs.setdefault("pool_pre_ping", True)
            engine = create_async_engine(url or settings.DATABASE_URL, **engine_kwargs)
        self.engine = engine
        self._sessions = async_sessionmaker(
            engine,
            class_=AsyncSession,
            expire_on_commit=False,
        )

    def read(self) -> DBHandle:
        return DBHandle(self._sessions)

    def write(self) -> DBHandle:
        return DBHandle(self._sessions)

    async def create_all(self) -> None:
        async with self.engine.begin() as conn:
            await conn.run_sync(Base.metadata.create_all)

    async def drop_all(self) -> None:
        async with self.engine.begin() as conn:
            await conn.run_sync(Base.metadata.drop_all)

    async def dispose(self) -> None:
        await self.engine.dispose()


# Module-level instance allows tests to override get_db / get_read_db with a test database.
database = Database(settings.DATABASE_URL)

# Register the per-request SQL query counter on the production engine.
install_query_counter(database.engine)


async def get_db():
    yield database.write()


async def get_read_db():
    yield database.read()
