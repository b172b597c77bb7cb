"""
Named mutual exclusion with a TTL, used to keep batch jobs from
overlapping.

``Mutex`` hands out a random holder token per acquisition and delegates
the atomic "insert if absent or expired" to a ``LockStore``:

- ``RedisLockStore``: ``SET key token NX PX ttl``; expiry is native.
- ``DatabaseLockStore``: a row in ``locks``; an expired row is deleted
  and a new one inserted in the same transaction, and the primary key
  guarantees a single winner.

The TTL only matters when a holder dies without releasing: the next run
can take the lock once it has lapsed.
"""
from __future__ import annotations

import logging
import secrets
from contextlib import asynccontextmanager
from datetime import datetime, timedelta
from typing import AsyncIterator, Awaitable, Callable, Protocol

import redis.asyncio as redis
from sqlalchemy import delete, insert

from myblog.database import Database, DBHandle
from myblog.errors import (
    AlreadyLockedError,
    ConflictError,
    InfrastructureError,
    ValidationError,
    storage_errors,
)
from myblog.models import Lock, utcnow
from myblog.unit_of_work import run_in_transaction

logger = logging.getLogger(__name__)


class LockStore(Protocol):
    async def acquire(self, lock_id: str, token: str, ttl: timedelta) -> bool: ...

    async def release(self, lock_id: str, token: str) -> bool: ...

    async def close(self) -> None: ...


class RedisLockStore:
    # Delete only if the caller still holds the key.
    RELEASE_SCRIPT = """
if redis.call("get", KEYS[1]) == ARGV[1] then
    return redis.call("del", KEYS[1])
end
return 0
"""

    def __init__(self, client: redis.Redis, prefix: str = "lock:") -> None:
        self._redis = client
        self._prefix = prefix

    def _key(self, lock_id: str) -> str:
        return f"{self._prefix}{lock_id}"

    async def acquire(self, lock_id: str, token: str, ttl: timedelta) -> bool:
        ttl_ms = max(1, int(ttl.total_seconds() * 1000))
        try:
            return bool(await self._redis.set(self._key(lock_id), token, nx=True, px=ttl_ms))
        except redis.RedisError as exc:
            raise InfrastructureError("lock store unavailable", operation="RedisLockStore.acquire", entity_id=lock_id) from exc

    async def release(self, lock_id: str, token: str) -> bool:
        try:
            return bool(await self._redis.eval(self.RELEASE_SCRIPT, 1, self._key(lock_id), token))
        except redis.RedisError as exc:
            raise InfrastructureError("lock store unavailable", operation="RedisLockStore.release", entity_id=lock_id) from exc

    async def close(self) -> None:
        await self._redis.aclose()


class DatabaseLockStore:
    def __init__(self, database: Database, clock: Callable[[], datetime] = utcnow) -> None:
        self._database = database
        self._clock = clock

    async def acquire(self, lock_id: str, token: str, ttl: timedelta) -> bool:
        now = self._clock()

        async def work(tx: DBHandle) -> None:
            with storage_errors("DatabaseLockStore.acquire", lock_id):
                async with tx.session() as session:
                    await session.execute(
                        delete(Lock).where(Lock.lock_id == lock_id, Lock.expires_at <= now)
                    )
                    await session.execute(
                        insert(Lock).values(lock_id=lock_id, token=token, expires_at=now + ttl)
                    )

        try:
            await run_in_transaction(self._database.write(), work)
        except ConflictError:
            return False
        return True

    async def release(self, lock_id: str, token: str) -> bool:
        stmt = delete(Lock).where(Lock.lock_id == lock_id, Lock.token == token)
        with storage_errors("DatabaseLockStore.release", lock_id):
            async with self._database.write().session() as session:
                rowcount = (await session.execute(stmt)).rowcount
        return rowcount > 0

    async def close(self) -> None:
        pass


class Mutex:
    def __init__(self, store: LockStore) -> None:
        self._store = store

    async def acquire(self, lock_id: str, ttl: timedelta) -> Callable[[], Awaitable[None]]:
        """
        Take the lock or raise ``AlreadyLockedError``.

        Returns the release coroutine function.  Only the first call
        releases; later calls do nothing.
        """
        if ttl <= timedelta(0):
            raise ValidationError("lock ttl must be positive", operation="Mutex.acquire", entity_id=lock_id)

        token = secrets.token_hex(16)
        if not await self._store.acquire(lock_id, token, ttl):
            raise AlreadyLockedError(
                "lock is held by another run", operation="Mutex.acquire", entity_id=lock_id
            )
        logger.info("Lock acquired: %s (ttl=%s)", lock_id, ttl)

        released = False

        async def release() -> None:
            nonlocal released
            if released:
                return
            released = True
            if await self._store.release(lock_id, token):
                logger.info("Lock released: %s", lock_id)
            else:
                logger.warning("Lock %s expired before release; another run may hold it now", lock_id)

        return release

    @asynccontextmanager
    async def lock(self, lock_id: str, ttl: timedelta) -> AsyncIterator[None]:
        """Hold *lock_id* for the duration of the block, releasing on every exit path."""
        release = await self.acquire(lock_id, ttl)
        try:
            yield
        except BaseException:
            try:
                await release()
            except Exception as exc:
                logger.warning("Failed to release lock %s: %s", lock_id, exc)
            raise
        await release()


def create_lock_store(backend: str, *, database: Database, redis_url: str | None = None) -> LockStore:
    if backend == "redis":
        if not redis_url:
            raise ValidationError("redis lock backend needs a REDIS_URL", operation="create_lock_store")
        return RedisLockStore(redis.from_url(redis_url, decode_responses=True))
    if backend == "database":
        return DatabaseLockStore(database)
    raise ValidationError(f"unknown lock backend: {backend!r}", operation="create_lock_store")
