"""
Redis cache-aside layer.

Key layout (JSON values):

    blogs:detail:{blog_id}          one blog                CACHE_TTL_DETAIL
    blogs:list:{page}:{per_page}    one page of the list    CACHE_TTL_LIST
    rankings:top:{limit}            top of the ranking      CACHE_TTL_RANKING

Any Redis failure is logged at DEBUG and treated as a miss or a skipped
write; the database stays the source of truth.
"""
import json
import logging
from typing import Any, Awaitable, Callable

import redis.asyncio as redis

from myblog.config import settings

logger = logging.getLogger(__name__)


def blog_detail_key(blog_id: str) -> str:
    return f"blogs:detail:{blog_id}"


def blog_list_key(page: int, per_page: int) -> str:
    return f"blogs:list:{page}:{per_page}"


def ranking_key(limit: int) -> str:
    return f"rankings:top:{limit}"


class CacheManager:
    """Redis-backed cache that degrades to a no-op when Redis is absent."""

    def __init__(self) -> None:
        self._redis: redis.Redis | None = None
        self._hits = 0
        self._misses = 0

    async def connect(self, url: str | None = None) -> None:
        url = url or settings.REDIS_URL
        client = redis.from_url(url, decode_responses=True, socket_connect_timeout=2, socket_timeout=2)
        try:
            await client.ping()
        except (redis.RedisError, OSError) as exc:
            logger.warning("Redis unavailable at %s, caching disabled: %s", url, exc)
            await client.aclose()
            return
        self._redis = client
        logger.info("Redis connected: %s", url)

    async def disconnect(self) -> None:
        if self._redis is not None:
            client, self._redis = self._redis, None
            await client.aclose()

    # ------------------------------------------------------------------
    # Reads and writes
    # ------------------------------------------------------------------

    async def get(self, key: str) -> Any | None:
        raw = None
        if self._redis is not None:
            try:
                raw = await self._redis.get(key)
            except redis.RedisError as exc:
                logger.debug("Cache read failed for %r: %s", key, exc)
        if raw is None:
            self._misses += 1
            return None
        self._hits += 1
        return json.loads(raw)

    async def set(self, key: str, value: Any, ttl: int | None = None) -> None:
        if self._redis is None:
            return
        try:
            await self._redis.set(key, json.dumps(value, default=str), ex=ttl)
        except redis.RedisError as exc:
            logger.debug("Cache write failed for %r: %s", key, exc)

    async def get_or_load(self, key: str, loader: Callable[[], Awaitable[Any]], ttl: int) -> Any:
        """Return the cached value for *key*, or await *loader*, store and return its result."""
        cached = await self.get(key)
        if cached is not None:
            return cached
        value = await loader()
        await self.set(key, value, ttl=ttl)
        return value

    async def delete_pattern(self, pattern: str) -> None:
        """SCAN-based delete; never blocks Redis the way KEYS would."""
        if self._redis is None:
            return
        try:
            keys = [key async for key in self._redis.scan_iter(match=pattern)]
            if keys:
                await self._redis.delete(*keys)
                logger.debug("Evicted %d key(s) matching %r", len(keys), pattern)
        except redis.RedisError as exc:
            logger.debug("Cache eviction failed for %r: %s", pattern, exc)

    # ------------------------------------------------------------------
    # Invalidation
    # ------------------------------------------------------------------

    async def invalidate_blog(self, blog_id: str | None = None) -> None:
        """Any blog write makes every list page stale; *blog_id* also drops its detail entry."""
        await self.delete_pattern("blogs:list:*")
        if blog_id is not None:
            await self.delete_pattern(blog_detail_key(blog_id))

    async def invalidate_all_blogs(self) -> None:
        """Used when blogs disappear in bulk (a user deleted together with their blogs)."""
        await self.delete_pattern("blogs:*")

    async def invalidate_rankings(self) -> None:
        await self.delete_pattern("rankings:*")

    @property
    def stats(self) -> dict:
        total = self._hits + self._misses
        return {
            "hits": self._hits,
            "misses": self._misses,
            "hit_rate": round(self._hits / total * 100, 1) if total > 0 else 0.0,
        }


# Shared by request handlers and the batch.
cache = CacheManager()
