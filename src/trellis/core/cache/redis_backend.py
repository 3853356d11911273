"""
Redis cache backend.

Shares cached aggregates across every API worker. Entries are written
with ``SET ... EX`` so Redis expires them on its own; pattern deletes use
``SCAN MATCH`` rather than ``KEYS`` so large keyspaces are not blocked.

Every redis-py error is re-raised as CacheUnavailableError.
"""

import logging
import re

import redis.asyncio as aioredis
from redis.exceptions import RedisError

from trellis.core.errors import CacheUnavailableError

logger = logging.getLogger(__name__)

# Keys deleted per DEL round-trip during pattern invalidation
DELETE_BATCH_SIZE = 500

# Characters SCAN MATCH treats specially; a backslash makes the next one literal
_MATCH_SPECIAL = re.compile(r"([*?[\]\\^])")


class RedisCache:
    """
    CacheBackend on top of a redis.asyncio client.

    Args:
        client: Connected ``redis.asyncio.Redis`` with ``decode_responses=True``
    """

    def __init__(self, client: aioredis.Redis) -> None:
        self._client = client

    @classmethod
    def from_url(cls, url: str) -> "RedisCache":
        """Create a backend from a ``redis://`` URL."""
        return cls(aioredis.from_url(url, decode_responses=True))

    async def get(self, key: str) -> str | None:
        try:
            value = await self._client.get(key)
        except RedisError as e:
            logger.error("Cache get error on %s: %s", key, e)
            raise CacheUnavailableError(f"Cache read failed: {e}", key=key) from e
        if isinstance(value, bytes):
            return value.decode("utf-8")
        return value

    async def set(self, key: str, value: str, ttl_seconds: int) -> None:
        try:
            await self._client.set(key, value, ex=ttl_seconds)
        except RedisError as e:
            logger.error("Cache set error on %s: %s", key, e)
            raise CacheUnavailableError(f"Cache write failed: {e}", key=key) from e

    async def delete(self, key: str) -> int:
        try:
            return int(await self._client.delete(key))
        except RedisError as e:
            logger.error("Cache delete error on %s: %s", key, e)
            raise CacheUnavailableError(f"Cache delete failed: {e}", key=key) from e

    def escape_pattern(self, literal: str) -> str:
        """Backslash-escape ``literal`` for ``SCAN MATCH``."""
        return _MATCH_SPECIAL.sub(r"\\\1", literal)

    async def delete_pattern(self, pattern: str) -> int:
        removed = 0
        batch: list[str] = []
        try:
            async for key in self._client.scan_iter(match=pattern, count=DELETE_BATCH_SIZE):
                batch.append(key)
                if len(batch) >= DELETE_BATCH_SIZE:
                    removed += int(await self._client.delete(*batch))
                    batch.clear()
            if batch:
                removed += int(await self._client.delete(*batch))
        except RedisError as e:
            logger.error("Cache delete pattern error on %s: %s", pattern, e)
            raise CacheUnavailableError(f"Cache pattern delete failed: {e}", key=pattern) from e
        return removed

    async def close(self) -> None:
        await self._client.aclose()
