"""
Cache-aside gateway.

Wraps a CacheBackend with the read-through pattern used by every
dashboard query:

    key -> lookup -> (hit) deserialize and return
                  -> (miss) compute, store with TTL, return

Values are pydantic models serialized to JSON. Two concurrent misses for
the same key may both compute and both write; the last write wins.
Cached aggregates tolerate that within their TTL window.
"""

import logging
from collections.abc import Awaitable, Callable
from typing import TypeVar

from pydantic import BaseModel, ValidationError

from trellis.core.cache.backend import CacheBackend
from trellis.core.errors import CacheUnavailableError

logger = logging.getLogger(__name__)

M = TypeVar("M", bound=BaseModel)

KEY_NAMESPACE = "dashboard"
KEY_SEPARATOR = ":"


def build_cache_key(query_type: str, caller_id: str, *discriminators: object) -> str:
    """
    Build a namespaced cache key.

    Layout is ``dashboard:<query_type>:<caller_id>[:<discriminator>...]``.
    A None discriminator renders as an empty segment, so positions never
    shift and distinct filter combinations never alias.

    Example:
        >>> build_cache_key("stats", "u-1", "user")
        'dashboard:stats:u-1:user'
        >>> build_cache_key("tasks", "u-1", None, 2)
        'dashboard:tasks:u-1::2'
    """
    segments = [KEY_NAMESPACE, query_type, caller_id]
    for value in discriminators:
        if value is None:
            segments.append("")
        elif hasattr(value, "value"):
            segments.append(str(value.value))
        else:
            segments.append(str(value))
    return KEY_SEPARATOR.join(segments)


class CacheAside:
    """
    Read-through cache in front of an async computation.

    Args:
        backend: Cache backend holding serialized values

    Example:
        >>> gateway = CacheAside(MemoryCache())
        >>> summary = await gateway.get_or_compute(
        ...     "dashboard:stats:u-1:user", 300, compute_summary, DashboardSummary
        ... )
    """

    def __init__(self, backend: CacheBackend) -> None:
        self.backend = backend

    async def get_or_compute(
        self,
        key: str,
        ttl_seconds: int,
        compute: Callable[[], Awaitable[M]],
        model: type[M],
    ) -> M:
        """
        Return the cached value for ``key``, computing and storing it on a miss.

        On a hit ``compute`` is not called. On a miss the result is written
        before this method returns.

        Args:
            key: Cache key (see build_cache_key)
            ttl_seconds: Expiry for a freshly computed value
            compute: Zero-argument coroutine factory producing the value
            model: Pydantic model used to deserialize a hit

        Returns:
            The cached or freshly computed value

        Raises:
            CacheUnavailableError: If the cache cannot be read or written,
                or a cached payload no longer matches ``model``
        """
        cached = await self.backend.get(key)
        if cached is not None:
            logger.debug("Cache hit: %s", key)
            try:
                return model.model_validate_json(cached)
            except ValidationError as e:
                raise CacheUnavailableError(
                    f"Cached value for {key} does not match {model.__name__}", key=key
                ) from e

        logger.debug("Cache miss: %s", key)
        value = await compute()
        await self.backend.set(key, value.model_dump_json(by_alias=True), ttl_seconds)
        logger.debug("Cache set: %s (ttl=%ds)", key, ttl_seconds)
        return value

    async def invalidate(self, key_or_pattern: str, *, pattern: bool = False) -> int:
        """
        Delete an exact key, or every key matching a glob when ``pattern`` is set.

        Exact deletion never interprets glob characters, so a key built
        from a caller id such as ``team[1]`` is removed as written.

        Returns:
            Number of keys removed
        """
        if pattern:
            return await self.invalidate_pattern(key_or_pattern)
        return await self.invalidate_key(key_or_pattern)

    async def invalidate_key(self, key: str) -> int:
        """
        Delete one exact key. Glob characters in ``key`` are not interpreted.

        Returns:
            Number of keys removed (0 or 1)
        """
        removed = await self.backend.delete(key)
        logger.debug("Cache invalidated %s (%d keys)", key, removed)
        return removed

    async def invalidate_pattern(self, pattern: str) -> int:
        """
        Delete every key matching a glob pattern.

        Literal segments taken from caller input must go through escape()
        first, so ids such as ``team[1]`` or ``*`` match only themselves.

        Args:
            pattern: Glob pattern, e.g. ``dashboard:*:u-1:*``

        Returns:
            Number of keys removed
        """
        removed = await self.backend.delete_pattern(pattern)
        logger.debug("Cache invalidated %s (%d keys)", pattern, removed)
        return removed

    def escape(self, literal: str) -> str:
        """Escape ``literal`` for use inside an invalidate_pattern glob."""
        return self.backend.escape_pattern(literal)
