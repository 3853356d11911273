"""
Caching for dashboard aggregates.

Provides the CacheBackend protocol, its memory/redis/null backends, and
the CacheAside gateway that the dashboard service reads through.
"""

from typing import TYPE_CHECKING

from .backend import CacheBackend, NullCache, escape_glob
from .gateway import CacheAside, build_cache_key
from .memory import MemoryCache

if TYPE_CHECKING:
    from trellis.core.config.models import CacheConfig


def create_cache_backend(config: "CacheConfig") -> CacheBackend:
    """
    Build the cache backend described by configuration.

    Args:
        config: Cache section of TrellisConfig

    Returns:
        NullCache when caching is disabled, otherwise the configured backend

    Raises:
        ValueError: If the backend name is unknown
    """
    if not config.enabled:
        return NullCache()
    if config.backend == "memory":
        return MemoryCache()
    if config.backend == "redis":
        from .redis_backend import RedisCache

        return RedisCache.from_url(config.redis_url)
    raise ValueError(f"Unknown cache backend: {config.backend}")


__all__ = [
    "CacheAside",
    "CacheBackend",
    "MemoryCache",
    "NullCache",
    "build_cache_key",
    "create_cache_backend",
    "escape_glob",
]
