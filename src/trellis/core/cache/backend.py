"""
Key-value cache protocol.

Backends store opaque strings under string keys with a TTL and support
deletion by exact key or by glob pattern. They raise CacheUnavailableError
when the underlying store cannot be reached; a missing key is None, never
an exception.
"""

import re
from typing import Protocol, runtime_checkable

_GLOB_MAGIC = re.compile(r"([*?[])")


def escape_glob(literal: str) -> str:
    """
    Escape ``literal`` for fnmatch-style globbing.

    Each metacharacter is wrapped in a one-character class, as
    ``glob.escape`` does.

    Example:
        >>> escape_glob("team[1]")
        'team[[]1]'
    """
    return _GLOB_MAGIC.sub(r"[\1]", literal)


@runtime_checkable
class CacheBackend(Protocol):
    """Protocol for cache backends."""

    async def get(self, key: str) -> str | None:
        """Return the stored value, or None if absent or expired."""
        ...

    async def set(self, key: str, value: str, ttl_seconds: int) -> None:
        """Store ``value`` under ``key`` for ``ttl_seconds``."""
        ...

    async def delete(self, key: str) -> int:
        """Delete one key. Returns the number of keys removed (0 or 1)."""
        ...

    def escape_pattern(self, literal: str) -> str:
        """Escape ``literal`` so it matches only itself inside a delete_pattern glob."""
        ...

    async def delete_pattern(self, pattern: str) -> int:
        """
        Delete every key matching a glob pattern.

        Args:
            pattern: Glob pattern, e.g. ``dashboard:*:u-1:*``

        Returns:
            Number of keys removed
        """
        ...

    async def close(self) -> None:
        """Release any connections held by the backend."""
        ...


class NullCache:
    """
    Backend used when caching is disabled.

    Every read misses and every write is dropped, so the gateway always
    recomputes.
    """

    async def get(self, key: str) -> str | None:
        return None

    async def set(self, key: str, value: str, ttl_seconds: int) -> None:
        return None

    async def delete(self, key: str) -> int:
        return 0

    def escape_pattern(self, literal: str) -> str:
        return literal

    async def delete_pattern(self, pattern: str) -> int:
        return 0

    async def close(self) -> None:
        return None
