"""
In-process cache backend with TTL expiry.

Suitable for a single worker and for tests. Entries expire passively:
an expired entry is dropped the next time it is read or swept by a
pattern delete. The clock is injectable so tests can advance time.
"""

import fnmatch
import time
from collections.abc import Callable
from dataclasses import dataclass

from trellis.core.cache.backend import escape_glob


@dataclass
class _Entry:
    value: str
    expires_at: float


class MemoryCache:
    """
    Dict-backed CacheBackend.

    Example:
        >>> cache = MemoryCache()
        >>> await cache.set("dashboard:stats:u-1:user", "{}", 300)
        >>> await cache.get("dashboard:stats:u-1:user")
        '{}'
    """

    def __init__(self, clock: Callable[[], float] = time.monotonic) -> None:
        self._entries: dict[str, _Entry] = {}
        self._clock = clock

    def _expired(self, entry: _Entry) -> bool:
        return self._clock() >= entry.expires_at

    async def get(self, key: str) -> str | None:
        entry = self._entries.get(key)
        if entry is None:
            return None
        if self._expired(entry):
            del self._entries[key]
            return None
        return entry.value

    async def set(self, key: str, value: str, ttl_seconds: int) -> None:
        if ttl_seconds <= 0:
            raise ValueError(f"ttl_seconds must be > 0, got {ttl_seconds}")
        self._entries[key] = _Entry(value=value, expires_at=self._clock() + ttl_seconds)

    async def delete(self, key: str) -> int:
        entry = self._entries.pop(key, None)
        if entry is None or self._expired(entry):
            return 0
        return 1

    def escape_pattern(self, literal: str) -> str:
        return escape_glob(literal)

    async def delete_pattern(self, pattern: str) -> int:
        removed = 0
        for key in [k for k in self._entries if fnmatch.fnmatchcase(k, pattern)]:
            entry = self._entries.pop(key)
            if not self._expired(entry):
                removed += 1
        return removed

    async def close(self) -> None:
        self._entries.clear()

    def __len__(self) -> int:
        return sum(1 for e in self._entries.values() if not self._expired(e))

    def keys(self) -> list[str]:
        """Live keys, in insertion order."""
        return [k for k, e in self._entries.items() if not self._expired(e)]
