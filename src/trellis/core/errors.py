"""
Exception hierarchy for trellis.

Store and cache backends translate their driver-specific failures into
these types so callers (the dashboard service, the API layer, the CLI)
can handle them without importing sqlite3 or redis.
"""


class TrellisError(Exception):
    """Base class for all trellis errors."""


class ConfigError(TrellisError):
    """Raised when configuration cannot be loaded or is inconsistent."""


class StoreError(TrellisError):
    """
    Raised when a project/task store operation fails.

    Attributes:
        operation: Name of the store operation that failed (e.g. "find_all")
    """

    def __init__(self, message: str, *, operation: str | None = None) -> None:
        self.operation = operation
        super().__init__(message)


class CacheUnavailableError(TrellisError):
    """
    Raised when the cache backend cannot be read or written.

    A failed read is never treated as a cache miss.

    Attributes:
        key: Cache key or pattern involved, if known
    """

    def __init__(self, message: str, *, key: str | None = None) -> None:
        self.key = key
        super().__init__(message)
