"""
Project and task storage.

Defines the ProjectStore/TaskStore protocols consumed by the dashboard
core, their filter objects, and the registered backends (memory, sqlite).
"""

from .backend import (
    ProjectFilter,
    ProjectStore,
    Stores,
    TaskFilter,
    TaskStore,
    get_stores,
    list_stores,
    register_store,
)

# Import backend implementations to trigger registration
from . import memory, sqlite  # noqa: F401, E402
from .memory import MemoryProjectStore, MemoryTaskStore  # noqa: E402
from .sqlite import SqliteProjectStore, SqliteTaskStore  # noqa: E402

__all__ = [
    # Filters and protocols
    "ProjectFilter",
    "TaskFilter",
    "ProjectStore",
    "TaskStore",
    "Stores",
    # Registry
    "register_store",
    "get_stores",
    "list_stores",
    # Backends
    "MemoryProjectStore",
    "MemoryTaskStore",
    "SqliteProjectStore",
    "SqliteTaskStore",
]
