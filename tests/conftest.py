"""
Pytest configuration and shared fixtures.

Provides a fixed clock, a small project/task scenario, in-memory and
SQLite stores seeded with it, and cache fixtures used across the suite.

Scenario (caller u-1, now = 2024-06-12 15:00 UTC):
- p-alpha: owned by u-1, two tasks (completed/high, in_progress/medium)
- p-beta: owned by u-2, u-1 is a member, one task (not_started/none)
- p-secret: private, owned by u-3, one task; invisible to u-1
"""

import asyncio
from datetime import datetime, timedelta, timezone
from pathlib import Path

import pytest

from trellis.core.cache import CacheAside, MemoryCache
from trellis.core.config import clear_cache
from trellis.core.dashboard.service import DashboardService
from trellis.core.projects.models import Project, ProjectStatus, ProjectVisibility
from trellis.core.store import (
    MemoryProjectStore,
    MemoryTaskStore,
    SqliteProjectStore,
    SqliteTaskStore,
)
from trellis.core.tasks.models import Task, TaskPriority, TaskStatus

NOW = datetime(2024, 6, 12, 15, 0, tzinfo=timezone.utc)


# ==============================================================================
# Clock Fixtures
# ==============================================================================


@pytest.fixture
def now():
    """The fixed instant every scenario is evaluated at."""
    return NOW


class FakeMonotonic:
    """Manually advanced monotonic clock for TTL tests."""

    def __init__(self, start: float = 1000.0) -> None:
        self.value = start

    def __call__(self) -> float:
        return self.value

    def advance(self, seconds: float) -> None:
        self.value += seconds


@pytest.fixture
def fake_clock():
    return FakeMonotonic()


# ==============================================================================
# Scenario Fixtures
# ==============================================================================


@pytest.fixture
def projects():
    """Three projects with distinct visibility to u-1."""
    return [
        Project(
            id="p-alpha",
            name="Alpha",
            owner_id="u-1",
            visibility=ProjectVisibility.TEAM,
            status=ProjectStatus.ACTIVE,
            created_at=NOW - timedelta(days=30),
        ),
        Project(
            id="p-beta",
            name="Beta",
            owner_id="u-2",
            members=["u-1", "u-4"],
            visibility=ProjectVisibility.TEAM,
            status=ProjectStatus.PLANNING,
            created_at=NOW - timedelta(days=20),
        ),
        Project(
            id="p-secret",
            name="Secret",
            owner_id="u-3",
            visibility=ProjectVisibility.PRIVATE,
            status=ProjectStatus.ACTIVE,
            created_at=NOW - timedelta(days=10),
        ),
    ]


@pytest.fixture
def tasks():
    """Four tasks across the three projects."""
    return [
        Task(
            id="t-1",
            title="Ship login page",
            project_id="p-alpha",
            status=TaskStatus.COMPLETED,
            priority=TaskPriority.HIGH,
            assignee_id="u-1",
            created_at=NOW - timedelta(days=2),
            updated_at=NOW - timedelta(days=1),
        ),
        Task(
            id="t-2",
            title="Write API docs",
            project_id="p-alpha",
            status=TaskStatus.IN_PROGRESS,
            priority=TaskPriority.MEDIUM,
            assignee_id="u-2",
            due_date=NOW - timedelta(days=1),
            created_at=NOW - timedelta(days=3),
            updated_at=NOW - timedelta(days=3),
        ),
        Task(
            id="t-3",
            title="Pick a logo",
            project_id="p-beta",
            status=TaskStatus.NOT_STARTED,
            priority=TaskPriority.NONE,
            assignee_id="u-1",
            due_date=NOW + timedelta(days=2),
            created_at=NOW - timedelta(days=10),
            updated_at=NOW - timedelta(days=10),
        ),
        Task(
            id="t-4",
            title="Rotate keys",
            project_id="p-secret",
            status=TaskStatus.COMPLETED,
            priority=TaskPriority.LOW,
            assignee_id="u-3",
            created_at=NOW - timedelta(days=1),
            updated_at=NOW,
        ),
    ]


@pytest.fixture
def project_store(projects):
    return MemoryProjectStore(projects)


@pytest.fixture
def task_store(tasks):
    return MemoryTaskStore(tasks)


# ==============================================================================
# SQLite Fixtures
# ==============================================================================


@pytest.fixture
def db_path(tmp_path) -> Path:
    """Path to a fresh SQLite database file."""
    return tmp_path / "trellis.db"


@pytest.fixture
def sqlite_stores(db_path, projects, tasks):
    """SQLite project/task stores seeded with the scenario."""
    project_store = SqliteProjectStore(db_path)
    task_store = SqliteTaskStore(db_path)

    async def seed() -> None:
        for project in projects:
            await project_store.save(project)
        for task in tasks:
            await task_store.save(task)

    asyncio.run(seed())
    return project_store, task_store


# ==============================================================================
# Cache and Service Fixtures
# ==============================================================================


@pytest.fixture
def memory_cache(fake_clock):
    return MemoryCache(clock=fake_clock)


@pytest.fixture
def gateway(memory_cache):
    return CacheAside(memory_cache)


@pytest.fixture
def service(project_store, task_store, gateway):
    """DashboardService over the memory scenario with a fixed clock."""
    return DashboardService(project_store, task_store, gateway, clock=lambda: NOW)


# ==============================================================================
# Config Fixtures
# ==============================================================================


@pytest.fixture
def isolated_config(tmp_path, monkeypatch):
    """
    Isolate config loading from the host machine.

    Points XDG_CONFIG_HOME at an empty directory, runs from an empty
    project directory, strips TRELLIS_* variables, and clears the
    process-wide config cache before and after the test.
    """
    project = tmp_path / "project"
    project.mkdir()
    monkeypatch.setenv("XDG_CONFIG_HOME", str(tmp_path / "xdg"))
    monkeypatch.chdir(project)
    for name in [
        "TRELLIS_CACHE_ENABLED",
        "TRELLIS_CACHE_BACKEND",
        "TRELLIS_REDIS_URL",
        "TRELLIS_STORE_BACKEND",
        "TRELLIS_DB_PATH",
        "TRELLIS_HOST",
        "TRELLIS_PORT",
        "TRELLIS_LOG_LEVEL",
    ]:
        monkeypatch.delenv(name, raising=False)
    clear_cache()
    yield project
    clear_cache()
