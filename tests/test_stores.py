"""
Tests for the project/task stores.

Both backends are checked against the same scenario so the SQLite
queries stay in step with the in-memory reference behaviour.

Tests validate:
- Owner OR member OR public project filter
- Task filters (projects, status, time bounds)
- Grouped status counts
- Backend registry
- SQLite error translation
"""

import asyncio
from datetime import datetime, timezone

import pytest

from trellis.core.config import TrellisConfig
from trellis.core.errors import StoreError
from trellis.core.projects.models import Project, ProjectVisibility
from trellis.core.store import (
    MemoryProjectStore,
    MemoryTaskStore,
    ProjectFilter,
    ProjectStore,
    SqliteProjectStore,
    SqliteTaskStore,
    TaskFilter,
    TaskStore,
    get_stores,
    list_stores,
)
from trellis.core.tasks.models import Task, TaskStatus

WINDOW_START = datetime(2024, 6, 6, tzinfo=timezone.utc)


@pytest.fixture(params=["memory", "sqlite"])
def stores(request, project_store, task_store):
    """(project_store, task_store) for each backend, seeded with the scenario."""
    if request.param == "memory":
        return project_store, task_store
    return request.getfixturevalue("sqlite_stores")


class TestProjectFilter:
    """Tests for ProjectStore.find_all across backends."""

    @pytest.mark.asyncio
    async def test_unfiltered_returns_all(self, stores) -> None:
        projects, _ = stores
        result = await projects.find_all(ProjectFilter())
        assert [p.id for p in result] == ["p-alpha", "p-beta", "p-secret"]

    @pytest.mark.asyncio
    async def test_owner_or_member(self, stores) -> None:
        projects, _ = stores
        result = await projects.find_all(ProjectFilter(visible_to="u-1"))
        assert [p.id for p in result] == ["p-alpha", "p-beta"]

    @pytest.mark.asyncio
    async def test_member_only(self, stores) -> None:
        projects, _ = stores
        result = await projects.find_all(ProjectFilter(visible_to="u-4"))
        assert [p.id for p in result] == ["p-beta"]

    @pytest.mark.asyncio
    async def test_public_counted_once_for_owner_member(self, stores) -> None:
        projects, _ = stores
        await projects.save(
            Project(
                id="p-open",
                owner_id="u-1",
                members=["u-1"],
                visibility=ProjectVisibility.PUBLIC,
            )
        )

        mine = await projects.find_all(ProjectFilter(visible_to="u-1"))
        theirs = await projects.find_all(ProjectFilter(visible_to="stranger"))

        assert [p.id for p in mine] == ["p-alpha", "p-beta", "p-open"]
        assert [p.id for p in theirs] == ["p-open"]

    @pytest.mark.asyncio
    async def test_members_round_trip(self, stores) -> None:
        projects, _ = stores
        beta = await projects.get("p-beta")
        assert beta is not None
        assert beta.members == ["u-1", "u-4"]
        assert await projects.get("p-missing") is None


class TestTaskFilter:
    """Tests for TaskStore.find_all across backends."""

    @pytest.mark.asyncio
    async def test_by_projects(self, stores) -> None:
        _, tasks = stores
        result = await tasks.find_all(TaskFilter.for_projects(["p-alpha", "p-beta"]))
        assert sorted(t.id for t in result) == ["t-1", "t-2", "t-3"]

    @pytest.mark.asyncio
    async def test_empty_project_list_matches_nothing(self, stores) -> None:
        _, tasks = stores
        assert await tasks.find_all(TaskFilter.for_projects([])) == []

    @pytest.mark.asyncio
    async def test_created_after_is_inclusive(self, stores) -> None:
        _, tasks = stores
        result = await tasks.find_all(TaskFilter(created_after=WINDOW_START))
        assert sorted(t.id for t in result) == ["t-1", "t-2", "t-4"]

    @pytest.mark.asyncio
    async def test_completed_and_updated_after(self, stores) -> None:
        _, tasks = stores
        result = await tasks.find_all(
            TaskFilter.for_projects(
                ["p-alpha", "p-beta"], status=TaskStatus.COMPLETED, updated_after=WINDOW_START
            )
        )
        assert [t.id for t in result] == ["t-1"]

    @pytest.mark.asyncio
    async def test_timestamps_round_trip_as_utc(self, stores, now) -> None:
        _, tasks = stores
        task = await tasks.get("t-4")
        assert task is not None
        assert task.updated_at == now
        assert task.updated_at.tzinfo is not None

    @pytest.mark.asyncio
    async def test_status_counts(self, stores) -> None:
        _, tasks = stores
        rows = await tasks.get_aggregated_status_counts(["p-alpha", "p-beta"])
        assert {r.status: r.count for r in rows} == {
            "completed": 1,
            "in_progress": 1,
            "not_started": 1,
        }

    @pytest.mark.asyncio
    async def test_status_counts_for_no_projects(self, stores) -> None:
        _, tasks = stores
        assert await tasks.get_aggregated_status_counts([]) == []

    @pytest.mark.asyncio
    async def test_delete(self, stores) -> None:
        _, tasks = stores
        assert await tasks.delete("t-1") is True
        assert await tasks.delete("t-1") is False
        assert await tasks.get("t-1") is None


class TestSqliteStore:
    """SQLite-specific behaviour."""

    @pytest.mark.asyncio
    async def test_task_for_unknown_project_raises_store_error(self, db_path) -> None:
        store = SqliteTaskStore(db_path)

        with pytest.raises(StoreError) as exc_info:
            await store.save(Task(id="t-x", project_id="p-missing"))

        assert exc_info.value.operation == "save"

    @pytest.mark.asyncio
    async def test_deleting_project_cascades(self, sqlite_stores) -> None:
        projects, tasks = sqlite_stores

        assert await projects.delete("p-alpha") is True

        remaining = await tasks.find_all()
        assert sorted(t.id for t in remaining) == ["t-3", "t-4"]

    @pytest.mark.asyncio
    async def test_many_project_ids_are_chunked(self, db_path) -> None:
        projects = SqliteProjectStore(db_path)
        tasks = SqliteTaskStore(db_path)
        ids = [f"p-{i}" for i in range(1200)]
        for pid in ids[:3]:
            await projects.save(Project(id=pid, owner_id="u-1"))
            await tasks.save(Task(id=f"t-{pid}", project_id=pid))

        result = await tasks.find_all(TaskFilter.for_projects(ids))
        counts = await tasks.get_aggregated_status_counts(ids)

        assert len(result) == 3
        assert counts[0].count == 3


class TestRegistry:
    """Tests for the store backend registry."""

    def test_registered_backends(self) -> None:
        assert set(list_stores()) >= {"memory", "sqlite"}

    def test_memory_backend(self) -> None:
        stores = get_stores(TrellisConfig())
        assert isinstance(stores.projects, MemoryProjectStore)
        assert isinstance(stores.tasks, MemoryTaskStore)
        assert isinstance(stores.projects, ProjectStore)
        assert isinstance(stores.tasks, TaskStore)

    def test_sqlite_backend(self, db_path) -> None:
        config = TrellisConfig(store={"backend": "sqlite", "sqlite_path": str(db_path)})

        stores = get_stores(config)

        assert isinstance(stores.projects, SqliteProjectStore)
        assert stores.projects.db_path == db_path
        assert db_path.exists()
        assert asyncio.run(stores.tasks.find_all()) == []
