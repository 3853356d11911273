"""
Tests for DashboardService.

Tests validate:
- End-to-end aggregates for the shared scenario
- Cache keys per query, caller and role
- Cache hits never reach the stores
- Empty scopes return zero-filled results and are cached
- Fetch plan (filters passed to the task store)
- Store and cache failures propagate
"""

from datetime import datetime, timedelta, timezone
from unittest.mock import AsyncMock

import pytest

from trellis.core.cache import CacheAside, MemoryCache, NullCache
from trellis.core.dashboard.models import DashboardSummary
from trellis.core.dashboard.service import DASHBOARD_CACHE_TTL, DashboardService
from trellis.core.errors import CacheUnavailableError, StoreError
from trellis.core.store import TaskFilter
from trellis.core.tasks.models import StatusCount, Task, TaskStatus

NOW = datetime(2024, 6, 12, 15, 0, tzinfo=timezone.utc)


def _spy(store):
    """Wrap every async store method in an AsyncMock that delegates."""
    for name in ("find_all", "get_aggregated_status_counts"):
        if hasattr(store, name):
            setattr(store, name, AsyncMock(wraps=getattr(store, name)))
    return store


class TestSummary:
    """Tests for get_summary."""

    @pytest.mark.asyncio
    async def test_member_scenario(self, service) -> None:
        summary = await service.get_summary("u-1", "user")

        assert summary.total_projects == 2
        assert summary.total_tasks == 3
        assert summary.completion_rate == 33
        assert summary.my_tasks == 2
        assert summary.overdue_tasks == 1

    @pytest.mark.asyncio
    async def test_admin_sees_everything(self, service) -> None:
        summary = await service.get_summary("root", "admin")

        assert summary.total_projects == 3
        assert summary.total_tasks == 4
        assert summary.completion_rate == 50

    @pytest.mark.asyncio
    async def test_result_is_cached_under_role_key(self, service, memory_cache) -> None:
        await service.get_summary("u-1", "user")
        await service.get_summary("u-1", "admin")

        assert memory_cache.keys() == ["dashboard:stats:u-1:user", "dashboard:stats:u-1:admin"]

    @pytest.mark.asyncio
    async def test_hit_does_not_touch_stores(self, project_store, task_store, gateway) -> None:
        project_store = _spy(project_store)
        task_store = _spy(task_store)
        service = DashboardService(project_store, task_store, gateway, clock=lambda: NOW)

        first = await service.get_summary("u-1", "user")
        second = await service.get_summary("u-1", "user")

        assert first == second
        assert project_store.find_all.await_count == 1
        assert task_store.find_all.await_count == 1

    @pytest.mark.asyncio
    async def test_recomputes_after_ttl(self, project_store, task_store, fake_clock) -> None:
        project_store = _spy(project_store)
        service = DashboardService(
            project_store, task_store, MemoryCache(clock=fake_clock), clock=lambda: NOW
        )

        await service.get_summary("u-1", "user")
        fake_clock.advance(DASHBOARD_CACHE_TTL)
        await service.get_summary("u-1", "user")

        assert project_store.find_all.await_count == 2

    @pytest.mark.asyncio
    async def test_fetches_tasks_for_scope_projects(self, project_store, task_store, gateway):
        task_store = _spy(task_store)
        service = DashboardService(project_store, task_store, gateway, clock=lambda: NOW)

        await service.get_summary("u-1", "user")

        task_store.find_all.assert_awaited_once_with(
            TaskFilter(project_ids=("p-alpha", "p-beta"))
        )

    @pytest.mark.asyncio
    async def test_bare_backend_is_wrapped(self, project_store, task_store) -> None:
        service = DashboardService(project_store, task_store, NullCache(), clock=lambda: NOW)

        assert isinstance(service.cache, CacheAside)
        summary = await service.get_summary("u-1", "user")
        assert summary.total_tasks == 3


class TestEmptyScope:
    """A caller with no visible projects."""

    @pytest.mark.asyncio
    async def test_zero_filled_and_cached(self, project_store, task_store, gateway, memory_cache):
        task_store = _spy(task_store)
        service = DashboardService(project_store, task_store, gateway, clock=lambda: NOW)

        first = await service.get_summary("nobody", "user")
        second = await service.get_summary("nobody", "user")

        assert first.total_projects == 0
        assert first.completion_rate == 0
        assert first == second
        task_store.find_all.assert_not_awaited()
        assert "dashboard:stats:nobody:user" in memory_cache.keys()

    @pytest.mark.asyncio
    async def test_every_query_handles_empty_scope(self, service) -> None:
        status = await service.get_status_distribution("nobody", "user")
        priority = await service.get_priority_distribution("nobody", "user")
        trend = await service.get_weekly_trend("nobody", "user")

        assert status.total == 0 and len(status.by_status) == 3
        assert priority.total == 0 and len(priority.by_priority) == 4
        assert len(trend.daily) == 7
        assert trend.daily[-1].date == "2024-06-12"


class TestDistributions:
    """Tests for the status and priority distributions."""

    @pytest.mark.asyncio
    async def test_status_uses_grouped_counts(self, project_store, task_store, gateway) -> None:
        task_store = _spy(task_store)
        service = DashboardService(project_store, task_store, gateway, clock=lambda: NOW)

        distribution = await service.get_status_distribution("u-1", "user")

        task_store.get_aggregated_status_counts.assert_awaited_once_with(["p-alpha", "p-beta"])
        task_store.find_all.assert_not_awaited()
        assert distribution.total == 3
        assert [b.percentage for b in distribution.by_status] == [33, 33, 33]

    @pytest.mark.asyncio
    async def test_status_from_mocked_store(self, project_store, gateway) -> None:
        task_store = AsyncMock()
        task_store.get_aggregated_status_counts.return_value = [
            StatusCount(status="completed", count=3),
            StatusCount(status="not_started", count=1),
        ]
        service = DashboardService(project_store, task_store, gateway, clock=lambda: NOW)

        distribution = await service.get_status_distribution("u-1", "user")

        assert distribution.total == 4
        assert [b.percentage for b in distribution.by_status] == [25, 0, 75]

    @pytest.mark.asyncio
    async def test_priority_scenario(self, service, memory_cache) -> None:
        distribution = await service.get_priority_distribution("u-1", "user")

        assert distribution.total == 3
        assert [b.count for b in distribution.by_priority] == [1, 0, 1, 1]
        assert "dashboard:priority:u-1:user" in memory_cache.keys()


class TestWeeklyTrend:
    """Tests for get_weekly_trend."""

    @pytest.mark.asyncio
    async def test_windowed_fetches(self, project_store, task_store, gateway) -> None:
        task_store = _spy(task_store)
        service = DashboardService(project_store, task_store, gateway, clock=lambda: NOW)

        trend = await service.get_weekly_trend("u-1", "user")

        window_start = datetime(2024, 6, 6, tzinfo=timezone.utc)
        filters = [call.args[0] for call in task_store.find_all.await_args_list]
        assert filters == [
            TaskFilter(project_ids=("p-alpha", "p-beta"), created_after=window_start),
            TaskFilter(
                project_ids=("p-alpha", "p-beta"),
                status=TaskStatus.COMPLETED,
                updated_after=window_start,
            ),
        ]
        assert trend.summary.total_created == 2
        assert trend.summary.total_completed == 1

    @pytest.mark.asyncio
    async def test_admin_trend_includes_private_project(self, service) -> None:
        trend = await service.get_weekly_trend("root", "admin")

        assert trend.summary.total_created == 3
        assert trend.summary.total_completed == 2
        assert trend.daily[-1].completed == 1

    @pytest.mark.asyncio
    async def test_days_follow_utc_for_offset_clock(self, project_store, task_store, gateway):
        # 2024-06-13 01:00 at UTC+5 is still 2024-06-12 in UTC
        local_now = datetime(2024, 6, 13, 1, 0, tzinfo=timezone(timedelta(hours=5)))
        await task_store.save(Task(id="t-9", project_id="p-alpha", created_at=local_now))
        service = DashboardService(project_store, task_store, gateway, clock=lambda: local_now)

        trend = await service.get_weekly_trend("u-1", "user")
        empty = await service.get_weekly_trend("nobody", "user")

        assert [point.date for point in (trend.daily[0], trend.daily[-1])] == [
            "2024-06-06",
            "2024-06-12",
        ]
        assert trend.daily[-1].created == 1
        assert empty.daily[-1].date == "2024-06-12"


class TestFailures:
    """Store and cache failures propagate to the caller."""

    @pytest.mark.asyncio
    async def test_store_error_propagates_and_nothing_cached(self, gateway, memory_cache):
        project_store = AsyncMock()
        project_store.find_all.side_effect = StoreError("db down", operation="find_all")
        service = DashboardService(project_store, AsyncMock(), gateway, clock=lambda: NOW)

        with pytest.raises(StoreError):
            await service.get_summary("u-1", "user")

        assert len(memory_cache) == 0

    @pytest.mark.asyncio
    async def test_cache_read_error_propagates(self, project_store, task_store) -> None:
        backend = AsyncMock()
        backend.get.side_effect = CacheUnavailableError("redis down")
        project_store = _spy(project_store)
        service = DashboardService(project_store, task_store, backend, clock=lambda: NOW)

        with pytest.raises(CacheUnavailableError):
            await service.get_summary("u-1", "user")

        project_store.find_all.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_cached_payload_round_trips(self, service, memory_cache) -> None:
        computed = await service.get_summary("u-1", "user")
        cached = DashboardSummary.model_validate_json(
            await memory_cache.get("dashboard:stats:u-1:user")
        )
        assert cached == computed
