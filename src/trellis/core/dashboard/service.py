"""
Dashboard service.

Orchestrates one dashboard read: build the cache key, read through the
cache, and on a miss resolve the caller's access scope, fetch the tasks
the query needs, and aggregate. All four queries share a single path and
differ only in their QueryDescriptor.

Example:
    >>> service = DashboardService(project_store, task_store, CacheAside(MemoryCache()))
    >>> summary = await service.get_summary("u-1", "user")
    >>> summary.completion_rate
    33
"""

import logging
from collections.abc import Awaitable, Callable
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Generic, TypeVar

from pydantic import BaseModel

from trellis.core.access.models import AccessScope, CallerRole
from trellis.core.access.scope import resolve_scope
from trellis.core.cache.backend import CacheBackend
from trellis.core.cache.gateway import CacheAside, build_cache_key
from trellis.core.dashboard import aggregation
from trellis.core.dashboard.models import (
    DashboardSummary,
    PriorityDistribution,
    StatusDistribution,
    WeeklyTrend,
)
from trellis.core.store.backend import ProjectStore, TaskFilter, TaskStore
from trellis.core.tasks.models import TaskStatus

logger = logging.getLogger(__name__)

# Seconds every dashboard aggregate stays cached
DASHBOARD_CACHE_TTL = 300

M = TypeVar("M", bound=BaseModel)

Clock = Callable[[], datetime]


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


@dataclass(frozen=True)
class QueryDescriptor(Generic[M]):
    """
    One dashboard query.

    Attributes:
        name: Query type used in the cache key
        model: Result model, used to deserialize cache hits
        empty: Builds the zero-filled result for an empty scope
        compute: Fetches and aggregates over a non-empty scope
    """

    name: str
    model: type[M]
    empty: Callable[["DashboardService", datetime], M]
    compute: Callable[["DashboardService", AccessScope, datetime], Awaitable[M]]


async def _compute_summary(
    service: "DashboardService", scope: AccessScope, now: datetime
) -> DashboardSummary:
    tasks = await service.task_store.find_all(TaskFilter.for_projects(scope.project_ids))
    return aggregation.compute_summary(scope.projects, tasks, scope.caller.id, now)


async def _compute_status_distribution(
    service: "DashboardService", scope: AccessScope, now: datetime
) -> StatusDistribution:
    rows = await service.task_store.get_aggregated_status_counts(list(scope.project_ids))
    return aggregation.compute_status_distribution(rows)


async def _compute_priority_distribution(
    service: "DashboardService", scope: AccessScope, now: datetime
) -> PriorityDistribution:
    tasks = await service.task_store.find_all(TaskFilter.for_projects(scope.project_ids))
    return aggregation.compute_priority_distribution(tasks)


async def _compute_weekly_trend(
    service: "DashboardService", scope: AccessScope, now: datetime
) -> WeeklyTrend:
    today = now.date()
    window_start = aggregation.trend_window_start(today)
    created = await service.task_store.find_all(
        TaskFilter.for_projects(scope.project_ids, created_after=window_start)
    )
    completed = await service.task_store.find_all(
        TaskFilter.for_projects(
            scope.project_ids, status=TaskStatus.COMPLETED, updated_after=window_start
        )
    )
    return aggregation.compute_weekly_trend(created, completed, today)


SUMMARY = QueryDescriptor(
    name="stats",
    model=DashboardSummary,
    empty=lambda service, now: aggregation.empty_summary(),
    compute=_compute_summary,
)

STATUS_DISTRIBUTION = QueryDescriptor(
    name="distribution",
    model=StatusDistribution,
    empty=lambda service, now: aggregation.empty_status_distribution(),
    compute=_compute_status_distribution,
)

PRIORITY_DISTRIBUTION = QueryDescriptor(
    name="priority",
    model=PriorityDistribution,
    empty=lambda service, now: aggregation.empty_priority_distribution(),
    compute=_compute_priority_distribution,
)

WEEKLY_TREND = QueryDescriptor(
    name="trend",
    model=WeeklyTrend,
    empty=lambda service, now: aggregation.empty_weekly_trend(now.date()),
    compute=_compute_weekly_trend,
)

class DashboardService:
    """
    Cached, access-scoped dashboard aggregates.

    Args:
        project_store: Source of projects for scope resolution
        task_store: Source of tasks and status counts
        cache: CacheAside gateway, or a bare CacheBackend to wrap in one
        clock: Returns the current instant, converted to UTC before use
            (injectable for tests)
    """

    def __init__(
        self,
        project_store: ProjectStore,
        task_store: TaskStore,
        cache: CacheAside | CacheBackend,
        clock: Clock = utc_now,
    ) -> None:
        self.project_store = project_store
        self.task_store = task_store
        self.cache = cache if isinstance(cache, CacheAside) else CacheAside(cache)
        self.clock = clock

    async def get_summary(
        self, caller_id: str, caller_role: str | CallerRole | None = None
    ) -> DashboardSummary:
        """Headline statistics over every project the caller can see."""
        return await self._run(SUMMARY, caller_id, caller_role)

    async def get_status_distribution(
        self, caller_id: str, caller_role: str | CallerRole | None = None
    ) -> StatusDistribution:
        """Task counts and percentages per status."""
        return await self._run(STATUS_DISTRIBUTION, caller_id, caller_role)

    async def get_priority_distribution(
        self, caller_id: str, caller_role: str | CallerRole | None = None
    ) -> PriorityDistribution:
        """Task counts and percentages per priority."""
        return await self._run(PRIORITY_DISTRIBUTION, caller_id, caller_role)

    async def get_weekly_trend(
        self, caller_id: str, caller_role: str | CallerRole | None = None
    ) -> WeeklyTrend:
        """Created and completed tasks for each of the last seven UTC days."""
        return await self._run(WEEKLY_TREND, caller_id, caller_role)

    async def _run(
        self, query: QueryDescriptor[M], caller_id: str, caller_role: str | CallerRole | None
    ) -> M:
        role = CallerRole.parse(caller_role)
        key = build_cache_key(query.name, caller_id, role)
        logger.debug("Dashboard %s requested by %s (%s)", query.name, caller_id, role.value)

        async def compute() -> M:
            now = aggregation.as_utc(self.clock())
            scope = await resolve_scope(caller_id, role, self.project_store)
            if scope.is_empty:
                logger.info("Dashboard %s for %s: empty scope", query.name, caller_id)
                return query.empty(self, now)
            result = await query.compute(self, scope, now)
            logger.info(
                "Dashboard %s computed for %s over %d projects",
                query.name,
                caller_id,
                len(scope),
            )
            return result

        try:
            return await self.cache.get_or_compute(key, DASHBOARD_CACHE_TTL, compute, query.model)
        except Exception as e:
            logger.error("Failed to get dashboard %s for %s: %s", query.name, caller_id, e)
            raise
