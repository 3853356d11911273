"""
Aggregation functions for the dashboard.

Four pure functions, one per dashboard query. Each takes collections that
are already restricted to the caller's access scope, makes a single pass
with fixed-size accumulators, and returns a fully zero-filled result for
empty input. None of them raise on an empty scope or a zero total.

Days are UTC calendar days throughout.
"""

import math
from collections.abc import Iterable, Sequence
from datetime import date, datetime, time, timedelta, timezone

from trellis.core.dashboard.models import (
    PRIORITY_ORDER,
    PROJECT_STATUS_ORDER,
    STATUS_ORDER,
    DailyTrendPoint,
    DashboardSummary,
    PriorityBucket,
    PriorityDistribution,
    ProjectStatusCounts,
    RecentActivity,
    StatusBucket,
    StatusDistribution,
    TaskPriorityCounts,
    TaskStatusCounts,
    TrendSummary,
    WeeklyTrend,
)
from trellis.core.projects.models import Project
from trellis.core.tasks.models import StatusCount, Task, TaskPriority, TaskStatus

TREND_DAYS = 7
RECENT_WINDOW = timedelta(days=7)


def round_half_up(value: float) -> int:
    """
    Round to the nearest integer, halves going up.

    Python's round() sends halves to the even neighbour; dashboard
    percentages have always rounded 12.5 to 13.

    Example:
        >>> round_half_up(12.5)
        13
        >>> round_half_up(2.5)
        3
    """
    return int(math.floor(value + 0.5))


def percentage(count: int, total: int) -> int:
    """Integer percentage of ``count`` in ``total``; 0 when total is 0."""
    if total <= 0:
        return 0
    return round_half_up(count / total * 100)


def start_of_day(day: date) -> datetime:
    """Midnight UTC at the start of ``day``."""
    return datetime.combine(day, time.min, tzinfo=timezone.utc)


def trend_window_start(today: date) -> datetime:
    """First instant covered by the weekly trend ending on ``today``."""
    return start_of_day(today - timedelta(days=TREND_DAYS - 1))


def as_utc(value: datetime) -> datetime:
    """Convert to UTC, reading a naive value as UTC already."""
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


def compute_summary(
    projects: Sequence[Project],
    tasks: Iterable[Task],
    caller_id: str,
    now: datetime,
) -> DashboardSummary:
    """
    Compute headline statistics over a scope.

    Args:
        projects: Projects in the caller's scope
        tasks: Tasks belonging to those projects
        caller_id: Caller, for the "my tasks" count
        now: Reference instant for overdue and 7-day window checks

    Returns:
        DashboardSummary; all zeros for an empty scope
    """
    now = as_utc(now)
    week_ago = now - RECENT_WINDOW

    by_status = {status: 0 for status in STATUS_ORDER}
    by_priority = {priority: 0 for priority in PRIORITY_ORDER}
    total = my_tasks = overdue = created_recently = completed_recently = 0

    for task in tasks:
        total += 1
        by_status[task.status] = by_status.get(task.status, 0) + 1
        by_priority[task.priority] = by_priority.get(task.priority, 0) + 1
        if task.assignee_id == caller_id:
            my_tasks += 1
        if task.is_overdue(now):
            overdue += 1
        if task.created_at is not None and task.created_at >= week_ago:
            created_recently += 1
        # Approximation: last update stands in for the completion time
        if task.is_completed() and task.updated_at is not None and task.updated_at >= week_ago:
            completed_recently += 1

    projects_by_status = {status: 0 for status in PROJECT_STATUS_ORDER}
    for project in projects:
        projects_by_status[project.status] = projects_by_status.get(project.status, 0) + 1

    return DashboardSummary(
        total_projects=len(projects),
        total_tasks=total,
        tasks_by_status=TaskStatusCounts(**{s.value: by_status[s] for s in STATUS_ORDER}),
        tasks_by_priority=TaskPriorityCounts(
            **{p.value: by_priority[p] for p in PRIORITY_ORDER}
        ),
        projects_by_status=ProjectStatusCounts(
            **{s.value: projects_by_status[s] for s in PROJECT_STATUS_ORDER}
        ),
        completion_rate=percentage(by_status[TaskStatus.COMPLETED], total),
        my_tasks=my_tasks,
        overdue_tasks=overdue,
        recent_activity=RecentActivity(
            tasks_created_this_week=created_recently,
            tasks_completed_this_week=completed_recently,
        ),
    )


def compute_status_distribution(status_counts: Iterable[StatusCount]) -> StatusDistribution:
    """
    Build the status distribution from grouped status counts.

    Rows with an unknown status are ignored and do not count toward the
    total. Repeated rows for the same status are summed.

    Args:
        status_counts: Rows from TaskStore.get_aggregated_status_counts

    Returns:
        StatusDistribution with one bucket per status, in enum order
    """
    known = {status.value: status for status in STATUS_ORDER}
    counts = {status: 0 for status in STATUS_ORDER}
    for row in status_counts:
        status = known.get(row.status)
        if status is not None:
            counts[status] += row.count

    total = sum(counts.values())
    return StatusDistribution(
        by_status=[
            StatusBucket(
                status=status,
                count=counts[status],
                percentage=percentage(counts[status], total),
            )
            for status in STATUS_ORDER
        ],
        total=total,
    )


def compute_priority_distribution(tasks: Iterable[Task]) -> PriorityDistribution:
    """
    Build the priority distribution from a task set.

    Args:
        tasks: Tasks in the caller's scope

    Returns:
        PriorityDistribution with one bucket per priority, in enum order
    """
    counts = {priority: 0 for priority in PRIORITY_ORDER}
    total = 0
    for task in tasks:
        total += 1
        priority = task.priority or TaskPriority.NONE
        counts[priority] += 1

    return PriorityDistribution(
        by_priority=[
            PriorityBucket(
                priority=priority,
                count=counts[priority],
                percentage=percentage(counts[priority], total),
            )
            for priority in PRIORITY_ORDER
        ],
        total=total,
    )


def compute_weekly_trend(
    created: Iterable[Task],
    completed: Iterable[Task],
    today: date,
) -> WeeklyTrend:
    """
    Build seven daily buckets ending on ``today``.

    Args:
        created: Tasks to bucket by ``created_at``
        completed: Tasks to bucket by ``updated_at``; only tasks whose
            status is completed are counted
        today: Last day of the window (UTC calendar day)

    Returns:
        WeeklyTrend with exactly seven entries, oldest first
    """
    days = [today - timedelta(days=offset) for offset in range(TREND_DAYS - 1, -1, -1)]
    created_per_day = {day: 0 for day in days}
    completed_per_day = {day: 0 for day in days}

    for task in created:
        if task.created_at is not None:
            day = as_utc(task.created_at).date()
            if day in created_per_day:
                created_per_day[day] += 1

    for task in completed:
        if task.is_completed() and task.updated_at is not None:
            day = as_utc(task.updated_at).date()
            if day in completed_per_day:
                completed_per_day[day] += 1

    total_created = sum(created_per_day.values())
    total_completed = sum(completed_per_day.values())

    return WeeklyTrend(
        daily=[
            DailyTrendPoint(
                date=day.isoformat(),
                created=created_per_day[day],
                completed=completed_per_day[day],
            )
            for day in days
        ],
        summary=TrendSummary(
            total_created=total_created,
            total_completed=total_completed,
            average_created_per_day=round_half_up(total_created / TREND_DAYS),
            average_completed_per_day=round_half_up(total_completed / TREND_DAYS),
        ),
    )


def empty_summary() -> DashboardSummary:
    return compute_summary([], [], "", datetime.now(timezone.utc))


def empty_status_distribution() -> StatusDistribution:
    return compute_status_distribution([])


def empty_priority_distribution() -> PriorityDistribution:
    return compute_priority_distribution([])


def empty_weekly_trend(today: date) -> WeeklyTrend:
    return compute_weekly_trend([], [], today)
