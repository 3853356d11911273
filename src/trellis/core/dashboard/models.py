"""
Pydantic models for dashboard aggregates.

Each aggregate is a plain computed value with no identity of its own.
Fields are snake_case in Python and camelCase on the wire (API responses
and cached JSON), so frontends keep the field names they already chart.

Every bucketed field always carries every bucket, zero-filled, so chart
code never has to handle a missing key.
"""

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

from trellis.core.projects.models import ProjectStatus
from trellis.core.tasks.models import TaskPriority, TaskStatus


class DashboardModel(BaseModel):
    """Base for dashboard payloads: camelCase aliases, snake_case attributes."""

    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
    )


class TaskStatusCounts(DashboardModel):
    """Task counts per status. Keys stay snake_case to match enum values."""

    model_config = ConfigDict(alias_generator=None, populate_by_name=True)

    not_started: int = 0
    in_progress: int = 0
    completed: int = 0


class TaskPriorityCounts(DashboardModel):
    """Task counts per priority."""

    none: int = 0
    low: int = 0
    medium: int = 0
    high: int = 0


class ProjectStatusCounts(DashboardModel):
    """Project counts per lifecycle status."""

    planning: int = 0
    active: int = 0
    completed: int = 0
    archived: int = 0


class RecentActivity(DashboardModel):
    """
    Rolling 7-day activity.

    ``tasks_completed_this_week`` counts completed tasks whose last update
    falls in the window; a completed task edited later in the window is
    counted too, since there is no dedicated completion timestamp.
    """

    tasks_created_this_week: int = 0
    tasks_completed_this_week: int = 0


class DashboardSummary(DashboardModel):
    """
    Headline statistics for GET /api/dashboard/stats.

    Example response:
        {
          "totalProjects": 2,
          "totalTasks": 3,
          "tasksByStatus": {"not_started": 1, "in_progress": 1, "completed": 1},
          "tasksByPriority": {"none": 1, "low": 0, "medium": 1, "high": 1},
          "projectsByStatus": {"planning": 0, "active": 2, "completed": 0, "archived": 0},
          "completionRate": 33,
          "myTasks": 1,
          "overdueTasks": 0,
          "recentActivity": {"tasksCreatedThisWeek": 3, "tasksCompletedThisWeek": 1}
        }
    """

    total_projects: int = Field(default=0, ge=0)
    total_tasks: int = Field(default=0, ge=0)
    tasks_by_status: TaskStatusCounts = Field(default_factory=TaskStatusCounts)
    tasks_by_priority: TaskPriorityCounts = Field(default_factory=TaskPriorityCounts)
    projects_by_status: ProjectStatusCounts = Field(default_factory=ProjectStatusCounts)
    completion_rate: int = Field(default=0, ge=0, le=100, description="Percent completed")
    my_tasks: int = Field(default=0, ge=0, description="Tasks assigned to the caller")
    overdue_tasks: int = Field(default=0, ge=0)
    recent_activity: RecentActivity = Field(default_factory=RecentActivity)


class StatusBucket(DashboardModel):
    status: TaskStatus
    count: int = Field(default=0, ge=0)
    percentage: int = Field(default=0, ge=0, le=100)


class StatusDistribution(DashboardModel):
    """Task counts by status for GET /api/dashboard/task-distribution."""

    by_status: list[StatusBucket] = Field(default_factory=list)
    total: int = Field(default=0, ge=0)


class PriorityBucket(DashboardModel):
    priority: TaskPriority
    count: int = Field(default=0, ge=0)
    percentage: int = Field(default=0, ge=0, le=100)


class PriorityDistribution(DashboardModel):
    """Task counts by priority for GET /api/dashboard/priority-distribution."""

    by_priority: list[PriorityBucket] = Field(default_factory=list)
    total: int = Field(default=0, ge=0)


class DailyTrendPoint(DashboardModel):
    date: str = Field(..., description="Calendar day, YYYY-MM-DD (UTC)")
    created: int = Field(default=0, ge=0)
    completed: int = Field(default=0, ge=0)


class TrendSummary(DashboardModel):
    total_created: int = Field(default=0, ge=0)
    total_completed: int = Field(default=0, ge=0)
    average_created_per_day: int = Field(default=0, ge=0)
    average_completed_per_day: int = Field(default=0, ge=0)


class WeeklyTrend(DashboardModel):
    """
    Seven daily buckets, oldest first, ending today.

    Returned by GET /api/dashboard/weekly-trend.
    """

    daily: list[DailyTrendPoint] = Field(default_factory=list)
    summary: TrendSummary = Field(default_factory=TrendSummary)


# Bucket order used by every distribution
STATUS_ORDER: tuple[TaskStatus, ...] = tuple(TaskStatus)
PRIORITY_ORDER: tuple[TaskPriority, ...] = tuple(TaskPriority)
PROJECT_STATUS_ORDER: tuple[ProjectStatus, ...] = tuple(ProjectStatus)
