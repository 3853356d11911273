"""
Dashboard API routes.

Provides the aggregates behind the dashboard charts:
- GET /api/dashboard/stats - Headline statistics
- GET /api/dashboard/task-distribution - Counts and percentages by status
- GET /api/dashboard/priority-distribution - Counts and percentages by priority
- GET /api/dashboard/weekly-trend - Daily created/completed for the last 7 days

Every response is wrapped as ``{"success": true, "data": ...}``. Store
and cache failures are not caught here; the app's exception handlers turn
them into the standard error response.
"""

from typing import Generic, TypeVar

from fastapi import APIRouter, Depends
from pydantic import BaseModel

from trellis.core.access.models import Caller
from trellis.core.dashboard.api.dependencies import get_caller, get_service
from trellis.core.dashboard.models import (
    DashboardSummary,
    PriorityDistribution,
    StatusDistribution,
    WeeklyTrend,
)
from trellis.core.dashboard.service import DashboardService

router = APIRouter(prefix="/dashboard")

T = TypeVar("T")


class ApiResponse(BaseModel, Generic[T]):
    """Success envelope shared by all dashboard endpoints."""

    success: bool = True
    data: T


@router.get("/stats", response_model=ApiResponse[DashboardSummary])
async def get_stats(
    caller: Caller = Depends(get_caller),
    service: DashboardService = Depends(get_service),
) -> ApiResponse[DashboardSummary]:
    """
    Get headline statistics across every project the caller can see.

    Admins see all projects. Other callers see projects they own, belong
    to, or that are public.

    Example response:
        {
          "success": true,
          "data": {
            "totalProjects": 2,
            "totalTasks": 3,
            "tasksByStatus": {"not_started": 1, "in_progress": 1, "completed": 1},
            "completionRate": 33,
            ...
          }
        }
    """
    summary = await service.get_summary(caller.id, caller.role)
    return ApiResponse[DashboardSummary](data=summary)


@router.get("/task-distribution", response_model=ApiResponse[StatusDistribution])
async def get_task_distribution(
    caller: Caller = Depends(get_caller),
    service: DashboardService = Depends(get_service),
) -> ApiResponse[StatusDistribution]:
    """Get task counts and percentages by status."""
    distribution = await service.get_status_distribution(caller.id, caller.role)
    return ApiResponse[StatusDistribution](data=distribution)


@router.get("/priority-distribution", response_model=ApiResponse[PriorityDistribution])
async def get_priority_distribution(
    caller: Caller = Depends(get_caller),
    service: DashboardService = Depends(get_service),
) -> ApiResponse[PriorityDistribution]:
    """Get task counts and percentages by priority."""
    distribution = await service.get_priority_distribution(caller.id, caller.role)
    return ApiResponse[PriorityDistribution](data=distribution)


@router.get("/weekly-trend", response_model=ApiResponse[WeeklyTrend])
async def get_weekly_trend(
    caller: Caller = Depends(get_caller),
    service: DashboardService = Depends(get_service),
) -> ApiResponse[WeeklyTrend]:
    """
    Get created and completed task counts for each of the last 7 days.

    Days are UTC calendar days, oldest first, ending today.
    """
    trend = await service.get_weekly_trend(caller.id, caller.role)
    return ApiResponse[WeeklyTrend](data=trend)
