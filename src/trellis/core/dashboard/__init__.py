"""
Dashboard aggregation.

Access-scoped, cached summary statistics over projects and tasks.
"""

from .aggregation import (
    compute_priority_distribution,
    compute_status_distribution,
    compute_summary,
    compute_weekly_trend,
)
from .invalidation import DashboardInvalidator
from .models import (
    DailyTrendPoint,
    DashboardSummary,
    PriorityBucket,
    PriorityDistribution,
    StatusBucket,
    StatusDistribution,
    TrendSummary,
    WeeklyTrend,
)
from .service import DASHBOARD_CACHE_TTL, DashboardService

__all__ = [
    "DASHBOARD_CACHE_TTL",
    "DailyTrendPoint",
    "DashboardInvalidator",
    "DashboardService",
    "DashboardSummary",
    "PriorityBucket",
    "PriorityDistribution",
    "StatusBucket",
    "StatusDistribution",
    "TrendSummary",
    "WeeklyTrend",
    "compute_priority_distribution",
    "compute_status_distribution",
    "compute_summary",
    "compute_weekly_trend",
]
