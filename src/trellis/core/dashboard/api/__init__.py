"""
FastAPI application for the trellis dashboard.

Serves cached, access-scoped aggregates to the dashboard frontend. Caller
identity is authenticated upstream and forwarded in request headers.

API Endpoints:
- GET /api/dashboard/stats - Headline statistics
- GET /api/dashboard/task-distribution - Task counts by status
- GET /api/dashboard/priority-distribution - Task counts by priority
- GET /api/dashboard/weekly-trend - Created/completed per day, last 7 days

Usage:
    # Run the server
    uvicorn trellis.core.dashboard.api.app:create_app --factory --reload

    # Or from Python
    from trellis.core.dashboard.api.app import create_app
"""

from trellis.core.dashboard.api.app import create_app

__all__ = ["create_app"]
