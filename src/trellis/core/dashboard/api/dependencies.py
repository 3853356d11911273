"""
FastAPI dependencies for dashboard routes.

Collaborators live on ``app.state`` (wired by create_app); routes reach
them through these functions so tests can swap them with
``app.dependency_overrides``.
"""

from fastapi import Header, HTTPException, Request, status

from trellis.core.access.models import Caller, CallerRole
from trellis.core.dashboard.service import DashboardService


def get_caller(
    x_user_id: str | None = Header(default=None),
    x_user_role: str | None = Header(default=None),
) -> Caller:
    """
    Build the caller from upstream-authenticated headers.

    Raises:
        HTTPException: 401 if X-User-Id is missing or blank
    """
    if x_user_id is None or not x_user_id.strip():
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Missing caller identity (X-User-Id header)",
        )
    return Caller(id=x_user_id.strip(), role=CallerRole.parse(x_user_role))


def get_service(request: Request) -> DashboardService:
    return request.app.state.service
