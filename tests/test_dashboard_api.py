"""
Tests for the dashboard API.

Tests validate:
- GET /api/dashboard/* endpoints and the success envelope
- camelCase response fields
- Caller identity headers (401 when missing)
- Error envelope and status mapping for store/cache failures
- Root and health endpoints
"""

from unittest.mock import AsyncMock

import pytest
from fastapi.testclient import TestClient

from trellis.core.cache import MemoryCache
from trellis.core.config import TrellisConfig
from trellis.core.dashboard.api.app import create_app
from trellis.core.errors import CacheUnavailableError, StoreError

USER = {"X-User-Id": "u-1", "X-User-Role": "user"}
ADMIN = {"X-User-Id": "root", "X-User-Role": "admin"}


@pytest.fixture
def cache():
    return MemoryCache()


@pytest.fixture
def client(project_store, task_store, cache):
    """TestClient over the memory scenario."""
    app = create_app(
        TrellisConfig(), project_store=project_store, task_store=task_store, cache=cache
    )
    return TestClient(app)


class TestHealthEndpoints:
    """Tests for / and /health."""

    def test_root(self, client) -> None:
        response = client.get("/")
        assert response.status_code == 200
        assert response.json()["status"] == "ok"

    def test_health(self, client) -> None:
        assert client.get("/health").json() == {"status": "healthy"}


class TestStatsEndpoint:
    """Tests for GET /api/dashboard/stats."""

    def test_envelope_and_camel_case(self, client) -> None:
        response = client.get("/api/dashboard/stats", headers=USER)

        assert response.status_code == 200
        body = response.json()
        assert body["success"] is True
        data = body["data"]
        assert data["totalProjects"] == 2
        assert data["totalTasks"] == 3
        assert data["completionRate"] == 33
        assert data["tasksByStatus"] == {"not_started": 1, "in_progress": 1, "completed": 1}
        assert data["tasksByPriority"] == {"none": 1, "low": 0, "medium": 1, "high": 1}
        assert set(data["recentActivity"]) == {"tasksCreatedThisWeek", "tasksCompletedThisWeek"}

    def test_admin_role_header(self, client) -> None:
        data = client.get("/api/dashboard/stats", headers=ADMIN).json()["data"]
        assert data["totalProjects"] == 3

    def test_missing_role_defaults_to_user(self, client) -> None:
        data = client.get("/api/dashboard/stats", headers={"X-User-Id": "u-1"}).json()["data"]
        assert data["totalProjects"] == 2

    def test_caches_per_caller_and_role(self, client, cache) -> None:
        client.get("/api/dashboard/stats", headers=USER)
        client.get("/api/dashboard/stats", headers=ADMIN)

        assert cache.keys() == ["dashboard:stats:u-1:user", "dashboard:stats:root:admin"]

    def test_missing_user_id_is_unauthorized(self, client) -> None:
        response = client.get("/api/dashboard/stats")

        assert response.status_code == 401
        body = response.json()
        assert body["error_code"] == "UNAUTHORIZED"
        assert "X-User-Id" in body["message"]
        assert body["request_id"]


class TestDistributionEndpoints:
    """Tests for the distribution and trend endpoints."""

    def test_task_distribution(self, client) -> None:
        data = client.get("/api/dashboard/task-distribution", headers=USER).json()["data"]

        assert data["total"] == 3
        assert data["byStatus"] == [
            {"status": "not_started", "count": 1, "percentage": 33},
            {"status": "in_progress", "count": 1, "percentage": 33},
            {"status": "completed", "count": 1, "percentage": 33},
        ]

    def test_priority_distribution(self, client) -> None:
        data = client.get("/api/dashboard/priority-distribution", headers=USER).json()["data"]

        assert data["total"] == 3
        assert [b["priority"] for b in data["byPriority"]] == ["none", "low", "medium", "high"]

    def test_weekly_trend(self, client) -> None:
        data = client.get("/api/dashboard/weekly-trend", headers=USER).json()["data"]

        assert len(data["daily"]) == 7
        assert set(data["daily"][0]) == {"date", "created", "completed"}
        assert set(data["summary"]) == {
            "totalCreated",
            "totalCompleted",
            "averageCreatedPerDay",
            "averageCompletedPerDay",
        }

    def test_empty_scope(self, client) -> None:
        data = client.get("/api/dashboard/task-distribution", headers={"X-User-Id": "nobody"})
        body = data.json()["data"]
        assert body["total"] == 0
        assert all(b["percentage"] == 0 for b in body["byStatus"])


class TestErrorMapping:
    """Store and cache failures map to the standard error envelope."""

    def test_store_error_is_database_error(self, task_store) -> None:
        project_store = AsyncMock()
        project_store.find_all.side_effect = StoreError("disk I/O error", operation="find_all")
        app = create_app(
            TrellisConfig(),
            project_store=project_store,
            task_store=task_store,
            cache=MemoryCache(),
        )

        response = TestClient(app).get("/api/dashboard/stats", headers=USER)

        assert response.status_code == 500
        body = response.json()
        assert body["error_code"] == "DATABASE_ERROR"
        assert body["message"] == "Database operation failed"
        assert "disk I/O error" in body["detail"]

    def test_cache_error_is_service_unavailable(self, project_store, task_store) -> None:
        cache = AsyncMock()
        cache.get.side_effect = CacheUnavailableError("redis down")
        app = create_app(
            TrellisConfig(), project_store=project_store, task_store=task_store, cache=cache
        )

        response = TestClient(app).get("/api/dashboard/weekly-trend", headers=USER)

        assert response.status_code == 503
        assert response.json()["error_code"] == "CACHE_ERROR"

    def test_unknown_route_is_not_found(self, client) -> None:
        response = client.get("/api/dashboard/nope", headers=USER)

        assert response.status_code == 404
        assert response.json()["error_code"] == "NOT_FOUND"


class TestCreateApp:
    """Tests for create_app wiring."""

    def test_builds_collaborators_from_config(self) -> None:
        app = create_app(TrellisConfig(cache={"enabled": False}))

        response = TestClient(app).get("/api/dashboard/stats", headers=USER)

        assert response.status_code == 200
        assert response.json()["data"]["totalProjects"] == 0

    def test_state_exposes_service_and_invalidator(self, client) -> None:
        state = client.app.state
        assert state.service is not None
        assert state.invalidator.gateway is state.cache
