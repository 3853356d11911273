"""
FastAPI application setup for the trellis dashboard.

create_app() builds the app, wires the stores, cache and dashboard
service onto ``app.state``, and registers routes and error handlers.
"""

import logging
import traceback
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager
from enum import Enum

from fastapi import FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from pydantic import BaseModel
from starlette.exceptions import HTTPException as StarletteHTTPException

from trellis import __version__
from trellis.core.cache import CacheAside, CacheBackend, create_cache_backend
from trellis.core.config import TrellisConfig, load_config
from trellis.core.dashboard.api.routes import dashboard
from trellis.core.dashboard.invalidation import DashboardInvalidator
from trellis.core.dashboard.service import DashboardService
from trellis.core.errors import CacheUnavailableError, StoreError
from trellis.core.store import ProjectStore, TaskStore, get_stores

logger = logging.getLogger(__name__)


# Error codes for consistent error responses
class ErrorCode(str, Enum):
    """Standard error codes for API responses."""

    # Client errors (4xx)
    VALIDATION_ERROR = "VALIDATION_ERROR"
    NOT_FOUND = "NOT_FOUND"
    UNAUTHORIZED = "UNAUTHORIZED"
    INVALID_REQUEST = "INVALID_REQUEST"

    # Server errors (5xx)
    DATABASE_ERROR = "DATABASE_ERROR"
    CACHE_ERROR = "CACHE_ERROR"
    INTERNAL_ERROR = "INTERNAL_ERROR"


class ErrorResponse(BaseModel):
    """Standard error response model."""

    error_code: ErrorCode
    message: str
    detail: str | None = None
    request_id: str | None = None


def _error_response(
    request: Request, status_code: int, error_code: ErrorCode, message: str, detail: str | None
) -> JSONResponse:
    body = ErrorResponse(
        error_code=error_code,
        message=message,
        detail=detail,
        request_id=str(id(request)),
    )
    return JSONResponse(status_code=status_code, content=body.model_dump(mode="json"))


async def http_exception_handler(request: Request, exc: StarletteHTTPException) -> JSONResponse:
    """
    Handle HTTPException with the consistent error response format.

    Logs errors for debugging without exposing stack traces to clients.
    """
    if exc.status_code == status.HTTP_404_NOT_FOUND:
        error_code = ErrorCode.NOT_FOUND
    elif exc.status_code == status.HTTP_401_UNAUTHORIZED:
        error_code = ErrorCode.UNAUTHORIZED
    elif exc.status_code < 500:
        error_code = ErrorCode.INVALID_REQUEST
    else:
        error_code = ErrorCode.INTERNAL_ERROR

    log = logger.error if exc.status_code >= 500 else logger.info
    log(
        "HTTP %d on %s %s: %s",
        exc.status_code,
        request.method,
        request.url.path,
        exc.detail,
        extra={"request_id": id(request)},
    )

    detail_msg = exc.detail if isinstance(exc.detail, str) else str(exc.detail)
    return _error_response(request, exc.status_code, error_code, detail_msg, detail_msg)


async def validation_exception_handler(
    request: Request, exc: RequestValidationError
) -> JSONResponse:
    """Handle validation errors from query parameters and headers."""
    logger.warning(
        "Validation error on %s %s: %s",
        request.method,
        request.url.path,
        exc.errors(),
        extra={"request_id": id(request)},
    )

    # Extract first error for user-friendly message
    first_error = exc.errors()[0] if exc.errors() else {}
    field = " -> ".join(str(loc) for loc in first_error.get("loc", []))
    error_msg = first_error.get("msg", "Invalid input")

    return _error_response(
        request,
        status.HTTP_422_UNPROCESSABLE_ENTITY,
        ErrorCode.VALIDATION_ERROR,
        "Request validation failed",
        f"{field}: {error_msg}" if field else error_msg,
    )


async def store_error_handler(request: Request, exc: StoreError) -> JSONResponse:
    logger.error(
        "Store error on %s %s (%s): %s",
        request.method,
        request.url.path,
        exc.operation or "unknown operation",
        exc,
        extra={"request_id": id(request)},
    )
    return _error_response(
        request,
        status.HTTP_500_INTERNAL_SERVER_ERROR,
        ErrorCode.DATABASE_ERROR,
        "Database operation failed",
        str(exc),
    )


async def cache_error_handler(request: Request, exc: CacheUnavailableError) -> JSONResponse:
    logger.error(
        "Cache unavailable on %s %s: %s",
        request.method,
        request.url.path,
        exc,
        extra={"request_id": id(request)},
    )
    return _error_response(
        request,
        status.HTTP_503_SERVICE_UNAVAILABLE,
        ErrorCode.CACHE_ERROR,
        "Cache unavailable",
        str(exc),
    )


async def general_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    """
    Handle all uncaught exceptions.

    Logs the full exception with traceback, but returns a clean error
    response to the client without exposing internal details.
    """
    logger.error(
        "Unhandled exception on %s %s: %s\n%s",
        request.method,
        request.url.path,
        str(exc),
        traceback.format_exc(),
        extra={"request_id": id(request)},
    )
    return _error_response(
        request,
        status.HTTP_500_INTERNAL_SERVER_ERROR,
        ErrorCode.INTERNAL_ERROR,
        "An internal server error occurred",
        str(exc),
    )


def create_app(
    config: TrellisConfig | None = None,
    *,
    project_store: ProjectStore | None = None,
    task_store: TaskStore | None = None,
    cache: CacheBackend | None = None,
) -> FastAPI:
    """
    Create the dashboard API application.

    Collaborators not passed in are built from configuration: stores from
    the registered store backend, cache from the cache section.

    Args:
        config: Loaded configuration (defaults to load_config())
        project_store: Project store override
        task_store: Task store override
        cache: Cache backend override

    Returns:
        Configured FastAPI app

    Example:
        >>> app = create_app(project_store=projects, task_store=tasks, cache=MemoryCache())
        >>> client = TestClient(app)
    """
    if config is None:
        config = load_config()

    if project_store is None or task_store is None:
        stores = get_stores(config)
        if project_store is None:
            project_store = stores.projects
        if task_store is None:
            task_store = stores.tasks

    if cache is None:
        cache = create_cache_backend(config.cache)

    gateway = CacheAside(cache)

    @asynccontextmanager
    async def lifespan(app: FastAPI) -> AsyncIterator[None]:
        yield
        await cache.close()

    app = FastAPI(
        title="Trellis Dashboard API",
        description="Cached, access-scoped project and task statistics",
        version=__version__,
        lifespan=lifespan,
    )

    app.state.config = config
    app.state.cache = gateway
    app.state.service = DashboardService(project_store, task_store, gateway)
    app.state.invalidator = DashboardInvalidator(gateway)

    app.add_middleware(
        CORSMiddleware,
        allow_origins=config.server.cors_origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    app.include_router(dashboard.router, prefix="/api", tags=["dashboard"])

    @app.get("/")
    async def root() -> dict[str, str]:
        """Root endpoint - API health check."""
        return {"status": "ok", "message": "Trellis Dashboard API"}

    @app.get("/health")
    async def health() -> dict[str, str]:
        """Health check endpoint."""
        return {"status": "healthy"}

    # Exception handlers for consistent error responses
    app.add_exception_handler(StarletteHTTPException, http_exception_handler)
    app.add_exception_handler(RequestValidationError, validation_exception_handler)
    app.add_exception_handler(StoreError, store_error_handler)
    app.add_exception_handler(CacheUnavailableError, cache_error_handler)
    app.add_exception_handler(Exception, general_exception_handler)

    logger.debug(
        "Created dashboard app (store=%s, cache=%s)",
        type(project_store).__name__,
        type(cache).__name__,
    )
    return app
