"""Ops Portal — FastAPI Application Factory."""

import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from slowapi import _rate_limit_exceeded_handler
from slowapi.errors import RateLimitExceeded

from portal.attendance.router import router as attendance_router
from portal.common.exceptions import register_exception_handlers
from portal.common.rate_limit import limiter
from portal.config import settings
from portal.dashboard.router import router as dashboard_router
from portal.database import engine
from portal.leave.router import router as leave_router
from portal.organization.router import (
    profile_router,
    roles_router,
    shifts_router,
    teams_router,
    users_router,
)
from portal.rooms.router import bookings_router, rooms_router
from portal.tasks.router import router as tasks_router

logger = logging.getLogger(__name__)


def configure_logging() -> None:
    """Root logging setup; level comes from LOG_LEVEL."""
    logging.basicConfig(
        level=getattr(logging, settings.LOG_LEVEL.upper(), logging.INFO),
        format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
        datefmt="%Y-%m-%d %H:%M:%S",
    )


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application startup and shutdown events."""
    logger.info("Ops Portal starting (%s)", settings.ENVIRONMENT)
    yield
    await engine.dispose()
    logger.info("Ops Portal stopped")


def create_app() -> FastAPI:
    """Create and configure the FastAPI application."""
    configure_logging()

    app = FastAPI(
        title="Ops Portal",
        description="Internal operations portal — meeting rooms, tasks, leave and organization",
        version="1.0.0",
        docs_url="/api/docs" if settings.ENVIRONMENT != "production" else None,
        redoc_url="/api/redoc" if settings.ENVIRONMENT != "production" else None,
        lifespan=lifespan,
    )

    # Exception handlers (RFC 7807)
    register_exception_handlers(app)

    # Rate limiting (slowapi)
    app.state.limiter = limiter
    app.add_exception_handler(RateLimitExceeded, _rate_limit_exceeded_handler)

    # CORS
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins_list,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    # Health check (no auth)
    @app.get("/api/v1/health", tags=["system"])
    async def health_check():
        return {
            "status": "healthy",
            "version": "1.0.0",
            "environment": settings.ENVIRONMENT,
        }

    # Register routers
    app.include_router(profile_router, prefix="/api/v1/profile", tags=["profile"])
    app.include_router(users_router, prefix="/api/v1/users", tags=["users"])
    app.include_router(roles_router, prefix="/api/v1/roles", tags=["roles"])
    app.include_router(teams_router, prefix="/api/v1/teams", tags=["teams"])
    app.include_router(shifts_router, prefix="/api/v1/shifts", tags=["shifts"])
    app.include_router(rooms_router, prefix="/api/v1/rooms", tags=["rooms"])
    app.include_router(bookings_router, prefix="/api/v1/bookings", tags=["bookings"])
    app.include_router(tasks_router, prefix="/api/v1/tasks", tags=["tasks"])
    app.include_router(leave_router, prefix="/api/v1/leave", tags=["leave"])
    app.include_router(attendance_router, prefix="/api/v1/attendance", tags=["attendance"])
    app.include_router(dashboard_router, prefix="/api/v1/dashboard", tags=["dashboard"])

    return app


app = create_app()
