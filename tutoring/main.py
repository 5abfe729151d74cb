"""
FastAPI application entry point.

Initializes FastAPI app, registers routers, adds middleware, and configures
lifespan (logging, optional table creation, background scheduler).

Dependencies: fastapi, uvicorn, tutoring.api, tutoring.observability, tutoring.configs
System role: Application initialization and configuration
"""

from contextlib import asynccontextmanager
import logging

import uvicorn
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from tutoring.api.deps.dependencies import build_booking_sweeper
from tutoring.api.routers import (
    availability_router,
    health_router,
    session_requests_router,
    sessions_router,
)
from tutoring.boundary.db.connection import get_async_engine, get_async_session_factory
from tutoring.boundary.db.create_tables import create_all_tables
from tutoring.configs import get_settings
from tutoring.observability.logger import configure_logging
from tutoring.observability.middleware import CorrelationMiddleware, RequestLoggingMiddleware
from tutoring.workers.background_scheduler import BackgroundScheduler

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """
    Application lifespan context manager.

    Handles startup and shutdown events.
    """
    settings = get_settings()
    configure_logging(settings.log_level)
    logger.info(
        "Application startup: logging configured",
        extra={"service": settings.service_name, "environment": settings.environment},
    )

    if settings.database.create_tables_on_startup:
        await create_all_tables()

    app.state.scheduler = None
    if settings.scheduler.enabled:
        sweeper = build_booking_sweeper(get_async_session_factory(), settings.scheduler)
        app.state.scheduler = BackgroundScheduler(sweeper, settings.scheduler)
        app.state.scheduler.start()

    yield

    if app.state.scheduler is not None:
        app.state.scheduler.shutdown()
    await get_async_engine().dispose()
    logger.info("Application shutdown complete")


def create_app() -> FastAPI:
    """
    Create and configure FastAPI application with routers.

    Returns:
        FastAPI: Configured application instance with all routers registered
    """
    settings = get_settings()
    app = FastAPI(
        title=settings.service_name,
        description="Booking negotiation and session lifecycle for a tutoring marketplace",
        version="0.1.0",
        debug=settings.debug,
        lifespan=lifespan,
    )

    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    # Last added runs outermost: the correlation ID is bound before request logging
    app.add_middleware(RequestLoggingMiddleware)
    app.add_middleware(CorrelationMiddleware)

    # Register all routers with /api/v1 prefix for versioning
    app.include_router(health_router, prefix="/api/v1")
    app.include_router(session_requests_router, prefix="/api/v1")
    app.include_router(sessions_router, prefix="/api/v1")
    app.include_router(availability_router, prefix="/api/v1")

    return app


app = create_app()


if __name__ == "__main__":
    uvicorn.run(
        "tutoring.main:app",
        host="0.0.0.0",
        port=8000,
    )
