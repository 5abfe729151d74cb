"""
Health check API endpoints.

Routes: GET /health, GET /health/db, GET /health/scheduler

Dependencies: tutoring.boundary
System role: Health check HTTP API
"""

import logging

from fastapi import APIRouter, Depends, HTTPException, Request, status
from pydantic import BaseModel
from sqlalchemy import text
from sqlalchemy.ext.asyncio import AsyncSession

from tutoring.boundary.db import get_async_db

logger = logging.getLogger(__name__)


class HealthResponse(BaseModel):
    """Health check response model."""

    status: str
    message: str


router = APIRouter(prefix="/health", tags=["health"])


@router.get("", response_model=HealthResponse)
async def health_check() -> HealthResponse:
    """Basic health check."""
    return HealthResponse(status="healthy", message="Server Healthy")


@router.get("/db", response_model=HealthResponse)
async def health_check_db(db: AsyncSession = Depends(get_async_db)) -> HealthResponse:
    """Database health check."""
    try:
        await db.execute(text("SELECT 1"))
    except Exception as e:
        logger.error("Database health check failed", extra={"error": str(e)})
        raise HTTPException(status_code=status.HTTP_503_SERVICE_UNAVAILABLE, detail="Database unavailable")
    return HealthResponse(status="healthy", message="Database connection OK")


@router.get("/scheduler", response_model=HealthResponse)
async def health_check_scheduler(request: Request) -> HealthResponse:
    """Background scheduler state."""
    scheduler = getattr(request.app.state, "scheduler", None)
    if scheduler is None:
        return HealthResponse(status="disabled", message="Background scheduler not configured")
    if not scheduler.running:
        return HealthResponse(status="stopped", message="Background scheduler not running")
    return HealthResponse(status="healthy", message="Background scheduler running")
