"""API routers."""

from .availability import router as availability_router
from .health import router as health_router
from .session_requests import router as session_requests_router
from .sessions import router as sessions_router

__all__ = [
    "availability_router",
    "health_router",
    "session_requests_router",
    "sessions_router",
]
