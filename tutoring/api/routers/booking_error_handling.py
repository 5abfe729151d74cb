"""
Booking error handling utilities.

Provides a decorator mapping booking domain exceptions to HTTP responses
consistently across the session, session request and availability endpoints.
"""

import functools
import logging
from typing import Any, Callable, TypeVar

from fastapi import HTTPException, status

from tutoring.core.exceptions import (
    ConflictError,
    InvalidStateTransitionError,
    NotFoundError,
    ValidationError,
)
from tutoring.models.common import ConflictErrorDetail, ValidationErrorDetail

from .booking_responses import map_conflicts_to_response

logger = logging.getLogger(__name__)

# Type for the decorated function
F = TypeVar("F", bound=Callable[..., Any])


def _conflict_detail(e: ConflictError) -> dict:
    detail = ConflictErrorDetail(message=e.message, conflicts=map_conflicts_to_response(e.conflicts))
    return detail.model_dump(mode="json")


def handle_booking_errors(func: F) -> F:
    """
    Decorator to handle booking errors and transform them into HTTPExceptions.

    NotFoundError -> 404, ValidationError -> 422,
    InvalidStateTransitionError and ConflictError -> 409,
    anything else is logged and surfaces as 500.
    """
    @functools.wraps(func)
    async def wrapper(*args: Any, **kwargs: Any) -> Any:
        try:
            return await func(*args, **kwargs)

        except HTTPException:
            raise

        except NotFoundError as e:
            logger.warning("Booking entity not found", extra={"error": str(e)})
            raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=e.message)

        except ValidationError as e:
            logger.warning("Invalid booking request", extra={"field": e.field, "error": e.message})
            raise HTTPException(
                status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
                detail=ValidationErrorDetail(message=e.message, field=e.field).model_dump(),
            )

        except InvalidStateTransitionError as e:
            logger.warning("Invalid state transition", extra={"error": str(e)})
            raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail=e.message)

        except ConflictError as e:
            logger.info("Scheduling conflict", extra={"conflicts": len(e.conflicts)})
            raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail=_conflict_detail(e))

        except Exception as e:
            logger.exception("Unexpected failure in booking operation", extra={"error": str(e)})
            raise HTTPException(
                status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
                detail="An internal error occurred during the booking operation",
            )

    return wrapper  # type: ignore
