"""
Session request API endpoints.

Routes:
- POST /session-requests - Submit a request
- GET /session-requests - List requests with filters
- GET /session-requests/pending - Pending requests, most urgent first
- GET /session-requests/search - Text search over message and response
- GET /session-requests/{id} - Get single request (with booked session id)
- PATCH /session-requests/{id} - Edit a pending request
- POST /session-requests/{id}/respond - Tutor's answer
- POST /session-requests/{id}/accept - Accept shorthand
- POST /session-requests/{id}/reject - Reject shorthand
- DELETE /session-requests/{id} - Delete a pending request

Dependencies: tutoring.application.services, tutoring.models
System role: Booking negotiation HTTP API
"""

import logging
from datetime import datetime
from decimal import Decimal
from uuid import UUID

from fastapi import APIRouter, Depends, Query

from tutoring.api.deps.dependencies import get_booking_settings, get_clock, get_request_negotiator
from tutoring.application.services.session_request_service import RequestNegotiator
from tutoring.boundary.db.CRUD.session_request_crud import SessionRequestFilters
from tutoring.configs import BookingSettings
from tutoring.core.booking_states import RequestStatus, Urgency
from tutoring.core.clock import Clock
from tutoring.models.common import PaginatedResponse
from tutoring.models.session_request import (
    SessionRequestAccept,
    SessionRequestAnswerResponse,
    SessionRequestCreate,
    SessionRequestReject,
    SessionRequestRespond,
    SessionRequestResponse,
    SessionRequestUpdate,
)

from .booking_error_handling import handle_booking_errors
from .booking_responses import (
    map_request_to_response,
    map_requests_to_response,
    map_session_to_response,
)

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/session-requests", tags=["session-requests"])


def _answer_response(request, session, now: datetime, settings: BookingSettings) -> SessionRequestAnswerResponse:
    return SessionRequestAnswerResponse(
        request=map_request_to_response(request, now, settings, session.id if session else None),
        session=map_session_to_response(session, now, settings) if session else None,
    )


@router.post("", response_model=SessionRequestResponse, status_code=201)
@handle_booking_errors
async def create_session_request(
    request: SessionRequestCreate,
    negotiator: RequestNegotiator = Depends(get_request_negotiator),
    clock: Clock = Depends(get_clock),
    settings: BookingSettings = Depends(get_booking_settings),
) -> SessionRequestResponse:
    """
    Submit a student's request for tutoring time.

    Raises:
        HTTPException(422): Past time, bad duration or budget, same participant, no delivery mode
    """
    created = await negotiator.create_request(**request.model_dump())
    return map_request_to_response(created, clock(), settings)


@router.get("", response_model=PaginatedResponse[SessionRequestResponse])
@handle_booking_errors
async def list_session_requests(
    tutor_id: int | None = None,
    student_id: int | None = None,
    subject_id: int | None = None,
    status: RequestStatus | None = None,
    urgency: Urgency | None = None,
    start_date: datetime | None = None,
    end_date: datetime | None = None,
    min_budget: Decimal | None = None,
    max_budget: Decimal | None = None,
    limit: int = Query(50, ge=1, le=200),
    offset: int = Query(0, ge=0),
    negotiator: RequestNegotiator = Depends(get_request_negotiator),
    clock: Clock = Depends(get_clock),
    settings: BookingSettings = Depends(get_booking_settings),
) -> PaginatedResponse[SessionRequestResponse]:
    """List requests matching every given filter, newest first."""
    filters = SessionRequestFilters(
        tutor_id=tutor_id,
        student_id=student_id,
        subject_id=subject_id,
        status=status,
        urgency=urgency,
        start_date=start_date,
        end_date=end_date,
        min_budget=min_budget,
        max_budget=max_budget,
    )
    items, total = await negotiator.filter_requests(filters, limit=limit, offset=offset)
    return PaginatedResponse[SessionRequestResponse].page(
        map_requests_to_response(items, clock(), settings), total, limit, offset,
    )


@router.get("/pending", response_model=list[SessionRequestResponse])
@handle_booking_errors
async def list_pending_requests(
    tutor_id: int | None = None,
    negotiator: RequestNegotiator = Depends(get_request_negotiator),
    clock: Clock = Depends(get_clock),
    settings: BookingSettings = Depends(get_booking_settings),
) -> list[SessionRequestResponse]:
    pending = await negotiator.get_pending_by_urgency(tutor_id)
    return map_requests_to_response(pending, clock(), settings)


@router.get("/search", response_model=list[SessionRequestResponse])
@handle_booking_errors
async def search_session_requests(
    term: str = Query(..., min_length=1),
    status: RequestStatus | None = None,
    negotiator: RequestNegotiator = Depends(get_request_negotiator),
    clock: Clock = Depends(get_clock),
    settings: BookingSettings = Depends(get_booking_settings),
) -> list[SessionRequestResponse]:
    found = await negotiator.search_requests(term, status)
    return map_requests_to_response(found, clock(), settings)


@router.get("/{request_id}", response_model=SessionRequestResponse)
@handle_booking_errors
async def get_session_request(
    request_id: UUID,
    negotiator: RequestNegotiator = Depends(get_request_negotiator),
    clock: Clock = Depends(get_clock),
    settings: BookingSettings = Depends(get_booking_settings),
) -> SessionRequestResponse:
    request, session = await negotiator.get_request_with_session(request_id)
    return map_request_to_response(request, clock(), settings, session.id if session else None)


@router.patch("/{request_id}", response_model=SessionRequestResponse)
@handle_booking_errors
async def update_session_request(
    request_id: UUID,
    request: SessionRequestUpdate,
    negotiator: RequestNegotiator = Depends(get_request_negotiator),
    clock: Clock = Depends(get_clock),
    settings: BookingSettings = Depends(get_booking_settings),
) -> SessionRequestResponse:
    """
    Edit a pending request.

    Raises:
        HTTPException(409): Request already answered
    """
    updated = await negotiator.update_request(request_id, **request.model_dump(exclude_unset=True))
    return map_request_to_response(updated, clock(), settings)


@router.post("/{request_id}/respond", response_model=SessionRequestAnswerResponse)
@handle_booking_errors
async def respond_to_session_request(
    request_id: UUID,
    request: SessionRequestRespond,
    negotiator: RequestNegotiator = Depends(get_request_negotiator),
    clock: Clock = Depends(get_clock),
    settings: BookingSettings = Depends(get_booking_settings),
) -> SessionRequestAnswerResponse:
    """
    Accept or reject a pending request; acceptance books a confirmed session.

    Raises:
        HTTPException(409): Request already answered, or the time is no longer free
        HTTPException(422): Invalid status or counter-proposal
    """
    answered, session = await negotiator.respond_to_request(request_id, **request.model_dump())
    return _answer_response(answered, session, clock(), settings)


@router.post("/{request_id}/accept", response_model=SessionRequestAnswerResponse)
@handle_booking_errors
async def accept_session_request(
    request_id: UUID,
    request: SessionRequestAccept,
    negotiator: RequestNegotiator = Depends(get_request_negotiator),
    clock: Clock = Depends(get_clock),
    settings: BookingSettings = Depends(get_booking_settings),
) -> SessionRequestAnswerResponse:
    answered, session = await negotiator.accept_request(request_id, **request.model_dump())
    return _answer_response(answered, session, clock(), settings)


@router.post("/{request_id}/reject", response_model=SessionRequestResponse)
@handle_booking_errors
async def reject_session_request(
    request_id: UUID,
    request: SessionRequestReject,
    negotiator: RequestNegotiator = Depends(get_request_negotiator),
    clock: Clock = Depends(get_clock),
    settings: BookingSettings = Depends(get_booking_settings),
) -> SessionRequestResponse:
    rejected = await negotiator.reject_request(request_id, **request.model_dump())
    return map_request_to_response(rejected, clock(), settings)


@router.delete("/{request_id}", status_code=204)
@handle_booking_errors
async def delete_session_request(
    request_id: UUID,
    negotiator: RequestNegotiator = Depends(get_request_negotiator),
) -> None:
    await negotiator.delete_request(request_id)
    logger.info("Session request deleted via API", extra={"request_id": str(request_id)})
