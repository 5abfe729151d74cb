"""
Session API endpoints.

Routes:
- POST /sessions - Book a session
- GET /sessions - List sessions with filters
- GET /sessions/upcoming - Upcoming sessions of a participant
- GET /sessions/today - Sessions starting today
- GET /sessions/search - Text search over notes, room and video link
- GET /sessions/{id} - Get single session
- PATCH /sessions/{id} - Edit session fields
- POST /sessions/{id}/confirm|start|complete|cancel|reschedule - Lifecycle transitions
- DELETE /sessions/{id} - Delete a session that has not started
- GET /sessions/{id}/alternatives - Alternative slots for a session

Dependencies: tutoring.application.services, tutoring.models
System role: Session lifecycle HTTP API
"""

import logging
from datetime import datetime
from decimal import Decimal
from uuid import UUID

from fastapi import APIRouter, Depends, Query

from tutoring.api.deps.dependencies import (
    get_booking_settings,
    get_clock,
    get_session_service,
    get_slot_finder,
)
from tutoring.application.services.session_service import SessionLifecycleService
from tutoring.application.services.slot_finder import SlotFinder
from tutoring.boundary.db.CRUD.session_crud import SessionFilters
from tutoring.configs import BookingSettings
from tutoring.core.booking_states import DeliveryType, SessionStatus
from tutoring.core.clock import Clock
from tutoring.models.availability import CandidateSlotResponse
from tutoring.models.common import PaginatedResponse
from tutoring.models.session import (
    SessionCancel,
    SessionComplete,
    SessionCreate,
    SessionReschedule,
    SessionResponse,
    SessionUpdate,
)

from .booking_error_handling import handle_booking_errors
from .booking_responses import (
    map_session_to_response,
    map_sessions_to_response,
    map_slots_to_response,
)

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/sessions", tags=["sessions"])


@router.post("", response_model=SessionResponse, status_code=201)
@handle_booking_errors
async def create_session(
    request: SessionCreate,
    session_service: SessionLifecycleService = Depends(get_session_service),
    clock: Clock = Depends(get_clock),
    settings: BookingSettings = Depends(get_booking_settings),
) -> SessionResponse:
    """
    Book a session directly for a tutor and a student.

    Raises:
        HTTPException(409): Tutor or student already booked in the window
        HTTPException(422): Invalid time, duration or price
    """
    session = await session_service.create_session(**request.model_dump())
    return map_session_to_response(session, clock(), settings)


@router.get("", response_model=PaginatedResponse[SessionResponse])
@handle_booking_errors
async def list_sessions(
    tutor_id: int | None = None,
    student_id: int | None = None,
    subject_id: int | None = None,
    status: SessionStatus | None = None,
    delivery_type: DeliveryType | None = None,
    start_date: datetime | None = None,
    end_date: datetime | None = None,
    min_price: Decimal | None = None,
    max_price: Decimal | None = None,
    limit: int = Query(50, ge=1, le=200),
    offset: int = Query(0, ge=0),
    session_service: SessionLifecycleService = Depends(get_session_service),
    clock: Clock = Depends(get_clock),
    settings: BookingSettings = Depends(get_booking_settings),
) -> PaginatedResponse[SessionResponse]:
    """List sessions matching every given filter, soonest first."""
    filters = SessionFilters(
        tutor_id=tutor_id,
        student_id=student_id,
        subject_id=subject_id,
        status=status,
        delivery_type=delivery_type,
        start_date=start_date,
        end_date=end_date,
        min_price=min_price,
        max_price=max_price,
    )
    items, total = await session_service.filter_sessions(filters, limit=limit, offset=offset)
    return PaginatedResponse[SessionResponse].page(
        map_sessions_to_response(items, clock(), settings), total, limit, offset,
    )


@router.get("/upcoming", response_model=list[SessionResponse])
@handle_booking_errors
async def list_upcoming_sessions(
    tutor_id: int | None = None,
    student_id: int | None = None,
    limit: int = Query(10, ge=1, le=100),
    session_service: SessionLifecycleService = Depends(get_session_service),
    clock: Clock = Depends(get_clock),
    settings: BookingSettings = Depends(get_booking_settings),
) -> list[SessionResponse]:
    sessions = await session_service.get_upcoming_sessions(tutor_id=tutor_id, student_id=student_id, limit=limit)
    return map_sessions_to_response(sessions, clock(), settings)


@router.get("/today", response_model=list[SessionResponse])
@handle_booking_errors
async def list_todays_sessions(
    tutor_id: int | None = None,
    student_id: int | None = None,
    session_service: SessionLifecycleService = Depends(get_session_service),
    clock: Clock = Depends(get_clock),
    settings: BookingSettings = Depends(get_booking_settings),
) -> list[SessionResponse]:
    sessions = await session_service.get_todays_sessions(tutor_id=tutor_id, student_id=student_id)
    return map_sessions_to_response(sessions, clock(), settings)


@router.get("/search", response_model=list[SessionResponse])
@handle_booking_errors
async def search_sessions(
    term: str = Query(..., min_length=1),
    status: SessionStatus | None = None,
    session_service: SessionLifecycleService = Depends(get_session_service),
    clock: Clock = Depends(get_clock),
    settings: BookingSettings = Depends(get_booking_settings),
) -> list[SessionResponse]:
    sessions = await session_service.search_sessions(term, status)
    return map_sessions_to_response(sessions, clock(), settings)


@router.get("/{session_id}", response_model=SessionResponse)
@handle_booking_errors
async def get_session(
    session_id: UUID,
    session_service: SessionLifecycleService = Depends(get_session_service),
    clock: Clock = Depends(get_clock),
    settings: BookingSettings = Depends(get_booking_settings),
) -> SessionResponse:
    session = await session_service.get_session(session_id)
    return map_session_to_response(session, clock(), settings)


@router.patch("/{session_id}", response_model=SessionResponse)
@handle_booking_errors
async def update_session(
    session_id: UUID,
    request: SessionUpdate,
    session_service: SessionLifecycleService = Depends(get_session_service),
    clock: Clock = Depends(get_clock),
    settings: BookingSettings = Depends(get_booking_settings),
) -> SessionResponse:
    """
    Edit price, notes, room, video link, delivery type or duration.

    Raises:
        HTTPException(409): Session running, finished or past; or longer duration conflicts
    """
    session = await session_service.update_session(session_id, **request.model_dump(exclude_unset=True))
    return map_session_to_response(session, clock(), settings)


@router.post("/{session_id}/confirm", response_model=SessionResponse)
@handle_booking_errors
async def confirm_session(
    session_id: UUID,
    session_service: SessionLifecycleService = Depends(get_session_service),
    clock: Clock = Depends(get_clock),
    settings: BookingSettings = Depends(get_booking_settings),
) -> SessionResponse:
    session = await session_service.confirm_session(session_id)
    return map_session_to_response(session, clock(), settings)


@router.post("/{session_id}/start", response_model=SessionResponse)
@handle_booking_errors
async def start_session(
    session_id: UUID,
    session_service: SessionLifecycleService = Depends(get_session_service),
    clock: Clock = Depends(get_clock),
    settings: BookingSettings = Depends(get_booking_settings),
) -> SessionResponse:
    session = await session_service.start_session(session_id)
    return map_session_to_response(session, clock(), settings)


@router.post("/{session_id}/complete", response_model=SessionResponse)
@handle_booking_errors
async def complete_session(
    session_id: UUID,
    request: SessionComplete,
    session_service: SessionLifecycleService = Depends(get_session_service),
    clock: Clock = Depends(get_clock),
    settings: BookingSettings = Depends(get_booking_settings),
) -> SessionResponse:
    session = await session_service.complete_session(session_id, **request.model_dump())
    return map_session_to_response(session, clock(), settings)


@router.post("/{session_id}/cancel", response_model=SessionResponse)
@handle_booking_errors
async def cancel_session(
    session_id: UUID,
    request: SessionCancel,
    session_service: SessionLifecycleService = Depends(get_session_service),
    clock: Clock = Depends(get_clock),
    settings: BookingSettings = Depends(get_booking_settings),
) -> SessionResponse:
    session = await session_service.cancel_session(
        session_id, reason=request.reason, cancelled_by=request.cancelled_by,
    )
    return map_session_to_response(session, clock(), settings)


@router.post("/{session_id}/reschedule", response_model=SessionResponse)
@handle_booking_errors
async def reschedule_session(
    session_id: UUID,
    request: SessionReschedule,
    session_service: SessionLifecycleService = Depends(get_session_service),
    clock: Clock = Depends(get_clock),
    settings: BookingSettings = Depends(get_booking_settings),
) -> SessionResponse:
    """
    Move a session to a new start time.

    Raises:
        HTTPException(409): Too close to start, wrong status, or new window conflicts
        HTTPException(422): New time not in the future
    """
    session = await session_service.reschedule_session(
        session_id,
        request.new_date_time,
        reason=request.reason,
        rescheduled_by=request.rescheduled_by,
    )
    return map_session_to_response(session, clock(), settings)


@router.delete("/{session_id}", status_code=204)
@handle_booking_errors
async def delete_session(
    session_id: UUID,
    session_service: SessionLifecycleService = Depends(get_session_service),
) -> None:
    await session_service.delete_session(session_id)
    logger.info("Session deleted via API", extra={"session_id": str(session_id)})


@router.get("/{session_id}/alternatives", response_model=list[CandidateSlotResponse])
@handle_booking_errors
async def get_alternative_slots(
    session_id: UUID,
    count: int = Query(5, ge=1, le=20),
    slot_finder: SlotFinder = Depends(get_slot_finder),
) -> list[CandidateSlotResponse]:
    """Free slots near the session's current time for both participants."""
    slots = await slot_finder.find_alternative_slots(session_id, count)
    return map_slots_to_response(slots)
