"""
Availability API endpoints.

Routes:
- GET /availability/conflicts - Check a proposed window for tutor and student
- POST /availability/slots - Search free slots inside a horizon
- POST /availability/suggestions - Ranked suggestions around a preferred time
- GET /availability/tutors/{tutor_id}/next-slot - Earliest free slot of a tutor

Dependencies: tutoring.application.services, tutoring.models
System role: Availability and slot search HTTP API
"""

from datetime import datetime
from uuid import UUID

from fastapi import APIRouter, Depends, Query

from tutoring.api.deps.dependencies import get_availability_checker, get_slot_finder
from tutoring.application.services.availability_checker import AvailabilityChecker
from tutoring.application.services.slot_finder import SlotFinder
from tutoring.models.availability import (
    AvailabilityCheckResponse,
    CandidateSlotResponse,
    SlotSearchRequest,
    SlotSuggestionRequest,
)

from .booking_error_handling import handle_booking_errors
from .booking_responses import map_conflicts_to_response, map_slots_to_response

router = APIRouter(prefix="/availability", tags=["availability"])


@router.get("/conflicts", response_model=AvailabilityCheckResponse)
@handle_booking_errors
async def check_conflicts(
    tutor_id: int,
    student_id: int,
    start: datetime,
    duration_minutes: int = Query(..., gt=0),
    exclude_session_id: UUID | None = None,
    checker: AvailabilityChecker = Depends(get_availability_checker),
) -> AvailabilityCheckResponse:
    """Report conflicts and rule violations for a proposed booking window."""
    result = await checker.validate_scheduling(
        tutor_id, student_id, start, duration_minutes, exclude_session_id=exclude_session_id,
    )
    return AvailabilityCheckResponse(
        available=not result.conflicts,
        valid=result.valid,
        conflicts=map_conflicts_to_response(result.conflicts),
        errors=result.errors,
    )


@router.post("/slots", response_model=list[CandidateSlotResponse])
@handle_booking_errors
async def find_slots(
    request: SlotSearchRequest,
    slot_finder: SlotFinder = Depends(get_slot_finder),
) -> list[CandidateSlotResponse]:
    """
    Search free slots for a tutor (and optionally a student).

    Raises:
        HTTPException(422): Bad duration, horizon or result count
    """
    slots = await slot_finder.find_slots(
        request.tutor_id,
        request.horizon_start,
        request.horizon_end,
        request.duration_minutes,
        student_id=request.student_id,
        preferences=request.preferences.to_domain() if request.preferences else None,
        max_results=request.max_results,
    )
    return map_slots_to_response(slots)


@router.post("/suggestions", response_model=list[CandidateSlotResponse])
@handle_booking_errors
async def suggest_slots(
    request: SlotSuggestionRequest,
    slot_finder: SlotFinder = Depends(get_slot_finder),
) -> list[CandidateSlotResponse]:
    slots = await slot_finder.suggest_slots(
        request.tutor_id,
        request.student_id,
        request.duration_minutes,
        preferences=request.preferences.to_domain() if request.preferences else None,
        search_days=request.search_days,
        max_results=request.max_results,
    )
    return map_slots_to_response(slots)


@router.get("/tutors/{tutor_id}/next-slot", response_model=CandidateSlotResponse | None)
@handle_booking_errors
async def next_available_slot(
    tutor_id: int,
    duration_minutes: int = Query(60, gt=0),
    student_id: int | None = None,
    slot_finder: SlotFinder = Depends(get_slot_finder),
) -> CandidateSlotResponse | None:
    """Earliest free slot in the next 30 days, or null."""
    slot = await slot_finder.next_available_slot(tutor_id, duration_minutes, student_id=student_id)
    return map_slots_to_response([slot])[0] if slot else None
