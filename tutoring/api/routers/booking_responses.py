"""
Booking response mapping utilities.

Transforms ORM models into Pydantic response models and adds the derived
view flags that depend on the current time.

Dependencies: tutoring.models, tutoring.core.booking_states
System role: Booking response transformation
"""

from datetime import datetime, timedelta
from typing import Sequence
from uuid import UUID

from tutoring.boundary.db.models.session_model import SessionModel
from tutoring.boundary.db.models.session_request_model import SessionRequestModel
from tutoring.configs import BookingSettings
from tutoring.core.booking_states import (
    REQUEST_STATUS_DESCRIPTIONS,
    SESSION_STATUS_DESCRIPTIONS,
    SessionStatus,
    can_be_cancelled,
    can_be_completed,
    can_be_modified,
    can_be_rescheduled,
    request_can_be_modified,
)
from tutoring.core.scheduling.availability import SchedulingConflict
from tutoring.core.scheduling.slots import CandidateSlot
from tutoring.models.availability import CandidateSlotResponse, ConflictResponse
from tutoring.models.session import SessionResponse
from tutoring.models.session_request import SessionRequestResponse

UPCOMING_STATUSES = (SessionStatus.REQUESTED, SessionStatus.CONFIRMED)


def map_session_to_response(
    session: SessionModel,
    now: datetime,
    settings: BookingSettings,
) -> SessionResponse:
    """
    Transform a SessionModel into SessionResponse with view flags.

    Args:
        session: Stored session
        now: Current time (naive UTC)
        settings: Booking rules (reschedule cutoff)

    Returns:
        SessionResponse: Pydantic model for API response
    """
    cutoff = timedelta(minutes=settings.reschedule_cutoff_minutes)
    return SessionResponse(
        id=session.id,
        tutor_id=session.tutor_id,
        student_id=session.student_id,
        subject_id=session.subject_id,
        request_id=session.request_id,
        date_time=session.date_time,
        end_time=session.end_time,
        duration_minutes=session.duration_minutes,
        status=session.status,
        status_description=SESSION_STATUS_DESCRIPTIONS[session.status],
        price=session.price,
        delivery_type=session.delivery_type,
        video_link=session.video_link,
        room=session.room,
        notes=session.notes,
        completion_summary=session.completion_summary,
        feedback=session.feedback,
        student_rating=session.student_rating,
        tutor_rating=session.tutor_rating,
        confirmed_at=session.confirmed_at,
        started_at=session.started_at,
        completed_at=session.completed_at,
        cancelled_at=session.cancelled_at,
        created_at=session.created_at,
        updated_at=session.updated_at,
        can_be_modified=can_be_modified(session.status, session.date_time, now),
        can_be_cancelled=can_be_cancelled(session.status),
        can_be_completed=can_be_completed(session.status),
        can_be_rescheduled=can_be_rescheduled(session.status, session.date_time, now, cutoff),
        is_upcoming=session.status in UPCOMING_STATUSES and session.date_time > now,
        is_today=session.date_time.date() == now.date(),
        minutes_until_start=int((session.date_time - now).total_seconds() // 60),
    )


def map_sessions_to_response(
    sessions: Sequence[SessionModel],
    now: datetime,
    settings: BookingSettings,
) -> list[SessionResponse]:
    return [map_session_to_response(s, now, settings) for s in sessions]


def map_request_to_response(
    request: SessionRequestModel,
    now: datetime,
    settings: BookingSettings,
    session_id: UUID | None = None,
) -> SessionRequestResponse:
    """
    Transform a SessionRequestModel into SessionRequestResponse.

    Args:
        request: Stored session request
        now: Current time (naive UTC)
        settings: Booking rules (modification cutoff)
        session_id: Session booked from the request, if known

    Returns:
        SessionRequestResponse: Pydantic model for API response
    """
    cutoff = timedelta(minutes=settings.reschedule_cutoff_minutes)
    return SessionRequestResponse(
        id=request.id,
        student_id=request.student_id,
        tutor_id=request.tutor_id,
        subject_id=request.subject_id,
        desired_date_time=request.desired_date_time,
        desired_duration_minutes=request.desired_duration_minutes,
        message=request.message,
        urgency=request.urgency,
        max_budget=request.max_budget,
        status=request.status,
        status_description=REQUEST_STATUS_DESCRIPTIONS[request.status],
        tutor_response=request.tutor_response,
        responded_at=request.responded_at,
        proposed_alternative_dates=request.alternative_dates,
        proposed_price=request.proposed_price,
        proposed_duration_minutes=request.proposed_duration_minutes,
        date_flexible=request.date_flexible,
        accepts_online=request.accepts_online,
        accepts_in_person=request.accepts_in_person,
        created_at=request.created_at,
        updated_at=request.updated_at,
        can_be_modified=request_can_be_modified(request.status, request.desired_date_time, now, cutoff),
        session_id=session_id,
    )


def map_requests_to_response(
    requests: Sequence[SessionRequestModel],
    now: datetime,
    settings: BookingSettings,
) -> list[SessionRequestResponse]:
    return [map_request_to_response(r, now, settings) for r in requests]


def map_conflicts_to_response(conflicts: Sequence[SchedulingConflict]) -> list[ConflictResponse]:
    return [
        ConflictResponse(
            reason=c.reason,
            session_id=c.session_id,
            start=c.start,
            end=c.end,
            description=c.description,
        )
        for c in conflicts
    ]


def map_slots_to_response(slots: Sequence[CandidateSlot]) -> list[CandidateSlotResponse]:
    return [
        CandidateSlotResponse(
            start=s.start,
            end=s.end,
            duration_minutes=s.duration_minutes,
            confidence=s.confidence,
        )
        for s in slots
    ]
