"""
Session request schemas.

Request/response schemas for booking negotiation.

Dependencies: pydantic
System role: Session request API contracts
"""

import uuid
from datetime import datetime
from decimal import Decimal

from pydantic import BaseModel, Field

from tutoring.core.booking_states import RequestStatus, Urgency
from tutoring.models.session import SessionResponse


class SessionRequestCreate(BaseModel):
    """Request schema for a student asking a tutor for a session."""

    student_id: int = Field(..., gt=0)
    tutor_id: int = Field(..., gt=0)
    subject_id: int = Field(..., gt=0)
    desired_date_time: datetime = Field(..., description="Wanted start time (UTC)")
    desired_duration_minutes: int = Field(..., gt=0)
    message: str = Field(..., min_length=1, max_length=4096)
    urgency: Urgency = Urgency.MEDIUM
    max_budget: Decimal = Field(..., ge=0)
    date_flexible: bool = False
    accepts_online: bool = True
    accepts_in_person: bool = False


class SessionRequestUpdate(BaseModel):
    """Request schema for editing a pending request."""

    desired_date_time: datetime | None = None
    desired_duration_minutes: int | None = Field(None, gt=0)
    message: str | None = Field(None, min_length=1, max_length=4096)
    urgency: Urgency | None = None
    max_budget: Decimal | None = Field(None, ge=0)
    date_flexible: bool | None = None
    accepts_online: bool | None = None
    accepts_in_person: bool | None = None


class SessionRequestRespond(BaseModel):
    """Tutor's answer, optionally with counter-proposals."""

    status: RequestStatus
    response_text: str | None = Field(None, max_length=4096)
    proposed_price: Decimal | None = Field(None, ge=0)
    proposed_duration_minutes: int | None = Field(None, gt=0)
    proposed_alternative_dates: list[datetime] | None = Field(None, max_length=3)


class SessionRequestAccept(BaseModel):
    response_text: str | None = Field(None, max_length=4096)
    proposed_price: Decimal | None = Field(None, ge=0)
    proposed_duration_minutes: int | None = Field(None, gt=0)


class SessionRequestReject(BaseModel):
    response_text: str | None = Field(None, max_length=4096)
    proposed_alternative_dates: list[datetime] | None = Field(None, max_length=3)
    proposed_price: Decimal | None = Field(None, ge=0)
    proposed_duration_minutes: int | None = Field(None, gt=0)


class SessionRequestResponse(BaseModel):
    """Response schema for session request operations."""

    id: uuid.UUID
    student_id: int
    tutor_id: int
    subject_id: int
    desired_date_time: datetime
    desired_duration_minutes: int
    message: str
    urgency: Urgency
    max_budget: Decimal
    status: RequestStatus
    status_description: str
    tutor_response: str | None
    responded_at: datetime | None
    proposed_alternative_dates: list[datetime] | None
    proposed_price: Decimal | None
    proposed_duration_minutes: int | None
    date_flexible: bool
    accepts_online: bool
    accepts_in_person: bool
    created_at: datetime
    updated_at: datetime
    can_be_modified: bool
    session_id: uuid.UUID | None = None


class SessionRequestAnswerResponse(BaseModel):
    """Answered request plus the session booked from it, if accepted."""

    request: SessionRequestResponse
    session: SessionResponse | None = None
