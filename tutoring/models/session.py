"""
Session schemas.

Request/response schemas for session lifecycle operations.

Dependencies: pydantic
System role: Session API contracts
"""

import uuid
from datetime import datetime
from decimal import Decimal

from pydantic import BaseModel, Field

from tutoring.core.booking_states import DeliveryType, SessionStatus


class SessionCreate(BaseModel):
    """Request schema for booking a session directly."""

    tutor_id: int = Field(..., gt=0)
    student_id: int = Field(..., gt=0)
    subject_id: int = Field(..., gt=0)
    date_time: datetime = Field(..., description="Start time (UTC)")
    duration_minutes: int = Field(..., gt=0, description="Session length in minutes")
    price: Decimal = Field(..., ge=0)
    delivery_type: DeliveryType = DeliveryType.ONLINE
    video_link: str | None = Field(None, max_length=1024)
    room: str | None = Field(None, max_length=255)
    notes: str | None = None
    requires_confirmation: bool = Field(True, description="False books the session as confirmed")


class SessionUpdate(BaseModel):
    """Request schema for editing a session; notes are appended to the history."""

    price: Decimal | None = Field(None, ge=0)
    notes: str | None = None
    room: str | None = Field(None, max_length=255)
    video_link: str | None = Field(None, max_length=1024)
    delivery_type: DeliveryType | None = None
    duration_minutes: int | None = Field(None, gt=0)


class SessionComplete(BaseModel):
    notes: str | None = None
    completion_summary: str | None = None
    feedback: str | None = None
    student_rating: int | None = Field(None, ge=1, le=5)
    tutor_rating: int | None = Field(None, ge=1, le=5)


class SessionCancel(BaseModel):
    reason: str | None = Field(None, max_length=1000)
    cancelled_by: int | None = Field(None, description="Participant cancelling; the other one is notified")


class SessionReschedule(BaseModel):
    new_date_time: datetime = Field(..., description="New start time (UTC)")
    reason: str | None = Field(None, max_length=1000)
    rescheduled_by: int | None = Field(None, description="Participant rescheduling; the other one is notified")


class SessionResponse(BaseModel):
    """Response schema for session operations, with derived view flags."""

    id: uuid.UUID
    tutor_id: int
    student_id: int
    subject_id: int
    request_id: uuid.UUID | None
    date_time: datetime
    end_time: datetime
    duration_minutes: int
    status: SessionStatus
    status_description: str
    price: Decimal
    delivery_type: DeliveryType
    video_link: str | None
    room: str | None
    notes: str | None
    completion_summary: str | None
    feedback: str | None
    student_rating: int | None
    tutor_rating: int | None
    confirmed_at: datetime | None
    started_at: datetime | None
    completed_at: datetime | None
    cancelled_at: datetime | None
    created_at: datetime
    updated_at: datetime
    can_be_modified: bool
    can_be_cancelled: bool
    can_be_completed: bool
    can_be_rescheduled: bool
    is_upcoming: bool
    is_today: bool
    minutes_until_start: int
