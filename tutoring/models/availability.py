"""
Availability and slot search schemas.

Dependencies: pydantic
System role: Availability API contracts
"""

import uuid
from datetime import datetime, time
from typing import Annotated

from pydantic import BaseModel, Field

from tutoring.core.scheduling.availability import ConflictReason
from tutoring.core.scheduling.slots import SlotPreferences, TimeOfDay


class ConflictResponse(BaseModel):
    reason: ConflictReason
    session_id: uuid.UUID
    start: datetime
    end: datetime
    description: str


class AvailabilityCheckResponse(BaseModel):
    """Result of checking one proposed booking window."""

    available: bool = Field(description="No participant has an overlapping session")
    valid: bool = Field(description="Available and within notice and duration rules")
    conflicts: list[ConflictResponse]
    errors: list[str]


class SlotPreferencesModel(BaseModel):
    """Soft constraints for slot search."""

    preferred_start: datetime | None = None
    time_of_day: TimeOfDay | None = None
    weekdays: list[Annotated[int, Field(ge=0, le=6)]] | None = Field(None, description="0 = Monday ... 6 = Sunday")
    earliest_time: time | None = None
    latest_time: time | None = None

    def to_domain(self) -> SlotPreferences:
        return SlotPreferences(
            preferred_start=self.preferred_start,
            time_of_day=self.time_of_day,
            weekdays=frozenset(self.weekdays) if self.weekdays else None,
            earliest_time=self.earliest_time,
            latest_time=self.latest_time,
        )


class SlotSearchRequest(BaseModel):
    tutor_id: int = Field(..., gt=0)
    student_id: int | None = Field(None, gt=0)
    horizon_start: datetime
    horizon_end: datetime
    duration_minutes: int = Field(..., gt=0)
    preferences: SlotPreferencesModel | None = None
    max_results: int | None = None


class SlotSuggestionRequest(BaseModel):
    tutor_id: int = Field(..., gt=0)
    student_id: int = Field(..., gt=0)
    duration_minutes: int = Field(..., gt=0)
    preferences: SlotPreferencesModel | None = None
    search_days: int | None = Field(None, gt=0)
    max_results: int | None = None


class CandidateSlotResponse(BaseModel):
    start: datetime
    end: datetime
    duration_minutes: int
    confidence: float
