"""
Availability checker.

Loads the active sessions around a window and runs the pure overlap logic on
them. Read-only: nothing here writes or commits.

Dependencies: tutoring.boundary.db.CRUD, tutoring.core.scheduling
System role: Store-backed conflict detection for booking writes and queries
"""

import logging
from dataclasses import dataclass, field
from datetime import datetime, timedelta
from typing import Any, Sequence

from sqlalchemy.ext.asyncio import AsyncSession

from tutoring.boundary.db.CRUD.session_crud import session_crud
from tutoring.boundary.db.models.session_model import SessionModel
from tutoring.configs import BookingSettings, get_settings
from tutoring.core.clock import Clock, to_naive_utc, utc_now
from tutoring.core.scheduling.availability import (
    ParticipantRole,
    SchedulingConflict,
    find_conflicts,
    participant_conflicts,
)

logger = logging.getLogger(__name__)


@dataclass
class SchedulingValidation:
    """Outcome of validate_scheduling: valid only when `errors` is empty."""

    valid: bool
    conflicts: list[SchedulingConflict] = field(default_factory=list)
    errors: list[str] = field(default_factory=list)


@dataclass(frozen=True)
class AvailabilityQuery:
    tutor_id: int
    student_id: int
    start: datetime
    duration_minutes: int


@dataclass
class AvailabilityResult:
    query: AvailabilityQuery
    available: bool
    conflicts: list[SchedulingConflict] = field(default_factory=list)


class AvailabilityChecker:
    """Conflict detection over stored sessions."""

    def __init__(
        self,
        db: AsyncSession,
        settings: BookingSettings | None = None,
        clock: Clock = utc_now,
    ) -> None:
        """
        Initialize availability checker.

        Args:
            db: Async SQLAlchemy session
            settings: Booking rules (defaults to application settings)
            clock: Source of the current time
        """
        self.db = db
        self.settings = settings or get_settings().booking
        self.clock = clock

    async def load_active_sessions(
        self,
        window_start: datetime,
        window_end: datetime,
        tutor_id: int | None = None,
        student_id: int | None = None,
    ) -> Sequence[SessionModel]:
        return await session_crud.get_active_in_window(
            self.db,
            to_naive_utc(window_start),
            to_naive_utc(window_end),
            self.settings.max_duration_minutes,
            tutor_id=tutor_id,
            student_id=student_id,
        )

    async def has_conflict(
        self,
        participant_id: int,
        window_start: datetime,
        window_end: datetime,
        role: ParticipantRole,
        exclude_session_id: Any = None,
    ) -> bool:
        """
        Check whether a participant has an active session overlapping a window.

        Args:
            participant_id: Tutor or student ID
            window_start: Window start (inclusive)
            window_end: Window end (exclusive)
            role: Which side participant_id is on
            exclude_session_id: Session to ignore (the one being moved)

        Returns:
            bool: True if any overlapping active session exists
        """
        window_start, window_end = to_naive_utc(window_start), to_naive_utc(window_end)
        kwargs = {"tutor_id": participant_id} if role is ParticipantRole.TUTOR else {"student_id": participant_id}
        sessions = await self.load_active_sessions(window_start, window_end, **kwargs)
        return bool(participant_conflicts(
            sessions, participant_id, role, window_start, window_end, exclude_session_id,
        ))

    async def is_tutor_available(
        self,
        tutor_id: int,
        start: datetime,
        duration_minutes: int,
        exclude_session_id: Any = None,
    ) -> bool:
        end = start + timedelta(minutes=duration_minutes)
        return not await self.has_conflict(tutor_id, start, end, ParticipantRole.TUTOR, exclude_session_id)

    async def is_student_available(
        self,
        student_id: int,
        start: datetime,
        duration_minutes: int,
        exclude_session_id: Any = None,
    ) -> bool:
        end = start + timedelta(minutes=duration_minutes)
        return not await self.has_conflict(student_id, start, end, ParticipantRole.STUDENT, exclude_session_id)

    async def are_both_available(
        self,
        tutor_id: int,
        student_id: int,
        start: datetime,
        duration_minutes: int,
        exclude_session_id: Any = None,
    ) -> bool:
        end = start + timedelta(minutes=duration_minutes)
        found = await self.conflicts(tutor_id, student_id, start, end, exclude_session_id)
        return not found

    async def conflicts(
        self,
        tutor_id: int | None,
        student_id: int | None,
        start: datetime,
        end: datetime,
        exclude_session_id: Any = None,
    ) -> list[SchedulingConflict]:
        """
        List every active session colliding with a window for either participant.

        Args:
            tutor_id: Tutor to check (None skips the tutor side)
            student_id: Student to check (None skips the student side)
            start: Window start (inclusive)
            end: Window end (exclusive)
            exclude_session_id: Session to ignore

        Returns:
            list[SchedulingConflict]: Tutor conflicts first, then student conflicts
        """
        start, end = to_naive_utc(start), to_naive_utc(end)
        sessions = await self.load_active_sessions(start, end, tutor_id=tutor_id, student_id=student_id)
        return find_conflicts(sessions, tutor_id, student_id, start, end, exclude_session_id)

    async def validate_scheduling(
        self,
        tutor_id: int,
        student_id: int,
        start: datetime,
        duration_minutes: int,
        exclude_session_id: Any = None,
    ) -> SchedulingValidation:
        """
        Diagnose whether a booking could be made, without raising.

        Reports conflicts, short advance notice and out-of-range durations
        together so a caller can show all problems at once.
        """
        start = to_naive_utc(start)
        errors: list[str] = []

        earliest = self.clock() + timedelta(minutes=self.settings.min_advance_notice_minutes)
        if start < earliest:
            errors.append(
                f"Sessions must be booked at least {self.settings.min_advance_notice_minutes} minutes in advance"
            )
        if not self.settings.min_duration_minutes <= duration_minutes <= self.settings.max_duration_minutes:
            errors.append(
                f"Duration must be between {self.settings.min_duration_minutes} "
                f"and {self.settings.max_duration_minutes} minutes"
            )

        found = await self.conflicts(
            tutor_id, student_id, start, start + timedelta(minutes=duration_minutes), exclude_session_id,
        )
        if found:
            errors.append(f"Scheduling conflicts found: {len(found)}")

        return SchedulingValidation(valid=not errors, conflicts=found, errors=errors)

    async def check_bulk_availability(
        self,
        queries: Sequence[AvailabilityQuery],
    ) -> list[AvailabilityResult]:
        """Check several candidate bookings independently, in input order."""
        results = []
        for query in queries:
            end = query.start + timedelta(minutes=query.duration_minutes)
            found = await self.conflicts(query.tutor_id, query.student_id, query.start, end)
            results.append(AvailabilityResult(query=query, available=not found, conflicts=found))
        logger.debug("Bulk availability checked", extra={"queries": len(queries)})
        return results
