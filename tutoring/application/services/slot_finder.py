"""
Slot finder service.

Loads the participants' active sessions for a horizon once and runs the lazy
slot search over them. Validates search parameters before touching the store.

Dependencies: tutoring.boundary.db.CRUD, tutoring.core.scheduling
System role: Free-time search for booking and rescheduling
"""

import logging
from datetime import datetime, timedelta
from typing import Any, Iterable
from uuid import UUID

from sqlalchemy.ext.asyncio import AsyncSession

from tutoring.boundary.db.CRUD.session_crud import session_crud
from tutoring.configs import BookingSettings, get_settings
from tutoring.core.clock import Clock, to_naive_utc, utc_now
from tutoring.core.exceptions import NotFoundError, ValidationError
from tutoring.core.scheduling.slots import (
    CandidateSlot,
    SlotPreferences,
    iter_free_windows,
    rank_slots,
)

logger = logging.getLogger(__name__)

NEXT_SLOT_SEARCH_DAYS = 30
SUGGESTION_LEAD = timedelta(hours=2)
ALTERNATIVES_BEFORE = timedelta(days=3)
ALTERNATIVES_AFTER = timedelta(days=7)


class SlotFinder:
    """Ranked free-slot search for a tutor, optionally together with a student."""

    def __init__(
        self,
        db: AsyncSession,
        settings: BookingSettings | None = None,
        clock: Clock = utc_now,
    ) -> None:
        self.db = db
        self.settings = settings or get_settings().booking
        self.clock = clock

    def _validate(
        self,
        horizon_start: datetime,
        horizon_end: datetime,
        duration_minutes: int,
        max_results: int,
    ) -> None:
        if not self.settings.min_duration_minutes <= duration_minutes <= self.settings.max_duration_minutes:
            raise ValidationError(
                f"Duration must be between {self.settings.min_duration_minutes} "
                f"and {self.settings.max_duration_minutes} minutes",
                field="duration_minutes",
            )
        if horizon_end <= horizon_start:
            raise ValidationError("Search horizon end must be after its start", field="horizon_end")
        if horizon_end - horizon_start > timedelta(days=self.settings.max_search_days):
            raise ValidationError(
                f"Search horizon cannot exceed {self.settings.max_search_days} days",
                field="horizon_end",
            )
        if max_results < 1:
            raise ValidationError("max_results must be at least 1", field="max_results")

    async def find_slots(
        self,
        tutor_id: int,
        horizon_start: datetime,
        horizon_end: datetime,
        duration_minutes: int,
        student_id: int | None = None,
        preferences: SlotPreferences | None = None,
        max_results: int | None = None,
        exclude_session_id: Any = None,
        exclude_starts: Iterable[datetime] = (),
    ) -> list[CandidateSlot]:
        """
        Find free windows for a tutor (and student) inside a horizon.

        The part of the horizon already in the past is skipped.

        Args:
            tutor_id: Tutor to keep free
            horizon_start: Earliest start to consider
            horizon_end: Latest end to consider
            duration_minutes: Slot length
            student_id: Student to keep free as well (optional)
            preferences: Soft constraints and ranking anchor
            max_results: Result cap (defaults to the configured suggestion count)
            exclude_session_id: Session ignored as a blocker
            exclude_starts: Start times never offered

        Returns:
            list[CandidateSlot]: Best slots, highest confidence first; empty if none

        Raises:
            ValidationError: Bad duration, horizon or result count
        """
        horizon_start, horizon_end = to_naive_utc(horizon_start), to_naive_utc(horizon_end)
        if max_results is None:
            max_results = self.settings.default_max_suggestions
        self._validate(horizon_start, horizon_end, duration_minutes, max_results)

        search_start = max(horizon_start, self.clock())
        if search_start >= horizon_end:
            return []

        sessions = await session_crud.get_active_in_window(
            self.db,
            search_start,
            horizon_end,
            self.settings.max_duration_minutes,
            tutor_id=tutor_id,
            student_id=student_id,
        )

        anchor = preferences.preferred_start if preferences and preferences.preferred_start else search_start
        windows = iter_free_windows(
            sessions,
            tutor_id,
            student_id,
            search_start,
            horizon_end,
            duration_minutes,
            self.settings.slot_granularity_minutes,
            preferences=preferences,
            exclude_session_id=exclude_session_id,
            exclude_starts=[to_naive_utc(value) for value in exclude_starts],
        )
        slots = rank_slots(windows, to_naive_utc(anchor), search_start, horizon_end, max_results)

        logger.debug(
            "Slot search finished",
            extra={
                "tutor_id": tutor_id,
                "student_id": student_id,
                "busy_sessions": len(sessions),
                "slots_found": len(slots),
            },
        )
        return slots

    async def next_available_slot(
        self,
        tutor_id: int,
        duration_minutes: int,
        student_id: int | None = None,
    ) -> CandidateSlot | None:
        """Earliest free slot in the next 30 days, or None."""
        now = self.clock()
        slots = await self.find_slots(
            tutor_id,
            now,
            now + timedelta(days=NEXT_SLOT_SEARCH_DAYS),
            duration_minutes,
            student_id=student_id,
            max_results=1,
        )
        return slots[0] if slots else None

    async def suggest_slots(
        self,
        tutor_id: int,
        student_id: int,
        duration_minutes: int,
        preferences: SlotPreferences | None = None,
        search_days: int | None = None,
        max_results: int | None = None,
    ) -> list[CandidateSlot]:
        """
        Suggest slots around the preferred start, or from two hours ahead.

        Args:
            tutor_id: Tutor to keep free
            student_id: Student to keep free
            duration_minutes: Slot length
            preferences: Soft constraints; preferred_start anchors the search
            search_days: Horizon length (defaults to the configured value)
            max_results: Result cap

        Returns:
            list[CandidateSlot]: Ranked suggestions
        """
        if preferences and preferences.preferred_start:
            start = to_naive_utc(preferences.preferred_start)
        else:
            start = self.clock() + SUGGESTION_LEAD
        days = search_days or self.settings.default_search_days
        return await self.find_slots(
            tutor_id,
            start,
            start + timedelta(days=days),
            duration_minutes,
            student_id=student_id,
            preferences=preferences,
            max_results=max_results,
        )

    async def find_alternative_slots(self, session_id: UUID, count: int = 5) -> list[CandidateSlot]:
        """
        Alternatives for an existing session: same length, three days before to
        seven days after its start, closest first, excluding its current time.

        Raises:
            NotFoundError: If the session does not exist
        """
        session = await session_crud.get_by_id(self.db, session_id)
        if session is None:
            raise NotFoundError("session", session_id)

        return await self.find_slots(
            session.tutor_id,
            session.date_time - ALTERNATIVES_BEFORE,
            session.date_time + ALTERNATIVES_AFTER,
            session.duration_minutes,
            student_id=session.student_id,
            preferences=SlotPreferences(preferred_start=session.date_time),
            max_results=count,
            exclude_session_id=session.id,
            exclude_starts=[session.date_time],
        )
