"""
Session lifecycle service.

Owns the session state machine: creation with conflict checks, the
confirm / start / complete / cancel transitions, rescheduling, field edits and
deletion. Every write commits through `transaction()`; a failure rolls the
whole operation back. Notifications go out after the commit.

Dependencies: tutoring.boundary.db.CRUD, tutoring.core
System role: Session use case orchestration
"""

import logging
from contextlib import asynccontextmanager
from datetime import datetime, timedelta
from decimal import Decimal
from typing import Any, AsyncIterator, Sequence
from uuid import UUID

from sqlalchemy.ext.asyncio import AsyncSession

from tutoring.application.services.availability_checker import AvailabilityChecker
from tutoring.boundary.db.connection import transaction
from tutoring.boundary.db.CRUD.session_crud import SessionFilters, session_crud
from tutoring.boundary.db.CRUD.sweep_action_crud import sweep_action_crud
from tutoring.boundary.db.models.session_model import SessionModel
from tutoring.configs import BookingSettings, get_settings
from tutoring.core.booking_states import (
    DeliveryType,
    SessionStatus,
    SessionTransition,
    can_be_deleted,
    can_be_modified,
    can_be_rescheduled,
    next_session_status,
)
from tutoring.core.clock import Clock, to_naive_utc, utc_now
from tutoring.core.exceptions import (
    ConflictError,
    InvalidStateTransitionError,
    NotFoundError,
    ValidationError,
)
from tutoring.core.notifications import SessionNotifier
from tutoring.core.participant_locks import ParticipantLocks, participant_locks
from tutoring.observability.log_utils import session_log_context

logger = logging.getLogger(__name__)

EDITABLE_FIELDS = frozenset({"price", "notes", "room", "video_link", "delivery_type", "duration_minutes"})
NO_SHOW_NOTE = "Session marked as missed"

_TRANSITION_TIMESTAMPS = {
    SessionTransition.CONFIRM: "confirmed_at",
    SessionTransition.START: "started_at",
    SessionTransition.COMPLETE: "completed_at",
    SessionTransition.CANCEL: "cancelled_at",
}


def apply_transition(session: SessionModel, transition: SessionTransition, now: datetime) -> SessionStatus:
    """
    Move a loaded session through one state machine transition (no flush).

    Raises:
        InvalidStateTransitionError: If the transition is illegal from the current status
    """
    previous = session.status
    session.status = next_session_status(session.status, transition, session.id)
    setattr(session, _TRANSITION_TIMESTAMPS[transition], now)
    logger.info(
        "Session transition applied",
        extra={
            **session_log_context(session),
            "transition": transition.value,
            "from_status": previous.value,
        },
    )
    return session.status


def _format_time(value: datetime) -> str:
    return value.strftime("%Y-%m-%d %H:%M")


class SessionLifecycleService:
    """Session lifecycle orchestrator."""

    def __init__(
        self,
        db: AsyncSession,
        notifier: SessionNotifier | None = None,
        settings: BookingSettings | None = None,
        clock: Clock = utc_now,
        locks: ParticipantLocks = participant_locks,
    ) -> None:
        """
        Initialize session lifecycle service.

        Args:
            db: Async SQLAlchemy session
            notifier: Booking event notifier (None disables notifications)
            settings: Booking rules (defaults to application settings)
            clock: Source of the current time
            locks: Participant lock registry shared by booking writers
        """
        self.db = db
        self.notifier = notifier
        self.settings = settings or get_settings().booking
        self.clock = clock
        self.locks = locks
        self.availability = AvailabilityChecker(db, self.settings, clock)

    def _validate_duration(self, duration_minutes: int, field: str = "duration_minutes") -> None:
        if not self.settings.min_duration_minutes <= duration_minutes <= self.settings.max_duration_minutes:
            raise ValidationError(
                f"Duration must be between {self.settings.min_duration_minutes} "
                f"and {self.settings.max_duration_minutes} minutes",
                field=field,
            )

    def _validate_price(self, price: Decimal, field: str = "price") -> None:
        if price < 0 or price > self.settings.max_price:
            raise ValidationError(f"Price must be between 0 and {self.settings.max_price}", field=field)

    def _validate_future(self, date_time: datetime, field: str = "date_time") -> None:
        if date_time <= self.clock():
            raise ValidationError("Session time must be in the future", field=field)

    async def _ensure_no_conflicts(
        self,
        tutor_id: int,
        student_id: int,
        start: datetime,
        duration_minutes: int,
        exclude_session_id: Any = None,
    ) -> None:
        end = start + timedelta(minutes=duration_minutes)
        found = await self.availability.conflicts(tutor_id, student_id, start, end, exclude_session_id)
        if found:
            logger.info(
                "Booking rejected by scheduling conflict",
                extra={
                    "tutor_id": tutor_id,
                    "student_id": student_id,
                    "start": start.isoformat(),
                    "conflicts": len(found),
                },
            )
            raise ConflictError("The requested time conflicts with an existing session", found)

    async def _notify(self, method: str, *args, **kwargs) -> None:
        if self.notifier is not None:
            await getattr(self.notifier, method)(*args, **kwargs)

    async def get_session(self, session_id: UUID) -> SessionModel:
        """
        Get session by ID.

        Raises:
            NotFoundError: If the session does not exist
        """
        session = await session_crud.get_by_id(self.db, session_id)
        if session is None:
            raise NotFoundError("session", session_id)
        return session

    @asynccontextmanager
    async def _locked_session(self, session_id: UUID) -> AsyncIterator[SessionModel]:
        """
        Yield the session re-read under both participants' locks inside a transaction.

        Status guards must run on the yielded row; a writer that committed while
        we waited for the locks is visible there.

        Raises:
            NotFoundError: Unknown session, or deleted while waiting
        """
        session = await self.get_session(session_id)
        async with self.locks.hold(session.tutor_id, session.student_id):
            async with transaction(self.db):
                current = await session_crud.get_for_update(self.db, session_id)
                if current is None:
                    raise NotFoundError("session", session_id)
                yield current

    async def stage_session(
        self,
        tutor_id: int,
        student_id: int,
        subject_id: int,
        date_time: datetime,
        duration_minutes: int,
        price: Decimal,
        delivery_type: DeliveryType = DeliveryType.ONLINE,
        video_link: str | None = None,
        room: str | None = None,
        notes: str | None = None,
        request_id: UUID | None = None,
        requires_confirmation: bool = True,
    ) -> SessionModel:
        """
        Validate, conflict-check and flush a new session without committing.

        The caller must hold both participants' locks and commit (or roll back)
        the surrounding transaction.

        Raises:
            ValidationError: Past time, bad duration or price, tutor equals student
            ConflictError: Either participant is already booked in the window
        """
        date_time = to_naive_utc(date_time)
        if tutor_id == student_id:
            raise ValidationError("Tutor and student must be different participants", field="student_id")
        self._validate_future(date_time)
        self._validate_duration(duration_minutes)
        self._validate_price(price)

        await self._ensure_no_conflicts(tutor_id, student_id, date_time, duration_minutes)

        now = self.clock()
        status = SessionStatus.REQUESTED if requires_confirmation else SessionStatus.CONFIRMED
        return await session_crud.create(
            self.db,
            tutor_id=tutor_id,
            student_id=student_id,
            subject_id=subject_id,
            request_id=request_id,
            date_time=date_time,
            duration_minutes=duration_minutes,
            status=status,
            price=price,
            delivery_type=delivery_type,
            video_link=video_link,
            room=room,
            notes=notes,
            confirmed_at=None if requires_confirmation else now,
        )

    async def create_session(
        self,
        tutor_id: int,
        student_id: int,
        subject_id: int,
        date_time: datetime,
        duration_minutes: int,
        price: Decimal,
        delivery_type: DeliveryType = DeliveryType.ONLINE,
        video_link: str | None = None,
        room: str | None = None,
        notes: str | None = None,
        requires_confirmation: bool = True,
    ) -> SessionModel:
        """
        Book a new session directly.

        Args:
            tutor_id: Tutor participant ID
            student_id: Student participant ID
            subject_id: Subject ID
            date_time: Start time (must be in the future)
            duration_minutes: Length within the configured bounds
            price: Agreed price within the configured bounds
            delivery_type: ONLINE or IN_PERSON
            video_link: Meeting link for online sessions
            room: Location for in-person sessions
            notes: Initial notes
            requires_confirmation: False books it straight into CONFIRMED

        Returns:
            SessionModel: The stored session

        Raises:
            ValidationError: Invalid input
            ConflictError: Either participant is already booked in the window
        """
        async with self.locks.hold(tutor_id, student_id):
            async with transaction(self.db):
                session = await self.stage_session(
                    tutor_id,
                    student_id,
                    subject_id,
                    date_time,
                    duration_minutes,
                    price,
                    delivery_type=delivery_type,
                    video_link=video_link,
                    room=room,
                    notes=notes,
                    requires_confirmation=requires_confirmation,
                )

        logger.info("Session created", extra=session_log_context(session))
        if session.status is SessionStatus.CONFIRMED:
            await self._notify("session_confirmed", session)
        else:
            await self._notify("session_requested", session)
        return session

    async def confirm_session(self, session_id: UUID) -> SessionModel:
        async with self._locked_session(session_id) as session:
            apply_transition(session, SessionTransition.CONFIRM, self.clock())
        await self._notify("session_confirmed", session)
        return session

    async def start_session(self, session_id: UUID) -> SessionModel:
        async with self._locked_session(session_id) as session:
            apply_transition(session, SessionTransition.START, self.clock())
        await self._notify("session_started", session)
        return session

    async def complete_session(
        self,
        session_id: UUID,
        notes: str | None = None,
        completion_summary: str | None = None,
        feedback: str | None = None,
        student_rating: int | None = None,
        tutor_rating: int | None = None,
    ) -> SessionModel:
        """
        Finish a running session and record its outcome.

        Raises:
            NotFoundError: Unknown session
            ValidationError: Rating outside 1-5
            InvalidStateTransitionError: Session is not in progress
        """
        for name, rating in (("student_rating", student_rating), ("tutor_rating", tutor_rating)):
            if rating is not None and not 1 <= rating <= 5:
                raise ValidationError("Ratings must be between 1 and 5", field=name)

        async with self._locked_session(session_id) as session:
            apply_transition(session, SessionTransition.COMPLETE, self.clock())
            if notes:
                session.append_note(notes)
            session.completion_summary = completion_summary
            session.feedback = feedback
            session.student_rating = student_rating
            session.tutor_rating = tutor_rating

        await self._notify("session_completed", session)
        return session

    async def cancel_session(
        self,
        session_id: UUID,
        reason: str | None = None,
        cancelled_by: int | None = None,
    ) -> SessionModel:
        """
        Cancel an active session, recording the reason in its notes.

        Raises:
            NotFoundError: Unknown session
            InvalidStateTransitionError: Session already completed or cancelled
        """
        async with self._locked_session(session_id) as session:
            apply_transition(session, SessionTransition.CANCEL, self.clock())
            if reason:
                session.append_note(f"Cancellation Reason: {reason}")

        logger.info(
            "Session cancelled",
            extra={"session_id": str(session.id), "cancelled_by": cancelled_by},
        )
        await self._notify("session_cancelled", session, cancelled_by=cancelled_by, reason=reason)
        return session

    def _ensure_reschedulable(self, session: SessionModel) -> None:
        cutoff = timedelta(minutes=self.settings.reschedule_cutoff_minutes)
        if not can_be_rescheduled(session.status, session.date_time, self.clock(), cutoff):
            raise InvalidStateTransitionError("session", session.id, session.status.value, "reschedule")

    async def reschedule_session(
        self,
        session_id: UUID,
        new_date_time: datetime,
        reason: str | None = None,
        rescheduled_by: int | None = None,
    ) -> SessionModel:
        """
        Move a session to a new start time, keeping its status.

        Requested sessions can always move; confirmed ones only while their
        current start is further ahead than the reschedule cutoff.

        Args:
            session_id: Session UUID
            new_date_time: New start (must be in the future)
            reason: Why it moved, appended to the notes
            rescheduled_by: Participant who moved it; the other one is notified

        Returns:
            SessionModel: The moved session

        Raises:
            NotFoundError: Unknown session
            InvalidStateTransitionError: Status or cutoff forbids rescheduling
            ValidationError: New time not in the future
            ConflictError: New window collides with another active session
        """
        new_date_time = to_naive_utc(new_date_time)
        self._validate_future(new_date_time, field="new_date_time")

        async with self._locked_session(session_id) as session:
            self._ensure_reschedulable(session)
            previous_time = session.date_time
            await self._ensure_no_conflicts(
                session.tutor_id,
                session.student_id,
                new_date_time,
                session.duration_minutes,
                exclude_session_id=session.id,
            )
            session.date_time = new_date_time
            session.append_note(
                f"Rescheduled from {_format_time(previous_time)} to {_format_time(new_date_time)}. "
                f"Reason: {reason or 'not specified'}"
            )
            await sweep_action_crud.clear_reminders(self.db, session.id)

        logger.info(
            "Session rescheduled",
            extra={
                "session_id": str(session.id),
                "from": previous_time.isoformat(),
                "to": new_date_time.isoformat(),
            },
        )
        await self._notify("session_rescheduled", session, previous_time, rescheduled_by=rescheduled_by)
        return session

    async def update_session(self, session_id: UUID, **fields) -> SessionModel:
        """
        Edit price, notes, room, video link, delivery type or duration.

        Notes are appended to the history. A duration change re-checks
        conflicts for both participants.

        Raises:
            NotFoundError: Unknown session
            ValidationError: Unknown field or invalid value
            InvalidStateTransitionError: Session running, finished or already started
            ConflictError: Longer duration collides with another session
        """
        unknown = set(fields) - EDITABLE_FIELDS
        if unknown:
            raise ValidationError(f"Fields cannot be updated: {', '.join(sorted(unknown))}")
        if fields.get("price") is not None:
            self._validate_price(fields["price"])
        new_duration = fields.get("duration_minutes")
        if new_duration is not None:
            self._validate_duration(new_duration)

        async with self._locked_session(session_id) as session:
            if not can_be_modified(session.status, session.date_time, self.clock()):
                raise InvalidStateTransitionError("session", session.id, session.status.value, "update")
            if new_duration is not None and new_duration != session.duration_minutes:
                await self._ensure_no_conflicts(
                    session.tutor_id,
                    session.student_id,
                    session.date_time,
                    new_duration,
                    exclude_session_id=session.id,
                )
            for name, value in fields.items():
                if value is None:
                    continue
                if name == "notes":
                    session.append_note(value)
                else:
                    setattr(session, name, value)

        logger.info(
            "Session updated",
            extra={"session_id": str(session.id), "fields": sorted(fields)},
        )
        return session

    async def delete_session(self, session_id: UUID) -> None:
        """
        Delete a session that has not started.

        Raises:
            NotFoundError: Unknown session
            InvalidStateTransitionError: Session not requested or confirmed
        """
        async with self._locked_session(session_id) as session:
            if not can_be_deleted(session.status):
                raise InvalidStateTransitionError("session", session.id, session.status.value, "delete")
            await sweep_action_crud.clear_session(self.db, session.id)
            await session_crud.delete_by_id(self.db, session.id)
        logger.info("Session deleted", extra={"session_id": str(session_id)})

    async def get_tutor_sessions(
        self,
        tutor_id: int,
        status: SessionStatus | None = None,
        limit: int | None = None,
        offset: int = 0,
    ) -> Sequence[SessionModel]:
        return await session_crud.get_by_tutor(self.db, tutor_id, status, limit, offset)

    async def get_student_sessions(
        self,
        student_id: int,
        status: SessionStatus | None = None,
        limit: int | None = None,
        offset: int = 0,
    ) -> Sequence[SessionModel]:
        return await session_crud.get_by_student(self.db, student_id, status, limit, offset)

    async def get_sessions_by_status(self, status: SessionStatus) -> Sequence[SessionModel]:
        return await session_crud.get_by_status(self.db, status)

    async def get_sessions_in_range(
        self,
        start: datetime,
        end: datetime,
        status: SessionStatus | None = None,
    ) -> Sequence[SessionModel]:
        start, end = to_naive_utc(start), to_naive_utc(end)
        if end <= start:
            raise ValidationError("End date must be after start date", field="end")
        return await session_crud.get_by_date_range(self.db, start, end, status)

    async def get_subject_sessions(
        self,
        subject_id: int,
        status: SessionStatus | None = None,
    ) -> Sequence[SessionModel]:
        return await session_crud.get_by_subject(self.db, subject_id, status)

    async def get_upcoming_sessions(
        self,
        tutor_id: int | None = None,
        student_id: int | None = None,
        limit: int | None = 10,
    ) -> Sequence[SessionModel]:
        return await session_crud.get_upcoming(
            self.db, self.clock(), tutor_id=tutor_id, student_id=student_id, limit=limit,
        )

    async def get_todays_sessions(
        self,
        tutor_id: int | None = None,
        student_id: int | None = None,
    ) -> Sequence[SessionModel]:
        """Sessions starting on the current UTC day."""
        day_start = self.clock().replace(hour=0, minute=0, second=0, microsecond=0)
        filters = SessionFilters(
            tutor_id=tutor_id,
            student_id=student_id,
            start_date=day_start,
            end_date=day_start + timedelta(days=1),
        )
        items, _ = await session_crud.filter(self.db, filters)
        return items

    async def search_sessions(self, term: str, status: SessionStatus | None = None) -> Sequence[SessionModel]:
        if not term or not term.strip():
            raise ValidationError("Search term cannot be empty", field="term")
        return await session_crud.search(self.db, term.strip(), status)

    async def filter_sessions(
        self,
        filters: SessionFilters,
        limit: int | None = None,
        offset: int = 0,
    ) -> tuple[Sequence[SessionModel], int]:
        return await session_crud.filter(self.db, filters, limit, offset)

    async def get_expired_confirmed_sessions(self) -> Sequence[SessionModel]:
        """Confirmed sessions whose start time has already passed."""
        return await session_crud.get_confirmed_started_before(self.db, self.clock())
