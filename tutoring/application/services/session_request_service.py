"""
Session request negotiation service.

Owns the session request state machine (pending -> accepted | rejected).
Accepting a request updates it and stages the resulting session in one
transaction under both participants' locks, so a scheduling conflict leaves
the request pending and no session behind.

Dependencies: tutoring.application.services.session_service, tutoring.boundary.db.CRUD
System role: Booking negotiation use case orchestration
"""

import logging
from contextlib import asynccontextmanager
from datetime import datetime, timedelta
from decimal import Decimal
from typing import AsyncIterator, Sequence
from uuid import UUID

from sqlalchemy.ext.asyncio import AsyncSession

from tutoring.application.services.session_service import SessionLifecycleService
from tutoring.boundary.db.connection import transaction
from tutoring.boundary.db.CRUD.session_crud import session_crud
from tutoring.boundary.db.CRUD.session_request_crud import SessionRequestFilters, session_request_crud
from tutoring.boundary.db.models.session_model import SessionModel
from tutoring.boundary.db.models.session_request_model import SessionRequestModel
from tutoring.configs import BookingSettings, get_settings
from tutoring.core.booking_states import (
    DeliveryType,
    RequestStatus,
    RequestTransition,
    Urgency,
    ensure_request_pending,
    next_request_status,
    request_can_be_modified,
)
from tutoring.core.clock import Clock, to_naive_utc, utc_now
from tutoring.core.exceptions import InvalidStateTransitionError, NotFoundError, ValidationError
from tutoring.core.notifications import SessionNotifier
from tutoring.core.participant_locks import ParticipantLocks, participant_locks

logger = logging.getLogger(__name__)

MAX_ALTERNATIVE_DATES = 3
EDITABLE_FIELDS = frozenset({
    "desired_date_time",
    "desired_duration_minutes",
    "message",
    "urgency",
    "max_budget",
    "date_flexible",
    "accepts_online",
    "accepts_in_person",
})
_ANSWERS = {
    RequestStatus.ACCEPTED: RequestTransition.ACCEPT,
    RequestStatus.REJECTED: RequestTransition.REJECT,
}


class RequestNegotiator:
    """Session request negotiation orchestrator."""

    def __init__(
        self,
        db: AsyncSession,
        lifecycle: SessionLifecycleService | None = None,
        notifier: SessionNotifier | None = None,
        settings: BookingSettings | None = None,
        clock: Clock = utc_now,
        locks: ParticipantLocks = participant_locks,
    ) -> None:
        """
        Initialize request negotiator.

        Args:
            db: Async SQLAlchemy session
            lifecycle: Session service used to stage accepted bookings
                (built on the same session when omitted)
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
        self.lifecycle = lifecycle or SessionLifecycleService(
            db, notifier=notifier, settings=self.settings, clock=clock, locks=locks,
        )

    def _validate_request_fields(
        self,
        desired_date_time: datetime | None = None,
        desired_duration_minutes: int | None = None,
        message: str | None = None,
        max_budget: Decimal | None = None,
    ) -> None:
        if desired_date_time is not None and desired_date_time <= self.clock():
            raise ValidationError("Desired date and time must be in the future", field="desired_date_time")
        if desired_duration_minutes is not None and not (
            self.settings.min_duration_minutes <= desired_duration_minutes <= self.settings.max_duration_minutes
        ):
            raise ValidationError(
                f"Duration must be between {self.settings.min_duration_minutes} "
                f"and {self.settings.max_duration_minutes} minutes",
                field="desired_duration_minutes",
            )
        if message is not None and not message.strip():
            raise ValidationError("Message cannot be empty", field="message")
        if max_budget is not None and (max_budget < 0 or max_budget > self.settings.max_price):
            raise ValidationError(f"Budget must be between 0 and {self.settings.max_price}", field="max_budget")

    @staticmethod
    def _validate_delivery_modes(accepts_online: bool, accepts_in_person: bool) -> None:
        if not (accepts_online or accepts_in_person):
            raise ValidationError("At least one delivery mode must be accepted", field="accepts_online")

    def _validate_proposals(
        self,
        proposed_price: Decimal | None,
        proposed_duration_minutes: int | None,
        proposed_alternative_dates: list[datetime] | None,
    ) -> list[datetime] | None:
        if proposed_price is not None and (proposed_price < 0 or proposed_price > self.settings.max_price):
            raise ValidationError(
                f"Proposed price must be between 0 and {self.settings.max_price}", field="proposed_price",
            )
        if proposed_duration_minutes is not None and not (
            self.settings.min_duration_minutes <= proposed_duration_minutes <= self.settings.max_duration_minutes
        ):
            raise ValidationError(
                f"Proposed duration must be between {self.settings.min_duration_minutes} "
                f"and {self.settings.max_duration_minutes} minutes",
                field="proposed_duration_minutes",
            )
        if proposed_alternative_dates is None:
            return None
        if len(proposed_alternative_dates) > MAX_ALTERNATIVE_DATES:
            raise ValidationError(
                f"At most {MAX_ALTERNATIVE_DATES} alternative dates can be proposed",
                field="proposed_alternative_dates",
            )
        now = self.clock()
        dates = [to_naive_utc(value) for value in proposed_alternative_dates]
        if any(value <= now for value in dates):
            raise ValidationError("Alternative dates must be in the future", field="proposed_alternative_dates")
        return dates

    async def _notify(self, method: str, *args) -> None:
        if self.notifier is not None:
            await getattr(self.notifier, method)(*args)

    def _ensure_modifiable(self, request: SessionRequestModel) -> None:
        ensure_request_pending(request.status, request.id, "update")
        cutoff = timedelta(minutes=self.settings.reschedule_cutoff_minutes)
        if not request_can_be_modified(request.status, request.desired_date_time, self.clock(), cutoff):
            raise InvalidStateTransitionError("session_request", request.id, request.status.value, "update")

    @asynccontextmanager
    async def _locked_request(self, request: SessionRequestModel) -> AsyncIterator[SessionRequestModel]:
        """Hold both participants' locks and yield the request re-read inside a transaction."""
        async with self.locks.hold(request.tutor_id, request.student_id):
            async with transaction(self.db):
                # Another writer may have answered or deleted it while we waited for the locks
                current = await session_request_crud.get_for_update(self.db, request.id)
                if current is None:
                    raise NotFoundError("session_request", request.id)
                yield current

    async def get_request(self, request_id: UUID) -> SessionRequestModel:
        """
        Get session request by ID.

        Raises:
            NotFoundError: If the request does not exist
        """
        request = await session_request_crud.get_by_id(self.db, request_id)
        if request is None:
            raise NotFoundError("session_request", request_id)
        return request

    async def get_request_with_session(
        self,
        request_id: UUID,
    ) -> tuple[SessionRequestModel, SessionModel | None]:
        """Request together with the session created from it, if any."""
        request = await self.get_request(request_id)
        session = await session_crud.get_by_request_id(self.db, request.id)
        return request, session

    async def create_request(
        self,
        student_id: int,
        tutor_id: int,
        subject_id: int,
        desired_date_time: datetime,
        desired_duration_minutes: int,
        message: str,
        max_budget: Decimal,
        urgency: Urgency = Urgency.MEDIUM,
        date_flexible: bool = False,
        accepts_online: bool = True,
        accepts_in_person: bool = False,
    ) -> SessionRequestModel:
        """
        Submit a student's request for tutoring time.

        Args:
            student_id: Requesting student
            tutor_id: Requested tutor
            subject_id: Subject to be taught
            desired_date_time: Wanted start (must be in the future)
            desired_duration_minutes: Wanted length
            message: Note to the tutor (non-empty)
            max_budget: Highest acceptable price
            urgency: LOW / MEDIUM / HIGH
            date_flexible: Whether the student accepts other times
            accepts_online: Online delivery acceptable
            accepts_in_person: In-person delivery acceptable

        Returns:
            SessionRequestModel: Stored request in PENDING

        Raises:
            ValidationError: Invalid input
        """
        desired_date_time = to_naive_utc(desired_date_time)
        if student_id == tutor_id:
            raise ValidationError("Student and tutor must be different participants", field="tutor_id")
        self._validate_request_fields(desired_date_time, desired_duration_minutes, message, max_budget)
        self._validate_delivery_modes(accepts_online, accepts_in_person)

        async with transaction(self.db):
            request = await session_request_crud.create(
                self.db,
                student_id=student_id,
                tutor_id=tutor_id,
                subject_id=subject_id,
                desired_date_time=desired_date_time,
                desired_duration_minutes=desired_duration_minutes,
                message=message.strip(),
                urgency=urgency,
                max_budget=max_budget,
                status=RequestStatus.PENDING,
                date_flexible=date_flexible,
                accepts_online=accepts_online,
                accepts_in_person=accepts_in_person,
            )

        logger.info(
            "Session request created",
            extra={
                "request_id": str(request.id),
                "student_id": student_id,
                "tutor_id": tutor_id,
                "urgency": urgency.value,
            },
        )
        await self._notify("request_received", request)
        return request

    async def update_request(self, request_id: UUID, **fields) -> SessionRequestModel:
        """
        Edit a pending request; changed fields are validated again.

        Edits close once the desired start is within the reschedule cutoff.

        Raises:
            NotFoundError: Unknown request
            InvalidStateTransitionError: Request already answered, or its start is too close
            ValidationError: Unknown field or invalid value
        """
        unknown = set(fields) - EDITABLE_FIELDS
        if unknown:
            raise ValidationError(f"Fields cannot be updated: {', '.join(sorted(unknown))}")

        request = await self.get_request(request_id)
        self._ensure_modifiable(request)

        changes = {name: value for name, value in fields.items() if value is not None}
        if "desired_date_time" in changes:
            changes["desired_date_time"] = to_naive_utc(changes["desired_date_time"])
        self._validate_request_fields(
            changes.get("desired_date_time"),
            changes.get("desired_duration_minutes"),
            changes.get("message"),
            changes.get("max_budget"),
        )
        self._validate_delivery_modes(
            changes.get("accepts_online", request.accepts_online),
            changes.get("accepts_in_person", request.accepts_in_person),
        )
        if "message" in changes:
            changes["message"] = changes["message"].strip()

        async with self._locked_request(request) as request:
            self._ensure_modifiable(request)
            await session_request_crud.update(self.db, request, **changes)

        logger.info(
            "Session request updated",
            extra={"request_id": str(request.id), "fields": sorted(changes)},
        )
        return request

    async def respond_to_request(
        self,
        request_id: UUID,
        status: RequestStatus,
        response_text: str | None = None,
        proposed_price: Decimal | None = None,
        proposed_duration_minutes: int | None = None,
        proposed_alternative_dates: list[datetime] | None = None,
    ) -> tuple[SessionRequestModel, SessionModel | None]:
        """
        Record the tutor's answer to a pending request.

        Accepting books a confirmed session at the requested time, priced at
        the proposed price (or the student's budget) and lasting the proposed
        duration (or the desired one). The request update and the new session
        commit together; a conflict leaves both untouched.

        Args:
            request_id: Request UUID
            status: ACCEPTED or REJECTED
            response_text: Tutor's message to the student
            proposed_price: Counter-offer price
            proposed_duration_minutes: Counter-offer duration
            proposed_alternative_dates: Up to three future start times

        Returns:
            tuple: (updated request, created session or None)

        Raises:
            NotFoundError: Unknown request
            ValidationError: Status not ACCEPTED/REJECTED or invalid proposal
            InvalidStateTransitionError: Request already answered
            ConflictError: Accepted time collides with an active session
        """
        transition = _ANSWERS.get(status)
        if transition is None:
            raise ValidationError("Response status must be accepted or rejected", field="status")

        request = await self.get_request(request_id)
        ensure_request_pending(request.status, request.id, transition.value)
        alternative_dates = self._validate_proposals(
            proposed_price, proposed_duration_minutes, proposed_alternative_dates,
        )

        session = None
        async with self._locked_request(request) as request:
            request.status = next_request_status(request.status, transition, request.id)
            request.responded_at = self.clock()
            request.tutor_response = response_text
            request.proposed_price = proposed_price
            request.proposed_duration_minutes = proposed_duration_minutes
            request.proposed_alternative_dates = (
                None if alternative_dates is None else [value.isoformat() for value in alternative_dates]
            )
            await self.db.flush()

            if transition is RequestTransition.ACCEPT:
                session = await self.lifecycle.stage_session(
                    request.tutor_id,
                    request.student_id,
                    request.subject_id,
                    request.desired_date_time,
                    proposed_duration_minutes or request.desired_duration_minutes,
                    proposed_price if proposed_price is not None else request.max_budget,
                    delivery_type=DeliveryType.ONLINE if request.accepts_online else DeliveryType.IN_PERSON,
                    request_id=request.id,
                    requires_confirmation=False,
                )

        logger.info(
            "Session request answered",
            extra={
                "request_id": str(request.id),
                "status": request.status.value,
                "session_id": str(session.id) if session else None,
            },
        )
        await self._notify("request_answered", request)
        if session is not None:
            await self._notify("session_confirmed", session)
        return request, session

    async def accept_request(
        self,
        request_id: UUID,
        response_text: str | None = None,
        proposed_price: Decimal | None = None,
        proposed_duration_minutes: int | None = None,
    ) -> tuple[SessionRequestModel, SessionModel | None]:
        return await self.respond_to_request(
            request_id,
            RequestStatus.ACCEPTED,
            response_text,
            proposed_price=proposed_price,
            proposed_duration_minutes=proposed_duration_minutes,
        )

    async def reject_request(
        self,
        request_id: UUID,
        response_text: str | None = None,
        proposed_alternative_dates: list[datetime] | None = None,
        proposed_price: Decimal | None = None,
        proposed_duration_minutes: int | None = None,
    ) -> SessionRequestModel:
        request, _ = await self.respond_to_request(
            request_id,
            RequestStatus.REJECTED,
            response_text,
            proposed_price=proposed_price,
            proposed_duration_minutes=proposed_duration_minutes,
            proposed_alternative_dates=proposed_alternative_dates,
        )
        return request

    async def delete_request(self, request_id: UUID) -> None:
        """
        Delete a pending request.

        Raises:
            NotFoundError: Unknown request
            InvalidStateTransitionError: Request already answered
        """
        request = await self.get_request(request_id)
        ensure_request_pending(request.status, request.id, "delete")
        async with self._locked_request(request) as request:
            ensure_request_pending(request.status, request.id, "delete")
            await session_request_crud.delete_by_id(self.db, request.id)
        logger.info("Session request deleted", extra={"request_id": str(request_id)})

    async def get_student_requests(
        self,
        student_id: int,
        status: RequestStatus | None = None,
        limit: int | None = None,
        offset: int = 0,
    ) -> Sequence[SessionRequestModel]:
        return await session_request_crud.get_by_student(self.db, student_id, status, limit, offset)

    async def get_tutor_requests(
        self,
        tutor_id: int,
        status: RequestStatus | None = None,
        limit: int | None = None,
        offset: int = 0,
    ) -> Sequence[SessionRequestModel]:
        return await session_request_crud.get_by_tutor(self.db, tutor_id, status, limit, offset)

    async def get_requests_by_status(self, status: RequestStatus) -> Sequence[SessionRequestModel]:
        return await session_request_crud.get_by_status(self.db, status)

    async def get_pending_by_urgency(self, tutor_id: int | None = None) -> list[SessionRequestModel]:
        return await session_request_crud.get_pending_by_urgency(self.db, tutor_id)

    async def get_subject_requests(
        self,
        subject_id: int,
        status: RequestStatus | None = None,
    ) -> Sequence[SessionRequestModel]:
        return await session_request_crud.get_by_subject(self.db, subject_id, status)

    async def get_requests_in_range(
        self,
        start: datetime,
        end: datetime,
        status: RequestStatus | None = None,
    ) -> Sequence[SessionRequestModel]:
        start, end = to_naive_utc(start), to_naive_utc(end)
        if end <= start:
            raise ValidationError("End date must be after start date", field="end")
        return await session_request_crud.get_by_date_range(self.db, start, end, status)

    async def search_requests(
        self,
        term: str,
        status: RequestStatus | None = None,
    ) -> Sequence[SessionRequestModel]:
        if not term or not term.strip():
            raise ValidationError("Search term cannot be empty", field="term")
        return await session_request_crud.search(self.db, term.strip(), status)

    async def filter_requests(
        self,
        filters: SessionRequestFilters,
        limit: int | None = None,
        offset: int = 0,
    ) -> tuple[Sequence[SessionRequestModel], int]:
        return await session_request_crud.filter(self.db, filters, limit, offset)

    async def get_stale_requests(self, days: int | None = None) -> Sequence[SessionRequestModel]:
        """Pending requests older than `days` (defaults to the configured staleness)."""
        age = timedelta(days=days if days is not None else self.settings.stale_request_days)
        return await session_request_crud.get_stale_pending(self.db, self.clock() - age)
