"""
Session CRUD operations.

Provides Create, Read, Update, Delete operations for SessionModel with the
participant, status and time-window queries the booking services run.

Dependencies: sqlalchemy, tutoring.boundary.db.models.session_model
System role: Session persistence operations
"""

from dataclasses import dataclass
from datetime import datetime, timedelta
from decimal import Decimal
from typing import Sequence
from uuid import UUID

from sqlalchemy import Select, or_, select
from sqlalchemy.ext.asyncio import AsyncSession

from tutoring.boundary.db.CRUD.base_crud import BaseCRUD
from tutoring.boundary.db.models.session_model import SessionModel
from tutoring.core.booking_states import ACTIVE_SESSION_STATUSES, DeliveryType, SessionStatus


@dataclass
class SessionFilters:
    """Optional criteria combined with AND by SessionCRUD.filter."""

    tutor_id: int | None = None
    student_id: int | None = None
    subject_id: int | None = None
    status: SessionStatus | None = None
    delivery_type: DeliveryType | None = None
    start_date: datetime | None = None
    end_date: datetime | None = None
    min_price: Decimal | None = None
    max_price: Decimal | None = None


class SessionCRUD(BaseCRUD[SessionModel]):
    """
    CRUD operations for SessionModel.

    Extends BaseCRUD with participant, status and time-window queries.
    Time windows are half-open: start <= date_time < end.
    """

    def __init__(self) -> None:
        """Initialize SessionCRUD with SessionModel."""
        super().__init__(SessionModel)

    @staticmethod
    def _ordered(stmt: Select) -> Select:
        return stmt.order_by(SessionModel.date_time, SessionModel.id)

    async def get_by_request_id(self, session: AsyncSession, request_id: UUID) -> SessionModel | None:
        stmt = select(SessionModel).where(SessionModel.request_id == request_id)
        result = await session.execute(stmt)
        return result.scalar_one_or_none()

    async def get_active_in_window(
        self,
        session: AsyncSession,
        window_start: datetime,
        window_end: datetime,
        max_duration_minutes: int,
        tutor_id: int | None = None,
        student_id: int | None = None,
    ) -> Sequence[SessionModel]:
        """
        Load active sessions of either participant that could overlap a window.

        A session can only overlap [window_start, window_end) if it starts
        before window_end and no earlier than window_start minus the longest
        allowed duration. The exact overlap test runs in the caller.

        Args:
            session: Async database session
            window_start: Window start (inclusive)
            window_end: Window end (exclusive)
            max_duration_minutes: Longest session duration the store can hold
            tutor_id: Tutor whose sessions to load
            student_id: Student whose sessions to load

        Returns:
            Sequence of candidate SessionModels in start order
        """
        participants = []
        if tutor_id is not None:
            participants.append(SessionModel.tutor_id == tutor_id)
        if student_id is not None:
            participants.append(SessionModel.student_id == student_id)
        if not participants:
            return []

        stmt = select(SessionModel).where(
            or_(*participants),
            SessionModel.status.in_(list(ACTIVE_SESSION_STATUSES)),
            SessionModel.date_time >= window_start - timedelta(minutes=max_duration_minutes),
            SessionModel.date_time < window_end,
        )
        return await self._fetch(session, self._ordered(stmt))

    async def get_by_tutor(
        self,
        session: AsyncSession,
        tutor_id: int,
        status: SessionStatus | None = None,
        limit: int | None = None,
        offset: int = 0,
    ) -> Sequence[SessionModel]:
        stmt = select(SessionModel).where(SessionModel.tutor_id == tutor_id)
        if status is not None:
            stmt = stmt.where(SessionModel.status == status)
        return await self._fetch(session, self._ordered(stmt), limit, offset)

    async def get_by_student(
        self,
        session: AsyncSession,
        student_id: int,
        status: SessionStatus | None = None,
        limit: int | None = None,
        offset: int = 0,
    ) -> Sequence[SessionModel]:
        stmt = select(SessionModel).where(SessionModel.student_id == student_id)
        if status is not None:
            stmt = stmt.where(SessionModel.status == status)
        return await self._fetch(session, self._ordered(stmt), limit, offset)

    async def get_by_status(
        self,
        session: AsyncSession,
        status: SessionStatus,
        limit: int | None = None,
        offset: int = 0,
    ) -> Sequence[SessionModel]:
        """
        Retrieve sessions by lifecycle status.

        Args:
            session: Async database session
            status: Session status to filter by
            limit: Maximum number of sessions to return
            offset: Number of sessions to skip

        Returns:
            Sequence of SessionModels with matching status in start order
        """
        stmt = select(SessionModel).where(SessionModel.status == status)
        return await self._fetch(session, self._ordered(stmt), limit, offset)

    async def get_by_date_range(
        self,
        session: AsyncSession,
        start: datetime,
        end: datetime,
        status: SessionStatus | None = None,
    ) -> Sequence[SessionModel]:
        stmt = select(SessionModel).where(
            SessionModel.date_time >= start,
            SessionModel.date_time < end,
        )
        if status is not None:
            stmt = stmt.where(SessionModel.status == status)
        return await self._fetch(session, self._ordered(stmt))

    async def get_by_subject(
        self,
        session: AsyncSession,
        subject_id: int,
        status: SessionStatus | None = None,
    ) -> Sequence[SessionModel]:
        stmt = select(SessionModel).where(SessionModel.subject_id == subject_id)
        if status is not None:
            stmt = stmt.where(SessionModel.status == status)
        return await self._fetch(session, self._ordered(stmt))

    async def get_upcoming(
        self,
        session: AsyncSession,
        now: datetime,
        tutor_id: int | None = None,
        student_id: int | None = None,
        limit: int | None = None,
    ) -> Sequence[SessionModel]:
        """
        Retrieve requested or confirmed sessions starting after now.

        Args:
            session: Async database session
            now: Current time
            tutor_id: Restrict to this tutor
            student_id: Restrict to this student
            limit: Maximum number of sessions to return

        Returns:
            Sequence of SessionModels, soonest first
        """
        stmt = select(SessionModel).where(
            SessionModel.date_time > now,
            SessionModel.status.in_([SessionStatus.REQUESTED, SessionStatus.CONFIRMED]),
        )
        if tutor_id is not None:
            stmt = stmt.where(SessionModel.tutor_id == tutor_id)
        if student_id is not None:
            stmt = stmt.where(SessionModel.student_id == student_id)
        return await self._fetch(session, self._ordered(stmt), limit)

    async def search(
        self,
        session: AsyncSession,
        term: str,
        status: SessionStatus | None = None,
    ) -> Sequence[SessionModel]:
        """Case-insensitive substring search over notes, room and video link."""
        pattern = f"%{term}%"
        stmt = select(SessionModel).where(or_(
            SessionModel.notes.ilike(pattern),
            SessionModel.room.ilike(pattern),
            SessionModel.video_link.ilike(pattern),
        ))
        if status is not None:
            stmt = stmt.where(SessionModel.status == status)
        return await self._fetch(session, self._ordered(stmt))

    def _filter_stmt(self, filters: SessionFilters) -> Select:
        stmt = select(SessionModel)
        if filters.tutor_id is not None:
            stmt = stmt.where(SessionModel.tutor_id == filters.tutor_id)
        if filters.student_id is not None:
            stmt = stmt.where(SessionModel.student_id == filters.student_id)
        if filters.subject_id is not None:
            stmt = stmt.where(SessionModel.subject_id == filters.subject_id)
        if filters.status is not None:
            stmt = stmt.where(SessionModel.status == filters.status)
        if filters.delivery_type is not None:
            stmt = stmt.where(SessionModel.delivery_type == filters.delivery_type)
        if filters.start_date is not None:
            stmt = stmt.where(SessionModel.date_time >= filters.start_date)
        if filters.end_date is not None:
            stmt = stmt.where(SessionModel.date_time < filters.end_date)
        if filters.min_price is not None:
            stmt = stmt.where(SessionModel.price >= filters.min_price)
        if filters.max_price is not None:
            stmt = stmt.where(SessionModel.price <= filters.max_price)
        return stmt

    async def filter(
        self,
        session: AsyncSession,
        filters: SessionFilters,
        limit: int | None = None,
        offset: int = 0,
    ) -> tuple[Sequence[SessionModel], int]:
        """
        Retrieve one page of sessions matching every given criterion.

        Returns:
            Tuple of (page of SessionModels, total matching count)
        """
        stmt = self._filter_stmt(filters)
        total = await self.count(session, stmt)
        items = await self._fetch(session, self._ordered(stmt), limit, offset)
        return items, total

    async def get_confirmed_starting_between(
        self,
        session: AsyncSession,
        start: datetime,
        end: datetime,
    ) -> Sequence[SessionModel]:
        """Confirmed sessions with start <= date_time < end (reminder and auto-start candidates)."""
        stmt = select(SessionModel).where(
            SessionModel.status == SessionStatus.CONFIRMED,
            SessionModel.date_time >= start,
            SessionModel.date_time < end,
        )
        return await self._fetch(session, self._ordered(stmt))

    async def get_confirmed_started_before(
        self,
        session: AsyncSession,
        cutoff: datetime,
    ) -> Sequence[SessionModel]:
        """Confirmed sessions whose start is at or before the cutoff and never began."""
        stmt = select(SessionModel).where(
            SessionModel.status == SessionStatus.CONFIRMED,
            SessionModel.date_time <= cutoff,
        )
        return await self._fetch(session, self._ordered(stmt))


session_crud = SessionCRUD()
