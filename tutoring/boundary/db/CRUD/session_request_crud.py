"""
Session request CRUD operations.

Provides Create, Read, Update, Delete operations for SessionRequestModel
with negotiation-specific queries (per participant, pending queue, search).

Dependencies: sqlalchemy, tutoring.boundary.db.models.session_request_model
System role: Session request persistence operations
"""

from dataclasses import dataclass
from datetime import datetime
from decimal import Decimal
from typing import Sequence

from sqlalchemy import Select, or_, select
from sqlalchemy.ext.asyncio import AsyncSession

from tutoring.boundary.db.CRUD.base_crud import BaseCRUD
from tutoring.boundary.db.models.session_request_model import SessionRequestModel
from tutoring.core.booking_states import RequestStatus, Urgency

URGENCY_RANK = {Urgency.HIGH: 0, Urgency.MEDIUM: 1, Urgency.LOW: 2}


@dataclass
class SessionRequestFilters:
    """Optional criteria combined with AND by SessionRequestCRUD.filter."""

    tutor_id: int | None = None
    student_id: int | None = None
    subject_id: int | None = None
    status: RequestStatus | None = None
    urgency: Urgency | None = None
    start_date: datetime | None = None
    end_date: datetime | None = None
    min_budget: Decimal | None = None
    max_budget: Decimal | None = None


class SessionRequestCRUD(BaseCRUD[SessionRequestModel]):
    """
    CRUD operations for SessionRequestModel.

    Results are newest first unless a query says otherwise.
    """

    def __init__(self) -> None:
        """Initialize SessionRequestCRUD with SessionRequestModel."""
        super().__init__(SessionRequestModel)

    @staticmethod
    def _newest_first(stmt: Select) -> Select:
        return stmt.order_by(SessionRequestModel.created_at.desc(), SessionRequestModel.id)

    async def get_by_student(
        self,
        session: AsyncSession,
        student_id: int,
        status: RequestStatus | None = None,
        limit: int | None = None,
        offset: int = 0,
    ) -> Sequence[SessionRequestModel]:
        stmt = select(SessionRequestModel).where(SessionRequestModel.student_id == student_id)
        if status is not None:
            stmt = stmt.where(SessionRequestModel.status == status)
        return await self._fetch(session, self._newest_first(stmt), limit, offset)

    async def get_by_tutor(
        self,
        session: AsyncSession,
        tutor_id: int,
        status: RequestStatus | None = None,
        limit: int | None = None,
        offset: int = 0,
    ) -> Sequence[SessionRequestModel]:
        stmt = select(SessionRequestModel).where(SessionRequestModel.tutor_id == tutor_id)
        if status is not None:
            stmt = stmt.where(SessionRequestModel.status == status)
        return await self._fetch(session, self._newest_first(stmt), limit, offset)

    async def get_by_status(
        self,
        session: AsyncSession,
        status: RequestStatus,
        limit: int | None = None,
        offset: int = 0,
    ) -> Sequence[SessionRequestModel]:
        stmt = select(SessionRequestModel).where(SessionRequestModel.status == status)
        return await self._fetch(session, self._newest_first(stmt), limit, offset)

    async def get_pending_by_urgency(
        self,
        session: AsyncSession,
        tutor_id: int | None = None,
    ) -> list[SessionRequestModel]:
        """
        Retrieve pending requests, most urgent first, oldest first within a level.

        Args:
            session: Async database session
            tutor_id: Restrict to one tutor's queue

        Returns:
            List of pending SessionRequestModels
        """
        stmt = select(SessionRequestModel).where(SessionRequestModel.status == RequestStatus.PENDING)
        if tutor_id is not None:
            stmt = stmt.where(SessionRequestModel.tutor_id == tutor_id)
        pending = await self._fetch(session, stmt.order_by(SessionRequestModel.created_at))
        return sorted(pending, key=lambda r: (URGENCY_RANK[r.urgency], r.created_at))

    async def get_by_subject(
        self,
        session: AsyncSession,
        subject_id: int,
        status: RequestStatus | None = None,
    ) -> Sequence[SessionRequestModel]:
        stmt = select(SessionRequestModel).where(SessionRequestModel.subject_id == subject_id)
        if status is not None:
            stmt = stmt.where(SessionRequestModel.status == status)
        return await self._fetch(session, self._newest_first(stmt))

    async def get_by_date_range(
        self,
        session: AsyncSession,
        start: datetime,
        end: datetime,
        status: RequestStatus | None = None,
    ) -> Sequence[SessionRequestModel]:
        """Requests whose desired start falls in [start, end), earliest first."""
        stmt = select(SessionRequestModel).where(
            SessionRequestModel.desired_date_time >= start,
            SessionRequestModel.desired_date_time < end,
        )
        if status is not None:
            stmt = stmt.where(SessionRequestModel.status == status)
        return await self._fetch(session, stmt.order_by(SessionRequestModel.desired_date_time))

    async def search(
        self,
        session: AsyncSession,
        term: str,
        status: RequestStatus | None = None,
    ) -> Sequence[SessionRequestModel]:
        """Case-insensitive substring search over the message and the tutor's response."""
        pattern = f"%{term}%"
        stmt = select(SessionRequestModel).where(or_(
            SessionRequestModel.message.ilike(pattern),
            SessionRequestModel.tutor_response.ilike(pattern),
        ))
        if status is not None:
            stmt = stmt.where(SessionRequestModel.status == status)
        return await self._fetch(session, self._newest_first(stmt))

    async def filter(
        self,
        session: AsyncSession,
        filters: SessionRequestFilters,
        limit: int | None = None,
        offset: int = 0,
    ) -> tuple[Sequence[SessionRequestModel], int]:
        """
        Retrieve one page of requests matching every given criterion.

        Returns:
            Tuple of (page of SessionRequestModels, total matching count)
        """
        stmt = select(SessionRequestModel)
        if filters.tutor_id is not None:
            stmt = stmt.where(SessionRequestModel.tutor_id == filters.tutor_id)
        if filters.student_id is not None:
            stmt = stmt.where(SessionRequestModel.student_id == filters.student_id)
        if filters.subject_id is not None:
            stmt = stmt.where(SessionRequestModel.subject_id == filters.subject_id)
        if filters.status is not None:
            stmt = stmt.where(SessionRequestModel.status == filters.status)
        if filters.urgency is not None:
            stmt = stmt.where(SessionRequestModel.urgency == filters.urgency)
        if filters.start_date is not None:
            stmt = stmt.where(SessionRequestModel.desired_date_time >= filters.start_date)
        if filters.end_date is not None:
            stmt = stmt.where(SessionRequestModel.desired_date_time < filters.end_date)
        if filters.min_budget is not None:
            stmt = stmt.where(SessionRequestModel.max_budget >= filters.min_budget)
        if filters.max_budget is not None:
            stmt = stmt.where(SessionRequestModel.max_budget <= filters.max_budget)

        total = await self.count(session, stmt)
        items = await self._fetch(session, self._newest_first(stmt), limit, offset)
        return items, total

    async def get_stale_pending(
        self,
        session: AsyncSession,
        created_before: datetime,
    ) -> Sequence[SessionRequestModel]:
        """Pending requests created before the cutoff, oldest first."""
        stmt = select(SessionRequestModel).where(
            SessionRequestModel.status == RequestStatus.PENDING,
            SessionRequestModel.created_at < created_before,
        )
        return await self._fetch(session, stmt.order_by(SessionRequestModel.created_at))


session_request_crud = SessionRequestCRUD()
