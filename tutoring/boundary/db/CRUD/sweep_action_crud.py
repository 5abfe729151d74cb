"""
Sweep action CRUD operations.

Reads and writes the idempotency records of the background sweep.

Dependencies: sqlalchemy, tutoring.boundary.db.models.sweep_action_model
System role: Sweep idempotency persistence
"""

from datetime import datetime
from typing import Iterable
from uuid import UUID

from sqlalchemy import delete, select
from sqlalchemy.ext.asyncio import AsyncSession

from tutoring.boundary.db.CRUD.base_crud import BaseCRUD
from tutoring.boundary.db.models.sweep_action_model import REMINDER_PREFIX, SweepActionModel


class SweepActionCRUD(BaseCRUD[SweepActionModel]):
    """CRUD operations for SweepActionModel."""

    def __init__(self) -> None:
        super().__init__(SweepActionModel)

    async def has_action(self, session: AsyncSession, session_id: UUID, action: str) -> bool:
        stmt = select(SweepActionModel.id).where(
            SweepActionModel.session_id == session_id,
            SweepActionModel.action == action,
        )
        result = await session.execute(stmt)
        return result.scalar_one_or_none() is not None

    async def get_actions(
        self,
        session: AsyncSession,
        session_ids: Iterable[UUID],
    ) -> set[tuple[UUID, str]]:
        """
        Load the performed (session_id, action) pairs for a batch of sessions.

        Args:
            session: Async database session
            session_ids: Sessions to look up

        Returns:
            Set of (session_id, action) pairs already recorded
        """
        ids = list(session_ids)
        if not ids:
            return set()
        stmt = select(SweepActionModel.session_id, SweepActionModel.action).where(
            SweepActionModel.session_id.in_(ids),
        )
        result = await session.execute(stmt)
        return {(row.session_id, row.action) for row in result}

    async def record(
        self,
        session: AsyncSession,
        session_id: UUID,
        action: str,
        performed_at: datetime,
    ) -> SweepActionModel:
        return await self.create(session, session_id=session_id, action=action, performed_at=performed_at)

    async def clear_reminders(self, session: AsyncSession, session_id: UUID) -> int:
        """Forget sent reminders of a session so they fire again for a new start time."""
        stmt = delete(SweepActionModel).where(
            SweepActionModel.session_id == session_id,
            SweepActionModel.action.startswith(REMINDER_PREFIX, autoescape=True),
        )
        result = await session.execute(stmt)
        return result.rowcount

    async def clear_session(self, session: AsyncSession, session_id: UUID) -> int:
        stmt = delete(SweepActionModel).where(SweepActionModel.session_id == session_id)
        result = await session.execute(stmt)
        return result.rowcount


sweep_action_crud = SweepActionCRUD()
