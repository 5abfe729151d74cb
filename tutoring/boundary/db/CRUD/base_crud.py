"""
Base CRUD operations for SQLAlchemy models.

Provides generic Create, Read, Update, Delete operations that can be
inherited and extended by model-specific CRUD classes. Nothing here commits;
callers own the transaction.

Dependencies: sqlalchemy, uuid
System role: Foundation for all database CRUD operations
"""

from typing import Generic, TypeVar, Sequence
from uuid import UUID

from sqlalchemy import Select, delete, func, select
from sqlalchemy.ext.asyncio import AsyncSession

from tutoring.boundary.db.base import Base

ModelT = TypeVar("ModelT", bound=Base)


class BaseCRUD(Generic[ModelT]):
    """
    Generic base class for CRUD operations.

    Type Parameters:
        ModelT: SQLAlchemy model class inheriting from Base

    Attributes:
        model: The SQLAlchemy model class to operate on
    """

    def __init__(self, model: type[ModelT]) -> None:
        self.model = model

    async def create(self, session: AsyncSession, **kwargs) -> ModelT:
        """
        Create a new record in the database.

        Args:
            session: Async database session
            **kwargs: Model field values

        Returns:
            Created model instance with generated ID and timestamps
        """
        instance = self.model(**kwargs)
        session.add(instance)
        await session.flush()
        await session.refresh(instance)
        return instance

    async def get_by_id(self, session: AsyncSession, id: UUID) -> ModelT | None:
        """
        Retrieve a single record by primary key.

        Args:
            session: Async database session
            id: UUID primary key

        Returns:
            Model instance if found, None otherwise
        """
        stmt = select(self.model).where(self.model.id == id)
        result = await session.execute(stmt)
        return result.scalar_one_or_none()

    async def get_for_update(self, session: AsyncSession, id: UUID) -> ModelT | None:
        """
        Re-read a record from the database and lock its row.

        Loaded attributes are overwritten with the stored values, so an instance
        already in the session's identity map reflects concurrent commits. The
        row lock lasts until the surrounding transaction ends (SQLite ignores it).

        Returns:
            Model instance if it still exists, None otherwise
        """
        stmt = (
            select(self.model)
            .where(self.model.id == id)
            .with_for_update()
            .execution_options(populate_existing=True)
        )
        result = await session.execute(stmt)
        return result.scalar_one_or_none()

    async def update(self, session: AsyncSession, instance: ModelT, **kwargs) -> ModelT:
        """
        Apply field changes to a loaded instance and flush them.

        Args:
            session: Async database session
            instance: Persistent model instance
            **kwargs: Fields to update with new values

        Returns:
            The updated instance
        """
        for field, value in kwargs.items():
            setattr(instance, field, value)
        await session.flush()
        return instance

    async def delete_by_id(self, session: AsyncSession, id: UUID) -> bool:
        """
        Delete a record by primary key.

        Returns:
            True if record was deleted, False if not found
        """
        stmt = delete(self.model).where(self.model.id == id)
        result = await session.execute(stmt)
        return result.rowcount > 0

    async def count(self, session: AsyncSession, stmt: Select) -> int:
        """Count the rows a select statement would return."""
        count_stmt = select(func.count()).select_from(stmt.order_by(None).subquery())
        result = await session.execute(count_stmt)
        return int(result.scalar_one())

    async def _fetch(
        self,
        session: AsyncSession,
        stmt: Select,
        limit: int | None = None,
        offset: int = 0,
    ) -> Sequence[ModelT]:
        if offset:
            stmt = stmt.offset(offset)
        if limit is not None:
            stmt = stmt.limit(limit)
        result = await session.execute(stmt)
        return result.scalars().all()
