"""
SQLAlchemy declarative base and common mixins.

All booking tables share one metadata with a constraint naming convention,
so uniqueness and foreign key names are stable between PostgreSQL and the
SQLite test database.

Dependencies: sqlalchemy
System role: Foundation for all database models
"""

import uuid
from datetime import datetime

from sqlalchemy import DateTime, MetaData, Uuid
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column

from tutoring.core.clock import utc_now

NAMING_CONVENTION = {
    "ix": "ix_%(column_0_label)s",
    "uq": "uq_%(table_name)s_%(column_0_name)s",
    "ck": "ck_%(table_name)s_%(constraint_name)s",
    "fk": "fk_%(table_name)s_%(column_0_name)s_%(referred_table_name)s",
    "pk": "pk_%(table_name)s",
}


class Base(DeclarativeBase):
    """Declarative base; every booking model registers on its metadata."""

    metadata = MetaData(naming_convention=NAMING_CONVENTION)


class UUIDMixin:
    """
    UUID v4 primary key.

    The generic Uuid type maps to native UUID on PostgreSQL and CHAR(32)
    on SQLite.
    """

    id: Mapped[uuid.UUID] = mapped_column(
        Uuid(as_uuid=True),
        primary_key=True,
        default=uuid.uuid4,
        nullable=False,
    )


class TimestampMixin:
    """
    Row bookkeeping timestamps, naive UTC like the booking time columns.

    Attributes:
        created_at: Set once on insert
        updated_at: Refreshed on every update
    """

    created_at: Mapped[datetime] = mapped_column(DateTime, default=utc_now, nullable=False)
    updated_at: Mapped[datetime] = mapped_column(
        DateTime,
        default=utc_now,
        onupdate=utc_now,
        nullable=False,
    )
