"""
Database boundary layer: ORM models, CRUD operations, and connection management.

Exports:
  - Base, UUIDMixin, TimestampMixin: Model building blocks
  - get_async_engine(), get_async_session_factory(), get_async_db(): Async connection management
  - transaction(): Commit-or-rollback unit of work
  - SessionRequestModel, SessionModel, SweepActionModel: Booking entities
  - session_request_crud, session_crud, sweep_action_crud: CRUD operation singletons

Dependencies: sqlalchemy, tutoring.configs
System role: Database adapter providing persistent storage for booking data
"""

from tutoring.boundary.db.base import Base, TimestampMixin, UUIDMixin
from tutoring.boundary.db.connection import (
    get_async_db,
    get_async_engine,
    get_async_session_factory,
    transaction,
)
from tutoring.boundary.db.models import SessionModel, SessionRequestModel, SweepActionModel
from tutoring.boundary.db.CRUD import (
    BaseCRUD,
    SessionCRUD,
    SessionFilters,
    SessionRequestCRUD,
    SessionRequestFilters,
    SweepActionCRUD,
    session_crud,
    session_request_crud,
    sweep_action_crud,
)

__all__ = [
    # Base classes
    "Base",
    "TimestampMixin",
    "UUIDMixin",
    # Connection
    "get_async_db",
    "get_async_engine",
    "get_async_session_factory",
    "transaction",
    # Models
    "SessionModel",
    "SessionRequestModel",
    "SweepActionModel",
    # CRUD classes
    "BaseCRUD",
    "SessionCRUD",
    "SessionFilters",
    "SessionRequestCRUD",
    "SessionRequestFilters",
    "SweepActionCRUD",
    # CRUD singletons
    "session_crud",
    "session_request_crud",
    "sweep_action_crud",
]
