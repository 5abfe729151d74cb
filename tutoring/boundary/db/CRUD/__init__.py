"""
CRUD operations for database models.

Exports base CRUD class and model-specific CRUD implementations
with pre-instantiated singletons for direct use.

Usage:
    from tutoring.boundary.db.CRUD import session_crud, session_request_crud

    session = await session_crud.get_by_id(db, session_id)
"""

from tutoring.boundary.db.CRUD.base_crud import BaseCRUD
from tutoring.boundary.db.CRUD.session_crud import SessionCRUD, SessionFilters, session_crud
from tutoring.boundary.db.CRUD.session_request_crud import (
    SessionRequestCRUD,
    SessionRequestFilters,
    session_request_crud,
)
from tutoring.boundary.db.CRUD.sweep_action_crud import SweepActionCRUD, sweep_action_crud

__all__ = [
    "BaseCRUD",
    "SessionCRUD",
    "SessionFilters",
    "session_crud",
    "SessionRequestCRUD",
    "SessionRequestFilters",
    "session_request_crud",
    "SweepActionCRUD",
    "sweep_action_crud",
]
