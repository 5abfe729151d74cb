"""
Database models package.

Exports:
  - SessionRequestModel: Session request ORM model
  - SessionModel: Session ORM model
  - SweepActionModel: Performed background sweep actions

Dependencies: sqlalchemy, tutoring.boundary.db.base
System role: Database model definitions for booking entities
"""

from tutoring.boundary.db.models.session_request_model import SessionRequestModel
from tutoring.boundary.db.models.session_model import SessionModel
from tutoring.boundary.db.models.sweep_action_model import SweepActionModel

__all__ = [
    "SessionRequestModel",
    "SessionModel",
    "SweepActionModel",
]
