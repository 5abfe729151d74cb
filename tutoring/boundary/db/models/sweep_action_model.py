"""
Sweep action ORM model.

Records time-driven actions the background sweep has already performed for a
session, so a repeated sweep finds nothing left to do.

Dependencies: sqlalchemy, tutoring.boundary.db.base
System role: Idempotency keys for the background sweep
"""

from datetime import datetime
from uuid import UUID

from sqlalchemy import DateTime, ForeignKey, String, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column

from tutoring.boundary.db.base import Base, UUIDMixin, TimestampMixin
from tutoring.core.clock import utc_now

AUTO_START = "auto_start"
NO_SHOW_CANCEL = "no_show_cancel"
REMINDER_PREFIX = "reminder_"


def reminder_action(lead_minutes: int) -> str:
    return f"{REMINDER_PREFIX}{lead_minutes}m"


class SweepActionModel(Base, UUIDMixin, TimestampMixin):
    """
    One performed sweep action.

    Attributes:
        session_id: Session the action applied to
        action: "auto_start", "no_show_cancel" or "reminder_<N>m"
        performed_at: Sweep time that performed it

    Constraints:
        (session_id, action): UNIQUE; an action happens at most once per session
    """

    __tablename__ = "sweep_actions"
    __table_args__ = (
        UniqueConstraint("session_id", "action", name="uq_sweep_actions_session_action"),
    )

    session_id: Mapped[UUID] = mapped_column(
        ForeignKey("sessions.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    action: Mapped[str] = mapped_column(String(64), nullable=False)
    performed_at: Mapped[datetime] = mapped_column(DateTime, nullable=False, default=utc_now)
