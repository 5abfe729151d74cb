"""
Session request ORM model.

A student's ask for tutoring time with a tutor. Negotiated by the tutor
(accept / reject, optionally with counter-proposals); acceptance materializes
a SessionModel.

Dependencies: sqlalchemy, tutoring.boundary.db.base
System role: Persistence for booking negotiation
"""

from datetime import datetime
from decimal import Decimal

from sqlalchemy import JSON, Boolean, DateTime, Enum, Integer, Numeric, Text
from sqlalchemy.orm import Mapped, mapped_column

from tutoring.boundary.db.base import Base, UUIDMixin, TimestampMixin
from tutoring.core.booking_states import RequestStatus, Urgency


class SessionRequestModel(Base, UUIDMixin, TimestampMixin):
    """
    Session request ORM model.

    Attributes:
        id: UUID primary key (auto-generated)
        student_id / tutor_id / subject_id: External participant and subject IDs
        desired_date_time: Requested start (naive UTC)
        desired_duration_minutes: Requested length
        message: Student's note to the tutor (non-empty)
        urgency: LOW / MEDIUM / HIGH
        max_budget: Highest price the student accepts
        status: PENDING until the tutor answers, then ACCEPTED or REJECTED for good
        tutor_response: Tutor's answer text
        responded_at: When the tutor answered
        proposed_alternative_dates: ISO datetimes offered instead (None = not proposed)
        proposed_price / proposed_duration_minutes: Tutor's counter-offer
        date_flexible / accepts_online / accepts_in_person: Student flexibility flags
    """

    __tablename__ = "session_requests"

    student_id: Mapped[int] = mapped_column(Integer, nullable=False, index=True)
    tutor_id: Mapped[int] = mapped_column(Integer, nullable=False, index=True)
    subject_id: Mapped[int] = mapped_column(Integer, nullable=False, index=True)

    desired_date_time: Mapped[datetime] = mapped_column(DateTime, nullable=False, index=True)
    desired_duration_minutes: Mapped[int] = mapped_column(Integer, nullable=False)
    message: Mapped[str] = mapped_column(Text, nullable=False)

    urgency: Mapped[Urgency] = mapped_column(
        Enum(Urgency, native_enum=False),
        nullable=False,
        default=Urgency.MEDIUM,
    )

    max_budget: Mapped[Decimal] = mapped_column(Numeric(10, 2), nullable=False)

    status: Mapped[RequestStatus] = mapped_column(
        Enum(RequestStatus, native_enum=False),
        nullable=False,
        default=RequestStatus.PENDING,
        index=True,
    )

    tutor_response: Mapped[str | None] = mapped_column(Text, nullable=True, default=None)
    responded_at: Mapped[datetime | None] = mapped_column(DateTime, nullable=True, default=None)

    proposed_alternative_dates: Mapped[list | None] = mapped_column(
        JSON,
        nullable=True,
        default=None,
        doc="ISO-8601 datetimes proposed by the tutor",
    )
    proposed_price: Mapped[Decimal | None] = mapped_column(Numeric(10, 2), nullable=True, default=None)
    proposed_duration_minutes: Mapped[int | None] = mapped_column(Integer, nullable=True, default=None)

    date_flexible: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    accepts_online: Mapped[bool] = mapped_column(Boolean, nullable=False, default=True)
    accepts_in_person: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)

    @property
    def alternative_dates(self) -> list[datetime] | None:
        if self.proposed_alternative_dates is None:
            return None
        return [datetime.fromisoformat(value) for value in self.proposed_alternative_dates]
