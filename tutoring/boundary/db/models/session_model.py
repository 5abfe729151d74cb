"""
Session ORM model.

A scheduled tutoring appointment between one tutor and one student. Status
changes are driven by the session state machine; notes are an append-only
history of reschedules and cancellations.

Dependencies: sqlalchemy, tutoring.boundary.db.base
System role: Persistence for the session lifecycle
"""

from datetime import datetime, timedelta
from decimal import Decimal
from uuid import UUID

from sqlalchemy import DateTime, Enum, ForeignKey, Index, Integer, Numeric, String, Text
from sqlalchemy.orm import Mapped, mapped_column

from tutoring.boundary.db.base import Base, UUIDMixin, TimestampMixin
from tutoring.core.booking_states import DeliveryType, SessionStatus


class SessionModel(Base, UUIDMixin, TimestampMixin):
    """
    Session ORM model.

    Attributes:
        id: UUID primary key (auto-generated)
        tutor_id / student_id / subject_id: External participant and subject IDs
        request_id: Originating session request (unique, SET NULL if the request goes)
        date_time: Start (naive UTC)
        duration_minutes: Length; the session occupies [date_time, date_time + duration)
        status: REQUESTED / CONFIRMED / IN_PROGRESS / COMPLETED / CANCELLED
        price: Agreed price
        delivery_type: ONLINE / IN_PERSON
        video_link / room: Where the session happens
        notes: Append-only history text
        completion_summary / feedback / student_rating / tutor_rating / completed_at:
            Filled only when the session completes
        confirmed_at / started_at / cancelled_at: Transition timestamps

    Indexes:
        (tutor_id, date_time) and (student_id, date_time) back the overlap queries
    """

    __tablename__ = "sessions"
    __table_args__ = (
        Index("ix_sessions_tutor_time", "tutor_id", "date_time"),
        Index("ix_sessions_student_time", "student_id", "date_time"),
    )

    tutor_id: Mapped[int] = mapped_column(Integer, nullable=False)
    student_id: Mapped[int] = mapped_column(Integer, nullable=False)
    subject_id: Mapped[int] = mapped_column(Integer, nullable=False, index=True)

    request_id: Mapped[UUID | None] = mapped_column(
        ForeignKey("session_requests.id", ondelete="SET NULL"),
        nullable=True,
        unique=True,
        default=None,
    )

    date_time: Mapped[datetime] = mapped_column(DateTime, nullable=False, index=True)
    duration_minutes: Mapped[int] = mapped_column(Integer, nullable=False)

    status: Mapped[SessionStatus] = mapped_column(
        Enum(SessionStatus, native_enum=False),
        nullable=False,
        default=SessionStatus.REQUESTED,
        index=True,
    )

    price: Mapped[Decimal] = mapped_column(Numeric(10, 2), nullable=False)
    delivery_type: Mapped[DeliveryType] = mapped_column(
        Enum(DeliveryType, native_enum=False),
        nullable=False,
        default=DeliveryType.ONLINE,
    )
    video_link: Mapped[str | None] = mapped_column(String(1024), nullable=True, default=None)
    room: Mapped[str | None] = mapped_column(String(255), nullable=True, default=None)
    notes: Mapped[str | None] = mapped_column(Text, nullable=True, default=None)

    completion_summary: Mapped[str | None] = mapped_column(Text, nullable=True, default=None)
    feedback: Mapped[str | None] = mapped_column(Text, nullable=True, default=None)
    student_rating: Mapped[int | None] = mapped_column(Integer, nullable=True, default=None)
    tutor_rating: Mapped[int | None] = mapped_column(Integer, nullable=True, default=None)
    completed_at: Mapped[datetime | None] = mapped_column(DateTime, nullable=True, default=None)

    confirmed_at: Mapped[datetime | None] = mapped_column(DateTime, nullable=True, default=None)
    started_at: Mapped[datetime | None] = mapped_column(DateTime, nullable=True, default=None)
    cancelled_at: Mapped[datetime | None] = mapped_column(DateTime, nullable=True, default=None)

    @property
    def end_time(self) -> datetime:
        return self.date_time + timedelta(minutes=self.duration_minutes)

    def append_note(self, note: str) -> None:
        self.notes = f"{self.notes}\n{note}" if self.notes else note
