"""
Time conflict detection.

Pure functions over already-loaded session records. Two bookings collide
when their half-open intervals [start, start + duration) intersect; touching
intervals do not. Only sessions in an active status count.

Dependencies: tutoring.core.booking_states
System role: Overlap logic behind availability checks and slot search
"""

import enum
from dataclasses import dataclass
from datetime import datetime, timedelta
from typing import Any, Iterable, Protocol
from uuid import UUID

from tutoring.core.booking_states import ACTIVE_SESSION_STATUSES, SessionStatus


class BookedSession(Protocol):
    """Attributes the overlap logic reads from a stored session."""

    id: Any
    tutor_id: int
    student_id: int
    date_time: datetime
    duration_minutes: int
    status: SessionStatus


class ConflictReason(str, enum.Enum):
    TUTOR_BUSY = "tutor_busy"
    STUDENT_BUSY = "student_busy"


class ParticipantRole(str, enum.Enum):
    TUTOR = "tutor"
    STUDENT = "student"


_REASON_BY_ROLE = {
    ParticipantRole.TUTOR: ConflictReason.TUTOR_BUSY,
    ParticipantRole.STUDENT: ConflictReason.STUDENT_BUSY,
}

_DESCRIPTIONS = {
    ConflictReason.TUTOR_BUSY: "Tutor has another session",
    ConflictReason.STUDENT_BUSY: "Student has another session",
}


@dataclass(frozen=True)
class SchedulingConflict:
    """A stored session colliding with a requested window."""

    reason: ConflictReason
    session_id: UUID
    start: datetime
    end: datetime
    description: str


def session_end(session: BookedSession) -> datetime:
    return session.date_time + timedelta(minutes=session.duration_minutes)


def intervals_overlap(
    a_start: datetime,
    a_end: datetime,
    b_start: datetime,
    b_end: datetime,
) -> bool:
    """Half-open overlap test: [a, b) and [c, d) overlap iff a < d and c < b."""
    return a_start < b_end and b_start < a_end


def is_active(session: BookedSession) -> bool:
    return session.status in ACTIVE_SESSION_STATUSES


def _participant_id(session: BookedSession, role: ParticipantRole) -> int:
    return session.tutor_id if role is ParticipantRole.TUTOR else session.student_id


def participant_conflicts(
    sessions: Iterable[BookedSession],
    participant_id: int,
    role: ParticipantRole,
    window_start: datetime,
    window_end: datetime,
    exclude_session_id: Any = None,
) -> list[SchedulingConflict]:
    """
    Collect active sessions of one participant overlapping a window.

    Args:
        sessions: Candidate session records
        participant_id: Tutor or student ID
        role: Which side of the booking participant_id refers to
        window_start: Window start (inclusive)
        window_end: Window end (exclusive)
        exclude_session_id: Session to ignore, used when moving an existing booking

    Returns:
        list[SchedulingConflict]: Colliding sessions in start order
    """
    reason = _REASON_BY_ROLE[role]
    found = []
    for session in sessions:
        if exclude_session_id is not None and session.id == exclude_session_id:
            continue
        if not is_active(session) or _participant_id(session, role) != participant_id:
            continue
        end = session_end(session)
        if intervals_overlap(window_start, window_end, session.date_time, end):
            found.append(SchedulingConflict(
                reason=reason,
                session_id=session.id,
                start=session.date_time,
                end=end,
                description=_DESCRIPTIONS[reason],
            ))
    found.sort(key=lambda c: c.start)
    return found


def find_conflicts(
    sessions: Iterable[BookedSession],
    tutor_id: int | None,
    student_id: int | None,
    window_start: datetime,
    window_end: datetime,
    exclude_session_id: Any = None,
) -> list[SchedulingConflict]:
    """Tutor conflicts followed by student conflicts for a window; either side may be skipped with None."""
    sessions = list(sessions)
    conflicts: list[SchedulingConflict] = []
    if tutor_id is not None:
        conflicts.extend(participant_conflicts(
            sessions, tutor_id, ParticipantRole.TUTOR, window_start, window_end, exclude_session_id,
        ))
    if student_id is not None:
        conflicts.extend(participant_conflicts(
            sessions, student_id, ParticipantRole.STUDENT, window_start, window_end, exclude_session_id,
        ))
    return conflicts


def has_conflict(
    sessions: Iterable[BookedSession],
    participant_id: int,
    role: ParticipantRole,
    window_start: datetime,
    window_end: datetime,
    exclude_session_id: Any = None,
) -> bool:
    return bool(participant_conflicts(
        sessions, participant_id, role, window_start, window_end, exclude_session_id,
    ))
