"""
Booking status enums and state machines.

Defines the closed status sets for sessions and session requests, the
transition tables that drive them, and the status description lookups.
Every status-changing operation resolves through `next_session_status` or
`next_request_status`; a pair missing from the table is an invalid transition.

Dependencies: tutoring.core.exceptions
System role: Single source of truth for booking status rules
"""

import enum
from datetime import datetime, timedelta
from typing import Any

from tutoring.core.exceptions import InvalidStateTransitionError


class SessionStatus(str, enum.Enum):
    """
    Lifecycle states of a tutoring session.

    REQUESTED: Created, awaiting confirmation
    CONFIRMED: Agreed by both parties, waiting for its start time
    IN_PROGRESS: Running
    COMPLETED: Finished (terminal)
    CANCELLED: Called off or missed (terminal)
    """

    REQUESTED = "requested"
    CONFIRMED = "confirmed"
    IN_PROGRESS = "in_progress"
    COMPLETED = "completed"
    CANCELLED = "cancelled"


class RequestStatus(str, enum.Enum):
    """Negotiation states of a session request. Only PENDING is mutable."""

    PENDING = "pending"
    ACCEPTED = "accepted"
    REJECTED = "rejected"


class Urgency(str, enum.Enum):
    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"


class DeliveryType(str, enum.Enum):
    ONLINE = "online"
    IN_PERSON = "in_person"


class SessionTransition(str, enum.Enum):
    CONFIRM = "confirm"
    START = "start"
    COMPLETE = "complete"
    CANCEL = "cancel"


class RequestTransition(str, enum.Enum):
    ACCEPT = "accept"
    REJECT = "reject"


ACTIVE_SESSION_STATUSES: frozenset[SessionStatus] = frozenset({
    SessionStatus.REQUESTED,
    SessionStatus.CONFIRMED,
    SessionStatus.IN_PROGRESS,
})

TERMINAL_SESSION_STATUSES: frozenset[SessionStatus] = frozenset({
    SessionStatus.COMPLETED,
    SessionStatus.CANCELLED,
})

# transition -> (allowed source statuses, target status)
SESSION_TRANSITIONS: dict[SessionTransition, tuple[frozenset[SessionStatus], SessionStatus]] = {
    SessionTransition.CONFIRM: (frozenset({SessionStatus.REQUESTED}), SessionStatus.CONFIRMED),
    SessionTransition.START: (frozenset({SessionStatus.CONFIRMED}), SessionStatus.IN_PROGRESS),
    SessionTransition.COMPLETE: (frozenset({SessionStatus.IN_PROGRESS}), SessionStatus.COMPLETED),
    SessionTransition.CANCEL: (ACTIVE_SESSION_STATUSES, SessionStatus.CANCELLED),
}

REQUEST_TRANSITIONS: dict[RequestTransition, tuple[frozenset[RequestStatus], RequestStatus]] = {
    RequestTransition.ACCEPT: (frozenset({RequestStatus.PENDING}), RequestStatus.ACCEPTED),
    RequestTransition.REJECT: (frozenset({RequestStatus.PENDING}), RequestStatus.REJECTED),
}

SESSION_STATUS_DESCRIPTIONS: dict[SessionStatus, str] = {
    SessionStatus.REQUESTED: "Session requested, awaiting confirmation",
    SessionStatus.CONFIRMED: "Session confirmed",
    SessionStatus.IN_PROGRESS: "Session in progress",
    SessionStatus.COMPLETED: "Session completed",
    SessionStatus.CANCELLED: "Session cancelled",
}

REQUEST_STATUS_DESCRIPTIONS: dict[RequestStatus, str] = {
    RequestStatus.PENDING: "Waiting for the tutor's response",
    RequestStatus.ACCEPTED: "Request accepted by the tutor",
    RequestStatus.REJECTED: "Request declined by the tutor",
}

for _enum, _table in (
    (SessionStatus, SESSION_STATUS_DESCRIPTIONS),
    (RequestStatus, REQUEST_STATUS_DESCRIPTIONS),
):
    _missing = set(_enum) - set(_table)
    if _missing:
        raise RuntimeError(f"Missing {_enum.__name__} descriptions: {sorted(m.value for m in _missing)}")


def next_session_status(
    current: SessionStatus,
    transition: SessionTransition,
    session_id: Any = None,
) -> SessionStatus:
    """
    Resolve the status a session moves to.

    Args:
        current: Current session status
        transition: Requested transition
        session_id: Session ID for error context

    Returns:
        SessionStatus: Target status

    Raises:
        InvalidStateTransitionError: If the table has no entry for the pair
    """
    sources, target = SESSION_TRANSITIONS[transition]
    if current not in sources:
        raise InvalidStateTransitionError("session", session_id, current.value, transition.value)
    return target


def next_request_status(
    current: RequestStatus,
    transition: RequestTransition,
    request_id: Any = None,
) -> RequestStatus:
    """Resolve the status a session request moves to, or raise InvalidStateTransitionError."""
    sources, target = REQUEST_TRANSITIONS[transition]
    if current not in sources:
        raise InvalidStateTransitionError("session_request", request_id, current.value, transition.value)
    return target


def ensure_request_pending(status: RequestStatus, request_id: Any, operation: str) -> None:
    """Raise InvalidStateTransitionError for any mutation of a non-pending request."""
    if status is not RequestStatus.PENDING:
        raise InvalidStateTransitionError("session_request", request_id, status.value, operation)


def can_be_modified(status: SessionStatus, date_time: datetime, now: datetime) -> bool:
    """Generic field edits: not running, not terminal, and the start is still ahead."""
    if status is SessionStatus.IN_PROGRESS or status in TERMINAL_SESSION_STATUSES:
        return False
    return date_time > now


def can_be_cancelled(status: SessionStatus) -> bool:
    return status in SESSION_TRANSITIONS[SessionTransition.CANCEL][0]


def can_be_completed(status: SessionStatus) -> bool:
    return status in SESSION_TRANSITIONS[SessionTransition.COMPLETE][0]


def can_be_rescheduled(
    status: SessionStatus,
    date_time: datetime,
    now: datetime,
    cutoff: timedelta,
) -> bool:
    """Requested sessions always; confirmed ones only while the start is beyond the cutoff."""
    if status is SessionStatus.REQUESTED:
        return True
    return status is SessionStatus.CONFIRMED and date_time > now + cutoff


def can_be_deleted(status: SessionStatus) -> bool:
    return status in (SessionStatus.REQUESTED, SessionStatus.CONFIRMED)


def request_can_be_modified(
    status: RequestStatus,
    desired_date_time: datetime,
    now: datetime,
    cutoff: timedelta,
) -> bool:
    """Pending requests whose desired start is still further ahead than the cutoff."""
    return status is RequestStatus.PENDING and desired_date_time > now + cutoff
