"""
Booking notifications.

SessionNotifier decides who hears about which booking event and builds the
NotificationEvent payloads; delivery belongs to a NotificationDispatcher.
Events are dispatched after the booking transaction has committed, so a
delivery failure is logged and never undoes the booking.

Dependencies: tutoring.boundary.notifications (dispatcher interface)
System role: Event fan-out for booking state changes
"""

import enum
import logging
from dataclasses import dataclass
from typing import TYPE_CHECKING, Any, Iterable

if TYPE_CHECKING:
    from tutoring.boundary.notifications import NotificationDispatcher

logger = logging.getLogger(__name__)


class NotificationKind(str, enum.Enum):
    SESSION_REQUESTED = "session_requested"
    SESSION_CONFIRMED = "session_confirmed"
    SESSION_STARTED = "session_started"
    SESSION_COMPLETED = "session_completed"
    SESSION_CANCELLED = "session_cancelled"
    SESSION_RESCHEDULED = "session_rescheduled"
    SESSION_REMINDER = "session_reminder"
    SESSION_MISSED = "session_missed"
    REQUEST_RECEIVED = "request_received"
    REQUEST_ANSWERED = "request_answered"


@dataclass(frozen=True)
class NotificationEvent:
    recipient_id: int
    title: str
    body: str
    related_entity_id: Any
    kind: NotificationKind


def _format_time(value) -> str:
    return value.strftime("%Y-%m-%d %H:%M")


def _other_participant(session, actor_id: int | None) -> list[int]:
    """Counterpart of the actor; both participants when the actor is unknown."""
    if actor_id == session.tutor_id:
        return [session.student_id]
    if actor_id == session.student_id:
        return [session.tutor_id]
    return [session.tutor_id, session.student_id]


class SessionNotifier:
    """Builds booking events and hands them to the dispatcher."""

    def __init__(self, dispatcher: "NotificationDispatcher") -> None:
        self.dispatcher = dispatcher

    async def _send(
        self,
        recipients: Iterable[int],
        title: str,
        body: str,
        related_entity_id: Any,
        kind: NotificationKind,
    ) -> None:
        for recipient_id in recipients:
            event = NotificationEvent(
                recipient_id=recipient_id,
                title=title,
                body=body,
                related_entity_id=related_entity_id,
                kind=kind,
            )
            try:
                await self.dispatcher.dispatch(event)
            except Exception as e:
                logger.error(
                    "Notification dispatch failed",
                    extra={
                        "recipient_id": recipient_id,
                        "kind": kind.value,
                        "related_entity_id": str(related_entity_id),
                        "error": str(e),
                    },
                )

    async def session_requested(self, session) -> None:
        await self._send(
            [session.tutor_id],
            "New session booked",
            f"A session was requested for {_format_time(session.date_time)}",
            session.id,
            NotificationKind.SESSION_REQUESTED,
        )

    async def session_confirmed(self, session) -> None:
        await self._send(
            [session.tutor_id, session.student_id],
            "Session confirmed",
            f"Your session on {_format_time(session.date_time)} is confirmed",
            session.id,
            NotificationKind.SESSION_CONFIRMED,
        )

    async def session_started(self, session) -> None:
        await self._send(
            [session.tutor_id, session.student_id],
            "Session started",
            "Your session has started",
            session.id,
            NotificationKind.SESSION_STARTED,
        )

    async def session_completed(self, session) -> None:
        await self._send(
            [session.tutor_id, session.student_id],
            "Session completed",
            "Your session has been completed",
            session.id,
            NotificationKind.SESSION_COMPLETED,
        )

    async def session_cancelled(self, session, cancelled_by: int | None = None, reason: str | None = None) -> None:
        body = f"The session on {_format_time(session.date_time)} was cancelled"
        if reason:
            body = f"{body}. Reason: {reason}"
        await self._send(
            _other_participant(session, cancelled_by),
            "Session cancelled",
            body,
            session.id,
            NotificationKind.SESSION_CANCELLED,
        )

    async def session_rescheduled(self, session, previous_time, rescheduled_by: int | None = None) -> None:
        await self._send(
            _other_participant(session, rescheduled_by),
            "Session rescheduled",
            f"Moved from {_format_time(previous_time)} to {_format_time(session.date_time)}",
            session.id,
            NotificationKind.SESSION_RESCHEDULED,
        )

    async def session_reminder(self, session, lead_minutes: int) -> None:
        await self._send(
            [session.tutor_id, session.student_id],
            "Upcoming session",
            f"Your session starts in {lead_minutes} minutes",
            session.id,
            NotificationKind.SESSION_REMINDER,
        )

    async def session_missed(self, session) -> None:
        await self._send(
            [session.tutor_id, session.student_id],
            "Session missed",
            f"The session on {_format_time(session.date_time)} was not started and has been cancelled",
            session.id,
            NotificationKind.SESSION_MISSED,
        )

    async def request_received(self, request) -> None:
        await self._send(
            [request.tutor_id],
            "New session request",
            f"A student requested a session for {_format_time(request.desired_date_time)}",
            request.id,
            NotificationKind.REQUEST_RECEIVED,
        )

    async def request_answered(self, request) -> None:
        await self._send(
            [request.student_id],
            f"Session request {request.status.value}",
            request.tutor_response or f"Your request was {request.status.value}",
            request.id,
            NotificationKind.REQUEST_ANSWERED,
        )
