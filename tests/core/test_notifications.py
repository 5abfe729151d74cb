"""
Test suite for SessionNotifier recipient selection and failure handling.

System role: Verification of booking event fan-out
"""

from datetime import datetime
from types import SimpleNamespace
from unittest.mock import AsyncMock
from uuid import uuid4

import pytest

from tutoring.core.booking_states import RequestStatus
from tutoring.core.notifications import NotificationKind, SessionNotifier


@pytest.fixture
def session():
    return SimpleNamespace(
        id=uuid4(), tutor_id=1, student_id=2, date_time=datetime(2025, 1, 11, 10, 0),
    )


class TestSessionNotifier:
    """Test suite for SessionNotifier."""

    @pytest.mark.asyncio
    async def test_confirmed_should_notify_both_participants(self, notifier, dispatcher, session) -> None:
        # Act
        await notifier.session_confirmed(session)

        # Assert
        assert dispatcher.recipients("session_confirmed") == [1, 2]
        assert all(e.related_entity_id == session.id for e in dispatcher.events)

    @pytest.mark.asyncio
    async def test_requested_should_notify_tutor_only(self, notifier, dispatcher, session) -> None:
        await notifier.session_requested(session)

        assert dispatcher.recipients("session_requested") == [1]

    @pytest.mark.asyncio
    async def test_cancel_by_student_should_notify_tutor(self, notifier, dispatcher, session) -> None:
        await notifier.session_cancelled(session, cancelled_by=2, reason="Sick")

        assert dispatcher.recipients("session_cancelled") == [1]
        assert "Reason: Sick" in dispatcher.events[0].body

    @pytest.mark.asyncio
    async def test_cancel_by_unknown_actor_should_notify_both(self, notifier, dispatcher, session) -> None:
        await notifier.session_cancelled(session)

        assert dispatcher.recipients("session_cancelled") == [1, 2]

    @pytest.mark.asyncio
    async def test_reschedule_should_mention_both_times(self, notifier, dispatcher, session) -> None:
        await notifier.session_rescheduled(session, datetime(2025, 1, 11, 8, 0), rescheduled_by=1)

        event = dispatcher.events[0]
        assert event.recipient_id == 2
        assert "2025-01-11 08:00" in event.body
        assert "2025-01-11 10:00" in event.body

    @pytest.mark.asyncio
    async def test_reminder_should_carry_lead(self, notifier, dispatcher, session) -> None:
        await notifier.session_reminder(session, 15)

        assert dispatcher.kinds() == ["session_reminder", "session_reminder"]
        assert "15 minutes" in dispatcher.events[0].body

    @pytest.mark.asyncio
    async def test_request_answered_should_notify_student(self, notifier, dispatcher) -> None:
        request = SimpleNamespace(
            id=uuid4(), tutor_id=1, student_id=2, status=RequestStatus.REJECTED, tutor_response=None,
        )

        await notifier.request_answered(request)

        event = dispatcher.events[0]
        assert event.recipient_id == 2
        assert event.kind is NotificationKind.REQUEST_ANSWERED
        assert event.title == "Session request rejected"

    @pytest.mark.asyncio
    async def test_dispatch_failure_should_be_logged_not_raised(self, session, caplog) -> None:
        # Arrange
        failing = AsyncMock()
        failing.dispatch.side_effect = RuntimeError("smtp down")
        notifier = SessionNotifier(failing)

        # Act
        await notifier.session_completed(session)

        # Assert
        assert failing.dispatch.await_count == 2
        assert "Notification dispatch failed" in caplog.text
