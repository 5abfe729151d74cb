"""
Test suite for the booking CRUD layer against SQLite.

Covers window queries, filtering, search, the urgency queue and the
sweep idempotency records.

System role: Verification of booking persistence operations
"""

from datetime import timedelta
from decimal import Decimal

import pytest

from tutoring.boundary.db.CRUD import (
    SessionFilters,
    session_crud,
    session_request_crud,
    sweep_action_crud,
)
from tutoring.boundary.db.models.sweep_action_model import AUTO_START, reminder_action
from tutoring.core.booking_states import DeliveryType, RequestStatus, SessionStatus, Urgency


class TestSessionCRUDWindows:
    """Test suite for the time window queries."""

    @pytest.mark.asyncio
    async def test_active_in_window_should_include_long_session_started_earlier(
        self, test_async_db, add_sessions, make_session, fixed_now,
    ) -> None:
        # Arrange
        start = fixed_now + timedelta(days=1)
        long_one, _ = await add_sessions(
            make_session(date_time=start - timedelta(hours=3), duration_minutes=240),
            make_session(date_time=start - timedelta(hours=5), duration_minutes=60),
        )

        # Act
        found = await session_crud.get_active_in_window(
            test_async_db, start, start + timedelta(hours=1), 480, tutor_id=1,
        )

        # Assert
        assert [s.id for s in found] == [long_one.id]

    @pytest.mark.asyncio
    async def test_active_in_window_should_skip_terminal_and_other_participants(
        self, test_async_db, add_sessions, make_session, fixed_now,
    ) -> None:
        start = fixed_now + timedelta(days=1)
        await add_sessions(
            make_session(date_time=start, status=SessionStatus.CANCELLED),
            make_session(date_time=start, tutor_id=50, student_id=51),
        )

        found = await session_crud.get_active_in_window(
            test_async_db, start, start + timedelta(hours=1), 480, tutor_id=1, student_id=2,
        )

        assert found == []

    @pytest.mark.asyncio
    async def test_active_in_window_without_participants_should_return_empty(self, test_async_db, fixed_now) -> None:
        found = await session_crud.get_active_in_window(
            test_async_db, fixed_now, fixed_now + timedelta(hours=1), 480,
        )

        assert found == []

    @pytest.mark.asyncio
    async def test_confirmed_starting_between_should_be_half_open(
        self, test_async_db, add_sessions, make_session, fixed_now,
    ) -> None:
        at_start, _, _ = await add_sessions(
            make_session(date_time=fixed_now),
            make_session(date_time=fixed_now + timedelta(hours=1)),
            make_session(date_time=fixed_now + timedelta(minutes=30), status=SessionStatus.REQUESTED),
        )

        found = await session_crud.get_confirmed_starting_between(
            test_async_db, fixed_now, fixed_now + timedelta(hours=1),
        )

        assert [s.id for s in found] == [at_start.id]

    @pytest.mark.asyncio
    async def test_confirmed_started_before_should_include_cutoff(
        self, test_async_db, add_sessions, make_session, fixed_now,
    ) -> None:
        on_cutoff, _ = await add_sessions(
            make_session(date_time=fixed_now - timedelta(minutes=30)),
            make_session(date_time=fixed_now - timedelta(minutes=29)),
        )

        found = await session_crud.get_confirmed_started_before(test_async_db, fixed_now - timedelta(minutes=30))

        assert [s.id for s in found] == [on_cutoff.id]

    @pytest.mark.asyncio
    async def test_get_upcoming_should_return_future_unstarted_sessions(
        self, test_async_db, add_sessions, make_session, fixed_now,
    ) -> None:
        later, sooner, _, _ = await add_sessions(
            make_session(date_time=fixed_now + timedelta(days=2)),
            make_session(date_time=fixed_now + timedelta(hours=2), status=SessionStatus.REQUESTED),
            make_session(date_time=fixed_now - timedelta(hours=2)),
            make_session(date_time=fixed_now + timedelta(days=1), status=SessionStatus.CANCELLED),
        )

        found = await session_crud.get_upcoming(test_async_db, fixed_now, tutor_id=1)

        assert [s.id for s in found] == [sooner.id, later.id]


class TestSessionCRUDFilter:
    """Test suite for SessionCRUD.filter() and search()."""

    @pytest.mark.asyncio
    async def test_filter_should_combine_criteria_and_count(
        self, test_async_db, add_sessions, make_session, fixed_now,
    ) -> None:
        # Arrange
        cheap, _, _ = await add_sessions(
            make_session(date_time=fixed_now + timedelta(days=1), price=Decimal("20.00")),
            make_session(date_time=fixed_now + timedelta(days=2), price=Decimal("80.00")),
            make_session(
                date_time=fixed_now + timedelta(days=3),
                price=Decimal("25.00"),
                delivery_type=DeliveryType.IN_PERSON,
            ),
        )
        filters = SessionFilters(tutor_id=1, max_price=Decimal("30"), delivery_type=DeliveryType.ONLINE)

        # Act
        items, total = await session_crud.filter(test_async_db, filters)

        # Assert
        assert total == 1
        assert [s.id for s in items] == [cheap.id]

    @pytest.mark.asyncio
    async def test_filter_should_page_with_total(
        self, test_async_db, add_sessions, make_session, fixed_now,
    ) -> None:
        await add_sessions(*[
            make_session(date_time=fixed_now + timedelta(days=i + 1)) for i in range(5)
        ])

        items, total = await session_crud.filter(test_async_db, SessionFilters(), limit=2, offset=2)

        assert total == 5
        assert [s.date_time for s in items] == [
            fixed_now + timedelta(days=3),
            fixed_now + timedelta(days=4),
        ]

    @pytest.mark.asyncio
    async def test_search_should_match_notes_and_room_case_insensitively(
        self, test_async_db, add_sessions, make_session,
    ) -> None:
        by_note, by_room, _ = await add_sessions(
            make_session(notes="Bring the Algebra workbook"),
            make_session(room="Algebra Lab 2", delivery_type=DeliveryType.IN_PERSON),
            make_session(notes="Essay review"),
        )

        found = await session_crud.search(test_async_db, "algebra")

        assert {s.id for s in found} == {by_note.id, by_room.id}


class TestSessionRequestCRUD:
    """Test suite for SessionRequestCRUD queue queries."""

    @pytest.mark.asyncio
    async def test_pending_by_urgency_should_put_high_first(self, test_async_db, make_request) -> None:
        # Arrange
        low = make_request(urgency=Urgency.LOW)
        high = make_request(urgency=Urgency.HIGH)
        answered = make_request(urgency=Urgency.HIGH, status=RequestStatus.ACCEPTED)
        test_async_db.add_all([low, high, answered])
        await test_async_db.commit()

        # Act
        queue = await session_request_crud.get_pending_by_urgency(test_async_db, tutor_id=1)

        # Assert
        assert [r.id for r in queue] == [high.id, low.id]

    @pytest.mark.asyncio
    async def test_alternative_dates_should_round_trip_as_datetimes(
        self, test_async_db, make_request, fixed_now,
    ) -> None:
        proposed = fixed_now + timedelta(days=3)
        request = make_request(proposed_alternative_dates=[proposed.isoformat()])
        test_async_db.add(request)
        await test_async_db.commit()

        stored = await session_request_crud.get_by_id(test_async_db, request.id)

        assert stored.alternative_dates == [proposed]

    @pytest.mark.asyncio
    async def test_stale_pending_should_use_creation_time(self, test_async_db, make_request, fixed_now) -> None:
        old = make_request()
        old.created_at = fixed_now - timedelta(days=10)
        fresh = make_request()
        fresh.created_at = fixed_now - timedelta(days=1)
        test_async_db.add_all([old, fresh])
        await test_async_db.commit()

        stale = await session_request_crud.get_stale_pending(test_async_db, fixed_now - timedelta(days=7))

        assert [r.id for r in stale] == [old.id]


class TestSweepActionCRUD:
    """Test suite for SweepActionCRUD."""

    @pytest.mark.asyncio
    async def test_clear_reminders_should_keep_other_actions(
        self, test_async_db, add_sessions, make_session, fixed_now,
    ) -> None:
        # Arrange
        (session,) = await add_sessions(make_session())
        await sweep_action_crud.record(test_async_db, session.id, reminder_action(60), fixed_now)
        await sweep_action_crud.record(test_async_db, session.id, AUTO_START, fixed_now)
        await test_async_db.commit()

        # Act
        await sweep_action_crud.clear_reminders(test_async_db, session.id)
        await test_async_db.commit()

        # Assert
        assert not await sweep_action_crud.has_action(test_async_db, session.id, "reminder_60m")
        assert await sweep_action_crud.has_action(test_async_db, session.id, AUTO_START)
        assert await sweep_action_crud.get_actions(test_async_db, [session.id]) == {(session.id, AUTO_START)}
