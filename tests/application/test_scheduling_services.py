"""
Test suite for AvailabilityChecker and SlotFinder against SQLite.

System role: Verification of availability and slot search use cases
"""

import uuid
from datetime import timedelta

import pytest

from tutoring.application.services.availability_checker import AvailabilityQuery
from tutoring.core.booking_states import SessionStatus
from tutoring.core.exceptions import NotFoundError, ValidationError
from tutoring.core.scheduling import ConflictReason, SlotPreferences, TimeOfDay


class TestAvailabilityChecker:
    """Test suite for AvailabilityChecker."""

    @pytest.mark.asyncio
    async def test_tutor_and_student_availability(
        self, availability_checker, add_sessions, make_session, fixed_now,
    ) -> None:
        # Arrange
        start = fixed_now + timedelta(days=1)
        await add_sessions(make_session(date_time=start, tutor_id=1, student_id=2))

        # Act / Assert
        assert not await availability_checker.is_tutor_available(1, start + timedelta(minutes=30), 60)
        assert not await availability_checker.is_student_available(2, start, 30)
        assert await availability_checker.is_tutor_available(1, start + timedelta(hours=1), 60)
        assert await availability_checker.are_both_available(5, 6, start, 60)

    @pytest.mark.asyncio
    async def test_excluded_session_should_not_block(
        self, availability_checker, add_sessions, make_session, fixed_now,
    ) -> None:
        start = fixed_now + timedelta(days=1)
        (existing,) = await add_sessions(make_session(date_time=start))

        assert await availability_checker.is_tutor_available(1, start, 60, exclude_session_id=existing.id)

    @pytest.mark.asyncio
    async def test_validate_scheduling_should_collect_every_problem(
        self, availability_checker, add_sessions, make_session, fixed_now,
    ) -> None:
        # Arrange
        start = fixed_now + timedelta(minutes=30)
        await add_sessions(make_session(date_time=start))

        # Act
        result = await availability_checker.validate_scheduling(1, 2, start, 600)

        # Assert
        assert not result.valid
        assert [c.reason for c in result.conflicts] == [ConflictReason.TUTOR_BUSY, ConflictReason.STUDENT_BUSY]
        assert len(result.errors) == 3
        assert "Scheduling conflicts found: 2" in result.errors

    @pytest.mark.asyncio
    async def test_validate_scheduling_should_pass_for_free_slot(self, availability_checker, fixed_now) -> None:
        result = await availability_checker.validate_scheduling(1, 2, fixed_now + timedelta(days=1), 60)

        assert result.valid
        assert result.errors == []

    @pytest.mark.asyncio
    async def test_bulk_check_should_keep_input_order(
        self, availability_checker, add_sessions, make_session, fixed_now,
    ) -> None:
        start = fixed_now + timedelta(days=1)
        await add_sessions(make_session(date_time=start))
        queries = [
            AvailabilityQuery(1, 2, start, 60),
            AvailabilityQuery(1, 2, start + timedelta(hours=2), 60),
        ]

        results = await availability_checker.check_bulk_availability(queries)

        assert [r.available for r in results] == [False, True]
        assert results[0].query is queries[0]


class TestSlotFinder:
    """Test suite for SlotFinder."""

    @pytest.mark.asyncio
    async def test_find_slots_should_skip_busy_time(
        self, slot_finder, add_sessions, make_session, fixed_now,
    ) -> None:
        # Arrange
        day = fixed_now + timedelta(days=1)
        await add_sessions(make_session(date_time=day.replace(hour=10), duration_minutes=90))

        # Act
        slots = await slot_finder.find_slots(
            1, day.replace(hour=9), day.replace(hour=13), 60, student_id=2, max_results=10,
        )

        # Assert
        starts = [s.start for s in slots]
        assert day.replace(hour=9) in starts
        assert day.replace(hour=11, minute=30) in starts
        assert day.replace(hour=10) not in starts
        assert day.replace(hour=11) not in starts
        assert all(s.duration_minutes == 60 for s in slots)

    @pytest.mark.asyncio
    async def test_find_slots_should_not_offer_past_times(self, slot_finder, fixed_now) -> None:
        slots = await slot_finder.find_slots(
            1, fixed_now - timedelta(hours=5), fixed_now + timedelta(hours=2), 60, max_results=10,
        )

        assert slots
        assert all(s.start >= fixed_now for s in slots)
        assert slots[0].start == fixed_now

    @pytest.mark.asyncio
    async def test_horizon_entirely_in_past_should_return_empty(self, slot_finder, fixed_now) -> None:
        slots = await slot_finder.find_slots(1, fixed_now - timedelta(days=2), fixed_now - timedelta(days=1), 60)

        assert slots == []

    @pytest.mark.asyncio
    @pytest.mark.parametrize(
        "hours,duration,max_results",
        [(-1, 60, 5), (2, 10, 5), (2, 60, 0), (24 * 61, 60, 5)],
    )
    async def test_invalid_search_should_fail(self, slot_finder, fixed_now, hours, duration, max_results) -> None:
        start = fixed_now + timedelta(hours=1)

        with pytest.raises(ValidationError):
            await slot_finder.find_slots(1, start, start + timedelta(hours=hours), duration, max_results=max_results)

    @pytest.mark.asyncio
    async def test_next_available_slot_should_follow_busy_block(
        self, slot_finder, add_sessions, make_session, fixed_now,
    ) -> None:
        await add_sessions(make_session(date_time=fixed_now, duration_minutes=120))

        slot = await slot_finder.next_available_slot(1, 60)

        assert slot.start == fixed_now + timedelta(hours=2)

    @pytest.mark.asyncio
    async def test_suggest_slots_should_honor_preferences(self, slot_finder, fixed_now) -> None:
        prefs = SlotPreferences(time_of_day=TimeOfDay.EVENING)

        slots = await slot_finder.suggest_slots(1, 2, 60, preferences=prefs, search_days=2, max_results=3)

        assert len(slots) == 3
        assert all(s.start.hour >= 17 for s in slots)

    @pytest.mark.asyncio
    async def test_suggest_slots_should_start_two_hours_ahead(self, slot_finder, fixed_now) -> None:
        slots = await slot_finder.suggest_slots(1, 2, 60, max_results=1)

        assert slots[0].start == fixed_now + timedelta(hours=2)
        assert slots[0].confidence == 1.0

    @pytest.mark.asyncio
    async def test_alternatives_should_exclude_current_start(
        self, slot_finder, add_sessions, make_session, fixed_now,
    ) -> None:
        # Arrange
        (session,) = await add_sessions(make_session(date_time=fixed_now + timedelta(days=2)))

        # Act
        slots = await slot_finder.find_alternative_slots(session.id, count=2)

        # Assert
        assert [s.start for s in slots] == [
            session.date_time - timedelta(minutes=30),
            session.date_time + timedelta(minutes=30),
        ]

    @pytest.mark.asyncio
    async def test_alternatives_should_ignore_cancelled_blockers(
        self, slot_finder, add_sessions, make_session, fixed_now,
    ) -> None:
        target = fixed_now + timedelta(days=2)
        session, _ = await add_sessions(
            make_session(date_time=target),
            make_session(date_time=target + timedelta(hours=1), status=SessionStatus.CANCELLED, student_id=9),
        )

        slots = await slot_finder.find_alternative_slots(session.id, count=5)

        assert target + timedelta(hours=1) in [s.start for s in slots]

    @pytest.mark.asyncio
    async def test_alternatives_for_unknown_session_should_raise(self, slot_finder) -> None:
        with pytest.raises(NotFoundError):
            await slot_finder.find_alternative_slots(uuid.uuid4())
