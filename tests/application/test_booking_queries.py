"""
Test suite for the read-side queries of the booking services.

Covers per-participant listings, status and subject filters, date ranges,
overdue confirmed sessions and stale pending requests.

System role: Verification of booking service queries
"""

from datetime import timedelta

import pytest

from tutoring.core.booking_states import RequestStatus, SessionStatus
from tutoring.core.exceptions import ValidationError


class TestSessionQueries:
    """Test suite for SessionLifecycleService read queries."""

    @pytest.mark.asyncio
    async def test_tutor_sessions_should_be_ordered_by_start_and_paged(
        self, session_service, add_sessions, make_session, fixed_now,
    ) -> None:
        # Arrange
        late, early, middle = await add_sessions(
            make_session(date_time=fixed_now + timedelta(days=3)),
            make_session(date_time=fixed_now + timedelta(days=1)),
            make_session(date_time=fixed_now + timedelta(days=2)),
        )
        await add_sessions(make_session(tutor_id=99, date_time=fixed_now + timedelta(days=1, hours=5)))

        # Act
        everything = await session_service.get_tutor_sessions(1)
        second_page = await session_service.get_tutor_sessions(1, limit=1, offset=1)

        # Assert
        assert [s.id for s in everything] == [early.id, middle.id, late.id]
        assert [s.id for s in second_page] == [middle.id]

    @pytest.mark.asyncio
    async def test_student_sessions_should_filter_by_status(
        self, session_service, add_sessions, make_session, fixed_now,
    ) -> None:
        # Arrange
        confirmed, cancelled = await add_sessions(
            make_session(date_time=fixed_now + timedelta(days=1)),
            make_session(date_time=fixed_now + timedelta(days=2), status=SessionStatus.CANCELLED),
        )
        await add_sessions(make_session(student_id=3, date_time=fixed_now + timedelta(days=4)))

        # Act
        all_mine = await session_service.get_student_sessions(2)
        only_cancelled = await session_service.get_student_sessions(2, SessionStatus.CANCELLED)

        # Assert
        assert {s.id for s in all_mine} == {confirmed.id, cancelled.id}
        assert [s.id for s in only_cancelled] == [cancelled.id]

    @pytest.mark.asyncio
    async def test_sessions_by_status_and_subject(
        self, session_service, add_sessions, make_session, fixed_now,
    ) -> None:
        # Arrange
        requested, math, physics = await add_sessions(
            make_session(date_time=fixed_now + timedelta(days=1), status=SessionStatus.REQUESTED),
            make_session(date_time=fixed_now + timedelta(days=2)),
            make_session(date_time=fixed_now + timedelta(days=3), subject_id=11),
        )

        # Act
        by_status = await session_service.get_sessions_by_status(SessionStatus.REQUESTED)
        by_subject = await session_service.get_subject_sessions(10)
        confirmed_math = await session_service.get_subject_sessions(10, SessionStatus.CONFIRMED)

        # Assert
        assert [s.id for s in by_status] == [requested.id]
        assert {s.id for s in by_subject} == {requested.id, math.id}
        assert [s.id for s in confirmed_math] == [math.id]
        assert physics.id not in {s.id for s in by_subject}

    @pytest.mark.asyncio
    async def test_sessions_in_range_should_exclude_end_boundary(
        self, session_service, add_sessions, make_session, fixed_now,
    ) -> None:
        # Arrange
        start = fixed_now + timedelta(days=1)
        end = fixed_now + timedelta(days=2)
        inside, _ = await add_sessions(
            make_session(date_time=start),
            make_session(date_time=end),
        )

        # Act
        found = await session_service.get_sessions_in_range(start, end)

        # Assert
        assert [s.id for s in found] == [inside.id]

    @pytest.mark.asyncio
    async def test_sessions_in_range_should_reject_inverted_range(self, session_service, fixed_now) -> None:
        # Act / Assert
        with pytest.raises(ValidationError) as exc_info:
            await session_service.get_sessions_in_range(fixed_now, fixed_now)

        assert exc_info.value.field == "end"

    @pytest.mark.asyncio
    async def test_expired_confirmed_sessions_should_only_include_past_starts(
        self, session_service, add_sessions, make_session, fixed_now,
    ) -> None:
        # Arrange
        overdue, _, _ = await add_sessions(
            make_session(date_time=fixed_now - timedelta(hours=2)),
            make_session(date_time=fixed_now + timedelta(hours=2)),
            make_session(date_time=fixed_now - timedelta(hours=4), status=SessionStatus.COMPLETED),
        )

        # Act
        expired = await session_service.get_expired_confirmed_sessions()

        # Assert
        assert [s.id for s in expired] == [overdue.id]


class TestRequestQueries:
    """Test suite for RequestNegotiator read queries."""

    @pytest.mark.asyncio
    async def test_participant_requests_should_be_newest_first(
        self, negotiator, add_sessions, make_request, fixed_now,
    ) -> None:
        # Arrange
        older, newer = await add_sessions(
            make_request(created_at=fixed_now - timedelta(days=2)),
            make_request(created_at=fixed_now - timedelta(hours=1)),
        )
        await add_sessions(make_request(student_id=3, tutor_id=99))

        # Act
        student_side = await negotiator.get_student_requests(2)
        tutor_side = await negotiator.get_tutor_requests(1)
        first_only = await negotiator.get_tutor_requests(1, limit=1)

        # Assert
        assert [r.id for r in student_side] == [newer.id, older.id]
        assert [r.id for r in tutor_side] == [newer.id, older.id]
        assert [r.id for r in first_only] == [newer.id]

    @pytest.mark.asyncio
    async def test_requests_by_status_and_subject(
        self, negotiator, add_sessions, make_request,
    ) -> None:
        # Arrange
        pending, rejected, other_subject = await add_sessions(
            make_request(),
            make_request(status=RequestStatus.REJECTED),
            make_request(subject_id=11),
        )

        # Act
        rejected_only = await negotiator.get_requests_by_status(RequestStatus.REJECTED)
        by_subject = await negotiator.get_subject_requests(10)
        pending_subject = await negotiator.get_subject_requests(10, RequestStatus.PENDING)

        # Assert
        assert [r.id for r in rejected_only] == [rejected.id]
        assert {r.id for r in by_subject} == {pending.id, rejected.id}
        assert [r.id for r in pending_subject] == [pending.id]
        assert other_subject.id not in {r.id for r in by_subject}

    @pytest.mark.asyncio
    async def test_requests_in_range_should_match_desired_time(
        self, negotiator, add_sessions, make_request, fixed_now,
    ) -> None:
        # Arrange
        start = fixed_now + timedelta(days=1)
        end = fixed_now + timedelta(days=3)
        later, earlier, _ = await add_sessions(
            make_request(desired_date_time=fixed_now + timedelta(days=2, hours=4)),
            make_request(desired_date_time=fixed_now + timedelta(days=1, hours=1)),
            make_request(desired_date_time=end),
        )

        # Act
        found = await negotiator.get_requests_in_range(start, end)

        # Assert
        assert [r.id for r in found] == [earlier.id, later.id]

    @pytest.mark.asyncio
    async def test_requests_in_range_should_reject_inverted_range(self, negotiator, fixed_now) -> None:
        # Act / Assert
        with pytest.raises(ValidationError):
            await negotiator.get_requests_in_range(fixed_now + timedelta(days=1), fixed_now)

    @pytest.mark.asyncio
    async def test_stale_requests_should_use_configured_age_by_default(
        self, negotiator, add_sessions, make_request, fixed_now,
    ) -> None:
        # Arrange
        stale, _, _ = await add_sessions(
            make_request(created_at=fixed_now - timedelta(days=8)),
            make_request(created_at=fixed_now - timedelta(days=3)),
            make_request(created_at=fixed_now - timedelta(days=20), status=RequestStatus.ACCEPTED),
        )

        # Act
        default_age = await negotiator.get_stale_requests()
        short_age = await negotiator.get_stale_requests(days=2)

        # Assert
        assert [r.id for r in default_age] == [stale.id]
        assert len(short_age) == 2
