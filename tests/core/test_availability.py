"""
Test suite for overlap detection over loaded sessions.

System role: Verification of conflict rules
"""

from datetime import datetime, timedelta
from types import SimpleNamespace
from uuid import uuid4

import pytest

from tutoring.core.booking_states import SessionStatus
from tutoring.core.scheduling import (
    ConflictReason,
    ParticipantRole,
    find_conflicts,
    has_conflict,
    intervals_overlap,
)

START = datetime(2025, 1, 11, 10, 0)


def booked(tutor_id=1, student_id=2, start=START, minutes=60, status=SessionStatus.CONFIRMED):
    return SimpleNamespace(
        id=uuid4(),
        tutor_id=tutor_id,
        student_id=student_id,
        date_time=start,
        duration_minutes=minutes,
        status=status,
    )


class TestIntervalsOverlap:
    """Test suite for the half-open overlap test."""

    def test_touching_intervals_should_not_overlap(self) -> None:
        end = START + timedelta(hours=1)
        assert not intervals_overlap(START, end, end, end + timedelta(hours=1))
        assert not intervals_overlap(end, end + timedelta(hours=1), START, end)

    def test_partial_overlap_should_be_detected(self) -> None:
        assert intervals_overlap(
            START, START + timedelta(hours=1),
            START + timedelta(minutes=59), START + timedelta(hours=2),
        )

    def test_contained_interval_should_overlap(self) -> None:
        assert intervals_overlap(
            START, START + timedelta(hours=3),
            START + timedelta(hours=1), START + timedelta(hours=2),
        )


class TestFindConflicts:
    """Test suite for find_conflicts()."""

    def test_should_report_tutor_conflict(self) -> None:
        # Arrange
        existing = booked(tutor_id=1, student_id=5)

        # Act
        conflicts = find_conflicts(
            [existing], 1, 2, START + timedelta(minutes=30), START + timedelta(minutes=90),
        )

        # Assert
        assert len(conflicts) == 1
        assert conflicts[0].reason is ConflictReason.TUTOR_BUSY
        assert conflicts[0].session_id == existing.id
        assert conflicts[0].end == START + timedelta(hours=1)

    def test_should_report_both_sides_tutor_first(self) -> None:
        existing = booked(tutor_id=1, student_id=2)

        conflicts = find_conflicts([existing], 1, 2, START, START + timedelta(hours=1))

        assert [c.reason for c in conflicts] == [ConflictReason.TUTOR_BUSY, ConflictReason.STUDENT_BUSY]

    def test_adjacent_session_should_not_conflict(self) -> None:
        existing = booked()

        conflicts = find_conflicts(
            [existing], 1, 2, START + timedelta(hours=1), START + timedelta(hours=2),
        )

        assert conflicts == []

    @pytest.mark.parametrize("status", [SessionStatus.CANCELLED, SessionStatus.COMPLETED])
    def test_terminal_sessions_should_not_block(self, status) -> None:
        existing = booked(status=status)

        assert find_conflicts([existing], 1, 2, START, START + timedelta(hours=1)) == []

    def test_in_progress_session_should_block(self) -> None:
        existing = booked(status=SessionStatus.IN_PROGRESS)

        assert find_conflicts([existing], 1, None, START, START + timedelta(minutes=30))

    def test_excluded_session_should_be_ignored(self) -> None:
        existing = booked()

        conflicts = find_conflicts(
            [existing], 1, 2, START, START + timedelta(hours=1), exclude_session_id=existing.id,
        )

        assert conflicts == []

    def test_other_participants_should_not_conflict(self) -> None:
        existing = booked(tutor_id=7, student_id=8)

        assert find_conflicts([existing], 1, 2, START, START + timedelta(hours=1)) == []

    def test_conflicts_should_be_sorted_by_start(self) -> None:
        late = booked(start=START + timedelta(minutes=90))
        early = booked(start=START)

        conflicts = find_conflicts([late, early], 1, None, START, START + timedelta(hours=3))

        assert [c.session_id for c in conflicts] == [early.id, late.id]


def test_has_conflict_should_check_one_role() -> None:
    existing = booked(tutor_id=1, student_id=2)
    window = (START, START + timedelta(minutes=30))

    assert has_conflict([existing], 2, ParticipantRole.STUDENT, *window)
    assert not has_conflict([existing], 2, ParticipantRole.TUTOR, *window)
