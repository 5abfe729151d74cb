"""
Free slot search.

Walks candidate start times across a horizon at a fixed granularity, keeps
windows that collide with no active session of the tutor or the student,
applies soft preferences and ranks the survivors by closeness to a preferred
start. Candidates are produced lazily; ranking keeps only the best
`max_results` in memory.

Dependencies: tutoring.core.scheduling.availability
System role: Pure slot search used by the SlotFinder service
"""

import enum
import heapq
from dataclasses import dataclass
from datetime import datetime, time, timedelta
from typing import Any, Iterable, Iterator, Sequence

from tutoring.core.scheduling.availability import BookedSession, find_conflicts


class TimeOfDay(str, enum.Enum):
    """Start time buckets: morning before noon, afternoon until 17:00, evening after."""

    MORNING = "morning"
    AFTERNOON = "afternoon"
    EVENING = "evening"


NOON = time(12, 0)
EVENING_START = time(17, 0)


def time_of_day(value: datetime) -> TimeOfDay:
    moment = value.time()
    if moment < NOON:
        return TimeOfDay.MORNING
    if moment < EVENING_START:
        return TimeOfDay.AFTERNOON
    return TimeOfDay.EVENING


@dataclass(frozen=True)
class SlotPreferences:
    """
    Soft constraints for slot search.

    Attributes:
        preferred_start: Ranking anchor; defaults to the horizon start
        time_of_day: Keep only slots starting in this bucket
        weekdays: Allowed weekdays (0 = Monday ... 6 = Sunday)
        earliest_time: Slots may not start before this time of day
        latest_time: Slots must end by this time of day on their start date
    """

    preferred_start: datetime | None = None
    time_of_day: TimeOfDay | None = None
    weekdays: frozenset[int] | None = None
    earliest_time: time | None = None
    latest_time: time | None = None


@dataclass(frozen=True)
class CandidateSlot:
    """A free window with its ranking score (1.0 = exactly the preferred start)."""

    start: datetime
    end: datetime
    duration_minutes: int
    confidence: float


def align_to_granularity(value: datetime, granularity_minutes: int) -> datetime:
    """Round up to the next multiple of the granularity counted from midnight."""
    step = timedelta(minutes=granularity_minutes)
    midnight = value.replace(hour=0, minute=0, second=0, microsecond=0)
    remainder = (value - midnight) % step
    if not remainder:
        return value
    return value + (step - remainder)


def iter_candidate_starts(
    horizon_start: datetime,
    horizon_end: datetime,
    duration_minutes: int,
    granularity_minutes: int,
) -> Iterator[datetime]:
    """Yield aligned start times whose whole window fits inside the horizon."""
    step = timedelta(minutes=granularity_minutes)
    length = timedelta(minutes=duration_minutes)
    candidate = align_to_granularity(horizon_start, granularity_minutes)
    while candidate + length <= horizon_end:
        yield candidate
        candidate += step


def matches_preferences(start: datetime, end: datetime, preferences: SlotPreferences | None) -> bool:
    if preferences is None:
        return True
    if preferences.time_of_day is not None and time_of_day(start) is not preferences.time_of_day:
        return False
    if preferences.weekdays and start.weekday() not in preferences.weekdays:
        return False
    if preferences.earliest_time is not None and start.time() < preferences.earliest_time:
        return False
    if preferences.latest_time is not None:
        if end.date() != start.date() or end.time() > preferences.latest_time:
            return False
    return True


def iter_free_windows(
    sessions: Sequence[BookedSession],
    tutor_id: int,
    student_id: int | None,
    horizon_start: datetime,
    horizon_end: datetime,
    duration_minutes: int,
    granularity_minutes: int,
    preferences: SlotPreferences | None = None,
    exclude_session_id: Any = None,
    exclude_starts: Iterable[datetime] = (),
) -> Iterator[tuple[datetime, datetime]]:
    """
    Lazily yield conflict-free windows matching the preferences.

    Args:
        sessions: Active sessions of the tutor and student around the horizon
        tutor_id: Tutor to keep free
        student_id: Student to keep free, or None for a tutor-only search
        horizon_start: Earliest allowed start
        horizon_end: Latest allowed end
        duration_minutes: Window length
        granularity_minutes: Step between candidate starts
        preferences: Optional soft constraints
        exclude_session_id: Session ignored as a blocker (the one being moved)
        exclude_starts: Start times never offered

    Yields:
        tuple[datetime, datetime]: (start, end) of each free window
    """
    length = timedelta(minutes=duration_minutes)
    skipped = set(exclude_starts)
    for start in iter_candidate_starts(horizon_start, horizon_end, duration_minutes, granularity_minutes):
        if start in skipped:
            continue
        end = start + length
        if not matches_preferences(start, end, preferences):
            continue
        if find_conflicts(sessions, tutor_id, student_id, start, end, exclude_session_id):
            continue
        yield start, end


def rank_slots(
    windows: Iterable[tuple[datetime, datetime]],
    preferred_start: datetime,
    horizon_start: datetime,
    horizon_end: datetime,
    max_results: int,
) -> list[CandidateSlot]:
    """
    Keep the `max_results` windows closest to the preferred start.

    Confidence is 1 - distance / horizon length, clamped to [0, 1]. Ties are
    broken by the earlier start.
    """
    span = (horizon_end - horizon_start).total_seconds() or 1.0

    def distance(window: tuple[datetime, datetime]) -> tuple[float, datetime]:
        return abs((window[0] - preferred_start).total_seconds()), window[0]

    best = heapq.nsmallest(max_results, windows, key=distance)
    ranked = []
    for start, end in best:
        score = 1.0 - abs((start - preferred_start).total_seconds()) / span
        ranked.append(CandidateSlot(
            start=start,
            end=end,
            duration_minutes=int((end - start).total_seconds() // 60),
            confidence=round(min(1.0, max(0.0, score)), 4),
        ))
    return ranked
