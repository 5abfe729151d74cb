"""
Scheduling logic: overlap detection and slot search over loaded sessions.
"""

from tutoring.core.scheduling.availability import (
    ConflictReason,
    ParticipantRole,
    SchedulingConflict,
    find_conflicts,
    has_conflict,
    intervals_overlap,
    participant_conflicts,
)
from tutoring.core.scheduling.slots import (
    CandidateSlot,
    SlotPreferences,
    TimeOfDay,
    iter_free_windows,
    rank_slots,
)

__all__ = [
    "CandidateSlot",
    "ConflictReason",
    "ParticipantRole",
    "SchedulingConflict",
    "SlotPreferences",
    "TimeOfDay",
    "find_conflicts",
    "has_conflict",
    "intervals_overlap",
    "iter_free_windows",
    "participant_conflicts",
    "rank_slots",
]
