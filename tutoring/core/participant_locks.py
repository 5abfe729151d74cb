"""
Per-participant booking locks.

Availability checks and the write that depends on them must not interleave
with another booking for the same tutor or student. Callers hold the locks of
both participants across check-and-commit. Locks are acquired in sorted key
order so two bookings sharing participants cannot deadlock.

The registry is process-local; separate worker processes do not see each
other's locks.

Dependencies: asyncio
System role: Serialization of check-then-act booking writes
"""

import asyncio
from contextlib import asynccontextmanager
from typing import AsyncIterator

LockKey = tuple[str, int]


class ParticipantLocks:
    """Registry of asyncio locks keyed by (role, participant id)."""

    def __init__(self) -> None:
        self._locks: dict[LockKey, asyncio.Lock] = {}
        self._holders: dict[LockKey, int] = {}

    def _acquire_ref(self, key: LockKey) -> asyncio.Lock:
        lock = self._locks.get(key)
        if lock is None:
            lock = asyncio.Lock()
            self._locks[key] = lock
        self._holders[key] = self._holders.get(key, 0) + 1
        return lock

    def _release_ref(self, key: LockKey) -> None:
        remaining = self._holders[key] - 1
        if remaining:
            self._holders[key] = remaining
        else:
            del self._holders[key]
            del self._locks[key]

    @asynccontextmanager
    async def hold(self, tutor_id: int, student_id: int) -> AsyncIterator[None]:
        """
        Hold the tutor's and the student's booking locks.

        Args:
            tutor_id: Tutor participant ID
            student_id: Student participant ID

        Usage:
            async with participant_locks.hold(session.tutor_id, session.student_id):
                ...check availability, write, commit...
        """
        keys = sorted({("student", student_id), ("tutor", tutor_id)})
        locks = [self._acquire_ref(key) for key in keys]
        acquired: list[asyncio.Lock] = []
        try:
            for lock in locks:
                await lock.acquire()
                acquired.append(lock)
            yield
        finally:
            for lock in reversed(acquired):
                lock.release()
            for key in keys:
                self._release_ref(key)

    def __len__(self) -> int:
        return len(self._locks)


participant_locks = ParticipantLocks()
