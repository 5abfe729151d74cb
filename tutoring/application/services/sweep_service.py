"""
Booking sweep.

One pass over confirmed sessions that acts on the clock: sends reminders,
moves sessions whose start just passed into progress and cancels sessions
nobody started within the no-show grace period. Each action runs in its own
database session and transaction together with its idempotency record, so a
repeated pass does nothing new and one failing session does not stop the rest.

Dependencies: tutoring.boundary.db, tutoring.application.services.session_service
System role: Time-driven session transitions run by the background scheduler
"""

import logging
from dataclasses import dataclass
from datetime import datetime, timedelta
from uuid import UUID

from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from tutoring.application.services.session_service import NO_SHOW_NOTE, apply_transition
from tutoring.boundary.db.connection import transaction
from tutoring.boundary.db.CRUD.session_crud import session_crud
from tutoring.boundary.db.CRUD.sweep_action_crud import sweep_action_crud
from tutoring.boundary.db.models.sweep_action_model import AUTO_START, NO_SHOW_CANCEL, reminder_action
from tutoring.configs import SchedulerSettings
from tutoring.core.booking_states import SessionStatus, SessionTransition
from tutoring.core.clock import Clock, utc_now
from tutoring.core.notifications import SessionNotifier
from tutoring.core.participant_locks import ParticipantLocks, participant_locks
from tutoring.observability.log_utils import log_exception_with_context, log_with_context

logger = logging.getLogger(__name__)


@dataclass
class SweepReport:
    """Counts of actions taken by one sweep pass."""

    reminders_sent: int = 0
    sessions_started: int = 0
    sessions_cancelled: int = 0
    failures: int = 0

    def merge(self, other: "SweepReport") -> "SweepReport":
        return SweepReport(
            reminders_sent=self.reminders_sent + other.reminders_sent,
            sessions_started=self.sessions_started + other.sessions_started,
            sessions_cancelled=self.sessions_cancelled + other.sessions_cancelled,
            failures=self.failures + other.failures,
        )


def due_reminder_lead(minutes_until_start: float, leads: list[int]) -> int | None:
    """Tightest reminder lead the session is already inside, or None."""
    due = [lead for lead in leads if minutes_until_start <= lead]
    return min(due) if due else None


class BookingSweeper:
    """Runs the time-driven session actions."""

    def __init__(
        self,
        session_factory: async_sessionmaker[AsyncSession],
        notifier: SessionNotifier | None,
        settings: SchedulerSettings,
        clock: Clock = utc_now,
        locks: ParticipantLocks = participant_locks,
    ) -> None:
        """
        Initialize booking sweeper.

        Args:
            session_factory: Factory for the per-action database sessions
            notifier: Booking event notifier (None disables notifications)
            settings: Reminder leads and auto-start / no-show windows
            clock: Source of the current time when a sweep is not given one
            locks: Participant lock registry shared with the API writers
        """
        self.session_factory = session_factory
        self.notifier = notifier
        self.settings = settings
        self.clock = clock
        self.locks = locks

    async def _confirmed_session_ids(self, start: datetime, end: datetime) -> list[tuple[UUID, datetime]]:
        async with self.session_factory() as db:
            sessions = await session_crud.get_confirmed_starting_between(db, start, end)
            return [(s.id, s.date_time) for s in sessions]

    async def _remind(self, session_id: UUID, lead: int, now: datetime) -> bool:
        action = reminder_action(lead)
        async with self.session_factory() as db:
            session = await session_crud.get_by_id(db, session_id)
            if session is None or session.status is not SessionStatus.CONFIRMED:
                return False
            if await sweep_action_crud.has_action(db, session_id, action):
                return False
            async with transaction(db):
                await sweep_action_crud.record(db, session_id, action, now)

        if self.notifier is not None:
            await self.notifier.session_reminder(session, lead)
        return True

    async def send_due_reminders(self, now: datetime | None = None) -> SweepReport:
        """
        Send the tightest due reminder for each upcoming confirmed session.

        A session 50 minutes away is inside the 60 and 1440 minute leads; only
        the 60 minute reminder goes out, and only once.
        """
        now = now or self.clock()
        report = SweepReport()
        leads = sorted(set(self.settings.reminder_lead_minutes))
        if not leads:
            return report

        upcoming = await self._confirmed_session_ids(
            now + timedelta(microseconds=1), now + timedelta(minutes=max(leads)),
        )
        for session_id, date_time in upcoming:
            lead = due_reminder_lead((date_time - now).total_seconds() / 60, leads)
            if lead is None:
                continue
            try:
                if await self._remind(session_id, lead, now):
                    report.reminders_sent += 1
            except Exception as e:
                report.failures += 1
                log_exception_with_context(
                    logger, "Reminder failed", e, session_id=session_id, lead_minutes=lead,
                )
        return report

    async def _transition(
        self,
        session_id: UUID,
        transition: SessionTransition,
        action: str,
        now: datetime,
        note: str | None = None,
    ):
        async with self.session_factory() as db:
            session = await session_crud.get_by_id(db, session_id)
            if session is None:
                return None
            async with self.locks.hold(session.tutor_id, session.student_id):
                async with transaction(db):
                    # An API write may have moved it on while we waited for the locks
                    session = await session_crud.get_for_update(db, session_id)
                    if session is None or session.status is not SessionStatus.CONFIRMED:
                        return None
                    if await sweep_action_crud.has_action(db, session_id, action):
                        return None
                    apply_transition(session, transition, now)
                    if note:
                        session.append_note(note)
                    await sweep_action_crud.record(db, session_id, action, now)
            return session

    async def auto_start_due_sessions(self, now: datetime | None = None) -> SweepReport:
        """Start confirmed sessions whose start time passed less than the window ago."""
        now = now or self.clock()
        report = SweepReport()
        window = timedelta(minutes=self.settings.auto_start_window_minutes)

        # (now - window, now] as a half-open query range
        tick = timedelta(microseconds=1)
        due = await self._confirmed_session_ids(now - window + tick, now + tick)
        for session_id, _ in due:
            try:
                session = await self._transition(session_id, SessionTransition.START, AUTO_START, now)
            except Exception as e:
                report.failures += 1
                log_exception_with_context(logger, "Auto-start failed", e, session_id=session_id)
                continue
            if session is None:
                continue
            report.sessions_started += 1
            if self.notifier is not None:
                await self.notifier.session_started(session)
        return report

    async def cancel_no_show_sessions(self, now: datetime | None = None) -> SweepReport:
        """Cancel confirmed sessions still unstarted a full grace period after their start."""
        now = now or self.clock()
        report = SweepReport()
        cutoff = now - timedelta(minutes=self.settings.no_show_grace_minutes)

        async with self.session_factory() as db:
            missed = [s.id for s in await session_crud.get_confirmed_started_before(db, cutoff)]

        for session_id in missed:
            try:
                session = await self._transition(
                    session_id, SessionTransition.CANCEL, NO_SHOW_CANCEL, now, note=NO_SHOW_NOTE,
                )
            except Exception as e:
                report.failures += 1
                log_exception_with_context(logger, "No-show cancellation failed", e, session_id=session_id)
                continue
            if session is None:
                continue
            report.sessions_cancelled += 1
            if self.notifier is not None:
                await self.notifier.session_missed(session)
        return report

    async def run_sweep(self, now: datetime | None = None) -> SweepReport:
        """
        Run one full pass: reminders, auto-start, then no-show cancellation.

        Args:
            now: Sweep time (defaults to the clock)

        Returns:
            SweepReport: Counts of actions taken and failures
        """
        now = now or self.clock()
        report = await self.send_due_reminders(now)
        report = report.merge(await self.auto_start_due_sessions(now))
        report = report.merge(await self.cancel_no_show_sessions(now))

        level = logging.WARNING if report.failures else logging.INFO
        log_with_context(
            logger,
            level,
            "Booking sweep finished",
            sweep_time=now,
            reminders_sent=report.reminders_sent,
            sessions_started=report.sessions_started,
            sessions_cancelled=report.sessions_cancelled,
            failures=report.failures,
        )
        return report
