"""
Shared pytest fixtures for the booking test suite.

Provides an in-memory aiosqlite database, a pinned clock, a recording
notification dispatcher and service instances wired to them.

System role: Test infrastructure
"""

from datetime import datetime, timedelta
from decimal import Decimal

import pytest
import pytest_asyncio
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.pool import StaticPool

from tutoring.application.services import (
    AvailabilityChecker,
    BookingSweeper,
    RequestNegotiator,
    SessionLifecycleService,
    SlotFinder,
)
from tutoring.boundary.db.create_tables import create_all_tables, drop_all_tables
from tutoring.boundary.db.models import SessionModel, SessionRequestModel
from tutoring.boundary.notifications import NotificationDispatcher
from tutoring.configs import BookingSettings, SchedulerSettings
from tutoring.core.booking_states import DeliveryType, RequestStatus, SessionStatus, Urgency
from tutoring.core.notifications import NotificationEvent, SessionNotifier
from tutoring.core.participant_locks import ParticipantLocks

FIXED_NOW = datetime(2025, 1, 10, 9, 0)
TUTOR_ID = 1
STUDENT_ID = 2
OTHER_STUDENT_ID = 3
SUBJECT_ID = 10


class RecordingDispatcher(NotificationDispatcher):
    """Dispatcher that keeps every event for assertions."""

    def __init__(self) -> None:
        self.events: list[NotificationEvent] = []

    async def dispatch(self, event: NotificationEvent) -> None:
        self.events.append(event)

    def kinds(self) -> list[str]:
        return [event.kind.value for event in self.events]

    def recipients(self, kind: str) -> list[int]:
        return sorted(event.recipient_id for event in self.events if event.kind.value == kind)


class MutableClock:
    """Pinned clock that tests can move forward."""

    def __init__(self, now: datetime) -> None:
        self.now = now

    def __call__(self) -> datetime:
        return self.now

    def advance(self, **kwargs) -> datetime:
        self.now += timedelta(**kwargs)
        return self.now


@pytest.fixture
def fixed_now() -> datetime:
    return FIXED_NOW


@pytest.fixture
def clock(fixed_now: datetime) -> MutableClock:
    return MutableClock(fixed_now)


@pytest.fixture
def booking_settings() -> BookingSettings:
    return BookingSettings()


@pytest.fixture
def scheduler_settings() -> SchedulerSettings:
    return SchedulerSettings()


@pytest.fixture
def dispatcher() -> RecordingDispatcher:
    return RecordingDispatcher()


@pytest.fixture
def notifier(dispatcher: RecordingDispatcher) -> SessionNotifier:
    return SessionNotifier(dispatcher)


@pytest.fixture
def locks() -> ParticipantLocks:
    return ParticipantLocks()


@pytest_asyncio.fixture
async def test_engine():
    """In-memory SQLite engine with all booking tables created."""
    engine = create_async_engine(
        "sqlite+aiosqlite:///:memory:",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    await create_all_tables(engine)

    yield engine

    await drop_all_tables(engine)
    await engine.dispose()


@pytest.fixture
def session_factory(test_engine) -> async_sessionmaker[AsyncSession]:
    return async_sessionmaker(
        bind=test_engine,
        class_=AsyncSession,
        autoflush=False,
        expire_on_commit=False,
    )


@pytest_asyncio.fixture
async def test_async_db(session_factory) -> AsyncSession:
    """Async database session for CRUD and service tests."""
    async with session_factory() as session:
        yield session
        await session.rollback()


@pytest.fixture
def session_service(test_async_db, notifier, booking_settings, clock, locks) -> SessionLifecycleService:
    return SessionLifecycleService(
        test_async_db, notifier=notifier, settings=booking_settings, clock=clock, locks=locks,
    )


@pytest.fixture
def negotiator(test_async_db, notifier, booking_settings, clock, locks) -> RequestNegotiator:
    return RequestNegotiator(
        test_async_db, notifier=notifier, settings=booking_settings, clock=clock, locks=locks,
    )


@pytest.fixture
def availability_checker(test_async_db, booking_settings, clock) -> AvailabilityChecker:
    return AvailabilityChecker(test_async_db, settings=booking_settings, clock=clock)


@pytest.fixture
def slot_finder(test_async_db, booking_settings, clock) -> SlotFinder:
    return SlotFinder(test_async_db, settings=booking_settings, clock=clock)


@pytest.fixture
def sweeper(session_factory, notifier, scheduler_settings, clock, locks) -> BookingSweeper:
    return BookingSweeper(session_factory, notifier, scheduler_settings, clock=clock, locks=locks)


def build_session(**overrides) -> SessionModel:
    """Unsaved SessionModel with sensible defaults for tests."""
    values = dict(
        tutor_id=TUTOR_ID,
        student_id=STUDENT_ID,
        subject_id=SUBJECT_ID,
        date_time=FIXED_NOW + timedelta(days=1),
        duration_minutes=60,
        status=SessionStatus.CONFIRMED,
        price=Decimal("40.00"),
        delivery_type=DeliveryType.ONLINE,
    )
    values.update(overrides)
    return SessionModel(**values)


def build_request(**overrides) -> SessionRequestModel:
    """Unsaved SessionRequestModel with sensible defaults for tests."""
    values = dict(
        student_id=STUDENT_ID,
        tutor_id=TUTOR_ID,
        subject_id=SUBJECT_ID,
        desired_date_time=FIXED_NOW + timedelta(days=2),
        desired_duration_minutes=60,
        message="Need help with calculus",
        urgency=Urgency.MEDIUM,
        max_budget=Decimal("50.00"),
        status=RequestStatus.PENDING,
        date_flexible=False,
        accepts_online=True,
        accepts_in_person=False,
    )
    values.update(overrides)
    return SessionRequestModel(**values)


@pytest_asyncio.fixture
async def add_sessions(test_async_db):
    """Persist sessions built with build_session and return them."""

    async def _add(*sessions: SessionModel) -> list[SessionModel]:
        test_async_db.add_all(sessions)
        await test_async_db.commit()
        return list(sessions)

    return _add


@pytest.fixture
def make_session():
    return build_session


@pytest.fixture
def make_request():
    return build_request
