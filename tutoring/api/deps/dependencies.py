"""
Dependency injection container.

Factory functions for FastAPI dependencies. Services are built per request on
the request's database session; the notifier and participant locks are shared
process-wide.

Dependencies: tutoring.configs, tutoring.application, tutoring.boundary
System role: DI container for service injection
"""

from functools import lru_cache

from fastapi import Depends
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from tutoring.application.services import (
    AvailabilityChecker,
    BookingSweeper,
    RequestNegotiator,
    SessionLifecycleService,
    SlotFinder,
)
from tutoring.boundary.db import get_async_db
from tutoring.boundary.notifications import LoggingNotificationDispatcher
from tutoring.configs import BookingSettings, SchedulerSettings, get_settings
from tutoring.core.clock import Clock, utc_now
from tutoring.core.notifications import SessionNotifier
from tutoring.core.participant_locks import participant_locks


def get_booking_settings() -> BookingSettings:
    return get_settings().booking


def get_clock() -> Clock:
    """Current-time source; overridden in tests to pin the clock."""
    return utc_now


@lru_cache
def get_notifier() -> SessionNotifier:
    """Process-wide notifier backed by the logging dispatcher."""
    return SessionNotifier(LoggingNotificationDispatcher())


def get_session_service(
    db: AsyncSession = Depends(get_async_db),
    notifier: SessionNotifier = Depends(get_notifier),
    settings: BookingSettings = Depends(get_booking_settings),
    clock: Clock = Depends(get_clock),
) -> SessionLifecycleService:
    return SessionLifecycleService(db, notifier=notifier, settings=settings, clock=clock, locks=participant_locks)


def get_request_negotiator(
    db: AsyncSession = Depends(get_async_db),
    notifier: SessionNotifier = Depends(get_notifier),
    settings: BookingSettings = Depends(get_booking_settings),
    clock: Clock = Depends(get_clock),
) -> RequestNegotiator:
    return RequestNegotiator(db, notifier=notifier, settings=settings, clock=clock, locks=participant_locks)


def get_availability_checker(
    db: AsyncSession = Depends(get_async_db),
    settings: BookingSettings = Depends(get_booking_settings),
    clock: Clock = Depends(get_clock),
) -> AvailabilityChecker:
    return AvailabilityChecker(db, settings=settings, clock=clock)


def get_slot_finder(
    db: AsyncSession = Depends(get_async_db),
    settings: BookingSettings = Depends(get_booking_settings),
    clock: Clock = Depends(get_clock),
) -> SlotFinder:
    return SlotFinder(db, settings=settings, clock=clock)


def build_booking_sweeper(
    session_factory: async_sessionmaker[AsyncSession],
    settings: SchedulerSettings,
) -> BookingSweeper:
    """Sweeper for the background scheduler; not request scoped."""
    return BookingSweeper(session_factory, get_notifier(), settings, locks=participant_locks)
