"""
Test suite for dependency factories.

System role: Verification of service wiring
"""

from unittest.mock import AsyncMock, MagicMock

from tutoring.api.deps.dependencies import (
    build_booking_sweeper,
    get_availability_checker,
    get_booking_settings,
    get_clock,
    get_notifier,
    get_request_negotiator,
    get_session_service,
    get_slot_finder,
)
from tutoring.application.services import (
    AvailabilityChecker,
    BookingSweeper,
    RequestNegotiator,
    SessionLifecycleService,
    SlotFinder,
)
from tutoring.core.clock import utc_now
from tutoring.core.participant_locks import participant_locks


class TestServiceFactories:
    """Test suite for request-scoped service factories."""

    def test_session_service_should_share_process_locks(self, booking_settings, clock) -> None:
        db = AsyncMock()

        service = get_session_service(db, get_notifier(), booking_settings, clock)

        assert isinstance(service, SessionLifecycleService)
        assert service.db is db
        assert service.locks is participant_locks
        assert service.clock is clock

    def test_negotiator_should_share_process_locks(self, booking_settings, clock) -> None:
        negotiator = get_request_negotiator(AsyncMock(), get_notifier(), booking_settings, clock)

        assert isinstance(negotiator, RequestNegotiator)
        assert negotiator.locks is participant_locks

    def test_scheduling_services_should_use_given_settings(self, booking_settings, clock) -> None:
        checker = get_availability_checker(AsyncMock(), booking_settings, clock)
        finder = get_slot_finder(AsyncMock(), booking_settings, clock)

        assert isinstance(checker, AvailabilityChecker)
        assert isinstance(finder, SlotFinder)
        assert finder.settings is booking_settings

    def test_notifier_should_be_cached(self) -> None:
        assert get_notifier() is get_notifier()

    def test_defaults(self) -> None:
        assert get_clock() is utc_now
        assert get_booking_settings().reschedule_cutoff_minutes > 0


def test_build_booking_sweeper_should_share_notifier_and_locks(scheduler_settings) -> None:
    factory = MagicMock()

    sweeper = build_booking_sweeper(factory, scheduler_settings)

    assert isinstance(sweeper, BookingSweeper)
    assert sweeper.session_factory is factory
    assert sweeper.notifier is get_notifier()
    assert sweeper.settings is scheduler_settings
    assert sweeper.locks is participant_locks
