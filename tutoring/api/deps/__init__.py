"""API-specific dependencies."""

from .dependencies import (
    build_booking_sweeper,
    get_availability_checker,
    get_booking_settings,
    get_clock,
    get_notifier,
    get_request_negotiator,
    get_session_service,
    get_slot_finder,
)

__all__ = [
    "build_booking_sweeper",
    "get_availability_checker",
    "get_booking_settings",
    "get_clock",
    "get_notifier",
    "get_request_negotiator",
    "get_session_service",
    "get_slot_finder",
]
