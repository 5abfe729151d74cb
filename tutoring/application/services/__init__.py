"""
Application services.

Exports:
  - AvailabilityChecker: Store-backed conflict detection
  - SlotFinder: Ranked free-slot search
  - SessionLifecycleService: Session state machine
  - RequestNegotiator: Session request state machine
  - BookingSweeper, SweepReport: Time-driven session actions
"""

from tutoring.application.services.availability_checker import AvailabilityChecker
from tutoring.application.services.session_request_service import RequestNegotiator
from tutoring.application.services.session_service import SessionLifecycleService
from tutoring.application.services.slot_finder import SlotFinder
from tutoring.application.services.sweep_service import BookingSweeper, SweepReport

__all__ = [
    "AvailabilityChecker",
    "BookingSweeper",
    "RequestNegotiator",
    "SessionLifecycleService",
    "SlotFinder",
    "SweepReport",
]
