"""
API test fixtures.

The app is built with create_app() but the TestClient is not entered as a
context manager, so the lifespan (tables, background scheduler) never runs.
Services are AsyncMocks injected through dependency_overrides.
"""

import uuid
from datetime import timedelta
from decimal import Decimal
from unittest.mock import AsyncMock

import pytest
from fastapi.testclient import TestClient

from tutoring.api.deps import (
    get_availability_checker,
    get_clock,
    get_request_negotiator,
    get_session_service,
    get_slot_finder,
)
from tutoring.boundary.db.models import SessionModel, SessionRequestModel
from tutoring.core.booking_states import DeliveryType, RequestStatus, SessionStatus, Urgency
from tutoring.main import create_app


@pytest.fixture
def mock_session_service() -> AsyncMock:
    return AsyncMock()


@pytest.fixture
def mock_negotiator() -> AsyncMock:
    return AsyncMock()


@pytest.fixture
def mock_slot_finder() -> AsyncMock:
    return AsyncMock()


@pytest.fixture
def mock_availability_checker() -> AsyncMock:
    return AsyncMock()


@pytest.fixture
def app(mock_session_service, mock_negotiator, mock_slot_finder, mock_availability_checker, clock):
    app = create_app()
    app.dependency_overrides[get_session_service] = lambda: mock_session_service
    app.dependency_overrides[get_request_negotiator] = lambda: mock_negotiator
    app.dependency_overrides[get_slot_finder] = lambda: mock_slot_finder
    app.dependency_overrides[get_availability_checker] = lambda: mock_availability_checker
    app.dependency_overrides[get_clock] = lambda: clock
    return app


@pytest.fixture
def client(app) -> TestClient:
    return TestClient(app)


@pytest.fixture
def stored_session(fixed_now):
    """Build a SessionModel as the service would return it."""

    def _build(**overrides) -> SessionModel:
        values = dict(
            id=uuid.uuid4(),
            tutor_id=1,
            student_id=2,
            subject_id=10,
            request_id=None,
            date_time=fixed_now + timedelta(days=1),
            duration_minutes=60,
            status=SessionStatus.REQUESTED,
            price=Decimal("40.00"),
            delivery_type=DeliveryType.ONLINE,
            created_at=fixed_now,
            updated_at=fixed_now,
        )
        values.update(overrides)
        return SessionModel(**values)

    return _build


@pytest.fixture
def stored_request(fixed_now):
    """Build a SessionRequestModel as the service would return it."""

    def _build(**overrides) -> SessionRequestModel:
        values = dict(
            id=uuid.uuid4(),
            student_id=2,
            tutor_id=1,
            subject_id=10,
            desired_date_time=fixed_now + timedelta(days=2),
            desired_duration_minutes=60,
            message="Need help with calculus",
            urgency=Urgency.MEDIUM,
            max_budget=Decimal("50.00"),
            status=RequestStatus.PENDING,
            date_flexible=False,
            accepts_online=True,
            accepts_in_person=False,
            created_at=fixed_now,
            updated_at=fixed_now,
        )
        values.update(overrides)
        return SessionRequestModel(**values)

    return _build
