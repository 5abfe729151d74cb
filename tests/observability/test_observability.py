"""
Test suite for logging helpers and correlation IDs.

System role: Verification of observability utilities
"""

import logging
from datetime import datetime
from decimal import Decimal
from types import SimpleNamespace
from uuid import UUID

from tutoring.core.booking_states import SessionStatus
from tutoring.observability.correlation import (
    clear_correlation_id,
    correlation_scope,
    get_correlation_id,
    set_correlation_id,
)
from tutoring.observability.log_utils import (
    log_exception_with_context,
    log_with_context,
    safe_log_value,
    session_log_context,
)


class TestSafeLogValue:
    """Test suite for safe_log_value()."""

    def test_should_format_datetimes_as_iso(self) -> None:
        assert safe_log_value(datetime(2025, 1, 10, 9, 0)) == "2025-01-10T09:00:00"

    def test_should_summarize_collections(self) -> None:
        assert safe_log_value([1, 2, 3]) == "list(3 items)"
        assert safe_log_value(frozenset({1})) == "frozenset(1 items)"
        assert safe_log_value({"a": 1}) == "dict(1 keys)"

    def test_should_truncate_long_strings(self) -> None:
        value = safe_log_value("x" * 20, max_length=5)

        assert value.startswith("xxxxx...")
        assert "20 total" in value

    def test_should_render_none(self) -> None:
        assert safe_log_value(None) == "None"


class TestLogWithContext:
    """Test suite for structured logging helpers."""

    def test_should_attach_context_as_extra(self, caplog) -> None:
        logger = logging.getLogger("tests.log_utils")

        with caplog.at_level(logging.INFO):
            log_with_context(logger, logging.INFO, "Sweep done", reminders_sent=3)

        record = caplog.records[0]
        assert record.message == "Sweep done"
        assert record.reminders_sent == "3"

    def test_exception_helper_should_include_error_type(self, caplog) -> None:
        logger = logging.getLogger("tests.log_utils")

        log_exception_with_context(logger, "Failed", ValueError("bad"), session_id="s1")

        record = caplog.records[0]
        assert record.levelno == logging.ERROR
        assert record.error_type == "ValueError"
        assert record.error_msg == "bad"
        assert record.session_id == "s1"


class TestCorrelationId:
    """Test suite for the correlation ID context."""

    def test_set_should_generate_uuid_when_missing(self) -> None:
        value = set_correlation_id()

        assert UUID(value)
        assert get_correlation_id() == value
        clear_correlation_id()

    def test_clear_should_reset_value(self) -> None:
        set_correlation_id("req-1")

        clear_correlation_id()

        assert not get_correlation_id()

    def test_scope_should_restore_previous_value(self) -> None:
        set_correlation_id("outer")

        with correlation_scope(prefix="sweep") as inner:
            assert inner.startswith("sweep-")
            assert get_correlation_id() == inner

        assert get_correlation_id() == "outer"
        clear_correlation_id()


class TestSessionLogContext:
    """Test suite for session_log_context()."""

    def test_should_render_booking_values(self) -> None:
        session = SimpleNamespace(
            id=UUID("12345678-1234-5678-1234-567812345678"),
            tutor_id=1,
            student_id=2,
            status=SessionStatus.CONFIRMED,
            date_time=datetime(2025, 1, 11, 9, 0),
        )

        context = session_log_context(session)

        assert context == {
            "session_id": "12345678-1234-5678-1234-567812345678",
            "tutor_id": "1",
            "student_id": "2",
            "status": "confirmed",
            "date_time": "2025-01-11T09:00:00",
        }

    def test_safe_log_value_should_keep_decimal_precision(self) -> None:
        assert safe_log_value(Decimal("40.50")) == "40.50"
