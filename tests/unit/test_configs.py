"""
Test suite for settings validation and environment overrides.

System role: Verification of configuration layer
"""

from decimal import Decimal

import pytest
from pydantic import ValidationError

from tutoring.configs import BookingSettings, SchedulerSettings, Settings, get_settings, reload_settings


class TestBookingSettings:
    """Test suite for BookingSettings."""

    def test_defaults_should_match_booking_rules(self) -> None:
        settings = BookingSettings()

        assert settings.min_duration_minutes == 30
        assert settings.max_duration_minutes == 480
        assert settings.max_price == Decimal("10000")
        assert settings.reschedule_cutoff_minutes == 120

    def test_env_should_override_defaults(self, monkeypatch) -> None:
        # Arrange
        monkeypatch.setenv("BOOKING_RESCHEDULE_CUTOFF_MINUTES", "240")

        # Act
        settings = BookingSettings()

        # Assert
        assert settings.reschedule_cutoff_minutes == 240

    def test_inverted_duration_bounds_should_fail(self) -> None:
        with pytest.raises(ValidationError):
            BookingSettings(min_duration_minutes=120, max_duration_minutes=60)


class TestSchedulerSettings:
    """Test suite for SchedulerSettings."""

    def test_defaults_should_keep_auto_start_before_no_show(self) -> None:
        settings = SchedulerSettings()

        assert settings.reminder_lead_minutes == [1440, 60, 15]
        assert settings.auto_start_window_minutes < settings.no_show_grace_minutes

    def test_overlapping_windows_should_fail(self) -> None:
        with pytest.raises(ValidationError):
            SchedulerSettings(auto_start_window_minutes=30, no_show_grace_minutes=30)

    def test_non_positive_reminder_lead_should_fail(self) -> None:
        with pytest.raises(ValidationError):
            SchedulerSettings(reminder_lead_minutes=[60, 0])

    def test_tick_longer_than_a_minute_should_fail(self) -> None:
        with pytest.raises(ValidationError):
            SchedulerSettings(tick_seconds=120)


class TestSettings:
    """Test suite for the aggregated settings."""

    def test_log_level_should_be_normalized(self) -> None:
        assert Settings(log_level="debug").log_level == "DEBUG"

    def test_unknown_log_level_should_fail(self) -> None:
        with pytest.raises(ValidationError):
            Settings(log_level="chatty")

    def test_reload_should_read_environment_again(self, monkeypatch) -> None:
        monkeypatch.setenv("SCHEDULER_TICK_SECONDS", "15")
        monkeypatch.setenv("ENVIRONMENT", "production")

        try:
            settings = reload_settings()

            assert settings.scheduler.tick_seconds == 15
            assert settings.is_production
            assert get_settings() is settings
        finally:
            monkeypatch.undo()
            reload_settings()
