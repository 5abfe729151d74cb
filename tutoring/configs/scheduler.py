"""
Background scheduler settings.

Controls the periodic sweep that sends reminders, auto-starts sessions and
cancels no-shows.

Dependencies: pydantic, pydantic_settings
System role: Timer configuration for time-driven session transitions
"""

from pydantic import Field, model_validator
from pydantic_settings import SettingsConfigDict

from tutoring.configs.base import BaseSettings


class SchedulerSettings(BaseSettings):
    """Sweep timer configuration."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        env_prefix="SCHEDULER_",
        case_sensitive=False,
        extra="ignore",
    )

    enabled: bool = Field(default=True, description="Start the sweep timer with the app")
    tick_seconds: int = Field(
        default=60,
        gt=0,
        le=60,
        description="Seconds between sweeps; at most one minute so 15 minute reminders are not missed",
    )
    reminder_lead_minutes: list[int] = Field(
        default=[1440, 60, 15],
        description="Reminder offsets before a confirmed session starts",
    )
    auto_start_window_minutes: int = Field(
        default=5,
        gt=0,
        description="Confirmed sessions that started less than this ago are moved to in_progress",
    )
    no_show_grace_minutes: int = Field(
        default=30,
        gt=0,
        description="Confirmed sessions still unstarted this long after start are cancelled",
    )

    @model_validator(mode="after")
    def check_windows(self) -> "SchedulerSettings":
        """Auto-start must finish before the no-show grace period begins."""
        if self.auto_start_window_minutes >= self.no_show_grace_minutes:
            raise ValueError("auto_start_window_minutes must be shorter than no_show_grace_minutes")
        if any(lead <= 0 for lead in self.reminder_lead_minutes):
            raise ValueError("reminder_lead_minutes must be positive")
        return self
