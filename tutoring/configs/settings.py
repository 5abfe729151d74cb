"""
Unified application settings.

Aggregates the database, booking and scheduler configs into one Settings
object. Sub-settings are built when Settings is built, so environment changes
made before `reload_settings()` are picked up.

Dependencies: All config modules
System role: Central configuration aggregator for the application
"""

from functools import lru_cache

from pydantic import Field

from tutoring.configs.base import BaseSettings
from tutoring.configs.booking import BookingSettings
from tutoring.configs.database import DatabaseSettings
from tutoring.configs.scheduler import SchedulerSettings


class Settings(BaseSettings):
    """Unified application settings aggregating all config modules."""

    database: DatabaseSettings = Field(default_factory=DatabaseSettings)
    booking: BookingSettings = Field(default_factory=BookingSettings)
    scheduler: SchedulerSettings = Field(default_factory=SchedulerSettings)


@lru_cache
def get_settings() -> Settings:
    """
    Get application settings singleton.

    Usage:
        from tutoring.configs import get_settings
        cutoff = get_settings().booking.reschedule_cutoff_minutes
    """
    return Settings()


def reload_settings() -> Settings:
    """Drop the cached settings and read the environment again."""
    get_settings.cache_clear()
    return get_settings()
