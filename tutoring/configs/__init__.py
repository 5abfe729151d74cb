"""
Configuration management module.

Provides centralized, type-safe configuration using Pydantic Settings.
All config modules support environment variable mapping with validation.
"""

from tutoring.configs.booking import BookingSettings
from tutoring.configs.scheduler import SchedulerSettings
from tutoring.configs.settings import Settings, get_settings, reload_settings

__all__ = ["BookingSettings", "SchedulerSettings", "Settings", "get_settings", "reload_settings"]
