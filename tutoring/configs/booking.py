"""
Booking rule settings.

Duration, price and rescheduling limits plus slot search tuning used by the
negotiation and lifecycle services.

Dependencies: pydantic, pydantic_settings
System role: Business rule configuration for bookings
"""

from decimal import Decimal

from pydantic import Field, model_validator
from pydantic_settings import SettingsConfigDict

from tutoring.configs.base import BaseSettings


class BookingSettings(BaseSettings):
    """Booking negotiation and scheduling rules."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        env_prefix="BOOKING_",
        case_sensitive=False,
        extra="ignore",
    )

    min_duration_minutes: int = Field(default=30, description="Shortest bookable session")
    max_duration_minutes: int = Field(default=480, description="Longest bookable session")
    max_price: Decimal = Field(
        default=Decimal("10000"),
        description="Upper bound for session prices and request budgets",
    )
    reschedule_cutoff_minutes: int = Field(
        default=120,
        description="Confirmed sessions can only be rescheduled further ahead than this",
    )
    min_advance_notice_minutes: int = Field(
        default=60,
        description="Advance notice reported by scheduling validation",
    )
    slot_granularity_minutes: int = Field(
        default=30,
        gt=0,
        description="Step between candidate slot start times",
    )
    max_search_days: int = Field(default=60, gt=0, description="Longest slot search horizon")
    default_search_days: int = Field(default=14, gt=0, description="Horizon for slot suggestions")
    default_max_suggestions: int = Field(default=5, gt=0, description="Suggestions returned by default")
    stale_request_days: int = Field(
        default=7,
        description="Age after which a pending request counts as stale",
    )

    @model_validator(mode="after")
    def check_duration_bounds(self) -> "BookingSettings":
        """Reject inverted duration bounds."""
        if self.min_duration_minutes > self.max_duration_minutes:
            raise ValueError("min_duration_minutes must not exceed max_duration_minutes")
        return self
