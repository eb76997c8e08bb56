# backend/washbook/services/slots/config.py
"""
Booking configuration for slot generation and allocation.
"""

from dataclasses import dataclass
from datetime import time
from functools import lru_cache

from ...config import settings


@dataclass(frozen=True)
class BookingConfig:
    """
    Configuration for the slots/booking system.

    Attributes:
        min_slot_minutes / max_slot_minutes: allowed slot duration range
        min_capacity / max_capacity: allowed seats per slot
        default_slot_minutes / default_capacity: generation defaults
        cancellation_window_hours: customers cannot cancel closer than this
        cache_ttl_seconds: Redis TTL for public availability per day
    """
    min_slot_minutes: int = 15
    max_slot_minutes: int = 240
    default_slot_minutes: int = 60
    min_capacity: int = 1
    max_capacity: int = 100
    default_capacity: int = 1
    cancellation_window_hours: int = 2
    cache_ttl_seconds: int = 30

    def __post_init__(self):
        """Validate configuration."""
        if not self.min_slot_minutes <= self.default_slot_minutes <= self.max_slot_minutes:
            raise ValueError(
                f"default_slot_minutes must be within {self.min_slot_minutes}..{self.max_slot_minutes}, "
                f"got {self.default_slot_minutes}"
            )
        if not self.min_capacity <= self.default_capacity <= self.max_capacity:
            raise ValueError(
                f"default_capacity must be within {self.min_capacity}..{self.max_capacity}, "
                f"got {self.default_capacity}"
            )
        if self.cancellation_window_hours < 0:
            raise ValueError("cancellation_window_hours must not be negative")
        if self.cache_ttl_seconds <= 0:
            raise ValueError("cache_ttl_seconds must be positive")


@lru_cache
def get_booking_config() -> BookingConfig:
    """Get booking configuration (singleton built from settings)."""
    return BookingConfig(
        cancellation_window_hours=settings.cancellation_window_hours,
        cache_ttl_seconds=settings.availability_cache_ttl_seconds,
    )


def time_to_minutes(value: time) -> int:
    """time(8, 30) → 510"""
    return value.hour * 60 + value.minute


def minutes_to_time(minutes: int) -> time:
    """510 → time(8, 30)"""
    return time(minutes // 60, minutes % 60)


def format_time(value: time) -> str:
    """time → "HH:MM"."""
    return value.strftime("%H:%M")


def parse_hhmm(value: str) -> time:
    """"HH:MM" → time. Raises ValueError on malformed input."""
    hour, minute = value.split(":")
    return time(int(hour), int(minute))
