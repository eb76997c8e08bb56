import pytest

from washbook.services.slots.config import BookingConfig, format_time, minutes_to_time, parse_hhmm, time_to_minutes


def test_defaults_are_valid():
    config = BookingConfig()
    assert config.default_slot_minutes == 60
    assert config.cancellation_window_hours == 2


@pytest.mark.parametrize("kwargs", [
    {"default_slot_minutes": 5},
    {"default_capacity": 0},
    {"cancellation_window_hours": -1},
    {"cache_ttl_seconds": 0},
])
def test_invalid_config_rejected(kwargs):
    with pytest.raises(ValueError):
        BookingConfig(**kwargs)


def test_time_helpers():
    t = parse_hhmm("08:30")
    assert time_to_minutes(t) == 510
    assert minutes_to_time(510) == t
    assert format_time(t) == "08:30"
