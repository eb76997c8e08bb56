from datetime import date, time, timedelta

import pytest

from washbook.errors import ConfigurationError, ValidationFailed
from washbook.models.generated import OperatingHours, TimeSlots
from washbook.services.operating_hours import hours_by_weekday
from washbook.services.slots.generator import INSERT_CHUNK, day_of_week, generate_slots, plan_day_slots, plan_slots

from conftest import next_weekday


def _hours(open_t, close_t, closed=False):
    return OperatingHours(day_of_week=1, open_time=open_t, close_time=close_t, is_closed=1 if closed else 0)


def test_day_of_week_starts_on_sunday():
    assert day_of_week(date(2024, 6, 2)) == 0   # Sunday
    assert day_of_week(date(2024, 6, 3)) == 1   # Monday
    assert day_of_week(date(2024, 6, 8)) == 6   # Saturday


def test_plan_day_slots_drops_partial_trailing_slot():
    slots = plan_day_slots(_hours(time(8, 0), time(10, 30)), 60)
    assert slots == [(time(8, 0), time(9, 0)), (time(9, 0), time(10, 0))]


def test_plan_day_slots_last_slot_ends_at_close():
    slots = plan_day_slots(_hours(time(8, 0), time(18, 0)), 60)
    assert len(slots) == 10
    assert slots[-1] == (time(17, 0), time(18, 0))


def test_plan_day_slots_closed_or_missing_day():
    assert plan_day_slots(_hours(time(8, 0), time(18, 0), closed=True), 60) == []
    assert plan_day_slots(None, 60) == []


def test_generate_requires_operating_hours(db, tenant):
    with pytest.raises(ConfigurationError):
        generate_slots(db, tenant.id, date(2030, 1, 1), date(2030, 1, 7))


def test_generate_week_skips_closed_sunday(db, tenant, weekly_hours):
    monday = next_weekday(0)
    result = generate_slots(db, tenant.id, monday, monday + timedelta(days=6), slot_minutes=60, capacity=2)

    # six open days x 10 hourly slots
    assert result.created == 60
    assert result.total == 60

    sunday = monday + timedelta(days=6)
    assert db.query(TimeSlots).filter(TimeSlots.slot_date == sunday).count() == 0

    slot = db.query(TimeSlots).filter(TimeSlots.slot_date == monday).order_by(TimeSlots.start_time).first()
    assert slot.start_time == time(8, 0)
    assert slot.end_time == time(9, 0)
    assert slot.max_capacity == 2
    assert slot.booked_count == 0
    assert slot.status == "available"


def test_generate_is_idempotent(db, tenant, weekly_hours):
    monday = next_weekday(0)
    first = generate_slots(db, tenant.id, monday, monday, slot_minutes=60)
    second = generate_slots(db, tenant.id, monday, monday, slot_minutes=60)

    assert first.created == 10
    assert second.created == 0
    assert second.total == 10
    assert db.query(TimeSlots).count() == 10


def test_generate_overlapping_range_only_adds_new_days(db, tenant, weekly_hours):
    monday = next_weekday(0)
    generate_slots(db, tenant.id, monday, monday + timedelta(days=1))
    result = generate_slots(db, tenant.id, monday + timedelta(days=1), monday + timedelta(days=2))

    assert result.total == 20
    assert result.created == 10


def test_generate_does_not_touch_existing_slots(db, tenant, weekly_hours):
    monday = next_weekday(0)
    generate_slots(db, tenant.id, monday, monday, capacity=1)
    slot = db.query(TimeSlots).first()
    slot.booked_count = 1
    slot.status = "full"
    db.commit()

    generate_slots(db, tenant.id, monday, monday, capacity=5)
    db.refresh(slot)
    assert slot.max_capacity == 1
    assert slot.booked_count == 1
    assert slot.status == "full"


@pytest.mark.parametrize("kwargs", [
    {"slot_minutes": 10},
    {"slot_minutes": 300},
    {"capacity": 101},
    {"slot_minutes": 0},
])
def test_generate_rejects_out_of_range_parameters(db, tenant, weekly_hours, kwargs):
    with pytest.raises(ValidationFailed):
        generate_slots(db, tenant.id, date(2030, 1, 1), date(2030, 1, 2), **kwargs)


def test_generate_rejects_inverted_range(db, tenant, weekly_hours):
    with pytest.raises(ValidationFailed):
        generate_slots(db, tenant.id, date(2030, 1, 5), date(2030, 1, 1))


def test_generate_rejects_zero_capacity_without_writing(db, tenant, weekly_hours):
    with pytest.raises(ValidationFailed):
        generate_slots(db, tenant.id, date(2030, 1, 1), date(2030, 1, 2), capacity=0)
    assert db.query(TimeSlots).count() == 0


def test_insert_chunk_fits_sqlite_parameter_cap(db, tenant, weekly_hours):
    rows = plan_slots(tenant.id, hours_by_weekday(db, tenant.id), date(2030, 1, 7), date(2030, 1, 7), 60, 1)
    assert INSERT_CHUNK * len(rows[0]) <= 999


def test_generate_many_chunks(db, tenant, weekly_hours):
    # 15-minute slots over two months: several insert chunks
    result = generate_slots(db, tenant.id, date(2030, 1, 1), date(2030, 2, 28), slot_minutes=15)
    assert result.created == result.total > INSERT_CHUNK
    assert db.query(TimeSlots).count() == result.total
