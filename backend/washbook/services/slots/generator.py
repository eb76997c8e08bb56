# backend/washbook/services/slots/generator.py
"""
Slot generation from operating hours.

Produces TimeSlot rows:
  (tenant_id, slot_date, start_time, end_time, max_capacity)

For each calendar date in [start_date, end_date]:
✓ weekday operating hours (0 = Sunday); missing or closed day → no slots
✓ open..close walked in slot_minutes steps
✓ a slot whose end would pass closing time is dropped, never truncated

Insertion is idempotent: (tenant_id, slot_date, start_time) collisions are
skipped silently, so overlapping or repeated calls are safe. Existing slots
are never touched.
"""

import logging
from dataclasses import dataclass
from datetime import date, time, timedelta

from sqlalchemy import insert as sa_insert
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from ...errors import ConfigurationError, ValidationFailed
from ...models.generated import OperatingHours, TimeSlots, new_id
from ..operating_hours import hours_by_weekday
from .config import BookingConfig, get_booking_config, minutes_to_time, time_to_minutes

logger = logging.getLogger(__name__)

# 8 bound columns per row; SQLite before 3.32 caps a statement at 999 params
INSERT_CHUNK = 999 // 8


@dataclass(frozen=True)
class GenerationResult:
    created: int
    total: int


def day_of_week(target_date: date) -> int:
    """Calendar weekday with 0 = Sunday (date.weekday() has 0 = Monday)."""
    return (target_date.weekday() + 1) % 7


def iter_dates(start_date: date, end_date: date):
    current = start_date
    while current <= end_date:
        yield current
        current += timedelta(days=1)


def plan_day_slots(
    hours: OperatingHours | None,
    slot_minutes: int,
) -> list[tuple[time, time]]:
    """
    (start, end) pairs for one day of operating hours.

    08:00-18:00 with 60-minute slots → last slot 17:00-18:00.
    """
    if hours is None or hours.is_closed:
        return []

    open_min = time_to_minutes(hours.open_time)
    close_min = time_to_minutes(hours.close_time)

    windows = []
    t = open_min
    while t + slot_minutes <= close_min:
        windows.append((minutes_to_time(t), minutes_to_time(t + slot_minutes)))
        t += slot_minutes
    return windows


def plan_slots(
    tenant_id: str,
    hours_map: dict[int, OperatingHours],
    start_date: date,
    end_date: date,
    slot_minutes: int,
    capacity: int,
) -> list[dict]:
    """Candidate slot rows for the whole range."""
    rows = []
    for dt in iter_dates(start_date, end_date):
        for start, end in plan_day_slots(hours_map.get(day_of_week(dt)), slot_minutes):
            rows.append({
                "id": new_id(),
                "tenant_id": tenant_id,
                "slot_date": dt,
                "start_time": start,
                "end_time": end,
                "max_capacity": capacity,
                "booked_count": 0,
                "status": "available",
            })
    return rows


def generate_slots(
    db: Session,
    tenant_id: str,
    start_date: date,
    end_date: date,
    slot_minutes: int | None = None,
    capacity: int | None = None,
    config: BookingConfig | None = None,
) -> GenerationResult:
    """
    Generate slots for a tenant over [start_date, end_date].

    Raises:
        ConfigurationError: tenant has no operating hours
        ValidationFailed: bad range, duration or capacity
    """
    config = config or get_booking_config()
    if slot_minutes is None:
        slot_minutes = config.default_slot_minutes
    if capacity is None:
        capacity = config.default_capacity

    if end_date < start_date:
        raise ValidationFailed("end_date must not be earlier than start_date.")
    if not config.min_slot_minutes <= slot_minutes <= config.max_slot_minutes:
        raise ValidationFailed(
            f"Slot duration must be between {config.min_slot_minutes} and {config.max_slot_minutes} minutes."
        )
    if not config.min_capacity <= capacity <= config.max_capacity:
        raise ValidationFailed(
            f"Capacity must be between {config.min_capacity} and {config.max_capacity}."
        )

    hours_map = hours_by_weekday(db, tenant_id)
    if not hours_map:
        raise ConfigurationError()

    rows = plan_slots(tenant_id, hours_map, start_date, end_date, slot_minutes, capacity)
    logger.info(
        f"[SLOTS] Generating {len(rows)} slots for tenant={tenant_id} "
        f"from {start_date.isoformat()} to {end_date.isoformat()}"
    )

    try:
        created = _insert_ignoring_duplicates(db, rows)
        db.commit()
    except Exception:
        db.rollback()
        raise

    return GenerationResult(created=created, total=len(rows))


# ── Helpers ──────────────────────────────────────────────────────────────


def _insert_ignoring_duplicates(db: Session, rows: list[dict]) -> int:
    """Insert rows, skipping uniqueness collisions. Returns inserted count."""
    if not rows:
        return 0

    dialect = db.get_bind().dialect.name
    if dialect == "sqlite":
        from sqlalchemy.dialects.sqlite import insert
    elif dialect == "postgresql":
        from sqlalchemy.dialects.postgresql import insert
    else:
        return _insert_one_by_one(db, rows)

    created = 0
    for i in range(0, len(rows), INSERT_CHUNK):
        chunk = rows[i:i + INSERT_CHUNK]
        stmt = (
            insert(TimeSlots)
            .values(chunk)
            .on_conflict_do_nothing(index_elements=["tenant_id", "slot_date", "start_time"])
            .returning(TimeSlots.id)
        )
        created += len(db.execute(stmt).all())
    return created


def _insert_one_by_one(db: Session, rows: list[dict]) -> int:
    created = 0
    for row in rows:
        try:
            with db.begin_nested():
                db.execute(sa_insert(TimeSlots).values(**row))
            created += 1
        except IntegrityError:
            continue
    return created
