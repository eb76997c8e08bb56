# backend/washbook/services/slots/inventory.py
"""
Slot inventory: listings and manager overrides.

Status rules:
  blocked   : explicit manager override, wins over occupancy
  full      : booked_count >= max_capacity
  available : otherwise

Every status write goes through a SQL CASE over the row's current
booked_count, under the per-slot hold, so it can't be computed from a
stale occupancy value.
"""

import logging
from datetime import date

from redis import Redis
from redis.exceptions import RedisError, WatchError
from sqlalchemy import case, exists, func
from sqlalchemy.orm import Session

from ...errors import Forbidden, NotFound, ValidationFailed
from ...models.generated import Bookings, TimeSlots
from .config import BookingConfig, format_time, get_booking_config
from .generator import iter_dates
from .locks import SlotLocks, slot_locks
from .redis_store import AvailabilityRedisStore

logger = logging.getLogger(__name__)

SLOT_STATUSES = ("available", "full", "blocked")


def occupancy_status(max_capacity=TimeSlots.max_capacity):
    """Status derived from occupancy, ignoring any block."""
    return case(
        (TimeSlots.booked_count >= max_capacity, "full"),
        else_="available",
    )


def effective_status(max_capacity=TimeSlots.max_capacity):
    """Status derived from occupancy, keeping a block in place."""
    return case(
        (TimeSlots.status == "blocked", "blocked"),
        (TimeSlots.booked_count >= max_capacity, "full"),
        else_="available",
    )


# ── Reads ────────────────────────────────────────────────────────────────


def _range_query(db: Session, tenant_id: str, start_date: date, end_date: date):
    return (
        db.query(TimeSlots)
        .filter(
            TimeSlots.tenant_id == tenant_id,
            TimeSlots.slot_date >= start_date,
            TimeSlots.slot_date <= end_date,
        )
        .order_by(TimeSlots.slot_date, TimeSlots.start_time)
    )


def list_all(db: Session, tenant_id: str, start_date: date, end_date: date) -> list[TimeSlots]:
    """Manager view: every slot with raw occupancy."""
    return _range_query(db, tenant_id, start_date, end_date).all()


def list_available(db: Session, tenant_id: str, start_date: date, end_date: date) -> list[TimeSlots]:
    """Bookable slots only."""
    return (
        _range_query(db, tenant_id, start_date, end_date)
        .filter(
            TimeSlots.status == "available",
            TimeSlots.booked_count < TimeSlots.max_capacity,
        )
        .all()
    )


def public_slot_view(slot: TimeSlots) -> dict:
    """Public shape: remaining seats instead of occupancy."""
    return {
        "id": slot.id,
        "date": slot.slot_date.isoformat(),
        "start_time": format_time(slot.start_time),
        "end_time": format_time(slot.end_time),
        "available": max(slot.max_capacity - slot.booked_count, 0),
        "status": slot.status,
    }


def list_available_cached(
    db: Session,
    redis: Redis,
    tenant_id: str,
    start_date: date,
    end_date: date,
    config: BookingConfig | None = None,
) -> list[dict]:
    """
    Public availability, served per day from Redis when cached.

    Missing days are loaded from the database in one query and stored.
    Redis failures degrade to a plain database read.
    """
    dates = list(iter_dates(start_date, end_date))
    store = AvailabilityRedisStore(redis, config or get_booking_config())

    try:
        cached = store.get_days(tenant_id, dates)
    except RedisError as e:
        logger.error(f"Availability cache read failed for tenant={tenant_id}: {e}")
        return [public_slot_view(s) for s in list_available(db, tenant_id, start_date, end_date)]

    missing = [dt for dt in dates if cached.get(dt) is None]
    if missing:
        try:
            pipe = store.watch_version(tenant_id)
        except RedisError as e:
            logger.error(f"Availability cache watch failed for tenant={tenant_id}: {e}")
            pipe = None

        try:
            fresh: dict[date, list[dict]] = {dt: [] for dt in missing}
            for slot in list_available(db, tenant_id, min(missing), max(missing)):
                if slot.slot_date in fresh:
                    fresh[slot.slot_date].append(public_slot_view(slot))
            cached.update(fresh)
            if pipe is not None:
                try:
                    store.store_days(tenant_id, fresh, pipe=pipe)
                except WatchError:
                    logger.info(f"Availability for tenant={tenant_id} changed while loading, not cached")
                except RedisError as e:
                    logger.error(f"Availability cache write failed for tenant={tenant_id}: {e}")
        finally:
            if pipe is not None:
                pipe.reset()

    return [slot for dt in dates for slot in cached[dt]]


def get_tenant_slot(db: Session, slot_id: str, tenant_id: str | None) -> TimeSlots:
    """
    Load a slot for a manager action.

    tenant_id=None means platform scope (super admin).
    """
    slot = db.get(TimeSlots, slot_id)
    if slot is None:
        raise NotFound("Slot not found.")
    if tenant_id is not None and slot.tenant_id != tenant_id:
        logger.warning(f"Cross-tenant slot access: slot={slot_id} tenant={tenant_id}")
        raise Forbidden()
    return slot


def lock_slot(db: Session, slot_id: str) -> TimeSlots | None:
    """Fresh read of the slot row under FOR UPDATE."""
    return (
        db.query(TimeSlots)
        .filter(TimeSlots.id == slot_id)
        .with_for_update()
        .populate_existing()
        .one_or_none()
    )


def recount_occupancy(db: Session, slot_id: str) -> int:
    """Live count of seats held in the slot (non-cancelled bookings)."""
    return (
        db.query(func.count(Bookings.id))
        .filter(
            Bookings.time_slot_id == slot_id,
            Bookings.status != "cancelled",
        )
        .scalar()
    )


# ── Manager overrides ────────────────────────────────────────────────────


def _apply_locked(db: Session, slot_id: str, tenant_id: str | None, locks: SlotLocks, apply) -> TimeSlots:
    get_tenant_slot(db, slot_id, tenant_id)

    with locks.hold(slot_id):
        try:
            slot = lock_slot(db, slot_id)
            if slot is None:
                raise NotFound("Slot not found.")
            apply(slot)
            db.commit()
        except Exception:
            db.rollback()
            raise

    db.refresh(slot)
    return slot


def block_slot(db: Session, slot_id: str, tenant_id: str | None, locks: SlotLocks = slot_locks) -> TimeSlots:
    """Stop new bookings; existing ones stay."""
    def apply(slot: TimeSlots):
        slot.status = "blocked"

    slot = _apply_locked(db, slot_id, tenant_id, locks, apply)
    logger.info(f"Slot {slot_id} blocked")
    return slot


def unblock_slot(db: Session, slot_id: str, tenant_id: str | None, locks: SlotLocks = slot_locks) -> TimeSlots:
    """Status back from occupancy: full at capacity, else available."""
    def apply(slot: TimeSlots):
        slot.status = occupancy_status()

    slot = _apply_locked(db, slot_id, tenant_id, locks, apply)
    logger.info(f"Slot {slot_id} unblocked → {slot.status}")
    return slot


def update_slot(
    db: Session,
    slot_id: str,
    tenant_id: str | None,
    max_capacity: int | None = None,
    status: str | None = None,
    locks: SlotLocks = slot_locks,
    config: BookingConfig | None = None,
) -> TimeSlots:
    """
    Manager override of capacity and/or status.

    status accepts "available" (same as unblock) or "blocked". Capacity
    below the current booked_count is accepted; the slot then stays full
    until enough bookings are cancelled.
    """
    config = config or get_booking_config()

    if max_capacity is None and status is None:
        raise ValidationFailed("Nothing to update.")
    if status is not None and status not in ("available", "blocked"):
        raise ValidationFailed(f"Status must be 'available' or 'blocked', got '{status}'.")
    if max_capacity is not None and not config.min_capacity <= max_capacity <= config.max_capacity:
        raise ValidationFailed(
            f"Capacity must be between {config.min_capacity} and {config.max_capacity}."
        )

    def apply(slot: TimeSlots):
        new_max = slot.max_capacity
        if max_capacity is not None:
            if max_capacity < slot.booked_count:
                logger.warning(
                    f"Slot {slot_id}: capacity reduced to {max_capacity} "
                    f"below booked_count={slot.booked_count}"
                )
            slot.max_capacity = new_max = max_capacity

        if status == "blocked":
            slot.status = "blocked"
        elif status == "available":
            slot.status = occupancy_status(new_max)
        else:
            slot.status = effective_status(new_max)

    return _apply_locked(db, slot_id, tenant_id, locks, apply)


def delete_range(db: Session, tenant_id: str, start_date: date, end_date: date) -> int:
    """
    Delete unbooked slots in the range.

    Slots referenced by any booking, cancelled ones included, are kept.
    """
    if end_date < start_date:
        raise ValidationFailed("end_date must not be earlier than start_date.")

    try:
        deleted = (
            db.query(TimeSlots)
            .filter(
                TimeSlots.tenant_id == tenant_id,
                TimeSlots.slot_date >= start_date,
                TimeSlots.slot_date <= end_date,
                TimeSlots.booked_count == 0,
                ~exists().where(Bookings.time_slot_id == TimeSlots.id),
            )
            .delete(synchronize_session=False)
        )
        db.commit()
    except Exception:
        db.rollback()
        raise

    logger.info(f"Deleted {deleted} unbooked slots for tenant={tenant_id} {start_date}..{end_date}")
    return deleted
