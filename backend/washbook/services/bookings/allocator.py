# backend/washbook/services/bookings/allocator.py
"""
Booking allocator.

Creates a booking against a slot with an at-most-capacity guarantee:

  pre-validate (no lock)     service exists / same tenant / active
                             slot exists / same tenant
  ── hold slot ─────────────────────────────────────────────────────
  1. read slot (FOR UPDATE)  NotFound
  2. tenant check            TenantMismatch
  3. blocked?                SlotBlocked
  4. full?                   SlotFull
  5. claim a seat            guarded UPDATE: booked_count + 1 only while
                             not blocked and below capacity; flips to
                             'full' on the last seat
  6. insert booking          reserved / pending / price snapshot
  7. commit                  all of it, or nothing
  ── release ───────────────────────────────────────────────────────
"""

import logging

from sqlalchemy import case, update
from sqlalchemy.orm import Session

from ...errors import NotFound, ServiceUnavailable, SlotBlocked, SlotFull, TenantMismatch
from ...models.generated import Bookings, Services, TimeSlots
from ..slots.inventory import lock_slot
from ..slots.locks import SlotLocks, slot_locks

logger = logging.getLogger(__name__)


def create_booking(
    db: Session,
    tenant_id: str,
    customer_id: str,
    service_id: str,
    slot_id: str,
    notes: str | None = None,
    locks: SlotLocks = slot_locks,
) -> Bookings:
    """
    Reserve one seat of `slot_id` for `customer_id`.

    Raises:
        NotFound, TenantMismatch, ServiceUnavailable, SlotBlocked, SlotFull
    """
    service = db.get(Services, service_id)
    if service is None:
        raise NotFound("Service not found.")
    if service.tenant_id != tenant_id:
        logger.warning(f"Service {service_id} does not belong to tenant={tenant_id}")
        raise TenantMismatch("Service does not belong to this car wash.")
    if not service.is_active:
        raise ServiceUnavailable()

    slot = db.get(TimeSlots, slot_id)
    if slot is None:
        raise NotFound("Time slot not found.")
    if slot.tenant_id != tenant_id:
        logger.warning(f"Slot {slot_id} does not belong to tenant={tenant_id}")
        raise TenantMismatch("Time slot does not belong to this car wash.")

    price = service.price

    with locks.hold(slot_id):
        try:
            slot = lock_slot(db, slot_id)
            if slot is None:
                raise NotFound("Time slot not found.")
            if slot.tenant_id != tenant_id:
                logger.warning(f"Slot {slot_id} does not belong to tenant={tenant_id}")
                raise TenantMismatch("Time slot does not belong to this car wash.")
            if slot.status == "blocked":
                raise SlotBlocked()
            if slot.booked_count >= slot.max_capacity:
                raise SlotFull()

            if not _claim_seat(db, slot_id):
                # another process got there between the read and the write
                _raise_unavailable(db, slot_id)

            booking = Bookings(
                tenant_id=tenant_id,
                customer_id=customer_id,
                service_id=service_id,
                time_slot_id=slot_id,
                booking_date=slot.slot_date,
                start_time=slot.start_time,
                end_time=slot.end_time,
                total_amount=price,
                status="reserved",
                payment_status="pending",
                notes=notes,
            )
            db.add(booking)
            db.commit()
        except Exception:
            db.rollback()
            raise

    db.refresh(booking)
    logger.info(
        f"Booking {booking.id} reserved: tenant={tenant_id} slot={slot_id} "
        f"customer={customer_id} amount={price}"
    )
    return booking


# ── Helpers ──────────────────────────────────────────────────────────────


def _claim_seat(db: Session, slot_id: str) -> bool:
    """booked_count += 1 if the slot is still open. True when a seat was taken."""
    result = db.execute(
        update(TimeSlots)
        .where(
            TimeSlots.id == slot_id,
            TimeSlots.status != "blocked",
            TimeSlots.booked_count < TimeSlots.max_capacity,
        )
        .values(
            booked_count=TimeSlots.booked_count + 1,
            status=case(
                (TimeSlots.booked_count + 1 >= TimeSlots.max_capacity, "full"),
                else_=TimeSlots.status,
            ),
        )
        .execution_options(synchronize_session=False)
    )
    return result.rowcount == 1


def _raise_unavailable(db: Session, slot_id: str) -> None:
    slot = lock_slot(db, slot_id)
    if slot is None:
        raise NotFound("Time slot not found.")
    if slot.status == "blocked":
        raise SlotBlocked()
    raise SlotFull()
