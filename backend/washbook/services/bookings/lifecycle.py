# backend/washbook/services/bookings/lifecycle.py
"""
Booking lifecycle: status state machine and cancellation.

    reserved ──► confirmed ──► in_progress ──► completed
        │            │  └──► no_show    │
        └────────────┴──────────────────┴──► cancelled

completed / cancelled / no_show are terminal.

Status writes are compare-and-set on the status that was read, so two
managers racing on one booking can't both win. Cancellation also gives
the seat back to the slot, once, under the same per-slot hold the
allocator uses.
"""

import logging
from datetime import datetime

from sqlalchemy import case, func, update
from sqlalchemy.orm import Session

from ...errors import AlreadyTerminal, Forbidden, InvalidTransition, NotFound, PolicyViolation
from ...models.generated import Bookings, TimeSlots
from ..clock import tenant_now
from ..slots.config import BookingConfig, get_booking_config
from ..slots.locks import SlotLocks, slot_locks

logger = logging.getLogger(__name__)

STATUS_TRANSITIONS: dict[str, frozenset[str]] = {
    "reserved": frozenset({"confirmed", "cancelled"}),
    "confirmed": frozenset({"in_progress", "cancelled", "no_show"}),
    "in_progress": frozenset({"completed", "cancelled"}),
    "completed": frozenset(),
    "cancelled": frozenset(),
    "no_show": frozenset(),
}

BOOKING_STATUSES = tuple(STATUS_TRANSITIONS)
TERMINAL_STATUSES = frozenset(s for s, allowed in STATUS_TRANSITIONS.items() if not allowed)
CUSTOMER_CANCELLABLE = frozenset({"reserved", "confirmed"})

CUSTOMER_CANCEL_REASON = "Cancelled by customer"
MANAGER_CANCEL_REASON = "Cancelled by car wash"


def can_transition(current: str, new: str) -> bool:
    return new in STATUS_TRANSITIONS.get(current, frozenset())


def _get_booking(db: Session, booking_id: str) -> Bookings:
    booking = db.get(Bookings, booking_id)
    if booking is None:
        raise NotFound("Booking not found.")
    return booking


def _check_tenant(booking: Bookings, tenant_id: str | None) -> None:
    """tenant_id=None means platform scope (super admin)."""
    if tenant_id is not None and booking.tenant_id != tenant_id:
        logger.warning(f"Cross-tenant booking access: booking={booking.id} tenant={tenant_id}")
        raise Forbidden()


# ──────────────────────────────────────────────────────────────────────────────
# Manager status updates
# ──────────────────────────────────────────────────────────────────────────────

def update_status(
    db: Session,
    booking_id: str,
    tenant_id: str | None,
    new_status: str,
    locks: SlotLocks = slot_locks,
) -> Bookings:
    """
    Move a booking along the state machine.

    Completing a booking whose payment is still pending marks it paid.
    A move to 'cancelled' goes through manager cancellation.

    Raises:
        NotFound, Forbidden, InvalidTransition
    """
    booking = _get_booking(db, booking_id)
    _check_tenant(booking, tenant_id)

    current = booking.status
    if not can_transition(current, new_status):
        raise InvalidTransition(current, new_status)

    if new_status == "cancelled":
        return cancel_by_manager(db, booking_id, tenant_id, locks=locks)

    values = {"status": new_status, "updated_at": func.current_timestamp()}
    if new_status == "completed" and booking.payment_status == "pending":
        values["payment_status"] = "paid"

    try:
        result = db.execute(
            update(Bookings)
            .where(Bookings.id == booking_id, Bookings.status == current)
            .values(**values)
            .execution_options(synchronize_session=False)
        )
        if result.rowcount != 1:
            # status moved since it was read
            db.rollback()
            raise InvalidTransition(_get_booking(db, booking_id).status, new_status)
        db.commit()
    except Exception:
        db.rollback()
        raise

    db.refresh(booking)
    logger.info(f"Booking {booking_id}: {current} → {new_status}")
    return booking


# ──────────────────────────────────────────────────────────────────────────────
# Cancellation
# ──────────────────────────────────────────────────────────────────────────────

def cancel_by_customer(
    db: Session,
    booking_id: str,
    customer_id: str,
    reason: str | None = None,
    now: datetime | None = None,
    locks: SlotLocks = slot_locks,
    config: BookingConfig | None = None,
) -> Bookings:
    """
    Customer cancels its own booking.

    Only reserved/confirmed bookings, and not closer than
    cancellation_window_hours to the scheduled start (tenant local time).

    Raises:
        NotFound, Forbidden, AlreadyTerminal, InvalidTransition, PolicyViolation
    """
    config = config or get_booking_config()
    booking = _get_booking(db, booking_id)

    if booking.customer_id != customer_id:
        logger.warning(f"Customer {customer_id} tried to cancel booking {booking_id} of another customer")
        raise Forbidden()
    if booking.status in TERMINAL_STATUSES:
        raise AlreadyTerminal(booking.status)
    if booking.status not in CUSTOMER_CANCELLABLE:
        raise InvalidTransition(booking.status, "cancelled")

    now = now or tenant_now(db, booking.tenant_id)
    starts_at = datetime.combine(booking.booking_date, booking.start_time)
    hours_until = (starts_at - now).total_seconds() / 3600
    if hours_until < config.cancellation_window_hours:
        raise PolicyViolation(config.cancellation_window_hours)

    return _cancel(
        db, booking, reason or CUSTOMER_CANCEL_REASON,
        allowed_from=CUSTOMER_CANCELLABLE, locks=locks,
    )


def cancel_by_manager(
    db: Session,
    booking_id: str,
    tenant_id: str | None,
    reason: str | None = None,
    locks: SlotLocks = slot_locks,
) -> Bookings:
    """
    Manager cancels any non-terminal booking of its tenant, any time.

    Raises:
        NotFound, Forbidden, AlreadyTerminal
    """
    booking = _get_booking(db, booking_id)
    _check_tenant(booking, tenant_id)
    if booking.status in TERMINAL_STATUSES:
        raise AlreadyTerminal(booking.status)

    return _cancel(
        db, booking, reason or MANAGER_CANCEL_REASON,
        allowed_from=frozenset(STATUS_TRANSITIONS) - TERMINAL_STATUSES, locks=locks,
    )


def _cancel(
    db: Session,
    booking: Bookings,
    reason: str,
    allowed_from: frozenset[str],
    locks: SlotLocks,
) -> Bookings:
    """
    Flip the booking to cancelled and release its seat, as one unit.

    Runs under the slot hold; the booking status is re-read there so a
    second cancellation of the same booking sees it terminal and releases
    nothing.
    """
    booking_id = booking.id
    slot_id = booking.time_slot_id

    with locks.hold(slot_id):
        try:
            current = (
                db.query(Bookings)
                .filter(Bookings.id == booking_id)
                .with_for_update()
                .populate_existing()
                .one()
            )
            if current.status in TERMINAL_STATUSES:
                raise AlreadyTerminal(current.status)
            if current.status not in allowed_from:
                raise InvalidTransition(current.status, "cancelled")

            result = db.execute(
                update(Bookings)
                .where(Bookings.id == booking_id, Bookings.status == current.status)
                .values(
                    status="cancelled",
                    cancellation_reason=reason,
                    updated_at=func.current_timestamp(),
                )
                .execution_options(synchronize_session=False)
            )
            if result.rowcount != 1:
                raise AlreadyTerminal("cancelled")

            _release_seat(db, slot_id)
            db.commit()
        except Exception:
            db.rollback()
            raise

    db.refresh(booking)
    logger.info(f"Booking {booking_id} cancelled ({reason}); seat released on slot {slot_id}")
    return booking


def _release_seat(db: Session, slot_id: str) -> None:
    """booked_count -= 1 (floor 0); status from occupancy unless blocked."""
    db.execute(
        update(TimeSlots)
        .where(TimeSlots.id == slot_id)
        .values(
            booked_count=case(
                (TimeSlots.booked_count > 0, TimeSlots.booked_count - 1),
                else_=0,
            ),
            status=case(
                (TimeSlots.status == "blocked", "blocked"),
                (TimeSlots.booked_count - 1 >= TimeSlots.max_capacity, "full"),
                else_="available",
            ),
        )
        .execution_options(synchronize_session=False)
    )
