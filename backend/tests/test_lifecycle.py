from concurrent.futures import ThreadPoolExecutor
from datetime import date, datetime, time, timedelta

import pytest

from washbook.errors import AlreadyTerminal, Forbidden, InvalidTransition, NotFound, PolicyViolation
from washbook.models.generated import TimeSlots, Users
from washbook.services.bookings import (
    cancel_by_customer,
    cancel_by_manager,
    can_transition,
    create_booking,
    update_status,
)
from washbook.services.slots import block_slot

from conftest import make_slot

DAY = date(2030, 3, 4)
START = datetime.combine(DAY, time(10, 0))


@pytest.fixture
def booking(db, tenant, customer, service, locks):
    slot = make_slot(db, tenant.id, DAY, start=time(10, 0), capacity=1)
    return create_booking(db, tenant.id, customer.id, service.id, slot.id, locks=locks)


def _slot(db, booking):
    db.expire_all()
    return db.get(TimeSlots, booking.time_slot_id)


@pytest.mark.parametrize("current,new,allowed", [
    ("reserved", "confirmed", True),
    ("reserved", "in_progress", False),
    ("confirmed", "no_show", True),
    ("in_progress", "completed", True),
    ("completed", "cancelled", False),
    ("no_show", "confirmed", False),
])
def test_transition_table(current, new, allowed):
    assert can_transition(current, new) is allowed


def test_happy_path_marks_payment_paid(db, tenant, booking, locks):
    update_status(db, booking.id, tenant.id, "confirmed", locks=locks)
    update_status(db, booking.id, tenant.id, "in_progress", locks=locks)
    done = update_status(db, booking.id, tenant.id, "completed", locks=locks)

    assert done.status == "completed"
    assert done.payment_status == "paid"
    # completion keeps the seat
    assert _slot(db, booking).booked_count == 1


def test_reserved_cannot_skip_to_in_progress(db, tenant, booking, locks):
    with pytest.raises(InvalidTransition) as exc:
        update_status(db, booking.id, tenant.id, "in_progress", locks=locks)
    assert exc.value.extra == {"current_status": "reserved", "attempted_status": "in_progress"}


def test_terminal_states_are_final(db, tenant, booking, locks):
    for status in ("confirmed", "in_progress", "completed"):
        update_status(db, booking.id, tenant.id, status, locks=locks)

    for status in ("reserved", "confirmed", "in_progress", "cancelled", "no_show"):
        with pytest.raises(InvalidTransition):
            update_status(db, booking.id, tenant.id, status, locks=locks)


def test_status_update_is_tenant_scoped(db, other_tenant, booking, locks):
    with pytest.raises(Forbidden):
        update_status(db, booking.id, other_tenant.id, "confirmed", locks=locks)
    with pytest.raises(NotFound):
        update_status(db, "missing", other_tenant.id, "confirmed", locks=locks)


def test_status_cancel_releases_seat(db, tenant, booking, locks):
    assert _slot(db, booking).status == "full"

    cancelled = update_status(db, booking.id, tenant.id, "cancelled", locks=locks)

    assert cancelled.status == "cancelled"
    assert cancelled.cancellation_reason == "Cancelled by car wash"
    slot = _slot(db, booking)
    assert slot.booked_count == 0
    assert slot.status == "available"


def test_customer_cancel_outside_window(db, customer, booking, locks):
    cancelled = cancel_by_customer(db, booking.id, customer.id, now=START - timedelta(hours=3), locks=locks)

    assert cancelled.status == "cancelled"
    assert cancelled.cancellation_reason == "Cancelled by customer"
    assert _slot(db, booking).booked_count == 0


def test_customer_cancel_inside_window_rejected(db, customer, booking, locks):
    with pytest.raises(PolicyViolation) as exc:
        cancel_by_customer(db, booking.id, customer.id, now=START - timedelta(minutes=90), locks=locks)

    assert exc.value.extra == {"threshold_hours": 2}
    assert _slot(db, booking).booked_count == 1


def test_manager_cancel_ignores_window(db, tenant, booking, locks):
    cancelled = cancel_by_manager(db, booking.id, tenant.id, reason="Equipment failure", locks=locks)

    assert cancelled.status == "cancelled"
    assert cancelled.cancellation_reason == "Equipment failure"
    assert _slot(db, booking).status == "available"


def test_customer_cannot_cancel_someone_elses_booking(db, booking, locks):
    stranger = Users(full_name="Stranger", role="customer")
    db.add(stranger)
    db.commit()

    with pytest.raises(Forbidden):
        cancel_by_customer(db, booking.id, stranger.id, now=START - timedelta(days=1), locks=locks)


def test_customer_cannot_cancel_in_progress(db, tenant, customer, booking, locks):
    update_status(db, booking.id, tenant.id, "confirmed", locks=locks)
    update_status(db, booking.id, tenant.id, "in_progress", locks=locks)

    with pytest.raises(InvalidTransition):
        cancel_by_customer(db, booking.id, customer.id, now=START - timedelta(days=1), locks=locks)

    # the car wash can
    assert cancel_by_manager(db, booking.id, tenant.id, locks=locks).status == "cancelled"


def test_cancel_twice_is_already_terminal(db, tenant, booking, locks):
    cancel_by_manager(db, booking.id, tenant.id, locks=locks)
    with pytest.raises(AlreadyTerminal):
        cancel_by_manager(db, booking.id, tenant.id, locks=locks)
    assert _slot(db, booking).booked_count == 0


def test_full_slot_reopens_after_cancellation(db, tenant, customer, service, locks):
    slot = make_slot(db, tenant.id, DAY, start=time(14, 0), capacity=2)
    first = create_booking(db, tenant.id, customer.id, service.id, slot.id, locks=locks)
    create_booking(db, tenant.id, customer.id, service.id, slot.id, locks=locks)
    assert _slot(db, first).status == "full"

    cancel_by_manager(db, first.id, tenant.id, locks=locks)
    reopened = _slot(db, first)
    assert reopened.status == "available"
    assert reopened.max_capacity - reopened.booked_count == 1

    create_booking(db, tenant.id, customer.id, service.id, slot.id, locks=locks)
    assert _slot(db, first).status == "full"


def test_cancellation_keeps_block(db, tenant, booking, locks):
    block_slot(db, booking.time_slot_id, tenant.id, locks=locks)

    cancel_by_manager(db, booking.id, tenant.id, locks=locks)

    slot = _slot(db, booking)
    assert slot.booked_count == 0
    assert slot.status == "blocked"


def test_concurrent_cancellations_release_one_seat(session_factory, db, tenant, customer, service, locks):
    slot = make_slot(db, tenant.id, DAY, start=time(16, 0), capacity=3)
    bookings = [create_booking(db, tenant.id, customer.id, service.id, slot.id, locks=locks) for _ in range(2)]
    target_id, tenant_id, slot_id = bookings[0].id, tenant.id, slot.id

    def attempt(_):
        session = session_factory()
        try:
            cancel_by_manager(session, target_id, tenant_id, locks=locks)
            return "ok"
        except AlreadyTerminal:
            return "terminal"
        finally:
            session.close()

    with ThreadPoolExecutor(max_workers=5) as pool:
        outcomes = list(pool.map(attempt, range(5)))

    assert outcomes.count("ok") == 1
    assert outcomes.count("terminal") == 4
    db.expire_all()
    assert db.get(TimeSlots, slot_id).booked_count == 1
