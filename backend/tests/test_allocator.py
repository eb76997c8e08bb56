from concurrent.futures import ThreadPoolExecutor
from datetime import date, time

import pytest

from washbook.errors import NotFound, ServiceUnavailable, SlotBlocked, SlotFull, TenantMismatch
from washbook.models.generated import Bookings, Services, TimeSlots, Users
from washbook.services.bookings import allocator, cancel_by_manager, create_booking
from washbook.services.slots.inventory import recount_occupancy

from conftest import make_slot

DAY = date(2030, 3, 4)


def test_booking_snapshots_slot_and_price(db, tenant, customer, service, locks):
    slot = make_slot(db, tenant.id, DAY, start=time(9, 0), capacity=2)

    booking = create_booking(db, tenant.id, customer.id, service.id, slot.id, notes="SUV", locks=locks)

    assert booking.status == "reserved"
    assert booking.payment_status == "pending"
    assert booking.total_amount == 25.0
    assert booking.booking_date == DAY
    assert booking.start_time == time(9, 0)
    assert booking.end_time == time(10, 0)
    assert booking.notes == "SUV"

    db.refresh(slot)
    assert slot.booked_count == 1
    assert slot.status == "available"


def test_last_seat_marks_slot_full(db, tenant, customer, service, locks):
    slot = make_slot(db, tenant.id, DAY, capacity=1)

    create_booking(db, tenant.id, customer.id, service.id, slot.id, locks=locks)

    db.refresh(slot)
    assert slot.booked_count == 1
    assert slot.status == "full"
    with pytest.raises(SlotFull):
        create_booking(db, tenant.id, customer.id, service.id, slot.id, locks=locks)


def test_price_change_does_not_touch_existing_booking(db, tenant, customer, service, locks):
    slot = make_slot(db, tenant.id, DAY, capacity=2)
    booking = create_booking(db, tenant.id, customer.id, service.id, slot.id, locks=locks)

    service.price = 40.0
    db.commit()

    db.refresh(booking)
    assert booking.total_amount == 25.0


def test_blocked_slot_rejected(db, tenant, customer, service, locks):
    slot = make_slot(db, tenant.id, DAY, status="blocked")
    with pytest.raises(SlotBlocked):
        create_booking(db, tenant.id, customer.id, service.id, slot.id, locks=locks)
    assert db.query(Bookings).count() == 0


def test_unknown_slot_or_service(db, tenant, customer, service, locks):
    slot = make_slot(db, tenant.id, DAY)
    with pytest.raises(NotFound):
        create_booking(db, tenant.id, customer.id, service.id, "no-such-slot", locks=locks)
    with pytest.raises(NotFound):
        create_booking(db, tenant.id, customer.id, "no-such-service", slot.id, locks=locks)


def test_cross_tenant_slot_or_service(db, tenant, other_tenant, customer, service, locks):
    foreign_slot = make_slot(db, other_tenant.id, DAY)
    with pytest.raises(TenantMismatch):
        create_booking(db, tenant.id, customer.id, service.id, foreign_slot.id, locks=locks)

    own_slot = make_slot(db, tenant.id, DAY)
    with pytest.raises(TenantMismatch):
        create_booking(db, other_tenant.id, customer.id, service.id, own_slot.id, locks=locks)


def test_inactive_service_rejected(db, tenant, customer, service, locks):
    slot = make_slot(db, tenant.id, DAY)
    service.is_active = 0
    db.commit()

    with pytest.raises(ServiceUnavailable):
        create_booking(db, tenant.id, customer.id, service.id, slot.id, locks=locks)


def test_no_overbooking_under_concurrency(session_factory, db, tenant, service, locks):
    """capacity 3, 10 simultaneous customers → exactly 3 bookings."""
    slot = make_slot(db, tenant.id, DAY, capacity=3)
    customers = [Users(full_name=f"Customer {i}", role="customer") for i in range(10)]
    db.add_all(customers)
    db.commit()

    tenant_id, service_id, slot_id = tenant.id, service.id, slot.id
    customer_ids = [c.id for c in customers]

    def attempt(customer_id):
        session = session_factory()
        try:
            create_booking(session, tenant_id, customer_id, service_id, slot_id, locks=locks)
            return "ok"
        except SlotFull:
            return "full"
        finally:
            session.close()

    with ThreadPoolExecutor(max_workers=10) as pool:
        outcomes = list(pool.map(attempt, customer_ids))

    assert outcomes.count("ok") == 3
    assert outcomes.count("full") == 7

    db.expire_all()
    slot = db.get(TimeSlots, slot_id)
    assert slot.booked_count == 3
    assert slot.status == "full"
    assert recount_occupancy(db, slot_id) == 3


def test_concurrent_bookings_on_different_slots(session_factory, db, tenant, customer, service, locks):
    slot_ids = [make_slot(db, tenant.id, DAY, start=time(8 + i, 0)).id for i in range(4)]
    tenant_id, customer_id, service_id = tenant.id, customer.id, service.id

    def attempt(slot_id):
        session = session_factory()
        try:
            return create_booking(session, tenant_id, customer_id, service_id, slot_id, locks=locks).id
        finally:
            session.close()

    with ThreadPoolExecutor(max_workers=4) as pool:
        booking_ids = list(pool.map(attempt, slot_ids))

    assert len(set(booking_ids)) == 4
    db.expire_all()
    assert all(db.get(TimeSlots, sid).status == "full" for sid in slot_ids)


def test_service_from_other_tenant_is_mismatch(db, tenant, other_tenant, customer, locks):
    foreign_service = Services(tenant_id=other_tenant.id, name="Wax", price=10.0)
    db.add(foreign_service)
    db.commit()
    slot = make_slot(db, tenant.id, DAY)

    with pytest.raises(TenantMismatch):
        create_booking(db, tenant.id, customer.id, foreign_service.id, slot.id, locks=locks)


def test_cancellations_racing_new_bookings_on_full_slot(session_factory, db, tenant, customer, service, locks):
    """capacity 2, both seats taken; 2 cancellations and 8 bookings at once."""
    slot = make_slot(db, tenant.id, DAY, start=time(12, 0), capacity=2)
    held = [create_booking(db, tenant.id, customer.id, service.id, slot.id, locks=locks).id for _ in range(2)]
    newcomers = [Users(full_name=f"Walk-in {i}", role="customer") for i in range(8)]
    db.add_all(newcomers)
    db.commit()

    tenant_id, service_id, slot_id = tenant.id, service.id, slot.id
    jobs = [("cancel", booking_id) for booking_id in held] + [("book", c.id) for c in newcomers]

    def attempt(job):
        kind, ref = job
        session = session_factory()
        try:
            if kind == "cancel":
                cancel_by_manager(session, ref, tenant_id, locks=locks)
                return "cancelled"
            create_booking(session, tenant_id, ref, service_id, slot_id, locks=locks)
            return "booked"
        except SlotFull:
            return "full"
        finally:
            session.close()

    with ThreadPoolExecutor(max_workers=10) as pool:
        outcomes = list(pool.map(attempt, jobs))

    booked = outcomes.count("booked")
    assert outcomes[:2] == ["cancelled", "cancelled"]
    # seats freed by the cancellations are the only ones on offer
    assert booked <= 2
    assert booked + outcomes.count("full") == 8

    db.expire_all()
    slot = db.get(TimeSlots, slot_id)
    assert slot.booked_count == booked
    assert slot.booked_count == recount_occupancy(db, slot_id)
    assert slot.booked_count <= slot.max_capacity
    assert slot.status == ("full" if booked == 2 else "available")


def test_tenant_change_seen_under_hold_is_logged(db, tenant, other_tenant, customer, service, locks, monkeypatch, caplog):
    slot = make_slot(db, tenant.id, DAY)
    foreign = make_slot(db, other_tenant.id, DAY, start=time(15, 0))
    monkeypatch.setattr(allocator, "lock_slot", lambda session, slot_id: foreign)

    with caplog.at_level("WARNING", logger="washbook.services.bookings.allocator"):
        with pytest.raises(TenantMismatch):
            create_booking(db, tenant.id, customer.id, service.id, slot.id, locks=locks)

    assert f"Slot {slot.id} does not belong to tenant={tenant.id}" in caplog.text
    assert db.query(Bookings).count() == 0
