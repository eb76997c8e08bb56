# backend/washbook/services/bookings/queries.py
"""Read side of bookings: listings with pagination and single lookups."""

import math
from datetime import date

from sqlalchemy.orm import Session, joinedload

from ...auth import Principal
from ...errors import Forbidden, NotFound
from ...models.generated import Bookings


def _paginate(q, page: int, limit: int) -> dict:
    total = q.enable_eagerloads(False).order_by(None).count()
    items = (
        q.order_by(Bookings.booking_date.desc(), Bookings.start_time.desc())
        .offset((page - 1) * limit)
        .limit(limit)
        .all()
    )
    return {
        "items": items,
        "total": total,
        "page": page,
        "limit": limit,
        "total_pages": math.ceil(total / limit) if limit else 0,
    }


def list_customer_bookings(
    db: Session,
    customer_id: str,
    status: str | None = None,
    page: int = 1,
    limit: int = 20,
) -> dict:
    q = (
        db.query(Bookings)
        .options(joinedload(Bookings.service), joinedload(Bookings.tenant))
        .filter(Bookings.customer_id == customer_id)
    )
    if status:
        q = q.filter(Bookings.status == status)
    return _paginate(q, page, limit)


def list_tenant_bookings(
    db: Session,
    tenant_id: str,
    status: str | None = None,
    start_date: date | None = None,
    end_date: date | None = None,
    page: int = 1,
    limit: int = 20,
) -> dict:
    q = (
        db.query(Bookings)
        .options(joinedload(Bookings.service), joinedload(Bookings.customer))
        .filter(Bookings.tenant_id == tenant_id)
    )
    if status:
        q = q.filter(Bookings.status == status)
    if start_date:
        q = q.filter(Bookings.booking_date >= start_date)
    if end_date:
        q = q.filter(Bookings.booking_date <= end_date)
    return _paginate(q, page, limit)


def get_visible_booking(db: Session, booking_id: str, principal: Principal) -> Bookings:
    """A booking is visible to its customer, its tenant's manager and super admins."""
    booking = db.get(Bookings, booking_id)
    if booking is None:
        raise NotFound("Booking not found.")

    if principal.is_super_admin:
        return booking
    if principal.is_manager and booking.tenant_id == principal.tenant_id:
        return booking
    if principal.is_customer and booking.customer_id == principal.id:
        return booking
    raise Forbidden()
