# backend/washbook/routers/bookings.py
# No DELETE: bookings are never removed, only cancelled

from datetime import date

from fastapi import APIRouter, Depends, Query, Request, status
from redis import Redis
from sqlalchemy.orm import Session

from ..auth import (
    Principal,
    get_principal,
    get_required_tenant_scope,
    get_tenant_scope,
    require_customer,
    require_manager,
)
from ..database import get_db
from ..errors import NotFound
from ..middleware.access_log import client_ip
from ..models.generated import Bookings, Tenants
from ..redis_client import get_redis
from ..schemas.bookings import BookingCreate, BookingPage, BookingRead, BookingStatus, CancelRequest, StatusUpdate
from ..services.audit import record_audit
from ..services.bookings import (
    cancel_by_customer,
    cancel_by_manager,
    create_booking,
    get_visible_booking,
    list_customer_bookings,
    list_tenant_bookings,
    update_status,
)
from ..services.events import booking_payload, emit_event
from ..services.slots import invalidate_tenant_dates

router = APIRouter(prefix="/bookings", tags=["bookings"])


def _after_change(
    db: Session,
    redis: Redis,
    request: Request,
    principal: Principal,
    booking: Bookings,
    action: str,
    event_type: str,
    old_status: str | None,
) -> None:
    """Side effects of a booking write: cache, event, audit. None of them can fail the request."""
    invalidate_tenant_dates(redis, booking.tenant_id, [booking.booking_date])
    emit_event(event_type, {**booking_payload(booking), "old_status": old_status}, redis=redis)
    record_audit(
        db,
        action=action,
        actor_user_id=principal.id,
        tenant_id=booking.tenant_id,
        entity_type="booking",
        entity_id=booking.id,
        old_values={"status": old_status} if old_status else None,
        new_values={"status": booking.status, "payment_status": booking.payment_status},
        ip_address=client_ip(request),
    )


@router.post("", response_model=BookingRead, status_code=status.HTTP_201_CREATED)
def create(
    data: BookingCreate,
    request: Request,
    principal: Principal = Depends(require_customer),
    db: Session = Depends(get_db),
    redis: Redis = Depends(get_redis),
):
    tenant = db.get(Tenants, data.tenant_id)
    if tenant is None or tenant.status != "approved":
        raise NotFound("Car wash not found.")

    booking = create_booking(
        db,
        tenant_id=data.tenant_id,
        customer_id=principal.id,
        service_id=data.service_id,
        slot_id=data.slot_id,
        notes=data.notes,
    )
    _after_change(db, redis, request, principal, booking, "booking.create", "booking_created", None)
    return booking


@router.get("/my", response_model=BookingPage)
def my_bookings(
    status: BookingStatus | None = None,
    page: int = Query(1, ge=1),
    limit: int = Query(20, ge=1, le=100),
    principal: Principal = Depends(require_customer),
    db: Session = Depends(get_db),
):
    return list_customer_bookings(db, principal.id, status=status, page=page, limit=limit)


@router.get("/tenant", response_model=BookingPage)
def tenant_bookings(
    status: BookingStatus | None = None,
    start_date: date | None = None,
    end_date: date | None = None,
    page: int = Query(1, ge=1),
    limit: int = Query(20, ge=1, le=100),
    tenant_id: str = Depends(get_required_tenant_scope),
    db: Session = Depends(get_db),
):
    return list_tenant_bookings(
        db, tenant_id,
        status=status, start_date=start_date, end_date=end_date,
        page=page, limit=limit,
    )


@router.get("/{id}", response_model=BookingRead)
def get_booking(
    id: str,
    principal: Principal = Depends(get_principal),
    db: Session = Depends(get_db),
):
    return get_visible_booking(db, id, principal)


@router.patch("/{id}/status", response_model=BookingRead)
def change_status(
    id: str,
    data: StatusUpdate,
    request: Request,
    tenant_id: str | None = Depends(get_tenant_scope),
    principal: Principal = Depends(require_manager),
    db: Session = Depends(get_db),
    redis: Redis = Depends(get_redis),
):
    existing = db.get(Bookings, id)
    old_status = existing.status if existing else None

    booking = update_status(db, id, tenant_id, data.status)

    event_type = "booking_cancelled" if booking.status == "cancelled" else "booking_status_changed"
    _after_change(db, redis, request, principal, booking, "booking.status", event_type, old_status)
    return booking


@router.patch("/{id}/cancel", response_model=BookingRead)
def cancel(
    id: str,
    request: Request,
    data: CancelRequest | None = None,
    principal: Principal = Depends(require_customer),
    db: Session = Depends(get_db),
    redis: Redis = Depends(get_redis),
):
    """Customer cancellation, subject to the cancellation window."""
    existing = db.get(Bookings, id)
    old_status = existing.status if existing else None

    booking = cancel_by_customer(db, id, principal.id, reason=data.reason if data else None)
    _after_change(db, redis, request, principal, booking, "booking.cancel", "booking_cancelled", old_status)
    return booking


@router.patch("/{id}/manager-cancel", response_model=BookingRead)
def manager_cancel(
    id: str,
    request: Request,
    data: CancelRequest | None = None,
    tenant_id: str | None = Depends(get_tenant_scope),
    principal: Principal = Depends(require_manager),
    db: Session = Depends(get_db),
    redis: Redis = Depends(get_redis),
):
    existing = db.get(Bookings, id)
    old_status = existing.status if existing else None

    booking = cancel_by_manager(db, id, tenant_id, reason=data.reason if data else None)
    _after_change(db, redis, request, principal, booking, "booking.manager_cancel", "booking_cancelled", old_status)
    return booking
