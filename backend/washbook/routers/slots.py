# backend/washbook/routers/slots.py
"""
Slots API endpoints.

Public:  GET /slots/available - bookable slots of an approved car wash
Manager: generation, full listing, block/unblock, capacity overrides,
         cleanup of unbooked slots
"""

from datetime import date

from fastapi import APIRouter, Depends, Query, Request
from redis import Redis
from sqlalchemy.orm import Session

from ..auth import Principal, get_required_tenant_scope, get_tenant_scope, require_manager
from ..database import get_db
from ..errors import NotFound, ValidationFailed
from ..middleware.access_log import client_ip
from ..models.generated import Tenants, TimeSlots
from ..redis_client import get_redis
from ..schemas.slots import (
    DeleteSlotsResponse,
    GenerateSlotsRequest,
    GenerationResponse,
    ManagerSlotRead,
    PublicSlotRead,
    SlotUpdate,
)
from ..services.audit import record_audit
from ..services.slots import (
    block_slot,
    delete_range,
    generate_slots,
    invalidate_tenant_dates,
    invalidate_tenant_range,
    list_all,
    list_available_cached,
    unblock_slot,
    update_slot,
)

router = APIRouter(prefix="/slots", tags=["slots"])

# Public listings are bounded so a single request can't scan years of slots
MAX_PUBLIC_RANGE_DAYS = 62


def _slot_snapshot(slot: TimeSlots) -> dict:
    return {
        "max_capacity": slot.max_capacity,
        "booked_count": slot.booked_count,
        "status": slot.status,
    }


@router.post("/generate", response_model=GenerationResponse)
def generate(
    data: GenerateSlotsRequest,
    request: Request,
    tenant_id: str = Depends(get_required_tenant_scope),
    principal: Principal = Depends(require_manager),
    db: Session = Depends(get_db),
    redis: Redis = Depends(get_redis),
):
    """Create slots from operating hours; repeated calls are no-ops."""
    result = generate_slots(
        db,
        tenant_id,
        data.start_date,
        data.end_date,
        slot_minutes=data.slot_duration,
        capacity=data.capacity,
    )
    invalidate_tenant_range(redis, tenant_id, data.start_date, data.end_date)

    record_audit(
        db,
        action="slots.generate",
        actor_user_id=principal.id,
        tenant_id=tenant_id,
        entity_type="time_slot",
        entity_id=None,
        new_values={**data.model_dump(mode="json"), "created": result.created, "total": result.total},
        ip_address=client_ip(request),
    )
    return GenerationResponse(created=result.created, total=result.total)


@router.get("/available", response_model=list[PublicSlotRead])
def get_available(
    tenant_id: str,
    start_date: date,
    end_date: date,
    db: Session = Depends(get_db),
    redis: Redis = Depends(get_redis),
):
    """Bookable slots with remaining seats (public)."""
    if end_date < start_date:
        raise ValidationFailed("end_date must not be earlier than start_date.")
    if (end_date - start_date).days >= MAX_PUBLIC_RANGE_DAYS:
        raise ValidationFailed(f"Date range cannot exceed {MAX_PUBLIC_RANGE_DAYS} days.")

    tenant = db.get(Tenants, tenant_id)
    if tenant is None or tenant.status != "approved":
        raise NotFound("Car wash not found.")

    return list_available_cached(db, redis, tenant_id, start_date, end_date)


@router.get("", response_model=list[ManagerSlotRead])
def get_all(
    start_date: date,
    end_date: date,
    tenant_id: str = Depends(get_required_tenant_scope),
    db: Session = Depends(get_db),
):
    """Every slot of the tenant with occupancy (manager)."""
    if end_date < start_date:
        raise ValidationFailed("end_date must not be earlier than start_date.")
    return list_all(db, tenant_id, start_date, end_date)


@router.delete("", response_model=DeleteSlotsResponse)
def delete_slots(
    request: Request,
    start_date: date = Query(...),
    end_date: date = Query(...),
    tenant_id: str = Depends(get_required_tenant_scope),
    principal: Principal = Depends(require_manager),
    db: Session = Depends(get_db),
    redis: Redis = Depends(get_redis),
):
    """Delete unbooked slots in the range; booked ones stay."""
    deleted = delete_range(db, tenant_id, start_date, end_date)
    invalidate_tenant_range(redis, tenant_id, start_date, end_date)

    record_audit(
        db,
        action="slots.delete_range",
        actor_user_id=principal.id,
        tenant_id=tenant_id,
        entity_type="time_slot",
        entity_id=None,
        old_values={"start_date": start_date, "end_date": end_date, "deleted": deleted},
        ip_address=client_ip(request),
    )
    return DeleteSlotsResponse(deleted=deleted)


@router.patch("/{id}", response_model=ManagerSlotRead)
def patch_slot(
    id: str,
    data: SlotUpdate,
    request: Request,
    tenant_id: str | None = Depends(get_tenant_scope),
    principal: Principal = Depends(require_manager),
    db: Session = Depends(get_db),
    redis: Redis = Depends(get_redis),
):
    existing = db.get(TimeSlots, id)
    before = _slot_snapshot(existing) if existing else None
    slot = update_slot(db, id, tenant_id, max_capacity=data.max_capacity, status=data.status)
    invalidate_tenant_dates(redis, slot.tenant_id, [slot.slot_date])

    record_audit(
        db,
        action="slot.update",
        actor_user_id=principal.id,
        tenant_id=slot.tenant_id,
        entity_type="time_slot",
        entity_id=slot.id,
        old_values=before,
        new_values=_slot_snapshot(slot),
        ip_address=client_ip(request),
    )
    return slot


@router.post("/{id}/block", response_model=ManagerSlotRead)
def block(
    id: str,
    request: Request,
    tenant_id: str | None = Depends(get_tenant_scope),
    principal: Principal = Depends(require_manager),
    db: Session = Depends(get_db),
    redis: Redis = Depends(get_redis),
):
    """Stop new bookings for the slot; existing bookings are untouched."""
    slot = block_slot(db, id, tenant_id)
    invalidate_tenant_dates(redis, slot.tenant_id, [slot.slot_date])

    record_audit(
        db,
        action="slot.block",
        actor_user_id=principal.id,
        tenant_id=slot.tenant_id,
        entity_type="time_slot",
        entity_id=slot.id,
        new_values=_slot_snapshot(slot),
        ip_address=client_ip(request),
    )
    return slot


@router.post("/{id}/unblock", response_model=ManagerSlotRead)
def unblock(
    id: str,
    request: Request,
    tenant_id: str | None = Depends(get_tenant_scope),
    principal: Principal = Depends(require_manager),
    db: Session = Depends(get_db),
    redis: Redis = Depends(get_redis),
):
    slot = unblock_slot(db, id, tenant_id)
    invalidate_tenant_dates(redis, slot.tenant_id, [slot.slot_date])

    record_audit(
        db,
        action="slot.unblock",
        actor_user_id=principal.id,
        tenant_id=slot.tenant_id,
        entity_type="time_slot",
        entity_id=slot.id,
        new_values=_slot_snapshot(slot),
        ip_address=client_ip(request),
    )
    return slot
