# backend/washbook/routers/tenants.py

from fastapi import APIRouter, Depends, Request, status
from sqlalchemy.orm import Session

from ..auth import Principal, require_super_admin
from ..database import get_db
from ..errors import NotFound
from ..middleware.access_log import client_ip
from ..schemas.tenants import TenantCreate, TenantRead, TenantStatusUpdate
from ..services.audit import record_audit
from ..services.tenants import create_tenant, get_tenant, set_tenant_status

router = APIRouter(prefix="/tenants", tags=["tenants"])


@router.post("", response_model=TenantRead, status_code=status.HTTP_201_CREATED)
def create(
    data: TenantCreate,
    request: Request,
    principal: Principal = Depends(require_super_admin),
    db: Session = Depends(get_db),
):
    tenant = create_tenant(db, data.name, timezone=data.timezone, status=data.status)

    record_audit(
        db,
        action="tenant.create",
        actor_user_id=principal.id,
        tenant_id=tenant.id,
        entity_type="tenant",
        entity_id=tenant.id,
        new_values={"name": tenant.name, "slug": tenant.slug, "status": tenant.status},
        ip_address=client_ip(request),
    )
    return tenant


@router.get("/{id_or_slug}", response_model=TenantRead)
def get(id_or_slug: str, db: Session = Depends(get_db)):
    """Public lookup; only approved car washes are visible."""
    tenant = get_tenant(db, id_or_slug)
    if tenant.status != "approved":
        raise NotFound("Car wash not found.")
    return tenant


@router.patch("/{id}/status", response_model=TenantRead)
def change_status(
    id: str,
    data: TenantStatusUpdate,
    request: Request,
    principal: Principal = Depends(require_super_admin),
    db: Session = Depends(get_db),
):
    existing = get_tenant(db, id)
    old_status = existing.status
    tenant = set_tenant_status(db, existing.id, data.status)

    record_audit(
        db,
        action="tenant.status",
        actor_user_id=principal.id,
        tenant_id=tenant.id,
        entity_type="tenant",
        entity_id=tenant.id,
        old_values={"status": old_status},
        new_values={"status": tenant.status},
        ip_address=client_ip(request),
    )
    return tenant
