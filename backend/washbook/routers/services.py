# backend/washbook/routers/services.py
# DELETE = soft-delete (is_active)

from fastapi import APIRouter, Depends, Request, status
from sqlalchemy.orm import Session

from ..auth import Principal, get_required_tenant_scope, get_tenant_scope, require_manager
from ..database import get_db
from ..errors import Forbidden, NotFound
from ..middleware.access_log import client_ip
from ..models.generated import Services as DBServices
from ..schemas.services import (
    ServiceCreate,
    ServiceUpdate,
    ServiceRead,
)
from ..services.audit import record_audit

router = APIRouter(prefix="/services", tags=["services"])


def _get_owned(db: Session, id: str, tenant_id: str | None) -> DBServices:
    obj = db.get(DBServices, id)
    if not obj:
        raise NotFound("Service not found.")
    if tenant_id is not None and obj.tenant_id != tenant_id:
        raise Forbidden()
    return obj


@router.get("", response_model=list[ServiceRead])
def list_services(tenant_id: str, db: Session = Depends(get_db)):
    """Active services of a car wash (public)."""
    return (
        db.query(DBServices)
        .filter(DBServices.tenant_id == tenant_id, DBServices.is_active == 1)
        .order_by(DBServices.sort_order, DBServices.name)
        .all()
    )


@router.post("", response_model=ServiceRead, status_code=status.HTTP_201_CREATED)
def create_service(
    data: ServiceCreate,
    request: Request,
    tenant_id: str = Depends(get_required_tenant_scope),
    principal: Principal = Depends(require_manager),
    db: Session = Depends(get_db),
):
    obj = DBServices(tenant_id=tenant_id, **data.model_dump())
    db.add(obj)
    db.commit()
    db.refresh(obj)

    record_audit(
        db,
        action="service.create",
        actor_user_id=principal.id,
        tenant_id=tenant_id,
        entity_type="service",
        entity_id=obj.id,
        new_values=data.model_dump(),
        ip_address=client_ip(request),
    )
    return obj


@router.patch("/{id}", response_model=ServiceRead)
def update_service(
    id: str,
    data: ServiceUpdate,
    request: Request,
    tenant_id: str | None = Depends(get_tenant_scope),
    principal: Principal = Depends(require_manager),
    db: Session = Depends(get_db),
):
    obj = _get_owned(db, id, tenant_id)

    changes = data.model_dump(exclude_unset=True)
    old = {field: getattr(obj, field) for field in changes}
    for field, value in changes.items():
        if field == "is_active":
            value = 1 if value else 0
        setattr(obj, field, value)

    db.commit()
    db.refresh(obj)

    record_audit(
        db,
        action="service.update",
        actor_user_id=principal.id,
        tenant_id=obj.tenant_id,
        entity_type="service",
        entity_id=obj.id,
        old_values=old,
        new_values=changes,
        ip_address=client_ip(request),
    )
    return obj


@router.delete("/{id}", status_code=status.HTTP_204_NO_CONTENT)
def delete_service(
    id: str,
    request: Request,
    tenant_id: str | None = Depends(get_tenant_scope),
    principal: Principal = Depends(require_manager),
    db: Session = Depends(get_db),
):
    obj = _get_owned(db, id, tenant_id)

    obj.is_active = 0
    db.commit()

    record_audit(
        db,
        action="service.delete",
        actor_user_id=principal.id,
        tenant_id=obj.tenant_id,
        entity_type="service",
        entity_id=obj.id,
        ip_address=client_ip(request),
    )
