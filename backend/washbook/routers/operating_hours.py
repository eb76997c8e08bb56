# backend/washbook/routers/operating_hours.py
# PUT replaces the whole week; there is no per-day PATCH

from fastapi import APIRouter, Depends, Request
from sqlalchemy.orm import Session

from ..auth import Principal, get_required_tenant_scope, require_manager
from ..database import get_db
from ..middleware.access_log import client_ip
from ..schemas.operating_hours import OperatingHourRead, OperatingHoursUpdate
from ..services.audit import record_audit
from ..services.operating_hours import get_operating_hours, set_operating_hours

router = APIRouter(prefix="/operating-hours", tags=["operating-hours"])


@router.get("", response_model=list[OperatingHourRead])
def list_hours(
    tenant_id: str = Depends(get_required_tenant_scope),
    db: Session = Depends(get_db),
):
    return get_operating_hours(db, tenant_id)


@router.put("", response_model=list[OperatingHourRead])
def replace_hours(
    data: OperatingHoursUpdate,
    request: Request,
    tenant_id: str = Depends(get_required_tenant_scope),
    principal: Principal = Depends(require_manager),
    db: Session = Depends(get_db),
):
    old = [OperatingHourRead.model_validate(oh).model_dump(mode="json") for oh in get_operating_hours(db, tenant_id)]
    rows = set_operating_hours(db, tenant_id, data.hours)

    record_audit(
        db,
        action="operating_hours.replace",
        actor_user_id=principal.id,
        tenant_id=tenant_id,
        entity_type="operating_hours",
        entity_id=tenant_id,
        old_values={"hours": old},
        new_values={"hours": data.model_dump(mode="json")["hours"]},
        ip_address=client_ip(request),
    )
    return rows
