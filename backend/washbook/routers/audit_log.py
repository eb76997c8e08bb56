from typing import Optional
from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from ..auth import get_tenant_scope
from ..database import get_db
from ..models.generated import AuditLog as DBAuditLog
from ..schemas.audit_log import AuditLogRead


router = APIRouter(prefix="/audit", tags=["audit"])


@router.get("", response_model=list[AuditLogRead])
def list_audit(
    action: Optional[str] = None,
    entity_type: Optional[str] = None,
    entity_id: Optional[str] = None,
    limit: int = 50,
    tenant_id: Optional[str] = Depends(get_tenant_scope),
    db: Session = Depends(get_db),
):
    """
    Read-only audit log.

    Managers see their own car wash only; a super admin without tenant_id
    sees everything.

    Filters:
    - action (exact match)
    - entity_type / entity_id
    - limit (default 50, max enforced here)
    """
    q = db.query(DBAuditLog)

    if tenant_id:
        q = q.filter(DBAuditLog.tenant_id == tenant_id)

    if action:
        q = q.filter(DBAuditLog.action == action)

    if entity_type:
        q = q.filter(DBAuditLog.entity_type == entity_type)

    if entity_id:
        q = q.filter(DBAuditLog.entity_id == entity_id)

    return (
        q.order_by(DBAuditLog.created_at.desc(), DBAuditLog.id.desc())
        .limit(max(1, min(limit, 200)))
        .all()
    )
