"""
Audit sink.

Writes one audit_log row per core operation (who, what, old/new values).
Runs in its own session so it never joins, or breaks, the caller's
transaction; a failure to record is logged and swallowed.
"""

import json
import logging
from typing import Any, Optional

from sqlalchemy.orm import Session

from ..models.generated import AuditLog

logger = logging.getLogger(__name__)


def record_audit(
    db: Session,
    *,
    action: str,
    actor_user_id: Optional[str],
    entity_type: str,
    entity_id: Optional[str],
    tenant_id: Optional[str] = None,
    old_values: Optional[dict[str, Any]] = None,
    new_values: Optional[dict[str, Any]] = None,
    ip_address: Optional[str] = None,
) -> None:
    try:
        with Session(bind=db.get_bind()) as audit_db:
            audit_db.add(AuditLog(
                action=action,
                actor_user_id=actor_user_id,
                tenant_id=tenant_id,
                entity_type=entity_type,
                entity_id=entity_id,
                old_values=json.dumps(old_values, default=str) if old_values else None,
                new_values=json.dumps(new_values, default=str) if new_values else None,
                ip_address=ip_address,
            ))
            audit_db.commit()
    except Exception:
        logger.exception(f"Failed to create audit log: {action} {entity_type}={entity_id}")
