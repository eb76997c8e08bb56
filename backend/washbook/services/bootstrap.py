"""
Bootstrap of the first platform admin.

Users belong to the auth service; this is the one place the booking core
writes them, so a fresh deployment has someone who can create tenants.
"""

import json
import logging

from sqlalchemy.orm import Session

from ..models.generated import AuditLog, Users

logger = logging.getLogger(__name__)


def ensure_super_admin(db: Session, email: str, full_name: str = "Admin") -> tuple[Users, bool]:
    """
    Find the user by e-mail and make it a super admin, creating it if needed.

    Returns (user, changed). Running it again is a no-op.
    """
    user = db.query(Users).filter(Users.email == email).first()

    if user is None:
        user = Users(full_name=full_name, email=email, role="super_admin")
        db.add(user)
        db.flush()
        event = "bootstrap:first_admin_created" if db.query(Users).count() == 1 else "bootstrap:admin_added"
    elif user.role != "super_admin":
        user.role = "super_admin"
        user.tenant_id = None
        event = "bootstrap:admin_promoted"
    else:
        return user, False

    # actor is NULL for bootstrap events
    db.add(AuditLog(
        action=event,
        entity_type="user",
        entity_id=user.id,
        new_values=json.dumps({"email": email}),
    ))
    db.commit()
    logger.info(f"[BOOTSTRAP] {event} (email={email})")
    return user, True
