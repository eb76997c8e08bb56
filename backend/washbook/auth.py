# backend/washbook/auth.py
"""
Trusted principal resolution.

Authentication happens in the gateway; it forwards only the normalized
identity in headers:

  X-User-Id     user id
  X-User-Role   customer | manager | super_admin
  X-Tenant-Id   tenant of a manager (absent for customers)

The backend trusts these headers and never sees credentials.
"""

import logging
from dataclasses import dataclass
from typing import Optional

from fastapi import Depends, Header, HTTPException, Query, status
from sqlalchemy.orm import Session

from .database import get_db
from .models.generated import Tenants

logger = logging.getLogger(__name__)

ROLES = ("customer", "manager", "super_admin")


@dataclass(frozen=True)
class Principal:
    id: str
    role: str
    tenant_id: Optional[str] = None

    @property
    def is_customer(self) -> bool:
        return self.role == "customer"

    @property
    def is_manager(self) -> bool:
        return self.role == "manager"

    @property
    def is_super_admin(self) -> bool:
        return self.role == "super_admin"


def get_principal(
    x_user_id: str | None = Header(None),
    x_user_role: str | None = Header(None),
    x_tenant_id: str | None = Header(None),
) -> Principal:
    if not x_user_id or not x_user_role:
        raise HTTPException(status.HTTP_401_UNAUTHORIZED, "Authentication required.")
    if x_user_role not in ROLES:
        raise HTTPException(status.HTTP_400_BAD_REQUEST, f"Unknown role: {x_user_role}")
    return Principal(id=x_user_id, role=x_user_role, tenant_id=x_tenant_id or None)


def require_roles(*roles: str):
    """Dependency factory: principal must hold one of `roles`."""

    def dependency(principal: Principal = Depends(get_principal)) -> Principal:
        if principal.role not in roles:
            logger.warning(f"Role {principal.role} denied (needs {roles}) for user={principal.id}")
            raise HTTPException(status.HTTP_403_FORBIDDEN, "Insufficient permissions.")
        return principal

    return dependency


require_customer = require_roles("customer")
require_manager = require_roles("manager", "super_admin")
require_super_admin = require_roles("super_admin")


def _check_tenant_operable(db: Session, tenant_id: str) -> None:
    tenant = db.get(Tenants, tenant_id)
    if tenant is None:
        raise HTTPException(status.HTTP_403_FORBIDDEN, "Tenant not found.")
    if tenant.status == "suspended":
        raise HTTPException(
            status.HTTP_403_FORBIDDEN,
            "Your car wash has been suspended. Please contact support.",
        )


def get_tenant_scope(
    tenant_id: str | None = Query(None, description="Super admin only: tenant to act on"),
    principal: Principal = Depends(require_manager),
    db: Session = Depends(get_db),
) -> str | None:
    """
    Tenant a manager action applies to.

    Managers: always their own tenant (query parameter ignored).
    Super admins: the tenant_id query parameter, or None for platform scope.
    """
    if principal.is_super_admin:
        if tenant_id is not None and db.get(Tenants, tenant_id) is None:
            raise HTTPException(status.HTTP_404_NOT_FOUND, "Tenant not found.")
        return tenant_id

    if not principal.tenant_id:
        raise HTTPException(status.HTTP_403_FORBIDDEN, "No tenant associated with your account.")
    _check_tenant_operable(db, principal.tenant_id)
    return principal.tenant_id


def get_required_tenant_scope(scope: str | None = Depends(get_tenant_scope)) -> str:
    """Like get_tenant_scope, but the action needs a concrete tenant."""
    if scope is None:
        raise HTTPException(status.HTTP_400_BAD_REQUEST, "tenant_id is required.")
    return scope
