"""Tenant records: creation with a unique slug, lookup, approval/suspension."""

import logging

from sqlalchemy import or_
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from ..errors import NotFound, ValidationFailed
from ..models.generated import Tenants
from .clock import tenant_zone
from .slug import unique_slug

logger = logging.getLogger(__name__)

TENANT_STATUSES = ("pending", "approved", "suspended")

# another request may take the same slug between the check and the insert
SLUG_ATTEMPTS = 3


def create_tenant(
    db: Session,
    name: str,
    timezone: str | None = None,
    status: str = "approved",
) -> Tenants:
    if status not in TENANT_STATUSES:
        raise ValidationFailed(f"Unknown tenant status: {status}")
    if timezone is not None and tenant_zone(timezone).key != timezone:
        raise ValidationFailed(f"Unknown timezone: {timezone}")

    for attempt in range(SLUG_ATTEMPTS):
        tenant = Tenants(
            name=name,
            slug=unique_slug(db, name),
            timezone=timezone,
            status=status,
        )
        db.add(tenant)
        try:
            db.commit()
        except IntegrityError:
            db.rollback()
            if attempt == SLUG_ATTEMPTS - 1:
                raise
            continue
        db.refresh(tenant)
        logger.info(f"Tenant created: {tenant.id} slug={tenant.slug}")
        return tenant


def get_tenant(db: Session, id_or_slug: str) -> Tenants:
    tenant = (
        db.query(Tenants)
        .filter(or_(Tenants.id == id_or_slug, Tenants.slug == id_or_slug))
        .first()
    )
    if tenant is None:
        raise NotFound("Car wash not found.")
    return tenant


def set_tenant_status(db: Session, tenant_id: str, status: str) -> Tenants:
    if status not in TENANT_STATUSES:
        raise ValidationFailed(f"Unknown tenant status: {status}")

    tenant = db.get(Tenants, tenant_id)
    if tenant is None:
        raise NotFound("Tenant not found.")

    old = tenant.status
    tenant.status = status
    db.commit()
    db.refresh(tenant)
    logger.info(f"Tenant {tenant_id}: {old} → {status}")
    return tenant
