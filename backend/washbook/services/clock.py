"""
Tenant-local wall clock.

Slots and bookings store civil dates and times of the car wash; "now" has
to be expressed in the same civil time before it is compared with them.
"""

import logging
from datetime import date, datetime
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

from sqlalchemy.orm import Session

from ..config import settings
from ..models.generated import Tenants

logger = logging.getLogger(__name__)


def tenant_zone(tz_name: str | None) -> ZoneInfo:
    name = tz_name or settings.default_timezone
    try:
        return ZoneInfo(name)
    except (ZoneInfoNotFoundError, ValueError):
        logger.warning(f"Unknown timezone {name!r}, falling back to {settings.default_timezone}")
        return ZoneInfo(settings.default_timezone)


def tenant_now(db: Session, tenant_id: str) -> datetime:
    """Naive datetime in the tenant's local civil time."""
    tenant = db.get(Tenants, tenant_id)
    zone = tenant_zone(tenant.timezone if tenant else None)
    return datetime.now(zone).replace(tzinfo=None)


def tenant_today(db: Session, tenant_id: str) -> date:
    return tenant_now(db, tenant_id).date()
