"""
Operating-hours store.

One row per tenant per weekday (0 = Sunday). An update replaces the whole
week: existing rows are deleted and the new ones inserted in the same
transaction, nothing is merged.
"""

import logging
from collections.abc import Iterable

from sqlalchemy.orm import Session

from ..errors import ValidationFailed
from ..models.generated import OperatingHours
from ..schemas.operating_hours import OperatingHourEntry

logger = logging.getLogger(__name__)


def get_operating_hours(db: Session, tenant_id: str) -> list[OperatingHours]:
    return (
        db.query(OperatingHours)
        .filter(OperatingHours.tenant_id == tenant_id)
        .order_by(OperatingHours.day_of_week)
        .all()
    )


def hours_by_weekday(db: Session, tenant_id: str) -> dict[int, OperatingHours]:
    return {oh.day_of_week: oh for oh in get_operating_hours(db, tenant_id)}


def set_operating_hours(
    db: Session,
    tenant_id: str,
    hours: Iterable[OperatingHourEntry],
) -> list[OperatingHours]:
    """Replace the tenant's week with `hours`."""
    hours = list(hours)
    _validate(hours)

    try:
        db.query(OperatingHours).filter(
            OperatingHours.tenant_id == tenant_id
        ).delete(synchronize_session=False)

        for entry in hours:
            db.add(OperatingHours(
                tenant_id=tenant_id,
                day_of_week=entry.day_of_week,
                open_time=entry.open_time,
                close_time=entry.close_time,
                is_closed=1 if entry.is_closed else 0,
            ))
        db.commit()
    except Exception:
        db.rollback()
        raise

    logger.info(f"Operating hours replaced for tenant={tenant_id} ({len(hours)} days)")
    return get_operating_hours(db, tenant_id)


def _validate(hours: list[OperatingHourEntry]) -> None:
    if not 1 <= len(hours) <= 7:
        raise ValidationFailed("Between 1 and 7 operating-hour entries are required.")

    seen: set[int] = set()
    for entry in hours:
        if not 0 <= entry.day_of_week <= 6:
            raise ValidationFailed(f"Invalid day_of_week: {entry.day_of_week}")
        if entry.day_of_week in seen:
            raise ValidationFailed(f"Duplicate day_of_week: {entry.day_of_week}")
        seen.add(entry.day_of_week)
        if not entry.is_closed and entry.open_time >= entry.close_time:
            raise ValidationFailed(
                f"Day {entry.day_of_week}: open_time must be earlier than close_time."
            )
