# backend/washbook/services/slots/invalidator.py
"""
Cache invalidation for public availability.

Triggers:
✓ Slots generated / deleted → every date of the range
✓ Booking created / cancelled → the slot's date
✓ Slot blocked / unblocked / updated → the slot's date
✓ Booking status changed → the booking's date

Failures are logged and swallowed: entries expire on their own after
cache_ttl_seconds.
"""

import logging
from datetime import date

from redis import Redis
from redis.exceptions import RedisError

from .generator import iter_dates
from .redis_store import AvailabilityRedisStore

logger = logging.getLogger(__name__)


def invalidate_tenant_dates(
    redis: Redis,
    tenant_id: str,
    dates: list[date],
) -> int:
    """
    Invalidate cached availability for specific dates.

    Returns:
        Number of deleted cache keys (0 on Redis failure)
    """
    store = AvailabilityRedisStore(redis)
    try:
        # bump after the delete: readers that filled a miss before it drop their write
        deleted = store.delete_days(tenant_id, sorted(set(dates)))
        store.bump_version(tenant_id)
        return deleted
    except RedisError as e:
        logger.error(f"Failed to invalidate availability cache for tenant={tenant_id}: {e}")
        return 0


def invalidate_tenant_range(
    redis: Redis,
    tenant_id: str,
    date_start: date,
    date_end: date,
) -> int:
    """Invalidate every date in [date_start, date_end]."""
    if date_start > date_end:
        date_start, date_end = date_end, date_start
    return invalidate_tenant_dates(redis, tenant_id, list(iter_dates(date_start, date_end)))
