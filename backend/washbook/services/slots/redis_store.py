# backend/washbook/services/slots/redis_store.py
"""
Redis cache of public slot availability.

Key format: slots:available:{tenant_id}:{date}
Value: JSON list of public slot dicts for that day
       ({id, date, start_time, end_time, available, status}).

An empty list is a valid cached value ("calculated, zero slots").
Entries live for cache_ttl_seconds and are deleted by the invalidator on
every change of occupancy or status. The cache only serves listings;
allocation always reads the database.

Version key: slots:version:{tenant_id}
       Counter bumped by the invalidator. A reader that filled a miss from
       the database stores it only if the counter did not move meanwhile
       (WATCH + MULTI), so a listing read before a booking committed is
       not written back after that booking cleared the cache.
"""

import json
from datetime import date

from redis import Redis
from redis.client import Pipeline

from .config import BookingConfig, get_booking_config


class AvailabilityRedisStore:
    """Redis storage wrapper for per-day public availability."""

    KEY_PREFIX = "slots:available"
    VERSION_PREFIX = "slots:version"

    def __init__(self, redis: Redis, config: BookingConfig | None = None):
        self.redis = redis
        self.config = config or get_booking_config()

    def _key(self, tenant_id: str, dt: date) -> str:
        return f"{self.KEY_PREFIX}:{tenant_id}:{dt.isoformat()}"

    def _version_key(self, tenant_id: str) -> str:
        return f"{self.VERSION_PREFIX}:{tenant_id}"

    # ── Read ─────────────────────────────────────────────────────────────

    def get_days(
        self,
        tenant_id: str,
        dates: list[date],
    ) -> dict[date, list[dict] | None]:
        """
        Batch read cached days.

        Returns:
            Dict mapping date → slot list (or None on cache miss).
        """
        if not dates:
            return {}

        raw = self.redis.mget([self._key(tenant_id, dt) for dt in dates])
        return {
            dt: (json.loads(value) if value is not None else None)
            for dt, value in zip(dates, raw)
        }

    # ── Write ────────────────────────────────────────────────────────────

    def watch_version(self, tenant_id: str) -> Pipeline:
        """
        Pipeline watching the tenant's version key.

        Take it before reading the database; pass it to store_days and
        reset() it afterwards. Raises WatchError on execute if an
        invalidation happened in between.
        """
        pipe = self.redis.pipeline()
        pipe.watch(self._version_key(tenant_id))
        return pipe

    def store_days(
        self,
        tenant_id: str,
        days: dict[date, list[dict]],
        pipe: Pipeline | None = None,
    ) -> None:
        """Batch store days via pipeline (a watching one, when given)."""
        if not days:
            return

        if pipe is None:
            pipe = self.redis.pipeline()
        pipe.multi()
        for dt, slots in days.items():
            pipe.setex(
                self._key(tenant_id, dt),
                self.config.cache_ttl_seconds,
                json.dumps(slots),
            )
        pipe.execute()

    # ── Delete ───────────────────────────────────────────────────────────

    def delete_days(
        self,
        tenant_id: str,
        dates: list[date],
    ) -> int:
        """
        Delete cached days.

        Returns:
            Number of deleted keys.
        """
        if not dates:
            return 0
        return self.redis.delete(*[self._key(tenant_id, dt) for dt in dates])

    def bump_version(self, tenant_id: str) -> int:
        return self.redis.incr(self._version_key(tenant_id))
