# backend/washbook/services/slots/__init__.py
"""
Slot inventory module.

Generation: operating hours → TimeSlot rows (idempotent)
Inventory: listings, block/unblock, capacity overrides, cleanup
Locks: per-slot serialization shared with the booking allocator
"""

from .config import BookingConfig, get_booking_config
from .generator import GenerationResult, generate_slots
from .inventory import (
    block_slot,
    delete_range,
    list_all,
    list_available,
    list_available_cached,
    unblock_slot,
    update_slot,
)
from .invalidator import invalidate_tenant_dates, invalidate_tenant_range
from .locks import SlotLocks, slot_locks
from .redis_store import AvailabilityRedisStore

__all__ = [
    "BookingConfig",
    "get_booking_config",
    "GenerationResult",
    "generate_slots",
    "block_slot",
    "delete_range",
    "list_all",
    "list_available",
    "list_available_cached",
    "unblock_slot",
    "update_slot",
    "invalidate_tenant_dates",
    "invalidate_tenant_range",
    "SlotLocks",
    "slot_locks",
    "AvailabilityRedisStore",
]
