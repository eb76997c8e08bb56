# backend/washbook/services/bookings/__init__.py
"""
Bookings module.

Allocator: seat reservation under per-slot serialization
Lifecycle: state machine, cancellation and seat release
Queries: listings for customers and managers
"""

from .allocator import create_booking
from .lifecycle import (
    BOOKING_STATUSES,
    STATUS_TRANSITIONS,
    TERMINAL_STATUSES,
    cancel_by_customer,
    cancel_by_manager,
    can_transition,
    update_status,
)
from .queries import get_visible_booking, list_customer_bookings, list_tenant_bookings

__all__ = [
    "create_booking",
    "BOOKING_STATUSES",
    "STATUS_TRANSITIONS",
    "TERMINAL_STATUSES",
    "cancel_by_customer",
    "cancel_by_manager",
    "can_transition",
    "update_status",
    "get_visible_booking",
    "list_customer_bookings",
    "list_tenant_bookings",
]
