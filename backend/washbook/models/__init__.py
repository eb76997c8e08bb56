from .generated import (
    AuditLog,
    Base,
    Bookings,
    OperatingHours,
    Services,
    Tenants,
    TimeSlots,
    Users,
    metadata,
    new_id,
)

__all__ = [
    "AuditLog",
    "Base",
    "Bookings",
    "OperatingHours",
    "Services",
    "Tenants",
    "TimeSlots",
    "Users",
    "metadata",
    "new_id",
]
