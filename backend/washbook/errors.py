"""
Domain errors raised by the booking core.

Each error knows its HTTP status and a stable machine code; the exception
handler in main.py turns them into JSON responses. Anything that is not a
DomainError is an infrastructure fault.
"""

from fastapi import status


class DomainError(Exception):
    status_code: int = status.HTTP_400_BAD_REQUEST
    code: str = "bad_request"
    default_message: str = "Bad request"

    def __init__(self, message: str | None = None, **extra):
        self.message = message or self.default_message
        self.extra = extra
        super().__init__(self.message)

    def to_dict(self) -> dict:
        return {"detail": self.message, "code": self.code, **self.extra}


class NotFound(DomainError):
    status_code = status.HTTP_404_NOT_FOUND
    code = "not_found"
    default_message = "Resource not found."


class Forbidden(DomainError):
    status_code = status.HTTP_403_FORBIDDEN
    code = "forbidden"
    default_message = "Access denied."


class TenantMismatch(Forbidden):
    code = "tenant_mismatch"
    default_message = "Resource does not belong to this car wash."


class SlotBlocked(DomainError):
    code = "slot_blocked"
    default_message = "This time slot is not available."


class SlotFull(DomainError):
    status_code = status.HTTP_409_CONFLICT
    code = "slot_full"
    default_message = "This time slot is no longer available."


class ServiceUnavailable(DomainError):
    code = "service_unavailable"
    default_message = "Service is not available."


class InvalidTransition(DomainError):
    code = "invalid_transition"

    def __init__(self, current_status: str, attempted_status: str):
        super().__init__(
            f"Cannot transition from '{current_status}' to '{attempted_status}'.",
            current_status=current_status,
            attempted_status=attempted_status,
        )


class AlreadyTerminal(DomainError):
    code = "already_terminal"

    def __init__(self, current_status: str):
        super().__init__(
            f"Booking is already {current_status} and cannot be cancelled.",
            current_status=current_status,
        )


class PolicyViolation(DomainError):
    code = "policy_violation"

    def __init__(self, threshold_hours: int):
        super().__init__(
            f"Bookings cannot be cancelled less than {threshold_hours} hours "
            "before the scheduled time.",
            threshold_hours=threshold_hours,
        )


class ConfigurationError(DomainError):
    code = "configuration_error"
    default_message = "Operating hours not set. Please set operating hours first."


class ValidationFailed(DomainError):
    code = "validation_failed"
    default_message = "Validation failed."
