# app/services/booking/errors.py
"""
Typed, recoverable errors raised by the booking core.

Each error carries a machine-readable ``code`` and a ``context`` dict.
Translating them into user-facing text is left to the caller.
"""
from typing import Any, Dict, Optional


class BookingError(Exception):
    code = "BOOKING_ERROR"

    def __init__(self, context: Optional[Dict[str, Any]] = None):
        self.context = context or {}
        super().__init__(self.code)

    def __repr__(self) -> str:
        return f"{type(self).__name__}({self.context!r})"


class BookingNotFound(BookingError):
    code = "NOT_FOUND"

    def __init__(self, booking_id: str, resource: str = "booking"):
        super().__init__({"id": booking_id, "resource": resource})


class Unauthorized(BookingError):
    code = "UNAUTHORIZED"

    def __init__(self, booking_id: str, actor_id: str, operation: str):
        super().__init__(
            {"booking_id": booking_id, "actor_id": actor_id, "operation": operation}
        )


class InvalidStatus(BookingError):
    code = "INVALID_STATUS"

    def __init__(self, booking_id: str, status: str, operation: str):
        self.status = status
        super().__init__(
            {"booking_id": booking_id, "status": status, "operation": operation}
        )


class AlreadyConfirmed(BookingError):
    code = "ALREADY_CONFIRMED"

    def __init__(self, booking_id: str, role: str):
        super().__init__({"booking_id": booking_id, "role": role})


class AlreadyPublished(BookingError):
    code = "ALREADY_PUBLISHED"

    def __init__(self, booking_id: str, public_event_id: Optional[str] = None):
        super().__init__(
            {"booking_id": booking_id, "public_event_id": public_event_id}
        )


class BookingValidationError(BookingError):
    code = "VALIDATION_ERROR"

    def __init__(self, field: str, reason: str):
        self.field = field
        super().__init__({"field": field, "reason": reason})


class ConcurrentModification(BookingError):
    code = "CONCURRENT_MODIFICATION"

    def __init__(self, booking_id: str, expected_version=None, actual_version=None):
        super().__init__(
            {
                "booking_id": booking_id,
                "expected_version": expected_version,
                "actual_version": actual_version,
            }
        )
