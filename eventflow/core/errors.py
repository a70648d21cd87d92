"""Domain errors raised by the services and mapped to HTTP responses by the routes."""
import enum
from typing import Any


class ErrorCode(str, enum.Enum):
    MISSING_FIELDS = "MISSING_FIELDS"
    VALIDATION_FAILED = "VALIDATION_FAILED"
    INVALID_INTERVAL = "INVALID_INTERVAL"
    INVALID_DECISION = "INVALID_DECISION"
    INVALID_HIERARCHY = "INVALID_HIERARCHY"
    NOT_AUTHORIZED = "NOT_AUTHORIZED"
    EVENT_NOT_FOUND = "EVENT_NOT_FOUND"
    VENUE_NOT_FOUND = "VENUE_NOT_FOUND"
    ORGANIZATION_NOT_FOUND = "ORGANIZATION_NOT_FOUND"
    BOOKING_NOT_FOUND = "BOOKING_NOT_FOUND"
    VENUE_CONFLICT = "VENUE_CONFLICT"
    DUPLICATE_ORGANIZATION = "DUPLICATE_ORGANIZATION"
    VENUE_BUSY = "VENUE_BUSY"


class DomainError(Exception):
    """Base error with a code, a user-safe message and optional details."""

    code: ErrorCode = ErrorCode.VALIDATION_FAILED
    status_code: int = 400

    def __init__(self, message: str, details: dict[str, Any] | None = None) -> None:
        super().__init__(message)
        self.message = message
        self.details = details or {}

    def to_dict(self) -> dict[str, Any]:
        return {"code": self.code.value, "message": self.message, **self.details}

    def __str__(self) -> str:
        return f"{self.code.value}: {self.message}"


class MissingFieldsError(DomainError):
    code = ErrorCode.MISSING_FIELDS

    def __init__(self, fields: list[str]) -> None:
        super().__init__(
            f"Missing required fields: {', '.join(fields)}",
            details={"fields": fields},
        )
        self.fields = fields


class ValidationFailedError(DomainError):
    code = ErrorCode.VALIDATION_FAILED


class InvalidIntervalError(DomainError):
    code = ErrorCode.INVALID_INTERVAL

    def __init__(self, message: str = "End time must be after start time") -> None:
        super().__init__(message)


class InvalidDecisionError(DomainError):
    code = ErrorCode.INVALID_DECISION

    def __init__(self, decision: Any) -> None:
        super().__init__(
            "Invalid status. Status must be one of: approved, rejected, needs_modification",
            details={"decision": str(decision)},
        )


class InvalidHierarchyError(DomainError):
    code = ErrorCode.INVALID_HIERARCHY


class NotAuthorizedError(DomainError):
    code = ErrorCode.NOT_AUTHORIZED
    status_code = 403


class NotFoundError(DomainError):
    status_code = 404
    resource = "Record"

    def __init__(self, record_id: Any) -> None:
        super().__init__(f"{self.resource} not found", details={"id": record_id})
        self.record_id = record_id


class EventNotFoundError(NotFoundError):
    code = ErrorCode.EVENT_NOT_FOUND
    resource = "Event"


class VenueNotFoundError(NotFoundError):
    code = ErrorCode.VENUE_NOT_FOUND
    resource = "Venue"


class OrganizationNotFoundError(NotFoundError):
    code = ErrorCode.ORGANIZATION_NOT_FOUND
    resource = "Organization"


class BookingNotFoundError(NotFoundError):
    code = ErrorCode.BOOKING_NOT_FOUND
    resource = "Booking"


class VenueConflictError(DomainError):
    """The requested slot overlaps active bookings; ``conflicts`` lists them."""

    code = ErrorCode.VENUE_CONFLICT
    status_code = 409

    def __init__(self, conflicts: list[dict[str, Any]]) -> None:
        super().__init__(
            "Venue is not available during the requested time slot",
            details={"conflicting_events": conflicts},
        )
        self.conflicts = conflicts


class DuplicateOrganizationError(DomainError):
    code = ErrorCode.DUPLICATE_ORGANIZATION
    status_code = 409


class VenueBusyError(DomainError):
    code = ErrorCode.VENUE_BUSY
    status_code = 409

    def __init__(self, venue_id: int) -> None:
        super().__init__(
            "Could not acquire venue lock, please try again.",
            details={"venue_id": venue_id},
        )
