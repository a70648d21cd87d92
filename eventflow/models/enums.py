import enum

from sqlalchemy import Enum


class EventStatus(str, enum.Enum):
    PENDING = "pending"
    APPROVED = "approved"
    REJECTED = "rejected"
    NEEDS_MODIFICATION = "needs_modification"
    CANCELLED = "cancelled"


class ApprovalStatus(str, enum.Enum):
    PENDING = "pending"
    APPROVED = "approved"
    REJECTED = "rejected"
    NEEDS_MODIFICATION = "needs_modification"


class ReviewDecision(str, enum.Enum):
    APPROVED = "approved"
    REJECTED = "rejected"
    NEEDS_MODIFICATION = "needs_modification"


class BookingStatus(str, enum.Enum):
    TEMPORARY = "temporary"
    CONFIRMED = "confirmed"
    CANCELLED = "cancelled"


# Reviews no longer change an event in one of these states
TERMINAL_STATUSES = frozenset(
    {EventStatus.APPROVED, EventStatus.REJECTED, EventStatus.CANCELLED}
)

ACTIVE_BOOKING_STATUSES = (BookingStatus.TEMPORARY, BookingStatus.CONFIRMED)


def status_enum(enum_cls: type[enum.Enum]) -> Enum:
    """Column type storing the enum's values and refusing anything else."""
    return Enum(
        enum_cls,
        native_enum=False,
        validate_strings=True,
        length=32,
        values_callable=lambda members: [m.value for m in members],
    )
