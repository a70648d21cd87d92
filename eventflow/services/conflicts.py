"""Venue conflict detection over half-open ``[start, end)`` intervals."""
from dataclasses import asdict, dataclass
from datetime import date, datetime, time, timedelta, timezone

from sqlalchemy import and_, or_, select
from sqlalchemy.orm import Session

from eventflow.core.errors import (
    InvalidIntervalError,
    MissingFieldsError,
    ValidationFailedError,
    VenueNotFoundError,
)
from eventflow.models.bookings import VenueBooking
from eventflow.models.enums import ACTIVE_BOOKING_STATUSES, BookingStatus
from eventflow.models.events import Event
from eventflow.models.venues import Venue


@dataclass(frozen=True)
class Conflict:
    booking_id: int
    event_id: int
    event_name: str
    start: datetime
    end: datetime
    status: BookingStatus

    def as_dict(self) -> dict:
        return asdict(self)


def to_utc_naive(value: datetime) -> datetime:
    """Timestamps are stored as naive UTC."""
    if value.tzinfo is not None:
        return value.astimezone(timezone.utc).replace(tzinfo=None)
    return value


def validate_interval(start: datetime, end: datetime) -> tuple[datetime, datetime]:
    if not isinstance(start, datetime) or not isinstance(end, datetime):
        raise ValidationFailedError("Invalid date format")
    start, end = to_utc_naive(start), to_utc_naive(end)
    if end <= start:
        raise InvalidIntervalError()
    return start, end


def day_window(day: date) -> tuple[datetime, datetime]:
    """The full 24 hours of ``day``: ``[00:00, next day 00:00)``."""
    if isinstance(day, datetime):
        day = day.date()
    start = datetime.combine(day, time.min)
    return start, start + timedelta(days=1)


def intervals_overlap(
    new_start: datetime, new_end: datetime, start: datetime, end: datetime
) -> bool:
    """Whether ``[new_start, new_end)`` clashes with an existing ``[start, end)``."""
    starts_inside = start <= new_start and end > new_start
    ends_inside = start < new_end and end >= new_end
    contains = start >= new_start and end <= new_end
    return starts_inside or ends_inside or contains


def _overlap_clause(new_start: datetime, new_end: datetime):
    # Same three cases as intervals_overlap, evaluated by the database
    return or_(
        and_(VenueBooking.start_at <= new_start, VenueBooking.end_at > new_start),
        and_(VenueBooking.start_at < new_end, VenueBooking.end_at >= new_end),
        and_(VenueBooking.start_at >= new_start, VenueBooking.end_at <= new_end),
    )


def list_conflicts(
    db: Session,
    venue_id: int,
    start: datetime,
    end: datetime,
    exclude_event_id: int | None = None,
) -> list[Conflict]:
    """Active bookings on ``venue_id`` overlapping ``[start, end)``, earliest first."""
    start, end = validate_interval(start, end)

    stmt = (
        select(VenueBooking, Event.name)
        .join(Event, Event.id == VenueBooking.event_id)
        .where(
            VenueBooking.venue_id == venue_id,
            VenueBooking.status.in_(ACTIVE_BOOKING_STATUSES),
            _overlap_clause(start, end),
        )
        .order_by(VenueBooking.start_at, VenueBooking.id)
    )
    if exclude_event_id is not None:
        stmt = stmt.where(VenueBooking.event_id != exclude_event_id)

    return [
        Conflict(
            booking_id=booking.id,
            event_id=booking.event_id,
            event_name=event_name,
            start=booking.start_at,
            end=booking.end_at,
            status=booking.status,
        )
        for booking, event_name in db.execute(stmt)
    ]


def has_conflict(
    db: Session,
    venue_id: int,
    start: datetime,
    end: datetime,
    exclude_event_id: int | None = None,
) -> bool:
    return bool(list_conflicts(db, venue_id, start, end, exclude_event_id))


def check_availability(
    db: Session,
    venue_id: int,
    *,
    day: date | None = None,
    start: datetime | None = None,
    end: datetime | None = None,
    exclude_event_id: int | None = None,
) -> dict:
    """Availability of a venue for one calendar day or an explicit interval.

    Returns ``{"available": bool, "conflicts": [...]}``.
    """
    if db.get(Venue, venue_id) is None:
        raise VenueNotFoundError(venue_id)

    if day is not None:
        start, end = day_window(day)
    elif start is None or end is None:
        missing = [name for name, value in (("start", start), ("end", end)) if value is None]
        raise MissingFieldsError(missing)

    conflicts = list_conflicts(db, venue_id, start, end, exclude_event_id)
    return {
        "available": not conflicts,
        "conflicts": [c.as_dict() for c in conflicts],
    }
