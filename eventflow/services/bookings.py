import logging
from contextlib import contextmanager
from datetime import datetime

import redis
from sqlalchemy import select
from sqlalchemy.orm import Session

from eventflow.core.config import get_redis_url, get_venue_lock_timeouts
from eventflow.core.errors import BookingNotFoundError, VenueBusyError, VenueConflictError
from eventflow.models.bookings import VenueBooking
from eventflow.models.enums import ACTIVE_BOOKING_STATUSES, BookingStatus
from eventflow.models.events import Event
from eventflow.services.conflicts import list_conflicts, to_utc_naive, validate_interval

logger = logging.getLogger(__name__)


def get_redis_client():
    """Get Redis client for locking."""
    return redis.from_url(get_redis_url(), decode_responses=True)


@contextmanager
def venue_lock(venue_id: int):
    """
    Hold the Redis lock for one venue so that "check conflicts, then write the
    booking" runs for at most one request per venue at a time.
    """
    redis_client = get_redis_client()
    timeout, blocking_timeout = get_venue_lock_timeouts()
    lock = redis_client.lock(
        f"venue_lock:{venue_id}", timeout=timeout, blocking_timeout=blocking_timeout
    )

    try:
        acquired = lock.acquire(blocking=True, blocking_timeout=blocking_timeout)
    except redis.exceptions.LockError:
        acquired = False
    if not acquired:
        logger.warning("Could not acquire lock for venue %s", venue_id)
        raise VenueBusyError(venue_id)

    try:
        yield
    finally:
        try:
            lock.release()
        except redis.exceptions.LockError:
            # Held past its timeout; another request may already own it
            logger.warning("Lock for venue %s expired before release", venue_id)


def get_booking_for_event(db: Session, event_id: int) -> VenueBooking:
    booking = db.scalar(select(VenueBooking).where(VenueBooking.event_id == event_id))
    if booking is None:
        raise BookingNotFoundError(event_id)
    return booking


def create_temporary(db: Session, event: Event) -> VenueBooking:
    """Stage the temporary booking for a new event; the caller commits both together."""
    booking = VenueBooking(
        event=event,
        venue_id=event.venue_id,
        start_at=event.start_at,
        end_at=event.end_at,
        status=BookingStatus.TEMPORARY,
    )
    db.add(booking)
    return booking


def _transition(db: Session, event_id: int, status: BookingStatus) -> VenueBooking:
    booking = get_booking_for_event(db, event_id)
    if booking.status == status:
        return booking
    logger.info("Booking %s for event %s: %s -> %s", booking.id, event_id, booking.status.value, status.value)
    booking.status = status
    return booking


def confirm(db: Session, event_id: int) -> VenueBooking:
    return _transition(db, event_id, BookingStatus.CONFIRMED)


def cancel(db: Session, event_id: int) -> VenueBooking:
    return _transition(db, event_id, BookingStatus.CANCELLED)


def mark_temporary(db: Session, event_id: int) -> VenueBooking:
    """Hold the slot again while an event is reworked; a cancelled booking stays cancelled."""
    booking = get_booking_for_event(db, event_id)
    if booking.status == BookingStatus.CANCELLED:
        return booking
    return _transition(db, event_id, BookingStatus.TEMPORARY)


def retarget(
    db: Session,
    event_id: int,
    venue_id: int,
    start: datetime,
    end: datetime,
    *,
    reset: bool = True,
) -> VenueBooking:
    """
    Move an event's booking to a new venue and/or interval.

    The new slot is checked against every other active booking first and
    ``VenueConflictError`` is raised before anything is touched. With ``reset``
    the booking goes back to temporary; otherwise its status is kept.
    """
    start, end = validate_interval(start, end)
    booking = get_booking_for_event(db, event_id)

    if reset or booking.is_active:
        conflicts = list_conflicts(db, venue_id, start, end, exclude_event_id=event_id)
        if conflicts:
            raise VenueConflictError([c.as_dict() for c in conflicts])

    booking.venue_id = venue_id
    booking.start_at = start
    booking.end_at = end
    if reset:
        booking.status = BookingStatus.TEMPORARY
    logger.info(
        "Booking %s for event %s retargeted to venue %s [%s, %s)",
        booking.id, event_id, venue_id, start.isoformat(), end.isoformat(),
    )
    return booking


def list_active_bookings(db: Session, venue_id: int | None = None) -> list[VenueBooking]:
    stmt = select(VenueBooking).where(VenueBooking.status.in_(ACTIVE_BOOKING_STATUSES))
    if venue_id is not None:
        stmt = stmt.where(VenueBooking.venue_id == venue_id)
    return list(db.scalars(stmt.order_by(VenueBooking.start_at, VenueBooking.id)))


def list_bookings_in_range(
    db: Session, start: datetime, end: datetime | None = None
) -> list[VenueBooking]:
    """Active bookings starting at or after ``start`` and, if given, ending by ``end``."""
    stmt = select(VenueBooking).where(
        VenueBooking.status.in_(ACTIVE_BOOKING_STATUSES),
        VenueBooking.start_at >= to_utc_naive(start),
    )
    if end is not None:
        stmt = stmt.where(VenueBooking.end_at <= to_utc_naive(end))
    return list(db.scalars(stmt.order_by(VenueBooking.start_at, VenueBooking.id)))
