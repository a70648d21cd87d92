from datetime import date, datetime

from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from eventflow.core.errors import DomainError
from eventflow.database.db import get_db
from eventflow.routes.errors import http_error
from eventflow.schemas.bookings import AvailabilityOut, BookingOut
from eventflow.services import bookings as booking_service
from eventflow.services.conflicts import check_availability

router = APIRouter(prefix="/bookings", tags=["bookings"])


@router.get("/availability/{venue_id}", response_model=AvailabilityOut)
def venue_availability(
    venue_id: int,
    day: date | None = Query(default=None, alias="date"),
    start: datetime | None = None,
    end: datetime | None = None,
    exclude_event_id: int | None = None,
    db: Session = Depends(get_db),
):
    """Check a venue for a whole day (``date``) or an explicit ``start``/``end``."""
    try:
        return check_availability(
            db, venue_id, day=day, start=start, end=end, exclude_event_id=exclude_event_id
        )
    except DomainError as e:
        raise http_error(e)


@router.get("/venue/{venue_id}", response_model=list[BookingOut])
def venue_bookings(venue_id: int, db: Session = Depends(get_db)):
    return booking_service.list_active_bookings(db, venue_id)


@router.get("/event/{event_id}", response_model=BookingOut)
def event_booking(event_id: int, db: Session = Depends(get_db)):
    try:
        return booking_service.get_booking_for_event(db, event_id)
    except DomainError as e:
        raise http_error(e)


@router.get("/calendar", response_model=list[BookingOut])
def booking_calendar(start: datetime, end: datetime | None = None, db: Session = Depends(get_db)):
    return booking_service.list_bookings_in_range(db, start, end)
