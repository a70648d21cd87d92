from datetime import datetime

from pydantic import BaseModel

from eventflow.models.enums import BookingStatus


class BookingOut(BaseModel):
    id: int
    venue_id: int
    event_id: int
    start_at: datetime
    end_at: datetime
    status: BookingStatus
    created_at: datetime | None

    class Config:
        from_attributes = True


class ConflictOut(BaseModel):
    booking_id: int
    event_id: int
    event_name: str
    start: datetime
    end: datetime
    status: BookingStatus


class AvailabilityOut(BaseModel):
    available: bool
    conflicts: list[ConflictOut]
