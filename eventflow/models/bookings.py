from datetime import datetime

from sqlalchemy import DateTime, ForeignKey, Index, Integer, func
from sqlalchemy.orm import Mapped, mapped_column, relationship

from eventflow.database.db import Base
from eventflow.models.enums import ACTIVE_BOOKING_STATUSES, BookingStatus, status_enum


class VenueBooking(Base):
    __tablename__ = "venue_bookings"
    __table_args__ = (Index("ix_venue_bookings_venue_status", "venue_id", "status"),)

    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    venue_id: Mapped[int] = mapped_column(ForeignKey("venues.id"), nullable=False)
    event_id: Mapped[int] = mapped_column(ForeignKey("events.id"), nullable=False, unique=True)
    start_at: Mapped[datetime] = mapped_column(DateTime, nullable=False)
    end_at: Mapped[datetime] = mapped_column(DateTime, nullable=False)
    status: Mapped[BookingStatus] = mapped_column(
        status_enum(BookingStatus), nullable=False, default=BookingStatus.TEMPORARY
    )
    created_at: Mapped[datetime] = mapped_column(DateTime, server_default=func.now())
    updated_at: Mapped[datetime] = mapped_column(
        DateTime, server_default=func.now(), onupdate=func.now()
    )

    event: Mapped["Event"] = relationship(back_populates="booking")
    venue: Mapped["Venue"] = relationship()

    @property
    def is_active(self) -> bool:
        return self.status in ACTIVE_BOOKING_STATUSES


from eventflow.models.events import Event  # noqa: E402,F401
from eventflow.models.venues import Venue  # noqa: E402,F401
