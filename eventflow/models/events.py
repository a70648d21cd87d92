from datetime import datetime
from decimal import Decimal
from typing import Optional

from sqlalchemy import JSON, DateTime, ForeignKey, Integer, Numeric, String, Text, func
from sqlalchemy.ext.orderinglist import ordering_list
from sqlalchemy.orm import Mapped, mapped_column, relationship

from eventflow.database.db import Base
from eventflow.models.enums import ApprovalStatus, BookingStatus, EventStatus, status_enum


class Event(Base):
    __tablename__ = "events"

    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    name: Mapped[str] = mapped_column(String(200), nullable=False)
    created_by_id: Mapped[int] = mapped_column(
        ForeignKey("organizations.id"), nullable=False, index=True
    )
    start_at: Mapped[datetime] = mapped_column(DateTime, nullable=False)
    end_at: Mapped[datetime] = mapped_column(DateTime, nullable=False)
    venue_id: Mapped[int] = mapped_column(ForeignKey("venues.id"), nullable=False, index=True)
    budget: Mapped[Decimal] = mapped_column(Numeric(12, 2), nullable=False)
    description: Mapped[str] = mapped_column(Text, nullable=False)
    expected_participants: Mapped[int] = mapped_column(Integer, nullable=False)
    required_resources: Mapped[list[str]] = mapped_column(JSON, nullable=False, default=list)
    status: Mapped[EventStatus] = mapped_column(
        status_enum(EventStatus), nullable=False, default=EventStatus.PENDING
    )
    created_at: Mapped[datetime] = mapped_column(DateTime, server_default=func.now())
    updated_at: Mapped[datetime] = mapped_column(
        DateTime, server_default=func.now(), onupdate=func.now()
    )

    creator: Mapped["Organization"] = relationship()
    venue: Mapped["Venue"] = relationship()
    approval_chain: Mapped[list["ApprovalEntry"]] = relationship(
        back_populates="event",
        order_by="ApprovalEntry.position",
        collection_class=ordering_list("position"),
        cascade="all, delete-orphan",
    )
    modification_history: Mapped[list["ModificationEntry"]] = relationship(
        back_populates="event",
        order_by="ModificationEntry.position",
        collection_class=ordering_list("position"),
        cascade="all, delete-orphan",
    )
    booking: Mapped[Optional["VenueBooking"]] = relationship(back_populates="event")

    @property
    def booking_status(self) -> BookingStatus | None:
        return self.booking.status if self.booking is not None else None


class ApprovalEntry(Base):
    """One seat of an event's approval chain."""

    __tablename__ = "approval_entries"

    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    event_id: Mapped[int] = mapped_column(ForeignKey("events.id"), nullable=False, index=True)
    position: Mapped[int] = mapped_column(Integer, nullable=False)
    organization_id: Mapped[int] = mapped_column(
        ForeignKey("organizations.id"), nullable=False, index=True
    )
    status: Mapped[ApprovalStatus] = mapped_column(
        status_enum(ApprovalStatus), nullable=False, default=ApprovalStatus.PENDING
    )
    comments: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    timestamp: Mapped[datetime] = mapped_column(DateTime, server_default=func.now())

    event: Mapped["Event"] = relationship(back_populates="approval_chain")
    organization: Mapped["Organization"] = relationship()


class ModificationEntry(Base):
    __tablename__ = "modification_entries"

    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    event_id: Mapped[int] = mapped_column(ForeignKey("events.id"), nullable=False, index=True)
    position: Mapped[int] = mapped_column(Integer, nullable=False)
    requested_by_id: Mapped[int] = mapped_column(ForeignKey("organizations.id"), nullable=False)
    comments: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    timestamp: Mapped[datetime] = mapped_column(DateTime, server_default=func.now())

    event: Mapped["Event"] = relationship(back_populates="modification_history")


from eventflow.models.bookings import VenueBooking  # noqa: E402
from eventflow.models.organizations import Organization  # noqa: E402
from eventflow.models.venues import Venue  # noqa: E402

__all__ = ["Event", "ApprovalEntry", "ModificationEntry", "VenueBooking", "Organization", "Venue"]
