"""
Test database models (Organization, Venue, Event, VenueBooking).
"""
from datetime import datetime
from decimal import Decimal

import pytest
from sqlalchemy.exc import IntegrityError, StatementError
from sqlalchemy.orm import Session

from eventflow.models.bookings import VenueBooking
from eventflow.models.enums import ApprovalStatus, BookingStatus, EventStatus
from eventflow.models.events import ApprovalEntry, Event, ModificationEntry
from eventflow.models.organizations import Organization
from eventflow.models.venues import Venue


def _event(creator: Organization, venue: Venue, **overrides) -> Event:
    fields = dict(
        name="Robotics Workshop",
        created_by_id=creator.id,
        start_at=datetime(2030, 3, 1, 10),
        end_at=datetime(2030, 3, 1, 12),
        venue_id=venue.id,
        budget=Decimal("1200.50"),
        description="Hands-on session",
        expected_participants=40,
        required_resources=["projector"],
    )
    fields.update(overrides)
    return Event(**fields)


class TestOrganizationModel:
    """Test the Organization model."""

    def test_parent_and_children(self, db_session: Session, orgs):
        """Test the self-referencing parent relationship."""
        college = orgs["college"]
        db_session.refresh(college)

        assert college.parent.id == orgs["root"].id
        assert {c.id for c in college.children} == {orgs["dept"].id, orgs["lab"].id}

    def test_org_id_is_unique(self, db_session: Session, orgs):
        """Test that two organizations cannot share a login id."""
        db_session.add(
            Organization(name="Copy", org_id="college", password_hash="x", level=1)
        )
        with pytest.raises(IntegrityError):
            db_session.commit()
        db_session.rollback()


class TestEventModel:
    """Test the Event model and its child rows."""

    def test_create_event_defaults(self, db_session: Session, orgs, venue: Venue):
        """Test creating an event with default status."""
        event = _event(orgs["club"], venue)
        db_session.add(event)
        db_session.commit()
        db_session.refresh(event)

        assert event.id is not None
        assert event.status == EventStatus.PENDING
        assert event.budget == Decimal("1200.50")
        assert event.required_resources == ["projector"]
        assert event.booking is None
        assert event.booking_status is None

    def test_approval_chain_keeps_order(self, db_session: Session, orgs, venue: Venue):
        """Test that chain entries come back in insertion order."""
        event = _event(orgs["club"], venue)
        event.approval_chain = [
            ApprovalEntry(organization_id=orgs["dept"].id),
            ApprovalEntry(organization_id=orgs["college"].id),
        ]
        db_session.add(event)
        db_session.commit()
        db_session.expire_all()

        loaded = db_session.get(Event, event.id)
        assert [e.organization_id for e in loaded.approval_chain] == [
            orgs["dept"].id,
            orgs["college"].id,
        ]
        assert [e.position for e in loaded.approval_chain] == [0, 1]
        assert all(e.status == ApprovalStatus.PENDING for e in loaded.approval_chain)

    def test_modification_history_appends(self, db_session: Session, orgs, venue: Venue):
        event = _event(orgs["club"], venue)
        event.modification_history.append(
            ModificationEntry(requested_by_id=orgs["dept"].id, comments="Lower the budget")
        )
        event.modification_history.append(
            ModificationEntry(requested_by_id=orgs["college"].id, comments="Move it earlier")
        )
        db_session.add(event)
        db_session.commit()
        db_session.refresh(event)

        assert [m.comments for m in event.modification_history] == [
            "Lower the budget",
            "Move it earlier",
        ]

    def test_unknown_status_is_rejected(self, db_session: Session, orgs, venue: Venue):
        """Test that statuses outside the closed set cannot be stored."""
        event = _event(orgs["club"], venue)
        event.status = "archived"
        db_session.add(event)
        with pytest.raises((StatementError, LookupError)):
            db_session.commit()
        db_session.rollback()


class TestVenueBookingModel:
    """Test the VenueBooking model."""

    def test_booking_links_to_event(self, db_session: Session, orgs, venue: Venue):
        """Test the one-to-one relationship between Event and VenueBooking."""
        event = _event(orgs["club"], venue)
        booking = VenueBooking(
            event=event,
            venue_id=venue.id,
            start_at=event.start_at,
            end_at=event.end_at,
        )
        db_session.add_all([event, booking])
        db_session.commit()
        db_session.refresh(event)

        assert event.booking.id == booking.id
        assert event.booking_status == BookingStatus.TEMPORARY
        assert booking.is_active is True

    def test_one_booking_per_event(self, db_session: Session, orgs, venue: Venue):
        """Test that an event cannot hold two bookings."""
        event = _event(orgs["club"], venue)
        db_session.add(event)
        db_session.commit()

        for _ in range(2):
            db_session.add(
                VenueBooking(
                    event_id=event.id,
                    venue_id=venue.id,
                    start_at=event.start_at,
                    end_at=event.end_at,
                )
            )
        with pytest.raises(IntegrityError):
            db_session.commit()
        db_session.rollback()

    def test_cancelled_booking_is_not_active(self, db_session: Session, orgs, venue: Venue):
        event = _event(orgs["club"], venue)
        booking = VenueBooking(
            event=event,
            venue_id=venue.id,
            start_at=event.start_at,
            end_at=event.end_at,
            status=BookingStatus.CANCELLED,
        )
        db_session.add_all([event, booking])
        db_session.commit()

        assert booking.is_active is False
