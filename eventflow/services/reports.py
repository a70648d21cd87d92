from datetime import datetime, timedelta

from sqlalchemy import func, select
from sqlalchemy.orm import Session

from eventflow.core.errors import OrganizationNotFoundError
from eventflow.models.bookings import VenueBooking
from eventflow.models.enums import ApprovalStatus, BookingStatus, EventStatus
from eventflow.models.events import ApprovalEntry, Event
from eventflow.models.organizations import Organization
from eventflow.models.venues import Venue
from eventflow.services.approvals import utcnow
from eventflow.services.hierarchy import FINAL_APPROVER_LEVEL, ROOT_LEVEL

UPCOMING_WINDOW = timedelta(days=7)


def _count_events(db: Session, *criteria) -> int:
    return int(db.scalar(select(func.count(Event.id)).where(*criteria)) or 0)


def _count_bookings(db: Session, status: BookingStatus) -> int:
    return int(
        db.scalar(select(func.count(VenueBooking.id)).where(VenueBooking.status == status)) or 0
    )


def count_pending_reviews(db: Session, organization_id: int) -> int:
    return int(
        db.scalar(
            select(func.count(func.distinct(Event.id)))
            .join(ApprovalEntry, ApprovalEntry.event_id == Event.id)
            .where(
                ApprovalEntry.organization_id == organization_id,
                ApprovalEntry.status == ApprovalStatus.PENDING,
                Event.status.not_in([EventStatus.CANCELLED, EventStatus.REJECTED]),
            )
        )
        or 0
    )


def get_organization_stats(db: Session, organization_id: int, now: datetime | None = None) -> dict:
    """
    Dashboard numbers for one organization.

    Creators (level 2 and deeper) get counts of their own events by status.
    Reviewers (level 0 and 1) get their pending reviews plus system-wide
    counts. Venue managers additionally get venue and booking numbers and the
    approved events starting within the next week; the root also gets the
    organization count.
    """
    org = db.get(Organization, organization_id)
    if org is None:
        raise OrganizationNotFoundError(organization_id)

    stats: dict[str, int] = {}

    if org.level > FINAL_APPROVER_LEVEL:
        own = Event.created_by_id == org.id
        stats["total_events"] = _count_events(db, own)
        for status in (EventStatus.PENDING, EventStatus.APPROVED, EventStatus.REJECTED, EventStatus.CANCELLED):
            stats[f"{status.value}_events"] = _count_events(db, own, Event.status == status)
    else:
        stats["pending_events"] = count_pending_reviews(db, org.id)
        stats["total_events"] = _count_events(db)
        for status in (EventStatus.APPROVED, EventStatus.REJECTED, EventStatus.CANCELLED):
            stats[f"{status.value}_events"] = _count_events(db, Event.status == status)

    if org.is_venue_manager:
        now = now or utcnow()
        stats["total_venues"] = int(db.scalar(select(func.count(Venue.id))) or 0)
        stats["pending_bookings"] = _count_bookings(db, BookingStatus.TEMPORARY)
        stats["confirmed_bookings"] = _count_bookings(db, BookingStatus.CONFIRMED)
        stats["upcoming_events"] = _count_events(
            db,
            Event.status == EventStatus.APPROVED,
            Event.start_at >= now,
            Event.start_at <= now + UPCOMING_WINDOW,
        )

    if org.level == ROOT_LEVEL:
        stats["total_organizations"] = int(db.scalar(select(func.count(Organization.id))) or 0)

    return stats
