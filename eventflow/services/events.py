"""Event operations: creation, review, edit, cancellation and read views.

Every write path validates first, stages all changes on the session, and
commits once; any error rolls the session back so nothing partial is stored.
"""
import logging
from contextlib import nullcontext
from datetime import datetime
from typing import Any, Mapping

from sqlalchemy import or_, select
from sqlalchemy.orm import Session

from eventflow.core.config import RECENT_EVENTS_LIMIT
from eventflow.core.errors import (
    EventNotFoundError,
    MissingFieldsError,
    NotAuthorizedError,
    OrganizationNotFoundError,
    VenueConflictError,
    VenueNotFoundError,
)
from eventflow.models.enums import ApprovalStatus, EventStatus
from eventflow.models.events import ApprovalEntry, Event, ModificationEntry
from eventflow.models.organizations import Organization
from eventflow.models.venues import Venue
from eventflow.services import bookings
from eventflow.services.approvals import (
    BookingAction,
    ChainEntry,
    ReviewOutcome,
    Reviewer,
    apply_review,
    parse_decision,
    utcnow,
)
from eventflow.services.conflicts import list_conflicts, to_utc_naive, validate_interval
from eventflow.services.hierarchy import (
    FINAL_APPROVER_LEVEL,
    ROOT_LEVEL,
    build_approval_chain,
    load_organizations,
)

logger = logging.getLogger(__name__)

REQUIRED_FIELDS = (
    "name",
    "start_at",
    "end_at",
    "venue_id",
    "budget",
    "description",
    "expected_participants",
)
EDITABLE_FIELDS = REQUIRED_FIELDS + ("required_resources",)

MODIFIED_AS_REQUESTED = "Event modified as requested"


def _is_blank(value: Any) -> bool:
    return value is None or (isinstance(value, str) and not value.strip())


def _get_organization(db: Session, organization_id: int) -> Organization:
    org = db.get(Organization, organization_id)
    if org is None:
        raise OrganizationNotFoundError(organization_id)
    return org


def get_event(db: Session, event_id: int) -> Event:
    event = db.get(Event, event_id)
    if event is None:
        raise EventNotFoundError(event_id)
    return event


def create_event(db: Session, creator_id: int, payload: Mapping[str, Any]) -> Event:
    """Create a pending event with its approval chain and a temporary booking.

    Raises:
        MissingFieldsError: a required field is absent or blank.
        OrganizationNotFoundError: the creator does not exist.
        NotAuthorizedError: the creator is the root organization.
        VenueNotFoundError: the venue does not exist.
        ValidationFailedError: start or end is not a datetime.
        InvalidIntervalError: end is not after start.
        VenueConflictError: the slot overlaps active bookings.
    """
    missing = [f for f in REQUIRED_FIELDS if _is_blank(payload.get(f))]
    if missing:
        raise MissingFieldsError(missing)

    creator = _get_organization(db, creator_id)
    if creator.level == ROOT_LEVEL:
        raise NotAuthorizedError("The root organization cannot create events")

    venue_id = payload["venue_id"]
    if db.get(Venue, venue_id) is None:
        raise VenueNotFoundError(venue_id)

    start, end = validate_interval(payload["start_at"], payload["end_at"])

    with bookings.venue_lock(venue_id):
        try:
            conflicts = list_conflicts(db, venue_id, start, end)
            if conflicts:
                raise VenueConflictError([c.as_dict() for c in conflicts])

            seats = build_approval_chain(db, creator)
            event = Event(
                name=payload["name"],
                created_by_id=creator.id,
                start_at=start,
                end_at=end,
                venue_id=venue_id,
                budget=payload["budget"],
                description=payload["description"],
                expected_participants=payload["expected_participants"],
                required_resources=list(payload.get("required_resources") or []),
                status=EventStatus.PENDING,
            )
            event.approval_chain = [
                ApprovalEntry(organization_id=seat.organization_id, status=seat.status)
                for seat in seats
            ]
            db.add(event)
            bookings.create_temporary(db, event)
            db.commit()
        except Exception:
            db.rollback()
            raise

    db.refresh(event)
    logger.info(
        "Event %s created by organization %s on venue %s with %d approvers",
        event.id, creator.id, venue_id, len(event.approval_chain),
    )
    return event


def _snapshot_chain(event: Event) -> list[ChainEntry]:
    return [
        ChainEntry(
            organization_id=entry.organization_id,
            status=entry.status,
            comments=entry.comments,
            timestamp=entry.timestamp,
        )
        for entry in event.approval_chain
    ]


def _persist_outcome(db: Session, event: Event, outcome: ReviewOutcome) -> None:
    for position, entry in enumerate(outcome.chain):
        if position < len(event.approval_chain):
            row = event.approval_chain[position]
            row.status = entry.status
            row.comments = entry.comments
            row.timestamp = entry.timestamp
        else:
            event.approval_chain.append(
                ApprovalEntry(
                    organization_id=entry.organization_id,
                    status=entry.status,
                    comments=entry.comments,
                    timestamp=entry.timestamp,
                )
            )

    if outcome.modification is not None:
        event.modification_history.append(
            ModificationEntry(
                requested_by_id=outcome.modification.requested_by_id,
                comments=outcome.modification.comments,
                timestamp=outcome.modification.timestamp,
            )
        )

    event.status = outcome.status

    if outcome.booking_action is BookingAction.CONFIRM:
        bookings.confirm(db, event.id)
    elif outcome.booking_action is BookingAction.CANCEL:
        bookings.cancel(db, event.id)
    elif outcome.booking_action is BookingAction.HOLD:
        bookings.mark_temporary(db, event.id)


def review_event(
    db: Session,
    event_id: int,
    reviewer_id: int,
    decision: Any,
    comments: str | None = None,
) -> Event:
    """Record a reviewer's decision and move the event and its booking accordingly.

    Raises:
        InvalidDecisionError: decision is not approved, rejected or needs_modification.
        EventNotFoundError / OrganizationNotFoundError: unknown event or reviewer.
        NotAuthorizedError: the reviewer has no seat and no authority to intervene.
    """
    decision = parse_decision(decision)
    event = get_event(db, event_id)
    reviewer_org = _get_organization(db, reviewer_id)

    # All levels the cascade reset may need, read in one query
    chain_orgs = load_organizations(db, [e.organization_id for e in event.approval_chain])
    levels = {org_id: org.level for org_id, org in chain_orgs.items()}

    outcome = apply_review(
        status=event.status,
        chain=_snapshot_chain(event),
        reviewer=Reviewer(id=reviewer_org.id, name=reviewer_org.name, level=reviewer_org.level),
        decision=decision,
        comments=comments,
        levels=levels,
        now=utcnow(),
    )
    if not outcome.changed:
        logger.info(
            "Review of event %s by %s ignored: event is already %s",
            event.id, reviewer_org.id, event.status.value,
        )
        return event

    for position in outcome.skipped_positions:
        logger.warning(
            "Organization %s in approval chain of event %s no longer exists; not reset",
            outcome.chain[position].organization_id, event.id,
        )

    try:
        _persist_outcome(db, event, outcome)
        db.commit()
    except Exception:
        db.rollback()
        raise

    db.refresh(event)
    logger.info(
        "Event %s reviewed by %s (level %s): %s -> event %s%s",
        event.id, reviewer_org.id, reviewer_org.level, decision.value, event.status.value,
        f", reset {len(outcome.reset_positions)} approvals" if outcome.reset_positions else "",
    )
    return event


def cancel_event(db: Session, event_id: int, requester_id: int) -> Event:
    """Creator-only cancellation; frees the venue slot."""
    event = get_event(db, event_id)
    if event.created_by_id != requester_id:
        raise NotAuthorizedError("Not authorized to cancel this event")
    if event.status == EventStatus.CANCELLED:
        return event

    try:
        event.status = EventStatus.CANCELLED
        bookings.cancel(db, event.id)
        db.commit()
    except Exception:
        db.rollback()
        raise

    db.refresh(event)
    logger.info("Event %s cancelled by its creator", event.id)
    return event


def update_event(
    db: Session,
    event_id: int,
    requester_id: int,
    patch: Mapping[str, Any],
    reset_status: bool = False,
) -> Event:
    """Creator-only edit.

    With ``reset_status`` on an event that needs modification, the event goes
    back to pending and its booking is re-validated and held again. Moving a
    live event to another venue or interval re-validates the booking as well.
    A conflicting slot aborts the whole edit, and so does blanking a required
    field.
    """
    event = get_event(db, event_id)
    if event.created_by_id != requester_id:
        raise NotAuthorizedError("Not authorized to update this event")

    changes = {k: v for k, v in patch.items() if k in EDITABLE_FIELDS and v is not None}
    blanked = [f for f in REQUIRED_FIELDS if f in changes and _is_blank(changes[f])]
    if blanked:
        raise MissingFieldsError(blanked)

    venue_id = changes.get("venue_id", event.venue_id)
    if venue_id != event.venue_id and db.get(Venue, venue_id) is None:
        raise VenueNotFoundError(venue_id)
    start, end = validate_interval(
        changes.get("start_at", event.start_at), changes.get("end_at", event.end_at)
    )
    changes["start_at"], changes["end_at"] = start, end

    slot_changed = (
        venue_id != event.venue_id or start != event.start_at or end != event.end_at
    )
    resetting = reset_status and event.status == EventStatus.NEEDS_MODIFICATION

    lock = bookings.venue_lock(venue_id) if (slot_changed or resetting) else nullcontext()
    with lock:
        try:
            if slot_changed or resetting:
                bookings.retarget(db, event.id, venue_id, start, end, reset=resetting)

            for name, value in changes.items():
                if name == "required_resources":
                    value = list(value)
                setattr(event, name, value)

            if resetting:
                event.status = EventStatus.PENDING
                event.modification_history.append(
                    ModificationEntry(
                        requested_by_id=requester_id,
                        comments=MODIFIED_AS_REQUESTED,
                        timestamp=utcnow(),
                    )
                )
            db.commit()
        except Exception:
            db.rollback()
            raise

    db.refresh(event)
    logger.info(
        "Event %s updated by its creator%s", event.id, " and resubmitted" if resetting else ""
    )
    return event


def list_pending_for(db: Session, organization_id: int) -> list[Event]:
    """Live events on which ``organization_id`` still holds a pending seat."""
    stmt = (
        select(Event)
        .join(ApprovalEntry, ApprovalEntry.event_id == Event.id)
        .where(
            ApprovalEntry.organization_id == organization_id,
            ApprovalEntry.status == ApprovalStatus.PENDING,
            Event.status.not_in([EventStatus.CANCELLED, EventStatus.REJECTED]),
        )
        .distinct()
        .order_by(Event.start_at, Event.id)
    )
    return list(db.scalars(stmt))


def list_created_by(db: Session, organization_id: int) -> list[Event]:
    stmt = select(Event).where(Event.created_by_id == organization_id).order_by(Event.start_at, Event.id)
    return list(db.scalars(stmt))


def list_all(db: Session, requester_id: int) -> list[Event]:
    """Every event; venue managers only."""
    requester = _get_organization(db, requester_id)
    if not requester.is_venue_manager:
        raise NotAuthorizedError("Not authorized")
    return list(db.scalars(select(Event).order_by(Event.start_at, Event.id)))


def list_recent(db: Session, organization_id: int, limit: int | None = None) -> list[Event]:
    """Most recently created events visible to an organization.

    Level 0 sees everything, level 1 its own events and those it reviews,
    deeper levels only their own.
    """
    org = _get_organization(db, organization_id)
    stmt = select(Event)
    if org.level == FINAL_APPROVER_LEVEL:
        reviewed = select(ApprovalEntry.event_id).where(ApprovalEntry.organization_id == org.id)
        stmt = stmt.where(or_(Event.created_by_id == org.id, Event.id.in_(reviewed)))
    elif org.level > FINAL_APPROVER_LEVEL:
        stmt = stmt.where(Event.created_by_id == org.id)
    stmt = stmt.order_by(Event.created_at.desc(), Event.id.desc()).limit(limit or RECENT_EVENTS_LIMIT)
    return list(db.scalars(stmt))


def list_calendar(db: Session, start: datetime, end: datetime | None = None) -> list[Event]:
    """Events starting at or after ``start`` and, if given, ending by ``end``."""
    stmt = select(Event).where(Event.start_at >= to_utc_naive(start))
    if end is not None:
        stmt = stmt.where(Event.end_at <= to_utc_naive(end))
    return list(db.scalars(stmt.order_by(Event.start_at, Event.id)))
