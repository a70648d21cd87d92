"""The review transition of the event approval state machine.

``apply_review`` is a pure function: it takes a snapshot of the event's status
and approval chain plus the levels of every organization in the chain, and
returns the resulting status, chain, history entry and booking action. The
caller loads everything up front and persists the outcome in one commit.
"""
import enum
from dataclasses import dataclass, field, replace
from datetime import datetime, timezone

from eventflow.core.errors import InvalidDecisionError, NotAuthorizedError
from eventflow.models.enums import (
    TERMINAL_STATUSES,
    ApprovalStatus,
    EventStatus,
    ReviewDecision,
)
from eventflow.services.hierarchy import FINAL_APPROVER_LEVEL


class BookingAction(str, enum.Enum):
    KEEP = "keep"
    HOLD = "hold"
    CONFIRM = "confirm"
    CANCEL = "cancel"


@dataclass(frozen=True)
class ChainEntry:
    organization_id: int
    status: ApprovalStatus = ApprovalStatus.PENDING
    comments: str | None = None
    timestamp: datetime | None = None


@dataclass(frozen=True)
class Reviewer:
    id: int
    name: str
    level: int


@dataclass(frozen=True)
class ModificationRequest:
    requested_by_id: int
    comments: str | None
    timestamp: datetime


@dataclass
class ReviewOutcome:
    status: EventStatus
    chain: list[ChainEntry]
    booking_action: BookingAction = BookingAction.KEEP
    modification: ModificationRequest | None = None
    seat_added: bool = False
    changed: bool = True
    reset_positions: list[int] = field(default_factory=list)
    skipped_positions: list[int] = field(default_factory=list)


def utcnow() -> datetime:
    return datetime.now(timezone.utc).replace(tzinfo=None)


def parse_decision(value) -> ReviewDecision:
    if isinstance(value, ReviewDecision):
        return value
    try:
        return ReviewDecision(value)
    except ValueError:
        raise InvalidDecisionError(value) from None


def reset_comment(reviewer: Reviewer) -> str:
    return f"Reset due to modification request from {reviewer.name}"


def apply_review(
    status: EventStatus,
    chain: list[ChainEntry],
    reviewer: Reviewer,
    decision: ReviewDecision,
    comments: str | None,
    levels: dict[int, int],
    now: datetime | None = None,
) -> ReviewOutcome:
    """Compute the effect of ``reviewer`` deciding ``decision`` on an event.

    ``levels`` maps organization id to level for the chain's organizations; an
    id missing from it belongs to an organization that no longer exists and
    is left alone by the cascade reset.

    Raises NotAuthorizedError if the reviewer neither holds a seat nor has
    level <= 1. Events already approved, rejected or cancelled come back
    unchanged.
    """
    decision = parse_decision(decision)
    now = now or utcnow()
    chain = list(chain)

    index = next(
        (i for i, entry in enumerate(chain) if entry.organization_id == reviewer.id), None
    )
    if index is None and reviewer.level > FINAL_APPROVER_LEVEL:
        raise NotAuthorizedError(
            "Not authorized to review this event", details={"organization_id": reviewer.id}
        )

    if status in TERMINAL_STATUSES:
        return ReviewOutcome(status=status, chain=chain, changed=False)

    seat_added = index is None
    if seat_added:
        # Authorities outside the chain get a seat at the end
        chain.append(ChainEntry(organization_id=reviewer.id, timestamp=now))
        index = len(chain) - 1

    chain[index] = replace(
        chain[index],
        status=ApprovalStatus(decision.value),
        comments=comments,
        timestamp=now,
    )
    outcome = ReviewOutcome(status=status, chain=chain, seat_added=seat_added)

    if decision is ReviewDecision.REJECTED:
        outcome.status = EventStatus.REJECTED
        outcome.booking_action = BookingAction.CANCEL

    elif decision is ReviewDecision.NEEDS_MODIFICATION:
        outcome.status = EventStatus.NEEDS_MODIFICATION
        outcome.booking_action = BookingAction.HOLD
        outcome.modification = ModificationRequest(
            requested_by_id=reviewer.id, comments=comments, timestamp=now
        )
        _cascade_reset(outcome, index, reviewer, levels)

    elif reviewer.level == FINAL_APPROVER_LEVEL:
        outcome.status = EventStatus.APPROVED
        outcome.booking_action = BookingAction.CONFIRM

    else:
        predecessors_approved = all(
            entry.status == ApprovalStatus.APPROVED for entry in chain[: index + 1]
        )
        # needs_modification is only left through a creator edit
        if not predecessors_approved and status != EventStatus.NEEDS_MODIFICATION:
            outcome.status = EventStatus.PENDING

    return outcome


def _cascade_reset(
    outcome: ReviewOutcome, index: int, reviewer: Reviewer, levels: dict[int, int]
) -> None:
    """Send every seat below the reviewer in the hierarchy back to pending."""
    for position, entry in enumerate(outcome.chain):
        if position == index:
            continue
        level = levels.get(entry.organization_id)
        if level is None:
            outcome.skipped_positions.append(position)
            continue
        if level > reviewer.level:
            outcome.chain[position] = replace(
                entry, status=ApprovalStatus.PENDING, comments=reset_comment(reviewer)
            )
            outcome.reset_positions.append(position)
