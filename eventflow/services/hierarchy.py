"""Organization hierarchy: derived levels and approval-chain construction.

Organizations are addressed by id and linked to their parent by a plain id.
``level`` and ``is_venue_manager`` are only ever written here.
"""
import logging
import re
from dataclasses import dataclass, field

from sqlalchemy import or_, select
from sqlalchemy.orm import Session

from eventflow.core.errors import (
    DuplicateOrganizationError,
    InvalidHierarchyError,
    MissingFieldsError,
    OrganizationNotFoundError,
    ValidationFailedError,
)
from eventflow.models.enums import ApprovalStatus
from eventflow.models.organizations import Organization

logger = logging.getLogger(__name__)

ROOT_LEVEL = 0
FINAL_APPROVER_LEVEL = 1

_ORG_ID_RE = re.compile(r"^[a-zA-Z0-9]+$")


@dataclass(frozen=True)
class ChainSeat:
    organization_id: int
    status: ApprovalStatus = ApprovalStatus.PENDING


@dataclass
class HierarchyNode:
    id: int
    org_id: str
    name: str
    level: int
    is_venue_manager: bool
    children: list["HierarchyNode"] = field(default_factory=list)


def derive_level(db: Session, parent_id: int | None) -> tuple[int, bool]:
    """Return ``(level, is_venue_manager)`` for an organization under ``parent_id``."""
    if parent_id is None:
        return ROOT_LEVEL, True
    parent = db.get(Organization, parent_id)
    if parent is None:
        raise OrganizationNotFoundError(parent_id)
    return parent.level + 1, False


def register_organization(
    db: Session,
    *,
    name: str,
    org_id: str,
    password_hash: str,
    parent_id: int | None = None,
) -> Organization:
    missing = [k for k, v in (("name", name), ("org_id", org_id), ("password_hash", password_hash)) if not v]
    if missing:
        raise MissingFieldsError(missing)
    if not _ORG_ID_RE.match(org_id):
        raise ValidationFailedError("Organization ID must be alphanumeric")

    existing = db.scalar(
        select(Organization).where(or_(Organization.org_id == org_id, Organization.name == name))
    )
    if existing is not None:
        raise DuplicateOrganizationError("Organization already exists", details={"org_id": org_id})

    level, is_venue_manager = derive_level(db, parent_id)
    org = Organization(
        name=name,
        org_id=org_id,
        password_hash=password_hash,
        parent_id=parent_id,
        level=level,
        is_venue_manager=is_venue_manager,
    )
    db.add(org)
    try:
        db.commit()
    except Exception:
        db.rollback()
        raise
    db.refresh(org)
    logger.info("Registered organization %s (id=%s, level=%s)", org.name, org.id, org.level)
    return org


def reassign_parent(db: Session, organization_id: int, new_parent_id: int | None) -> Organization:
    """Move an organization under a new parent and re-derive its whole subtree."""
    org = db.get(Organization, organization_id)
    if org is None:
        raise OrganizationNotFoundError(organization_id)

    if new_parent_id is not None:
        if new_parent_id == organization_id or new_parent_id in _descendant_ids(db, organization_id):
            raise InvalidHierarchyError("An organization cannot be placed under its own descendant")

    level, is_venue_manager = derive_level(db, new_parent_id)
    org.parent_id = new_parent_id
    org.level = level
    org.is_venue_manager = is_venue_manager
    _rederive_subtree(db, org)
    try:
        db.commit()
    except Exception:
        db.rollback()
        raise
    db.refresh(org)
    logger.info("Organization %s moved under %s, now level %s", org.id, new_parent_id, org.level)
    return org


def _children_of(db: Session, organization_id: int) -> list[Organization]:
    return list(
        db.scalars(
            select(Organization)
            .where(Organization.parent_id == organization_id)
            .order_by(Organization.id)
        )
    )


def _descendant_ids(db: Session, organization_id: int) -> set[int]:
    seen: set[int] = set()
    frontier = [organization_id]
    while frontier:
        current = frontier.pop()
        for child in _children_of(db, current):
            if child.id not in seen:
                seen.add(child.id)
                frontier.append(child.id)
    return seen


def _rederive_subtree(db: Session, root: Organization) -> None:
    frontier = [root]
    while frontier:
        parent = frontier.pop()
        for child in _children_of(db, parent.id):
            child.level = parent.level + 1
            child.is_venue_manager = False
            frontier.append(child)


def build_approval_chain(db: Session, org: Organization) -> list[ChainSeat]:
    """Walk parent links upward from ``org`` collecting approvers.

    The walk stops after the first level-1 ancestor, at the root, or at a
    dangling parent reference (the chain built so far is kept). An empty walk
    for a creator that is not level 1 falls back to every level-1 organization.
    """
    chain: list[ChainSeat] = []
    visited = {org.id}
    current = org

    while current.parent_id is not None:
        parent = db.get(Organization, current.parent_id)
        if parent is None:
            logger.warning(
                "Parent organization %s of %s not found; keeping partial approval chain",
                current.parent_id,
                current.id,
            )
            break
        if parent.id in visited:
            logger.warning("Cycle in organization hierarchy at %s", parent.id)
            break
        visited.add(parent.id)

        chain.append(ChainSeat(organization_id=parent.id))
        if parent.level == FINAL_APPROVER_LEVEL:
            break
        current = parent

    if not chain and org.level != FINAL_APPROVER_LEVEL:
        final_approvers = db.scalars(
            select(Organization)
            .where(Organization.level == FINAL_APPROVER_LEVEL)
            .order_by(Organization.id)
        )
        chain = [ChainSeat(organization_id=o.id) for o in final_approvers]

    logger.info(
        "Approval chain for organization %s (level %s): %s",
        org.id,
        org.level,
        [seat.organization_id for seat in chain],
    )
    return chain


def load_organizations(db: Session, organization_ids: list[int]) -> dict[int, Organization]:
    """Batch-load organizations by id; ids that no longer exist are absent from the result."""
    if not organization_ids:
        return {}
    rows = db.scalars(select(Organization).where(Organization.id.in_(set(organization_ids))))
    return {o.id: o for o in rows}


def get_children(db: Session, organization_id: int) -> list[Organization]:
    if db.get(Organization, organization_id) is None:
        raise OrganizationNotFoundError(organization_id)
    return _children_of(db, organization_id)


def get_hierarchy(db: Session) -> list[HierarchyNode]:
    """Return the organization forest, roots first, children ordered by id."""
    orgs = list(db.scalars(select(Organization).order_by(Organization.id)))
    nodes = {
        o.id: HierarchyNode(
            id=o.id,
            org_id=o.org_id,
            name=o.name,
            level=o.level,
            is_venue_manager=o.is_venue_manager,
        )
        for o in orgs
    }
    roots = []
    for o in orgs:
        parent = nodes.get(o.parent_id) if o.parent_id is not None else None
        if parent is None:
            roots.append(nodes[o.id])
        else:
            parent.children.append(nodes[o.id])
    return roots
