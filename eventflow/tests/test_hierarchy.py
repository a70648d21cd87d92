"""
Test organization registration, derived levels and approval-chain construction.
"""
import pytest
from sqlalchemy import delete
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
from eventflow.services.hierarchy import (
    build_approval_chain,
    get_children,
    get_hierarchy,
    reassign_parent,
    register_organization,
)


def _chain_ids(db: Session, org: Organization) -> list[int]:
    return [seat.organization_id for seat in build_approval_chain(db, org)]


def _drop_row(db: Session, organization_id: int) -> None:
    """Delete an organization row without touching the rows that point at it."""
    db.execute(delete(Organization).where(Organization.id == organization_id))
    db.commit()
    db.expunge_all()


class TestRegistration:
    """Test registering organizations."""

    def test_levels_are_derived_from_parents(self, orgs):
        """Test that level is parent level + 1 and only the root manages venues."""
        assert orgs["root"].level == 0
        assert orgs["root"].is_venue_manager is True
        assert orgs["college"].level == 1
        assert orgs["dept"].level == 2
        assert orgs["club"].level == 3
        assert not any(orgs[k].is_venue_manager for k in ("college", "dept", "club", "lab"))

    def test_duplicate_org_id(self, db_session: Session, orgs):
        with pytest.raises(DuplicateOrganizationError):
            register_organization(db_session, name="Another", org_id="dept", password_hash="x")

    def test_duplicate_name(self, db_session: Session, orgs):
        with pytest.raises(DuplicateOrganizationError):
            register_organization(db_session, name="Department", org_id="dept2", password_hash="x")

    def test_org_id_must_be_alphanumeric(self, db_session: Session):
        with pytest.raises(ValidationFailedError):
            register_organization(db_session, name="Bad", org_id="bad-id", password_hash="x")

    def test_missing_fields(self, db_session: Session):
        with pytest.raises(MissingFieldsError) as exc:
            register_organization(db_session, name="", org_id="", password_hash="x")
        assert exc.value.fields == ["name", "org_id"]

    def test_unknown_parent(self, db_session: Session):
        with pytest.raises(OrganizationNotFoundError):
            register_organization(
                db_session, name="Orphan", org_id="orphan", password_hash="x", parent_id=999
            )


class TestApprovalChain:
    """Test the upward walk that builds approval chains."""

    def test_deep_creator_stops_at_level_one(self, db_session: Session, orgs):
        """Test that a level-3 creator is reviewed by its level-2 then level-1 ancestors."""
        assert _chain_ids(db_session, orgs["club"]) == [orgs["dept"].id, orgs["college"].id]

    def test_level_two_creator(self, db_session: Session, orgs):
        assert _chain_ids(db_session, orgs["dept"]) == [orgs["college"].id]

    def test_root_is_never_walked_past_level_one(self, db_session: Session, orgs):
        assert orgs["root"].id not in _chain_ids(db_session, orgs["club"])

    def test_all_seats_start_pending(self, db_session: Session, orgs):
        seats = build_approval_chain(db_session, orgs["club"])
        assert all(seat.status == ApprovalStatus.PENDING for seat in seats)

    def test_dangling_parent_falls_back_to_final_approvers(self, db_session: Session, orgs):
        """Test that an empty walk fans out to every level-1 organization."""
        club_id, dept_id = orgs["club"].id, orgs["dept"].id
        expected = [orgs["college"].id, orgs["other_college"].id]
        _drop_row(db_session, dept_id)

        club = db_session.get(Organization, club_id)
        assert club.parent_id == dept_id
        assert _chain_ids(db_session, club) == expected

    def test_dangling_grandparent_keeps_partial_chain(self, db_session: Session, orgs):
        """Test that a walk cut short keeps the approvers found so far."""
        member = register_organization(
            db_session, name="Member", org_id="member", password_hash="x", parent_id=orgs["club"].id
        )
        member_id, club_id = member.id, orgs["club"].id
        _drop_row(db_session, orgs["dept"].id)

        member = db_session.get(Organization, member_id)
        assert _chain_ids(db_session, member) == [club_id]


class TestHierarchyViews:
    """Test reading and rearranging the tree."""

    def test_get_children(self, db_session: Session, orgs):
        children = get_children(db_session, orgs["college"].id)
        assert [c.id for c in children] == [orgs["dept"].id, orgs["lab"].id]

    def test_get_children_unknown(self, db_session: Session):
        with pytest.raises(OrganizationNotFoundError):
            get_children(db_session, 404)

    def test_get_hierarchy(self, db_session: Session, orgs):
        """Test that the forest is rooted at the level-0 organization."""
        roots = get_hierarchy(db_session)

        assert [r.id for r in roots] == [orgs["root"].id]
        college = next(c for c in roots[0].children if c.id == orgs["college"].id)
        assert [c.id for c in college.children] == [orgs["dept"].id, orgs["lab"].id]
        assert college.children[0].children[0].id == orgs["club"].id

    def test_reassign_parent_rederives_subtree(self, db_session: Session, orgs):
        """Test that moving a subtree updates every level below it."""
        reassign_parent(db_session, orgs["dept"].id, orgs["lab"].id)
        db_session.refresh(orgs["dept"])
        db_session.refresh(orgs["club"])

        assert orgs["dept"].level == 3
        assert orgs["club"].level == 4
        assert _chain_ids(db_session, orgs["club"]) == [
            orgs["dept"].id,
            orgs["lab"].id,
            orgs["college"].id,
        ]

    def test_reassign_parent_rejects_cycles(self, db_session: Session, orgs):
        with pytest.raises(InvalidHierarchyError):
            reassign_parent(db_session, orgs["college"].id, orgs["club"].id)
        with pytest.raises(InvalidHierarchyError):
            reassign_parent(db_session, orgs["dept"].id, orgs["dept"].id)
