from fastapi import APIRouter, Depends, status
from sqlalchemy.orm import Session

from eventflow.core.errors import DomainError
from eventflow.database.db import get_db
from eventflow.routes.errors import http_error
from eventflow.schemas.organizations import (
    HierarchyNodeOut,
    OrganizationCreate,
    OrganizationOut,
    ParentUpdate,
)
from eventflow.services import hierarchy

router = APIRouter(prefix="/organizations", tags=["organizations"])


@router.post("", response_model=OrganizationOut, status_code=status.HTTP_201_CREATED)
def register_organization(payload: OrganizationCreate, db: Session = Depends(get_db)):
    try:
        return hierarchy.register_organization(
            db,
            name=payload.name,
            org_id=payload.org_id,
            password_hash=payload.password_hash,
            parent_id=payload.parent_id,
        )
    except DomainError as e:
        raise http_error(e)


@router.get("/hierarchy", response_model=list[HierarchyNodeOut])
def organization_hierarchy(db: Session = Depends(get_db)):
    return hierarchy.get_hierarchy(db)


@router.get("/{organization_id}/children", response_model=list[OrganizationOut])
def organization_children(organization_id: int, db: Session = Depends(get_db)):
    try:
        return hierarchy.get_children(db, organization_id)
    except DomainError as e:
        raise http_error(e)


@router.put("/{organization_id}/parent", response_model=OrganizationOut)
def move_organization(organization_id: int, payload: ParentUpdate, db: Session = Depends(get_db)):
    try:
        return hierarchy.reassign_parent(db, organization_id, payload.parent_id)
    except DomainError as e:
        raise http_error(e)
