from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from eventflow.core.errors import DomainError
from eventflow.database.db import get_db
from eventflow.routes.errors import http_error
from eventflow.schemas.reports import OrganizationStatsOut
from eventflow.services.reports import get_organization_stats

router = APIRouter(prefix="/reports", tags=["reports"])


@router.get("/organizations/{organization_id}", response_model=OrganizationStatsOut)
def organization_report(organization_id: int, db: Session = Depends(get_db)):
    """Event statistics scoped to what the organization can see."""
    try:
        return get_organization_stats(db, organization_id)
    except DomainError as e:
        raise http_error(e)
