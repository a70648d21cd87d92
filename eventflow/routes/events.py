from datetime import datetime

from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.orm import Session

from eventflow.core.errors import DomainError
from eventflow.database.db import get_db
from eventflow.routes.errors import http_error
from eventflow.schemas.events import CancelRequest, EventCreate, EventOut, EventUpdate, ReviewRequest
from eventflow.services import events as event_service

router = APIRouter(prefix="/events", tags=["events"])


@router.post("", response_model=EventOut, status_code=status.HTTP_201_CREATED)
def create_event(payload: EventCreate, db: Session = Depends(get_db)):
    data = payload.model_dump(exclude={"created_by"})
    try:
        return event_service.create_event(db, payload.created_by, data)
    except DomainError as e:
        raise http_error(e)


@router.get("/pending", response_model=list[EventOut])
def pending_events(organization_id: int = Query(ge=1), db: Session = Depends(get_db)):
    """Events waiting for this organization's review."""
    return event_service.list_pending_for(db, organization_id)


@router.get("/mine", response_model=list[EventOut])
def my_events(organization_id: int = Query(ge=1), db: Session = Depends(get_db)):
    return event_service.list_created_by(db, organization_id)


@router.get("/all", response_model=list[EventOut])
def all_events(organization_id: int = Query(ge=1), db: Session = Depends(get_db)):
    try:
        return event_service.list_all(db, organization_id)
    except DomainError as e:
        raise http_error(e)


@router.get("/recent", response_model=list[EventOut])
def recent_events(
    organization_id: int = Query(ge=1),
    limit: int | None = Query(default=None, ge=1, le=100),
    db: Session = Depends(get_db),
):
    try:
        return event_service.list_recent(db, organization_id, limit)
    except DomainError as e:
        raise http_error(e)


@router.get("/calendar", response_model=list[EventOut])
def calendar(start: datetime, end: datetime | None = None, db: Session = Depends(get_db)):
    return event_service.list_calendar(db, start, end)


@router.get("/{event_id}", response_model=EventOut)
def event_detail(event_id: int, db: Session = Depends(get_db)):
    try:
        return event_service.get_event(db, event_id)
    except DomainError as e:
        raise http_error(e)


@router.put("/{event_id}", response_model=EventOut)
def update_event(event_id: int, payload: EventUpdate, db: Session = Depends(get_db)):
    patch = payload.model_dump(exclude={"requested_by", "reset_status"}, exclude_none=True)
    try:
        return event_service.update_event(
            db, event_id, payload.requested_by, patch, reset_status=payload.reset_status
        )
    except DomainError as e:
        raise http_error(e)


@router.put("/{event_id}/review", response_model=EventOut)
def review_event(event_id: int, payload: ReviewRequest, db: Session = Depends(get_db)):
    try:
        return event_service.review_event(
            db, event_id, payload.organization_id, payload.status, payload.comments
        )
    except DomainError as e:
        raise http_error(e)


@router.put("/{event_id}/cancel", response_model=EventOut)
def cancel_event(event_id: int, payload: CancelRequest, db: Session = Depends(get_db)):
    try:
        return event_service.cancel_event(db, event_id, payload.organization_id)
    except DomainError as e:
        raise http_error(e)
