from datetime import datetime
from decimal import Decimal

from pydantic import BaseModel, Field

from eventflow.models.enums import ApprovalStatus, BookingStatus, EventStatus


# ---------- Requests ----------
class EventCreate(BaseModel):
    # Event fields are optional here so that absent ones are reported together
    created_by: int = Field(ge=1)
    name: str | None = Field(default=None, max_length=200)
    start_at: datetime | None = None
    end_at: datetime | None = None
    venue_id: int | None = Field(default=None, ge=1)
    budget: Decimal | None = Field(default=None, ge=0)
    description: str | None = None
    expected_participants: int | None = Field(default=None, ge=1)
    required_resources: list[str] = Field(default_factory=list)


class EventUpdate(BaseModel):
    requested_by: int = Field(ge=1)
    name: str | None = Field(default=None, min_length=1, max_length=200)
    start_at: datetime | None = None
    end_at: datetime | None = None
    venue_id: int | None = Field(default=None, ge=1)
    budget: Decimal | None = Field(default=None, ge=0)
    description: str | None = Field(default=None, min_length=1)
    expected_participants: int | None = Field(default=None, ge=1)
    required_resources: list[str] | None = None
    reset_status: bool = False


class ReviewRequest(BaseModel):
    organization_id: int = Field(ge=1)
    # Checked by the service so an unknown value is a 400, not a 422
    status: str
    comments: str | None = None


class CancelRequest(BaseModel):
    organization_id: int = Field(ge=1)


# ---------- Responses ----------
class ApprovalEntryOut(BaseModel):
    organization_id: int
    status: ApprovalStatus
    comments: str | None
    timestamp: datetime | None

    class Config:
        from_attributes = True


class ModificationEntryOut(BaseModel):
    requested_by_id: int
    comments: str | None
    timestamp: datetime | None

    class Config:
        from_attributes = True


class EventOut(BaseModel):
    id: int
    name: str
    created_by_id: int
    start_at: datetime
    end_at: datetime
    venue_id: int
    budget: Decimal
    description: str
    expected_participants: int
    required_resources: list[str]
    status: EventStatus
    booking_status: BookingStatus | None
    approval_chain: list[ApprovalEntryOut]
    modification_history: list[ModificationEntryOut]
    created_at: datetime | None
    updated_at: datetime | None

    class Config:
        from_attributes = True
