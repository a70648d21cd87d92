from pydantic import BaseModel


class OrganizationStatsOut(BaseModel):
    total_events: int
    pending_events: int
    approved_events: int
    rejected_events: int
    cancelled_events: int
    total_venues: int | None = None
    pending_bookings: int | None = None
    confirmed_bookings: int | None = None
    upcoming_events: int | None = None
    total_organizations: int | None = None
