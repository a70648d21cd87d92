from pydantic import BaseModel, Field


class OrganizationCreate(BaseModel):
    name: str = Field(min_length=1, max_length=200)
    org_id: str = Field(min_length=1, max_length=64)
    # Hashed by the auth layer before it reaches this service
    password_hash: str = Field(min_length=1)
    parent_id: int | None = Field(default=None, ge=1)


class ParentUpdate(BaseModel):
    parent_id: int | None = Field(default=None, ge=1)


class OrganizationOut(BaseModel):
    id: int
    org_id: str
    name: str
    parent_id: int | None
    level: int
    is_venue_manager: bool

    class Config:
        from_attributes = True


class HierarchyNodeOut(BaseModel):
    id: int
    org_id: str
    name: str
    level: int
    is_venue_manager: bool
    children: list["HierarchyNodeOut"] = []

    class Config:
        from_attributes = True
