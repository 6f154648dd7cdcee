"""Pydantic v2 request/response schemas for campgrounds, site classes and sites."""

import uuid
from datetime import datetime

from pydantic import BaseModel, ConfigDict, Field, model_validator

# ---------------------------------------------------------------------------
# Request schemas
# ---------------------------------------------------------------------------


class CampgroundCreate(BaseModel):
    """Schema for creating a campground."""

    name: str = Field(..., min_length=1, max_length=255)
    slug: str = Field(..., min_length=1, max_length=255, pattern="^[a-z0-9]+(?:-[a-z0-9]+)*$")
    description: str | None = None
    default_min_nights: int = Field(1, ge=1)
    default_max_nights: int = Field(28, ge=1)

    @model_validator(mode="after")
    def check_nights(self) -> "CampgroundCreate":
        """Validate that the default stay bounds are consistent."""
        if self.default_min_nights > self.default_max_nights:
            raise ValueError("default_min_nights cannot exceed default_max_nights")
        return self


class CampgroundUpdate(BaseModel):
    """Schema for partially updating a campground. All fields optional."""

    name: str | None = Field(None, min_length=1, max_length=255)
    description: str | None = None
    default_min_nights: int | None = Field(None, ge=1)
    default_max_nights: int | None = Field(None, ge=1)


class SiteClassCreate(BaseModel):
    """Schema for creating a site class."""

    name: str = Field(..., min_length=1, max_length=100)
    default_rate_cents: int = Field(0, ge=0)


class SiteCreate(BaseModel):
    """Schema for creating a site."""

    site_class_id: uuid.UUID
    site_number: str = Field(..., min_length=1, max_length=50)
    name: str | None = Field(None, max_length=255)


# ---------------------------------------------------------------------------
# Response schemas
# ---------------------------------------------------------------------------


class CampgroundResponse(BaseModel):
    """Campground returned from the API."""

    id: uuid.UUID
    name: str
    slug: str
    description: str | None = None
    default_min_nights: int
    default_max_nights: int
    created_at: datetime
    updated_at: datetime

    model_config = ConfigDict(from_attributes=True)


class CampgroundListResponse(BaseModel):
    """Paginated list of campgrounds."""

    items: list[CampgroundResponse]
    total: int


class SiteClassResponse(BaseModel):
    id: uuid.UUID
    campground_id: uuid.UUID
    name: str
    default_rate_cents: int

    model_config = ConfigDict(from_attributes=True)


class SiteResponse(BaseModel):
    id: uuid.UUID
    campground_id: uuid.UUID
    site_class_id: uuid.UUID
    site_number: str
    name: str | None = None

    model_config = ConfigDict(from_attributes=True)
