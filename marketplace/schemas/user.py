"""
Pydantic schemas for user requests and responses.
Handles registration, profile updates, and user views.
"""

from pydantic import BaseModel, EmailStr, Field, field_validator
from typing import Optional, List
from datetime import datetime


def _clean_locations(values: List[str]) -> List[str]:
    """Strip, drop blanks and de-duplicate while keeping order."""
    cleaned = []
    for value in values:
        value = value.strip()
        if value and value not in cleaned:
            cleaned.append(value)
    return cleaned


class UserRegister(BaseModel):
    """Schema for registering (or logging in) a user."""

    email: EmailStr = Field(
        ...,
        description="User's email address, the natural key",
        examples=["alice@example.com"]
    )

    name: str = Field(
        "",
        max_length=255,
        description="Display name",
        examples=["Alice Smith"]
    )

    profile_pic: Optional[str] = Field(None, description="Profile picture URL")

    location: Optional[str] = Field(None, max_length=255, description="Current location")

    preferred_locations: List[str] = Field(
        default_factory=list,
        description="Locations used to build the homescreen feed",
        examples=[["Austin", "Dallas"]]
    )

    @field_validator('name')
    @classmethod
    def strip_name(cls, v):
        return v.strip()

    @field_validator('preferred_locations')
    @classmethod
    def clean_preferred_locations(cls, v):
        return _clean_locations(v)


class LocationUpdate(BaseModel):
    """Schema for updating the current location."""

    location: str = Field(..., max_length=255, examples=["Austin"])


class PreferredLocationsUpdate(BaseModel):
    """Schema for replacing the preferred locations."""

    preferred_locations: List[str] = Field(..., examples=[["Austin", "New York"]])

    @field_validator('preferred_locations')
    @classmethod
    def clean_preferred_locations(cls, v):
        return _clean_locations(v)


class UserSummary(BaseModel):
    """Public profile embedded in other responses."""

    id: str
    email: str
    name: str
    profile_pic: Optional[str] = None
    location: Optional[str] = None


class UserResponse(UserSummary):
    """Schema for full user responses."""

    preferred_locations: List[str] = []
    posted_properties: List[str] = []
    liked_properties: List[str] = []
    rented_properties: List[str] = []
    rental_requests: List[str] = []
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None
