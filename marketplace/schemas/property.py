"""
Pydantic schemas for property requests and responses.
Handles listing creation, updates, and the property views returned by queries.
"""

from pydantic import BaseModel, Field, field_validator
from typing import Optional, List
from datetime import datetime
from marketplace.schemas.user import UserSummary


class PropertyBase(BaseModel):
    """Listing content shared by create and response schemas."""

    title: str = Field(
        ...,
        min_length=1,
        max_length=255,
        description="Property listing title",
        examples=["Modern 2BHK Apartment"]
    )

    description: str = Field(
        "",
        max_length=5000,
        description="Detailed property description",
        examples=["Spacious apartment near downtown."]
    )

    price: float = Field(
        ...,
        ge=0,
        description="Monthly rent",
        examples=[2500]
    )

    location: str = Field(
        ...,
        min_length=1,
        max_length=255,
        description="Property location, matched exactly by search and homescreen",
        examples=["Austin"]
    )

    thumbnail: Optional[str] = Field(None, description="Thumbnail image URL")

    pictures: List[str] = Field(default_factory=list, description="Picture URLs")

    @field_validator('title', 'location')
    @classmethod
    def strip_required_text(cls, v):
        """Reject blank text and strip surrounding whitespace."""
        if not v or not v.strip():
            raise ValueError("Value cannot be empty")
        return v.strip()


class PropertyCreate(PropertyBase):
    """
    Schema for creating a new property.
    Owner fields are taken from the user document, not from the request.
    """

    owner_email: Optional[str] = Field(
        None,
        description="Owner email, used when the email query parameter is absent"
    )


class PropertyUpdate(BaseModel):
    """Schema for updating an existing property. Omitted fields are left unchanged."""

    owner_email: Optional[str] = Field(
        None,
        description="Caller identity; must match the stored owner email"
    )
    title: Optional[str] = Field(None, min_length=1, max_length=255)
    description: Optional[str] = Field(None, max_length=5000)
    price: Optional[float] = Field(None, ge=0)
    location: Optional[str] = Field(None, min_length=1, max_length=255)
    thumbnail: Optional[str] = None
    pictures: Optional[List[str]] = None

    @field_validator('title', 'location')
    @classmethod
    def strip_supplied_text(cls, v):
        """Apply the create rules to title and location when they are supplied."""
        if v is None:
            return v
        if not v.strip():
            raise ValueError("Value cannot be empty")
        return v.strip()

    def listing_fields(self) -> dict:
        """Listing fields that were supplied, without the identity claim."""
        return self.model_dump(exclude={"owner_email"}, exclude_none=True)


class PropertyResponse(BaseModel):
    """Schema for property responses."""

    id: str = Field(..., description="Property ID (hex ObjectId)")
    title: str
    description: str
    price: float
    location: str
    thumbnail: Optional[str] = None
    pictures: List[str] = []

    owner_email: str
    owner_name: str
    owner_pic: Optional[str] = None

    is_rented: bool
    rented_by_email: Optional[str] = None
    rented_by_id: Optional[str] = None
    rental_requests: List[str] = []
    liked_by: List[str] = []

    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None


class PropertyCreatedResponse(PropertyResponse):
    """Created property; ``warning`` reports a failed owner back-reference write."""

    warning: Optional[str] = Field(
        None,
        description="Partial failure message when the owner's posted list was not updated"
    )


class PropertyWithRequestersResponse(PropertyResponse):
    """Property with the profiles of users currently requesting to rent it."""

    requesting_users: List[UserSummary] = []
