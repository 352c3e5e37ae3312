"""
User document model.
Holds profile data and the denormalized property back-references of a user.
"""

from datetime import datetime
from typing import Any, ClassVar, Dict, List, Optional, Tuple

from bson import ObjectId
from pydantic import BaseModel, Field

from marketplace.utils.validators import to_hex_ids, to_object_ids


class User(BaseModel):
    """
    User document stored in the ``users`` collection.
    Reference lists hold property ids and are only maintained by explicit dual writes.
    """

    REFERENCE_FIELDS: ClassVar[Tuple[str, ...]] = (
        "posted_properties",
        "liked_properties",
        "rented_properties",
        "rental_requests",
    )

    id: str
    email: str
    name: str = ""
    profile_pic: Optional[str] = None
    location: Optional[str] = None
    preferred_locations: List[str] = Field(default_factory=list)

    # Back-references to property ids
    posted_properties: List[str] = Field(default_factory=list)
    liked_properties: List[str] = Field(default_factory=list)
    rented_properties: List[str] = Field(default_factory=list)
    rental_requests: List[str] = Field(default_factory=list)

    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    def __repr__(self) -> str:
        """String representation of the user."""
        return f"<User(id={self.id}, email={self.email})>"

    @classmethod
    def new(
        cls,
        email: str,
        name: str,
        now: datetime,
        profile_pic: Optional[str] = None,
        location: Optional[str] = None,
        preferred_locations: Optional[List[str]] = None,
    ) -> "User":
        """
        Build a freshly registered user with empty reference lists.

        Args:
            email: Normalized email, the natural key
            name: Display name
            now: Creation timestamp used for both created_at and updated_at
            profile_pic: Optional profile picture URL
            location: Optional current location
            preferred_locations: Optional homescreen locations

        Returns:
            Unsaved User instance with a generated id
        """
        return cls(
            id=str(ObjectId()),
            email=email,
            name=name,
            profile_pic=profile_pic,
            location=location,
            preferred_locations=list(preferred_locations or []),
            created_at=now,
            updated_at=now,
        )

    @classmethod
    def from_mongo(cls, document: Dict[str, Any]) -> "User":
        """Build a User from a raw store document."""
        data = dict(document)
        data["id"] = str(data.pop("_id"))
        for field in cls.REFERENCE_FIELDS:
            data[field] = to_hex_ids(data.get(field) or [])
        data["preferred_locations"] = list(data.get("preferred_locations") or [])
        return cls.model_validate(data)

    def to_mongo(self) -> Dict[str, Any]:
        """Serialize to a store document with ObjectId references."""
        document = self.model_dump(exclude={"id"})
        document["_id"] = ObjectId(self.id)
        for field in self.REFERENCE_FIELDS:
            document[field] = to_object_ids(getattr(self, field))
        return document

    def to_dict(self) -> dict:
        """Convert user to a response dictionary."""
        return self.model_dump()

    def has_reference(self, field: str, property_id: str) -> bool:
        """Check whether a property id is present in one of the reference lists."""
        if field not in self.REFERENCE_FIELDS:
            raise ValueError(f"Unknown reference field: {field}")
        return property_id in getattr(self, field)
