"""
Property document model for rental listings.
Handles listing data, the owner snapshot, likes, and rental request state.
"""

from datetime import datetime
from typing import Any, ClassVar, Dict, List, Optional, Tuple
import enum

from bson import ObjectId
from pydantic import BaseModel, Field

from marketplace.models.user import User
from marketplace.utils.validators import to_hex_ids, to_object_ids


class RentalAction(str, enum.Enum):
    """Owner decision on a pending rental request."""
    ACCEPT = "accept"
    REJECT = "reject"


class RentalRequestState(str, enum.Enum):
    """
    Lifecycle of a (property, user) rental pair.
    REJECTED is never stored: a rejected pair is indistinguishable from NONE.
    """
    NONE = "none"
    REQUESTED = "requested"
    ACCEPTED = "accepted"
    REJECTED = "rejected"


class Property(BaseModel):
    """
    Property document stored in the ``properties`` collection.
    Owner fields are a snapshot taken at creation and are never re-synced.
    """

    UPDATABLE_FIELDS: ClassVar[Tuple[str, ...]] = (
        "title",
        "description",
        "price",
        "location",
        "thumbnail",
        "pictures",
    )

    id: str
    title: str = ""
    description: str = ""
    price: float = 0.0
    location: str = ""
    thumbnail: Optional[str] = None
    pictures: List[str] = Field(default_factory=list)

    # Owner snapshot
    owner_email: str
    owner_name: str = ""
    owner_pic: Optional[str] = None

    # Rental state
    is_rented: bool = False
    rented_by_email: Optional[str] = None
    rented_by_id: Optional[str] = None
    rental_requests: List[str] = Field(default_factory=list)

    liked_by: List[str] = Field(default_factory=list)

    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    def __repr__(self) -> str:
        """String representation of the property."""
        return f"<Property(id={self.id}, title={self.title}, owner={self.owner_email})>"

    @classmethod
    def new(cls, owner: User, listing: Dict[str, Any], now: datetime) -> "Property":
        """
        Build a new listing owned by ``owner``.

        Args:
            owner: Existing user whose name and picture are snapshotted
            listing: Listing content (title, description, price, location, thumbnail, pictures)
            now: Creation timestamp

        Returns:
            Unsaved Property instance with a generated id
        """
        content = {k: v for k, v in listing.items() if k in cls.UPDATABLE_FIELDS and v is not None}
        return cls(
            id=str(ObjectId()),
            owner_email=owner.email,
            owner_name=owner.name,
            owner_pic=owner.profile_pic,
            is_rented=False,
            created_at=now,
            updated_at=now,
            **content,
        )

    @classmethod
    def from_mongo(cls, document: Dict[str, Any]) -> "Property":
        """Build a Property from a raw store document."""
        data = dict(document)
        data["id"] = str(data.pop("_id"))
        data["rental_requests"] = to_hex_ids(data.get("rental_requests") or [])
        data["pictures"] = list(data.get("pictures") or [])
        data["liked_by"] = list(data.get("liked_by") or [])
        if data.get("rented_by_id") is not None:
            data["rented_by_id"] = str(data["rented_by_id"])
        # Joined documents are not part of the property itself
        data.pop("requesting_users", None)
        return cls.model_validate(data)

    def to_mongo(self) -> Dict[str, Any]:
        """Serialize to a store document with ObjectId references."""
        document = self.model_dump(exclude={"id"})
        document["_id"] = ObjectId(self.id)
        document["rental_requests"] = to_object_ids(self.rental_requests)
        if self.rented_by_id is not None:
            document["rented_by_id"] = ObjectId(self.rented_by_id)
        return document

    def to_dict(self) -> dict:
        """Convert property to a response dictionary."""
        return self.model_dump()

    def is_owned_by(self, email: Optional[str]) -> bool:
        """Ownership is exact equality between the stored owner email and the caller."""
        return bool(email) and self.owner_email == email

    def rental_state_for(self, user_id: str) -> RentalRequestState:
        """
        Derive the rental request state of a user for this property.

        Args:
            user_id: Hex id of the user

        Returns:
            ACCEPTED if the user is the current renter, REQUESTED if a request is
            pending, otherwise NONE
        """
        if self.is_rented and self.rented_by_id == user_id:
            return RentalRequestState.ACCEPTED
        if user_id in self.rental_requests:
            return RentalRequestState.REQUESTED
        return RentalRequestState.NONE
