"""
User repository for registration, profile updates, and back-reference maintenance.
Each back-reference mutation is a single-document write; pairing is done by services.
"""

from motor.motor_asyncio import AsyncIOMotorDatabase
from pymongo.errors import DuplicateKeyError
from bson import ObjectId
from typing import Any, Dict, Optional, Union
import logging

from marketplace.database import USERS_COLLECTION
from marketplace.models.user import User
from marketplace.repositories.base import BaseRepository
from marketplace.utils.exceptions import RegistrationConflictError
from marketplace.utils.validators import ValidationUtils

logger = logging.getLogger(__name__)


class UserRepository(BaseRepository[User]):
    """
    Repository for user documents.
    Users are addressed by email in most flows and by id in the rental workflow.
    """

    def __init__(self, db: AsyncIOMotorDatabase, timeout: Optional[float] = None):
        super().__init__(User, db[USERS_COLLECTION], timeout)

    async def get_by_email(self, email: str) -> Optional[User]:
        """
        Get user by email address.

        Args:
            email: Normalized email

        Returns:
            User or None if not found
        """
        return await self.get_by_field("email", email)

    async def create_user(self, user: User) -> User:
        """
        Insert a newly registered user.

        Args:
            user: User built by User.new

        Returns:
            The persisted user

        Raises:
            RegistrationConflictError: If the store rejects the email as a duplicate
        """
        try:
            created = await self.create(user)
        except DuplicateKeyError:
            raise RegistrationConflictError(user.email)
        logger.info(f"Created user: {created.email} (ID: {created.id})")
        return created

    async def update_fields_by_email(self, email: str, fields: Dict[str, Any]) -> int:
        """
        Overwrite profile fields and refresh updated_at.

        Returns:
            Number of matched users
        """
        return await self.update_one({"email": email}, self.build_update(set_fields=fields))

    def _reference_filter(self, user_id: Optional[Union[str, ObjectId]], email: Optional[str]) -> Dict[str, Any]:
        if user_id is not None:
            return {"_id": ValidationUtils.parse_object_id(user_id, "user ID")}
        if email:
            return {"email": email}
        raise ValueError("Either user_id or email is required")

    @staticmethod
    def _check_reference_field(field: str) -> None:
        if field not in User.REFERENCE_FIELDS:
            raise ValueError(f"Unknown reference field: {field}")

    async def add_reference(
        self,
        field: str,
        property_id: Union[str, ObjectId],
        user_id: Optional[Union[str, ObjectId]] = None,
        email: Optional[str] = None
    ) -> int:
        """Insert a property id into a reference list with set semantics."""
        self._check_reference_field(field)
        object_id = ValidationUtils.parse_object_id(property_id, "property ID")
        return await self.update_one(
            self._reference_filter(user_id, email),
            self.build_update(add_to_set={field: object_id})
        )

    async def remove_reference(
        self,
        field: str,
        property_id: Union[str, ObjectId],
        user_id: Optional[Union[str, ObjectId]] = None,
        email: Optional[str] = None
    ) -> int:
        """Remove a property id from a reference list; removing an absent id is a no-op."""
        self._check_reference_field(field)
        object_id = ValidationUtils.parse_object_id(property_id, "property ID")
        return await self.update_one(
            self._reference_filter(user_id, email),
            self.build_update(pull={field: object_id})
        )

    async def append_posted_property(self, email: str, property_id: Union[str, ObjectId]) -> int:
        """Append a newly created listing to the owner's posted_properties."""
        object_id = ValidationUtils.parse_object_id(property_id, "property ID")
        return await self.update_one(
            {"email": email},
            self.build_update(push={"posted_properties": object_id})
        )
