"""
Property service for managing listings with ownership validation.
Handles CRUD operations, search, the homescreen feed, and the owner back-reference.
"""

from typing import List, Optional, Tuple
from motor.motor_asyncio import AsyncIOMotorDatabase
import logging

from marketplace.config import settings
from marketplace.models.property import Property
from marketplace.repositories.base import utc_now
from marketplace.repositories.property import PropertyRepository, PropertySearchFilters
from marketplace.repositories.user import UserRepository
from marketplace.schemas.property import PropertyCreate, PropertyUpdate
from marketplace.services.consistency import WriteStep, run_paired_writes
from marketplace.utils.exceptions import (
    PropertyNotFoundError,
    PropertyOwnershipError,
    UserNotFoundError,
    ValidationError
)
from marketplace.utils.identity import IdentityVerifier, default_verifier
from marketplace.utils.validators import ValidationUtils

logger = logging.getLogger(__name__)


class PropertyService:
    """
    Property service for listing management.
    Ownership is exact equality between the stored owner email and the verified caller email.
    """

    def __init__(self, db: AsyncIOMotorDatabase, identity_verifier: Optional[IdentityVerifier] = None):
        self.db = db
        self.property_repo = PropertyRepository(db)
        self.user_repo = UserRepository(db)
        self.verifier = identity_verifier or default_verifier

    async def create_property(self, caller_email: Optional[str], property_data: PropertyCreate) -> Tuple[Property, Optional[str]]:
        """
        Create a listing owned by the caller and append it to the owner's posted_properties.

        Args:
            caller_email: Claimed owner email
            property_data: Listing content

        Returns:
            Tuple of (created property, partial failure warning or None)

        Raises:
            ValidationError: If the email is missing or malformed
            UserNotFoundError: If the owner is not registered
            StoreError: If the listing insert fails
        """
        email = await self.verifier.verify(caller_email)
        owner = await self.user_repo.get_by_email(email)
        if not owner:
            raise UserNotFoundError(email)

        property_obj = Property.new(owner, property_data.model_dump(exclude={"owner_email"}), utc_now())

        result = await run_paired_writes([
            WriteStep(
                name="insert_property",
                operation=lambda: self.property_repo.create_property(property_obj),
                failure_message="Failed to create property"
            ),
            WriteStep(
                name="append_posted_property",
                operation=lambda: self.user_repo.append_posted_property(email, property_obj.id),
                failure_message="Property created but failed to update the owner's posted properties"
            ),
        ])

        logger.info(f"Property created by {email}: {property_obj.title} (ID: {property_obj.id})")
        return property_obj, result.warning

    async def get_property(self, property_id: str) -> Property:
        """
        Get a listing by id.

        Raises:
            ValidationError: If the id is malformed
            PropertyNotFoundError: If the listing does not exist
        """
        property_obj = await self.property_repo.get_by_id(property_id)
        if not property_obj:
            raise PropertyNotFoundError(property_id)
        return property_obj

    async def update_property(
        self,
        property_id: str,
        caller_email: Optional[str],
        property_data: PropertyUpdate
    ) -> Property:
        """
        Update listing content as its owner.

        Args:
            property_id: Listing id
            caller_email: Claimed owner email
            property_data: Fields to overwrite, omitted fields are left unchanged

        Returns:
            The updated listing

        Raises:
            PropertyNotFoundError: If the listing does not exist
            PropertyOwnershipError: If the caller is not the owner
        """
        ValidationUtils.parse_object_id(property_id, "property ID")
        email = await self.verifier.verify(caller_email)
        property_obj = await self.get_property(property_id)

        if not property_obj.is_owned_by(email):
            logger.warning(f"User {email} attempted to update property {property_id} owned by {property_obj.owner_email}")
            raise PropertyOwnershipError("update")

        # owner_email and the rental state are never writable through an update
        fields = {
            key: value for key, value in property_data.listing_fields().items()
            if key in Property.UPDATABLE_FIELDS
        }
        matched = await self.property_repo.update_listing(property_id, fields)
        if not matched:
            raise PropertyNotFoundError(property_id)

        logger.info(f"Property updated by {email}: {property_id} fields={sorted(fields)}")
        return await self.get_property(property_id)

    async def delete_property(self, property_id: str, caller_email: Optional[str]) -> Optional[str]:
        """
        Delete a listing as its owner and prune it from the owner's posted_properties.

        Returns:
            Partial failure warning or None

        Raises:
            PropertyNotFoundError: If the listing does not exist
            PropertyOwnershipError: If the caller is not the owner
        """
        ValidationUtils.parse_object_id(property_id, "property ID")
        email = await self.verifier.verify(caller_email)
        property_obj = await self.get_property(property_id)

        if not property_obj.is_owned_by(email):
            logger.warning(f"User {email} attempted to delete property {property_id} owned by {property_obj.owner_email}")
            raise PropertyOwnershipError("delete")

        async def delete_listing():
            if not await self.property_repo.delete_by_id(property_id):
                raise PropertyNotFoundError(property_id)

        result = await run_paired_writes([
            WriteStep(
                name="delete_property",
                operation=delete_listing,
                failure_message="Failed to delete property"
            ),
            WriteStep(
                name="prune_posted_property",
                operation=lambda: self.user_repo.remove_reference(
                    "posted_properties", property_id, email=property_obj.owner_email
                ),
                failure_message="Property deleted but failed to update the owner's posted properties"
            ),
        ])

        logger.info(f"Property deleted by {email}: {property_id}")
        return result.warning

    async def search_properties(
        self,
        filters: PropertySearchFilters,
        skip: int = 0,
        limit: Optional[int] = None
    ) -> List[Property]:
        """
        Search listings by location and price range.

        Args:
            filters: Search filters
            skip: Number of records to skip
            limit: Maximum number of records, defaults to settings.default_search_limit

        Returns:
            Matching listings in insertion order
        """
        if skip < 0 or (limit is not None and limit < 0):
            raise ValidationError("skip and limit must be non-negative")
        limit = settings.default_search_limit if limit is None else limit
        return await self.property_repo.search_properties(filters, skip=skip, limit=limit)

    async def get_homescreen_properties(self, caller_email: Optional[str]) -> List[Property]:
        """
        Listings located in any of the user's preferred locations.

        Raises:
            UserNotFoundError: If the user is not registered
            ValidationError: If the user has no preferred locations
        """
        email = await self.verifier.verify(caller_email)
        user = await self.user_repo.get_by_email(email)
        if not user:
            raise UserNotFoundError(email)

        if not user.preferred_locations:
            raise ValidationError("Preferred locations not set")

        properties = await self.property_repo.find_in_locations(user.preferred_locations)
        logger.debug(f"Homescreen for {email}: {len(properties)} properties in {user.preferred_locations}")
        return properties
