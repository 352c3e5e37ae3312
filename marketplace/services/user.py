"""
User service for registration, profile updates and the user-centric property lookups.
"""

from typing import List, Optional, Tuple
from motor.motor_asyncio import AsyncIOMotorDatabase
import logging

from marketplace.models.property import Property
from marketplace.models.user import User
from marketplace.repositories.base import utc_now
from marketplace.repositories.property import PropertyRepository
from marketplace.repositories.user import UserRepository
from marketplace.schemas.user import UserRegister
from marketplace.utils.exceptions import UserNotFoundError
from marketplace.utils.identity import IdentityVerifier, default_verifier

logger = logging.getLogger(__name__)


class UserService:
    """
    User service handling registration (which doubles as login) and profile management.
    Every email supplied by a caller is passed through the identity verifier first.
    """

    def __init__(self, db: AsyncIOMotorDatabase, identity_verifier: Optional[IdentityVerifier] = None):
        self.db = db
        self.user_repo = UserRepository(db)
        self.property_repo = PropertyRepository(db)
        self.verifier = identity_verifier or default_verifier

    async def register_or_fetch(self, registration: UserRegister) -> Tuple[User, bool]:
        """
        Return the user registered under the email, creating it when absent.

        Args:
            registration: Registration payload

        Returns:
            Tuple of (user, created) where created is False for an existing user

        Raises:
            ValidationError: If the email is malformed
            RegistrationConflictError: If a concurrent registration won the insert
            StoreError: On any other store failure
        """
        email = await self.verifier.verify(registration.email)

        existing = await self.user_repo.get_by_email(email)
        if existing:
            logger.info(f"Existing user logged in: {email}")
            return existing, False

        user = User.new(
            email=email,
            name=registration.name,
            now=utc_now(),
            profile_pic=registration.profile_pic,
            location=registration.location,
            preferred_locations=registration.preferred_locations,
        )
        created = await self.user_repo.create_user(user)
        logger.info(f"Registered new user: {email}")
        return created, True

    async def get_user(self, email: str) -> User:
        """
        Get a user by email.

        Raises:
            UserNotFoundError: If no user has the email
        """
        email = await self.verifier.verify(email)
        user = await self.user_repo.get_by_email(email)
        if not user:
            raise UserNotFoundError(email)
        return user

    async def update_location(self, email: str, location: str) -> User:
        """Set the current location of a user and return the refreshed record."""
        email = await self.verifier.verify(email)
        matched = await self.user_repo.update_fields_by_email(email, {"location": location.strip()})
        if not matched:
            raise UserNotFoundError(email)
        logger.info(f"Updated location for {email}")
        return await self._refetch(email)

    async def update_preferred_locations(self, email: str, locations: List[str]) -> User:
        """Replace the preferred locations of a user and return the refreshed record."""
        email = await self.verifier.verify(email)
        matched = await self.user_repo.update_fields_by_email(email, {"preferred_locations": list(locations)})
        if not matched:
            raise UserNotFoundError(email)
        logger.info(f"Updated preferred locations for {email}: {locations}")
        return await self._refetch(email)

    async def get_liked_properties(self, email: str) -> List[Property]:
        """Properties in the user's liked_properties list."""
        return await self._lookup(email, "liked_properties")

    async def get_posted_properties(self, email: str) -> List[Property]:
        """Properties in the user's posted_properties list."""
        return await self._lookup(email, "posted_properties")

    async def get_rented_properties(self, email: str) -> List[Property]:
        """Properties in the user's rented_properties list."""
        return await self._lookup(email, "rented_properties")

    async def get_requested_properties(self, email: str) -> List[Property]:
        """Properties the user has an outstanding rental request for."""
        return await self._lookup(email, "rental_requests")

    async def _lookup(self, email: str, field: str) -> List[Property]:
        user = await self.get_user(email)
        property_ids = getattr(user, field)
        if not property_ids:
            return []
        properties = await self.property_repo.find_by_ids(property_ids)
        logger.debug(f"Resolved {len(properties)}/{len(property_ids)} {field} for {user.email}")
        return properties

    async def _refetch(self, email: str) -> User:
        user = await self.user_repo.get_by_email(email)
        if not user:
            raise UserNotFoundError(email)
        return user
