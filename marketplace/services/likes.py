"""
Like service maintaining the symmetric liked_by / liked_properties pair.
"""

from typing import Optional, Tuple
from motor.motor_asyncio import AsyncIOMotorDatabase
import logging

from marketplace.models.property import Property
from marketplace.models.user import User
from marketplace.repositories.property import PropertyRepository
from marketplace.repositories.user import UserRepository
from marketplace.services.consistency import PairedWriteResult, WriteStep, run_paired_writes
from marketplace.utils.exceptions import PropertyNotFoundError, UserNotFoundError
from marketplace.utils.identity import IdentityVerifier, default_verifier

logger = logging.getLogger(__name__)


class LikeService:
    """
    Like/unlike as two independent set writes, one per collection.
    Both writes are always attempted; the outcome of each is reported.
    """

    def __init__(self, db: AsyncIOMotorDatabase, identity_verifier: Optional[IdentityVerifier] = None):
        self.db = db
        self.property_repo = PropertyRepository(db)
        self.user_repo = UserRepository(db)
        self.verifier = identity_verifier or default_verifier

    async def like(self, property_id: str, caller_email: Optional[str]) -> PairedWriteResult:
        """
        Add the caller to the property's likes and the property to the caller's liked list.
        Liking twice is a no-op.
        """
        property_obj, user = await self._resolve(property_id, caller_email)

        result = await run_paired_writes([
            WriteStep(
                name="add_property_like",
                operation=lambda: self.property_repo.add_like(property_obj.id, user.email),
                failure_message="Failed to record like on property"
            ),
            WriteStep(
                name="add_user_liked_property",
                operation=lambda: self.user_repo.add_reference("liked_properties", property_obj.id, user_id=user.id),
                failure_message="Failed to record liked property on user"
            ),
        ], stop_on_failure=False)

        logger.info(f"User {user.email} liked property {property_obj.id}")
        return result

    async def unlike(self, property_id: str, caller_email: Optional[str]) -> PairedWriteResult:
        """
        Remove the caller from the property's likes and the property from the caller's liked list.
        Unliking a property that is not liked is a no-op.
        """
        property_obj, user = await self._resolve(property_id, caller_email)

        result = await run_paired_writes([
            WriteStep(
                name="remove_property_like",
                operation=lambda: self.property_repo.remove_like(property_obj.id, user.email),
                failure_message="Failed to remove like from property"
            ),
            WriteStep(
                name="remove_user_liked_property",
                operation=lambda: self.user_repo.remove_reference("liked_properties", property_obj.id, user_id=user.id),
                failure_message="Failed to remove liked property from user"
            ),
        ], stop_on_failure=False)

        logger.info(f"User {user.email} unliked property {property_obj.id}")
        return result

    async def _resolve(self, property_id: str, caller_email: Optional[str]) -> Tuple[Property, User]:
        email = await self.verifier.verify(caller_email)

        property_obj = await self.property_repo.get_by_id(property_id)
        if not property_obj:
            raise PropertyNotFoundError(property_id)

        user = await self.user_repo.get_by_email(email)
        if not user:
            raise UserNotFoundError(email)

        return property_obj, user
