"""
Rental service implementing the request / accept / reject handshake.

Per (property, user) pair the state moves NONE -> REQUESTED -> ACCEPTED or REJECTED,
where REJECTED leaves no record and is equivalent to NONE. The state is stored twice,
once in each document's rental_requests, and every transition is an ordered sequence of
single-document writes that stops at the first failure.
"""

from typing import List, Optional, Tuple
from motor.motor_asyncio import AsyncIOMotorDatabase
import logging

from marketplace.models.property import Property, RentalAction, RentalRequestState
from marketplace.models.user import User
from marketplace.repositories.property import PropertyRepository
from marketplace.repositories.user import UserRepository
from marketplace.services.consistency import PairedWriteResult, WriteStep, run_paired_writes
from marketplace.utils.exceptions import (
    PropertyNotFoundError,
    RentalRequestStateError,
    UserNotFoundError,
    ValidationError
)
from marketplace.utils.identity import IdentityVerifier, default_verifier
from marketplace.utils.validators import ValidationUtils

logger = logging.getLogger(__name__)


class RentalService:
    """Rental request workflow across the properties and users collections."""

    def __init__(self, db: AsyncIOMotorDatabase, identity_verifier: Optional[IdentityVerifier] = None):
        self.db = db
        self.property_repo = PropertyRepository(db)
        self.user_repo = UserRepository(db)
        self.verifier = identity_verifier or default_verifier

    async def request_rental(self, property_id: str, user_id: Optional[str]) -> PairedWriteResult:
        """
        Record a rental request from a user (NONE -> REQUESTED).
        Requesting again leaves exactly one entry on each side. The current renter
        cannot request again, since an accepted pair has no pending request.

        Args:
            property_id: Listing id
            user_id: Requesting user id

        Returns:
            PairedWriteResult, partial when the user side was not written

        Raises:
            ValidationError: If either id is missing or malformed
            PropertyNotFoundError: If the listing does not exist
            UserNotFoundError: If the user does not exist
            RentalRequestStateError: If the user already rents the listing
        """
        ValidationUtils.parse_object_id(property_id, "property ID")
        ValidationUtils.parse_object_id(user_id, "user ID")

        property_obj = await self._get_property(property_id)
        user = await self._get_user(user_id)

        state = property_obj.rental_state_for(user.id)
        if state == RentalRequestState.ACCEPTED:
            raise RentalRequestStateError(
                f"User {user.id} already rents property {property_obj.id} (current state: {state.value})"
            )

        result = await run_paired_writes([
            WriteStep(
                name="add_property_rental_request",
                operation=lambda: self.property_repo.add_rental_request(property_obj.id, user.id),
                failure_message="Failed to record rental request on property"
            ),
            WriteStep(
                name="add_user_rental_request",
                operation=lambda: self.user_repo.add_reference("rental_requests", property_obj.id, user_id=user.id),
                failure_message="Rental request recorded on property but failed to update the user"
            ),
        ])

        logger.info(f"User {user.email} requested to rent property {property_obj.id}")
        return result

    async def resolve_request(
        self,
        property_id: str,
        renter_id: Optional[str],
        action: Optional[str]
    ) -> Tuple[RentalRequestState, PairedWriteResult]:
        """
        Accept or reject a pending request (REQUESTED -> ACCEPTED | REJECTED).

        Both sides of the request are removed first; on accept the listing is then
        marked rented by the requester and added to their rented_properties. A later
        accept for another requester overwrites the renter.

        Args:
            property_id: Listing id
            renter_id: Requesting user id
            action: ``accept`` or ``reject``

        Returns:
            Tuple of (resulting state, write result)

        Raises:
            ValidationError: If an id or the action is invalid
            RentalRequestStateError: If the pair is not in the REQUESTED state
            PropertyNotFoundError: If the listing does not exist
        """
        ValidationUtils.parse_object_id(property_id, "property ID")
        renter_key = str(ValidationUtils.parse_object_id(renter_id, "renter ID"))
        decision = self._parse_action(action)

        property_obj = await self._get_property(property_id)
        state = property_obj.rental_state_for(renter_key)
        if state != RentalRequestState.REQUESTED:
            raise RentalRequestStateError(
                f"No pending rental request from user {renter_key} for property {property_id} "
                f"(current state: {state.value})"
            )

        steps = [
            WriteStep(
                name="remove_property_rental_request",
                operation=lambda: self.property_repo.remove_rental_request(property_obj.id, renter_key),
                failure_message="Failed to remove rental request from property"
            ),
            WriteStep(
                name="remove_user_rental_request",
                operation=lambda: self.user_repo.remove_reference("rental_requests", property_obj.id, user_id=renter_key),
                failure_message="Rental request removed from property but failed to update the requester"
            ),
        ]

        if decision == RentalAction.ACCEPT:
            renter = await self._get_user(renter_key)
            steps.extend([
                WriteStep(
                    name="mark_property_rented",
                    operation=lambda: self.property_repo.mark_rented(property_obj.id, renter),
                    failure_message="Rental request removed but failed to mark property as rented"
                ),
                WriteStep(
                    name="add_user_rented_property",
                    operation=lambda: self.user_repo.add_reference("rented_properties", property_obj.id, user_id=renter.id),
                    failure_message="Property marked as rented but failed to update the renter's rented properties"
                ),
            ])
            new_state = RentalRequestState.ACCEPTED
        else:
            new_state = RentalRequestState.REJECTED

        result = await run_paired_writes(steps)

        logger.info(f"Rental request for property {property_obj.id} from {renter_key} {new_state.value}")
        return new_state, result

    async def get_incoming_requests(self, owner_email: Optional[str]) -> List[Tuple[Property, List[User]]]:
        """
        Listings of an owner with pending requests, each with the requesting users.

        Raises:
            ValidationError: If the email is missing or malformed
            UserNotFoundError: If no user has the email
        """
        email = await self.verifier.verify(owner_email)
        if not await self.user_repo.get_by_email(email):
            raise UserNotFoundError(email)
        return await self.property_repo.find_with_requesters(email)

    @staticmethod
    def _parse_action(action: Optional[str]) -> RentalAction:
        try:
            return RentalAction((action or "").strip().lower())
        except ValueError:
            raise ValidationError("Invalid action. Must be 'accept' or 'reject'")

    async def _get_property(self, property_id: str) -> Property:
        property_obj = await self.property_repo.get_by_id(property_id)
        if not property_obj:
            raise PropertyNotFoundError(property_id)
        return property_obj

    async def _get_user(self, user_id: str) -> User:
        user = await self.user_repo.get_by_id(user_id)
        if not user:
            raise UserNotFoundError(str(user_id))
        return user
