"""
Property repository for listing storage, search, and property-side reference sets.
Provides query construction for search, homescreen and owner rental request lookups.
"""

from motor.motor_asyncio import AsyncIOMotorDatabase
from bson import ObjectId
from typing import Any, Dict, List, Optional, Tuple, Union
import logging

from marketplace.database import PROPERTIES_COLLECTION, USERS_COLLECTION
from marketplace.models.property import Property
from marketplace.models.user import User
from marketplace.repositories.base import BaseRepository
from marketplace.utils.validators import ValidationUtils

logger = logging.getLogger(__name__)

# Insertion order keeps skip/limit pagination stable
DEFAULT_SORT = [("_id", 1)]


class PropertySearchFilters:
    """Data class for property search filters."""

    def __init__(
        self,
        location: Optional[str] = None,
        min_price: Optional[float] = None,
        max_price: Optional[float] = None
    ):
        self.location = location
        self.min_price = min_price
        self.max_price = max_price

    @classmethod
    def from_raw(
        cls,
        location: Optional[str] = None,
        min_price: Any = None,
        max_price: Any = None
    ) -> "PropertySearchFilters":
        """
        Build filters from raw query values.
        Price bounds that do not parse as numbers are dropped rather than rejected.
        """
        return cls(
            location=location or None,
            min_price=ValidationUtils.parse_price_bound(min_price),
            max_price=ValidationUtils.parse_price_bound(max_price),
        )

    def to_query(self) -> Dict[str, Any]:
        """Build the store filter document."""
        query: Dict[str, Any] = {}
        if self.location:
            query["location"] = self.location

        price_filter: Dict[str, float] = {}
        if self.min_price is not None:
            price_filter["$gte"] = self.min_price
        if self.max_price is not None:
            price_filter["$lte"] = self.max_price
        if price_filter:
            query["price"] = price_filter

        return query


class PropertyRepository(BaseRepository[Property]):
    """
    Repository for property documents with search and join capabilities.
    """

    def __init__(self, db: AsyncIOMotorDatabase, timeout: Optional[float] = None):
        super().__init__(Property, db[PROPERTIES_COLLECTION], timeout)

    async def create_property(self, property_obj: Property) -> Property:
        """
        Insert a new listing.

        Args:
            property_obj: Property built by Property.new

        Returns:
            The persisted property
        """
        created = await self.create(property_obj)
        logger.info(f"Created property: {created.title} (ID: {created.id})")
        return created

    async def update_listing(self, property_id: str, fields: Dict[str, Any]) -> int:
        """Overwrite listing content fields and refresh updated_at."""
        return await self.update_by_id(property_id, self.build_update(set_fields=fields))

    async def add_like(self, property_id: str, email: str) -> int:
        """Insert a user email into liked_by with set semantics."""
        return await self.update_by_id(property_id, self.build_update(add_to_set={"liked_by": email}))

    async def remove_like(self, property_id: str, email: str) -> int:
        """Remove a user email from liked_by."""
        return await self.update_by_id(property_id, self.build_update(pull={"liked_by": email}))

    async def add_rental_request(self, property_id: str, user_id: Union[str, ObjectId]) -> int:
        """Insert a requester id into rental_requests with set semantics."""
        requester = ValidationUtils.parse_object_id(user_id, "user ID")
        return await self.update_by_id(property_id, self.build_update(add_to_set={"rental_requests": requester}))

    async def remove_rental_request(self, property_id: str, user_id: Union[str, ObjectId]) -> int:
        """Remove a requester id from rental_requests."""
        requester = ValidationUtils.parse_object_id(user_id, "user ID")
        return await self.update_by_id(property_id, self.build_update(pull={"rental_requests": requester}))

    async def mark_rented(self, property_id: str, renter: User) -> int:
        """Record the accepted renter on the listing."""
        return await self.update_by_id(
            property_id,
            self.build_update(set_fields={
                "is_rented": True,
                "rented_by_id": ObjectId(renter.id),
                "rented_by_email": renter.email,
            })
        )

    async def search_properties(
        self,
        filters: PropertySearchFilters,
        skip: int = 0,
        limit: int = 10
    ) -> List[Property]:
        """
        Search listings with optional location and price range filters.

        Args:
            filters: Search filters
            skip: Number of records to skip
            limit: Maximum number of records to return, 0 means no limit

        Returns:
            Matching properties
        """
        query = filters.to_query()
        properties = await self.find_many(query, sort=DEFAULT_SORT, skip=skip, limit=limit)
        logger.debug(f"Property search {query} (skip={skip}, limit={limit}) returned {len(properties)} results")
        return properties

    async def find_in_locations(self, locations: List[str]) -> List[Property]:
        """Get listings whose location is a member of ``locations``."""
        if not locations:
            return []
        return await self.find_many({"location": {"$in": list(locations)}}, sort=DEFAULT_SORT)

    async def find_with_requesters(self, owner_email: str) -> List[Tuple[Property, List[User]]]:
        """
        Get an owner's listings that have pending rental requests, joined with the
        requesting user documents.

        Args:
            owner_email: Owner email to filter on

        Returns:
            List of (property, requesting users) pairs
        """
        pipeline = [
            {"$match": {
                "owner_email": owner_email,
                "rental_requests": {"$exists": True, "$ne": []},
            }},
            {"$lookup": {
                "from": USERS_COLLECTION,
                "localField": "rental_requests",
                "foreignField": "_id",
                "as": "requesting_users",
            }},
            {"$sort": {"_id": 1}},
        ]
        documents = await self.aggregate(pipeline)
        results = []
        for document in documents:
            requesters = [User.from_mongo(user_doc) for user_doc in document.get("requesting_users", [])]
            results.append((Property.from_mongo(document), requesters))
        logger.debug(f"Found {len(results)} properties with rental requests for {owner_email}")
        return results
