"""
Tests for repository classes.
Tests document operations, update builders, search queries and store error translation.
"""

import asyncio
import pytest
from bson import ObjectId
from pymongo.errors import DuplicateKeyError, OperationFailure, ServerSelectionTimeoutError

from marketplace.models.user import User
from marketplace.repositories.base import BaseRepository, utc_now
from marketplace.repositories.property import PropertyRepository, PropertySearchFilters
from marketplace.repositories.user import UserRepository
from marketplace.utils.exceptions import (
    RegistrationConflictError,
    StoreError,
    StoreTimeoutError,
    ValidationError
)
from tests.conftest import UserFactory, PropertyFactory, assert_property_equal


class SlowCollection:
    """Collection stub whose calls never finish in time."""

    name = "slow"

    async def find_one(self, *args, **kwargs):
        await asyncio.sleep(5)


class FailingCollection:
    """Collection stub whose calls raise a given driver error."""

    name = "failing"

    def __init__(self, error):
        self.error = error

    async def find_one(self, *args, **kwargs):
        raise self.error

    async def insert_one(self, *args, **kwargs):
        raise self.error


class TestBaseRepository:
    """Test base repository functionality."""

    @pytest.mark.asyncio
    async def test_create_and_get_by_id(self, user_repository: UserRepository):
        """Test inserting and reading back a document."""
        user = await UserFactory.create_user(user_repository, email="a@example.com")

        retrieved = await user_repository.get_by_id(user.id)

        assert retrieved is not None
        assert retrieved.id == user.id
        assert retrieved.email == "a@example.com"

    @pytest.mark.asyncio
    async def test_get_by_id_not_found(self, user_repository: UserRepository):
        """Test getting a non-existent document."""
        assert await user_repository.get_by_id(str(ObjectId())) is None

    @pytest.mark.asyncio
    async def test_get_by_id_invalid(self, user_repository: UserRepository):
        """Test malformed ids are validation errors."""
        with pytest.raises(ValidationError):
            await user_repository.get_by_id("not-an-id")

    @pytest.mark.asyncio
    async def test_find_by_ids_empty(self, property_repository: PropertyRepository):
        """Test an empty id list short-circuits."""
        assert await property_repository.find_by_ids([]) == []

    @pytest.mark.asyncio
    async def test_delete_by_id(self, property_repository: PropertyRepository, test_property):
        """Test deleting a document."""
        assert await property_repository.delete_by_id(test_property.id) is True
        assert await property_repository.delete_by_id(test_property.id) is False
        assert await property_repository.get_by_id(test_property.id) is None

    def test_build_update_touches_updated_at(self):
        """Test update documents refresh updated_at unless told otherwise."""
        update = BaseRepository.build_update(add_to_set={"liked_by": "a@example.com"})

        assert update["$addToSet"] == {"liked_by": "a@example.com"}
        assert "updated_at" in update["$set"]

        untouched = BaseRepository.build_update(pull={"liked_by": "a@example.com"}, touch=False)

        assert "$set" not in untouched
        assert untouched["$pull"] == {"liked_by": "a@example.com"}

    @pytest.mark.asyncio
    async def test_timeout_raises_store_timeout(self):
        """Test a call exceeding the operation timeout fails with StoreTimeoutError."""
        repo = BaseRepository(User, SlowCollection(), timeout=0.05)

        with pytest.raises(StoreTimeoutError):
            await repo.find_one({"email": "a@example.com"})

    @pytest.mark.asyncio
    async def test_driver_timeout_raises_store_timeout(self):
        """Test driver timeouts are reported as StoreTimeoutError."""
        repo = BaseRepository(User, FailingCollection(ServerSelectionTimeoutError("no servers")))

        with pytest.raises(StoreTimeoutError):
            await repo.find_one({"email": "a@example.com"})

    @pytest.mark.asyncio
    async def test_driver_error_raises_store_error(self):
        """Test other driver failures are reported as StoreError."""
        repo = BaseRepository(User, FailingCollection(OperationFailure("boom")))

        with pytest.raises(StoreError) as exc_info:
            await repo.find_one({"email": "a@example.com"})

        assert not isinstance(exc_info.value, StoreTimeoutError)
        assert exc_info.value.status_code == 500


class TestUserRepository:
    """Test UserRepository functionality."""

    @pytest.mark.asyncio
    async def test_get_by_email(self, user_repository: UserRepository, test_owner):
        """Test lookup by email."""
        user = await user_repository.get_by_email("owner@example.com")

        assert user is not None
        assert user.id == test_owner.id
        assert await user_repository.get_by_email("missing@example.com") is None

    @pytest.mark.asyncio
    async def test_duplicate_key_is_registration_conflict(self):
        """Test a duplicate key on insert becomes a registration conflict."""
        repo = UserRepository({"users": FailingCollection(DuplicateKeyError("dup"))})
        user = User.new(email="a@example.com", name="A", now=utc_now())

        with pytest.raises(RegistrationConflictError):
            await repo.create_user(user)

    @pytest.mark.asyncio
    async def test_add_reference_is_idempotent(self, user_repository: UserRepository, test_renter):
        """Test set insertion leaves exactly one entry."""
        property_id = str(ObjectId())

        await user_repository.add_reference("liked_properties", property_id, user_id=test_renter.id)
        await user_repository.add_reference("liked_properties", property_id, email=test_renter.email)

        user = await user_repository.get_by_id(test_renter.id)
        assert user.liked_properties == [property_id]

    @pytest.mark.asyncio
    async def test_remove_absent_reference_is_noop(self, user_repository: UserRepository, test_renter):
        """Test removing an id that is not present."""
        matched = await user_repository.remove_reference("liked_properties", str(ObjectId()), user_id=test_renter.id)

        assert matched == 1
        user = await user_repository.get_by_id(test_renter.id)
        assert user.liked_properties == []

    @pytest.mark.asyncio
    async def test_reference_update_touches_updated_at(self, db, user_repository: UserRepository, test_renter):
        """Test back-reference writes refresh updated_at."""
        stale = utc_now().replace(year=2000)
        await db["users"].update_one({"_id": ObjectId(test_renter.id)}, {"$set": {"updated_at": stale}})

        await user_repository.add_reference("rental_requests", str(ObjectId()), user_id=test_renter.id)

        user = await user_repository.get_by_id(test_renter.id)
        assert user.updated_at.year != 2000

    @pytest.mark.asyncio
    async def test_unknown_reference_field(self, user_repository: UserRepository, test_renter):
        """Test unknown reference fields are rejected."""
        with pytest.raises(ValueError):
            await user_repository.add_reference("friends", str(ObjectId()), user_id=test_renter.id)

    @pytest.mark.asyncio
    async def test_append_posted_property(self, user_repository: UserRepository, test_owner):
        """Test posted listings are appended in order."""
        first, second = str(ObjectId()), str(ObjectId())

        await user_repository.append_posted_property(test_owner.email, first)
        await user_repository.append_posted_property(test_owner.email, second)

        user = await user_repository.get_by_email(test_owner.email)
        assert user.posted_properties == [first, second]


class TestPropertySearchFilters:
    """Test search filter construction."""

    def test_empty_filters(self):
        """Test no filters match every listing."""
        assert PropertySearchFilters.from_raw().to_query() == {}

    def test_price_range(self):
        """Test both price bounds are inclusive."""
        query = PropertySearchFilters.from_raw(location="Austin", min_price="100", max_price="200").to_query()

        assert query == {"location": "Austin", "price": {"$gte": 100.0, "$lte": 200.0}}

    def test_unparsable_bound_is_ignored(self):
        """Test a non-numeric bound is dropped."""
        query = PropertySearchFilters.from_raw(min_price="cheap", max_price="200").to_query()

        assert query == {"price": {"$lte": 200.0}}

    def test_non_finite_bound_is_ignored(self):
        """Test NaN and infinity bounds are dropped."""
        assert PropertySearchFilters.from_raw(min_price="nan", max_price="inf").to_query() == {}


class TestPropertyRepository:
    """Test PropertyRepository functionality."""

    @pytest.mark.asyncio
    async def test_create_and_get(self, property_repository: PropertyRepository, test_owner):
        """Test creating and reading a listing."""
        created = await PropertyFactory.create_property(property_repository, test_owner, title="Cabin")

        retrieved = await property_repository.get_by_id(created.id)

        assert_property_equal(retrieved, created)

    @pytest.mark.asyncio
    async def test_search_by_price_range(self, property_repository: PropertyRepository, test_owner):
        """Test search returns only listings inside the range."""
        for price in (50, 100, 150, 200, 250):
            await PropertyFactory.create_property(property_repository, test_owner, price=price)

        results = await property_repository.search_properties(
            PropertySearchFilters.from_raw(min_price=100, max_price=200), limit=0
        )

        assert sorted(p.price for p in results) == [100, 150, 200]

    @pytest.mark.asyncio
    async def test_search_pagination_is_stable(self, property_repository: PropertyRepository, test_owner):
        """Test skip/limit follow insertion order."""
        created = [
            await PropertyFactory.create_property(property_repository, test_owner, title=f"Listing {i}")
            for i in range(5)
        ]

        page = await property_repository.search_properties(PropertySearchFilters(), skip=1, limit=2)

        assert [p.id for p in page] == [created[1].id, created[2].id]

    @pytest.mark.asyncio
    async def test_find_in_locations(self, property_repository: PropertyRepository, test_owner):
        """Test location membership filtering."""
        await PropertyFactory.create_property(property_repository, test_owner, location="Austin")
        await PropertyFactory.create_property(property_repository, test_owner, location="Dallas")
        await PropertyFactory.create_property(property_repository, test_owner, location="Houston")

        results = await property_repository.find_in_locations(["Austin", "Houston"])

        assert sorted(p.location for p in results) == ["Austin", "Houston"]
        assert await property_repository.find_in_locations([]) == []

    @pytest.mark.asyncio
    async def test_rental_requests_are_a_set(self, property_repository: PropertyRepository, test_property, test_renter):
        """Test adding the same requester twice leaves one entry."""
        await property_repository.add_rental_request(test_property.id, test_renter.id)
        await property_repository.add_rental_request(test_property.id, test_renter.id)

        prop = await property_repository.get_by_id(test_property.id)
        assert prop.rental_requests == [test_renter.id]

        await property_repository.remove_rental_request(test_property.id, test_renter.id)

        prop = await property_repository.get_by_id(test_property.id)
        assert prop.rental_requests == []

    @pytest.mark.asyncio
    async def test_mark_rented(self, property_repository: PropertyRepository, test_property, test_renter):
        """Test the renter is recorded on the listing."""
        await property_repository.mark_rented(test_property.id, test_renter)

        prop = await property_repository.get_by_id(test_property.id)
        assert prop.is_rented is True
        assert prop.rented_by_id == test_renter.id
        assert prop.rented_by_email == test_renter.email

    @pytest.mark.asyncio
    async def test_find_with_requesters(
        self,
        property_repository: PropertyRepository,
        test_owner,
        test_renter,
        test_property
    ):
        """Test only listings with pending requests are returned, joined with the requesters."""
        await PropertyFactory.create_property(property_repository, test_owner, title="No Requests")
        await property_repository.add_rental_request(test_property.id, test_renter.id)

        results = await property_repository.find_with_requesters(test_owner.email)

        assert len(results) == 1
        prop, requesters = results[0]
        assert prop.id == test_property.id
        assert [u.email for u in requesters] == [test_renter.email]
