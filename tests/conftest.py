"""
Test configuration and fixtures for the rental marketplace API.
Provides an in-memory store, test data factories, and common test utilities.
"""

import pytest
import uuid
from typing import AsyncGenerator, List, Optional

from httpx import ASGITransport, AsyncClient
from mongomock_motor import AsyncMongoMockClient

from marketplace.config import settings
from marketplace.database import get_database
from marketplace.main import app
from marketplace.models.property import Property
from marketplace.models.user import User
from marketplace.repositories.base import utc_now
from marketplace.repositories.property import PropertyRepository
from marketplace.repositories.user import UserRepository
from marketplace.services.likes import LikeService
from marketplace.services.property import PropertyService
from marketplace.services.rental import RentalService
from marketplace.services.user import UserService


@pytest.fixture
def db():
    """Fresh in-memory database per test."""
    client = AsyncMongoMockClient()
    return client[settings.test_mongodb_db]


@pytest.fixture
async def async_client(db) -> AsyncGenerator[AsyncClient, None]:
    """Create an async test client with the store dependency overridden."""
    app.dependency_overrides[get_database] = lambda: db

    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as client:
        yield client

    app.dependency_overrides.clear()


# Repository fixtures
@pytest.fixture
def user_repository(db) -> UserRepository:
    """Create a user repository instance."""
    return UserRepository(db)


@pytest.fixture
def property_repository(db) -> PropertyRepository:
    """Create a property repository instance."""
    return PropertyRepository(db)


# Service fixtures
@pytest.fixture
def user_service(db) -> UserService:
    """Create a user service instance."""
    return UserService(db)


@pytest.fixture
def property_service(db) -> PropertyService:
    """Create a property service instance."""
    return PropertyService(db)


@pytest.fixture
def like_service(db) -> LikeService:
    """Create a like service instance."""
    return LikeService(db)


@pytest.fixture
def rental_service(db) -> RentalService:
    """Create a rental service instance."""
    return RentalService(db)


# Test data factories
class UserFactory:
    """Factory for creating test users."""

    @staticmethod
    def create_user_data(
        email: str = None,
        name: str = "Test User",
        location: Optional[str] = None,
        preferred_locations: Optional[List[str]] = None
    ) -> dict:
        """Create registration data dictionary."""
        return {
            "email": email or f"user{uuid.uuid4().hex[:8]}@example.com",
            "name": name,
            "profile_pic": "https://img.example.com/profile.png",
            "location": location,
            "preferred_locations": preferred_locations or []
        }

    @staticmethod
    async def create_user(
        user_repo: UserRepository,
        email: str = None,
        name: str = "Test User",
        location: Optional[str] = None,
        preferred_locations: Optional[List[str]] = None
    ) -> User:
        """Create a test user in the database."""
        data = UserFactory.create_user_data(
            email=email,
            name=name,
            location=location,
            preferred_locations=preferred_locations
        )
        user = User.new(
            email=data["email"],
            name=data["name"],
            now=utc_now(),
            profile_pic=data["profile_pic"],
            location=data["location"],
            preferred_locations=data["preferred_locations"],
        )
        return await user_repo.create_user(user)


class PropertyFactory:
    """Factory for creating test properties."""

    @staticmethod
    def create_property_data(
        title: str = "Test Property",
        description: str = "A beautiful test property",
        price: float = 1000.0,
        location: str = "Austin",
        pictures: Optional[List[str]] = None
    ) -> dict:
        """Create listing data dictionary."""
        return {
            "title": title,
            "description": description,
            "price": price,
            "location": location,
            "thumbnail": "https://img.example.com/thumb.png",
            "pictures": pictures or []
        }

    @staticmethod
    async def create_property(
        property_repo: PropertyRepository,
        owner: User,
        title: str = "Test Property",
        price: float = 1000.0,
        location: str = "Austin"
    ) -> Property:
        """
        Create a test property in the database.
        Only the property document is written; the owner's posted list is left alone.
        """
        listing = PropertyFactory.create_property_data(title=title, price=price, location=location)
        return await property_repo.create_property(Property.new(owner, listing, utc_now()))


# Common test fixtures
@pytest.fixture
async def test_owner(user_repository: UserRepository) -> User:
    """Create a user who owns listings."""
    return await UserFactory.create_user(
        user_repository,
        email="owner@example.com",
        name="Olivia Owner",
        location="Austin"
    )


@pytest.fixture
async def test_renter(user_repository: UserRepository) -> User:
    """Create a user who likes and rents listings."""
    return await UserFactory.create_user(
        user_repository,
        email="renter@example.com",
        name="Riley Renter",
        preferred_locations=["Austin"]
    )


@pytest.fixture
async def test_property(property_repository: PropertyRepository, test_owner: User) -> Property:
    """Create a test property owned by test_owner."""
    return await PropertyFactory.create_property(
        property_repository,
        test_owner,
        title="Downtown Loft",
        price=1500.0,
        location="Austin"
    )


# Utility functions for tests
def assert_property_equal(prop1: Property, prop2: Property):
    """Assert that two properties carry the same listing and owner data."""
    assert prop1.id == prop2.id
    assert prop1.title == prop2.title
    assert prop1.description == prop2.description
    assert prop1.price == prop2.price
    assert prop1.location == prop2.location
    assert prop1.owner_email == prop2.owner_email
