"""
FastAPI dependency injection utilities for services and the caller identity.
The store handle comes from the ``get_database`` dependency so tests can swap it.
"""

from typing import Optional
from fastapi import Depends, Query, Request
from motor.motor_asyncio import AsyncIOMotorDatabase
from marketplace.database import get_database
from marketplace.services.likes import LikeService
from marketplace.services.property import PropertyService
from marketplace.services.rental import RentalService
from marketplace.services.user import UserService
from marketplace.utils.identity import IdentityVerifier, default_verifier
import json
import logging

logger = logging.getLogger(__name__)

# Body keys consulted, in order, when the email query parameter is absent
BODY_EMAIL_KEYS = ("email", "owner_email")


def get_identity_verifier() -> IdentityVerifier:
    """
    Get the identity verifier.
    Override this dependency to plug in a real authentication scheme.
    """
    return default_verifier


async def get_caller_email(
    request: Request,
    email: Optional[str] = Query(None, description="Caller email")
) -> Optional[str]:
    """
    Extract the claimed caller email.

    Looks at the ``email`` query parameter first, then the JSON body's ``email`` and
    ``owner_email`` keys. Returns None when no claim is present; the verifier used by
    the service decides whether that is acceptable.

    Args:
        request: Incoming request
        email: Email query parameter

    Returns:
        Claimed email or None
    """
    if email:
        return email

    body = await request.body()
    if not body:
        return None

    try:
        payload = json.loads(body)
    except ValueError:
        logger.debug("Request body is not JSON, no email claim extracted")
        return None

    if isinstance(payload, dict):
        for key in BODY_EMAIL_KEYS:
            value = payload.get(key)
            if isinstance(value, str) and value.strip():
                return value

    return None


async def get_user_service(
    db: AsyncIOMotorDatabase = Depends(get_database),
    verifier: IdentityVerifier = Depends(get_identity_verifier)
) -> UserService:
    """
    Get user service instance.

    Args:
        db: Database handle
        verifier: Identity verifier

    Returns:
        UserService instance
    """
    return UserService(db, verifier)


async def get_property_service(
    db: AsyncIOMotorDatabase = Depends(get_database),
    verifier: IdentityVerifier = Depends(get_identity_verifier)
) -> PropertyService:
    """Get property service instance."""
    return PropertyService(db, verifier)


async def get_like_service(
    db: AsyncIOMotorDatabase = Depends(get_database),
    verifier: IdentityVerifier = Depends(get_identity_verifier)
) -> LikeService:
    """Get like service instance."""
    return LikeService(db, verifier)


async def get_rental_service(
    db: AsyncIOMotorDatabase = Depends(get_database),
    verifier: IdentityVerifier = Depends(get_identity_verifier)
) -> RentalService:
    """Get rental service instance."""
    return RentalService(db, verifier)
