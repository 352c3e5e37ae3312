"""
Utility modules for the Rental Marketplace API.
"""

from .exceptions import (
    APIException,
    ValidationError,
    NotFoundError,
    ForbiddenError,
    ConflictError,
    StoreError,
    StoreTimeoutError,
    UserNotFoundError,
    RegistrationConflictError,
    PropertyNotFoundError,
    PropertyOwnershipError,
    RentalRequestStateError
)

from .identity import IdentityVerifier, EmailClaimVerifier
from .validators import ValidationUtils

# Dependencies are imported directly where needed to avoid circular imports

__all__ = [
    # Exceptions
    "APIException",
    "ValidationError",
    "NotFoundError",
    "ForbiddenError",
    "ConflictError",
    "StoreError",
    "StoreTimeoutError",
    "UserNotFoundError",
    "RegistrationConflictError",
    "PropertyNotFoundError",
    "PropertyOwnershipError",
    "RentalRequestStateError",

    # Identity
    "IdentityVerifier",
    "EmailClaimVerifier",

    # Validation
    "ValidationUtils",
]
