"""
Pydantic schemas for request/response validation.
"""

# Shared schemas
from .common import MessageResponse, RentalDecisionResponse

# User schemas
from .user import (
    UserRegister,
    LocationUpdate,
    PreferredLocationsUpdate,
    UserSummary,
    UserResponse
)

# Property schemas
from .property import (
    PropertyBase,
    PropertyCreate,
    PropertyUpdate,
    PropertyResponse,
    PropertyCreatedResponse,
    PropertyWithRequestersResponse
)

# Error schemas
from .error import ErrorDetail, ErrorResponse, COMMON_ERROR_RESPONSES

__all__ = [
    # Shared
    "MessageResponse",
    "RentalDecisionResponse",

    # User
    "UserRegister",
    "LocationUpdate",
    "PreferredLocationsUpdate",
    "UserSummary",
    "UserResponse",

    # Property
    "PropertyBase",
    "PropertyCreate",
    "PropertyUpdate",
    "PropertyResponse",
    "PropertyCreatedResponse",
    "PropertyWithRequestersResponse",

    # Errors
    "ErrorDetail",
    "ErrorResponse",
    "COMMON_ERROR_RESPONSES",
]
