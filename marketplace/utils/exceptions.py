"""
Custom exception classes for the Rental Marketplace API.
Provides structured error handling with appropriate HTTP status codes.
"""

from typing import Any, Dict, Optional
from fastapi import HTTPException, status


class APIException(HTTPException):
    """Base API exception class."""

    def __init__(
        self,
        status_code: int,
        detail: str,
        error_code: Optional[str] = None,
        headers: Optional[Dict[str, Any]] = None
    ):
        super().__init__(status_code=status_code, detail=detail, headers=headers)
        self.error_code = error_code


class ValidationError(APIException):
    """Missing or malformed input."""

    def __init__(self, detail: str):
        super().__init__(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=detail,
            error_code="VALIDATION_ERROR"
        )


class NotFoundError(APIException):
    """Resource not found exception."""

    def __init__(self, resource: str, resource_id: Optional[str] = None):
        detail = f"{resource} not found"
        if resource_id:
            detail += f": {resource_id}"

        super().__init__(
            status_code=status.HTTP_404_NOT_FOUND,
            detail=detail,
            error_code="NOT_FOUND"
        )


class ForbiddenError(APIException):
    """Access forbidden exception."""

    def __init__(self, detail: str = "Access forbidden"):
        super().__init__(
            status_code=status.HTTP_403_FORBIDDEN,
            detail=detail,
            error_code="FORBIDDEN"
        )


class ConflictError(APIException):
    """Resource conflict exception."""

    def __init__(self, detail: str):
        super().__init__(
            status_code=status.HTTP_409_CONFLICT,
            detail=detail,
            error_code="CONFLICT"
        )


class StoreError(APIException):
    """Any downstream document store failure."""

    def __init__(self, detail: str = "Database operation failed"):
        super().__init__(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail=detail,
            error_code="STORE_ERROR"
        )


class StoreTimeoutError(StoreError):
    """Store operation exceeded the configured timeout."""

    def __init__(self, detail: str = "Database operation timed out"):
        super().__init__(detail)
        self.error_code = "STORE_TIMEOUT"


# User specific exceptions
class UserNotFoundError(NotFoundError):
    """User not found exception."""

    def __init__(self, identifier: str):
        super().__init__("User", identifier)


class RegistrationConflictError(ConflictError):
    """Concurrent registration of the same email was detected by the store."""

    def __init__(self, email: str):
        super().__init__(f"A concurrent registration for '{email}' already exists")
        self.error_code = "REGISTRATION_CONFLICT"


# Property specific exceptions
class PropertyNotFoundError(NotFoundError):
    """Property not found exception."""

    def __init__(self, property_id: str):
        super().__init__("Property", property_id)


class PropertyOwnershipError(ForbiddenError):
    """Property ownership violation exception."""

    def __init__(self, action: str = "modify"):
        super().__init__(f"You cannot {action} a property that doesn't belong to you")


# Rental workflow exceptions
class RentalRequestStateError(ValidationError):
    """Rental request is not in the state the transition requires."""

    def __init__(self, detail: str):
        super().__init__(detail)
