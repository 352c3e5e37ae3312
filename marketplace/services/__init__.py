"""
Service layer for business logic implementation.
Contains services for users, properties, likes, the rental workflow, and error handling.
"""

from .user import UserService
from .property import PropertyService
from .likes import LikeService
from .rental import RentalService
from .error_handler import ErrorHandlerService

__all__ = [
    "UserService",
    "PropertyService",
    "LikeService",
    "RentalService",
    "ErrorHandlerService"
]
