"""
Repository layer for document store access.
Provides timeout-bounded collection operations with consistent error translation.
"""

from marketplace.repositories.base import BaseRepository
from marketplace.repositories.property import PropertyRepository, PropertySearchFilters
from marketplace.repositories.user import UserRepository

__all__ = [
    "BaseRepository",
    "PropertyRepository",
    "PropertySearchFilters",
    "UserRepository"
]
