"""
Document models for the Rental Marketplace API.
Includes User and Property documents and the rental request state machine enums.
"""

from marketplace.models.user import User
from marketplace.models.property import Property, RentalAction, RentalRequestState

# Export all models for easy importing
__all__ = [
    "User",
    "Property",
    "RentalAction",
    "RentalRequestState",
]
