"""
Shared response schemas.
"""

from pydantic import BaseModel, Field
from typing import Optional


class MessageResponse(BaseModel):
    """Acknowledgement for mutations that do not return a document."""

    message: str = Field(..., examples=["Property liked successfully"])
    warning: Optional[str] = Field(
        None,
        description="Partial failure message when a paired write was not fully applied"
    )


class RentalDecisionResponse(MessageResponse):
    """Result of resolving a rental request."""

    property_id: str
    renter_id: str
    state: str = Field(..., examples=["accepted"])
