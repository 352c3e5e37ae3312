"""
Property API endpoints for listing CRUD, search, the homescreen feed, likes and rental requests.
The caller identity is an email claim taken from the query string or the JSON body.
"""

from fastapi import APIRouter, Depends, status, Query, Path
from typing import Optional, List

from marketplace.models.property import Property
from marketplace.repositories.property import PropertySearchFilters
from marketplace.schemas.common import MessageResponse
from marketplace.schemas.error import COMMON_ERROR_RESPONSES
from marketplace.schemas.property import (
    PropertyCreate,
    PropertyUpdate,
    PropertyResponse,
    PropertyCreatedResponse
)
from marketplace.services.likes import LikeService
from marketplace.services.property import PropertyService
from marketplace.services.rental import RentalService
from marketplace.services.user import UserService
from marketplace.utils.dependencies import (
    get_caller_email,
    get_like_service,
    get_property_service,
    get_rental_service,
    get_user_service
)


router = APIRouter(prefix="/properties", tags=["Properties"])


def to_response(property_obj: Property) -> PropertyResponse:
    return PropertyResponse.model_validate(property_obj.to_dict())


@router.post(
    "",
    response_model=PropertyCreatedResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Create new property",
    description="Create a listing owned by the caller. The email is read from the query string, "
                "then from the body's owner_email.",
    responses=COMMON_ERROR_RESPONSES
)
async def create_property(
    property_data: PropertyCreate,
    caller_email: Optional[str] = Depends(get_caller_email),
    property_service: PropertyService = Depends(get_property_service)
) -> PropertyCreatedResponse:
    """
    Create a new property listing.

    Returns:
        Created property, with a warning if the owner's posted list was not updated
    """
    property_obj, warning = await property_service.create_property(caller_email, property_data)
    return PropertyCreatedResponse.model_validate({**property_obj.to_dict(), "warning": warning})


@router.get(
    "/search",
    response_model=List[PropertyResponse],
    summary="Search properties",
    description="Filter listings by exact location and an optional price range. "
                "Price bounds that are not numbers are ignored.",
    responses=COMMON_ERROR_RESPONSES
)
async def search_properties(
    location: Optional[str] = Query(None, description="Exact location"),
    min_price: Optional[str] = Query(None, description="Minimum price (inclusive)"),
    max_price: Optional[str] = Query(None, description="Maximum price (inclusive)"),
    limit: Optional[int] = Query(None, ge=0, description="Maximum number of results, 0 for no limit"),
    skip: int = Query(0, ge=0, description="Number of results to skip"),
    property_service: PropertyService = Depends(get_property_service)
) -> List[PropertyResponse]:
    """Search listings with location and price filters."""
    filters = PropertySearchFilters.from_raw(location=location, min_price=min_price, max_price=max_price)
    properties = await property_service.search_properties(filters, skip=skip, limit=limit)
    return [to_response(p) for p in properties]


@router.get(
    "/homescreen",
    response_model=List[PropertyResponse],
    summary="Homescreen feed",
    description="Listings located in any of the caller's preferred locations.",
    responses=COMMON_ERROR_RESPONSES
)
async def get_homescreen(
    caller_email: Optional[str] = Depends(get_caller_email),
    property_service: PropertyService = Depends(get_property_service)
) -> List[PropertyResponse]:
    """Get the homescreen feed of a user."""
    properties = await property_service.get_homescreen_properties(caller_email)
    return [to_response(p) for p in properties]


@router.get(
    "/liked-properties",
    response_model=List[PropertyResponse],
    summary="Liked properties",
    description="Listings liked by the user given in the email query parameter.",
    responses=COMMON_ERROR_RESPONSES
)
async def get_liked_properties(
    caller_email: Optional[str] = Depends(get_caller_email),
    user_service: UserService = Depends(get_user_service)
) -> List[PropertyResponse]:
    """Get the properties a user has liked."""
    properties = await user_service.get_liked_properties(caller_email)
    return [to_response(p) for p in properties]


@router.get(
    "/{property_id}",
    response_model=PropertyResponse,
    summary="Get property by ID",
    responses=COMMON_ERROR_RESPONSES
)
async def get_property(
    property_id: str = Path(..., description="Property ID"),
    property_service: PropertyService = Depends(get_property_service)
) -> PropertyResponse:
    """Get a single property."""
    return to_response(await property_service.get_property(property_id))


@router.put(
    "/{property_id}",
    response_model=PropertyResponse,
    summary="Update property",
    description="Update listing content. Only the owner (body owner_email or email query) may update.",
    responses=COMMON_ERROR_RESPONSES
)
async def update_property(
    property_data: PropertyUpdate,
    property_id: str = Path(..., description="Property ID"),
    caller_email: Optional[str] = Depends(get_caller_email),
    property_service: PropertyService = Depends(get_property_service)
) -> PropertyResponse:
    """
    Update a property as its owner.

    Raises:
        PropertyNotFoundError: If the property doesn't exist
        PropertyOwnershipError: If the caller doesn't own the property
    """
    property_obj = await property_service.update_property(property_id, caller_email, property_data)
    return to_response(property_obj)


@router.delete(
    "/{property_id}",
    response_model=MessageResponse,
    summary="Delete property",
    description="Delete a listing and remove it from the owner's posted properties. Only the owner may delete.",
    responses=COMMON_ERROR_RESPONSES
)
async def delete_property(
    property_id: str = Path(..., description="Property ID"),
    caller_email: Optional[str] = Depends(get_caller_email),
    property_service: PropertyService = Depends(get_property_service)
) -> MessageResponse:
    """Delete a property as its owner."""
    warning = await property_service.delete_property(property_id, caller_email)
    return MessageResponse(message="Property deleted successfully", warning=warning)


@router.post(
    "/{property_id}/like",
    response_model=MessageResponse,
    summary="Like property",
    responses=COMMON_ERROR_RESPONSES
)
async def like_property(
    property_id: str = Path(..., description="Property ID"),
    caller_email: Optional[str] = Depends(get_caller_email),
    like_service: LikeService = Depends(get_like_service)
) -> MessageResponse:
    """Like a property. Liking twice has no further effect."""
    result = await like_service.like(property_id, caller_email)
    return MessageResponse(message="Property liked successfully", warning=result.warning)


@router.post(
    "/{property_id}/unlike",
    response_model=MessageResponse,
    summary="Unlike property",
    responses=COMMON_ERROR_RESPONSES
)
async def unlike_property(
    property_id: str = Path(..., description="Property ID"),
    caller_email: Optional[str] = Depends(get_caller_email),
    like_service: LikeService = Depends(get_like_service)
) -> MessageResponse:
    """Remove a like from a property."""
    result = await like_service.unlike(property_id, caller_email)
    return MessageResponse(message="Property unliked successfully", warning=result.warning)


@router.post(
    "/{property_id}/rent",
    response_model=MessageResponse,
    summary="Request rental",
    description="Record a rental request from the user given in the user_id query parameter.",
    responses=COMMON_ERROR_RESPONSES
)
async def request_rental(
    property_id: str = Path(..., description="Property ID"),
    user_id: Optional[str] = Query(None, description="Requesting user ID"),
    rental_service: RentalService = Depends(get_rental_service)
) -> MessageResponse:
    """Request to rent a property."""
    result = await rental_service.request_rental(property_id, user_id)
    return MessageResponse(message="Rental request sent successfully", warning=result.warning)
