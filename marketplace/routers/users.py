"""
User API endpoints for registration, profile updates, property lookups and
owner-side handling of rental requests.
"""

from fastapi import APIRouter, Depends, status, Query, Path
from fastapi.responses import JSONResponse
from typing import Optional, List

from marketplace.schemas.common import RentalDecisionResponse
from marketplace.schemas.error import COMMON_ERROR_RESPONSES, REGISTRATION_CONFLICT_RESPONSE
from marketplace.schemas.property import PropertyResponse, PropertyWithRequestersResponse
from marketplace.schemas.user import (
    UserRegister,
    LocationUpdate,
    PreferredLocationsUpdate,
    UserResponse,
    UserSummary
)
from marketplace.services.rental import RentalService
from marketplace.services.user import UserService
from marketplace.utils.dependencies import get_rental_service, get_user_service


router = APIRouter(prefix="/users", tags=["Users"])


@router.post(
    "/register",
    response_model=UserResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Register or log in",
    description="Create a user for the email, or return the existing user with status 200.",
    responses={
        200: {"description": "User already registered", "model": UserResponse},
        **COMMON_ERROR_RESPONSES,
        **REGISTRATION_CONFLICT_RESPONSE
    }
)
async def register_user(
    registration: UserRegister,
    user_service: UserService = Depends(get_user_service)
):
    """
    Register a user; registering an existing email logs in instead.

    Returns:
        The user, with 201 when created and 200 when it already existed
    """
    user, created = await user_service.register_or_fetch(registration)
    body = UserResponse.model_validate(user.to_dict())
    if created:
        return body
    return JSONResponse(status_code=status.HTTP_200_OK, content=body.model_dump(mode="json"))


@router.post(
    "/rental-requests/{property_id}/handle",
    response_model=RentalDecisionResponse,
    summary="Accept or reject a rental request",
    responses=COMMON_ERROR_RESPONSES
)
async def handle_rental_request(
    property_id: str = Path(..., description="Property ID"),
    renter_id: Optional[str] = Query(None, description="Requesting user ID"),
    action: Optional[str] = Query(None, description="accept or reject"),
    rental_service: RentalService = Depends(get_rental_service)
) -> RentalDecisionResponse:
    """
    Resolve a pending rental request.

    Raises:
        ValidationError: If the action is invalid or the request is not pending
    """
    state, result = await rental_service.resolve_request(property_id, renter_id, action)
    return RentalDecisionResponse(
        message=f"Rental request {state.value} successfully",
        warning=result.warning,
        property_id=property_id,
        renter_id=renter_id,
        state=state.value
    )


@router.get(
    "/{email}",
    response_model=UserResponse,
    summary="Get user by email",
    responses=COMMON_ERROR_RESPONSES
)
async def get_user(
    email: str = Path(..., description="User email"),
    user_service: UserService = Depends(get_user_service)
) -> UserResponse:
    """Get a user by email."""
    user = await user_service.get_user(email)
    return UserResponse.model_validate(user.to_dict())


@router.put(
    "/{email}/location",
    response_model=UserResponse,
    summary="Update location",
    responses=COMMON_ERROR_RESPONSES
)
async def update_location(
    location_data: LocationUpdate,
    email: str = Path(..., description="User email"),
    user_service: UserService = Depends(get_user_service)
) -> UserResponse:
    """Set the user's current location."""
    user = await user_service.update_location(email, location_data.location)
    return UserResponse.model_validate(user.to_dict())


@router.put(
    "/{email}/preferred-locations",
    response_model=UserResponse,
    summary="Update preferred locations",
    responses=COMMON_ERROR_RESPONSES
)
async def update_preferred_locations(
    locations_data: PreferredLocationsUpdate,
    email: str = Path(..., description="User email"),
    user_service: UserService = Depends(get_user_service)
) -> UserResponse:
    """Replace the locations used by the homescreen feed."""
    user = await user_service.update_preferred_locations(email, locations_data.preferred_locations)
    return UserResponse.model_validate(user.to_dict())


@router.get(
    "/{email}/liked-properties",
    response_model=List[PropertyResponse],
    summary="Liked properties",
    responses=COMMON_ERROR_RESPONSES
)
async def get_liked_properties(
    email: str = Path(..., description="User email"),
    user_service: UserService = Depends(get_user_service)
) -> List[PropertyResponse]:
    """Get the properties a user has liked."""
    properties = await user_service.get_liked_properties(email)
    return [PropertyResponse.model_validate(p.to_dict()) for p in properties]


@router.get(
    "/{email}/posted-properties",
    response_model=List[PropertyResponse],
    summary="Posted properties",
    responses=COMMON_ERROR_RESPONSES
)
async def get_posted_properties(
    email: str = Path(..., description="User email"),
    user_service: UserService = Depends(get_user_service)
) -> List[PropertyResponse]:
    """Get the properties a user has posted."""
    properties = await user_service.get_posted_properties(email)
    return [PropertyResponse.model_validate(p.to_dict()) for p in properties]


@router.get(
    "/{email}/rented-properties",
    response_model=List[PropertyResponse],
    summary="Rented properties",
    responses=COMMON_ERROR_RESPONSES
)
async def get_rented_properties(
    email: str = Path(..., description="User email"),
    user_service: UserService = Depends(get_user_service)
) -> List[PropertyResponse]:
    """Get the properties a user rents."""
    properties = await user_service.get_rented_properties(email)
    return [PropertyResponse.model_validate(p.to_dict()) for p in properties]


@router.get(
    "/{email}/requested-properties",
    response_model=List[PropertyResponse],
    summary="Properties the user requested to rent",
    responses=COMMON_ERROR_RESPONSES
)
async def get_requested_properties(
    email: str = Path(..., description="User email"),
    user_service: UserService = Depends(get_user_service)
) -> List[PropertyResponse]:
    """Get the properties a user has requested to rent."""
    properties = await user_service.get_requested_properties(email)
    return [PropertyResponse.model_validate(p.to_dict()) for p in properties]


@router.get(
    "/{email}/rental-requests",
    response_model=List[PropertyWithRequestersResponse],
    summary="Incoming rental requests",
    description="The owner's listings with pending requests, each with the requesting users.",
    responses=COMMON_ERROR_RESPONSES
)
async def get_incoming_rental_requests(
    email: str = Path(..., description="Owner email"),
    rental_service: RentalService = Depends(get_rental_service)
) -> List[PropertyWithRequestersResponse]:
    """Get pending rental requests for the owner's listings."""
    results = await rental_service.get_incoming_requests(email)
    return [
        PropertyWithRequestersResponse.model_validate({
            **property_obj.to_dict(),
            "requesting_users": [UserSummary.model_validate(u.to_dict()) for u in requesters],
        })
        for property_obj, requesters in results
    ]
