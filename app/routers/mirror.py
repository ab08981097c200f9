"""
Relational mirror API routes.
Each route performs one ORM operation on the mirrored property rows or the
shortlist join rows. Every route requires a signed-in user; owners are checked
before update and delete, and user-scoped routes only serve the caller.
"""

from fastapi import APIRouter, Body, Depends, Query, status
from typing import Optional

from app.schemas.property import (
    PropertyDeletedResponse,
    PropertyMirrorCreate,
    PropertyMirrorUpdate,
    PropertyRecord,
    PropertyUpdatedResponse,
    ShortlistCreatedResponse,
    ShortlistRecord,
    ShortlistRequest,
    ShortlistWithProperty,
    ShortlistedPropertiesResponse,
    is_missing,
)
from app.services.auth import CurrentUser
from app.services.error_handler import error_responses
from app.services.mirror import PropertyMirrorService
from app.utils.dependencies import get_current_user, get_mirror_service
from app.utils.exceptions import (
    MissingFieldsError,
    PropertyNotFoundError,
    PropertyOwnershipError,
    UserMismatchError,
)


router = APIRouter(prefix="/properties", tags=["Relational mirror"])


def _ensure_same_user(user_id: str, current_user: CurrentUser) -> None:
    if user_id != current_user.id:
        raise UserMismatchError()


async def _get_owned(
    property_id: str,
    current_user: CurrentUser,
    mirror_service: PropertyMirrorService
):
    prop = await mirror_service.get_property(property_id)
    if prop is None:
        raise PropertyNotFoundError(property_id)
    if prop.user_id != current_user.id:
        raise PropertyOwnershipError()
    return prop


@router.post(
    "/create",
    response_model=PropertyRecord,
    status_code=status.HTTP_200_OK,
    summary="Mirror a created property",
    description="Insert the mirror row for a property created in the primary store",
    responses=error_responses(400, 401, 403, 500)
)
async def create_property(
    payload: Optional[PropertyMirrorCreate] = Body(None),
    current_user: CurrentUser = Depends(get_current_user),
    mirror_service: PropertyMirrorService = Depends(get_mirror_service)
) -> PropertyRecord:
    """
    Create a mirror row.

    Raises:
        MissingFieldsError: If any property field, ``id`` or ``userId`` is missing
        UserMismatchError: If ``userId`` is not the signed-in user
        DuplicateResourceError: If a row with the id already exists
    """
    values = (payload or PropertyMirrorCreate()).require_all()
    _ensure_same_user(values["user_id"], current_user)

    prop = await mirror_service.create_property(values)
    return PropertyRecord.model_validate(prop)


@router.put(
    "/update/{property_id}",
    response_model=PropertyUpdatedResponse,
    summary="Mirror a property update",
    description="Apply the sent fields to the mirror row; fields not sent keep their values",
    responses=error_responses(400, 401, 403, 404, 500)
)
async def update_property(
    property_id: str,
    payload: Optional[PropertyMirrorUpdate] = Body(None),
    current_user: CurrentUser = Depends(get_current_user),
    mirror_service: PropertyMirrorService = Depends(get_mirror_service)
) -> PropertyUpdatedResponse:
    """
    Update a mirror row owned by the signed-in user.

    Raises:
        MissingFieldsError: If the body has no property field
        PropertyNotFoundError: If there is no row for the id
        PropertyOwnershipError: If the row belongs to another user
    """
    changes = (payload or PropertyMirrorUpdate()).changes()
    await _get_owned(property_id, current_user, mirror_service)

    prop = await mirror_service.update_property(property_id, changes)
    return PropertyUpdatedResponse(updated_property=PropertyRecord.model_validate(prop))


@router.delete(
    "/delete/{property_id}",
    response_model=PropertyDeletedResponse,
    summary="Mirror a property delete",
    description="Delete the mirror row and its shortlist rows",
    responses=error_responses(401, 403, 404, 500)
)
async def delete_property(
    property_id: str,
    current_user: CurrentUser = Depends(get_current_user),
    mirror_service: PropertyMirrorService = Depends(get_mirror_service)
) -> PropertyDeletedResponse:
    """
    Delete a mirror row owned by the signed-in user.

    Raises:
        PropertyNotFoundError: If there is no row for the id
        PropertyOwnershipError: If the row belongs to another user
    """
    await _get_owned(property_id, current_user, mirror_service)

    prop = await mirror_service.delete_property(property_id)
    return PropertyDeletedResponse(deleted_property=PropertyRecord.model_validate(prop))


@router.post(
    "/shortlist",
    response_model=ShortlistCreatedResponse,
    summary="Shortlist a property",
    description="Shortlist a property for the signed-in user; repeating it returns the existing row",
    responses=error_responses(400, 401, 403, 404, 500)
)
async def shortlist_property(
    payload: Optional[ShortlistRequest] = Body(None),
    current_user: CurrentUser = Depends(get_current_user),
    mirror_service: PropertyMirrorService = Depends(get_mirror_service)
) -> ShortlistCreatedResponse:
    """
    Raises:
        MissingFieldsError: If ``userId`` or ``propertyId`` is missing
        UserMismatchError: If ``userId`` is not the signed-in user
        PropertyNotFoundError: If the property has no mirror row
    """
    payload = (payload or ShortlistRequest()).require_all()
    _ensure_same_user(payload.user_id, current_user)

    shortlist = await mirror_service.shortlist_property(payload.user_id, payload.property_id)
    return ShortlistCreatedResponse(shortlist=ShortlistRecord.model_validate(shortlist))


@router.get(
    "/shortlist",
    response_model=ShortlistedPropertiesResponse,
    summary="Shortlisted properties",
    description="A user's shortlist rows, each with its property",
    responses=error_responses(400, 401, 403, 500)
)
async def get_shortlisted_properties(
    user_id: Optional[str] = Query(None, alias="userId", description="Id of the signed-in user"),
    current_user: CurrentUser = Depends(get_current_user),
    mirror_service: PropertyMirrorService = Depends(get_mirror_service)
) -> ShortlistedPropertiesResponse:
    """
    Raises:
        MissingFieldsError: If ``userId`` is missing
        UserMismatchError: If ``userId`` is not the signed-in user
    """
    if is_missing(user_id):
        raise MissingFieldsError(["userId"])
    _ensure_same_user(user_id, current_user)

    shortlists = await mirror_service.get_shortlisted(user_id)
    return ShortlistedPropertiesResponse(
        shortlisted_properties=[ShortlistWithProperty.model_validate(s) for s in shortlists]
    )
