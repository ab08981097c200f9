"""
Listing API endpoints backing the listing screens: browse and filter, submit,
edit, delete, detail, contact reveal, and shortlisting.
"""

from fastapi import APIRouter, Depends, Query, Response, status
from typing import List, Optional

from app.documents import Document
from app.schemas.listing import (
    ContactResponse,
    ListingDetail,
    ListingForm,
    ListingOptionsResponse,
    ListingResponse,
)
from app.schemas.property import ShortlistRecord, ShortlistWithProperty
from app.services.auth import CurrentUser
from app.services.error_handler import error_responses
from app.services.listing import ListingService
from app.utils.dependencies import (
    get_current_user,
    get_optional_current_user,
    get_listing_service,
)
from app.utils.filters import ListingFilter


router = APIRouter(prefix="/listings", tags=["Listings"])


def _detail(document: Document) -> ListingDetail:
    return ListingDetail.model_validate(document.to_dict())


def _full(document: Document) -> ListingResponse:
    return ListingResponse.model_validate(document.to_dict())


@router.get(
    "",
    response_model=List[ListingDetail],
    summary="Browse listings",
    description="Every listing, filtered in memory by city, locality, property type and price range. "
                "Blank filter values do not constrain; a price bound of 0 is a real bound."
)
async def browse_listings(
    city: Optional[str] = Query(None, description="Exact city"),
    locality: Optional[str] = Query(None, description="Exact locality"),
    property_type: Optional[str] = Query(None, alias="propertyType", description="Exact property type"),
    min_price: Optional[str] = Query(None, alias="minPrice", description="Lowest price, inclusive"),
    max_price: Optional[str] = Query(None, alias="maxPrice", description="Highest price, inclusive"),
    current_user: Optional[CurrentUser] = Depends(get_optional_current_user),
    listing_service: ListingService = Depends(get_listing_service)
) -> List[ListingDetail]:
    """Browse the home listing; authentication is optional."""
    listing_filter = ListingFilter.from_query(
        city=city,
        locality=locality,
        property_type=property_type,
        min_price=min_price,
        max_price=max_price,
    )
    documents = await listing_service.list_listings(listing_filter)
    return [_detail(document) for document in documents]


@router.get(
    "/search",
    response_model=List[ListingDetail],
    summary="Search listings",
    description="Filtered search with the predicates pushed down to the primary store",
    responses=error_responses(400, 401)
)
async def search_listings(
    city: Optional[str] = Query(None),
    locality: Optional[str] = Query(None),
    property_type: Optional[str] = Query(None, alias="propertyType"),
    option: Optional[str] = Query(None, description="sell, rent or pg"),
    min_price: Optional[str] = Query(None, alias="minPrice"),
    max_price: Optional[str] = Query(None, alias="maxPrice"),
    current_user: CurrentUser = Depends(get_current_user),
    listing_service: ListingService = Depends(get_listing_service)
) -> List[ListingDetail]:
    """Search listings as a signed-in user."""
    listing_filter = ListingFilter.from_query(
        city=city,
        locality=locality,
        property_type=property_type,
        option=option,
        min_price=min_price,
        max_price=max_price,
    )
    documents = await listing_service.search_listings(listing_filter)
    return [_detail(document) for document in documents]


@router.get(
    "/options",
    response_model=ListingOptionsResponse,
    summary="Listing form options",
    description="Allowed values of the listing form's select fields"
)
async def listing_options() -> ListingOptionsResponse:
    return ListingOptionsResponse()


@router.get(
    "/mine",
    response_model=List[ListingResponse],
    summary="My listings",
    responses=error_responses(401)
)
async def my_listings(
    current_user: CurrentUser = Depends(get_current_user),
    listing_service: ListingService = Depends(get_listing_service)
) -> List[ListingResponse]:
    """Every listing owned by the signed-in user, for selection in the edit screen."""
    documents = await listing_service.list_owner_listings(current_user)
    return [_full(document) for document in documents]


@router.get(
    "/shortlisted",
    response_model=List[ShortlistWithProperty],
    summary="My shortlist",
    responses=error_responses(401)
)
async def my_shortlist(
    current_user: CurrentUser = Depends(get_current_user),
    listing_service: ListingService = Depends(get_listing_service)
) -> List[ShortlistWithProperty]:
    """The signed-in user's shortlisted properties."""
    shortlists = await listing_service.get_shortlisted(current_user)
    return [ShortlistWithProperty.model_validate(shortlist) for shortlist in shortlists]


@router.post(
    "",
    response_model=ListingResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Create listing",
    description="Write the listing to the primary store, then mirror it. "
                "Refused while the user's image upload is in flight.",
    responses=error_responses(400, 401)
)
async def create_listing(
    form: ListingForm,
    current_user: CurrentUser = Depends(get_current_user),
    listing_service: ListingService = Depends(get_listing_service)
) -> ListingResponse:
    """
    Create a listing owned by the signed-in user.

    Raises:
        UploadInProgressError: If an image upload is still running
        MirrorSyncError: If the mirror write failed
    """
    document = await listing_service.create_listing(form, current_user)
    return _full(document)


@router.get(
    "/{listing_id}",
    response_model=ListingDetail,
    summary="Listing detail",
    description="A single listing; the owner's contact number is withheld",
    responses=error_responses(401, 404)
)
async def get_listing(
    listing_id: str,
    current_user: CurrentUser = Depends(get_current_user),
    listing_service: ListingService = Depends(get_listing_service)
) -> ListingDetail:
    return _detail(await listing_service.get_listing(listing_id))


@router.put(
    "/{listing_id}",
    response_model=ListingResponse,
    summary="Replace listing",
    description="Replace every field of the listing, then update the mirror",
    responses=error_responses(400, 401, 403, 404)
)
async def replace_listing(
    listing_id: str,
    form: ListingForm,
    current_user: CurrentUser = Depends(get_current_user),
    listing_service: ListingService = Depends(get_listing_service)
) -> ListingResponse:
    """
    Replace a listing owned by the signed-in user.

    Raises:
        PropertyNotFoundError: If the listing does not exist
        PropertyOwnershipError: If the user does not own it
        MirrorSyncError: If the mirror write failed
    """
    document = await listing_service.replace_listing(listing_id, form, current_user)
    return _full(document)


@router.delete(
    "/{listing_id}",
    status_code=status.HTTP_204_NO_CONTENT,
    summary="Delete listing",
    description="Delete the listing from the primary store, then from the mirror",
    responses=error_responses(401, 403, 404)
)
async def delete_listing(
    listing_id: str,
    current_user: CurrentUser = Depends(get_current_user),
    listing_service: ListingService = Depends(get_listing_service)
) -> Response:
    await listing_service.delete_listing(listing_id, current_user)
    return Response(status_code=status.HTTP_204_NO_CONTENT)


@router.delete(
    "/{listing_id}/images",
    response_model=ListingResponse,
    summary="Remove listing image",
    description="Delete the image object and remove exactly that URL from the listing",
    responses=error_responses(401, 403, 404)
)
async def remove_listing_image(
    listing_id: str,
    url: str = Query(..., description="Public URL of the image to remove"),
    current_user: CurrentUser = Depends(get_current_user),
    listing_service: ListingService = Depends(get_listing_service)
) -> ListingResponse:
    document = await listing_service.remove_image(listing_id, url, current_user)
    return _full(document)


@router.post(
    "/{listing_id}/contact",
    response_model=ContactResponse,
    summary="Reveal owner contact",
    description="Reveal the owner's name and contact number to a signed-in user",
    responses=error_responses(401, 404)
)
async def reveal_contact(
    listing_id: str,
    current_user: CurrentUser = Depends(get_current_user),
    listing_service: ListingService = Depends(get_listing_service)
) -> ContactResponse:
    document = await listing_service.reveal_contact(listing_id)
    return ContactResponse(
        owner_name=document.data.get("ownerName", ""),
        contact_number=document.data.get("contactNumber", "")
    )


@router.post(
    "/{listing_id}/shortlist",
    response_model=ShortlistRecord,
    summary="Shortlist listing",
    description="Shortlist the listing for the signed-in user; repeating it is harmless",
    responses=error_responses(401, 404)
)
async def shortlist_listing(
    listing_id: str,
    current_user: CurrentUser = Depends(get_current_user),
    listing_service: ListingService = Depends(get_listing_service)
) -> ShortlistRecord:
    shortlist = await listing_service.shortlist(listing_id, current_user)
    return ShortlistRecord.model_validate(shortlist)
