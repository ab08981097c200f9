"""
Listing service behind the listing screens.

The primary store holds the listing documents. Every write to it is followed
by the matching write to the relational mirror; if the mirror write fails the
primary write is undone before the error reaches the caller:

    create   add document          -> insert row   | on failure: delete document
    replace  overwrite document    -> update row   | on failure: restore previous document
    delete   delete document       -> delete row   | on failure: re-create document
"""

from typing import List, Optional
from app.documents import DocumentStore, Document, FieldFilter
from app.models.shortlist import Shortlist
from app.schemas.listing import ListingForm
from app.services.auth import CurrentUser
from app.services.image import UploadTracker, upload_tracker
from app.services.mirror import PropertyMirrorService, document_to_mirror
from app.utils.exceptions import (
    MirrorSyncError,
    NotFoundError,
    PropertyNotFoundError,
    PropertyOwnershipError,
)
from app.utils.file_utils import ObjectStorage
from app.utils.filters import ListingFilter, apply_filters
import logging

logger = logging.getLogger(__name__)

LISTINGS_COLLECTION = "properties"


class ListingService:
    """
    Service for listing browse, submission, editing, and engagement.
    """

    def __init__(
        self,
        store: DocumentStore,
        mirror: PropertyMirrorService,
        storage: ObjectStorage,
        uploads: UploadTracker = upload_tracker
    ):
        self.store = store
        self.mirror = mirror
        self.storage = storage
        self.uploads = uploads

    async def list_listings(self, listing_filter: Optional[ListingFilter] = None) -> List[Document]:
        """
        Fetch every listing and filter in memory.

        Args:
            listing_filter: Optional predicate; unset fields do not constrain

        Returns:
            Matching listings
        """
        documents = await self.store.query(LISTINGS_COLLECTION)
        return apply_filters(documents, listing_filter or ListingFilter())

    async def search_listings(self, listing_filter: ListingFilter) -> List[Document]:
        """Query the primary store with the filter pushed down as conditions."""
        return await self.store.query(LISTINGS_COLLECTION, listing_filter.to_conditions())

    async def list_owner_listings(self, user: CurrentUser) -> List[Document]:
        """Every listing owned by the user."""
        return await self.store.query(LISTINGS_COLLECTION, [FieldFilter("userId", "==", user.id)])

    async def get_listing(self, listing_id: str) -> Document:
        """
        Get a listing by id.

        Raises:
            PropertyNotFoundError: If there is no such listing
        """
        try:
            document = await self.store.get(LISTINGS_COLLECTION, listing_id)
        except ValueError:
            document = None
        if document is None:
            raise PropertyNotFoundError(listing_id)
        return document

    async def _get_owned(self, listing_id: str, user: CurrentUser) -> Document:
        document = await self.get_listing(listing_id)
        if document.data.get("userId") != user.id:
            logger.warning(f"User {user.id} attempted to modify property {listing_id} owned by {document.data.get('userId')}")
            raise PropertyOwnershipError()
        return document

    async def create_listing(self, form: ListingForm, user: CurrentUser) -> Document:
        """
        Create a listing in the primary store and mirror it.

        Raises:
            UploadInProgressError: If the user has an image upload running
            MirrorSyncError: If the mirror write failed; the document was removed
        """
        self.uploads.ensure_idle(user.id)

        document = await self.store.add(LISTINGS_COLLECTION, form.to_document(user.id))
        try:
            await self.mirror.create_property(document_to_mirror(document))
        except Exception as e:
            logger.error(f"Mirror create failed for property {document.id}, removing document: {e}")
            await self.store.delete(LISTINGS_COLLECTION, document.id)
            raise MirrorSyncError("create", document.id) from e

        logger.info(f"Property created: {document.id} by user {user.id}")
        return document

    async def replace_listing(self, listing_id: str, form: ListingForm, user: CurrentUser) -> Document:
        """
        Replace every field of a listing and update the mirror.

        The owner is always the current user.

        Raises:
            PropertyNotFoundError: If there is no such listing
            PropertyOwnershipError: If the user does not own it
            UploadInProgressError: If the user has an image upload running
            MirrorSyncError: If the mirror write failed; the previous document was restored
        """
        previous = await self._get_owned(listing_id, user)
        self.uploads.ensure_idle(user.id)

        document = await self.store.set(LISTINGS_COLLECTION, listing_id, form.to_document(user.id))
        try:
            await self.mirror.update_property(listing_id, document_to_mirror(document))
        except Exception as e:
            logger.error(f"Mirror update failed for property {listing_id}, restoring document: {e}")
            await self.store.set(LISTINGS_COLLECTION, listing_id, previous.data)
            raise MirrorSyncError("update", listing_id) from e

        logger.info(f"Property updated: {listing_id} by user {user.id}")
        return document

    async def delete_listing(self, listing_id: str, user: CurrentUser) -> None:
        """
        Delete a listing from both stores. Its images stay in object storage.

        A mirror row that is already gone counts as deleted.

        Raises:
            PropertyNotFoundError: If there is no such listing
            PropertyOwnershipError: If the user does not own it
            MirrorSyncError: If the mirror delete failed; the document was re-created
        """
        previous = await self._get_owned(listing_id, user)

        await self.store.delete(LISTINGS_COLLECTION, listing_id)
        try:
            await self.mirror.delete_property(listing_id)
        except PropertyNotFoundError:
            logger.warning(f"Mirror row for property {listing_id} was already missing")
        except Exception as e:
            logger.error(f"Mirror delete failed for property {listing_id}, re-creating document: {e}")
            await self.store.set(LISTINGS_COLLECTION, listing_id, previous.data)
            raise MirrorSyncError("delete", listing_id) from e

        logger.info(f"Property deleted: {listing_id} by user {user.id}")

    async def remove_image(self, listing_id: str, url: str, user: CurrentUser) -> Document:
        """
        Drop exactly this URL from the listing.

        The stored object is deleted only when it lives under the caller's own
        upload prefix; URLs pointing elsewhere are just unlinked.

        Raises:
            PropertyNotFoundError: If there is no such listing
            PropertyOwnershipError: If the user does not own it
            NotFoundError: If the URL is not one of the listing's images
        """
        document = await self._get_owned(listing_id, user)
        images = list(document.data.get("images") or [])
        if url not in images:
            raise NotFoundError("Image", url)

        path = self.storage.path_from_url(url)
        if path is None or not self.storage.is_owned_by(path, user.id):
            logger.warning(f"Image {url} is not stored under user {user.id}, keeping the object")
        elif not await self.storage.delete(path):
            logger.warning(f"Image object for {url} was not found in storage")

        remaining = [image for image in images if image != url]
        updated = await self.store.update(LISTINGS_COLLECTION, listing_id, {"images": remaining})
        logger.info(f"Image removed from property {listing_id}: {url}")
        return updated

    async def reveal_contact(self, listing_id: str) -> Document:
        """Get the listing whose owner contact is being revealed."""
        document = await self.get_listing(listing_id)
        logger.info(f"Contact revealed for property {listing_id}")
        return document

    async def shortlist(self, listing_id: str, user: CurrentUser) -> Shortlist:
        """
        Shortlist a listing for the user through the mirror.

        Raises:
            PropertyNotFoundError: If the listing has no mirror row
        """
        return await self.mirror.shortlist_property(user.id, listing_id)

    async def get_shortlisted(self, user: CurrentUser) -> List[Shortlist]:
        """The user's shortlist rows with their mirrored properties."""
        return await self.mirror.get_shortlisted(user.id)
