"""
Relational mirror service.
Each operation is a single ORM write or read against the mirrored property
rows and their shortlist join rows.
"""

from typing import Any, Dict, List, Optional
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.exc import IntegrityError
from app.documents import Document
from app.models.property import Property, MIRRORED_FIELDS
from app.models.shortlist import Shortlist
from app.repositories.property import PropertyRepository
from app.repositories.shortlist import ShortlistRepository
from app.utils.exceptions import DuplicateResourceError, PropertyNotFoundError
import logging

logger = logging.getLogger(__name__)


def document_to_mirror(document: Document) -> Dict[str, Any]:
    """
    Mirror column values for a listing document.

    Args:
        document: Listing document from the primary store

    Returns:
        Column values, including the shared id
    """
    values = {column: document.data.get(wire) for column, wire in MIRRORED_FIELDS.items()}
    values["id"] = document.id
    return values


class PropertyMirrorService:
    """
    Service for the relational copy of property listings.
    """

    def __init__(self, db: AsyncSession):
        self.db = db
        self.property_repo = PropertyRepository(db)
        self.shortlist_repo = ShortlistRepository(db)

    async def get_property(self, property_id: str) -> Optional[Property]:
        """Get a mirrored property, or None if there is no row for the id."""
        return await self.property_repo.get_by_id(property_id)

    async def create_property(self, values: Dict[str, Any]) -> Property:
        """
        Insert a mirror row.

        Args:
            values: Column values including ``id``

        Returns:
            Created property

        Raises:
            DuplicateResourceError: If a row with the id already exists
        """
        property_id = values["id"]
        if await self.property_repo.exists(property_id):
            raise DuplicateResourceError("Property", property_id)

        try:
            prop = await self.property_repo.create(values)
        except IntegrityError:
            logger.error(f"Integrity error creating mirror property {property_id}")
            raise

        logger.info(f"Mirror property created: {property_id}")
        return prop

    async def update_property(self, property_id: str, changes: Dict[str, Any]) -> Property:
        """
        Apply changes to a mirror row; columns not in ``changes`` are kept.

        Raises:
            PropertyNotFoundError: If there is no row for the id
        """
        changes = {k: v for k, v in changes.items() if k != "id"}
        prop = await self.property_repo.update(property_id, changes)
        if prop is None:
            raise PropertyNotFoundError(property_id)

        logger.info(f"Mirror property updated: {property_id} ({', '.join(sorted(changes))})")
        return prop

    async def delete_property(self, property_id: str) -> Property:
        """
        Delete a mirror row and its shortlist rows.

        Returns:
            The deleted property

        Raises:
            PropertyNotFoundError: If there is no row for the id
        """
        prop = await self.property_repo.delete(property_id)
        if prop is None:
            raise PropertyNotFoundError(property_id)

        logger.info(f"Mirror property deleted: {property_id}")
        return prop

    async def upsert_property(self, values: Dict[str, Any]) -> Property:
        """Create the row for ``values["id"]`` or overwrite every mirrored column."""
        existing = await self.property_repo.get_by_id(values["id"])
        if existing is None:
            return await self.property_repo.create(values)
        return await self.property_repo.update(values["id"], values)

    async def shortlist_property(self, user_id: str, property_id: str) -> Shortlist:
        """
        Shortlist a property for a user.

        Shortlisting a pair that is already shortlisted returns the existing row.

        Raises:
            PropertyNotFoundError: If the property has no mirror row
        """
        if not await self.property_repo.exists(property_id):
            raise PropertyNotFoundError(property_id)

        existing = await self.shortlist_repo.get_for_pair(user_id, property_id)
        if existing is not None:
            logger.debug(f"Property {property_id} already shortlisted by {user_id}")
            return existing

        try:
            shortlist = await self.shortlist_repo.create({
                "user_id": user_id,
                "property_id": property_id,
                "is_shortlisted": True,
            })
        except IntegrityError:
            # A concurrent request inserted the same pair first
            existing = await self.shortlist_repo.get_for_pair(user_id, property_id)
            if existing is None:
                raise
            return existing

        logger.info(f"Property {property_id} shortlisted by {user_id}")
        return shortlist

    async def get_shortlisted(self, user_id: str) -> List[Shortlist]:
        """Get a user's shortlist rows, each with its property loaded."""
        return await self.shortlist_repo.get_by_user(user_id)
