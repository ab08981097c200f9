"""
Shortlist repository for user bookmarks stored in the relational mirror.
"""

from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy import select, and_
from app.repositories.base import BaseRepository
from app.models.shortlist import Shortlist
from typing import List, Optional
import logging

logger = logging.getLogger(__name__)


class ShortlistRepository(BaseRepository[Shortlist]):
    """Repository for shortlist join rows."""

    def __init__(self, db: AsyncSession):
        super().__init__(Shortlist, db)

    async def get_for_pair(self, user_id: str, property_id: str) -> Optional[Shortlist]:
        """
        Get the shortlist row for a user and property.

        Args:
            user_id: Id of the user
            property_id: Id of the mirrored property

        Returns:
            The row if the user already shortlisted the property, None otherwise
        """
        try:
            query = select(Shortlist).where(
                and_(Shortlist.user_id == user_id, Shortlist.property_id == property_id)
            )
            result = await self.db.execute(query)
            return result.scalar_one_or_none()
        except Exception as e:
            logger.error(f"Failed to get shortlist for user {user_id}, property {property_id}: {e}")
            raise

    async def get_by_user(self, user_id: str) -> List[Shortlist]:
        """
        Get a user's shortlist rows with their properties loaded.

        Args:
            user_id: Id of the user

        Returns:
            Shortlist rows ordered by creation time, oldest first
        """
        return await self.get_multi(filters={"user_id": user_id}, order_by="created_at")
