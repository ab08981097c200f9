"""
Property repository for the relational mirror.
"""

from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy import select
from app.repositories.base import BaseRepository
from app.models.property import Property
from typing import List
import logging

logger = logging.getLogger(__name__)


class PropertyRepository(BaseRepository[Property]):
    """Repository for mirrored property rows."""

    def __init__(self, db: AsyncSession):
        super().__init__(Property, db)

    async def get_all(self) -> List[Property]:
        """Get every mirrored property ordered by id."""
        return await self.get_multi(order_by="id")

    async def get_all_ids(self) -> List[str]:
        """Get the ids of every mirrored property."""
        try:
            result = await self.db.execute(select(Property.id).order_by(Property.id))
            return list(result.scalars().all())
        except Exception as e:
            logger.error(f"Failed to list property ids: {e}")
            raise
