"""
Generic async repository over one mirror model.

Writes commit immediately and roll back on failure; every failure is logged
and re-raised for the service layer to translate.
"""

from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy import Select, select, func
from app.database import Base
from typing import TypeVar, Generic, Optional, List, Dict, Any, Type
import logging

logger = logging.getLogger(__name__)

ModelType = TypeVar("ModelType", bound=Base)


class BaseRepository(Generic[ModelType]):
    """
    CRUD operations shared by the mirror repositories.

    Filters are ``{column: value}`` mappings. A list value matches any of its
    members, anything else matches by equality.
    """

    def __init__(self, model: Type[ModelType], db: AsyncSession):
        self.model = model
        self.db = db

    @property
    def model_name(self) -> str:
        return self.model.__name__

    def _filtered(self, query: Select, filters: Optional[Dict[str, Any]]) -> Select:
        for field, value in (filters or {}).items():
            column = getattr(self.model, field)
            query = query.where(column.in_(value) if isinstance(value, list) else column == value)
        return query

    def _ordered(self, query: Select, order_by: Optional[str]) -> Select:
        if not order_by:
            return query.order_by(self.model.created_at.desc())
        if order_by.startswith("-"):
            return query.order_by(getattr(self.model, order_by[1:]).desc())
        return query.order_by(getattr(self.model, order_by))

    async def create(self, obj_in: Dict[str, Any]) -> ModelType:
        """
        Insert a row.

        Args:
            obj_in: Column values for the new row

        Returns:
            The row, refreshed with server defaults

        Raises:
            IntegrityError: If a key or constraint is violated
        """
        try:
            db_obj = self.model(**obj_in)
            self.db.add(db_obj)
            await self.db.commit()
            await self.db.refresh(db_obj)
            logger.debug(f"Created {self.model_name} {db_obj.id}")
            return db_obj
        except Exception as e:
            await self.db.rollback()
            logger.error(f"Failed to create {self.model_name}: {e}")
            raise

    async def get_by_id(self, id: str) -> Optional[ModelType]:
        """Get a row by primary key, or None."""
        try:
            result = await self.db.execute(select(self.model).where(self.model.id == id))
            return result.scalar_one_or_none()
        except Exception as e:
            logger.error(f"Failed to get {self.model_name} {id}: {e}")
            raise

    async def get_multi(
        self,
        filters: Optional[Dict[str, Any]] = None,
        order_by: Optional[str] = None
    ) -> List[ModelType]:
        """
        Get every row matching the filters.

        Args:
            filters: Column filters
            order_by: Column name, prefixed with ``-`` for descending.
                Defaults to newest first.

        Returns:
            Matching rows
        """
        try:
            query = self._ordered(self._filtered(select(self.model), filters), order_by)
            result = await self.db.execute(query)
            rows = list(result.scalars().all())
            logger.debug(f"Fetched {len(rows)} {self.model_name} rows")
            return rows
        except Exception as e:
            logger.error(f"Failed to list {self.model_name} rows: {e}")
            raise

    async def update(self, id: str, obj_in: Dict[str, Any]) -> Optional[ModelType]:
        """
        Write the given columns of one row.

        Columns not named in ``obj_in`` keep their stored values.

        Returns:
            The updated row, or None if no row has this id
        """
        try:
            db_obj = await self.get_by_id(id)
            if db_obj is None:
                return None

            for field, value in obj_in.items():
                setattr(db_obj, field, value)

            await self.db.commit()
            await self.db.refresh(db_obj)
            logger.debug(f"Updated {self.model_name} {id}: {sorted(obj_in)}")
            return db_obj
        except Exception as e:
            await self.db.rollback()
            logger.error(f"Failed to update {self.model_name} {id}: {e}")
            raise

    async def delete(self, id: str) -> Optional[ModelType]:
        """
        Delete one row through the session so ORM cascades apply.

        Returns:
            The deleted row, or None if no row has this id
        """
        try:
            db_obj = await self.get_by_id(id)
            if db_obj is None:
                return None

            await self.db.delete(db_obj)
            await self.db.commit()
            logger.debug(f"Deleted {self.model_name} {id}")
            return db_obj
        except Exception as e:
            await self.db.rollback()
            logger.error(f"Failed to delete {self.model_name} {id}: {e}")
            raise

    async def count(self, filters: Optional[Dict[str, Any]] = None) -> int:
        try:
            result = await self.db.execute(
                self._filtered(select(func.count(self.model.id)), filters)
            )
            return result.scalar()
        except Exception as e:
            logger.error(f"Failed to count {self.model_name} rows: {e}")
            raise

    async def exists(self, id: str) -> bool:
        return await self.count({"id": id}) > 0
