"""
Base repository pattern implementation

Generic async CRUD helpers shared by every repository. Methods here take an
explicit session; the public repository methods open one with
``@async_with_session``.
"""

from abc import ABC
from typing import Any, Dict, Generic, List, Optional, TypeVar, Type

from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

ModelType = TypeVar("ModelType")
CreateSchemaType = TypeVar("CreateSchemaType")


def _to_data(obj_in: Any) -> Dict[str, Any]:
    if obj_in is None:
        return {}
    if hasattr(obj_in, 'model_dump'):
        return obj_in.model_dump(exclude_unset=True)
    return dict(obj_in)


class BaseRepository(Generic[ModelType, CreateSchemaType], ABC):
    """
    Asynchronous base Repository class

    Generic parameters:
        ModelType: SQLAlchemy model type
        CreateSchemaType: Schema type for create operations
    """

    def __init__(self, model: Type[ModelType]):
        self.model = model

    async def get_by_id(self, session: AsyncSession, record_id: Any) -> Optional[ModelType]:
        """Get single record by primary key"""
        return await session.get(self.model, record_id)

    async def get_multi(
            self,
            session: AsyncSession,
            skip: int = 0,
            limit: Optional[int] = 100,
            filters: Dict[str, Any] = None,
            order_by: str = None
    ) -> List[ModelType]:
        """
        Get multiple records

        Args:
            session: Asynchronous database session
            skip: Number of records to skip
            limit: Maximum number of records, None for no limit
            filters: Filter condition dictionary
            order_by: Sort field, "-field" for descending

        Returns:
            List of model instances
        """
        stmt = select(self.model)
        if filters:
            stmt = self._apply_filters(stmt, filters)
        if order_by:
            stmt = self._apply_order_by(stmt, order_by)
        stmt = stmt.offset(skip)
        if limit is not None:
            stmt = stmt.limit(limit)
        result = await session.execute(stmt)
        return list(result.scalars().all())

    async def count(self, session: AsyncSession, filters: Dict[str, Any] = None) -> int:
        """Count records matching the filters"""
        stmt = select(func.count()).select_from(self.model)
        if filters:
            stmt = self._apply_filters(stmt, filters)
        result = await session.execute(stmt)
        return result.scalar() or 0

    async def create(self, session: AsyncSession, obj_in: CreateSchemaType, **kwargs) -> ModelType:
        """Insert a record and flush to obtain its defaults (no commit)"""
        obj_data = _to_data(obj_in)
        obj_data.update(kwargs)

        db_obj = self.model(**obj_data)
        session.add(db_obj)
        await session.flush()
        await session.refresh(db_obj)
        return db_obj

    async def delete(self, session: AsyncSession, record_id: Any) -> Optional[ModelType]:
        """Delete a record by primary key, returning it when it existed"""
        obj = await self.get_by_id(session, record_id)
        if obj:
            await session.delete(obj)
            await session.flush()
        return obj

    def _apply_filters(self, stmt, filters: Dict[str, Any]):
        for key, value in filters.items():
            if not hasattr(self.model, key) or value is None:
                continue
            column = getattr(self.model, key)
            if isinstance(value, dict):
                # Range / membership query {"gte": 1, "in": [...]}
                if "gte" in value:
                    stmt = stmt.where(column >= value["gte"])
                if "lte" in value:
                    stmt = stmt.where(column <= value["lte"])
                if "in" in value:
                    stmt = stmt.where(column.in_(value["in"]))
            else:
                stmt = stmt.where(column == value)
        return stmt

    def _apply_order_by(self, stmt, order_by: str):
        field = order_by.lstrip("-")
        if not hasattr(self.model, field):
            return stmt
        column = getattr(self.model, field)
        return stmt.order_by(column.desc() if order_by.startswith("-") else column)
