"""
Base repository class with common CRUD operations.
Repositories handle database access using async SQLAlchemy sessions.
"""

from typing import Any, Generic, Iterable, TypeVar, Type, Optional, List
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy import select, update, delete

from practicum.db.base import Base

ModelType = TypeVar("ModelType", bound=Base)


class BaseRepository(Generic[ModelType]):
    """Base repository with common CRUD operations."""

    def __init__(self, model: Type[ModelType], session: AsyncSession):
        """
        Initialize repository.

        Args:
            model: SQLAlchemy model class
            session: Async database session
        """
        self.model = model
        self.session = session

    async def create(self, **kwargs) -> ModelType:
        """
        Create a new record.

        Args:
            **kwargs: Model attributes

        Returns:
            Created model instance
        """
        instance = self.model(**kwargs)
        self.session.add(instance)
        await self.session.flush()
        await self.session.refresh(instance)
        return instance

    async def get(self, id: Any) -> Optional[ModelType]:
        """
        Get a record by ID.

        Objects already in the session keep their loaded attributes; use
        `get_fresh` after a bulk or conditional update.
        """
        result = await self.session.execute(
            select(self.model).where(self.model.id == id)
        )
        return result.scalar_one_or_none()

    async def get_fresh(self, id: Any) -> Optional[ModelType]:
        """Get a record by ID, overwriting any stale copy held by the session."""
        result = await self.session.execute(
            select(self.model)
            .where(self.model.id == id)
            .execution_options(populate_existing=True)
        )
        return result.scalar_one_or_none()

    async def get_many(self, ids: Iterable[Any]) -> List[ModelType]:
        """Get all records whose ID is in `ids` (missing IDs are skipped)."""
        ids = list(ids)
        if not ids:
            return []
        result = await self.session.execute(
            select(self.model)
            .where(self.model.id.in_(ids))
            .execution_options(populate_existing=True)
        )
        return list(result.scalars().all())

    async def list(
        self,
        skip: int = 0,
        limit: int = 100,
        **filters,
    ) -> List[ModelType]:
        """
        List records with pagination and filters.

        Args:
            skip: Number of records to skip
            limit: Maximum number of records to return
            **filters: Filter criteria

        Returns:
            List of model instances
        """
        query = select(self.model)

        for key, value in filters.items():
            if hasattr(self.model, key):
                query = query.where(getattr(self.model, key) == value)

        query = query.offset(skip).limit(limit)
        result = await self.session.execute(query)
        return list(result.scalars().all())

    async def update(self, id: Any, **kwargs) -> Optional[ModelType]:
        """
        Unconditionally update a record. Never use this for status fields.
        """
        await self.session.execute(
            update(self.model)
            .where(self.model.id == id)
            .values(**kwargs)
            .execution_options(synchronize_session=False)
        )
        await self.session.flush()
        return await self.get_fresh(id)

    async def transition(
        self,
        ids: Iterable[Any],
        expected_status: Any,
        *conditions: Any,
        **values,
    ) -> int:
        """
        Compare-and-swap update: apply `values` to every row in `ids` whose
        status is `expected_status` (a single status or a tuple of statuses)
        and which satisfies every extra where-clause in `conditions`.

        Returns:
            Number of rows affected. Callers compare this with len(ids) and
            treat a shortfall as stale state.
        """
        ids = list(ids)
        if not ids:
            return 0
        if isinstance(expected_status, (tuple, list, set, frozenset)):
            status_clause = self.model.status.in_(list(expected_status))
        else:
            status_clause = self.model.status == expected_status
        result = await self.session.execute(
            update(self.model)
            .where(self.model.id.in_(ids), status_clause, *conditions)
            .values(**values)
            .execution_options(synchronize_session=False)
        )
        await self.session.flush()
        return result.rowcount

    async def delete(self, id: Any) -> bool:
        """
        Delete a record.

        Returns:
            True if deleted, False if not found
        """
        result = await self.session.execute(
            delete(self.model).where(self.model.id == id)
        )
        await self.session.flush()
        return result.rowcount > 0
