"""
Placement status history repository for database operations.
"""

from typing import List
from uuid import UUID
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy import select

from practicum.db.repositories.base_repository import BaseRepository
from practicum.models.placement import PlacementStatusHistory


class PlacementStatusHistoryRepository(BaseRepository[PlacementStatusHistory]):
    """Repository for placement status history operations."""

    def __init__(self, session: AsyncSession):
        super().__init__(PlacementStatusHistory, session)

    async def list_by_placement(self, placement_id: UUID) -> List[PlacementStatusHistory]:
        """List status history for a placement, oldest first."""
        result = await self.session.execute(
            select(PlacementStatusHistory)
            .where(PlacementStatusHistory.placement_id == placement_id)
            .order_by(PlacementStatusHistory.changed_at, PlacementStatusHistory.id)
        )
        return list(result.scalars().all())
