"""
Pending supervisor repository for database operations.
"""

from typing import Optional, List
from uuid import UUID
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy import select, func

from practicum.db.repositories.base_repository import BaseRepository
from practicum.models.placement import PendingSupervisor, PendingSupervisorStatus


class PendingSupervisorRepository(BaseRepository[PendingSupervisor]):
    """Repository for pending supervisor requests."""

    def __init__(self, session: AsyncSession):
        super().__init__(PendingSupervisor, session)

    async def get_by_email(self, email: str) -> Optional[PendingSupervisor]:
        """Get a request by supervisor email (case-insensitive)."""
        result = await self.session.execute(
            select(PendingSupervisor).where(
                func.lower(PendingSupervisor.email) == email.strip().lower()
            )
        )
        return result.scalar_one_or_none()

    async def get_by_placement(self, placement_id: UUID) -> Optional[PendingSupervisor]:
        result = await self.session.execute(
            select(PendingSupervisor).where(PendingSupervisor.placement_id == placement_id)
        )
        return result.scalar_one_or_none()

    async def list_by_status(
        self,
        status: Optional[PendingSupervisorStatus] = None,
        skip: int = 0,
        limit: int = 100,
    ) -> List[PendingSupervisor]:
        """List requests, oldest first, optionally filtered by status."""
        query = select(PendingSupervisor)
        if status:
            query = query.where(PendingSupervisor.status == status)
        result = await self.session.execute(
            query.order_by(PendingSupervisor.created_at, PendingSupervisor.id).offset(skip).limit(limit)
        )
        return list(result.scalars().all())
