"""
Placement repository for database operations.
"""

from datetime import date
from typing import Optional, List
from uuid import UUID
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy import select, update

from practicum.db.repositories.base_repository import BaseRepository
from practicum.models.placement import Placement, PlacementStatus


class PlacementRepository(BaseRepository[Placement]):
    """Repository for placement operations."""

    def __init__(self, session: AsyncSession):
        super().__init__(Placement, session)

    async def list_open_for_student_class(self, student_id: UUID, class_id: UUID) -> List[Placement]:
        """Placements for (student, class) that still count against the one-per-class rule."""
        result = await self.session.execute(
            select(Placement).where(
                Placement.student_id == student_id,
                Placement.class_id == class_id,
                Placement.status != PlacementStatus.DECLINED,
            )
        )
        return list(result.scalars().all())

    async def clear_declined_notes(self, student_id: UUID) -> int:
        """Drop stale rejection notes from a student's declined placements."""
        result = await self.session.execute(
            update(Placement)
            .where(
                Placement.student_id == student_id,
                Placement.status == PlacementStatus.DECLINED,
                Placement.faculty_notes.is_not(None),
            )
            .values(faculty_notes=None)
            .execution_options(synchronize_session=False)
        )
        await self.session.flush()
        return result.rowcount

    async def link_supervisor(self, placement_id: UUID, supervisor_id: UUID) -> bool:
        """Set the supervisor only if the placement has none yet."""
        result = await self.session.execute(
            update(Placement)
            .where(Placement.id == placement_id, Placement.supervisor_id.is_(None))
            .values(supervisor_id=supervisor_id)
            .execution_options(synchronize_session=False)
        )
        await self.session.flush()
        return result.rowcount == 1

    async def list_filtered(
        self,
        student_id: Optional[UUID] = None,
        faculty_id: Optional[UUID] = None,
        supervisor_id: Optional[UUID] = None,
        status: Optional[PlacementStatus] = None,
        skip: int = 0,
        limit: int = 100,
    ) -> List[Placement]:
        """List placements, newest start date first."""
        query = select(Placement)
        if student_id:
            query = query.where(Placement.student_id == student_id)
        if faculty_id:
            query = query.where(Placement.faculty_id == faculty_id)
        if supervisor_id:
            query = query.where(Placement.supervisor_id == supervisor_id)
        if status:
            query = query.where(Placement.status == status)
        result = await self.session.execute(
            query.order_by(Placement.start_date.desc()).offset(skip).limit(limit)
        )
        return list(result.scalars().all())

    async def list_active_ended_before(self, as_of: date) -> List[Placement]:
        """ACTIVE placements whose end date has passed."""
        result = await self.session.execute(
            select(Placement).where(
                Placement.status == PlacementStatus.ACTIVE,
                Placement.end_date < as_of,
            )
        )
        return list(result.scalars().all())
