"""
Timesheet entry repository for database operations.
"""

from datetime import date
from decimal import Decimal
from typing import Iterable, List, Optional
from uuid import UUID
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy import select, update, delete, func

from practicum.db.repositories.base_repository import BaseRepository
from practicum.models.placement import Placement
from practicum.models.timesheet import TimesheetEntry, TimesheetEntryStatus, EDITABLE_ENTRY_STATUSES


class TimesheetEntryRepository(BaseRepository[TimesheetEntry]):
    """Repository for timesheet entry operations."""

    def __init__(self, session: AsyncSession):
        super().__init__(TimesheetEntry, session)

    async def list_by_placement(
        self,
        placement_id: UUID,
        start: Optional[date] = None,
        end: Optional[date] = None,
    ) -> List[TimesheetEntry]:
        """List entries for a placement, optionally limited to [start, end]."""
        query = select(TimesheetEntry).where(TimesheetEntry.placement_id == placement_id)
        if start:
            query = query.where(TimesheetEntry.date >= start)
        if end:
            query = query.where(TimesheetEntry.date <= end)
        result = await self.session.execute(
            query.order_by(TimesheetEntry.date, TimesheetEntry.created_at)
            .execution_options(populate_existing=True)
        )
        return list(result.scalars().all())

    async def count_outside_statuses(
        self,
        placement_id: UUID,
        start: date,
        end: date,
        statuses: Iterable[TimesheetEntryStatus],
    ) -> int:
        """Count entries dated in [start, end] whose status is not one of `statuses`."""
        result = await self.session.execute(
            select(func.count(TimesheetEntry.id)).where(
                TimesheetEntry.placement_id == placement_id,
                TimesheetEntry.date >= start,
                TimesheetEntry.date <= end,
                TimesheetEntry.status.not_in(list(statuses)),
            )
        )
        return result.scalar_one()

    async def sum_approved_hours(self, placement_id: UUID) -> Decimal:
        """Total hours that cleared faculty approval."""
        result = await self.session.execute(
            select(func.coalesce(func.sum(TimesheetEntry.hours), 0)).where(
                TimesheetEntry.placement_id == placement_id,
                TimesheetEntry.status == TimesheetEntryStatus.APPROVED,
            )
        )
        return Decimal(str(result.scalar_one()))

    async def list_queue(
        self,
        status: TimesheetEntryStatus,
        supervisor_id: Optional[UUID] = None,
        faculty_id: Optional[UUID] = None,
    ) -> List[TimesheetEntry]:
        """Entries in `status` for placements the given supervisor or faculty oversees."""
        query = (
            select(TimesheetEntry)
            .join(Placement, Placement.id == TimesheetEntry.placement_id)
            .where(TimesheetEntry.status == status)
        )
        if supervisor_id:
            query = query.where(Placement.supervisor_id == supervisor_id)
        if faculty_id:
            query = query.where(Placement.faculty_id == faculty_id)
        result = await self.session.execute(
            query.order_by(TimesheetEntry.placement_id, TimesheetEntry.date)
        )
        return list(result.scalars().all())

    async def update_editable(self, id: UUID, **values) -> int:
        """Update an entry only while it is unlocked and DRAFT or REJECTED."""
        result = await self.session.execute(
            update(TimesheetEntry)
            .where(
                TimesheetEntry.id == id,
                TimesheetEntry.locked.is_(False),
                TimesheetEntry.status.in_(EDITABLE_ENTRY_STATUSES),
            )
            .values(**values)
            .execution_options(synchronize_session=False)
        )
        await self.session.flush()
        return result.rowcount

    async def delete_editable(self, id: UUID) -> int:
        """Delete an entry only while it is unlocked and DRAFT or REJECTED."""
        result = await self.session.execute(
            delete(TimesheetEntry)
            .where(
                TimesheetEntry.id == id,
                TimesheetEntry.locked.is_(False),
                TimesheetEntry.status.in_(EDITABLE_ENTRY_STATUSES),
            )
            .execution_options(synchronize_session=False)
        )
        await self.session.flush()
        return result.rowcount
