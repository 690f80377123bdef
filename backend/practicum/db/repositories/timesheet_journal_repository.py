"""
Timesheet journal repository for database operations.
"""

from datetime import date, datetime
from typing import Optional
from uuid import UUID
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy import select

from practicum.db.repositories.base_repository import BaseRepository
from practicum.models.timesheet import TimesheetJournal


class TimesheetJournalRepository(BaseRepository[TimesheetJournal]):
    """Repository for weekly journals."""

    def __init__(self, session: AsyncSession):
        super().__init__(TimesheetJournal, session)

    async def get_for_week(self, placement_id: UUID, week_start: date, week_end: date) -> Optional[TimesheetJournal]:
        result = await self.session.execute(
            select(TimesheetJournal)
            .where(
                TimesheetJournal.placement_id == placement_id,
                TimesheetJournal.week_start == week_start,
                TimesheetJournal.week_end == week_end,
            )
            .execution_options(populate_existing=True)
        )
        return result.scalar_one_or_none()

    async def upsert(self, placement_id: UUID, week_start: date, week_end: date, **fields) -> TimesheetJournal:
        """Create the week's journal, or overwrite it on resubmission."""
        existing = await self.get_for_week(placement_id, week_start, week_end)
        if existing is None:
            return await self.create(
                placement_id=placement_id,
                week_start=week_start,
                week_end=week_end,
                **fields,
            )
        return await self.update(existing.id, submitted_at=datetime.utcnow(), **fields)
