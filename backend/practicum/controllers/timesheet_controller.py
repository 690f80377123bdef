"""
Timesheet controller - coordinates service calls.
"""

from datetime import date
from typing import List, Optional
from uuid import UUID

from sqlalchemy.ext.asyncio import AsyncSession

from practicum.controllers.base_controller import BaseController
from practicum.models.user import User
from practicum.schemas.timesheet import (
    ApprovalQueueResponse,
    SubmitWeekRequest,
    TimesheetEntryCreate,
    TimesheetEntryResponse,
    TimesheetEntryUpdate,
    TimesheetWeekResponse,
    WeekDecisionRequest,
)
from practicum.services.timesheet_service import TimesheetService
from practicum.services.timesheet_approval_service import TimesheetApprovalService


class TimesheetController(BaseController):
    """Controller for timesheet operations."""

    def __init__(self, session: AsyncSession):
        self.timesheet_service = TimesheetService(session)
        self.approval_service = TimesheetApprovalService(session)

    async def list_entries(
        self,
        placement_id: UUID,
        actor: User,
        start: Optional[date] = None,
        end: Optional[date] = None,
    ) -> List[TimesheetEntryResponse]:
        return await self.timesheet_service.list_entries(placement_id, actor, start, end)

    async def create_entry(
        self,
        placement_id: UUID,
        data: TimesheetEntryCreate,
        actor: User,
    ) -> TimesheetEntryResponse:
        return await self.timesheet_service.create_entry(placement_id, data, actor)

    async def update_entry(
        self,
        entry_id: UUID,
        data: TimesheetEntryUpdate,
        actor: User,
    ) -> TimesheetEntryResponse:
        return await self.timesheet_service.update_entry(entry_id, data, actor)

    async def delete_entry(self, entry_id: UUID, actor: User) -> None:
        await self.timesheet_service.delete_entry(entry_id, actor)

    async def get_week(self, placement_id: UUID, day: date, actor: User) -> TimesheetWeekResponse:
        return await self.timesheet_service.get_week(placement_id, day, actor)

    async def submit_week(
        self,
        placement_id: UUID,
        body: SubmitWeekRequest,
        actor: User,
    ) -> TimesheetWeekResponse:
        return await self.approval_service.submit_week(
            placement_id, body.week_start, body.journal, actor, week_end=body.week_end
        )

    async def supervisor_decide(self, body: WeekDecisionRequest, actor: User) -> TimesheetWeekResponse:
        return await self.approval_service.supervisor_decide(body.entry_ids, body.action, actor, body.notes)

    async def faculty_decide(self, body: WeekDecisionRequest, actor: User) -> TimesheetWeekResponse:
        return await self.approval_service.faculty_decide(body.entry_ids, body.action, actor, body.notes)

    async def mark_viewed(self, entry_ids: List[UUID], actor: User) -> int:
        return await self.approval_service.mark_viewed(entry_ids, actor)

    async def supervisor_queue(self, actor: User) -> ApprovalQueueResponse:
        return await self.approval_service.supervisor_queue(actor)

    async def faculty_queue(self, actor: User) -> ApprovalQueueResponse:
        return await self.approval_service.faculty_queue(actor)
