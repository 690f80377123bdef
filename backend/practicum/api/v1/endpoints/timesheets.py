"""
Timesheet API endpoints.
"""

from datetime import date, datetime
from typing import List, Optional
from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.ext.asyncio import AsyncSession
from uuid import UUID

from practicum.db.session import get_db
from practicum.api.v1.middleware import require_authentication, require_roles
from practicum.controllers.timesheet_controller import TimesheetController
from practicum.models.user import User, UserRole
from practicum.schemas.timesheet import (
    ApprovalQueueResponse,
    MarkViewedRequest,
    SubmitWeekRequest,
    TimesheetEntryCreate,
    TimesheetEntryResponse,
    TimesheetEntryUpdate,
    TimesheetWeekResponse,
    WeekDecisionRequest,
)

router = APIRouter()


@router.get("/placements/{placement_id}/entries", response_model=List[TimesheetEntryResponse])
async def list_entries(
    placement_id: UUID,
    start: Optional[date] = Query(None),
    end: Optional[date] = Query(None),
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(require_authentication),
) -> List[TimesheetEntryResponse]:
    controller = TimesheetController(db)
    return await controller.list_entries(placement_id, current_user, start, end)


@router.post(
    "/placements/{placement_id}/entries",
    response_model=TimesheetEntryResponse,
    status_code=status.HTTP_201_CREATED,
)
async def create_entry(
    placement_id: UUID,
    data: TimesheetEntryCreate,
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(require_roles(UserRole.STUDENT)),
) -> TimesheetEntryResponse:
    """Log hours for one day."""
    controller = TimesheetController(db)
    return await controller.create_entry(placement_id, data, current_user)


@router.patch("/entries/{entry_id}", response_model=TimesheetEntryResponse)
async def update_entry(
    entry_id: UUID,
    data: TimesheetEntryUpdate,
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(require_roles(UserRole.STUDENT)),
) -> TimesheetEntryResponse:
    controller = TimesheetController(db)
    return await controller.update_entry(entry_id, data, current_user)


@router.delete("/entries/{entry_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_entry(
    entry_id: UUID,
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(require_roles(UserRole.STUDENT)),
):
    controller = TimesheetController(db)
    await controller.delete_entry(entry_id, current_user)


@router.get("/placements/{placement_id}/week", response_model=TimesheetWeekResponse)
async def get_week(
    placement_id: UUID,
    day: Optional[date] = Query(None, description="Any day in the week, defaults to today"),
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(require_authentication),
) -> TimesheetWeekResponse:
    """Entries, total hours and journal for one Sunday to Saturday week."""
    controller = TimesheetController(db)
    return await controller.get_week(placement_id, day or datetime.utcnow().date(), current_user)


@router.post("/placements/{placement_id}/submit-week", response_model=TimesheetWeekResponse)
async def submit_week(
    placement_id: UUID,
    body: SubmitWeekRequest,
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(require_roles(UserRole.STUDENT)),
) -> TimesheetWeekResponse:
    """Submit a week of hours with its journal for supervisor review."""
    controller = TimesheetController(db)
    return await controller.submit_week(placement_id, body, current_user)


@router.post("/supervisor-decision", response_model=TimesheetWeekResponse)
async def supervisor_decision(
    body: WeekDecisionRequest,
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(require_roles(UserRole.SUPERVISOR)),
) -> TimesheetWeekResponse:
    controller = TimesheetController(db)
    return await controller.supervisor_decide(body, current_user)


@router.post("/faculty-decision", response_model=TimesheetWeekResponse)
async def faculty_decision(
    body: WeekDecisionRequest,
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(require_roles(UserRole.FACULTY, UserRole.ADMIN)),
) -> TimesheetWeekResponse:
    controller = TimesheetController(db)
    return await controller.faculty_decide(body, current_user)


@router.post("/mark-viewed")
async def mark_viewed(
    body: MarkViewedRequest,
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(require_roles(UserRole.FACULTY, UserRole.ADMIN)),
):
    """Stamp rejected entries as seen by faculty."""
    controller = TimesheetController(db)
    return {"updated": await controller.mark_viewed(body.entry_ids, current_user)}


@router.get("/queue/supervisor", response_model=ApprovalQueueResponse)
async def supervisor_queue(
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(require_roles(UserRole.SUPERVISOR)),
) -> ApprovalQueueResponse:
    controller = TimesheetController(db)
    return await controller.supervisor_queue(current_user)


@router.get("/queue/faculty", response_model=ApprovalQueueResponse)
async def faculty_queue(
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(require_roles(UserRole.FACULTY, UserRole.ADMIN)),
) -> ApprovalQueueResponse:
    controller = TimesheetController(db)
    return await controller.faculty_queue(current_user)
