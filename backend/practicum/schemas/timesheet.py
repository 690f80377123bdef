"""
Timesheet Pydantic schemas for request/response validation.
"""

from pydantic import BaseModel, Field
from typing import Optional, List
import datetime as dt
from decimal import Decimal
from enum import Enum
from uuid import UUID

from practicum.models.timesheet import TimesheetEntryStatus, TimesheetCategory


class DecisionAction(str, Enum):
    """Reviewer decision on a submitted week."""
    APPROVE = "approve"
    REJECT = "reject"


class TimesheetEntryCreate(BaseModel):
    """Schema for logging hours on one day."""
    date: dt.date
    hours: Decimal
    category: TimesheetCategory = TimesheetCategory.DIRECT
    notes: Optional[str] = Field(None, max_length=2000)


class TimesheetEntryUpdate(BaseModel):
    """Schema for editing a DRAFT or REJECTED entry (all fields optional)."""
    date: Optional[dt.date] = None
    hours: Optional[Decimal] = None
    category: Optional[TimesheetCategory] = None
    notes: Optional[str] = Field(None, max_length=2000)


class TimesheetEntryResponse(BaseModel):
    """Schema for timesheet entry response."""
    id: UUID
    placement_id: UUID
    date: dt.date
    hours: Decimal
    category: TimesheetCategory
    notes: Optional[str] = None
    status: TimesheetEntryStatus
    locked: bool
    submitted_at: Optional[dt.datetime] = None
    supervisor_approved_at: Optional[dt.datetime] = None
    supervisor_approved_by: Optional[UUID] = None
    supervisor_notes: Optional[str] = None
    faculty_approved_at: Optional[dt.datetime] = None
    faculty_approved_by: Optional[UUID] = None
    faculty_notes: Optional[str] = None
    rejected_at: Optional[dt.datetime] = None
    rejected_by: Optional[UUID] = None
    rejection_reason: Optional[str] = None
    faculty_viewed_at: Optional[dt.datetime] = None
    faculty_viewed_by: Optional[UUID] = None

    class Config:
        from_attributes = True


class JournalFields(BaseModel):
    """Weekly reflection submitted with the week's hours."""
    tasks_summary: str = Field(..., max_length=10000)
    high_low_points: Optional[str] = Field(None, max_length=10000)
    competencies: List[str] = []
    practice_behaviors: List[str] = []
    reaction: str = Field(..., max_length=20000)
    other_comments: Optional[str] = Field(None, max_length=10000)


class TimesheetJournalResponse(JournalFields):
    """Schema for weekly journal response."""
    id: UUID
    placement_id: UUID
    week_start: dt.date
    week_end: dt.date
    submitted_at: Optional[dt.datetime] = None
    updated_at: Optional[dt.datetime] = None

    class Config:
        from_attributes = True


class SubmitWeekRequest(BaseModel):
    """Submit a Sunday to Saturday week together with its journal."""
    week_start: dt.date
    week_end: Optional[dt.date] = None
    journal: JournalFields


class WeekDecisionRequest(BaseModel):
    """Reviewer decision covering every entry of one submitted week."""
    entry_ids: List[UUID]
    action: DecisionAction
    notes: Optional[str] = Field(None, max_length=2000)


class MarkViewedRequest(BaseModel):
    entry_ids: List[UUID]


class TimesheetWeekResponse(BaseModel):
    """Entries of one week with their combined total."""
    placement_id: UUID
    week_start: dt.date
    week_end: dt.date
    total_hours: Decimal
    entries: List[TimesheetEntryResponse]
    journal: Optional[TimesheetJournalResponse] = None


class WeekSummary(BaseModel):
    """One submitted week waiting in a reviewer's queue."""
    placement_id: UUID
    student_id: UUID
    student_name: Optional[str] = None
    week_start: dt.date
    week_end: dt.date
    entry_ids: List[UUID]
    entry_count: int
    total_hours: Decimal
    submitted_at: Optional[dt.datetime] = None


class ApprovalQueueResponse(BaseModel):
    """Schema for a reviewer's pending weeks."""
    items: List[WeekSummary]
    total: int
