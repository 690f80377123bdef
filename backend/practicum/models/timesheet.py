"""
Timesheet models for hour logging and the weekly dual-approval workflow.
"""

from sqlalchemy import Column, String, Date, ForeignKey, Numeric, Boolean, DateTime, Text, JSON, UniqueConstraint, Enum as SQLEnum, func
from sqlalchemy.dialects.postgresql import UUID
from datetime import datetime
import uuid
import enum

from practicum.db.base import Base


class TimesheetEntryStatus(str, enum.Enum):
    """Timesheet entry status enumeration."""
    DRAFT = "DRAFT"
    PENDING_SUPERVISOR = "PENDING_SUPERVISOR"
    PENDING_FACULTY = "PENDING_FACULTY"
    APPROVED = "APPROVED"
    REJECTED = "REJECTED"


class TimesheetCategory(str, enum.Enum):
    """Kind of work the hours were spent on."""
    DIRECT = "DIRECT"
    INDIRECT = "INDIRECT"
    TRAINING = "TRAINING"
    ADMIN = "ADMIN"


# Statuses from which the student may edit an entry and (re)submit its week
EDITABLE_ENTRY_STATUSES = (TimesheetEntryStatus.DRAFT, TimesheetEntryStatus.REJECTED)


class TimesheetEntry(Base):
    """One day's worked hours within a placement."""

    __tablename__ = "timesheet_entries"

    id = Column(UUID(as_uuid=True), primary_key=True, default=uuid.uuid4, index=True)
    placement_id = Column(UUID(as_uuid=True), ForeignKey("placements.id", ondelete="CASCADE"), nullable=False, index=True)
    date = Column(Date, nullable=False, index=True)
    hours = Column(Numeric(5, 2), nullable=False)
    category = Column(SQLEnum(TimesheetCategory), nullable=False, default=TimesheetCategory.DIRECT)
    notes = Column(Text, nullable=True)
    status = Column(SQLEnum(TimesheetEntryStatus), nullable=False, default=TimesheetEntryStatus.DRAFT, index=True)

    submitted_at = Column(DateTime, nullable=True)
    supervisor_approved_at = Column(DateTime, nullable=True)
    supervisor_approved_by = Column(UUID(as_uuid=True), ForeignKey("users.id"), nullable=True)
    supervisor_notes = Column(Text, nullable=True)
    faculty_approved_at = Column(DateTime, nullable=True)
    faculty_approved_by = Column(UUID(as_uuid=True), ForeignKey("users.id"), nullable=True)
    faculty_notes = Column(Text, nullable=True)
    rejected_at = Column(DateTime, nullable=True)
    rejected_by = Column(UUID(as_uuid=True), ForeignKey("users.id"), nullable=True)
    rejection_reason = Column(Text, nullable=True)
    locked = Column(Boolean, nullable=False, default=False)
    faculty_viewed_at = Column(DateTime, nullable=True)
    faculty_viewed_by = Column(UUID(as_uuid=True), ForeignKey("users.id"), nullable=True)

    created_at = Column(DateTime, nullable=False, server_default=func.now())
    updated_at = Column(DateTime, nullable=False, server_default=func.now(), onupdate=datetime.utcnow)


class TimesheetJournal(Base):
    """Weekly reflection submitted together with the week's hours."""

    __tablename__ = "timesheet_journals"
    __table_args__ = (
        UniqueConstraint("placement_id", "week_start", "week_end", name="uq_journal_placement_week"),
    )

    id = Column(UUID(as_uuid=True), primary_key=True, default=uuid.uuid4, index=True)
    placement_id = Column(UUID(as_uuid=True), ForeignKey("placements.id", ondelete="CASCADE"), nullable=False, index=True)
    week_start = Column(Date, nullable=False)  # Sunday of the week
    week_end = Column(Date, nullable=False)  # Saturday of the week

    tasks_summary = Column(Text, nullable=False)
    high_low_points = Column(Text, nullable=True)
    competencies = Column(JSON, nullable=False, default=list)
    practice_behaviors = Column(JSON, nullable=False, default=list)
    reaction = Column(Text, nullable=False)
    other_comments = Column(Text, nullable=True)

    submitted_at = Column(DateTime, nullable=False, server_default=func.now())
    updated_at = Column(DateTime, nullable=False, server_default=func.now(), onupdate=datetime.utcnow)
