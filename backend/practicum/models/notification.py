"""
Notification model: the audit record written for every workflow event.
"""

from sqlalchemy import Column, String, Boolean, DateTime, ForeignKey, JSON, Text, Enum as SQLEnum, func
from sqlalchemy.dialects.postgresql import UUID
from datetime import datetime
import uuid
import enum

from practicum.db.base import Base


class NotificationKind(str, enum.Enum):
    """Workflow events that produce a notification."""
    PLACEMENT_APPROVED = "PLACEMENT_APPROVED"
    PLACEMENT_ACTIVATED = "PLACEMENT_ACTIVATED"
    PLACEMENT_REJECTED = "PLACEMENT_REJECTED"
    PLACEMENT_COMPLETED = "PLACEMENT_COMPLETED"
    FACULTY_CLASS_MISMATCH = "FACULTY_CLASS_MISMATCH"
    SUPERVISOR_APPROVED = "SUPERVISOR_APPROVED"
    SUPERVISOR_REJECTED = "SUPERVISOR_REJECTED"
    DOCUMENT_UPLOADED = "DOCUMENT_UPLOADED"
    TIMESHEET_SUBMITTED = "TIMESHEET_SUBMITTED"
    TIMESHEET_SUPERVISOR_APPROVED = "TIMESHEET_SUPERVISOR_APPROVED"
    TIMESHEET_APPROVED = "TIMESHEET_APPROVED"
    TIMESHEET_REJECTED = "TIMESHEET_REJECTED"


class NotificationPriority(str, enum.Enum):
    LOW = "LOW"
    MEDIUM = "MEDIUM"
    HIGH = "HIGH"
    URGENT = "URGENT"


class DeliveryStatus(str, enum.Enum):
    PENDING = "PENDING"
    SENT = "SENT"
    FAILED = "FAILED"


class Notification(Base):
    """Append-only notification record. Recipients only toggle read state."""

    __tablename__ = "notifications"

    id = Column(UUID(as_uuid=True), primary_key=True, default=uuid.uuid4, index=True)
    user_id = Column(UUID(as_uuid=True), ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)
    kind = Column(SQLEnum(NotificationKind), nullable=False, index=True)
    title = Column(String(255), nullable=False)
    message = Column(Text, nullable=False)
    related_entity_id = Column(String(64), nullable=True)
    related_entity_type = Column(String(50), nullable=True)
    priority = Column(SQLEnum(NotificationPriority), nullable=False, default=NotificationPriority.MEDIUM)
    # "metadata" is reserved on declarative classes
    event_metadata = Column("metadata", JSON, nullable=True)

    delivery_status = Column(SQLEnum(DeliveryStatus), nullable=False, default=DeliveryStatus.PENDING)
    delivery_error = Column(Text, nullable=True)
    read = Column(Boolean, nullable=False, default=False)
    read_at = Column(DateTime, nullable=True)
    created_at = Column(DateTime, nullable=False, default=datetime.utcnow, server_default=func.now())
