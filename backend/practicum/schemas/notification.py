"""
Notification Pydantic schemas for request/response validation.
"""

from pydantic import BaseModel, Field
from typing import Optional, List, Dict, Any
from datetime import datetime
from uuid import UUID

from practicum.models.notification import NotificationKind, NotificationPriority, DeliveryStatus


class NotificationEvent(BaseModel):
    """A workflow event addressed to one user."""
    recipient_user_id: UUID
    kind: NotificationKind
    title: str = Field(..., max_length=255)
    message: str
    related_entity_id: Optional[str] = None
    related_entity_type: Optional[str] = None
    priority: NotificationPriority = NotificationPriority.MEDIUM
    metadata: Dict[str, Any] = {}


class NotificationResponse(BaseModel):
    """Schema for notification response."""
    id: UUID
    user_id: UUID
    kind: NotificationKind
    title: str
    message: str
    related_entity_id: Optional[str] = None
    related_entity_type: Optional[str] = None
    priority: NotificationPriority
    metadata: Optional[Dict[str, Any]] = Field(None, validation_alias="event_metadata")
    delivery_status: DeliveryStatus
    read: bool
    read_at: Optional[datetime] = None
    created_at: Optional[datetime] = None

    class Config:
        from_attributes = True


class NotificationListResponse(BaseModel):
    """Schema for notification list response."""
    items: List[NotificationResponse]
    total: int
    unread: int


class MarkReadResponse(BaseModel):
    updated: int
