"""
Pending supervisor Pydantic schemas for request/response validation.
"""

from pydantic import BaseModel, Field
from typing import Optional, List
from datetime import datetime
from uuid import UUID

from practicum.models.placement import PendingSupervisorStatus


class NewSupervisorPayload(BaseModel):
    """Supervisor details supplied with an application when they have no account."""
    first_name: str = Field(..., min_length=1, max_length=100)
    last_name: str = Field(..., min_length=1, max_length=100)
    email: str = Field(..., min_length=3, max_length=255)
    phone: Optional[str] = Field(None, max_length=50)
    title: Optional[str] = Field(None, max_length=100)
    licensed_sw: Optional[str] = Field(None, max_length=20)
    license_number: Optional[str] = Field(None, max_length=100)
    highest_degree: Optional[str] = Field(None, max_length=100)
    other_degree: Optional[str] = Field(None, max_length=100)


class PendingSupervisorRejectRequest(BaseModel):
    """Schema for rejecting a pending supervisor."""
    reason: str = Field(..., max_length=2000)


class PendingSupervisorResponse(BaseModel):
    """Schema for pending supervisor response."""
    id: UUID
    placement_id: UUID
    site_id: UUID
    first_name: str
    last_name: str
    email: str
    phone: Optional[str] = None
    title: Optional[str] = None
    licensed_sw: Optional[str] = None
    license_number: Optional[str] = None
    highest_degree: Optional[str] = None
    other_degree: Optional[str] = None
    status: PendingSupervisorStatus
    resolved_at: Optional[datetime] = None
    resolved_by: Optional[UUID] = None
    rejection_reason: Optional[str] = None
    created_user_id: Optional[UUID] = None
    created_at: Optional[datetime] = None

    class Config:
        from_attributes = True


class PendingSupervisorListResponse(BaseModel):
    """Schema for pending supervisor list response."""
    items: List[PendingSupervisorResponse]
    total: int
