"""
Placement Pydantic schemas for request/response validation.
"""

from pydantic import BaseModel, Field
from typing import Optional, List, Dict
from datetime import date, datetime
from decimal import Decimal
from uuid import UUID

from practicum.models.placement import PlacementStatus
from practicum.schemas.pending_supervisor import NewSupervisorPayload, PendingSupervisorResponse


class ComplianceChecklist(BaseModel):
    """Compliance prerequisites a student confirms before and during a placement."""
    orientation: bool = False
    safety_training: bool = False
    confidentiality: bool = False
    supervision_schedule: bool = False

    def is_complete(self) -> bool:
        return all(self.model_dump().values())


class ComplianceChecklistUpdate(BaseModel):
    """Partial update of the checklist flags (omitted flags keep their value)."""
    orientation: Optional[bool] = None
    safety_training: Optional[bool] = None
    confidentiality: Optional[bool] = None
    supervision_schedule: Optional[bool] = None


class DocumentAttachRequest(BaseModel):
    """Reference to an uploaded document held by the document store."""
    reference: str = Field(..., min_length=1, max_length=500)


class ComplianceStatusResponse(BaseModel):
    """Checklist flags and document slots for a placement."""
    placement_id: UUID
    status: PlacementStatus
    checklist: ComplianceChecklist
    checklist_complete: bool
    documents: Dict[str, Optional[str]]
    missing_documents: List[str]


class PlacementApply(BaseModel):
    """
    Schema for applying for a placement.

    Exactly one of `supervisor_id` (an existing supervisor at the site) or
    `new_supervisor` must be given. `student_id` is only used when faculty
    or an admin applies on a student's behalf.
    """
    student_id: Optional[UUID] = None
    site_id: UUID
    class_id: UUID
    start_date: date
    end_date: date
    required_hours: Decimal
    supervisor_id: Optional[UUID] = None
    new_supervisor: Optional[NewSupervisorPayload] = None


class PlacementRejectRequest(BaseModel):
    """Schema for declining a placement."""
    reason: str = Field(..., max_length=2000)


class PlacementResponse(BaseModel):
    """Schema for placement response."""
    id: UUID
    student_id: UUID
    student_name: Optional[str] = None
    site_id: UUID
    site_name: Optional[str] = None
    faculty_id: UUID
    faculty_name: Optional[str] = None
    class_id: UUID
    class_code: Optional[str] = None
    supervisor_id: Optional[UUID] = None
    supervisor_name: Optional[str] = None
    start_date: date
    end_date: date
    required_hours: Decimal
    status: PlacementStatus
    compliance_checklist: ComplianceChecklist
    cell_policy: Optional[str] = None
    learning_contract: Optional[str] = None
    checklist: Optional[str] = None
    faculty_notes: Optional[str] = None
    approved_at: Optional[datetime] = None
    approved_by: Optional[UUID] = None
    declined_at: Optional[datetime] = None
    declined_by: Optional[UUID] = None
    completed_at: Optional[datetime] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None
    pending_supervisor: Optional[PendingSupervisorResponse] = None


class PlacementApplyResponse(BaseModel):
    """Result of an application. `faculty_mismatch` flags a class/assignment disagreement."""
    placement: PlacementResponse
    faculty_mismatch: bool = False


class PlacementListResponse(BaseModel):
    """Schema for placement list response."""
    items: List[PlacementResponse]
    total: int


class PlacementStatusHistoryResponse(BaseModel):
    """Schema for one placement status change."""
    id: UUID
    placement_id: UUID
    from_status: Optional[PlacementStatus] = None
    to_status: PlacementStatus
    changed_by_user_id: Optional[UUID] = None
    note: Optional[str] = None
    changed_at: Optional[datetime] = None

    class Config:
        from_attributes = True


class PlacementHoursResponse(BaseModel):
    """Approved hours against the placement's requirement."""
    placement_id: UUID
    required_hours: Decimal
    approved_hours: Decimal
    remaining_hours: Decimal
    percent_complete: float


class CompleteEndedResponse(BaseModel):
    """Placements closed by the end-of-term sweep."""
    completed: List[UUID]
    total: int
