"""
Placement API endpoints: lifecycle transitions and compliance items.
"""

from datetime import date
from typing import List, Optional
from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.ext.asyncio import AsyncSession
from uuid import UUID

from practicum.db.session import get_db
from practicum.api.v1.middleware import require_authentication, require_roles
from practicum.controllers.placement_controller import PlacementController
from practicum.models.placement import PlacementDocument, PlacementStatus
from practicum.models.user import User, UserRole
from practicum.schemas.placement import (
    CompleteEndedResponse,
    ComplianceChecklistUpdate,
    ComplianceStatusResponse,
    DocumentAttachRequest,
    PlacementApply,
    PlacementApplyResponse,
    PlacementHoursResponse,
    PlacementListResponse,
    PlacementRejectRequest,
    PlacementResponse,
    PlacementStatusHistoryResponse,
)

router = APIRouter()


@router.get("", response_model=PlacementListResponse)
async def list_placements(
    status_filter: Optional[PlacementStatus] = Query(None, alias="status"),
    skip: int = Query(0, ge=0),
    limit: int = Query(100, ge=1, le=1000),
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(require_authentication),
) -> PlacementListResponse:
    """List placements visible to the current user."""
    controller = PlacementController(db)
    return await controller.list_placements(current_user, status_filter, skip, limit)


@router.post("", response_model=PlacementApplyResponse, status_code=status.HTTP_201_CREATED)
async def apply_for_placement(
    data: PlacementApply,
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(require_authentication),
) -> PlacementApplyResponse:
    """Apply for a placement."""
    controller = PlacementController(db)
    return await controller.apply(data, current_user)


@router.post("/complete-ended", response_model=CompleteEndedResponse)
async def complete_ended_placements(
    as_of: Optional[date] = Query(None, description="Defaults to today"),
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(require_roles(UserRole.ADMIN)),
) -> CompleteEndedResponse:
    """Complete every active placement whose end date has passed."""
    controller = PlacementController(db)
    return await controller.complete_ended(as_of or date.today(), current_user)


@router.get("/{placement_id}", response_model=PlacementResponse)
async def get_placement(
    placement_id: UUID,
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(require_authentication),
) -> PlacementResponse:
    """Get placement by ID."""
    controller = PlacementController(db)
    return await controller.get_placement(placement_id, current_user)


@router.post("/{placement_id}/approve", response_model=PlacementResponse)
async def approve_placement(
    placement_id: UUID,
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(require_roles(UserRole.FACULTY, UserRole.ADMIN)),
) -> PlacementResponse:
    controller = PlacementController(db)
    return await controller.approve(placement_id, current_user)


@router.post("/{placement_id}/activate", response_model=PlacementResponse)
async def activate_placement(
    placement_id: UUID,
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(require_roles(UserRole.FACULTY, UserRole.ADMIN)),
) -> PlacementResponse:
    controller = PlacementController(db)
    return await controller.activate(placement_id, current_user)


@router.post("/{placement_id}/reject", response_model=PlacementResponse)
async def reject_placement(
    placement_id: UUID,
    body: PlacementRejectRequest,
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(require_roles(UserRole.FACULTY, UserRole.ADMIN)),
) -> PlacementResponse:
    controller = PlacementController(db)
    return await controller.reject(placement_id, body.reason, current_user)


@router.post("/{placement_id}/complete", response_model=PlacementResponse)
async def complete_placement(
    placement_id: UUID,
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(require_roles(UserRole.ADMIN)),
) -> PlacementResponse:
    controller = PlacementController(db)
    return await controller.complete(placement_id, current_user)


@router.get("/{placement_id}/history", response_model=List[PlacementStatusHistoryResponse])
async def get_placement_history(
    placement_id: UUID,
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(require_authentication),
) -> List[PlacementStatusHistoryResponse]:
    controller = PlacementController(db)
    return await controller.list_history(placement_id, current_user)


@router.get("/{placement_id}/hours", response_model=PlacementHoursResponse)
async def get_placement_hours(
    placement_id: UUID,
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(require_authentication),
) -> PlacementHoursResponse:
    """Approved hours against the required total."""
    controller = PlacementController(db)
    return await controller.get_hours(placement_id, current_user)


@router.get("/{placement_id}/compliance", response_model=ComplianceStatusResponse)
async def get_compliance(
    placement_id: UUID,
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(require_authentication),
) -> ComplianceStatusResponse:
    controller = PlacementController(db)
    return await controller.get_compliance(placement_id, current_user)


@router.patch("/{placement_id}/compliance/checklist", response_model=ComplianceStatusResponse)
async def update_compliance_checklist(
    placement_id: UUID,
    update: ComplianceChecklistUpdate,
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(require_authentication),
) -> ComplianceStatusResponse:
    controller = PlacementController(db)
    return await controller.update_checklist(placement_id, update, current_user)


@router.put("/{placement_id}/compliance/documents/{document}", response_model=ComplianceStatusResponse)
async def attach_compliance_document(
    placement_id: UUID,
    document: PlacementDocument,
    body: DocumentAttachRequest,
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(require_authentication),
) -> ComplianceStatusResponse:
    """Record the reference of an uploaded document."""
    controller = PlacementController(db)
    return await controller.attach_document(placement_id, document, body.reference, current_user)


@router.delete("/{placement_id}/compliance/documents/{document}", response_model=ComplianceStatusResponse)
async def remove_compliance_document(
    placement_id: UUID,
    document: PlacementDocument,
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(require_authentication),
) -> ComplianceStatusResponse:
    controller = PlacementController(db)
    return await controller.remove_document(placement_id, document, current_user)
