"""
Pending supervisor API endpoints.
"""

from typing import Optional
from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession
from uuid import UUID

from practicum.db.session import get_db
from practicum.api.v1.middleware import require_roles
from practicum.controllers.pending_supervisor_controller import PendingSupervisorController
from practicum.models.placement import PendingSupervisorStatus
from practicum.models.user import User, UserRole
from practicum.schemas.pending_supervisor import (
    PendingSupervisorListResponse,
    PendingSupervisorRejectRequest,
    PendingSupervisorResponse,
)

router = APIRouter()


@router.get("", response_model=PendingSupervisorListResponse)
async def list_pending_supervisors(
    status_filter: Optional[PendingSupervisorStatus] = Query(None, alias="status"),
    skip: int = Query(0, ge=0),
    limit: int = Query(100, ge=1, le=1000),
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(require_roles(UserRole.FACULTY, UserRole.ADMIN)),
) -> PendingSupervisorListResponse:
    """List supervisor requests, optionally filtered by status."""
    controller = PendingSupervisorController(db)
    return await controller.list_requests(current_user, status_filter, skip, limit)


@router.post("/{pending_id}/approve", response_model=PendingSupervisorResponse)
async def approve_pending_supervisor(
    pending_id: UUID,
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(require_roles(UserRole.FACULTY, UserRole.ADMIN)),
) -> PendingSupervisorResponse:
    """Create the supervisor account and link it to the placement."""
    controller = PendingSupervisorController(db)
    return await controller.approve(pending_id, current_user)


@router.post("/{pending_id}/reject", response_model=PendingSupervisorResponse)
async def reject_pending_supervisor(
    pending_id: UUID,
    body: PendingSupervisorRejectRequest,
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(require_roles(UserRole.FACULTY, UserRole.ADMIN)),
) -> PendingSupervisorResponse:
    controller = PendingSupervisorController(db)
    return await controller.reject(pending_id, body.reason, current_user)
