"""
Pending supervisor controller.
"""

from typing import Optional
from uuid import UUID

from sqlalchemy.ext.asyncio import AsyncSession

from practicum.controllers.base_controller import BaseController
from practicum.models.placement import PendingSupervisorStatus
from practicum.models.user import User
from practicum.schemas.pending_supervisor import PendingSupervisorListResponse, PendingSupervisorResponse
from practicum.services.pending_supervisor_service import PendingSupervisorService


class PendingSupervisorController(BaseController):
    """Controller for pending supervisor operations."""

    def __init__(self, session: AsyncSession):
        self.pending_supervisor_service = PendingSupervisorService(session)

    async def list_requests(
        self,
        actor: User,
        status: Optional[PendingSupervisorStatus] = None,
        skip: int = 0,
        limit: int = 100,
    ) -> PendingSupervisorListResponse:
        return await self.pending_supervisor_service.list_requests(actor, status, skip, limit)

    async def approve(self, pending_id: UUID, actor: User) -> PendingSupervisorResponse:
        return await self.pending_supervisor_service.approve(pending_id, actor)

    async def reject(self, pending_id: UUID, reason: str, actor: User) -> PendingSupervisorResponse:
        return await self.pending_supervisor_service.reject(pending_id, reason, actor)
