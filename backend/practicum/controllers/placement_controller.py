"""
Placement controller - coordinates lifecycle and compliance services.
"""

from datetime import date
from typing import List, Optional
from uuid import UUID

from sqlalchemy.ext.asyncio import AsyncSession

from practicum.controllers.base_controller import BaseController
from practicum.models.placement import PlacementDocument, PlacementStatus
from practicum.models.user import User
from practicum.schemas.placement import (
    CompleteEndedResponse,
    ComplianceChecklistUpdate,
    ComplianceStatusResponse,
    PlacementApply,
    PlacementApplyResponse,
    PlacementHoursResponse,
    PlacementListResponse,
    PlacementResponse,
    PlacementStatusHistoryResponse,
)
from practicum.services.compliance_service import ComplianceService
from practicum.services.notification_service import NotificationService
from practicum.services.placement_service import PlacementService


class PlacementController(BaseController):
    """Controller for placement operations."""

    def __init__(self, session: AsyncSession):
        notifier = NotificationService(session)
        self.placement_service = PlacementService(session, notifier)
        self.compliance_service = ComplianceService(session, notifier)

    async def apply(self, data: PlacementApply, actor: User) -> PlacementApplyResponse:
        return await self.placement_service.apply(data, actor)

    async def list_placements(
        self,
        actor: User,
        status: Optional[PlacementStatus] = None,
        skip: int = 0,
        limit: int = 100,
    ) -> PlacementListResponse:
        return await self.placement_service.list_placements(actor, status, skip, limit)

    async def get_placement(self, placement_id: UUID, actor: User) -> PlacementResponse:
        return await self.placement_service.get_placement(placement_id, actor)

    async def approve(self, placement_id: UUID, actor: User) -> PlacementResponse:
        return await self.placement_service.approve(placement_id, actor)

    async def activate(self, placement_id: UUID, actor: User) -> PlacementResponse:
        return await self.placement_service.activate(placement_id, actor)

    async def reject(self, placement_id: UUID, reason: str, actor: User) -> PlacementResponse:
        return await self.placement_service.reject(placement_id, reason, actor)

    async def complete(self, placement_id: UUID, actor: User) -> PlacementResponse:
        return await self.placement_service.complete(placement_id, actor)

    async def complete_ended(self, as_of: date, actor: User) -> CompleteEndedResponse:
        completed = await self.placement_service.complete_ended_placements(as_of, actor)
        return CompleteEndedResponse(completed=completed, total=len(completed))

    async def list_history(self, placement_id: UUID, actor: User) -> List[PlacementStatusHistoryResponse]:
        return await self.placement_service.list_history(placement_id, actor)

    async def get_hours(self, placement_id: UUID, actor: User) -> PlacementHoursResponse:
        return await self.placement_service.get_hours(placement_id, actor)

    async def get_compliance(self, placement_id: UUID, actor: User) -> ComplianceStatusResponse:
        return await self.compliance_service.get_status(placement_id, actor)

    async def update_checklist(
        self,
        placement_id: UUID,
        update: ComplianceChecklistUpdate,
        actor: User,
    ) -> ComplianceStatusResponse:
        return await self.compliance_service.update_checklist(placement_id, update, actor)

    async def attach_document(
        self,
        placement_id: UUID,
        document: PlacementDocument,
        reference: str,
        actor: User,
    ) -> ComplianceStatusResponse:
        return await self.compliance_service.attach_document(placement_id, document, reference, actor)

    async def remove_document(
        self,
        placement_id: UUID,
        document: PlacementDocument,
        actor: User,
    ) -> ComplianceStatusResponse:
        return await self.compliance_service.remove_document(placement_id, document, actor)
