"""
Compliance checklist service.
Tracks the four checklist flags and the document slots on a placement. The
documents themselves live in the document store; only references are kept.
"""

import logging
from typing import Any, Optional
from uuid import UUID

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from practicum.core.exceptions import (
    DependencyFailure,
    NotFoundError,
    PermissionDenied,
    PreconditionFailed,
    already_acted_on,
)
from practicum.db.repositories.placement_repository import PlacementRepository
from practicum.models.placement import Placement, PlacementDocument, PlacementStatus
from practicum.models.user import User, UserRole
from practicum.schemas.placement import ComplianceChecklist, ComplianceChecklistUpdate, ComplianceStatusResponse
from practicum.services import access_policy
from practicum.services.base_service import BaseService
from practicum.services.notification_service import NotificationService
from practicum.services.notification_triggers import NotificationTriggers

logger = logging.getLogger(__name__)

# Placements whose checklist and documents may still change
OPEN_STATUSES = (
    PlacementStatus.PENDING,
    PlacementStatus.APPROVED_PENDING_CHECKLIST,
    PlacementStatus.ACTIVE,
)


def compliance_status(placement: Placement) -> ComplianceStatusResponse:
    checklist = ComplianceChecklist(**(placement.compliance_checklist or {}))
    documents = {doc.value: getattr(placement, doc.value) for doc in PlacementDocument}
    return ComplianceStatusResponse(
        placement_id=placement.id,
        status=placement.status,
        checklist=checklist,
        checklist_complete=checklist.is_complete(),
        documents=documents,
        missing_documents=[name for name, ref in documents.items() if not ref],
    )


class ComplianceService(BaseService):
    """Service for compliance checklist and document slots."""

    def __init__(self, session: AsyncSession, notifier: Optional[NotificationService] = None):
        self.session = session
        self.placement_repo = PlacementRepository(session)
        self.notifier = notifier or NotificationService(session)

    async def _get_placement(self, placement_id: UUID) -> Placement:
        placement = await self.placement_repo.get(placement_id)
        if not placement:
            raise NotFoundError("Placement not found", {"placement_id": str(placement_id)})
        return placement

    def _ensure_editor(self, actor: User, placement: Placement) -> None:
        if access_policy.is_admin(actor):
            return
        if actor.role == UserRole.STUDENT and placement.student_id == actor.id:
            return
        raise PermissionDenied("Only the student on this placement or an admin can change compliance items")

    def _ensure_open(self, placement: Placement) -> None:
        if placement.status not in OPEN_STATUSES:
            raise PreconditionFailed(
                f"Compliance items cannot be changed on a {placement.status.value} placement",
                {"status": placement.status.value},
            )

    async def _write(self, placement: Placement, *conditions: Any, **values) -> Placement:
        """Write `values` while the placement is still open and `conditions` hold."""
        placement_id = placement.id
        try:
            affected = await self.placement_repo.transition([placement_id], OPEN_STATUSES, *conditions, **values)
            if affected != 1:
                await self.session.rollback()
                raise already_acted_on("placement", {"placement_id": str(placement_id)})
            await self.session.commit()
        except SQLAlchemyError as e:
            await self.session.rollback()
            logger.exception("Compliance update failed", extra={"placement_id": str(placement_id)})
            raise DependencyFailure() from e
        return await self.placement_repo.get_fresh(placement_id)

    async def get_status(self, placement_id: UUID, actor: User) -> ComplianceStatusResponse:
        placement = await self._get_placement(placement_id)
        access_policy.ensure_can_view(actor, placement)
        return compliance_status(placement)

    async def update_checklist(
        self,
        placement_id: UUID,
        update: ComplianceChecklistUpdate,
        actor: User,
    ) -> ComplianceStatusResponse:
        """Merge the given flags into the checklist."""
        placement = await self._get_placement(placement_id)
        self._ensure_editor(actor, placement)
        self._ensure_open(placement)

        current = ComplianceChecklist(**(placement.compliance_checklist or {}))
        merged = current.model_copy(update=update.model_dump(exclude_none=True))
        version = placement.checklist_version
        placement = await self._write(
            placement,
            Placement.checklist_version == version,
            compliance_checklist=merged.model_dump(),
            checklist_version=version + 1,
        )
        logger.info(
            "Compliance checklist updated",
            extra={"placement_id": str(placement.id), "complete": merged.is_complete()},
        )
        return compliance_status(placement)

    async def attach_document(
        self,
        placement_id: UUID,
        document: PlacementDocument,
        reference: str,
        actor: User,
    ) -> ComplianceStatusResponse:
        """Record an uploaded document and tell the student and faculty."""
        placement = await self._get_placement(placement_id)
        self._ensure_editor(actor, placement)
        self._ensure_open(placement)

        placement = await self._write(placement, **{document.value: reference})
        logger.info(
            "Placement document attached",
            extra={"placement_id": str(placement.id), "document": document.value},
        )
        response = compliance_status(placement)
        await self.notifier.dispatch(
            NotificationTriggers.document_uploaded(
                placement.id, placement.student_id, placement.faculty_id, document.value
            )
        )
        return response

    async def remove_document(
        self,
        placement_id: UUID,
        document: PlacementDocument,
        actor: User,
    ) -> ComplianceStatusResponse:
        placement = await self._get_placement(placement_id)
        self._ensure_editor(actor, placement)
        self._ensure_open(placement)
        if not getattr(placement, document.value):
            raise NotFoundError(f"No {document.value} document is attached")

        placement = await self._write(placement, **{document.value: None})
        logger.info(
            "Placement document removed",
            extra={"placement_id": str(placement.id), "document": document.value},
        )
        return compliance_status(placement)
