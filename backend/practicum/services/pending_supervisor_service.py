"""
Pending supervisor service - resolve supervisor requests made on applications.
"""

import logging
from datetime import datetime
from typing import Optional
from uuid import UUID

from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from practicum.core.exceptions import (
    ConflictError,
    DependencyFailure,
    NotFoundError,
    ValidationError,
    already_acted_on,
)
from practicum.db.repositories.pending_supervisor_repository import PendingSupervisorRepository
from practicum.db.repositories.placement_repository import PlacementRepository
from practicum.db.repositories.user_repository import UserRepository
from practicum.models.placement import PendingSupervisor, PendingSupervisorStatus, Placement
from practicum.models.user import User, UserRole
from practicum.schemas.pending_supervisor import PendingSupervisorListResponse, PendingSupervisorResponse
from practicum.services import access_policy
from practicum.services.base_service import BaseService
from practicum.services.identity_service import IdentityService
from practicum.services.notification_service import NotificationService
from practicum.services.notification_triggers import NotificationTriggers

logger = logging.getLogger(__name__)


class PendingSupervisorService(BaseService):
    """Service for pending supervisor approval."""

    def __init__(
        self,
        session: AsyncSession,
        notifier: Optional[NotificationService] = None,
        identity: Optional[IdentityService] = None,
    ):
        self.session = session
        self.pending_repo = PendingSupervisorRepository(session)
        self.placement_repo = PlacementRepository(session)
        self.user_repo = UserRepository(session)
        self.identity = identity or IdentityService(session)
        self.notifier = notifier or NotificationService(session)

    async def _load(self, pending_id: UUID, actor: User) -> tuple[PendingSupervisor, Placement]:
        pending = await self.pending_repo.get(pending_id)
        if not pending:
            raise NotFoundError("Pending supervisor not found", {"pending_supervisor_id": str(pending_id)})
        placement = await self.placement_repo.get(pending.placement_id)
        if not placement:
            raise NotFoundError("Placement not found", {"placement_id": str(pending.placement_id)})
        access_policy.ensure_reviewer(actor, placement)
        if pending.status != PendingSupervisorStatus.PENDING:
            raise already_acted_on("supervisor request", {"status": pending.status.value})
        if await self.user_repo.get_by_email(pending.email):
            raise ConflictError(
                "A user with this email already exists. Link the existing account instead.",
                {"email": pending.email},
            )
        return pending, placement

    async def approve(self, pending_id: UUID, actor: User) -> PendingSupervisorResponse:
        """Create the supervisor account and attach it to the placement."""
        pending, placement = await self._load(pending_id, actor)
        placement_id = placement.id
        student_id = placement.student_id
        supervisor_name = pending.full_name

        try:
            user = await self.identity.create_or_find_user(
                email=pending.email,
                first_name=pending.first_name,
                last_name=pending.last_name,
                role=UserRole.SUPERVISOR,
                site_id=pending.site_id,
                phone=pending.phone,
                title=pending.title,
                licensed_sw=pending.licensed_sw,
                license_number=pending.license_number,
                highest_degree=pending.highest_degree,
                other_degree=pending.other_degree,
            )
            user_id = user.id
            affected = await self.pending_repo.transition(
                [pending_id],
                PendingSupervisorStatus.PENDING,
                status=PendingSupervisorStatus.APPROVED,
                resolved_at=datetime.utcnow(),
                resolved_by=actor.id,
                created_user_id=user_id,
            )
            if affected != 1:
                await self.session.rollback()
                raise already_acted_on("supervisor request", {"pending_supervisor_id": str(pending_id)})
            if not await self.placement_repo.link_supervisor(placement_id, user_id):
                await self.session.rollback()
                raise ConflictError(
                    "The placement already has a supervisor. Refresh and try again.",
                    {"placement_id": str(placement_id)},
                )
            await self.session.commit()
        except IntegrityError as e:
            await self.session.rollback()
            raise ConflictError("A user with this email was just created. Refresh and try again.") from e
        except SQLAlchemyError as e:
            await self.session.rollback()
            logger.exception("Supervisor approval failed", extra={"pending_supervisor_id": str(pending_id)})
            raise DependencyFailure() from e

        logger.info(
            "Pending supervisor approved",
            extra={"pending_supervisor_id": str(pending_id), "user_id": str(user_id), "placement_id": str(placement_id)},
        )
        response = PendingSupervisorResponse.model_validate(await self.pending_repo.get_fresh(pending_id))
        await self.notifier.send(
            NotificationTriggers.supervisor_approved(placement_id, student_id, supervisor_name)
        )
        return response

    async def reject(self, pending_id: UUID, reason: Optional[str], actor: User) -> PendingSupervisorResponse:
        """Close the request. The placement is left as it is."""
        reason = (reason or "").strip()
        if not reason:
            raise ValidationError("A reason is required to reject a supervisor")
        pending, placement = await self._load(pending_id, actor)
        placement_id = placement.id
        student_id = placement.student_id
        supervisor_name = pending.full_name

        try:
            affected = await self.pending_repo.transition(
                [pending_id],
                PendingSupervisorStatus.PENDING,
                status=PendingSupervisorStatus.REJECTED,
                resolved_at=datetime.utcnow(),
                resolved_by=actor.id,
                rejection_reason=reason,
            )
            if affected != 1:
                await self.session.rollback()
                raise already_acted_on("supervisor request", {"pending_supervisor_id": str(pending_id)})
            await self.session.commit()
        except SQLAlchemyError as e:
            await self.session.rollback()
            logger.exception("Supervisor rejection failed", extra={"pending_supervisor_id": str(pending_id)})
            raise DependencyFailure() from e

        logger.info(
            "Pending supervisor rejected",
            extra={"pending_supervisor_id": str(pending_id), "placement_id": str(placement_id)},
        )
        response = PendingSupervisorResponse.model_validate(await self.pending_repo.get_fresh(pending_id))
        await self.notifier.send(
            NotificationTriggers.supervisor_rejected(placement_id, student_id, supervisor_name, reason)
        )
        return response

    async def list_requests(
        self,
        actor: User,
        status: Optional[PendingSupervisorStatus] = None,
        skip: int = 0,
        limit: int = 100,
    ) -> PendingSupervisorListResponse:
        access_policy.ensure_faculty_or_admin(actor)
        rows = await self.pending_repo.list_by_status(status, skip, limit)
        items = [PendingSupervisorResponse.model_validate(r) for r in rows]
        return PendingSupervisorListResponse(items=items, total=len(items))
