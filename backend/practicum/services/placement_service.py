"""
Placement service - apply, approve, activate, reject, complete.

Every status change is a conditional update keyed on the status the caller
observed. Notifications go out only after the change is committed.
"""

import logging
from datetime import date, datetime
from decimal import Decimal
from typing import Any, List, Optional, Tuple
from uuid import UUID

from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from practicum.core.exceptions import (
    AppException,
    ConflictError,
    DependencyFailure,
    NotFoundError,
    PermissionDenied,
    PreconditionFailed,
    ValidationError,
    already_acted_on,
)
from practicum.db.repositories.class_repository import AcademicClassRepository
from practicum.db.repositories.faculty_assignment_repository import FacultyAssignmentRepository
from practicum.db.repositories.pending_supervisor_repository import PendingSupervisorRepository
from practicum.db.repositories.placement_repository import PlacementRepository
from practicum.db.repositories.placement_status_history_repository import PlacementStatusHistoryRepository
from practicum.db.repositories.site_repository import SiteRepository
from practicum.db.repositories.timesheet_entry_repository import TimesheetEntryRepository
from practicum.db.repositories.user_repository import UserRepository
from practicum.models.placement import (
    Placement,
    PlacementDocument,
    PlacementStatus,
    PendingSupervisorStatus,
    DEFAULT_COMPLIANCE_CHECKLIST,
)
from practicum.models.user import User, UserRole
from practicum.schemas.pending_supervisor import PendingSupervisorResponse
from practicum.schemas.placement import (
    ComplianceChecklist,
    PlacementApply,
    PlacementApplyResponse,
    PlacementHoursResponse,
    PlacementListResponse,
    PlacementResponse,
    PlacementStatusHistoryResponse,
)
from practicum.services import access_policy
from practicum.services.base_service import BaseService
from practicum.services.notification_service import NotificationService
from practicum.services.notification_triggers import NotificationTriggers

logger = logging.getLogger(__name__)

# Statuses a placement may be declined from
DECLINABLE_STATUSES = (PlacementStatus.PENDING, PlacementStatus.APPROVED_PENDING_CHECKLIST)


def placement_to_response(placement: Placement) -> PlacementResponse:
    """Build the response from a placement with its relationships loaded."""
    pending = placement.pending_supervisor
    return PlacementResponse(
        id=placement.id,
        student_id=placement.student_id,
        student_name=placement.student.full_name if placement.student else None,
        site_id=placement.site_id,
        site_name=placement.site.name if placement.site else None,
        faculty_id=placement.faculty_id,
        faculty_name=placement.faculty.full_name if placement.faculty else None,
        class_id=placement.class_id,
        class_code=placement.academic_class.code if placement.academic_class else None,
        supervisor_id=placement.supervisor_id,
        supervisor_name=placement.supervisor.full_name if placement.supervisor else None,
        start_date=placement.start_date,
        end_date=placement.end_date,
        required_hours=placement.required_hours,
        status=placement.status,
        compliance_checklist=ComplianceChecklist(**(placement.compliance_checklist or {})),
        cell_policy=placement.cell_policy,
        learning_contract=placement.learning_contract,
        checklist=placement.checklist,
        faculty_notes=placement.faculty_notes,
        approved_at=placement.approved_at,
        approved_by=placement.approved_by,
        declined_at=placement.declined_at,
        declined_by=placement.declined_by,
        completed_at=placement.completed_at,
        created_at=placement.created_at,
        updated_at=placement.updated_at,
        pending_supervisor=PendingSupervisorResponse.model_validate(pending) if pending else None,
    )


class PlacementService(BaseService):
    """Service for the placement lifecycle."""

    def __init__(self, session: AsyncSession, notifier: Optional[NotificationService] = None):
        self.session = session
        self.placement_repo = PlacementRepository(session)
        self.history_repo = PlacementStatusHistoryRepository(session)
        self.pending_repo = PendingSupervisorRepository(session)
        self.user_repo = UserRepository(session)
        self.site_repo = SiteRepository(session)
        self.class_repo = AcademicClassRepository(session)
        self.assignment_repo = FacultyAssignmentRepository(session)
        self.entry_repo = TimesheetEntryRepository(session)
        self.notifier = notifier or NotificationService(session)

    async def _get_placement(self, placement_id: UUID) -> Placement:
        placement = await self.placement_repo.get(placement_id)
        if not placement:
            raise NotFoundError("Placement not found", {"placement_id": str(placement_id)})
        return placement

    async def _resolve_student(self, data: PlacementApply, actor: User) -> User:
        if actor.role == UserRole.STUDENT:
            if data.student_id and data.student_id != actor.id:
                raise PermissionDenied("Students can only apply for themselves")
            return actor
        if actor.role not in (UserRole.FACULTY, UserRole.ADMIN):
            raise PermissionDenied("Only students, faculty or admins can create placements")
        if not data.student_id:
            raise ValidationError("student_id is required when applying on a student's behalf")
        student = await self.user_repo.get_with_role(data.student_id, UserRole.STUDENT)
        if not student:
            raise NotFoundError("Student not found", {"student_id": str(data.student_id)})
        return student

    async def apply(self, data: PlacementApply, actor: User) -> PlacementApplyResponse:
        """Create a PENDING placement, with a pending supervisor request if one is needed."""
        student = await self._resolve_student(data, actor)

        if data.end_date < data.start_date:
            raise ValidationError("End date must be on or after start date")
        if data.required_hours is None or data.required_hours <= 0:
            raise ValidationError("Required hours must be greater than zero")
        if bool(data.supervisor_id) == bool(data.new_supervisor):
            raise ValidationError("Choose an existing supervisor or provide new supervisor details, not both")
        if data.new_supervisor and "@" not in data.new_supervisor.email:
            raise ValidationError("New supervisor email is not valid")

        site = await self.site_repo.get(data.site_id)
        if not site:
            raise NotFoundError("Site not found", {"site_id": str(data.site_id)})
        academic_class = await self.class_repo.get(data.class_id)
        if not academic_class:
            raise NotFoundError("Class not found", {"class_id": str(data.class_id)})

        if data.supervisor_id:
            supervisor = await self.user_repo.get_site_supervisor(data.supervisor_id, site.id)
            if not supervisor:
                raise NotFoundError(
                    "Supervisor not found at the selected site",
                    {"supervisor_id": str(data.supervisor_id), "site_id": str(site.id)},
                )

        existing = await self.placement_repo.list_open_for_student_class(student.id, academic_class.id)
        if existing:
            raise ValidationError(
                f"You already have a placement for {academic_class.code}. "
                "Only one placement per class is allowed.",
                {"placement_id": str(existing[0].id), "status": existing[0].status.value},
            )

        if data.new_supervisor:
            email = data.new_supervisor.email.strip().lower()
            if await self.user_repo.get_by_email(email) or await self.pending_repo.get_by_email(email):
                raise ConflictError("A user or pending supervisor with this email already exists", {"email": email})

        assignment = await self.assignment_repo.get_by_student(student.id)
        if not assignment:
            raise PreconditionFailed(
                "No faculty liaison is assigned to this student. Contact your program administrator.",
                {"student_id": str(student.id)},
            )

        try:
            placement = await self.placement_repo.create(
                student_id=student.id,
                site_id=site.id,
                faculty_id=assignment.faculty_id,
                class_id=academic_class.id,
                supervisor_id=data.supervisor_id,
                start_date=data.start_date,
                end_date=data.end_date,
                required_hours=data.required_hours,
                status=PlacementStatus.PENDING,
                compliance_checklist=dict(DEFAULT_COMPLIANCE_CHECKLIST),
            )
            if data.new_supervisor:
                await self.pending_repo.create(
                    placement_id=placement.id,
                    site_id=site.id,
                    status=PendingSupervisorStatus.PENDING,
                    **{**data.new_supervisor.model_dump(), "email": email},
                )
            cleared = await self.placement_repo.clear_declined_notes(student.id)
            await self.history_repo.create(
                placement_id=placement.id,
                from_status=None,
                to_status=PlacementStatus.PENDING,
                changed_by_user_id=actor.id,
            )
            await self.session.commit()
        except IntegrityError as e:
            await self.session.rollback()
            logger.warning(f"Placement application lost a uniqueness race: {e.orig}")
            raise ConflictError(
                "A placement for this class or a supervisor with this email was just created. Refresh and try again."
            ) from e
        except SQLAlchemyError as e:
            await self.session.rollback()
            logger.exception("Failed to create placement")
            raise DependencyFailure() from e

        logger.info(
            "Placement created",
            extra={
                "placement_id": str(placement.id),
                "student_id": str(student.id),
                "class_code": academic_class.code,
                "pending_supervisor": bool(data.new_supervisor),
                "declined_notes_cleared": cleared,
            },
        )

        placement = await self.placement_repo.get_fresh(placement.id)
        faculty_mismatch = bool(academic_class.faculty_id) and academic_class.faculty_id != assignment.faculty_id
        response = PlacementApplyResponse(
            placement=placement_to_response(placement),
            faculty_mismatch=faculty_mismatch,
        )

        if faculty_mismatch:
            logger.warning(
                "Faculty assignment does not match class faculty",
                extra={
                    "placement_id": str(placement.id),
                    "assigned_faculty_id": str(assignment.faculty_id),
                    "class_faculty_id": str(academic_class.faculty_id),
                },
            )
            admins = await self.user_repo.list_by_role(UserRole.ADMIN)
            recipients = [assignment.faculty_id, academic_class.faculty_id]
            recipients += [a.id for a in admins if a.id not in recipients]
            await self.notifier.dispatch(
                NotificationTriggers.faculty_class_mismatch(
                    placement.id,
                    recipients,
                    student.full_name,
                    academic_class.code,
                    assignment.faculty_id,
                    academic_class.faculty_id,
                )
            )
        return response

    async def _transition(
        self,
        placement: Placement,
        target: PlacementStatus,
        actor_id: Optional[UUID],
        note: Optional[str] = None,
        conditions: Tuple[Any, ...] = (),
        unmet: Optional[AppException] = None,
        **values,
    ) -> Placement:
        """
        Move `placement` from the status it was read with to `target` and commit.

        `conditions` are extra where-clauses checked in the same update. When
        the row still has its old status but a condition failed, `unmet` is
        raised instead of a conflict.
        """
        from_status = placement.status
        placement_id = placement.id
        try:
            affected = await self.placement_repo.transition(
                [placement_id], from_status, *conditions, status=target, **values
            )
            if affected != 1:
                await self.session.rollback()
                if unmet is not None:
                    current = await self.placement_repo.get_fresh(placement_id)
                    if current is not None and current.status == from_status:
                        raise unmet
                logger.info(
                    "Placement transition lost a race",
                    extra={"placement_id": str(placement_id), "from": from_status.value, "to": target.value},
                )
                raise already_acted_on("placement", {"placement_id": str(placement_id)})
            await self.history_repo.create(
                placement_id=placement_id,
                from_status=from_status,
                to_status=target,
                changed_by_user_id=actor_id,
                note=note,
            )
            await self.session.commit()
        except SQLAlchemyError as e:
            await self.session.rollback()
            logger.exception("Placement transition failed", extra={"placement_id": str(placement_id)})
            raise DependencyFailure() from e

        logger.info(
            f"Placement {from_status.value} -> {target.value}",
            extra={"placement_id": str(placement_id), "changed_by": str(actor_id) if actor_id else None},
        )
        return await self.placement_repo.get_fresh(placement_id)

    async def approve(self, placement_id: UUID, actor: User) -> PlacementResponse:
        """PENDING -> APPROVED_PENDING_CHECKLIST. Needs the cell phone policy on file."""
        placement = await self._get_placement(placement_id)
        access_policy.ensure_reviewer(actor, placement)
        if placement.status != PlacementStatus.PENDING:
            raise already_acted_on("placement", {"status": placement.status.value})
        missing_policy = PreconditionFailed(
            "The cell phone policy document must be uploaded before the placement can be approved",
            {"missing_document": PlacementDocument.CELL_POLICY.value},
        )
        if not placement.cell_policy:
            raise missing_policy

        # The document may be removed after the read above
        placement = await self._transition(
            placement,
            PlacementStatus.APPROVED_PENDING_CHECKLIST,
            actor.id,
            conditions=(Placement.cell_policy.is_not(None),),
            unmet=missing_policy,
            approved_at=datetime.utcnow(),
            approved_by=actor.id,
        )
        response = placement_to_response(placement)
        await self.notifier.send(
            NotificationTriggers.placement_approved(placement.id, placement.student_id, placement.site.name)
        )
        return response

    async def activate(self, placement_id: UUID, actor: User) -> PlacementResponse:
        """APPROVED_PENDING_CHECKLIST -> ACTIVE."""
        placement = await self._get_placement(placement_id)
        access_policy.ensure_reviewer(actor, placement)
        if placement.status != PlacementStatus.APPROVED_PENDING_CHECKLIST:
            raise already_acted_on("placement", {"status": placement.status.value})

        placement = await self._transition(placement, PlacementStatus.ACTIVE, actor.id)
        response = placement_to_response(placement)
        await self.notifier.send(
            NotificationTriggers.placement_activated(placement.id, placement.student_id, placement.site.name)
        )
        return response

    async def reject(self, placement_id: UUID, reason: Optional[str], actor: User) -> PlacementResponse:
        """PENDING or APPROVED_PENDING_CHECKLIST -> DECLINED, keeping the reason for the student."""
        reason = (reason or "").strip()
        if not reason:
            raise ValidationError("A reason is required to reject a placement")
        placement = await self._get_placement(placement_id)
        access_policy.ensure_reviewer(actor, placement)
        if placement.status not in DECLINABLE_STATUSES:
            raise already_acted_on("placement", {"status": placement.status.value})

        placement = await self._transition(
            placement,
            PlacementStatus.DECLINED,
            actor.id,
            note=reason,
            faculty_notes=reason,
            declined_at=datetime.utcnow(),
            declined_by=actor.id,
        )
        response = placement_to_response(placement)
        await self.notifier.send(
            NotificationTriggers.placement_rejected(placement.id, placement.student_id, placement.site.name, reason)
        )
        return response

    async def complete(self, placement_id: UUID, actor: User) -> PlacementResponse:
        """ACTIVE -> COMPLETE."""
        access_policy.ensure_admin(actor)
        placement = await self._get_placement(placement_id)
        if placement.status != PlacementStatus.ACTIVE:
            raise already_acted_on("placement", {"status": placement.status.value})

        placement = await self._transition(
            placement, PlacementStatus.COMPLETE, actor.id, completed_at=datetime.utcnow()
        )
        response = placement_to_response(placement)
        await self.notifier.send(
            NotificationTriggers.placement_completed(placement.id, placement.student_id, placement.site.name)
        )
        return response

    async def complete_ended_placements(self, as_of: date, actor: Optional[User] = None) -> List[UUID]:
        """Complete every ACTIVE placement whose end date is before `as_of`."""
        if actor is not None:
            access_policy.ensure_admin(actor)
        actor_id = actor.id if actor else None

        completed = []
        events = []
        ended_ids = [p.id for p in await self.placement_repo.list_active_ended_before(as_of)]
        for placement_id in ended_ids:
            placement = await self.placement_repo.get_fresh(placement_id)
            if not placement or placement.status != PlacementStatus.ACTIVE:
                continue
            try:
                placement = await self._transition(
                    placement,
                    PlacementStatus.COMPLETE,
                    actor_id,
                    note="Placement end date passed",
                    completed_at=datetime.utcnow(),
                )
            except ConflictError:
                continue
            completed.append(placement.id)
            events.append(
                NotificationTriggers.placement_completed(placement.id, placement.student_id, placement.site.name)
            )

        logger.info("Ended placements completed", extra={"as_of": as_of.isoformat(), "count": len(completed)})
        await self.notifier.dispatch(events)
        return completed

    async def get_placement(self, placement_id: UUID, actor: User) -> PlacementResponse:
        placement = await self._get_placement(placement_id)
        access_policy.ensure_can_view(actor, placement)
        return placement_to_response(placement)

    async def list_placements(
        self,
        actor: User,
        status: Optional[PlacementStatus] = None,
        skip: int = 0,
        limit: int = 100,
    ) -> PlacementListResponse:
        """List the placements visible to `actor`."""
        scope = {}
        if actor.role == UserRole.STUDENT:
            scope["student_id"] = actor.id
        elif actor.role == UserRole.FACULTY:
            scope["faculty_id"] = actor.id
        elif actor.role == UserRole.SUPERVISOR:
            scope["supervisor_id"] = actor.id

        placements = await self.placement_repo.list_filtered(status=status, skip=skip, limit=limit, **scope)
        items = [placement_to_response(p) for p in placements]
        return PlacementListResponse(items=items, total=len(items))

    async def list_history(self, placement_id: UUID, actor: User) -> List[PlacementStatusHistoryResponse]:
        placement = await self._get_placement(placement_id)
        access_policy.ensure_can_view(actor, placement)
        rows = await self.history_repo.list_by_placement(placement_id)
        return [PlacementStatusHistoryResponse.model_validate(r) for r in rows]

    async def get_hours(self, placement_id: UUID, actor: User) -> PlacementHoursResponse:
        """Faculty-approved hours against the required total."""
        placement = await self._get_placement(placement_id)
        access_policy.ensure_can_view(actor, placement)
        required = Decimal(str(placement.required_hours))
        approved = await self.entry_repo.sum_approved_hours(placement_id)
        remaining = max(required - approved, Decimal("0"))
        percent = float(min(approved / required * 100, Decimal("100"))) if required > 0 else 0.0
        return PlacementHoursResponse(
            placement_id=placement_id,
            required_hours=required,
            approved_hours=approved,
            remaining_hours=remaining,
            percent_complete=round(percent, 1),
        )
