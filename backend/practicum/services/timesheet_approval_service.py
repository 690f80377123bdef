"""
Timesheet approval service - submit week, supervisor and faculty decisions.

A week-group (all entries of one placement in one Sunday to Saturday week)
moves as a unit: every transition is one conditional update over the whole
group, and a short row count rolls the group back.
"""

import logging
from collections import OrderedDict
from datetime import date, datetime
from typing import Iterable, List, Optional, Tuple
from uuid import UUID

from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from practicum.core.config import settings
from practicum.core.exceptions import (
    ConflictError,
    DependencyFailure,
    NotFoundError,
    PermissionDenied,
    PreconditionFailed,
    ValidationError,
    already_acted_on,
)
from practicum.db.repositories.placement_repository import PlacementRepository
from practicum.db.repositories.timesheet_entry_repository import TimesheetEntryRepository
from practicum.db.repositories.timesheet_journal_repository import TimesheetJournalRepository
from practicum.models.placement import Placement, PlacementStatus
from practicum.models.timesheet import TimesheetEntry, TimesheetEntryStatus, EDITABLE_ENTRY_STATUSES
from practicum.models.user import User, UserRole
from practicum.schemas.timesheet import (
    ApprovalQueueResponse,
    DecisionAction,
    JournalFields,
    TimesheetWeekResponse,
    WeekSummary,
)
from practicum.services import access_policy
from practicum.services.base_service import BaseService
from practicum.services.notification_service import NotificationService
from practicum.services.notification_triggers import NotificationTriggers
from practicum.services.timesheet_service import (
    TimesheetService,
    get_week_end,
    get_week_start,
    total_hours,
    week_range_label,
)

logger = logging.getLogger(__name__)

VALID_COMPETENCIES = frozenset(f"2.1.{i}" for i in range(1, 10))
VALID_PRACTICE_BEHAVIORS = frozenset(f"pb{i}" for i in range(1, 21))


def validate_journal(journal: JournalFields) -> None:
    """Raise ValidationError listing every problem with the journal."""
    problems = {}
    if not journal.tasks_summary or not journal.tasks_summary.strip():
        problems["tasks_summary"] = "Describe the tasks you worked on this week"
    if not journal.competencies:
        problems["competencies"] = "Select at least one competency"
    else:
        unknown = sorted(set(journal.competencies) - VALID_COMPETENCIES)
        if unknown:
            problems["competencies"] = f"Unknown competencies: {', '.join(unknown)}"
    if not journal.practice_behaviors:
        problems["practice_behaviors"] = "Select at least one practice behavior"
    else:
        unknown = sorted(set(journal.practice_behaviors) - VALID_PRACTICE_BEHAVIORS)
        if unknown:
            problems["practice_behaviors"] = f"Unknown practice behaviors: {', '.join(unknown)}"
    words = len((journal.reaction or "").split())
    if words < settings.JOURNAL_MIN_REACTION_WORDS:
        problems["reaction"] = (
            f"Reaction must be at least {settings.JOURNAL_MIN_REACTION_WORDS} words ({words} given)"
        )
    if problems:
        raise ValidationError("Weekly journal is incomplete", problems)


def _dedupe(ids: Iterable[UUID]) -> List[UUID]:
    return list(OrderedDict.fromkeys(ids))


class TimesheetApprovalService(BaseService):
    """Service for the weekly dual-approval pipeline."""

    def __init__(self, session: AsyncSession, notifier: Optional[NotificationService] = None):
        self.session = session
        self.placement_repo = PlacementRepository(session)
        self.entry_repo = TimesheetEntryRepository(session)
        self.journal_repo = TimesheetJournalRepository(session)
        self.timesheet_service = TimesheetService(session)
        self.notifier = notifier or NotificationService(session)

    async def _apply(
        self,
        ids: List[UUID],
        expected,
        week: Optional[Tuple[UUID, date, date]] = None,
        **values,
    ) -> None:
        """
        Conditional group update plus commit; all rows or nothing.

        With `week` as (placement_id, week_start, week_end), every entry of
        that week must end up in the new status, so an entry added after
        `ids` was read aborts the update.
        """
        try:
            affected = await self.entry_repo.transition(ids, expected, **values)
            if affected != len(ids):
                await self.session.rollback()
                logger.info(
                    "Week-group transition lost a race",
                    extra={"expected": len(ids), "affected": affected},
                )
                raise already_acted_on("timesheet week", {"entry_ids": [str(i) for i in ids]})
            if week is not None:
                stray = await self.entry_repo.count_outside_statuses(*week, (values["status"],))
                if stray:
                    await self.session.rollback()
                    logger.info(
                        "Week changed while it was being moved",
                        extra={"placement_id": str(week[0]), "week_start": week[1].isoformat(), "stray": stray},
                    )
                    raise ConflictError(
                        "This week changed while it was being submitted. Refresh and try again.",
                        {"week_start": week[1].isoformat(), "unexpected_entries": stray},
                    )
            await self.session.commit()
        except SQLAlchemyError as e:
            await self.session.rollback()
            logger.exception("Week-group transition failed", extra={"entry_count": len(ids)})
            raise DependencyFailure() from e

    async def submit_week(
        self,
        placement_id: UUID,
        week_start: date,
        journal: JournalFields,
        actor: User,
        week_end: Optional[date] = None,
    ) -> TimesheetWeekResponse:
        """Send a week of DRAFT or REJECTED entries to the supervisor along with its journal."""
        if week_start.weekday() != 6:
            raise ValidationError("week_start must be a Sunday", {"week_start": week_start.isoformat()})
        expected_end = get_week_end(week_start)
        if week_end is not None and week_end != expected_end:
            raise ValidationError(
                "week_end must be the Saturday after week_start",
                {"week_end": week_end.isoformat(), "expected": expected_end.isoformat()},
            )
        week_end = expected_end

        placement = await self.placement_repo.get(placement_id)
        if not placement:
            raise NotFoundError("Placement not found", {"placement_id": str(placement_id)})
        access_policy.ensure_student_owner(actor, placement)
        if placement.status != PlacementStatus.ACTIVE:
            raise PreconditionFailed(
                "Timesheets can only be submitted for an active placement",
                {"status": placement.status.value},
            )
        validate_journal(journal)

        entries = await self.entry_repo.list_by_placement(placement_id, week_start, week_end)
        if not entries:
            raise PreconditionFailed("No hours are logged for this week", {"week_start": week_start.isoformat()})
        blocked = [e for e in entries if e.status not in EDITABLE_ENTRY_STATUSES]
        if blocked:
            raise PreconditionFailed(
                "This week has entries that are already submitted or approved",
                {"statuses": sorted({e.status.value for e in blocked})},
            )

        ids = [e.id for e in entries]
        hours = total_hours(entries)
        supervisor_id = placement.supervisor_id
        student_name = placement.student.full_name
        site_name = placement.site.name
        try:
            await self.journal_repo.upsert(
                placement_id,
                week_start,
                week_end,
                tasks_summary=journal.tasks_summary,
                high_low_points=journal.high_low_points,
                competencies=sorted(set(journal.competencies)),
                practice_behaviors=sorted(set(journal.practice_behaviors)),
                reaction=journal.reaction,
                other_comments=journal.other_comments,
            )
        except IntegrityError as e:
            await self.session.rollback()
            raise ConflictError("This week was just submitted. Refresh and try again.") from e
        except SQLAlchemyError as e:
            await self.session.rollback()
            logger.exception("Failed to save weekly journal", extra={"placement_id": str(placement_id)})
            raise DependencyFailure() from e

        await self._apply(
            ids,
            EDITABLE_ENTRY_STATUSES,
            week=(placement_id, week_start, week_end),
            status=TimesheetEntryStatus.PENDING_SUPERVISOR,
            submitted_at=datetime.utcnow(),
            supervisor_approved_at=None,
            supervisor_approved_by=None,
            rejected_at=None,
            rejected_by=None,
            rejection_reason=None,
            faculty_viewed_at=None,
            faculty_viewed_by=None,
        )
        logger.info(
            "Timesheet week submitted",
            extra={
                "placement_id": str(placement_id),
                "week_start": week_start.isoformat(),
                "entry_count": len(ids),
                "total_hours": str(hours),
            },
        )

        response = await self.timesheet_service.build_week(placement_id, week_start)
        if supervisor_id:
            await self.notifier.send(
                NotificationTriggers.timesheet_submitted(
                    placement_id,
                    supervisor_id,
                    student_name,
                    site_name,
                    week_range_label(week_start, week_end),
                    hours,
                    len(ids),
                )
            )
        else:
            logger.info("No supervisor on placement yet, submission notice skipped", extra={"placement_id": str(placement_id)})
        return response

    async def _load_week_group(
        self,
        entry_ids: Iterable[UUID],
    ) -> Tuple[Placement, List[TimesheetEntry], date]:
        """Resolve `entry_ids` to exactly one full week-group."""
        ids = _dedupe(entry_ids)
        if not ids:
            raise ValidationError("Select the entries of one week")

        entries = await self.entry_repo.get_many(ids)
        found = {e.id for e in entries}
        missing = [str(i) for i in ids if i not in found]
        if missing:
            raise NotFoundError("Timesheet entries not found", {"entry_ids": missing})

        placement_ids = {e.placement_id for e in entries}
        if len(placement_ids) > 1:
            raise ValidationError("Entries belong to more than one placement")
        week_starts = {get_week_start(e.date) for e in entries}
        if len(week_starts) > 1:
            raise ValidationError("Entries span more than one week")

        placement_id = placement_ids.pop()
        week_start = week_starts.pop()
        group = await self.entry_repo.list_by_placement(placement_id, week_start, get_week_end(week_start))
        if {e.id for e in group} != found:
            raise ValidationError(
                "Every entry of the week must be decided together",
                {"week_start": week_start.isoformat(), "entry_count": len(group)},
            )

        placement = await self.placement_repo.get(placement_id)
        if not placement:
            raise NotFoundError("Placement not found", {"placement_id": str(placement_id)})
        return placement, group, week_start

    def _ensure_status(self, entries: List[TimesheetEntry], expected: TimesheetEntryStatus) -> None:
        wrong = sorted({e.status.value for e in entries if e.status != expected})
        if wrong:
            raise already_acted_on("timesheet week", {"expected": expected.value, "found": wrong})

    @staticmethod
    def _reason(notes: Optional[str]) -> str:
        reason = (notes or "").strip()
        if not reason:
            raise ValidationError("A reason is required to reject a timesheet")
        return reason

    async def supervisor_decide(
        self,
        entry_ids: List[UUID],
        action: DecisionAction,
        actor: User,
        notes: Optional[str] = None,
    ) -> TimesheetWeekResponse:
        """First-stage review by the placement's site supervisor."""
        if action == DecisionAction.REJECT:
            notes = self._reason(notes)
        placement, entries, week_start = await self._load_week_group(entry_ids)
        access_policy.ensure_supervisor(actor, placement)
        self._ensure_status(entries, TimesheetEntryStatus.PENDING_SUPERVISOR)

        ids = [e.id for e in entries]
        hours = total_hours(entries)
        placement_id = placement.id
        student_id = placement.student_id
        faculty_id = placement.faculty_id
        student_name = placement.student.full_name
        actor_id = actor.id
        actor_name = actor.full_name
        now = datetime.utcnow()

        if action == DecisionAction.APPROVE:
            await self._apply(
                ids,
                TimesheetEntryStatus.PENDING_SUPERVISOR,
                status=TimesheetEntryStatus.PENDING_FACULTY,
                supervisor_approved_at=now,
                supervisor_approved_by=actor_id,
                supervisor_notes=notes,
            )
            event = NotificationTriggers.timesheet_supervisor_approved(
                placement_id, faculty_id, student_name, actor_name, hours
            )
        else:
            await self._apply(
                ids,
                TimesheetEntryStatus.PENDING_SUPERVISOR,
                status=TimesheetEntryStatus.REJECTED,
                rejected_at=now,
                rejected_by=actor_id,
                rejection_reason=notes,
                supervisor_notes=notes,
                faculty_viewed_at=None,
                faculty_viewed_by=None,
            )
            event = NotificationTriggers.timesheet_rejected(placement_id, student_id, actor_name, notes)

        logger.info(
            f"Supervisor {action.value}d timesheet week",
            extra={"placement_id": str(placement_id), "week_start": week_start.isoformat(), "entry_count": len(ids)},
        )
        response = await self.timesheet_service.build_week(placement_id, week_start)
        await self.notifier.send(event)
        return response

    async def faculty_decide(
        self,
        entry_ids: List[UUID],
        action: DecisionAction,
        actor: User,
        notes: Optional[str] = None,
    ) -> TimesheetWeekResponse:
        """Final review by the placement's faculty liaison (or an admin). Approval locks the week."""
        if action == DecisionAction.REJECT:
            notes = self._reason(notes)
        placement, entries, week_start = await self._load_week_group(entry_ids)
        access_policy.ensure_reviewer(actor, placement)
        self._ensure_status(entries, TimesheetEntryStatus.PENDING_FACULTY)

        ids = [e.id for e in entries]
        hours = total_hours(entries)
        placement_id = placement.id
        student_id = placement.student_id
        actor_id = actor.id
        actor_name = actor.full_name
        now = datetime.utcnow()

        if action == DecisionAction.APPROVE:
            await self._apply(
                ids,
                TimesheetEntryStatus.PENDING_FACULTY,
                status=TimesheetEntryStatus.APPROVED,
                locked=True,
                faculty_approved_at=now,
                faculty_approved_by=actor_id,
                faculty_notes=notes,
            )
            event = NotificationTriggers.timesheet_approved(placement_id, student_id, actor_name, hours)
        else:
            await self._apply(
                ids,
                TimesheetEntryStatus.PENDING_FACULTY,
                status=TimesheetEntryStatus.REJECTED,
                locked=False,
                rejected_at=now,
                rejected_by=actor_id,
                rejection_reason=notes,
                faculty_notes=notes,
                faculty_viewed_at=now,
                faculty_viewed_by=actor_id,
            )
            event = NotificationTriggers.timesheet_rejected(placement_id, student_id, actor_name, notes)

        logger.info(
            f"Faculty {action.value}d timesheet week",
            extra={"placement_id": str(placement_id), "week_start": week_start.isoformat(), "entry_count": len(ids)},
        )
        response = await self.timesheet_service.build_week(placement_id, week_start)
        await self.notifier.send(event)
        return response

    async def mark_viewed(self, entry_ids: List[UUID], actor: User) -> int:
        """Stamp rejected entries as seen by faculty. Returns the number stamped."""
        access_policy.ensure_faculty_or_admin(actor)
        ids = _dedupe(entry_ids)
        if not ids:
            raise ValidationError("No entries given")
        entries = await self.entry_repo.get_many(ids)
        found = {e.id for e in entries}
        missing = [str(i) for i in ids if i not in found]
        if missing:
            raise NotFoundError("Timesheet entries not found", {"entry_ids": missing})

        for placement_id in {e.placement_id for e in entries}:
            placement = await self.placement_repo.get(placement_id)
            access_policy.ensure_reviewer(actor, placement)

        rejected = [e.id for e in entries if e.status == TimesheetEntryStatus.REJECTED]
        if not rejected:
            return 0
        try:
            affected = await self.entry_repo.transition(
                rejected,
                TimesheetEntryStatus.REJECTED,
                faculty_viewed_at=datetime.utcnow(),
                faculty_viewed_by=actor.id,
            )
            await self.session.commit()
        except SQLAlchemyError as e:
            await self.session.rollback()
            logger.exception("Failed to mark entries viewed")
            raise DependencyFailure() from e
        return affected

    async def _queue(self, entries: List[TimesheetEntry]) -> ApprovalQueueResponse:
        """Group queue entries into week summaries."""
        groups = OrderedDict()
        for entry in entries:
            key = (entry.placement_id, get_week_start(entry.date))
            groups.setdefault(key, []).append(entry)

        placements = {p.id: p for p in await self.placement_repo.get_many({k[0] for k in groups})}
        items = []
        for (placement_id, week_start), group in groups.items():
            placement = placements.get(placement_id)
            submitted = [e.submitted_at for e in group if e.submitted_at]
            items.append(
                WeekSummary(
                    placement_id=placement_id,
                    student_id=placement.student_id,
                    student_name=placement.student.full_name if placement.student else None,
                    week_start=week_start,
                    week_end=get_week_end(week_start),
                    entry_ids=[e.id for e in group],
                    entry_count=len(group),
                    total_hours=total_hours(group),
                    submitted_at=max(submitted) if submitted else None,
                )
            )
        return ApprovalQueueResponse(items=items, total=len(items))

    async def supervisor_queue(self, actor: User) -> ApprovalQueueResponse:
        """Weeks waiting for this supervisor."""
        if actor.role != UserRole.SUPERVISOR:
            raise PermissionDenied("Only site supervisors have a review queue")
        entries = await self.entry_repo.list_queue(TimesheetEntryStatus.PENDING_SUPERVISOR, supervisor_id=actor.id)
        return await self._queue(entries)

    async def faculty_queue(self, actor: User) -> ApprovalQueueResponse:
        """Weeks waiting for final approval: the faculty member's own, or every one for admins."""
        access_policy.ensure_faculty_or_admin(actor)
        faculty_id = None if access_policy.is_admin(actor) else actor.id
        entries = await self.entry_repo.list_queue(TimesheetEntryStatus.PENDING_FACULTY, faculty_id=faculty_id)
        return await self._queue(entries)
