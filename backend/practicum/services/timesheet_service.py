"""
Timesheet service - log, edit and view hours on an active placement.
"""

import logging
from datetime import date, timedelta
from decimal import Decimal
from typing import Iterable, List, Optional
from uuid import UUID

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from practicum.core.exceptions import (
    DependencyFailure,
    NotFoundError,
    PreconditionFailed,
    ValidationError,
    already_acted_on,
)
from practicum.db.repositories.placement_repository import PlacementRepository
from practicum.db.repositories.timesheet_entry_repository import TimesheetEntryRepository
from practicum.db.repositories.timesheet_journal_repository import TimesheetJournalRepository
from practicum.models.placement import Placement, PlacementStatus
from practicum.models.timesheet import TimesheetEntry, EDITABLE_ENTRY_STATUSES
from practicum.models.user import User
from practicum.schemas.timesheet import (
    TimesheetEntryCreate,
    TimesheetEntryResponse,
    TimesheetEntryUpdate,
    TimesheetJournalResponse,
    TimesheetWeekResponse,
)
from practicum.services import access_policy
from practicum.services.base_service import BaseService

logger = logging.getLogger(__name__)

MAX_HOURS_PER_ENTRY = Decimal("24")


def get_week_start(d: date) -> date:
    """Return the Sunday on or before d."""
    days_since_sunday = (d.weekday() + 1) % 7
    return d - timedelta(days=days_since_sunday)


def get_week_end(week_start: date) -> date:
    return week_start + timedelta(days=6)


def week_range_label(week_start: date, week_end: date) -> str:
    return f"{week_start.isoformat()} to {week_end.isoformat()}"


def total_hours(entries: Iterable[TimesheetEntry]) -> Decimal:
    return sum((Decimal(str(e.hours)) for e in entries), Decimal("0"))


def validate_hours(hours: Optional[Decimal]) -> None:
    if hours is None or hours <= 0 or hours > MAX_HOURS_PER_ENTRY:
        raise ValidationError(
            f"Hours must be greater than 0 and at most {MAX_HOURS_PER_ENTRY}",
            {"hours": str(hours)},
        )


class TimesheetService(BaseService):
    """Service for timesheet entries and weekly views."""

    def __init__(self, session: AsyncSession):
        self.session = session
        self.placement_repo = PlacementRepository(session)
        self.entry_repo = TimesheetEntryRepository(session)
        self.journal_repo = TimesheetJournalRepository(session)

    async def _get_placement(self, placement_id: UUID) -> Placement:
        placement = await self.placement_repo.get(placement_id)
        if not placement:
            raise NotFoundError("Placement not found", {"placement_id": str(placement_id)})
        return placement

    async def _get_loggable_placement(self, placement_id: UUID, actor: User) -> Placement:
        placement = await self._get_placement(placement_id)
        access_policy.ensure_student_owner(actor, placement)
        if placement.status != PlacementStatus.ACTIVE:
            raise PreconditionFailed(
                "Hours can only be logged on an active placement",
                {"status": placement.status.value},
            )
        return placement

    async def _ensure_week_open(self, placement: Placement, day: date) -> None:
        """A week that has been submitted or approved takes no new or edited hours."""
        if day < placement.start_date or day > placement.end_date:
            raise ValidationError(
                "Date is outside the placement period",
                {"start_date": placement.start_date.isoformat(), "end_date": placement.end_date.isoformat()},
            )
        await self._recheck_week_open(placement.id, day)

    async def _recheck_week_open(self, placement_id: UUID, day: date, written: bool = False) -> None:
        """
        Raise PreconditionFailed if the week holding `day` has left DRAFT/REJECTED.

        With `written`, this runs after the write and before commit, so a week
        submitted in between rolls the write back.
        """
        week_start = get_week_start(day)
        closed = await self.entry_repo.count_outside_statuses(
            placement_id, week_start, get_week_end(week_start), EDITABLE_ENTRY_STATUSES
        )
        if closed:
            if written:
                await self.session.rollback()
            raise PreconditionFailed(
                "This week has already been submitted",
                {"week_start": week_start.isoformat()},
            )

    async def _get_entry(self, entry_id: UUID) -> TimesheetEntry:
        entry = await self.entry_repo.get_fresh(entry_id)
        if not entry:
            raise NotFoundError("Timesheet entry not found", {"entry_id": str(entry_id)})
        return entry

    def _ensure_editable(self, entry: TimesheetEntry) -> None:
        if entry.locked:
            raise PreconditionFailed("Approved entries are locked and cannot be changed")
        if entry.status not in EDITABLE_ENTRY_STATUSES:
            raise PreconditionFailed(
                "Entries waiting for review cannot be changed",
                {"status": entry.status.value},
            )

    async def create_entry(
        self,
        placement_id: UUID,
        data: TimesheetEntryCreate,
        actor: User,
    ) -> TimesheetEntryResponse:
        validate_hours(data.hours)
        placement = await self._get_loggable_placement(placement_id, actor)
        await self._ensure_week_open(placement, data.date)

        try:
            entry = await self.entry_repo.create(
                placement_id=placement.id,
                date=data.date,
                hours=data.hours,
                category=data.category,
                notes=data.notes,
            )
            await self._recheck_week_open(placement.id, data.date, written=True)
            await self.session.commit()
        except SQLAlchemyError as e:
            await self.session.rollback()
            logger.exception("Failed to create timesheet entry", extra={"placement_id": str(placement_id)})
            raise DependencyFailure() from e
        return TimesheetEntryResponse.model_validate(entry)

    async def update_entry(
        self,
        entry_id: UUID,
        data: TimesheetEntryUpdate,
        actor: User,
    ) -> TimesheetEntryResponse:
        values = data.model_dump(exclude_unset=True)
        # notes is the only field that may be cleared
        values = {k: v for k, v in values.items() if v is not None or k == "notes"}
        if "hours" in values:
            validate_hours(values["hours"])
        entry = await self._get_entry(entry_id)
        placement = await self._get_loggable_placement(entry.placement_id, actor)
        self._ensure_editable(entry)
        entry_date = entry.date
        if values.get("date") and values["date"] != entry_date:
            await self._ensure_week_open(placement, values["date"])
        if not values:
            return TimesheetEntryResponse.model_validate(entry)

        try:
            affected = await self.entry_repo.update_editable(entry_id, **values)
            if affected != 1:
                await self.session.rollback()
                raise already_acted_on("timesheet entry", {"entry_id": str(entry_id)})
            if values.get("date") and values["date"] != entry_date:
                await self._recheck_week_open(placement.id, values["date"], written=True)
            await self.session.commit()
        except SQLAlchemyError as e:
            await self.session.rollback()
            logger.exception("Failed to update timesheet entry", extra={"entry_id": str(entry_id)})
            raise DependencyFailure() from e
        return TimesheetEntryResponse.model_validate(await self.entry_repo.get_fresh(entry_id))

    async def delete_entry(self, entry_id: UUID, actor: User) -> None:
        entry = await self._get_entry(entry_id)
        await self._get_loggable_placement(entry.placement_id, actor)
        self._ensure_editable(entry)

        try:
            affected = await self.entry_repo.delete_editable(entry_id)
            if affected != 1:
                await self.session.rollback()
                raise already_acted_on("timesheet entry", {"entry_id": str(entry_id)})
            await self.session.commit()
        except SQLAlchemyError as e:
            await self.session.rollback()
            logger.exception("Failed to delete timesheet entry", extra={"entry_id": str(entry_id)})
            raise DependencyFailure() from e

    async def list_entries(
        self,
        placement_id: UUID,
        actor: User,
        start: Optional[date] = None,
        end: Optional[date] = None,
    ) -> List[TimesheetEntryResponse]:
        placement = await self._get_placement(placement_id)
        access_policy.ensure_can_view(actor, placement)
        entries = await self.entry_repo.list_by_placement(placement_id, start, end)
        return [TimesheetEntryResponse.model_validate(e) for e in entries]

    async def build_week(self, placement_id: UUID, week_start: date) -> TimesheetWeekResponse:
        """Entries, total and journal for one week. No access checks."""
        week_end = get_week_end(week_start)
        entries = await self.entry_repo.list_by_placement(placement_id, week_start, week_end)
        journal = await self.journal_repo.get_for_week(placement_id, week_start, week_end)
        return TimesheetWeekResponse(
            placement_id=placement_id,
            week_start=week_start,
            week_end=week_end,
            total_hours=total_hours(entries),
            entries=[TimesheetEntryResponse.model_validate(e) for e in entries],
            journal=TimesheetJournalResponse.model_validate(journal) if journal else None,
        )

    async def get_week(self, placement_id: UUID, day: date, actor: User) -> TimesheetWeekResponse:
        """The week containing `day`."""
        placement = await self._get_placement(placement_id)
        access_policy.ensure_can_view(actor, placement)
        return await self.build_week(placement_id, get_week_start(day))
