"""
Placement lifecycle tests: apply, approve gating, activation, rejection,
completion and races between reviewers.
"""

from datetime import date
from decimal import Decimal

import pytest

from conftest import TERM_END, TERM_START
from practicum.core.exceptions import (
    ConflictError,
    NotFoundError,
    PermissionDenied,
    PreconditionFailed,
    ValidationError,
)
from practicum.db.repositories.placement_repository import PlacementRepository
from practicum.models import (
    NotificationKind,
    PendingSupervisorStatus,
    PlacementDocument,
    PlacementStatus,
    TimesheetEntryStatus,
    User,
)
from practicum.schemas.pending_supervisor import NewSupervisorPayload
from practicum.schemas.placement import PlacementApply
from practicum.services.compliance_service import ComplianceService
from practicum.services.notification_service import NotificationService
from practicum.services.placement_service import PlacementService


def application(seed, academic_class=None, **overrides):
    values = dict(
        site_id=seed.site.id,
        class_id=(academic_class or seed.swk404).id,
        start_date=TERM_START,
        end_date=TERM_END,
        required_hours=Decimal("400"),
        supervisor_id=seed.supervisor.id,
    )
    values.update(overrides)
    return PlacementApply(**values)


def new_supervisor(email="pat.new@riverside.org"):
    return NewSupervisorPayload(first_name="Pat", last_name="New", email=email, title="Clinical Lead")


@pytest.fixture
def service(test_db_session, notifier):
    return PlacementService(test_db_session, notifier)


@pytest.mark.asyncio
async def test_apply_with_existing_supervisor(service, seed):
    result = await service.apply(application(seed), seed.student)

    placement = result.placement
    assert placement.status == PlacementStatus.PENDING
    assert placement.student_id == seed.student.id
    assert placement.faculty_id == seed.faculty.id
    assert placement.supervisor_id == seed.supervisor.id
    assert placement.class_code == "SWK404"
    assert placement.pending_supervisor is None
    assert result.faculty_mismatch is False

    history = await service.list_history(placement.id, seed.student)
    assert [(h.from_status, h.to_status) for h in history] == [(None, PlacementStatus.PENDING)]


@pytest.mark.asyncio
async def test_apply_with_new_supervisor_creates_pending_request(service, seed):
    result = await service.apply(
        application(seed, supervisor_id=None, new_supervisor=new_supervisor("Pat.New@Riverside.org")),
        seed.student,
    )

    placement = result.placement
    assert placement.status == PlacementStatus.PENDING
    assert placement.supervisor_id is None
    assert placement.pending_supervisor is not None
    assert placement.pending_supervisor.status == PendingSupervisorStatus.PENDING
    assert placement.pending_supervisor.email == "pat.new@riverside.org"
    assert placement.pending_supervisor.site_id == seed.site.id


@pytest.mark.asyncio
async def test_apply_requires_exactly_one_supervisor_choice(service, seed):
    with pytest.raises(ValidationError):
        await service.apply(application(seed, supervisor_id=None), seed.student)

    with pytest.raises(ValidationError):
        await service.apply(application(seed, new_supervisor=new_supervisor()), seed.student)


@pytest.mark.asyncio
async def test_apply_validates_dates_and_hours(service, seed):
    with pytest.raises(ValidationError):
        await service.apply(application(seed, end_date=date(2024, 12, 31)), seed.student)

    with pytest.raises(ValidationError):
        await service.apply(application(seed, required_hours=Decimal("0")), seed.student)


@pytest.mark.asyncio
async def test_apply_rejects_supervisor_from_another_site(service, seed):
    with pytest.raises(NotFoundError):
        await service.apply(application(seed, supervisor_id=seed.other_supervisor.id), seed.student)


@pytest.mark.asyncio
async def test_apply_rejects_email_already_in_use(service, seed):
    with pytest.raises(ConflictError):
        await service.apply(
            application(seed, supervisor_id=None, new_supervisor=new_supervisor(seed.faculty.email.upper())),
            seed.student,
        )


@pytest.mark.asyncio
async def test_apply_without_faculty_assignment_fails(service, seed):
    with pytest.raises(PreconditionFailed):
        await service.apply(application(seed), seed.other_student)


@pytest.mark.asyncio
async def test_student_cannot_apply_for_someone_else(service, seed):
    with pytest.raises(PermissionDenied):
        await service.apply(application(seed, student_id=seed.other_student.id), seed.student)


@pytest.mark.asyncio
async def test_faculty_can_apply_on_behalf_of_student(service, seed):
    result = await service.apply(application(seed, student_id=seed.student.id), seed.faculty)

    assert result.placement.student_id == seed.student.id


@pytest.mark.asyncio
async def test_one_open_placement_per_class(service, seed):
    await service.apply(application(seed), seed.student)

    with pytest.raises(ValidationError) as exc_info:
        await service.apply(application(seed), seed.student)
    assert "SWK404" in exc_info.value.message


@pytest.mark.asyncio
async def test_reapply_after_decline_clears_old_notes(service, seed):
    first = await service.apply(application(seed), seed.student)
    await service.reject(first.placement.id, "Site is not accepting students this term", seed.faculty)

    second = await service.apply(application(seed), seed.student)

    assert second.placement.id != first.placement.id
    assert second.placement.status == PlacementStatus.PENDING
    declined = await PlacementRepository(service.session).get_fresh(first.placement.id)
    assert declined.status == PlacementStatus.DECLINED
    assert declined.faculty_notes is None


@pytest.mark.asyncio
async def test_faculty_class_mismatch_notifies_both_faculty_and_admins(service, seed, channel):
    result = await service.apply(application(seed, academic_class=seed.swk405), seed.student)

    assert result.faculty_mismatch is True
    # Placement still goes to the student's assigned faculty
    assert result.placement.faculty_id == seed.faculty.id
    mismatch = NotificationKind.FACULTY_CLASS_MISMATCH.value
    assert mismatch in channel.kinds_for(seed.faculty.id)
    assert mismatch in channel.kinds_for(seed.other_faculty.id)
    assert mismatch in channel.kinds_for(seed.admin.id)


@pytest.mark.asyncio
async def test_approve_without_cell_policy_is_blocked(service, seed, make_placement):
    placement = await make_placement(status=PlacementStatus.PENDING)

    with pytest.raises(PreconditionFailed) as exc_info:
        await service.approve(placement.id, seed.faculty)

    assert exc_info.value.details == {"missing_document": "cell_policy"}
    current = await service.get_placement(placement.id, seed.faculty)
    assert current.status == PlacementStatus.PENDING


@pytest.mark.asyncio
async def test_approve_fails_if_cell_policy_removed_before_write(service, seed, make_placement, session_maker, channel):
    placement = await make_placement(status=PlacementStatus.PENDING, cell_policy="docs/cell.pdf")
    placement_id = placement.id
    student_id = seed.student.id
    write_status = service.placement_repo.transition

    async def transition_after_removal(*args, **kwargs):
        async with session_maker() as other_session:
            student = await other_session.get(User, student_id)
            compliance = ComplianceService(other_session, NotificationService(other_session, channel))
            await compliance.remove_document(placement_id, PlacementDocument.CELL_POLICY, student)
        return await write_status(*args, **kwargs)

    service.placement_repo.transition = transition_after_removal

    with pytest.raises(PreconditionFailed) as exc_info:
        await service.approve(placement_id, seed.faculty)

    assert exc_info.value.details == {"missing_document": "cell_policy"}
    async with session_maker() as check_session:
        current = await PlacementRepository(check_session).get_fresh(placement_id)
    assert current.status == PlacementStatus.PENDING
    assert current.cell_policy is None
    assert current.approved_at is None


@pytest.mark.asyncio
async def test_approve_reports_conflict_when_status_moved(service, seed, make_placement, session_maker, channel):
    placement = await make_placement(status=PlacementStatus.PENDING, cell_policy="docs/cell.pdf")
    placement_id = placement.id
    admin_id = seed.admin.id
    write_status = service.placement_repo.transition

    async def transition_after_reject(*args, **kwargs):
        async with session_maker() as other_session:
            admin = await other_session.get(User, admin_id)
            other = PlacementService(other_session, NotificationService(other_session, channel))
            await other.reject(placement_id, "Site closed for the term", admin)
        return await write_status(*args, **kwargs)

    service.placement_repo.transition = transition_after_reject

    with pytest.raises(ConflictError):
        await service.approve(placement_id, seed.faculty)

    async with session_maker() as check_session:
        current = await PlacementRepository(check_session).get_fresh(placement_id)
    assert current.status == PlacementStatus.DECLINED


@pytest.mark.asyncio
async def test_full_lifecycle_notifies_student(service, seed, notifier, channel):
    compliance = ComplianceService(service.session, notifier)
    placement_id = (await service.apply(application(seed), seed.student)).placement.id

    await compliance.attach_document(placement_id, PlacementDocument.CELL_POLICY, "docs/cell-policy.pdf", seed.student)
    approved = await service.approve(placement_id, seed.faculty)
    assert approved.status == PlacementStatus.APPROVED_PENDING_CHECKLIST
    assert approved.approved_by == seed.faculty.id
    assert approved.approved_at is not None

    active = await service.activate(placement_id, seed.faculty)
    assert active.status == PlacementStatus.ACTIVE

    completed = await service.complete(placement_id, seed.admin)
    assert completed.status == PlacementStatus.COMPLETE
    assert completed.completed_at is not None

    student_kinds = channel.kinds_for(seed.student.id)
    assert NotificationKind.PLACEMENT_APPROVED.value in student_kinds
    assert NotificationKind.PLACEMENT_ACTIVATED.value in student_kinds
    assert NotificationKind.PLACEMENT_COMPLETED.value in student_kinds

    history = await service.list_history(placement_id, seed.admin)
    assert [h.to_status for h in history] == [
        PlacementStatus.PENDING,
        PlacementStatus.APPROVED_PENDING_CHECKLIST,
        PlacementStatus.ACTIVE,
        PlacementStatus.COMPLETE,
    ]
    assert history[1].from_status == PlacementStatus.PENDING


@pytest.mark.asyncio
async def test_out_of_order_transitions_are_refused(service, seed, make_placement):
    pending = await make_placement(status=PlacementStatus.PENDING, cell_policy="docs/cell.pdf")

    with pytest.raises(ConflictError):
        await service.activate(pending.id, seed.faculty)
    with pytest.raises(ConflictError):
        await service.complete(pending.id, seed.admin)

    current = await service.get_placement(pending.id, seed.admin)
    assert current.status == PlacementStatus.PENDING


@pytest.mark.asyncio
async def test_active_placement_cannot_be_approved_or_declined(service, seed, make_placement):
    active = await make_placement(status=PlacementStatus.ACTIVE, cell_policy="docs/cell.pdf")

    with pytest.raises(ConflictError):
        await service.approve(active.id, seed.faculty)
    with pytest.raises(ConflictError):
        await service.reject(active.id, "Too late", seed.faculty)


@pytest.mark.asyncio
async def test_reject_records_reason_and_notifies(service, seed, make_placement, channel):
    placement = await make_placement(status=PlacementStatus.APPROVED_PENDING_CHECKLIST)

    declined = await service.reject(placement.id, "  Site closed  ", seed.faculty)

    assert declined.status == PlacementStatus.DECLINED
    assert declined.faculty_notes == "Site closed"
    assert declined.declined_by == seed.faculty.id
    rejected = [p for p in channel.delivered if p["kind"] == NotificationKind.PLACEMENT_REJECTED.value]
    assert len(rejected) == 1
    assert rejected[0]["metadata"] == {"reason": "Site closed"}


@pytest.mark.asyncio
async def test_reject_requires_reason(service, seed, make_placement):
    placement = await make_placement(status=PlacementStatus.PENDING)

    with pytest.raises(ValidationError):
        await service.reject(placement.id, "   ", seed.faculty)


@pytest.mark.asyncio
async def test_only_assigned_faculty_or_admin_reviews(service, seed, make_placement):
    placement = await make_placement(status=PlacementStatus.PENDING, cell_policy="docs/cell.pdf")

    with pytest.raises(PermissionDenied):
        await service.approve(placement.id, seed.other_faculty)
    with pytest.raises(PermissionDenied):
        await service.approve(placement.id, seed.student)
    with pytest.raises(PermissionDenied):
        await service.approve(placement.id, seed.supervisor)

    approved = await service.approve(placement.id, seed.admin)
    assert approved.status == PlacementStatus.APPROVED_PENDING_CHECKLIST


@pytest.mark.asyncio
async def test_complete_is_admin_only(service, seed, make_placement):
    placement = await make_placement(status=PlacementStatus.ACTIVE)

    with pytest.raises(PermissionDenied):
        await service.complete(placement.id, seed.faculty)


@pytest.mark.asyncio
async def test_concurrent_approvals_succeed_once(service, seed, make_placement, session_maker, channel):
    placement = await make_placement(status=PlacementStatus.PENDING, cell_policy="docs/cell.pdf")
    placement_id = placement.id
    faculty_id = seed.faculty.id

    async with session_maker() as other_session:
        other_service = PlacementService(other_session, NotificationService(other_session, channel))
        other_faculty_view = await other_session.get(User, faculty_id)
        # Second reviewer has already read the placement while it was PENDING
        await other_service.placement_repo.get(placement_id)
        await other_session.commit()

        first = await service.approve(placement_id, seed.faculty)
        assert first.status == PlacementStatus.APPROVED_PENDING_CHECKLIST

        with pytest.raises(ConflictError):
            await other_service.approve(placement_id, other_faculty_view)

    async with session_maker() as check_session:
        check = PlacementService(check_session, NotificationService(check_session, channel))
        admin = await check_session.get(User, seed.admin.id)
        current = await check.get_placement(placement_id, admin)
        history = await check.list_history(placement_id, admin)

    assert current.status == PlacementStatus.APPROVED_PENDING_CHECKLIST
    assert [h.to_status for h in history].count(PlacementStatus.APPROVED_PENDING_CHECKLIST) == 1
    approvals = [p for p in channel.delivered if p["kind"] == NotificationKind.PLACEMENT_APPROVED.value]
    assert len(approvals) == 1


@pytest.mark.asyncio
async def test_complete_ended_placements(service, seed, make_placement, channel):
    ended = await make_placement(status=PlacementStatus.ACTIVE)
    still_running = await make_placement(
        status=PlacementStatus.ACTIVE,
        student_id=seed.other_student.id,
        end_date=date(2025, 8, 1),
    )
    not_started = await make_placement(
        status=PlacementStatus.PENDING,
        class_id=seed.swk405.id,
    )

    completed = await service.complete_ended_placements(date(2025, 6, 15), seed.admin)

    assert completed == [ended.id]
    assert (await service.get_placement(ended.id, seed.admin)).status == PlacementStatus.COMPLETE
    assert (await service.get_placement(still_running.id, seed.admin)).status == PlacementStatus.ACTIVE
    assert (await service.get_placement(not_started.id, seed.admin)).status == PlacementStatus.PENDING
    assert NotificationKind.PLACEMENT_COMPLETED.value in channel.kinds_for(seed.student.id)

    history = await service.list_history(ended.id, seed.admin)
    assert history[-1].note == "Placement end date passed"


@pytest.mark.asyncio
async def test_complete_ended_placements_is_admin_only(service, seed):
    with pytest.raises(PermissionDenied):
        await service.complete_ended_placements(date(2025, 6, 15), seed.faculty)


@pytest.mark.asyncio
async def test_list_placements_is_scoped_by_role(service, seed, make_placement):
    mine = await make_placement(status=PlacementStatus.ACTIVE)
    await make_placement(
        status=PlacementStatus.PENDING,
        student_id=seed.other_student.id,
        faculty_id=seed.other_faculty.id,
        supervisor_id=None,
    )

    student_view = await service.list_placements(seed.student)
    assert [p.id for p in student_view.items] == [mine.id]

    supervisor_view = await service.list_placements(seed.supervisor)
    assert [p.id for p in supervisor_view.items] == [mine.id]

    other_faculty_view = await service.list_placements(seed.other_faculty)
    assert other_faculty_view.total == 1
    assert other_faculty_view.items[0].id != mine.id

    admin_view = await service.list_placements(seed.admin)
    assert admin_view.total == 2

    pending_only = await service.list_placements(seed.admin, status=PlacementStatus.PENDING)
    assert pending_only.total == 1


@pytest.mark.asyncio
async def test_view_is_restricted_to_participants(service, seed, make_placement):
    placement = await make_placement(status=PlacementStatus.ACTIVE)

    with pytest.raises(PermissionDenied):
        await service.get_placement(placement.id, seed.other_student)
    with pytest.raises(PermissionDenied):
        await service.get_placement(placement.id, seed.other_supervisor)


@pytest.mark.asyncio
async def test_hours_count_only_faculty_approved_entries(service, seed, make_placement, make_week):
    placement = await make_placement(status=PlacementStatus.ACTIVE)
    await make_week(placement, hours=(8, 8, 8), status=TimesheetEntryStatus.APPROVED)
    await make_week(placement, hours=(6, 6), week_start=date(2025, 1, 19))

    hours = await service.get_hours(placement.id, seed.student)

    assert hours.required_hours == Decimal("400")
    assert hours.approved_hours == Decimal("24")
    assert hours.remaining_hours == Decimal("376")
    assert hours.percent_complete == 6.0
