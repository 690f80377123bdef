"""
Compliance checklist and document slot tests.
"""

import pytest

from practicum.core.exceptions import ConflictError, NotFoundError, PermissionDenied, PreconditionFailed
from practicum.db.repositories.placement_repository import PlacementRepository
from practicum.models import NotificationKind, PlacementDocument, PlacementStatus, User
from practicum.schemas.placement import ComplianceChecklistUpdate
from practicum.services.compliance_service import ComplianceService
from practicum.services.notification_service import NotificationService


@pytest.fixture
def service(test_db_session, notifier):
    return ComplianceService(test_db_session, notifier)


@pytest.mark.asyncio
async def test_new_placement_has_empty_checklist(service, seed, make_placement):
    placement = await make_placement(status=PlacementStatus.PENDING)

    status = await service.get_status(placement.id, seed.faculty)

    assert status.checklist_complete is False
    assert status.checklist.model_dump() == {
        "orientation": False,
        "safety_training": False,
        "confidentiality": False,
        "supervision_schedule": False,
    }
    assert status.missing_documents == ["cell_policy", "learning_contract", "checklist"]


@pytest.mark.asyncio
async def test_update_checklist_merges_flags(service, seed, make_placement):
    placement = await make_placement(status=PlacementStatus.PENDING)

    await service.update_checklist(
        placement.id, ComplianceChecklistUpdate(orientation=True, safety_training=True), seed.student
    )
    status = await service.update_checklist(
        placement.id, ComplianceChecklistUpdate(confidentiality=True, supervision_schedule=True), seed.student
    )

    assert status.checklist.orientation is True
    assert status.checklist.safety_training is True
    assert status.checklist_complete is True

    status = await service.update_checklist(placement.id, ComplianceChecklistUpdate(orientation=False), seed.admin)
    assert status.checklist.orientation is False
    assert status.checklist.confidentiality is True
    assert status.checklist_complete is False


@pytest.mark.asyncio
async def test_concurrent_checklist_update_is_not_lost(service, seed, make_placement, session_maker, channel):
    placement = await make_placement(status=PlacementStatus.PENDING)
    placement_id = placement.id
    student_id = seed.student.id
    write = service.placement_repo.transition

    async def write_after_other_toggle(*args, **kwargs):
        async with session_maker() as other_session:
            student = await other_session.get(User, student_id)
            other = ComplianceService(other_session, NotificationService(other_session, channel))
            await other.update_checklist(placement_id, ComplianceChecklistUpdate(safety_training=True), student)
        return await write(*args, **kwargs)

    service.placement_repo.transition = write_after_other_toggle

    with pytest.raises(ConflictError):
        await service.update_checklist(placement_id, ComplianceChecklistUpdate(orientation=True), seed.student)

    async with session_maker() as check_session:
        current = await PlacementRepository(check_session).get_fresh(placement_id)
    assert current.compliance_checklist["safety_training"] is True
    assert current.compliance_checklist["orientation"] is False
    assert current.checklist_version == 1


@pytest.mark.asyncio
async def test_attach_and_remove_document(service, seed, make_placement, channel):
    placement = await make_placement(status=PlacementStatus.PENDING)

    status = await service.attach_document(
        placement.id, PlacementDocument.LEARNING_CONTRACT, "docs/contract.pdf", seed.student
    )

    assert status.documents["learning_contract"] == "docs/contract.pdf"
    assert "learning_contract" not in status.missing_documents
    uploaded = NotificationKind.DOCUMENT_UPLOADED.value
    assert uploaded in channel.kinds_for(seed.student.id)
    assert uploaded in channel.kinds_for(seed.faculty.id)

    status = await service.remove_document(placement.id, PlacementDocument.LEARNING_CONTRACT, seed.student)
    assert status.documents["learning_contract"] is None

    with pytest.raises(NotFoundError):
        await service.remove_document(placement.id, PlacementDocument.LEARNING_CONTRACT, seed.student)


@pytest.mark.asyncio
async def test_only_owner_or_admin_edits(service, seed, make_placement):
    placement = await make_placement(status=PlacementStatus.PENDING)

    with pytest.raises(PermissionDenied):
        await service.update_checklist(placement.id, ComplianceChecklistUpdate(orientation=True), seed.faculty)
    with pytest.raises(PermissionDenied):
        await service.attach_document(placement.id, PlacementDocument.CELL_POLICY, "x.pdf", seed.other_student)

    status = await service.attach_document(placement.id, PlacementDocument.CELL_POLICY, "x.pdf", seed.admin)
    assert status.documents["cell_policy"] == "x.pdf"


@pytest.mark.asyncio
async def test_closed_placement_is_read_only(service, seed, make_placement):
    placement = await make_placement(status=PlacementStatus.COMPLETE)

    with pytest.raises(PreconditionFailed):
        await service.update_checklist(placement.id, ComplianceChecklistUpdate(orientation=True), seed.student)
    with pytest.raises(PreconditionFailed):
        await service.attach_document(placement.id, PlacementDocument.CHECKLIST, "c.pdf", seed.student)

    status = await service.get_status(placement.id, seed.student)
    assert status.status == PlacementStatus.COMPLETE


@pytest.mark.asyncio
async def test_status_visible_to_participants_only(service, seed, make_placement):
    placement = await make_placement(status=PlacementStatus.ACTIVE)

    assert (await service.get_status(placement.id, seed.supervisor)).placement_id == placement.id
    with pytest.raises(PermissionDenied):
        await service.get_status(placement.id, seed.other_faculty)
