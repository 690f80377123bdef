"""
End-to-end HTTP tests for the placement and timesheet workflows.
"""

from datetime import timedelta
from decimal import Decimal
from uuid import uuid4

import pytest

from conftest import TERM_END, TERM_START, WEEK_START, auth_headers, journal_payload
from practicum.core.security import create_access_token

API = "/api/v1"


def token_for(user_id, role):
    return {"Authorization": f"Bearer {create_access_token({'sub': str(user_id), 'role': role})}"}


@pytest.mark.asyncio
async def test_placement_to_approved_timesheet(test_client, seed, channel):
    student = auth_headers(seed.student)
    faculty = auth_headers(seed.faculty)

    # Apply with a supervisor who has no account yet
    response = await test_client.post(
        f"{API}/placements",
        json={
            "site_id": str(seed.site.id),
            "class_id": str(seed.swk404.id),
            "start_date": TERM_START.isoformat(),
            "end_date": TERM_END.isoformat(),
            "required_hours": "400",
            "new_supervisor": {"first_name": "Pat", "last_name": "New", "email": "pat.new@riverside.org"},
        },
        headers=student,
    )
    assert response.status_code == 201
    placement = response.json()["placement"]
    placement_id = placement["id"]
    assert placement["status"] == "PENDING"
    assert placement["supervisor_id"] is None
    pending_id = placement["pending_supervisor"]["id"]

    # Approval is gated on the cell phone policy
    response = await test_client.post(f"{API}/placements/{placement_id}/approve", headers=faculty)
    assert response.status_code == 412
    error = response.json()["error"]
    assert error["type"] == "PreconditionFailed"
    assert error["details"] == {"missing_document": "cell_policy"}

    response = await test_client.put(
        f"{API}/placements/{placement_id}/compliance/documents/cell_policy",
        json={"reference": "uploads/cell-policy.pdf"},
        headers=student,
    )
    assert response.status_code == 200
    assert response.json()["documents"]["cell_policy"] == "uploads/cell-policy.pdf"

    response = await test_client.post(f"{API}/placements/{placement_id}/approve", headers=faculty)
    assert response.status_code == 200
    assert response.json()["status"] == "APPROVED_PENDING_CHECKLIST"

    response = await test_client.post(f"{API}/placements/{placement_id}/activate", headers=faculty)
    assert response.status_code == 200
    assert response.json()["status"] == "ACTIVE"

    # Faculty provisions the requested supervisor
    response = await test_client.get(f"{API}/pending-supervisors?status=PENDING", headers=faculty)
    assert response.status_code == 200
    assert [item["id"] for item in response.json()["items"]] == [pending_id]

    response = await test_client.post(f"{API}/pending-supervisors/{pending_id}/approve", headers=faculty)
    assert response.status_code == 200
    supervisor_id = response.json()["created_user_id"]
    supervisor = token_for(supervisor_id, "SUPERVISOR")

    response = await test_client.get(f"{API}/placements/{placement_id}", headers=student)
    assert response.json()["supervisor_id"] == supervisor_id

    # One week of hours
    entry_ids = []
    for offset in range(1, 6):
        response = await test_client.post(
            f"{API}/timesheets/placements/{placement_id}/entries",
            json={"date": (WEEK_START + timedelta(days=offset)).isoformat(), "hours": "8"},
            headers=student,
        )
        assert response.status_code == 201
        entry_ids.append(response.json()["id"])

    response = await test_client.post(
        f"{API}/timesheets/placements/{placement_id}/submit-week",
        json={"week_start": WEEK_START.isoformat(), "journal": journal_payload()},
        headers=student,
    )
    assert response.status_code == 200
    week = response.json()
    assert Decimal(week["total_hours"]) == Decimal("40")
    assert {e["status"] for e in week["entries"]} == {"PENDING_SUPERVISOR"}

    response = await test_client.get(f"{API}/timesheets/queue/supervisor", headers=supervisor)
    assert response.status_code == 200
    assert sorted(response.json()["items"][0]["entry_ids"]) == sorted(entry_ids)

    response = await test_client.post(
        f"{API}/timesheets/supervisor-decision",
        json={"entry_ids": entry_ids, "action": "approve"},
        headers=supervisor,
    )
    assert response.status_code == 200
    assert {e["status"] for e in response.json()["entries"]} == {"PENDING_FACULTY"}

    response = await test_client.post(
        f"{API}/timesheets/faculty-decision",
        json={"entry_ids": entry_ids, "action": "approve"},
        headers=faculty,
    )
    assert response.status_code == 200
    entries = response.json()["entries"]
    assert {e["status"] for e in entries} == {"APPROVED"}
    assert all(e["locked"] for e in entries)

    response = await test_client.patch(
        f"{API}/timesheets/entries/{entry_ids[0]}", json={"hours": "2"}, headers=student
    )
    assert response.status_code == 412

    response = await test_client.get(f"{API}/placements/{placement_id}/hours", headers=student)
    assert Decimal(response.json()["approved_hours"]) == Decimal("40")

    response = await test_client.get(f"{API}/notifications", headers=student)
    assert response.status_code == 200
    kinds = {n["kind"] for n in response.json()["items"]}
    assert {"PLACEMENT_APPROVED", "PLACEMENT_ACTIVATED", "SUPERVISOR_APPROVED", "TIMESHEET_APPROVED"} <= kinds

    response = await test_client.post(f"{API}/notifications/read-all", headers=student)
    assert response.json()["updated"] >= 4
    response = await test_client.get(f"{API}/notifications?unread_only=true", headers=student)
    assert response.json()["unread"] == 0


@pytest.mark.asyncio
async def test_error_envelope(test_client, seed):
    response = await test_client.get(f"{API}/placements/{uuid4()}", headers=auth_headers(seed.admin))
    assert response.status_code == 404
    error = response.json()["error"]
    assert error["type"] == "NotFoundError"
    assert error["path"].startswith(f"{API}/placements/")


@pytest.mark.asyncio
async def test_role_gates(test_client, seed):
    student = auth_headers(seed.student)

    response = await test_client.post(f"{API}/placements/complete-ended", headers=student)
    assert response.status_code == 403

    response = await test_client.get(f"{API}/timesheets/queue/faculty", headers=student)
    assert response.status_code == 403


@pytest.mark.asyncio
async def test_request_validation(test_client, seed):
    response = await test_client.post(
        f"{API}/placements",
        json={"site_id": str(seed.site.id)},
        headers=auth_headers(seed.student),
    )

    assert response.status_code == 422
    assert response.json()["error"]["message"] == "Validation error"


@pytest.mark.asyncio
async def test_invalid_token(test_client, seed):
    response = await test_client.get(f"{API}/placements", headers={"Authorization": "Bearer not-a-token"})
    assert response.status_code == 401

    response = await test_client.get(f"{API}/placements", headers=token_for(uuid4(), "ADMIN"))
    assert response.status_code == 401


@pytest.mark.asyncio
async def test_complete_ended_endpoint(test_client, seed, make_placement):
    placement = await make_placement()

    response = await test_client.post(
        f"{API}/placements/complete-ended?as_of=2025-06-15", headers=auth_headers(seed.admin)
    )

    assert response.status_code == 200
    body = response.json()
    assert body["completed"] == [str(placement.id)]
    assert body["total"] == 1
