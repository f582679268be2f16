"""Tests for /requests: submission routing, decisions, error mapping, idempotency."""

from unittest.mock import AsyncMock, MagicMock

import pytest
from sqlalchemy import select

from app.api import dependencies
from app.domain.models.request import RequestType
from app.governance.exceptions import EntityNotFoundError
from app.infrastructure.database.models import ChangeRequestRecord, Project
from app.workflows.registry import ProcessorRegistry


def actor_headers(actor_id: str, role: str) -> dict[str, str]:
    return {"X-Actor-ID": actor_id, "X-Actor-Role": role}


async def _file_delete_tag(client, headers, project_id, tag="beta"):
    return await client.post(
        "/requests/",
        json={"type": "DELETE_TAG", "project_id": project_id, "target_id": tag},
        headers=headers,
    )


async def test_staff_submission_files_pending_request(async_client, staff_headers, seed_project):
    seeded = await seed_project(default_tags=["beta"])
    r = await _file_delete_tag(async_client, staff_headers, seeded.project_id)
    assert r.status_code == 201
    data = r.json()
    assert data["outcome"] == "CREATE_PENDING_REQUEST"
    assert data["request"]["status"] == "PENDING"
    assert data["request"]["proposer_id"] == "staff-1"
    assert data["request"]["target_id"] == "beta"


async def test_admin_submission_applies_directly(async_client, admin_headers, seed_project, session_factory):
    seeded = await seed_project(default_tags=["alpha", "beta"])
    r = await _file_delete_tag(async_client, admin_headers, seeded.project_id)
    assert r.status_code == 200
    assert r.json()["outcome"] == "APPLY_DIRECTLY"
    assert r.json()["request"] is None
    async with session_factory() as session:
        tags = await session.scalar(select(Project.default_tags).where(Project.id == seeded.project_id))
    assert tags == ["alpha"]


async def test_viewer_submission_forbidden(async_client, viewer_headers, seed_project):
    seeded = await seed_project(entries=1)
    r = await async_client.post(
        "/requests/",
        json={"type": "DELETE_ENTRY", "project_id": seeded.project_id, "entry_id": seeded.entry_ids[0]},
        headers=viewer_headers,
    )
    assert r.status_code == 403
    assert r.json()["code"] == "FORBIDDEN"


async def test_submission_without_actor_is_401(async_client, seed_project):
    seeded = await seed_project()
    r = await _file_delete_tag(async_client, {}, seeded.project_id)
    assert r.status_code == 401


async def test_submission_unknown_project_is_404(async_client, staff_headers):
    r = await _file_delete_tag(async_client, staff_headers, "missing")
    assert r.status_code == 404
    assert r.json()["code"] == "NOT_FOUND"


async def test_submission_missing_target_is_422(async_client, staff_headers, seed_project):
    seeded = await seed_project()
    r = await async_client.post(
        "/requests/",
        json={"type": "DELETE_TAG", "project_id": seeded.project_id},
        headers=staff_headers,
    )
    assert r.status_code == 422
    assert r.json()["code"] == "VALIDATION_ERROR"


async def test_unknown_request_type_is_422(async_client, staff_headers):
    r = await async_client.post(
        "/requests/", json={"type": "RENAME_PROJECT", "project_id": "p1"}, headers=staff_headers
    )
    assert r.status_code == 422


async def test_duplicate_submission_is_409(async_client, staff_headers, seed_project):
    seeded = await seed_project(default_tags=["beta"])
    first = await _file_delete_tag(async_client, staff_headers, seeded.project_id)
    second = await _file_delete_tag(async_client, actor_headers("staff-2", "STAFF"), seeded.project_id)
    assert second.status_code == 409
    assert second.json()["code"] == "DUPLICATE_REQUEST"
    assert second.json()["request"]["id"] == first.json()["request"]["id"]


async def test_idempotent_retry_replays_first_response(async_client, staff_headers, seed_project, count_rows):
    seeded = await seed_project(default_tags=["beta"])
    headers = {**staff_headers, "X-Idempotency-Key": "retry-1"}
    first = await _file_delete_tag(async_client, headers, seeded.project_id)
    second = await _file_delete_tag(async_client, headers, seeded.project_id)
    assert first.status_code == second.status_code == 201
    assert first.json() == second.json()
    assert await count_rows(ChangeRequestRecord) == 1


async def test_approve_flow(async_client, staff_headers, admin_headers, seed_project, mock_publisher):
    seeded = await seed_project(default_tags=["beta"])
    created = (await _file_delete_tag(async_client, staff_headers, seeded.project_id)).json()["request"]

    r = await async_client.patch(
        f"/requests/{created['id']}", json={"decision": "APPROVED"}, headers=admin_headers
    )

    assert r.status_code == 200
    body = r.json()
    assert body["code"] == "APPROVED"
    assert body["request"]["status"] == "APPROVED"
    assert body["request"]["reviewer_id"] == "admin-1"
    assert body["request"]["reviewed_at"] is not None
    mock_publisher.publish.assert_awaited_once()


async def test_second_decision_is_409_with_current_state(async_client, staff_headers, admin_headers, seed_project):
    seeded = await seed_project(default_tags=["beta"])
    created = (await _file_delete_tag(async_client, staff_headers, seeded.project_id)).json()["request"]
    await async_client.patch(f"/requests/{created['id']}", json={"decision": "REJECTED"}, headers=admin_headers)

    r = await async_client.patch(
        f"/requests/{created['id']}",
        json={"decision": "APPROVED"},
        headers=actor_headers("admin-2", "ADMIN"),
    )

    assert r.status_code == 409
    assert r.json()["code"] == "ALREADY_PROCESSED"
    assert r.json()["request"]["status"] == "REJECTED"
    assert r.json()["request"]["reviewer_id"] == "admin-1"


async def test_staff_decision_forbidden(async_client, staff_headers, seed_project):
    seeded = await seed_project(default_tags=["beta"])
    created = (await _file_delete_tag(async_client, staff_headers, seeded.project_id)).json()["request"]
    r = await async_client.patch(
        f"/requests/{created['id']}", json={"decision": "APPROVED"}, headers=staff_headers
    )
    assert r.status_code == 403


async def test_decide_unknown_request_is_404(async_client, admin_headers):
    r = await async_client.patch("/requests/nope", json={"decision": "APPROVED"}, headers=admin_headers)
    assert r.status_code == 404


@pytest.mark.parametrize("decision", ["PENDING", "MAYBE"])
async def test_malformed_decision_is_422(async_client, admin_headers, decision):
    r = await async_client.patch("/requests/any", json={"decision": decision}, headers=admin_headers)
    assert r.status_code == 422


async def test_list_and_get(async_client, staff_headers, admin_headers, seed_project):
    seeded = await seed_project(default_tags=["alpha", "beta"])
    mine = (await _file_delete_tag(async_client, staff_headers, seeded.project_id, tag="alpha")).json()["request"]
    await _file_delete_tag(async_client, actor_headers("staff-2", "STAFF"), seeded.project_id, tag="beta")

    own = await async_client.get("/requests/", headers=staff_headers)
    everything = await async_client.get("/requests/", params={"project_id": seeded.project_id}, headers=admin_headers)
    single = await async_client.get(f"/requests/{mine['id']}", headers=staff_headers)

    assert [r["id"] for r in own.json()] == [mine["id"]]
    assert len(everything.json()) == 2
    assert single.status_code == 200
    assert single.json()["target_id"] == "alpha"


async def test_get_unknown_request_is_404(async_client, staff_headers):
    r = await async_client.get("/requests/nope", headers=staff_headers)
    assert r.status_code == 404


async def test_submission_unknown_entry_is_404(async_client, staff_headers, seed_project):
    seeded = await seed_project(entries=1)
    r = await async_client.post(
        "/requests/",
        json={"type": "DELETE_ENTRY", "project_id": seeded.project_id, "entry_id": "no-such-entry"},
        headers=staff_headers,
    )
    assert r.status_code == 404
    assert r.json()["code"] == "NOT_FOUND"


async def test_approve_vanished_target_is_409_not_retryable(
    app_with_overrides, async_client, staff_headers, admin_headers, seed_project
):
    seeded = await seed_project(default_tags=["beta"])
    processor = MagicMock()
    processor.apply = AsyncMock(side_effect=EntityNotFoundError(f"Project not found: {seeded.project_id}"))
    app_with_overrides.dependency_overrides[dependencies.get_registry] = lambda: ProcessorRegistry(
        {RequestType.DELETE_TAG: processor}
    )
    filed = (await _file_delete_tag(async_client, staff_headers, seeded.project_id)).json()["request"]

    r = await async_client.patch(f"/requests/{filed['id']}", json={"decision": "APPROVED"}, headers=admin_headers)

    assert r.status_code == 409
    body = r.json()
    assert body["code"] == "ENTITY_NOT_FOUND"
    assert body["retryable"] is False
    after = await async_client.get(f"/requests/{filed['id']}", headers=admin_headers)
    assert after.json()["status"] == "PENDING"
