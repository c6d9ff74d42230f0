"""API tests for submission and task endpoints."""

from uuid import uuid4

import pytest
from sqlalchemy import select

from vibecheck.models import FeedbackResponse, Task, Tenant

from tests.factories import build_tenant


async def _update_tenant(session_factory, tenant_id, **values):
    async with session_factory() as db:
        tenant = await db.get(Tenant, tenant_id)
        for key, value in values.items():
            setattr(tenant, key, value)
        await db.commit()


@pytest.fixture
def open_task(escalation, tenant, make_response):
    async def _open(nps=2, store_id=None):
        response = await make_response(nps=nps, store_id=store_id)
        return await escalation.check_and_create_task(response, tenant)

    return _open


async def test_health(client):
    """Test the health endpoint."""
    response = await client.get("/health")
    assert response.status_code == 200
    assert response.json() == {"status": "ok"}


async def test_metrics_reports_pending_background_work(client):
    """Test metrics reports the background queue depth."""
    response = await client.get("/metrics")
    assert response.status_code == 200
    assert response.json()["background_tasks_pending"] == 0


# ---- Submit ----


async def test_submit(client, runner, tenant, form):
    """Test a valid submission returns 201 with metrics and tenant name."""
    response = await client.post(
        "/v1/submit",
        json={
            "tenant_id": tenant.tenant_id,
            "answers": [
                {"question_id": "nps_score", "value": 14},
                {"question_id": "csat_score", "value": 4},
            ],
            "metadata": {"order_id": "ORD-77"},
        },
    )
    await runner.drain()

    assert response.status_code == 201
    body = response.json()
    assert body["success"] is True
    assert body["message"] == "Thank you for your feedback!"
    assert body["data"]["metrics"] == {"nps_score": 10, "csat_score": 4}
    assert body["data"]["tenant"] == {"name": tenant.name}
    assert body["data"]["response_id"]


async def test_honeypot_submission_is_dropped(client, session_factory, tenant, form):
    """Test a filled honeypot is acknowledged but not stored."""
    response = await client.post(
        "/v1/submit",
        json={
            "tenant_id": tenant.tenant_id,
            "answers": [{"question_id": "nps_score", "value": 1}],
            "honeypot": "http://spam.example",
        },
    )

    assert response.status_code == 201
    assert response.json()["success"] is True
    assert response.json()["data"] is None
    async with session_factory() as db:
        assert (await db.execute(select(FeedbackResponse))).scalars().all() == []


async def test_submit_unknown_tenant(client):
    """Test submitting for an unknown tenant returns 404."""
    response = await client.post(
        "/v1/submit",
        json={"tenant_id": str(uuid4()), "answers": [{"question_id": "nps_score", "value": 5}]},
    )
    assert response.status_code == 404


async def test_submit_requires_answers(client, tenant, form):
    """Test an empty answer list is rejected."""
    response = await client.post("/v1/submit", json={"tenant_id": tenant.tenant_id, "answers": []})
    assert response.status_code == 422


# ---- Auth ----


async def test_tasks_require_bearer_token(client):
    """Test missing and unknown API keys are refused."""
    assert (await client.get("/v1/tasks")).status_code == 401
    response = await client.get("/v1/tasks", headers={"Authorization": "Bearer wrong-key"})
    assert response.status_code == 403


# ---- List ----


async def test_list_tasks(client, auth_headers, open_task):
    """Test HIGH priority tasks are listed before MEDIUM ones."""
    medium = await open_task(nps=5)
    high = await open_task(nps=1)

    response = await client.get("/v1/tasks", headers=auth_headers)

    assert response.status_code == 200
    data = response.json()["data"]
    assert [t["task_id"] for t in data] == [high.task_id, medium.task_id]
    assert data[0]["priority"] == "HIGH"
    assert data[0]["history"][0]["action"] == "CREATED"


async def test_list_tasks_filter_by_status(client, auth_headers, escalation, open_task):
    """Test the status query filter."""
    task = await open_task()
    await open_task()
    await escalation.resolve_task(task.task_id, "Admin", "done")

    response = await client.get("/v1/tasks", params={"status": "RESOLVED"}, headers=auth_headers)

    assert [t["task_id"] for t in response.json()["data"]] == [task.task_id]


async def test_list_tasks_rejects_unknown_status(client, auth_headers, tenant):
    """Test an unknown status value fails validation."""
    response = await client.get("/v1/tasks", params={"status": "DONE"}, headers=auth_headers)
    assert response.status_code == 422


# ---- Resolve ----


async def test_resolve_requires_note(client, auth_headers, open_task):
    """Test the default policy rejects a resolve without a note."""
    task = await open_task()
    response = await client.post(f"/v1/tasks/{task.task_id}/resolve", json={}, headers=auth_headers)
    assert response.status_code == 400
    assert "note is required" in response.json()["detail"]


async def test_resolve_records_actor(client, auth_headers, open_task):
    """Test the X-Actor-Email header lands in task history."""
    task = await open_task()

    response = await client.post(
        f"/v1/tasks/{task.task_id}/resolve",
        json={"note": "Called the customer"},
        headers={**auth_headers, "X-Actor-Email": "alice@test.com"},
    )

    assert response.status_code == 200
    data = response.json()["data"]
    assert data["status"] == "RESOLVED"
    assert data["resolution_note"] == "Called the customer"
    assert data["history"][-1]["actor"] == "alice@test.com"
    assert len(data["history"]) == 2


async def test_update_alias_defaults_actor(client, auth_headers, open_task):
    """Test the update alias resolves and defaults the actor to Admin."""
    task = await open_task()

    response = await client.post(
        f"/v1/tasks/{task.task_id}/update", json={"note": "Sorted"}, headers=auth_headers
    )

    assert response.status_code == 200
    assert response.json()["data"]["history"][-1]["actor"] == "Admin"


async def test_resolve_requires_proof_when_configured(
    client, auth_headers, session_factory, tenant, open_task
):
    """Test proof is enforced when the tenant requires it."""
    await _update_tenant(session_factory, tenant.tenant_id, require_resolution_proof=True)
    task = await open_task()

    response = await client.post(
        f"/v1/tasks/{task.task_id}/resolve", json={"note": "Fixed"}, headers=auth_headers
    )
    assert response.status_code == 400
    assert "Photo evidence" in response.json()["detail"]

    response = await client.post(
        f"/v1/tasks/{task.task_id}/resolve",
        json={"note": "Fixed", "proof_url": "https://img.test/p.jpg"},
        headers=auth_headers,
    )
    assert response.status_code == 200
    assert response.json()["data"]["resolution_proof_url"] == "https://img.test/p.jpg"


async def test_resolve_unknown_task(client, auth_headers, tenant):
    """Test resolving a missing task returns 404."""
    response = await client.post(
        "/v1/tasks/missing/resolve", json={"note": "x"}, headers=auth_headers
    )
    assert response.status_code == 404


async def test_resolve_other_tenants_task(
    client, auth_headers, session_factory, escalation, make_response
):
    """Test a tenant cannot resolve another tenant's task."""
    other = build_tenant()
    async with session_factory() as db:
        db.add(other)
        await db.commit()
    response = await make_response(nps=1)
    task = await escalation.check_and_create_task(response, other)

    result = await client.post(
        f"/v1/tasks/{task.task_id}/resolve", json={"note": "x"}, headers=auth_headers
    )
    assert result.status_code == 404


# ---- Reassign ----


async def test_reassign(client, auth_headers, escalation, open_task):
    """Test reassignment reopens the task and records the transfer."""
    task = await open_task()
    await escalation.resolve_task(task.task_id, "Admin", "done")

    response = await client.post(
        f"/v1/tasks/{task.task_id}/reassign",
        json={"new_assignee": "Bob@Test.com", "reason": "Night shift"},
        headers={**auth_headers, "X-Actor-Email": "owner@test.com"},
    )

    assert response.status_code == 200
    data = response.json()["data"]
    assert data["status"] == "OPEN"
    assert data["assigned_to"] == "bob@test.com"
    assert data["assignment_history"] == [
        {
            "assigned_to": "owner@test.com",
            "assigned_by": "owner@test.com",
            "assigned_at": data["assignment_history"][0]["assigned_at"],
            "reason": "Night shift",
        }
    ]
    assert data["history"][-1]["action"] == "REASSIGNED"


async def test_reassign_requires_assignee(client, auth_headers, open_task):
    """Test a blank assignee is rejected."""
    task = await open_task()
    response = await client.post(
        f"/v1/tasks/{task.task_id}/reassign", json={"new_assignee": " "}, headers=auth_headers
    )
    assert response.status_code == 400


async def test_reassign_disabled_by_policy(client, auth_headers, session_factory, tenant, open_task):
    """Test reassignment is forbidden when the tenant disables it."""
    await _update_tenant(session_factory, tenant.tenant_id, allow_reassignment=False)
    task = await open_task()

    response = await client.post(
        f"/v1/tasks/{task.task_id}/reassign",
        json={"new_assignee": "bob@test.com"},
        headers=auth_headers,
    )
    assert response.status_code == 403


async def test_reassign_unknown_task(client, auth_headers, tenant):
    """Test reassigning a missing task returns 404."""
    response = await client.post(
        "/v1/tasks/missing/reassign", json={"new_assignee": "bob@test.com"}, headers=auth_headers
    )
    assert response.status_code == 404


# ---- Quick resolve ----


async def test_quick_resolve_link(client, session_factory, open_task):
    """Test the quick-resolve link resolves as the quick-link actor."""
    task = await open_task()

    response = await client.get(f"/v1/tasks/{task.task_id}/quick-resolve", params={"action": "fixed"})

    assert response.status_code == 200
    assert "Task Resolved!" in response.text
    async with session_factory() as db:
        stored = await db.get(Task, task.task_id)
    assert stored.status == "RESOLVED"
    assert stored.history[-1].actor == "Quick Link (Manager)"


async def test_quick_resolve_rejects_other_actions(client, open_task):
    """Test actions other than fixed are rejected."""
    task = await open_task()
    response = await client.get(f"/v1/tasks/{task.task_id}/quick-resolve", params={"action": "ignore"})
    assert response.status_code == 400


async def test_quick_resolve_unknown_task(client):
    """Test the quick-resolve link for a missing task returns 404."""
    response = await client.get("/v1/tasks/missing/quick-resolve", params={"action": "fixed"})
    assert response.status_code == 404
