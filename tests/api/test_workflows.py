"""Workflow CRUD and execution history endpoints."""

from httpx import AsyncClient

from fixlify.domain.entities.workflow import parse_steps
from fixlify.domain.enums import WorkflowStatus
from tests.fakes import make_workflow

WORKFLOW_BODY = {
    "name": "Welcome text",
    "triggerType": "job_created",
    "status": "active",
    "steps": [{"type": "sms", "config": {"message": "Hi {{client_first_name}}"}}],
    "triggerConditions": {"operator": "AND", "rules": [{"field": "job_type", "operator": "==", "value": "repair"}]},
}


async def test_create_normalizes_steps_and_conditions(client: AsyncClient, owner_headers, store) -> None:
    response = await client.post("/api/v1/workflows", json=WORKFLOW_BODY, headers=owner_headers)

    assert response.status_code == 201
    data = response.json()
    assert data["id"] == "wf_1"
    assert data["status"] == "active"
    assert data["user_id"] == "user_1"
    assert data["organization_id"] == "org_1"
    assert data["steps"] == [
        {
            "id": "step_1",
            "type": "send_sms",
            "config": {"message": "Hi {{client_first_name}}"},
            "continue_on_error": True,
        }
    ]
    assert data["trigger_conditions"] == {
        "version": 1,
        "match": "all",
        "rules": [{"field": "job_type", "operator": "equals", "value": "repair"}],
    }
    assert "wf_1" in store.workflows


async def test_create_with_invalid_step_returns_400(client: AsyncClient, owner_headers) -> None:
    body = {**WORKFLOW_BODY, "steps": [{"type": "email", "config": {"subject": "No body"}}]}
    response = await client.post("/api/v1/workflows", json=body, headers=owner_headers)

    assert response.status_code == 400
    data = response.json()
    assert data["error"] == "VALIDATION_ERROR"
    assert data["details"]["field"] == "steps[0].config.body"


async def test_create_with_unsupported_conditions_version_returns_400(
    client: AsyncClient, owner_headers
) -> None:
    body = {**WORKFLOW_BODY, "triggerConditions": {"version": 3, "rules": []}}
    response = await client.post("/api/v1/workflows", json=body, headers=owner_headers)
    assert response.status_code == 400


async def test_create_requires_owner_headers(client: AsyncClient) -> None:
    response = await client.post("/api/v1/workflows", json=WORKFLOW_BODY)
    assert response.status_code == 400
    assert response.json()["details"]["field"] == "owner"


async def test_create_missing_name_returns_422(client: AsyncClient, owner_headers) -> None:
    body = {key: value for key, value in WORKFLOW_BODY.items() if key != "name"}
    response = await client.post("/api/v1/workflows", json=body, headers=owner_headers)
    assert response.status_code == 422
    assert response.json()["error"] == "VALIDATION_ERROR"


async def test_list_is_scoped_and_filtered(client: AsyncClient, owner_headers, store) -> None:
    store.add_workflow(make_workflow("wf_a"))
    store.add_workflow(make_workflow("wf_b", status=WorkflowStatus.PAUSED))
    store.add_workflow(make_workflow("wf_other", organization_id="org_2"))

    response = await client.get("/api/v1/workflows", headers=owner_headers)
    assert sorted(w["id"] for w in response.json()) == ["wf_a", "wf_b"]

    response = await client.get("/api/v1/workflows?status=paused", headers=owner_headers)
    assert [w["id"] for w in response.json()] == ["wf_b"]


async def test_foreign_workflow_is_not_found(client: AsyncClient, owner_headers, store) -> None:
    store.add_workflow(make_workflow("wf_other", organization_id="org_2"))

    response = await client.get("/api/v1/workflows/wf_other", headers=owner_headers)

    assert response.status_code == 404
    assert response.json()["error"] == "WORKFLOW_NOT_FOUND"


async def test_update_changes_only_sent_fields(client: AsyncClient, owner_headers, store) -> None:
    store.add_workflow(
        make_workflow(
            steps=parse_steps([{"type": "send_notification", "config": {"message": "x"}}]),
            conditions=[{"field": "status", "operator": "equals", "value": "completed"}],
        )
    )

    response = await client.put(
        "/api/v1/workflows/wf_1", json={"status": "paused"}, headers=owner_headers
    )
    assert response.status_code == 200
    data = response.json()
    assert data["status"] == "paused"
    assert len(data["steps"]) == 1
    assert data["trigger_conditions"]["rules"][0]["value"] == "completed"

    response = await client.put(
        "/api/v1/workflows/wf_1", json={"triggerConditions": None}, headers=owner_headers
    )
    assert response.json()["trigger_conditions"]["rules"] == []
    assert store.workflows["wf_1"].status is WorkflowStatus.PAUSED


async def test_delete_then_get_returns_404(client: AsyncClient, owner_headers, store) -> None:
    store.add_workflow(make_workflow())

    response = await client.delete("/api/v1/workflows/wf_1", headers=owner_headers)
    assert response.status_code == 204

    response = await client.get("/api/v1/workflows/wf_1", headers=owner_headers)
    assert response.status_code == 404


async def test_execution_history_and_detail(
    client: AsyncClient, owner_headers, store, runner
) -> None:
    store.jobs["job_1"] = {"id": "job_1", "title": "AC repair"}
    store.add_workflow(
        make_workflow(steps=parse_steps([{"type": "send_notification", "config": {"message": "{{job_title}}"}}]))
    )
    entry = await runner.execute("wf_1", trigger_data={"job_id": "job_1"})

    response = await client.get("/api/v1/workflows/wf_1/executions", headers=owner_headers)
    assert response.status_code == 200
    (item,) = response.json()
    assert item["id"] == entry.id
    assert item["status"] == "completed"
    assert item["step_results"][0]["status"] == "success"

    response = await client.get(f"/api/v1/workflows/executions/{entry.id}", headers=owner_headers)
    assert response.status_code == 200
    assert response.json()["steps_executed"] == 1

    response = await client.get(
        f"/api/v1/workflows/executions/{entry.id}", headers={"X-Organization-ID": "org_2"}
    )
    assert response.status_code == 404
    assert response.json()["error"] == "RESOURCE_NOT_FOUND"


async def test_active_workflow_without_steps_is_rejected(
    client: AsyncClient, owner_headers, store
) -> None:
    body = {**WORKFLOW_BODY, "steps": []}
    response = await client.post("/api/v1/workflows", json=body, headers=owner_headers)
    assert response.status_code == 400
    assert response.json()["details"]["field"] == "steps"

    response = await client.post(
        "/api/v1/workflows", json={**body, "status": "draft"}, headers=owner_headers
    )
    assert response.status_code == 201
    draft_id = response.json()["id"]

    response = await client.put(
        f"/api/v1/workflows/{draft_id}", json={"status": "active"}, headers=owner_headers
    )
    assert response.status_code == 400
    assert store.workflows[draft_id].status is WorkflowStatus.DRAFT
