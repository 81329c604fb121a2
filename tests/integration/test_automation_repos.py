"""Automation repository integration tests. Require Postgres; session is rolled back after each test."""

from datetime import UTC, datetime, timedelta

import pytest

from fixlify.application.dtos.workflow import WorkflowCreate, WorkflowUpdate
from fixlify.domain.entities.execution import ExecutionLogEntry, StepResult, WorkflowContinuation
from fixlify.domain.entities.workflow import TriggerConditions, parse_steps
from fixlify.domain.enums import ExecutionStatus, StepResultStatus, WorkflowStatus
from fixlify.domain.exceptions import ExecutionAlreadyFinalizedException
from fixlify.infrastructure.persistence.repositories import (
    ContinuationRepository,
    ExecutionLogRepository,
    WorkflowRepository,
)
from fixlify.shared.utils.generators import generate_cuid

NOW = datetime(2026, 3, 2, 15, 30, tzinfo=UTC)


def _create(**overrides) -> WorkflowCreate:
    values = {
        "name": "Repo test",
        "trigger_type": "job_created",
        "steps": parse_steps([{"type": "send_notification", "config": {"message": "hi"}}]),
        "trigger_conditions": TriggerConditions.parse({"rules": [{"field": "status", "operator": "equals", "value": "new"}]}),
        "user_id": "repo_user",
        "organization_id": "repo_org",
        "status": WorkflowStatus.ACTIVE,
    }
    values.update(overrides)
    return WorkflowCreate(**values)


@pytest.mark.requires_db
async def test_workflow_create_get_and_update(db_session) -> None:
    repo = WorkflowRepository(db_session)
    created = await repo.create(_create())
    assert created.id
    assert created.definition_error is None

    found = await repo.get_by_id(created.id)
    assert found is not None
    assert found.trigger_conditions.rules[0].value == "new"
    assert found.steps == created.steps

    updated = await repo.update(created.id, WorkflowUpdate(status=WorkflowStatus.PAUSED))
    assert updated.status is WorkflowStatus.PAUSED
    assert updated.steps == created.steps


@pytest.mark.requires_db
async def test_active_by_trigger_type_is_owner_scoped(db_session) -> None:
    repo = WorkflowRepository(db_session)
    mine = await repo.create(_create())
    await repo.create(_create(organization_id="other_org"))
    await repo.create(_create(status=WorkflowStatus.DRAFT))

    found = await repo.list_active_by_trigger_type("job_created", organization_id="repo_org")

    assert [w.id for w in found] == [mine.id]


@pytest.mark.requires_db
async def test_record_execution_increments_counters(db_session) -> None:
    repo = WorkflowRepository(db_session)
    workflow = await repo.create(_create())

    await repo.record_execution(workflow.id, True, NOW)
    await repo.record_execution(workflow.id, False, NOW + timedelta(minutes=1))
    db_session.expire_all()

    found = await repo.get_by_id(workflow.id)
    assert (found.execution_count, found.success_count) == (2, 1)
    assert found.last_executed_at == NOW + timedelta(minutes=1)


@pytest.mark.requires_db
async def test_execution_entry_finalized_once(db_session) -> None:
    repo = ExecutionLogRepository(db_session)
    entry = ExecutionLogEntry(
        id=generate_cuid(), workflow_id="wf_repo", trigger_type="manual", started_at=NOW
    )
    await repo.create(entry)

    entry.finalize(
        succeeded=True,
        completed_at=NOW,
        steps_executed=1,
        steps_failed=0,
        step_results=[StepResult("s1", 0, "send_notification", StepResultStatus.SUCCESS)],
    )
    await repo.save_terminal(entry)
    db_session.expire_all()

    stored = await repo.get_by_id(entry.id)
    assert stored.status is ExecutionStatus.COMPLETED
    assert stored.step_results[0].step_id == "s1"

    stale = ExecutionLogEntry(
        id=entry.id, workflow_id="wf_repo", trigger_type="manual", started_at=NOW
    )
    stale.finalize(succeeded=False, completed_at=NOW, steps_executed=0, steps_failed=1, step_results=[])
    with pytest.raises(ExecutionAlreadyFinalizedException):
        await repo.save_terminal(stale)


@pytest.mark.requires_db
async def test_claim_due_marks_continuations_resumed(db_session) -> None:
    executions = ExecutionLogRepository(db_session)
    continuations = ContinuationRepository(db_session)
    entry = await executions.create(
        ExecutionLogEntry(id=generate_cuid(), workflow_id="wf_repo", trigger_type="manual", started_at=NOW)
    )
    for minutes in (-5, 30):
        await continuations.create(
            WorkflowContinuation(
                id=generate_cuid(),
                execution_id=entry.id,
                workflow_id="wf_repo",
                next_step_index=1,
                resume_at=NOW + timedelta(minutes=minutes),
            )
        )

    due = await continuations.claim_due(NOW)
    assert [c.resume_at for c in due] == [NOW - timedelta(minutes=5)]
    assert await continuations.claim_due(NOW) == []
