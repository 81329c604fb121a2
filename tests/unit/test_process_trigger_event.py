"""ProcessTriggerEventUseCase: matching and independent concurrent runs."""

from types import SimpleNamespace
from unittest.mock import AsyncMock

from fixlify.application.dtos.trigger import TriggerEvent
from fixlify.application.services.trigger_matcher import TriggerMatcher
from fixlify.application.use_cases import ProcessTriggerEventUseCase
from fixlify.domain.entities.workflow import parse_steps
from fixlify.domain.enums import ExecutionStatus
from tests.fakes import make_workflow

SMS = [{"type": "send_sms", "config": {"message": "Job {{job_title}} created"}}]
NOTIFY = [{"type": "send_notification", "config": {"message": "Job {{job_title}} created"}}]


def _event(**overrides) -> TriggerEvent:
    values = {
        "trigger_type": "job_created",
        "entity_type": "job",
        "entity_id": "job_1",
        "user_id": "user_1",
        "organization_id": "org_1",
        "current": {"id": "job_1", "job_type": "repair"},
    }
    values.update(overrides)
    return TriggerEvent(**values)


def _use_case(uow_factory, runner) -> ProcessTriggerEventUseCase:
    return ProcessTriggerEventUseCase(uow_factory, TriggerMatcher(), runner)


async def test_two_workflows_run_independently(store, uow_factory, runner, sms) -> None:
    store.clients["client_1"] = {"id": "client_1", "name": "Ana"}
    store.jobs["job_1"] = {"id": "job_1", "title": "AC repair", "client_id": "client_1"}
    store.add_workflow(make_workflow("wf_sms", steps=parse_steps(SMS)))
    store.add_workflow(make_workflow("wf_notify", steps=parse_steps(NOTIFY)))

    result = await _use_case(uow_factory, runner).execute(_event())

    assert result.matched == 2
    by_workflow = {ref.workflow_id: ref for ref in result.executions}
    assert by_workflow["wf_sms"].status == ExecutionStatus.FAILED.value
    assert by_workflow["wf_notify"].status == ExecutionStatus.COMPLETED.value
    assert store.notifications[0].message == "Job AC repair created"
    assert sms.sent == []
    assert len(store.executions) == 2


async def test_only_matching_workflows_start(store, uow_factory, runner) -> None:
    store.jobs["job_1"] = {"id": "job_1", "title": "AC repair"}
    store.add_workflow(
        make_workflow(
            "wf_repair",
            steps=parse_steps(NOTIFY),
            conditions=[{"field": "job_type", "operator": "equals", "value": "repair"}],
        )
    )
    store.add_workflow(
        make_workflow(
            "wf_install",
            steps=parse_steps(NOTIFY),
            conditions=[{"field": "job_type", "operator": "equals", "value": "install"}],
        )
    )
    store.add_workflow(make_workflow("wf_other_org", steps=parse_steps(NOTIFY), organization_id="org_2"))
    store.add_workflow(make_workflow("wf_other_trigger", trigger_type="job_completed", steps=parse_steps(NOTIFY)))

    result = await _use_case(uow_factory, runner).execute(_event())

    assert [ref.workflow_id for ref in result.executions] == ["wf_repair"]


async def test_unexpected_runner_error_is_isolated(store, uow_factory, runner, monkeypatch) -> None:
    store.jobs["job_1"] = {"id": "job_1", "title": "AC repair"}
    store.add_workflow(make_workflow("wf_a", steps=parse_steps(NOTIFY)))
    store.add_workflow(make_workflow("wf_b", steps=parse_steps(NOTIFY)))
    original = runner.run

    async def flaky_run(workflow, event):
        if workflow.id == "wf_a":
            raise RuntimeError("database went away")
        return await original(workflow, event)

    monkeypatch.setattr(runner, "run", flaky_run)

    result = await _use_case(uow_factory, runner).execute(_event())

    refs = {ref.workflow_id: ref for ref in result.executions}
    assert refs["wf_a"].status == "error"
    assert refs["wf_a"].execution_id is None
    assert refs["wf_a"].to_dict()["error"] == "database went away"
    assert refs["wf_b"].status == ExecutionStatus.COMPLETED.value


async def test_event_without_owner_is_ignored(store, uow_factory, runner) -> None:
    store.add_workflow(make_workflow(steps=parse_steps(NOTIFY)))

    result = await _use_case(uow_factory, runner).execute(
        _event(user_id=None, organization_id=None)
    )

    assert result.matched == 0
    assert result.executions == []


async def test_execute_many_accumulates(store, uow_factory, runner) -> None:
    store.jobs["job_1"] = {"id": "job_1"}
    store.add_workflow(make_workflow("wf_created", steps=parse_steps(NOTIFY)))
    store.add_workflow(
        make_workflow("wf_status", trigger_type="job_status_changed", steps=parse_steps(NOTIFY))
    )

    result = await _use_case(uow_factory, runner).execute_many(
        [_event(), _event(trigger_type="job_status_changed", new_status="completed")]
    )

    assert result.matched == 2
    assert {ref.workflow_id for ref in result.executions} == {"wf_created", "wf_status"}


async def test_runner_awaited_once_per_matched_workflow(store, uow_factory) -> None:
    store.add_workflow(make_workflow("wf_a", steps=parse_steps(NOTIFY)))
    store.add_workflow(make_workflow("wf_b", steps=parse_steps(NOTIFY)))
    runner = AsyncMock()
    runner.run.side_effect = lambda workflow, event: SimpleNamespace(
        workflow_id=workflow.id,
        id=f"exec_{workflow.id}",
        status=ExecutionStatus.COMPLETED,
        error_message=None,
    )
    event = _event()

    result = await _use_case(uow_factory, runner).execute(event)

    assert runner.run.await_count == 2
    assert {call.args[0].id for call in runner.run.await_args_list} == {"wf_a", "wf_b"}
    assert all(call.args[1] is event for call in runner.run.await_args_list)
    assert {ref.execution_id for ref in result.executions} == {"exec_wf_a", "exec_wf_b"}


async def test_active_workflow_without_steps_is_not_started(store, uow_factory, runner) -> None:
    store.jobs["job_1"] = {"id": "job_1", "title": "AC repair"}
    store.add_workflow(make_workflow("wf_empty", steps=()))
    store.add_workflow(make_workflow("wf_notify", steps=parse_steps(NOTIFY)))

    result = await _use_case(uow_factory, runner).execute(_event())

    assert result.matched == 1
    assert [ref.workflow_id for ref in result.executions] == ["wf_notify"]
    assert store.workflows["wf_empty"].execution_count == 0
