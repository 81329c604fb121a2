"""Execution log entries are finalized exactly once."""

from datetime import UTC, datetime

import pytest

from fixlify.application.dtos.trigger import TriggerEvent
from fixlify.application.services.execution_log import ExecutionLogService
from fixlify.application.services.step_executor import StepRun
from fixlify.domain.entities.execution import ExecutionLogEntry, StepResult
from fixlify.domain.enums import ExecutionStatus, StepResultStatus
from fixlify.domain.exceptions import ExecutionAlreadyFinalizedException
from tests.fakes import make_workflow

NOW = datetime(2026, 3, 2, 15, 30, tzinfo=UTC)


def test_finalize_twice_raises() -> None:
    entry = ExecutionLogEntry(id="ex_1", workflow_id="wf_1", trigger_type="manual", started_at=NOW)
    entry.finalize(succeeded=True, completed_at=NOW, steps_executed=1, steps_failed=0, step_results=[])

    with pytest.raises(ExecutionAlreadyFinalizedException):
        entry.finalize(
            succeeded=False, completed_at=NOW, steps_executed=0, steps_failed=1, step_results=[]
        )
    assert entry.status is ExecutionStatus.COMPLETED
    assert entry.error_message is None


def test_failed_without_message_gets_generic_one() -> None:
    entry = ExecutionLogEntry(id="ex_1", workflow_id="wf_1", trigger_type="manual", started_at=NOW)
    entry.finalize(succeeded=False, completed_at=NOW, steps_executed=0, steps_failed=1, step_results=[])
    assert entry.error_message == "Execution failed"


def test_step_result_dict_round_trip() -> None:
    result = StepResult(
        step_id="s1",
        step_index=0,
        type="send_sms",
        status=StepResultStatus.FAILED,
        detail={"error_code": "MISSING_RECIPIENT"},
        error="No recipient",
    )
    assert StepResult.from_dict(result.to_dict()) == result
    assert "detail" not in StepResult("s", 1, "delay", StepResultStatus.SUCCESS).to_dict()


async def test_service_start_and_finish_update_counters(store, uow_factory, clock) -> None:
    workflow = store.add_workflow(make_workflow())
    service = ExecutionLogService(uow_factory, clock)
    event = TriggerEvent(trigger_type="job_created", entity_type="job", entity_id="job_1")

    entry = await service.start(workflow, event)
    assert store.executions[entry.id].status is ExecutionStatus.STARTED
    assert store.executions[entry.id].user_id == "user_1"

    run = StepRun()
    run.record(StepResult("s1", 0, "send_sms", StepResultStatus.SUCCESS))
    await service.finish(entry, run)

    stored = store.executions[entry.id]
    assert stored.status is ExecutionStatus.COMPLETED
    assert stored.completed_at == clock()
    assert stored.steps_executed == 1
    assert workflow.execution_count == 1
    assert workflow.success_count == 1


async def test_second_finish_is_rejected_by_the_store(store, uow_factory, clock) -> None:
    workflow = store.add_workflow(make_workflow())
    service = ExecutionLogService(uow_factory, clock)
    entry = await service.start(workflow, TriggerEvent(trigger_type="manual"))
    await service.finish(entry, error="boom")

    stale = await uow_factory().executions.get_by_id(entry.id)
    stale.status = ExecutionStatus.STARTED
    with pytest.raises(ExecutionAlreadyFinalizedException):
        await service.finish(stale)

    assert store.executions[entry.id].error_message == "boom"
    assert workflow.execution_count == 1


async def test_suspend_requires_a_deferred_run(store, uow_factory, clock) -> None:
    workflow = store.add_workflow(make_workflow())
    service = ExecutionLogService(uow_factory, clock)
    entry = await service.start(workflow, TriggerEvent(trigger_type="manual"))

    with pytest.raises(ValueError):
        await service.suspend(entry, StepRun())
