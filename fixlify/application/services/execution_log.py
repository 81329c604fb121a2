"""Execution log: one entry per run, started then finalized exactly once."""

from __future__ import annotations

from collections.abc import Callable
from datetime import datetime

from fixlify.application.dtos.trigger import TriggerEvent
from fixlify.application.interfaces.repositories import UnitOfWorkFactory
from fixlify.application.services.step_executor import StepRun
from fixlify.domain.entities.execution import ExecutionLogEntry, WorkflowContinuation
from fixlify.domain.entities.workflow import WorkflowEntity
from fixlify.shared.telemetry.logging import get_logger
from fixlify.shared.utils.datetime import utc_now
from fixlify.shared.utils.generators import generate_cuid

logger = get_logger(__name__)


class ExecutionLogService:
    """Records runs and keeps workflow counters in step with them.

    Every write uses its own unit of work, so a run never holds a
    transaction open while steps are dispatched.
    """

    def __init__(
        self,
        uow_factory: UnitOfWorkFactory,
        clock: Callable[[], datetime] = utc_now,
    ) -> None:
        self._uow_factory = uow_factory
        self._clock = clock

    async def start(self, workflow: WorkflowEntity, event: TriggerEvent) -> ExecutionLogEntry:
        """Create the started entry for a run of workflow triggered by event."""
        entry = ExecutionLogEntry(
            id=generate_cuid(),
            workflow_id=workflow.id,
            trigger_type=event.trigger_type,
            started_at=self._clock(),
            trigger_data=event.snapshot(),
            user_id=workflow.user_id,
            organization_id=workflow.organization_id,
        )
        async with self._uow_factory() as uow:
            await uow.executions.create(entry)
        logger.info(
            "Execution %s started for workflow %s (%s)",
            entry.id,
            workflow.id,
            event.trigger_type,
        )
        return entry

    async def finish(
        self,
        entry: ExecutionLogEntry,
        run: StepRun | None = None,
        *,
        error: str | None = None,
    ) -> ExecutionLogEntry:
        """Finalize entry from the run outcome, or as failed with error when there is no run.

        Raises:
            ExecutionAlreadyFinalizedException: If entry is already terminal.
        """
        run = run or StepRun()
        succeeded = error is None and run.succeeded
        entry.finalize(
            succeeded=succeeded,
            completed_at=self._clock(),
            steps_executed=run.steps_executed,
            steps_failed=run.steps_failed,
            step_results=run.step_results,
            error_message=error or run.last_error,
        )
        async with self._uow_factory() as uow:
            await uow.executions.save_terminal(entry)
            await uow.workflows.record_execution(
                entry.workflow_id, succeeded, entry.completed_at or self._clock()
            )
        log = logger.info if succeeded else logger.warning
        log(
            "Execution %s %s: %d executed, %d failed%s",
            entry.id,
            entry.status.value,
            entry.steps_executed,
            entry.steps_failed,
            f" ({entry.error_message})" if entry.error_message else "",
        )
        return entry

    async def suspend(self, entry: ExecutionLogEntry, run: StepRun) -> WorkflowContinuation:
        """Persist the remainder of a run stopped by a delay step. The entry stays started."""
        if run.resume_at is None or run.next_step_index is None:
            raise ValueError("Run was not deferred by a delay step")
        continuation = WorkflowContinuation(
            id=generate_cuid(),
            execution_id=entry.id,
            workflow_id=entry.workflow_id,
            next_step_index=run.next_step_index,
            resume_at=run.resume_at,
            trigger_data=entry.trigger_data,
            steps_executed=run.steps_executed,
            steps_failed=run.steps_failed,
            last_error=run.last_error,
            step_results=list(run.step_results),
        )
        async with self._uow_factory() as uow:
            await uow.continuations.create(continuation)
        logger.info(
            "Execution %s suspended until %s (next step %d)",
            entry.id,
            continuation.resume_at.isoformat(),
            continuation.next_step_index,
        )
        return continuation
