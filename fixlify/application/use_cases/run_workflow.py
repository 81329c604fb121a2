"""Run one workflow for one trigger event, or resume a run suspended by a delay."""

from __future__ import annotations

from collections.abc import Mapping
from typing import Any

from fixlify.application.dtos.trigger import TriggerEvent
from fixlify.application.interfaces.repositories import UnitOfWorkFactory
from fixlify.application.services.execution_log import ExecutionLogService
from fixlify.application.services.step_executor import StepExecutor, StepRun
from fixlify.application.services.variable_resolver import VariableResolver
from fixlify.domain.entities.execution import ExecutionLogEntry, WorkflowContinuation
from fixlify.domain.entities.workflow import WorkflowEntity
from fixlify.domain.exceptions import (
    EntityNotFoundException,
    WorkflowInactiveException,
    WorkflowNotFoundException,
    WorkflowNotRunnableException,
)
from fixlify.shared.telemetry.logging import get_logger
from fixlify.shared.telemetry.tracing import add_span_attributes, traced

logger = get_logger(__name__)


class WorkflowRunner:
    """Drives a run: execution log started, variables, steps, terminal state.

    Configuration errors (unknown, inactive or empty workflow) are raised
    before anything is logged. Once the entry exists, every failure ends
    in a failed entry instead of an exception.
    """

    def __init__(
        self,
        uow_factory: UnitOfWorkFactory,
        resolver: VariableResolver,
        executor: StepExecutor,
        execution_log: ExecutionLogService,
    ) -> None:
        self._uow_factory = uow_factory
        self._resolver = resolver
        self._executor = executor
        self._log = execution_log

    async def execute(
        self,
        workflow_id: str,
        trigger_type: str | None = None,
        trigger_data: Mapping[str, Any] | None = None,
        *,
        organization_id: str | None = None,
    ) -> ExecutionLogEntry:
        """Run a workflow by id for a direct trigger call.

        Raises:
            WorkflowNotFoundException: Unknown id, or owned by another organization.
            WorkflowInactiveException: Workflow is not active.
            WorkflowNotRunnableException: Workflow has no steps or an invalid definition.
        """
        async with self._uow_factory() as uow:
            workflow = await uow.workflows.get_by_id(workflow_id)
        if workflow is None:
            raise WorkflowNotFoundException(workflow_id)
        if organization_id and workflow.organization_id not in (None, organization_id):
            raise WorkflowNotFoundException(workflow_id)
        if not workflow.is_active:
            raise WorkflowInactiveException(workflow.id, workflow.status.value)
        if workflow.definition_error is not None:
            raise WorkflowNotRunnableException(workflow.id, workflow.definition_error)
        if not workflow.steps:
            raise WorkflowNotRunnableException(workflow.id, "workflow has no steps")

        event = TriggerEvent.from_trigger_data(
            trigger_type or workflow.trigger_type,
            trigger_data,
            user_id=workflow.user_id,
            organization_id=workflow.organization_id,
        )
        return await self.run(workflow, event)

    @traced("automation.run_workflow")
    async def run(self, workflow: WorkflowEntity, event: TriggerEvent) -> ExecutionLogEntry:
        """Start a run of an already matched workflow."""
        add_span_attributes(workflow_id=workflow.id, trigger_type=event.trigger_type)
        entry = await self._log.start(workflow, event)
        return await self._proceed(workflow, event, entry, start_index=0, carry=None)

    @traced("automation.resume_workflow")
    async def resume(self, continuation: WorkflowContinuation) -> ExecutionLogEntry | None:
        """Continue a run after its delay elapsed. Variables are resolved again."""
        async with self._uow_factory() as uow:
            entry = await uow.executions.get_by_id(continuation.execution_id)
            workflow = await uow.workflows.get_by_id(continuation.workflow_id)
        if entry is None:
            logger.error(
                "Continuation %s refers to missing execution %s",
                continuation.id,
                continuation.execution_id,
            )
            return None
        if entry.is_terminal:
            logger.warning(
                "Execution %s is already %s; dropping continuation %s",
                entry.id,
                entry.status.value,
                continuation.id,
            )
            return entry

        carry = StepRun.from_continuation(continuation)
        if workflow is None:
            return await self._log.finish(
                entry, carry, error="Workflow was deleted while a delay was pending"
            )
        event = TriggerEvent.from_snapshot(continuation.trigger_data)
        return await self._proceed(
            workflow,
            event,
            entry,
            start_index=continuation.next_step_index,
            carry=carry,
        )

    async def _proceed(
        self,
        workflow: WorkflowEntity,
        event: TriggerEvent,
        entry: ExecutionLogEntry,
        *,
        start_index: int,
        carry: StepRun | None,
    ) -> ExecutionLogEntry:
        try:
            context = await self._resolver.resolve(event, workflow)
        except EntityNotFoundException as exc:
            logger.warning("Execution %s cannot resolve variables: %s", entry.id, exc.message)
            return await self._log.finish(entry, carry, error=exc.message)
        except Exception as exc:
            logger.exception("Variable resolution failed for execution %s", entry.id)
            return await self._log.finish(entry, carry, error=str(exc) or exc.__class__.__name__)

        run = carry
        try:
            run = await self._executor.execute(
                workflow, context, event, start_index=start_index, carry=carry
            )
            if run.deferred:
                await self._log.suspend(entry, run)
                return entry
        except Exception as exc:
            logger.exception("Step execution crashed for execution %s", entry.id)
            return await self._log.finish(entry, run, error=str(exc) or exc.__class__.__name__)
        return await self._log.finish(entry, run)
