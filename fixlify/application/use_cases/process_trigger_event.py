"""Route trigger events to matching workflows and run them concurrently."""

from __future__ import annotations

import asyncio
from collections.abc import Iterable

from fixlify.application.dtos.execution import EventDispatchResult, ExecutionRef
from fixlify.application.dtos.trigger import TriggerEvent
from fixlify.application.interfaces.repositories import UnitOfWorkFactory
from fixlify.application.services.trigger_matcher import TriggerMatcher
from fixlify.application.use_cases.run_workflow import WorkflowRunner
from fixlify.domain.entities.workflow import WorkflowEntity
from fixlify.shared.telemetry.logging import get_logger
from fixlify.shared.telemetry.tracing import traced

logger = get_logger(__name__)


class ProcessTriggerEventUseCase:
    """Finds the workflows an event matches and runs each one independently.

    A failure in one run never affects the others: runs share no
    transaction and exceptions are collected per workflow.
    """

    def __init__(
        self,
        uow_factory: UnitOfWorkFactory,
        matcher: TriggerMatcher,
        runner: WorkflowRunner,
    ) -> None:
        self._uow_factory = uow_factory
        self._matcher = matcher
        self._runner = runner

    async def execute(self, event: TriggerEvent) -> EventDispatchResult:
        return await self.execute_many([event])

    @traced("automation.process_events")
    async def execute_many(self, events: Iterable[TriggerEvent]) -> EventDispatchResult:
        result = EventDispatchResult()
        for event in events:
            if not (event.user_id or event.organization_id):
                logger.warning(
                    "Ignoring %s event for %s %s: no owner",
                    event.trigger_type,
                    event.entity_type,
                    event.entity_id,
                )
                continue
            async with self._uow_factory() as uow:
                candidates = await uow.workflows.list_active_by_trigger_type(
                    event.trigger_type,
                    user_id=event.user_id,
                    organization_id=event.organization_id,
                )
            matched = self._matcher.select(candidates, event)
            logger.info(
                "%s event matched %d of %d workflows",
                event.trigger_type,
                len(matched),
                len(candidates),
            )
            result.matched += len(matched)
            result.executions.extend(await self._run_all(matched, event))
        return result

    async def _run_all(
        self, workflows: list[WorkflowEntity], event: TriggerEvent
    ) -> list[ExecutionRef]:
        outcomes = await asyncio.gather(
            *(self._runner.run(workflow, event) for workflow in workflows),
            return_exceptions=True,
        )
        refs: list[ExecutionRef] = []
        for workflow, outcome in zip(workflows, outcomes, strict=True):
            if isinstance(outcome, BaseException):
                logger.error(
                    "Run of workflow %s for %s failed", workflow.id, event.trigger_type,
                    exc_info=outcome,
                )
                refs.append(ExecutionRef(workflow.id, None, "error", str(outcome)))
            else:
                refs.append(ExecutionRef.from_entry(outcome))
        return refs
