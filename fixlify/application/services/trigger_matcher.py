"""Selects the workflows an event should start."""

from __future__ import annotations

from collections.abc import Iterable

from fixlify.application.dtos.trigger import TriggerEvent
from fixlify.application.services.condition_evaluator import ConditionEvaluator
from fixlify.domain.entities.workflow import WorkflowEntity
from fixlify.shared.telemetry.logging import get_logger

logger = get_logger(__name__)


class TriggerMatcher:
    """A workflow matches an event when it is active, listens to the event's
    trigger type, belongs to the event's owner and its conditions hold.

    Owner scoping uses the organization when the event carries one, else the
    user. A workflow whose stored definition failed to parse, or that has no steps,
    never matches.
    """

    def __init__(self, evaluator: ConditionEvaluator | None = None) -> None:
        self._evaluator = evaluator or ConditionEvaluator()

    def matches(self, workflow: WorkflowEntity, event: TriggerEvent) -> bool:
        if not workflow.can_trigger_on(event.trigger_type):
            return False
        if not workflow.belongs_to(event.user_id, event.organization_id):
            return False
        if workflow.definition_error is not None:
            logger.warning(
                "Workflow %s has an invalid definition (%s); not matching",
                workflow.id,
                workflow.definition_error,
            )
            return False
        if not workflow.steps:
            logger.warning("Workflow %s is active but has no steps; not matching", workflow.id)
            return False
        return self._evaluator.evaluate_all(
            workflow.trigger_conditions, event.condition_context()
        )

    def select(
        self, workflows: Iterable[WorkflowEntity], event: TriggerEvent
    ) -> list[WorkflowEntity]:
        """Return the matching subset. Order carries no meaning."""
        return [workflow for workflow in workflows if self.matches(workflow, event)]
