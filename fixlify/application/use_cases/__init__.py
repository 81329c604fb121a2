"""Use cases: run a workflow, route trigger events, poll time-based triggers."""

from fixlify.application.use_cases.poll_scheduled_triggers import PollScheduledTriggersUseCase
from fixlify.application.use_cases.process_trigger_event import ProcessTriggerEventUseCase
from fixlify.application.use_cases.run_workflow import WorkflowRunner

__all__ = [
    "PollScheduledTriggersUseCase",
    "ProcessTriggerEventUseCase",
    "WorkflowRunner",
]
