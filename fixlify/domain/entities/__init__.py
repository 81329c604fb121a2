"""Domain entities and aggregates.

Pure domain models; no ORM or persistence concerns.
"""

from fixlify.domain.entities.execution import (
    ExecutionLogEntry,
    StepResult,
    WorkflowContinuation,
)
from fixlify.domain.entities.workflow import (
    Condition,
    DelayStep,
    EmailStep,
    NotificationStep,
    ScheduleParams,
    SmsStep,
    Step,
    TriggerConditions,
    UnknownStep,
    WorkflowEntity,
    parse_step,
    parse_steps,
    step_to_document,
)

__all__ = [
    "Condition",
    "DelayStep",
    "EmailStep",
    "ExecutionLogEntry",
    "NotificationStep",
    "ScheduleParams",
    "SmsStep",
    "Step",
    "StepResult",
    "TriggerConditions",
    "UnknownStep",
    "WorkflowContinuation",
    "WorkflowEntity",
    "parse_step",
    "parse_steps",
    "step_to_document",
]
