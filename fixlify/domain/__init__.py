"""Domain layer: entities, enums, and exceptions.

No dependencies on infrastructure or the API layer. Used by application
and infrastructure layers.
"""

from fixlify.domain.entities import (
    ExecutionLogEntry,
    StepResult,
    TriggerConditions,
    WorkflowContinuation,
    WorkflowEntity,
)
from fixlify.domain.enums import (
    ExecutionStatus,
    StepResultStatus,
    TriggerType,
    WorkflowStatus,
)
from fixlify.domain.exceptions import (
    DispatchException,
    EntityNotFoundException,
    ExecutionAlreadyFinalizedException,
    FixlifyException,
    MissingRecipientException,
    ResourceNotFoundException,
    StepExecutionException,
    ValidationException,
    WorkflowInactiveException,
    WorkflowNotFoundException,
    WorkflowNotRunnableException,
)

__all__ = [
    # Entities
    "ExecutionLogEntry",
    "StepResult",
    "TriggerConditions",
    "WorkflowContinuation",
    "WorkflowEntity",
    # Enums
    "ExecutionStatus",
    "StepResultStatus",
    "TriggerType",
    "WorkflowStatus",
    # Exceptions
    "DispatchException",
    "EntityNotFoundException",
    "ExecutionAlreadyFinalizedException",
    "FixlifyException",
    "MissingRecipientException",
    "ResourceNotFoundException",
    "StepExecutionException",
    "ValidationException",
    "WorkflowInactiveException",
    "WorkflowNotFoundException",
    "WorkflowNotRunnableException",
]
