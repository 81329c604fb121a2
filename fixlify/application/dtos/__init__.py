"""Application DTOs: plain dataclasses passed between use cases and ports."""

from fixlify.application.dtos.execution import (
    EventDispatchResult,
    ExecutionRef,
    PollResult,
    VariableContext,
)
from fixlify.application.dtos.messaging import (
    CommunicationRecord,
    DispatchReceipt,
    EmailMessage,
    NotificationCreate,
    SmsMessage,
)
from fixlify.application.dtos.trigger import TriggerEvent
from fixlify.application.dtos.workflow import WorkflowCreate, WorkflowUpdate

__all__ = [
    "CommunicationRecord",
    "DispatchReceipt",
    "EmailMessage",
    "EventDispatchResult",
    "ExecutionRef",
    "NotificationCreate",
    "PollResult",
    "SmsMessage",
    "TriggerEvent",
    "VariableContext",
    "WorkflowCreate",
    "WorkflowUpdate",
]
