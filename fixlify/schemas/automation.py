"""Automation trigger API schemas (execute, events, row changes, scheduler poll).

Requests accept snake_case or camelCase; responses use camelCase keys.
"""

from typing import Any, Literal

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

from fixlify.application.dtos.execution import ExecutionRef
from fixlify.application.dtos.trigger import TriggerEvent

_CAMEL = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class ExecuteRequest(BaseModel):
    """Direct run of one workflow. {"test": true} is a connectivity ping."""

    model_config = _CAMEL

    workflow_id: str | None = None
    trigger_type: str | None = None
    trigger_data: dict[str, Any] = Field(default_factory=dict)
    organization_id: str | None = None
    test: bool = False


class TriggerEventRequest(BaseModel):
    """A domain event to route to every matching workflow."""

    model_config = _CAMEL

    trigger_type: str = Field(..., min_length=1, max_length=64)
    entity_type: str | None = None
    entity_id: str | None = None
    user_id: str | None = None
    organization_id: str | None = None
    previous_status: str | None = None
    new_status: str | None = None
    previous: dict[str, Any] = Field(default_factory=dict)
    current: dict[str, Any] = Field(default_factory=dict)
    payload: dict[str, Any] = Field(default_factory=dict)
    is_test: bool = False

    def to_event(self, *, user_id: str | None, organization_id: str | None) -> TriggerEvent:
        """Owner from the body, else from the request headers."""
        return TriggerEvent(
            trigger_type=self.trigger_type,
            entity_type=self.entity_type,
            entity_id=self.entity_id,
            user_id=self.user_id or user_id,
            organization_id=self.organization_id or organization_id,
            previous_status=self.previous_status,
            new_status=self.new_status,
            previous=self.previous,
            current=self.current,
            payload=self.payload,
            is_test=self.is_test,
        )


class RowChangeRequest(BaseModel):
    """Database webhook payload for an inserted or updated row."""

    table: str = Field(..., min_length=1, max_length=64)
    type: Literal["INSERT", "UPDATE", "DELETE"]
    record: dict[str, Any] | None = None
    old_record: dict[str, Any] | None = None


class _CamelResponse(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class ExecuteResponse(_CamelResponse):
    success: bool = True
    execution_id: str | None = None
    status: str | None = None
    error: str | None = None
    version: str | None = None


class ExecutionRefResponse(_CamelResponse):
    workflow_id: str
    execution_id: str | None
    status: str
    error: str | None = None

    @classmethod
    def from_ref(cls, ref: ExecutionRef) -> "ExecutionRefResponse":
        return cls(
            workflow_id=ref.workflow_id,
            execution_id=ref.execution_id,
            status=ref.status,
            error=ref.error,
        )


class EventDispatchResponse(_CamelResponse):
    success: bool = True
    matched: int = 0
    executions: list[ExecutionRefResponse] = Field(default_factory=list)


class PollResponse(_CamelResponse):
    success: bool = True
    processed_count: int
    resumed_count: int
    total_checked: int
    timestamp: str
    errors: list[dict[str, Any]] | None = None
