"""Workflow API schemas.

Requests accept snake_case or camelCase keys. Steps and trigger conditions
are free-form documents here; they are parsed by the domain parsers in
the route so that every legacy shape is handled in one place.
"""

from datetime import datetime
from typing import Any

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

from fixlify.domain.entities.execution import ExecutionLogEntry
from fixlify.domain.entities.workflow import WorkflowEntity, step_to_document
from fixlify.domain.enums import WorkflowStatus

_REQUEST_CONFIG = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class WorkflowCreateRequest(BaseModel):
    """Request body for creating a workflow."""

    model_config = _REQUEST_CONFIG

    name: str = Field(..., min_length=1, max_length=255)
    trigger_type: str = Field(..., min_length=1, max_length=64)
    steps: list[Any] = Field(default_factory=list)
    trigger_conditions: Any = None
    description: str | None = None
    status: WorkflowStatus = WorkflowStatus.DRAFT


class WorkflowUpdateRequest(BaseModel):
    """Request body for updating a workflow (partial)."""

    model_config = _REQUEST_CONFIG

    name: str | None = Field(default=None, min_length=1, max_length=255)
    trigger_type: str | None = Field(default=None, min_length=1, max_length=64)
    steps: list[Any] | None = None
    trigger_conditions: Any = None
    description: str | None = None
    status: WorkflowStatus | None = None


class WorkflowResponse(BaseModel):
    """Workflow response; steps and conditions in their normalized stored form."""

    id: str
    name: str
    description: str | None
    trigger_type: str
    trigger_conditions: dict[str, Any]
    steps: list[dict[str, Any]]
    status: str
    user_id: str | None
    organization_id: str | None
    execution_count: int
    success_count: int
    last_executed_at: datetime | None
    created_at: datetime | None
    updated_at: datetime | None
    definition_error: str | None = None

    @classmethod
    def from_entity(cls, workflow: WorkflowEntity) -> "WorkflowResponse":
        return cls(
            id=workflow.id,
            name=workflow.name,
            description=workflow.description,
            trigger_type=workflow.trigger_type,
            trigger_conditions=workflow.trigger_conditions.to_document(),
            steps=[step_to_document(step) for step in workflow.steps],
            status=workflow.status.value,
            user_id=workflow.user_id,
            organization_id=workflow.organization_id,
            execution_count=workflow.execution_count,
            success_count=workflow.success_count,
            last_executed_at=workflow.last_executed_at,
            created_at=workflow.created_at,
            updated_at=workflow.updated_at,
            definition_error=workflow.definition_error,
        )


class ExecutionResponse(BaseModel):
    """Execution log entry response."""

    id: str
    workflow_id: str
    trigger_type: str
    status: str
    started_at: datetime
    completed_at: datetime | None
    error_message: str | None
    steps_executed: int
    steps_failed: int
    step_results: list[dict[str, Any]]
    trigger_data: dict[str, Any]

    @classmethod
    def from_entry(cls, entry: ExecutionLogEntry) -> "ExecutionResponse":
        return cls(
            id=entry.id,
            workflow_id=entry.workflow_id,
            trigger_type=entry.trigger_type,
            status=entry.status.value,
            started_at=entry.started_at,
            completed_at=entry.completed_at,
            error_message=entry.error_message,
            steps_executed=entry.steps_executed,
            steps_failed=entry.steps_failed,
            step_results=[result.to_dict() for result in entry.step_results],
            trigger_data=entry.trigger_data,
        )
