"""DTOs for workflow write use cases (no dependency on ORM or API schemas)."""

from dataclasses import dataclass
from typing import Any

from fixlify.domain.entities.workflow import Step, TriggerConditions
from fixlify.domain.enums import WorkflowStatus


@dataclass(frozen=True)
class WorkflowCreate:
    """Validated input for creating a workflow. Steps and conditions are already parsed."""

    name: str
    trigger_type: str
    steps: tuple[Step, ...]
    trigger_conditions: TriggerConditions
    user_id: str | None
    organization_id: str | None
    description: str | None = None
    status: WorkflowStatus = WorkflowStatus.DRAFT


@dataclass(frozen=True)
class WorkflowUpdate:
    """Partial update; None leaves the stored value unchanged."""

    name: str | None = None
    description: str | None = None
    trigger_type: str | None = None
    steps: tuple[Step, ...] | None = None
    trigger_conditions: TriggerConditions | None = None
    status: WorkflowStatus | None = None

    def changed_fields(self) -> dict[str, Any]:
        return {key: value for key, value in self.__dict__.items() if value is not None}
