"""Workflow repository: maps automation_workflows rows to WorkflowEntity."""

from __future__ import annotations

from datetime import datetime

from sqlalchemy import select, update
from sqlalchemy.ext.asyncio import AsyncSession

from fixlify.application.dtos.workflow import WorkflowCreate, WorkflowUpdate
from fixlify.domain.entities.workflow import (
    TriggerConditions,
    WorkflowEntity,
    parse_steps,
    step_to_document,
)
from fixlify.domain.enums import WorkflowStatus
from fixlify.domain.exceptions import ValidationException
from fixlify.infrastructure.persistence.models.workflow import AutomationWorkflow
from fixlify.infrastructure.persistence.repositories.base import BaseRepository
from fixlify.shared.telemetry.logging import get_logger
from fixlify.shared.utils.datetime import ensure_utc

logger = get_logger(__name__)


def _owner_filter(user_id: str | None, organization_id: str | None) -> list:
    if organization_id:
        return [AutomationWorkflow.organization_id == organization_id]
    if user_id:
        return [AutomationWorkflow.user_id == user_id]
    return []


def to_entity(row: AutomationWorkflow) -> WorkflowEntity:
    """Map a row to the domain entity. An unparseable definition is recorded, not raised."""
    definition_error: str | None = None
    try:
        steps = parse_steps(row.steps)
    except ValidationException as exc:
        logger.warning("Workflow %s has invalid steps: %s", row.id, exc.message)
        steps, definition_error = (), f"invalid steps: {exc.message}"
    try:
        conditions = TriggerConditions.parse(row.trigger_conditions)
    except ValidationException as exc:
        logger.warning("Workflow %s has invalid trigger conditions: %s", row.id, exc.message)
        conditions = TriggerConditions()
        definition_error = definition_error or f"invalid trigger conditions: {exc.message}"
    return WorkflowEntity(
        id=row.id,
        name=row.name,
        description=row.description,
        trigger_type=row.trigger_type,
        status=WorkflowStatus(row.status),
        steps=steps,
        trigger_conditions=conditions,
        user_id=row.user_id,
        organization_id=row.organization_id,
        execution_count=row.execution_count,
        success_count=row.success_count,
        last_executed_at=ensure_utc(row.last_executed_at),
        created_at=ensure_utc(row.created_at),
        updated_at=ensure_utc(row.updated_at),
        definition_error=definition_error,
    )


class WorkflowRepository(BaseRepository[AutomationWorkflow]):
    """Workflow repository (IWorkflowRepository)."""

    def __init__(self, db: AsyncSession) -> None:
        super().__init__(db, AutomationWorkflow)

    async def get_by_id(self, workflow_id: str) -> WorkflowEntity | None:
        row = await self._get(workflow_id)
        return to_entity(row) if row else None

    async def list_for_owner(
        self,
        user_id: str | None,
        organization_id: str | None,
        status: WorkflowStatus | None = None,
        skip: int = 0,
        limit: int = 100,
    ) -> list[WorkflowEntity]:
        filters = _owner_filter(user_id, organization_id)
        if not filters:
            return []
        q = select(AutomationWorkflow).where(*filters)
        if status is not None:
            q = q.where(AutomationWorkflow.status == status.value)
        q = q.order_by(AutomationWorkflow.created_at.desc()).offset(skip).limit(limit)
        result = await self.db.execute(q)
        return [to_entity(row) for row in result.scalars().all()]

    async def list_active_by_trigger_type(
        self,
        trigger_type: str,
        user_id: str | None = None,
        organization_id: str | None = None,
    ) -> list[WorkflowEntity]:
        q = select(AutomationWorkflow).where(
            AutomationWorkflow.trigger_type == trigger_type,
            AutomationWorkflow.status == WorkflowStatus.ACTIVE.value,
            *_owner_filter(user_id, organization_id),
        )
        result = await self.db.execute(q)
        return [to_entity(row) for row in result.scalars().all()]

    async def create(self, data: WorkflowCreate) -> WorkflowEntity:
        row = AutomationWorkflow(
            name=data.name,
            description=data.description,
            trigger_type=data.trigger_type,
            trigger_conditions=data.trigger_conditions.to_document(),
            steps=[step_to_document(step) for step in data.steps],
            status=data.status.value,
            user_id=data.user_id,
            organization_id=data.organization_id,
        )
        return to_entity(await self._add(row))

    async def update(self, workflow_id: str, data: WorkflowUpdate) -> WorkflowEntity | None:
        row = await self._get(workflow_id)
        if row is None:
            return None
        if data.name is not None:
            row.name = data.name
        if data.description is not None:
            row.description = data.description
        if data.trigger_type is not None:
            row.trigger_type = data.trigger_type
        if data.trigger_conditions is not None:
            row.trigger_conditions = data.trigger_conditions.to_document()
        if data.steps is not None:
            row.steps = [step_to_document(step) for step in data.steps]
        if data.status is not None:
            row.status = data.status.value
        await self.db.flush()
        await self.db.refresh(row)
        return to_entity(row)

    async def delete(self, workflow_id: str) -> bool:
        row = await self._get(workflow_id)
        if row is None:
            return False
        await self._delete(row)
        return True

    async def record_execution(
        self, workflow_id: str, succeeded: bool, executed_at: datetime
    ) -> None:
        """Single UPDATE so concurrent runs never lose an increment."""
        values = {
            "execution_count": AutomationWorkflow.execution_count + 1,
            "last_executed_at": executed_at,
        }
        if succeeded:
            values["success_count"] = AutomationWorkflow.success_count + 1
        await self.db.execute(
            update(AutomationWorkflow)
            .where(AutomationWorkflow.id == workflow_id)
            .values(**values)
        )
