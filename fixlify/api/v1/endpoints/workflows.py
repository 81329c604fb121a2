"""Workflow API: thin routes over the workflow and execution log repositories."""

from typing import Annotated

from fastapi import APIRouter, Depends, Query, Request, Response

from fixlify.api.v1.dependencies import Owner, get_uow_factory, require_owner
from fixlify.application.dtos.workflow import WorkflowCreate, WorkflowUpdate
from fixlify.application.interfaces.repositories import UnitOfWorkFactory
from fixlify.core.limiter import limit_writes
from fixlify.domain.entities.workflow import TriggerConditions, WorkflowEntity, parse_steps
from fixlify.domain.enums import WorkflowStatus
from fixlify.domain.exceptions import (
    ResourceNotFoundException,
    ValidationException,
    WorkflowNotFoundException,
)
from fixlify.schemas.workflow import (
    ExecutionResponse,
    WorkflowCreateRequest,
    WorkflowResponse,
    WorkflowUpdateRequest,
)

router = APIRouter()


async def _owned_workflow(
    uow_factory: UnitOfWorkFactory, workflow_id: str, owner: Owner
) -> WorkflowEntity:
    async with uow_factory() as uow:
        workflow = await uow.workflows.get_by_id(workflow_id)
    if workflow is None or not workflow.belongs_to(owner.user_id, owner.organization_id):
        raise WorkflowNotFoundException(workflow_id)
    return workflow


def _require_steps_when_active(status: WorkflowStatus, steps: tuple) -> None:
    if status == WorkflowStatus.ACTIVE and not steps:
        raise ValidationException("An active workflow needs at least one step", field="steps")


@router.post("", response_model=WorkflowResponse, status_code=201)
@limit_writes
async def create_workflow(
    request: Request,
    body: WorkflowCreateRequest,
    owner: Annotated[Owner, Depends(require_owner)],
    uow_factory: Annotated[UnitOfWorkFactory, Depends(get_uow_factory)],
):
    """Create a workflow for the calling owner. Invalid steps or conditions → 400."""
    data = WorkflowCreate(
        name=body.name,
        description=body.description,
        trigger_type=body.trigger_type,
        steps=parse_steps(body.steps),
        trigger_conditions=TriggerConditions.parse(body.trigger_conditions),
        status=body.status,
        user_id=owner.user_id,
        organization_id=owner.organization_id,
    )
    _require_steps_when_active(data.status, data.steps)
    async with uow_factory() as uow:
        workflow = await uow.workflows.create(data)
    return WorkflowResponse.from_entity(workflow)


@router.get("", response_model=list[WorkflowResponse])
async def list_workflows(
    owner: Annotated[Owner, Depends(require_owner)],
    uow_factory: Annotated[UnitOfWorkFactory, Depends(get_uow_factory)],
    status: WorkflowStatus | None = None,
    skip: int = Query(0, ge=0),
    limit: int = Query(100, ge=1, le=500),
):
    """List the owner's workflows, optionally filtered by status."""
    async with uow_factory() as uow:
        workflows = await uow.workflows.list_for_owner(
            owner.user_id, owner.organization_id, status=status, skip=skip, limit=limit
        )
    return [WorkflowResponse.from_entity(w) for w in workflows]


@router.get("/executions/{execution_id}", response_model=ExecutionResponse)
async def get_execution(
    execution_id: str,
    owner: Annotated[Owner, Depends(require_owner)],
    uow_factory: Annotated[UnitOfWorkFactory, Depends(get_uow_factory)],
):
    """Get one execution log entry of an owned workflow run."""
    async with uow_factory() as uow:
        entry = await uow.executions.get_by_id(execution_id)
    if entry is None:
        raise ResourceNotFoundException("execution", execution_id)
    owned = (
        entry.organization_id == owner.organization_id
        if owner.organization_id
        else entry.user_id == owner.user_id
    )
    if not owned:
        raise ResourceNotFoundException("execution", execution_id)
    return ExecutionResponse.from_entry(entry)


@router.get("/{workflow_id}", response_model=WorkflowResponse)
async def get_workflow(
    workflow_id: str,
    owner: Annotated[Owner, Depends(require_owner)],
    uow_factory: Annotated[UnitOfWorkFactory, Depends(get_uow_factory)],
):
    return WorkflowResponse.from_entity(await _owned_workflow(uow_factory, workflow_id, owner))


@router.put("/{workflow_id}", response_model=WorkflowResponse)
@limit_writes
async def update_workflow(
    request: Request,
    workflow_id: str,
    body: WorkflowUpdateRequest,
    owner: Annotated[Owner, Depends(require_owner)],
    uow_factory: Annotated[UnitOfWorkFactory, Depends(get_uow_factory)],
):
    """Partial update; only fields present in the body change."""
    current = await _owned_workflow(uow_factory, workflow_id, owner)
    sent = body.model_fields_set
    data = WorkflowUpdate(
        name=body.name,
        description=body.description,
        trigger_type=body.trigger_type,
        steps=parse_steps(body.steps) if body.steps is not None else None,
        trigger_conditions=(
            TriggerConditions.parse(body.trigger_conditions)
            if "trigger_conditions" in sent
            else None
        ),
        status=body.status,
    )
    _require_steps_when_active(
        data.status or current.status,
        data.steps if data.steps is not None else current.steps,
    )
    async with uow_factory() as uow:
        workflow = await uow.workflows.update(workflow_id, data)
    if workflow is None:
        raise WorkflowNotFoundException(workflow_id)
    return WorkflowResponse.from_entity(workflow)


@router.delete("/{workflow_id}", status_code=204)
@limit_writes
async def delete_workflow(
    request: Request,
    workflow_id: str,
    owner: Annotated[Owner, Depends(require_owner)],
    uow_factory: Annotated[UnitOfWorkFactory, Depends(get_uow_factory)],
):
    """Delete a workflow. Its execution history is kept."""
    await _owned_workflow(uow_factory, workflow_id, owner)
    async with uow_factory() as uow:
        deleted = await uow.workflows.delete(workflow_id)
    if not deleted:
        raise WorkflowNotFoundException(workflow_id)
    return Response(status_code=204)


@router.get("/{workflow_id}/executions", response_model=list[ExecutionResponse])
async def list_workflow_executions(
    workflow_id: str,
    owner: Annotated[Owner, Depends(require_owner)],
    uow_factory: Annotated[UnitOfWorkFactory, Depends(get_uow_factory)],
    skip: int = Query(0, ge=0),
    limit: int = Query(50, ge=1, le=500),
):
    """Execution history of a workflow, newest first."""
    await _owned_workflow(uow_factory, workflow_id, owner)
    async with uow_factory() as uow:
        entries = await uow.executions.list_for_workflow(workflow_id, skip=skip, limit=limit)
    return [ExecutionResponse.from_entry(e) for e in entries]
