"""Automation trigger API: direct execute, domain events, row changes, scheduler poll."""

from typing import Annotated

from fastapi import APIRouter, Depends, Request

from fixlify.api.v1.dependencies import (
    Owner,
    get_owner,
    get_poll_use_case,
    get_process_trigger_use_case,
    get_workflow_runner,
)
from fixlify.application.dtos.execution import EventDispatchResult
from fixlify.application.services.event_derivation import derive_trigger_events
from fixlify.application.use_cases import (
    PollScheduledTriggersUseCase,
    ProcessTriggerEventUseCase,
    WorkflowRunner,
)
from fixlify.core.config import Settings, get_settings
from fixlify.core.limiter import limit_poll, limit_triggers
from fixlify.domain.exceptions import ValidationException
from fixlify.schemas.automation import (
    EventDispatchResponse,
    ExecuteRequest,
    ExecuteResponse,
    ExecutionRefResponse,
    PollResponse,
    RowChangeRequest,
    TriggerEventRequest,
)
from fixlify.shared.telemetry.logging import get_logger

logger = get_logger(__name__)

router = APIRouter()


def _dispatch_response(result: EventDispatchResult) -> EventDispatchResponse:
    return EventDispatchResponse(
        matched=result.matched,
        executions=[ExecutionRefResponse.from_ref(ref) for ref in result.executions],
    )


@router.post("/execute", response_model=ExecuteResponse, response_model_exclude_none=True)
@limit_triggers
async def execute_workflow(
    request: Request,
    body: ExecuteRequest,
    settings: Annotated[Settings, Depends(get_settings)],
    runner: Annotated[WorkflowRunner, Depends(get_workflow_runner)],
):
    """Run one workflow now.

    Unknown, inactive or empty workflows are rejected (404/409) without an
    execution log entry; once started, the entry's final status is returned.
    """
    if body.test:
        return ExecuteResponse(version=settings.app_version)
    if not body.workflow_id:
        raise ValidationException("workflowId is required", field="workflowId")
    entry = await runner.execute(
        body.workflow_id,
        body.trigger_type,
        body.trigger_data,
        organization_id=body.organization_id,
    )
    return ExecuteResponse(
        execution_id=entry.id,
        status=entry.status.value,
        error=entry.error_message,
    )


@router.post("/events", response_model=EventDispatchResponse)
@limit_triggers
async def process_event(
    request: Request,
    body: TriggerEventRequest,
    owner: Annotated[Owner, Depends(get_owner)],
    use_case: Annotated[ProcessTriggerEventUseCase, Depends(get_process_trigger_use_case)],
):
    """Route one domain event to every matching workflow of its owner."""
    event = body.to_event(user_id=owner.user_id, organization_id=owner.organization_id)
    return _dispatch_response(await use_case.execute(event))


@router.post("/row-changes", response_model=EventDispatchResponse)
@limit_triggers
async def process_row_change(
    request: Request,
    body: RowChangeRequest,
    use_case: Annotated[ProcessTriggerEventUseCase, Depends(get_process_trigger_use_case)],
):
    """Derive trigger events from a database webhook row change and route them."""
    if body.type == "DELETE":
        return EventDispatchResponse()
    old = body.old_record if body.type == "UPDATE" else None
    events = derive_trigger_events(body.table, old, body.record)
    if not events:
        logger.debug("Row change on %s implies no trigger events", body.table)
        return EventDispatchResponse()
    return _dispatch_response(await use_case.execute_many(events))


@router.post(
    "/scheduler/poll", response_model=PollResponse, response_model_exclude_none=True
)
@limit_poll
async def scheduler_poll(
    request: Request,
    use_case: Annotated[PollScheduledTriggersUseCase, Depends(get_poll_use_case)],
):
    """Check time-based triggers and resume elapsed delays. Called by cron."""
    result = await use_case.execute()
    return PollResponse(
        processed_count=result.processed_count,
        resumed_count=result.resumed_count,
        total_checked=result.total_checked,
        timestamp=result.timestamp.isoformat(),
        errors=result.errors or None,
    )
