"""Scheduler poll: evaluate time-based triggers and resume elapsed delays.

Driven from outside (cron hitting the poll endpoint or running
scripts/run_scheduler_poll.py); nothing here loops or sleeps. Each trigger
kind loads its workflows with its own query and each workflow its own
records, so a failure is confined to that kind or that workflow and
reported in the result's errors.
"""

from __future__ import annotations

import asyncio
import calendar
from collections.abc import Callable, Sequence
from datetime import datetime, timedelta
from typing import Any

from fixlify.application.dtos.execution import PollResult
from fixlify.application.dtos.trigger import TriggerEvent
from fixlify.application.interfaces.repositories import UnitOfWorkFactory
from fixlify.application.services.trigger_matcher import TriggerMatcher
from fixlify.application.use_cases.run_workflow import WorkflowRunner
from fixlify.domain.entities.workflow import WorkflowEntity
from fixlify.domain.enums import EntityType, TriggerType
from fixlify.shared.telemetry.logging import get_logger
from fixlify.shared.telemetry.tracing import traced
from fixlify.shared.utils.datetime import utc_now
from fixlify.shared.utils.serialization import to_jsonable

logger = get_logger(__name__)

DEFAULT_DAYS_OVERDUE = 7
DEFAULT_DAYS_AFTER_COMPLETION = 3
DEFAULT_MONTHS_AFTER_LAST_SERVICE = 6
DEFAULT_DAYS_SINCE_CONTACT = 30

_INVOICE_SUMMARY_KEYS = ("id", "invoice_number", "due_date", "total", "client_id")
_JOB_SUMMARY_KEYS = ("id", "title", "status", "client_id", "updated_at")
_CLIENT_SUMMARY_KEYS = ("id", "name", "email", "phone", "updated_at")


def months_before(moment: datetime, months: int) -> datetime:
    """Return moment shifted back by whole calendar months (day clamped to month length)."""
    month_index = moment.month - 1 - months
    year = moment.year + month_index // 12
    month = month_index % 12 + 1
    day = min(moment.day, calendar.monthrange(year, month)[1])
    return moment.replace(year=year, month=month, day=day)


def _summaries(records: Sequence[dict[str, Any]], keys: tuple[str, ...]) -> list[dict[str, Any]]:
    return [to_jsonable({key: record.get(key) for key in keys}) for record in records]


class PollScheduledTriggersUseCase:
    """Checks every time-based trigger kind, runs what is due and resumes delays."""

    def __init__(
        self,
        uow_factory: UnitOfWorkFactory,
        matcher: TriggerMatcher,
        runner: WorkflowRunner,
        *,
        tolerance_seconds: int = 60,
        continuation_batch_size: int = 100,
        clock: Callable[[], datetime] = utc_now,
    ) -> None:
        self._uow_factory = uow_factory
        self._matcher = matcher
        self._runner = runner
        self._tolerance = timedelta(seconds=tolerance_seconds)
        self._batch_size = continuation_batch_size
        self._clock = clock

    @traced("automation.scheduler_poll")
    async def execute(self, now: datetime | None = None) -> PollResult:
        now = now or self._clock()
        result = PollResult(timestamp=now)
        for kind in TriggerType.time_based():
            await self._poll_kind(kind, now, result)
        await self._resume_due(now, result)
        logger.info(
            "Scheduler poll: %d workflows checked, %d runs started, %d resumed, %d errors",
            result.total_checked,
            result.processed_count,
            result.resumed_count,
            len(result.errors),
        )
        return result

    async def _poll_kind(self, kind: TriggerType, now: datetime, result: PollResult) -> None:
        try:
            async with self._uow_factory() as uow:
                workflows = await uow.workflows.list_active_by_trigger_type(kind.value)
        except Exception as exc:
            logger.exception("Scheduler could not load %s workflows", kind.value)
            result.errors.append({"triggerType": kind.value, "error": str(exc)})
            return

        result.total_checked += len(workflows)
        due: list[tuple[WorkflowEntity, TriggerEvent]] = []
        for workflow in workflows:
            try:
                events = await self._events_for(kind, workflow, now)
            except Exception as exc:
                logger.exception("Scheduler check %s failed for workflow %s", kind.value, workflow.id)
                result.errors.append(
                    {"triggerType": kind.value, "workflowId": workflow.id, "error": str(exc)}
                )
                continue
            due.extend((workflow, event) for event in events if self._matcher.matches(workflow, event))

        outcomes = await asyncio.gather(
            *(self._runner.run(workflow, event) for workflow, event in due),
            return_exceptions=True,
        )
        for (workflow, _), outcome in zip(due, outcomes, strict=True):
            if isinstance(outcome, BaseException):
                logger.error("Scheduled run of workflow %s failed", workflow.id, exc_info=outcome)
                result.errors.append(
                    {"triggerType": kind.value, "workflowId": workflow.id, "error": str(outcome)}
                )
            else:
                result.processed_count += 1

    async def _events_for(
        self, kind: TriggerType, workflow: WorkflowEntity, now: datetime
    ) -> list[TriggerEvent]:
        schedule = workflow.trigger_conditions.schedule
        owner = (workflow.user_id, workflow.organization_id)
        match kind:
            case TriggerType.INVOICE_OVERDUE:
                days = schedule.days_overdue if schedule.days_overdue is not None else DEFAULT_DAYS_OVERDUE
                async with self._uow_factory() as uow:
                    records = await uow.entities.find_overdue_invoices(*owner, now - timedelta(days=days))
                return self._record_events(
                    kind, workflow, EntityType.INVOICE, records, now,
                    params={"days_overdue": days},
                    summary=("overdue_invoices", _INVOICE_SUMMARY_KEYS),
                )
            case TriggerType.JOB_FOLLOW_UP:
                days = (
                    schedule.days_after_completion
                    if schedule.days_after_completion is not None
                    else DEFAULT_DAYS_AFTER_COMPLETION
                )
                async with self._uow_factory() as uow:
                    records = await uow.entities.find_completed_jobs(*owner, now - timedelta(days=days))
                return self._record_events(
                    kind, workflow, EntityType.JOB, records, now,
                    params={"days_after_completion": days},
                    summary=("completed_jobs", _JOB_SUMMARY_KEYS),
                )
            case TriggerType.MAINTENANCE_REMINDER:
                months = (
                    schedule.months_after_last_service
                    if schedule.months_after_last_service is not None
                    else DEFAULT_MONTHS_AFTER_LAST_SERVICE
                )
                async with self._uow_factory() as uow:
                    records = await uow.entities.find_maintenance_jobs(*owner, months_before(now, months))
                return self._record_events(
                    kind, workflow, EntityType.JOB, records, now,
                    params={"months_after_last_service": months},
                    summary=("maintenance_due", _JOB_SUMMARY_KEYS),
                )
            case TriggerType.CLIENT_CHECK_IN:
                days = (
                    schedule.days_since_contact
                    if schedule.days_since_contact is not None
                    else DEFAULT_DAYS_SINCE_CONTACT
                )
                async with self._uow_factory() as uow:
                    records = await uow.entities.find_clients_without_contact(
                        *owner, now - timedelta(days=days)
                    )
                return self._record_events(
                    kind, workflow, EntityType.CLIENT, records, now,
                    params={"days_since_contact": days},
                    summary=("clients_needing_check_in", _CLIENT_SUMMARY_KEYS),
                )
            case TriggerType.SCHEDULED_TIME:
                return self._scheduled_time_events(workflow, now)
        raise ValueError(f"Not a time-based trigger: {kind.value}")

    def _record_events(
        self,
        kind: TriggerType,
        workflow: WorkflowEntity,
        entity_type: EntityType,
        records: list[dict[str, Any]],
        now: datetime,
        *,
        params: dict[str, Any],
        summary: tuple[str, tuple[str, ...]],
    ) -> list[TriggerEvent]:
        """One event per matched record; the payload carries the kind's params and summary list."""
        if not records:
            return []
        summary_key, summary_fields = summary
        payload = {
            **params,
            "check_time": now.isoformat(),
            summary_key: _summaries(records, summary_fields),
        }
        return [
            TriggerEvent(
                trigger_type=kind.value,
                entity_type=entity_type.value,
                entity_id=str(record["id"]),
                user_id=workflow.user_id,
                organization_id=workflow.organization_id,
                current=to_jsonable(record),
                payload=payload,
            )
            for record in records
        ]

    def _scheduled_time_events(self, workflow: WorkflowEntity, now: datetime) -> list[TriggerEvent]:
        scheduled = workflow.trigger_conditions.schedule.scheduled_time
        if scheduled is None:
            logger.debug("Workflow %s has no scheduled_time", workflow.id)
            return []
        if abs(now - scheduled) > self._tolerance:
            return []
        return [
            TriggerEvent(
                trigger_type=TriggerType.SCHEDULED_TIME.value,
                user_id=workflow.user_id,
                organization_id=workflow.organization_id,
                payload={
                    "scheduled_time": scheduled.isoformat(),
                    "actual_time": now.isoformat(),
                    "check_time": now.isoformat(),
                    "workflow_id": workflow.id,
                },
            )
        ]

    async def _resume_due(self, now: datetime, result: PollResult) -> None:
        try:
            async with self._uow_factory() as uow:
                continuations = await uow.continuations.claim_due(now, limit=self._batch_size)
        except Exception as exc:
            logger.exception("Scheduler could not load due continuations")
            result.errors.append({"triggerType": "delay", "error": str(exc)})
            return

        outcomes = await asyncio.gather(
            *(self._runner.resume(continuation) for continuation in continuations),
            return_exceptions=True,
        )
        for continuation, outcome in zip(continuations, outcomes, strict=True):
            if isinstance(outcome, BaseException):
                logger.error("Resuming continuation %s failed", continuation.id, exc_info=outcome)
                result.errors.append(
                    {
                        "triggerType": "delay",
                        "workflowId": continuation.workflow_id,
                        "executionId": continuation.execution_id,
                        "error": str(outcome),
                    }
                )
            elif outcome is not None:
                result.resumed_count += 1
