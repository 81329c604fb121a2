"""Execution log and continuation repositories."""

from __future__ import annotations

from datetime import datetime

from sqlalchemy import select, update
from sqlalchemy.ext.asyncio import AsyncSession

from fixlify.domain.entities.execution import (
    ExecutionLogEntry,
    StepResult,
    WorkflowContinuation,
)
from fixlify.domain.enums import ContinuationStatus, ExecutionStatus
from fixlify.domain.exceptions import (
    ExecutionAlreadyFinalizedException,
    ResourceNotFoundException,
)
from fixlify.infrastructure.persistence.models.workflow import (
    AutomationContinuation,
    AutomationExecutionLog,
)
from fixlify.infrastructure.persistence.repositories.base import BaseRepository
from fixlify.shared.utils.datetime import ensure_utc


def _entry_from_row(row: AutomationExecutionLog) -> ExecutionLogEntry:
    return ExecutionLogEntry(
        id=row.id,
        workflow_id=row.workflow_id,
        trigger_type=row.trigger_type,
        status=ExecutionStatus(row.status),
        started_at=ensure_utc(row.started_at),
        completed_at=ensure_utc(row.completed_at),
        trigger_data=row.trigger_data or {},
        error_message=row.error_message,
        steps_executed=row.steps_executed,
        steps_failed=row.steps_failed,
        step_results=[StepResult.from_dict(item) for item in row.step_results or []],
        user_id=row.user_id,
        organization_id=row.organization_id,
    )


def _continuation_from_row(row: AutomationContinuation) -> WorkflowContinuation:
    return WorkflowContinuation(
        id=row.id,
        execution_id=row.execution_id,
        workflow_id=row.workflow_id,
        next_step_index=row.next_step_index,
        resume_at=ensure_utc(row.resume_at),
        trigger_data=row.trigger_data or {},
        steps_executed=row.steps_executed,
        steps_failed=row.steps_failed,
        last_error=row.last_error,
        step_results=[StepResult.from_dict(item) for item in row.step_results or []],
        status=ContinuationStatus(row.status),
    )


class ExecutionLogRepository(BaseRepository[AutomationExecutionLog]):
    """Execution log repository (IExecutionLogRepository)."""

    def __init__(self, db: AsyncSession) -> None:
        super().__init__(db, AutomationExecutionLog)

    async def create(self, entry: ExecutionLogEntry) -> ExecutionLogEntry:
        await self._add(
            AutomationExecutionLog(
                id=entry.id,
                workflow_id=entry.workflow_id,
                trigger_type=entry.trigger_type,
                status=entry.status.value,
                started_at=entry.started_at,
                trigger_data=entry.trigger_data,
                user_id=entry.user_id,
                organization_id=entry.organization_id,
                steps_executed=entry.steps_executed,
                steps_failed=entry.steps_failed,
                step_results=[result.to_dict() for result in entry.step_results],
            )
        )
        return entry

    async def get_by_id(self, execution_id: str) -> ExecutionLogEntry | None:
        row = await self._get(execution_id)
        return _entry_from_row(row) if row else None

    async def save_terminal(self, entry: ExecutionLogEntry) -> None:
        """Conditional UPDATE on status = started; zero rows means someone finalized first."""
        result = await self.db.execute(
            update(AutomationExecutionLog)
            .where(
                AutomationExecutionLog.id == entry.id,
                AutomationExecutionLog.status == ExecutionStatus.STARTED.value,
            )
            .values(
                status=entry.status.value,
                completed_at=entry.completed_at,
                error_message=entry.error_message,
                steps_executed=entry.steps_executed,
                steps_failed=entry.steps_failed,
                step_results=[result.to_dict() for result in entry.step_results],
            )
            .execution_options(synchronize_session=False)
        )
        if result.rowcount == 0:
            stored = await self._get(entry.id)
            if stored is None:
                raise ResourceNotFoundException("execution", entry.id)
            raise ExecutionAlreadyFinalizedException(entry.id, stored.status)

    async def list_for_workflow(
        self, workflow_id: str, skip: int = 0, limit: int = 50
    ) -> list[ExecutionLogEntry]:
        result = await self.db.execute(
            select(AutomationExecutionLog)
            .where(AutomationExecutionLog.workflow_id == workflow_id)
            .order_by(AutomationExecutionLog.started_at.desc())
            .offset(skip)
            .limit(limit)
        )
        return [_entry_from_row(row) for row in result.scalars().all()]


class ContinuationRepository(BaseRepository[AutomationContinuation]):
    """Delay continuation repository (IContinuationRepository)."""

    def __init__(self, db: AsyncSession) -> None:
        super().__init__(db, AutomationContinuation)

    async def create(self, continuation: WorkflowContinuation) -> WorkflowContinuation:
        await self._add(
            AutomationContinuation(
                id=continuation.id,
                execution_id=continuation.execution_id,
                workflow_id=continuation.workflow_id,
                next_step_index=continuation.next_step_index,
                resume_at=continuation.resume_at,
                trigger_data=continuation.trigger_data,
                steps_executed=continuation.steps_executed,
                steps_failed=continuation.steps_failed,
                last_error=continuation.last_error,
                step_results=[result.to_dict() for result in continuation.step_results],
                status=continuation.status.value,
            )
        )
        return continuation

    async def claim_due(self, now: datetime, limit: int = 100) -> list[WorkflowContinuation]:
        """Lock due rows (SKIP LOCKED so overlapping polls split the work) and mark them resumed."""
        result = await self.db.execute(
            select(AutomationContinuation)
            .where(
                AutomationContinuation.status == ContinuationStatus.PENDING.value,
                AutomationContinuation.resume_at <= now,
            )
            .order_by(AutomationContinuation.resume_at.asc())
            .limit(limit)
            .with_for_update(skip_locked=True)
        )
        rows = list(result.scalars().all())
        for row in rows:
            row.status = ContinuationStatus.RESUMED.value
        await self.db.flush()
        return [_continuation_from_row(row) for row in rows]
