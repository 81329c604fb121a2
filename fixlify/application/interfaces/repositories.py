"""Repository interfaces (ports) for the application layer.

Protocols define contracts that infrastructure implementations must fulfill (DIP).
All types reference domain entities or application DTOs only; no infrastructure imports.
Rows of business records (jobs, invoices, clients, profiles) are returned as
plain dicts: the automation pipeline reads them but never owns them.
"""

from __future__ import annotations

from collections.abc import Callable
from datetime import datetime
from typing import TYPE_CHECKING, Any, Protocol, Self

if TYPE_CHECKING:
    from fixlify.application.dtos.messaging import CommunicationRecord, NotificationCreate
    from fixlify.application.dtos.workflow import WorkflowCreate, WorkflowUpdate
    from fixlify.domain.entities.execution import ExecutionLogEntry, WorkflowContinuation
    from fixlify.domain.entities.workflow import WorkflowEntity
    from fixlify.domain.enums import WorkflowStatus

Row = dict[str, Any]


class IWorkflowRepository(Protocol):
    """Protocol for workflow definitions."""

    async def get_by_id(self, workflow_id: str) -> WorkflowEntity | None:
        """Return workflow by id regardless of status."""

    async def list_for_owner(
        self,
        user_id: str | None,
        organization_id: str | None,
        status: WorkflowStatus | None = None,
        skip: int = 0,
        limit: int = 100,
    ) -> list[WorkflowEntity]:
        """Return workflows owned by the organization (or user when no organization)."""

    async def list_active_by_trigger_type(
        self,
        trigger_type: str,
        user_id: str | None = None,
        organization_id: str | None = None,
    ) -> list[WorkflowEntity]:
        """Return active workflows for a trigger type, optionally narrowed to one owner."""

    async def create(self, data: WorkflowCreate) -> WorkflowEntity:
        """Persist a new workflow."""

    async def update(self, workflow_id: str, data: WorkflowUpdate) -> WorkflowEntity | None:
        """Apply a partial update; None when the workflow does not exist."""

    async def delete(self, workflow_id: str) -> bool:
        """Delete a workflow; False when it did not exist."""

    async def record_execution(
        self, workflow_id: str, succeeded: bool, executed_at: datetime
    ) -> None:
        """Atomically bump execution_count (and success_count) and set last_executed_at."""


class IExecutionLogRepository(Protocol):
    """Protocol for execution log entries."""

    async def create(self, entry: ExecutionLogEntry) -> ExecutionLogEntry:
        """Insert a started entry."""

    async def get_by_id(self, execution_id: str) -> ExecutionLogEntry | None:
        """Return entry by id."""

    async def save_terminal(self, entry: ExecutionLogEntry) -> None:
        """Persist the terminal state of an entry still stored as started.

        Raises:
            ExecutionAlreadyFinalizedException: If the stored entry is already terminal.
        """

    async def list_for_workflow(
        self, workflow_id: str, skip: int = 0, limit: int = 50
    ) -> list[ExecutionLogEntry]:
        """Return entries for a workflow, newest first."""


class IContinuationRepository(Protocol):
    """Protocol for delay continuations."""

    async def create(self, continuation: WorkflowContinuation) -> WorkflowContinuation:
        """Persist a pending continuation."""

    async def claim_due(self, now: datetime, limit: int = 100) -> list[WorkflowContinuation]:
        """Mark pending continuations with resume_at <= now as resumed and return them."""


class IEntityRepository(Protocol):
    """Read access to the business records automations refer to."""

    async def get_job(self, job_id: str) -> Row | None: ...

    async def get_invoice(self, invoice_id: str) -> Row | None: ...

    async def get_estimate(self, estimate_id: str) -> Row | None: ...

    async def get_client(self, client_id: str) -> Row | None: ...

    async def get_profile(self, user_id: str) -> Row | None:
        """Return a user's profile (name, company fields)."""

    async def get_company_profile(
        self, user_id: str | None, organization_id: str | None
    ) -> Row | None:
        """Return the profile holding company details for a workflow owner."""

    async def find_overdue_invoices(
        self, user_id: str | None, organization_id: str | None, due_before: datetime
    ) -> list[Row]:
        """Invoices with status sent and due_date < due_before."""

    async def find_completed_jobs(
        self, user_id: str | None, organization_id: str | None, updated_since: datetime
    ) -> list[Row]:
        """Completed jobs with updated_at >= updated_since."""

    async def find_maintenance_jobs(
        self, user_id: str | None, organization_id: str | None, updated_before: datetime
    ) -> list[Row]:
        """Jobs tagged maintenance with updated_at < updated_before."""

    async def find_clients_without_contact(
        self, user_id: str | None, organization_id: str | None, updated_before: datetime
    ) -> list[Row]:
        """Clients with updated_at < updated_before."""


class INotificationRepository(Protocol):
    """Protocol for in-app notifications."""

    async def create(self, data: NotificationCreate) -> str:
        """Insert a notification and return its id."""


class ICommunicationLogRepository(Protocol):
    """Protocol for the outbound communication log."""

    async def create(self, data: CommunicationRecord) -> str:
        """Insert one dispatch attempt and return its id."""


class IUnitOfWork(Protocol):
    """One short transaction over all repositories. Commits on clean exit."""

    workflows: IWorkflowRepository
    executions: IExecutionLogRepository
    continuations: IContinuationRepository
    entities: IEntityRepository
    notifications: INotificationRepository
    communications: ICommunicationLogRepository

    async def __aenter__(self) -> Self: ...

    async def __aexit__(self, exc_type: Any, exc: Any, tb: Any) -> None: ...


UnitOfWorkFactory = Callable[[], IUnitOfWork]
