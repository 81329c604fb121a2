"""DTOs produced by runs, event dispatch and scheduler polls."""

from dataclasses import dataclass, field
from datetime import datetime
from typing import Any

from fixlify.domain.entities.execution import ExecutionLogEntry


@dataclass
class VariableContext:
    """Data resolved for one run: the root record, its client, the company and the variables.

    Ephemeral; rebuilt for every run and every resumed continuation.
    """

    entity_type: str | None = None
    entity: dict[str, Any] = field(default_factory=dict)
    client: dict[str, Any] = field(default_factory=dict)
    company: dict[str, Any] = field(default_factory=dict)
    variables: dict[str, str] = field(default_factory=dict)

    @property
    def client_id(self) -> str | None:
        value = self.client.get("id")
        return str(value) if value else None

    @property
    def client_phone(self) -> str | None:
        phone = self.client.get("phone")
        return phone.strip() if isinstance(phone, str) and phone.strip() else None

    @property
    def client_email(self) -> str | None:
        email = self.client.get("email")
        return email.strip() if isinstance(email, str) and email.strip() else None


@dataclass(frozen=True)
class ExecutionRef:
    """Reference to one run started for an event."""

    workflow_id: str
    execution_id: str | None
    status: str
    error: str | None = None

    def to_dict(self) -> dict[str, Any]:
        data: dict[str, Any] = {
            "workflowId": self.workflow_id,
            "executionId": self.execution_id,
            "status": self.status,
        }
        if self.error:
            data["error"] = self.error
        return data

    @classmethod
    def from_entry(cls, entry: ExecutionLogEntry) -> "ExecutionRef":
        return cls(
            workflow_id=entry.workflow_id,
            execution_id=entry.id,
            status=entry.status.value,
            error=entry.error_message,
        )


@dataclass
class EventDispatchResult:
    """Outcome of routing one or more events through the matcher."""

    matched: int = 0
    executions: list[ExecutionRef] = field(default_factory=list)


@dataclass
class PollResult:
    """Outcome of one scheduler poll."""

    timestamp: datetime
    processed_count: int = 0
    resumed_count: int = 0
    total_checked: int = 0
    errors: list[dict[str, Any]] = field(default_factory=list)

    def to_dict(self) -> dict[str, Any]:
        data: dict[str, Any] = {
            "success": True,
            "processedCount": self.processed_count,
            "resumedCount": self.resumed_count,
            "totalChecked": self.total_checked,
            "timestamp": self.timestamp.isoformat(),
        }
        if self.errors:
            data["errors"] = self.errors
        return data
