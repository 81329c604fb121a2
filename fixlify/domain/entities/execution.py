"""Execution log entry, step results and delay continuations."""

from dataclasses import dataclass, field
from datetime import datetime
from typing import Any

from fixlify.domain.enums import ContinuationStatus, ExecutionStatus, StepResultStatus
from fixlify.domain.exceptions import ExecutionAlreadyFinalizedException


@dataclass(frozen=True)
class StepResult:
    """Outcome of one step in a run, stored on the execution log entry."""

    step_id: str
    step_index: int
    type: str
    status: StepResultStatus
    detail: dict[str, Any] = field(default_factory=dict)
    error: str | None = None

    @property
    def counts_as_executed(self) -> bool:
        return self.status in (StepResultStatus.SUCCESS, StepResultStatus.SIMULATED)

    def to_dict(self) -> dict[str, Any]:
        data: dict[str, Any] = {
            "step_id": self.step_id,
            "step_index": self.step_index,
            "type": self.type,
            "status": self.status.value,
        }
        if self.detail:
            data["detail"] = self.detail
        if self.error is not None:
            data["error"] = self.error
        return data

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "StepResult":
        return cls(
            step_id=str(data.get("step_id", "")),
            step_index=int(data.get("step_index", 0)),
            type=str(data.get("type", "")),
            status=StepResultStatus(data.get("status", StepResultStatus.SKIPPED.value)),
            detail=dict(data.get("detail") or {}),
            error=data.get("error"),
        )


@dataclass
class ExecutionLogEntry:
    """One run of one workflow.

    Created in status started; moves exactly once to completed or failed.
    """

    id: str
    workflow_id: str
    trigger_type: str
    started_at: datetime
    status: ExecutionStatus = ExecutionStatus.STARTED
    trigger_data: dict[str, Any] = field(default_factory=dict)
    user_id: str | None = None
    organization_id: str | None = None
    completed_at: datetime | None = None
    error_message: str | None = None
    steps_executed: int = 0
    steps_failed: int = 0
    step_results: list[StepResult] = field(default_factory=list)

    @property
    def is_terminal(self) -> bool:
        return self.status != ExecutionStatus.STARTED

    def finalize(
        self,
        *,
        succeeded: bool,
        completed_at: datetime,
        steps_executed: int,
        steps_failed: int,
        step_results: list[StepResult],
        error_message: str | None = None,
    ) -> None:
        """Move to the terminal state.

        Raises:
            ExecutionAlreadyFinalizedException: If already completed or failed.
        """
        if self.is_terminal:
            raise ExecutionAlreadyFinalizedException(self.id, self.status.value)
        self.status = ExecutionStatus.COMPLETED if succeeded else ExecutionStatus.FAILED
        self.completed_at = completed_at
        self.steps_executed = steps_executed
        self.steps_failed = steps_failed
        self.step_results = list(step_results)
        self.error_message = None if succeeded else (error_message or "Execution failed")


@dataclass
class WorkflowContinuation:
    """Persisted remainder of a run suspended by a delay step."""

    id: str
    execution_id: str
    workflow_id: str
    next_step_index: int
    resume_at: datetime
    trigger_data: dict[str, Any] = field(default_factory=dict)
    steps_executed: int = 0
    steps_failed: int = 0
    last_error: str | None = None
    step_results: list[StepResult] = field(default_factory=list)
    status: ContinuationStatus = ContinuationStatus.PENDING

    def is_due(self, now: datetime) -> bool:
        return self.status == ContinuationStatus.PENDING and self.resume_at <= now
