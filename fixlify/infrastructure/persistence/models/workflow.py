"""Automation workflow, execution log and delay continuation ORM models."""

from datetime import datetime
from typing import Any

import sqlalchemy as sa
from sqlalchemy import CheckConstraint, DateTime, ForeignKey, Index, Integer, String, Text
from sqlalchemy.dialects.postgresql import JSONB
from sqlalchemy.orm import Mapped, mapped_column

from fixlify.domain.enums import ContinuationStatus, ExecutionStatus, WorkflowStatus
from fixlify.infrastructure.persistence.database import Base
from fixlify.infrastructure.persistence.models.mixins import (
    CuidMixin,
    OwnerMixin,
    TimestampMixin,
)


def _status_check(column: str, values: list[str], name: str) -> CheckConstraint:
    quoted = ", ".join("'{}'".format(v.replace("'", "''")) for v in values)
    return CheckConstraint(f"{column} IN ({quoted})", name=name)


class AutomationWorkflow(CuidMixin, OwnerMixin, TimestampMixin, Base):
    """Workflow definition. Table: automation_workflows. Trigger + steps JSON."""

    __tablename__ = "automation_workflows"

    name: Mapped[str] = mapped_column(String, nullable=False)
    description: Mapped[str | None] = mapped_column(Text, nullable=True)
    trigger_type: Mapped[str] = mapped_column(String, nullable=False, index=True)
    trigger_conditions: Mapped[dict[str, Any] | None] = mapped_column(JSONB, nullable=True)
    steps: Mapped[list[dict[str, Any]]] = mapped_column(
        JSONB, nullable=False, default=list, server_default=sa.text("'[]'::jsonb")
    )
    status: Mapped[str] = mapped_column(
        String,
        nullable=False,
        default=WorkflowStatus.DRAFT.value,
        server_default=WorkflowStatus.DRAFT.value,
    )
    execution_count: Mapped[int] = mapped_column(
        Integer, nullable=False, default=0, server_default=sa.text("0")
    )
    success_count: Mapped[int] = mapped_column(
        Integer, nullable=False, default=0, server_default=sa.text("0")
    )
    last_executed_at: Mapped[datetime | None] = mapped_column(
        DateTime(timezone=True), nullable=True
    )

    __table_args__ = (
        Index("ix_automation_workflows_status_trigger", "status", "trigger_type"),
        _status_check("status", WorkflowStatus.values(), "automation_workflows_status_check"),
    )


class AutomationExecutionLog(CuidMixin, OwnerMixin, Base):
    """One run of a workflow. Table: automation_execution_logs.

    workflow_id is not a foreign key: history outlives deleted workflows.
    """

    __tablename__ = "automation_execution_logs"

    workflow_id: Mapped[str] = mapped_column(String, nullable=False, index=True)
    trigger_type: Mapped[str] = mapped_column(String, nullable=False)
    status: Mapped[str] = mapped_column(
        String, nullable=False, default=ExecutionStatus.STARTED.value, index=True
    )
    started_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False)
    completed_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)
    trigger_data: Mapped[dict[str, Any] | None] = mapped_column(JSONB, nullable=True)
    error_message: Mapped[str | None] = mapped_column(Text, nullable=True)
    steps_executed: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    steps_failed: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    step_results: Mapped[list[dict[str, Any]] | None] = mapped_column(JSONB, nullable=True)

    __table_args__ = (
        Index("ix_automation_execution_logs_workflow_started", "workflow_id", "started_at"),
        _status_check(
            "status", ExecutionStatus.values(), "automation_execution_logs_status_check"
        ),
    )


class AutomationContinuation(CuidMixin, TimestampMixin, Base):
    """Remainder of a run suspended by a delay step. Table: automation_continuations."""

    __tablename__ = "automation_continuations"

    execution_id: Mapped[str] = mapped_column(
        String,
        ForeignKey("automation_execution_logs.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    workflow_id: Mapped[str] = mapped_column(String, nullable=False, index=True)
    next_step_index: Mapped[int] = mapped_column(Integer, nullable=False)
    resume_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False)
    trigger_data: Mapped[dict[str, Any] | None] = mapped_column(JSONB, nullable=True)
    steps_executed: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    steps_failed: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    last_error: Mapped[str | None] = mapped_column(Text, nullable=True)
    step_results: Mapped[list[dict[str, Any]] | None] = mapped_column(JSONB, nullable=True)
    status: Mapped[str] = mapped_column(
        String, nullable=False, default=ContinuationStatus.PENDING.value
    )

    __table_args__ = (
        Index("ix_automation_continuations_status_resume_at", "status", "resume_at"),
        _status_check(
            "status", ContinuationStatus.values(), "automation_continuations_status_check"
        ),
    )
