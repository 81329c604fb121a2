"""create_automation_tables

Revision ID: a3f9c2d41b70
Revises:
Create Date: 2026-10-19 09:12:44.102311

"""

from collections.abc import Sequence
from typing import Union

import sqlalchemy as sa
from alembic import op
from sqlalchemy.dialects import postgresql

# revision identifiers, used by Alembic.
revision: str = "a3f9c2d41b70"
down_revision: Union[str, Sequence[str], None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def _timestamps() -> list[sa.Column]:
    return [
        sa.Column(
            "created_at",
            sa.DateTime(timezone=True),
            server_default=sa.text("now()"),
            nullable=False,
        ),
        sa.Column(
            "updated_at",
            sa.DateTime(timezone=True),
            server_default=sa.text("now()"),
            nullable=False,
        ),
    ]


def upgrade() -> None:
    """Create workflow, execution log, continuation, notification and communication log tables.

    Business tables (jobs, clients, invoices, estimates, profiles) belong to
    the main application schema and are not created here.
    """
    op.create_table(
        "automation_workflows",
        sa.Column("id", sa.String(), nullable=False),
        sa.Column("user_id", sa.String(), nullable=True),
        sa.Column("organization_id", sa.String(), nullable=True),
        sa.Column("name", sa.String(), nullable=False),
        sa.Column("description", sa.Text(), nullable=True),
        sa.Column("trigger_type", sa.String(), nullable=False),
        sa.Column("trigger_conditions", postgresql.JSONB(), nullable=True),
        sa.Column(
            "steps",
            postgresql.JSONB(),
            server_default=sa.text("'[]'::jsonb"),
            nullable=False,
        ),
        sa.Column("status", sa.String(), server_default="draft", nullable=False),
        sa.Column("execution_count", sa.Integer(), server_default=sa.text("0"), nullable=False),
        sa.Column("success_count", sa.Integer(), server_default=sa.text("0"), nullable=False),
        sa.Column("last_executed_at", sa.DateTime(timezone=True), nullable=True),
        *_timestamps(),
        sa.CheckConstraint(
            "status IN ('active', 'paused', 'draft', 'archived')",
            name="automation_workflows_status_check",
        ),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index("ix_automation_workflows_user_id", "automation_workflows", ["user_id"])
    op.create_index(
        "ix_automation_workflows_organization_id", "automation_workflows", ["organization_id"]
    )
    op.create_index(
        "ix_automation_workflows_trigger_type", "automation_workflows", ["trigger_type"]
    )
    op.create_index(
        "ix_automation_workflows_status_trigger",
        "automation_workflows",
        ["status", "trigger_type"],
    )

    # No FK to automation_workflows: history outlives deleted workflows.
    op.create_table(
        "automation_execution_logs",
        sa.Column("id", sa.String(), nullable=False),
        sa.Column("user_id", sa.String(), nullable=True),
        sa.Column("organization_id", sa.String(), nullable=True),
        sa.Column("workflow_id", sa.String(), nullable=False),
        sa.Column("trigger_type", sa.String(), nullable=False),
        sa.Column("status", sa.String(), nullable=False),
        sa.Column("started_at", sa.DateTime(timezone=True), nullable=False),
        sa.Column("completed_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("trigger_data", postgresql.JSONB(), nullable=True),
        sa.Column("error_message", sa.Text(), nullable=True),
        sa.Column("steps_executed", sa.Integer(), nullable=False),
        sa.Column("steps_failed", sa.Integer(), nullable=False),
        sa.Column("step_results", postgresql.JSONB(), nullable=True),
        sa.CheckConstraint(
            "status IN ('started', 'completed', 'failed')",
            name="automation_execution_logs_status_check",
        ),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index(
        "ix_automation_execution_logs_user_id", "automation_execution_logs", ["user_id"]
    )
    op.create_index(
        "ix_automation_execution_logs_organization_id",
        "automation_execution_logs",
        ["organization_id"],
    )
    op.create_index(
        "ix_automation_execution_logs_workflow_id", "automation_execution_logs", ["workflow_id"]
    )
    op.create_index(
        "ix_automation_execution_logs_status", "automation_execution_logs", ["status"]
    )
    op.create_index(
        "ix_automation_execution_logs_workflow_started",
        "automation_execution_logs",
        ["workflow_id", "started_at"],
    )

    op.create_table(
        "automation_continuations",
        sa.Column("id", sa.String(), nullable=False),
        sa.Column("execution_id", sa.String(), nullable=False),
        sa.Column("workflow_id", sa.String(), nullable=False),
        sa.Column("next_step_index", sa.Integer(), nullable=False),
        sa.Column("resume_at", sa.DateTime(timezone=True), nullable=False),
        sa.Column("trigger_data", postgresql.JSONB(), nullable=True),
        sa.Column("steps_executed", sa.Integer(), nullable=False),
        sa.Column("steps_failed", sa.Integer(), nullable=False),
        sa.Column("last_error", sa.Text(), nullable=True),
        sa.Column("step_results", postgresql.JSONB(), nullable=True),
        sa.Column("status", sa.String(), nullable=False),
        *_timestamps(),
        sa.CheckConstraint(
            "status IN ('pending', 'resumed')",
            name="automation_continuations_status_check",
        ),
        sa.ForeignKeyConstraint(
            ["execution_id"], ["automation_execution_logs.id"], ondelete="CASCADE"
        ),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index(
        "ix_automation_continuations_execution_id", "automation_continuations", ["execution_id"]
    )
    op.create_index(
        "ix_automation_continuations_workflow_id", "automation_continuations", ["workflow_id"]
    )
    op.create_index(
        "ix_automation_continuations_status_resume_at",
        "automation_continuations",
        ["status", "resume_at"],
    )

    op.create_table(
        "notifications",
        sa.Column("id", sa.String(), nullable=False),
        sa.Column("user_id", sa.String(), nullable=False),
        sa.Column("organization_id", sa.String(), nullable=True),
        sa.Column("type", sa.String(), nullable=False),
        sa.Column("title", sa.String(), nullable=False),
        sa.Column("message", sa.Text(), nullable=False),
        sa.Column("data", postgresql.JSONB(), nullable=True),
        sa.Column("is_read", sa.Boolean(), server_default=sa.text("false"), nullable=False),
        sa.Column(
            "created_at",
            sa.DateTime(timezone=True),
            server_default=sa.text("now()"),
            nullable=False,
        ),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index("ix_notifications_user_id", "notifications", ["user_id"])

    op.create_table(
        "communication_logs",
        sa.Column("id", sa.String(), nullable=False),
        sa.Column("user_id", sa.String(), nullable=True),
        sa.Column("organization_id", sa.String(), nullable=True),
        sa.Column("client_id", sa.String(), nullable=True),
        sa.Column("type", sa.String(), nullable=False),
        sa.Column("direction", sa.String(), nullable=False),
        sa.Column("status", sa.String(), nullable=False),
        sa.Column("from_address", sa.String(), nullable=True),
        sa.Column("to_address", sa.String(), nullable=True),
        sa.Column("subject", sa.String(), nullable=True),
        sa.Column("content", sa.Text(), nullable=False),
        sa.Column("provider", sa.String(), nullable=True),
        sa.Column("external_id", sa.String(), nullable=True),
        sa.Column("error_message", sa.Text(), nullable=True),
        sa.Column("metadata", postgresql.JSONB(), nullable=True),
        sa.Column(
            "created_at",
            sa.DateTime(timezone=True),
            server_default=sa.text("now()"),
            nullable=False,
        ),
        sa.CheckConstraint(
            "type IN ('sms', 'email')", name="communication_logs_type_check"
        ),
        sa.CheckConstraint(
            "status IN ('sent', 'failed', 'simulated')",
            name="communication_logs_status_check",
        ),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index("ix_communication_logs_user_id", "communication_logs", ["user_id"])
    op.create_index("ix_communication_logs_client_id", "communication_logs", ["client_id"])


def downgrade() -> None:
    """Drop the automation tables."""
    op.drop_index("ix_communication_logs_client_id", table_name="communication_logs")
    op.drop_index("ix_communication_logs_user_id", table_name="communication_logs")
    op.drop_table("communication_logs")
    op.drop_index("ix_notifications_user_id", table_name="notifications")
    op.drop_table("notifications")
    op.drop_index(
        "ix_automation_continuations_status_resume_at", table_name="automation_continuations"
    )
    op.drop_index("ix_automation_continuations_workflow_id", table_name="automation_continuations")
    op.drop_index("ix_automation_continuations_execution_id", table_name="automation_continuations")
    op.drop_table("automation_continuations")
    op.drop_index(
        "ix_automation_execution_logs_workflow_started", table_name="automation_execution_logs"
    )
    op.drop_index("ix_automation_execution_logs_status", table_name="automation_execution_logs")
    op.drop_index("ix_automation_execution_logs_workflow_id", table_name="automation_execution_logs")
    op.drop_index(
        "ix_automation_execution_logs_organization_id", table_name="automation_execution_logs"
    )
    op.drop_index("ix_automation_execution_logs_user_id", table_name="automation_execution_logs")
    op.drop_table("automation_execution_logs")
    op.drop_index("ix_automation_workflows_status_trigger", table_name="automation_workflows")
    op.drop_index("ix_automation_workflows_trigger_type", table_name="automation_workflows")
    op.drop_index("ix_automation_workflows_organization_id", table_name="automation_workflows")
    op.drop_index("ix_automation_workflows_user_id", table_name="automation_workflows")
    op.drop_table("automation_workflows")
