"""Write targets of workflow steps: in-app notifications and the communication log."""

from datetime import datetime
from typing import Any

import sqlalchemy as sa
from sqlalchemy import Boolean, CheckConstraint, DateTime, String, Text
from sqlalchemy.dialects.postgresql import JSONB
from sqlalchemy.orm import Mapped, mapped_column
from sqlalchemy.sql import func

from fixlify.infrastructure.persistence.database import Base
from fixlify.infrastructure.persistence.models.mixins import CuidMixin
from fixlify.shared.enums import CommunicationChannel, CommunicationStatus


class Notification(CuidMixin, Base):
    """In-app notification. Table: notifications."""

    __tablename__ = "notifications"

    user_id: Mapped[str] = mapped_column(String, nullable=False, index=True)
    organization_id: Mapped[str | None] = mapped_column(String, nullable=True)
    type: Mapped[str] = mapped_column(String, nullable=False, default="automation")
    title: Mapped[str] = mapped_column(String, nullable=False)
    message: Mapped[str] = mapped_column(Text, nullable=False)
    data: Mapped[dict[str, Any] | None] = mapped_column(JSONB, nullable=True)
    is_read: Mapped[bool] = mapped_column(
        Boolean, nullable=False, default=False, server_default=sa.text("false")
    )
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), server_default=func.now(), nullable=False
    )


class CommunicationLog(CuidMixin, Base):
    """One outbound SMS or email attempt. Table: communication_logs."""

    __tablename__ = "communication_logs"

    user_id: Mapped[str | None] = mapped_column(String, nullable=True, index=True)
    organization_id: Mapped[str | None] = mapped_column(String, nullable=True)
    client_id: Mapped[str | None] = mapped_column(String, nullable=True, index=True)
    type: Mapped[str] = mapped_column(String, nullable=False)
    direction: Mapped[str] = mapped_column(String, nullable=False, default="outbound")
    status: Mapped[str] = mapped_column(String, nullable=False)
    from_address: Mapped[str | None] = mapped_column(String, nullable=True)
    to_address: Mapped[str | None] = mapped_column(String, nullable=True)
    subject: Mapped[str | None] = mapped_column(String, nullable=True)
    content: Mapped[str] = mapped_column(Text, nullable=False)
    provider: Mapped[str | None] = mapped_column(String, nullable=True)
    external_id: Mapped[str | None] = mapped_column(String, nullable=True)
    error_message: Mapped[str | None] = mapped_column(Text, nullable=True)
    # "metadata" is reserved on declarative classes
    details: Mapped[dict[str, Any] | None] = mapped_column("metadata", JSONB, nullable=True)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), server_default=func.now(), nullable=False
    )

    __table_args__ = (
        CheckConstraint(
            "type IN ({})".format(", ".join(f"'{v}'" for v in CommunicationChannel.values())),
            name="communication_logs_type_check",
        ),
        CheckConstraint(
            "status IN ({})".format(", ".join(f"'{v}'" for v in CommunicationStatus.values())),
            name="communication_logs_status_check",
        ),
    )
