"""Notification and communication log repositories (write-only)."""

from __future__ import annotations

from sqlalchemy.ext.asyncio import AsyncSession

from fixlify.application.dtos.messaging import CommunicationRecord, NotificationCreate
from fixlify.infrastructure.persistence.models.communication import (
    CommunicationLog,
    Notification,
)
from fixlify.infrastructure.persistence.repositories.base import BaseRepository
from fixlify.shared.enums import CommunicationDirection


class NotificationRepository(BaseRepository[Notification]):
    """In-app notifications (INotificationRepository)."""

    def __init__(self, db: AsyncSession) -> None:
        super().__init__(db, Notification)

    async def create(self, data: NotificationCreate) -> str:
        row = await self._add(
            Notification(
                user_id=data.user_id,
                organization_id=data.organization_id,
                type=data.type,
                title=data.title,
                message=data.message,
                data=data.data,
            )
        )
        return row.id


class CommunicationLogRepository(BaseRepository[CommunicationLog]):
    """Outbound communication log (ICommunicationLogRepository)."""

    def __init__(self, db: AsyncSession) -> None:
        super().__init__(db, CommunicationLog)

    async def create(self, data: CommunicationRecord) -> str:
        row = await self._add(
            CommunicationLog(
                user_id=data.user_id,
                organization_id=data.organization_id,
                client_id=data.client_id,
                type=data.channel.value,
                direction=CommunicationDirection.OUTBOUND.value,
                status=data.status.value,
                from_address=data.sender,
                to_address=data.recipient,
                subject=data.subject,
                content=data.content,
                provider=data.provider,
                external_id=data.external_id,
                error_message=data.error_message,
                details=data.metadata,
            )
        )
        return row.id
