"""DTOs for outbound messages, dispatch receipts and their log rows."""

from dataclasses import dataclass, field
from typing import Any

from fixlify.shared.enums import CommunicationChannel, CommunicationStatus


@dataclass(frozen=True)
class SmsMessage:
    """A rendered SMS ready for dispatch."""

    to: str
    body: str
    user_id: str | None = None
    metadata: dict[str, Any] = field(default_factory=dict)


@dataclass(frozen=True)
class EmailMessage:
    """A rendered email (HTML and text parts) ready for dispatch."""

    to: str
    subject: str
    html: str
    text: str
    from_name: str | None = None
    reply_to: str | None = None
    metadata: dict[str, Any] = field(default_factory=dict)


@dataclass(frozen=True)
class DispatchReceipt:
    """Provider acknowledgement of an accepted message."""

    provider: str
    message_id: str | None = None
    sender: str | None = None


@dataclass(frozen=True)
class CommunicationRecord:
    """One dispatch attempt to store in the communication log."""

    channel: CommunicationChannel
    status: CommunicationStatus
    recipient: str | None
    content: str
    user_id: str | None = None
    organization_id: str | None = None
    client_id: str | None = None
    subject: str | None = None
    sender: str | None = None
    provider: str | None = None
    external_id: str | None = None
    error_message: str | None = None
    metadata: dict[str, Any] = field(default_factory=dict)


@dataclass(frozen=True)
class NotificationCreate:
    """In-app notification for a workflow owner."""

    user_id: str
    title: str
    message: str
    type: str = "automation"
    organization_id: str | None = None
    data: dict[str, Any] = field(default_factory=dict)
