"""Service interfaces (ports) for the application layer.

Protocols for the outbound dispatchers and the email layout (DIP).
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Any, Protocol

if TYPE_CHECKING:
    from fixlify.application.dtos.messaging import DispatchReceipt, EmailMessage, SmsMessage


class ISmsDispatcher(Protocol):
    """Sends one SMS. Raises DispatchException when the provider rejects it."""

    provider_name: str

    async def send_sms(self, message: SmsMessage) -> DispatchReceipt: ...


class IEmailDispatcher(Protocol):
    """Sends one email. Raises DispatchException when the provider rejects it."""

    provider_name: str

    async def send_email(self, message: EmailMessage) -> DispatchReceipt: ...


class IEmailLayout(Protocol):
    """Wraps an already rendered body in the branded HTML layout."""

    def render(self, subject: str, body_html: str, company: dict[str, Any]) -> str: ...
