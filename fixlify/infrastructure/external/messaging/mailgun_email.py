"""Mailgun email dispatcher (messages API v3)."""

import httpx

from fixlify.application.dtos.messaging import DispatchReceipt, EmailMessage
from fixlify.infrastructure.external.messaging._http import HttpDispatcher
from fixlify.shared.telemetry.logging import get_logger

logger = get_logger(__name__)


class MailgunEmailDispatcher(HttpDispatcher):
    """Sends email through POST {base_url}/{domain}/messages with basic auth api:key."""

    provider_name = "mailgun"

    def __init__(
        self,
        api_key: str,
        domain: str,
        from_email: str,
        *,
        base_url: str = "https://api.mailgun.net/v3",
        http_client: httpx.AsyncClient | None = None,
        timeout: float = 30.0,
    ) -> None:
        super().__init__(http_client=http_client, timeout=timeout)
        self._api_key = api_key
        self._domain = domain
        self._from_email = from_email
        self._base_url = base_url.rstrip("/")

    def _sender(self, from_name: str | None) -> str:
        if not from_name:
            return self._from_email
        name = from_name.replace('"', "'")
        return f'"{name}" <{self._from_email}>'

    async def send_email(self, message: EmailMessage) -> DispatchReceipt:
        sender = self._sender(message.from_name)
        data = {
            "from": sender,
            "to": message.to,
            "subject": message.subject,
            "html": message.html,
            "text": message.text,
        }
        if message.reply_to:
            data["h:Reply-To"] = message.reply_to
        body = await self._post(
            f"{self._base_url}/{self._domain}/messages",
            data=data,
            auth=("api", self._api_key),
        )
        message_id = body.get("id")
        logger.info("Mailgun accepted email %s", message_id)
        return DispatchReceipt(provider=self.provider_name, message_id=message_id, sender=sender)
