"""Telnyx SMS dispatcher (Messaging API v2)."""

from typing import Any

import httpx

from fixlify.application.dtos.messaging import DispatchReceipt, SmsMessage
from fixlify.infrastructure.external.messaging._http import HttpDispatcher
from fixlify.shared.telemetry.logging import get_logger

logger = get_logger(__name__)


class TelnyxSmsDispatcher(HttpDispatcher):
    """Sends SMS through POST {base_url}/messages with a bearer API key."""

    provider_name = "telnyx"

    def __init__(
        self,
        api_key: str,
        from_number: str,
        *,
        messaging_profile_id: str | None = None,
        base_url: str = "https://api.telnyx.com/v2",
        http_client: httpx.AsyncClient | None = None,
        timeout: float = 30.0,
    ) -> None:
        super().__init__(http_client=http_client, timeout=timeout)
        self._api_key = api_key
        self._from_number = from_number
        self._messaging_profile_id = messaging_profile_id
        self._base_url = base_url.rstrip("/")

    async def send_sms(self, message: SmsMessage) -> DispatchReceipt:
        payload: dict[str, Any] = {
            "from": self._from_number,
            "to": message.to,
            "text": message.body,
        }
        if self._messaging_profile_id:
            payload["messaging_profile_id"] = self._messaging_profile_id
        body = await self._post(
            f"{self._base_url}/messages",
            json=payload,
            headers={"Authorization": f"Bearer {self._api_key}"},
        )
        data = body.get("data") or {}
        message_id = data.get("id") if isinstance(data, dict) else None
        logger.info("Telnyx accepted SMS %s", message_id)
        return DispatchReceipt(
            provider=self.provider_name, message_id=message_id, sender=self._from_number
        )
