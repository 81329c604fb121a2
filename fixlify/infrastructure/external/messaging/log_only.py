"""Log-only dispatchers used when no SMS or email provider is configured."""

import logging

from fixlify.application.dtos.messaging import DispatchReceipt, EmailMessage, SmsMessage
from fixlify.shared.telemetry.logging import get_logger
from fixlify.shared.utils.generators import generate_cuid

logger = get_logger(__name__)


class LogOnlySmsDispatcher:
    """ISmsDispatcher that logs instead of sending.

    Use in development or when Telnyx is not configured; the step still
    succeeds and the communication log records provider "log".
    """

    provider_name = "log"

    async def send_sms(self, message: SmsMessage) -> DispatchReceipt:
        logger.info("SMS not sent (no provider configured): to=%s chars=%d", message.to, len(message.body))
        if logger.isEnabledFor(logging.DEBUG):
            logger.debug("SMS body: %s", message.body[:500])
        return DispatchReceipt(provider=self.provider_name, message_id=f"log-{generate_cuid()}")


class LogOnlyEmailDispatcher:
    """IEmailDispatcher that logs instead of sending."""

    provider_name = "log"

    async def send_email(self, message: EmailMessage) -> DispatchReceipt:
        logger.info(
            "Email not sent (no provider configured): to=%s subject=%r",
            message.to,
            message.subject[:80],
        )
        logger.debug("Email text (first 500 chars): %s", message.text[:500])
        return DispatchReceipt(provider=self.provider_name, message_id=f"log-{generate_cuid()}")
