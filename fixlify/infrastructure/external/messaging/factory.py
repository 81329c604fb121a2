"""Dispatcher factory: picks Telnyx / Mailgun when configured, log-only otherwise."""

import httpx

from fixlify.application.interfaces.services import IEmailDispatcher, ISmsDispatcher
from fixlify.core.config import Settings
from fixlify.infrastructure.external.messaging.log_only import (
    LogOnlyEmailDispatcher,
    LogOnlySmsDispatcher,
)
from fixlify.infrastructure.external.messaging.mailgun_email import MailgunEmailDispatcher
from fixlify.infrastructure.external.messaging.telnyx_sms import TelnyxSmsDispatcher
from fixlify.shared.telemetry.logging import get_logger

logger = get_logger(__name__)


class DispatcherFactory:
    """Builds the SMS and email dispatchers from settings."""

    @staticmethod
    def create_sms(
        settings: Settings, *, http_client: httpx.AsyncClient | None = None
    ) -> ISmsDispatcher:
        if not settings.telnyx_configured:
            logger.debug("Telnyx not configured; SMS steps will be logged only")
            return LogOnlySmsDispatcher()
        assert settings.telnyx_api_key is not None and settings.telnyx_from_number
        return TelnyxSmsDispatcher(
            settings.telnyx_api_key.get_secret_value(),
            settings.telnyx_from_number,
            messaging_profile_id=settings.telnyx_messaging_profile_id,
            base_url=settings.telnyx_base_url,
            http_client=http_client,
            timeout=settings.dispatch_timeout_seconds,
        )

    @staticmethod
    def create_email(
        settings: Settings, *, http_client: httpx.AsyncClient | None = None
    ) -> IEmailDispatcher:
        if not settings.mailgun_configured:
            logger.debug("Mailgun not configured; email steps will be logged only")
            return LogOnlyEmailDispatcher()
        assert settings.mailgun_api_key is not None and settings.mailgun_domain
        return MailgunEmailDispatcher(
            settings.mailgun_api_key.get_secret_value(),
            settings.mailgun_domain,
            settings.mailgun_from_email or f"noreply@{settings.mailgun_domain}",
            base_url=settings.mailgun_base_url,
            http_client=http_client,
            timeout=settings.dispatch_timeout_seconds,
        )
