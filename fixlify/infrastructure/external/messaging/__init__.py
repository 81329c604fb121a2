"""SMS and email dispatchers (Telnyx, Mailgun, log-only)."""

from fixlify.infrastructure.external.messaging.factory import DispatcherFactory
from fixlify.infrastructure.external.messaging.log_only import (
    LogOnlyEmailDispatcher,
    LogOnlySmsDispatcher,
)
from fixlify.infrastructure.external.messaging.mailgun_email import MailgunEmailDispatcher
from fixlify.infrastructure.external.messaging.telnyx_sms import TelnyxSmsDispatcher

__all__ = [
    "DispatcherFactory",
    "LogOnlyEmailDispatcher",
    "LogOnlySmsDispatcher",
    "MailgunEmailDispatcher",
    "TelnyxSmsDispatcher",
]
