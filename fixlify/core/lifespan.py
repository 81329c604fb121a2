"""Application lifespan: startup and shutdown.

Wiring only: shared HTTP client for provider dispatchers, tracing, and
the database engine dispose on exit.
"""

import logging
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager

import httpx
from fastapi import FastAPI

from fixlify.core.config import get_settings
from fixlify.infrastructure.persistence.database import dispose_engine
from fixlify.shared.telemetry.logging import setup_logging
from fixlify.shared.telemetry.telemetry import (
    AutomationTelemetry,
    get_telemetry,
    set_telemetry,
)

logger = logging.getLogger(__name__)


@asynccontextmanager
async def create_lifespan(app: FastAPI) -> AsyncIterator[None]:
    """Run startup then yield; on exit close the HTTP client, tracing and engine."""
    settings = get_settings()
    setup_logging()

    # One client for Telnyx and Mailgun so connections are pooled.
    app.state.http_client = httpx.AsyncClient(timeout=settings.dispatch_timeout_seconds)

    if settings.telemetry_enabled:
        telemetry = AutomationTelemetry.from_settings(settings)
        if telemetry.start() is not None:
            set_telemetry(telemetry)
            telemetry.instrument_app(app)

    logger.info(
        "%s %s started (sms=%s, email=%s)",
        settings.app_name,
        settings.app_version,
        "telnyx" if settings.telnyx_configured else "log",
        "mailgun" if settings.mailgun_configured else "log",
    )

    yield

    await app.state.http_client.aclose()
    app.state.http_client = None

    telemetry = get_telemetry()
    if telemetry is not None:
        telemetry.shutdown()
        set_telemetry(None)

    await dispose_engine()
    logger.info("%s stopped", settings.app_name)
