"""Run one scheduler poll: fire due time-based workflows and resume elapsed delays.

Usage:
    python -m scripts.run_scheduler_poll
Intended for cron (e.g. every minute). Requires DATABASE_URL; SMS and email
go through Telnyx / Mailgun when configured, otherwise they are only logged.
Exit code 1 when the poll reported errors.
"""

import asyncio
import json
import sys
import uuid

import httpx

from fixlify.api.v1.dependencies import build_workflow_runner
from fixlify.application.services.trigger_matcher import TriggerMatcher
from fixlify.application.use_cases import PollScheduledTriggersUseCase
from fixlify.core.config import get_settings
from fixlify.domain.exceptions import SqlNotConfiguredException
from fixlify.infrastructure.external.messaging import DispatcherFactory
from fixlify.infrastructure.persistence.database import dispose_engine, get_session_factory
from fixlify.infrastructure.persistence.unit_of_work import SqlAlchemyUnitOfWork
from fixlify.infrastructure.services import JinjaEmailLayout
from fixlify.shared.context import set_correlation_id
from fixlify.shared.telemetry.logging import setup_logging


async def main() -> int:
    settings = get_settings()
    setup_logging()
    set_correlation_id(f"poll-{uuid.uuid4().hex[:12]}")
    try:
        session_factory = get_session_factory()
    except SqlNotConfiguredException as exc:
        print(exc.message, file=sys.stderr)
        return 1

    def uow_factory() -> SqlAlchemyUnitOfWork:
        return SqlAlchemyUnitOfWork(session_factory)

    try:
        async with httpx.AsyncClient(timeout=settings.dispatch_timeout_seconds) as client:
            runner = build_workflow_runner(
                settings,
                uow_factory,
                DispatcherFactory.create_sms(settings, http_client=client),
                DispatcherFactory.create_email(settings, http_client=client),
                JinjaEmailLayout(),
            )
            poll = PollScheduledTriggersUseCase(
                uow_factory,
                TriggerMatcher(),
                runner,
                tolerance_seconds=settings.scheduled_time_tolerance_seconds,
                continuation_batch_size=settings.continuation_batch_size,
            )
            result = await poll.execute()
    finally:
        await dispose_engine()

    print(json.dumps(result.to_dict(), indent=2, default=str))
    return 1 if result.errors else 0


if __name__ == "__main__":
    sys.exit(asyncio.run(main()))
