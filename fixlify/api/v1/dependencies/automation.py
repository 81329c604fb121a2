"""Automation pipeline dependencies (composition root).

Builds dispatchers, the runner and the use cases per request from
settings, the shared HTTP client and the SQLAlchemy unit of work.
Tests override get_uow_factory and the dispatcher dependencies.
"""

from __future__ import annotations

from functools import partial
from typing import Annotated

import httpx
from fastapi import Depends, Request

from fixlify.application.interfaces.repositories import UnitOfWorkFactory
from fixlify.application.interfaces.services import (
    IEmailDispatcher,
    IEmailLayout,
    ISmsDispatcher,
)
from fixlify.application.services.execution_log import ExecutionLogService
from fixlify.application.services.step_executor import StepExecutor
from fixlify.application.services.trigger_matcher import TriggerMatcher
from fixlify.application.services.variable_resolver import VariableResolver
from fixlify.application.use_cases import (
    PollScheduledTriggersUseCase,
    ProcessTriggerEventUseCase,
    WorkflowRunner,
)
from fixlify.core.config import Settings, get_settings
from fixlify.infrastructure.external.messaging import DispatcherFactory
from fixlify.infrastructure.persistence.database import get_session_factory
from fixlify.infrastructure.persistence.unit_of_work import sqlalchemy_uow_factory
from fixlify.infrastructure.services import JinjaEmailLayout


def get_uow_factory() -> UnitOfWorkFactory:
    """Unit of work factory over the application engine.

    Raises:
        SqlNotConfiguredException: When DATABASE_URL is not set (503).
    """
    return partial(sqlalchemy_uow_factory, get_session_factory())


def get_http_client(request: Request) -> httpx.AsyncClient | None:
    """Shared client created by the lifespan (None outside it)."""
    return getattr(request.app.state, "http_client", None)


def get_sms_dispatcher(
    settings: Annotated[Settings, Depends(get_settings)],
    http_client: Annotated[httpx.AsyncClient | None, Depends(get_http_client)],
) -> ISmsDispatcher:
    return DispatcherFactory.create_sms(settings, http_client=http_client)


def get_email_dispatcher(
    settings: Annotated[Settings, Depends(get_settings)],
    http_client: Annotated[httpx.AsyncClient | None, Depends(get_http_client)],
) -> IEmailDispatcher:
    return DispatcherFactory.create_email(settings, http_client=http_client)


def get_email_layout() -> IEmailLayout:
    return JinjaEmailLayout()


def get_workflow_runner(
    settings: Annotated[Settings, Depends(get_settings)],
    uow_factory: Annotated[UnitOfWorkFactory, Depends(get_uow_factory)],
    sms: Annotated[ISmsDispatcher, Depends(get_sms_dispatcher)],
    email: Annotated[IEmailDispatcher, Depends(get_email_dispatcher)],
    layout: Annotated[IEmailLayout, Depends(get_email_layout)],
) -> WorkflowRunner:
    return build_workflow_runner(settings, uow_factory, sms, email, layout)


def build_workflow_runner(
    settings: Settings,
    uow_factory: UnitOfWorkFactory,
    sms: ISmsDispatcher,
    email: IEmailDispatcher,
    layout: IEmailLayout | None = None,
) -> WorkflowRunner:
    """Wire a runner outside FastAPI (CLI) the same way requests do."""
    resolver = VariableResolver(
        uow_factory,
        public_base_url=settings.public_base_url,
        timezone=settings.display_zone,
    )
    executor = StepExecutor(uow_factory, sms, email, email_layout=layout)
    return WorkflowRunner(uow_factory, resolver, executor, ExecutionLogService(uow_factory))


def get_process_trigger_use_case(
    uow_factory: Annotated[UnitOfWorkFactory, Depends(get_uow_factory)],
    runner: Annotated[WorkflowRunner, Depends(get_workflow_runner)],
) -> ProcessTriggerEventUseCase:
    return ProcessTriggerEventUseCase(uow_factory, TriggerMatcher(), runner)


def get_poll_use_case(
    settings: Annotated[Settings, Depends(get_settings)],
    uow_factory: Annotated[UnitOfWorkFactory, Depends(get_uow_factory)],
    runner: Annotated[WorkflowRunner, Depends(get_workflow_runner)],
) -> PollScheduledTriggersUseCase:
    return PollScheduledTriggersUseCase(
        uow_factory,
        TriggerMatcher(),
        runner,
        tolerance_seconds=settings.scheduled_time_tolerance_seconds,
        continuation_batch_size=settings.continuation_batch_size,
    )
