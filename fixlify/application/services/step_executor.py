"""Runs a workflow's steps in order against a resolved variable context.

Each step is isolated: a failed step is recorded and the run moves on,
unless that step opted out with continue_on_error=False. A delay step
with a positive duration suspends the run: the executor returns a
StepRun carrying resume_at and next_step_index, and the caller persists
it as a continuation for the scheduler poll to pick up.
"""

from __future__ import annotations

from collections.abc import Callable
from dataclasses import dataclass, field
from datetime import datetime, timedelta
from typing import Any, assert_never

from fixlify.application.dtos.execution import VariableContext
from fixlify.application.dtos.messaging import (
    CommunicationRecord,
    EmailMessage,
    NotificationCreate,
    SmsMessage,
)
from fixlify.application.dtos.trigger import TriggerEvent
from fixlify.application.interfaces.repositories import UnitOfWorkFactory
from fixlify.application.interfaces.services import IEmailDispatcher, IEmailLayout, ISmsDispatcher
from fixlify.application.services.template_renderer import TemplateRenderer
from fixlify.domain.entities.execution import StepResult, WorkflowContinuation
from fixlify.domain.entities.workflow import (
    DelayStep,
    EmailStep,
    NotificationStep,
    SmsStep,
    Step,
    UnknownStep,
    WorkflowEntity,
)
from fixlify.domain.enums import StepResultStatus
from fixlify.domain.exceptions import (
    DispatchException,
    MissingRecipientException,
    StepExecutionException,
)
from fixlify.shared.enums import CommunicationChannel, CommunicationStatus
from fixlify.shared.telemetry.logging import get_logger
from fixlify.shared.telemetry.tracing import add_span_attributes, traced
from fixlify.shared.utils.datetime import utc_now
from fixlify.shared.utils.sanitization import MessageSanitizer

logger = get_logger(__name__)


@dataclass
class StepRun:
    """Accumulated progress of one run, possibly spanning several resumes."""

    step_results: list[StepResult] = field(default_factory=list)
    steps_executed: int = 0
    steps_failed: int = 0
    last_error: str | None = None
    aborted: bool = False
    resume_at: datetime | None = None
    next_step_index: int | None = None

    @property
    def deferred(self) -> bool:
        return self.resume_at is not None

    @property
    def succeeded(self) -> bool:
        return self.steps_failed == 0

    def record(self, result: StepResult) -> None:
        self.step_results.append(result)
        if result.counts_as_executed:
            self.steps_executed += 1
        elif result.status is StepResultStatus.FAILED:
            self.steps_failed += 1
            self.last_error = result.error

    def defer(self, resume_at: datetime, next_step_index: int) -> None:
        self.resume_at = resume_at
        self.next_step_index = next_step_index

    @classmethod
    def from_continuation(cls, continuation: WorkflowContinuation) -> StepRun:
        return cls(
            step_results=list(continuation.step_results),
            steps_executed=continuation.steps_executed,
            steps_failed=continuation.steps_failed,
            last_error=continuation.last_error,
        )


def _type_name(step: Step) -> str:
    if isinstance(step, UnknownStep):
        return step.type_name
    return step.type.value


class StepExecutor:
    """Executes steps through the SMS and email dispatchers and the notification store."""

    def __init__(
        self,
        uow_factory: UnitOfWorkFactory,
        sms_dispatcher: ISmsDispatcher,
        email_dispatcher: IEmailDispatcher,
        *,
        renderer: TemplateRenderer | None = None,
        email_layout: IEmailLayout | None = None,
        clock: Callable[[], datetime] = utc_now,
    ) -> None:
        self._uow_factory = uow_factory
        self._sms = sms_dispatcher
        self._email = email_dispatcher
        self._renderer = renderer or TemplateRenderer()
        self._email_layout = email_layout
        self._clock = clock

    @traced("automation.execute_steps")
    async def execute(
        self,
        workflow: WorkflowEntity,
        context: VariableContext,
        event: TriggerEvent,
        *,
        start_index: int = 0,
        carry: StepRun | None = None,
    ) -> StepRun:
        """Run steps from start_index until the end, an abort or a positive delay."""
        run = carry or StepRun()
        add_span_attributes(workflow_id=workflow.id, start_index=start_index)
        for index in range(start_index, len(workflow.steps)):
            step = workflow.steps[index]
            if isinstance(step, DelayStep) and step.duration > timedelta(0):
                resume_at = self._clock() + step.duration
                run.record(
                    StepResult(
                        step_id=step.id,
                        step_index=index,
                        type=step.type.value,
                        status=StepResultStatus.DEFERRED,
                        detail={"resume_at": resume_at.isoformat()},
                    )
                )
                run.defer(resume_at, index + 1)
                logger.info(
                    "Workflow %s suspended at step %d until %s",
                    workflow.id,
                    index,
                    resume_at.isoformat(),
                )
                return run

            result = await self._run_step(step, index, workflow, context, event)
            run.record(result)
            if result.status is StepResultStatus.FAILED and not step.continue_on_error:
                run.aborted = True
                logger.warning(
                    "Workflow %s aborted after step %s failed (continue_on_error is off)",
                    workflow.id,
                    step.id,
                )
                break
        return run

    async def _run_step(
        self,
        step: Step,
        index: int,
        workflow: WorkflowEntity,
        context: VariableContext,
        event: TriggerEvent,
    ) -> StepResult:
        try:
            match step:
                case SmsStep():
                    status, detail = await self._send_sms(step, workflow, context, event)
                case EmailStep():
                    status, detail = await self._send_email(step, workflow, context, event)
                case NotificationStep():
                    status, detail = await self._notify(step, workflow, context, event)
                case DelayStep():
                    status, detail = StepResultStatus.SUCCESS, {"delay_seconds": 0}
                case UnknownStep():
                    logger.warning(
                        "Skipping step %s of workflow %s: unknown type %r",
                        step.id,
                        workflow.id,
                        step.type_name,
                    )
                    status, detail = StepResultStatus.SKIPPED, {"reason": "unknown step type"}
                case _:
                    assert_never(step)
        except StepExecutionException as exc:
            logger.warning(
                "Step %s of workflow %s failed: %s", step.id, workflow.id, exc.message
            )
            return StepResult(
                step_id=step.id,
                step_index=index,
                type=_type_name(step),
                status=StepResultStatus.FAILED,
                error=exc.message,
                detail={"error_code": exc.error_code},
            )
        except Exception as exc:
            logger.exception("Step %s of workflow %s raised", step.id, workflow.id)
            return StepResult(
                step_id=step.id,
                step_index=index,
                type=_type_name(step),
                status=StepResultStatus.FAILED,
                error=str(exc) or exc.__class__.__name__,
            )
        return StepResult(
            step_id=step.id,
            step_index=index,
            type=_type_name(step),
            status=status,
            detail=detail,
        )

    async def _send_sms(
        self,
        step: SmsStep,
        workflow: WorkflowEntity,
        context: VariableContext,
        event: TriggerEvent,
    ) -> tuple[StepResultStatus, dict[str, Any]]:
        phone = context.client_phone
        if phone is None:
            raise MissingRecipientException("sms", step.id)
        body = self._renderer.render(step.message, context.variables)
        record = {
            "channel": CommunicationChannel.SMS,
            "recipient": phone,
            "content": body,
            "user_id": workflow.user_id,
            "organization_id": workflow.organization_id,
            "client_id": context.client_id,
            "metadata": {"workflow_id": workflow.id, "step_id": step.id},
        }

        if event.is_test:
            await self._log_communication(
                CommunicationRecord(status=CommunicationStatus.SIMULATED, provider="test", **record)
            )
            return StepResultStatus.SIMULATED, {"to": phone, "message": body}

        try:
            receipt = await self._sms.send_sms(
                SmsMessage(to=phone, body=body, user_id=workflow.user_id, metadata=record["metadata"])
            )
        except DispatchException as exc:
            await self._log_communication(
                CommunicationRecord(
                    status=CommunicationStatus.FAILED,
                    provider=exc.provider,
                    error_message=exc.message,
                    **record,
                )
            )
            raise
        await self._log_communication(
            CommunicationRecord(
                status=CommunicationStatus.SENT,
                provider=receipt.provider,
                external_id=receipt.message_id,
                sender=receipt.sender,
                **record,
            )
        )
        return StepResultStatus.SUCCESS, {
            "to": phone,
            "provider": receipt.provider,
            "message_id": receipt.message_id,
        }

    async def _send_email(
        self,
        step: EmailStep,
        workflow: WorkflowEntity,
        context: VariableContext,
        event: TriggerEvent,
    ) -> tuple[StepResultStatus, dict[str, Any]]:
        address = context.client_email
        if address is None:
            raise MissingRecipientException("email", step.id)
        subject = self._renderer.render(step.subject, context.variables)
        body = self._renderer.render(step.body, context.variables)
        body_html = MessageSanitizer.to_html(body)
        html = (
            self._email_layout.render(subject, body_html, context.company)
            if self._email_layout is not None
            else body_html
        )
        company_name = context.variables.get("company_name") or None
        record = {
            "channel": CommunicationChannel.EMAIL,
            "recipient": address,
            "subject": subject,
            "content": body,
            "user_id": workflow.user_id,
            "organization_id": workflow.organization_id,
            "client_id": context.client_id,
            "metadata": {"workflow_id": workflow.id, "step_id": step.id},
        }

        if event.is_test:
            await self._log_communication(
                CommunicationRecord(status=CommunicationStatus.SIMULATED, provider="test", **record)
            )
            return StepResultStatus.SIMULATED, {"to": address, "subject": subject}

        try:
            receipt = await self._email.send_email(
                EmailMessage(
                    to=address,
                    subject=subject,
                    html=html,
                    text=MessageSanitizer.to_text(body),
                    from_name=company_name,
                    reply_to=context.variables.get("company_email") or None,
                    metadata=record["metadata"],
                )
            )
        except DispatchException as exc:
            await self._log_communication(
                CommunicationRecord(
                    status=CommunicationStatus.FAILED,
                    provider=exc.provider,
                    error_message=exc.message,
                    **record,
                )
            )
            raise
        await self._log_communication(
            CommunicationRecord(
                status=CommunicationStatus.SENT,
                provider=receipt.provider,
                external_id=receipt.message_id,
                sender=receipt.sender,
                **record,
            )
        )
        return StepResultStatus.SUCCESS, {
            "to": address,
            "subject": subject,
            "provider": receipt.provider,
            "message_id": receipt.message_id,
        }

    async def _notify(
        self,
        step: NotificationStep,
        workflow: WorkflowEntity,
        context: VariableContext,
        event: TriggerEvent,
    ) -> tuple[StepResultStatus, dict[str, Any]]:
        if not workflow.user_id:
            raise StepExecutionException(
                "Workflow has no owning user to notify",
                step_id=step.id,
                error_code="MISSING_RECIPIENT",
            )
        data = NotificationCreate(
            user_id=workflow.user_id,
            organization_id=workflow.organization_id,
            title=self._renderer.render(step.title, context.variables),
            message=self._renderer.render(step.message, context.variables),
            data={
                "workflow_id": workflow.id,
                "trigger_type": event.trigger_type,
                "entity_type": event.entity_type,
                "entity_id": event.entity_id,
            },
        )
        async with self._uow_factory() as uow:
            notification_id = await uow.notifications.create(data)
        return StepResultStatus.SUCCESS, {"notification_id": notification_id}

    async def _log_communication(self, record: CommunicationRecord) -> None:
        """Store one dispatch attempt. A logging failure does not change the step outcome."""
        try:
            async with self._uow_factory() as uow:
                await uow.communications.create(record)
        except Exception:
            logger.warning(
                "Failed to write %s communication log for %s",
                record.channel.value,
                record.recipient,
                exc_info=True,
            )
