"""Domain exceptions for the Fixlify automation service.

Defines domain-level exceptions that represent business rule violations.
These exceptions are independent of infrastructure concerns. The API layer
maps them to HTTP responses in exception handlers.
"""

from typing import Any


class FixlifyException(Exception):
    """Base exception for all Fixlify automation errors.

    All custom exceptions inherit from this class so that error handling
    and logging stay consistent. The API layer maps these to HTTP
    responses using message, error_code, and details.

    Attributes:
        message: Human-readable error description.
        error_code: Machine-readable error code.
        details: Additional error context (e.g. field, resource_id).
    """

    def __init__(
        self,
        message: str,
        error_code: str | None = None,
        details: dict[str, Any] | None = None,
    ) -> None:
        self.message = message
        self.error_code = error_code or self.__class__.__name__
        self.details = details or {}
        super().__init__(self.message)

    def to_dict(self) -> dict[str, Any]:
        """Serialize for JSON error responses."""
        payload: dict[str, Any] = {"error": self.error_code, "message": self.message}
        if self.details:
            payload["details"] = self.details
        return payload


class ValidationException(FixlifyException):
    """Raised when input validation fails (e.g. invalid format or range)."""

    def __init__(self, message: str, field: str | None = None) -> None:
        """Initialize with message and optional field name.

        Args:
            message: Description of the validation failure.
            field: Optional field or attribute that failed validation.
        """
        details = {"field": field} if field else {}
        super().__init__(message, "VALIDATION_ERROR", details)


class ResourceNotFoundException(FixlifyException):
    """Raised when a requested resource is not found."""

    def __init__(self, resource_type: str, resource_id: str) -> None:
        super().__init__(
            f"{resource_type} not found: {resource_id}",
            "RESOURCE_NOT_FOUND",
            {"resource_type": resource_type, "resource_id": resource_id},
        )


class WorkflowNotFoundException(FixlifyException):
    """Raised when a workflow id does not resolve to a stored workflow."""

    def __init__(self, workflow_id: str) -> None:
        super().__init__(
            f"Workflow not found: {workflow_id}",
            "WORKFLOW_NOT_FOUND",
            {"workflow_id": workflow_id},
        )


class WorkflowInactiveException(FixlifyException):
    """Raised when a run is requested for a workflow that is not active."""

    def __init__(self, workflow_id: str, status: str) -> None:
        super().__init__(
            f"Workflow {workflow_id} is not active (status: {status})",
            "WORKFLOW_INACTIVE",
            {"workflow_id": workflow_id, "status": status},
        )


class WorkflowNotRunnableException(FixlifyException):
    """Raised when a workflow has no steps or its trigger document is unusable."""

    def __init__(self, workflow_id: str, reason: str) -> None:
        super().__init__(
            f"Workflow {workflow_id} cannot run: {reason}",
            "WORKFLOW_NOT_RUNNABLE",
            {"workflow_id": workflow_id, "reason": reason},
        )


class EntityNotFoundException(FixlifyException):
    """Raised when the record a trigger points at (job, invoice, client) is gone."""

    def __init__(self, entity_type: str, entity_id: str) -> None:
        super().__init__(
            f"{entity_type} not found: {entity_id}",
            "ENTITY_NOT_FOUND",
            {"entity_type": entity_type, "entity_id": entity_id},
        )


class StepExecutionException(FixlifyException):
    """Base for failures of a single workflow step.

    The executor records these on the step result and moves on to the next
    step unless the step opted out with continue_on_error=False.
    """

    def __init__(
        self,
        message: str,
        step_id: str | None = None,
        error_code: str = "STEP_FAILED",
        details: dict[str, Any] | None = None,
    ) -> None:
        merged = dict(details or {})
        if step_id:
            merged["step_id"] = step_id
        self.step_id = step_id
        super().__init__(message, error_code, merged)


class MissingRecipientException(StepExecutionException):
    """Raised when an SMS or email step has no phone number or address to send to."""

    def __init__(self, channel: str, step_id: str | None = None) -> None:
        label = "phone number" if channel == "sms" else "email address"
        super().__init__(
            f"No recipient {label} available for {channel} step",
            step_id=step_id,
            error_code="MISSING_RECIPIENT",
            details={"channel": channel},
        )
        self.channel = channel


class DispatchException(StepExecutionException):
    """Raised when an SMS or email provider rejects or fails a send."""

    def __init__(
        self,
        provider: str,
        message: str,
        status_code: int | None = None,
    ) -> None:
        details: dict[str, Any] = {"provider": provider}
        if status_code is not None:
            details["status_code"] = status_code
        super().__init__(
            f"{provider} dispatch failed: {message}",
            error_code="DISPATCH_FAILED",
            details=details,
        )
        self.provider = provider
        self.status_code = status_code


class ExecutionAlreadyFinalizedException(FixlifyException):
    """Raised when a terminal execution log entry is finalized a second time."""

    def __init__(self, execution_id: str, status: str) -> None:
        super().__init__(
            f"Execution {execution_id} is already {status}",
            "EXECUTION_ALREADY_FINALIZED",
            {"execution_id": execution_id, "status": status},
        )


class SqlNotConfiguredException(FixlifyException):
    """Raised when an operation requires Postgres but DATABASE_URL is not set."""

    def __init__(self) -> None:
        super().__init__(
            message="This operation requires a SQL database that is not configured.",
            error_code="SERVICE_UNAVAILABLE",
        )
