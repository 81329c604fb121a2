"""Domain enumerations for workflows, triggers, steps and executions."""

from enum import Enum

from fixlify.shared.enums import _ValuesMixin


class WorkflowStatus(_ValuesMixin, str, Enum):
    """Workflow lifecycle status. Only active workflows are matched or run."""

    ACTIVE = "active"
    PAUSED = "paused"
    DRAFT = "draft"
    ARCHIVED = "archived"


class TriggerType(_ValuesMixin, str, Enum):
    """Known trigger types.

    Event triggers come from row changes or direct calls; time triggers are
    evaluated by the scheduler poll.
    """

    JOB_CREATED = "job_created"
    JOB_STATUS_CHANGED = "job_status_changed"
    JOB_COMPLETED = "job_completed"
    JOB_SCHEDULED = "job_scheduled"
    CLIENT_CREATED = "client_created"
    INVOICE_CREATED = "invoice_created"
    INVOICE_STATUS_CHANGED = "invoice_status_changed"
    INVOICE_PAID = "invoice_paid"
    PAYMENT_RECEIVED = "payment_received"
    ESTIMATE_CREATED = "estimate_created"
    ESTIMATE_STATUS_CHANGED = "estimate_status_changed"
    MANUAL = "manual"
    # Time based
    INVOICE_OVERDUE = "invoice_overdue"
    JOB_FOLLOW_UP = "job_follow_up"
    MAINTENANCE_REMINDER = "maintenance_reminder"
    CLIENT_CHECK_IN = "client_check_in"
    SCHEDULED_TIME = "scheduled_time"

    @classmethod
    def time_based(cls) -> tuple["TriggerType", ...]:
        """Trigger kinds evaluated by the scheduler poll, in poll order."""
        return (
            cls.INVOICE_OVERDUE,
            cls.JOB_FOLLOW_UP,
            cls.MAINTENANCE_REMINDER,
            cls.CLIENT_CHECK_IN,
            cls.SCHEDULED_TIME,
        )


class EntityType(_ValuesMixin, str, Enum):
    """Kind of record a trigger event refers to."""

    JOB = "job"
    INVOICE = "invoice"
    CLIENT = "client"
    ESTIMATE = "estimate"
    TASK = "task"


class StepType(_ValuesMixin, str, Enum):
    """Canonical step type tags."""

    SEND_SMS = "send_sms"
    SEND_EMAIL = "send_email"
    SEND_NOTIFICATION = "send_notification"
    DELAY = "delay"


class DelayUnit(_ValuesMixin, str, Enum):
    """Unit of a delay step value."""

    SECONDS = "seconds"
    MINUTES = "minutes"
    HOURS = "hours"
    DAYS = "days"


class ConditionOperator(_ValuesMixin, str, Enum):
    """Comparison operators usable in trigger condition rules."""

    EQUALS = "equals"
    NOT_EQUALS = "not_equals"
    CONTAINS = "contains"
    GREATER_THAN = "greater_than"
    LESS_THAN = "less_than"
    IS_EMPTY = "is_empty"
    IS_NOT_EMPTY = "is_not_empty"


class ConditionMatch(_ValuesMixin, str, Enum):
    """How rule results combine: every rule (all) or at least one (any)."""

    ALL = "all"
    ANY = "any"


class ExecutionStatus(_ValuesMixin, str, Enum):
    """Execution log entry status. Completed and failed are terminal."""

    STARTED = "started"
    COMPLETED = "completed"
    FAILED = "failed"


class StepResultStatus(_ValuesMixin, str, Enum):
    """Outcome of one step within a run."""

    SUCCESS = "success"
    FAILED = "failed"
    SKIPPED = "skipped"
    SIMULATED = "simulated"
    DEFERRED = "deferred"


class ContinuationStatus(_ValuesMixin, str, Enum):
    """State of a persisted delay continuation."""

    PENDING = "pending"
    RESUMED = "resumed"
