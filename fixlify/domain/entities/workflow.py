"""Workflow domain entity, its steps and its trigger conditions.

A workflow is a definition: a trigger (type + conditions) and an ordered
list of steps. Stored JSON documents are parsed here, at the store
boundary, into typed values. Writes reject malformed documents with
ValidationException; reads record the problem on the entity so that the
workflow fails closed instead of crashing the caller.
"""

import math
from collections.abc import Mapping
from dataclasses import dataclass, field
from datetime import datetime, timedelta
from typing import Any, ClassVar

from fixlify.domain.enums import (
    ConditionMatch,
    ConditionOperator,
    DelayUnit,
    StepType,
    WorkflowStatus,
)
from fixlify.domain.exceptions import ValidationException
from fixlify.shared.utils.datetime import parse_datetime

CONDITIONS_SCHEMA_VERSION = 1

_OPERATOR_ALIASES: dict[str, ConditionOperator] = {
    "==": ConditionOperator.EQUALS,
    "!=": ConditionOperator.NOT_EQUALS,
    ">": ConditionOperator.GREATER_THAN,
    "<": ConditionOperator.LESS_THAN,
}
_VALUELESS_OPERATORS = frozenset({ConditionOperator.IS_EMPTY, ConditionOperator.IS_NOT_EMPTY})

_SCHEDULE_INT_KEYS = (
    "days_overdue",
    "days_after_completion",
    "months_after_last_service",
    "days_since_contact",
)


# ---------------------------------------------------------------------------
# Trigger conditions
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class Condition:
    """One predicate over an event field."""

    field: str
    operator: ConditionOperator
    value: Any = None

    def to_document(self) -> dict[str, Any]:
        doc: dict[str, Any] = {"field": self.field, "operator": self.operator.value}
        if self.operator not in _VALUELESS_OPERATORS:
            doc["value"] = self.value
        return doc


@dataclass(frozen=True)
class ScheduleParams:
    """Parameters of time-based triggers. None means "use the kind's default"."""

    days_overdue: int | None = None
    days_after_completion: int | None = None
    months_after_last_service: int | None = None
    days_since_contact: int | None = None
    scheduled_time: datetime | None = None

    def to_document(self) -> dict[str, Any]:
        doc: dict[str, Any] = {
            key: getattr(self, key)
            for key in _SCHEDULE_INT_KEYS
            if getattr(self, key) is not None
        }
        if self.scheduled_time is not None:
            doc["scheduled_time"] = self.scheduled_time.isoformat()
        return doc

    def as_payload(self) -> dict[str, Any]:
        """Parameters merged into a time-trigger event payload."""
        return self.to_document()


@dataclass(frozen=True)
class TriggerConditions:
    """Versioned trigger condition document.

    Zero rules match every event; match=all requires every rule to hold,
    match=any at least one.
    """

    rules: tuple[Condition, ...] = ()
    match: ConditionMatch = ConditionMatch.ALL
    schedule: ScheduleParams = field(default_factory=ScheduleParams)

    @classmethod
    def parse(cls, raw: Any) -> "TriggerConditions":
        """Parse a stored or submitted condition document.

        Accepts the versioned document, a bare list of rules, the legacy
        {"operator": "AND"|"OR", "rules": [...]} shape and flat schedule keys.

        Raises:
            ValidationException: If the document is malformed.
        """
        if raw is None:
            return cls()
        if isinstance(raw, list):
            return cls(rules=_parse_rules(raw))
        if not isinstance(raw, Mapping):
            raise ValidationException(
                "trigger_conditions must be an object or a list of rules",
                field="trigger_conditions",
            )

        version = raw.get("version", CONDITIONS_SCHEMA_VERSION)
        if version != CONDITIONS_SCHEMA_VERSION:
            raise ValidationException(
                f"Unsupported trigger_conditions version: {version!r}",
                field="trigger_conditions.version",
            )

        match = _parse_match(raw)
        rules_raw = raw.get("rules", raw.get("conditions", []))
        if rules_raw is None:
            rules_raw = []
        if not isinstance(rules_raw, list):
            raise ValidationException(
                "trigger_conditions.rules must be a list", field="trigger_conditions.rules"
            )

        schedule_raw = raw.get("schedule")
        if schedule_raw is None:
            schedule_raw = {
                key: raw[key]
                for key in (*_SCHEDULE_INT_KEYS, "scheduled_time")
                if key in raw
            }
        return cls(
            rules=_parse_rules(rules_raw),
            match=match,
            schedule=_parse_schedule(schedule_raw),
        )

    def to_document(self) -> dict[str, Any]:
        doc: dict[str, Any] = {
            "version": CONDITIONS_SCHEMA_VERSION,
            "match": self.match.value,
            "rules": [rule.to_document() for rule in self.rules],
        }
        schedule = self.schedule.to_document()
        if schedule:
            doc["schedule"] = schedule
        return doc


def _parse_match(raw: Mapping[str, Any]) -> ConditionMatch:
    if "match" in raw:
        value = raw["match"]
        if value not in ConditionMatch.values():
            raise ValidationException(
                f"match must be one of {ConditionMatch.values()}, got {value!r}",
                field="trigger_conditions.match",
            )
        return ConditionMatch(value)
    legacy = raw.get("operator")
    if legacy is None:
        return ConditionMatch.ALL
    if isinstance(legacy, str) and legacy.upper() in ("AND", "OR"):
        return ConditionMatch.ALL if legacy.upper() == "AND" else ConditionMatch.ANY
    raise ValidationException(
        f"operator must be AND or OR, got {legacy!r}", field="trigger_conditions.operator"
    )


def _parse_rules(items: list[Any]) -> tuple[Condition, ...]:
    return tuple(_parse_condition(item, index) for index, item in enumerate(items))


def _parse_condition(item: Any, index: int) -> Condition:
    where = f"trigger_conditions.rules[{index}]"
    if not isinstance(item, Mapping):
        raise ValidationException("Condition must be an object", field=where)
    field_name = item.get("field")
    if not isinstance(field_name, str) or not field_name.strip():
        raise ValidationException("Condition field must be a non-empty string", field=where)
    operator = _parse_operator(item.get("operator"), where)
    if operator not in _VALUELESS_OPERATORS and "value" not in item:
        raise ValidationException(
            f"Condition operator {operator.value!r} requires a value", field=where
        )
    value = item.get("value")
    if isinstance(value, Mapping):
        raise ValidationException("Condition value cannot be an object", field=where)
    return Condition(field=field_name.strip(), operator=operator, value=value)


def _parse_operator(raw: Any, where: str) -> ConditionOperator:
    if isinstance(raw, str):
        if raw in ConditionOperator.values():
            return ConditionOperator(raw)
        if raw in _OPERATOR_ALIASES:
            return _OPERATOR_ALIASES[raw]
    raise ValidationException(f"Unknown condition operator: {raw!r}", field=where)


def _parse_schedule(raw: Any) -> ScheduleParams:
    if not isinstance(raw, Mapping):
        raise ValidationException(
            "trigger_conditions.schedule must be an object",
            field="trigger_conditions.schedule",
        )
    values: dict[str, Any] = {}
    for key in _SCHEDULE_INT_KEYS:
        if raw.get(key) is not None:
            values[key] = _non_negative_int(raw[key], f"trigger_conditions.schedule.{key}")
    if raw.get("scheduled_time") is not None:
        when = parse_datetime(raw["scheduled_time"])
        if when is None:
            raise ValidationException(
                "scheduled_time must be an ISO-8601 datetime",
                field="trigger_conditions.schedule.scheduled_time",
            )
        values["scheduled_time"] = when
    return ScheduleParams(**values)


def _non_negative_int(value: Any, where: str) -> int:
    if isinstance(value, bool):
        raise ValidationException("Expected a whole number", field=where)
    if isinstance(value, int):
        number = value
    elif isinstance(value, float) and value.is_integer():
        number = int(value)
    elif isinstance(value, str) and value.strip().isdigit():
        number = int(value.strip())
    else:
        raise ValidationException("Expected a whole number", field=where)
    if number < 0:
        raise ValidationException("Expected a non-negative number", field=where)
    return number


# ---------------------------------------------------------------------------
# Steps
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class SmsStep:
    """Send a rendered SMS to the resolved client's phone."""

    type: ClassVar[StepType] = StepType.SEND_SMS

    id: str
    message: str
    continue_on_error: bool = True

    def config(self) -> dict[str, Any]:
        return {"message": self.message}


@dataclass(frozen=True)
class EmailStep:
    """Send a rendered, branded email to the resolved client's address."""

    type: ClassVar[StepType] = StepType.SEND_EMAIL

    id: str
    subject: str
    body: str
    continue_on_error: bool = True

    def config(self) -> dict[str, Any]:
        return {"subject": self.subject, "body": self.body}


@dataclass(frozen=True)
class NotificationStep:
    """Create an in-app notification for the workflow owner."""

    type: ClassVar[StepType] = StepType.SEND_NOTIFICATION

    id: str
    title: str
    message: str
    continue_on_error: bool = True

    def config(self) -> dict[str, Any]:
        return {"title": self.title, "message": self.message}


MAX_DELAY = timedelta(days=365)

_UNIT_SECONDS: dict[DelayUnit, int] = {
    DelayUnit.SECONDS: 1,
    DelayUnit.MINUTES: 60,
    DelayUnit.HOURS: 3600,
    DelayUnit.DAYS: 86400,
}


@dataclass(frozen=True)
class DelayStep:
    """Suspend the run for value x unit before the next step."""

    type: ClassVar[StepType] = StepType.DELAY

    id: str
    value: float
    unit: DelayUnit = DelayUnit.SECONDS
    continue_on_error: bool = True

    @property
    def duration(self) -> timedelta:
        return timedelta(seconds=self.value * _UNIT_SECONDS[self.unit])

    def config(self) -> dict[str, Any]:
        value: int | float = int(self.value) if float(self.value).is_integer() else self.value
        return {"value": value, "unit": self.unit.value}


@dataclass(frozen=True)
class UnknownStep:
    """A step whose type this service does not know. Kept verbatim and skipped."""

    id: str
    type_name: str
    raw: dict[str, Any] = field(default_factory=dict)
    continue_on_error: bool = True


Step = SmsStep | EmailStep | NotificationStep | DelayStep | UnknownStep

_TYPE_ALIASES: dict[str, StepType] = {
    "send_sms": StepType.SEND_SMS,
    "sms": StepType.SEND_SMS,
    "send_email": StepType.SEND_EMAIL,
    "email": StepType.SEND_EMAIL,
    "send_notification": StepType.SEND_NOTIFICATION,
    "notification": StepType.SEND_NOTIFICATION,
    "delay": StepType.DELAY,
    "wait": StepType.DELAY,
}


def parse_step(raw: Any, index: int) -> Step:
    """Parse one stored step document into a typed step.

    Raises:
        ValidationException: If a known step type has an invalid config.
    """
    where = f"steps[{index}]"
    if not isinstance(raw, Mapping):
        raise ValidationException("Step must be an object", field=where)

    step_id = str(raw.get("id") or f"step_{index + 1}")
    config = raw.get("config") or {}
    if not isinstance(config, Mapping):
        raise ValidationException("Step config must be an object", field=f"{where}.config")
    continue_on_error = raw.get("continue_on_error", raw.get("continueOnError", True))
    if not isinstance(continue_on_error, bool):
        raise ValidationException(
            "continue_on_error must be a boolean", field=f"{where}.continue_on_error"
        )

    type_name = str(raw.get("type") or "")
    if type_name == "action":
        type_name = str(config.get("actionType") or raw.get("actionType") or "")
    step_type = _TYPE_ALIASES.get(type_name.lower())
    if step_type is None:
        return UnknownStep(
            id=step_id,
            type_name=type_name,
            raw=dict(raw),
            continue_on_error=continue_on_error,
        )

    # Older documents keep the step settings at the top level.
    def setting(*keys: str) -> Any:
        for key in keys:
            if config.get(key) is not None:
                return config[key]
            if raw.get(key) is not None:
                return raw[key]
        return None

    if step_type is StepType.SEND_SMS:
        return SmsStep(
            id=step_id,
            message=_required_text(setting("message", "body"), f"{where}.config.message"),
            continue_on_error=continue_on_error,
        )
    if step_type is StepType.SEND_EMAIL:
        return EmailStep(
            id=step_id,
            subject=_required_text(setting("subject"), f"{where}.config.subject"),
            body=_required_text(setting("body", "message"), f"{where}.config.body"),
            continue_on_error=continue_on_error,
        )
    if step_type is StepType.SEND_NOTIFICATION:
        title = setting("title")
        return NotificationStep(
            id=step_id,
            title=title if isinstance(title, str) and title.strip() else "Automation",
            message=_required_text(setting("message", "body"), f"{where}.config.message"),
            continue_on_error=continue_on_error,
        )
    value = _delay_value(setting("value", "delayValue", "delay"), f"{where}.config.value")
    unit = _delay_unit(setting("unit", "delayUnit", "delayType"), f"{where}.config.unit")
    if value * _UNIT_SECONDS[unit] > MAX_DELAY.total_seconds():
        raise ValidationException(
            f"Delay cannot exceed {MAX_DELAY.days} days", field=f"{where}.config.value"
        )
    return DelayStep(id=step_id, value=value, unit=unit, continue_on_error=continue_on_error)


def parse_steps(raw: Any) -> tuple[Step, ...]:
    """Parse the stored steps list. None is treated as an empty list."""
    if raw is None:
        return ()
    if not isinstance(raw, list):
        raise ValidationException("steps must be a list", field="steps")
    return tuple(parse_step(item, index) for index, item in enumerate(raw))


def step_to_document(step: Step) -> dict[str, Any]:
    """Serialize a step back to its canonical stored shape."""
    if isinstance(step, UnknownStep):
        return dict(step.raw)
    return {
        "id": step.id,
        "type": step.type.value,
        "config": step.config(),
        "continue_on_error": step.continue_on_error,
    }


def _required_text(value: Any, where: str) -> str:
    if not isinstance(value, str) or not value.strip():
        raise ValidationException("Expected a non-empty string", field=where)
    return value


def _delay_value(value: Any, where: str) -> float:
    if value is None:
        return 1.0
    if isinstance(value, bool):
        raise ValidationException("Delay value must be a number", field=where)
    try:
        number = float(value)
    except (TypeError, ValueError):
        raise ValidationException("Delay value must be a number", field=where) from None
    if not math.isfinite(number):
        raise ValidationException("Delay value must be a finite number", field=where)
    if number < 0:
        raise ValidationException("Delay value cannot be negative", field=where)
    return number


def _delay_unit(value: Any, where: str) -> DelayUnit:
    if value is None:
        return DelayUnit.SECONDS
    if isinstance(value, str):
        normalized = value.strip().lower()
        if not normalized.endswith("s"):
            normalized += "s"
        if normalized in DelayUnit.values():
            return DelayUnit(normalized)
    raise ValidationException(
        f"Delay unit must be one of {DelayUnit.values()}, got {value!r}", field=where
    )


# ---------------------------------------------------------------------------
# Workflow
# ---------------------------------------------------------------------------


@dataclass
class WorkflowEntity:
    """Domain entity for a workflow definition (trigger + ordered steps).

    definition_error is set when the stored steps or conditions could not be
    parsed; such a workflow never matches and cannot be run.
    """

    id: str
    name: str
    trigger_type: str
    status: WorkflowStatus
    steps: tuple[Step, ...]
    trigger_conditions: TriggerConditions
    user_id: str | None
    organization_id: str | None
    description: str | None = None
    execution_count: int = 0
    success_count: int = 0
    last_executed_at: datetime | None = None
    created_at: datetime | None = None
    updated_at: datetime | None = None
    definition_error: str | None = None

    @property
    def is_active(self) -> bool:
        return self.status == WorkflowStatus.ACTIVE

    @property
    def is_runnable(self) -> bool:
        """Active, well-formed and with at least one step."""
        return self.is_active and self.definition_error is None and bool(self.steps)

    def belongs_to(self, user_id: str | None, organization_id: str | None) -> bool:
        """Owner check: organization when the caller names one, else user."""
        if organization_id:
            return self.organization_id == organization_id
        if user_id:
            return self.user_id == user_id
        return False

    def can_trigger_on(self, trigger_type: str) -> bool:
        """Return whether this workflow is active and listens to trigger_type."""
        return self.is_active and self.trigger_type == trigger_type
