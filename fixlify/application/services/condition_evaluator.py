"""Evaluation of trigger condition rules against an event's field map."""

from __future__ import annotations

from collections.abc import Mapping
from decimal import Decimal, InvalidOperation
from typing import Any

from fixlify.domain.entities.workflow import Condition, TriggerConditions
from fixlify.domain.enums import ConditionMatch, ConditionOperator
from fixlify.shared.telemetry.logging import get_logger

logger = get_logger(__name__)

_MISSING = object()


def _lookup(context: Mapping[str, Any], field: str) -> Any:
    """Return the value at field, following dots into nested mappings; _MISSING if absent."""
    if field in context:
        return context[field]
    current: Any = context
    for part in field.split("."):
        if not isinstance(current, Mapping) or part not in current:
            return _MISSING
        current = current[part]
    return current


def _as_text(value: Any) -> str:
    if isinstance(value, bool):
        return "true" if value else "false"
    if value is None:
        return ""
    return str(value)


def _as_number(value: Any) -> Decimal | None:
    if isinstance(value, bool) or value is None:
        return None
    try:
        number = Decimal(str(value).strip())
    except (InvalidOperation, ValueError):
        return None
    return number if number.is_finite() else None


def _is_empty(value: Any) -> bool:
    if value is None:
        return True
    if isinstance(value, str):
        return not value.strip()
    if isinstance(value, (list, tuple, set, dict)):
        return len(value) == 0
    return False


class ConditionEvaluator:
    """Evaluates conditions with the comparison rules workflows are authored against.

    equals/not_equals compare string forms; contains is a case-insensitive
    substring test (membership for lists); greater_than/less_than compare
    numerically and are False for non-numeric operands. A field absent from
    the event makes the condition False whatever the operator.
    """

    def evaluate(self, condition: Condition, context: Mapping[str, Any]) -> bool:
        actual = _lookup(context, condition.field)
        if actual is _MISSING:
            return False
        expected = condition.value
        match condition.operator:
            case ConditionOperator.EQUALS:
                return _as_text(actual) == _as_text(expected)
            case ConditionOperator.NOT_EQUALS:
                return _as_text(actual) != _as_text(expected)
            case ConditionOperator.CONTAINS:
                return self._contains(actual, expected)
            case ConditionOperator.GREATER_THAN | ConditionOperator.LESS_THAN:
                left, right = _as_number(actual), _as_number(expected)
                if left is None or right is None:
                    return False
                if condition.operator is ConditionOperator.GREATER_THAN:
                    return left > right
                return left < right
            case ConditionOperator.IS_EMPTY:
                return _is_empty(actual)
            case ConditionOperator.IS_NOT_EMPTY:
                return not _is_empty(actual)
        logger.warning("Unsupported condition operator %r; treating as no match", condition.operator)
        return False

    def evaluate_all(self, conditions: TriggerConditions, context: Mapping[str, Any]) -> bool:
        """Combine rule results per conditions.match. No rules always matches."""
        if not conditions.rules:
            return True
        results = (self.evaluate(rule, context) for rule in conditions.rules)
        if conditions.match is ConditionMatch.ANY:
            return any(results)
        return all(results)

    @staticmethod
    def _contains(actual: Any, expected: Any) -> bool:
        if expected is None:
            return False
        needle = _as_text(expected).lower()
        if isinstance(actual, (list, tuple, set)):
            return any(_as_text(item).lower() == needle for item in actual)
        return needle in _as_text(actual).lower()
