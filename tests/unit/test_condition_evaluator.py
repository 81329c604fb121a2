"""ConditionEvaluator and TriggerMatcher."""

import pytest

from fixlify.application.dtos.trigger import TriggerEvent
from fixlify.application.services.condition_evaluator import ConditionEvaluator
from fixlify.application.services.trigger_matcher import TriggerMatcher
from fixlify.domain.entities.workflow import Condition, TriggerConditions
from fixlify.domain.enums import ConditionOperator, WorkflowStatus
from tests.fakes import make_workflow

Op = ConditionOperator


@pytest.mark.parametrize(
    ("operator", "actual", "expected", "result"),
    [
        (Op.EQUALS, "completed", "completed", True),
        (Op.EQUALS, 5, "5", True),
        (Op.EQUALS, True, "true", True),
        (Op.NOT_EQUALS, "scheduled", "completed", True),
        (Op.CONTAINS, "Annual HVAC Maintenance", "maintenance", True),
        (Op.CONTAINS, ["vip", "maintenance"], "VIP", True),
        (Op.CONTAINS, ["vip"], "maint", False),
        (Op.GREATER_THAN, "150.50", 100, True),
        (Op.GREATER_THAN, 99, "100", False),
        (Op.LESS_THAN, 10, 20, True),
        (Op.GREATER_THAN, "abc", 1, False),
        (Op.IS_EMPTY, "  ", None, True),
        (Op.IS_EMPTY, [], None, True),
        (Op.IS_NOT_EMPTY, "x", None, True),
        (Op.IS_NOT_EMPTY, None, None, False),
    ],
)
def test_operator_semantics(operator, actual, expected, result) -> None:
    condition = Condition(field="f", operator=operator, value=expected)
    assert ConditionEvaluator().evaluate(condition, {"f": actual}) is result


@pytest.mark.parametrize("operator", list(ConditionOperator))
def test_missing_field_is_false_for_every_operator(operator) -> None:
    condition = Condition(field="absent", operator=operator, value="x")
    assert ConditionEvaluator().evaluate(condition, {"present": 1}) is False


def test_dotted_field_reads_nested_values() -> None:
    condition = Condition(field="client.city", operator=Op.EQUALS, value="Austin")
    assert ConditionEvaluator().evaluate(condition, {"client": {"city": "Austin"}})


def test_match_all_and_any() -> None:
    evaluator = ConditionEvaluator()
    rules = (
        Condition("status", Op.EQUALS, "paid"),
        Condition("total", Op.GREATER_THAN, 1000),
    )
    context = {"status": "paid", "total": 200}
    assert evaluator.evaluate_all(TriggerConditions(rules=rules), context) is False
    assert (
        evaluator.evaluate_all(TriggerConditions.parse({"match": "any", "rules": [
            {"field": "status", "operator": "equals", "value": "paid"},
            {"field": "total", "operator": "greater_than", "value": 1000},
        ]}), context)
        is True
    )


def test_no_rules_always_match() -> None:
    assert ConditionEvaluator().evaluate_all(TriggerConditions(), {}) is True


def _job_event(**overrides) -> TriggerEvent:
    values = {
        "trigger_type": "job_status_changed",
        "entity_type": "job",
        "entity_id": "job_1",
        "user_id": "user_1",
        "organization_id": "org_1",
        "previous_status": "scheduled",
        "new_status": "completed",
        "current": {"id": "job_1", "status": "completed", "job_type": "repair"},
    }
    values.update(overrides)
    return TriggerEvent(**values)


def test_matcher_requires_type_owner_status_and_conditions() -> None:
    matcher = TriggerMatcher()
    event = _job_event()
    conditions = [{"field": "status", "operator": "equals", "value": "completed"}]

    assert matcher.matches(make_workflow(trigger_type="job_status_changed", conditions=conditions), event)
    assert not matcher.matches(make_workflow(trigger_type="job_created"), event)
    assert not matcher.matches(
        make_workflow(trigger_type="job_status_changed", status=WorkflowStatus.PAUSED), event
    )
    assert not matcher.matches(
        make_workflow(trigger_type="job_status_changed", organization_id="org_2"), event
    )
    assert not matcher.matches(
        make_workflow(
            trigger_type="job_status_changed",
            conditions=[{"field": "status", "operator": "equals", "value": "cancelled"}],
        ),
        event,
    )


def test_matcher_scopes_by_user_when_event_has_no_organization() -> None:
    matcher = TriggerMatcher()
    event = _job_event(organization_id=None)
    assert matcher.matches(make_workflow(trigger_type="job_status_changed", organization_id=None), event)
    assert not matcher.matches(
        make_workflow(trigger_type="job_status_changed", user_id="user_2", organization_id=None), event
    )


def test_matcher_new_status_wins_over_current_row() -> None:
    event = _job_event(current={"id": "job_1", "status": "stale"})
    workflow = make_workflow(
        trigger_type="job_status_changed",
        conditions=[{"field": "status", "operator": "equals", "value": "completed"}],
    )
    assert TriggerMatcher().matches(workflow, event)


def test_matcher_rejects_workflow_with_invalid_definition() -> None:
    workflow = make_workflow(
        trigger_type="job_status_changed", definition_error="invalid steps: Step must be an object"
    )
    assert TriggerMatcher().select([workflow], _job_event()) == []


def test_completed_status_rule_fires_only_on_completed() -> None:
    workflow = make_workflow(
        trigger_type="job_status_changed",
        conditions=[{"field": "status", "operator": "equals", "value": "completed"}],
    )
    completed = TriggerEvent(
        trigger_type="job_status_changed", entity_type="job", new_status="completed",
        user_id="user_1", organization_id="org_1",
    )
    scheduled = TriggerEvent(
        trigger_type="job_status_changed", entity_type="job", new_status="scheduled",
        user_id="user_1", organization_id="org_1",
    )
    assert TriggerMatcher().matches(workflow, completed)
    assert not TriggerMatcher().matches(workflow, scheduled)


def test_empty_conditions_match_any_event_of_the_trigger_type() -> None:
    workflow = make_workflow(trigger_type="invoice_paid", conditions=[])
    for current in ({}, {"status": "paid"}, {"total": 0}):
        event = TriggerEvent(
            trigger_type="invoice_paid", user_id="user_1", organization_id="org_1", current=current
        )
        assert TriggerMatcher().matches(workflow, event)


def test_trigger_data_entity_reference_is_normalised_to_text() -> None:
    explicit = TriggerEvent.from_trigger_data("job_created", {"entityType": "job", "entityId": 42})
    assert (explicit.entity_type, explicit.entity_id) == ("job", "42")

    by_key = TriggerEvent.from_trigger_data("invoice_paid", {"invoice_id": 7})
    assert (by_key.entity_type, by_key.entity_id) == ("invoice", "7")

    incomplete = TriggerEvent.from_trigger_data("job_created", {"entity_id": 42})
    assert (incomplete.entity_type, incomplete.entity_id) == (None, None)
