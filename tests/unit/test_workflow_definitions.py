"""Parsing of stored step lists and trigger condition documents."""

from datetime import UTC, datetime, timedelta

import pytest

from fixlify.domain.entities.workflow import (
    DelayStep,
    EmailStep,
    NotificationStep,
    SmsStep,
    TriggerConditions,
    UnknownStep,
    parse_step,
    parse_steps,
    step_to_document,
)
from fixlify.domain.enums import ConditionMatch, ConditionOperator, DelayUnit
from fixlify.domain.exceptions import ValidationException


class TestParseStep:
    def test_sms_step_with_config(self) -> None:
        step = parse_step({"id": "s1", "type": "send_sms", "config": {"message": "Hi {{client_name}}"}}, 0)
        assert step == SmsStep(id="s1", message="Hi {{client_name}}")

    def test_legacy_action_shape_and_top_level_settings(self) -> None:
        step = parse_step(
            {"type": "action", "actionType": "email", "subject": "Invoice", "body": "Due soon"}, 2
        )
        assert isinstance(step, EmailStep)
        assert step.id == "step_3"
        assert step.subject == "Invoice"
        assert step.body == "Due soon"

    def test_notification_title_defaults(self) -> None:
        step = parse_step({"type": "notification", "config": {"message": "Job done"}}, 0)
        assert isinstance(step, NotificationStep)
        assert step.title == "Automation"

    @pytest.mark.parametrize(
        ("config", "seconds"),
        [
            ({"value": 2, "unit": "hours"}, 7200),
            ({"delayValue": 1, "delayType": "day"}, 86400),
            ({"value": 30, "unit": "minute"}, 1800),
            ({}, 1),
            ({"value": 0}, 0),
        ],
    )
    def test_delay_duration(self, config, seconds) -> None:
        step = parse_step({"type": "wait", "config": config}, 0)
        assert isinstance(step, DelayStep)
        assert step.duration == timedelta(seconds=seconds)

    def test_unknown_type_is_kept_not_rejected(self) -> None:
        raw = {"id": "x", "type": "send_fax", "config": {"to": "123"}}
        step = parse_step(raw, 0)
        assert isinstance(step, UnknownStep)
        assert step.type_name == "send_fax"
        assert step_to_document(step) == raw

    @pytest.mark.parametrize(
        "raw",
        [
            "not a step",
            {"type": "send_sms", "config": {}},
            {"type": "send_email", "config": {"subject": "x"}},
            {"type": "delay", "config": {"value": -1}},
            {"type": "delay", "config": {"unit": "fortnights"}},
            {"type": "send_sms", "config": {"message": "x"}, "continue_on_error": "no"},
            {"type": "send_sms", "config": ["message"]},
        ],
    )
    def test_invalid_known_steps_rejected(self, raw) -> None:
        with pytest.raises(ValidationException):
            parse_step(raw, 0)

    @pytest.mark.parametrize(
        "config",
        [
            {"value": "inf", "unit": "days"},
            {"value": "nan"},
            {"value": 1e9, "unit": "days"},
            {"value": 366, "unit": "days"},
        ],
    )
    def test_unbounded_delays_rejected(self, config) -> None:
        with pytest.raises(ValidationException) as exc_info:
            parse_step({"type": "delay", "config": config}, 0)
        assert exc_info.value.details["field"] == "steps[0].config.value"

    def test_delay_of_a_year_is_accepted(self) -> None:
        step = parse_step({"type": "delay", "config": {"value": 365, "unit": "days"}}, 0)
        assert step.duration == timedelta(days=365)

    def test_continue_on_error_camel_case(self) -> None:
        step = parse_step(
            {"type": "send_sms", "config": {"message": "x"}, "continueOnError": False}, 0
        )
        assert step.continue_on_error is False

    def test_canonical_document(self) -> None:
        step = parse_step({"id": "d", "type": "delay", "config": {"value": "2", "unit": "days"}}, 0)
        assert step_to_document(step) == {
            "id": "d",
            "type": "delay",
            "config": {"value": 2, "unit": "days"},
            "continue_on_error": True,
        }


def test_parse_steps_none_and_non_list() -> None:
    assert parse_steps(None) == ()
    with pytest.raises(ValidationException):
        parse_steps({"type": "send_sms"})


class TestTriggerConditions:
    def test_none_and_list(self) -> None:
        assert TriggerConditions.parse(None).rules == ()
        parsed = TriggerConditions.parse([{"field": "status", "operator": "==", "value": "paid"}])
        assert parsed.rules[0].operator is ConditionOperator.EQUALS
        assert parsed.match is ConditionMatch.ALL

    def test_legacy_or_operator(self) -> None:
        parsed = TriggerConditions.parse(
            {"operator": "OR", "conditions": [{"field": "a", "operator": "is_empty"}]}
        )
        assert parsed.match is ConditionMatch.ANY
        assert parsed.rules[0].value is None

    def test_flat_schedule_keys(self) -> None:
        parsed = TriggerConditions.parse(
            {"days_overdue": "10", "scheduled_time": "2026-03-02T15:30:00Z"}
        )
        assert parsed.schedule.days_overdue == 10
        assert parsed.schedule.scheduled_time == datetime(2026, 3, 2, 15, 30, tzinfo=UTC)

    def test_document_round_trip_keeps_version(self) -> None:
        raw = {
            "version": 1,
            "match": "any",
            "rules": [{"field": "total", "operator": "greater_than", "value": 500}],
            "schedule": {"days_overdue": 14},
        }
        assert TriggerConditions.parse(raw).to_document() == raw

    @pytest.mark.parametrize(
        "raw",
        [
            "status=paid",
            {"version": 2, "rules": []},
            {"match": "most"},
            {"operator": "XOR"},
            {"rules": "status"},
            {"rules": [{"field": "", "operator": "equals", "value": 1}]},
            {"rules": [{"field": "a", "operator": "like", "value": 1}]},
            {"rules": [{"field": "a", "operator": "equals"}]},
            {"rules": [{"field": "a", "operator": "equals", "value": {"x": 1}}]},
            {"schedule": {"days_overdue": -3}},
            {"schedule": {"days_overdue": True}},
            {"schedule": {"scheduled_time": "tomorrow"}},
        ],
    )
    def test_malformed_documents_rejected(self, raw) -> None:
        with pytest.raises(ValidationException):
            TriggerConditions.parse(raw)


def test_delay_unit_values() -> None:
    assert DelayUnit.values() == ["seconds", "minutes", "hours", "days"]
