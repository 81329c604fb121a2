"""Scheduler poll: time-based triggers and delay resumption."""

from datetime import UTC, datetime, timedelta

import pytest

from fixlify.application.services.trigger_matcher import TriggerMatcher
from fixlify.application.use_cases import PollScheduledTriggersUseCase
from fixlify.application.use_cases.poll_scheduled_triggers import months_before
from fixlify.domain.entities.workflow import parse_steps
from fixlify.domain.enums import ExecutionStatus
from tests.fakes import FakeEntityRepository, make_workflow

OWNER = {"user_id": "user_1", "organization_id": "org_1"}


def _notify(message: str):
    return parse_steps([{"type": "send_notification", "config": {"message": message}}])


@pytest.fixture
def poller(uow_factory, runner, clock) -> PollScheduledTriggersUseCase:
    return PollScheduledTriggersUseCase(uow_factory, TriggerMatcher(), runner, clock=clock)


async def test_overdue_threshold(store, poller, clock) -> None:
    now = clock()
    store.invoices["inv_old"] = {
        "id": "inv_old", "invoice_number": "INV-1", "status": "sent",
        "due_date": now - timedelta(days=10), **OWNER,
    }
    store.invoices["inv_recent"] = {
        "id": "inv_recent", "invoice_number": "INV-2", "status": "sent",
        "due_date": now - timedelta(days=3), **OWNER,
    }
    store.invoices["inv_paid"] = {
        "id": "inv_paid", "invoice_number": "INV-3", "status": "paid",
        "due_date": now - timedelta(days=30), **OWNER,
    }
    store.add_workflow(
        make_workflow(
            trigger_type="invoice_overdue",
            steps=_notify("{{invoice_number}} is past {{days_overdue}} days"),
            conditions={"schedule": {"days_overdue": 7}},
        )
    )

    result = await poller.execute()

    assert result.processed_count == 1
    assert result.total_checked == 1
    assert result.errors == []
    assert [n.message for n in store.notifications] == ["INV-1 is past 7 days"]
    (entry,) = store.executions.values()
    assert entry.trigger_type == "invoice_overdue"
    assert entry.trigger_data["entity_id"] == "inv_old"
    payload = entry.trigger_data["payload"]
    assert payload["days_overdue"] == 7
    assert payload["check_time"] == now.isoformat()
    assert [row["id"] for row in payload["overdue_invoices"]] == ["inv_old"]


async def test_default_thresholds_for_jobs_and_clients(store, poller, clock) -> None:
    now = clock()
    store.jobs["job_done"] = {
        "id": "job_done", "title": "Repair", "status": "completed",
        "updated_at": now - timedelta(days=1), **OWNER,
    }
    store.jobs["job_service"] = {
        "id": "job_service", "title": "Tune-up", "status": "completed", "tags": ["maintenance"],
        "updated_at": now - timedelta(days=220), **OWNER,
    }
    store.clients["client_quiet"] = {
        "id": "client_quiet", "name": "Quiet", "updated_at": now - timedelta(days=45), **OWNER,
    }
    store.clients["client_recent"] = {
        "id": "client_recent", "name": "Recent", "updated_at": now - timedelta(days=2), **OWNER,
    }
    store.add_workflow(make_workflow("wf_follow", trigger_type="job_follow_up", steps=_notify("follow {{job_title}}")))
    store.add_workflow(
        make_workflow("wf_maint", trigger_type="maintenance_reminder", steps=_notify("service {{job_title}}"))
    )
    store.add_workflow(make_workflow("wf_check", trigger_type="client_check_in", steps=_notify("call {{client_name}}")))

    result = await poller.execute()

    assert result.total_checked == 3
    assert result.processed_count == 3
    assert sorted(n.message for n in store.notifications) == [
        "call Quiet",
        "follow Repair",
        "service Tune-up",
    ]


async def test_scheduled_time_fires_within_tolerance(store, poller, clock) -> None:
    now = clock()
    store.add_workflow(
        make_workflow(
            "wf_soon",
            trigger_type="scheduled_time",
            steps=_notify("tick"),
            conditions={"scheduled_time": (now + timedelta(seconds=30)).isoformat()},
        )
    )
    store.add_workflow(
        make_workflow(
            "wf_later",
            trigger_type="scheduled_time",
            steps=_notify("later"),
            conditions={"scheduled_time": (now + timedelta(minutes=5)).isoformat()},
        )
    )
    store.add_workflow(make_workflow("wf_unset", trigger_type="scheduled_time", steps=_notify("never")))

    result = await poller.execute()

    assert result.total_checked == 3
    assert result.processed_count == 1
    assert [n.message for n in store.notifications] == ["tick"]


async def test_failing_kind_does_not_block_the_others(store, poller, clock) -> None:
    store.failing_trigger_types.add("invoice_overdue")
    store.clients["client_quiet"] = {
        "id": "client_quiet", "name": "Quiet", "updated_at": clock() - timedelta(days=90), **OWNER,
    }
    store.add_workflow(make_workflow("wf_check", trigger_type="client_check_in", steps=_notify("call")))

    result = await poller.execute()

    assert result.processed_count == 1
    assert result.errors == [
        {"triggerType": "invoice_overdue", "error": "query for invoice_overdue failed"}
    ]
    assert result.to_dict()["errors"] == result.errors


async def test_failing_workflow_check_is_reported_with_its_id(
    store, poller, clock, monkeypatch
) -> None:
    async def broken(self, *args, **kwargs):
        raise RuntimeError("jobs query timed out")

    monkeypatch.setattr(FakeEntityRepository, "find_completed_jobs", broken)
    store.clients["client_quiet"] = {
        "id": "client_quiet", "name": "Quiet", "updated_at": clock() - timedelta(days=90), **OWNER,
    }
    store.add_workflow(make_workflow("wf_follow", trigger_type="job_follow_up", steps=_notify("x")))
    store.add_workflow(make_workflow("wf_check", trigger_type="client_check_in", steps=_notify("call")))

    result = await poller.execute()

    assert result.processed_count == 1
    assert result.errors == [
        {"triggerType": "job_follow_up", "workflowId": "wf_follow", "error": "jobs query timed out"}
    ]


async def test_due_continuations_are_resumed(store, runner, poller, clock) -> None:
    store.jobs["job_1"] = {"id": "job_1", "title": "AC repair"}
    store.add_workflow(
        make_workflow(
            steps=parse_steps(
                [
                    {"type": "delay", "config": {"value": 10, "unit": "minutes"}},
                    {"type": "send_notification", "config": {"message": "after delay"}},
                ]
            )
        )
    )
    entry = await runner.execute("wf_1", trigger_data={"job_id": "job_1"})

    early = await poller.execute()
    assert early.resumed_count == 0
    assert store.notifications == []

    clock.advance(minutes=10)
    result = await poller.execute()

    assert result.resumed_count == 1
    assert store.executions[entry.id].status is ExecutionStatus.COMPLETED
    assert [n.message for n in store.notifications] == ["after delay"]

    again = await poller.execute()
    assert again.resumed_count == 0


async def test_poll_result_dict(poller, clock) -> None:
    data = (await poller.execute()).to_dict()
    assert data == {
        "success": True,
        "processedCount": 0,
        "resumedCount": 0,
        "totalChecked": 0,
        "timestamp": clock().isoformat(),
    }


@pytest.mark.parametrize(
    ("moment", "months", "expected"),
    [
        (datetime(2026, 8, 31, tzinfo=UTC), 6, datetime(2026, 2, 28, tzinfo=UTC)),
        (datetime(2026, 3, 2, tzinfo=UTC), 6, datetime(2025, 9, 2, tzinfo=UTC)),
        (datetime(2026, 1, 15, tzinfo=UTC), 13, datetime(2024, 12, 15, tzinfo=UTC)),
    ],
)
def test_months_before(moment, months, expected) -> None:
    assert months_before(moment, months) == expected


async def test_two_minute_delay_not_resumed_early_and_other_runs_unblocked(
    store, runner, poller, clock
) -> None:
    store.jobs["job_1"] = {"id": "job_1", "title": "AC repair"}
    store.add_workflow(
        make_workflow(
            "wf_delay",
            steps=parse_steps(
                [
                    {"type": "delay", "config": {"value": 2, "unit": "minutes"}},
                    {"type": "send_notification", "config": {"message": "late"}},
                ]
            ),
        )
    )
    store.add_workflow(make_workflow("wf_now", steps=_notify("now")))

    delayed = await runner.execute("wf_delay", trigger_data={"job_id": "job_1"})
    immediate = await runner.execute("wf_now", trigger_data={"job_id": "job_1"})

    assert delayed.status is ExecutionStatus.STARTED
    assert immediate.status is ExecutionStatus.COMPLETED
    assert [n.message for n in store.notifications] == ["now"]

    clock.advance(seconds=119)
    assert (await poller.execute()).resumed_count == 0
    assert [n.message for n in store.notifications] == ["now"]

    clock.advance(seconds=1)
    assert (await poller.execute()).resumed_count == 1
    assert [n.message for n in store.notifications] == ["now", "late"]
