"""Turns a database row change into trigger events.

Input is the database-webhook shape: the table name plus the old and new
row (old is None on insert). Ownership comes from the row itself.
"""

from __future__ import annotations

from collections.abc import Mapping
from typing import Any

from fixlify.application.dtos.trigger import TriggerEvent
from fixlify.domain.enums import EntityType, TriggerType
from fixlify.shared.utils.datetime import parse_datetime

_TABLE_ENTITY: dict[str, EntityType] = {
    "jobs": EntityType.JOB,
    "clients": EntityType.CLIENT,
    "invoices": EntityType.INVOICE,
    "estimates": EntityType.ESTIMATE,
}

_PAID_STATUSES = frozenset({"paid"})
_COMPLETED_STATUSES = frozenset({"completed"})


def _status(row: Mapping[str, Any] | None) -> str | None:
    if not row:
        return None
    value = row.get("status")
    return str(value).lower() if value is not None else None


def derive_trigger_events(
    table: str,
    old: Mapping[str, Any] | None,
    new: Mapping[str, Any] | None,
) -> list[TriggerEvent]:
    """Return the trigger events implied by a row change; empty when nothing applies.

    jobs: job_created on insert; on update job_status_changed when the
    status changes (plus job_completed when it becomes completed) and
    job_scheduled when the schedule start moves.
    clients: client_created on insert.
    invoices: invoice_created on insert; invoice_status_changed, and
    invoice_paid and payment_received when the status becomes paid.
    estimates: estimate_created and estimate_status_changed.
    """
    entity_type = _TABLE_ENTITY.get(table)
    if entity_type is None or not new:
        return []

    current = dict(new)
    previous = dict(old) if old else {}
    old_status, new_status = _status(old), _status(new)
    is_insert = old is None

    def event(trigger: TriggerType) -> TriggerEvent:
        return TriggerEvent(
            trigger_type=trigger.value,
            entity_type=entity_type.value,
            entity_id=str(current.get("id")) if current.get("id") is not None else None,
            user_id=current.get("user_id") or current.get("created_by"),
            organization_id=current.get("organization_id"),
            previous_status=old_status,
            new_status=new_status,
            previous=previous,
            current=current,
        )

    status_changed = not is_insert and old_status != new_status
    triggers: list[TriggerType] = []
    match entity_type:
        case EntityType.JOB:
            if is_insert:
                triggers.append(TriggerType.JOB_CREATED)
            else:
                if status_changed:
                    triggers.append(TriggerType.JOB_STATUS_CHANGED)
                    if new_status in _COMPLETED_STATUSES:
                        triggers.append(TriggerType.JOB_COMPLETED)
                before = parse_datetime(previous.get("schedule_start"))
                after = parse_datetime(current.get("schedule_start"))
                if after is not None and after != before:
                    triggers.append(TriggerType.JOB_SCHEDULED)
        case EntityType.CLIENT:
            if is_insert:
                triggers.append(TriggerType.CLIENT_CREATED)
        case EntityType.INVOICE:
            if is_insert:
                triggers.append(TriggerType.INVOICE_CREATED)
            elif status_changed:
                triggers.append(TriggerType.INVOICE_STATUS_CHANGED)
                if new_status in _PAID_STATUSES:
                    triggers.extend((TriggerType.INVOICE_PAID, TriggerType.PAYMENT_RECEIVED))
        case EntityType.ESTIMATE:
            if is_insert:
                triggers.append(TriggerType.ESTIMATE_CREATED)
            elif status_changed:
                triggers.append(TriggerType.ESTIMATE_STATUS_CHANGED)
    return [event(trigger) for trigger in triggers]
