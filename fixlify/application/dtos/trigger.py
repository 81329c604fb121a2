"""Trigger event DTO: what happened, to which record, for which owner."""

from collections.abc import Mapping
from dataclasses import dataclass, field
from typing import Any

from fixlify.domain.enums import EntityType
from fixlify.shared.utils.serialization import to_jsonable

# Keys that name the record a direct trigger refers to, most specific first.
_ENTITY_REFERENCE_KEYS: tuple[tuple[EntityType, tuple[str, ...]], ...] = (
    (EntityType.JOB, ("job_id", "jobId")),
    (EntityType.INVOICE, ("invoice_id", "invoiceId")),
    (EntityType.ESTIMATE, ("estimate_id", "estimateId")),
    (EntityType.CLIENT, ("client_id", "clientId")),
)


@dataclass(frozen=True)
class TriggerEvent:
    """A domain event or poll tick that may start workflows.

    previous and current are row snapshots (empty for time triggers);
    payload carries synthetic data such as a time trigger's parameters.
    """

    trigger_type: str
    entity_type: str | None = None
    entity_id: str | None = None
    user_id: str | None = None
    organization_id: str | None = None
    previous_status: str | None = None
    new_status: str | None = None
    previous: dict[str, Any] = field(default_factory=dict)
    current: dict[str, Any] = field(default_factory=dict)
    payload: dict[str, Any] = field(default_factory=dict)
    is_test: bool = False

    def condition_context(self) -> dict[str, Any]:
        """Flat field map that condition rules are evaluated against.

        Payload first, then the current row, then status fields, so that
        status always reflects the transition the event describes.
        """
        context: dict[str, Any] = dict(self.payload)
        context.update(self.current)
        if self.entity_type is not None:
            context.setdefault("entity_type", self.entity_type)
        if self.previous_status is not None:
            context["previous_status"] = self.previous_status
        if self.new_status is not None:
            context["new_status"] = self.new_status
            context["status"] = self.new_status
        return context

    def snapshot(self) -> dict[str, Any]:
        """JSON document stored as an execution's trigger_data."""
        return to_jsonable(
            {
                "trigger_type": self.trigger_type,
                "entity_type": self.entity_type,
                "entity_id": self.entity_id,
                "user_id": self.user_id,
                "organization_id": self.organization_id,
                "previous_status": self.previous_status,
                "new_status": self.new_status,
                "previous": self.previous,
                "current": self.current,
                "payload": self.payload,
                "is_test": self.is_test,
            }
        )

    @classmethod
    def from_snapshot(cls, data: Mapping[str, Any]) -> "TriggerEvent":
        """Rebuild an event from stored trigger_data (used when a delay resumes)."""
        return cls(
            trigger_type=str(data.get("trigger_type") or ""),
            entity_type=data.get("entity_type"),
            entity_id=data.get("entity_id"),
            user_id=data.get("user_id"),
            organization_id=data.get("organization_id"),
            previous_status=data.get("previous_status"),
            new_status=data.get("new_status"),
            previous=dict(data.get("previous") or {}),
            current=dict(data.get("current") or {}),
            payload=dict(data.get("payload") or {}),
            is_test=bool(data.get("is_test", False)),
        )

    @classmethod
    def from_trigger_data(
        cls,
        trigger_type: str,
        data: Mapping[str, Any] | None,
        *,
        user_id: str | None = None,
        organization_id: str | None = None,
    ) -> "TriggerEvent":
        """Build an event from the loose triggerData of a direct execute call.

        The referenced record is taken from explicit entity_type/entity_id or
        from the first of job_id, invoice_id, estimate_id, client_id present.
        """
        data = dict(data or {})
        entity_type = data.get("entity_type") or data.get("entityType")
        entity_id = data.get("entity_id") or data.get("entityId")
        if entity_type and entity_id:
            entity_type, entity_id = str(entity_type), str(entity_id)
        else:
            entity_type, entity_id = None, None
            for candidate, keys in _ENTITY_REFERENCE_KEYS:
                value = next((data[key] for key in keys if data.get(key)), None)
                if value:
                    entity_type, entity_id = candidate.value, str(value)
                    break
        return cls(
            trigger_type=trigger_type,
            entity_type=entity_type,
            entity_id=entity_id,
            user_id=user_id or data.get("user_id") or data.get("userId"),
            organization_id=organization_id or data.get("organization_id"),
            previous_status=data.get("previous_status") or data.get("old_status"),
            new_status=data.get("new_status") or data.get("newStatus") or data.get("status"),
            payload=data,
            is_test=bool(data.get("is_test") or data.get("isTest")),
        )
