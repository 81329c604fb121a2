"""Builds the variable map templates are rendered against.

Loads the record a trigger event refers to (job, invoice, estimate or
client), its client, the owner's company profile and the assigned
technician, then flattens them into string variables. Read-only.
"""

from __future__ import annotations

from collections.abc import Awaitable, Callable, Mapping
from datetime import datetime, timedelta
from decimal import Decimal, InvalidOperation
from typing import Any
from zoneinfo import ZoneInfo

from fixlify.application.dtos.execution import VariableContext
from fixlify.application.dtos.trigger import TriggerEvent
from fixlify.application.interfaces.repositories import IEntityRepository, UnitOfWorkFactory
from fixlify.domain.entities.workflow import WorkflowEntity
from fixlify.domain.enums import EntityType
from fixlify.domain.exceptions import EntityNotFoundException
from fixlify.shared.telemetry.logging import get_logger
from fixlify.shared.utils.datetime import parse_datetime, utc_now

logger = get_logger(__name__)

KNOWN_VARIABLES: tuple[str, ...] = (
    "client_name",
    "client_first_name",
    "client_last_name",
    "client_email",
    "client_phone",
    "client_address",
    "job_id",
    "job_title",
    "job_description",
    "job_type",
    "job_status",
    "job_address",
    "scheduled_date",
    "scheduled_time",
    "technician_name",
    "invoice_number",
    "invoice_amount",
    "invoice_due_date",
    "company_name",
    "company_phone",
    "company_email",
    "company_address",
    "company_website",
    "current_date",
    "current_time",
    "tomorrow_date",
    "booking_link",
    "review_link",
    "payment_link",
)

DATE_FORMAT = "%b %d, %Y"
TIME_FORMAT = "%I:%M %p"

Row = dict[str, Any]


def _text(value: Any) -> str:
    if value is None:
        return ""
    return str(value).strip()


def _first(row: Mapping[str, Any], *keys: str) -> str:
    for key in keys:
        value = _text(row.get(key))
        if value:
            return value
    return ""


def _join_address(row: Mapping[str, Any]) -> str:
    parts = [_text(row.get(key)) for key in ("address", "city", "state", "zip")]
    return ", ".join(part for part in parts if part)


def _money(value: Any) -> str:
    if value is None or value == "":
        return ""
    try:
        return f"{Decimal(str(value)):.2f}"
    except (InvalidOperation, ValueError):
        return _text(value)


class VariableResolver:
    """Resolves the VariableContext for one run.

    A root record that the event references but that no longer exists
    raises EntityNotFoundException. Related records (client, company
    profile, technician) that are missing leave their variables empty.
    """

    def __init__(
        self,
        uow_factory: UnitOfWorkFactory,
        *,
        public_base_url: str = "",
        timezone: str | ZoneInfo = "UTC",
        clock: Callable[[], datetime] = utc_now,
    ) -> None:
        self._uow_factory = uow_factory
        self._base_url = public_base_url.rstrip("/")
        self._zone = timezone if isinstance(timezone, ZoneInfo) else ZoneInfo(timezone)
        self._clock = clock

    async def resolve(self, event: TriggerEvent, workflow: WorkflowEntity) -> VariableContext:
        async with self._uow_factory() as uow:
            entity, job, invoice, client = await self._load_root(uow.entities, event)

        if entity and not job and _text(entity.get("job_id")):
            job_id = _text(entity["job_id"])
            job = await self._related(f"job {job_id}", lambda repo: repo.get_job(job_id)) or {}
        client_id = _text(entity.get("client_id")) or _text(job.get("client_id"))
        if entity and not client and client_id:
            client = await self._related(f"client {client_id}", lambda repo: repo.get_client(client_id))
            if client is None:
                logger.warning(
                    "Client %s referenced by %s %s not found",
                    client_id,
                    event.entity_type,
                    event.entity_id,
                )
            client = client or {}

        company = await self._related(
            f"company profile of workflow {workflow.id}",
            lambda repo: repo.get_company_profile(workflow.user_id, workflow.organization_id),
        )
        if company is None:
            logger.warning(
                "No company profile for workflow %s owner; company variables left empty",
                workflow.id,
            )
        technician: Row | None = None
        technician_id = _text(job.get("technician_id"))
        if technician_id:
            technician = await self._related(
                f"technician {technician_id}", lambda repo: repo.get_profile(technician_id)
            )
            if technician is None:
                logger.warning("Technician %s not found for job %s", technician_id, job.get("id"))

        context = VariableContext(
            entity_type=event.entity_type if entity else None,
            entity=entity,
            client=client,
            company=company or {},
        )
        context.variables = self._build_variables(
            event, workflow, job, invoice, client, company or {}, technician or {}
        )
        return context

    async def _load_root(
        self, repo: IEntityRepository, event: TriggerEvent
    ) -> tuple[Row, Row, Row, Row]:
        """Return (root, job, invoice, client) with only the root record loaded.

        Raises:
            EntityNotFoundException: The event names a record that does not exist.
        """
        entity_type, entity_id = event.entity_type, event.entity_id
        if not entity_type or not entity_id:
            return {}, {}, {}, {}
        if entity_type == EntityType.JOB.value:
            job = await self._require(repo.get_job(entity_id), entity_type, entity_id)
            return job, job, {}, {}
        if entity_type == EntityType.INVOICE.value:
            invoice = await self._require(repo.get_invoice(entity_id), entity_type, entity_id)
            return invoice, {}, invoice, {}
        if entity_type == EntityType.ESTIMATE.value:
            estimate = await self._require(repo.get_estimate(entity_id), entity_type, entity_id)
            return estimate, {}, {}, {}
        if entity_type == EntityType.CLIENT.value:
            client = await self._require(repo.get_client(entity_id), entity_type, entity_id)
            return client, {}, {}, client
        logger.debug("No variable source for entity type %s", entity_type)
        return {}, {}, {}, {}

    async def _related(
        self, description: str, fetch: Callable[[IEntityRepository], Awaitable[Row | None]]
    ) -> Row | None:
        """Load a related record in its own unit of work; a failed lookup counts as missing."""
        try:
            async with self._uow_factory() as uow:
                return await fetch(uow.entities)
        except Exception:
            logger.warning("Lookup of %s failed; its variables are left empty", description, exc_info=True)
            return None

    @staticmethod
    async def _require(lookup: Any, entity_type: str, entity_id: str) -> Row:
        row = await lookup
        if row is None:
            raise EntityNotFoundException(entity_type, entity_id)
        return row

    def _format_date(self, value: Any) -> str:
        moment = parse_datetime(value)
        return moment.astimezone(self._zone).strftime(DATE_FORMAT) if moment else ""

    def _format_time(self, value: Any) -> str:
        moment = parse_datetime(value)
        return moment.astimezone(self._zone).strftime(TIME_FORMAT) if moment else ""

    def _link(self, path: str) -> str:
        return f"{self._base_url}{path}" if self._base_url else ""

    def _build_variables(
        self,
        event: TriggerEvent,
        workflow: WorkflowEntity,
        job: Row,
        invoice: Row,
        client: Row,
        company: Row,
        technician: Row,
    ) -> dict[str, str]:
        now = self._clock()
        local_now = now.astimezone(self._zone)

        full_name = _first(client, "name") or " ".join(
            part for part in (_text(client.get("first_name")), _text(client.get("last_name"))) if part
        )
        name_parts = full_name.split(maxsplit=1)
        first_name = _first(client, "first_name") or (name_parts[0] if name_parts else "")
        last_name = _first(client, "last_name") or (name_parts[1] if len(name_parts) > 1 else "")
        scheduled = job.get("schedule_start") or job.get("date")
        owner_key = workflow.organization_id or workflow.user_id or ""
        job_id = _text(job.get("id"))
        invoice_id = _text(invoice.get("id"))

        variables: dict[str, str] = {
            "client_name": full_name,
            "client_first_name": first_name,
            "client_last_name": last_name,
            "client_email": _first(client, "email"),
            "client_phone": _first(client, "phone"),
            "client_address": _join_address(client),
            "job_id": job_id,
            "job_title": _first(job, "title", "service"),
            "job_description": _first(job, "description"),
            "job_type": _first(job, "job_type", "service"),
            "job_status": _first(job, "status"),
            "job_address": _first(job, "address") or _join_address(client),
            "scheduled_date": self._format_date(scheduled),
            "scheduled_time": self._format_time(scheduled),
            "technician_name": _first(technician, "name"),
            "invoice_number": _first(invoice, "invoice_number", "number"),
            "invoice_amount": _money(invoice.get("total")),
            "invoice_due_date": self._format_date(invoice.get("due_date")),
            "company_name": _first(company, "company_name"),
            "company_phone": _first(company, "company_phone"),
            "company_email": _first(company, "company_email"),
            "company_address": _join_address(
                {
                    "address": company.get("company_address"),
                    "city": company.get("company_city"),
                    "state": company.get("company_state"),
                    "zip": company.get("company_zip"),
                }
            ),
            "company_website": _first(company, "company_website", "website"),
            "current_date": local_now.strftime(DATE_FORMAT),
            "current_time": local_now.strftime(TIME_FORMAT),
            "tomorrow_date": (local_now + timedelta(days=1)).strftime(DATE_FORMAT),
            "booking_link": self._link(f"/book/{owner_key}") if owner_key else "",
            "review_link": self._link(f"/review/{job_id or owner_key}") if (job_id or owner_key) else "",
            "payment_link": self._link(f"/portal/invoice/{invoice_id}" if invoice_id else "/portal"),
        }

        # Scalar payload values (e.g. days_overdue on time triggers) are usable
        # in templates but never shadow a known variable.
        for key, value in event.payload.items():
            if key not in variables and isinstance(value, (str, int, float)) and not isinstance(value, bool):
                variables[key] = str(value)
        return variables
