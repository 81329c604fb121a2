"""Read access to jobs, invoices, estimates, clients and profiles as plain rows."""

from __future__ import annotations

from datetime import datetime
from typing import Any

from sqlalchemy import func, or_, select
from sqlalchemy.ext.asyncio import AsyncSession

from fixlify.infrastructure.persistence.models.business import (
    Client,
    Estimate,
    Invoice,
    Job,
    Profile,
)
from fixlify.infrastructure.persistence.repositories.base import row_to_dict

MAINTENANCE_TAG = "maintenance"
QUERY_LIMIT = 500

Row = dict[str, Any]


def _owned_by(model: Any, user_id: str | None, organization_id: str | None) -> list:
    if organization_id:
        return [model.organization_id == organization_id]
    if user_id:
        return [model.user_id == user_id]
    # No owner: match nothing rather than every owner's rows.
    return [model.id.is_(None)]


class EntityRepository:
    """Entity repository (IEntityRepository). Read-only."""

    def __init__(self, db: AsyncSession) -> None:
        self.db = db

    async def _one(self, model: Any, entity_id: str) -> Row | None:
        result = await self.db.execute(select(model).where(model.id == entity_id))
        row = result.scalar_one_or_none()
        return row_to_dict(row) if row else None

    async def _many(self, stmt: Any) -> list[Row]:
        result = await self.db.execute(stmt.limit(QUERY_LIMIT))
        return [row_to_dict(row) for row in result.scalars().all()]

    async def get_job(self, job_id: str) -> Row | None:
        return await self._one(Job, job_id)

    async def get_invoice(self, invoice_id: str) -> Row | None:
        return await self._one(Invoice, invoice_id)

    async def get_estimate(self, estimate_id: str) -> Row | None:
        return await self._one(Estimate, estimate_id)

    async def get_client(self, client_id: str) -> Row | None:
        return await self._one(Client, client_id)

    async def get_profile(self, user_id: str) -> Row | None:
        return await self._one(Profile, user_id)

    async def get_company_profile(
        self, user_id: str | None, organization_id: str | None
    ) -> Row | None:
        if user_id:
            profile = await self._one(Profile, user_id)
            if profile is not None:
                return profile
        if organization_id:
            result = await self.db.execute(
                select(Profile)
                .where(Profile.organization_id == organization_id, Profile.company_name.is_not(None))
                .order_by(Profile.created_at.asc())
                .limit(1)
            )
            row = result.scalar_one_or_none()
            return row_to_dict(row) if row else None
        return None

    async def find_overdue_invoices(
        self, user_id: str | None, organization_id: str | None, due_before: datetime
    ) -> list[Row]:
        return await self._many(
            select(Invoice)
            .where(
                *_owned_by(Invoice, user_id, organization_id),
                Invoice.status == "sent",
                Invoice.due_date < due_before,
            )
            .order_by(Invoice.due_date.asc())
        )

    async def find_completed_jobs(
        self, user_id: str | None, organization_id: str | None, updated_since: datetime
    ) -> list[Row]:
        return await self._many(
            select(Job)
            .where(
                *_owned_by(Job, user_id, organization_id),
                Job.status == "completed",
                Job.updated_at >= updated_since,
            )
            .order_by(Job.updated_at.asc())
        )

    async def find_maintenance_jobs(
        self, user_id: str | None, organization_id: str | None, updated_before: datetime
    ) -> list[Row]:
        return await self._many(
            select(Job)
            .where(
                *_owned_by(Job, user_id, organization_id),
                or_(
                    Job.tags.any(MAINTENANCE_TAG),
                    func.lower(Job.job_type) == MAINTENANCE_TAG,
                ),
                Job.updated_at < updated_before,
            )
            .order_by(Job.updated_at.asc())
        )

    async def find_clients_without_contact(
        self, user_id: str | None, organization_id: str | None, updated_before: datetime
    ) -> list[Row]:
        return await self._many(
            select(Client)
            .where(
                *_owned_by(Client, user_id, organization_id),
                Client.updated_at < updated_before,
            )
            .order_by(Client.updated_at.asc())
        )
