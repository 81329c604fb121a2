"""Business records the automations read: jobs, clients, invoices, estimates, profiles.

These tables belong to the wider field-service application; only the
columns the automation pipeline reads are mapped.
"""

from datetime import datetime
from decimal import Decimal

from sqlalchemy import DateTime, Numeric, String, Text
from sqlalchemy.dialects.postgresql import ARRAY
from sqlalchemy.orm import Mapped, mapped_column

from fixlify.infrastructure.persistence.database import Base
from fixlify.infrastructure.persistence.models.mixins import OwnerMixin, TimestampMixin


class Client(OwnerMixin, TimestampMixin, Base):
    """Customer of the business. Table: clients."""

    __tablename__ = "clients"

    id: Mapped[str] = mapped_column(String, primary_key=True)
    name: Mapped[str | None] = mapped_column(String, nullable=True)
    first_name: Mapped[str | None] = mapped_column(String, nullable=True)
    last_name: Mapped[str | None] = mapped_column(String, nullable=True)
    email: Mapped[str | None] = mapped_column(String, nullable=True)
    phone: Mapped[str | None] = mapped_column(String, nullable=True)
    address: Mapped[str | None] = mapped_column(String, nullable=True)
    city: Mapped[str | None] = mapped_column(String, nullable=True)
    state: Mapped[str | None] = mapped_column(String, nullable=True)
    zip: Mapped[str | None] = mapped_column(String, nullable=True)


class Job(OwnerMixin, TimestampMixin, Base):
    """Scheduled piece of work for a client. Table: jobs."""

    __tablename__ = "jobs"

    id: Mapped[str] = mapped_column(String, primary_key=True)
    client_id: Mapped[str | None] = mapped_column(String, nullable=True, index=True)
    title: Mapped[str | None] = mapped_column(String, nullable=True)
    description: Mapped[str | None] = mapped_column(Text, nullable=True)
    service: Mapped[str | None] = mapped_column(String, nullable=True)
    job_type: Mapped[str | None] = mapped_column(String, nullable=True)
    status: Mapped[str | None] = mapped_column(String, nullable=True, index=True)
    address: Mapped[str | None] = mapped_column(String, nullable=True)
    schedule_start: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)
    schedule_end: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)
    technician_id: Mapped[str | None] = mapped_column(String, nullable=True)
    tags: Mapped[list[str] | None] = mapped_column(ARRAY(String), nullable=True)


class Invoice(OwnerMixin, TimestampMixin, Base):
    """Invoice issued to a client. Table: invoices."""

    __tablename__ = "invoices"

    id: Mapped[str] = mapped_column(String, primary_key=True)
    invoice_number: Mapped[str | None] = mapped_column(String, nullable=True)
    client_id: Mapped[str | None] = mapped_column(String, nullable=True, index=True)
    job_id: Mapped[str | None] = mapped_column(String, nullable=True, index=True)
    status: Mapped[str | None] = mapped_column(String, nullable=True, index=True)
    total: Mapped[Decimal | None] = mapped_column(Numeric(12, 2), nullable=True)
    due_date: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)


class Estimate(OwnerMixin, TimestampMixin, Base):
    """Estimate sent to a client. Table: estimates."""

    __tablename__ = "estimates"

    id: Mapped[str] = mapped_column(String, primary_key=True)
    estimate_number: Mapped[str | None] = mapped_column(String, nullable=True)
    client_id: Mapped[str | None] = mapped_column(String, nullable=True, index=True)
    job_id: Mapped[str | None] = mapped_column(String, nullable=True, index=True)
    status: Mapped[str | None] = mapped_column(String, nullable=True)
    total: Mapped[Decimal | None] = mapped_column(Numeric(12, 2), nullable=True)


class Profile(TimestampMixin, Base):
    """User profile; the owner's profile carries the company details. Table: profiles."""

    __tablename__ = "profiles"

    id: Mapped[str] = mapped_column(String, primary_key=True)
    organization_id: Mapped[str | None] = mapped_column(String, nullable=True, index=True)
    name: Mapped[str | None] = mapped_column(String, nullable=True)
    email: Mapped[str | None] = mapped_column(String, nullable=True)
    company_name: Mapped[str | None] = mapped_column(String, nullable=True)
    company_phone: Mapped[str | None] = mapped_column(String, nullable=True)
    company_email: Mapped[str | None] = mapped_column(String, nullable=True)
    company_address: Mapped[str | None] = mapped_column(String, nullable=True)
    company_city: Mapped[str | None] = mapped_column(String, nullable=True)
    company_state: Mapped[str | None] = mapped_column(String, nullable=True)
    company_zip: Mapped[str | None] = mapped_column(String, nullable=True)
    company_website: Mapped[str | None] = mapped_column(String, nullable=True)
