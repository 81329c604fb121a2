"""Persistence models: ORM entities and mixins."""

from fixlify.infrastructure.persistence.models.business import (
    Client,
    Estimate,
    Invoice,
    Job,
    Profile,
)
from fixlify.infrastructure.persistence.models.communication import (
    CommunicationLog,
    Notification,
)
from fixlify.infrastructure.persistence.models.mixins import (
    CuidMixin,
    OwnerMixin,
    TimestampMixin,
)
from fixlify.infrastructure.persistence.models.workflow import (
    AutomationContinuation,
    AutomationExecutionLog,
    AutomationWorkflow,
)

__all__ = [
    "AutomationContinuation",
    "AutomationExecutionLog",
    "AutomationWorkflow",
    "Client",
    "CommunicationLog",
    "CuidMixin",
    "Estimate",
    "Invoice",
    "Job",
    "Notification",
    "OwnerMixin",
    "Profile",
    "TimestampMixin",
]
