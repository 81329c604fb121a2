"""Repository implementations over the async SQLAlchemy session."""

from fixlify.infrastructure.persistence.repositories.base import BaseRepository, row_to_dict
from fixlify.infrastructure.persistence.repositories.communication_repo import (
    CommunicationLogRepository,
    NotificationRepository,
)
from fixlify.infrastructure.persistence.repositories.entity_repo import EntityRepository
from fixlify.infrastructure.persistence.repositories.execution_log_repo import (
    ContinuationRepository,
    ExecutionLogRepository,
)
from fixlify.infrastructure.persistence.repositories.workflow_repo import WorkflowRepository

__all__ = [
    "BaseRepository",
    "CommunicationLogRepository",
    "ContinuationRepository",
    "EntityRepository",
    "ExecutionLogRepository",
    "NotificationRepository",
    "WorkflowRepository",
    "row_to_dict",
]
