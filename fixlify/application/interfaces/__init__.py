"""Application interfaces (ports): repository and service protocols.

Define contracts for infrastructure implementations (DIP).
No runtime imports from fixlify.infrastructure or fixlify.api.
"""

from fixlify.application.interfaces.repositories import (
    ICommunicationLogRepository,
    IContinuationRepository,
    IEntityRepository,
    IExecutionLogRepository,
    INotificationRepository,
    IUnitOfWork,
    IWorkflowRepository,
    UnitOfWorkFactory,
)
from fixlify.application.interfaces.services import (
    IEmailDispatcher,
    IEmailLayout,
    ISmsDispatcher,
)

__all__ = [
    "ICommunicationLogRepository",
    "IContinuationRepository",
    "IEmailDispatcher",
    "IEmailLayout",
    "IEntityRepository",
    "IExecutionLogRepository",
    "INotificationRepository",
    "ISmsDispatcher",
    "IUnitOfWork",
    "IWorkflowRepository",
    "UnitOfWorkFactory",
]
