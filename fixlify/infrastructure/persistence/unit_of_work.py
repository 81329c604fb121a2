"""SQLAlchemy unit of work: one session and one transaction per block.

Each write in the automation pipeline (start a run, record a step's side
effect, finish a run) opens its own unit of work so that concurrent runs
never share a session and a failure in one does not roll back another.
"""

from typing import Any, Self

from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from fixlify.infrastructure.persistence.database import get_session_factory
from fixlify.infrastructure.persistence.repositories import (
    CommunicationLogRepository,
    ContinuationRepository,
    EntityRepository,
    ExecutionLogRepository,
    NotificationRepository,
    WorkflowRepository,
)


class SqlAlchemyUnitOfWork:
    """Begins a transaction on enter; commits on clean exit, rolls back otherwise."""

    def __init__(self, session_factory: async_sessionmaker[AsyncSession] | None = None) -> None:
        self._session_factory = session_factory
        self._session: AsyncSession | None = None

    async def __aenter__(self) -> Self:
        factory = self._session_factory or get_session_factory()
        session = factory()
        await session.begin()
        self._session = session
        self.workflows = WorkflowRepository(session)
        self.executions = ExecutionLogRepository(session)
        self.continuations = ContinuationRepository(session)
        self.entities = EntityRepository(session)
        self.notifications = NotificationRepository(session)
        self.communications = CommunicationLogRepository(session)
        return self

    async def __aexit__(self, exc_type: Any, exc: Any, tb: Any) -> None:
        session = self._session
        if session is None:
            return
        try:
            if exc_type is None:
                await session.commit()
            else:
                await session.rollback()
        finally:
            await session.close()
            self._session = None


def sqlalchemy_uow_factory(
    session_factory: async_sessionmaker[AsyncSession] | None = None,
) -> SqlAlchemyUnitOfWork:
    """UnitOfWorkFactory over the application engine (or the given session factory)."""
    return SqlAlchemyUnitOfWork(session_factory)
