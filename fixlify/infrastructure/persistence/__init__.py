"""Persistence layer: engine, ORM models, repositories and the unit of work."""

from fixlify.infrastructure.persistence.database import (
    Base,
    dispose_engine,
    get_session_factory,
)
from fixlify.infrastructure.persistence.unit_of_work import (
    SqlAlchemyUnitOfWork,
    sqlalchemy_uow_factory,
)

__all__ = [
    "Base",
    "SqlAlchemyUnitOfWork",
    "dispose_engine",
    "get_session_factory",
    "sqlalchemy_uow_factory",
]
