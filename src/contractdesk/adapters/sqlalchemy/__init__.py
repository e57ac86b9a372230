"""SQLAlchemy adapter package for contractdesk."""

from __future__ import annotations

from .mappings import create_all_tables, mapper_registry, start_mappers
from .repositories import (
    SqlAlchemyAssignmentRepository,
    SqlAlchemyContractRepository,
    SqlAlchemyContractTypeRepository,
    SqlAlchemyEntityRepository,
    SqlAlchemyOfferRepository,
    SqlAlchemyUserRepository,
    SqlAlchemyWorkerRepository,
)
from .unit_of_work import SqlAlchemyStore, SqlAlchemyUnitOfWork, StartupError

__all__ = [
    "SqlAlchemyAssignmentRepository",
    "SqlAlchemyContractRepository",
    "SqlAlchemyContractTypeRepository",
    "SqlAlchemyEntityRepository",
    "SqlAlchemyOfferRepository",
    "SqlAlchemyStore",
    "SqlAlchemyUnitOfWork",
    "SqlAlchemyUserRepository",
    "SqlAlchemyWorkerRepository",
    "StartupError",
    "create_all_tables",
    "mapper_registry",
    "start_mappers",
]
