"""Ports implemented by storage adapters."""

from __future__ import annotations

from .persistence import (
    AssignmentRepository,
    ContractRepository,
    ContractTypeRepository,
    EntityRepository,
    OfferRepository,
    UserRepository,
    WorkerRepository,
)
from .unit_of_work import (
    ContractDeskRepositories,
    ContractDeskUnitOfWork,
    RepositoryCollection,
    UnitOfWork,
    UnitOfWorkFactory,
)

__all__ = [
    "AssignmentRepository",
    "ContractDeskRepositories",
    "ContractDeskUnitOfWork",
    "ContractRepository",
    "ContractTypeRepository",
    "EntityRepository",
    "OfferRepository",
    "RepositoryCollection",
    "UnitOfWork",
    "UnitOfWorkFactory",
    "UserRepository",
    "WorkerRepository",
]
