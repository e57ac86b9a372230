"""Unit-of-work abstractions for coordinating repositories."""

from __future__ import annotations

from collections.abc import Callable
from dataclasses import dataclass
from typing import TYPE_CHECKING, Protocol, runtime_checkable

if TYPE_CHECKING:
    from types import TracebackType

    from contractdesk.domain.ports.persistence import (
        AssignmentRepository,
        ContractRepository,
        ContractTypeRepository,
        EntityRepository,
        OfferRepository,
        UserRepository,
        WorkerRepository,
    )


@runtime_checkable
class RepositoryCollection(Protocol):
    """Marker protocol for groups of repositories managed together."""


@runtime_checkable
class UnitOfWork[TRepositories: RepositoryCollection](Protocol):
    """One transaction around a repository collection.

    Leaving the ``with`` block without ``commit()`` discards every change.
    """

    @property
    def repositories(self) -> TRepositories: ...

    def __enter__(self) -> UnitOfWork[TRepositories]: ...

    def __exit__(
        self,
        exc_type: type[BaseException] | None,
        exc_value: BaseException | None,
        traceback: TracebackType | None,
    ) -> bool: ...

    def commit(self) -> None: ...

    def rollback(self) -> None: ...


@dataclass(slots=True)
class ContractDeskRepositories(RepositoryCollection):
    entities: EntityRepository
    contract_types: ContractTypeRepository
    contracts: ContractRepository
    offers: OfferRepository
    workers: WorkerRepository
    assignments: AssignmentRepository
    users: UserRepository


type ContractDeskUnitOfWork = UnitOfWork[ContractDeskRepositories]
type UnitOfWorkFactory = Callable[[], ContractDeskUnitOfWork]
