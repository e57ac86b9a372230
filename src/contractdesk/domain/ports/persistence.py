"""Ports for persisting contract records."""

from __future__ import annotations

from typing import TYPE_CHECKING, Protocol, runtime_checkable

from contractdesk.domain.model import (
    Contract,
    ContractType,
    ContractWorkerAssignment,
    Entity,
    Offer,
    OfferDescription,
    Record,
    User,
    Worker,
)

if TYPE_CHECKING:
    from collections.abc import Collection, Mapping, Sequence
    from datetime import datetime

    from contractdesk.domain.pagination import Page, PageRequest


@runtime_checkable
class Repository[TRecord: Record](Protocol):
    """Minimal repository contract for a table of records."""

    def get(self, record_id: int) -> TRecord | None: ...

    def add(self, record: TRecord) -> None: ...

    def remove(self, record: TRecord) -> None: ...


@runtime_checkable
class EntityRepository(Repository[Entity], Protocol):
    def list_all(self) -> Sequence[Entity]: ...

    def find_by_name(self, name: str, *, exclude_id: int | None = None) -> Entity | None: ...

    def find_by_email(self, email: str, *, exclude_id: int | None = None) -> Entity | None: ...

    def filter(self, criteria: Mapping[str, object], page: PageRequest) -> Page[Entity]: ...


@runtime_checkable
class ContractTypeRepository(Repository[ContractType], Protocol):
    def list_all(self) -> Sequence[ContractType]: ...

    def find_by_name(
        self, name: str, *, exclude_id: int | None = None
    ) -> ContractType | None: ...


@runtime_checkable
class ContractRepository(Repository[Contract], Protocol):
    def get_detailed(self, record_id: int) -> Contract | None: ...

    def list_all(self) -> Sequence[Contract]: ...

    def existing_ids(self, ids: Collection[int]) -> set[int]: ...

    def sequence_numbers_between(self, start: datetime, end: datetime) -> Sequence[int]: ...

    def find_by_sequence(
        self,
        sequence_number: int,
        start: datetime,
        end: datetime,
        *,
        exclude_id: int | None = None,
    ) -> Contract | None: ...

    def active_for_pair(
        self,
        entity_id: int,
        contract_type_id: int,
        now: datetime,
        *,
        exclude_id: int | None = None,
    ) -> Sequence[Contract]: ...

    def ending_between(self, start: datetime, end: datetime) -> Sequence[Contract]: ...

    def for_entity(self, entity_id: int) -> Sequence[Contract]: ...

    def for_contract_type(self, contract_type_id: int) -> Sequence[Contract]: ...

    def for_worker(self, worker_id: int) -> Sequence[Contract]: ...

    def filter(self, criteria: Mapping[str, object], page: PageRequest) -> Page[Contract]: ...


@runtime_checkable
class OfferRepository(Repository[Offer], Protocol):
    def for_contract(self, contract_id: int) -> Sequence[Offer]: ...

    def descriptions_for(self, offer_id: int) -> Sequence[OfferDescription]: ...

    def filter(self, criteria: Mapping[str, object], page: PageRequest) -> Page[Offer]: ...

    def filter_descriptions(
        self, criteria: Mapping[str, object], page: PageRequest
    ) -> Page[OfferDescription]: ...


@runtime_checkable
class WorkerRepository(Repository[Worker], Protocol):
    def list_all(self) -> Sequence[Worker]: ...

    def find_by_national_id(
        self, national_id: str, *, exclude_id: int | None = None
    ) -> Worker | None: ...

    def for_contract(self, contract_id: int) -> Sequence[Worker]: ...

    def filter(self, criteria: Mapping[str, object], page: PageRequest) -> Page[Worker]: ...


@runtime_checkable
class AssignmentRepository(Protocol):
    def add(self, record: ContractWorkerAssignment) -> None: ...

    def remove(self, record: ContractWorkerAssignment) -> None: ...

    def find(self, contract_id: int, worker_id: int) -> ContractWorkerAssignment | None: ...

    def for_worker(self, worker_id: int) -> Sequence[ContractWorkerAssignment]: ...

    def for_contract(self, contract_id: int) -> Sequence[ContractWorkerAssignment]: ...


@runtime_checkable
class UserRepository(Repository[User], Protocol):
    """Users are managed elsewhere; offers only need to reference them."""
