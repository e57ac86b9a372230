"""Repository implementations backed by SQLAlchemy sessions."""

from __future__ import annotations

from typing import TYPE_CHECKING, Any, cast

from sqlalchemy import select
from sqlalchemy.orm import selectinload

from contractdesk.adapters.sqlalchemy.mappings import (
    app_user_table,
    contract_table,
    contract_type_table,
    contract_worker_table,
    entity_table,
    offer_description_table,
    offer_table,
    worker_table,
)
from contractdesk.adapters.sqlalchemy.queries import (
    contract_filter_spec,
    entity_filter_spec,
    offer_description_filter_spec,
    offer_filter_spec,
    paginate,
    worker_filter_spec,
)
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

    from sqlalchemy import Select, Table
    from sqlalchemy.orm import QueryableAttribute, Session
    from sqlalchemy.orm.interfaces import ORMOption

    from contractdesk.domain.pagination import Page, PageRequest


def _relation(cls: type[object], name: str) -> QueryableAttribute[Any]:
    """Mapped relationship attribute added to a record class by the mappings."""
    return cast("QueryableAttribute[Any]", getattr(cls, name))


def _contract_refs() -> tuple[ORMOption, ...]:
    return (
        selectinload(_relation(Contract, "entity")),
        selectinload(_relation(Contract, "contract_type")),
    )


def _offer_descriptions() -> ORMOption:
    return selectinload(_relation(Offer, "descriptions"))


class SqlAlchemyRepository[TRecord: Record]:
    """Shared get/add/remove for tables keyed by an integer id."""

    def __init__(self, session: Session, record_cls: type[TRecord], table: Table) -> None:
        self.session = session
        self._record_cls = record_cls
        self._table = table

    def get(self, record_id: int) -> TRecord | None:
        return self.session.get(self._record_cls, record_id)

    def add(self, record: TRecord) -> None:
        self.session.add(record)

    def remove(self, record: TRecord) -> None:
        self.session.delete(record)

    def _find_by(
        self,
        column: str,
        value: object,
        *,
        exclude_id: int | None = None,
    ) -> TRecord | None:
        stmt = select(self._record_cls).where(self._table.c[column] == value)
        if exclude_id is not None:
            stmt = stmt.where(self._table.c.id != exclude_id)
        return self.session.execute(stmt.limit(1)).scalars().first()


class SqlAlchemyEntityRepository(SqlAlchemyRepository[Entity]):
    def __init__(self, session: Session) -> None:
        super().__init__(session, Entity, entity_table)

    def list_all(self) -> Sequence[Entity]:
        stmt = select(Entity).order_by(entity_table.c.name.asc(), entity_table.c.id.asc())
        return self.session.execute(stmt).scalars().all()

    def find_by_name(self, name: str, *, exclude_id: int | None = None) -> Entity | None:
        return self._find_by("name", name, exclude_id=exclude_id)

    def find_by_email(self, email: str, *, exclude_id: int | None = None) -> Entity | None:
        return self._find_by("email", email, exclude_id=exclude_id)

    def filter(self, criteria: Mapping[str, object], page: PageRequest) -> Page[Entity]:
        return paginate(self.session, entity_filter_spec(), criteria, page)


class SqlAlchemyContractTypeRepository(SqlAlchemyRepository[ContractType]):
    def __init__(self, session: Session) -> None:
        super().__init__(session, ContractType, contract_type_table)

    def list_all(self) -> Sequence[ContractType]:
        stmt = select(ContractType).order_by(contract_type_table.c.name.asc())
        return self.session.execute(stmt).scalars().all()

    def find_by_name(self, name: str, *, exclude_id: int | None = None) -> ContractType | None:
        return self._find_by("name", name, exclude_id=exclude_id)


class SqlAlchemyContractRepository(SqlAlchemyRepository[Contract]):
    def __init__(self, session: Session) -> None:
        super().__init__(session, Contract, contract_table)

    def _select(self) -> Select[tuple[Contract]]:
        return select(Contract).options(*_contract_refs())

    def get_detailed(self, record_id: int) -> Contract | None:
        stmt = (
            self._select()
            .where(contract_table.c.id == record_id)
            .options(
                selectinload(_relation(Contract, "offers")).options(_offer_descriptions()),
                selectinload(_relation(Contract, "workers")),
            )
        )
        return self.session.execute(stmt).scalars().first()

    def list_all(self) -> Sequence[Contract]:
        stmt = self._select().order_by(
            contract_table.c.start_date.desc(), contract_table.c.id.desc()
        )
        return self.session.execute(stmt).scalars().all()

    def existing_ids(self, ids: Collection[int]) -> set[int]:
        if not ids:
            return set()
        stmt = select(contract_table.c.id).where(contract_table.c.id.in_(list(ids)))
        return set(self.session.execute(stmt).scalars().all())

    def sequence_numbers_between(self, start: datetime, end: datetime) -> Sequence[int]:
        stmt = (
            select(contract_table.c.sequence_number)
            .where(contract_table.c.start_date.between(start, end))
            .with_for_update()
        )
        return self.session.execute(stmt).scalars().all()

    def find_by_sequence(
        self,
        sequence_number: int,
        start: datetime,
        end: datetime,
        *,
        exclude_id: int | None = None,
    ) -> Contract | None:
        stmt = (
            select(Contract)
            .where(contract_table.c.sequence_number == sequence_number)
            .where(contract_table.c.start_date.between(start, end))
            .with_for_update()
        )
        if exclude_id is not None:
            stmt = stmt.where(contract_table.c.id != exclude_id)
        return self.session.execute(stmt.limit(1)).scalars().first()

    def active_for_pair(
        self,
        entity_id: int,
        contract_type_id: int,
        now: datetime,
        *,
        exclude_id: int | None = None,
    ) -> Sequence[Contract]:
        stmt = (
            select(Contract)
            .where(contract_table.c.entity_id == entity_id)
            .where(contract_table.c.contract_type_id == contract_type_id)
            .where(contract_table.c.end_date > now)
            .order_by(contract_table.c.end_date.asc())
            .with_for_update()
        )
        if exclude_id is not None:
            stmt = stmt.where(contract_table.c.id != exclude_id)
        return self.session.execute(stmt).scalars().all()

    def ending_between(self, start: datetime, end: datetime) -> Sequence[Contract]:
        stmt = (
            self._select()
            .where(contract_table.c.end_date.between(start, end))
            .order_by(contract_table.c.end_date.asc(), contract_table.c.id.asc())
        )
        return self.session.execute(stmt).scalars().all()

    def for_entity(self, entity_id: int) -> Sequence[Contract]:
        stmt = (
            self._select()
            .where(contract_table.c.entity_id == entity_id)
            .order_by(contract_table.c.id.asc())
        )
        return self.session.execute(stmt).scalars().all()

    def for_contract_type(self, contract_type_id: int) -> Sequence[Contract]:
        stmt = (
            self._select()
            .where(contract_table.c.contract_type_id == contract_type_id)
            .order_by(contract_table.c.id.asc())
        )
        return self.session.execute(stmt).scalars().all()

    def for_worker(self, worker_id: int) -> Sequence[Contract]:
        stmt = (
            self._select()
            .join(contract_worker_table, contract_worker_table.c.contract_id == contract_table.c.id)
            .where(contract_worker_table.c.worker_id == worker_id)
            .order_by(contract_table.c.id.asc())
        )
        return self.session.execute(stmt).scalars().all()

    def filter(self, criteria: Mapping[str, object], page: PageRequest) -> Page[Contract]:
        return paginate(self.session, contract_filter_spec(_contract_refs()), criteria, page)


class SqlAlchemyOfferRepository(SqlAlchemyRepository[Offer]):
    def __init__(self, session: Session) -> None:
        super().__init__(session, Offer, offer_table)

    def get(self, record_id: int) -> Offer | None:
        stmt = select(Offer).where(offer_table.c.id == record_id).options(_offer_descriptions())
        return self.session.execute(stmt).scalars().first()

    def for_contract(self, contract_id: int) -> Sequence[Offer]:
        stmt = (
            select(Offer)
            .where(offer_table.c.contract_id == contract_id)
            .order_by(offer_table.c.id.asc())
            .options(_offer_descriptions())
        )
        return self.session.execute(stmt).scalars().all()

    def descriptions_for(self, offer_id: int) -> Sequence[OfferDescription]:
        stmt = (
            select(OfferDescription)
            .where(offer_description_table.c.offer_id == offer_id)
            .order_by(offer_description_table.c.id.asc())
        )
        return self.session.execute(stmt).scalars().all()

    def filter(self, criteria: Mapping[str, object], page: PageRequest) -> Page[Offer]:
        spec = offer_filter_spec((_offer_descriptions(),))
        return paginate(self.session, spec, criteria, page)

    def filter_descriptions(
        self, criteria: Mapping[str, object], page: PageRequest
    ) -> Page[OfferDescription]:
        return paginate(self.session, offer_description_filter_spec(), criteria, page)


class SqlAlchemyWorkerRepository(SqlAlchemyRepository[Worker]):
    def __init__(self, session: Session) -> None:
        super().__init__(session, Worker, worker_table)

    def list_all(self) -> Sequence[Worker]:
        stmt = select(Worker).order_by(worker_table.c.full_name.asc(), worker_table.c.id.asc())
        return self.session.execute(stmt).scalars().all()

    def find_by_national_id(
        self, national_id: str, *, exclude_id: int | None = None
    ) -> Worker | None:
        return self._find_by("national_id", national_id, exclude_id=exclude_id)

    def for_contract(self, contract_id: int) -> Sequence[Worker]:
        stmt = (
            select(Worker)
            .join(contract_worker_table, contract_worker_table.c.worker_id == worker_table.c.id)
            .where(contract_worker_table.c.contract_id == contract_id)
            .order_by(worker_table.c.full_name.asc(), worker_table.c.id.asc())
        )
        return self.session.execute(stmt).scalars().all()

    def filter(self, criteria: Mapping[str, object], page: PageRequest) -> Page[Worker]:
        return paginate(self.session, worker_filter_spec(), criteria, page)


class SqlAlchemyAssignmentRepository(SqlAlchemyRepository[ContractWorkerAssignment]):
    def __init__(self, session: Session) -> None:
        super().__init__(session, ContractWorkerAssignment, contract_worker_table)

    def find(self, contract_id: int, worker_id: int) -> ContractWorkerAssignment | None:
        stmt = (
            select(ContractWorkerAssignment)
            .where(contract_worker_table.c.contract_id == contract_id)
            .where(contract_worker_table.c.worker_id == worker_id)
        )
        return self.session.execute(stmt.limit(1)).scalars().first()

    def for_worker(self, worker_id: int) -> Sequence[ContractWorkerAssignment]:
        stmt = (
            select(ContractWorkerAssignment)
            .where(contract_worker_table.c.worker_id == worker_id)
            .order_by(contract_worker_table.c.contract_id.asc())
        )
        return self.session.execute(stmt).scalars().all()

    def for_contract(self, contract_id: int) -> Sequence[ContractWorkerAssignment]:
        stmt = (
            select(ContractWorkerAssignment)
            .where(contract_worker_table.c.contract_id == contract_id)
            .order_by(contract_worker_table.c.worker_id.asc())
        )
        return self.session.execute(stmt).scalars().all()


class SqlAlchemyUserRepository(SqlAlchemyRepository[User]):
    def __init__(self, session: Session) -> None:
        super().__init__(session, User, app_user_table)


__all__ = [
    "SqlAlchemyAssignmentRepository",
    "SqlAlchemyContractRepository",
    "SqlAlchemyContractTypeRepository",
    "SqlAlchemyEntityRepository",
    "SqlAlchemyOfferRepository",
    "SqlAlchemyRepository",
    "SqlAlchemyUserRepository",
    "SqlAlchemyWorkerRepository",
]
