"""Per-listing filter specifications and the shared paginated query runner.

Each :class:`FilterSpec` states which columns a criterion matches and which
many-to-one joins the listing needs. Criteria that reach into one-to-many
children are expressed as ``EXISTS`` subqueries, so neither the count nor the
page rows are multiplied by child fan-out. Eager loading is attached to the
page query only.
"""

from __future__ import annotations

from collections.abc import Callable
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Any

from sqlalchemy import distinct, exists, func, select

from contractdesk.adapters.sqlalchemy.mappings import (
    contract_table,
    contract_type_table,
    contract_worker_table,
    entity_table,
    offer_description_table,
    offer_table,
    worker_table,
)
from contractdesk.domain.errors import InvalidParameterError, ValidationIssue
from contractdesk.domain.model import (
    Contract,
    Entity,
    Offer,
    OfferDescription,
    OfferStatus,
    Worker,
)
from contractdesk.domain.pagination import Page, normalize_criteria

if TYPE_CHECKING:
    from collections.abc import Mapping, Sequence

    from sqlalchemy import ColumnElement, FromClause
    from sqlalchemy.orm import Session
    from sqlalchemy.orm.interfaces import ORMOption

    from contractdesk.domain.pagination import PageRequest


@dataclass(frozen=True, slots=True)
class Contains:
    """Case-insensitive substring match on a text column."""

    column: ColumnElement[str]

    def clause(self, name: str, value: object) -> ColumnElement[bool]:
        _ = name
        return self.column.icontains(str(value), autoescape=True)


@dataclass(frozen=True, slots=True)
class Exact:
    """Equality on an identifier or enum column; ``convert`` coerces the raw value."""

    column: ColumnElement[Any]
    convert: Callable[[Any], object] = int

    def clause(self, name: str, value: object) -> ColumnElement[bool]:
        try:
            converted = self.convert(value)
        except (TypeError, ValueError) as exc:
            raise InvalidParameterError(
                [ValidationIssue(name, f"invalid value for {name}: {value!r}", "filter")]
            ) from exc
        return self.column == converted


@dataclass(frozen=True, slots=True)
class Exists:
    """Match through a one-to-many child table without joining it."""

    build: Callable[[object], ColumnElement[bool]]

    def clause(self, name: str, value: object) -> ColumnElement[bool]:
        _ = name
        return self.build(value)


type Criterion = Contains | Exact | Exists


@dataclass(frozen=True)
class FilterSpec[TRecord]:
    model: type[TRecord]
    table: FromClause
    id_column: ColumnElement[int]
    criteria: Mapping[str, Criterion]
    order_by: tuple[ColumnElement[Any], ...]
    joins: tuple[tuple[FromClause, ColumnElement[bool]], ...] = ()
    options: tuple[ORMOption, ...] = field(default=())

    def conditions(self, criteria: Mapping[str, object] | None) -> list[ColumnElement[bool]]:
        cleaned = normalize_criteria(criteria, self.criteria.keys())
        return [self.criteria[name].clause(name, value) for name, value in cleaned.items()]


def paginate[TRecord](
    session: Session,
    spec: FilterSpec[TRecord],
    criteria: Mapping[str, object] | None,
    page: PageRequest,
) -> Page[TRecord]:
    """Run the count and page queries for ``spec`` with the given criteria."""

    conditions = spec.conditions(criteria)

    count_stmt = select(func.count(distinct(spec.id_column))).select_from(spec.table)
    for target, onclause in spec.joins:
        count_stmt = count_stmt.join(target, onclause)
    total = session.execute(count_stmt.where(*conditions)).scalar_one()

    rows_stmt = select(spec.model)
    for target, onclause in spec.joins:
        rows_stmt = rows_stmt.join(target, onclause)
    rows_stmt = (
        rows_stmt.where(*conditions)
        .order_by(*spec.order_by)
        .offset(page.offset)
        .limit(page.limit)
        .options(*spec.options)
    )
    items: Sequence[TRecord] = session.execute(rows_stmt).scalars().unique().all()
    return Page(items=items, total=int(total), page=page.page, limit=page.limit)


def _offer_description_contains(value: object) -> ColumnElement[bool]:
    return exists().where(
        offer_description_table.c.offer_id == offer_table.c.id,
        offer_description_table.c.text.icontains(str(value), autoescape=True),
    )


def _worker_has_entity(value: object) -> ColumnElement[bool]:
    try:
        entity_id = int(str(value))
    except ValueError as exc:
        raise InvalidParameterError(
            [ValidationIssue("entity_id", f"invalid value for entity_id: {value!r}", "filter")]
        ) from exc
    return exists().where(
        contract_worker_table.c.worker_id == worker_table.c.id,
        contract_worker_table.c.contract_id == contract_table.c.id,
        contract_table.c.entity_id == entity_id,
    )


def contract_filter_spec(options: Sequence[ORMOption] = ()) -> FilterSpec[Contract]:
    return FilterSpec(
        model=Contract,
        table=contract_table,
        id_column=contract_table.c.id,
        joins=(
            (entity_table, entity_table.c.id == contract_table.c.entity_id),
            (
                contract_type_table,
                contract_type_table.c.id == contract_table.c.contract_type_id,
            ),
        ),
        criteria={
            "entity_name": Contains(entity_table.c.name),
            "contract_type_name": Contains(contract_type_table.c.name),
            "classification": Contains(contract_table.c.classification),
            "note": Contains(contract_table.c.note),
            "entity_id": Exact(contract_table.c.entity_id),
            "contract_type_id": Exact(contract_table.c.contract_type_id),
            "sequence_number": Exact(contract_table.c.sequence_number),
            "year": Exact(contract_table.c.sequence_year),
        },
        order_by=(contract_table.c.start_date.desc(), contract_table.c.id.desc()),
        options=tuple(options),
    )


def entity_filter_spec() -> FilterSpec[Entity]:
    return FilterSpec(
        model=Entity,
        table=entity_table,
        id_column=entity_table.c.id,
        criteria={
            name: Contains(entity_table.c[name])
            for name in (
                "name",
                "address",
                "phone",
                "email",
                "bank_account",
                "kind",
                "reo_code",
                "nit_code",
            )
        },
        order_by=(entity_table.c.name.asc(), entity_table.c.id.asc()),
    )


def offer_filter_spec(options: Sequence[ORMOption] = ()) -> FilterSpec[Offer]:
    return FilterSpec(
        model=Offer,
        table=offer_table,
        id_column=offer_table.c.id,
        criteria={
            "contract_id": Exact(offer_table.c.contract_id),
            "user_id": Exact(offer_table.c.user_id),
            "status": Exact(offer_table.c.status, OfferStatus),
            "description": Exists(_offer_description_contains),
        },
        order_by=(offer_table.c.start_date.desc(), offer_table.c.id.desc()),
        options=tuple(options),
    )


def offer_description_filter_spec() -> FilterSpec[OfferDescription]:
    return FilterSpec(
        model=OfferDescription,
        table=offer_description_table,
        id_column=offer_description_table.c.id,
        criteria={
            "text": Contains(offer_description_table.c.text),
            "offer_id": Exact(offer_description_table.c.offer_id),
        },
        order_by=(offer_description_table.c.id.asc(),),
    )


def worker_filter_spec() -> FilterSpec[Worker]:
    return FilterSpec(
        model=Worker,
        table=worker_table,
        id_column=worker_table.c.id,
        criteria={
            "full_name": Contains(worker_table.c.full_name),
            "role_title": Contains(worker_table.c.role_title),
            "national_id": Contains(worker_table.c.national_id),
            "entity_id": Exists(_worker_has_entity),
        },
        order_by=(worker_table.c.full_name.asc(), worker_table.c.id.asc()),
    )


__all__ = [
    "Contains",
    "Exact",
    "Exists",
    "FilterSpec",
    "contract_filter_spec",
    "entity_filter_spec",
    "offer_description_filter_spec",
    "offer_filter_spec",
    "paginate",
    "worker_filter_spec",
]
