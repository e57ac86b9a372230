"""Application wiring: build services on top of the store handle."""

from __future__ import annotations

from contextlib import contextmanager
from dataclasses import dataclass
from logging import getLogger
from typing import TYPE_CHECKING

from contractdesk.adapters.sqlalchemy import SqlAlchemyStore
from contractdesk.config import RulesConfig, get_rules_config
from contractdesk.domain.catalog import ContractTypeService, EntityService
from contractdesk.domain.contracts import ContractService
from contractdesk.domain.offers import OfferService
from contractdesk.domain.time_windows import utcnow
from contractdesk.domain.workers import WorkerService

if TYPE_CHECKING:
    from collections.abc import Iterator, Mapping, Sequence

    from contractdesk.domain.model import Contract
    from contractdesk.domain.pagination import Page
    from contractdesk.domain.ports import UnitOfWorkFactory
    from contractdesk.domain.time_windows import Clock


log = getLogger(__name__)


@dataclass(frozen=True, slots=True)
class ContractDeskServices:
    contracts: ContractService
    offers: OfferService
    entities: EntityService
    contract_types: ContractTypeService
    workers: WorkerService


def build_services(
    unit_of_work_factory: UnitOfWorkFactory,
    *,
    clock: Clock = utcnow,
    rules: RulesConfig | None = None,
) -> ContractDeskServices:
    effective_rules = rules or RulesConfig()
    return ContractDeskServices(
        contracts=ContractService(unit_of_work_factory, clock=clock, rules=effective_rules),
        offers=OfferService(unit_of_work_factory, clock=clock, rules=effective_rules),
        entities=EntityService(unit_of_work_factory, rules=effective_rules),
        contract_types=ContractTypeService(unit_of_work_factory),
        workers=WorkerService(unit_of_work_factory, rules=effective_rules),
    )


def open_store(
    database_uri: str | None = None,
    *,
    rules: RulesConfig | None = None,
) -> SqlAlchemyStore:
    """Open the configured store with the per-unit-of-work deadline from ``rules``."""

    effective_rules = rules or get_rules_config()
    return SqlAlchemyStore.open(
        database_uri,
        default_timeout=effective_rules.store_timeout_seconds,
    )


@contextmanager
def service_session(
    unit_of_work_factory: UnitOfWorkFactory | None = None,
    *,
    rules: RulesConfig | None = None,
) -> Iterator[ContractDeskServices]:
    """Yield services; open (and finally close) a store when no factory is given."""

    effective_rules = rules or get_rules_config()
    if unit_of_work_factory is not None:
        yield build_services(unit_of_work_factory, rules=effective_rules)
        return
    store = open_store(rules=effective_rules)
    try:
        yield build_services(store.unit_of_work, rules=effective_rules)
    finally:
        store.close()


def next_consecutive(
    year: int,
    *,
    unit_of_work_factory: UnitOfWorkFactory | None = None,
) -> int:
    with service_session(unit_of_work_factory) as services:
        return services.contracts.next_consecutive(year)


def expiring_contracts(
    days: int | None = None,
    *,
    unit_of_work_factory: UnitOfWorkFactory | None = None,
) -> Sequence[Contract]:
    with service_session(unit_of_work_factory) as services:
        contracts = services.contracts.expiring(days)
    log.info("Found %s contract(s) expiring soon", len(contracts))
    return contracts


def filter_contracts(
    criteria: Mapping[str, object] | None,
    *,
    page: int = 1,
    limit: int | None = None,
    unit_of_work_factory: UnitOfWorkFactory | None = None,
) -> Page[Contract]:
    rules = get_rules_config()
    with service_session(unit_of_work_factory, rules=rules) as services:
        return services.contracts.filter(criteria, page, limit or rules.default_page_limit)


__all__ = [
    "ContractDeskServices",
    "build_services",
    "expiring_contracts",
    "filter_contracts",
    "next_consecutive",
    "open_store",
    "service_session",
]
