from __future__ import annotations

from typing import TYPE_CHECKING

import pytest

from contractdesk.domain.time_windows import year_bounds
from tests.helpers.records import (
    make_assignment,
    make_contract,
    make_contract_type,
    make_entity,
    make_offer,
    make_user,
    make_worker,
    persist,
    utc,
)

if TYPE_CHECKING:
    from collections.abc import Callable

    from contractdesk.adapters.sqlalchemy import SqlAlchemyUnitOfWork
    from contractdesk.domain.model import Contract, ContractType, Entity


@pytest.fixture
def refs(uow_factory: Callable[[], SqlAlchemyUnitOfWork]) -> tuple[Entity, ContractType]:
    entity, contract_type = persist(uow_factory, make_entity("Copextel"), make_contract_type())
    return entity, contract_type  # pyright: ignore[reportReturnType]


@pytest.fixture
def contracts(
    uow_factory: Callable[[], SqlAlchemyUnitOfWork],
    refs: tuple[Entity, ContractType],
) -> tuple[Contract, ...]:
    entity, contract_type = refs
    schedule = (
        (utc(2024, 1, 1), utc(2024, 3, 1, 12), 4),
        (utc(2024, 12, 31, 23), utc(2025, 2, 1), 9),
        (utc(2025, 1, 1), utc(2025, 4, 1), 4),
    )
    return persist(
        uow_factory,
        *(
            make_contract(entity, contract_type, start=start, end=end, sequence_number=number)
            for start, end, number in schedule
        ),
    )


def test_sequence_numbers_between_respects_year_bounds(
    uow_factory: Callable[[], SqlAlchemyUnitOfWork],
    contracts: tuple[Contract, ...],
) -> None:
    with uow_factory() as uow:
        numbers_2024 = uow.repositories.contracts.sequence_numbers_between(*year_bounds(2024))
        numbers_2025 = uow.repositories.contracts.sequence_numbers_between(*year_bounds(2025))

    assert len(contracts) == 3
    assert sorted(numbers_2024) == [4, 9]
    assert list(numbers_2025) == [4]


def test_find_by_sequence_honours_exclusion(
    uow_factory: Callable[[], SqlAlchemyUnitOfWork],
    contracts: tuple[Contract, ...],
) -> None:
    first = contracts[0]
    with uow_factory() as uow:
        repo = uow.repositories.contracts
        found = repo.find_by_sequence(4, *year_bounds(2024))
        excluded = repo.find_by_sequence(4, *year_bounds(2024), exclude_id=first.id)
        missing = repo.find_by_sequence(5, *year_bounds(2024))

    assert found is not None
    assert found.id == first.id
    assert excluded is None
    assert missing is None


def test_active_for_pair_uses_strict_end_comparison(
    uow_factory: Callable[[], SqlAlchemyUnitOfWork],
    refs: tuple[Entity, ContractType],
    contracts: tuple[Contract, ...],
) -> None:
    entity, contract_type = refs
    assert entity.id is not None
    assert contract_type.id is not None
    with uow_factory() as uow:
        repo = uow.repositories.contracts
        at_first_end = repo.active_for_pair(entity.id, contract_type.id, utc(2024, 3, 1, 12))
        later = repo.active_for_pair(
            entity.id, contract_type.id, utc(2025, 1, 15), exclude_id=contracts[2].id
        )
        other_type = repo.active_for_pair(entity.id, contract_type.id + 1, utc(2024, 1, 1))

    assert [c.id for c in at_first_end] == [contracts[1].id, contracts[2].id]
    assert [c.id for c in later] == [contracts[1].id]
    assert other_type == []


def test_ending_between_is_inclusive_and_ordered(
    uow_factory: Callable[[], SqlAlchemyUnitOfWork],
    contracts: tuple[Contract, ...],
) -> None:
    with uow_factory() as uow:
        ending = uow.repositories.contracts.ending_between(utc(2024, 3, 1, 12), utc(2025, 2, 1))

    assert [c.id for c in ending] == [contracts[0].id, contracts[1].id]
    assert ending[0].entity.name == "Copextel"  # pyright: ignore[reportAttributeAccessIssue]


def test_contract_lookups_by_parent(
    uow_factory: Callable[[], SqlAlchemyUnitOfWork],
    refs: tuple[Entity, ContractType],
    contracts: tuple[Contract, ...],
) -> None:
    entity, contract_type = refs
    worker = persist(uow_factory, make_worker())[0]
    persist(
        uow_factory,
        make_assignment(contracts[2], worker),  # pyright: ignore[reportArgumentType]
        make_assignment(contracts[0], worker),  # pyright: ignore[reportArgumentType]
    )
    assert entity.id is not None
    assert contract_type.id is not None
    assert worker.id is not None

    with uow_factory() as uow:
        repos = uow.repositories
        by_entity = repos.contracts.for_entity(entity.id)
        by_type = repos.contracts.for_contract_type(contract_type.id)
        by_worker = repos.contracts.for_worker(worker.id)
        known = repos.contracts.existing_ids({contracts[1].id, 404})  # pyright: ignore[reportArgumentType]
        assignment = repos.assignments.find(contracts[0].id, worker.id)  # pyright: ignore[reportArgumentType]
        assignments = repos.assignments.for_worker(worker.id)
        workers = repos.workers.for_contract(contracts[2].id)  # pyright: ignore[reportArgumentType]

    all_ids = [c.id for c in contracts]
    assert [c.id for c in by_entity] == all_ids
    assert [c.id for c in by_type] == all_ids
    assert [c.id for c in by_worker] == [contracts[0].id, contracts[2].id]
    assert known == {contracts[1].id}
    assert assignment is not None
    assert [a.contract_id for a in assignments] == [contracts[0].id, contracts[2].id]
    assert [w.id for w in workers] == [worker.id]


def test_existing_ids_of_empty_collection(uow_factory: Callable[[], SqlAlchemyUnitOfWork]) -> None:
    with uow_factory() as uow:
        assert uow.repositories.contracts.existing_ids(set()) == set()


def test_entity_lookups_exclude_given_id(uow_factory: Callable[[], SqlAlchemyUnitOfWork]) -> None:
    entity = persist(uow_factory, make_entity("Copextel", email="info@copextel.example.com"))[0]

    with uow_factory() as uow:
        repo = uow.repositories.entities
        by_name = repo.find_by_name("Copextel")
        by_email = repo.find_by_email("info@copextel.example.com")
        self_excluded = repo.find_by_name("Copextel", exclude_id=entity.id)
        case_differs = repo.find_by_name("copextel")

    assert by_name is not None
    assert by_email is not None
    assert by_name.id == by_email.id == entity.id
    assert self_excluded is None
    assert case_differs is None


def test_offer_repository_loads_descriptions_in_order(
    uow_factory: Callable[[], SqlAlchemyUnitOfWork],
    contracts: tuple[Contract, ...],
) -> None:
    user = persist(uow_factory, make_user())[0]
    offer = persist(
        uow_factory,
        make_offer(
            contracts[0],
            user,  # pyright: ignore[reportArgumentType]
            start=utc(2024, 1, 5),
            end=utc(2024, 1, 20),
            descriptions=["b first", "a second"],
        ),
    )[0]
    assert offer.id is not None

    with uow_factory() as uow:
        loaded = uow.repositories.offers.get(offer.id)
        rows = uow.repositories.offers.descriptions_for(offer.id)
        missing = uow.repositories.offers.get(offer.id + 1)

    assert loaded is not None
    assert loaded.description_texts == ("b first", "a second")
    assert [row.text for row in rows] == ["b first", "a second"]
    assert missing is None


def test_get_detailed_loads_offers_and_workers(
    uow_factory: Callable[[], SqlAlchemyUnitOfWork],
    contracts: tuple[Contract, ...],
) -> None:
    user, zoe, ana = persist(uow_factory, make_user(), make_worker("Zoe"), make_worker("Ana"))
    persist(
        uow_factory,
        make_offer(
            contracts[1],
            user,  # pyright: ignore[reportArgumentType]
            start=utc(2025, 1, 2),
            end=utc(2025, 1, 9),
            descriptions=["one"],
        ),
        make_assignment(contracts[1], zoe),  # pyright: ignore[reportArgumentType]
        make_assignment(contracts[1], ana),  # pyright: ignore[reportArgumentType]
    )

    with uow_factory() as uow:
        detailed = uow.repositories.contracts.get_detailed(contracts[1].id)  # pyright: ignore[reportArgumentType]
        missing = uow.repositories.contracts.get_detailed(999)

    assert detailed is not None
    assert missing is None
    assert [w.full_name for w in detailed.workers] == ["Ana", "Zoe"]  # pyright: ignore[reportAttributeAccessIssue]
    assert [o.description_texts for o in detailed.offers] == [("one",)]  # pyright: ignore[reportAttributeAccessIssue]
    assert detailed.contract_type.name.startswith("Type")  # pyright: ignore[reportAttributeAccessIssue]
