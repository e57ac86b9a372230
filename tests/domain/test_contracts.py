from __future__ import annotations

from typing import TYPE_CHECKING

import pytest

from contractdesk.config import RulesConfig
from contractdesk.domain.contracts import ContractService
from contractdesk.domain.errors import (
    ConflictError,
    InvalidParameterError,
    NotFoundError,
    ReferentialIntegrityError,
    ValidationError,
    ValidationIssue,
)
from contractdesk.domain.model import Contract, ContractType, Entity, RecordKind
from tests.helpers.records import (
    contract_payload,
    make_assignment,
    make_contract,
    make_contract_type,
    make_entity,
    make_offer,
    make_user,
    make_worker,
    persist,
    persist_one,
    utc,
)

if TYPE_CHECKING:
    from collections.abc import Callable

    from contractdesk.adapters.sqlalchemy import SqlAlchemyStore, SqlAlchemyUnitOfWork
    from contractdesk.app import ContractDeskServices
    from contractdesk.domain.time_windows import Clock


@pytest.fixture
def refs(
    uow_factory: Callable[[], SqlAlchemyUnitOfWork],
) -> tuple[Entity, ContractType]:
    entity, contract_type = persist(uow_factory, make_entity(), make_contract_type())
    return entity, contract_type  # pyright: ignore[reportReturnType]


def _payload(refs: tuple[Entity, ContractType], **overrides: object) -> dict[str, object]:
    entity, contract_type = refs
    assert entity.id is not None
    assert contract_type.id is not None
    payload = contract_payload(
        entity.id,
        contract_type.id,
        start=utc(2024, 1, 1),
        end=utc(2024, 12, 31),
        sequence_number=7,
    )
    payload.update(overrides)
    return payload


def test_create_contract_persists_and_derives_year(
    services: ContractDeskServices,
    refs: tuple[Entity, ContractType],
) -> None:
    contract = services.contracts.create(_payload(refs))

    assert contract.id is not None
    assert contract.sequence_number == 7
    assert contract.sequence_year == 2024
    stored = services.contracts.get(contract.id)
    assert stored.classification == "services"
    assert stored.entity.name == refs[0].name  # pyright: ignore[reportAttributeAccessIssue]


def test_create_overlapping_contract_for_same_pair_conflicts(
    services: ContractDeskServices,
    refs: tuple[Entity, ContractType],
) -> None:
    first = services.contracts.create(_payload(refs))

    with pytest.raises(ConflictError) as excinfo:
        services.contracts.create(
            _payload(refs, start_date=utc(2024, 6, 1), end_date=utc(2025, 6, 1), sequence_number=8)
        )

    [issue] = excinfo.value.issues
    assert issue.code == "overlap"
    assert f"contract {first.id}" in issue.message
    assert [c.id for c in services.contracts.list_all()] == [first.id]


def test_expired_contract_does_not_block_new_one(
    uow_factory: Callable[[], SqlAlchemyUnitOfWork],
    services: ContractDeskServices,
    refs: tuple[Entity, ContractType],
) -> None:
    entity, contract_type = refs
    persist_one(
        uow_factory,
        make_contract(
            entity,
            contract_type,
            start=utc(2023, 1, 1),
            end=utc(2024, 1, 31),
            sequence_number=1,
        ),
    )

    contract = services.contracts.create(_payload(refs))

    assert contract.id is not None


def test_validation_collects_every_issue_in_order(services: ContractDeskServices) -> None:
    payload = contract_payload(
        404,
        405,
        start=utc(2024, 5, 1),
        end=utc(2024, 4, 1),
        sequence_number=1,
    )

    with pytest.raises(ValidationError) as excinfo:
        services.contracts.create(payload)

    assert not isinstance(excinfo.value, ConflictError)
    assert [(issue.field, issue.code) for issue in excinfo.value.issues] == [
        ("end_date", "date_order"),
        ("entity_id", "missing_reference"),
        ("contract_type_id", "missing_reference"),
    ]


def test_equal_start_and_end_is_rejected(
    services: ContractDeskServices,
    refs: tuple[Entity, ContractType],
) -> None:
    with pytest.raises(ValidationError, match="end_date must be later than start_date"):
        services.contracts.create(_payload(refs, end_date=utc(2024, 1, 1)))


def test_duplicate_sequence_in_same_year_conflicts(
    uow_factory: Callable[[], SqlAlchemyUnitOfWork],
    services: ContractDeskServices,
    refs: tuple[Entity, ContractType],
) -> None:
    services.contracts.create(_payload(refs))
    other_entity = persist_one(uow_factory, make_entity())
    assert other_entity.id is not None

    with pytest.raises(ConflictError) as excinfo:
        services.contracts.create(
            _payload(refs, entity_id=other_entity.id, start_date=utc(2024, 8, 1))
        )

    assert [issue.code for issue in excinfo.value.issues] == ["duplicate_sequence"]


def test_same_sequence_in_another_year_is_allowed(
    uow_factory: Callable[[], SqlAlchemyUnitOfWork],
    services: ContractDeskServices,
    refs: tuple[Entity, ContractType],
) -> None:
    services.contracts.create(_payload(refs))
    other_entity = persist_one(uow_factory, make_entity())

    contract = services.contracts.create(
        _payload(
            refs,
            entity_id=other_entity.id,
            start_date=utc(2025, 1, 1),
            end_date=utc(2025, 12, 31),
        )
    )

    assert (contract.sequence_year, contract.sequence_number) == (2025, 7)


def test_create_without_sequence_allocates_next(
    services: ContractDeskServices,
    refs: tuple[Entity, ContractType],
    uow_factory: Callable[[], SqlAlchemyUnitOfWork],
) -> None:
    services.contracts.create(_payload(refs, sequence_number=41))
    other_entity = persist_one(uow_factory, make_entity())
    payload = _payload(refs, entity_id=other_entity.id, start_date=utc(2024, 3, 1))
    del payload["sequence_number"]

    contract = services.contracts.create(payload)

    assert contract.sequence_number == 42


class FlakyCommitFactory:
    """Unit-of-work factory whose first ``failures`` commits lose a numbering race."""

    def __init__(self, store: SqlAlchemyStore, failures: int) -> None:
        self.store = store
        self.failures = failures
        self.calls = 0

    def __call__(self) -> SqlAlchemyUnitOfWork:
        self.calls += 1
        uow = self.store.unit_of_work()
        if self.failures > 0:
            self.failures -= 1

            def lose_race() -> None:
                raise ConflictError(
                    [ValidationIssue("store", "duplicate", "unique_constraint", conflict=True)]
                )

            uow.commit = lose_race  # type: ignore[method-assign]
        return uow


def test_allocation_retries_after_unique_violation(
    store: SqlAlchemyStore,
    clock: Clock,
    refs: tuple[Entity, ContractType],
) -> None:
    factory = FlakyCommitFactory(store, failures=2)
    service = ContractService(factory, clock=clock, rules=RulesConfig(allocation_attempts=3))
    payload = _payload(refs)
    del payload["sequence_number"]

    contract = service.create(payload)

    assert factory.calls == 3
    assert contract.sequence_number == 1


def test_allocation_gives_up_after_configured_attempts(
    store: SqlAlchemyStore,
    clock: Clock,
    refs: tuple[Entity, ContractType],
) -> None:
    factory = FlakyCommitFactory(store, failures=5)
    service = ContractService(factory, clock=clock, rules=RulesConfig(allocation_attempts=2))
    payload = _payload(refs)
    del payload["sequence_number"]

    with pytest.raises(ConflictError):
        service.create(payload)

    assert factory.calls == 2


def test_explicit_sequence_is_never_retried(
    store: SqlAlchemyStore,
    clock: Clock,
    refs: tuple[Entity, ContractType],
) -> None:
    factory = FlakyCommitFactory(store, failures=1)
    service = ContractService(factory, clock=clock)

    with pytest.raises(ConflictError):
        service.create(_payload(refs))

    assert factory.calls == 1


def test_update_revalidates_excluding_itself(
    services: ContractDeskServices,
    refs: tuple[Entity, ContractType],
) -> None:
    contract = services.contracts.create(_payload(refs))
    assert contract.id is not None

    updated = services.contracts.update(
        contract.id, {"classification": "maintenance", "note": "renewed"}
    )

    assert updated.classification == "maintenance"
    assert updated.note == "renewed"
    assert updated.sequence_number == 7
    assert updated.label == "renewed"


def test_update_moving_start_recomputes_year(
    services: ContractDeskServices,
    refs: tuple[Entity, ContractType],
) -> None:
    contract = services.contracts.create(_payload(refs))
    assert contract.id is not None

    updated = services.contracts.update(
        contract.id,
        {"start_date": utc(2025, 1, 10), "end_date": utc(2025, 12, 31)},
    )

    assert updated.sequence_year == 2025
    assert services.contracts.next_consecutive(2024) == 1
    assert services.contracts.next_consecutive(2025) == 8


def test_update_rejects_inverted_dates(
    services: ContractDeskServices,
    refs: tuple[Entity, ContractType],
) -> None:
    contract = services.contracts.create(_payload(refs))
    assert contract.id is not None

    with pytest.raises(ValidationError, match="end_date must be later"):
        services.contracts.update(contract.id, {"end_date": utc(2023, 12, 1)})

    assert services.contracts.get(contract.id).end_date == utc(2024, 12, 31)


def test_update_into_active_pair_conflicts(
    uow_factory: Callable[[], SqlAlchemyUnitOfWork],
    services: ContractDeskServices,
    refs: tuple[Entity, ContractType],
) -> None:
    services.contracts.create(_payload(refs))
    other_type = persist_one(uow_factory, make_contract_type())
    second = services.contracts.create(
        _payload(refs, contract_type_id=other_type.id, sequence_number=8)
    )
    assert second.id is not None

    with pytest.raises(ConflictError, match="already has an active contract"):
        services.contracts.update(second.id, {"contract_type_id": refs[1].id})


def test_update_missing_contract_raises_not_found(services: ContractDeskServices) -> None:
    with pytest.raises(NotFoundError) as excinfo:
        services.contracts.update(999, {"note": "x"})

    assert excinfo.value.kind is RecordKind.CONTRACT


def test_delete_contract_without_dependents(
    services: ContractDeskServices,
    refs: tuple[Entity, ContractType],
) -> None:
    contract = services.contracts.create(_payload(refs))
    assert contract.id is not None

    services.contracts.delete(contract.id)

    with pytest.raises(NotFoundError):
        services.contracts.get(contract.id)


def test_delete_contract_with_dependents_is_blocked(
    uow_factory: Callable[[], SqlAlchemyUnitOfWork],
    services: ContractDeskServices,
    refs: tuple[Entity, ContractType],
) -> None:
    contract = services.contracts.create(_payload(refs))
    user, worker = persist(uow_factory, make_user(), make_worker("Luis Gomez"))
    offer, _ = persist(
        uow_factory,
        make_offer(
            contract,
            user,  # pyright: ignore[reportArgumentType]
            start=utc(2024, 2, 1),
            end=utc(2024, 3, 1),
            descriptions=["Network audit", "Report"],
        ),
        make_assignment(contract, worker),  # pyright: ignore[reportArgumentType]
    )
    assert contract.id is not None

    with pytest.raises(ReferentialIntegrityError) as excinfo:
        services.contracts.delete(contract.id)

    assert [(b.kind, b.id, b.label) for b in excinfo.value.blockers] == [
        (RecordKind.OFFER, offer.id, "Network audit"),
        (RecordKind.WORKER, worker.id, "Luis Gomez"),
    ]
    assert services.contracts.get(contract.id).id == contract.id


def test_delete_missing_contract_raises_not_found(services: ContractDeskServices) -> None:
    with pytest.raises(NotFoundError):
        services.contracts.delete(31337)


def test_get_loads_associations(
    uow_factory: Callable[[], SqlAlchemyUnitOfWork],
    services: ContractDeskServices,
    refs: tuple[Entity, ContractType],
) -> None:
    contract = services.contracts.create(_payload(refs))
    user, worker = persist(uow_factory, make_user(), make_worker())
    persist(
        uow_factory,
        make_offer(
            contract,
            user,  # pyright: ignore[reportArgumentType]
            start=utc(2024, 2, 1),
            end=utc(2024, 3, 1),
            descriptions=["first", "second"],
        ),
        make_assignment(contract, worker),  # pyright: ignore[reportArgumentType]
    )
    assert contract.id is not None

    detailed: Contract = services.contracts.get(contract.id)

    assert detailed.contract_type.name == refs[1].name  # pyright: ignore[reportAttributeAccessIssue]
    [offer] = detailed.offers  # pyright: ignore[reportAttributeAccessIssue]
    assert offer.description_texts == ("first", "second")
    assert [w.id for w in detailed.workers] == [worker.id]  # pyright: ignore[reportAttributeAccessIssue]


def test_expiring_lists_contracts_ending_inside_window(
    uow_factory: Callable[[], SqlAlchemyUnitOfWork],
    services: ContractDeskServices,
    refs: tuple[Entity, ContractType],
) -> None:
    entity, contract_type = refs
    soon, sooner, later, _ = persist(
        uow_factory,
        make_contract(
            entity, contract_type, start=utc(2023, 3, 1), end=utc(2024, 3, 20), sequence_number=1
        ),
        make_contract(
            entity, contract_type, start=utc(2023, 3, 2), end=utc(2024, 3, 5), sequence_number=2
        ),
        make_contract(
            entity, contract_type, start=utc(2023, 3, 3), end=utc(2024, 6, 1), sequence_number=3
        ),
        make_contract(
            entity, contract_type, start=utc(2023, 3, 4), end=utc(2024, 2, 1), sequence_number=4
        ),
    )

    expiring = services.contracts.expiring()

    assert [c.id for c in expiring] == [sooner.id, soon.id]
    assert expiring[0].entity.name == entity.name  # pyright: ignore[reportAttributeAccessIssue]
    assert [c.id for c in services.contracts.expiring(days=100)][-1] == later.id
    assert services.contracts.expiring(days=1) == []


def test_expiring_uses_injected_clock(
    uow_factory: Callable[[], SqlAlchemyUnitOfWork],
    refs: tuple[Entity, ContractType],
) -> None:
    entity, contract_type = refs
    persist_one(
        uow_factory,
        make_contract(
            entity, contract_type, start=utc(2023, 1, 1), end=utc(2030, 1, 10), sequence_number=1
        ),
    )
    service = ContractService(uow_factory, clock=lambda: utc(2030, 1, 1))

    assert len(service.expiring(days=10)) == 1


def test_filter_by_entity_name_counts_distinct_contracts(
    uow_factory: Callable[[], SqlAlchemyUnitOfWork],
    services: ContractDeskServices,
) -> None:
    acme = persist(
        uow_factory,
        make_entity("ACME Holdings"),
        make_entity("Acme Logistics"),
        make_entity("Grupo ACME"),
    )
    other = persist_one(uow_factory, make_entity("Copextel"))
    contract_type = persist_one(uow_factory, make_contract_type())
    contracts = persist(
        uow_factory,
        *(
            make_contract(
                acme[number % 3],
                contract_type,
                start=utc(2023, 1, 1 + number),
                end=utc(2023, 2, 1 + number),
                sequence_number=number + 1,
            )
            for number in range(25)
        ),
        make_contract(
            other,
            contract_type,
            start=utc(2023, 6, 1),
            end=utc(2023, 7, 1),
            sequence_number=99,
        ),
    )
    user = persist_one(uow_factory, make_user())
    workers = persist(uow_factory, make_worker("Ana Perez"), make_worker("Luis Gomez"))
    for contract in contracts[:5]:
        persist(
            uow_factory,
            *(
                make_offer(
                    contract,
                    user,
                    start=utc(2023, 1, 10),
                    end=utc(2023, 1, 20),
                    descriptions=["one", "two", "three"],
                )
                for _ in range(2)
            ),
            *(make_assignment(contract, worker) for worker in workers),
        )

    first = services.contracts.filter({"entity_name": "acme"}, 1, 10)
    last = services.contracts.filter({"entity_name": "ACME", "classification": " "}, 3, 10)

    assert first.total == 25
    assert len(first.items) == 10
    assert len({contract.id for contract in first.items}) == 10
    assert first.items[0].entity.name in {"ACME Holdings", "Acme Logistics", "Grupo ACME"}  # pyright: ignore[reportAttributeAccessIssue]
    assert first.metadata()["totalPages"] == 3
    assert len(last.items) == 5
    assert not last.has_next_page


def test_filter_rejects_unknown_field_and_oversized_limit(
    services: ContractDeskServices,
) -> None:
    with pytest.raises(InvalidParameterError, match="unknown filter field: nombre"):
        services.contracts.filter({"nombre": "x"}, 1, 10)
    with pytest.raises(InvalidParameterError, match="limit must not exceed 100"):
        services.contracts.filter({}, 1, 101)
