"""Contract validation engine and the contract write/read service."""

from __future__ import annotations

from logging import getLogger
from typing import TYPE_CHECKING

from contractdesk.config.rules import RulesConfig
from contractdesk.domain.consecutive import next_consecutive
from contractdesk.domain.errors import (
    ConflictError,
    NotFoundError,
    ValidationIssue,
    raise_for_issues,
)
from contractdesk.domain.inputs import ContractInput, merge_payload, parse_input
from contractdesk.domain.model import Contract, RecordKind, utc_year
from contractdesk.domain.pagination import PageRequest
from contractdesk.domain.referential import ReferentialGuard
from contractdesk.domain.time_windows import Clock, ExpiryWindow, utcnow, year_bounds

if TYPE_CHECKING:
    from collections.abc import Mapping, Sequence
    from datetime import datetime

    from contractdesk.domain.pagination import Page
    from contractdesk.domain.ports import ContractDeskRepositories, UnitOfWorkFactory

log = getLogger(__name__)

UNIQUE_CONSTRAINT_CODE = "unique_constraint"


def validate_contract(
    repositories: ContractDeskRepositories,
    data: ContractInput,
    *,
    now: datetime,
    exclude_id: int | None = None,
) -> list[ValidationIssue]:
    """Run every contract rule and return all violations found.

    The checks run in order and never short-circuit: date ordering, per-year
    sequence uniqueness, entity existence, contract type existence and finally
    the "one active contract per entity and type" rule.
    """

    issues: list[ValidationIssue] = []

    if data.start_date >= data.end_date:
        issues.append(
            ValidationIssue("end_date", "end_date must be later than start_date", "date_order")
        )

    if data.sequence_number is not None:
        year = utc_year(data.start_date)
        start, end = year_bounds(year)
        clash = repositories.contracts.find_by_sequence(
            data.sequence_number, start, end, exclude_id=exclude_id
        )
        if clash is not None:
            issues.append(
                ValidationIssue(
                    "sequence_number",
                    f"sequence number {data.sequence_number} is already used in {year} "
                    f"by contract {clash.id}",
                    "duplicate_sequence",
                    conflict=True,
                )
            )

    if repositories.entities.get(data.entity_id) is None:
        issues.append(
            ValidationIssue(
                "entity_id", f"entity {data.entity_id} does not exist", "missing_reference"
            )
        )

    if repositories.contract_types.get(data.contract_type_id) is None:
        issues.append(
            ValidationIssue(
                "contract_type_id",
                f"contract type {data.contract_type_id} does not exist",
                "missing_reference",
            )
        )

    active = repositories.contracts.active_for_pair(
        data.entity_id, data.contract_type_id, now, exclude_id=exclude_id
    )
    issues.extend(
        ValidationIssue(
            "entity_id",
            f"entity {data.entity_id} already has an active contract of type "
            f"{data.contract_type_id} (contract {other.id}, ends {other.end_date:%Y-%m-%d})",
            "overlap",
            conflict=True,
        )
        for other in active
    )

    if issues:
        log.debug("Contract validation failed: %s", [issue.code for issue in issues])
    return issues


def _contract_fields(contract: Contract) -> dict[str, object]:
    return {
        "entity_id": contract.entity_id,
        "contract_type_id": contract.contract_type_id,
        "start_date": contract.start_date,
        "end_date": contract.end_date,
        "sequence_number": contract.sequence_number,
        "classification": contract.classification,
        "note": contract.note,
    }


def _lost_allocation_race(error: ConflictError) -> bool:
    return any(issue.code == UNIQUE_CONSTRAINT_CODE for issue in error.issues)


class ContractService:
    """Create, update, delete and query contracts inside units of work."""

    def __init__(
        self,
        unit_of_work_factory: UnitOfWorkFactory,
        *,
        clock: Clock = utcnow,
        rules: RulesConfig | None = None,
    ) -> None:
        self._uow_factory = unit_of_work_factory
        self._clock = clock
        self._rules = rules or RulesConfig()

    def validate(
        self,
        payload: Mapping[str, object] | ContractInput,
        *,
        exclude_id: int | None = None,
    ) -> list[ValidationIssue]:
        data = parse_input(ContractInput, payload)
        with self._uow_factory() as uow:
            return validate_contract(
                uow.repositories, data, now=self._clock(), exclude_id=exclude_id
            )

    def next_consecutive(self, year: int) -> int:
        with self._uow_factory() as uow:
            return next_consecutive(uow.repositories.contracts, year, rules=self._rules)

    def create(self, payload: Mapping[str, object] | ContractInput) -> Contract:
        """Validate and insert a contract in one transaction.

        Without an explicit ``sequence_number`` the next free number of the
        start year is allocated; a collision with a concurrent writer at commit
        time triggers a fresh allocation, up to ``allocation_attempts`` times.
        """

        data = parse_input(ContractInput, payload)
        attempts = 1 if data.sequence_number is not None else self._rules.allocation_attempts
        for attempt in range(1, attempts + 1):
            try:
                return self._create_once(data)
            except ConflictError as exc:
                if attempt == attempts or not _lost_allocation_race(exc):
                    raise
                log.debug("Sequence allocation collided (attempt %s/%s)", attempt, attempts)
        raise AssertionError("unreachable")

    def _create_once(self, data: ContractInput) -> Contract:
        with self._uow_factory() as uow:
            repos = uow.repositories
            if data.sequence_number is None:
                number = next_consecutive(
                    repos.contracts, utc_year(data.start_date), rules=self._rules
                )
                data = data.model_copy(update={"sequence_number": number})
            raise_for_issues(validate_contract(repos, data, now=self._clock()))
            contract = Contract(
                entity_id=data.entity_id,
                contract_type_id=data.contract_type_id,
                start_date=data.start_date,
                end_date=data.end_date,
                sequence_number=data.sequence_number or 0,
                classification=data.classification,
                note=data.note,
            )
            repos.contracts.add(contract)
            uow.commit()
        log.info(
            "Created contract %s (%s/%s)",
            contract.id,
            contract.sequence_year,
            contract.sequence_number,
        )
        return contract

    def update(
        self,
        contract_id: int,
        payload: Mapping[str, object] | ContractInput,
    ) -> Contract:
        with self._uow_factory() as uow:
            repos = uow.repositories
            contract = repos.contracts.get(contract_id)
            if contract is None:
                raise NotFoundError(RecordKind.CONTRACT, contract_id)
            data = parse_input(ContractInput, merge_payload(_contract_fields(contract), payload))
            if data.sequence_number is None:
                data = data.model_copy(update={"sequence_number": contract.sequence_number})
            raise_for_issues(
                validate_contract(repos, data, now=self._clock(), exclude_id=contract_id)
            )
            contract.entity_id = data.entity_id
            contract.contract_type_id = data.contract_type_id
            contract.classification = data.classification
            contract.note = data.note
            contract.reschedule(
                start_date=data.start_date,
                end_date=data.end_date,
                sequence_number=data.sequence_number or contract.sequence_number,
            )
            uow.commit()
        log.info("Updated contract %s", contract_id)
        return contract

    def delete(self, contract_id: int) -> None:
        with self._uow_factory() as uow:
            repos = uow.repositories
            contract = repos.contracts.get(contract_id)
            if contract is None:
                raise NotFoundError(RecordKind.CONTRACT, contract_id)
            ReferentialGuard(repos).ensure_deletable(RecordKind.CONTRACT, contract_id)
            repos.contracts.remove(contract)
            uow.commit()
        log.info("Deleted contract %s", contract_id)

    def get(self, contract_id: int) -> Contract:
        with self._uow_factory() as uow:
            contract = uow.repositories.contracts.get_detailed(contract_id)
        if contract is None:
            raise NotFoundError(RecordKind.CONTRACT, contract_id)
        return contract

    def list_all(self) -> Sequence[Contract]:
        with self._uow_factory() as uow:
            return uow.repositories.contracts.list_all()

    def expiring(self, days: int | None = None) -> Sequence[Contract]:
        """Contracts whose end date falls within the next ``days`` days."""

        window = ExpiryWindow(days if days is not None else self._rules.expiring_within_days)
        start, end = window.resolve(clock=self._clock)
        with self._uow_factory() as uow:
            return uow.repositories.contracts.ending_between(start, end)

    def filter(
        self,
        criteria: Mapping[str, object] | None,
        page: int,
        limit: int,
    ) -> Page[Contract]:
        request = PageRequest.build(page, limit, max_limit=self._rules.max_page_limit)
        with self._uow_factory() as uow:
            return uow.repositories.contracts.filter(criteria or {}, request)


__all__ = ["UNIQUE_CONSTRAINT_CODE", "ContractService", "validate_contract"]
