"""Authorised workers and their contract assignments."""

from __future__ import annotations

from logging import getLogger
from typing import TYPE_CHECKING

from contractdesk.config.rules import RulesConfig
from contractdesk.domain.errors import (
    NotFoundError,
    ValidationError,
    ValidationIssue,
    raise_for_issues,
)
from contractdesk.domain.inputs import WorkerInput, merge_payload, parse_input
from contractdesk.domain.model import ContractWorkerAssignment, RecordKind, Worker
from contractdesk.domain.pagination import PageRequest
from contractdesk.domain.referential import ReferentialGuard

if TYPE_CHECKING:
    from collections.abc import Iterable, Mapping, Sequence

    from contractdesk.domain.model import Contract
    from contractdesk.domain.pagination import Page
    from contractdesk.domain.ports import ContractDeskRepositories, UnitOfWorkFactory

log = getLogger(__name__)


def _worker_fields(worker: Worker) -> dict[str, object]:
    return {
        "full_name": worker.full_name,
        "role_title": worker.role_title,
        "national_id": worker.national_id,
        "phone": worker.phone,
    }


def _check_national_id(
    repositories: ContractDeskRepositories,
    national_id: str,
    *,
    exclude_id: int | None = None,
) -> list[ValidationIssue]:
    if repositories.workers.find_by_national_id(national_id, exclude_id=exclude_id) is None:
        return []
    return [
        ValidationIssue(
            "national_id",
            f"a worker with national id {national_id} already exists",
            "duplicate_national_id",
            conflict=True,
        )
    ]


class WorkerService:
    def __init__(
        self,
        unit_of_work_factory: UnitOfWorkFactory,
        *,
        rules: RulesConfig | None = None,
    ) -> None:
        self._uow_factory = unit_of_work_factory
        self._rules = rules or RulesConfig()

    def get(self, worker_id: int) -> Worker:
        with self._uow_factory() as uow:
            worker = uow.repositories.workers.get(worker_id)
        if worker is None:
            raise NotFoundError(RecordKind.WORKER, worker_id)
        return worker

    def list_all(self) -> Sequence[Worker]:
        with self._uow_factory() as uow:
            return uow.repositories.workers.list_all()

    def create(self, payload: Mapping[str, object] | WorkerInput) -> Worker:
        data = parse_input(WorkerInput, payload)
        with self._uow_factory() as uow:
            repos = uow.repositories
            raise_for_issues(_check_national_id(repos, data.national_id))
            worker = Worker(**data.model_dump())
            repos.workers.add(worker)
            uow.commit()
        log.info("Created worker %s", worker.id)
        return worker

    def update(self, worker_id: int, payload: Mapping[str, object] | WorkerInput) -> Worker:
        with self._uow_factory() as uow:
            repos = uow.repositories
            worker = repos.workers.get(worker_id)
            if worker is None:
                raise NotFoundError(RecordKind.WORKER, worker_id)
            data = parse_input(WorkerInput, merge_payload(_worker_fields(worker), payload))
            raise_for_issues(_check_national_id(repos, data.national_id, exclude_id=worker_id))
            for name, value in data.model_dump().items():
                setattr(worker, name, value)
            uow.commit()
        log.info("Updated worker %s", worker_id)
        return worker

    def delete(self, worker_id: int) -> None:
        with self._uow_factory() as uow:
            repos = uow.repositories
            worker = repos.workers.get(worker_id)
            if worker is None:
                raise NotFoundError(RecordKind.WORKER, worker_id)
            ReferentialGuard(repos).ensure_deletable(RecordKind.WORKER, worker_id)
            repos.workers.remove(worker)
            uow.commit()
        log.info("Deleted worker %s", worker_id)

    # Assignments -------------------------------------------------------------

    def assign(self, contract_id: int, worker_id: int) -> ContractWorkerAssignment:
        with self._uow_factory() as uow:
            repos = uow.repositories
            issues: list[ValidationIssue] = []
            if repos.contracts.get(contract_id) is None:
                issues.append(
                    ValidationIssue(
                        "contract_id", f"contract {contract_id} does not exist", "missing_reference"
                    )
                )
            if repos.workers.get(worker_id) is None:
                issues.append(
                    ValidationIssue(
                        "worker_id", f"worker {worker_id} does not exist", "missing_reference"
                    )
                )
            if not issues and repos.assignments.find(contract_id, worker_id) is not None:
                issues.append(
                    ValidationIssue(
                        "worker_id",
                        f"worker {worker_id} is already assigned to contract {contract_id}",
                        "duplicate_assignment",
                        conflict=True,
                    )
                )
            raise_for_issues(issues)
            assignment = ContractWorkerAssignment(contract_id=contract_id, worker_id=worker_id)
            repos.assignments.add(assignment)
            uow.commit()
        log.info("Assigned worker %s to contract %s", worker_id, contract_id)
        return assignment

    def unassign(self, contract_id: int, worker_id: int) -> None:
        with self._uow_factory() as uow:
            repos = uow.repositories
            assignment = repos.assignments.find(contract_id, worker_id)
            if assignment is None:
                raise NotFoundError(
                    RecordKind.ASSIGNMENT,
                    contract_id,
                    message=f"worker {worker_id} is not assigned to contract {contract_id}",
                )
            repos.assignments.remove(assignment)
            uow.commit()
        log.info("Removed worker %s from contract %s", worker_id, contract_id)

    def contracts_for_worker(self, worker_id: int) -> Sequence[Contract]:
        with self._uow_factory() as uow:
            repos = uow.repositories
            if repos.workers.get(worker_id) is None:
                raise NotFoundError(RecordKind.WORKER, worker_id)
            return repos.contracts.for_worker(worker_id)

    def workers_for_contract(self, contract_id: int) -> Sequence[Worker]:
        with self._uow_factory() as uow:
            repos = uow.repositories
            if repos.contracts.get(contract_id) is None:
                raise NotFoundError(RecordKind.CONTRACT, contract_id)
            return repos.workers.for_contract(contract_id)

    def sync_assignments(self, worker_id: int, contract_ids: Iterable[int]) -> Sequence[Contract]:
        """Make ``contract_ids`` the worker's exact assignment set.

        Assignments outside the target are removed and missing ones added in a
        single transaction; unknown contract ids abort the whole sync.
        """

        target = set(contract_ids)
        with self._uow_factory() as uow:
            repos = uow.repositories
            if repos.workers.get(worker_id) is None:
                raise NotFoundError(RecordKind.WORKER, worker_id)
            missing = sorted(target - repos.contracts.existing_ids(target))
            if missing:
                raise ValidationError(
                    ValidationIssue(
                        "contract_ids",
                        f"contract {contract_id} does not exist",
                        "missing_reference",
                    )
                    for contract_id in missing
                )

            current = {
                assignment.contract_id: assignment
                for assignment in repos.assignments.for_worker(worker_id)
            }
            removed = [current[contract_id] for contract_id in current.keys() - target]
            added = sorted(target - current.keys())
            for assignment in removed:
                repos.assignments.remove(assignment)
            for contract_id in added:
                repos.assignments.add(
                    ContractWorkerAssignment(contract_id=contract_id, worker_id=worker_id)
                )
            uow.commit()
            contracts = repos.contracts.for_worker(worker_id)
        log.info(
            "Synced worker %s assignments: %s added, %s removed",
            worker_id,
            len(added),
            len(removed),
        )
        return contracts

    def filter(
        self,
        criteria: Mapping[str, object] | None,
        page: int,
        limit: int,
    ) -> Page[Worker]:
        request = PageRequest.build(page, limit, max_limit=self._rules.max_page_limit)
        with self._uow_factory() as uow:
            return uow.repositories.workers.filter(criteria or {}, request)


__all__ = ["WorkerService"]
