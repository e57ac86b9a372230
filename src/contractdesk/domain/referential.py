"""Pre-delete inspection of dependent rows."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import TYPE_CHECKING

from contractdesk.domain.errors import BlockerRef, ReferentialIntegrityError
from contractdesk.domain.model import Contract, RecordKind

if TYPE_CHECKING:
    from collections.abc import Iterable

    from contractdesk.domain.ports import ContractDeskRepositories


@dataclass(frozen=True, slots=True)
class DeletionCheck:
    ok: bool
    blockers: tuple[BlockerRef, ...] = field(default=())


def _contract_blockers(contracts: Iterable[Contract]) -> list[BlockerRef]:
    return [
        BlockerRef(RecordKind.CONTRACT, contract.id, contract.label)
        for contract in contracts
        if contract.id is not None
    ]


class ReferentialGuard:
    """Report which children keep a parent row from being deleted.

    Contracts are blocked by their offers and worker assignments; entities and
    contract types by the contracts referencing them; workers by the contracts
    they are assigned to.
    """

    def __init__(self, repositories: ContractDeskRepositories) -> None:
        self._repositories = repositories

    def check_deletable(self, kind: RecordKind, record_id: int) -> DeletionCheck:
        blockers = tuple(self._blockers(kind, record_id))
        return DeletionCheck(ok=not blockers, blockers=blockers)

    def ensure_deletable(self, kind: RecordKind, record_id: int) -> None:
        check = self.check_deletable(kind, record_id)
        if not check.ok:
            raise ReferentialIntegrityError(kind, record_id, check.blockers)

    def _blockers(self, kind: RecordKind, record_id: int) -> list[BlockerRef]:
        repos = self._repositories
        match kind:
            case RecordKind.CONTRACT:
                blockers = [
                    BlockerRef(RecordKind.OFFER, offer.id, offer.label)
                    for offer in repos.offers.for_contract(record_id)
                    if offer.id is not None
                ]
                blockers.extend(
                    BlockerRef(RecordKind.WORKER, worker.id, worker.full_name)
                    for worker in repos.workers.for_contract(record_id)
                    if worker.id is not None
                )
                return blockers
            case RecordKind.ENTITY:
                return _contract_blockers(repos.contracts.for_entity(record_id))
            case RecordKind.CONTRACT_TYPE:
                return _contract_blockers(repos.contracts.for_contract_type(record_id))
            case RecordKind.WORKER:
                return _contract_blockers(repos.contracts.for_worker(record_id))
            case _:
                raise ValueError(f"no deletion guard for {kind.value}")


__all__ = ["DeletionCheck", "ReferentialGuard"]
