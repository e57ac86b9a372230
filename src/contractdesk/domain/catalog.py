"""Entities and contract types: plain CRUD with name (and e-mail) uniqueness."""

from __future__ import annotations

from logging import getLogger
from typing import TYPE_CHECKING

from contractdesk.config.rules import RulesConfig
from contractdesk.domain.errors import NotFoundError, ValidationIssue, raise_for_issues
from contractdesk.domain.inputs import ContractTypeInput, EntityInput, merge_payload, parse_input
from contractdesk.domain.model import ContractType, Entity, RecordKind
from contractdesk.domain.pagination import PageRequest
from contractdesk.domain.referential import ReferentialGuard

if TYPE_CHECKING:
    from collections.abc import Mapping, Sequence

    from contractdesk.domain.pagination import Page
    from contractdesk.domain.ports import ContractDeskRepositories, UnitOfWorkFactory

log = getLogger(__name__)


def _entity_fields(entity: Entity) -> dict[str, object]:
    return {
        "name": entity.name,
        "address": entity.address,
        "phone": entity.phone,
        "email": entity.email,
        "bank_account": entity.bank_account,
        "kind": entity.kind,
        "reo_code": entity.reo_code,
        "nit_code": entity.nit_code,
        "active": entity.active,
    }


def validate_entity(
    repositories: ContractDeskRepositories,
    data: EntityInput,
    *,
    exclude_id: int | None = None,
) -> list[ValidationIssue]:
    issues: list[ValidationIssue] = []
    if repositories.entities.find_by_name(data.name, exclude_id=exclude_id) is not None:
        issues.append(
            ValidationIssue(
                "name",
                f"an entity named {data.name!r} already exists",
                "duplicate_name",
                conflict=True,
            )
        )
    if repositories.entities.find_by_email(data.email, exclude_id=exclude_id) is not None:
        issues.append(
            ValidationIssue(
                "email",
                f"the e-mail {data.email!r} is already registered",
                "duplicate_email",
                conflict=True,
            )
        )
    return issues


class EntityService:
    def __init__(
        self,
        unit_of_work_factory: UnitOfWorkFactory,
        *,
        rules: RulesConfig | None = None,
    ) -> None:
        self._uow_factory = unit_of_work_factory
        self._rules = rules or RulesConfig()

    def get(self, entity_id: int) -> Entity:
        with self._uow_factory() as uow:
            entity = uow.repositories.entities.get(entity_id)
        if entity is None:
            raise NotFoundError(RecordKind.ENTITY, entity_id)
        return entity

    def list_all(self) -> Sequence[Entity]:
        with self._uow_factory() as uow:
            return uow.repositories.entities.list_all()

    def create(self, payload: Mapping[str, object] | EntityInput) -> Entity:
        data = parse_input(EntityInput, payload)
        with self._uow_factory() as uow:
            repos = uow.repositories
            raise_for_issues(validate_entity(repos, data))
            entity = Entity(**data.model_dump())
            repos.entities.add(entity)
            uow.commit()
        log.info("Created entity %s (%s)", entity.id, entity.name)
        return entity

    def update(self, entity_id: int, payload: Mapping[str, object] | EntityInput) -> Entity:
        with self._uow_factory() as uow:
            repos = uow.repositories
            entity = repos.entities.get(entity_id)
            if entity is None:
                raise NotFoundError(RecordKind.ENTITY, entity_id)
            data = parse_input(EntityInput, merge_payload(_entity_fields(entity), payload))
            raise_for_issues(validate_entity(repos, data, exclude_id=entity_id))
            for name, value in data.model_dump().items():
                setattr(entity, name, value)
            uow.commit()
        log.info("Updated entity %s", entity_id)
        return entity

    def delete(self, entity_id: int) -> None:
        with self._uow_factory() as uow:
            repos = uow.repositories
            entity = repos.entities.get(entity_id)
            if entity is None:
                raise NotFoundError(RecordKind.ENTITY, entity_id)
            ReferentialGuard(repos).ensure_deletable(RecordKind.ENTITY, entity_id)
            repos.entities.remove(entity)
            uow.commit()
        log.info("Deleted entity %s", entity_id)

    def filter(
        self,
        criteria: Mapping[str, object] | None,
        page: int,
        limit: int,
    ) -> Page[Entity]:
        request = PageRequest.build(page, limit, max_limit=self._rules.max_page_limit)
        with self._uow_factory() as uow:
            return uow.repositories.entities.filter(criteria or {}, request)


class ContractTypeService:
    def __init__(self, unit_of_work_factory: UnitOfWorkFactory) -> None:
        self._uow_factory = unit_of_work_factory

    def get(self, contract_type_id: int) -> ContractType:
        with self._uow_factory() as uow:
            contract_type = uow.repositories.contract_types.get(contract_type_id)
        if contract_type is None:
            raise NotFoundError(RecordKind.CONTRACT_TYPE, contract_type_id)
        return contract_type

    def list_all(self) -> Sequence[ContractType]:
        with self._uow_factory() as uow:
            return uow.repositories.contract_types.list_all()

    def create(self, payload: Mapping[str, object] | ContractTypeInput) -> ContractType:
        data = parse_input(ContractTypeInput, payload)
        with self._uow_factory() as uow:
            repos = uow.repositories
            raise_for_issues(self._check_name(repos, data.name))
            contract_type = ContractType(name=data.name)
            repos.contract_types.add(contract_type)
            uow.commit()
        log.info("Created contract type %s (%s)", contract_type.id, contract_type.name)
        return contract_type

    def update(
        self,
        contract_type_id: int,
        payload: Mapping[str, object] | ContractTypeInput,
    ) -> ContractType:
        with self._uow_factory() as uow:
            repos = uow.repositories
            contract_type = repos.contract_types.get(contract_type_id)
            if contract_type is None:
                raise NotFoundError(RecordKind.CONTRACT_TYPE, contract_type_id)
            data = parse_input(
                ContractTypeInput, merge_payload({"name": contract_type.name}, payload)
            )
            raise_for_issues(self._check_name(repos, data.name, exclude_id=contract_type_id))
            contract_type.name = data.name
            uow.commit()
        log.info("Updated contract type %s", contract_type_id)
        return contract_type

    def delete(self, contract_type_id: int) -> None:
        with self._uow_factory() as uow:
            repos = uow.repositories
            contract_type = repos.contract_types.get(contract_type_id)
            if contract_type is None:
                raise NotFoundError(RecordKind.CONTRACT_TYPE, contract_type_id)
            ReferentialGuard(repos).ensure_deletable(RecordKind.CONTRACT_TYPE, contract_type_id)
            repos.contract_types.remove(contract_type)
            uow.commit()
        log.info("Deleted contract type %s", contract_type_id)

    @staticmethod
    def _check_name(
        repositories: ContractDeskRepositories,
        name: str,
        *,
        exclude_id: int | None = None,
    ) -> list[ValidationIssue]:
        if repositories.contract_types.find_by_name(name, exclude_id=exclude_id) is None:
            return []
        return [
            ValidationIssue(
                "name",
                f"a contract type named {name!r} already exists",
                "duplicate_name",
                conflict=True,
            )
        ]


__all__ = ["ContractTypeService", "EntityService", "validate_entity"]
