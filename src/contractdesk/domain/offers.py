"""Offer aggregate writer.

An offer and its descriptions are always written together: descriptions are
owned by the offer relationship (``delete-orphan``), so inserting, replacing
or deleting them happens in the same flush as the offer row itself.
"""

from __future__ import annotations

from logging import getLogger
from typing import TYPE_CHECKING

from contractdesk.config.rules import RulesConfig
from contractdesk.domain.errors import NotFoundError, ValidationIssue, raise_for_issues
from contractdesk.domain.inputs import OfferInput, merge_payload, parse_input
from contractdesk.domain.model import Offer, OfferDescription, OfferStatus, RecordKind
from contractdesk.domain.pagination import PageRequest
from contractdesk.domain.time_windows import Clock, utcnow

if TYPE_CHECKING:
    from collections.abc import Iterable, Mapping, Sequence
    from datetime import datetime

    from contractdesk.domain.pagination import Page
    from contractdesk.domain.ports import ContractDeskRepositories, UnitOfWorkFactory

log = getLogger(__name__)

_STATUS_VALUES = tuple(status.value for status in OfferStatus)


def check_descriptions(texts: Iterable[str]) -> tuple[list[str], list[ValidationIssue]]:
    """Return the trimmed description texts and one issue per blank entry."""

    cleaned: list[str] = []
    issues: list[ValidationIssue] = []
    for index, text in enumerate(texts):
        stripped = text.strip() if isinstance(text, str) else ""
        if not stripped:
            issues.append(
                ValidationIssue(
                    f"descriptions[{index}]",
                    f"description #{index + 1} must not be empty",
                    "blank_description",
                )
            )
            continue
        cleaned.append(stripped)
    return cleaned, issues


def validate_offer(
    repositories: ContractDeskRepositories,
    data: OfferInput,
    *,
    now: datetime,
) -> list[ValidationIssue]:
    """Collect every violation of the offer field rules."""

    issues: list[ValidationIssue] = []

    if data.start_date >= data.end_date:
        issues.append(
            ValidationIssue("end_date", "end_date must be later than start_date", "date_order")
        )

    contract = repositories.contracts.get(data.contract_id)
    if contract is None:
        issues.append(
            ValidationIssue(
                "contract_id",
                f"contract {data.contract_id} does not exist",
                "missing_reference",
            )
        )
    elif contract.end_date < now:
        issues.append(
            ValidationIssue(
                "contract_id",
                "offers cannot reference an expired contract",
                "expired_contract",
            )
        )

    if repositories.users.get(data.user_id) is None:
        issues.append(
            ValidationIssue("user_id", f"user {data.user_id} does not exist", "missing_reference")
        )

    if data.status is not None and data.status not in _STATUS_VALUES:
        issues.append(
            ValidationIssue(
                "status",
                f"status must be one of: {', '.join(_STATUS_VALUES)}",
                "status",
            )
        )

    return issues


def _offer_fields(offer: Offer) -> dict[str, object]:
    return {
        "contract_id": offer.contract_id,
        "user_id": offer.user_id,
        "start_date": offer.start_date,
        "end_date": offer.end_date,
        "status": offer.status.value if offer.status is not None else None,
    }


class OfferService:
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

    def create(
        self,
        payload: Mapping[str, object] | OfferInput,
        descriptions: Iterable[str] = (),
    ) -> Offer:
        """Insert an offer and all of its descriptions, or nothing at all."""

        data = parse_input(OfferInput, payload)
        texts, description_issues = check_descriptions(descriptions)
        with self._uow_factory() as uow:
            repos = uow.repositories
            issues = validate_offer(repos, data, now=self._clock())
            raise_for_issues([*issues, *description_issues])
            offer = Offer(
                contract_id=data.contract_id,
                user_id=data.user_id,
                start_date=data.start_date,
                end_date=data.end_date,
                status=OfferStatus(data.status) if data.status else None,
            )
            offer.replace_descriptions(texts)
            repos.offers.add(offer)
            uow.commit()
        log.info("Created offer %s with %s description(s)", offer.id, len(texts))
        return offer

    def update(
        self,
        offer_id: int,
        payload: Mapping[str, object] | OfferInput,
        descriptions: Iterable[str] | None = None,
    ) -> Offer:
        """Update the offer fields; a non-``None`` ``descriptions`` replaces the whole set."""

        texts: list[str] | None = None
        description_issues: list[ValidationIssue] = []
        if descriptions is not None:
            texts, description_issues = check_descriptions(descriptions)
        with self._uow_factory() as uow:
            repos = uow.repositories
            offer = repos.offers.get(offer_id)
            if offer is None:
                raise NotFoundError(RecordKind.OFFER, offer_id)
            data = parse_input(OfferInput, merge_payload(_offer_fields(offer), payload))
            issues = validate_offer(repos, data, now=self._clock())
            raise_for_issues([*issues, *description_issues])
            offer.contract_id = data.contract_id
            offer.user_id = data.user_id
            offer.start_date = data.start_date
            offer.end_date = data.end_date
            offer.status = OfferStatus(data.status) if data.status else None
            if texts is not None:
                offer.replace_descriptions(texts)
            uow.commit()
        log.info("Updated offer %s", offer_id)
        return offer

    def delete(self, offer_id: int) -> None:
        with self._uow_factory() as uow:
            repos = uow.repositories
            offer = repos.offers.get(offer_id)
            if offer is None:
                raise NotFoundError(RecordKind.OFFER, offer_id)
            count = len(offer.descriptions)
            offer.descriptions.clear()
            repos.offers.remove(offer)
            uow.commit()
        log.info("Deleted offer %s and %s description(s)", offer_id, count)

    def get(self, offer_id: int) -> Offer:
        with self._uow_factory() as uow:
            offer = uow.repositories.offers.get(offer_id)
            if offer is None:
                raise NotFoundError(RecordKind.OFFER, offer_id)
        return offer

    def list_for_contract(self, contract_id: int) -> Sequence[Offer]:
        with self._uow_factory() as uow:
            return uow.repositories.offers.for_contract(contract_id)

    def descriptions(self, offer_id: int) -> Sequence[OfferDescription]:
        with self._uow_factory() as uow:
            if uow.repositories.offers.get(offer_id) is None:
                raise NotFoundError(RecordKind.OFFER, offer_id)
            return uow.repositories.offers.descriptions_for(offer_id)

    def filter(
        self,
        criteria: Mapping[str, object] | None,
        page: int,
        limit: int,
    ) -> Page[Offer]:
        request = PageRequest.build(page, limit, max_limit=self._rules.max_page_limit)
        with self._uow_factory() as uow:
            return uow.repositories.offers.filter(criteria or {}, request)

    def filter_descriptions(
        self,
        criteria: Mapping[str, object] | None,
        page: int,
        limit: int,
    ) -> Page[OfferDescription]:
        request = PageRequest.build(page, limit, max_limit=self._rules.max_page_limit)
        with self._uow_factory() as uow:
            return uow.repositories.offers.filter_descriptions(criteria or {}, request)


__all__ = ["OfferService", "check_descriptions", "validate_offer"]
