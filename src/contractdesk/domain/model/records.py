"""
Plain records persisted by the store adapter.

Identifiers are assigned by the store on flush, so freshly built records carry
``id=None``. Read-only associations (``Contract.entity``, ``Contract.workers``,
...) are attached by the adapter mappings and are only populated when a query
loads them explicitly.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import UTC
from typing import TYPE_CHECKING

from contractdesk.domain.model.enums import OfferStatus

if TYPE_CHECKING:
    from collections.abc import Iterable
    from datetime import datetime


def utc_year(value: datetime) -> int:
    """Calendar year of ``value`` once normalised to UTC."""
    if value.tzinfo is None:
        value = value.replace(tzinfo=UTC)
    return value.astimezone(UTC).year


@dataclass(eq=False, kw_only=True)
class Record:
    id: int | None = None


@dataclass(eq=False, kw_only=True)
class Entity(Record):
    """External organisation that contracts are signed with."""

    name: str
    address: str = ""
    phone: str = ""
    email: str = ""
    bank_account: str = ""
    kind: str = ""
    reo_code: str = ""
    nit_code: str = ""
    active: bool = True


@dataclass(eq=False, kw_only=True)
class ContractType(Record):
    name: str


@dataclass(eq=False, kw_only=True)
class Contract(Record):
    """A dated agreement with one entity, numbered per calendar year."""

    entity_id: int
    contract_type_id: int
    start_date: datetime
    end_date: datetime
    sequence_number: int
    classification: str
    note: str | None = None
    sequence_year: int = field(init=False)

    def __post_init__(self) -> None:
        self.sequence_year = utc_year(self.start_date)

    def reschedule(
        self,
        *,
        start_date: datetime,
        end_date: datetime,
        sequence_number: int,
    ) -> None:
        self.start_date = start_date
        self.end_date = end_date
        self.sequence_number = sequence_number
        # the (year, number) unique constraint depends on this staying in sync
        self.sequence_year = utc_year(start_date)

    @property
    def label(self) -> str:
        return self.note or self.classification


@dataclass(eq=False, kw_only=True)
class OfferDescription(Record):
    text: str
    offer_id: int | None = None


@dataclass(eq=False, kw_only=True)
class Offer(Record):
    """An offer issued under a contract; owns its ordered descriptions."""

    contract_id: int
    user_id: int
    start_date: datetime
    end_date: datetime
    status: OfferStatus | None = None
    descriptions: list[OfferDescription] = field(default_factory=list["OfferDescription"])

    def replace_descriptions(self, texts: Iterable[str]) -> None:
        """Swap the whole description set; previous rows become orphans."""
        self.descriptions = [OfferDescription(text=text) for text in texts]

    @property
    def description_texts(self) -> tuple[str, ...]:
        return tuple(description.text for description in self.descriptions)

    @property
    def label(self) -> str:
        if self.descriptions:
            return self.descriptions[0].text
        return ""


@dataclass(eq=False, kw_only=True)
class Worker(Record):
    """Person authorised to act on behalf of contracts."""

    full_name: str
    role_title: str
    national_id: str
    phone: str | None = None


@dataclass(eq=False, kw_only=True)
class ContractWorkerAssignment(Record):
    contract_id: int
    worker_id: int


@dataclass(eq=False, kw_only=True)
class User(Record):
    """Application user referenced by offers; managed outside this package."""

    full_name: str
    username: str
    role: str = "user"
    active: bool = True
