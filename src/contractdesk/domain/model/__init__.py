"""Domain model for contracts, offers and authorised workers."""

from __future__ import annotations

from .enums import OfferStatus, RecordKind
from .records import (
    Contract,
    ContractType,
    ContractWorkerAssignment,
    Entity,
    Offer,
    OfferDescription,
    Record,
    User,
    Worker,
    utc_year,
)

__all__ = [
    "Contract",
    "ContractType",
    "ContractWorkerAssignment",
    "Entity",
    "Offer",
    "OfferDescription",
    "OfferStatus",
    "Record",
    "RecordKind",
    "User",
    "Worker",
    "utc_year",
]
