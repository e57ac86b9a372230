"""Domain enums (pure, dependency-light)."""

from __future__ import annotations

from enum import StrEnum


class OfferStatus(StrEnum):
    VIGENTE = "vigente"
    FACTURADA = "facturada"
    VENCIDA = "vencida"


class RecordKind(StrEnum):
    """Discriminator used in errors and blocker reports."""

    ENTITY = "entity"
    CONTRACT_TYPE = "contract_type"
    CONTRACT = "contract"
    OFFER = "offer"
    OFFER_DESCRIPTION = "offer_description"
    WORKER = "worker"
    ASSIGNMENT = "assignment"
    USER = "user"
