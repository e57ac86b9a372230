"""Pydantic schemas describing the request bodies accepted by the services."""

from __future__ import annotations

import re
from collections.abc import Mapping
from datetime import datetime  # noqa: TC003
from typing import Annotated, cast

from pydantic import BaseModel, ConfigDict, Field, field_validator
from pydantic import ValidationError as PydanticValidationError

from contractdesk.domain.errors import ValidationError, ValidationIssue
from contractdesk.domain.time_windows import ensure_aware

NAME_PATTERN = re.compile(r"^[a-zA-ZáéíóúÁÉÍÓÚñÑ0-9\s.,&-]+$")
ADDRESS_PATTERN = re.compile(r"^[a-zA-ZáéíóúÁÉÍÓÚñÑ0-9\s.,#-]+$")
PHONE_PATTERN = re.compile(r"^\+?[0-9\s-]{8,15}$")
EMAIL_PATTERN = re.compile(r"^[a-zA-Z0-9._%+-]+@[a-zA-Z0-9.-]+\.[a-zA-Z]{2,}$")
REO_CODE_PATTERN = re.compile(r"^[A-Z0-9]{6,10}$")
BANK_ACCOUNT_PATTERN = re.compile(r"^[0-9-]{10,20}$")
NATIONAL_ID_PATTERN = re.compile(r"^[0-9]{11}$")

PositiveId = Annotated[int, Field(gt=0)]


def _blank_to_none(value: object) -> object:
    if isinstance(value, str):
        stripped = value.strip()
        return stripped or None
    return value


class InputModel(BaseModel):
    model_config = ConfigDict(extra="ignore", str_strip_whitespace=True)


class ContractInput(InputModel):
    entity_id: PositiveId
    contract_type_id: PositiveId
    start_date: datetime
    end_date: datetime
    sequence_number: Annotated[int, Field(gt=0)] | None = None
    classification: Annotated[str, Field(min_length=1)]
    note: str | None = None

    _normalize_note = field_validator("note", mode="before")(_blank_to_none)

    @field_validator("start_date", "end_date")
    @classmethod
    def _as_utc(cls, value: datetime) -> datetime:
        return ensure_aware(value)


class OfferInput(InputModel):
    contract_id: PositiveId
    user_id: PositiveId
    start_date: datetime
    end_date: datetime
    status: str | None = None

    _normalize_status = field_validator("status", mode="before")(_blank_to_none)

    @field_validator("start_date", "end_date")
    @classmethod
    def _as_utc(cls, value: datetime) -> datetime:
        return ensure_aware(value)


class ContractTypeInput(InputModel):
    name: Annotated[str, Field(min_length=1, max_length=255)]


class EntityInput(InputModel):
    name: str
    address: str
    phone: str
    email: str
    kind: Annotated[str, Field(min_length=1)]
    bank_account: str = ""
    reo_code: str = ""
    nit_code: str = ""
    active: bool = True

    @field_validator("name")
    @classmethod
    def _check_name(cls, value: str) -> str:
        if not 3 <= len(value) <= 100:  # noqa: PLR2004
            raise ValueError("name must be between 3 and 100 characters")
        if not NAME_PATTERN.match(value):
            raise ValueError(
                "name may only contain letters, digits, spaces and the characters . , & -"
            )
        return value

    @field_validator("address")
    @classmethod
    def _check_address(cls, value: str) -> str:
        if not 5 <= len(value) <= 200:  # noqa: PLR2004
            raise ValueError("address must be between 5 and 200 characters")
        if not ADDRESS_PATTERN.match(value):
            raise ValueError(
                "address may only contain letters, digits, spaces and the characters . , # -"
            )
        return value

    @field_validator("phone")
    @classmethod
    def _check_phone(cls, value: str) -> str:
        if not PHONE_PATTERN.match(value):
            raise ValueError("phone must have 8 to 15 digits and may include +, spaces and -")
        return value

    @field_validator("email")
    @classmethod
    def _check_email(cls, value: str) -> str:
        if not EMAIL_PATTERN.match(value):
            raise ValueError("email must look like user@domain.com")
        return value

    @field_validator("reo_code")
    @classmethod
    def _check_reo_code(cls, value: str) -> str:
        if value and not REO_CODE_PATTERN.match(value):
            raise ValueError("reo_code must be 6 to 10 upper-case letters or digits")
        return value

    @field_validator("bank_account")
    @classmethod
    def _check_bank_account(cls, value: str) -> str:
        if value and not BANK_ACCOUNT_PATTERN.match(value):
            raise ValueError("bank_account must have 10 to 20 digits and may include -")
        return value


class WorkerInput(InputModel):
    full_name: Annotated[str, Field(min_length=1)]
    role_title: Annotated[str, Field(min_length=1)]
    national_id: str
    phone: str | None = None

    _normalize_phone = field_validator("phone", mode="before")(_blank_to_none)

    @field_validator("national_id")
    @classmethod
    def _check_national_id(cls, value: str) -> str:
        if not NATIONAL_ID_PATTERN.match(value):
            raise ValueError("national_id must be exactly 11 digits")
        return value


def parse_input[TModel: InputModel](
    model: type[TModel],
    payload: Mapping[str, object] | TModel,
) -> TModel:
    """Validate ``payload`` against ``model``, reporting every problem at once."""

    if isinstance(payload, model):
        return payload
    try:
        return model.model_validate(dict(cast(Mapping[str, object], payload)))
    except PydanticValidationError as exc:
        raise ValidationError(_issues_from_pydantic(exc)) from exc


def merge_payload(
    current: Mapping[str, object],
    changes: Mapping[str, object] | BaseModel,
) -> dict[str, object]:
    """Overlay the keys present in ``changes`` on top of ``current``."""

    if isinstance(changes, BaseModel):
        updates = changes.model_dump(exclude_unset=True)
    else:
        updates = dict(changes)
    merged = dict(current)
    merged.update(updates)
    return merged


def _issues_from_pydantic(exc: PydanticValidationError) -> list[ValidationIssue]:
    issues: list[ValidationIssue] = []
    for error in exc.errors():
        location = ".".join(str(part) for part in error["loc"]) or "payload"
        message = error["msg"]
        if message.startswith("Value error, "):
            message = message.removeprefix("Value error, ")
        else:
            message = f"{location}: {message}"
        code = "required" if error["type"] == "missing" else "invalid"
        issues.append(ValidationIssue(location, message, code))
    return issues


__all__ = [
    "ContractInput",
    "ContractTypeInput",
    "EntityInput",
    "InputModel",
    "OfferInput",
    "WorkerInput",
    "merge_payload",
    "parse_input",
]
