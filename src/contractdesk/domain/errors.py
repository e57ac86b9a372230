"""Error taxonomy shared by every core operation."""

from __future__ import annotations

from dataclasses import dataclass
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from collections.abc import Iterable

    from contractdesk.domain.model import RecordKind


class ContractDeskError(Exception):
    """Base class for errors raised by contractdesk."""


@dataclass(frozen=True, slots=True)
class ValidationIssue:
    """One business-rule violation, reported alongside all others."""

    field: str
    message: str
    code: str = "invalid"
    conflict: bool = False


class ValidationError(ContractDeskError):
    """One or more business-rule violations; nothing was written."""

    def __init__(self, issues: Iterable[ValidationIssue]) -> None:
        self.issues: tuple[ValidationIssue, ...] = tuple(issues)
        if not self.issues:
            raise ValueError("ValidationError requires at least one issue")
        super().__init__("; ".join(self.messages))

    @property
    def messages(self) -> tuple[str, ...]:
        return tuple(issue.message for issue in self.issues)

    @classmethod
    def single(cls, field: str, message: str, *, code: str = "invalid") -> ValidationError:
        return cls([ValidationIssue(field, message, code)])


class ConflictError(ValidationError):
    """A uniqueness or temporal-overlap invariant would be violated."""


class InvalidParameterError(ValidationError):
    """Pagination, year or filter parameters are out of range."""


class NotFoundError(ContractDeskError):
    """No row of ``kind`` matches; ``message`` replaces the default wording."""

    def __init__(self, kind: RecordKind, record_id: int, *, message: str | None = None) -> None:
        self.kind = kind
        self.record_id = record_id
        super().__init__(message or f"{kind.value} {record_id} not found")


@dataclass(frozen=True, slots=True)
class BlockerRef:
    """A dependent row that prevents deleting its parent."""

    kind: RecordKind
    id: int
    label: str


class ReferentialIntegrityError(ContractDeskError):
    def __init__(
        self,
        kind: RecordKind,
        record_id: int,
        blockers: Iterable[BlockerRef],
    ) -> None:
        self.kind = kind
        self.record_id = record_id
        self.blockers: tuple[BlockerRef, ...] = tuple(blockers)
        super().__init__(
            f"cannot delete {kind.value} {record_id}: "
            f"{len(self.blockers)} dependent record(s) exist"
        )


class StoreError(ContractDeskError):
    """The relational store failed; the transaction was rolled back."""


class DeadlineExceededError(StoreError):
    """A unit of work ran past its deadline and was rolled back."""


def raise_for_issues(issues: Iterable[ValidationIssue]) -> None:
    """Raise the most specific validation error for ``issues`` (if any)."""

    collected = tuple(issues)
    if not collected:
        return
    if any(issue.conflict for issue in collected):
        raise ConflictError(collected)
    raise ValidationError(collected)


def http_status_for(error: BaseException) -> int:
    """Uniform mapping of error kinds to HTTP status codes for callers."""

    if isinstance(error, ValidationError):
        return 400
    if isinstance(error, NotFoundError):
        return 404
    if isinstance(error, ReferentialIntegrityError):
        return 409
    return 500


__all__ = [
    "BlockerRef",
    "ConflictError",
    "ContractDeskError",
    "DeadlineExceededError",
    "InvalidParameterError",
    "NotFoundError",
    "ReferentialIntegrityError",
    "StoreError",
    "ValidationError",
    "ValidationIssue",
    "http_status_for",
    "raise_for_issues",
]
