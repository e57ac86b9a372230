"""Page requests, page results and criteria normalisation for list endpoints."""

from __future__ import annotations

import math
from dataclasses import dataclass
from typing import TYPE_CHECKING

from contractdesk.domain.errors import InvalidParameterError, ValidationIssue

if TYPE_CHECKING:
    from collections.abc import Collection, Mapping, Sequence


@dataclass(frozen=True, slots=True)
class PageRequest:
    page: int
    limit: int

    @property
    def offset(self) -> int:
        return (self.page - 1) * self.limit

    @classmethod
    def build(cls, page: int, limit: int, *, max_limit: int | None = None) -> PageRequest:
        issues: list[ValidationIssue] = []
        if page < 1:
            issues.append(ValidationIssue("page", "page must be a positive integer", "page"))
        if limit < 1:
            issues.append(ValidationIssue("limit", "limit must be a positive integer", "limit"))
        elif max_limit is not None and limit > max_limit:
            issues.append(
                ValidationIssue("limit", f"limit must not exceed {max_limit}", "limit")
            )
        if issues:
            raise InvalidParameterError(issues)
        return cls(page=page, limit=limit)


@dataclass(frozen=True, slots=True)
class Page[T]:
    items: Sequence[T]
    total: int
    page: int
    limit: int

    @property
    def total_pages(self) -> int:
        return math.ceil(self.total / self.limit)

    @property
    def has_next_page(self) -> bool:
        return self.page < self.total_pages

    @property
    def has_prev_page(self) -> bool:
        return self.page > 1

    def metadata(self) -> dict[str, int | bool]:
        return {
            "total": self.total,
            "totalPages": self.total_pages,
            "currentPage": self.page,
            "limit": self.limit,
            "hasNextPage": self.has_next_page,
            "hasPrevPage": self.has_prev_page,
        }


def normalize_criteria(
    criteria: Mapping[str, object] | None,
    allowed: Collection[str],
) -> dict[str, object]:
    """Drop empty values and reject criteria names the caller cannot filter on."""

    if not criteria:
        return {}
    unknown = sorted(name for name in criteria if name not in allowed)
    if unknown:
        raise InvalidParameterError(
            [ValidationIssue(name, f"unknown filter field: {name}", "filter") for name in unknown]
        )
    cleaned: dict[str, object] = {}
    for name, value in criteria.items():
        if value is None:
            continue
        if isinstance(value, str):
            value = value.strip()
            if not value:
                continue
        cleaned[name] = value
    return cleaned
