"""Per-year allocation of contract sequence numbers ("consecutivo").

The allocator only reads: two concurrent callers may compute the same number.
The unique ``(sequence_year, sequence_number)`` constraint checked at commit is
the authoritative guard, and :meth:`ContractService.create` retries allocation
when it loses that race.
"""

from __future__ import annotations

from logging import getLogger
from typing import TYPE_CHECKING

from contractdesk.config.rules import RulesConfig
from contractdesk.domain.errors import InvalidParameterError, ValidationIssue
from contractdesk.domain.time_windows import year_bounds

if TYPE_CHECKING:
    from contractdesk.domain.ports import ContractRepository

log = getLogger(__name__)


def check_year(year: int, *, rules: RulesConfig | None = None) -> None:
    effective = rules or RulesConfig()
    if not effective.min_year <= year <= effective.max_year:
        raise InvalidParameterError(
            [
                ValidationIssue(
                    "year",
                    f"year must be between {effective.min_year} and {effective.max_year}",
                    "year",
                )
            ]
        )


def next_consecutive(
    contracts: ContractRepository,
    year: int,
    *,
    rules: RulesConfig | None = None,
) -> int:
    """Return ``max + 1`` of the numbers used by contracts starting in ``year``."""

    check_year(year, rules=rules)
    start, end = year_bounds(year)
    numbers = contracts.sequence_numbers_between(start, end)
    following = max(numbers, default=0) + 1
    log.debug("Next consecutive for %s is %s (%s numbers in use)", year, following, len(numbers))
    return following


__all__ = ["check_year", "next_consecutive"]
