# ruff: noqa: T201

from __future__ import annotations

import argparse
import logging
import sys
from signal import SIGINT, signal
from typing import TYPE_CHECKING

from dotenv import load_dotenv

from contractdesk.app import expiring_contracts, filter_contracts, next_consecutive
from contractdesk.config import configure_logging
from contractdesk.domain.errors import ValidationError

if TYPE_CHECKING:
    from collections.abc import Sequence
    from types import FrameType

    from contractdesk.domain.model import Contract

log = logging.getLogger(__name__)


def _parse_args(argv: Sequence[str]) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Query the contract register")
    parser.add_argument(
        "--verbose",
        action="store_true",
        help="Log debug output from the services",
    )
    subparsers = parser.add_subparsers(dest="command", required=True)

    consecutive = subparsers.add_parser(
        "next-consecutive",
        help="Print the next free contract sequence number for a year",
    )
    consecutive.add_argument("year", type=int, help="Calendar year (UTC)")

    expiring = subparsers.add_parser("expiring", help="List contracts that end soon")
    expiring.add_argument(
        "--days",
        type=int,
        default=None,
        help="Look-ahead window in days (defaults to config)",
    )

    contracts = subparsers.add_parser("contracts", help="List contracts page by page")
    contracts.add_argument("--page", type=int, default=1, help="Page number (default: %(default)s)")
    contracts.add_argument(
        "--limit",
        type=int,
        default=None,
        help="Rows per page (defaults to config)",
    )
    contracts.add_argument("--entity-name", type=str, help="Substring of the entity name")
    contracts.add_argument("--classification", type=str, help="Substring of the classification")

    return parser.parse_args(list(argv))


def _format_contract(contract: Contract) -> str:
    entity = getattr(contract, "entity", None)
    entity_name = entity.name if entity is not None else str(contract.entity_id)
    return (
        f"{contract.id}\t{contract.sequence_year}/{contract.sequence_number}\t"
        f"{entity_name}\t{contract.classification}\t{contract.end_date:%Y-%m-%d}"
    )


def _run(args: argparse.Namespace) -> None:
    if args.command == "next-consecutive":
        print(next_consecutive(args.year))
    elif args.command == "expiring":
        for contract in expiring_contracts(args.days):
            print(_format_contract(contract))
    elif args.command == "contracts":
        page = filter_contracts(
            {"entity_name": args.entity_name, "classification": args.classification},
            page=args.page,
            limit=args.limit,
        )
        for contract in page.items:
            print(_format_contract(contract))
        print(
            f"page {page.page}/{page.total_pages} ({page.total} contract(s))",
            file=sys.stderr,
        )
    else:
        raise ValueError(f"Unsupported command: {args.command}")


def main(argv: Sequence[str] | None = None) -> None:
    """Main application entry point."""
    load_dotenv()
    args_list = list(argv) if argv is not None else list(sys.argv[1:])
    parsed_args = _parse_args(args_list)
    configure_logging(level=logging.DEBUG if parsed_args.verbose else logging.WARNING)

    try:
        _run(parsed_args)
    except ValidationError as exc:
        print(f"Error: {exc}", file=sys.stderr)
        sys.exit(2)
    except Exception as e:  # noqa: BLE001
        log.debug("Command failed", exc_info=True)
        print(f"Error: {e}", file=sys.stderr)
        sys.exit(1)


def sigint_handler(_signal_received: int, _frame: FrameType | None) -> None:
    """Handle SIGINT (Ctrl+C) gracefully."""
    print("\nClosed by user (Ctrl+C)")
    sys.exit(0)


if __name__ == "__main__":
    signal(SIGINT, sigint_handler)
    main()
