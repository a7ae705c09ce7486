"""
Command-line entry point for checking booking eligibility.

Loads a marketplace snapshot into the in-memory stores and runs the full
validation pipeline for a single booking request.

Usage:
    python main.py check --data data/demo_marketplace.json \\
        --service 65f1c0ffee00000000000001 --date 2026-10-23 \\
        --slot "10:00 AM - 12:00 PM" --address addr-home --user user-verified
"""

import argparse
import asyncio
import json
import logging
import sys
from pathlib import Path
from typing import Any

from booking_eligibility.config import settings
from booking_eligibility.eligibility.validator import BookingRequestValidator
from booking_eligibility.logging_context import request_scope
from booking_eligibility.stores.fixtures import load_marketplace

logger = logging.getLogger(__name__)

EXIT_ELIGIBLE = 0
EXIT_NOT_ELIGIBLE = 1
EXIT_BAD_INPUT = 2


def _parse_address(raw: str) -> Any:
    """A saved-address id, or an inline address given as a JSON object."""
    if raw.lstrip().startswith("{"):
        return json.loads(raw)
    return raw


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        description=f"{settings.service_name}: check which vendors can take a booking."
    )
    subparsers = parser.add_subparsers(dest="command", required=True)

    check = subparsers.add_parser("check", help="Validate one booking request.")
    check.add_argument("--data", type=str, required=True, help="Marketplace snapshot JSON file.")
    check.add_argument("--service", type=str, required=True, help="Service template id.")
    check.add_argument("--date", type=str, required=True, help="Requested date, e.g. 2025-03-14.")
    check.add_argument("--slot", type=str, required=True, help='Time slot, e.g. "10:00 AM - 12:00 PM".')
    check.add_argument(
        "--address", type=str, required=True,
        help="Saved address id, or an inline address as a JSON object.",
    )
    check.add_argument("--user", type=str, required=True, help="Customer user id.")
    check.add_argument("--verbose", action="store_true", help="Enable debug logging.")
    return parser


def main() -> None:
    args = _build_parser().parse_args()

    if args.verbose:
        logging.getLogger().setLevel(logging.DEBUG)

    data_path = Path(args.data)
    try:
        stores = load_marketplace(data_path)
        address = _parse_address(args.address)
    except (OSError, ValueError) as e:
        logger.error("Cannot load input: %s", e)
        sys.exit(EXIT_BAD_INPUT)

    validator = BookingRequestValidator.from_stores(stores)
    with request_scope() as request_id:
        logger.info("Checking booking eligibility (%s)", request_id)
        result = asyncio.run(
            validator.validate_booking_request(args.service, args.date, args.slot, address, args.user)
        )

    sys.stdout.write(json.dumps(result.to_response(), indent=2) + "\n")
    sys.exit(EXIT_ELIGIBLE if result.is_valid else EXIT_NOT_ELIGIBLE)


if __name__ == "__main__":
    main()
