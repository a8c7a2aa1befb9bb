"""Command-line entry point for FairPlay sync."""

from __future__ import annotations

import argparse
import asyncio
import json
import logging
import sys
from typing import Optional

import structlog
from pydantic import ValidationError

from .config import SPORTS, Settings
from .errors import FairplayError
from .models import Sport
from .service import load_availability, sync_bookings
from .storage import SqlBookingStore


def configure_logging(level: int | str = logging.INFO) -> None:
    """Configure structlog + stdlib logging."""
    logging.basicConfig(
        level=level,
        format="%(message)s",
        stream=sys.stderr,
    )
    structlog.configure(
        processors=[
            structlog.stdlib.filter_by_level,
            structlog.processors.TimeStamper(fmt="iso"),
            structlog.processors.add_log_level,
            structlog.processors.JSONRenderer(),
        ],
        logger_factory=structlog.stdlib.LoggerFactory(),
        wrapper_class=structlog.stdlib.BoundLogger,
        cache_logger_on_first_use=True,
    )


LOGGER = structlog.get_logger(__name__)


def parse_args(argv: Optional[list[str]] = None) -> argparse.Namespace:
    """CLI argument parsing."""
    parser = argparse.ArgumentParser(description="Read Centre FairPlay schedules and record your bookings.")
    commands = parser.add_subparsers(dest="command", required=True)

    sport_choices = [sport.value for sport in SPORTS]

    availability = commands.add_parser("availability", help="Print the parsed schedule as JSON.")
    availability.add_argument("--sport", choices=sport_choices, default=Sport.TENNIS_INT.value)
    availability.add_argument("--day", help="Day token taken from a previous schedule's 'days' list.")
    availability.add_argument("--name", help="Display name used to flag your own bookings.")

    sync = commands.add_parser("sync", help="Store your bookings for one sport/day.")
    sync.add_argument("--sport", choices=sport_choices, default=Sport.TENNIS_INT.value)
    sync.add_argument("--day", help="Day token taken from a previous schedule's 'days' list.")
    sync.add_argument("--name", help="Display name as rendered in the grid, e.g. 'C Berchier'.")

    commands.add_parser("bookings", help="List stored bookings, most recent first.")
    commands.add_parser("partners", help="Sessions per partner, most frequent first.")
    return parser.parse_args(argv)


def cli(argv: Optional[list[str]] = None) -> int:
    """Console script entrypoint."""
    args = parse_args(argv)

    try:
        settings = Settings()
    except ValidationError as exc:  # pragma: no cover - startup validation
        configure_logging()
        LOGGER.exception("settings.error", error=str(exc))
        return 2
    configure_logging(settings.log_level.upper())

    try:
        if args.command == "availability":
            name = args.name or settings.display_name
            model = asyncio.run(load_availability(settings, Sport(args.sport), args.day, name))
            print(model.model_dump_json(by_alias=True, indent=2))
        elif args.command == "sync":
            store = SqlBookingStore.from_url(settings.database_url)
            name = args.name or settings.display_name
            result = asyncio.run(sync_bookings(settings, store, Sport(args.sport), name, args.day))
            print(result.model_dump_json(by_alias=True, indent=2))
        elif args.command == "partners":
            store = SqlBookingStore.from_url(settings.database_url)
            stats = [stat.model_dump(mode="json", by_alias=True) for stat in store.partner_stats()]
            print(json.dumps(stats, ensure_ascii=False, indent=2))
        else:
            store = SqlBookingStore.from_url(settings.database_url)
            records = [record.model_dump(mode="json", by_alias=True) for record in store.list_all()]
            print(json.dumps(records, ensure_ascii=False, indent=2))
    except FairplayError as exc:
        LOGGER.error("command.failed", command=args.command, error=str(exc))
        print(f"Error: {exc}", file=sys.stderr)
        return 1
    return 0


if __name__ == "__main__":  # pragma: no cover
    raise SystemExit(cli())
