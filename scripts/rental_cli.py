"""Command line front end for browsing instruments and managing rentals."""

from __future__ import annotations

import argparse
import sys
from typing import Callable, TextIO

from src.soundgood.config import AppConfig
from src.soundgood.exceptions import RentalError, StoreError
from src.soundgood.logging import configure_logging
from src.soundgood.main import build_coordinator
from src.soundgood.services.rental_service import RentalCoordinator


def parse_args(argv: list[str]) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Soundgood instrument rentals.")
    commands = parser.add_subparsers(dest="command", required=True)

    list_cmd = commands.add_parser("list", help="List instruments that can be rented today.")
    list_cmd.add_argument("--name", help="Only show instruments with exactly this name.")

    rent_cmd = commands.add_parser("rent", help="Rent an instrument for a period.")
    rent_cmd.add_argument("student_id")
    rent_cmd.add_argument("instrument_id")
    rent_cmd.add_argument("from_date", help="First rental day, YYYY-MM-DD.")
    rent_cmd.add_argument("to_date", help="Last rental day, YYYY-MM-DD.")

    terminate_cmd = commands.add_parser("terminate", help="Terminate an ongoing rental.")
    terminate_cmd.add_argument("student_id")
    terminate_cmd.add_argument("instrument_id")

    rentals_cmd = commands.add_parser("rentals", help="Show a student's non-terminated rentals.")
    rentals_cmd.add_argument("student_id")
    return parser.parse_args(argv)


def execute(args: argparse.Namespace, coordinator: RentalCoordinator, out: TextIO) -> None:
    if args.command == "list":
        if args.name is None:
            instruments = coordinator.get_all_available()
        else:
            instruments = coordinator.get_all_available_by_name(args.name)
        for item in instruments:
            print(f"{item.id}\t{item.name}\t{item.brand}\t{item.price}", file=out)
    elif args.command == "rent":
        rental = coordinator.rent(args.student_id, args.instrument_id, args.from_date, args.to_date)
        print(
            f"rented instrument {rental.instrument_id} to student {rental.student_id} "
            f"from {rental.start.isoformat()} to {rental.end.isoformat()}",
            file=out,
        )
    elif args.command == "terminate":
        coordinator.terminate_rental(args.student_id, args.instrument_id)
        print(
            f"terminated rental of instrument {args.instrument_id} for student {args.student_id}",
            file=out,
        )
    elif args.command == "rentals":
        for rental in coordinator.get_active_rentals(args.student_id):
            print(
                f"{rental.rental_id}\t{rental.instrument_id}\t"
                f"{rental.start.isoformat()}\t{rental.end.isoformat()}",
                file=out,
            )


def main(
    argv: list[str] | None = None,
    *,
    coordinator_factory: Callable[[AppConfig], RentalCoordinator] = build_coordinator,
) -> int:
    args = parse_args(sys.argv[1:] if argv is None else argv)
    config = AppConfig.build_default()
    configure_logging(config.log_level, json=config.log_json)
    try:
        coordinator = coordinator_factory(config)
    except StoreError as exc:
        print(f"could not open rental store: {exc}", file=sys.stderr)
        return 2
    try:
        execute(args, coordinator, sys.stdout)
    except RentalError as exc:
        print(f"{exc.kind.value}: {exc.describe()}", file=sys.stderr)
        return 1
    finally:
        coordinator.store.close()
    return 0


if __name__ == "__main__":
    sys.exit(main())
