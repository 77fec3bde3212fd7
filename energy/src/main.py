"""
Command-line entry point: ``psu-energy INPUT``.

Reads a concatenated JSON telemetry log, accounts the configured PSU's
energy per calendar month and prints the report on stdout. Diagnostics
go to stderr. Exit codes:

- ``0``: report printed, every interval reconciled.
- ``1``: bad usage, missing input file, invalid settings, or a report
  tainted by at least one inconsistent interval.

CHANGELOG:
- 2026-10-19: Initial creation (STORY-014)

TODO:
- None
"""

import argparse
import logging
import sys
from pathlib import Path
from typing import NoReturn

from pydantic import ValidationError

from energy.src.config import EnergySettings
from energy.src.logging_config import setup_logging
from energy.src.pipeline import run
from energy.src.report import format_report
from energy.src.stream import read_documents

logger = logging.getLogger(__name__)

EXIT_OK = 0
EXIT_FAILURE = 1


class _ArgumentParser(argparse.ArgumentParser):
    """ArgumentParser that exits with status 1 on usage errors."""

    def error(self, message: str) -> NoReturn:
        self.print_usage(sys.stderr)
        self.exit(EXIT_FAILURE, f"{self.prog}: error: {message}\n")


def _build_parser() -> argparse.ArgumentParser:
    parser = _ArgumentParser(
        prog="psu-energy",
        description="Monthly energy consumption from PSU telemetry snapshots",
    )
    parser.add_argument("input", type=Path, help="concatenated JSON telemetry log")
    return parser


def main(argv: list[str] | None = None) -> int:
    """Run the energy report.

    Args:
        argv: Command-line arguments without the program name. Defaults
            to ``sys.argv[1:]``.

    Returns:
        The process exit code.
    """
    parser = _build_parser()
    args = parser.parse_args(argv)

    if not args.input.is_file():
        print(f"Input file {args.input} does not exist", file=sys.stderr)
        parser.print_usage(sys.stderr)
        return EXIT_FAILURE

    try:
        settings = EnergySettings()
    except ValidationError as exc:
        print(f"Invalid configuration:\n{exc}", file=sys.stderr)
        return EXIT_FAILURE

    setup_logging(level=settings.log_level_value, json_output=settings.log_json)
    logger.info(
        "Accounting %s for device %r", args.input, settings.device_description
    )

    result = run(read_documents(args.input), settings)
    sys.stdout.write(format_report(result))

    if result.tainted:
        logger.error(
            "%d interval(s) could not be reconciled", result.inconsistent
        )
        return EXIT_FAILURE
    return EXIT_OK


if __name__ == "__main__":
    raise SystemExit(main())
