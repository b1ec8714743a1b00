"""
FleetPlane CLI.

Usage:
    fleetplane <command> [args]

Runs work items across managed clusters, manages bare metal assets and
shows the fleet health dashboard.
"""

from __future__ import annotations

import argparse
import sys
from typing import Sequence

from fleetplane.cli.bma import handle_bma_command, register_bma_parser
from fleetplane.cli.dashboard import handle_dashboard_command, register_dashboard_parser
from fleetplane.cli.ux import error
from fleetplane.cli.work import handle_work_command, register_work_parser
from fleetplane.config import get_settings
from fleetplane.core.errors import ConfigurationError, format_error_message
from fleetplane.logging import LOG_LEVELS, configure_logging

HANDLERS = {
    "dashboard": handle_dashboard_command,
    "work": handle_work_command,
    "bma": handle_bma_command,
}


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="fleetplane", description="FleetPlane CLI")
    parser.add_argument(
        "--log-level",
        type=str.upper,
        choices=LOG_LEVELS,
        default=None,
        help="Override FLEETPLANE_LOG_LEVEL",
    )
    parser.add_argument(
        "--log-format", choices=["json", "console"], default="json", help="Log renderer (default: json)"
    )
    subparsers = parser.add_subparsers(dest="command")

    register_dashboard_parser(subparsers)
    register_work_parser(subparsers)
    register_bma_parser(subparsers)

    return parser


def main(argv: Sequence[str] | None = None) -> None:
    parser = build_parser()
    args = parser.parse_args(argv)

    try:
        configure_logging(
            args.log_level or get_settings().log_level,
            json_logs=args.log_format == "json",
        )
    except ConfigurationError as exc:
        error(format_error_message(exc))
        sys.exit(exc.exit_code)

    handler = HANDLERS.get(args.command)
    if handler is None:
        parser.print_help()
        sys.exit(1)

    sys.exit(handler(args))


if __name__ == "__main__":
    main()
