"""
CLI command for running a single work item against the manager.

Usage:
    fleetplane work pods
    fleetplane work releases --name my-release --format json
"""

from __future__ import annotations

import argparse
import asyncio

from fleetplane.cli.ux import console, error, print_table, success, warning
from fleetplane.config import Settings, get_settings
from fleetplane.core.errors import ExitCode, main_with_error_handling
from fleetplane.work import WorkOutcome, WorkPoller, WorkRequest


@main_with_error_handling()
def work_command(
    resource: str,
    names: list[str] | None = None,
    namespaces: list[str] | None = None,
    operation: str = "get",
    format: str = "text",
    settings: Settings | None = None,
) -> int:
    """
    Submit one work item and print its flattened results.

    Returns:
        Exit code: 0 success, 1 when some clusters answered with errors,
        or the captured error's exit code on failure or timeout
    """
    settings = settings or get_settings()
    poller = WorkPoller.from_settings(settings)
    request = WorkRequest(
        resource=resource,
        operation=operation,
        client_id=settings.client_id,
        names=",".join(names or []),
        namespaces=",".join(namespaces or []),
    )
    outcome = asyncio.run(poller.submit_and_await(request))

    if format == "json":
        console.print_json(data=outcome.to_dict())
    else:
        _print_outcome(resource, outcome)

    if outcome.error is not None:
        return outcome.error.exit_code
    if outcome.cluster_errors:
        return ExitCode.WARNING
    return ExitCode.SUCCESS


def _print_outcome(resource: str, outcome: WorkOutcome) -> None:
    if outcome.error is not None:
        error(f"{outcome.status.value}: {outcome.error.message}")
        return

    rows = [
        [str(item.get("cluster", "")), str(item.get("name", "")), str(item.get("status", ""))]
        for item in outcome.items
    ]
    print_table(f"{resource} ({len(rows)})", ["Cluster", "Name", "Status"], rows)

    for err in outcome.cluster_errors:
        warning(f"{err.cluster}: {err.message or err.code}")
    if not outcome.cluster_errors:
        success(f"Work {outcome.handle} completed")


def register_work_parser(subparsers: argparse._SubParsersAction) -> None:
    """Register work subcommand parser."""
    parser = subparsers.add_parser("work", help="Run a work item across managed clusters")
    parser.add_argument("resource", help="Resource type (e.g. pods, releases, clusters)")
    parser.add_argument("--name", dest="names", action="append", help="Resource name filter")
    parser.add_argument(
        "--namespace", dest="namespaces", action="append", help="Namespace filter"
    )
    parser.add_argument("--operation", default="get", help="Remote operation (default: get)")
    parser.add_argument("--format", choices=["text", "json"], default="text")


def handle_work_command(args: argparse.Namespace) -> int:
    return work_command(
        resource=args.resource,
        names=getattr(args, "names", None),
        namespaces=getattr(args, "namespaces", None),
        operation=getattr(args, "operation", "get"),
        format=getattr(args, "format", "text"),
    )
