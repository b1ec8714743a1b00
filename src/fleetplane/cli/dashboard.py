"""
CLI command for the fleet dashboard.

Usage:
    fleetplane dashboard                 # Cards as tables
    fleetplane dashboard --format json   # Presentation payload as JSON
"""

from __future__ import annotations

import argparse
import asyncio

from fleetplane.cli.ux import banner, bucket_label, console, print_table, tally_label, warning
from fleetplane.config import Settings, get_settings
from fleetplane.core.errors import ExitCode, main_with_error_handling
from fleetplane.dashboard import DashboardAggregator, DashboardCard, DashboardData, default_groups
from fleetplane.work import WorkPoller


async def collect_dashboard(settings: Settings) -> DashboardData:
    """Query the manager for every dashboard section."""
    poller = WorkPoller.from_settings(settings)
    aggregator = DashboardAggregator.from_settings(settings)
    groups = default_groups(
        clusters=lambda: poller.get_work("clusters"),
        cluster_status=lambda: poller.get_work("clusterstatus"),
        releases=lambda: poller.get_work("releases"),
        pods=lambda: poller.get_work("pods"),
    )
    return await aggregator.aggregate(groups)


@main_with_error_handling()
def dashboard_command(format: str = "text", settings: Settings | None = None) -> int:
    """
    Display the fleet dashboard.

    Returns:
        Exit code: 0 when every section rendered, 1 when any degraded
    """
    data = asyncio.run(collect_dashboard(settings or get_settings()))

    if format == "json":
        console.print_json(data=data.to_dict())
    else:
        _print_text(data)

    return ExitCode.WARNING if data.errors else ExitCode.SUCCESS


def _print_text(data: DashboardData) -> None:
    banner("Fleet Dashboard")
    for card in data.card_items:
        _print_card(card)
    for chart in data.chart_items:
        if chart.error:
            warning(f"{chart.name}: {chart.error}")
        else:
            counts = {key: int(value) for key, value in chart.data}
            console.print(
                f"[bold]{chart.name}[/bold]  "
                + tally_label(counts.get("healthy", 0), counts.get("warning", 0), counts.get("critical", 0))
            )


def _print_card(card: DashboardCard) -> None:
    if card.error:
        warning(f"{card.name}: {card.error}")
        return
    title = f"{card.name}  {tally_label(card.healthy, card.warning, card.critical)}"
    rows = [
        [
            bucket_label(row.status),
            row.resource_name or "",
            row.namespace or "",
            "" if row.percentage is None else f"{row.percentage}%",
            row.cluster_ip or "",
        ]
        for row in card.table
    ]
    print_table(title, ["Status", "Name", "Namespace", "Usage", "Cluster IP"], rows)


def register_dashboard_parser(subparsers: argparse._SubParsersAction) -> None:
    """Register dashboard subcommand parser."""
    parser = subparsers.add_parser("dashboard", help="Show fleet health dashboard")
    parser.add_argument("--format", choices=["text", "json"], default="text")


def handle_dashboard_command(args: argparse.Namespace) -> int:
    return dashboard_command(format=getattr(args, "format", "text"))
