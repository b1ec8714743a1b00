"""
Terminal output for fleetplane commands.

All human-readable output goes through the shared ``console`` so colors
follow NO_COLOR / FORCE_COLOR and tests can capture stdout.
"""

from __future__ import annotations

import os
from typing import Iterable, Sequence

from rich.console import Console
from rich.panel import Panel
from rich.table import Table
from rich.theme import Theme

from fleetplane.dashboard.health import HealthBucket

FLEET_THEME = Theme(
    {
        "ok": "#A3BE8C",
        "warn": "#EBCB8B",
        "fail": "#BF616A bold",
        "healthy": "#A3BE8C",
        "warning": "#EBCB8B",
        "critical": "#BF616A",
        "dim": "#81A1C1",
    }
)

console = Console(
    theme=FLEET_THEME,
    force_terminal=os.environ.get("FORCE_COLOR") is not None,
    no_color=os.environ.get("NO_COLOR") is not None,
)


def success(message: str) -> None:
    console.print(f"[ok]✓[/ok] {message}")


def error(message: str) -> None:
    console.print(f"[fail]✗ {message}[/fail]")


def warning(message: str) -> None:
    console.print(f"[warn]! {message}[/warn]")


def outcome_line(ok: bool, message: str) -> None:
    """One closing line for a command: green when ok, red otherwise."""
    if ok:
        success(message)
    else:
        error(message)


def bucket_label(bucket: HealthBucket | str) -> str:
    """Health bucket rendered in its own color."""
    value = bucket.value if isinstance(bucket, HealthBucket) else str(bucket)
    return f"[{value}]{value}[/{value}]"


def tally_label(healthy: int, warning: int, critical: int) -> str:
    return (
        f"{bucket_label(HealthBucket.CRITICAL)} {critical}  "
        f"{bucket_label(HealthBucket.WARNING)} {warning}  "
        f"{bucket_label(HealthBucket.HEALTHY)} {healthy}"
    )


def banner(title: str) -> None:
    console.print(Panel.fit(f"[bold]{title}[/bold]", border_style="dim"))


def print_table(
    title: str,
    columns: Sequence[str],
    rows: Iterable[Sequence[str]],
    caption: str | None = None,
) -> None:
    """Print rows under a titled table; an empty table still shows its header."""
    table = Table(title=title, caption=caption, header_style="bold", title_justify="left")
    for column in columns:
        table.add_column(column)
    for row in rows:
        table.add_row(*row)
    console.print(table)
