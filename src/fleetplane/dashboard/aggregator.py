"""
Dashboard aggregator.

Fans out every section group concurrently. Within a group the status query
and the reference query run side by side, each raced against the timeout;
a failure in either degrades that group's sections to error placeholders
without touching the other groups.
"""

from __future__ import annotations

import asyncio
from typing import Any

import structlog

from fleetplane.config import Settings, get_settings
from fleetplane.core.errors import FleetPlaneError, RemoteOperationFailedError, WorkTimeoutError
from fleetplane.core.race import with_deadline
from fleetplane.dashboard.health import HealthBucket, percentage_status
from fleetplane.dashboard.models import (
    CardSpec,
    ChartSpec,
    DashboardCard,
    DashboardChart,
    DashboardData,
    Query,
    SectionError,
    SectionGroup,
    TableRow,
)
from fleetplane.dashboard.transforms import (
    transform_cluster,
    transform_percentage,
    transform_pod,
    transform_release,
)
from fleetplane.work.models import WorkOutcome

logger = structlog.get_logger()

MAX_TABLE_ROWS = 5
STATUS_ERROR = "An error occurred while getting status data"
REFERENCE_ERROR = "An error occurred while getting cluster data"


def rank_rows(rows: list[TableRow], limit: int = MAX_TABLE_ROWS) -> list[TableRow]:
    """Sort rows worst bucket first (stable within a bucket) and keep ``limit``."""
    return sorted(rows, key=lambda row: row.status.rank)[:limit]


def _paired(reference: list[dict[str, Any]], idx: int) -> dict[str, Any]:
    return reference[idx] if idx < len(reference) else {}


def build_card(
    spec: CardSpec,
    status_data: list[dict[str, Any]],
    reference_data: list[dict[str, Any]],
) -> DashboardCard:
    """Tally every item and keep the worst rows for display."""
    card = DashboardCard(name=spec.name, type=spec.type)
    rows = []
    for idx, item in enumerate(status_data):
        subject = _paired(reference_data, idx) if spec.classify_reference else item
        bucket = spec.status(subject)
        card.add(bucket)
        rows.append(spec.transform(item, bucket, reference_data))
    card.table = rank_rows(rows)
    return card


def build_chart(
    spec: ChartSpec,
    status_data: list[dict[str, Any]],
    reference_data: list[dict[str, Any]],
) -> DashboardChart:
    counts = {bucket.value: 0 for bucket in (HealthBucket.HEALTHY, HealthBucket.WARNING, HealthBucket.CRITICAL)}
    for idx, item in enumerate(status_data):
        subject = _paired(reference_data, idx) if spec.classify_reference else item
        counts = spec.transform(item, spec.status(subject), counts)
    return DashboardChart(name=spec.name, data=[[key, str(value)] for key, value in counts.items()])


def _unwrap(result: Any, failure_message: str) -> list[dict[str, Any]]:
    """Turn a query result into a list of items or raise on an error payload."""
    if isinstance(result, WorkOutcome):
        result.raise_for_error()
        return result.items
    if isinstance(result, dict):
        if result.get("code") or result.get("message"):
            raise RemoteOperationFailedError(failure_message, {"payload": result})
        items = result.get("items")
        return list(items) if isinstance(items, list) else [result]
    if result is None:
        return []
    return list(result)


def _error_text(error: BaseException) -> str:
    if isinstance(error, FleetPlaneError):
        return error.message
    return str(error) or type(error).__name__


class DashboardAggregator:
    """Builds the dashboard view from independent, timeout-bound queries."""

    def __init__(self, timeout: float = 10.0) -> None:
        self._timeout = timeout

    @classmethod
    def from_settings(cls, settings: Settings | None = None) -> "DashboardAggregator":
        settings = settings or get_settings()
        return cls(timeout=settings.poll_timeout)

    async def aggregate(self, groups: list[SectionGroup]) -> DashboardData:
        """
        Run every group concurrently and merge their sections.

        Cards and charts from the most recently completed group come first.
        A degraded group contributes ``{name, error}`` placeholders for each
        of its sections and one entry in ``errors``.
        """
        data = DashboardData()
        tasks = [asyncio.ensure_future(self._run_group(group)) for group in groups]

        for finished in asyncio.as_completed(tasks):
            cards, charts, error = await finished
            data.card_items[:0] = cards
            data.chart_items[:0] = charts
            if error is not None:
                data.errors.append(error)

        logger.info(
            "dashboard_aggregated",
            groups=len(groups),
            cards=len(data.card_items),
            charts=len(data.chart_items),
            degraded=len(data.errors),
        )
        return data

    async def _run_group(
        self,
        group: SectionGroup,
    ) -> tuple[list[DashboardCard], list[DashboardChart], SectionError | None]:
        status_result, reference_result = await asyncio.gather(
            self._query(group.status_query),
            self._query(group.reference_query),
            return_exceptions=True,
        )

        try:
            if isinstance(status_result, BaseException):
                raise status_result
            status_data = _unwrap(status_result, STATUS_ERROR)
            if isinstance(reference_result, BaseException):
                raise reference_result
            reference_data = _unwrap(reference_result, REFERENCE_ERROR)

            cards = [build_card(spec, status_data, reference_data) for spec in group.cards]
            charts = [build_chart(spec, status_data, reference_data) for spec in group.charts]
        except Exception as exc:
            return self._degrade(group, exc)

        return cards, charts, None

    async def _query(self, query: Query) -> Any:
        async def call() -> Any:
            return await query()

        return await with_deadline(
            call(),
            self._timeout,
            lambda: WorkTimeoutError("Request timed out", {"deadline": self._timeout}),
        )

    def _degrade(
        self,
        group: SectionGroup,
        exc: BaseException,
    ) -> tuple[list[DashboardCard], list[DashboardChart], SectionError]:
        message = _error_text(exc)
        logger.warning(
            "dashboard_group_degraded",
            group=group.name,
            error_type=type(exc).__name__,
            error=message,
        )
        cards = [DashboardCard(name=spec.name, type=spec.type, error=message) for spec in group.cards]
        charts = [DashboardChart(name=spec.name, error=message) for spec in group.charts]
        sections = [spec.name for spec in group.cards] + [spec.name for spec in group.charts]
        return cards, charts, SectionError(group=group.name, sections=sections, error=message)


def default_groups(
    clusters: Query,
    cluster_status: Query,
    releases: Query,
    pods: Query,
) -> list[SectionGroup]:
    """
    The standard dashboard: utilization, helm releases, pods and clusters.

    Args:
        clusters: Reference query listing clusters (metadata, ip, clusterip)
        cluster_status: Per-cluster status and utilization query
        releases: Helm release query
        pods: Pod query
    """
    return [
        SectionGroup(
            name="utilization",
            status_query=cluster_status,
            reference_query=clusters,
            cards=[
                CardSpec(
                    name=name,
                    transform=transform_percentage(f"{name}Utilization"),
                    status=percentage_status(f"{name}Utilization"),
                )
                for name in ("cpu", "memory", "storage")
            ],
        ),
        SectionGroup(
            name="releases",
            status_query=releases,
            reference_query=clusters,
            cards=[CardSpec(name="helm releases", transform=transform_release, type="releases")],
        ),
        SectionGroup(
            name="pods",
            status_query=pods,
            reference_query=clusters,
            cards=[CardSpec(name="pods", transform=transform_pod, type="pods")],
        ),
        SectionGroup(
            name="clusters",
            status_query=cluster_status,
            reference_query=clusters,
            cards=[
                CardSpec(
                    name="clusters",
                    transform=transform_cluster,
                    type="clusters",
                    classify_reference=True,
                )
            ],
        ),
    ]
