"""
Dashboard data models.

Section definitions (what to query and how to classify) and the aggregate
shape handed to the presentation layer.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Awaitable, Callable

from fleetplane.dashboard.health import Classifier, HealthBucket, generic_status

Query = Callable[[], Awaitable[Any]]
RowTransform = Callable[[dict[str, Any], HealthBucket, list[dict[str, Any]]], "TableRow"]
ChartTransform = Callable[[dict[str, Any], HealthBucket, dict[str, int]], dict[str, int]]


@dataclass
class TableRow:
    """One detail row of a dashboard card."""

    status: HealthBucket
    resource_name: str | None = None
    percentage: int | None = None
    namespace: str | None = None
    cluster_ip: str | None = None

    def to_dict(self) -> dict[str, Any]:
        return {
            "status": self.status.value,
            "resourceName": self.resource_name,
            "percentage": self.percentage,
            "namespace": self.namespace,
            "clusterIP": self.cluster_ip,
        }


@dataclass
class CardSpec:
    """How to turn a group's query results into one card."""

    name: str
    transform: RowTransform
    status: Classifier = generic_status
    type: str | None = None
    # Classify the paired reference item instead of the status item.
    classify_reference: bool = False


@dataclass
class ChartSpec:
    """How to turn a group's query results into one pie chart."""

    name: str
    transform: ChartTransform
    status: Classifier = generic_status
    classify_reference: bool = True


@dataclass
class SectionGroup:
    """A status query and a reference query feeding some cards and charts."""

    name: str
    status_query: Query
    reference_query: Query
    cards: list[CardSpec] = field(default_factory=list)
    charts: list[ChartSpec] = field(default_factory=list)


@dataclass
class DashboardCard:
    """A rendered card: bucket tallies plus a capped, worst-first table."""

    name: str
    type: str | None = None
    healthy: int = 0
    warning: int = 0
    critical: int = 0
    table: list[TableRow] = field(default_factory=list)
    error: str | None = None

    @property
    def total(self) -> int:
        return self.healthy + self.warning + self.critical

    def add(self, bucket: HealthBucket) -> None:
        setattr(self, bucket.value, getattr(self, bucket.value) + 1)

    def to_dict(self) -> dict[str, Any]:
        if self.error is not None:
            return {"name": self.name, "error": self.error}
        return {
            "name": self.name,
            "type": self.type,
            "healthy": self.healthy,
            "critical": self.critical,
            "warning": self.warning,
            "table": [row.to_dict() for row in self.table],
            "error": None,
        }


@dataclass
class DashboardChart:
    """A rendered pie chart as ``[[bucket, count], ...]`` string pairs."""

    name: str
    data: list[list[str]] = field(default_factory=list)
    error: str | None = None

    def to_dict(self) -> dict[str, Any]:
        if self.error is not None:
            return {"name": self.name, "error": self.error}
        return {"name": self.name, "data": self.data, "error": None}


@dataclass
class SectionError:
    """A group that degraded, and why."""

    group: str
    sections: list[str]
    error: str

    def to_dict(self) -> dict[str, Any]:
        return {"group": self.group, "sections": self.sections, "error": self.error}


@dataclass
class DashboardData:
    """The aggregate view handed to the presentation layer."""

    card_items: list[DashboardCard] = field(default_factory=list)
    chart_items: list[DashboardChart] = field(default_factory=list)
    errors: list[SectionError] = field(default_factory=list)

    def card(self, name: str) -> DashboardCard | None:
        for card in self.card_items:
            if card.name == name:
                return card
        return None

    def to_dict(self) -> dict[str, Any]:
        return {
            "cardItems": [card.to_dict() for card in self.card_items],
            "pieChartItems": [chart.to_dict() for chart in self.chart_items],
            "errors": [err.to_dict() for err in self.errors],
        }
