"""
Dashboard aggregation.

Classifies cluster, release and pod health into cards and charts for the
summary view, degrading per group when a query fails.
"""

from fleetplane.dashboard.aggregator import (
    MAX_TABLE_ROWS,
    DashboardAggregator,
    build_card,
    build_chart,
    default_groups,
    rank_rows,
)
from fleetplane.dashboard.health import (
    STATUS_BUCKETS,
    HealthBucket,
    generic_status,
    percentage_status,
)
from fleetplane.dashboard.models import (
    CardSpec,
    ChartSpec,
    DashboardCard,
    DashboardChart,
    DashboardData,
    SectionError,
    SectionGroup,
    TableRow,
)

__all__ = [
    "CardSpec",
    "ChartSpec",
    "DashboardAggregator",
    "DashboardCard",
    "DashboardChart",
    "DashboardData",
    "HealthBucket",
    "MAX_TABLE_ROWS",
    "STATUS_BUCKETS",
    "SectionError",
    "SectionGroup",
    "TableRow",
    "build_card",
    "build_chart",
    "default_groups",
    "generic_status",
    "percentage_status",
    "rank_rows",
]
