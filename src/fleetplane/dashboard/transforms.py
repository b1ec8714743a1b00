"""Row and chart transforms for the standard dashboard sections."""

from __future__ import annotations

import math
from typing import Any

from fleetplane.dashboard.health import HealthBucket
from fleetplane.dashboard.models import RowTransform, TableRow


def _name(resource: dict[str, Any]) -> str | None:
    metadata = resource.get("metadata") or {}
    return metadata.get("name") or resource.get("name")


def transform_cluster(
    cluster: dict[str, Any],
    status: HealthBucket,
    reference: list[dict[str, Any]],
) -> TableRow:
    return TableRow(status=status, resource_name=_name(cluster), cluster_ip=cluster.get("ip"))


def transform_percentage(field: str) -> RowTransform:
    """Row builder that reports a rounded utilization percentage."""

    def transform(
        cluster: dict[str, Any],
        status: HealthBucket,
        reference: list[dict[str, Any]],
    ) -> TableRow:
        return TableRow(
            status=status,
            resource_name=_name(cluster),
            percentage=display_percentage(cluster.get(field)),
            cluster_ip=cluster.get("ip"),
        )

    return transform


def display_percentage(value: Any) -> int | None:
    """Round half up to a whole percent; None for anything not a finite number."""
    try:
        number = float(value)
    except (TypeError, ValueError):
        return None
    if not math.isfinite(number):
        return None
    return math.floor(number + 0.5)


def transform_release(
    release: dict[str, Any],
    status: HealthBucket,
    reference: list[dict[str, Any]],
) -> TableRow:
    owner = next((c for c in reference if _name(c) == release.get("cluster")), None)
    return TableRow(
        status=status,
        resource_name=release.get("name"),
        namespace=release.get("namespace"),
        cluster_ip=owner.get("clusterip") if owner else None,
    )


def transform_pod(
    pod: dict[str, Any],
    status: HealthBucket,
    reference: list[dict[str, Any]],
) -> TableRow:
    return TableRow(status=status, resource_name=_name(pod), cluster_ip="")


def tally_chart(
    item: dict[str, Any],
    status: HealthBucket,
    counts: dict[str, int],
) -> dict[str, int]:
    """Chart accumulator counting items per health bucket."""
    counts[status.value] = counts.get(status.value, 0) + 1
    return counts
