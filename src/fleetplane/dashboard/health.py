"""
Health classification for dashboard items.

Status strings map to buckets through ``STATUS_BUCKETS``; any status not in
the table is critical. Utilization percentages use fixed thresholds.
"""

from __future__ import annotations

import math
from enum import Enum
from typing import Any, Callable, Mapping


class HealthBucket(str, Enum):
    """Dashboard health bucket."""

    HEALTHY = "healthy"
    WARNING = "warning"
    CRITICAL = "critical"

    @property
    def rank(self) -> int:
        """Display order: worst first."""
        return _RANK[self]


_RANK = {
    HealthBucket.CRITICAL: 0,
    HealthBucket.WARNING: 1,
    HealthBucket.HEALTHY: 2,
}

STATUS_BUCKETS: dict[str, HealthBucket] = {
    "failed": HealthBucket.CRITICAL,
    "pending": HealthBucket.WARNING,
    "deleting": HealthBucket.WARNING,
    "ok": HealthBucket.HEALTHY,
    "running": HealthBucket.HEALTHY,
    "succeeded": HealthBucket.HEALTHY,
    "healthy": HealthBucket.HEALTHY,
    "deployed": HealthBucket.HEALTHY,
}

# Catch-all for any status string missing from STATUS_BUCKETS.
UNKNOWN_STATUS_BUCKET = HealthBucket.CRITICAL

CRITICAL_THRESHOLD = 90
WARNING_THRESHOLD = 75

Classifier = Callable[[Mapping[str, Any]], HealthBucket]


def generic_status(resource: Mapping[str, Any] | None) -> HealthBucket:
    """
    Classify a resource from its ``status`` string or boolean ``state``.

    The status string is looked up case-insensitively. Without a status, a
    boolean ``state`` decides; with neither the resource is critical.
    """
    resource = resource or {}
    status = resource.get("status")
    if status:
        return STATUS_BUCKETS.get(str(status).lower(), UNKNOWN_STATUS_BUCKET)
    state = resource.get("state")
    if state is not None:
        return HealthBucket.HEALTHY if state else HealthBucket.CRITICAL
    return HealthBucket.CRITICAL


def percentage_bucket(percent: float | None) -> HealthBucket:
    if percent is None or math.isnan(percent):
        return HealthBucket.CRITICAL
    if percent > CRITICAL_THRESHOLD:
        return HealthBucket.CRITICAL
    if percent > WARNING_THRESHOLD:
        return HealthBucket.WARNING
    return HealthBucket.HEALTHY


def percentage_status(field: str) -> Classifier:
    """Build a classifier reading a utilization percentage from ``field``."""

    def classify(resource: Mapping[str, Any] | None) -> HealthBucket:
        value = (resource or {}).get(field)
        if value is None or value == "":
            return HealthBucket.CRITICAL
        try:
            return percentage_bucket(float(value))
        except (TypeError, ValueError):
            return HealthBucket.CRITICAL

    return classify
