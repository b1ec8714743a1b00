"""
Remote work items.

Submit work to the cluster manager and await its flattened result.
"""

from fleetplane.work.models import (
    ClusterError,
    ClusterSelector,
    OutcomeStatus,
    WorkHandle,
    WorkOutcome,
    WorkRequest,
)
from fleetplane.work.poller import WorkPoller
from fleetplane.work.results import flatten_results, parse_status_envelope

__all__ = [
    "ClusterError",
    "ClusterSelector",
    "OutcomeStatus",
    "WorkHandle",
    "WorkOutcome",
    "WorkPoller",
    "WorkRequest",
    "flatten_results",
    "parse_status_envelope",
]
