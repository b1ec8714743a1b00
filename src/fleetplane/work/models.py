"""
Work item data models.

A work item is submitted to the remote manager, tracked by its handle and
resolved into a flat list of per-cluster resource fragments.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum
from typing import Any, Iterator

from fleetplane.core.errors import FleetPlaneError


@dataclass(frozen=True)
class ClusterSelector:
    """Selects clusters by name, label and status."""

    names: tuple[str, ...] | None = None
    labels: tuple[str, ...] | None = None
    status: tuple[str, ...] | None = None

    def to_payload(self) -> dict[str, Any]:
        return {
            "Names": list(self.names) if self.names is not None else None,
            "Labels": list(self.labels) if self.labels is not None else None,
            "Status": list(self.status) if self.status is not None else None,
        }


def _default_destination() -> ClusterSelector:
    return ClusterSelector(names=("*",), status=("healthy",))


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


@dataclass(frozen=True)
class WorkRequest:
    """A remote operation: what to touch, where, and how."""

    resource: str
    operation: str = "get"
    client_id: str = ""
    src_clusters: ClusterSelector = field(default_factory=ClusterSelector)
    dst_clusters: ClusterSelector = field(default_factory=_default_destination)
    namespaces: str = ""
    names: str = ""
    labels: tuple[str, ...] | None = None
    status: str = ""
    dry_run: bool = False
    description: str = ""
    timestamp: datetime = field(default_factory=_utcnow)
    # Only the manager flips this; a submitted request is never complete.
    completed: bool = False

    def to_payload(self) -> dict[str, Any]:
        """Render the manager's wire format."""
        return {
            "SrcClusters": self.src_clusters.to_payload(),
            "DstClusters": self.dst_clusters.to_payload(),
            "ClientID": self.client_id,
            "Dryrun": self.dry_run,
            "Completed": self.completed,
            "UUID": "",
            "Operation": self.operation,
            "Resource": self.resource,
            "Work": {
                "Namespaces": self.namespaces,
                "Status": self.status,
                "Labels": list(self.labels) if self.labels is not None else None,
                "Names": self.names,
            },
            "Timestamp": self.timestamp.isoformat(),
            "NextRequest": None,
            "FinishedRequest": None,
            "Description": self.description,
        }


@dataclass(frozen=True)
class WorkHandle:
    """Opaque identifier the manager assigns to a submitted work item."""

    work_id: str

    def __str__(self) -> str:
        return self.work_id


@dataclass
class ClusterError:
    """A cluster that answered a work item with an error object."""

    cluster: str
    code: int | str | None
    message: str | None
    payload: dict[str, Any] = field(default_factory=dict)

    def to_dict(self) -> dict[str, Any]:
        return {"cluster": self.cluster, "code": self.code, "message": self.message}


class OutcomeStatus(str, Enum):
    """How a work item resolved."""

    SUCCESS = "success"
    FAILURE = "failure"
    TIMEOUT = "timeout"


@dataclass
class WorkOutcome:
    """Structured result of one submit-and-await call."""

    status: OutcomeStatus
    items: list[dict[str, Any]] = field(default_factory=list)
    cluster_errors: list[ClusterError] = field(default_factory=list)
    error: FleetPlaneError | None = None
    handle: WorkHandle | None = None

    @property
    def ok(self) -> bool:
        return self.status is OutcomeStatus.SUCCESS

    def __len__(self) -> int:
        return len(self.items)

    def __iter__(self) -> Iterator[dict[str, Any]]:
        return iter(self.items)

    def raise_for_error(self) -> None:
        """Re-raise the captured error for callers that prefer exceptions."""
        if self.error is not None:
            raise self.error

    def to_dict(self) -> dict[str, Any]:
        return {
            "status": self.status.value,
            "work_id": self.handle.work_id if self.handle else None,
            "items": self.items,
            "cluster_errors": [err.to_dict() for err in self.cluster_errors],
            "error": self.error.message if self.error else None,
        }
