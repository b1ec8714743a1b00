"""Result types for provisioning workflows."""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Any

from fleetplane.core.errors import FleetPlaneError, PartialBatchFailureError


class StepStatus(str, Enum):
    """How a single workflow step ended."""

    SUCCEEDED = "succeeded"
    FAILED = "failed"
    SKIPPED = "skipped"


@dataclass
class StepResult:
    """Outcome of one remote call in a workflow, with its raw payload."""

    name: str
    status: StepStatus
    result: dict[str, Any] = field(default_factory=dict)
    status_code: int | None = None
    error: FleetPlaneError | None = None

    @property
    def succeeded(self) -> bool:
        return self.status is StepStatus.SUCCEEDED


@dataclass
class ProvisioningOutcome:
    """All step results of a workflow run plus one overall status code."""

    kind: str
    status_code: int
    steps: list[StepResult] = field(default_factory=list)

    @property
    def ok(self) -> bool:
        return self.failed_step is None

    @property
    def failed_step(self) -> StepResult | None:
        """The step that decided the status code, if any failed."""
        for step in self.steps:
            if step.status is StepStatus.FAILED:
                return step
        return None

    def step(self, name: str) -> StepResult | None:
        for step in self.steps:
            if step.name == name:
                return step
        return None

    def result(self, name: str) -> dict[str, Any]:
        """Raw payload of a step; empty for steps that never ran."""
        step = self.step(name)
        return step.result if step else {}

    def to_dict(self) -> dict[str, Any]:
        data: dict[str, Any] = {"statusCode": self.status_code}
        for step in self.steps:
            data[f"{step.name}Result"] = step.result
        return data


@dataclass(frozen=True)
class AssetRef:
    """Namespace and name of one resource."""

    namespace: str
    name: str

    def __str__(self) -> str:
        return f"{self.namespace}/{self.name}"


@dataclass
class BulkDeleteOutcome:
    """Result of deleting many resources in bounded batches."""

    status_code: int
    errors: list[dict[str, Any]] = field(default_factory=list)
    message: str | None = None
    batches: int = 0
    error: FleetPlaneError | None = None

    @property
    def ok(self) -> bool:
        return self.error is None and not self.errors

    @property
    def count(self) -> int:
        return len(self.errors)

    def raise_for_error(self) -> None:
        if self.error is not None:
            raise self.error
        if self.errors:
            raise PartialBatchFailureError(self.message or "Bulk delete failed", self.errors)

    def to_dict(self) -> dict[str, Any]:
        data: dict[str, Any] = {"statusCode": self.status_code}
        if self.errors:
            data["errors"] = self.errors
        if self.message:
            data["message"] = self.message
        if self.error is not None:
            data["error"] = self.error.message
        return data
