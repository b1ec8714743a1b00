"""
Multi-step provisioning workflows against the resource API.

Steps run in order, later steps consume earlier results, and the outcome
reports every step even when one fails.
"""

from fleetplane.provisioning.bare_metal import MAX_PARALLEL_REQUESTS, BareMetalAssetWorkflow
from fleetplane.provisioning.models import (
    AssetRef,
    BulkDeleteOutcome,
    ProvisioningOutcome,
    StepResult,
    StepStatus,
)
from fleetplane.provisioning.pipeline import Pipeline, Step

__all__ = [
    "AssetRef",
    "BareMetalAssetWorkflow",
    "BulkDeleteOutcome",
    "MAX_PARALLEL_REQUESTS",
    "Pipeline",
    "ProvisioningOutcome",
    "Step",
    "StepResult",
    "StepStatus",
]
