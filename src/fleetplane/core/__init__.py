"""Core modules for fleetplane - error taxonomy and race primitives."""

from fleetplane.core.errors import (
    ConfigurationError,
    DependencyMissingError,
    ExitCode,
    FleetPlaneError,
    InputInvalidError,
    MalformedResponseError,
    PartialBatchFailureError,
    RemoteOperationFailedError,
    RemoteRejectedError,
    WorkTimeoutError,
    format_error_message,
    main_with_error_handling,
)
from fleetplane.core.race import first_completed, with_deadline

__all__ = [
    # Errors
    "ExitCode",
    "FleetPlaneError",
    "ConfigurationError",
    "RemoteRejectedError",
    "WorkTimeoutError",
    "RemoteOperationFailedError",
    "MalformedResponseError",
    "DependencyMissingError",
    "PartialBatchFailureError",
    "InputInvalidError",
    "main_with_error_handling",
    "format_error_message",
    # Race
    "first_completed",
    "with_deadline",
]
