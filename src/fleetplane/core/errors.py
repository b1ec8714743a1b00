"""
Unified error handling for fleetplane.

Every orchestration component raises these errors internally and converts
them into a structured outcome at its public boundary. The CLI maps them to
exit codes.

Exit Codes:
- 0: Success
- 1: Warning (operation finished, some items failed)
- 10: Configuration error
- 11: Remote error (manager or resource API failure)
- 12: Input error
- 13: Timeout
- 127: Unknown/internal error
"""

from __future__ import annotations

import functools
import sys
import traceback
from enum import IntEnum
from typing import Any, Callable, TypeVar

import structlog

logger = structlog.get_logger()


class ExitCode(IntEnum):
    """Standardized exit codes for CLI commands."""

    SUCCESS = 0
    WARNING = 1
    CONFIG_ERROR = 10
    REMOTE_ERROR = 11
    INPUT_ERROR = 12
    TIMEOUT = 13
    UNKNOWN_ERROR = 127


class FleetPlaneError(Exception):
    """Base exception for fleetplane errors with exit code support."""

    exit_code: ExitCode = ExitCode.UNKNOWN_ERROR
    show_traceback: bool = False

    def __init__(self, message: str, details: dict[str, Any] | None = None):
        super().__init__(message)
        self.message = message
        self.details = details or {}


class ConfigurationError(FleetPlaneError):
    """Raised for configuration-related errors."""

    exit_code = ExitCode.CONFIG_ERROR


class RemoteRejectedError(FleetPlaneError):
    """The remote manager refused a work submission."""

    exit_code = ExitCode.REMOTE_ERROR


class WorkTimeoutError(FleetPlaneError):
    """The deadline elapsed before the remote work completed.

    The outcome of the remote operation is unknown: it may still complete
    server-side.
    """

    exit_code = ExitCode.TIMEOUT


class RemoteOperationFailedError(FleetPlaneError):
    """The remote work completed but its payload carries an error."""

    exit_code = ExitCode.REMOTE_ERROR


class MalformedResponseError(RemoteOperationFailedError):
    """A remote response could not be decoded."""


class DependencyMissingError(FleetPlaneError):
    """A workflow step cannot run because a prior step's output is absent."""

    exit_code = ExitCode.REMOTE_ERROR


class PartialBatchFailureError(FleetPlaneError):
    """Some items of a bulk operation failed."""

    exit_code = ExitCode.WARNING

    def __init__(self, message: str, errors: list[dict[str, Any]]):
        super().__init__(message, {"count": len(errors)})
        self.errors = errors

    @property
    def count(self) -> int:
        return len(self.errors)


class InputInvalidError(FleetPlaneError):
    """Malformed caller input, rejected before any network call."""

    exit_code = ExitCode.INPUT_ERROR


# Type variable for decorated functions
F = TypeVar("F", bound=Callable[..., int])


def main_with_error_handling(
    *,
    show_traceback: bool = False,
    log_errors: bool = True,
) -> Callable[[F], F]:
    """
    Decorator for CLI main functions that provides unified error handling.

    Catches exceptions and converts them to appropriate exit codes with
    consistent error reporting.

    Args:
        show_traceback: If True, show full traceback for unexpected errors
        log_errors: If True, log errors to structlog

    Usage:
        @main_with_error_handling()
        def my_command() -> int:
            # command implementation
            return 0

    Exit codes:
        - FleetPlaneError subclasses: Uses the error's exit_code
        - KeyboardInterrupt: Returns 130 (standard for SIGINT)
        - Other exceptions: Returns 127 (unknown error)
    """

    def decorator(func: F) -> F:
        @functools.wraps(func)
        def wrapper(*args: Any, **kwargs: Any) -> int:
            try:
                return func(*args, **kwargs)
            except FleetPlaneError as e:
                if log_errors:
                    logger.error(
                        "command_error",
                        error_type=type(e).__name__,
                        message=e.message,
                        exit_code=e.exit_code,
                        **e.details,
                    )
                if e.show_traceback or show_traceback:
                    traceback.print_exc(file=sys.stderr)
                return e.exit_code
            except KeyboardInterrupt:
                if log_errors:
                    logger.info("command_interrupted")
                return 130  # Standard exit code for SIGINT
            except Exception as e:
                if log_errors:
                    logger.error(
                        "unexpected_error",
                        error_type=type(e).__name__,
                        message=str(e),
                        exit_code=ExitCode.UNKNOWN_ERROR,
                    )
                if show_traceback:
                    traceback.print_exc(file=sys.stderr)
                return ExitCode.UNKNOWN_ERROR

        return wrapper  # type: ignore[return-value]

    return decorator


def format_error_message(error: FleetPlaneError) -> str:
    """Format an error message for display to users."""
    msg = error.message
    if error.details:
        detail_str = ", ".join(f"{k}={v}" for k, v in error.details.items())
        msg = f"{msg} ({detail_str})"
    return msg
