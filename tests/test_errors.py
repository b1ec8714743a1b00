"""Tests for error types and the CLI error handler."""

from fleetplane.core.errors import (
    ExitCode,
    FleetPlaneError,
    MalformedResponseError,
    PartialBatchFailureError,
    RemoteOperationFailedError,
    WorkTimeoutError,
    format_error_message,
    main_with_error_handling,
)


def test_error_exit_codes():
    assert WorkTimeoutError("late").exit_code == ExitCode.TIMEOUT
    assert MalformedResponseError("bad").exit_code == ExitCode.REMOTE_ERROR
    assert isinstance(MalformedResponseError("bad"), RemoteOperationFailedError)


def test_partial_batch_failure_counts_errors():
    error = PartialBatchFailureError("Failed to delete 2", [{"name": "a"}, {"name": "b"}])

    assert error.count == 2
    assert error.exit_code == ExitCode.WARNING


def test_handler_maps_known_errors():
    @main_with_error_handling(log_errors=False)
    def command() -> int:
        raise WorkTimeoutError("late")

    assert command() == ExitCode.TIMEOUT


def test_handler_maps_unknown_errors():
    @main_with_error_handling(log_errors=False)
    def command() -> int:
        raise RuntimeError("boom")

    assert command() == ExitCode.UNKNOWN_ERROR


def test_handler_passes_through_result():
    @main_with_error_handling()
    def command() -> int:
        return 0

    assert command() == 0


def test_format_error_message():
    error = FleetPlaneError("Request failed", {"work_id": "w-1"})

    assert format_error_message(error) == "Request failed (work_id=w-1)"
