"""
Work poller.

Submits a work item to the remote manager and polls its status on a fixed
cadence until it completes or the deadline fires, whichever comes first.
"""

from __future__ import annotations

import asyncio
from typing import Any

import structlog

from fleetplane.clients.manager import ManagerClient
from fleetplane.config import Settings, get_settings
from fleetplane.core.errors import (
    FleetPlaneError,
    RemoteOperationFailedError,
    RemoteRejectedError,
    WorkTimeoutError,
)
from fleetplane.core.race import with_deadline
from fleetplane.work.models import (
    ClusterError,
    OutcomeStatus,
    WorkHandle,
    WorkOutcome,
    WorkRequest,
)
from fleetplane.work.results import decode_ret_string, flatten_results, parse_status_envelope

logger = structlog.get_logger()

DEFAULT_POLL_INTERVAL = 0.2
DEFAULT_DEADLINE = 10.0


class WorkPoller:
    """Runs work items against the remote manager under a deadline."""

    def __init__(
        self,
        client: ManagerClient,
        *,
        poll_interval: float = DEFAULT_POLL_INTERVAL,
        deadline: float = DEFAULT_DEADLINE,
        client_id: str = "",
    ) -> None:
        self._client = client
        self._poll_interval = poll_interval
        self._deadline = deadline
        self._client_id = client_id

    @classmethod
    def from_settings(cls, settings: Settings | None = None) -> "WorkPoller":
        settings = settings or get_settings()
        client = ManagerClient(
            settings.manager_url,
            settings.api_token,
            timeout=settings.http_timeout,
            max_retries=settings.http_max_retries,
            backoff_factor=settings.http_retry_backoff_factor,
        )
        return cls(
            client,
            poll_interval=settings.poll_interval,
            deadline=settings.poll_timeout,
            client_id=settings.client_id,
        )

    async def submit_and_await(
        self,
        request: WorkRequest,
        poll_interval: float | None = None,
        deadline: float | None = None,
    ) -> WorkOutcome:
        """
        Submit a work item and wait for its flattened result.

        The deadline starts at submission. It is enforced client-side only:
        when it fires the poll loop is cancelled but the remote work item is
        left running, so a timeout means "outcome unknown".

        Args:
            request: Work item to submit
            poll_interval: Seconds between status polls (defaults to the poller's)
            deadline: Overall seconds allowed (defaults to the poller's)

        Returns:
            WorkOutcome with status success, failure or timeout. Remote and
            transport errors are captured on the outcome, never raised.
        """
        interval = self._poll_interval if poll_interval is None else poll_interval
        limit = self._deadline if deadline is None else deadline
        state: dict[str, WorkHandle] = {}
        log = logger.bind(resource=request.resource, operation=request.operation)

        try:
            items, cluster_errors = await with_deadline(
                self._run(request, interval, state),
                limit,
                lambda: WorkTimeoutError("Manager request timed out", {"deadline": limit}),
            )
        except WorkTimeoutError as exc:
            log.warning("work_poll_timeout", work_id=_work_id(state), deadline=limit)
            return WorkOutcome(OutcomeStatus.TIMEOUT, error=exc, handle=state.get("handle"))
        except FleetPlaneError as exc:
            log.warning(
                "work_failed",
                work_id=_work_id(state),
                error_type=type(exc).__name__,
                error=exc.message,
            )
            return WorkOutcome(OutcomeStatus.FAILURE, error=exc, handle=state.get("handle"))

        log.info(
            "work_completed",
            work_id=_work_id(state),
            items=len(items),
            cluster_errors=len(cluster_errors),
        )
        return WorkOutcome(
            OutcomeStatus.SUCCESS,
            items=items,
            cluster_errors=cluster_errors,
            handle=state.get("handle"),
        )

    async def get_work(self, resource: str, **selection: Any) -> list[dict[str, Any]]:
        """Run a ``get`` work item and return its items, raising on failure."""
        request = WorkRequest(resource=resource, client_id=self._client_id, **selection)
        outcome = await self.submit_and_await(request)
        outcome.raise_for_error()
        return outcome.items

    async def search(self, resource_type: str, name: str, **overrides: Any) -> dict[str, Any]:
        """
        Run a single manager search, bounded by the poller's deadline.

        Unlike ``submit_and_await`` this raises ``WorkTimeoutError`` or
        ``RemoteOperationFailedError`` instead of returning an outcome.
        """
        payload: dict[str, Any] = {
            "Names": ["*"],
            "Labels": None,
            "Status": ["healthy"],
            "User": "",
            "Resource": "repo",
            "Operation": "search",
            "ID": name,
            "Action": {"Name": name, "URL": ""},
        }
        payload.update(overrides)

        async def _search() -> dict[str, Any]:
            try:
                body = await self._client.search(resource_type, name, payload)
            except Exception as exc:
                raise RemoteOperationFailedError(f"Search request failed: {exc}") from exc
            decoded = decode_ret_string(body)
            return (decoded or {}).get("Result") or {}

        return await with_deadline(
            _search(),
            self._deadline,
            lambda: WorkTimeoutError("Request timed out", {"deadline": self._deadline}),
        )

    async def _run(
        self,
        request: WorkRequest,
        interval: float,
        state: dict[str, WorkHandle],
    ) -> tuple[list[dict[str, Any]], list[ClusterError]]:
        handle = await self._submit(request)
        state["handle"] = handle
        logger.debug("work_submitted", work_id=handle.work_id, resource=request.resource)
        return await self._poll(handle, interval)

    async def _submit(self, request: WorkRequest) -> WorkHandle:
        try:
            body = await self._client.submit_work(request.to_payload())
        except Exception as exc:
            raise RemoteRejectedError(f"Work submission failed: {exc}") from exc

        if not isinstance(body, dict):
            raise RemoteRejectedError("Manager returned no work identifier", {"error": body})
        if body.get("Error"):
            raise RemoteRejectedError("Manager rejected work submission", {"error": body["Error"]})
        work_id = body.get("RetString")
        if not work_id:
            raise RemoteRejectedError("Manager returned no work identifier", {"error": body})
        return WorkHandle(str(work_id))

    async def _poll(
        self,
        handle: WorkHandle,
        interval: float,
    ) -> tuple[list[dict[str, Any]], list[ClusterError]]:
        while True:
            await asyncio.sleep(interval)
            try:
                body = await self._client.get_work(handle.work_id)
            except Exception as exc:
                raise RemoteOperationFailedError(
                    f"Work status request failed: {exc}", {"work_id": handle.work_id}
                ) from exc

            envelope = parse_status_envelope(body)
            if not envelope.get("Completed"):
                continue

            results = envelope.get("Results")
            if isinstance(results, dict) and (results.get("code") or results.get("message")):
                raise RemoteOperationFailedError(
                    str(results.get("message") or "Remote work failed"),
                    {"work_id": handle.work_id, "payload": results},
                )
            if results is not None and not isinstance(results, dict):
                raise RemoteOperationFailedError(
                    "Completed work carries no per-cluster results",
                    {"work_id": handle.work_id, "payload": results},
                )
            return flatten_results(results or {})


def _work_id(state: dict[str, WorkHandle]) -> str | None:
    handle = state.get("handle")
    return handle.work_id if handle else None
