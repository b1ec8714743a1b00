"""
Resource API client.

Reads and writes Kubernetes-style objects addressed by path. Failed calls
come back as Status objects (``{"kind": "Status", "code": ..., "message": ...}``)
rather than exceptions, so multi-step workflows can inspect each result.
Network failures without a response still raise ``HTTPClientError``.
"""

from __future__ import annotations

from typing import Any, Protocol

import structlog

from fleetplane.clients.base import BaseHTTPClient, HTTPClientError

logger = structlog.get_logger()

JSON_PATCH = "application/json-patch+json"


class ResourceClient(Protocol):
    """Minimal resource API consumed by provisioning workflows."""

    async def get_resource(self, path: str) -> dict[str, Any]:
        ...

    async def create_resource(self, path: str, body: dict[str, Any]) -> dict[str, Any]:
        ...

    async def patch_resource(self, path: str, operations: list[dict[str, Any]]) -> dict[str, Any]:
        ...

    async def delete_resource(self, path: str) -> dict[str, Any]:
        ...


def status_object(code: int, message: str, reason: str | None = None) -> dict[str, Any]:
    """Build a Status object in the resource API's failure shape."""
    status: dict[str, Any] = {
        "kind": "Status",
        "apiVersion": "v1",
        "status": "Failure",
        "code": code,
        "message": message,
    }
    if reason:
        status["reason"] = reason
    return status


def is_failure(result: Any) -> bool:
    """True when a resource API result signals failure (status code or message)."""
    if not isinstance(result, dict):
        return True
    return bool(result.get("code") or result.get("message"))


class KubeClient(BaseHTTPClient):
    """Resource API client returning Status objects on HTTP failure.

    No circuit breaker by default; every item of a bulk delete reaches the
    server and fails on its own.
    """

    def __init__(
        self,
        base_url: str,
        token: str | None = None,
        *,
        circuit_failure_threshold: int | None = None,
        **kwargs: Any,
    ) -> None:
        super().__init__(
            base_url,
            token,
            circuit_failure_threshold=circuit_failure_threshold,
            **kwargs,
        )

    async def get_resource(self, path: str) -> dict[str, Any]:
        return await self._call("GET", path)

    async def create_resource(self, path: str, body: dict[str, Any]) -> dict[str, Any]:
        return await self._call("POST", path, json=body)

    async def patch_resource(self, path: str, operations: list[dict[str, Any]]) -> dict[str, Any]:
        return await self._call("PATCH", path, json=operations, headers={"Content-Type": JSON_PATCH})

    async def delete_resource(self, path: str) -> dict[str, Any]:
        return await self._call("DELETE", path)

    async def _call(
        self,
        method: str,
        path: str,
        *,
        json: Any = None,
        headers: dict[str, str] | None = None,
    ) -> dict[str, Any]:
        try:
            return await self._request(method, path, json=json, headers=headers)
        except HTTPClientError as exc:
            if exc.status_code is None:
                raise
            payload = exc.payload if isinstance(exc.payload, dict) else {}
            if payload.get("kind") == "Status" and payload.get("code"):
                return payload
            logger.debug("resource_call_failed", method=method, path=path, status=exc.status_code)
            return status_object(
                exc.status_code,
                str(payload.get("message") or exc),
                payload.get("reason"),
            )
