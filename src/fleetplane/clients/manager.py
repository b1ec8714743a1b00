from __future__ import annotations

from typing import Any

from fleetplane.clients.base import BaseHTTPClient

API_PREFIX = "/api/v1alpha1"


class ManagerClient(BaseHTTPClient):
    """Remote cluster manager API: work submission, work status and search."""

    async def submit_work(self, payload: dict[str, Any]) -> dict[str, Any]:
        return await self.post(f"{API_PREFIX}/work", json=payload)

    async def get_work(self, work_id: str) -> dict[str, Any]:
        return await self.get(f"{API_PREFIX}/work/{work_id}")

    async def search(
        self,
        resource_type: str,
        name: str,
        payload: dict[str, Any],
    ) -> dict[str, Any]:
        # The manager reads the search options from a GET body.
        return await self.get(f"{API_PREFIX}/{resource_type}/{name}", json=payload)
