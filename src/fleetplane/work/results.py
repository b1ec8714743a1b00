"""Decoding and flattening of remote manager work results."""

from __future__ import annotations

import json
from typing import Any

from fleetplane.core.errors import MalformedResponseError, RemoteOperationFailedError
from fleetplane.work.models import ClusterError


def decode_ret_string(body: Any) -> Any:
    """Decode the JSON document the manager wraps under ``RetString``."""
    if not isinstance(body, dict):
        raise MalformedResponseError("Manager response is not an object", {"payload": body})
    if body.get("Error"):
        raise RemoteOperationFailedError("Manager reported an error", {"payload": body["Error"]})

    raw = body.get("RetString")
    if not isinstance(raw, str):
        return raw
    try:
        return json.loads(raw)
    except ValueError as exc:
        raise MalformedResponseError("Manager envelope is not valid JSON", {"payload": raw}) from exc


def parse_status_envelope(body: Any) -> dict[str, Any]:
    """
    Decode a work status response into its ``Result`` envelope.

    A body that cannot be decoded raises ``MalformedResponseError``; it is
    an error, never a reason to poll again.

    Returns:
        The envelope, guaranteed to carry a ``Completed`` key.
    """
    decoded = decode_ret_string(body)
    result = decoded.get("Result") if isinstance(decoded, dict) else None
    if not isinstance(result, dict) or "Completed" not in result:
        raise MalformedResponseError("Work status envelope has no Result", {"payload": decoded})
    return result


def _annotate(cluster: str, name: str, fragment: Any) -> dict[str, Any]:
    base = fragment if isinstance(fragment, dict) else {"value": fragment}
    return {**base, "name": name, "cluster": cluster}


def flatten_results(
    results: dict[str, Any],
) -> tuple[list[dict[str, Any]], list[ClusterError]]:
    """
    Flatten a per-cluster result map into one list of resource fragments.

    Each fragment is annotated with its own name and its owning cluster.
    Clusters that answered with an error object (a ``code`` field) produce
    no items; they are returned separately as ``ClusterError`` entries.
    """
    items: list[dict[str, Any]] = []
    errors: list[ClusterError] = []

    for cluster, entry in (results or {}).items():
        resources = entry.get("Results", entry) if isinstance(entry, dict) else entry
        if isinstance(resources, dict) and resources.get("code"):
            errors.append(
                ClusterError(
                    cluster=cluster,
                    code=resources.get("code"),
                    message=resources.get("message"),
                    payload=resources,
                )
            )
            continue

        if isinstance(resources, dict):
            items.extend(_annotate(cluster, name, frag) for name, frag in resources.items())
        elif isinstance(resources, list):
            # Already a list: keep each fragment's own name.
            for frag in resources:
                name = frag.get("name", "") if isinstance(frag, dict) else ""
                items.append(_annotate(cluster, name, frag))

    return items, errors
