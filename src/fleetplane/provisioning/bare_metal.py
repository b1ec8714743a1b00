"""
Bare metal asset provisioning.

A bare metal asset owns a credentials secret. Creating one is a three-step
chain: the secret first (its name is generated server-side), then the asset
referencing that name, then an ownership patch on the secret once the
asset's uid is known. Updates patch in place and never roll back.
"""

from __future__ import annotations

import asyncio
import base64
from collections.abc import Mapping
from typing import Any

import structlog

from fleetplane.clients.kube import ResourceClient
from fleetplane.core.errors import DependencyMissingError, InputInvalidError
from fleetplane.provisioning.models import AssetRef, BulkDeleteOutcome, ProvisioningOutcome
from fleetplane.provisioning.pipeline import (
    Pipeline,
    Step,
    StepContext,
    has_name,
    metadata_field,
    no_failure,
)

logger = structlog.get_logger()

ASSET_API_VERSION = "midas.io/v1alpha1"
ASSET_KIND = "BareMetalAsset"
MAX_PARALLEL_REQUESTS = 5

CREATED = 201
UPDATED = 200


def asset_path(namespace: str, name: str | None = None) -> str:
    path = f"/apis/{ASSET_API_VERSION}/namespaces/{namespace}/baremetalassets"
    return f"{path}/{name}" if name else path


def secret_path(namespace: str, name: str | None = None) -> str:
    path = f"/api/v1/namespaces/{namespace}/secrets"
    return f"{path}/{name}" if name else path


def _b64(value: str) -> str:
    return base64.b64encode(value.encode()).decode("ascii")


def credentials_data(username: str, password: str) -> dict[str, str]:
    return {"username": _b64(username), "password": _b64(password)}


def secret_body(generate_name: str, username: str, password: str) -> dict[str, Any]:
    return {
        "apiVersion": "v1",
        "kind": "Secret",
        "metadata": {"generateName": generate_name, "ownerReferences": []},
        "type": "Opaque",
        "data": credentials_data(username, password),
    }


def asset_body(
    name: str,
    bmc_address: str,
    credentials_name: str,
    boot_mac: str | None,
) -> dict[str, Any]:
    return {
        "apiVersion": ASSET_API_VERSION,
        "kind": ASSET_KIND,
        "metadata": {"name": name},
        "spec": {
            "bmc": {"address": bmc_address, "credentialsName": credentials_name},
            "bootMACAddress": boot_mac,
        },
    }


def owner_reference_patch(owner_name: str, owner_uid: str | None) -> list[dict[str, Any]]:
    return [
        {
            "op": "replace",
            "path": "/metadata/ownerReferences",
            "value": [
                {
                    "apiVersion": ASSET_API_VERSION,
                    "kind": ASSET_KIND,
                    "name": owner_name,
                    "uid": owner_uid,
                }
            ],
        }
    ]


def credentials_name(asset: Mapping[str, Any] | None) -> str | None:
    """The secret name an asset references, if any."""
    spec = (asset or {}).get("spec") or {}
    bmc = spec.get("bmc") or {}
    return bmc.get("credentialsName") or None


def _secret_name(context: StepContext) -> str:
    name = metadata_field(context.get("secret"), "name")
    if not name:
        raise DependencyMissingError(
            "Secret step produced no usable name",
            {"step": "secret", "payload": context.get("secret") or {}},
        )
    return name


class BareMetalAssetWorkflow:
    """Create, update and bulk-delete bare metal assets and their secrets."""

    def __init__(
        self,
        client: ResourceClient,
        *,
        batch_size: int = MAX_PARALLEL_REQUESTS,
    ) -> None:
        self._client = client
        self._batch_size = batch_size

    async def get(self, namespace: str, name: str) -> tuple[dict[str, Any] | None, dict[str, Any] | None]:
        """Read an asset and, when it references one, its credentials secret."""
        asset = await self._client.get_resource(asset_path(namespace, name))
        if metadata_field(asset, "name") is None:
            return None, None
        secret = None
        secret_name = credentials_name(asset)
        if secret_name:
            secret = await self._client.get_resource(secret_path(namespace, secret_name))
        return asset, secret

    async def create(
        self,
        namespace: str,
        name: str,
        bmc_address: str,
        username: str,
        password: str,
        boot_mac: str | None = None,
    ) -> ProvisioningOutcome:
        """
        Create the credentials secret, the asset, then the secret's owner link.

        Returns:
            ProvisioningOutcome with status 201 when all three steps return
            their identifying field, otherwise the first failing step's code.
        """
        client = self._client

        async def create_secret(ctx: StepContext) -> dict[str, Any]:
            body = secret_body(f"{name}-bmc-secret-", username, password)
            return await client.create_resource(secret_path(namespace), body)

        async def create_asset(ctx: StepContext) -> dict[str, Any]:
            body = asset_body(name, bmc_address, _secret_name(ctx), boot_mac)
            return await client.create_resource(asset_path(namespace), body)

        async def patch_owner(ctx: StepContext) -> dict[str, Any]:
            patch = owner_reference_patch(name, metadata_field(ctx.get("bma"), "uid"))
            return await client.patch_resource(secret_path(namespace, _secret_name(ctx)), patch)

        pipeline = Pipeline(
            [
                Step("secret", create_secret, expect=has_name),
                Step("bma", create_asset, expect=lambda r, ctx: metadata_field(r, "name") == name),
                Step("patchedSecret", patch_owner, expect=has_name),
            ]
        )
        outcome = await pipeline.run("create", {}, CREATED)
        logger.info(
            "bare_metal_asset_create",
            namespace=namespace,
            name=name,
            status_code=outcome.status_code,
        )
        return outcome

    async def update(
        self,
        namespace: str,
        name: str,
        bmc_address: str,
        username: str,
        password: str,
        boot_mac: str | None = None,
    ) -> ProvisioningOutcome:
        """
        Update an asset's credentials and BMC settings.

        A missing asset fails fast with 400 before any write. An existing
        credentials secret is patched in place; otherwise a new secret is
        created and linked to the asset. The first failing step stops the
        run; earlier writes are left in place.
        """
        client = self._client

        async def read_asset(ctx: StepContext) -> dict[str, Any]:
            asset = await client.get_resource(asset_path(namespace, name))
            if metadata_field(asset, "name") is None:
                raise DependencyMissingError(
                    f"Bare metal asset {namespace}/{name} not found",
                    {"step": "current", "payload": asset},
                )
            return asset

        def has_credentials(ctx: StepContext) -> bool:
            return credentials_name(ctx["current"]) is not None

        async def write_secret(ctx: StepContext) -> dict[str, Any]:
            existing = credentials_name(ctx["current"])
            if existing:
                patch = [
                    {
                        "op": "replace",
                        "path": "/data",
                        "value": credentials_data(username, password),
                    }
                ]
                return await client.patch_resource(secret_path(namespace, existing), patch)
            body = secret_body(f"{name}-bmc-secret-", username, password)
            return await client.create_resource(secret_path(namespace), body)

        async def patch_owner(ctx: StepContext) -> dict[str, Any]:
            patch = owner_reference_patch(name, metadata_field(ctx["current"], "uid"))
            return await client.patch_resource(secret_path(namespace, _secret_name(ctx)), patch)

        async def patch_asset(ctx: StepContext) -> dict[str, Any]:
            secret_name = metadata_field(ctx.get("secret"), "name") or credentials_name(ctx["current"])
            if not secret_name:
                raise DependencyMissingError(
                    "No credentials secret to reference",
                    {"step": "secret", "payload": ctx.get("secret") or {}},
                )
            old_spec = ctx["current"].get("spec") or {}
            new_spec = {
                **old_spec,
                "bmc": {"address": bmc_address, "credentialsName": secret_name},
                "bootMACAddress": boot_mac,
            }
            patch = [{"op": "replace", "path": "/spec", "value": new_spec}]
            return await client.patch_resource(asset_path(namespace, name), patch)

        pipeline = Pipeline(
            [
                Step("current", read_asset),
                Step("secret", write_secret, expect=no_failure),
                Step(
                    "patchedSecret",
                    patch_owner,
                    expect=no_failure,
                    when=lambda ctx: not has_credentials(ctx),
                ),
                Step("bma", patch_asset, expect=no_failure),
            ]
        )
        outcome = await pipeline.run("update", {}, UPDATED)
        logger.info(
            "bare_metal_asset_update",
            namespace=namespace,
            name=name,
            status_code=outcome.status_code,
        )
        return outcome

    async def delete_many(self, assets: Any) -> BulkDeleteOutcome:
        """
        Delete assets in batches of at most ``batch_size`` concurrent calls.

        Each batch is awaited in full before the next one starts. Failures
        are collected per item and never stop later batches.

        Args:
            assets: List of AssetRef or mappings with ``namespace`` and ``name``

        Returns:
            BulkDeleteOutcome: 200 with no errors, 500 with the per-item
            error list, or 400 when the input is malformed.
        """
        try:
            refs = _parse_refs(assets)
        except InputInvalidError as exc:
            logger.warning("bare_metal_asset_delete_rejected", error=exc.message)
            return BulkDeleteOutcome(status_code=400, message=exc.message, error=exc)

        errors: list[dict[str, Any]] = []
        batches = 0
        for start in range(0, len(refs), self._batch_size):
            chunk = refs[start : start + self._batch_size]
            batches += 1
            results = await asyncio.gather(
                *(self._client.delete_resource(asset_path(ref.namespace, ref.name)) for ref in chunk),
                return_exceptions=True,
            )
            for ref, result in zip(chunk, results):
                error = _delete_error(ref, result)
                if error is not None:
                    errors.append(error)

        if errors:
            message = f"Failed to delete {len(errors)} bare metal asset(s)"
            logger.warning("bare_metal_asset_delete_partial", failed=len(errors), total=len(refs))
            return BulkDeleteOutcome(status_code=500, errors=errors, message=message, batches=batches)

        logger.info("bare_metal_asset_delete", total=len(refs), batches=batches)
        return BulkDeleteOutcome(status_code=200, batches=batches)


def _parse_refs(assets: Any) -> list[AssetRef]:
    if not isinstance(assets, (list, tuple)):
        raise InputInvalidError("Array of bare metal assets is expected")

    refs = []
    for item in assets:
        if isinstance(item, AssetRef):
            refs.append(item)
        elif isinstance(item, Mapping) and item.get("namespace") and item.get("name"):
            refs.append(AssetRef(namespace=item["namespace"], name=item["name"]))
        else:
            raise InputInvalidError(
                "Each bare metal asset needs a namespace and a name", {"item": repr(item)}
            )
    return refs


def _delete_error(ref: AssetRef, result: Any) -> dict[str, Any] | None:
    base = {"namespace": ref.namespace, "name": ref.name}
    if isinstance(result, BaseException):
        return {"statusCode": 500, "message": str(result), **base}
    if not isinstance(result, dict):
        return None
    code = result.get("code")
    if result.get("status") == "Failure" or (isinstance(code, int) and code >= 400):
        return {"statusCode": code or 500, "message": result.get("message"), **base}
    return None
