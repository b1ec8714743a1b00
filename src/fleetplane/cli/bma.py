"""
CLI commands for bare metal assets.

Usage:
    fleetplane bma create NAMESPACE NAME --bmc-address ADDR --username U --password P
    fleetplane bma update NAMESPACE NAME --bmc-address ADDR --username U --password P
    fleetplane bma get NAMESPACE NAME
    fleetplane bma delete NAMESPACE/NAME [NAMESPACE/NAME ...]
"""

from __future__ import annotations

import argparse
import asyncio

from fleetplane.cli.ux import console, error, outcome_line, print_table, success, warning
from fleetplane.clients import KubeClient
from fleetplane.config import Settings, get_settings
from fleetplane.core.errors import (
    DependencyMissingError,
    ExitCode,
    InputInvalidError,
    main_with_error_handling,
)
from fleetplane.provisioning import (
    AssetRef,
    BareMetalAssetWorkflow,
    BulkDeleteOutcome,
    ProvisioningOutcome,
)


def build_workflow(settings: Settings) -> BareMetalAssetWorkflow:
    client = KubeClient(
        settings.kube_api_url,
        settings.api_token,
        timeout=settings.http_timeout,
        max_retries=settings.http_max_retries,
        backoff_factor=settings.http_retry_backoff_factor,
    )
    return BareMetalAssetWorkflow(client)


def parse_asset_ref(value: str) -> AssetRef:
    namespace, _, name = value.partition("/")
    if not namespace or not name:
        raise InputInvalidError(f"Expected NAMESPACE/NAME, got {value!r}")
    return AssetRef(namespace=namespace, name=name)


@main_with_error_handling()
def bma_get_command(namespace: str, name: str, settings: Settings | None = None) -> int:
    """Show an asset and its credentials secret, without the secret data."""
    workflow = build_workflow(settings or get_settings())
    asset, secret = asyncio.run(workflow.get(namespace, name))
    if asset is None:
        raise DependencyMissingError(f"Bare metal asset {namespace}/{name} not found")

    if secret is not None:
        secret = {key: value for key, value in secret.items() if key != "data"}
    console.print_json(data={"asset": asset, "secret": secret})
    return ExitCode.SUCCESS


@main_with_error_handling()
def bma_save_command(
    action: str,
    namespace: str,
    name: str,
    bmc_address: str,
    username: str,
    password: str,
    boot_mac: str | None = None,
    format: str = "text",
    settings: Settings | None = None,
) -> int:
    """Create or update one bare metal asset."""
    workflow = build_workflow(settings or get_settings())
    run = workflow.create if action == "create" else workflow.update
    outcome = asyncio.run(
        run(namespace, name, bmc_address, username, password, boot_mac=boot_mac)
    )

    if format == "json":
        console.print_json(data=outcome.to_dict())
    else:
        _print_steps(f"{action} {namespace}/{name}", outcome)

    failed = outcome.failed_step
    if failed is not None:
        if failed.error is not None:
            return failed.error.exit_code
        return ExitCode.REMOTE_ERROR
    return ExitCode.SUCCESS


@main_with_error_handling()
def bma_delete_command(
    targets: list[str],
    format: str = "text",
    settings: Settings | None = None,
) -> int:
    """Delete bare metal assets in bounded batches."""
    refs = [parse_asset_ref(target) for target in targets]
    workflow = build_workflow(settings or get_settings())
    outcome = asyncio.run(workflow.delete_many(refs))

    if format == "json":
        console.print_json(data=outcome.to_dict())
    else:
        _print_delete(len(refs), outcome)

    outcome.raise_for_error()
    return ExitCode.SUCCESS


def _print_steps(title: str, outcome: ProvisioningOutcome) -> None:
    rows = [
        [step.name, step.status.value, "" if step.status_code is None else str(step.status_code)]
        for step in outcome.steps
    ]
    print_table(title, ["Step", "Status", "Code"], rows)
    outcome_line(outcome.ok, f"{title}: {outcome.status_code}")


def _print_delete(total: int, outcome: BulkDeleteOutcome) -> None:
    if outcome.ok:
        success(f"Deleted {total} bare metal asset(s)")
        return
    for item in outcome.errors:
        warning(f"{item['namespace']}/{item['name']}: {item['statusCode']} {item.get('message') or ''}")


def register_bma_parser(subparsers: argparse._SubParsersAction) -> None:
    """Register bma subcommand parser."""
    parser = subparsers.add_parser("bma", help="Manage bare metal assets")
    bma_sub = parser.add_subparsers(dest="bma_command")

    for action in ("create", "update"):
        save = bma_sub.add_parser(action, help=f"{action.capitalize()} a bare metal asset")
        save.add_argument("namespace")
        save.add_argument("name")
        save.add_argument("--bmc-address", required=True, help="BMC address")
        save.add_argument("--username", required=True, help="BMC username")
        save.add_argument("--password", required=True, help="BMC password")
        save.add_argument("--boot-mac", default=None, help="Boot MAC address")
        save.add_argument("--format", choices=["text", "json"], default="text")

    get = bma_sub.add_parser("get", help="Show a bare metal asset")
    get.add_argument("namespace")
    get.add_argument("name")

    delete = bma_sub.add_parser("delete", help="Delete bare metal assets")
    delete.add_argument("targets", nargs="+", metavar="NAMESPACE/NAME")
    delete.add_argument("--format", choices=["text", "json"], default="text")


def handle_bma_command(args: argparse.Namespace) -> int:
    command = getattr(args, "bma_command", None)

    if command in ("create", "update"):
        return bma_save_command(
            action=command,
            namespace=args.namespace,
            name=args.name,
            bmc_address=args.bmc_address,
            username=args.username,
            password=args.password,
            boot_mac=args.boot_mac,
            format=args.format,
        )
    if command == "get":
        return bma_get_command(namespace=args.namespace, name=args.name)
    if command == "delete":
        return bma_delete_command(targets=args.targets, format=args.format)

    error("Usage: fleetplane bma {get,create,update,delete} ...")
    return ExitCode.INPUT_ERROR
