"""
Ordered step pipeline for provisioning workflows.

Steps run strictly in sequence; each one may read the raw results of the
steps before it from the shared context. The first failing step decides the
overall status code and every later step is recorded as skipped, so the
outcome always lists every step.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Awaitable, Callable

import structlog

from fleetplane.clients.kube import is_failure, status_object
from fleetplane.core.errors import DependencyMissingError, RemoteOperationFailedError
from fleetplane.provisioning.models import ProvisioningOutcome, StepResult, StepStatus

logger = structlog.get_logger()

NOT_FOUND_STATUS = 400
DEFAULT_FAILURE_STATUS = 500

StepContext = dict[str, Any]
StepCall = Callable[[StepContext], Awaitable[dict[str, Any]]]
Expectation = Callable[[dict[str, Any], StepContext], bool]
Condition = Callable[[StepContext], bool]


def no_failure(result: dict[str, Any], context: StepContext) -> bool:
    """Default expectation: the result carries no status code or message."""
    return not is_failure(result)


def has_name(result: dict[str, Any], context: StepContext) -> bool:
    """The result is an object with a ``metadata.name``."""
    return not is_failure(result) and bool(metadata_field(result, "name"))


def metadata_field(result: Any, key: str) -> Any:
    if not isinstance(result, dict):
        return None
    metadata = result.get("metadata")
    if not isinstance(metadata, dict):
        return None
    return metadata.get(key)


@dataclass
class Step:
    """One remote call: what to run, how to judge it, and whether to run it."""

    name: str
    call: StepCall
    expect: Expectation = no_failure
    when: Condition | None = None


class Pipeline:
    """Executes steps in order and short-circuits on the first failure."""

    def __init__(self, steps: list[Step]) -> None:
        self._steps = steps

    async def run(
        self,
        kind: str,
        context: StepContext,
        success_code: int,
    ) -> ProvisioningOutcome:
        """
        Run every step against the shared context.

        Args:
            kind: Workflow name recorded on the outcome (create, update)
            context: Inputs; each step's raw result is stored under its name
            success_code: Status code when no step fails

        Returns:
            ProvisioningOutcome with one StepResult per step. Exceptions from
            the transport are recorded on the failing step, never raised.
        """
        outcome = ProvisioningOutcome(kind=kind, status_code=success_code)
        log = logger.bind(workflow=kind)

        for step in self._steps:
            if outcome.failed_step is not None:
                outcome.steps.append(StepResult(step.name, StepStatus.SKIPPED))
                continue
            if step.when is not None and not step.when(context):
                outcome.steps.append(StepResult(step.name, StepStatus.SKIPPED))
                continue

            result = await self._execute(step, context)
            context[step.name] = result.result
            outcome.steps.append(result)

            if result.status is StepStatus.FAILED:
                outcome.status_code = result.status_code or DEFAULT_FAILURE_STATUS
                log.warning(
                    "provisioning_step_failed",
                    step=step.name,
                    status_code=outcome.status_code,
                    message=result.result.get("message"),
                )
            else:
                log.debug("provisioning_step_succeeded", step=step.name)

        return outcome

    async def _execute(self, step: Step, context: StepContext) -> StepResult:
        try:
            payload = await step.call(context)
        except DependencyMissingError as exc:
            payload = exc.details.get("payload") or {}
            return StepResult(
                step.name,
                StepStatus.FAILED,
                payload if isinstance(payload, dict) else {},
                status_code=NOT_FOUND_STATUS,
                error=exc,
            )
        except Exception as exc:
            logger.error("provisioning_step_error", step=step.name, error=str(exc))
            return StepResult(
                step.name,
                StepStatus.FAILED,
                status_object(DEFAULT_FAILURE_STATUS, str(exc)),
                status_code=DEFAULT_FAILURE_STATUS,
                error=RemoteOperationFailedError(str(exc), {"step": step.name}),
            )

        if not isinstance(payload, dict):
            payload = {"message": "Unexpected response", "value": payload}

        if step.expect(payload, context):
            return StepResult(step.name, StepStatus.SUCCEEDED, payload)

        code = payload.get("code")
        return StepResult(
            step.name,
            StepStatus.FAILED,
            payload,
            status_code=code if isinstance(code, int) and code else DEFAULT_FAILURE_STATUS,
            error=RemoteOperationFailedError(
                str(payload.get("message") or f"{step.name} step did not succeed"),
                {"step": step.name},
            ),
        )
