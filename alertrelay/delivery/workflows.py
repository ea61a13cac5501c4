"""Cloud Workflows delivery: start an execution and poll it by name."""

from __future__ import annotations

import json
from typing import Any

import structlog

from alertrelay.core.config import GcpConfig, WorkflowsConfig
from alertrelay.core.exceptions import DeliveryError
from alertrelay.core.types import (
    ActionKind,
    DeliveryReceipt,
    DispatchPayload,
    ExecutionState,
    ExecutionStatus,
)
from alertrelay.delivery.google import GoogleApiDispatcher

logger = structlog.get_logger(__name__)


def workflow_path(project_id: str, location: str, workflow: str) -> str:
    return f"projects/{project_id}/locations/{location}/workflows/{workflow}"


def _error_payload(error: object) -> str:
    if isinstance(error, dict):
        payload = error.get("payload", "")
        return payload if isinstance(payload, str) else json.dumps(payload)
    return ""


def parse_execution(handle: str, body: dict[str, Any]) -> ExecutionStatus:
    """Convert an ``Execution`` resource into an ExecutionStatus."""
    raw_state = str(body.get("state", ""))
    result = body.get("result", "")
    return ExecutionStatus(
        handle=str(body.get("name") or handle),
        state=ExecutionState(raw_state),
        raw_state=raw_state,
        result=result if isinstance(result, str) else json.dumps(result),
        error_payload=_error_payload(body.get("error")),
    )


class WorkflowsDispatcher(GoogleApiDispatcher):
    """Creates one workflow execution whose argument is the payload JSON.

    The destination is the (already sanitized) workflow name. The receipt
    carries the execution name as its handle for ``get_execution``.
    """

    action = ActionKind.WORKFLOWS

    def __init__(self, gcp: GcpConfig, config: WorkflowsConfig) -> None:
        super().__init__(gcp, api_url=config.api_url, timeout_secs=config.timeout_secs)
        self._location = config.location

    async def _send(self, destination: str, payload: DispatchPayload) -> DeliveryReceipt:
        parent = workflow_path(self._project_id, self._location, destination)
        argument = payload.to_json()
        logger.info("workflow_executing", workflow=parent, argument=argument)

        status, body = await self._request(
            "POST",
            f"{self._api_url}/{parent}/executions",
            json={"argument": argument},
        )

        handle = body.get("name")
        if not isinstance(handle, str) or not handle:
            raise DeliveryError(
                f"execution of {parent} returned no execution name",
                status_code=status,
                body=str(body),
            )

        logger.info("workflow_execution_created", execution=handle)
        return DeliveryReceipt(
            action=self.action,
            destination=parent,
            status_code=status,
            handle=handle,
        )

    async def get_execution(self, handle: str) -> ExecutionStatus:
        """Fetch the current state of execution *handle*.

        Errors propagate unchanged; a broken poll channel is fatal.
        """
        _, body = await self._request("GET", f"{self._api_url}/{handle}")
        return parse_execution(handle, body)
