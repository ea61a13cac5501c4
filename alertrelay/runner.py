"""Run one action invocation: validate, resolve, build, dispatch, optionally wait."""

from __future__ import annotations

from collections.abc import Mapping

import structlog

from alertrelay.alerts.destination import resolve_workflow_name
from alertrelay.alerts.parsing import alert_from_env
from alertrelay.alerts.payload import build_payload
from alertrelay.core.config import Settings, require_action_config
from alertrelay.core.types import ActionKind, AlertRecord, DeliveryOutcome
from alertrelay.delivery.base import Deadline, Dispatcher
from alertrelay.delivery.completion import CompletionMonitor
from alertrelay.delivery.factory import create_dispatcher
from alertrelay.delivery.workflows import WorkflowsDispatcher

logger = structlog.get_logger(__name__)


def _destination(
    settings: Settings,
    action: ActionKind,
    alert: AlertRecord | None,
    environ: Mapping[str, str],
) -> tuple[str, str]:
    """Return ``(destination, source_tag)`` for *action*."""
    if action == ActionKind.WEBHOOK:
        return settings.webhook.url, settings.webhook.source
    if action == ActionKind.PUBSUB:
        return settings.pubsub.topic_id, settings.pubsub.source

    name = resolve_workflow_name(settings.workflows, alert, environ)
    logger.info("workflow_name_resolved", workflow=name)
    return name, settings.workflows.source


def _log_configuration(settings: Settings, action: ActionKind) -> None:
    if action == ActionKind.WEBHOOK:
        logger.info(
            "configuration_loaded",
            url=settings.webhook.url,
            timeout_secs=settings.webhook.timeout_secs,
        )
    elif action == ActionKind.PUBSUB:
        logger.info(
            "configuration_loaded",
            project=settings.gcp.project_id,
            topic=settings.pubsub.topic_id,
            timeout_secs=settings.pubsub.timeout_secs,
        )
    else:
        logger.info(
            "configuration_loaded",
            project=settings.gcp.project_id,
            location=settings.workflows.location,
            timeout_secs=settings.workflows.timeout_secs,
            wait=settings.workflows.wait_for_completion,
        )


async def run_action(
    settings: Settings,
    action: ActionKind,
    environ: Mapping[str, str],
    dispatcher: Dispatcher | None = None,
) -> DeliveryOutcome:
    """Deliver the alert described by *environ* using *action*.

    Everything before the dispatcher is pure and runs before any network
    activity, so configuration and resolution errors never reach the
    destination.

    Args:
        settings: Settings built once at startup.
        action: Delivery target.
        environ: Environment snapshot carrying ``ALERT_JSON`` and the
            per-field fallback variables.
        dispatcher: Pre-built dispatcher (tests). Built from settings if None.
    """
    settings = require_action_config(settings, action)
    _log_configuration(settings, action)

    alert = alert_from_env(environ)
    destination, source = _destination(settings, action, alert, environ)
    payload = build_payload(alert, source, environ)

    deadline = Deadline(settings.timeout_for(action))
    dispatcher = dispatcher or create_dispatcher(settings, action)

    try:
        receipt = await dispatcher.dispatch(destination, payload, deadline)

        execution = None
        if isinstance(dispatcher, WorkflowsDispatcher) and receipt.handle:
            if settings.workflows.wait_for_completion:
                monitor = CompletionMonitor(
                    dispatcher.get_execution,
                    interval_secs=settings.workflows.poll_interval_secs,
                )
                execution = await monitor.wait(receipt.handle, deadline)
            else:
                logger.info("workflow_started_not_waiting", execution=receipt.handle)
    finally:
        await dispatcher.close()

    return DeliveryOutcome(receipt=receipt, execution=execution)
