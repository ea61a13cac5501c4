"""Convenience factory for building the dispatcher of an action."""

from __future__ import annotations

from alertrelay.core.config import Settings
from alertrelay.core.types import ActionKind
from alertrelay.delivery.base import Dispatcher
from alertrelay.delivery.pubsub import PubSubDispatcher
from alertrelay.delivery.webhook import WebhookDispatcher
from alertrelay.delivery.workflows import WorkflowsDispatcher


def create_dispatcher(settings: Settings, action: ActionKind) -> Dispatcher:
    """Build a fresh, idle dispatcher for *action* from validated settings."""
    if action == ActionKind.WEBHOOK:
        return WebhookDispatcher(settings.webhook)
    if action == ActionKind.PUBSUB:
        return PubSubDispatcher(settings.gcp, settings.pubsub)
    return WorkflowsDispatcher(settings.gcp, settings.workflows)
