"""Delivery targets, the shared deadline and completion polling."""

from alertrelay.delivery.base import Deadline, Dispatcher
from alertrelay.delivery.completion import CompletionMonitor
from alertrelay.delivery.factory import create_dispatcher
from alertrelay.delivery.pubsub import PubSubDispatcher
from alertrelay.delivery.webhook import WebhookDispatcher
from alertrelay.delivery.workflows import WorkflowsDispatcher

__all__ = [
    "CompletionMonitor",
    "Deadline",
    "Dispatcher",
    "PubSubDispatcher",
    "WebhookDispatcher",
    "WorkflowsDispatcher",
    "create_dispatcher",
]
