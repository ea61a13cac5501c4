"""Core module: config, types, exceptions, logging."""

from alertrelay.core.config import (
    GcpConfig,
    LoggingConfig,
    PubSubConfig,
    Settings,
    WebhookConfig,
    WorkflowsConfig,
    load_settings,
    require_action_config,
)
from alertrelay.core.exceptions import (
    ActionError,
    ConfigurationError,
    DeliveryError,
    DispatchTimeoutError,
    ExecutionCancelledError,
    InvalidTransitionError,
    ResolutionError,
    TransportError,
)
from alertrelay.core.logging import setup_logging
from alertrelay.core.types import (
    ActionKind,
    AlertRecord,
    AlertStatus,
    DeliveryOutcome,
    DeliveryReceipt,
    DispatchPayload,
    DispatchState,
    ExecutionState,
    ExecutionStatus,
)

__all__ = [
    "ActionError",
    "ActionKind",
    "AlertRecord",
    "AlertStatus",
    "ConfigurationError",
    "DeliveryError",
    "DeliveryOutcome",
    "DeliveryReceipt",
    "DispatchPayload",
    "DispatchState",
    "DispatchTimeoutError",
    "ExecutionCancelledError",
    "ExecutionState",
    "ExecutionStatus",
    "GcpConfig",
    "InvalidTransitionError",
    "LoggingConfig",
    "PubSubConfig",
    "ResolutionError",
    "Settings",
    "TransportError",
    "WebhookConfig",
    "WorkflowsConfig",
    "load_settings",
    "require_action_config",
    "setup_logging",
]
