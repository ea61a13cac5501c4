"""Pydantic settings loaded from YAML and overlaid with environment variables."""

from __future__ import annotations

import os
from collections.abc import Mapping
from pathlib import Path
from types import MappingProxyType
from typing import Any

import structlog
import yaml
from pydantic import BaseModel, SecretStr, ValidationError

from alertrelay.core.exceptions import ConfigurationError
from alertrelay.core.types import ActionKind

logger = structlog.get_logger(__name__)

CONFIG_PATH_ENV = "ALERTRELAY_CONFIG"
ACTION_ENV = "ALERTRELAY_ACTION"

DEFAULT_SOURCE = "alertrelay"


class LoggingConfig(BaseModel):
    """Logging configuration."""

    level: str = "INFO"
    format: str = "json"


class WebhookConfig(BaseModel):
    """HTTP webhook destination."""

    url: str = ""
    auth_header: SecretStr = SecretStr("")
    timeout_secs: int = 30
    source: str = DEFAULT_SOURCE


class GcpConfig(BaseModel):
    """Google Cloud project and opaque access token."""

    project_id: str = ""
    access_token: SecretStr = SecretStr("")


class PubSubConfig(BaseModel):
    """Pub/Sub topic destination."""

    topic_id: str = ""
    api_url: str = "https://pubsub.googleapis.com/v1"
    timeout_secs: int = 30
    source: str = DEFAULT_SOURCE


class WorkflowsConfig(BaseModel):
    """Cloud Workflows destination and completion polling."""

    location: str = ""
    workflow_name: str = ""
    workflow_name_field: str = ""
    api_url: str = "https://workflowexecutions.googleapis.com/v1"
    timeout_secs: int = 300
    source: str = DEFAULT_SOURCE
    wait_for_completion: bool = True
    poll_interval_secs: float = 5.0


class Settings(BaseModel):
    """Root settings container, built once per invocation."""

    action: ActionKind | None = None
    logging: LoggingConfig = LoggingConfig()
    webhook: WebhookConfig = WebhookConfig()
    gcp: GcpConfig = GcpConfig()
    pubsub: PubSubConfig = PubSubConfig()
    workflows: WorkflowsConfig = WorkflowsConfig()

    def timeout_for(self, action: ActionKind) -> int:
        """Timeout in seconds bounding dispatch (and the optional wait)."""
        if action == ActionKind.WEBHOOK:
            return self.webhook.timeout_secs
        if action == ActionKind.PUBSUB:
            return self.pubsub.timeout_secs
        return self.workflows.timeout_secs


# Environment variable → (section, field). Empty values never override.
_ENV_SETTINGS: Mapping[str, tuple[str, str]] = MappingProxyType({
    "LOG_LEVEL": ("logging", "level"),
    "LOG_FORMAT": ("logging", "format"),
    "WEBHOOK_URL": ("webhook", "url"),
    "AUTH_HEADER": ("webhook", "auth_header"),
    "WEBHOOK_SOURCE": ("webhook", "source"),
    "GCP_PROJECT_ID": ("gcp", "project_id"),
    "GCP_ACCESS_TOKEN": ("gcp", "access_token"),
    "PUBSUB_TOPIC_ID": ("pubsub", "topic_id"),
    "PUBSUB_API_URL": ("pubsub", "api_url"),
    "MESSAGE_SOURCE": ("pubsub", "source"),
    "GCP_LOCATION": ("workflows", "location"),
    "WORKFLOW_NAME": ("workflows", "workflow_name"),
    "WORKFLOW_NAME_FIELD": ("workflows", "workflow_name_field"),
    "WORKFLOWS_API_URL": ("workflows", "api_url"),
    "WORKFLOW_SOURCE": ("workflows", "source"),
})

# TIMEOUT_SECONDS applies to whichever action runs.
_TIMEOUT_SECTIONS = ("webhook", "pubsub", "workflows")

_TRUE_STRINGS = frozenset({"1", "t", "true"})
_FALSE_STRINGS = frozenset({"0", "f", "false"})

DEFAULT_LOCATION = "us-central1"


def parse_bool(value: str) -> bool | None:
    """Parse a boolean flag; returns None when the value is not recognised."""
    lowered = value.strip().lower()
    if lowered in _TRUE_STRINGS:
        return True
    if lowered in _FALSE_STRINGS:
        return False
    return None


def _parse_int(value: str) -> int | None:
    try:
        return int(value.strip())
    except ValueError:
        return None


def _env_overrides(environ: Mapping[str, str]) -> dict[str, Any]:
    """Translate environment variables into nested settings data."""
    data: dict[str, Any] = {}

    if environ.get(ACTION_ENV):
        data["action"] = environ[ACTION_ENV].strip().lower()

    for env_name, (section, field) in _ENV_SETTINGS.items():
        value = environ.get(env_name, "")
        if value:
            data.setdefault(section, {})[field] = value

    timeout_raw = environ.get("TIMEOUT_SECONDS", "")
    if timeout_raw:
        timeout = _parse_int(timeout_raw)
        if timeout is None:
            logger.warning("timeout_seconds_invalid", value=timeout_raw)
        else:
            for section in _TIMEOUT_SECTIONS:
                data.setdefault(section, {})["timeout_secs"] = timeout

    wait_raw = environ.get("WAIT_FOR_COMPLETION", "")
    if wait_raw:
        wait = parse_bool(wait_raw)
        if wait is None:
            logger.warning("wait_for_completion_invalid", value=wait_raw)
        else:
            data.setdefault("workflows", {})["wait_for_completion"] = wait

    return data


def _merge(base: dict[str, Any], overrides: Mapping[str, Any]) -> dict[str, Any]:
    merged = dict(base)
    for key, value in overrides.items():
        if isinstance(value, Mapping) and isinstance(merged.get(key), Mapping):
            merged[key] = _merge(dict(merged[key]), value)
        else:
            merged[key] = value
    return merged


def load_settings(
    path: str | Path | None = None,
    environ: Mapping[str, str] | None = None,
) -> Settings:
    """Load settings from an optional YAML file, then apply environment overrides.

    Args:
        path: Path to YAML config. Defaults to ``$ALERTRELAY_CONFIG`` if set.
        environ: Environment mapping. Defaults to ``os.environ``.

    Returns:
        Parsed Settings instance.

    Raises:
        ConfigurationError: The YAML file or the merged values are invalid.
    """
    env = os.environ if environ is None else environ
    config_path = Path(path) if path else None
    if config_path is None and env.get(CONFIG_PATH_ENV):
        config_path = Path(env[CONFIG_PATH_ENV])

    data: dict[str, Any] = {}
    if config_path is not None and config_path.exists():
        try:
            with open(config_path) as f:
                raw = yaml.safe_load(f)
        except yaml.YAMLError as exc:
            raise ConfigurationError(f"invalid YAML in {config_path}: {exc}") from exc
        if isinstance(raw, dict):
            data = raw

    data = _merge(data, _env_overrides(env))

    try:
        return Settings(**data)
    except ValidationError as exc:
        raise ConfigurationError(f"invalid settings: {exc}") from exc


def require_action_config(settings: Settings, action: ActionKind) -> Settings:
    """Pre-flight validation for one action. Runs before any network activity.

    Returns a copy of *settings* with defaults that depend on validation
    (e.g. the Workflows location) filled in.

    Raises:
        ConfigurationError: A required setting is missing or two settings
            contradict each other.
    """
    if settings.timeout_for(action) <= 0:
        raise ConfigurationError("TIMEOUT_SECONDS must be a positive integer")

    if action == ActionKind.WEBHOOK:
        if not settings.webhook.url:
            raise ConfigurationError("WEBHOOK_URL environment variable is required")
        return settings

    if not settings.gcp.project_id:
        raise ConfigurationError("GCP_PROJECT_ID environment variable is required")

    if action == ActionKind.PUBSUB:
        if not settings.pubsub.topic_id:
            raise ConfigurationError("PUBSUB_TOPIC_ID environment variable is required")
        return settings

    wf = settings.workflows
    if not wf.workflow_name and not wf.workflow_name_field:
        raise ConfigurationError(
            "either WORKFLOW_NAME (static) or WORKFLOW_NAME_FIELD (from alert) "
            "must be specified"
        )
    if wf.workflow_name and wf.workflow_name_field:
        raise ConfigurationError(
            "WORKFLOW_NAME and WORKFLOW_NAME_FIELD are mutually exclusive, "
            "specify only one"
        )
    if wf.poll_interval_secs <= 0:
        raise ConfigurationError("workflows.poll_interval_secs must be positive")

    if not wf.location:
        logger.info("gcp_location_defaulted", location=DEFAULT_LOCATION)
        wf = wf.model_copy(update={"location": DEFAULT_LOCATION})
        settings = settings.model_copy(update={"workflows": wf})

    return settings
