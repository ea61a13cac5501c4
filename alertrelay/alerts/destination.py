"""Resolve the workflow a payload is delivered to."""

from __future__ import annotations

from collections.abc import Mapping

import structlog

from alertrelay.alerts.fields import is_supported_path, resolve_field
from alertrelay.alerts.sanitize import sanitize_name
from alertrelay.core.config import WorkflowsConfig
from alertrelay.core.exceptions import ConfigurationError, ResolutionError
from alertrelay.core.types import AlertRecord

logger = structlog.get_logger(__name__)


def resolve_workflow_name(
    config: WorkflowsConfig,
    alert: AlertRecord | None,
    environ: Mapping[str, str],
) -> str:
    """Return the workflow identity: the static name, or the sanitized field value.

    Raises:
        ConfigurationError: Neither naming mode is configured.
        ResolutionError: The field path yields nothing, or nothing usable
            after sanitization.
    """
    if config.workflow_name:
        return config.workflow_name

    path = config.workflow_name_field
    if not path:
        raise ConfigurationError("WORKFLOW_NAME_FIELD not specified")

    if not is_supported_path(path):
        logger.warning("workflow_name_field_unsupported", field=path)

    raw = resolve_field(path, alert, environ)
    if not raw:
        raise ResolutionError(f"workflow name not found in alert field '{path}'")

    name = sanitize_name(raw)
    if not name:
        raise ResolutionError(
            f"workflow name from field '{path}' is invalid after sanitization"
        )

    if name != raw:
        logger.info("workflow_name_sanitized", field=path, raw=raw, name=name)
    return name
