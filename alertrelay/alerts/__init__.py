"""Alert parsing, field resolution, name sanitization and payload building."""

from alertrelay.alerts.destination import resolve_workflow_name
from alertrelay.alerts.fields import (
    FIELD_ENV_FALLBACKS,
    env_var_for,
    resolve_field,
    resolve_from_alert,
    resolve_from_env,
)
from alertrelay.alerts.parsing import alert_from_env, parse_alert
from alertrelay.alerts.payload import PAYLOAD_ENV_FALLBACKS, build_payload
from alertrelay.alerts.sanitize import MAX_NAME_LENGTH, sanitize_name

__all__ = [
    "FIELD_ENV_FALLBACKS",
    "MAX_NAME_LENGTH",
    "PAYLOAD_ENV_FALLBACKS",
    "alert_from_env",
    "build_payload",
    "env_var_for",
    "parse_alert",
    "resolve_field",
    "resolve_from_alert",
    "resolve_from_env",
    "resolve_workflow_name",
    "sanitize_name",
]
