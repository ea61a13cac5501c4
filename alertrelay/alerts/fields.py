"""Dot-path field resolution against an alert record with environment fallback.

A field path selects one value inside an alert:

- ``status``: the alert status (the only supported single segment)
- ``labels.<key>`` / ``annotations.<key>``: a map lookup

Resolution is strictly ordered: the parsed record first, then the
environment. Paths deeper than two segments are unsupported and never
match the record.
"""

from __future__ import annotations

from collections.abc import Mapping
from types import MappingProxyType

from alertrelay.core.types import AlertRecord

# Well-known paths whose environment variable does not follow the
# upper-case/underscore naming rule.
FIELD_ENV_FALLBACKS: Mapping[str, str] = MappingProxyType({
    "labels.alertname": "ALERT_NAME",
    "labels.workflow": "WORKFLOW_FROM_LABEL",
    "annotations.workflow": "WORKFLOW_FROM_ANNOTATION",
    "annotations.workflow_name": "WORKFLOW_NAME_FROM_ANNOTATION",
    "status": "ALERT_STATUS",
})

_SECTIONS = ("labels", "annotations")


def resolve_from_alert(alert: AlertRecord | None, path: str) -> str:
    """Read *path* from the parsed record; empty when absent or unsupported."""
    if alert is None:
        return ""

    parts = path.split(".")
    if len(parts) == 1:
        if parts[0] == "status" and alert.status is not None:
            return str(alert.status)
        return ""

    if len(parts) == 2:
        section, key = parts
        if section == "labels":
            return alert.labels.get(key, "")
        if section == "annotations":
            return alert.annotations.get(key, "")

    return ""


def env_var_for(path: str) -> str:
    """Name of the environment variable consulted for *path*."""
    mapped = FIELD_ENV_FALLBACKS.get(path)
    if mapped is not None:
        return mapped
    return path.replace(".", "_").upper()


def resolve_from_env(path: str, environ: Mapping[str, str]) -> str:
    return environ.get(env_var_for(path), "")


def resolve_field(
    path: str,
    alert: AlertRecord | None,
    environ: Mapping[str, str],
) -> str:
    """Resolve *path* from *alert*, falling back to *environ*.

    Returns an empty string when neither stage yields a value; whether
    that is an error is the caller's decision.
    """
    value = resolve_from_alert(alert, path)
    if value:
        return value
    return resolve_from_env(path, environ)


def is_supported_path(path: str) -> bool:
    """Whether *path* can ever match a parsed record."""
    parts = path.split(".")
    if len(parts) == 1:
        return parts[0] == "status"
    return len(parts) == 2 and parts[0] in _SECTIONS and bool(parts[1])
