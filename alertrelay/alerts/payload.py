"""Build the canonical outbound payload from an alert and its env fallbacks."""

from __future__ import annotations

import datetime
from collections.abc import Mapping
from types import MappingProxyType

from alertrelay.core.types import AlertRecord, DispatchPayload

# Payload field → environment variable used when the record leaves it empty.
PAYLOAD_ENV_FALLBACKS: Mapping[str, str] = MappingProxyType({
    "alert_name": "ALERT_NAME",
    "status": "ALERT_STATUS",
    "severity": "ALERT_SEVERITY",
    "instance": "INSTANCE",
    "summary": "ALERT_SUMMARY",
    "description": "ALERT_DESCRIPTION",
})


def format_timestamp(moment: datetime.datetime) -> str:
    """RFC3339 in UTC with second precision, e.g. ``2024-05-01T12:00:00Z``."""
    utc = moment.astimezone(datetime.UTC)
    return utc.strftime("%Y-%m-%dT%H:%M:%SZ")


def _fields_from_alert(alert: AlertRecord) -> dict[str, str]:
    return {
        "alert_name": alert.labels.get("alertname", ""),
        "status": str(alert.status) if alert.status is not None else "",
        "severity": alert.labels.get("severity", ""),
        "instance": alert.labels.get("instance", ""),
        "summary": alert.annotations.get("summary", ""),
        "description": alert.annotations.get("description", ""),
    }


def build_payload(
    alert: AlertRecord | None,
    source: str,
    environ: Mapping[str, str],
    now: datetime.datetime | None = None,
) -> DispatchPayload:
    """Merge *alert* and environment fallbacks into a DispatchPayload.

    The timestamp records when dispatch happened, never when the alert
    fired: ``startsAt``/``endsAt`` on the record are ignored.
    """
    fields = _fields_from_alert(alert) if alert is not None else {}

    for name, env_name in PAYLOAD_ENV_FALLBACKS.items():
        if not fields.get(name):
            fields[name] = environ.get(env_name, "")

    return DispatchPayload(
        **fields,
        labels=dict(alert.labels) if alert is not None else {},
        annotations=dict(alert.annotations) if alert is not None else {},
        timestamp=format_timestamp(now or datetime.datetime.now(datetime.UTC)),
        source=source,
    )
