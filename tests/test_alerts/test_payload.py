"""Tests for build_payload: record extraction, env fallback, generation timestamp."""

from __future__ import annotations

import datetime
import json

from alertrelay.alerts.parsing import parse_alert
from alertrelay.alerts.payload import (
    PAYLOAD_ENV_FALLBACKS,
    build_payload,
    format_timestamp,
)
from alertrelay.core.types import AlertRecord

_NOW = datetime.datetime(2024, 5, 1, 12, 30, 45, 123456, tzinfo=datetime.UTC)

_FULL_ENV = {
    "ALERT_NAME": "EnvName",
    "ALERT_STATUS": "resolved",
    "ALERT_SEVERITY": "info",
    "INSTANCE": "env-instance",
    "ALERT_SUMMARY": "env summary",
    "ALERT_DESCRIPTION": "env description",
}


def _alert() -> AlertRecord:
    return AlertRecord.model_validate({
        "status": "firing",
        "labels": {
            "alertname": "HighCPU",
            "severity": "critical",
            "instance": "node-1:9100",
            "team": "infra",
        },
        "annotations": {"summary": "CPU high", "description": "CPU above 90%"},
        "startsAt": "2020-01-01T00:00:00Z",
    })


class TestFromRecord:
    def test_fields_extracted(self) -> None:
        p = build_payload(_alert(), "alertrelay", {}, now=_NOW)
        assert p.alert_name == "HighCPU"
        assert p.status == "firing"
        assert p.severity == "critical"
        assert p.instance == "node-1:9100"
        assert p.summary == "CPU high"
        assert p.description == "CPU above 90%"
        assert p.source == "alertrelay"

    def test_maps_copied_verbatim(self) -> None:
        alert = _alert()
        p = build_payload(alert, "s", {}, now=_NOW)
        assert p.labels == alert.labels
        assert p.annotations == alert.annotations

    def test_record_wins_over_env(self) -> None:
        p = build_payload(_alert(), "s", _FULL_ENV, now=_NOW)
        assert p.alert_name == "HighCPU"
        assert p.status == "firing"

    def test_missing_keys_filled_from_env(self) -> None:
        alert = AlertRecord.model_validate({"labels": {"alertname": "A"}})
        p = build_payload(alert, "s", _FULL_ENV, now=_NOW)
        assert p.alert_name == "A"
        assert p.status == "resolved"
        assert p.severity == "info"
        assert p.summary == "env summary"

    def test_no_further_defaulting(self) -> None:
        p = build_payload(AlertRecord(), "s", {}, now=_NOW)
        assert p.alert_name == ""
        assert p.status == ""
        assert p.labels == {}

    def test_unrecognised_status_passed_through(self) -> None:
        alert = parse_alert('{"status":"Pending","labels":{"alertname":"A","team":"x"}}')
        p = build_payload(alert, "s", {"ALERT_STATUS": "firing"}, now=_NOW)
        assert p.alert_name == "A"
        assert p.status == "pending"
        assert p.labels == {"alertname": "A", "team": "x"}


class TestWithoutRecord:
    def test_every_field_traces_to_env(self) -> None:
        p = build_payload(None, "s", _FULL_ENV, now=_NOW)
        for field, env_name in PAYLOAD_ENV_FALLBACKS.items():
            assert getattr(p, field) == _FULL_ENV[env_name]
        assert p.labels == {}
        assert p.annotations == {}

    def test_env_values_copied_without_transformation(self) -> None:
        env = {"ALERT_NAME": "  Spaced Name!  "}
        p = build_payload(None, "s", env, now=_NOW)
        assert p.alert_name == "  Spaced Name!  "

    def test_empty_alert_json_uses_env_name(self) -> None:
        alert = parse_alert("")
        p = build_payload(alert, "s", {"ALERT_JSON": "", "ALERT_NAME": "EnvTest"}, now=_NOW)
        assert p.alert_name == "EnvTest"


class TestTimestamp:
    def test_generation_time_used(self) -> None:
        p = build_payload(_alert(), "s", {}, now=_NOW)
        assert p.timestamp == "2024-05-01T12:30:45Z"

    def test_non_utc_converted(self) -> None:
        tz = datetime.timezone(datetime.timedelta(hours=2))
        moment = datetime.datetime(2024, 5, 1, 14, 0, 0, tzinfo=tz)
        assert format_timestamp(moment) == "2024-05-01T12:00:00Z"

    def test_defaults_to_now(self) -> None:
        before = datetime.datetime.now(datetime.UTC).replace(microsecond=0)
        p = build_payload(None, "s", {})
        stamped = datetime.datetime.strptime(p.timestamp, "%Y-%m-%dT%H:%M:%SZ").replace(
            tzinfo=datetime.UTC,
        )
        assert stamped >= before


class TestSerialization:
    def test_json_round_trip_keys(self) -> None:
        p = build_payload(_alert(), "karo", {}, now=_NOW)
        data = json.loads(p.to_json())
        assert data["alertName"] == "HighCPU"
        assert data["source"] == "karo"
        assert data["labels"]["team"] == "infra"

    def test_maps_serialize_as_empty_objects_without_record(self) -> None:
        data = json.loads(build_payload(None, "s", {}, now=_NOW).to_json())
        assert data["labels"] == {}
        assert data["annotations"] == {}
