"""Tests for field-path resolution: record lookup, env fallback, unsupported paths."""

from __future__ import annotations

import pytest

from alertrelay.alerts.fields import (
    FIELD_ENV_FALLBACKS,
    env_var_for,
    is_supported_path,
    resolve_field,
    resolve_from_alert,
)
from alertrelay.core.types import AlertRecord, AlertStatus

# ── Helpers ─────────────────────────────────────────────────────


def _alert(**kw: object) -> AlertRecord:
    defaults: dict[str, object] = {
        "status": "firing",
        "labels": {"alertname": "HighCPU", "workflow": "Pay Roll!", "severity": "critical"},
        "annotations": {"summary": "CPU is high", "workflow_name": "from-annotation"},
    }
    defaults.update(kw)
    return AlertRecord.model_validate(defaults)


# ── Record stage ───────────────────────────────────────────────


class TestResolveFromAlert:
    @pytest.mark.parametrize("key", ["alertname", "workflow", "severity", "missing"])
    def test_labels_lookup_matches_map(self, key: str) -> None:
        alert = _alert()
        assert resolve_from_alert(alert, f"labels.{key}") == alert.labels.get(key, "")

    @pytest.mark.parametrize("key", ["summary", "workflow_name", "missing"])
    def test_annotations_lookup_matches_map(self, key: str) -> None:
        alert = _alert()
        assert resolve_from_alert(alert, f"annotations.{key}") == alert.annotations.get(key, "")

    def test_status(self) -> None:
        assert resolve_from_alert(_alert(status="resolved"), "status") == "resolved"

    def test_absent_status(self) -> None:
        assert resolve_from_alert(_alert(status=None), "status") == ""

    @pytest.mark.parametrize("path", ["alertname", "labels", "startsAt"])
    def test_other_single_segments_empty(self, path: str) -> None:
        assert resolve_from_alert(_alert(), path) == ""

    def test_unknown_section_empty(self) -> None:
        assert resolve_from_alert(_alert(), "metadata.alertname") == ""

    def test_deeper_paths_unsupported(self) -> None:
        alert = _alert(labels={"a.b": "dotted", "a": "x"})
        assert resolve_from_alert(alert, "labels.a.b") == ""

    def test_no_record(self) -> None:
        assert resolve_from_alert(None, "labels.alertname") == ""


# ── Environment stage ──────────────────────────────────────────


class TestEnvVarFor:
    def test_table_is_immutable(self) -> None:
        with pytest.raises(TypeError):
            FIELD_ENV_FALLBACKS["labels.x"] = "X"  # type: ignore[index]

    @pytest.mark.parametrize("path,env_name", [
        ("labels.alertname", "ALERT_NAME"),
        ("labels.workflow", "WORKFLOW_FROM_LABEL"),
        ("annotations.workflow", "WORKFLOW_FROM_ANNOTATION"),
        ("annotations.workflow_name", "WORKFLOW_NAME_FROM_ANNOTATION"),
        ("status", "ALERT_STATUS"),
    ])
    def test_well_known_paths(self, path: str, env_name: str) -> None:
        assert env_var_for(path) == env_name

    @pytest.mark.parametrize("path,env_name", [
        ("labels.team", "LABELS_TEAM"),
        ("annotations.runbook_url", "ANNOTATIONS_RUNBOOK_URL"),
        ("custom", "CUSTOM"),
        ("a.b.c", "A_B_C"),
    ])
    def test_derived_names(self, path: str, env_name: str) -> None:
        assert env_var_for(path) == env_name


# ── Full chain ─────────────────────────────────────────────────


class TestResolveField:
    def test_record_wins_over_env(self) -> None:
        env = {"WORKFLOW_FROM_LABEL": "env-value"}
        assert resolve_field("labels.workflow", _alert(), env) == "Pay Roll!"

    def test_falls_back_when_key_missing(self) -> None:
        env = {"LABELS_TEAM": "payments"}
        assert resolve_field("labels.team", _alert(), env) == "payments"

    def test_falls_back_without_record(self) -> None:
        env = {"WORKFLOW_FROM_LABEL": "env-value"}
        assert resolve_field("labels.workflow", None, env) == "env-value"

    def test_falls_back_for_empty_value(self) -> None:
        alert = _alert(labels={"workflow": ""})
        assert resolve_field("labels.workflow", alert, {"WORKFLOW_FROM_LABEL": "w"}) == "w"

    def test_status_from_env(self) -> None:
        assert resolve_field("status", None, {"ALERT_STATUS": "firing"}) == "firing"

    def test_deep_path_uses_derived_env(self) -> None:
        assert resolve_field("labels.a.b", _alert(), {"LABELS_A_B": "deep"}) == "deep"

    def test_empty_at_both_stages(self) -> None:
        assert resolve_field("labels.nothing", _alert(), {}) == ""

    def test_status_enum_value(self) -> None:
        alert = AlertRecord(status=AlertStatus.FIRING)
        assert resolve_field("status", alert, {}) == "firing"


class TestIsSupportedPath:
    @pytest.mark.parametrize("path", ["status", "labels.x", "annotations.y"])
    def test_supported(self, path: str) -> None:
        assert is_supported_path(path)

    @pytest.mark.parametrize("path", ["", "name", "labels.", "foo.bar", "labels.a.b"])
    def test_unsupported(self, path: str) -> None:
        assert not is_supported_path(path)
