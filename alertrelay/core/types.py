"""Domain types shared by the alert actions."""

from __future__ import annotations

from enum import StrEnum

from pydantic import BaseModel, ConfigDict, Field, field_validator


class ActionKind(StrEnum):
    """Delivery target of an action invocation."""

    WEBHOOK = "webhook"
    PUBSUB = "pubsub"
    WORKFLOWS = "workflows"


class AlertStatus(StrEnum):
    """Alertmanager-style alert status."""

    FIRING = "firing"
    RESOLVED = "resolved"


class AlertRecord(BaseModel):
    """One parsed alert, as delivered in ``ALERT_JSON``."""

    model_config = ConfigDict(frozen=True, populate_by_name=True, extra="ignore")

    status: AlertStatus | str | None = None
    labels: dict[str, str] = Field(default_factory=dict)
    annotations: dict[str, str] = Field(default_factory=dict)
    starts_at: str | None = Field(default=None, alias="startsAt")
    ends_at: str | None = Field(default=None, alias="endsAt")

    @field_validator("status", mode="before")
    @classmethod
    def _normalise_status(cls, value: object) -> object:
        # Unrecognised statuses are kept, lowercased, so labels and annotations survive.
        if not isinstance(value, str):
            return value
        lowered = value.strip().lower()
        if not lowered:
            return None
        try:
            return AlertStatus(lowered)
        except ValueError:
            return lowered

    @property
    def status_known(self) -> bool:
        return self.status is None or isinstance(self.status, AlertStatus)

    @field_validator("labels", "annotations", mode="before")
    @classmethod
    def _null_maps(cls, value: object) -> object:
        return {} if value is None else value


class DispatchPayload(BaseModel):
    """Canonical outbound record sent to every destination."""

    model_config = ConfigDict(frozen=True, populate_by_name=True)

    alert_name: str = Field(default="", alias="alertName")
    status: str = ""
    severity: str = ""
    instance: str = ""
    summary: str = ""
    description: str = ""
    labels: dict[str, str] = Field(default_factory=dict)
    annotations: dict[str, str] = Field(default_factory=dict)
    timestamp: str
    source: str

    def to_json(self) -> str:
        """Serialize using the camelCase wire names."""
        return self.model_dump_json(by_alias=True)


class DispatchState(StrEnum):
    """Dispatcher lifecycle. DELIVERED and FAILED are terminal."""

    IDLE = "IDLE"
    SENDING = "SENDING"
    DELIVERED = "DELIVERED"
    FAILED = "FAILED"


class ExecutionState(StrEnum):
    """Remote workflow execution state."""

    ACTIVE = "ACTIVE"
    SUCCEEDED = "SUCCEEDED"
    FAILED = "FAILED"
    CANCELLED = "CANCELLED"
    UNKNOWN = "UNKNOWN"

    @classmethod
    def _missing_(cls, value: object) -> ExecutionState:
        return cls.UNKNOWN

    @property
    def terminal(self) -> bool:
        return self in (
            ExecutionState.SUCCEEDED,
            ExecutionState.FAILED,
            ExecutionState.CANCELLED,
        )


class ExecutionStatus(BaseModel):
    """Snapshot of a remote execution returned by one poll."""

    handle: str
    state: ExecutionState = ExecutionState.UNKNOWN
    result: str = ""
    error_payload: str = ""
    raw_state: str = ""


class DeliveryReceipt(BaseModel):
    """Success marker returned by a dispatcher."""

    action: ActionKind
    destination: str
    status_code: int | None = None
    body: str = ""
    message_id: str | None = None
    handle: str | None = None


class DeliveryOutcome(BaseModel):
    """Final result of one invocation: the receipt plus any completion status."""

    receipt: DeliveryReceipt
    execution: ExecutionStatus | None = None
