"""Pub/Sub delivery: publish one message via the REST ``topics.publish`` API."""

from __future__ import annotations

import base64
from typing import Any

import structlog

from alertrelay.core.config import GcpConfig, PubSubConfig
from alertrelay.core.exceptions import DeliveryError
from alertrelay.core.types import ActionKind, DeliveryReceipt, DispatchPayload
from alertrelay.delivery.google import GoogleApiDispatcher

logger = structlog.get_logger(__name__)


def topic_path(project_id: str, topic_id: str) -> str:
    return f"projects/{project_id}/topics/{topic_id}"


def message_attributes(payload: DispatchPayload) -> dict[str, str]:
    """Attributes attached to the message so subscribers can filter without decoding."""
    return {
        "alertName": payload.alert_name,
        "status": payload.status,
        "severity": payload.severity,
        "source": payload.source,
        "timestamp": payload.timestamp,
    }


def build_publish_request(payload: DispatchPayload) -> dict[str, Any]:
    data = base64.b64encode(payload.to_json().encode("utf-8")).decode("ascii")
    return {
        "messages": [
            {"data": data, "attributes": message_attributes(payload)},
        ],
    }


class PubSubDispatcher(GoogleApiDispatcher):
    """Publishes the payload as a single JSON message to a topic.

    The destination is the topic id; the project comes from ``GcpConfig``.
    """

    action = ActionKind.PUBSUB

    def __init__(self, gcp: GcpConfig, config: PubSubConfig) -> None:
        super().__init__(gcp, api_url=config.api_url, timeout_secs=config.timeout_secs)

    async def _send(self, destination: str, payload: DispatchPayload) -> DeliveryReceipt:
        topic = topic_path(self._project_id, destination)
        url = f"{self._api_url}/{topic}:publish"
        logger.info("pubsub_publishing", topic=topic, payload=payload.to_json())

        status, body = await self._request("POST", url, json=build_publish_request(payload))

        message_ids = body.get("messageIds")
        if not isinstance(message_ids, list) or not message_ids:
            raise DeliveryError(
                f"publish to {topic} returned no message id",
                status_code=status,
                body=str(body),
            )

        message_id = str(message_ids[0])
        logger.info("pubsub_published", topic=topic, message_id=message_id)
        return DeliveryReceipt(
            action=self.action,
            destination=topic,
            status_code=status,
            message_id=message_id,
        )
