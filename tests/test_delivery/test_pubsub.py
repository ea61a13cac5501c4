"""Tests for PubSubDispatcher: publish request shape, auth, error mapping."""

from __future__ import annotations

import base64
import json
from unittest.mock import AsyncMock, patch

import httpx
import pytest
from pydantic import SecretStr

from alertrelay.core.config import GcpConfig, PubSubConfig
from alertrelay.core.exceptions import (
    DeliveryError,
    DispatchTimeoutError,
    TransportError,
)
from alertrelay.core.types import DispatchPayload, DispatchState
from alertrelay.delivery.pubsub import (
    PubSubDispatcher,
    build_publish_request,
    message_attributes,
    topic_path,
)

API = "https://pubsub.test/v1"

# ── Helpers ─────────────────────────────────────────────────────


def _payload() -> DispatchPayload:
    return DispatchPayload(
        alert_name="DiskFull",
        status="firing",
        severity="warning",
        labels={"alertname": "DiskFull"},
        timestamp="2024-01-01T00:00:00Z",
        source="alertrelay",
    )


def _dispatcher(token: str = "") -> PubSubDispatcher:
    return PubSubDispatcher(
        GcpConfig(project_id="proj", access_token=SecretStr(token)),
        PubSubConfig(topic_id="alerts", api_url=API, timeout_secs=5),
    )


def _mock_response(
    body: object,
    status_code: int = 200,
) -> httpx.Response:
    """Build a mock httpx.Response."""
    return httpx.Response(
        status_code=status_code,
        json=body,
        request=httpx.Request("POST", f"{API}/projects/proj/topics/alerts:publish"),
    )


# ── Request shape ──────────────────────────────────────────────


class TestPublishRequest:
    def test_topic_path(self) -> None:
        assert topic_path("p", "t") == "projects/p/topics/t"

    def test_data_is_base64_payload(self) -> None:
        req = build_publish_request(_payload())
        assert len(req["messages"]) == 1
        data = base64.b64decode(req["messages"][0]["data"])
        assert json.loads(data)["alertName"] == "DiskFull"

    def test_attributes(self) -> None:
        attrs = message_attributes(_payload())
        assert attrs == {
            "alertName": "DiskFull",
            "status": "firing",
            "severity": "warning",
            "source": "alertrelay",
            "timestamp": "2024-01-01T00:00:00Z",
        }


# ── Publish ────────────────────────────────────────────────────


class TestPubSubPublish:
    async def test_publish_success(self) -> None:
        d = _dispatcher()
        try:
            with patch.object(d._get_client(), "request", new_callable=AsyncMock) as mock_req:
                mock_req.return_value = _mock_response({"messageIds": ["4242"]})
                receipt = await d.dispatch("alerts", _payload())
            assert receipt.message_id == "4242"
            assert receipt.destination == "projects/proj/topics/alerts"
            assert d.state == DispatchState.DELIVERED
            method, url = mock_req.call_args[0]
            assert method == "POST"
            assert url == f"{API}/projects/proj/topics/alerts:publish"
            assert "messages" in mock_req.call_args[1]["json"]
            mock_req.assert_awaited_once()
        finally:
            await d.close()

    async def test_bearer_token_header(self) -> None:
        d = _dispatcher(token="ya29.tok")
        try:
            assert d._get_client().headers["Authorization"] == "Bearer ya29.tok"
        finally:
            await d.close()

    async def test_no_token_no_auth_header(self) -> None:
        d = _dispatcher()
        try:
            assert "Authorization" not in d._get_client().headers
        finally:
            await d.close()

    async def test_missing_message_id(self) -> None:
        d = _dispatcher()
        try:
            with patch.object(d._get_client(), "request", new_callable=AsyncMock) as mock_req:
                mock_req.return_value = _mock_response({"messageIds": []})
                with pytest.raises(DeliveryError, match="no message id"):
                    await d.dispatch("alerts", _payload())
            assert d.state == DispatchState.FAILED
        finally:
            await d.close()

    async def test_rejected_with_google_error(self) -> None:
        d = _dispatcher()
        error = {"error": {"code": 404, "message": "Resource not found (topic)"}}
        try:
            with patch.object(d._get_client(), "request", new_callable=AsyncMock) as mock_req:
                mock_req.return_value = _mock_response(error, status_code=404)
                with pytest.raises(DeliveryError, match="Resource not found") as exc_info:
                    await d.dispatch("alerts", _payload())
            assert exc_info.value.status_code == 404
            assert "Resource not found" in exc_info.value.body
        finally:
            await d.close()

    async def test_connect_error_is_transport_error(self) -> None:
        d = _dispatcher()
        try:
            with patch.object(d._get_client(), "request", new_callable=AsyncMock) as mock_req:
                mock_req.side_effect = httpx.ConnectError("connection refused")
                with pytest.raises(TransportError, match="connection refused"):
                    await d.dispatch("alerts", _payload())
        finally:
            await d.close()

    async def test_http_timeout_is_timeout_error(self) -> None:
        d = _dispatcher()
        try:
            with patch.object(d._get_client(), "request", new_callable=AsyncMock) as mock_req:
                mock_req.side_effect = httpx.ReadTimeout("read timed out")
                with pytest.raises(DispatchTimeoutError):
                    await d.dispatch("alerts", _payload())
            assert d.state == DispatchState.FAILED
        finally:
            await d.close()

    async def test_non_object_body(self) -> None:
        d = _dispatcher()
        try:
            with patch.object(d._get_client(), "request", new_callable=AsyncMock) as mock_req:
                mock_req.return_value = _mock_response(["4242"])
                with pytest.raises(DeliveryError, match="non-object"):
                    await d.dispatch("alerts", _payload())
        finally:
            await d.close()


class TestPubSubLifecycle:
    async def test_close_releases_client(self) -> None:
        d = _dispatcher()
        d._get_client()
        assert d.connected
        await d.close()
        assert not d.connected
