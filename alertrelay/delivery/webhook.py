"""HTTP webhook delivery: one JSON POST per alert."""

from __future__ import annotations

import aiohttp
import structlog

from alertrelay import __version__
from alertrelay.core.config import WebhookConfig
from alertrelay.core.exceptions import DeliveryError, TransportError
from alertrelay.core.types import ActionKind, DeliveryReceipt, DispatchPayload
from alertrelay.delivery.base import LOG_BODY_LIMIT, Dispatcher

logger = structlog.get_logger(__name__)

USER_AGENT = f"alertrelay-webhook-sender/{__version__}"


class WebhookDispatcher(Dispatcher):
    """Delivers the payload as JSON to an HTTP endpoint.

    Any 2xx response counts as delivered. ``AUTH_HEADER`` is sent verbatim
    as the ``Authorization`` header.
    """

    action = ActionKind.WEBHOOK

    def __init__(self, config: WebhookConfig) -> None:
        super().__init__(timeout_secs=config.timeout_secs)
        self._auth_header = config.auth_header.get_secret_value()
        self._session: aiohttp.ClientSession | None = None

    def _get_session(self) -> aiohttp.ClientSession:
        if self._session is None or self._session.closed:
            self._session = aiohttp.ClientSession(
                timeout=aiohttp.ClientTimeout(total=self._timeout_secs),
            )
        return self._session

    def _headers(self) -> dict[str, str]:
        headers = {
            "Content-Type": "application/json",
            "User-Agent": USER_AGENT,
        }
        if self._auth_header:
            headers["Authorization"] = self._auth_header
        return headers

    async def _send(self, destination: str, payload: DispatchPayload) -> DeliveryReceipt:
        data = payload.to_json()
        logger.info("webhook_sending", url=destination, payload=data)

        try:
            session = self._get_session()
            async with session.post(destination, data=data, headers=self._headers()) as resp:
                body = await resp.text()
                status = resp.status
        except TimeoutError:
            raise
        except aiohttp.ClientError as exc:
            raise TransportError(f"failed to send webhook to {destination}: {exc}") from exc

        logger.info("webhook_response", status=status, body=body[:LOG_BODY_LIMIT])

        if not 200 <= status < 300:
            raise DeliveryError(
                f"webhook request failed with status {status}: {body[:LOG_BODY_LIMIT]}",
                status_code=status,
                body=body,
            )

        return DeliveryReceipt(
            action=self.action,
            destination=destination,
            status_code=status,
            body=body,
        )

    async def close(self) -> None:
        if self._session and not self._session.closed:
            await self._session.close()
            self._session = None
