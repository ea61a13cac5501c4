"""Shared HTTP plumbing for Google Cloud REST APIs (Pub/Sub, Workflows)."""

from __future__ import annotations

from typing import Any

import httpx
import structlog

from alertrelay.core.config import GcpConfig
from alertrelay.core.exceptions import (
    DeliveryError,
    DispatchTimeoutError,
    TransportError,
)
from alertrelay.delivery.base import LOG_BODY_LIMIT, Dispatcher

logger = structlog.get_logger(__name__)


def _error_message(response: httpx.Response) -> str:
    """Extract ``error.message`` from a Google API error body, if present."""
    try:
        body = response.json()
    except ValueError:
        return response.text[:LOG_BODY_LIMIT]
    if isinstance(body, dict):
        error = body.get("error")
        if isinstance(error, dict) and error.get("message"):
            return str(error["message"])
    return response.text[:LOG_BODY_LIMIT]


class GoogleApiDispatcher(Dispatcher):
    """Base for dispatchers that call a Google REST API with httpx.

    Credentials are an opaque bearer token; without one, requests are sent
    unauthenticated (emulators, authenticating proxies).
    """

    def __init__(self, gcp: GcpConfig, api_url: str, timeout_secs: float) -> None:
        super().__init__(timeout_secs=timeout_secs)
        self._project_id = gcp.project_id
        self._token = gcp.access_token.get_secret_value()
        self._api_url = api_url.rstrip("/")
        self._http: httpx.AsyncClient | None = None

    @property
    def connected(self) -> bool:
        """Whether the HTTP client is active."""
        return self._http is not None and not self._http.is_closed

    def _get_client(self) -> httpx.AsyncClient:
        if self._http is None or self._http.is_closed:
            headers = {"Content-Type": "application/json"}
            if self._token:
                headers["Authorization"] = f"Bearer {self._token}"
            self._http = httpx.AsyncClient(
                headers=headers,
                timeout=httpx.Timeout(self._timeout_secs),
            )
        return self._http

    async def _request(
        self,
        method: str,
        url: str,
        json: dict[str, Any] | None = None,
    ) -> tuple[int, dict[str, Any]]:
        """Issue one request and return the status code and decoded JSON object.

        Raises:
            DispatchTimeoutError: The HTTP client timed out.
            TransportError: The API could not be reached.
            DeliveryError: Non-2xx response or a body that is not a JSON object.
        """
        try:
            response = await self._get_client().request(method, url, json=json)
        except httpx.TimeoutException as exc:
            raise DispatchTimeoutError(f"{method} {url} timed out: {exc}") from exc
        except httpx.HTTPError as exc:
            raise TransportError(f"{method} {url} failed: {exc}") from exc

        if not response.is_success:
            message = _error_message(response)
            logger.warning(
                "google_api_rejected",
                method=method,
                url=url,
                status=response.status_code,
                message=message,
            )
            raise DeliveryError(
                f"{method} {url} returned {response.status_code}: {message}",
                status_code=response.status_code,
                body=response.text,
            )

        try:
            body = response.json()
        except ValueError as exc:
            raise DeliveryError(
                f"{method} {url} returned invalid JSON",
                status_code=response.status_code,
                body=response.text,
            ) from exc

        if not isinstance(body, dict):
            raise DeliveryError(
                f"{method} {url} returned a non-object body",
                status_code=response.status_code,
                body=response.text,
            )
        return response.status_code, body

    async def close(self) -> None:
        """Close the httpx async client."""
        if self._http is not None:
            await self._http.aclose()
            self._http = None
