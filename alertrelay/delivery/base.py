"""Dispatcher base class: single-attempt delivery with a terminal state machine."""

from __future__ import annotations

import abc
import asyncio
import time
from collections.abc import Callable
from types import MappingProxyType, TracebackType
from typing import ClassVar

import structlog

from alertrelay.core.exceptions import DispatchTimeoutError, InvalidTransitionError
from alertrelay.core.types import (
    ActionKind,
    DeliveryReceipt,
    DispatchPayload,
    DispatchState,
)

logger = structlog.get_logger(__name__)

# Body excerpts in log lines are truncated to this many characters.
LOG_BODY_LIMIT = 200

_TRANSITIONS = MappingProxyType({
    DispatchState.IDLE: frozenset({DispatchState.SENDING}),
    DispatchState.SENDING: frozenset({DispatchState.DELIVERED, DispatchState.FAILED}),
    DispatchState.DELIVERED: frozenset(),
    DispatchState.FAILED: frozenset(),
})


class Deadline:
    """Absolute deadline shared by the dispatch call and completion polling.

    Created when dispatch starts, so time spent sending counts against the
    budget available for waiting.
    """

    def __init__(
        self,
        timeout_secs: float,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        self._clock = clock
        self._timeout_secs = timeout_secs
        self._expires_at = clock() + timeout_secs

    @property
    def timeout_secs(self) -> float:
        return self._timeout_secs

    @property
    def expired(self) -> bool:
        return self.remaining() <= 0

    def remaining(self) -> float:
        """Seconds left before the deadline, never negative."""
        return max(0.0, self._expires_at - self._clock())


class Dispatcher(abc.ABC):
    """Base class for delivery targets.

    Subclasses implement ``_send()`` and ``close()``; the base class owns
    the state machine ``IDLE → SENDING → {DELIVERED | FAILED}`` and the
    timeout. Each instance performs at most one delivery attempt.

    Usage::

        async with WebhookDispatcher(config) as dispatcher:
            receipt = await dispatcher.dispatch(url, payload)
    """

    action: ClassVar[ActionKind]

    def __init__(self, timeout_secs: float) -> None:
        self._timeout_secs = timeout_secs
        self._state = DispatchState.IDLE

    @property
    def state(self) -> DispatchState:
        return self._state

    @property
    def timeout_secs(self) -> float:
        return self._timeout_secs

    def _transition(self, new_state: DispatchState) -> None:
        if new_state not in _TRANSITIONS[self._state]:
            raise InvalidTransitionError(
                f"{type(self).__name__} cannot move from {self._state} to {new_state}"
            )
        self._state = new_state

    async def dispatch(
        self,
        destination: str,
        payload: DispatchPayload,
        deadline: Deadline | None = None,
    ) -> DeliveryReceipt:
        """Deliver *payload* to *destination* in exactly one attempt.

        Raises:
            InvalidTransitionError: This dispatcher was already used.
            DispatchTimeoutError: The deadline passed before a response.
            DeliveryError: The destination rejected the payload.
            TransportError: The destination could not be reached.
        """
        self._transition(DispatchState.SENDING)
        budget = deadline or Deadline(self._timeout_secs)
        logger.info(
            "dispatch_started",
            action=self.action.value,
            destination=destination,
            timeout_secs=budget.timeout_secs,
        )

        try:
            try:
                async with asyncio.timeout(budget.remaining()):
                    receipt = await self._send(destination, payload)
            except TimeoutError as exc:
                raise DispatchTimeoutError(
                    f"{self.action.value} dispatch to {destination} timed out "
                    f"after {budget.timeout_secs}s"
                ) from exc
        except BaseException:
            self._transition(DispatchState.FAILED)
            raise

        self._transition(DispatchState.DELIVERED)
        logger.info(
            "dispatch_delivered",
            action=self.action.value,
            destination=destination,
            status_code=receipt.status_code,
        )
        return receipt

    @abc.abstractmethod
    async def _send(self, destination: str, payload: DispatchPayload) -> DeliveryReceipt:
        """Perform the single network call."""

    @abc.abstractmethod
    async def close(self) -> None:
        """Release resources (HTTP sessions, etc.)."""

    async def __aenter__(self) -> Dispatcher:
        return self

    async def __aexit__(
        self,
        exc_type: type[BaseException] | None,
        exc_val: BaseException | None,
        exc_tb: TracebackType | None,
    ) -> None:
        await self.close()
