"""Completion monitor: poll an execution handle until a terminal state or the deadline."""

from __future__ import annotations

import asyncio
from collections.abc import Awaitable, Callable

import structlog

from alertrelay.core.exceptions import (
    DeliveryError,
    DispatchTimeoutError,
    ExecutionCancelledError,
)
from alertrelay.core.types import ExecutionState, ExecutionStatus
from alertrelay.delivery.base import Deadline

logger = structlog.get_logger(__name__)

PollFn = Callable[[str], Awaitable[ExecutionStatus]]
SleepFn = Callable[[float], Awaitable[None]]

DEFAULT_POLL_INTERVAL_SECS = 5.0


class CompletionMonitor:
    """Waits for an asynchronous execution to finish.

    Each tick sleeps one interval (never past the deadline) and then polls
    once. ACTIVE and unrecognised states keep the loop going; SUCCEEDED
    returns, FAILED and CANCELLED raise. A poll that itself fails is not
    retried.

    Usage::

        monitor = CompletionMonitor(dispatcher.get_execution)
        status = await monitor.wait(receipt.handle, deadline)
    """

    def __init__(
        self,
        poll: PollFn,
        interval_secs: float = DEFAULT_POLL_INTERVAL_SECS,
        sleep: SleepFn = asyncio.sleep,
    ) -> None:
        self._poll = poll
        self._interval_secs = interval_secs
        self._sleep = sleep
        self._poll_count = 0
        self._last_status: ExecutionStatus | None = None

    @property
    def poll_count(self) -> int:
        return self._poll_count

    @property
    def last_status(self) -> ExecutionStatus | None:
        return self._last_status

    async def wait(self, handle: str, deadline: Deadline) -> ExecutionStatus:
        """Poll *handle* until it succeeds.

        Raises:
            DeliveryError: The execution failed (carries the error payload).
            ExecutionCancelledError: The execution was cancelled.
            DispatchTimeoutError: The deadline passed while still active.
            TransportError: A poll request could not be completed.
        """
        logger.info(
            "execution_waiting",
            execution=handle,
            interval_secs=self._interval_secs,
            remaining_secs=round(deadline.remaining(), 3),
        )

        while True:
            if deadline.expired:
                raise self._timed_out(handle, deadline)

            await self._sleep(min(self._interval_secs, deadline.remaining()))
            if deadline.expired:
                raise self._timed_out(handle, deadline)

            try:
                async with asyncio.timeout(deadline.remaining()):
                    status = await self._poll(handle)
            except TimeoutError as exc:
                raise self._timed_out(handle, deadline) from exc

            self._poll_count += 1
            self._last_status = status
            logger.info(
                "execution_state",
                execution=handle,
                state=status.raw_state or status.state.value,
                poll=self._poll_count,
            )

            if status.state == ExecutionState.SUCCEEDED:
                logger.info("execution_succeeded", execution=handle, result=status.result)
                return status

            if status.state == ExecutionState.FAILED:
                logger.error(
                    "execution_failed",
                    execution=handle,
                    error_payload=status.error_payload,
                )
                raise DeliveryError(
                    f"workflow execution failed: {status.error_payload}",
                    body=status.error_payload,
                )

            if status.state == ExecutionState.CANCELLED:
                raise ExecutionCancelledError(
                    f"workflow execution {handle} was cancelled",
                    body=status.error_payload,
                )

            if status.state == ExecutionState.UNKNOWN:
                logger.warning(
                    "execution_state_unknown",
                    execution=handle,
                    state=status.raw_state,
                )

    def _timed_out(self, handle: str, deadline: Deadline) -> DispatchTimeoutError:
        logger.warning(
            "execution_wait_timeout",
            execution=handle,
            timeout_secs=deadline.timeout_secs,
            polls=self._poll_count,
        )
        return DispatchTimeoutError(
            f"timeout waiting for execution {handle} to complete "
            f"after {deadline.timeout_secs}s; the execution may still be running"
        )
