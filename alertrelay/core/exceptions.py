"""Exception hierarchy for alert actions.

Every error is fatal for the invocation: it propagates to the CLI, which
logs it once and exits with the error's ``exit_code``.
"""

from __future__ import annotations


class ActionError(Exception):
    """Base exception for all action errors."""

    exit_code: int = 1


class ConfigurationError(ActionError):
    """Missing or contradictory settings (pre-flight, no network attempted)."""

    exit_code = 2


class ResolutionError(ActionError):
    """A destination field resolved to empty, or to empty after sanitization."""

    exit_code = 3


class DeliveryError(ActionError):
    """The destination was reached but rejected the payload or reported failure."""

    exit_code = 4

    def __init__(
        self,
        message: str,
        status_code: int | None = None,
        body: str = "",
    ) -> None:
        super().__init__(message)
        self.status_code = status_code
        self.body = body


class ExecutionCancelledError(DeliveryError):
    """The remote execution was cancelled before completing."""


class TransportError(ActionError):
    """Network-level failure (DNS, connection refused, TLS)."""

    exit_code = 5


class DispatchTimeoutError(ActionError):
    """Deadline exceeded before a terminal state; the remote outcome is unknown."""

    exit_code = 6


class InvalidTransitionError(ActionError):
    """A dispatcher was driven out of its state machine (e.g. dispatched twice)."""
