"""Command-line entrypoint: one alert, one delivery attempt, exit code as the result.

Usage::

    # Action from ALERTRELAY_ACTION
    alertrelay

    # Explicit action and log level
    alertrelay workflows --log-level DEBUG

    # Settings file overlaid by the environment
    alertrelay webhook --config config/settings.yaml
"""

from __future__ import annotations

import argparse
import asyncio
import os
import sys

import structlog

from alertrelay.core.config import load_settings
from alertrelay.core.exceptions import ActionError, ConfigurationError
from alertrelay.core.logging import setup_logging
from alertrelay.core.types import ActionKind
from alertrelay.runner import run_action

logger = structlog.get_logger(__name__)


def _fail(exc: ActionError) -> int:
    logger.error(
        "action_failed",
        error=str(exc),
        error_type=type(exc).__name__,
        status_code=getattr(exc, "status_code", None),
        exit_code=exc.exit_code,
    )
    return exc.exit_code


async def run(args: argparse.Namespace) -> int:
    """Load settings, deliver the alert and return the process exit code."""
    environ = dict(os.environ)

    # Settings loading may already warn; route those lines to the same handler.
    setup_logging(
        level=args.log_level or environ.get("LOG_LEVEL") or None,
        fmt=environ.get("LOG_FORMAT") or None,
    )

    try:
        settings = load_settings(args.config, environ=environ)
    except ConfigurationError as exc:
        return _fail(exc)

    setup_logging(settings.logging, level=args.log_level)

    action = ActionKind(args.action) if args.action else settings.action
    if action is None:
        return _fail(ConfigurationError(
            "no action given: pass one of "
            f"{', '.join(a.value for a in ActionKind)} or set ALERTRELAY_ACTION"
        ))

    structlog.contextvars.bind_contextvars(action=action.value)
    logger.info("action_starting")

    try:
        outcome = await run_action(settings, action, environ)
    except ActionError as exc:
        return _fail(exc)

    logger.info(
        "action_completed",
        destination=outcome.receipt.destination,
        message_id=outcome.receipt.message_id,
        execution=outcome.receipt.handle,
        execution_state=outcome.execution.state.value if outcome.execution else None,
    )
    return 0


def main() -> None:
    parser = argparse.ArgumentParser(
        description="Deliver one monitoring alert to a webhook, Pub/Sub or Cloud Workflows.",
    )
    parser.add_argument(
        "action",
        nargs="?",
        choices=[a.value for a in ActionKind],
        default=None,
        help="Delivery target (default: $ALERTRELAY_ACTION)",
    )
    parser.add_argument(
        "--config",
        default=None,
        help="Path to settings YAML (default: $ALERTRELAY_CONFIG)",
    )
    parser.add_argument(
        "--log-level",
        default=None,
        help="Log level override: DEBUG, INFO, WARNING, ERROR",
    )
    args = parser.parse_args()

    code = asyncio.run(run(args))
    sys.exit(code)


if __name__ == "__main__":
    main()
