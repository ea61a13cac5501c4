"""Parse the ``ALERT_JSON`` blob into an AlertRecord."""

from __future__ import annotations

from collections.abc import Mapping

import structlog
from pydantic import ValidationError

from alertrelay.core.types import AlertRecord

logger = structlog.get_logger(__name__)

ALERT_JSON_ENV = "ALERT_JSON"


def parse_alert(raw: str | None) -> AlertRecord | None:
    """Parse one alert record.

    Returns None when *raw* is empty or malformed; the caller then falls
    back to per-field environment variables. A malformed blob is logged
    as a warning rather than raised.
    """
    if not raw or not raw.strip():
        logger.info("alert_json_missing")
        return None

    try:
        record = AlertRecord.model_validate_json(raw)
    except ValidationError as exc:
        logger.warning(
            "alert_json_invalid",
            error_count=exc.error_count(),
            errors=[err["msg"] for err in exc.errors()][:5],
        )
        return None

    if not record.status_known:
        logger.warning("alert_status_unrecognised", status=record.status)
    return record


def alert_from_env(environ: Mapping[str, str]) -> AlertRecord | None:
    """Parse the alert record carried in ``ALERT_JSON``."""
    return parse_alert(environ.get(ALERT_JSON_ENV))
