"""Normalise free-form strings into workflow identifiers."""

from __future__ import annotations

import re

MAX_NAME_LENGTH = 63

_INVALID_CHARS = re.compile(r"[^a-z0-9_-]")


def sanitize_name(value: str) -> str:
    """Return *value* as a valid identifier: ``[a-z0-9_-]``, no leading digit, ≤63 chars.

    Pure and idempotent. May return an empty string; callers must treat
    that as unusable.
    """
    name = value.lower().replace(" ", "-").replace(".", "-")
    name = _INVALID_CHARS.sub("", name)
    if name and name[0].isdigit():
        name = "_" + name
    return name[:MAX_NAME_LENGTH]
