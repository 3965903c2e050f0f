"""
Date helpers for MDB_ADAPTER.

Converts the date encodings that arrive in JSON payloads into ``datetime``
values the driver stores as BSON dates.
"""

from datetime import datetime, timezone
from typing import Any


def is_date(value: Any) -> bool:
    """Return True if ``value`` is already a datetime."""
    return isinstance(value, datetime)


def parse_date(value: Any) -> datetime:
    """
    Convert a value to a datetime.

    Accepts datetime instances (returned unchanged), ISO-8601 strings
    (a trailing ``Z`` is read as UTC) and epoch timestamps in milliseconds.

    Args:
        value: Value to convert

    Returns:
        The parsed datetime

    Raises:
        ValueError: If ``value`` is not a recognised date encoding
    """
    if is_date(value):
        return value
    if isinstance(value, bool):
        raise ValueError(f"Not a valid date: {value!r}")
    if isinstance(value, (int, float)):
        try:
            return datetime.fromtimestamp(value / 1000, tz=timezone.utc)
        except (OverflowError, OSError) as e:
            raise ValueError(f"Not a valid date: {value!r}") from e
    if isinstance(value, str):
        text = value.strip()
        if text.endswith(("Z", "z")):
            text = text[:-1] + "+00:00"
        return datetime.fromisoformat(text)
    raise ValueError(f"Not a valid date: {value!r}")
