"""Cutoff timestamp helpers for date-bounded portfolio queries."""

from __future__ import annotations

import math
import time
from datetime import datetime, timezone


def cutoff_parse_date(date_value: str) -> int:
    """Parse an ISO-8601 date or datetime into an epoch-seconds cutoff.

    Offset-naive values are read as UTC. A plain date maps to midnight UTC of
    that day. A trailing `Z` designator is accepted.

    Args:
        date_value: Date text from a query path or CLI argument.

    Returns:
        int: Epoch seconds, floored to whole seconds.

    Raises:
        ValueError: Raised when date_value is blank or not a valid ISO-8601 value.
    """

    if not isinstance(date_value, str) or not date_value.strip():
        raise ValueError("Invalid date: value must be a non-empty string")

    normalized_value = date_value.strip()
    if normalized_value.endswith(("Z", "z")):
        normalized_value = f"{normalized_value[:-1]}+00:00"

    try:
        parsed_timestamp = datetime.fromisoformat(normalized_value)
    except ValueError as error:
        raise ValueError(f"Invalid date: {date_value}") from error

    if parsed_timestamp.tzinfo is None or parsed_timestamp.utcoffset() is None:
        parsed_timestamp = parsed_timestamp.replace(tzinfo=timezone.utc)

    return math.floor(parsed_timestamp.timestamp())


def cutoff_now() -> int:
    """Return the current wall-clock time as an epoch-seconds cutoff."""

    return int(time.time())


__all__ = ["cutoff_now", "cutoff_parse_date"]
