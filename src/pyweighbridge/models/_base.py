"""Shared pydantic helpers for pyweighbridge models.

* :data:`UtcDatetime` coerces epoch numbers (seconds **or**
  milliseconds) and naive datetimes to tz-aware UTC datetimes.
* :func:`utcnow` is the default clock used across the library.
"""

from __future__ import annotations

from datetime import UTC, datetime
from typing import Annotated, Any

from pydantic import BeforeValidator

# Threshold to distinguish seconds from milliseconds.
_MS_THRESHOLD = 1_000_000_000_000


def utcnow() -> datetime:
    return datetime.now(UTC)


def parse_utc_datetime(value: Any) -> Any:
    """Convert an epoch timestamp or naive datetime to a UTC datetime.

    Other values are passed through for pydantic to validate.
    """
    if value is None:
        return value
    if isinstance(value, datetime):
        if value.tzinfo is None:
            return value.replace(tzinfo=UTC)
        return value
    if isinstance(value, (int, float)) and not isinstance(value, bool):
        ts = float(value)
        if ts >= _MS_THRESHOLD:
            ts /= 1000.0
        return datetime.fromtimestamp(ts, tz=UTC)
    return value


UtcDatetime = Annotated[datetime, BeforeValidator(parse_utc_datetime)]
"""Annotated type that always yields tz-aware UTC datetimes."""
