"""
Time semantics utilities for quote observation timestamps.

Quote payloads may carry an observation time as numeric seconds, numeric
milliseconds, an ISO-8601 string or an SQL-style ``YYYY-MM-DD HH:MM:SS``
string. These helpers turn any of them into an aware UTC datetime and fall
back to wall-clock time when the payload has none.
"""

import math
from datetime import datetime, timezone
from typing import Any, Optional

# Epoch values above this are treated as milliseconds (year ~2286 in seconds)
MILLISECONDS_THRESHOLD = 10_000_000_000


def utc_now() -> datetime:
    """Current wall-clock time as an aware UTC datetime."""
    return datetime.now(timezone.utc)


def parse_timestamp(value: Any) -> Optional[datetime]:
    """
    Parse a payload timestamp into an aware UTC datetime.

    Args:
        value: Numeric epoch (seconds or milliseconds), ISO-8601 string or
            SQL-style datetime string

    Returns:
        UTC datetime, or None if the value cannot be interpreted
    """
    if value is None or isinstance(value, bool):
        return None

    if isinstance(value, datetime):
        return value if value.tzinfo else value.replace(tzinfo=timezone.utc)

    if isinstance(value, (int, float)):
        return _from_epoch(float(value))

    if isinstance(value, str):
        text = value.strip()
        if not text:
            return None
        try:
            return _from_epoch(float(text))
        except ValueError:
            pass
        # fromisoformat accepts both "T" and space separators
        try:
            parsed = datetime.fromisoformat(text.replace("Z", "+00:00"))
        except ValueError:
            return None
        return parsed if parsed.tzinfo else parsed.replace(tzinfo=timezone.utc)

    return None


def _from_epoch(value: float) -> Optional[datetime]:
    if not math.isfinite(value) or value < 0:
        return None
    if value > MILLISECONDS_THRESHOLD:
        value = value / 1000.0
    try:
        return datetime.fromtimestamp(value, tz=timezone.utc)
    except (OverflowError, OSError, ValueError):
        return None


def get_observed_time(payload_ts: Any = None) -> tuple[datetime, bool]:
    """
    Resolve the observation time for a quote.

    Args:
        payload_ts: Raw timestamp value from the payload, if any

    Returns:
        Tuple of (observed_at, source_timed). ``source_timed`` is False when
        the wall clock was used as a fallback.
    """
    parsed = parse_timestamp(payload_ts)
    if parsed is not None:
        return parsed, True

    return utc_now(), False
