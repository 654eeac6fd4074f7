"""
Clock Utilities

Injectable time source used for load timestamps and TTL expiry.
All times are integer milliseconds since the Unix epoch.

Example:
    clock = SystemClock()
    loaded_at = clock.now()          # 1718000000000
    ms_to_iso(loaded_at)             # "2024-06-10T06:13:20+00:00"
"""

import math
import time
from datetime import datetime, timedelta, timezone


class Clock:
    """Time source. Subclass and override now() for tests."""

    def now(self) -> int:
        raise NotImplementedError


class SystemClock(Clock):
    """Wall clock backed by time.time()"""

    def now(self) -> int:
        return int(time.time() * 1000)


def duration_to_ms(duration: timedelta | float | int) -> int | None:
    """
    Convert a TTL duration to milliseconds.

    Args:
        duration: timedelta, or a number of seconds

    Returns:
        Non-negative duration in milliseconds, or None for an unbounded
        (infinite or NaN) duration
    """
    if isinstance(duration, timedelta):
        seconds = duration.total_seconds()
    else:
        seconds = float(duration)
    if not math.isfinite(seconds):
        return None
    return max(0, int(round(seconds * 1000)))


def ms_to_iso(timestamp_ms: int | None) -> str | None:
    """Render an epoch-millisecond timestamp as a UTC ISO string"""
    if timestamp_ms is None:
        return None
    return datetime.fromtimestamp(timestamp_ms / 1000, timezone.utc).isoformat()
