"""
Time helpers producing float seconds since the epoch.

Values are derived from integer nanoseconds divided by 1e9 so the same
number serves as a telemetry timestamp and as a sorted-set score.
"""

import time
from datetime import datetime, timedelta, timezone

from enqueuer.constants import NANOSECOND_PRECISION

_EPOCH = datetime(1970, 1, 1, tzinfo=timezone.utc)
_ONE_MICROSECOND = timedelta(microseconds=1)


def ns_to_seconds(ns: int) -> float:
    """Convert integer nanoseconds to float seconds."""
    return ns / NANOSECOND_PRECISION


def duration_to_seconds(duration: timedelta) -> float:
    """Convert a duration to float seconds."""
    return ns_to_seconds((duration // _ONE_MICROSECOND) * 1000)


def time_to_seconds(when: datetime) -> float:
    """
    Convert a point in time to float seconds since the epoch.

    Naive datetimes are interpreted as UTC.

    Args:
        when: The point in time.

    Returns:
        Seconds since the epoch.
    """
    if when.tzinfo is None:
        when = when.replace(tzinfo=timezone.utc)
    return duration_to_seconds(when - _EPOCH)


def now_seconds() -> float:
    """Sample the wall clock. Never cached."""
    return ns_to_seconds(time.time_ns())
