from __future__ import annotations

import time
from datetime import datetime

import pytz


def get_now_utc() -> datetime:
    """A helper function to return an aware UTC datetime representing the current time."""
    return datetime.now(tz=get_tz_utc())


def get_tz_utc() -> pytz.UTC:
    """A helper function to return a pytz.UTC object."""
    return pytz.UTC


def monotonic_ms() -> float:
    """Milliseconds from a monotonic clock, only meaningful as a difference."""
    return time.monotonic() * 1000
