"""
Wall-clock helpers.

Displayed durations are never accumulated from ticks.  They are pure
functions of the current time and a persisted anchor, so a missed tick,
a suspended process or a reload cannot corrupt them.
"""

import math
from collections.abc import Callable
from datetime import datetime, timedelta, timezone

Clock = Callable[[], datetime]

_ONE_MS = timedelta(milliseconds=1)


def utc_now() -> datetime:
    """Default clock: timezone-aware current time in UTC."""
    return datetime.now(timezone.utc)


def to_timestamp(dt: datetime) -> str:
    """
    Format a datetime as an ISO 8601 UTC string with millisecond precision.

    Naive datetimes are assumed to already be UTC.

    Example:
        2026-03-02T10:00:00.000Z
    """
    if dt.tzinfo is None:
        dt = dt.replace(tzinfo=timezone.utc)
    dt = dt.astimezone(timezone.utc)
    return dt.isoformat(timespec="milliseconds").replace("+00:00", "Z")


def parse_timestamp(value: str) -> datetime:
    """
    Parse an ISO 8601 timestamp into an aware UTC datetime.

    Accepts the trailing "Z" designator as well as explicit offsets.

    Raises:
        ValueError: If the string is not a valid timestamp
    """
    text = value.strip()
    if text.endswith("Z"):
        text = text[:-1] + "+00:00"
    dt = datetime.fromisoformat(text)
    if dt.tzinfo is None:
        dt = dt.replace(tzinfo=timezone.utc)
    return dt.astimezone(timezone.utc)


def _as_datetime(value: datetime | str) -> datetime:
    return parse_timestamp(value) if isinstance(value, str) else value


def elapsed_ms(now: datetime, anchor: datetime | str) -> int:
    """Milliseconds from anchor to now, floored at zero."""
    delta = now - _as_datetime(anchor)
    return max(0, delta // _ONE_MS)


def remaining_ms(now: datetime, anchor: datetime | str, duration_ms: int) -> int:
    """
    Remaining time of a period that started at anchor and lasts duration_ms.

    The result is signed: zero or negative means the period is over.
    """
    delta = now - _as_datetime(anchor)
    return duration_ms - delta // _ONE_MS


def whole_minutes(ms: int) -> int:
    """Floor milliseconds to whole minutes."""
    return max(0, ms) // 60000


def format_clock(ms: int, round_up: bool = False) -> str:
    """
    Format milliseconds as MM:SS.

    Minutes are not wrapped at 60.  Countdowns pass round_up=True so the
    display reads 00:00 only once the period is actually over.
    """
    ms = max(0, ms)
    seconds = math.ceil(ms / 1000) if round_up else ms // 1000
    return f"{seconds // 60:02d}:{seconds % 60:02d}"
