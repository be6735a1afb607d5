"""Time arithmetic and overlap helpers.

All arithmetic is done on minute-of-day integers; raw "HH:MM" strings are only
parsed and formatted at the edges.
"""

from collections.abc import Iterable
from datetime import date
from datetime import time as dtime
from typing import Protocol, TypeVar

MINUTES_PER_DAY = 24 * 60


class Timed(Protocol):
    """Anything with a start time, a duration and a position in its day."""

    time: dtime | None
    duration_minutes: int
    order_index: int


T = TypeVar("T", bound=Timed)


def parse_time(value: str | dtime) -> int:
    """Parse a wall-clock time into minute-of-day.

    Accepts ``datetime.time`` or "H:MM" / "HH:MM" / "HH:MM:SS" strings.

    Raises:
        ValueError: If the value is not a valid 24h time.
    """
    if isinstance(value, dtime):
        return value.hour * 60 + value.minute

    parts = value.strip().split(":")
    if len(parts) not in (2, 3) or not all(p.isdigit() for p in parts):
        raise ValueError(f"invalid time {value!r}, expected HH:MM")

    hours, minutes = int(parts[0]), int(parts[1])
    if not (0 <= hours < 24 and 0 <= minutes < 60):
        raise ValueError(f"invalid time {value!r}, expected HH:MM")
    return hours * 60 + minutes


def format_time(minutes: int) -> str:
    """Format minute-of-day as "HH:MM" (wraps modulo one day)."""
    minutes %= MINUTES_PER_DAY
    return f"{minutes // 60:02d}:{minutes % 60:02d}"


def to_time(minutes: int) -> dtime:
    """Convert minute-of-day to ``datetime.time`` (wraps modulo one day)."""
    minutes %= MINUTES_PER_DAY
    return dtime(minutes // 60, minutes % 60)


def add_minutes(value: str | dtime, minutes: int) -> dtime:
    """Add minutes to a wall-clock time, wrapping across midnight."""
    return to_time(parse_time(value) + minutes)


def start_minutes(item: Timed) -> int:
    """Start of an item as minute-of-day."""
    if item.time is None:
        raise ValueError("item has no start time")
    return parse_time(item.time)


def end_minutes(item: Timed) -> int:
    """End of an item as minutes since midnight, not wrapped."""
    return start_minutes(item) + item.duration_minutes


def overlaps(a: Timed, b: Timed) -> bool:
    """Return True if ``a`` (starting no later than ``b``) runs into ``b``."""
    return end_minutes(a) > start_minutes(b)


def sort_by_time(items: Iterable[T]) -> list[T]:
    """Sort timed items by start, breaking ties on order_index.

    Items without a start time are left out.
    """
    timed = [item for item in items if item.time is not None]
    return sorted(timed, key=lambda item: (start_minutes(item), item.order_index))


def duration_bucket(minutes: int) -> str:
    """Bucket a duration into short / medium / long."""
    if minutes < 60:
        return "short"
    if minutes < 180:
        return "medium"
    return "long"


def format_duration(minutes: int) -> str:
    """Human-readable duration, e.g. "45m", "2h", "2h 30m"."""
    hours, rest = divmod(minutes, 60)
    if not hours:
        return f"{rest}m"
    if not rest:
        return f"{hours}h"
    return f"{hours}h {rest}m"


def date_diff_inclusive(start: date, end: date) -> int:
    """Number of calendar days from start to end, both included."""
    return (end - start).days + 1
