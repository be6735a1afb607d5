"""Tests for time arithmetic and overlap helpers."""

from datetime import date, time

import pytest

from planora.scheduling.timeutils import (
    add_minutes,
    date_diff_inclusive,
    duration_bucket,
    end_minutes,
    format_duration,
    format_time,
    overlaps,
    parse_time,
    sort_by_time,
    to_time,
)


@pytest.mark.parametrize(
    ("value", "expected"),
    [("00:00", 0), ("09:00", 540), ("9:05", 545), ("23:59", 1439), ("12:30:00", 750)],
)
def test_parse_time_accepts_wall_clock_strings(value: str, expected: int) -> None:
    """Test "HH:MM" style strings parse to minute-of-day."""
    assert parse_time(value) == expected


def test_parse_time_accepts_time_objects() -> None:
    """Test datetime.time values parse to minute-of-day."""
    assert parse_time(time(15, 45)) == 945


@pytest.mark.parametrize("value", ["24:00", "12:60", "noon", "", "9", "-1:30"])
def test_parse_time_rejects_invalid(value: str) -> None:
    """Test malformed or out-of-range times raise ValueError."""
    with pytest.raises(ValueError):
        parse_time(value)


def test_format_and_wrap() -> None:
    """Test formatting pads and wraps past midnight."""
    assert format_time(545) == "09:05"
    assert format_time(1440 + 30) == "00:30"
    assert to_time(1500) == time(1, 0)


def test_add_minutes_wraps_across_midnight() -> None:
    """Test adding minutes wraps modulo one day."""
    assert add_minutes("23:30", 45) == time(0, 15)
    assert add_minutes(time(9, 0), 150) == time(11, 30)


def test_overlap_uses_half_open_intervals(make_activity) -> None:
    """Test back-to-back activities do not overlap, a one-minute run-in does."""
    first = make_activity("a", "09:00", 60)
    touching = make_activity("b", "10:00", 30)
    late = make_activity("c", "09:59", 30)

    assert end_minutes(first) == 600
    assert not overlaps(first, touching)
    assert overlaps(first, late)


def test_sort_by_time_breaks_ties_and_drops_untimed(make_activity) -> None:
    """Test sorting by start, then order_index; untimed items are left out."""
    items = [
        make_activity("late", "14:00", 30, order_index=0),
        make_activity("tie-2", "09:00", 30, order_index=2),
        make_activity("untimed", None, 30, order_index=3),
        make_activity("tie-1", "09:00", 30, order_index=1),
    ]

    assert [a.id for a in sort_by_time(items)] == ["tie-1", "tie-2", "late"]


def test_duration_bucket_and_format() -> None:
    """Test duration buckets and human-readable formatting."""
    assert duration_bucket(45) == "short"
    assert duration_bucket(60) == "medium"
    assert duration_bucket(180) == "long"
    assert format_duration(45) == "45m"
    assert format_duration(120) == "2h"
    assert format_duration(150) == "2h 30m"


def test_date_diff_inclusive() -> None:
    """Test inclusive day count, including a same-day trip."""
    assert date_diff_inclusive(date(2025, 3, 1), date(2025, 3, 10)) == 10
    assert date_diff_inclusive(date(2025, 3, 1), date(2025, 3, 1)) == 1
