"""Tests for schedule reflow and the regeneration optimizer."""

import random
from datetime import date
from unittest.mock import AsyncMock

import pytest

from planora.llm.base import GenerationError
from planora.models.generation import GeneratedActivity, GeneratedDayPlan
from planora.models.trip import DaySlot, Trip
from planora.models.violations import ViolationKind
from planora.scheduling.editing import DayEditSession, EditState, EditStateError
from planora.scheduling.optimizer import (
    RegenerationOptimizer,
    ScheduleOverflowError,
    build_regenerate_request,
    merge_regenerated,
    reflow_schedule,
)
from planora.scheduling.timeutils import format_time, parse_time
from planora.scheduling.validation import check_time_conflicts


def _times(activities) -> list[str]:
    return [format_time(parse_time(a.time)) for a in activities]


def test_reflow_chains_with_buffer_and_keeps_first_start(make_activity) -> None:
    """Test each activity starts after the previous one plus the buffer."""
    activities = [
        make_activity("a1", "09:00", 120),
        make_activity("a2", "10:00", 30),
        make_activity("a3", "08:00", 60),
    ]

    reflowed = reflow_schedule(activities, buffer_minutes=30)

    assert _times(reflowed) == ["09:00", "11:30", "12:30"]
    assert [a.id for a in reflowed] == ["a1", "a2", "a3"]
    assert [a.order_index for a in reflowed] == [0, 1, 2]
    assert check_time_conflicts(reflowed) == []


def test_reflow_shrinks_buffers_near_midnight(make_activity) -> None:
    """Test the chain is squeezed so it never runs past midnight."""
    activities = [
        make_activity("a1", "21:00", 60),
        make_activity("a2", "21:00", 60),
        make_activity("a3", "21:00", 60),
    ]

    reflowed = reflow_schedule(activities, buffer_minutes=30)

    assert _times(reflowed) == ["21:00", "22:00", "23:00"]
    assert check_time_conflicts(reflowed) == []


def test_reflow_moves_first_start_earlier_when_needed(make_activity) -> None:
    """Test the first activity moves earlier when buffers alone cannot make room."""
    activities = [make_activity("a1", "23:00", 120), make_activity("a2", "09:00", 60)]

    reflowed = reflow_schedule(activities, buffer_minutes=30)

    assert _times(reflowed) == ["21:00", "23:00"]


def test_reflow_rejects_more_than_a_day(make_activity) -> None:
    """Test durations beyond 24 hours cannot be scheduled."""
    activities = [make_activity(f"a{i}", "00:00", 480) for i in range(4)]

    with pytest.raises(ScheduleOverflowError):
        reflow_schedule(activities)


def test_reflow_is_conflict_free_for_random_days(make_activity) -> None:
    """Test the conflict-free post-condition on many random activity lists."""
    rng = random.Random(1234)
    for _ in range(200):
        count = rng.randint(1, 8)
        activities = [
            make_activity(
                f"a{i}",
                f"{rng.randint(0, 23):02d}:{rng.choice([0, 15, 30, 45]):02d}",
                rng.randint(15, 180),
            )
            for i in range(count)
        ]

        reflowed = reflow_schedule(activities, buffer_minutes=rng.choice([0, 15, 30]))

        assert check_time_conflicts(reflowed) == []
        assert [a.id for a in reflowed] == [a.id for a in activities]
        assert sorted(a.duration_minutes for a in reflowed) == sorted(
            a.duration_minutes for a in activities
        )


def test_merge_keeps_user_identity_and_takes_enrichment(make_activity) -> None:
    """Test merged activities keep id, name and duration but take times and rationale."""
    base = [make_activity("a1", "09:00", 60), make_activity("a2", "10:30", 60)]
    plan = GeneratedDayPlan(
        day=1,
        date=date(2025, 3, 1),
        activities=[
            GeneratedActivity(time="09:30", name="Renamed", duration=999, why_this="Quiet morning"),
            GeneratedActivity(time="11:00", name="Other", cost=42),
        ],
    )

    merged = merge_regenerated(base, plan)

    assert [a.id for a in merged] == ["a1", "a2"]
    assert [a.name for a in merged] == ["Activity a1", "Activity a2"]
    assert [a.duration_minutes for a in merged] == [60, 60]
    assert _times(merged) == ["09:30", "11:00"]
    assert merged[0].rationale == "Quiet morning"
    assert merged[1].cost == 42


def test_merge_reflows_conflicting_times(make_activity) -> None:
    """Test merged times that overlap are reflowed again."""
    base = [make_activity("a1", "09:00", 120), make_activity("a2", "11:30", 60)]
    plan = GeneratedDayPlan(
        day=1,
        date=date(2025, 3, 1),
        activities=[
            GeneratedActivity(time="09:00", name="x"),
            GeneratedActivity(time="10:00", name="y"),
        ],
    )

    merged = merge_regenerated(base, plan, buffer_minutes=30)

    assert _times(merged) == ["09:00", "11:30"]


def test_merge_rejects_count_mismatch(make_activity) -> None:
    """Test a plan with a different number of activities is not merged."""
    plan = GeneratedDayPlan(day=1, date=date(2025, 3, 1), activities=[])

    with pytest.raises(GenerationError):
        merge_regenerated([make_activity("a1", "09:00", 60)], plan)


@pytest.mark.asyncio
async def test_optimize_refuses_invalid_activities(make_activity) -> None:
    """Test missing fields and bad durations block optimization."""
    optimizer = RegenerationOptimizer()

    result = await optimizer.optimize(
        [make_activity("a1", "09:00", 5), make_activity("a2", None, 60, name="")]
    )

    assert not result.ok
    assert result.activities == []
    assert {v.kind for v in result.violations} == {
        ViolationKind.DURATION_BOUNDS,
        ViolationKind.REQUIRED_FIELD,
    }


@pytest.mark.asyncio
async def test_optimize_refuses_conflicting_day(make_activity) -> None:
    """Test overlapping activities are reported instead of reflowed."""
    optimizer = RegenerationOptimizer(buffer_minutes=30)

    result = await optimizer.optimize(
        [make_activity("a1", "09:00", 120), make_activity("a2", "10:00", 30)]
    )

    assert not result.ok
    assert result.activities == []
    assert [v.kind for v in result.violations] == [ViolationKind.TIME_CONFLICT]
    assert result.violations[0].activity_ids == ["a1", "a2"]


@pytest.mark.asyncio
async def test_optimize_reflows_valid_day_locally(make_activity) -> None:
    """Test a valid day is re-timed with buffers without a client."""
    optimizer = RegenerationOptimizer(buffer_minutes=30)

    result = await optimizer.optimize(
        [make_activity("a1", "09:00", 120), make_activity("a2", "11:00", 30)]
    )

    assert result.ok
    assert result.used_fallback
    assert _times(result.activities) == ["09:00", "11:30"]


@pytest.mark.asyncio
async def test_optimize_reports_overflow_as_violation(make_activity) -> None:
    """Test a day that cannot fit in 24 hours is reported, not raised."""
    optimizer = RegenerationOptimizer()
    activities = [
        make_activity("a1", "00:00", 480),
        make_activity("a2", "08:00", 480),
        make_activity("a3", "16:00", 480),
        make_activity("a4", "23:59", 60),
    ]

    result = await optimizer.optimize(activities)

    assert [v.kind for v in result.violations] == [ViolationKind.SCHEDULE_OVERFLOW]


@pytest.fixture
def trip_and_session(make_activity) -> tuple[Trip, DayEditSession]:
    day = DaySlot(
        day_number=1,
        date=date(2025, 3, 1),
        activities=[
            make_activity("a1", "09:00", 120, order_index=0),
            make_activity("a2", "12:00", 60, order_index=1),
        ],
    )
    trip = Trip(
        destination_summary="Jaipur",
        start_date=date(2025, 3, 1),
        end_date=date(2025, 3, 1),
        budget=1000,
        days=[day],
    )
    session = DayEditSession(day)
    session.begin_edit()
    return trip, session


@pytest.mark.asyncio
async def test_regenerate_requires_changes(trip_and_session) -> None:
    """Test regeneration is refused without unsaved changes or outside EDIT."""
    trip, session = trip_and_session
    optimizer = RegenerationOptimizer()

    with pytest.raises(EditStateError):
        await optimizer.regenerate(session, trip=trip)

    session.cancel()
    with pytest.raises(EditStateError):
        await optimizer.regenerate(session, trip=trip)


@pytest.mark.asyncio
async def test_regenerate_installs_result_in_working_copy(trip_and_session) -> None:
    """Test regeneration after a reorder installs a clean schedule and stays in EDIT."""
    trip, session = trip_and_session
    session.reorder("a2", 0)
    optimizer = RegenerationOptimizer(buffer_minutes=30)

    result = await optimizer.regenerate(session, trip=trip)

    assert result.ok
    assert session.state is EditState.EDIT
    assert [a.id for a in session.working_activities] == ["a2", "a1"]
    assert _times(session.working_activities) == ["12:00", "13:30"]
    assert result.day is not None
    assert result.day.total_duration_minutes == 180


@pytest.mark.asyncio
async def test_regenerate_falls_back_when_client_fails(trip_and_session) -> None:
    """Test a failing client leaves the deterministic reflow in place."""
    trip, session = trip_and_session
    session.update_activity("a2", time="11:00")
    client = AsyncMock()
    client.source = "openrouter"
    client.regenerate_day.side_effect = GenerationError("timeout")
    optimizer = RegenerationOptimizer(client, buffer_minutes=30)

    result = await optimizer.regenerate(session, trip=trip)

    assert result.ok
    assert result.used_fallback
    assert _times(result.activities) == ["09:00", "11:30"]
    client.regenerate_day.assert_awaited_once()


@pytest.mark.asyncio
async def test_regenerate_falls_back_on_transport_exception(trip_and_session) -> None:
    """Test an exception outside GenerationError still leaves the reflow in place."""
    trip, session = trip_and_session
    session.update_activity("a2", time="11:00")
    client = AsyncMock()
    client.source = "openrouter"
    client.regenerate_day.side_effect = ConnectionError("reset by peer")
    optimizer = RegenerationOptimizer(client, buffer_minutes=30)

    result = await optimizer.regenerate(session, trip=trip)

    assert result.ok
    assert result.used_fallback
    assert _times(session.working_activities) == ["09:00", "11:30"]


@pytest.mark.asyncio
async def test_regenerate_refuses_conflicting_working_copy(trip_and_session) -> None:
    """Test a conflict introduced by an edit blocks regeneration and keeps the working copy."""
    trip, session = trip_and_session
    session.update_activity("a2", time="10:00")
    client = AsyncMock()
    optimizer = RegenerationOptimizer(client)

    result = await optimizer.regenerate(session, trip=trip)

    assert [v.kind for v in result.violations] == [ViolationKind.TIME_CONFLICT]
    assert result.day is None
    assert _times(session.working_activities) == ["09:00", "10:00"]
    client.regenerate_day.assert_not_awaited()


@pytest.mark.asyncio
async def test_regenerate_uses_client_enrichment(trip_and_session) -> None:
    """Test a successful client call enriches the user's activities."""
    trip, session = trip_and_session
    session.update_activity("a2", time="11:00")
    client = AsyncMock()
    client.source = "openrouter"
    client.regenerate_day.return_value = GeneratedDayPlan(
        day=1,
        date=date(2025, 3, 1),
        activities=[
            GeneratedActivity(time="09:00", name="a", why_this="Beat the crowds"),
            GeneratedActivity(time="11:20", name="b", cost=15),
        ],
        optimization_notes="Added a short buffer",
    )
    optimizer = RegenerationOptimizer(client, buffer_minutes=30)

    result = await optimizer.regenerate(session, trip=trip)

    assert not result.used_fallback
    assert result.notes == "Added a short buffer"
    assert _times(result.activities) == ["09:00", "11:20"]
    assert result.activities[0].rationale == "Beat the crowds"
    assert result.activities[1].cost == 15


def test_build_regenerate_request(trip_and_session) -> None:
    """Test the wire request carries the trip context and current activities."""
    trip, session = trip_and_session

    request = build_regenerate_request(trip, session.day, session.working_activities)

    assert request.destination == "Jaipur"
    assert request.day_number == 1
    assert [a.time for a in request.current_activities] == ["09:00", "12:00"]
    assert request.user_changes.modified
