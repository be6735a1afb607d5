"""End-to-end tests for the trip planning facade."""

from datetime import date
from unittest.mock import AsyncMock

import pytest

from planora.db.inmemory import InMemoryTripRepository
from planora.llm.base import GenerationError
from planora.models.common import ActivityType, TripType
from planora.models.generation import DestinationRequest, TripPlanRequest
from planora.scheduling.allocator import AllocationError
from planora.scheduling.editing import EditState
from planora.scheduling.planner import TripPlanner, build_destinations
from planora.scheduling.validation import check_time_conflicts


@pytest.fixture
def repository() -> InMemoryTripRepository:
    return InMemoryTripRepository()


@pytest.fixture
def planner(local_client, settings, repository) -> TripPlanner:
    return TripPlanner(local_client, repository=repository, settings=settings)


@pytest.mark.asyncio
async def test_plan_single_trip_with_outage(local_client, settings, trip_request) -> None:
    """Test a 3-day trip survives an external outage with fallback days."""
    failing = AsyncMock()
    failing.source = "openrouter"
    failing.generate_itinerary.side_effect = GenerationError("503 from upstream")
    planner = TripPlanner(failing, fallback=local_client, settings=settings)

    result = await planner.plan_trip(trip_request)

    assert result.used_fallback
    assert result.generation_error == "503 from upstream"
    trip = result.trip
    assert trip.total_days == 3
    assert [d.day_number for d in trip.days] == [1, 2, 3]
    for day in trip.days:
        assert {a.type for a in day.activities} == {
            ActivityType.attraction,
            ActivityType.food,
            ActivityType.history,
        }
        assert day.total_cost == sum(a.cost for a in day.activities)


@pytest.mark.asyncio
async def test_plan_fixed_multi_destination_trip(planner, repository) -> None:
    """Test a fixed multi-destination trip is allocated, generated and persisted."""
    request = TripPlanRequest(
        destination="Rajasthan",
        start_date=date(2025, 3, 1),
        end_date=date(2025, 3, 10),
        budget=200000,
        trip_type=TripType.multi_fixed,
        destinations=[
            DestinationRequest(name="Jaipur", days=4),
            DestinationRequest(name="Udaipur", days=6),
        ],
    )

    result = await planner.plan_trip(request)

    trip = result.trip
    assert [d.destination_name for d in trip.days] == ["Jaipur"] * 4 + ["Udaipur"] * 6
    assert trip.days[5].activities[0].name == "Explore Udaipur - Day 6"
    assert repository.get_trip(trip.id) == trip


@pytest.mark.asyncio
async def test_plan_rejects_mismatched_fixed_days(planner) -> None:
    """Test allocation errors reach the caller before anything is generated."""
    request = TripPlanRequest(
        destination="Rajasthan",
        start_date=date(2025, 3, 1),
        end_date=date(2025, 3, 10),
        budget=200000,
        trip_type=TripType.multi_fixed,
        destinations=[DestinationRequest(name="A", days=4), DestinationRequest(name="B", days=5)],
    )

    with pytest.raises(AllocationError, match="A 4 \\+ B 5 = 9 days"):
        await planner.plan_trip(request)


def test_build_destinations_for_single_trip_is_empty(trip_request) -> None:
    """Test single trips have no route stops."""
    assert build_destinations(trip_request) == []


@pytest.mark.asyncio
async def test_edit_regenerate_save_cycle(planner, repository, trip_request) -> None:
    """Test edit -> regenerate -> save leaves a conflict-free, persisted day."""
    trip = (await planner.plan_trip(trip_request)).trip
    session = planner.open_day(trip, 2)
    session.begin_edit()
    _, second, last = session.working_activities
    session.reorder(last.id, 0)
    session.update_activity(second.id, time="10:00")

    refused, result = planner.save_day(trip, session)
    assert not result.saved
    assert refused is trip

    blocked = await planner.regenerate_day(trip, session)
    assert [v.code for v in blocked.violations] == ["TIME_CONFLICT"]

    session.update_activity(second.id, time="11:00")
    regenerated = await planner.regenerate_day(trip, session)
    assert regenerated.ok
    assert session.state is EditState.EDIT

    updated, result = planner.save_day(trip, session)

    assert result.saved
    day = updated.get_day(2)
    assert day.activities[0].id == last.id
    assert check_time_conflicts(day.activities) == []
    assert repository.get_trip(trip.id).get_day(2) == day
