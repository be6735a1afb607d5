"""Itinerary endpoints - POST /generate-itinerary, POST /regenerate-day."""

import logging
from collections.abc import Generator
from functools import lru_cache
from typing import Annotated

from fastapi import APIRouter, Depends, HTTPException, status

from planora.config import Settings, get_settings
from planora.db.engine import get_session_factory
from planora.db.repositories import TripRepository
from planora.db.sql_repositories import SqlTripRepository
from planora.llm.base import GenerationClient
from planora.llm.client import get_generation_client
from planora.models.generation import (
    GeneratedDayPlan,
    ItineraryResponse,
    RegenerateRequest,
    RegenerateResponse,
    TripPlanRequest,
)
from planora.models.trip import DaySlot
from planora.scheduling.allocator import AllocationError
from planora.scheduling.fallback import activity_id
from planora.scheduling.planner import TripPlanner

router = APIRouter(tags=["itinerary"])
logger = logging.getLogger(__name__)


@lru_cache
def get_client() -> GenerationClient:
    """Shared generation client built from settings (override in tests)."""
    return get_generation_client()


def get_trip_repository(
    settings: Annotated[Settings, Depends(get_settings)],
) -> Generator[TripRepository | None, None, None]:
    """Request-scoped SQL trip repository; None when no database is configured."""
    if not settings.database_url:
        yield None
        return

    with get_session_factory()() as session:
        yield SqlTripRepository(session)


def get_planner(
    client: Annotated[GenerationClient, Depends(get_client)],
    repository: Annotated[TripRepository | None, Depends(get_trip_repository)],
    settings: Annotated[Settings, Depends(get_settings)],
) -> TripPlanner:
    """Planner for one request, persisting planned trips when a repository is available."""
    return TripPlanner(client, repository=repository, settings=settings)


@router.post(
    "/generate-itinerary", response_model=ItineraryResponse, status_code=status.HTTP_200_OK
)
async def generate_itinerary(
    request: TripPlanRequest,
    planner: Annotated[TripPlanner, Depends(get_planner)],
) -> ItineraryResponse:
    """Plan a full trip.

    Returns:
        ItineraryResponse; fallback is true when the local generator produced the activities

    Raises:
        HTTPException: 422 if the destinations cannot cover the trip days
    """
    try:
        result = await planner.plan_trip(request)
    except AllocationError as e:
        logger.info(f"Rejected itinerary request: {e}")
        raise HTTPException(status_code=status.HTTP_422_UNPROCESSABLE_ENTITY, detail=str(e)) from e

    return ItineraryResponse(
        itinerary=[GeneratedDayPlan.from_day(day) for day in result.trip.days],
        fallback=result.used_fallback,
    )


@router.post("/regenerate-day", response_model=RegenerateResponse, status_code=status.HTTP_200_OK)
async def regenerate_day(
    request: RegenerateRequest,
    planner: Annotated[TripPlanner, Depends(get_planner)],
) -> RegenerateResponse:
    """Re-time a user-edited day into a conflict-free schedule.

    Raises:
        HTTPException: 422 with the violation list if the day cannot be regenerated
    """
    activities = [
        generated.to_activity(activity_id=activity_id(request.day_number, index), order_index=index)
        for index, generated in enumerate(request.current_activities)
    ]

    result = await planner.optimizer.optimize(activities, request=request)
    if not result.ok:
        raise HTTPException(
            status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
            detail={"violations": [v.model_dump(mode="json") for v in result.violations]},
        )

    day = DaySlot(day_number=request.day_number, date=request.date, activities=result.activities)
    return RegenerateResponse(
        day_plan=GeneratedDayPlan.from_day(day, notes=result.notes),
        fallback=result.used_fallback,
    )
