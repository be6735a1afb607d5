"""Deterministic local activity builders.

Used whenever the external generation service is unavailable, and always for
travel and extended-stay days, which never go through generation.
"""

import math
import random
from dataclasses import dataclass

from planora.models.common import ActivityType, Location
from planora.models.trip import Activity, DaySlot

# Share of the total trip budget spent per fallback activity
ATTRACTION_BUDGET_SHARE = 0.10
FOOD_BUDGET_SHARE = 0.05
HISTORY_BUDGET_SHARE = 0.08
TRAVEL_BUDGET_SHARE = 0.10
EXTENDED_STAY_BUDGET_SHARE = 0.05

# Per-day cost jitter bounds
JITTER_MIN = 0.8
JITTER_MAX = 1.2

TRAVEL_DURATION_MINUTES = 240
COORDINATE_SPREAD = 0.1


@dataclass(frozen=True)
class FallbackContext:
    """Trip-level inputs shared by every fallback day."""

    destination: str
    budget: float
    interests: tuple[str, ...] = ()
    anchor_lat: float = 28.6139
    anchor_lng: float = 77.2090


def activity_id(day_number: int, index: int) -> str:
    """Day-scoped activity id."""
    return f"d{day_number}-a{index + 1}"


def _share(budget: float, share: float) -> int:
    return math.floor(budget * share)


def _jittered(base_cost: int, rng: random.Random) -> int:
    return math.floor(base_cost * rng.uniform(JITTER_MIN, JITTER_MAX))


def _placeholder_location(ctx: FallbackContext, address: str, rng: random.Random) -> Location:
    return Location(
        lat=ctx.anchor_lat + rng.random() * COORDINATE_SPREAD,
        lng=ctx.anchor_lng + rng.random() * COORDINATE_SPREAD,
        address=address,
    )


def build_day_activities(
    ctx: FallbackContext,
    *,
    day_number: int,
    rng: random.Random,
    destination: str | None = None,
) -> list[Activity]:
    """Build the standard three-activity fallback day.

    Produces an attraction, a food and a history activity whose costs are
    10%, 5% and 8% of the total trip budget, each scaled by a jitter factor
    in [0.8, 1.2].

    Args:
        ctx: Trip-level inputs
        day_number: Day the activities belong to (used for ids and names)
        rng: Random source for cost jitter and placeholder coordinates
        destination: Destination for this day, defaults to the trip destination

    Returns:
        Three activities ordered by start time
    """
    place = destination or ctx.destination
    interests = ", ".join(ctx.interests) if ctx.interests else "sightseeing"

    templates = [
        (
            "09:00",
            f"Explore {place}",
            ActivityType.attraction,
            f"Discover the main attractions of {place}",
            120,
            ATTRACTION_BUDGET_SHARE,
            f"Main Area, {place}",
            f"Perfect introduction to {place} based on your interests: {interests}",
        ),
        (
            "12:30",
            f"Local Cuisine in {place}",
            ActivityType.food,
            f"Authentic local food experience in {place}",
            90,
            FOOD_BUDGET_SHARE,
            f"Food District, {place}",
            "Experience local flavors and culinary traditions",
        ),
        (
            "15:00",
            f"Cultural Sites in {place}",
            ActivityType.history,
            f"Historical and cultural landmarks of {place}",
            150,
            HISTORY_BUDGET_SHARE,
            f"Heritage Area, {place}",
            "Rich history and culture matching your interests",
        ),
    ]

    activities = []
    for index, (start, name, kind, description, duration, share, address, why) in enumerate(
        templates
    ):
        activities.append(
            Activity(
                id=activity_id(day_number, index),
                time=start,
                name=f"{name} - Day {day_number}",
                description=description,
                type=kind,
                duration_minutes=duration,
                cost=_jittered(_share(ctx.budget, share), rng),
                location=_placeholder_location(ctx, address, rng),
                rationale=why,
                order_index=index,
            )
        )
    return activities


def build_travel_activity(
    ctx: FallbackContext, *, day_number: int, origin: str, arrival: str
) -> Activity:
    """Build the single transport activity of a travel day."""
    return Activity(
        id=activity_id(day_number, 0),
        time="10:00",
        name=f"Travel to {arrival}",
        description=f"Journey from {origin} to {arrival}",
        type=ActivityType.transport,
        duration_minutes=TRAVEL_DURATION_MINUTES,
        cost=_share(ctx.budget, TRAVEL_BUDGET_SHARE),
        location=Location(
            lat=ctx.anchor_lat, lng=ctx.anchor_lng, address=f"En route to {arrival}"
        ),
        rationale="Efficient travel between destinations with time for rest",
        order_index=0,
    )


def build_extended_stay_activity(
    ctx: FallbackContext, *, day_number: int, destination: str
) -> Activity:
    """Build the single relaxed activity of an extended-stay day."""
    return Activity(
        id=activity_id(day_number, 0),
        time="10:00",
        name=f"Leisure Day in {destination}",
        description=f"Unplanned time to revisit favourite spots in {destination}",
        type=ActivityType.attraction,
        duration_minutes=180,
        cost=_share(ctx.budget, EXTENDED_STAY_BUDGET_SHARE),
        location=Location(
            lat=ctx.anchor_lat, lng=ctx.anchor_lng, address=f"{destination} city centre"
        ),
        rationale="Extra day at the final destination to fill the trip length",
        order_index=0,
    )


def synthetic_activities(ctx: FallbackContext, slot: DaySlot) -> list[Activity] | None:
    """Activities for slots that never go through generation.

    Returns:
        The single travel or extended-stay activity, or None for a regular day
    """
    if slot.is_travel_day:
        return [
            build_travel_activity(
                ctx,
                day_number=slot.day_number,
                origin=slot.travel_from or ctx.destination,
                arrival=slot.destination_name or ctx.destination,
            )
        ]
    if slot.is_extended_stay:
        return [
            build_extended_stay_activity(
                ctx,
                day_number=slot.day_number,
                destination=slot.destination_name or ctx.destination,
            )
        ]
    return None
