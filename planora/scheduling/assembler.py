"""Itinerary assembly: allocated slots + generated plans -> Trip.

Generated plans are matched to slots by day number (falling back to list
position). Travel and extended-stay slots always get their synthetic
activity. A slot with no usable plan reuses the last generated day's
activities, relabeled for the new day, or the local fallback day if nothing
was generated at all. Extra generated days are dropped.
"""

import logging
import re
from collections.abc import Sequence

from planora.llm.client import LocalFallbackClient
from planora.models.common import TripType
from planora.models.generation import GeneratedDayPlan, TripPlanRequest
from planora.models.trip import Activity, DaySlot, Destination, Trip
from planora.scheduling.fallback import FallbackContext, activity_id, synthetic_activities

logger = logging.getLogger(__name__)

DAY_SUFFIX_RE = re.compile(r" - Day \d+$")


def relabel_activities(activities: Sequence[Activity], day_number: int) -> list[Activity]:
    """Copy activities onto another day: fresh ids and a matching " - Day N" suffix."""
    relabeled = []
    for index, activity in enumerate(activities):
        name = activity.name
        if DAY_SUFFIX_RE.search(name):
            name = DAY_SUFFIX_RE.sub(f" - Day {day_number}", name)
        relabeled.append(
            activity.model_copy(
                update={
                    "id": activity_id(day_number, index),
                    "name": name,
                    "order_index": index,
                }
            )
        )
    return relabeled


def plan_activities(plan: GeneratedDayPlan, day_number: int) -> list[Activity]:
    """Convert a generated day into core activities with day-scoped ids."""
    return [
        generated.to_activity(activity_id=activity_id(day_number, index), order_index=index)
        for index, generated in enumerate(plan.activities)
    ]


def _index_plans(
    plans: Sequence[GeneratedDayPlan], slots: Sequence[DaySlot]
) -> dict[int, GeneratedDayPlan]:
    by_day = {plan.day: plan for plan in plans}
    if all(slot.day_number in by_day for slot in slots):
        return by_day

    # Unreliable day numbers: fall back to list position
    indexed = dict(by_day)
    for slot, plan in zip(slots, plans):
        indexed.setdefault(slot.day_number, plan)
    return indexed


def assemble_trip(
    *,
    request: TripPlanRequest,
    slots: Sequence[DaySlot],
    plans: Sequence[GeneratedDayPlan],
    destinations: Sequence[Destination] = (),
    fallback: LocalFallbackClient | None = None,
    trip_id: str | None = None,
) -> Trip:
    """Combine allocated slots and generated plans into a Trip.

    Args:
        request: Original trip request
        slots: Allocated day slots, one per trip day
        plans: Generated day plans, possibly too few or too many
        destinations: Route stops for multi-destination trips
        fallback: Local generator used when no generated day exists at all
        trip_id: Id to give the trip (generated if None)

    Returns:
        Trip whose day count equals its inclusive date range
    """
    fallback = fallback or LocalFallbackClient()
    ctx: FallbackContext = fallback.context_for(request)
    by_day = _index_plans(plans, slots)

    if len(plans) > len(slots):
        logger.warning(f"Dropping {len(plans) - len(slots)} generated days beyond the trip length")

    days: list[DaySlot] = []
    last_generated: list[Activity] | None = None
    padded = 0

    for slot in slots:
        activities = synthetic_activities(ctx, slot)

        if activities is None:
            plan = by_day.get(slot.day_number)
            if plan is not None and plan.activities:
                activities = plan_activities(plan, slot.day_number)
                last_generated = activities
            elif last_generated is not None:
                activities = relabel_activities(last_generated, slot.day_number)
                padded += 1
            else:
                activities = fallback.build_activities(ctx, slot)
                padded += 1

        days.append(slot.model_copy(update={"activities": activities}))

    if padded:
        logger.warning(f"Padded {padded} day(s) missing from the generated itinerary")

    trip_type = request.resolved_trip_type
    fields = {"id": trip_id} if trip_id else {}
    return Trip(
        **fields,
        destination_summary=_summary(request, destinations, trip_type),
        start_date=request.start_date,
        end_date=request.end_date,
        budget=request.budget,
        pace=request.pace,
        interests=list(request.interests),
        trip_type=trip_type,
        destinations=list(destinations),
        days=days,
    )


def _summary(
    request: TripPlanRequest, destinations: Sequence[Destination], trip_type: TripType
) -> str:
    if trip_type is TripType.single or not destinations:
        return request.destination
    return " → ".join(d.name for d in destinations)
