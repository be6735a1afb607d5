"""Regeneration of a user-edited day into a conflict-free schedule.

Two phases: validate the working copy (refuse on any violation, time conflicts
included), then reflow it. The deterministic reflow keeps list
order and the first start time, and chains each next activity after the
previous one plus a travel buffer. An external generation client may enrich
the result (descriptions, rationale, costs); if it fails or returns something
that does not fit the user's selection, the deterministic reflow stands.
"""

import logging
import time
from collections.abc import Sequence
from dataclasses import dataclass, field

from planora.llm.base import GenerationClient, GenerationError
from planora.models.generation import (
    GeneratedActivity,
    GeneratedDayPlan,
    RegenerateRequest,
    UserChanges,
)
from planora.models.trip import Activity, DaySlot, Trip
from planora.models.violations import Violation, ViolationKind
from planora.scheduling.editing import DayEditSession, EditState, EditStateError
from planora.scheduling.timeutils import (
    MINUTES_PER_DAY,
    end_minutes,
    parse_time,
    start_minutes,
    to_time,
)
from planora.scheduling.validation import check_time_conflicts, validate_activities
from planora.utils.logging import GenerationLogger
from planora.utils.metrics import PrometheusGenerationMetrics

logger = logging.getLogger(__name__)

DEFAULT_BUFFER_MINUTES = 30
DEFAULT_DAY_START = 9 * 60
LOCAL_REFLOW_NOTES = "Timings optimized with travel buffers and logical sequence"


class ScheduleOverflowError(ValueError):
    """Activities cannot fit into a single day."""


def reflow_schedule(
    activities: Sequence[Activity], *, buffer_minutes: int = DEFAULT_BUFFER_MINUTES
) -> list[Activity]:
    """Re-time activities in list order so that none overlap.

    The first activity keeps its start time; every next one starts at the
    previous start plus its duration plus the buffer. When that chain would
    run past midnight the buffers shrink evenly, and if that is not enough
    the first start moves earlier. ``order_index`` is rewritten to list
    position.

    Args:
        activities: Activities in the order the user wants them
        buffer_minutes: Gap between consecutive activities

    Returns:
        New activities, same order and multiset, conflict-free

    Raises:
        ScheduleOverflowError: If the durations alone exceed one day
    """
    items = list(activities)
    if not items:
        return []

    # Zero-length activities still need a start minute inside the day
    occupied = sum(max(a.duration_minutes, 1) for a in items)
    if occupied > MINUTES_PER_DAY:
        raise ScheduleOverflowError(
            f"activities need {occupied} minutes, more than fit in one day"
        )

    first = items[0]
    current = start_minutes(first) if first.time is not None else DEFAULT_DAY_START

    gaps = len(items) - 1
    buffer = max(0, buffer_minutes)
    if gaps and current + occupied + buffer * gaps > MINUTES_PER_DAY:
        buffer = max(0, (MINUTES_PER_DAY - current - occupied) // gaps)
        logger.info(f"Buffer reduced to {buffer} minutes to fit {len(items)} activities")

    latest_start = MINUTES_PER_DAY - (occupied + buffer * gaps)
    if current > latest_start:
        logger.info(f"First activity moved earlier to fit the day ({current} -> {latest_start})")
        current = latest_start

    reflowed = []
    for index, activity in enumerate(items):
        reflowed.append(
            activity.model_copy(update={"time": to_time(current), "order_index": index})
        )
        current += activity.duration_minutes + buffer
    return reflowed


def is_clean_sequence(activities: Sequence[Activity]) -> bool:
    """True if list order is time order, nothing overlaps and the day does not wrap."""
    if any(a.time is None for a in activities):
        return False
    starts = [start_minutes(a) for a in activities]
    if starts != sorted(starts):
        return False
    if activities and end_minutes(activities[-1]) > MINUTES_PER_DAY:
        return False
    return not check_time_conflicts(activities)


def build_regenerate_request(
    trip: Trip,
    day: DaySlot,
    activities: Sequence[Activity],
    *,
    instruction: str | None = None,
) -> RegenerateRequest:
    """Build the wire request for regenerating one day of a trip."""
    changes = UserChanges(modified=True)
    if instruction:
        changes = UserChanges(modified=True, instruction=instruction)

    return RegenerateRequest(
        destination=day.destination_name or trip.destination_summary,
        date=day.date,
        day_number=day.day_number,
        current_activities=[GeneratedActivity.from_activity(a) for a in activities],
        budget=trip.budget,
        pace=trip.pace,
        interests=trip.interests,
        user_changes=changes,
    )


def merge_regenerated(
    base: Sequence[Activity],
    plan: GeneratedDayPlan,
    *,
    buffer_minutes: int = DEFAULT_BUFFER_MINUTES,
) -> list[Activity]:
    """Merge a regenerated day onto the user's activities by position.

    Identity, name, type and duration stay the user's; time, description,
    rationale, cost and location come from the regenerated plan. If the
    merged times are not a clean sequence they are reflowed again.

    Raises:
        GenerationError: If the plan does not have one activity per input.
    """
    if len(plan.activities) != len(base):
        raise GenerationError(
            f"regenerated day has {len(plan.activities)} activities, expected {len(base)}"
        )

    merged = [
        original.model_copy(
            update={
                "time": to_time(parse_time(generated.time)),
                "description": generated.description or original.description,
                "rationale": generated.why_this or original.rationale,
                "cost": max(0.0, generated.cost),
                "location": generated.location or original.location,
                "order_index": index,
            }
        )
        for index, (original, generated) in enumerate(zip(base, plan.activities))
    ]

    if not is_clean_sequence(merged):
        logger.info("Regenerated timings overlap or reorder activities; reflowing locally")
        merged = reflow_schedule(merged, buffer_minutes=buffer_minutes)
    return merged


@dataclass
class RegenerationResult:
    """Outcome of a regeneration attempt."""

    activities: list[Activity] = field(default_factory=list)
    violations: list[Violation] = field(default_factory=list)
    used_fallback: bool = True
    notes: str | None = None
    day: DaySlot | None = None

    @property
    def ok(self) -> bool:
        return not self.violations


class RegenerationOptimizer:
    """Validates and re-times an edited day, optionally enriched by a generation client."""

    def __init__(
        self,
        client: GenerationClient | None = None,
        *,
        buffer_minutes: int = DEFAULT_BUFFER_MINUTES,
        metrics: PrometheusGenerationMetrics | None = None,
        gen_logger: GenerationLogger | None = None,
    ) -> None:
        self._client = client
        self._buffer = buffer_minutes
        self._metrics = metrics or PrometheusGenerationMetrics()
        self._log = gen_logger or GenerationLogger()

    async def optimize(
        self,
        activities: Sequence[Activity],
        *,
        request: RegenerateRequest | None = None,
    ) -> RegenerationResult:
        """Validate, reflow and optionally enrich a list of activities.

        Args:
            activities: Working activities in the user's order
            request: Wire request for the generation client (client call skipped if None)

        Returns:
            RegenerationResult; violations set (and nothing optimized) if invalid
        """
        # 1. Validate
        violations = validate_activities(activities)
        if violations:
            return RegenerationResult(violations=violations)

        # 2. Deterministic reflow
        try:
            reflowed = reflow_schedule(activities, buffer_minutes=self._buffer)
        except ScheduleOverflowError as e:
            return RegenerationResult(
                violations=[
                    Violation(
                        kind=ViolationKind.SCHEDULE_OVERFLOW,
                        code="SCHEDULE_OVERFLOW",
                        message=str(e),
                        activity_ids=[a.id for a in activities],
                    )
                ]
            )

        if self._client is None or request is None:
            return RegenerationResult(activities=reflowed, notes=LOCAL_REFLOW_NOTES)

        # 3. Optional enrichment by the generation client
        started = time.perf_counter()
        try:
            plan = await self._client.regenerate_day(request)
            merged = merge_regenerated(reflowed, plan, buffer_minutes=self._buffer)
        except Exception as e:
            latency_ms = (time.perf_counter() - started) * 1000
            self._log.log_outcome(
                "regenerate_day",
                "fallback",
                latency_ms,
                days=1,
                error_reason=f"{type(e).__name__}: {e}",
            )
            self._metrics.inc_request("regenerate_day", "fallback")
            self._metrics.inc_fallback("regenerate_day", type(e).__name__)
            return RegenerationResult(activities=reflowed, notes=LOCAL_REFLOW_NOTES)

        latency_ms = (time.perf_counter() - started) * 1000
        self._log.log_outcome("regenerate_day", "success", latency_ms, days=1)
        self._metrics.record_latency("regenerate_day", "success", latency_ms)
        self._metrics.inc_request("regenerate_day", "success")
        return RegenerationResult(
            activities=merged,
            used_fallback=self._client.source == "local",
            notes=plan.optimization_notes or LOCAL_REFLOW_NOTES,
        )

    async def regenerate(self, session: DayEditSession, *, trip: Trip) -> RegenerationResult:
        """Regenerate the working copy of an edit session in place.

        The session stays in EDIT with the regenerated activities installed, so
        the user still saves explicitly.

        Raises:
            EditStateError: If the session is not editing or has no changes.
        """
        if session.state is not EditState.EDIT:
            raise EditStateError("regeneration requires an open edit session")
        if not session.has_changes:
            raise EditStateError("nothing to regenerate: the day has no unsaved changes")

        working = session.working_activities
        request = None
        if self._client is not None:
            request = build_regenerate_request(trip, session.day, working)

        result = await self.optimize(working, request=request)
        if not result.ok:
            return result

        session.replace_working(result.activities)
        result.day = session.working_day()
        return result
