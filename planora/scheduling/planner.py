"""Trip planning facade: request -> allocated, generated and assembled Trip.

Also the entry point for per-day editing and regeneration of a planned trip.
Persistence is optional and goes through the storage port only.
"""

import logging
from dataclasses import dataclass

from planora.config import Settings, get_settings
from planora.db.repositories import TripRepository
from planora.llm.base import GenerationClient
from planora.llm.client import LocalFallbackClient, get_generation_client
from planora.models.common import TripType
from planora.models.generation import DestinationRequest, TripPlanRequest
from planora.models.trip import Destination, Trip
from planora.scheduling.allocator import allocate_days
from planora.scheduling.assembler import assemble_trip
from planora.scheduling.editing import DayEditSession, SaveResult, apply_day
from planora.scheduling.generator import ActivityGenerator
from planora.scheduling.optimizer import RegenerationOptimizer, RegenerationResult
from planora.scheduling.timeutils import date_diff_inclusive

logger = logging.getLogger(__name__)


@dataclass
class PlanningResult:
    """A planned trip and how its activities were generated."""

    trip: Trip
    used_fallback: bool
    generation_error: str | None = None


def build_destinations(request: TripPlanRequest) -> list[Destination]:
    """Map request destinations to route stops in visiting order.

    Single-destination trips have no route stops.
    """
    if request.resolved_trip_type is TripType.single:
        return []
    return [_destination(entry, index) for index, entry in enumerate(request.destinations)]


def _destination(entry: DestinationRequest, index: int) -> Destination:
    fields = {"id": entry.id} if entry.id else {}
    return Destination(**fields, name=entry.name, order_index=index, planned_days=entry.days)


class TripPlanner:
    """Plans trips and manages per-day edits."""

    def __init__(
        self,
        client: GenerationClient | None = None,
        *,
        repository: TripRepository | None = None,
        fallback: LocalFallbackClient | None = None,
        settings: Settings | None = None,
    ) -> None:
        """Initialize planner.

        Args:
            client: Generation client (defaults to get_generation_client())
            repository: Optional storage port; trips are persisted when set
            fallback: Local generator (defaults to one built from settings)
            settings: Settings (defaults to get_settings())
        """
        self.settings = settings or get_settings()
        self.client = client or get_generation_client(self.settings)
        self.fallback = fallback or (
            self.client
            if isinstance(self.client, LocalFallbackClient)
            else LocalFallbackClient(settings=self.settings)
        )
        self.repository = repository
        self.generator = ActivityGenerator(self.client, fallback=self.fallback)
        self._optimizer = RegenerationOptimizer(
            self.client, buffer_minutes=self.settings.travel_buffer_min
        )

    @property
    def optimizer(self) -> RegenerationOptimizer:
        return self._optimizer

    async def plan_trip(self, request: TripPlanRequest) -> PlanningResult:
        """Plan a complete trip.

        Args:
            request: Trip parameters

        Returns:
            PlanningResult with a Trip of exactly one day per date in range

        Raises:
            AllocationError: If the destinations cannot cover the trip days
        """
        total_days = date_diff_inclusive(request.start_date, request.end_date)
        destinations = build_destinations(request)
        trip_type = request.resolved_trip_type

        slots = allocate_days(
            total_days=total_days,
            trip_type=trip_type,
            start_date=request.start_date,
            destinations=destinations,
            min_stay_days=self.settings.min_stay_days,
        )

        generated = await self.generator.generate(request, slots)
        trip = assemble_trip(
            request=request,
            slots=slots,
            plans=generated.plans,
            destinations=destinations,
            fallback=self.fallback,
        )

        logger.info(
            f"Planned {trip.total_days}-day {trip_type.value} trip to {trip.destination_summary}",
            extra={
                "structured": {
                    "trip_id": trip.id,
                    "days": trip.total_days,
                    "total_cost": trip.total_cost,
                    "used_fallback": generated.used_fallback,
                }
            },
        )

        self._persist(trip)
        return PlanningResult(
            trip=trip, used_fallback=generated.used_fallback, generation_error=generated.error
        )

    def open_day(self, trip: Trip, day_number: int) -> DayEditSession:
        """Start a VIEW-state session over one day of a trip.

        Raises:
            KeyError: If the trip has no such day.
        """
        return DayEditSession(trip.get_day(day_number))

    def save_day(self, trip: Trip, session: DayEditSession) -> tuple[Trip, SaveResult]:
        """Save an edit session and fold the day back into the trip.

        Returns:
            (trip, result); the trip is unchanged when the save was refused
        """
        result = session.save()
        if not result.saved:
            return trip, result

        updated = apply_day(trip, result.day)
        self._persist(updated)
        return updated, result

    async def regenerate_day(self, trip: Trip, session: DayEditSession) -> RegenerationResult:
        """Regenerate the working copy of an edit session."""
        return await self._optimizer.regenerate(session, trip=trip)

    def _persist(self, trip: Trip) -> None:
        if self.repository is None:
            return
        self.repository.save_trip(trip)
        logger.info(f"Persisted trip {trip.id}")
