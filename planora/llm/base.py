"""Generation client protocol and errors."""

from collections.abc import Sequence
from typing import Protocol

from planora.models.generation import GeneratedDayPlan, RegenerateRequest, TripPlanRequest
from planora.models.trip import DaySlot


class GenerationError(Exception):
    """External generation failed (transport, timeout, empty or malformed response)."""


class GenerationClient(Protocol):
    """Protocol for itinerary generation backends."""

    # "openrouter" for the external service, "local" for the deterministic fallback
    source: str

    async def generate_itinerary(
        self, request: TripPlanRequest, *, slots: Sequence[DaySlot]
    ) -> list[GeneratedDayPlan]:
        """Generate activities for every day slot of a trip.

        Args:
            request: Trip parameters
            slots: Allocated day slots (destination and travel-day context)

        Returns:
            Generated day plans; may be fewer or more than the slots

        Raises:
            GenerationError: On any transport or response problem
        """
        ...

    async def regenerate_day(self, request: RegenerateRequest) -> GeneratedDayPlan:
        """Re-time and enrich a user-edited day.

        Raises:
            GenerationError: On any transport or response problem
        """
        ...
