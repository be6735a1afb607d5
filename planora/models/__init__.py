"""Models package - re-exports for convenience."""

from planora.models.common import ActivityType, Location, Pace, TripType
from planora.models.generation import (
    DestinationRequest,
    GeneratedActivity,
    GeneratedDayPlan,
    ItineraryResponse,
    RegenerateRequest,
    RegenerateResponse,
    TripPlanRequest,
    UserChanges,
)
from planora.models.trip import Activity, DaySlot, Destination, Trip
from planora.models.violations import Violation, ViolationKind

__all__ = [
    # Common
    "ActivityType",
    "Pace",
    "TripType",
    "Location",
    # Trip aggregate
    "Trip",
    "DaySlot",
    "Activity",
    "Destination",
    # Wire
    "TripPlanRequest",
    "DestinationRequest",
    "GeneratedActivity",
    "GeneratedDayPlan",
    "ItineraryResponse",
    "RegenerateRequest",
    "RegenerateResponse",
    "UserChanges",
    # Violations
    "Violation",
    "ViolationKind",
]
