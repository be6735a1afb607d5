"""Wire models for the external generation service.

Field names are camelCase on the wire and snake_case in Python.
"""

from datetime import date
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, ValidationInfo, field_validator
from pydantic.alias_generators import to_camel

from planora.models.common import ActivityType, Location, Pace, TripType
from planora.models.trip import Activity, DaySlot
from planora.scheduling.normalization import normalize_activity_type
from planora.scheduling.timeutils import format_time, parse_time

DEFAULT_REGENERATE_INSTRUCTION = (
    "User has modified the itinerary. Please regenerate optimized timings, validate activity "
    "sequences, ensure realistic travel times between locations, and adjust costs if needed. "
    "Maintain user's activity selections but optimize the schedule."
)


class WireModel(BaseModel):
    """Base for camelCase wire payloads."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class GeneratedActivity(WireModel):
    """Activity as produced by (or sent to) the generation service."""

    time: str
    name: str
    type: ActivityType = ActivityType.attraction
    description: str = ""
    duration: int = Field(60, ge=0)
    cost: float = 0
    location: Location | None = None
    why_this: str = ""

    @field_validator("time", mode="before")
    @classmethod
    def canonical_time(cls, v: Any) -> str:
        """Reject malformed times and canonicalize to "HH:MM"."""
        return format_time(parse_time(str(v)))

    @field_validator("type", mode="before")
    @classmethod
    def normalize_type(cls, v: Any) -> ActivityType:
        """Normalize free-text categories onto the closed taxonomy."""
        return normalize_activity_type(v)

    def to_activity(self, *, activity_id: str, order_index: int) -> Activity:
        """Convert into a core Activity."""
        return Activity(
            id=activity_id,
            time=self.time,
            name=self.name,
            description=self.description,
            type=self.type,
            duration_minutes=self.duration,
            cost=max(0.0, self.cost),
            location=self.location,
            rationale=self.why_this or None,
            order_index=order_index,
        )

    @classmethod
    def from_activity(cls, activity: Activity) -> "GeneratedActivity":
        """Convert a core Activity into its wire form."""
        return cls(
            time=format_time(parse_time(activity.time)) if activity.time else "00:00",
            name=activity.name,
            type=activity.type,
            description=activity.description,
            duration=activity.duration_minutes,
            cost=activity.cost,
            location=activity.location,
            why_this=activity.rationale or "",
        )


class GeneratedDayPlan(WireModel):
    """One day of a generated itinerary."""

    day: int = Field(..., ge=1)
    date: date
    activities: list[GeneratedActivity] = Field(default_factory=list)
    total_cost: float = 0
    total_duration: int = 0
    destination_id: str | None = None
    destination_name: str | None = None
    is_travel: bool = False
    travel_details: str | None = None
    optimization_notes: str | None = None

    @classmethod
    def from_day(cls, day: DaySlot, *, notes: str | None = None) -> "GeneratedDayPlan":
        """Convert a core DaySlot into its wire form."""
        return cls(
            day=day.day_number,
            date=day.date,
            activities=[GeneratedActivity.from_activity(a) for a in day.activities],
            total_cost=day.total_cost,
            total_duration=day.total_duration_minutes,
            destination_id=day.destination_id,
            destination_name=day.destination_name,
            is_travel=day.is_travel_day,
            travel_details=day.travel_details,
            optimization_notes=notes,
        )


class DestinationRequest(WireModel):
    """Destination entry in a multi-destination request."""

    id: str | None = None
    name: str
    days: int | None = Field(None, ge=0)


class TripPlanRequest(WireModel):
    """Itinerary generation request."""

    destination: str
    start_date: date
    end_date: date
    budget: float = Field(..., gt=0)
    pace: Pace = Pace.balanced
    interests: list[str] = Field(default_factory=list)
    from_: str | None = Field(None, alias="from")
    # Passed through to the generation service untouched
    user_preferences: dict[str, Any] | None = None
    trip_type: TripType = TripType.single
    destinations: list[DestinationRequest] = Field(default_factory=list)
    is_multi_destination: bool = False

    @field_validator("end_date")
    @classmethod
    def validate_end_after_start(cls, v: date, info: ValidationInfo) -> date:
        """Ensure end >= start."""
        if "start_date" in info.data and v < info.data["start_date"]:
            raise ValueError("endDate must be >= startDate")
        return v

    @property
    def resolved_trip_type(self) -> TripType:
        """Trip type after reconciling the legacy multi-destination flag."""
        if self.trip_type is TripType.single and self.is_multi_destination and self.destinations:
            return TripType.multi_fixed
        return self.trip_type


class ItineraryResponse(WireModel):
    """Itinerary generation response."""

    itinerary: list[GeneratedDayPlan]
    fallback: bool = False


class UserChanges(WireModel):
    """Description of what the user changed before asking to regenerate."""

    modified: bool = True
    instruction: str = DEFAULT_REGENERATE_INSTRUCTION


class RegenerateRequest(WireModel):
    """Single-day regeneration request."""

    destination: str
    date: date
    day_number: int = Field(..., ge=1)
    current_activities: list[GeneratedActivity]
    budget: float = Field(..., gt=0)
    pace: Pace = Pace.balanced
    interests: list[str] = Field(default_factory=list)
    user_changes: UserChanges = Field(default_factory=UserChanges)


class RegenerateResponse(WireModel):
    """Single-day regeneration response."""

    day_plan: GeneratedDayPlan
    fallback: bool = False
