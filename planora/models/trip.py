"""Trip aggregate models - days, activities and destinations."""

import uuid
from datetime import date, datetime
from datetime import time as dtime
from typing import Any

from pydantic import (
    BaseModel,
    Field,
    computed_field,
    field_serializer,
    field_validator,
    model_validator,
)

from planora.models.common import ActivityType, Location, Pace, TripType
from planora.scheduling.normalization import normalize_activity_type
from planora.scheduling.timeutils import date_diff_inclusive, format_time, parse_time, to_time


class Activity(BaseModel):
    """Single time-boxed item within a day.

    Duration bounds and a non-empty name are checked by the validation
    engine rather than here, so an in-progress edit can be held and
    reported on as a whole.
    """

    id: str
    time: dtime | None = None
    name: str
    description: str = ""
    type: ActivityType = ActivityType.attraction
    duration_minutes: int = Field(..., ge=0)
    cost: float = Field(0, ge=0)
    location: Location | None = None
    rationale: str | None = None
    order_index: int = Field(0, ge=0)

    @field_validator("time", mode="before")
    @classmethod
    def parse_wall_clock(cls, v: Any) -> Any:
        """Accept "HH:MM" strings; blank means unset."""
        if isinstance(v, str):
            if not v.strip():
                return None
            return to_time(parse_time(v))
        return v

    @field_validator("type", mode="before")
    @classmethod
    def normalize_type(cls, v: Any) -> ActivityType:
        """Normalize free-text categories onto the closed taxonomy."""
        return normalize_activity_type(v)

    @field_serializer("time")
    def serialize_time(self, v: dtime | None) -> str | None:
        """Serialize as "HH:MM"."""
        return format_time(parse_time(v)) if v is not None else None


class Destination(BaseModel):
    """A named stop on a multi-destination route."""

    id: str = Field(default_factory=lambda: uuid.uuid4().hex)
    name: str
    order_index: int = Field(0, ge=0)
    planned_days: int | None = Field(None, ge=0, description="None in flexible mode")


class DaySlot(BaseModel):
    """One calendar day of a trip; owns its activities."""

    day_number: int = Field(..., ge=1)
    date: date
    destination_id: str | None = None
    destination_name: str | None = None
    is_travel_day: bool = False
    travel_from: str | None = None
    is_extended_stay: bool = False
    travel_details: str | None = None
    activities: list[Activity] = Field(default_factory=list)

    @computed_field  # type: ignore[prop-decorator]
    @property
    def total_cost(self) -> float:
        """Sum of activity costs."""
        return sum(a.cost for a in self.activities)

    @computed_field  # type: ignore[prop-decorator]
    @property
    def total_duration_minutes(self) -> int:
        """Sum of activity durations."""
        return sum(a.duration_minutes for a in self.activities)

    def get_activity(self, activity_id: str) -> Activity:
        """Look up an activity by id.

        Raises:
            KeyError: If no activity has that id.
        """
        for activity in self.activities:
            if activity.id == activity_id:
                return activity
        raise KeyError(f"no activity {activity_id!r} on day {self.day_number}")


class Trip(BaseModel):
    """Trip aggregate root."""

    id: str = Field(default_factory=lambda: uuid.uuid4().hex)
    destination_summary: str
    start_date: date
    end_date: date
    budget: float = Field(..., gt=0)
    pace: Pace = Pace.balanced
    interests: list[str] = Field(default_factory=list)
    trip_type: TripType = TripType.single
    destinations: list[Destination] = Field(default_factory=list)
    days: list[DaySlot] = Field(default_factory=list)
    created_at: datetime = Field(default_factory=datetime.now)

    @computed_field  # type: ignore[prop-decorator]
    @property
    def total_days(self) -> int:
        """Inclusive day count between start and end date."""
        return date_diff_inclusive(self.start_date, self.end_date)

    @computed_field  # type: ignore[prop-decorator]
    @property
    def total_cost(self) -> float:
        """Sum of day costs."""
        return sum(day.total_cost for day in self.days)

    @computed_field  # type: ignore[prop-decorator]
    @property
    def total_duration_minutes(self) -> int:
        """Sum of day durations."""
        return sum(day.total_duration_minutes for day in self.days)

    @model_validator(mode="after")
    def validate_day_sequence(self) -> "Trip":
        """Ensure days form 1..total_days with strictly increasing dates."""
        if self.end_date < self.start_date:
            raise ValueError("end_date must be >= start_date")

        if len(self.days) != self.total_days:
            raise ValueError(f"trip has {len(self.days)} days, expected {self.total_days}")

        for expected, day in enumerate(self.days, start=1):
            if day.day_number != expected:
                raise ValueError(
                    f"day numbers must be contiguous: got {day.day_number} at position {expected}"
                )

        for prev, nxt in zip(self.days, self.days[1:]):
            if nxt.date <= prev.date:
                raise ValueError(f"day {nxt.day_number} date {nxt.date} not after {prev.date}")
        return self

    def get_day(self, day_number: int) -> DaySlot:
        """Look up a day by its 1-based number.

        Raises:
            KeyError: If the day does not exist.
        """
        if not 1 <= day_number <= len(self.days):
            raise KeyError(f"trip has no day {day_number}")
        return self.days[day_number - 1]
