"""Common types and enums shared across all models."""

from enum import Enum

from pydantic import BaseModel, Field

from planora.scheduling.normalization import ActivityType

__all__ = ["ActivityType", "Location", "PACE_ACTIVITY_RANGE", "Pace", "TripType"]


class Pace(str, Enum):
    """Travel pace knob controlling target activity count per day."""

    relaxed = "relaxed"
    balanced = "balanced"
    fast = "fast"


class TripType(str, Enum):
    """How days are allocated across destinations."""

    single = "single"
    multi_fixed = "multi_fixed"
    multi_flexible = "multi_flexible"


class Location(BaseModel):
    """Activity location (coordinates may be synthetic)."""

    lat: float = Field(..., ge=-90, le=90)
    lng: float = Field(..., ge=-180, le=180)
    address: str = ""


# Target activities per regular day for each pace
PACE_ACTIVITY_RANGE: dict[Pace, tuple[int, int]] = {
    Pace.relaxed: (1, 2),
    Pace.balanced: (3, 4),
    Pace.fast: (5, 6),
}
