"""Violation models - problems found while validating a day's schedule."""

from enum import Enum
from typing import Any

from pydantic import BaseModel, Field

# JSON-serializable value types for violation details
JsonValue = str | int | float | bool | None | dict[str, Any] | list[Any]


class ViolationKind(str, Enum):
    """Categories of schedule validation rules."""

    TIME_CONFLICT = "time_conflict"
    REQUIRED_FIELD = "required_field"
    DURATION_BOUNDS = "duration_bounds"
    SCHEDULE_OVERFLOW = "schedule_overflow"


class Violation(BaseModel):
    """A rule violation detected during validation.

    Violations are user-correctable: they block saving an edited day but
    never halt the engine.
    """

    kind: ViolationKind
    code: str  # Machine-usable short code, e.g., "TIME_CONFLICT"
    message: str  # Human-readable, names the offending activity or activities
    activity_ids: list[str] = Field(default_factory=list)
    details: dict[str, JsonValue] = Field(default_factory=dict)
