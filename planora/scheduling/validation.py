"""Validation rules for a day's activity list.

All rules run on every pass and every violation is collected; nothing
short-circuits.
"""

from collections.abc import Sequence
from dataclasses import dataclass, field

from planora.models.trip import Activity
from planora.models.violations import Violation, ViolationKind
from planora.scheduling.timeutils import (
    end_minutes,
    format_duration,
    overlaps,
    sort_by_time,
    start_minutes,
)

MIN_DURATION_MINUTES = 15
MAX_DURATION_MINUTES = 480


def check_time_conflicts(activities: Sequence[Activity]) -> list[Violation]:
    """Report every adjacent pair (in time order) where the first runs into the second.

    Args:
        activities: Activities of one day, in any order

    Returns:
        One TIME_CONFLICT violation per overlapping adjacent pair
    """
    violations: list[Violation] = []

    ordered = sort_by_time(activities)
    for current, nxt in zip(ordered, ordered[1:]):
        if overlaps(current, nxt):
            violations.append(
                Violation(
                    kind=ViolationKind.TIME_CONFLICT,
                    code="TIME_CONFLICT",
                    message=f'Time conflict: "{current.name}" overlaps with "{nxt.name}"',
                    activity_ids=[current.id, nxt.id],
                    details={
                        "overlap_minutes": end_minutes(current) - start_minutes(nxt),
                    },
                )
            )

    return violations


def check_required_fields(activities: Sequence[Activity]) -> list[Violation]:
    """Require a non-blank name and a start time on every activity."""
    violations: list[Violation] = []

    for position, activity in enumerate(activities, start=1):
        if not activity.name.strip():
            violations.append(
                Violation(
                    kind=ViolationKind.REQUIRED_FIELD,
                    code="NAME_REQUIRED",
                    message=f"Activity {position}: Name is required",
                    activity_ids=[activity.id],
                    details={"field": "name", "position": position},
                )
            )
        if activity.time is None:
            violations.append(
                Violation(
                    kind=ViolationKind.REQUIRED_FIELD,
                    code="TIME_REQUIRED",
                    message=f"Activity {position}: Time is required",
                    activity_ids=[activity.id],
                    details={"field": "time", "position": position},
                )
            )

    return violations


def check_duration_bounds(activities: Sequence[Activity]) -> list[Violation]:
    """Require 15 minutes <= duration <= 8 hours."""
    violations: list[Violation] = []

    for activity in activities:
        duration = activity.duration_minutes
        if MIN_DURATION_MINUTES <= duration <= MAX_DURATION_MINUTES:
            continue

        label = activity.name.strip() or activity.id
        violations.append(
            Violation(
                kind=ViolationKind.DURATION_BOUNDS,
                code="DURATION_OUT_OF_BOUNDS",
                message=(
                    f'"{label}": Duration should be between '
                    f"{format_duration(MIN_DURATION_MINUTES)} and "
                    f"{format_duration(MAX_DURATION_MINUTES)} (got {format_duration(duration)})"
                ),
                activity_ids=[activity.id],
                details={
                    "duration_minutes": duration,
                    "min_minutes": MIN_DURATION_MINUTES,
                    "max_minutes": MAX_DURATION_MINUTES,
                },
            )
        )

    return violations


def validate_activities(activities: Sequence[Activity]) -> list[Violation]:
    """Run all validation rules and aggregate violations.

    Args:
        activities: Working activity list of one day

    Returns:
        Complete list of violations for this pass (empty if valid)
    """
    violations: list[Violation] = []

    # Run time-conflict validation
    violations.extend(check_time_conflicts(activities))

    # Run required-field validation
    violations.extend(check_required_fields(activities))

    # Run duration-bounds validation
    violations.extend(check_duration_bounds(activities))

    return violations


@dataclass
class ValidationReport:
    """Result of one validation pass."""

    violations: list[Violation] = field(default_factory=list)

    @property
    def ok(self) -> bool:
        return not self.violations

    @property
    def messages(self) -> list[str]:
        return [v.message for v in self.violations]

    @classmethod
    def for_activities(cls, activities: Sequence[Activity]) -> "ValidationReport":
        return cls(violations=validate_activities(activities))
