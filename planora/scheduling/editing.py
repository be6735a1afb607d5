"""Per-day edit sessions.

A session moves between two states. VIEW shows the last saved day. EDIT holds a
private working copy that accepts mutations. Saving is all-or-nothing: the
working copy replaces the saved day only when it validates cleanly.

Reordering only rewrites ``order_index``, never ``time``, so a reorder can
introduce a time conflict. Run the regeneration optimizer after reordering
to get a clean schedule.
"""

import logging
from collections.abc import Sequence
from dataclasses import dataclass, field
from enum import Enum
from typing import Any

from planora.models.trip import Activity, DaySlot, Trip
from planora.models.violations import Violation
from planora.scheduling.validation import validate_activities

logger = logging.getLogger(__name__)

EDITABLE_FIELDS = frozenset(
    {"time", "name", "description", "type", "duration_minutes", "cost", "location", "rationale"}
)

USER_ADDED_RATIONALE = "Added by user for personalized experience"


class EditState(str, Enum):
    """Edit session state."""

    VIEW = "view"
    EDIT = "edit"


class EditStateError(RuntimeError):
    """Operation not allowed in the session's current state."""


class UnsavedChangesError(EditStateError):
    """Cancel requested with unsaved changes and no confirmation."""


@dataclass
class SaveResult:
    """Outcome of a save attempt."""

    saved: bool
    day: DaySlot
    violations: list[Violation] = field(default_factory=list)


class DayEditSession:
    """Edit session over a single day's activities."""

    def __init__(self, day: DaySlot) -> None:
        self._saved = day.model_copy(deep=True)
        self._working: list[Activity] = []
        self._new_id_seq = 0
        self.state = EditState.VIEW

    @property
    def day(self) -> DaySlot:
        """Last saved day."""
        return self._saved

    @property
    def working_activities(self) -> list[Activity]:
        """Current working copy, in list order."""
        self._require_edit()
        return list(self._working)

    @property
    def has_changes(self) -> bool:
        """True if the working copy differs from the saved day."""
        return self.state is EditState.EDIT and self._working != self._saved.activities

    def working_day(self) -> DaySlot:
        """Saved day with the working copy in place of its activities."""
        self._require_edit()
        return self._saved.model_copy(update={"activities": list(self._working)})

    def working_totals(self) -> tuple[float, int]:
        """Live (total_cost, total_duration_minutes) of the working copy."""
        day = self.working_day()
        return day.total_cost, day.total_duration_minutes

    # --- transitions -------------------------------------------------------

    def begin_edit(self) -> None:
        """VIEW -> EDIT: snapshot saved activities into a working copy."""
        if self.state is EditState.EDIT:
            raise EditStateError(f"day {self._saved.day_number} is already being edited")
        self._working = [a.model_copy(deep=True) for a in self._saved.activities]
        self.state = EditState.EDIT

    def save(self) -> SaveResult:
        """EDIT -> VIEW if the working copy validates, else stay in EDIT.

        Returns:
            SaveResult with every violation found when the save is refused
        """
        self._require_edit()

        violations = validate_activities(self._working)
        if violations:
            logger.info(
                f"Save refused for day {self._saved.day_number}: {len(violations)} violation(s)"
            )
            return SaveResult(saved=False, day=self._saved, violations=violations)

        self._saved = self.working_day()
        self._working = []
        self.state = EditState.VIEW
        return SaveResult(saved=True, day=self._saved)

    def cancel(self, *, confirm_discard: bool = False) -> None:
        """EDIT -> VIEW, discarding the working copy.

        Raises:
            UnsavedChangesError: If there are unsaved changes and the discard
                was not confirmed.
        """
        self._require_edit()
        if self.has_changes and not confirm_discard:
            raise UnsavedChangesError(
                f"day {self._saved.day_number} has unsaved changes; confirm to discard"
            )
        self._working = []
        self.state = EditState.VIEW

    # --- mutations ---------------------------------------------------------

    def update_activity(self, activity_id: str, **changes: Any) -> Activity:
        """Edit fields of one activity in the working copy.

        Raises:
            ValueError: If a field is not editable.
            KeyError: If the activity is not in the working copy.
        """
        self._require_edit()

        unknown = set(changes) - EDITABLE_FIELDS
        if unknown:
            raise ValueError(f"fields not editable: {', '.join(sorted(unknown))}")

        index = self._index_of(activity_id)
        current = self._working[index]
        updated = Activity.model_validate({**current.model_dump(), **changes})
        self._working[index] = updated
        return updated

    def add_activity(
        self,
        *,
        name: str,
        time: str | None,
        duration_minutes: int = 60,
        type: str = "attraction",
        description: str = "",
        cost: float = 0,
        location: dict[str, Any] | None = None,
        rationale: str | None = USER_ADDED_RATIONALE,
    ) -> Activity:
        """Append a new activity with a fresh id."""
        self._require_edit()

        activity = Activity.model_validate(
            {
                "id": self._next_new_id(),
                "time": time,
                "name": name,
                "description": description,
                "type": type,
                "duration_minutes": duration_minutes,
                "cost": cost,
                "location": location,
                "rationale": rationale,
                "order_index": len(self._working),
            }
        )
        self._working.append(activity)
        return activity

    def delete_activity(self, activity_id: str) -> None:
        """Remove an activity from the working copy (confirmation is the caller's job)."""
        self._require_edit()
        del self._working[self._index_of(activity_id)]
        self._reindex()

    def reorder(self, activity_id: str, target_index: int) -> None:
        """Move an activity to a new list position without touching its time."""
        self._require_edit()
        if not 0 <= target_index < len(self._working):
            raise IndexError(f"target index {target_index} out of range")

        activity = self._working.pop(self._index_of(activity_id))
        self._working.insert(target_index, activity)
        self._reindex()

    def move_activity(self, dragged_id: str, target_id: str) -> None:
        """Drag-and-drop: put the dragged activity where the target currently is."""
        if dragged_id == target_id:
            return
        self.reorder(dragged_id, self._index_of(target_id))

    def replace_working(self, activities: Sequence[Activity]) -> None:
        """Install a new working copy (used by regeneration)."""
        self._require_edit()
        self._working = list(activities)
        self._reindex()

    # --- helpers -----------------------------------------------------------

    def _require_edit(self) -> None:
        if self.state is not EditState.EDIT:
            raise EditStateError(f"day {self._saved.day_number} is not being edited")

    def _index_of(self, activity_id: str) -> int:
        for index, activity in enumerate(self._working):
            if activity.id == activity_id:
                return index
        raise KeyError(f"no activity {activity_id!r} in working copy")

    def _reindex(self) -> None:
        self._working = [
            a if a.order_index == i else a.model_copy(update={"order_index": i})
            for i, a in enumerate(self._working)
        ]

    def _next_new_id(self) -> str:
        existing = {a.id for a in self._working} | {a.id for a in self._saved.activities}
        while True:
            self._new_id_seq += 1
            candidate = f"new-{self._new_id_seq}"
            if candidate not in existing:
                return candidate


def apply_day(trip: Trip, day: DaySlot) -> Trip:
    """Return a copy of the trip with one day replaced."""
    trip.get_day(day.day_number)
    days = list(trip.days)
    days[day.day_number - 1] = day
    return trip.model_copy(update={"days": days})
