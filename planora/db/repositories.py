"""Repository protocol interfaces for trip storage."""

from dataclasses import dataclass
from datetime import date, datetime
from typing import Protocol

from planora.models.trip import Trip


@dataclass
class TripSummary:
    """Summary of a trip for listing."""

    trip_id: str
    destination_summary: str
    start_date: date
    end_date: date
    trip_type: str
    total_cost: float
    created_at: datetime

    @classmethod
    def from_trip(cls, trip: Trip) -> "TripSummary":
        return cls(
            trip_id=trip.id,
            destination_summary=trip.destination_summary,
            start_date=trip.start_date,
            end_date=trip.end_date,
            trip_type=trip.trip_type.value,
            total_cost=trip.total_cost,
            created_at=trip.created_at,
        )


class TripRepository(Protocol):
    """Repository for trip operations."""

    def save_trip(self, trip: Trip) -> str:
        """Insert or replace a trip.

        Args:
            trip: Trip aggregate to store

        Returns:
            Trip ID
        """
        ...

    def get_trip(self, trip_id: str) -> Trip | None:
        """Get trip by ID.

        Args:
            trip_id: Trip ID

        Returns:
            Trip or None if not found
        """
        ...

    def list_trips(self, limit: int = 10) -> list[TripSummary]:
        """List trips, newest first.

        Args:
            limit: Maximum number of results

        Returns:
            List of trip summaries
        """
        ...

    def delete_trip(self, trip_id: str) -> bool:
        """Delete a trip.

        Returns:
            True if a trip was deleted
        """
        ...
