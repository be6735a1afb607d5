"""In-memory implementation of the trip repository."""

from planora.db.repositories import TripSummary
from planora.models.trip import Trip


class InMemoryTripRepository:
    """In-memory implementation of TripRepository."""

    def __init__(self) -> None:
        self._trips: dict[str, Trip] = {}

    def save_trip(self, trip: Trip) -> str:
        """Insert or replace a trip."""
        self._trips[trip.id] = trip.model_copy(deep=True)
        return trip.id

    def get_trip(self, trip_id: str) -> Trip | None:
        """Get trip by ID."""
        trip = self._trips.get(trip_id)
        return trip.model_copy(deep=True) if trip is not None else None

    def list_trips(self, limit: int = 10) -> list[TripSummary]:
        """List trips, newest first."""
        trips = sorted(self._trips.values(), key=lambda t: t.created_at, reverse=True)
        return [TripSummary.from_trip(trip) for trip in trips[:limit]]

    def delete_trip(self, trip_id: str) -> bool:
        """Delete a trip."""
        return self._trips.pop(trip_id, None) is not None
