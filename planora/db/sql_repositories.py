"""SQL implementation of the trip repository."""

from sqlalchemy import select
from sqlalchemy.orm import Session

from planora.db.models import TripRecord
from planora.db.repositories import TripSummary
from planora.models.trip import Trip


class SqlTripRepository:
    """SQL implementation of TripRepository."""

    def __init__(self, session: Session) -> None:
        self._session = session

    def save_trip(self, trip: Trip) -> str:
        """Insert or replace a trip."""
        record = self._session.get(TripRecord, trip.id)
        if record is None:
            record = TripRecord(trip_id=trip.id, created_at=trip.created_at)
            self._session.add(record)

        record.destination_summary = trip.destination_summary
        record.start_date = trip.start_date
        record.end_date = trip.end_date
        record.trip_type = trip.trip_type.value
        record.total_cost = trip.total_cost
        record.payload = trip.model_dump(mode="json")

        self._session.commit()
        return trip.id

    def get_trip(self, trip_id: str) -> Trip | None:
        """Get trip by ID."""
        record = self._session.get(TripRecord, trip_id)
        if record is None:
            return None
        return Trip.model_validate(record.payload)

    def list_trips(self, limit: int = 10) -> list[TripSummary]:
        """List trips, newest first."""
        records = self._session.scalars(
            select(TripRecord).order_by(TripRecord.created_at.desc()).limit(limit)
        ).all()

        return [
            TripSummary(
                trip_id=r.trip_id,
                destination_summary=r.destination_summary,
                start_date=r.start_date,
                end_date=r.end_date,
                trip_type=r.trip_type,
                total_cost=r.total_cost,
                created_at=r.created_at,
            )
            for r in records
        ]

    def delete_trip(self, trip_id: str) -> bool:
        """Delete a trip."""
        record = self._session.get(TripRecord, trip_id)
        if record is None:
            return False

        self._session.delete(record)
        self._session.commit()
        return True
