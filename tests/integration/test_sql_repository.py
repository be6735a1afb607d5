"""Integration tests for the SQL trip repository on SQLite."""

from datetime import date

import pytest
from sqlalchemy.orm import Session

from planora.config import Settings
from planora.db.engine import create_engine_from_settings
from planora.db.sql_repositories import SqlTripRepository
from planora.models.trip import DaySlot, Trip


@pytest.fixture
def trip(make_activity) -> Trip:
    return Trip(
        id="trip-1",
        destination_summary="Jaipur",
        start_date=date(2025, 3, 1),
        end_date=date(2025, 3, 2),
        budget=5000,
        interests=["history"],
        days=[
            DaySlot(
                day_number=1,
                date=date(2025, 3, 1),
                activities=[make_activity("d1-a1", "09:00", 120, cost=300, type="fort")],
            ),
            DaySlot(
                day_number=2,
                date=date(2025, 3, 2),
                activities=[make_activity("d2-a1", "10:30", 90, cost=150)],
            ),
        ],
    )


def test_save_and_get_round_trip(sql_session: Session, trip: Trip) -> None:
    """Test a saved trip loads back equal to the original."""
    repo = SqlTripRepository(sql_session)

    assert repo.save_trip(trip) == "trip-1"
    loaded = repo.get_trip("trip-1")

    assert loaded is not None
    assert loaded.model_dump() == trip.model_dump()


def test_save_is_an_upsert(sql_session: Session, trip: Trip) -> None:
    """Test saving the same trip again replaces it."""
    repo = SqlTripRepository(sql_session)
    repo.save_trip(trip)

    changed = trip.model_copy(update={"destination_summary": "Pink City"})
    repo.save_trip(changed)

    summaries = repo.list_trips()
    assert len(summaries) == 1
    assert summaries[0].destination_summary == "Pink City"
    assert summaries[0].total_cost == 450


def test_get_missing_and_delete(sql_session: Session, trip: Trip) -> None:
    """Test missing lookups return None and delete reports whether a row went away."""
    repo = SqlTripRepository(sql_session)
    repo.save_trip(trip)

    assert repo.get_trip("nope") is None
    assert repo.delete_trip("trip-1") is True
    assert repo.delete_trip("trip-1") is False
    assert repo.list_trips() == []


def test_engine_requires_database_url() -> None:
    """Test engine creation refuses an unset database URL."""
    with pytest.raises(ValueError, match="DATABASE_URL"):
        create_engine_from_settings(Settings(database_url=None))
