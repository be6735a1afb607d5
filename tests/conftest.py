"""Shared pytest fixtures for all test suites."""

import random
from collections.abc import Callable, Generator
from datetime import date
from typing import Any

import pytest
from sqlalchemy import create_engine
from sqlalchemy.orm import Session
from sqlalchemy.pool import StaticPool

from planora.config import Settings
from planora.db.engine import create_schema, create_session_factory
from planora.llm.client import LocalFallbackClient
from planora.models.common import Pace
from planora.models.generation import TripPlanRequest
from planora.models.trip import Activity


@pytest.fixture
def settings() -> Settings:
    """Settings with no external generation service configured."""
    return Settings(openrouter_api_key=None, fallback_rng_seed=7, database_url="sqlite:///:memory:")


@pytest.fixture
def local_client(settings: Settings) -> LocalFallbackClient:
    """Seeded local fallback client."""
    return LocalFallbackClient(rng=random.Random(7), settings=settings)


@pytest.fixture
def trip_request() -> TripPlanRequest:
    """Single-destination 3-day trip."""
    return TripPlanRequest(
        destination="Jaipur",
        start_date=date(2025, 3, 1),
        end_date=date(2025, 3, 3),
        budget=100000,
        pace=Pace.balanced,
        interests=["history", "food"],
    )


@pytest.fixture
def make_activity() -> Callable[..., Activity]:
    """Factory for activities with sensible defaults."""

    def _make(
        activity_id: str = "a1",
        time: str | None = "09:00",
        duration: int = 60,
        name: str | None = None,
        **fields: Any,
    ) -> Activity:
        return Activity(
            id=activity_id,
            time=time,
            name=name if name is not None else f"Activity {activity_id}",
            duration_minutes=duration,
            **fields,
        )

    return _make


@pytest.fixture
def sql_session() -> Generator[Session, None, None]:
    """Session on a fresh in-memory SQLite database."""
    engine = create_engine(
        "sqlite://", connect_args={"check_same_thread": False}, poolclass=StaticPool
    )
    create_schema(engine)
    session_factory = create_session_factory(engine)

    with session_factory() as session:
        yield session

    engine.dispose()
