"""Shared test fixtures."""
from datetime import datetime, timedelta, timezone
from typing import Generator, List

import pytest
from sqlalchemy.pool import StaticPool
from sqlmodel import Session, SQLModel, create_engine

# Import all models so SQLModel.metadata knows about them
from wildlife.models.run import PipelineRun  # noqa: F401
from wildlife.models.results import (  # noqa: F401
    AnimalErrorRecord,
    ClusterAssignmentRecord,
    ClusterCentroidRecord,
    DailyDistanceRecord,
    ForecastPointRecord,
    MovementSegmentRecord,
)
from wildlife.analysis.fixes import Fix, FixStore
from wildlife.config import Settings

T0 = datetime(2024, 5, 1, 0, 0, tzinfo=timezone.utc)


@pytest.fixture(name="engine")
def engine_fixture():
    """In-memory SQLite engine. Tables recreated fresh for each test."""
    engine = create_engine(
        "sqlite:///:memory:",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    SQLModel.metadata.create_all(engine)
    yield engine
    SQLModel.metadata.drop_all(engine)


@pytest.fixture(name="test_session")
def test_session_fixture(engine) -> Generator[Session, None, None]:
    """Provides a DB session connected to in-memory SQLite."""
    with Session(engine) as session:
        yield session


@pytest.fixture(name="fast_settings")
def fast_settings_fixture() -> Settings:
    """Settings with a small ARIMA search so pipeline tests stay quick."""
    return Settings(
        _env_file=None,
        forecast_max_p=2,
        forecast_max_q=2,
        forecast_max_order=2,
        min_history_points=10,
        cluster_restarts=5,
    )


def wandering_track(
    animal_id: str,
    hours: int = 48,
    fixes_per_hour: int = 2,
    seed: int = 0,
) -> List[Fix]:
    """Noisy AR(1)-style wander around (10.0, 50.0), fixes evenly spaced."""
    import numpy as np

    rng = np.random.default_rng(seed)
    step = timedelta(minutes=60 // fixes_per_hour)
    lat, lon = 50.0, 10.0
    fixes = []
    for i in range(hours * fixes_per_hour):
        lat = 50.0 + 0.6 * (lat - 50.0) + rng.normal(0, 0.01)
        lon = 10.0 + 0.6 * (lon - 10.0) + rng.normal(0, 0.01)
        fixes.append(Fix(animal_id, T0 + i * step, float(lat), float(lon)))
    return fixes


@pytest.fixture(name="three_animal_store")
def three_animal_store_fixture() -> FixStore:
    """
    Three animals:
      - "alpha": 48 h of fixes, enough history to forecast
      - "bravo": 36 h of fixes
      - "tiny":  4 hourly points only
    """
    tiny = [
        Fix("tiny", T0 + timedelta(hours=h), 51.0 + 0.01 * h, 11.0 - 0.01 * h)
        for h in range(4)
    ]
    return FixStore.from_fixes(
        wandering_track("alpha", hours=48, seed=1)
        + wandering_track("bravo", hours=36, seed=2)
        + tiny
    )


@pytest.fixture(name="make_wandering_track")
def make_wandering_track_fixture():
    """Factory fixture exposing wandering_track() to test modules."""
    return wandering_track
