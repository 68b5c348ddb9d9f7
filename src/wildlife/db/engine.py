"""SQLModel engine singleton."""
from typing import Optional

from sqlmodel import SQLModel, create_engine

from wildlife.config import get_settings

_engine = None


def get_engine(database_url: Optional[str] = None):
    """
    Return an engine with all result tables created.

    With no argument the module-level engine for settings.database_url is
    created on first call and reused; an explicit URL always gets a new engine.
    """
    global _engine
    if database_url is None and _engine is not None:
        return _engine

    url = database_url or get_settings().database_url
    connect_args = {"check_same_thread": False} if url.startswith("sqlite") else {}
    engine = create_engine(url, connect_args=connect_args)
    # Import all models so metadata is populated before create_all
    from wildlife.models.run import PipelineRun  # noqa
    from wildlife.models.results import (  # noqa
        AnimalErrorRecord,
        ClusterAssignmentRecord,
        ClusterCentroidRecord,
        DailyDistanceRecord,
        ForecastPointRecord,
        MovementSegmentRecord,
    )
    SQLModel.metadata.create_all(engine)

    if database_url is None:
        _engine = engine
    return engine
