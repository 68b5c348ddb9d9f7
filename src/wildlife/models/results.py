"""
Result tables: one flat row per emitted record.

Every row carries the run_id of the PipelineRun that produced it, so several
runs can share one database.
"""
from datetime import date, datetime
from typing import Optional

from sqlmodel import Field, SQLModel


class MovementSegmentRecord(SQLModel, table=True):
    """One row per fix with its step metrics (first fix of a track: all None)."""

    id: Optional[int] = Field(default=None, primary_key=True)
    run_id: int = Field(foreign_key="pipelinerun.id", index=True)
    animal_id: str = Field(index=True)
    timestamp: datetime
    latitude: float
    longitude: float
    distance_m: Optional[float] = None
    time_diff_h: Optional[float] = None
    speed_kmh: Optional[float] = None


class DailyDistanceRecord(SQLModel, table=True):
    id: Optional[int] = Field(default=None, primary_key=True)
    run_id: int = Field(foreign_key="pipelinerun.id", index=True)
    animal_id: str = Field(index=True)
    date: date
    total_km: float


class ClusterAssignmentRecord(SQLModel, table=True):
    """Habitat zone of one fix of a clustered animal."""

    id: Optional[int] = Field(default=None, primary_key=True)
    run_id: int = Field(foreign_key="pipelinerun.id", index=True)
    animal_id: str = Field(index=True)
    fix_index: int
    timestamp: datetime
    longitude: float
    latitude: float
    cluster_id: int


class ClusterCentroidRecord(SQLModel, table=True):
    id: Optional[int] = Field(default=None, primary_key=True)
    run_id: int = Field(foreign_key="pipelinerun.id", index=True)
    animal_id: str = Field(index=True)
    cluster_id: int
    longitude: float
    latitude: float
    size: int


class ForecastPointRecord(SQLModel, table=True):
    id: Optional[int] = Field(default=None, primary_key=True)
    run_id: int = Field(foreign_key="pipelinerun.id", index=True)
    animal_id: str = Field(index=True)
    hour: datetime
    pred_latitude: float
    pred_longitude: float


class AnimalErrorRecord(SQLModel, table=True):
    """A per-animal failure (e.g. too little history to forecast)."""

    id: Optional[int] = Field(default=None, primary_key=True)
    run_id: int = Field(foreign_key="pipelinerun.id", index=True)
    animal_id: str = Field(index=True)
    stage: str  # "metrics", "clustering", "forecast"
    error_type: str
    message: str
