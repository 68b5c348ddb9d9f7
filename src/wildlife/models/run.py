"""Pipeline run audit log model."""
from datetime import datetime, timezone
from typing import Optional

from sqlmodel import Field, SQLModel


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class PipelineRun(SQLModel, table=True):
    """Records each persisted pipeline run for audit and debugging."""

    id: Optional[int] = Field(default=None, primary_key=True)
    started_at: datetime = Field(default_factory=_utcnow)
    finished_at: Optional[datetime] = None
    status: str = "running"  # "running", "success", "error"
    source: Optional[str] = None  # input file the fixes came from
    animals_processed: int = 0
    error_message: Optional[str] = None
