"""
ResultStore: persists a PipelineReport to the database. Also CSV export.

Flow for saving one report:
  1. Create PipelineRun (status="running")
  2. Insert segment, daily distance, cluster, forecast and error rows
  3. Update PipelineRun (status="success")

On any exception: update PipelineRun (status="error") and re-raise.

The CSV export writes the same records as flat files under fixed names
(wildlife_cleaned.csv, daily_distance_summary.csv, ...).
"""
import logging
from dataclasses import asdict
from datetime import datetime, timezone
from pathlib import Path
from typing import Dict, List, Optional, Union

import pandas as pd
from sqlmodel import Session

from wildlife.analysis.pipeline import PipelineReport
from wildlife.models.results import (
    AnimalErrorRecord,
    ClusterAssignmentRecord,
    ClusterCentroidRecord,
    DailyDistanceRecord,
    ForecastPointRecord,
    MovementSegmentRecord,
)
from wildlife.models.run import PipelineRun

logger = logging.getLogger(__name__)

SEGMENTS_CSV = "wildlife_cleaned.csv"
DAILY_CSV = "daily_distance_summary.csv"
CLUSTERS_CSV = "cluster_assignments.csv"
FORECAST_CSV = "forecast_results.csv"


class ResultStore:
    """Writes PipelineReports to a SQLModel database."""

    def __init__(self, engine):
        """
        Args:
            engine: SQLAlchemy engine (see wildlife.db.engine.get_engine).
        """
        self.engine = engine

    def save_report(self, report: PipelineReport, source: Optional[str] = None) -> PipelineRun:
        """
        Persist every record of a report under a new PipelineRun.

        Returns:
            The finished PipelineRun row.
        """
        run = self._create_run(source)

        try:
            with Session(self.engine) as s:
                s.add_all(self._segment_rows(run.id, report))
                s.add_all(self._daily_rows(run.id, report))
                s.add_all(self._cluster_rows(run.id, report))
                s.add_all(self._forecast_rows(run.id, report))
                s.add_all(self._error_rows(run.id, report))
                s.commit()
        except Exception as exc:
            self._finish_run(run, status="error", error_message=str(exc))
            raise

        animals = len({seg.animal_id for seg in report.segments})
        run = self._finish_run(run, status="success", animals_processed=animals)
        logger.info("Saved pipeline run %d (%d animals)", run.id, animals)
        return run

    # ─── Internal helpers ─────────────────────────────────────────────────────

    def _create_run(self, source: Optional[str]) -> PipelineRun:
        run = PipelineRun(status="running", source=source)
        with Session(self.engine) as s:
            s.add(run)
            s.commit()
            s.refresh(run)
        return run

    def _finish_run(
        self,
        run: PipelineRun,
        *,
        status: str,
        animals_processed: int = 0,
        error_message: Optional[str] = None,
    ) -> PipelineRun:
        with Session(self.engine) as s:
            db_run = s.get(PipelineRun, run.id)
            db_run.status = status
            db_run.finished_at = datetime.now(timezone.utc)
            db_run.animals_processed = animals_processed
            db_run.error_message = error_message
            s.add(db_run)
            s.commit()
            s.refresh(db_run)
            return db_run

    @staticmethod
    def _segment_rows(run_id: int, report: PipelineReport) -> List[MovementSegmentRecord]:
        return [MovementSegmentRecord(run_id=run_id, **asdict(seg)) for seg in report.segments]

    @staticmethod
    def _daily_rows(run_id: int, report: PipelineReport) -> List[DailyDistanceRecord]:
        return [DailyDistanceRecord(run_id=run_id, **asdict(d)) for d in report.daily_distances]

    @staticmethod
    def _cluster_rows(run_id: int, report: PipelineReport) -> list:
        rows: list = []
        for animal_id in sorted(report.clusters):
            rows.extend(
                ClusterAssignmentRecord(run_id=run_id, animal_id=animal_id, **row)
                for row in cluster_rows(report, animal_id)
            )
            result = report.clusters[animal_id]
            rows.extend(
                ClusterCentroidRecord(
                    run_id=run_id,
                    animal_id=animal_id,
                    cluster_id=cid,
                    longitude=lon,
                    latitude=lat,
                    size=result.sizes.get(cid, 0),
                )
                for cid, (lon, lat) in sorted(result.centroids.items())
            )
        return rows

    @staticmethod
    def _forecast_rows(run_id: int, report: PipelineReport) -> List[ForecastPointRecord]:
        return [
            ForecastPointRecord(run_id=run_id, animal_id=animal_id, **asdict(p))
            for animal_id in sorted(report.forecasts)
            for p in report.forecasts[animal_id].points
        ]

    @staticmethod
    def _error_rows(run_id: int, report: PipelineReport) -> List[AnimalErrorRecord]:
        return [
            AnimalErrorRecord(
                run_id=run_id,
                animal_id=animal_id,
                stage=stage,
                error_type=type(exc).__name__,
                message=str(exc),
            )
            for stage, animal_id, exc in report.errors()
        ]


# ─── CSV export ───────────────────────────────────────────────────────────────

def cluster_rows(report: PipelineReport, animal_id: str) -> List[Dict]:
    """Assignment rows joined with the clustered fixes' time and position."""
    result = report.clusters[animal_id]
    return [
        {
            "fix_index": a.fix_index,
            "timestamp": result.timestamps[a.fix_index],
            "longitude": result.points[a.fix_index][0],
            "latitude": result.points[a.fix_index][1],
            "cluster_id": a.cluster_id,
        }
        for a in result.assignments
    ]


def export_csv(report: PipelineReport, out_dir: Union[str, Path]) -> Dict[str, Path]:
    """
    Write the report's tabular outputs as CSV files.

    Returns:
        Mapping of file name to written path.
    """
    out = Path(out_dir)
    out.mkdir(parents=True, exist_ok=True)

    frames = {
        SEGMENTS_CSV: pd.DataFrame(
            [asdict(s) for s in report.segments],
            columns=["animal_id", "timestamp", "latitude", "longitude",
                     "distance_m", "time_diff_h", "speed_kmh"],
        ),
        DAILY_CSV: pd.DataFrame(
            [asdict(d) for d in report.daily_distances],
            columns=["animal_id", "date", "total_km"],
        ),
        CLUSTERS_CSV: pd.DataFrame(
            [
                {"animal_id": animal_id, **row}
                for animal_id in sorted(report.clusters)
                for row in cluster_rows(report, animal_id)
            ],
            columns=["animal_id", "fix_index", "timestamp", "longitude", "latitude", "cluster_id"],
        ),
        FORECAST_CSV: pd.DataFrame(
            [
                {"animal_id": animal_id, **asdict(p)}
                for animal_id in sorted(report.forecasts)
                for p in report.forecasts[animal_id].points
            ],
            columns=["animal_id", "hour", "pred_latitude", "pred_longitude"],
        ),
    }

    written: Dict[str, Path] = {}
    for name, frame in frames.items():
        path = out / name
        frame.to_csv(path, index=False)
        written[name] = path
    logger.info("Wrote %d CSV files to %s", len(written), out)
    return written
