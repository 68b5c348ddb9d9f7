"""Tests for the SQLModel result tables."""
from datetime import date, datetime, timezone

from sqlmodel import select

from wildlife.models.results import DailyDistanceRecord, MovementSegmentRecord
from wildlife.models.run import PipelineRun


class TestPipelineRun:
    def test_defaults(self, test_session):
        run = PipelineRun()
        test_session.add(run)
        test_session.commit()
        test_session.refresh(run)

        assert run.id is not None
        assert run.status == "running"
        assert run.started_at is not None
        assert run.finished_at is None
        assert run.animals_processed == 0


class TestResultRecords:
    def test_segment_with_undefined_metrics(self, test_session):
        run = PipelineRun(source="x.csv")
        test_session.add(run)
        test_session.commit()
        test_session.refresh(run)

        test_session.add(MovementSegmentRecord(
            run_id=run.id,
            animal_id="stork",
            timestamp=datetime(2024, 5, 1, tzinfo=timezone.utc),
            latitude=50.0,
            longitude=10.0,
        ))
        test_session.commit()

        row = test_session.exec(select(MovementSegmentRecord)).one()
        assert row.distance_m is None
        assert row.time_diff_h is None
        assert row.speed_kmh is None

    def test_daily_distance_roundtrip(self, test_session):
        run = PipelineRun()
        test_session.add(run)
        test_session.commit()
        test_session.refresh(run)

        test_session.add(DailyDistanceRecord(
            run_id=run.id, animal_id="stork", date=date(2024, 5, 1), total_km=12.5,
        ))
        test_session.commit()

        row = test_session.exec(
            select(DailyDistanceRecord).where(DailyDistanceRecord.animal_id == "stork")
        ).one()
        assert row.date == date(2024, 5, 1)
        assert row.total_km == 12.5
