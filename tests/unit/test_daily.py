"""Tests for the daily distance aggregator."""
from datetime import date, datetime, timedelta, timezone

import pytest

from wildlife.analysis.daily import DailyDistance, daily_distance
from wildlife.analysis.fixes import Fix
from wildlife.analysis.geo import haversine_m
from wildlife.analysis.movement import MovementSegment, build_segments


def seg(animal_id, ts, distance_m) -> MovementSegment:
    return MovementSegment(
        animal_id=animal_id, timestamp=ts, latitude=0.0, longitude=0.0, distance_m=distance_m,
    )


class TestDailyDistance:
    def test_three_fixes_spanning_two_days(self):
        fixes = [
            Fix("a", datetime(2024, 5, 1, 22, 0, tzinfo=timezone.utc), 50.00, 10.0),
            Fix("a", datetime(2024, 5, 1, 23, 0, tzinfo=timezone.utc), 50.01, 10.0),
            Fix("a", datetime(2024, 5, 2, 1, 0, tzinfo=timezone.utc), 50.03, 10.0),
        ]
        result = daily_distance(build_segments(fixes))

        d1 = haversine_m(10.0, 50.00, 10.0, 50.01)
        d2 = haversine_m(10.0, 50.01, 10.0, 50.03)
        assert [r.date for r in result] == [date(2024, 5, 1), date(2024, 5, 2)]
        assert result[0].total_km == pytest.approx(d1 / 1000.0)
        assert result[1].total_km == pytest.approx(d2 / 1000.0)

    def test_undefined_distance_counts_as_zero(self):
        ts = datetime(2024, 5, 1, 6, 0, tzinfo=timezone.utc)
        result = daily_distance([seg("a", ts, None)])
        assert result == [DailyDistance("a", date(2024, 5, 1), 0.0)]

    def test_sums_multiple_segments_same_day(self):
        ts = datetime(2024, 5, 1, 6, 0, tzinfo=timezone.utc)
        result = daily_distance([
            seg("a", ts, None),
            seg("a", ts + timedelta(hours=1), 1500.0),
            seg("a", ts + timedelta(hours=2), 500.0),
        ])
        assert len(result) == 1
        assert result[0].total_km == pytest.approx(2.0)

    def test_missing_days_produce_no_record(self):
        ts = datetime(2024, 5, 1, 6, 0, tzinfo=timezone.utc)
        result = daily_distance([seg("a", ts, 1000.0), seg("a", ts + timedelta(days=3), 1000.0)])
        assert [r.date for r in result] == [date(2024, 5, 1), date(2024, 5, 4)]

    def test_ordered_by_animal_then_date(self):
        ts = datetime(2024, 5, 1, 6, 0, tzinfo=timezone.utc)
        result = daily_distance([
            seg("b", ts, 1000.0),
            seg("a", ts + timedelta(days=1), 1000.0),
            seg("a", ts, 1000.0),
        ])
        assert [(r.animal_id, r.date) for r in result] == [
            ("a", date(2024, 5, 1)),
            ("a", date(2024, 5, 2)),
            ("b", date(2024, 5, 1)),
        ]

    def test_totals_never_negative(self):
        ts = datetime(2024, 5, 1, 6, 0, tzinfo=timezone.utc)
        result = daily_distance([seg("a", ts, 0.0), seg("a", ts, None)])
        assert all(r.total_km >= 0 for r in result)

    def test_empty(self):
        assert daily_distance([]) == []
