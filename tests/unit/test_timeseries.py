"""Tests for hourly aggregation and the contiguous hourly grid."""
from datetime import datetime, timedelta, timezone

import numpy as np
import pytest

from wildlife.analysis.fixes import Fix
from wildlife.analysis.timeseries import HourlyPosition, hourly_grid, hourly_positions

T0 = datetime(2024, 5, 1, 10, 0, tzinfo=timezone.utc)


class TestHourlyPositions:
    def test_mean_per_clock_hour(self):
        track = [
            Fix("a", T0 + timedelta(minutes=5), 50.0, 10.0),
            Fix("a", T0 + timedelta(minutes=55), 50.2, 10.4),
            Fix("a", T0 + timedelta(minutes=65), 51.0, 11.0),
        ]
        result = hourly_positions(track)

        assert len(result) == 2
        assert result[0].hour == T0
        assert result[0].latitude == pytest.approx(50.1)
        assert result[0].longitude == pytest.approx(10.2)
        assert result[0].fix_count == 2
        assert result[1].hour == T0 + timedelta(hours=1)
        assert result[1].fix_count == 1

    def test_hour_is_floor_not_round(self):
        result = hourly_positions([Fix("a", T0 + timedelta(minutes=59, seconds=59), 50.0, 10.0)])
        assert result[0].hour == T0

    def test_ascending_regardless_of_input_order(self):
        track = [
            Fix("a", T0 + timedelta(hours=3), 50.0, 10.0),
            Fix("a", T0, 50.0, 10.0),
            Fix("a", T0 + timedelta(hours=1), 50.0, 10.0),
        ]
        hours = [h.hour for h in hourly_positions(track)]
        assert hours == sorted(hours)

    def test_empty_hours_are_absent(self):
        track = [Fix("a", T0, 50.0, 10.0), Fix("a", T0 + timedelta(hours=5), 50.0, 10.0)]
        assert len(hourly_positions(track)) == 2

    def test_hours_are_utc(self):
        result = hourly_positions([Fix("a", T0, 50.0, 10.0)])
        assert result[0].hour.utcoffset() == timedelta(0)

    def test_empty_track(self):
        assert hourly_positions([]) == []


class TestHourlyGrid:
    def test_gaps_are_nan(self):
        hourly = [
            HourlyPosition(T0, 50.0, 10.0, 1),
            HourlyPosition(T0 + timedelta(hours=3), 50.3, 10.3, 2),
        ]
        grid = hourly_grid(hourly)

        assert len(grid) == 4
        assert list(grid.columns) == ["latitude", "longitude"]
        assert np.isnan(grid["latitude"].iloc[1])
        assert np.isnan(grid["longitude"].iloc[2])
        assert grid["latitude"].iloc[3] == pytest.approx(50.3)

    def test_contiguous_input_unchanged(self):
        hourly = [HourlyPosition(T0 + timedelta(hours=h), 50.0 + h, 10.0, 1) for h in range(5)]
        grid = hourly_grid(hourly)
        assert len(grid) == 5
        assert not grid.isna().any().any()

    def test_empty(self):
        assert hourly_grid([]).empty
