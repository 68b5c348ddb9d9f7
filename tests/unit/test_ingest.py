"""Tests for the Movebank CSV reader."""
from datetime import datetime, timezone

import pandas as pd
import pytest

from wildlife.errors import MalformedFixError
from wildlife.ingest.movebank import clean_frame, load_fixes_csv, normalize_columns

MOVEBANK_CSV = """event-id,timestamp,location-long,location-lat,individual-local-identifier
1,2024-05-01 06:00:00.000,8.90,47.75,101
2,2024-05-01 06:30:00.000,8.91,47.76,101
3,2024-05-01 07:00:00.000,,47.77,101
4,2024-05-01 06:10:00.000,9.10,47.60,Stork-B
5,not-a-date,9.11,47.61,Stork-B
"""


def write(tmp_path, text, name="fixes.csv"):
    path = tmp_path / name
    path.write_text(text)
    return path


class TestNormalizeColumns:
    def test_movebank_names(self):
        frame = pd.DataFrame({
            "individual-local-identifier": ["a"],
            "location-lat": [1.0],
            "location-long": [2.0],
            "timestamp": ["2024-05-01"],
            "event-id": [1],
        })
        out = normalize_columns(frame)
        assert list(out.columns) == ["animal_id", "latitude", "longitude", "timestamp"]

    def test_r_dotted_names(self):
        frame = pd.DataFrame({
            "individual.local.identifier": ["a"],
            "location.lat": [1.0],
            "location.long": [2.0],
            "timestamp": ["2024-05-01"],
        })
        assert list(normalize_columns(frame).columns) == [
            "animal_id", "latitude", "longitude", "timestamp",
        ]

    def test_missing_column(self):
        frame = pd.DataFrame({"animal_id": ["a"], "latitude": [1.0], "timestamp": ["x"]})
        with pytest.raises(MalformedFixError, match="longitude"):
            normalize_columns(frame)


class TestCleanFrame:
    def test_drops_incomplete_rows(self):
        frame = pd.DataFrame({
            "animal_id": ["a", "a", None],
            "latitude": [1.0, "oops", 2.0],
            "longitude": [2.0, 2.0, 2.0],
            "timestamp": ["2024-05-01T00:00:00Z", "2024-05-01T01:00:00Z", "2024-05-01T02:00:00Z"],
        })
        out = clean_frame(frame)
        assert len(out) == 1
        assert str(out["timestamp"].dt.tz) == "UTC"


class TestLoadFixesCsv:
    def test_movebank_export(self, tmp_path):
        store = load_fixes_csv(write(tmp_path, MOVEBANK_CSV))

        assert store.animal_ids() == ["101", "Stork-B"]
        assert len(store) == 3
        track = store.track("101")
        assert track[0].timestamp == datetime(2024, 5, 1, 6, 0, tzinfo=timezone.utc)
        assert track[0].longitude == pytest.approx(8.90)

    def test_out_of_range_dropped_by_store(self, tmp_path):
        text = (
            "animal_id,timestamp,latitude,longitude\n"
            "a,2024-05-01T00:00:00Z,50.0,10.0\n"
            "a,2024-05-01T01:00:00Z,95.0,10.0\n"
        )
        store = load_fixes_csv(write(tmp_path, text))
        assert len(store) == 1
        assert store.dropped == 1

    def test_strict_rejects_out_of_range(self, tmp_path):
        text = (
            "animal_id,timestamp,latitude,longitude\n"
            "a,2024-05-01T00:00:00Z,50.0,190.0\n"
        )
        with pytest.raises(MalformedFixError):
            load_fixes_csv(write(tmp_path, text), strict=True)

    def test_offset_timestamps_converted_to_utc(self, tmp_path):
        text = (
            "animal_id,timestamp,latitude,longitude\n"
            "a,2024-05-01T08:00:00+02:00,50.0,10.0\n"
        )
        store = load_fixes_csv(write(tmp_path, text))
        assert store.track("a")[0].timestamp == datetime(2024, 5, 1, 6, 0, tzinfo=timezone.utc)
