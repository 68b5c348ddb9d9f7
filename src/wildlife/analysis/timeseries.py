"""
Hourly aggregation of a Track.

HourlyPosition is the input of the forecast engine: the mean latitude and
longitude of all fixes falling within the same UTC clock hour. Hours without
fixes are simply absent; hourly_grid() puts them back as NaN when the
forecast should see the gaps.
"""
from dataclasses import dataclass
from datetime import datetime
from typing import List, Sequence

import pandas as pd

from wildlife.analysis.fixes import Fix


@dataclass(frozen=True)
class HourlyPosition:
    hour: datetime        # start of the UTC clock hour
    latitude: float       # mean of the hour's fixes
    longitude: float
    fix_count: int


def hourly_positions(track: Sequence[Fix]) -> List[HourlyPosition]:
    """
    Mean position per clock hour, ascending by hour.

    Args:
        track: Fixes of one animal (any order).

    Returns:
        One HourlyPosition per hour that holds at least one fix.
    """
    if not track:
        return []

    frame = pd.DataFrame({
        "timestamp": pd.to_datetime([f.timestamp for f in track], utc=True),
        "latitude": [f.latitude for f in track],
        "longitude": [f.longitude for f in track],
    })
    grouped = (
        frame.groupby(frame["timestamp"].dt.floor("h"))
        .agg(
            latitude=("latitude", "mean"),
            longitude=("longitude", "mean"),
            fix_count=("latitude", "size"),
        )
        .sort_index()
    )
    return [
        HourlyPosition(
            hour=hour.to_pydatetime(),
            latitude=float(row.latitude),
            longitude=float(row.longitude),
            fix_count=int(row.fix_count),
        )
        for hour, row in grouped.iterrows()
    ]


def hourly_grid(hourly: Sequence[HourlyPosition]) -> pd.DataFrame:
    """
    Reindex hourly positions onto a contiguous hourly grid.

    Returns:
        DataFrame indexed by hour (UTC) with latitude / longitude columns;
        hours without fixes hold NaN. Empty frame for empty input.
    """
    if not hourly:
        return pd.DataFrame(columns=["latitude", "longitude"], dtype=float)

    frame = pd.DataFrame(
        {
            "latitude": [h.latitude for h in hourly],
            "longitude": [h.longitude for h in hourly],
        },
        index=pd.DatetimeIndex(pd.to_datetime([h.hour for h in hourly], utc=True), name="hour"),
    )
    return frame.sort_index().asfreq("h")
