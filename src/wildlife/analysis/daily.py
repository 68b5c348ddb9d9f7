"""
Daily distance summary.

Each segment is attributed to the UTC calendar date of its destination fix.
A day that only holds the first fix of a Track still gets a record (0.0 km).
Days without fixes get no record (no gap filling).
"""
from collections import defaultdict
from dataclasses import dataclass
from datetime import date
from typing import Dict, Iterable, List, Tuple

from wildlife.analysis.movement import MovementSegment


@dataclass(frozen=True)
class DailyDistance:
    animal_id: str
    date: date
    total_km: float


def daily_distance(segments: Iterable[MovementSegment]) -> List[DailyDistance]:
    """
    Sum distance_m / 1000 per (animal_id, date).

    Segments with an undefined distance contribute 0.

    Returns:
        DailyDistance records ordered by (animal_id, date).
    """
    totals: Dict[Tuple[str, date], float] = defaultdict(float)
    for seg in segments:
        key = (seg.animal_id, seg.timestamp.date())
        totals[key] += (seg.distance_m or 0.0) / 1000.0

    return [
        DailyDistance(animal_id=animal_id, date=day, total_km=totals[(animal_id, day)])
        for animal_id, day in sorted(totals)
    ]
