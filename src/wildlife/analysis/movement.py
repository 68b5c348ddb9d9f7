"""
Movement metrics: per-fix distance, time step and speed.

For every fix of a Track we emit one MovementSegment describing the step
that ARRIVED at that fix from the previous one:
  - distance_m   haversine distance from the previous fix
  - time_diff_h  signed hours since the previous fix
  - speed_kmh    distance_m / 1000 / time_diff_h

The first fix of a Track has no predecessor, so all three are None.

Speed is None (the segment is kept) when:
  - time_diff_h is zero or negative (duplicate / out-of-order timestamps)
  - the speed exceeds the implausibility threshold (GPS jump, default 80 km/h)

Pure and per-Track: no state is shared between animals.
"""
import logging
from dataclasses import dataclass
from datetime import datetime
from typing import Dict, Iterable, List, Optional, Sequence

from wildlife.analysis.fixes import Fix, validate_fix
from wildlife.analysis.geo import haversine_m
from wildlife.errors import MalformedFixError, NonPositiveTimeDeltaError

logger = logging.getLogger(__name__)

SPEED_THRESHOLD_KMH_DEFAULT = 80.0


@dataclass(frozen=True)
class MovementSegment:
    """Step metrics for one fix (the destination of the step)."""

    animal_id: str
    timestamp: datetime
    latitude: float
    longitude: float
    distance_m: Optional[float] = None    # None for the first fix of a Track
    time_diff_h: Optional[float] = None   # None for the first fix; may be <= 0
    speed_kmh: Optional[float] = None     # None when undefined or implausible


def time_diff_hours(earlier: datetime, later: datetime) -> float:
    """
    Hours between two timestamps.

    Raises:
        NonPositiveTimeDeltaError: if later is not strictly after earlier.
    """
    hours = (later - earlier).total_seconds() / 3600.0
    if hours <= 0:
        raise NonPositiveTimeDeltaError(
            f"non-positive time delta ({hours:.6f} h) between {earlier} and {later}"
        )
    return hours


def build_segments(
    track: Sequence[Fix],
    speed_threshold_kmh: float = SPEED_THRESHOLD_KMH_DEFAULT,
) -> List[MovementSegment]:
    """
    Compute one MovementSegment per fix of a single animal's Track.

    Args:
        track: Fixes of ONE animal, ascending by timestamp.
        speed_threshold_kmh: Speeds above this are nulled as GPS outliers.

    Returns:
        List of MovementSegment, same length and order as track.

    Raises:
        MalformedFixError: a fix fails validation or belongs to another animal.
    """
    if not track:
        return []

    fixes = [validate_fix(f) for f in track]
    animal_id = fixes[0].animal_id
    if any(f.animal_id != animal_id for f in fixes):
        raise MalformedFixError(f"track for {animal_id!r} contains fixes of other animals")

    segments: List[MovementSegment] = [
        MovementSegment(
            animal_id=animal_id,
            timestamp=fixes[0].timestamp,
            latitude=fixes[0].latitude,
            longitude=fixes[0].longitude,
        )
    ]

    for prev, cur in zip(fixes, fixes[1:]):
        distance_m = haversine_m(prev.longitude, prev.latitude, cur.longitude, cur.latitude)
        raw_hours = (cur.timestamp - prev.timestamp).total_seconds() / 3600.0

        speed: Optional[float]
        try:
            hours = time_diff_hours(prev.timestamp, cur.timestamp)
        except NonPositiveTimeDeltaError as exc:
            logger.debug("%s: %s", animal_id, exc)
            speed = None
        else:
            speed = (distance_m / 1000.0) / hours
            if speed > speed_threshold_kmh:
                speed = None

        segments.append(MovementSegment(
            animal_id=animal_id,
            timestamp=cur.timestamp,
            latitude=cur.latitude,
            longitude=cur.longitude,
            distance_m=distance_m,
            time_diff_h=raw_hours,
            speed_kmh=speed,
        ))

    return segments


def build_all_segments(
    tracks: Dict[str, Sequence[Fix]],
    speed_threshold_kmh: float = SPEED_THRESHOLD_KMH_DEFAULT,
) -> Dict[str, List[MovementSegment]]:
    """Run build_segments independently for every animal."""
    return {
        animal_id: build_segments(track, speed_threshold_kmh)
        for animal_id, track in tracks.items()
    }


def flatten_segments(per_animal: Dict[str, Iterable[MovementSegment]]) -> List[MovementSegment]:
    """All segments ordered by (animal_id, timestamp), the tabular output order."""
    return [seg for animal_id in sorted(per_animal) for seg in per_animal[animal_id]]
