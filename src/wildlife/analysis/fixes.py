"""
Fix dataclass, validation, and the per-animal Fix Store.

Fix is the universal in-memory representation consumed by every analysis
engine. It is a plain immutable dataclass with no SQLModel or pandas dependency.
The FixStore groups fixes by animal and keeps each Track sorted by timestamp
(stable sort, so equal timestamps keep their input order).
"""
import logging
import math
from collections import Counter, defaultdict
from dataclasses import dataclass
from datetime import date, datetime, timezone
from typing import Any, Dict, Iterable, List, Optional, Tuple

from wildlife.errors import InsufficientDataError, MalformedFixError

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Fix:
    """One recorded (time, position) observation for an animal."""

    animal_id: str
    timestamp: datetime   # UTC, timezone-aware
    latitude: float       # decimal degrees, [-90, 90]
    longitude: float      # decimal degrees, [-180, 180]


def _is_number(value: Any) -> bool:
    return isinstance(value, (int, float)) and not isinstance(value, bool)


def _is_missing(value: Any) -> bool:
    return value is None or (isinstance(value, float) and math.isnan(value))


def validate_fix(fix: Fix) -> Fix:
    """
    Check a fix and return it with its timestamp normalized to UTC.

    Naive timestamps are treated as UTC.

    Raises:
        MalformedFixError: missing animal id / timestamp, non-numeric,
            non-finite or out-of-range coordinates.
    """
    if _is_missing(fix.animal_id) or str(fix.animal_id) == "":
        raise MalformedFixError("fix has no animal_id")
    # NaT is a datetime subclass but never equal to itself
    if not isinstance(fix.timestamp, datetime) or fix.timestamp != fix.timestamp:
        raise MalformedFixError(f"fix for {fix.animal_id!r} has no timestamp")
    for name in ("latitude", "longitude"):
        value = getattr(fix, name)
        if not _is_number(value) or not math.isfinite(value):
            raise MalformedFixError(
                f"fix for {fix.animal_id!r} at {fix.timestamp} has invalid {name}: {value!r}"
            )
    if not -90.0 <= fix.latitude <= 90.0:
        raise MalformedFixError(f"latitude out of range: {fix.latitude}")
    if not -180.0 <= fix.longitude <= 180.0:
        raise MalformedFixError(f"longitude out of range: {fix.longitude}")

    ts = fix.timestamp
    ts = ts.replace(tzinfo=timezone.utc) if ts.tzinfo is None else ts.astimezone(timezone.utc)
    return Fix(
        animal_id=str(fix.animal_id),
        timestamp=ts,
        latitude=float(fix.latitude),
        longitude=float(fix.longitude),
    )


def fixes_from_records(rows: Iterable[Dict[str, Any]]) -> List[Fix]:
    """
    Convert plain dicts (animal_id, timestamp, latitude, longitude) into
    Fix instances. Missing keys become None and are rejected later by
    validate_fix / FixStore.
    """
    return [
        Fix(
            animal_id=row.get("animal_id"),
            timestamp=row.get("timestamp"),
            latitude=row.get("latitude"),
            longitude=row.get("longitude"),
        )
        for row in rows
    ]


class FixStore:
    """
    Immutable snapshot of validated fixes grouped by animal.

    Build with FixStore.from_fixes(); engines only read from it.
    """

    def __init__(self, tracks: Dict[str, Tuple[Fix, ...]], dropped: int = 0):
        self._tracks = dict(tracks)
        self.dropped = dropped

    @classmethod
    def from_fixes(cls, fixes: Iterable[Fix], strict: bool = False) -> "FixStore":
        """
        Validate, group and sort fixes.

        Args:
            fixes: Fixes in any order, any number of animals.
            strict: Raise on the first malformed fix instead of dropping it.

        Returns:
            FixStore with one ordered Track per animal.
        """
        grouped: Dict[str, List[Fix]] = defaultdict(list)
        dropped = 0
        for fix in fixes:
            try:
                clean = validate_fix(fix)
            except MalformedFixError:
                if strict:
                    raise
                dropped += 1
                continue
            grouped[clean.animal_id].append(clean)

        if dropped:
            logger.warning("Dropped %d malformed fixes", dropped)

        tracks = {
            animal_id: tuple(sorted(pts, key=lambda f: f.timestamp))
            for animal_id, pts in grouped.items()
        }
        return cls(tracks, dropped=dropped)

    def __len__(self) -> int:
        return sum(len(t) for t in self._tracks.values())

    def animal_ids(self) -> List[str]:
        return sorted(self._tracks)

    def track(self, animal_id: str) -> Tuple[Fix, ...]:
        """Time-ordered fixes for one animal. KeyError if unknown."""
        return self._tracks[animal_id]

    def tracks(self) -> Dict[str, Tuple[Fix, ...]]:
        return {a: self._tracks[a] for a in self.animal_ids()}

    def record_counts(self) -> List[Tuple[str, int]]:
        """(animal_id, fix count), most fixes first; ties by animal id."""
        counts = [(a, len(self._tracks[a])) for a in self.animal_ids()]
        return sorted(counts, key=lambda item: -item[1])

    def top_animal(self) -> str:
        """The most-tracked animal, the default target for clustering and forecasting."""
        counts = self.record_counts()
        if not counts:
            raise InsufficientDataError("fix store is empty")
        return counts[0][0]

    def time_range(self) -> Optional[Tuple[datetime, datetime]]:
        """Earliest and latest timestamp across all animals, None when empty."""
        if not self._tracks:
            return None
        first = min(t[0].timestamp for t in self._tracks.values())
        last = max(t[-1].timestamp for t in self._tracks.values())
        return first, last

    def daily_record_counts(self) -> List[Tuple[str, date, int]]:
        """Number of fixes per animal per UTC calendar date, ordered by (animal, date)."""
        rows: List[Tuple[str, date, int]] = []
        for animal_id in self.animal_ids():
            per_day = Counter(f.timestamp.date() for f in self._tracks[animal_id])
            rows.extend((animal_id, d, per_day[d]) for d in sorted(per_day))
        return rows
