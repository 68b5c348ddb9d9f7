"""
Movebank CSV reader.

Movebank exports name columns `individual-local-identifier`,
`location-lat`, `location-long`, `timestamp` (R's read.csv turns the dashes
into dots, so both spellings are accepted, as are already-normalized names).

Rows with a missing animal id, timestamp or coordinate are dropped here;
anything else malformed (out-of-range coordinates) is rejected by the
FixStore.
"""
import logging
from pathlib import Path
from typing import Dict, List, Union

import pandas as pd

from wildlife.analysis.fixes import Fix, FixStore
from wildlife.errors import MalformedFixError

logger = logging.getLogger(__name__)

COLUMN_ALIASES: Dict[str, List[str]] = {
    "animal_id": ["animal_id", "individual-local-identifier", "individual.local.identifier"],
    "latitude": ["latitude", "location-lat", "location.lat"],
    "longitude": ["longitude", "location-long", "location.long"],
    "timestamp": ["timestamp"],
}


def normalize_columns(frame: pd.DataFrame) -> pd.DataFrame:
    """
    Rename Movebank columns to animal_id / latitude / longitude / timestamp
    and keep only those four.

    Raises:
        MalformedFixError: a required column is absent.
    """
    renames: Dict[str, str] = {}
    for target, aliases in COLUMN_ALIASES.items():
        found = next((c for c in aliases if c in frame.columns), None)
        if found is None:
            raise MalformedFixError(
                f"missing column for {target!r} (expected one of {aliases})"
            )
        renames[found] = target
    return frame.rename(columns=renames)[list(COLUMN_ALIASES)]


def clean_frame(frame: pd.DataFrame) -> pd.DataFrame:
    """Parse timestamps as UTC, coerce coordinates, drop incomplete rows."""
    out = normalize_columns(frame).copy()
    out["timestamp"] = pd.to_datetime(out["timestamp"], utc=True, errors="coerce")
    out["latitude"] = pd.to_numeric(out["latitude"], errors="coerce")
    out["longitude"] = pd.to_numeric(out["longitude"], errors="coerce")
    before = len(out)
    out = out.dropna(subset=["animal_id", "timestamp", "latitude", "longitude"])
    if len(out) < before:
        logger.info("Removed %d incomplete rows", before - len(out))
    return out


def frame_to_fixes(frame: pd.DataFrame) -> List[Fix]:
    return [
        Fix(
            animal_id=str(row.animal_id),
            timestamp=row.timestamp.to_pydatetime(),
            latitude=float(row.latitude),
            longitude=float(row.longitude),
        )
        for row in frame.itertuples(index=False)
    ]


def load_fixes_csv(path: Union[str, Path], strict: bool = False) -> FixStore:
    """
    Read a Movebank-style CSV into a FixStore.

    Args:
        path: CSV file path.
        strict: Raise MalformedFixError on out-of-range fixes instead of dropping them.

    Returns:
        FixStore of all animals in the file.
    """
    raw = pd.read_csv(path, dtype={c: str for c in COLUMN_ALIASES["animal_id"]})
    logger.info("Read %d rows from %s", len(raw), path)
    frame = clean_frame(raw)
    store = FixStore.from_fixes(frame_to_fixes(frame), strict=strict)
    logger.info(
        "Loaded %d fixes for %d animals", len(store), len(store.animal_ids())
    )
    return store
