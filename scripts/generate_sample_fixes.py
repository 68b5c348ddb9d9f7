"""
Generate a synthetic Movebank-style CSV for trying the pipeline locally.

Each animal wanders between a few habitat centres with small GPS jitter,
one fix every 20-40 minutes, plus the occasional GPS jump (implausible speed)
and a few rows with a missing coordinate.

Usage:
    python scripts/generate_sample_fixes.py --out /tmp/migration_sample.csv
    python -m wildlife analyze /tmp/migration_sample.csv --charts --out /tmp/wildlife
"""
import argparse
from datetime import datetime, timedelta, timezone
from pathlib import Path

import numpy as np
import pandas as pd

# Habitat centres (lon, lat), one list per animal
HABITATS = {
    "Stork-101": [(8.90, 47.75), (8.95, 47.80), (9.02, 47.72)],
    "Stork-102": [(9.10, 47.60), (9.15, 47.65)],
    "Stork-103": [(8.70, 47.90), (8.75, 47.95), (8.80, 47.88)],
}


def generate_rows(days: int, seed: int) -> pd.DataFrame:
    rng = np.random.default_rng(seed)
    start = datetime(2024, 5, 1, tzinfo=timezone.utc)
    rows = []

    for animal_id, centres in HABITATS.items():
        t = start
        centre = centres[0]
        while t < start + timedelta(days=days):
            if rng.random() < 0.05:
                centre = centres[rng.integers(len(centres))]
            lon = centre[0] + rng.normal(0, 0.004)
            lat = centre[1] + rng.normal(0, 0.004)
            if rng.random() < 0.01:
                lon += 1.5  # GPS jump
            rows.append({
                "event-id": len(rows) + 1,
                "timestamp": t.strftime("%Y-%m-%d %H:%M:%S.000"),
                "location-long": "" if rng.random() < 0.01 else round(lon, 6),
                "location-lat": round(lat, 6),
                "individual-local-identifier": animal_id,
            })
            t += timedelta(minutes=int(rng.integers(20, 41)))

    return pd.DataFrame(rows)


def main() -> None:
    parser = argparse.ArgumentParser(description="Generate synthetic wildlife GPS fixes")
    parser.add_argument("--out", type=Path, default=Path("migration_sample.csv"))
    parser.add_argument("--days", type=int, default=7, help="Days of tracking (default: 7)")
    parser.add_argument("--seed", type=int, default=42)
    args = parser.parse_args()

    frame = generate_rows(args.days, args.seed)
    frame.to_csv(args.out, index=False)
    print(f"Wrote {len(frame)} rows to {args.out}")


if __name__ == "__main__":
    main()
