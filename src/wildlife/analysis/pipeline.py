"""
PipelineReport assembler.

Takes a cleaned FixStore snapshot, runs every analysis engine and collects
the results into a PipelineReport, the single object consumed by the CSV
export, the database writer and the chart layer.

  FixStore ─► movement metrics ─► daily distance      (every animal)
           └► clustering                              (target animals)
           └► hourly aggregation ─► forecast          (target animals)

Target animals default to the most-tracked animal; a named animal or all
animals can be requested instead. A WildlifeError from one animal is stored
in that stage's error map and the remaining animals carry on.

All engines are pure (no I/O inside the algorithm modules).
"""
import logging
from dataclasses import dataclass, field
from datetime import date, datetime
from typing import Callable, Dict, List, Optional, Tuple, TypeVar

from wildlife.analysis.clustering import ClusterResult, cluster_track
from wildlife.analysis.daily import DailyDistance, daily_distance
from wildlife.analysis.fixes import FixStore
from wildlife.analysis.forecast import ForecastResult, forecast_track
from wildlife.analysis.movement import MovementSegment, build_segments, flatten_segments
from wildlife.config import Settings, get_settings
from wildlife.errors import SearchCancelledError, WildlifeError

logger = logging.getLogger(__name__)

T = TypeVar("T")


@dataclass
class StoreSummary:
    """Exploratory overview of a FixStore."""
    total_fixes: int
    dropped_fixes: int
    animal_count: int
    record_counts: List[Tuple[str, int]]
    time_range: Optional[Tuple[datetime, datetime]]
    daily_record_counts: List[Tuple[str, date, int]]


@dataclass
class PipelineReport:
    """
    Complete result of one pipeline run.

    Produced by build_pipeline_report().
    """
    segments: List[MovementSegment]
    daily_distances: List[DailyDistance]
    target_animals: List[str]
    clusters: Dict[str, ClusterResult] = field(default_factory=dict)
    forecasts: Dict[str, ForecastResult] = field(default_factory=dict)

    # Per-animal failures, keyed by animal_id
    metric_errors: Dict[str, WildlifeError] = field(default_factory=dict)
    cluster_errors: Dict[str, WildlifeError] = field(default_factory=dict)
    forecast_errors: Dict[str, WildlifeError] = field(default_factory=dict)

    def errors(self) -> List[Tuple[str, str, WildlifeError]]:
        """(stage, animal_id, error) for every failure, ordered by stage then animal."""
        rows = []
        for stage, errors in (
            ("metrics", self.metric_errors),
            ("clustering", self.cluster_errors),
            ("forecast", self.forecast_errors),
        ):
            rows.extend((stage, animal_id, errors[animal_id]) for animal_id in sorted(errors))
        return rows


def summarize_store(store: FixStore) -> StoreSummary:
    return StoreSummary(
        total_fixes=len(store),
        dropped_fixes=store.dropped,
        animal_count=len(store.animal_ids()),
        record_counts=store.record_counts(),
        time_range=store.time_range(),
        daily_record_counts=store.daily_record_counts(),
    )


def run_per_animal(
    animal_ids: List[str],
    func: Callable[[str], T],
    stage: str,
) -> Tuple[Dict[str, T], Dict[str, WildlifeError]]:
    """
    Apply func to each animal, splitting results into successes and errors.

    Only WildlifeError is caught; cancellation and anything else propagate.
    """
    results: Dict[str, T] = {}
    errors: Dict[str, WildlifeError] = {}
    for animal_id in animal_ids:
        try:
            results[animal_id] = func(animal_id)
        except SearchCancelledError:
            raise
        except WildlifeError as exc:
            logger.warning("%s failed for %s: %s", stage, animal_id, exc)
            errors[animal_id] = exc
    return results, errors


def select_targets(
    store: FixStore,
    animal_id: Optional[str] = None,
    all_animals: bool = False,
) -> List[str]:
    """Animals to cluster and forecast: all, the named one, or the most tracked."""
    if all_animals:
        return store.animal_ids()
    if animal_id is not None:
        if animal_id not in store.animal_ids():
            raise KeyError(f"unknown animal_id {animal_id!r}")
        return [animal_id]
    return [store.top_animal()]


def build_pipeline_report(
    store: FixStore,
    settings: Optional[Settings] = None,
    animal_id: Optional[str] = None,
    all_animals: bool = False,
    is_cancelled: Optional[Callable[[], bool]] = None,
) -> PipelineReport:
    """
    Run the full analysis on a FixStore snapshot.

    Args:
        store: Cleaned fixes.
        settings: Engine parameters; defaults to get_settings().
        animal_id: Cluster / forecast only this animal.
        all_animals: Cluster / forecast every animal.
        is_cancelled: Cooperative cancellation hook for the forecast search.

    Returns:
        PipelineReport with results and per-animal error maps.

    Raises:
        KeyError: animal_id is not in the store.
        InsufficientDataError: the store is empty and no animal was named.
    """
    settings = settings or get_settings()
    targets = select_targets(store, animal_id=animal_id, all_animals=all_animals)

    # ── Movement metrics + daily distance (every animal) ─────────────────────
    per_animal_segments, metric_errors = run_per_animal(
        store.animal_ids(),
        lambda a: build_segments(store.track(a), settings.speed_threshold_kmh),
        "metrics",
    )
    segments = flatten_segments(per_animal_segments)
    daily = daily_distance(segments)

    # ── Habitat clusters ──────────────────────────────────────────────────────
    clusters, cluster_errors = run_per_animal(
        targets,
        lambda a: cluster_track(
            store.track(a),
            k=settings.cluster_count,
            restarts=settings.cluster_restarts,
            seed=settings.cluster_seed,
            max_iter=settings.cluster_max_iter,
            init=settings.cluster_init,
        ),
        "clustering",
    )

    # ── Forecast ──────────────────────────────────────────────────────────────
    forecasts, forecast_errors = run_per_animal(
        targets,
        lambda a: forecast_track(
            store.track(a),
            horizon=settings.forecast_horizon_hours,
            min_history_points=settings.min_history_points,
            fill_gaps=settings.forecast_fill_gaps,
            max_p=settings.forecast_max_p,
            max_q=settings.forecast_max_q,
            max_order=settings.forecast_max_order,
            max_d=settings.forecast_max_d,
            is_cancelled=is_cancelled,
        ),
        "forecast",
    )

    return PipelineReport(
        segments=segments,
        daily_distances=daily,
        target_animals=targets,
        clusters=clusters,
        forecasts=forecasts,
        metric_errors=metric_errors,
        cluster_errors=cluster_errors,
        forecast_errors=forecast_errors,
    )
