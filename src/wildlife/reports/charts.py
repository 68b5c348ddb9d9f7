"""
Chart generation for wildlife tracking analysis.

Produces matplotlib figures as PNG bytes. Each chart function returns
(png_bytes, caption).

Charts:
  - daily record counts per animal (line per animal)
  - movement speed distribution (overlaid histograms per animal)
  - daily distance travelled per animal (line + markers)
  - habitat clusters for one animal (scatter coloured by cluster, centroids as X)
  - forecast vs history for one animal (history blue, forecast red)

Interactive maps are not produced here.
"""
import io
from collections import defaultdict
from typing import Dict, List, Sequence, Tuple

import matplotlib
matplotlib.use("Agg")
import matplotlib.pyplot as plt
import numpy as np

from wildlife.analysis.clustering import ClusterResult
from wildlife.analysis.daily import DailyDistance
from wildlife.analysis.forecast import ForecastResult
from wildlife.analysis.movement import MovementSegment
from wildlife.analysis.timeseries import HourlyPosition

# ─── Constants ────────────────────────────────────────────────────────────────

SPEED_BINS = 40

# Distinct colours that read well on the dark background
ANIMAL_COLORS = ["#4ecdc4", "#ffd700", "#ff6b9d", "#a29bfe", "#55efc4", "#ff9f43", "#fdcb6e"]
HISTORY_COLOR = "#5b9bd5"
FORECAST_COLOR = "#c00000"


# ─── Public API ───────────────────────────────────────────────────────────────

def make_daily_records_chart(daily_counts: Sequence[Tuple[str, object, int]]) -> Tuple[bytes, str]:
    """Line per animal of fixes recorded per day. Input rows: (animal_id, date, count)."""
    fig, ax = _new_figure()
    series = _group_by_animal((a, d, c) for a, d, c in daily_counts)
    for i, (animal_id, rows) in enumerate(series.items()):
        dates, counts = zip(*rows)
        ax.plot(dates, counts, color=_color(i), linewidth=1.1, label=animal_id)
    _finish_axes(ax, "Daily GPS Record Counts per Animal", "Date", "Record Count", legend=bool(series))
    fig.autofmt_xdate()
    return _to_png(fig), "Daily GPS record counts per animal"


def make_speed_histogram(segments: Sequence[MovementSegment]) -> Tuple[bytes, str]:
    """Overlaid speed histograms, one per animal; undefined speeds are skipped."""
    fig, ax = _new_figure()
    speeds: Dict[str, List[float]] = defaultdict(list)
    for seg in segments:
        if seg.speed_kmh is not None:
            speeds[seg.animal_id].append(seg.speed_kmh)

    for i, animal_id in enumerate(sorted(speeds)):
        ax.hist(speeds[animal_id], bins=SPEED_BINS, alpha=0.7, color=_color(i), label=animal_id)
    _finish_axes(ax, "Distribution of Movement Speeds", "Speed (km/h)", "Frequency", legend=bool(speeds))

    total = sum(len(v) for v in speeds.values())
    return _to_png(fig), f"Movement speeds ({total} segments with a valid speed)"


def make_daily_distance_chart(daily: Sequence[DailyDistance]) -> Tuple[bytes, str]:
    fig, ax = _new_figure()
    series = _group_by_animal((d.animal_id, d.date, d.total_km) for d in daily)
    for i, (animal_id, rows) in enumerate(series.items()):
        dates, km = zip(*rows)
        ax.plot(dates, km, color=_color(i), linewidth=1.1, marker="o", markersize=4, label=animal_id)
    _finish_axes(ax, "Daily Distance Traveled per Animal", "Date", "Distance (km)", legend=bool(series))
    fig.autofmt_xdate()
    return _to_png(fig), "Daily distance traveled per animal"


def make_cluster_chart(result: ClusterResult) -> Tuple[bytes, str]:
    """Scatter of one animal's fixes coloured by habitat cluster."""
    fig, ax = _new_figure()
    if result.points:
        xy = np.asarray(result.points, dtype=float)
        labels = np.asarray(result.labels())
        for cid in sorted(result.centroids):
            mask = labels == cid
            ax.scatter(xy[mask, 0], xy[mask, 1], s=12, color=_color(cid), label=f"Zone {cid}")
        cx = [result.centroids[c][0] for c in sorted(result.centroids)]
        cy = [result.centroids[c][1] for c in sorted(result.centroids)]
        ax.scatter(cx, cy, marker="x", s=80, color="white", linewidths=2, zorder=4)
    _finish_axes(
        ax, f"Habitat Clusters for {result.animal_id}", "Longitude", "Latitude",
        legend=bool(result.points),
    )
    return _to_png(fig), f"{result.k} habitat zones for {result.animal_id}"


def make_forecast_chart(
    history: Sequence[HourlyPosition],
    forecast: ForecastResult,
) -> Tuple[bytes, str]:
    """History (blue) and forecast (red) positions in lon/lat space."""
    fig, ax = _new_figure()
    if history:
        ax.scatter([h.longitude for h in history], [h.latitude for h in history],
                   s=12, alpha=0.6, color=HISTORY_COLOR, label="History")
    if forecast.points:
        ax.scatter([p.pred_longitude for p in forecast.points],
                   [p.pred_latitude for p in forecast.points],
                   s=20, color=FORECAST_COLOR, label="Forecast")
    _finish_axes(
        ax, f"ARIMA Forecast of Movement - {forecast.animal_id}", "Longitude", "Latitude",
        legend=bool(history) or bool(forecast.points),
    )
    caption = (
        f"{len(forecast.points)}-hour forecast for {forecast.animal_id} "
        f"(lat ARIMA{forecast.latitude_model.order}, lon ARIMA{forecast.longitude_model.order})"
    )
    return _to_png(fig), caption


# ─── Helpers ──────────────────────────────────────────────────────────────────

def _group_by_animal(rows) -> Dict[str, List[Tuple]]:
    grouped: Dict[str, List[Tuple]] = defaultdict(list)
    for animal_id, x, y in rows:
        grouped[animal_id].append((x, y))
    return {a: sorted(grouped[a]) for a in sorted(grouped)}


def _color(i: int) -> str:
    return ANIMAL_COLORS[i % len(ANIMAL_COLORS)]


def _new_figure():
    fig, ax = plt.subplots(figsize=(10, 6))
    fig.patch.set_facecolor("#1a1a2e")
    _style_ax(ax)
    return fig, ax


def _finish_axes(ax, title: str, xlabel: str, ylabel: str, legend: bool) -> None:
    ax.set_title(title, color="white", fontsize=12)
    ax.set_xlabel(xlabel, color="white", fontsize=9)
    ax.set_ylabel(ylabel, color="white", fontsize=9)
    if legend:
        ax.legend(facecolor="#2d2d4e", edgecolor="#555577", labelcolor="white", fontsize=8)


def _style_ax(ax) -> None:
    ax.set_facecolor("#2d2d4e")
    ax.tick_params(colors="white", labelsize=8)
    ax.spines["bottom"].set_color("#555577")
    ax.spines["left"].set_color("#555577")
    ax.spines["top"].set_visible(False)
    ax.spines["right"].set_visible(False)


def _to_png(fig) -> bytes:
    buf = io.BytesIO()
    fig.savefig(buf, format="png", dpi=120, bbox_inches="tight",
                facecolor=fig.get_facecolor())
    plt.close(fig)
    return buf.getvalue()
