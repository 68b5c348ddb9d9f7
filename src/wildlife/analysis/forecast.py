"""
Short-horizon position forecasting with per-axis ARIMA.

Latitude and longitude are modelled independently (no cross-axis
covariance). For each axis the model order is chosen by an explicit,
bounded search so results are reproducible:

  1. Differencing order d: KPSS level-stationarity test (alpha 0.05) on the
     observed values; difference and re-test until the test no longer
     rejects or d reaches max_d (2). A constant series stops at once.
  2. Candidate (p, q): every pair with p <= max_p, q <= max_q and
     p + q <= max_order, visited in ascending (p + q, p) order.
  3. Each candidate is fitted by exact maximum likelihood (statsmodels
     ARIMA, Kalman filter, so NaN gaps in the hourly grid are tolerated).
     Trend: constant for d=0, drift for d=1, none for d=2.
  4. Criterion: AICc = -2 logL + 2k + 2k(k+1) / (n - k - 1)
       k = estimated parameters incl. innovation variance
       n = observed values - d
     A candidate replaces the incumbent only with a STRICTLY lower AICc,
     so ties go to the lowest order.

A series whose observed values are all equal is forecast as that constant
without fitting (reported as order (0, 0, 0)).

Fewer than min_history_points observed hours -> InsufficientHistoryError.
"""
import logging
import math
import warnings
from dataclasses import dataclass
from datetime import datetime, timedelta
from typing import Callable, List, Optional, Sequence, Tuple

import numpy as np
from statsmodels.tools.sm_exceptions import InterpolationWarning
from statsmodels.tsa.arima.model import ARIMA
from statsmodels.tsa.stattools import kpss

from wildlife.analysis.fixes import Fix
from wildlife.analysis.timeseries import HourlyPosition, hourly_grid, hourly_positions
from wildlife.errors import (
    InsufficientHistoryError,
    ModelFitError,
    SearchCancelledError,
)

logger = logging.getLogger(__name__)

HORIZON_DEFAULT = 24
MIN_HISTORY_DEFAULT = 12
MAX_P_DEFAULT = 5
MAX_Q_DEFAULT = 5
MAX_ORDER_DEFAULT = 5
MAX_D_DEFAULT = 2
KPSS_ALPHA = 0.05

_TREND_FOR_D = {0: "c", 1: "t", 2: "n"}


@dataclass(frozen=True)
class ForecastPoint:
    hour: datetime
    pred_latitude: float
    pred_longitude: float


@dataclass(frozen=True)
class AxisModel:
    """Selected model for one axis."""
    order: Tuple[int, int, int]    # (p, d, q)
    aicc: Optional[float]          # None for the constant shortcut


@dataclass
class ForecastResult:
    animal_id: str
    points: List[ForecastPoint]
    latitude_model: AxisModel
    longitude_model: AxisModel
    history_points: int            # observed hours used for fitting


# ─── Order search ─────────────────────────────────────────────────────────────

def _is_constant(values: np.ndarray) -> bool:
    return len(values) == 0 or float(np.ptp(values)) == 0.0


def select_differencing(
    values: Sequence[float],
    max_d: int = MAX_D_DEFAULT,
    alpha: float = KPSS_ALPHA,
) -> int:
    """
    Number of differences needed for level stationarity (KPSS test).

    NaN entries are ignored.
    """
    series = np.asarray(values, dtype=float)
    series = series[~np.isnan(series)]
    d = 0
    while d < max_d:
        if _is_constant(series) or len(series) < 3:
            break
        try:
            with warnings.catch_warnings():
                warnings.simplefilter("ignore", InterpolationWarning)
                p_value = kpss(series, regression="c", nlags="auto")[1]
        except ValueError as exc:
            logger.debug("KPSS test failed at d=%d: %s", d, exc)
            break
        if p_value >= alpha:
            break
        series = np.diff(series)
        d += 1
    return d


def candidate_orders(
    max_p: int = MAX_P_DEFAULT,
    max_q: int = MAX_Q_DEFAULT,
    max_order: int = MAX_ORDER_DEFAULT,
) -> List[Tuple[int, int]]:
    """(p, q) pairs in search order: simplest first."""
    pairs = [
        (p, q)
        for p in range(max_p + 1)
        for q in range(max_q + 1)
        if p + q <= max_order
    ]
    return sorted(pairs, key=lambda pq: (pq[0] + pq[1], pq[0]))


def aicc(log_likelihood: float, n_params: int, n_obs: int) -> float:
    """Corrected Akaike information criterion; inf when n_obs - k - 1 <= 0."""
    denom = n_obs - n_params - 1
    if denom <= 0:
        return math.inf
    return -2.0 * log_likelihood + 2.0 * n_params + (2.0 * n_params * (n_params + 1)) / denom


@dataclass
class ArimaFit:
    """A fitted candidate: order, its AICc and the statsmodels results."""
    order: Tuple[int, int, int]
    aicc: float
    results: object


def _fit_candidate(endog: np.ndarray, order: Tuple[int, int, int], n_obs: int) -> Optional[ArimaFit]:
    """Fit one ARIMA order. None when the fit fails or the criterion is undefined."""
    d = order[1]
    try:
        with warnings.catch_warnings():
            warnings.simplefilter("ignore")
            results = ARIMA(endog, order=order, trend=_TREND_FOR_D[d]).fit()
    except (ValueError, np.linalg.LinAlgError) as exc:
        logger.debug("ARIMA%s failed: %s", order, exc)
        return None

    llf = float(results.llf)
    if not math.isfinite(llf):
        return None
    score = aicc(llf, len(results.params), n_obs - d)
    if not math.isfinite(score):
        return None
    return ArimaFit(order=order, aicc=score, results=results)


def fit_auto_arima(
    values: Sequence[float],
    max_p: int = MAX_P_DEFAULT,
    max_q: int = MAX_Q_DEFAULT,
    max_order: int = MAX_ORDER_DEFAULT,
    max_d: int = MAX_D_DEFAULT,
    is_cancelled: Optional[Callable[[], bool]] = None,
) -> ArimaFit:
    """
    Bounded grid search for the AICc-best ARIMA(p, d, q) on one series.

    Args:
        values: Equally spaced observations; NaN marks a missing step.
        is_cancelled: Checked before each candidate fit.

    Raises:
        SearchCancelledError: is_cancelled() returned True.
        ModelFitError: no candidate could be fitted.
    """
    endog = np.asarray(values, dtype=float)
    n_obs = int(np.count_nonzero(~np.isnan(endog)))
    d = select_differencing(endog, max_d=max_d)

    best: Optional[ArimaFit] = None
    for p, q in candidate_orders(max_p, max_q, max_order):
        if is_cancelled is not None and is_cancelled():
            raise SearchCancelledError("ARIMA order search cancelled")
        fit = _fit_candidate(endog, (p, d, q), n_obs)
        if fit is not None and (best is None or fit.aicc < best.aicc):
            best = fit

    if best is None:
        raise ModelFitError(f"no ARIMA order could be fitted (d={d}, n={n_obs})")
    logger.debug("Selected ARIMA%s AICc=%.3f", best.order, best.aicc)
    return best


# ─── Forecasting ──────────────────────────────────────────────────────────────

def _forecast_axis(
    values: np.ndarray,
    horizon: int,
    **search,
) -> Tuple[np.ndarray, AxisModel]:
    observed = values[~np.isnan(values)]
    if _is_constant(observed):
        return np.full(horizon, observed[0], dtype=float), AxisModel(order=(0, 0, 0), aicc=None)

    best = fit_auto_arima(values, **search)
    mean = np.asarray(best.results.forecast(steps=horizon), dtype=float)
    return mean, AxisModel(order=best.order, aicc=best.aicc)


def forecast_hourly(
    hourly: Sequence[HourlyPosition],
    horizon: int = HORIZON_DEFAULT,
    min_history_points: int = MIN_HISTORY_DEFAULT,
    fill_gaps: bool = True,
    animal_id: str = "",
    max_p: int = MAX_P_DEFAULT,
    max_q: int = MAX_Q_DEFAULT,
    max_order: int = MAX_ORDER_DEFAULT,
    max_d: int = MAX_D_DEFAULT,
    is_cancelled: Optional[Callable[[], bool]] = None,
) -> ForecastResult:
    """
    Forecast the next `horizon` hourly positions.

    Args:
        hourly: Hourly mean positions, ascending by hour.
        horizon: Number of hourly steps to predict.
        min_history_points: Minimum observed hours required.
        fill_gaps: Model missing hours as gaps on a contiguous hourly grid.
            When False, observed hours are treated as consecutive steps.

    Returns:
        ForecastResult whose points start one hour after the last observed
        hour, spaced exactly one hour apart.

    Raises:
        ValueError: horizon < 1.
        InsufficientHistoryError: fewer than min_history_points observed hours.
        ModelFitError / SearchCancelledError: from the order search.
    """
    if horizon < 1:
        raise ValueError(f"horizon must be >= 1, got {horizon}")
    if len(hourly) < min_history_points:
        raise InsufficientHistoryError(
            f"{animal_id or 'series'}: {len(hourly)} hourly points, "
            f"need at least {min_history_points}"
        )

    ordered = sorted(hourly, key=lambda h: h.hour)
    if fill_gaps:
        grid = hourly_grid(ordered)
        lat = grid["latitude"].to_numpy(dtype=float)
        lon = grid["longitude"].to_numpy(dtype=float)
    else:
        lat = np.array([h.latitude for h in ordered], dtype=float)
        lon = np.array([h.longitude for h in ordered], dtype=float)

    search = dict(
        max_p=max_p, max_q=max_q, max_order=max_order, max_d=max_d, is_cancelled=is_cancelled,
    )
    lat_mean, lat_model = _forecast_axis(lat, horizon, **search)
    lon_mean, lon_model = _forecast_axis(lon, horizon, **search)

    last_hour = ordered[-1].hour
    points = [
        ForecastPoint(
            hour=last_hour + timedelta(hours=step),
            pred_latitude=float(lat_mean[step - 1]),
            pred_longitude=float(lon_mean[step - 1]),
        )
        for step in range(1, horizon + 1)
    ]
    logger.debug(
        "%s: latitude ARIMA%s, longitude ARIMA%s",
        animal_id, lat_model.order, lon_model.order,
    )
    return ForecastResult(
        animal_id=animal_id,
        points=points,
        latitude_model=lat_model,
        longitude_model=lon_model,
        history_points=len(ordered),
    )


def forecast_track(
    track: Sequence[Fix],
    horizon: int = HORIZON_DEFAULT,
    min_history_points: int = MIN_HISTORY_DEFAULT,
    **kwargs,
) -> ForecastResult:
    """Aggregate one animal's fixes by hour and forecast them."""
    animal_id = track[0].animal_id if track else ""
    return forecast_hourly(
        hourly_positions(track),
        horizon=horizon,
        min_history_points=min_history_points,
        animal_id=animal_id,
        **kwargs,
    )
