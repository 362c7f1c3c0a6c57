"""Holt's linear (double exponential smoothing) estimator."""

from __future__ import annotations

import numpy as np

from .base import (
    EstimatorKind,
    EstimatorResult,
    ForecastPoint,
    HoltParams,
    SeriesLike,
    clamp,
    prepare_series,
    values_of,
)
from .config import ANCHOR_YEAR, ESTIMATOR_CEILING
from .linalg import r_squared
from .logs import get_logger

logger = get_logger(__name__)

MIN_POINTS = 3
HOLT_CONFIDENCE = 0.75


def _import_statsmodels():
  try:
    from statsmodels.tsa.holtwinters import ExponentialSmoothing
  except ModuleNotFoundError as exc:  # pragma: no cover
    raise SystemExit(
        "statsmodels is required for exponential smoothing; install with `pip install statsmodels`."
    ) from exc
  return ExponentialSmoothing


def forecast_holt_linear(
    series: SeriesLike,
    horizon: int,
    *,
    anchor_year: int = ANCHOR_YEAR,
    alpha: float = 0.3,
    beta: float = 0.1,
) -> EstimatorResult:
  """Run Holt's linear smoothing with fixed level/trend parameters.

  The level starts at the first value and the trend at the first difference;
  smoothing runs over the remaining observations. Forecast steps count from
  the last observed year, so a gap between the series and ``anchor_year`` is
  extrapolated through as well.
  """
  if horizon <= 0:
    raise ValueError("Horizon must be positive for forecasting.")
  observations = prepare_series(series)
  if len(observations) < MIN_POINTS:
    logger.debug("estimator.insufficient_data", kind=EstimatorKind.HOLTS.value,
                 available=len(observations), required=MIN_POINTS)
    return EstimatorResult(EstimatorKind.HOLTS)

  values = np.asarray(values_of(observations), dtype=np.float64)
  ExponentialSmoothing = _import_statsmodels()
  model = ExponentialSmoothing(
      values[1:],
      trend="add",
      initialization_method="known",
      initial_level=float(values[0]),
      initial_trend=float(values[1] - values[0]),
  )
  fit = model.fit(smoothing_level=alpha, smoothing_trend=beta, optimized=False)
  levels = np.asarray(fit.level, dtype=np.float64)

  years_gap = max(0, anchor_year - observations[-1].year)
  projected = np.asarray(fit.forecast(years_gap + horizon), dtype=np.float64)[years_gap:]
  forecast = tuple(
      ForecastPoint(
          year=anchor_year + step,
          predicted=clamp(float(predicted), 0.0, ESTIMATOR_CEILING),
          confidence=HOLT_CONFIDENCE,
      ) for step, predicted in enumerate(projected, start=1))

  return EstimatorResult(
      kind=EstimatorKind.HOLTS,
      forecast=forecast,
      params=HoltParams(
          level=float(levels[-1]),
          trend=float(np.asarray(fit.trend, dtype=np.float64)[-1]),
          r_squared=r_squared(values, np.concatenate([values[:1], levels])),
          alpha=alpha,
          beta=beta,
      ),
  )
