"""Trailing moving average with a rolling-mean trend."""

from __future__ import annotations

import numpy as np

from .base import (
    EstimatorKind,
    EstimatorResult,
    ForecastPoint,
    MovingAverageParams,
    SeriesLike,
    clamp,
    prepare_series,
    values_of,
)
from .config import ANCHOR_YEAR, ESTIMATOR_CEILING
from .logs import get_logger

logger = get_logger(__name__)

MOVING_AVERAGE_CONFIDENCE = 0.7


def rolling_means(values: np.ndarray, window: int) -> np.ndarray:
  """Means of every full trailing window, oldest first."""
  kernel = np.ones(window, dtype=np.float64) / window
  return np.convolve(values, kernel, mode="valid")


def forecast_moving_average(
    series: SeriesLike,
    horizon: int,
    *,
    anchor_year: int = ANCHOR_YEAR,
    window: int = 3,
) -> EstimatorResult:
  """Extend the latest moving average by the average step of the rolling means."""
  if horizon <= 0:
    raise ValueError("Horizon must be positive for forecasting.")
  if window < 1:
    raise ValueError("Moving-average window must be positive.")
  observations = prepare_series(series)
  required = window + 1
  if len(observations) < required:
    logger.debug("estimator.insufficient_data", kind=EstimatorKind.MOVING_AVERAGE.value,
                 available=len(observations), required=required)
    return EstimatorResult(EstimatorKind.MOVING_AVERAGE)

  values = np.asarray(values_of(observations), dtype=np.float64)
  means = rolling_means(values, window)
  moving_average = float(means[-1])
  trend = float((means[-1] - means[0]) / (len(means) - 1)) if len(means) >= 2 else 0.0

  years_gap = max(0, anchor_year - observations[-1].year)
  forecast = tuple(
      ForecastPoint(
          year=anchor_year + step,
          predicted=clamp(moving_average + trend * (years_gap + step), 0.0, ESTIMATOR_CEILING),
          confidence=MOVING_AVERAGE_CONFIDENCE,
      ) for step in range(1, horizon + 1))

  return EstimatorResult(
      kind=EstimatorKind.MOVING_AVERAGE,
      forecast=forecast,
      params=MovingAverageParams(moving_average=moving_average, trend=trend, window=window),
  )
