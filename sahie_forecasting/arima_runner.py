"""Simplified ARIMA(1,1,1) estimator fitted with closed-form lag ratios."""

from __future__ import annotations

from typing import Sequence

import numpy as np

from .base import (
    ArimaParams,
    EstimatorKind,
    EstimatorResult,
    ForecastPoint,
    SeriesLike,
    clamp,
    prepare_series,
    values_of,
)
from .config import ANCHOR_YEAR, ESTIMATOR_CEILING
from .logs import get_logger

logger = get_logger(__name__)

MIN_POINTS = 4
MIN_DIFFERENCES = 3
COEFF_LIMIT = 0.9
ARIMA_CONFIDENCE = 0.72
REPORTED_R_SQUARED = 0.7


def lag1_ratio(values: Sequence[float]) -> float:
  """Lag-1 autocovariance over lag-0 variance, clamped to +/-0.9."""
  values = np.asarray(values, dtype=np.float64)
  denominator = float(np.sum(values[:-1] ** 2))
  if denominator == 0:
    return 0.0
  return clamp(float(np.sum(values[1:] * values[:-1])) / denominator, -COEFF_LIMIT, COEFF_LIMIT)


def forecast_arima(
    series: SeriesLike,
    horizon: int,
    *,
    anchor_year: int = ANCHOR_YEAR,
) -> EstimatorResult:
  """Run an ARIMA(1,1,1)-style forecast without iterative estimation.

  The AR coefficient is fitted on the first differences, the MA coefficient
  on the one-step AR residuals. Forecast differences are integrated onto the
  last observed value. The reported R² is a fixed placeholder.
  """
  if horizon <= 0:
    raise ValueError("Horizon must be positive for forecasting.")
  observations = prepare_series(series)
  if len(observations) < MIN_POINTS:
    logger.debug("estimator.insufficient_data", kind=EstimatorKind.ARIMA.value,
                 available=len(observations), required=MIN_POINTS)
    return EstimatorResult(EstimatorKind.ARIMA)

  values = np.asarray(values_of(observations), dtype=np.float64)
  diffs = np.diff(values)
  if len(diffs) < MIN_DIFFERENCES:
    return EstimatorResult(EstimatorKind.ARIMA)

  ar_coeff = lag1_ratio(diffs)
  residuals = np.empty_like(diffs)
  residuals[0] = diffs[0]
  residuals[1:] = diffs[1:] - ar_coeff * diffs[:-1]
  ma_coeff = lag1_ratio(residuals)

  last_diff = float(diffs[-1])
  last_residual = float(residuals[-1])
  last_value = float(values[-1])
  forecast = []
  for step in range(1, horizon + 1):
    forecast_diff = ar_coeff * last_diff + ma_coeff * last_residual
    predicted = last_value + forecast_diff
    last_diff = forecast_diff
    last_residual = forecast_diff - ar_coeff * last_diff
    last_value = predicted
    forecast.append(
        ForecastPoint(
            year=anchor_year + step,
            predicted=clamp(predicted, 0.0, ESTIMATOR_CEILING),
            confidence=ARIMA_CONFIDENCE,
        ))

  return EstimatorResult(
      kind=EstimatorKind.ARIMA,
      forecast=tuple(forecast),
      params=ArimaParams(ar_coeff=ar_coeff, ma_coeff=ma_coeff, r_squared=REPORTED_R_SQUARED),
  )
