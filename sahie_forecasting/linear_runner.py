"""Closed-form linear regression estimators (recent-window and recency-weighted)."""

from __future__ import annotations

import math

import numpy as np

from .base import (
    EstimatorKind,
    EstimatorResult,
    ForecastPoint,
    LinearParams,
    SeriesLike,
    WeightedLinearParams,
    clamp,
    prepare_series,
    values_of,
    years_of,
)
from .config import ANCHOR_YEAR, ESTIMATOR_CEILING, RECENT_WINDOW
from .logs import get_logger

logger = get_logger(__name__)

MIN_POINTS = 3
T_VALUE = 1.96
RECENCY_DECAY = 0.5
RECENT_BOOST = 1.5


def forecast_linear_5year(
    series: SeriesLike,
    horizon: int,
    *,
    anchor_year: int = ANCHOR_YEAR,
    window: int = RECENT_WINDOW,
) -> EstimatorResult:
  """OLS line through the most recent ``window`` observations.

  Each point carries a prediction interval built from the residual standard
  error, with a fixed t-value of 1.96.
  """
  if horizon <= 0:
    raise ValueError("Horizon must be positive for forecasting.")
  observations = prepare_series(series)
  if len(observations) < MIN_POINTS:
    logger.debug("estimator.insufficient_data", kind=EstimatorKind.LINEAR_5YEAR.value,
                 available=len(observations), required=MIN_POINTS)
    return EstimatorResult(EstimatorKind.LINEAR_5YEAR)

  recent = observations[-window:]
  years = np.asarray(years_of(recent), dtype=np.float64)
  values = np.asarray(values_of(recent), dtype=np.float64)
  n = len(recent)

  mean_year = float(years.mean())
  mean_value = float(values.mean())
  dx = years - mean_year
  sxx = float(np.sum(dx * dx))
  slope = float(np.sum(dx * (values - mean_value)) / sxx) if sxx != 0 else 0.0
  intercept = mean_value - slope * mean_year

  fitted = intercept + slope * years
  ss_res = float(np.sum((values - fitted) ** 2))
  ss_tot = float(np.sum((values - mean_value) ** 2))
  r_squared = 1.0 - ss_res / ss_tot if ss_tot != 0 else 0.0

  std_error = math.sqrt(ss_res / (n - 2)) if n > 2 else 0.0
  mean_sq_dev = sxx / n
  confidence = clamp(r_squared, 0.0, 1.0)

  forecast = []
  for step in range(1, horizon + 1):
    year = anchor_year + step
    predicted = intercept + slope * year
    leverage = (year - mean_year) ** 2 / mean_sq_dev if mean_sq_dev != 0 else 0.0
    margin = T_VALUE * std_error * math.sqrt(1 + 1 / n + leverage)
    forecast.append(
        ForecastPoint(
            year=year,
            predicted=clamp(predicted, 0.0, ESTIMATOR_CEILING),
            confidence=confidence,
            lower_bound=clamp(predicted - margin, 0.0, ESTIMATOR_CEILING),
            upper_bound=clamp(predicted + margin, 0.0, ESTIMATOR_CEILING),
        ))

  return EstimatorResult(
      kind=EstimatorKind.LINEAR_5YEAR,
      forecast=tuple(forecast),
      params=LinearParams(slope=slope, intercept=intercept, r_squared=r_squared),
  )


def recency_weights(n: int) -> np.ndarray:
  """Exponential recency weights with an extra boost for the last five points."""
  index = np.arange(n, dtype=np.float64)
  weights = np.exp((index - (n - 1)) * RECENCY_DECAY)
  weights[index >= n - RECENT_WINDOW] *= RECENT_BOOST
  return weights


def forecast_weighted_linear(
    series: SeriesLike,
    horizon: int,
    *,
    anchor_year: int = ANCHOR_YEAR,
) -> EstimatorResult:
  """Weighted least-squares line favouring recent observations."""
  if horizon <= 0:
    raise ValueError("Horizon must be positive for forecasting.")
  observations = prepare_series(series)
  n = len(observations)
  if n < MIN_POINTS:
    logger.debug("estimator.insufficient_data", kind=EstimatorKind.WEIGHTED_LINEAR.value,
                 available=n, required=MIN_POINTS)
    return EstimatorResult(EstimatorKind.WEIGHTED_LINEAR)

  years = np.asarray(years_of(observations), dtype=np.float64)
  values = np.asarray(values_of(observations), dtype=np.float64)
  weights = recency_weights(n)
  total_weight = float(weights.sum())

  mean_year = float(np.sum(weights * years) / total_weight)
  mean_value = float(np.sum(weights * values) / total_weight)
  dx = years - mean_year
  denominator = float(np.sum(weights * dx * dx))
  slope = float(np.sum(weights * dx * (values - mean_value)) / denominator) if denominator != 0 else 0.0
  intercept = mean_value - slope * mean_year

  residuals = values - (intercept + slope * years)
  ss_res = float(np.sum(weights * residuals ** 2))
  ss_tot = float(np.sum(weights * (values - mean_value) ** 2))
  r_squared = 1.0 - ss_res / ss_tot if ss_tot != 0 else 0.0
  confidence = clamp(r_squared, 0.0, 1.0)

  forecast = tuple(
      ForecastPoint(
          year=anchor_year + step,
          predicted=clamp(intercept + slope * (anchor_year + step), 0.0, ESTIMATOR_CEILING),
          confidence=confidence,
      ) for step in range(1, horizon + 1))

  return EstimatorResult(
      kind=EstimatorKind.WEIGHTED_LINEAR,
      forecast=forecast,
      params=WeightedLinearParams(slope=slope, intercept=intercept, r_squared=r_squared),
  )
