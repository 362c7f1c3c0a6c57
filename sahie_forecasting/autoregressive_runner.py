"""Autoregressive AR(k) estimator with an intercept term."""

from __future__ import annotations

from typing import Tuple

import numpy as np

from .base import (
    AutoregressiveParams,
    EstimatorKind,
    EstimatorResult,
    ForecastPoint,
    SeriesLike,
    clamp,
    prepare_series,
    values_of,
)
from .config import ANCHOR_YEAR, ESTIMATOR_CEILING
from .errors import SingularSystemError
from .linalg import least_squares
from .logs import get_logger

logger = get_logger(__name__)

AR_CONFIDENCE = 0.75


def lagged_design(values: np.ndarray, order: int) -> Tuple[np.ndarray, np.ndarray]:
  """Rows ``[1, y[t-1], .., y[t-order]]`` paired with targets ``y[t]``."""
  rows = []
  targets = []
  for t in range(order, len(values)):
    rows.append([1.0] + [values[t - lag] for lag in range(1, order + 1)])
    targets.append(values[t])
  return np.asarray(rows, dtype=np.float64), np.asarray(targets, dtype=np.float64)


def roll_forward(params: AutoregressiveParams, steps: int) -> Tuple[float, ...]:
  """Iterate the AR recursion, feeding each prediction back as the newest lag.

  The window is a fresh tuple on every step, so ``params`` is never mutated.
  """
  window = params.window
  predictions = []
  for _ in range(steps):
    predicted = params.step(window)
    predictions.append(predicted)
    window = window[1:] + (predicted,)
  return tuple(predictions)


def forecast_autoregressive(
    series: SeriesLike,
    horizon: int,
    *,
    anchor_year: int = ANCHOR_YEAR,
    order: int = 2,
) -> EstimatorResult:
  """Fit AR(order) by least squares and forecast recursively.

  The recursion starts from the last observed values, so its first step
  lands on ``anchor_year + 1`` regardless of any gap after the series.
  """
  if horizon <= 0:
    raise ValueError("Horizon must be positive for forecasting.")
  if order < 1:
    raise ValueError("AR order must be positive.")
  observations = prepare_series(series)
  required = order + 2
  if len(observations) < required:
    logger.debug("estimator.insufficient_data", kind=EstimatorKind.AUTOREGRESSIVE.value,
                 available=len(observations), required=required)
    return EstimatorResult(EstimatorKind.AUTOREGRESSIVE)

  values = np.asarray(values_of(observations), dtype=np.float64)
  design, targets = lagged_design(values, order)
  try:
    coefficients = least_squares(design, targets)
  except SingularSystemError as exc:
    logger.warning("estimator.singular_fit", kind=EstimatorKind.AUTOREGRESSIVE.value, **exc.details)
    return EstimatorResult(EstimatorKind.AUTOREGRESSIVE)

  params = AutoregressiveParams(
      coefficients=tuple(float(c) for c in coefficients),
      order=order,
      window=tuple(float(v) for v in values[-order:]),
  )
  forecast = tuple(
      ForecastPoint(
          year=anchor_year + step,
          predicted=clamp(predicted, 0.0, ESTIMATOR_CEILING),
          confidence=AR_CONFIDENCE,
      ) for step, predicted in enumerate(roll_forward(params, horizon), start=1))

  return EstimatorResult(kind=EstimatorKind.AUTOREGRESSIVE, forecast=forecast, params=params)
