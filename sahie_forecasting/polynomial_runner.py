"""Year-centred polynomial regression estimator."""

from __future__ import annotations

import numpy as np

from .base import (
    EstimatorKind,
    EstimatorResult,
    ForecastPoint,
    PolynomialParams,
    SeriesLike,
    clamp,
    prepare_series,
    values_of,
    years_of,
)
from .config import ANCHOR_YEAR, ESTIMATOR_CEILING
from .errors import SingularSystemError
from .linalg import least_squares, r_squared
from .logs import get_logger

logger = get_logger(__name__)


def polynomial_design(offsets: np.ndarray, degree: int) -> np.ndarray:
  """Columns are offsets**0 .. offsets**degree."""
  return np.vander(np.asarray(offsets, dtype=np.float64), degree + 1, increasing=True)


def forecast_polynomial(
    series: SeriesLike,
    horizon: int,
    *,
    anchor_year: int = ANCHOR_YEAR,
    degree: int = 2,
) -> EstimatorResult:
  """Fit a polynomial in (year - mean year) and evaluate it at future years."""
  if horizon <= 0:
    raise ValueError("Horizon must be positive for forecasting.")
  if degree < 1:
    raise ValueError("Polynomial degree must be positive.")
  observations = prepare_series(series)
  required = degree + 2
  if len(observations) < required:
    logger.debug("estimator.insufficient_data", kind=EstimatorKind.QUADRATIC.value,
                 available=len(observations), required=required)
    return EstimatorResult(EstimatorKind.QUADRATIC)

  years = np.asarray(years_of(observations), dtype=np.float64)
  values = np.asarray(values_of(observations), dtype=np.float64)
  center_year = float(years.mean())
  design = polynomial_design(years - center_year, degree)
  try:
    coefficients = least_squares(design, values)
  except SingularSystemError as exc:
    logger.warning("estimator.singular_fit", kind=EstimatorKind.QUADRATIC.value, **exc.details)
    return EstimatorResult(EstimatorKind.QUADRATIC)

  fit_quality = r_squared(values, design @ coefficients)
  params = PolynomialParams(
      coefficients=tuple(float(c) for c in coefficients),
      degree=degree,
      center_year=center_year,
      r_squared=fit_quality,
  )
  confidence = clamp(fit_quality, 0.0, 1.0)
  forecast = tuple(
      ForecastPoint(
          year=anchor_year + step,
          predicted=clamp(params.evaluate(anchor_year + step), 0.0, ESTIMATOR_CEILING),
          confidence=confidence,
      ) for step in range(1, horizon + 1))

  return EstimatorResult(kind=EstimatorKind.QUADRATIC, forecast=forecast, params=params)
