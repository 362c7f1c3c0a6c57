"""Compound annual growth rate estimator."""

from __future__ import annotations

from .base import (
    CagrParams,
    EstimatorKind,
    EstimatorResult,
    ForecastPoint,
    SeriesLike,
    clamp,
    prepare_series,
)
from .config import ANCHOR_YEAR, ESTIMATOR_CEILING
from .logs import get_logger

logger = get_logger(__name__)

MIN_POINTS = 2


def forecast_cagr(
    series: SeriesLike,
    horizon: int,
    *,
    anchor_year: int = ANCHOR_YEAR,
) -> EstimatorResult:
  """Project the first-to-last compound growth rate forward from the last value."""
  if horizon <= 0:
    raise ValueError("Horizon must be positive for forecasting.")
  observations = prepare_series(series)
  if len(observations) < MIN_POINTS:
    logger.debug("estimator.insufficient_data", kind=EstimatorKind.CAGR.value,
                 available=len(observations), required=MIN_POINTS)
    return EstimatorResult(EstimatorKind.CAGR)

  first, last = observations[0], observations[-1]
  periods = last.year - first.year
  if periods == 0 or first.value <= 0 or last.value <= 0:
    logger.debug("estimator.degenerate_growth", periods=periods, first_value=first.value,
                 last_value=last.value)
    return EstimatorResult(EstimatorKind.CAGR)

  rate = (last.value / first.value) ** (1.0 / periods) - 1.0
  years_gap = max(0, anchor_year - last.year)
  forecast = tuple(
      ForecastPoint(
          year=anchor_year + step,
          predicted=clamp(last.value * (1.0 + rate) ** (years_gap + step), 0.0, ESTIMATOR_CEILING),
      ) for step in range(1, horizon + 1))

  return EstimatorResult(kind=EstimatorKind.CAGR, forecast=forecast, params=CagrParams(rate=rate))
