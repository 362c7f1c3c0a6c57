"""Historical trend classification and per-method scoring."""

from __future__ import annotations

from .base import (
    EstimatorResult,
    SeriesLike,
    TrendAnalysis,
    TrendDirection,
    clamp,
    prepare_series,
)
from .config import RECENT_WINDOW
from .linear_runner import forecast_linear_5year

STABLE_PERCENT = 1.0
STRONG_STRENGTH = 0.7
MODERATE_STRENGTH = 0.4

_RISING = (
    TrendDirection.STRONG_INCREASING,
    TrendDirection.MODERATE_INCREASING,
    TrendDirection.WEAK_INCREASING,
)
_FALLING = (
    TrendDirection.STRONG_DECREASING,
    TrendDirection.MODERATE_DECREASING,
    TrendDirection.WEAK_DECREASING,
)


def analyze_trend(series: SeriesLike) -> TrendAnalysis:
  """Classify the direction and strength of the whole historical series.

  Strength is the R² of the recent-window linear fit; direction compares the
  first and last observations, treating moves under 1% as stable.
  """
  observations = prepare_series(series)
  if len(observations) < 2:
    return TrendAnalysis(direction=TrendDirection.INSUFFICIENT_DATA, strength=0.0)

  first, last = observations[0], observations[-1]
  change = last.value - first.value
  percent_change = change / first.value * 100.0 if first.value != 0 else 0.0

  linear = forecast_linear_5year(observations, 1)
  strength = abs(linear.r_squared or 0.0)

  if abs(percent_change) < STABLE_PERCENT:
    direction = TrendDirection.STABLE
  else:
    ladder = _RISING if change > 0 else _FALLING
    if strength > STRONG_STRENGTH:
      direction = ladder[0]
    elif strength > MODERATE_STRENGTH:
      direction = ladder[1]
    else:
      direction = ladder[2]

  return TrendAnalysis(
      direction=direction,
      strength=strength,
      change=round(change, 2),
      percent_change=round(percent_change, 2),
      first_year=first.year,
      last_year=last.year,
  )


def _sign(value: float, dead_zone: float = 0.0) -> int:
  if value > dead_zone:
    return 1
  if value < -dead_zone:
    return -1
  return 0


def score_method(result: EstimatorResult, series: SeriesLike) -> float:
  """Heuristic 0.05-1.0 score of how trustworthy an estimator looks.

  Starts from R² (or point confidence), rewards agreement with the recent
  five-year direction and penalizes forecasts that contradict a clear move.
  """
  observations = prepare_series(series)
  if result.is_empty or len(observations) < 3:
    return 0.1

  score = 0.3
  if result.r_squared is not None:
    score = max(0.1, result.r_squared)
  elif result.forecast[0].confidence:
    score = max(0.1, result.forecast[0].confidence)

  recent = observations[-RECENT_WINDOW:]
  recent_change = recent[-1].value - recent[0].value
  recent_direction = _sign(recent_change, dead_zone=0.5)
  forecast_direction = _sign(result.forecast[0].predicted - observations[-1].value)

  if recent_direction != 0 and forecast_direction == recent_direction:
    score *= 1 + 0.3 * min(1.0, abs(recent_change) / 5.0)
  if recent_direction != 0 and forecast_direction == -recent_direction and abs(recent_change) > 2:
    score *= 0.5

  slope = getattr(result.params, "slope", None)
  if slope is not None and (result.r_squared or 0.0) > 0.5:
    if recent_direction != 0 and _sign(slope) == recent_direction:
      score *= 1.2

  return clamp(score, 0.05, 1.0)
