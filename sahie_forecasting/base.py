"""Shared forecasting datatypes for the estimators and the ensemble."""

from __future__ import annotations

import math
from dataclasses import asdict, dataclass, field
from enum import Enum
from typing import Any, Dict, Iterable, Mapping, Optional, Sequence, Tuple, Union

from .errors import InvalidSeriesError
from .logs import get_logger

logger = get_logger(__name__)


@dataclass(frozen=True)
class Observation:
  """One annual coverage percentage for a geography/demographic key."""

  year: int
  value: float


SeriesLike = Iterable[Union[Observation, Tuple[int, float], Mapping[str, Any]]]


def _coerce_observation(item: Any) -> Observation:
  if isinstance(item, Observation):
    return item
  try:
    if isinstance(item, Mapping):
      year, value = item["year"], item["value"]
    else:
      year, value = item
    return Observation(year=int(year), value=float(value))
  except (KeyError, TypeError, ValueError) as exc:
    raise InvalidSeriesError(f"Cannot interpret {item!r} as a (year, value) observation.") from exc


def _is_prepared(series: Any) -> bool:
  if not isinstance(series, tuple):
    return False
  if not all(isinstance(obs, Observation) and math.isfinite(obs.value) for obs in series):
    return False
  return all(earlier.year < later.year for earlier, later in zip(series, series[1:]))


def prepare_series(series: SeriesLike) -> Tuple[Observation, ...]:
  """Normalize raw observations into a year-sorted tuple.

  Duplicate years and non-finite values are rejected. Values outside the
  0-100 percentage range are kept but logged, since upstream estimates are
  occasionally published slightly out of range. A tuple this function already
  returned passes through unchanged and is not logged again.
  """
  if _is_prepared(series):
    return series
  observations = [_coerce_observation(item) for item in series]
  seen = set()
  for obs in observations:
    if obs.year in seen:
      raise InvalidSeriesError(f"Duplicate observation for year {obs.year}.", {"year": obs.year})
    seen.add(obs.year)
    if not math.isfinite(obs.value):
      raise InvalidSeriesError(f"Non-finite value for year {obs.year}.", {"year": obs.year})
    if not 0.0 <= obs.value <= 100.0:
      logger.warning("series.value_out_of_range", year=obs.year, value=obs.value)
  return tuple(sorted(observations, key=lambda obs: obs.year))


def clamp(value: float, low: float, high: float) -> float:
  return max(low, min(high, value))


class EstimatorKind(str, Enum):
  """Identifies each point estimator; values double as public method names."""

  LINEAR_5YEAR = "linear5Year"
  HOLTS = "holts"
  ARIMA = "arima"
  CAGR = "cagr"
  QUADRATIC = "quadratic"
  WEIGHTED_LINEAR = "weightedLinear"
  AUTOREGRESSIVE = "autoregressive"
  MOVING_AVERAGE = "movingAverage"


ENSEMBLE_KINDS: Tuple[EstimatorKind, ...] = (
    EstimatorKind.LINEAR_5YEAR,
    EstimatorKind.HOLTS,
    EstimatorKind.ARIMA,
    EstimatorKind.CAGR,
    EstimatorKind.QUADRATIC,
    EstimatorKind.WEIGHTED_LINEAR,
    EstimatorKind.AUTOREGRESSIVE,
)


@dataclass(frozen=True)
class ForecastPoint:
  """A single projected year, optionally carrying ensemble diagnostics."""

  year: int
  predicted: float
  confidence: Optional[float] = None
  lower_bound: Optional[float] = None
  upper_bound: Optional[float] = None
  is_gap_year: bool = False
  method_values: Mapping[str, float] = field(default_factory=dict)
  method_weights: Mapping[str, float] = field(default_factory=dict)

  def to_dict(self) -> Dict[str, Any]:
    payload: Dict[str, Any] = {"year": self.year, "predicted": self.predicted}
    for key in ("confidence", "lower_bound", "upper_bound"):
      value = getattr(self, key)
      if value is not None:
        payload[key] = value
    if self.is_gap_year:
      payload["is_gap_year"] = True
    if self.method_values:
      payload["methods"] = dict(self.method_values)
      payload["weights"] = dict(self.method_weights)
    return payload


@dataclass(frozen=True)
class LinearParams:
  slope: float
  intercept: float
  r_squared: float


@dataclass(frozen=True)
class WeightedLinearParams:
  slope: float
  intercept: float
  r_squared: float


@dataclass(frozen=True)
class HoltParams:
  level: float
  trend: float
  r_squared: float
  alpha: float
  beta: float


@dataclass(frozen=True)
class ArimaParams:
  ar_coeff: float
  ma_coeff: float
  # Not computed from residuals; the simplified fit reports a fixed value.
  r_squared: float


@dataclass(frozen=True)
class CagrParams:
  rate: float


@dataclass(frozen=True)
class PolynomialParams:
  coefficients: Tuple[float, ...]
  degree: int
  center_year: float
  r_squared: float

  def evaluate(self, year: float) -> float:
    offset = year - self.center_year
    return sum(coef * offset ** power for power, coef in enumerate(self.coefficients))


@dataclass(frozen=True)
class AutoregressiveParams:
  coefficients: Tuple[float, ...]
  order: int
  window: Tuple[float, ...]

  def step(self, window: Tuple[float, ...]) -> float:
    """One-step prediction from a window ordered oldest to newest."""
    predicted = self.coefficients[0]
    for lag in range(1, self.order + 1):
      predicted += self.coefficients[lag] * window[-lag]
    return predicted


@dataclass(frozen=True)
class MovingAverageParams:
  moving_average: float
  trend: float
  window: int


EstimatorParams = Union[
    LinearParams,
    WeightedLinearParams,
    HoltParams,
    ArimaParams,
    CagrParams,
    PolynomialParams,
    AutoregressiveParams,
    MovingAverageParams,
]


@dataclass(frozen=True)
class EstimatorResult:
  """Standardized output produced by every point estimator."""

  kind: EstimatorKind
  forecast: Tuple[ForecastPoint, ...] = ()
  params: Optional[EstimatorParams] = None

  @property
  def is_empty(self) -> bool:
    return self.params is None or not self.forecast

  @property
  def r_squared(self) -> Optional[float]:
    return getattr(self.params, "r_squared", None)

  @property
  def quality(self) -> Optional[float]:
    """R² when the model reports one, otherwise its point confidence."""
    r_squared = self.r_squared
    if r_squared is not None and r_squared > 0:
      return r_squared
    if self.forecast and self.forecast[0].confidence:
      return self.forecast[0].confidence
    return None

  def summary(self) -> Dict[str, Any]:
    if self.params is None:
      return {}
    return asdict(self.params)


@dataclass(frozen=True)
class TrendRates:
  """Trend signals synthesized from the historical series before blending."""

  avg_recent_change: float
  recent_trend_rate: float
  long_term_trend_rate: float
  historical_volatility: float
  base_trend_rate: float
  conservative_trend_rate: float
  recent_changes: Tuple[float, ...]


@dataclass(frozen=True)
class EnsembleResult:
  forecast: Tuple[ForecastPoint, ...]
  methods: Mapping[str, Dict[str, Any]]
  weights: Mapping[str, float]
  trend_rates: TrendRates

  @property
  def gap_years(self) -> Tuple[ForecastPoint, ...]:
    return tuple(point for point in self.forecast if point.is_gap_year)

  @property
  def horizon_points(self) -> Tuple[ForecastPoint, ...]:
    return tuple(point for point in self.forecast if not point.is_gap_year)


class TrendDirection(str, Enum):
  STRONG_INCREASING = "strong_increasing"
  MODERATE_INCREASING = "moderate_increasing"
  WEAK_INCREASING = "weak_increasing"
  STABLE = "stable"
  WEAK_DECREASING = "weak_decreasing"
  MODERATE_DECREASING = "moderate_decreasing"
  STRONG_DECREASING = "strong_decreasing"
  INSUFFICIENT_DATA = "insufficient_data"


@dataclass(frozen=True)
class TrendAnalysis:
  direction: TrendDirection
  strength: float
  change: float = 0.0
  percent_change: float = 0.0
  first_year: Optional[int] = None
  last_year: Optional[int] = None


def values_of(series: Sequence[Observation]) -> Tuple[float, ...]:
  return tuple(obs.value for obs in series)


def years_of(series: Sequence[Observation]) -> Tuple[int, ...]:
  return tuple(obs.year for obs in series)
