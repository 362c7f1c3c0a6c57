"""Sequential ensemble blender combining the point estimators with a trend projection."""

from __future__ import annotations

import math
from dataclasses import dataclass
from typing import Callable, Dict, Mapping, Optional, Tuple

import numpy as np

from .arima_runner import forecast_arima
from .autoregressive_runner import forecast_autoregressive, roll_forward
from .base import (
    ENSEMBLE_KINDS,
    ArimaParams,
    AutoregressiveParams,
    CagrParams,
    EnsembleResult,
    EstimatorKind,
    EstimatorResult,
    ForecastPoint,
    HoltParams,
    LinearParams,
    Observation,
    PolynomialParams,
    SeriesLike,
    TrendRates,
    WeightedLinearParams,
    clamp,
    prepare_series,
    values_of,
)
from .config import ESTIMATOR_CEILING, EnsembleConfig
from .errors import InsufficientHistoryError, InvalidSeriesError
from .expsmooth_runner import forecast_holt_linear
from .growth_runner import forecast_cagr
from .linear_runner import forecast_linear_5year, forecast_weighted_linear
from .logs import get_logger
from .polynomial_runner import forecast_polynomial
from .trend import score_method

logger = get_logger(__name__)

VARIATION_FREQUENCY = 0.7
MAX_VARIABILITY_FACTOR = 1.2
VOLATILITY_NORMALIZER = 3.0
CV_FALLBACK = 0.3
CV_MIN_CHANGE = 0.1
BASE_CONFIDENCE = 0.7

EstimatorRunner = Callable[[Tuple[Observation, ...], int, EnsembleConfig], EstimatorResult]

ESTIMATOR_REGISTRY: Dict[EstimatorKind, EstimatorRunner] = {
    EstimatorKind.LINEAR_5YEAR: lambda obs, horizon, cfg: forecast_linear_5year(
        obs, horizon, anchor_year=cfg.anchor_year, window=cfg.recent_window),
    EstimatorKind.HOLTS: lambda obs, horizon, cfg: forecast_holt_linear(
        obs, horizon, anchor_year=cfg.anchor_year),
    EstimatorKind.ARIMA: lambda obs, horizon, cfg: forecast_arima(
        obs, horizon, anchor_year=cfg.anchor_year),
    EstimatorKind.CAGR: lambda obs, horizon, cfg: forecast_cagr(
        obs, horizon, anchor_year=cfg.anchor_year),
    EstimatorKind.QUADRATIC: lambda obs, horizon, cfg: forecast_polynomial(
        obs, horizon, anchor_year=cfg.anchor_year, degree=cfg.polynomial_degree),
    EstimatorKind.WEIGHTED_LINEAR: lambda obs, horizon, cfg: forecast_weighted_linear(
        obs, horizon, anchor_year=cfg.anchor_year),
    EstimatorKind.AUTOREGRESSIVE: lambda obs, horizon, cfg: forecast_autoregressive(
        obs, horizon, anchor_year=cfg.anchor_year, order=cfg.ar_order),
}


@dataclass(frozen=True)
class _GapContext:
  year: int
  years_from_last: int
  last_value: float
  trend_rate: float


def _gap_linear(params: LinearParams, ctx: _GapContext) -> float:
  return params.intercept + params.slope * ctx.year


def _gap_weighted_linear(params: WeightedLinearParams, ctx: _GapContext) -> float:
  return params.intercept + params.slope * ctx.year


def _gap_holt(params: HoltParams, ctx: _GapContext) -> float:
  return params.level + ctx.years_from_last * params.trend


def _gap_arima(params: ArimaParams, ctx: _GapContext) -> float:
  # Differenced dynamics decay within a step or two; the blended trend stands in.
  del params
  return ctx.last_value + ctx.trend_rate * ctx.years_from_last


def _gap_cagr(params: CagrParams, ctx: _GapContext) -> float:
  return ctx.last_value * (1.0 + params.rate) ** ctx.years_from_last


def _gap_polynomial(params: PolynomialParams, ctx: _GapContext) -> float:
  return params.evaluate(ctx.year)


def _gap_autoregressive(params: AutoregressiveParams, ctx: _GapContext) -> float:
  return roll_forward(params, ctx.years_from_last)[-1]


GAP_PROJECTORS: Dict[EstimatorKind, Callable] = {
    EstimatorKind.LINEAR_5YEAR: _gap_linear,
    EstimatorKind.HOLTS: _gap_holt,
    EstimatorKind.ARIMA: _gap_arima,
    EstimatorKind.CAGR: _gap_cagr,
    EstimatorKind.QUADRATIC: _gap_polynomial,
    EstimatorKind.WEIGHTED_LINEAR: _gap_weighted_linear,
    EstimatorKind.AUTOREGRESSIVE: _gap_autoregressive,
}

if not set(ESTIMATOR_REGISTRY) == set(GAP_PROJECTORS) == set(ENSEMBLE_KINDS):
  raise RuntimeError("Estimator and gap-projector registries must cover the same ensemble kinds.")


def project_gap_value(result: EstimatorResult, ctx: _GapContext) -> float:
  """Extrapolate one estimator to a year its own forecast does not cover."""
  projector = GAP_PROJECTORS.get(result.kind)
  if projector is None:
    raise KeyError(f"No gap-year projector registered for {result.kind.value}.")
  return projector(result.params, ctx)


def synthesize_trend_rates(observations: Tuple[Observation, ...], config: EnsembleConfig) -> TrendRates:
  """Derive the recent, long-term and blended trend rates plus volatility.

  The conservative rate is whichever of the recent average change and the
  70/30 recent/long-term blend has the smaller magnitude.
  """
  recent = observations[-config.recent_window:]
  recent_changes = tuple(float(c) for c in np.diff(values_of(recent)))
  avg_recent_change = float(np.mean(recent_changes)) if recent_changes else 0.0
  recent_trend_rate = (
      (recent[-1].value - recent[0].value) / (len(recent) - 1) if len(recent) >= 2 else 0.0)

  first, last = observations[0], observations[-1]
  span = last.year - first.year
  long_term_trend_rate = (last.value - first.value) / span if len(observations) >= 2 and span else 0.0

  all_changes = np.diff(values_of(observations))
  historical_volatility = float(np.std(all_changes)) if len(all_changes) > 1 else 0.0

  base_trend_rate = (
      config.recent_trend_weight * recent_trend_rate +
      (1.0 - config.recent_trend_weight) * long_term_trend_rate)
  if abs(avg_recent_change) < abs(base_trend_rate):
    conservative_trend_rate = avg_recent_change
  else:
    conservative_trend_rate = base_trend_rate

  return TrendRates(
      avg_recent_change=avg_recent_change,
      recent_trend_rate=recent_trend_rate,
      long_term_trend_rate=long_term_trend_rate,
      historical_volatility=historical_volatility,
      base_trend_rate=base_trend_rate,
      conservative_trend_rate=conservative_trend_rate,
      recent_changes=recent_changes,
  )


def ensemble_confidence(rates: TrendRates) -> float:
  """Confidence shared by every ensemble point, from recent-trend stability."""
  if len(rates.recent_changes) < 2:
    return BASE_CONFIDENCE
  recent_std = float(np.std(rates.recent_changes))
  if abs(rates.avg_recent_change) > CV_MIN_CHANGE:
    coefficient_of_variation = recent_std / abs(rates.avg_recent_change)
  else:
    coefficient_of_variation = CV_FALLBACK
  stability = max(0.5, 1.0 - min(0.5, coefficient_of_variation))
  alignment = 1.0 if abs(rates.recent_trend_rate - rates.long_term_trend_rate) < 0.5 else 0.8
  return clamp((stability + alignment) / 2.0, 0.5, 0.9)


def soft_cap(value: float, config: EnsembleConfig) -> float:
  """Squash values above the realistic ceiling and floor at zero."""
  if value > config.realistic_max:
    excess = value - config.realistic_max
    value = config.realistic_max + excess * math.exp(-excess / config.soft_cap_decay)
  return max(0.0, value)


def run_estimators(
    series: SeriesLike,
    horizon: int,
    config: Optional[EnsembleConfig] = None,
) -> Dict[EstimatorKind, EstimatorResult]:
  """Fit every ensemble estimator once against the same series and horizon."""
  config = config or EnsembleConfig()
  observations = prepare_series(series)
  return {kind: runner(observations, horizon, config) for kind, runner in ESTIMATOR_REGISTRY.items()}


@dataclass(frozen=True)
class _Candidate:
  kind: EstimatorKind
  value: float
  quality: Optional[float]


def _method_weight(
    candidate: _Candidate,
    trend_projection: float,
    years_from_last: int,
    last_value: float,
    rates: TrendRates,
    config: EnsembleConfig,
) -> float:
  if candidate.quality:
    weight = max(config.min_quality_weight, candidate.quality * config.quality_scale)
  else:
    weight = config.min_quality_weight

  span = max(config.min_alignment_span,
             abs(rates.conservative_trend_rate * years_from_last * config.alignment_span_factor))
  alignment = 1.0 - min(1.0, abs(candidate.value - trend_projection) / span)
  weight *= config.alignment_floor + alignment * (1.0 - config.alignment_floor)

  value = candidate.value
  if value > config.extreme_ceiling or value < last_value - config.extreme_drop:
    weight *= config.extreme_penalty
  elif value > config.soft_ceiling or value < last_value - config.soft_drop:
    weight *= config.soft_penalty

  return weight * config.preference(candidate.kind)


def _blend_year(
    *,
    year: int,
    base_value: float,
    years_from_last: int,
    variation_index: int,
    candidates: Tuple[_Candidate, ...],
    last_value: float,
    rates: TrendRates,
    confidence: float,
    is_gap_year: bool,
    config: EnsembleConfig,
) -> Tuple[ForecastPoint, float]:
  rate = rates.conservative_trend_rate
  volatility = rates.historical_volatility

  saturation = 1.0
  if base_value > config.saturation_threshold:
    saturation = 1.0 - ((base_value - config.saturation_threshold) /
                        (ESTIMATOR_CEILING - config.saturation_threshold)) * config.saturation_strength
  time_decay = math.exp(-years_from_last * config.time_decay_rate)
  trend_projection = base_value + rate * time_decay * saturation

  weighted: Dict[EstimatorKind, Tuple[float, float]] = {}
  for candidate in candidates:
    capped = _Candidate(candidate.kind, soft_cap(candidate.value, config), candidate.quality)
    weight = _method_weight(capped, trend_projection, years_from_last, last_value, rates, config)
    if weight > config.min_method_weight:
      weighted[capped.kind] = (capped.value, weight)
    else:
      logger.debug("ensemble.method_discarded", year=year, kind=capped.kind.value, weight=weight)

  total_weight = sum(weight for _, weight in weighted.values())
  if weighted and total_weight > 0:
    method_average = sum(value * weight for value, weight in weighted.values()) / total_weight
  else:
    method_average = base_value

  value = config.trend_blend * trend_projection + (1.0 - config.trend_blend) * method_average
  variability = min(MAX_VARIABILITY_FACTOR, 1.0 + volatility / VOLATILITY_NORMALIZER)
  value += math.sin(variation_index * VARIATION_FREQUENCY) * volatility * variability * config.variation_scale

  value = min(value, config.realistic_max)
  max_rise = min(config.max_yearly_rise, abs(rate) * config.rise_rate_factor + volatility)
  max_fall = min(config.max_yearly_fall, abs(rate) * config.fall_rate_factor + volatility)
  value = clamp(value, base_value - max_fall, base_value + max_rise)
  if base_value > config.high_coverage_threshold:
    headroom = (ESTIMATOR_CEILING - base_value) * config.high_coverage_growth_share
    value = min(value, base_value + headroom * math.exp(-years_from_last * config.high_coverage_decay_rate))
  value = clamp(value, 0.0, config.realistic_max)

  std_error = volatility * math.sqrt(years_from_last)
  lower = max(0.0, value - config.interval_width * std_error)
  upper = min(config.realistic_max, value + config.interval_width * std_error)

  point = ForecastPoint(
      year=year,
      predicted=round(value, 1),
      confidence=confidence,
      lower_bound=round(lower, 1),
      upper_bound=round(upper, 1),
      is_gap_year=is_gap_year,
      method_values={kind.value: round(v, 1) for kind, (v, _) in weighted.items()},
      method_weights={
          kind.value: round(w / total_weight, 4) for kind, (_, w) in weighted.items()
      } if total_weight > 0 else {},
  )
  logger.debug("ensemble.point", year=year, predicted=point.predicted, base=base_value,
               trend_projection=trend_projection, method_average=method_average,
               methods=len(weighted), gap=is_gap_year)
  return point, value


def compute_forecast(
    series: SeriesLike,
    horizon: int,
    *,
    config: Optional[EnsembleConfig] = None,
) -> EnsembleResult:
  """Blend all estimators into a bounded, sequentially chained forecast.

  Years between the last observation and ``config.anchor_year`` are bridged
  first and flagged as gap years; the ``horizon`` requested years follow.
  Each year starts from the previous year's ensemble value.
  """
  config = config or EnsembleConfig()
  if horizon <= 0:
    raise ValueError("Horizon must be positive for forecasting.")
  observations = prepare_series(series)
  if len(observations) < config.min_history:
    raise InsufficientHistoryError(len(observations), config.min_history)
  if config.anchor_year < observations[-1].year:
    raise InvalidSeriesError(
        f"Anchor year {config.anchor_year} precedes the last observation ({observations[-1].year}).",
        {"anchor_year": config.anchor_year, "last_year": observations[-1].year},
    )

  rates = synthesize_trend_rates(observations, config)
  results = run_estimators(observations, horizon, config)
  available = {kind: result for kind, result in results.items() if not result.is_empty}
  confidence = ensemble_confidence(rates)

  last = observations[-1]
  gap_count = max(0, config.anchor_year - last.year)
  forecast = []
  base_value = last.value

  for gap in range(1, gap_count + 1):
    ctx = _GapContext(
        year=last.year + gap,
        years_from_last=gap,
        last_value=last.value,
        trend_rate=rates.conservative_trend_rate,
    )
    candidates = tuple(
        _Candidate(kind, project_gap_value(result, ctx), result.quality)
        for kind, result in available.items())
    point, base_value = _blend_year(
        year=ctx.year,
        base_value=base_value,
        years_from_last=gap,
        variation_index=gap - 1,
        candidates=candidates,
        last_value=last.value,
        rates=rates,
        confidence=confidence,
        is_gap_year=True,
        config=config,
    )
    forecast.append(point)

  for index in range(horizon):
    candidates = tuple(
        _Candidate(kind, result.forecast[index].predicted, result.quality)
        for kind, result in available.items()
        if index < len(result.forecast))
    # The index restarts after the gap years unless continuous variation is requested.
    variation_index = gap_count + index if config.continuous_variation else index
    point, base_value = _blend_year(
        year=config.anchor_year + index + 1,
        base_value=base_value,
        years_from_last=gap_count + index + 1,
        variation_index=variation_index,
        candidates=candidates,
        last_value=last.value,
        rates=rates,
        confidence=confidence,
        is_gap_year=False,
        config=config,
    )
    forecast.append(point)

  methods: Mapping[str, Dict[str, object]] = {
      kind.value: dict(result.summary(), available=not result.is_empty,
                       score=score_method(result, observations))
      for kind, result in results.items()
  }
  logger.debug("ensemble.complete", points=len(forecast), gap_years=gap_count,
               methods=sorted(kind.value for kind in available),
               trend_rate=rates.conservative_trend_rate)
  return EnsembleResult(
      forecast=tuple(forecast),
      methods=methods,
      weights={"recent_trend_rate": rates.conservative_trend_rate},
      trend_rates=rates,
  )
